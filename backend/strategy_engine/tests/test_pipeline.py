import pytest

from strategy_engine.errors import MalformedProfile, UnknownConstituency
from strategy_engine.models import (
    AreaType, ConstituencyStatus, ElectionCycle, ImpactTier, NarrativeTheme,
    SentimentSignals, SentimentTrend, SourceRecord, WinningStrategy,
)
from strategy_engine.tests.builders import bundled_pipeline, full_demographics, make_profile


@pytest.fixture(scope="module")
def pipeline():
    return bundled_pipeline()


def test_second_place_with_strong_anti_incumbency(pipeline):
    profile = make_profile(total_voters=150000, focus_vote_share=45.0, anti_incumbency=70.0)
    strategy = pipeline.synthesize_profile(profile)

    assert strategy.status in (ConstituencyStatus.WINNABLE, ConstituencyStatus.BATTLEGROUND)
    assert strategy.status is ConstituencyStatus.BATTLEGROUND
    assert strategy.win_probability == 64.4
    assert strategy.swing_needed == 5.0
    assert strategy.vote_bank.convertible == 31500
    assert strategy.priority_score == 105
    assert strategy.messaging.theme is NarrativeTheme.CHANGE


@pytest.mark.parametrize("share,anti,policy", [
    (12.0, 10.0, ImpactTier.LOW),
    (45.0, 90.0, ImpactTier.HIGH),
    (70.0, 0.0, ImpactTier.MEDIUM),
])
def test_first_place_is_held_regardless_of_swing_factors(pipeline, share, anti, policy):
    profile = make_profile(focus_position=1, focus_vote_share=share, anti_incumbency=anti, policy_impact=policy)
    strategy = pipeline.synthesize_profile(profile)

    assert strategy.status is ConstituencyStatus.HELD
    assert strategy.swing_needed == 0.0


def test_bare_record_produces_complete_strategy(pipeline):
    strategy = pipeline.synthesize_record(SourceRecord(constituency_id="bare-1", total_voters=100000))

    assert strategy.constituency.constituency_id == "bare-1"
    assert strategy.vote_bank.total_voters == 100000
    assert strategy.ground_plan.booth_count == 100
    assert len(strategy.timeline) == 4
    assert strategy.winning_formula.minimum_votes_needed == 32800
    assert strategy.risks.threats
    assert strategy.provenance["total_voters"] == "record"
    assert strategy.provenance["focus_vote_share"] == "default"


def test_synthesis_is_idempotent(pipeline):
    first = pipeline.synthesize("nadia-17")
    second = pipeline.synthesize("nadia-17")

    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_strategy_json_round_trip(pipeline):
    strategy = pipeline.synthesize("kolkata-2")
    restored = WinningStrategy.model_validate_json(strategy.model_dump_json())

    assert restored == strategy


def test_bundled_constituencies(pipeline):
    held = pipeline.synthesize("alipurduar-2")
    bhabanipur = pipeline.synthesize("kolkata-2")

    assert held.status is ConstituencyStatus.HELD
    assert bhabanipur.status is not ConstituencyStatus.HELD
    assert bhabanipur.messaging.theme is NarrativeTheme.DEVELOPMENT_HERITAGE
    assert "Urban Middle Class" in [s.name for s in bhabanipur.segments]
    # notable incumbent and capital district bonuses
    assert bhabanipur.priority_score > pipeline.synthesize("kolkata-5").priority_score


def test_matua_seat_gets_conversion_path(pipeline):
    strategy = pipeline.synthesize("nadia-17")
    paths = {p.voter_segment: p for p in strategy.winning_formula.conversion_paths}

    assert paths["Matua Community"].current_votes == 14000
    assert paths["Matua Community"].target_votes == 26250
    assert paths["Dissatisfied incumbent voters"].target_votes == strategy.vote_bank.convertible


def test_winning_formula_numbers(pipeline):
    strategy = pipeline.synthesize_profile(make_profile(total_voters=150000))
    formula = strategy.winning_formula

    assert formula.minimum_votes_needed == 49200
    # 50625 committed + 30% of 22500 swing + 50% of 31500 convertible
    assert formula.current_expected_votes == 50625 + 6750 + 15750
    assert formula.gap_to_victory == 49200 - 73125
    assert formula.confidence == 75


def test_risks_follow_profile(pipeline):
    profile = make_profile(
        district="Birbhum",
        sentiment=SentimentSignals(trend=SentimentTrend.DECLINING),
        history=[
            ElectionCycle(year=2021, winner_party="AITC", focus_vote_share=38.0),
            ElectionCycle(year=2016, winner_party="AITC", focus_vote_share=41.0),
        ],
    )
    threats = [r.threat for r in pipeline.synthesize_profile(profile).risks.threats]

    assert threats[0] == "Political violence and booth capture"
    assert "Complete minority consolidation against BJP" not in threats
    assert "Declining sentiment toward BJP in recent signals" in threats
    assert "Vote share eroding since 2016" in threats


def test_minority_consolidation_risk(pipeline):
    profile = make_profile(demographics=full_demographics(religion={"hindu": 60.0, "muslim": 38.0, "other": 2.0}))
    strategy = pipeline.synthesize_profile(profile)

    assert "Complete minority consolidation against BJP" in [r.threat for r in strategy.risks.threats]
    assert "ISF vs AITC split in minority votes" in strategy.opposition.exploitable_splits


def test_messaging_theme_rules(pipeline):
    urban = pipeline.synthesize_profile(make_profile(anti_incumbency=50.0, area_type=AreaType.URBAN))
    rural = pipeline.synthesize_profile(make_profile(anti_incumbency=60.0, area_type=AreaType.RURAL))

    assert urban.messaging.theme is NarrativeTheme.DEVELOPMENT_HERITAGE
    assert rural.messaging.theme is NarrativeTheme.DEVELOPMENT
    assert "Farmers" in rural.messaging.demographic_messages
    assert rural.messaging.whatsapp.coordinators == 30


def test_malformed_profile_aborts_before_decomposition(pipeline):
    profile = make_profile(demographics=full_demographics(age={"youth": 80.0, "middle": 40.0}))
    with pytest.raises(MalformedProfile) as exc:
        pipeline.synthesize_profile(profile)
    assert exc.value.field == "demographics.age"


def test_synthesize_many_keeps_input_order(pipeline):
    ids = ["kolkata-2", "alipurduar-1", "nadia-17", "alipurduar-2"]
    strategies = pipeline.synthesize_many(ids)

    assert [s.constituency.constituency_id for s in strategies] == ids
    assert strategies[2] == pipeline.synthesize("nadia-17")


def test_synthesize_many_surfaces_unknown_ids(pipeline):
    with pytest.raises(UnknownConstituency):
        pipeline.synthesize_many(["nadia-17", "atlantis-1"])
    assert pipeline.synthesize_many([]) == []


def test_out_of_order_history_is_rejected(pipeline):
    profile = make_profile(history=[
        ElectionCycle(year=2011, winner_party="AITC", focus_vote_share=4.1),
        ElectionCycle(year=2021, winner_party="AITC", focus_vote_share=38.0),
    ])
    with pytest.raises(MalformedProfile) as exc:
        pipeline.synthesize_profile(profile)
    assert exc.value.field == "history"
