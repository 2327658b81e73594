from typing import List, Optional

import pytest

from strategy_engine.engine.resolver import validate_profile
from strategy_engine.engine.weights import GlobalDefaults, StrategyWeights
from strategy_engine.errors import CollaboratorUnavailable, MalformedProfile, UnknownConstituency
from strategy_engine.models import AreaType, ElectionCycle, ImpactTier, Provenance, SourceRecord
from strategy_engine.services.record_store import JsonRecordStore, RecordStore
from strategy_engine.tests.builders import (
    bundled_pipeline, bundled_registry, bundled_resolver, full_demographics, make_profile,
)


class _UnavailableStore(RecordStore):
    name = "unreachable store"

    def fetch(self, constituency_id: str) -> Optional[SourceRecord]:
        raise CollaboratorUnavailable(self.name, "connection refused")

    def fetch_region(self, region: str) -> List[SourceRecord]:
        raise CollaboratorUnavailable(self.name, "connection refused")


def test_exact_record_fills_profile():
    profile = bundled_resolver().resolve("nadia-17")

    assert profile.name == "Krishnanagar Uttar"
    assert profile.district == "Nadia"
    assert profile.assembly_number is not None
    assert profile.total_voters == 195000
    assert profile.standing.focus_vote_share == 42.1
    assert profile.standing.focus_position == 2
    assert profile.standing.winning_party == "AITC"
    assert profile.demographics.matua_population == 35000
    assert profile.swing_factors.policy_impact is ImpactTier.HIGH
    assert profile.provenance["focus_vote_share"] is Provenance.RECORD
    assert profile.provenance["religion"] is Provenance.RECORD
    assert not profile.is_estimated


def test_registry_only_constituency_uses_region_peers():
    profile = bundled_resolver().resolve("alipurduar-3")

    # mean of the two Alipurduar records (38.2 and 45.8)
    assert profile.standing.focus_vote_share == 42.0
    assert profile.standing.focus_position == 2
    assert profile.standing.winning_party == "AITC"
    assert profile.demographics.religion == {"hindu": 55.0, "muslim": 15.0, "other": 30.0}
    # 21% of the 178500-voter peer mean
    assert profile.demographics.tea_garden_workers == 37485
    assert profile.area_type is AreaType.RURAL
    assert profile.provenance["focus_vote_share"] is Provenance.REGIONAL
    assert profile.provenance["area_type"] is Provenance.REGIONAL
    assert profile.is_estimated


def test_urban_registry_entry_gets_urban_heuristics():
    profile = bundled_resolver().resolve("kolkata-5")

    assert profile.area_type is AreaType.URBAN
    assert profile.standing.focus_vote_share == 26.3
    assert profile.standing.focus_position == 3
    assert profile.key_issues[0] == "Urban infrastructure"


def test_unknown_constituency_raises():
    with pytest.raises(UnknownConstituency) as exc:
        bundled_resolver().resolve("atlantis-1")
    assert exc.value.constituency_id == "atlantis-1"


def test_record_without_registry_entry_resolves():
    store = JsonRecordStore([SourceRecord(constituency_id="byelection-1", total_voters=90000, district="Nadia")])
    profile = bundled_resolver(store).resolve("byelection-1")

    assert profile.total_voters == 90000
    assert profile.provenance["total_voters"] is Provenance.RECORD


def test_store_unavailable_falls_back_to_regional_tables():
    profile = bundled_resolver(_UnavailableStore()).resolve("nadia-17")

    # South Bengal base 35 plus the border-district uplift
    assert profile.standing.focus_vote_share == 43.0
    assert profile.swing_factors.policy_impact is ImpactTier.HIGH
    assert profile.demographics.matua_population == 35100
    assert profile.demographics.religion == {"hindu": 69.0, "muslim": 28.0, "other": 3.0}
    assert profile.provenance["total_voters"] is Provenance.REGIONAL
    assert profile.provenance["focus_vote_share"] is Provenance.REGIONAL
    assert profile.provenance["corruption_perception"] is Provenance.DEFAULT


def test_minimal_record_uses_global_defaults():
    profile = bundled_resolver().build(SourceRecord(constituency_id="new-seat", total_voters=120000))

    assert profile.name == "new-seat"
    assert profile.district == "Unassigned"
    assert profile.total_voters == 120000
    assert profile.standing.focus_vote_share == 35.0
    assert profile.standing.focus_position == 2
    assert profile.standing.winning_party == "AITC"
    assert profile.demographics.religion == {"hindu": 70.0, "muslim": 27.0, "other": 3.0}
    assert profile.provenance["total_voters"] is Provenance.RECORD
    assert profile.provenance["focus_vote_share"] is Provenance.DEFAULT
    assert profile.provenance["age"] is Provenance.DEFAULT


def test_latest_history_cycle_fills_standing():
    record = SourceRecord.model_validate({
        "constituency_id": "hist-1",
        "total_voters": 100000,
        "history": [
            {"year": 2016, "winner_party": "AITC", "focus_vote_share": 22.0, "margin_votes": 30000},
            {"year": 2021, "winner_party": "BJP", "focus_vote_share": 47.5, "margin_votes": 4200},
        ],
    })
    profile = bundled_resolver().build(record)

    assert profile.standing.focus_vote_share == 47.5
    assert profile.standing.focus_position == 1
    assert profile.standing.winning_party == "BJP"
    assert profile.standing.margin_votes == 4200
    assert [c.year for c in profile.history] == [2021, 2016]


def test_demographic_groups_must_sum_to_100():
    record = SourceRecord(
        constituency_id="bad-1", total_voters=100000,
        religion={"hindu": 60.0, "muslim": 25.0, "other": 5.0},
    )
    with pytest.raises(MalformedProfile) as exc:
        bundled_resolver().build(record)
    assert exc.value.field == "demographics.religion"


def test_out_of_range_percentage_is_rejected():
    record = SourceRecord(constituency_id="bad-2", total_voters=100000, focus_vote_share=120.0)
    with pytest.raises(MalformedProfile) as exc:
        bundled_resolver().build(record)
    assert exc.value.field == "standing.focus_vote_share"


def test_non_positive_electorate_is_rejected():
    with pytest.raises(MalformedProfile) as exc:
        bundled_resolver().build(SourceRecord(constituency_id="bad-3", total_voters=0))
    assert exc.value.field == "total_voters"


def test_validate_profile_accepts_rounding_tolerance():
    validate_profile(make_profile(demographics=full_demographics(
        gender={"female": 48.4, "male": 52.3},
    )))


def test_every_bundled_constituency_resolves():
    resolver = bundled_resolver()
    for entry in bundled_registry().all():
        profile = resolver.resolve(entry.constituency_id)
        for group in ("religion", "caste", "age", "gender"):
            values = getattr(profile.demographics, group)
            assert abs(sum(values.values()) - 100) <= 1
        for count in (profile.demographics.matua_population, profile.demographics.tea_garden_workers):
            assert count is None or 0 <= count <= profile.total_voters


def test_regional_community_estimate_scales_with_electorate():
    record = SourceRecord(constituency_id="tiny-1", total_voters=5000, district="Nadia")
    profile = bundled_resolver().build(record)

    assert profile.demographics.matua_population == 900
    assert profile.provenance["matua_population"] is Provenance.REGIONAL

    strategy = bundled_pipeline().synthesize_record(record)
    assert all(s.size <= 5000 for s in strategy.segments)


def test_community_count_above_electorate_is_rejected():
    record = SourceRecord(constituency_id="bad-4", total_voters=1000, tea_garden_workers=900000)
    with pytest.raises(MalformedProfile) as exc:
        bundled_resolver().build(record)
    assert exc.value.field == "demographics.tea_garden_workers"


def test_implausible_electorate_is_rejected():
    with pytest.raises(MalformedProfile) as exc:
        bundled_resolver().build(SourceRecord(constituency_id="huge-1", total_voters=20_000_000))
    assert exc.value.field == "total_voters"


def test_electorate_cap_comes_from_weights():
    weights = StrategyWeights(defaults=GlobalDefaults(max_total_voters=100000))
    profile = make_profile(total_voters=150000)

    validate_profile(profile)
    with pytest.raises(MalformedProfile) as exc:
        validate_profile(profile, weights)
    assert exc.value.field == "total_voters"


def test_history_must_be_newest_first():
    profile = make_profile(history=[
        ElectionCycle(year=2016, winner_party="AITC", focus_vote_share=41.0),
        ElectionCycle(year=2021, winner_party="AITC", focus_vote_share=38.0),
    ])
    with pytest.raises(MalformedProfile) as exc:
        validate_profile(profile)
    assert exc.value.field == "history"


def test_first_place_must_match_recorded_winner():
    held = make_profile(focus_position=1)
    profile = held.model_copy(update={"standing": held.standing.model_copy(update={"winning_party": "AITC"})})

    validate_profile(profile)
    with pytest.raises(MalformedProfile) as exc:
        validate_profile(profile, focus_party="BJP")
    assert exc.value.field == "standing.winning_party"
