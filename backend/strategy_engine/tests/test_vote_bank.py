import pytest
from pydantic import ValidationError

from strategy_engine.engine.vote_bank import decompose
from strategy_engine.engine.weights import DecompositionWeights, StrategyWeights
from strategy_engine.tests.builders import make_profile


def test_decompose_second_place_profile():
    vb = decompose(make_profile(total_voters=150000, focus_vote_share=45.0, anti_incumbency=70.0))

    assert vb.total_voters == 150000
    assert vb.committed == 50625
    assert vb.swing == 22500
    assert vb.opposition_core == 45000
    assert vb.convertible == 31500


def test_opposition_core_shrinks_when_focus_share_is_high():
    vb = decompose(make_profile(total_voters=100000, focus_vote_share=80.0, anti_incumbency=50.0))

    assert vb.opposition_core == 20000
    assert vb.convertible == 10000


@pytest.mark.parametrize("share", [0.0, 12.5, 35.0, 49.9, 70.0, 100.0])
@pytest.mark.parametrize("anti", [0.0, 55.0, 100.0])
def test_pools_never_exceed_electorate(share, anti):
    vb = decompose(make_profile(total_voters=187321, focus_vote_share=share, anti_incumbency=anti))

    assert vb.committed + vb.swing + vb.convertible <= vb.total_voters
    assert min(vb.committed, vb.swing, vb.convertible) >= 0


def test_convertible_is_capped_by_remaining_voters():
    weights = StrategyWeights(decomposition=DecompositionWeights(
        retention_rate=0.5, swing_pool_rate=0.5, opposition_core_rate=1.0,
    ))
    vb = decompose(make_profile(total_voters=100000, focus_vote_share=50.0, anti_incumbency=100.0), weights)

    assert vb.committed == 25000
    assert vb.swing == 50000
    assert vb.convertible == 25000
    assert vb.committed + vb.swing + vb.convertible == vb.total_voters


def test_weights_reject_pools_larger_than_electorate():
    with pytest.raises(ValidationError):
        DecompositionWeights(retention_rate=0.9, swing_pool_rate=0.2)


def test_decompose_is_idempotent():
    profile = make_profile()
    assert decompose(profile) == decompose(profile)
