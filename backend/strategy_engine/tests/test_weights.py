import json

import pytest
from pydantic import ValidationError

from strategy_engine.engine.weights import DEFAULT_WEIGHTS, GroundWeights, ScoringWeights, load_weights
from strategy_engine.models import ConstituencyStatus


def test_defaults_without_file():
    assert load_weights(None) is DEFAULT_WEIGHTS
    assert DEFAULT_WEIGHTS.decomposition.retention_rate == 0.75
    assert DEFAULT_WEIGHTS.ground.multiplier(ConstituencyStatus.BATTLEGROUND) == 1.5
    assert DEFAULT_WEIGHTS.ground.multiplier(ConstituencyStatus.HELD) == 1.0


def test_partial_override_file(tmp_path):
    path = tmp_path / "weights.json"
    path.write_text(json.dumps({
        "decomposition": {"retention_rate": 0.7},
        "scoring": {"status_base": {"WINNABLE": 120, "BATTLEGROUND": 90, "HELD": 50, "DIFFICULT": 10}},
    }), encoding="utf-8")

    weights = load_weights(path)

    assert weights.decomposition.retention_rate == 0.7
    assert weights.decomposition.swing_pool_rate == 0.15
    assert weights.scoring.status_base[ConstituencyStatus.WINNABLE] == 120
    assert weights.ground.voters_per_booth == 1000


def test_unknown_keys_are_rejected(tmp_path):
    path = tmp_path / "weights.json"
    path.write_text(json.dumps({"decomposition": {"retention": 0.7}}), encoding="utf-8")

    with pytest.raises(ValidationError):
        load_weights(path)


def test_budget_allocation_must_sum_to_100():
    with pytest.raises(ValidationError):
        GroundWeights(budget_allocation={"digital": 50, "ground": 30})


def test_swing_curve_must_decrease():
    with pytest.raises(ValidationError):
        ScoringWeights(swing_curve=[(0.0, 50.0), (10.0, 60.0)])


def test_weights_are_frozen():
    with pytest.raises(ValidationError):
        DEFAULT_WEIGHTS.decomposition.retention_rate = 0.5


def test_partial_status_map_is_rejected(tmp_path):
    path = tmp_path / "weights.json"
    path.write_text(json.dumps({"ground": {"rate_minimum": {"DIFFICULT": 8}}}), encoding="utf-8")

    with pytest.raises(ValidationError) as exc:
        load_weights(path)
    assert "rate_minimum" in str(exc.value)


def test_partial_impact_map_is_rejected():
    with pytest.raises(ValidationError):
        ScoringWeights(policy_bonus={"high": 30})


def test_complete_status_map_override_is_used(tmp_path):
    path = tmp_path / "weights.json"
    path.write_text(json.dumps({
        "ground": {"rate_minimum": {"HELD": 12, "WINNABLE": 12, "BATTLEGROUND": 12, "DIFFICULT": 8}},
    }), encoding="utf-8")

    weights = load_weights(path)
    assert weights.ground.rate_minimum[ConstituencyStatus.DIFFICULT] == 8
    assert weights.ground.rate_optimal[ConstituencyStatus.HELD] == 20
