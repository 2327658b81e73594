"""
Priority & Win-Probability Scorer.

Turns a profile into the four numbers constituencies are triaged by:
swing needed, win probability, status and priority score.
"""
from decimal import ROUND_HALF_UP, Decimal
from typing import Tuple

from ..models import ConstituencyProfile, ConstituencyStatus, WinningStrategy
from .weights import DEFAULT_WEIGHTS, ScoringWeights, StrategyWeights


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round1(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def swing_needed(profile: ConstituencyProfile, weights: StrategyWeights = DEFAULT_WEIGHTS) -> float:
    """Vote-share points the focus party must gain to reach a majority; 0 if it holds the seat."""
    if profile.standing.focus_position == 1:
        return 0.0
    return _round1(max(0.0, weights.scoring.majority_share - profile.standing.focus_vote_share))


def _interpolate(curve, x: float) -> float:
    if x <= curve[0][0]:
        return curve[0][1]
    for (x0, y0), (x1, y1) in zip(curve, curve[1:]):
        if x <= x1:
            if x1 == x0:
                return y1
            return y0 + (y1 - y0) * (x - x0) / (x1 - x0)
    return curve[-1][1]


def _base_probability(profile: ConstituencyProfile, w: ScoringWeights) -> float:
    share = profile.standing.focus_vote_share
    if profile.standing.focus_position == 1:
        strength = _clamp((share - w.held_share_floor) / w.held_share_range, 0.0, 1.0)
        return w.held_base + w.held_span * strength
    gap = max(0.0, w.majority_share - share)
    return _interpolate(w.swing_curve, gap)


def win_probability(profile: ConstituencyProfile, weights: StrategyWeights = DEFAULT_WEIGHTS) -> float:
    """
    Estimated chance (percent) of the focus party winning.

    Non-decreasing in focus vote share with the other inputs fixed: the
    held-seat branch rises with share and the curve falls with swing needed.
    """
    w = weights.scoring
    probability = _base_probability(profile, w)

    factors = profile.swing_factors
    if factors.anti_incumbency > w.anti_incumbency_boost_threshold:
        probability += w.anti_incumbency_boost
    probability += w.policy_probability_boost.get(factors.policy_impact, 0.0)

    return _round1(_clamp(probability, 0.0, w.max_probability))


def derive_status(
    focus_position: int, probability: float, weights: StrategyWeights = DEFAULT_WEIGHTS
) -> ConstituencyStatus:
    """Thresholds are strict: exactly 65 is BATTLEGROUND, exactly 35 is DIFFICULT."""
    w = weights.scoring
    if focus_position == 1:
        return ConstituencyStatus.HELD
    if probability > w.winnable_threshold:
        return ConstituencyStatus.WINNABLE
    if probability > w.battleground_threshold:
        return ConstituencyStatus.BATTLEGROUND
    return ConstituencyStatus.DIFFICULT


def priority_score(
    profile: ConstituencyProfile,
    status: ConstituencyStatus,
    swing: float,
    weights: StrategyWeights = DEFAULT_WEIGHTS,
) -> int:
    """Campaign urgency; higher means act sooner."""
    w = weights.scoring
    score = w.status_base[status]
    score -= w.swing_penalty * swing
    score += w.anti_incumbency_weight * profile.swing_factors.anti_incumbency
    score += w.policy_bonus.get(profile.swing_factors.policy_impact, 0.0)

    incumbent = profile.standing.incumbent_name
    if incumbent:
        score += w.notable_incumbents.get(incumbent, 0.0)
    if profile.district == w.capital_district:
        score += w.capital_bonus

    return int(Decimal(str(score)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def priority_sort_key(strategy: WinningStrategy) -> Tuple[int, str]:
    """Sort key: highest score first, ties broken by constituency id."""
    return (-strategy.priority_score, strategy.constituency.constituency_id)
