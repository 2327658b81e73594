"""
Vote-Bank Decomposition - splits the electorate into the pools a campaign
plans around.

The pools are disjoint voter groups of interest, not an exhaustive
partition: the remainder is voters the campaign does not target.
"""
import math

from ..models import ConstituencyProfile, VoteBankBreakdown
from .weights import DEFAULT_WEIGHTS, StrategyWeights


def decompose(profile: ConstituencyProfile, weights: StrategyWeights = DEFAULT_WEIGHTS) -> VoteBankBreakdown:
    w = weights.decomposition
    total = profile.total_voters
    share = profile.standing.focus_vote_share

    committed = math.floor(total * share / 100 * w.retention_rate)
    swing = math.floor(total * w.swing_pool_rate)
    opposition_core = math.floor(total * min(w.opposition_core_rate, (100 - share) / 100))

    # Convertible voters come out of the opposition core, bounded by what is left.
    convertible = math.floor(profile.swing_factors.anti_incumbency * opposition_core / 100)
    convertible = max(0, min(convertible, total - committed - swing))

    return VoteBankBreakdown(
        total_voters=total,
        committed=committed,
        swing=swing,
        convertible=convertible,
        opposition_core=opposition_core,
    )
