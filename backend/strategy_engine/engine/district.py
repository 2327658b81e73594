"""
District roll-up - ranks a district's strategies and totals their resources.
"""
from typing import Iterable, List

from ..models import ConstituencyStatus, DistrictSummary, KPI, RankedConstituency, WinningStrategy
from .scorer import priority_sort_key

VOTER_CONTACTS_PER_SEAT = 50000
SOCIAL_REACH_PER_SEAT = 100000
GRIEVANCES_PER_SEAT = 500
SENTIMENT_TARGET = 75


def rank_constituencies(strategies: Iterable[WinningStrategy]) -> List[RankedConstituency]:
    """1-based ranks by priority score, ties broken by constituency id."""
    ordered = sorted(strategies, key=priority_sort_key)
    return [
        RankedConstituency(
            rank=i,
            constituency_id=s.constituency.constituency_id,
            name=s.constituency.name,
            status=s.status,
            priority_score=s.priority_score,
            win_probability=s.win_probability,
        )
        for i, s in enumerate(ordered, start=1)
    ]


def summarize_district(district: str, strategies: List[WinningStrategy]) -> DistrictSummary:
    counts = {status: 0 for status in ConstituencyStatus}
    for s in strategies:
        counts[s.status] += 1
    contestable = counts[ConstituencyStatus.WINNABLE] + counts[ConstituencyStatus.BATTLEGROUND]

    workers_needed = sum(s.ground_plan.workers.total_needed for s in strategies)
    kpis = [
        KPI(metric="Booth Coverage %", current=0, target=100),
        KPI(metric="Voter Contacts", current=0, target=contestable * VOTER_CONTACTS_PER_SEAT),
        KPI(metric="WhatsApp Groups", current=0,
            target=sum(s.messaging.whatsapp.total_groups for s in strategies)),
        KPI(metric="Active Volunteers",
            current=sum(s.ground_plan.workers.current_strength for s in strategies),
            target=workers_needed),
        KPI(metric="Public Meetings", current=0,
            target=sum(s.ground_plan.events.small_meetings for s in strategies)),
        KPI(metric="Social Media Reach", current=0, target=contestable * SOCIAL_REACH_PER_SEAT),
        KPI(metric="Grievances Resolved", current=0, target=contestable * GRIEVANCES_PER_SEAT),
        KPI(metric="Positive Sentiment %", current=0, target=SENTIMENT_TARGET),
    ]

    return DistrictSummary(
        district=district,
        total_seats=len(strategies),
        held=counts[ConstituencyStatus.HELD],
        winnable=counts[ConstituencyStatus.WINNABLE],
        battleground=counts[ConstituencyStatus.BATTLEGROUND],
        difficult=counts[ConstituencyStatus.DIFFICULT],
        target_seats=counts[ConstituencyStatus.HELD] + contestable,
        total_optimal_budget=sum(s.ground_plan.budget.optimal for s in strategies),
        total_workers_needed=workers_needed,
        ranking=rank_constituencies(strategies),
        kpis=kpis,
    )
