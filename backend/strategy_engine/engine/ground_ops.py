"""
Ground-Operations Planner - sizes booths, workers, budget, materials and events.

Booth weakness is never drawn at random. With historical booth-level shares a
booth is weak when it trails the constituency share; without them a fixed
fraction of booths is flagged, spread evenly over the booth sequence.
"""
import math
from typing import List, Tuple

from ..models import (
    BoothPlan, BudgetPlan, ConstituencyProfile, ConstituencyStatus, EventsPlan,
    GroundOperationsPlan, MaterialsPlan, WorkerAllocation,
)
from .weights import DEFAULT_WEIGHTS, GroundWeights, StrategyWeights

WEAK_BOOTH_ACTIONS = [
    "Appoint booth president urgently",
    "Identify 10 booth volunteers",
    "Create WhatsApp group",
    "Door-to-door in weak pockets",
]
STRONG_BOOTH_ACTIONS = [
    "Maintain booth strength",
    "Expand volunteer base to 20",
    "Monthly booth meetings",
    "Voter list update",
]

# Monday first, matching date.weekday()
WEEKLY_TASKS: List[Tuple[str, List[str]]] = [
    ("Survey day", [
        "Conduct door-to-door survey in 50 households",
        "Update voter sentiment tracker app",
        "Identify 10 new swing voters",
    ]),
    ("WhatsApp day", [
        "Share 3 WhatsApp messages in all groups",
        "Create new WhatsApp group with 20 contacts",
        "Report viral content metrics",
    ]),
    ("Meeting day", [
        "Organize mohalla meeting (minimum 30 people)",
        "Booth committee review meeting",
        "Women wing coordination meeting",
    ]),
    ("Outreach day", [
        "Visit 5 community leaders",
        "Temple/mosque/church visit with team",
        "Market campaign for 2 hours",
    ]),
    ("Youth day", [
        "College campus interaction",
        "Social media content creation",
        "Youth voter registration drive",
    ]),
    ("Mass contact", [
        "Area sabha (minimum 100 people)",
        "Pamphlet distribution (500 copies)",
        "Beneficiary meeting organization",
    ]),
    ("Review and planning", [
        "Weekly progress review meeting",
        "Next week planning session",
        "Report submission to district team",
    ]),
]


def plan_ground_operations(
    profile: ConstituencyProfile,
    status: ConstituencyStatus,
    weights: StrategyWeights = DEFAULT_WEIGHTS,
) -> GroundOperationsPlan:
    w = weights.ground
    total = profile.total_voters
    booth_count = math.ceil(total / w.voters_per_booth)
    avg_voters = total // booth_count
    multiplier = w.multiplier(status)

    booths, classification = _plan_booths(profile, booth_count, avg_voters, w)

    return GroundOperationsPlan(
        booth_count=booth_count,
        avg_voters_per_booth=avg_voters,
        weak_booths=sum(1 for b in booths if b.weak),
        booth_classification=classification,
        booths=booths,
        workers=_allocate_workers(booth_count, multiplier, w),
        budget=_plan_budget(total, status, multiplier, w),
        materials=MaterialsPlan(
            posters=math.ceil(total / w.voters_per_poster),
            pamphlets=math.ceil(total / w.voters_per_pamphlet),
            digital_content=w.digital_content_pieces,
            vehicles=math.ceil(total / w.voters_per_vehicle),
        ),
        events=EventsPlan(
            rallies=w.rallies.get(status, w.default_rallies),
            small_meetings=math.ceil(total / w.voters_per_small_meeting),
            door_to_door=math.ceil(total / w.voters_per_door_to_door),
        ),
    )


def _proxy_weak_flags(booth_count: int, fraction: float) -> List[bool]:
    """Flag round(n * fraction) booths, evenly spaced along the sequence."""
    weak = min(booth_count, int(math.floor(booth_count * fraction + 0.5)))
    return [
        (i + 1) * weak // booth_count > i * weak // booth_count
        for i in range(booth_count)
    ]


def _plan_booths(
    profile: ConstituencyProfile, booth_count: int, avg_voters: int, w: GroundWeights
) -> Tuple[List[BoothPlan], str]:
    share = profile.standing.focus_vote_share
    history = profile.booth_history
    target = math.floor(avg_voters * w.booth_target_share)

    booths = []
    if history:
        classification = "historical"
        for i in range(booth_count):
            booth_share = history[i] if i < len(history) else share
            weak = booth_share < share * w.weak_booth_ratio
            booths.append(_booth(profile.name, i + 1, avg_voters, math.floor(avg_voters * booth_share / 100), target, weak))
    else:
        classification = "proxy"
        for i, weak in enumerate(_proxy_weak_flags(booth_count, w.weak_booth_fraction)):
            factor = w.weak_vote_factor if weak else w.strong_vote_factor
            current = math.floor(avg_voters * share / 100 * factor)
            booths.append(_booth(profile.name, i + 1, avg_voters, current, target, weak))
    return booths, classification


def _booth(name: str, number: int, voters: int, current: int, target: int, weak: bool) -> BoothPlan:
    return BoothPlan(
        booth_number=f"{name}-{number}",
        voter_count=voters,
        current_votes=current,
        target_votes=target,
        weak=weak,
        has_agent=not weak,
        action_items=list(WEAK_BOOTH_ACTIONS if weak else STRONG_BOOTH_ACTIONS),
    )


def _allocate_workers(booth_count: int, multiplier: float, w: GroundWeights) -> WorkerAllocation:
    total_needed = math.ceil(booth_count * w.workers_per_booth * multiplier)
    current = math.floor(total_needed * w.current_strength_rate)
    per_booth = {k: math.ceil(booth_count * v * multiplier) for k, v in w.deployment_per_booth.items()}
    return WorkerAllocation(
        total_needed=total_needed,
        current_strength=current,
        gap=total_needed - current,
        full_timers=per_booth.get("full_timers", 0),
        volunteers=per_booth.get("volunteers", 0),
        youth_wing=per_booth.get("youth_wing", 0),
        women_wing=per_booth.get("women_wing", 0),
        training_needs=[
            f"Booth management training for {total_needed} workers",
            "Social media training for youth wing",
            "Voter outreach training for women wing",
            "Election law compliance for all workers",
        ],
    )


def _plan_budget(total: int, status: ConstituencyStatus, multiplier: float, w: GroundWeights) -> BudgetPlan:
    rate_min = w.rate_minimum[status] * multiplier
    rate_opt = w.rate_optimal[status] * multiplier
    optimal = math.floor(total * rate_opt)

    amounts = {k: optimal * pct // 100 for k, pct in w.budget_allocation.items()}
    # Rounding remainder goes to the last category so amounts add up to the optimal budget.
    last = list(amounts)[-1]
    amounts[last] += optimal - sum(amounts.values())

    return BudgetPlan(
        minimum=math.floor(total * rate_min),
        optimal=optimal,
        rate_minimum=rate_min,
        rate_optimal=rate_opt,
        allocation_percent=dict(w.budget_allocation),
        allocation_amounts=amounts,
    )


def daily_tasks(weekday: int) -> List[str]:
    """Ground-worker tasks for a weekday (0 = Monday, as date.weekday())."""
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be 0-6, got {weekday}")
    return list(WEEKLY_TASKS[weekday][1])


def weekday_theme(weekday: int) -> str:
    if not 0 <= weekday <= 6:
        raise ValueError(f"weekday must be 0-6, got {weekday}")
    return WEEKLY_TASKS[weekday][0]
