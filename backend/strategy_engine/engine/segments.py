"""
Segment Identifier - finds the voter segments worth a dedicated conversion push.

Rules are evaluated in table order and each contributes zero or one segment,
so the output order is fixed for a given profile. Conversion likelihoods are
a heuristic lookup table, not a fitted model.
"""
import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..models import AreaType, ConstituencyProfile, VoterSegment
from .weights import DEFAULT_WEIGHTS, SegmentWeights, StrategyWeights

SizeFn = Callable[[ConstituencyProfile, SegmentWeights], Optional[int]]


@dataclass(frozen=True)
class SegmentRule:
    name: str
    size: SizeFn
    current_alignment: str
    conversion_likelihood: float
    key_issues: List[str] = field(default_factory=list)
    approach_strategy: str = ""
    tactics: List[str] = field(default_factory=list)


def _share_of_total(p: ConstituencyProfile, percent: float) -> int:
    return math.floor(p.total_voters * percent / 100)


def _matua(p: ConstituencyProfile, w: SegmentWeights) -> Optional[int]:
    count = p.demographics.matua_population
    return count if count and count > 0 else None


def _women(p: ConstituencyProfile, w: SegmentWeights) -> Optional[int]:
    share = p.demographics.share("gender", "female")
    return _share_of_total(p, share) if share is not None else None


def _youth(p: ConstituencyProfile, w: SegmentWeights) -> Optional[int]:
    share = p.demographics.share("age", "youth")
    return _share_of_total(p, share) if share is not None and share > w.youth_threshold else None


def _sc_st(p: ConstituencyProfile, w: SegmentWeights) -> Optional[int]:
    share = p.demographics.share("caste", "sc_st")
    return _share_of_total(p, share) if share is not None and share > w.sc_st_threshold else None


def _tea(p: ConstituencyProfile, w: SegmentWeights) -> Optional[int]:
    count = p.demographics.tea_garden_workers
    return count if count and count > 0 else None


def _urban_middle_class(p: ConstituencyProfile, w: SegmentWeights) -> Optional[int]:
    if p.area_type is not AreaType.URBAN:
        return None
    return math.floor(p.total_voters * w.urban_middle_class_rate)


def _progressive_minorities(p: ConstituencyProfile, w: SegmentWeights) -> Optional[int]:
    share = p.demographics.share("religion", "muslim")
    if not share or share <= 0:
        return None
    minority = _share_of_total(p, share)
    return math.floor(minority * w.progressive_minority_rate) if minority > 0 else None


SEGMENT_RULES: List[SegmentRule] = [
    SegmentRule(
        name="Matua Community",
        size=_matua,
        current_alignment="Split between ruling party and focus party",
        conversion_likelihood=75,
        key_issues=["CAA implementation", "Citizenship security", "Community recognition"],
        approach_strategy="CAA benefit camps + Matua leader engagement",
        tactics=["CAA certificate distribution drives", "Matua Thakur temple visits by senior leaders"],
    ),
    SegmentRule(
        name="Women Voters",
        size=_women,
        current_alignment="Ruling-party leaning",
        conversion_likelihood=45,
        key_issues=["Safety", "Employment", "Education for children"],
        approach_strategy="Women empowerment schemes + Mahila Morcha door-to-door",
        tactics=["Mahila Sammelans with direct benefit announcements", "Pink booth strategy with women volunteers"],
    ),
    SegmentRule(
        name="Youth (18-35)",
        size=_youth,
        current_alignment="Undecided",
        conversion_likelihood=60,
        key_issues=["Jobs", "Education", "Startups", "Digital economy"],
        approach_strategy="Job promise + Skill development + Social media blitz",
        tactics=[
            "Campus connect programs",
            "Startup conclave and job fairs",
            "Instagram and YouTube influencer campaigns",
        ],
    ),
    SegmentRule(
        name="SC/ST Communities",
        size=_sc_st,
        current_alignment="Ruling-party dominated",
        conversion_likelihood=40,
        key_issues=["Reservation", "Land rights", "Social justice"],
        approach_strategy="Dalit outreach + Temple visits + Community leaders",
    ),
    SegmentRule(
        name="Tea Garden Workers",
        size=_tea,
        current_alignment="Focus-party leaning",
        conversion_likelihood=80,
        key_issues=["Minimum wage", "Healthcare", "Housing"],
        approach_strategy="Rs 350 minimum wage promise + Health camps",
        tactics=["Union leader co-option", "Direct wage credit promise launch"],
    ),
    SegmentRule(
        name="Urban Middle Class",
        size=_urban_middle_class,
        current_alignment="Anti-incumbent",
        conversion_likelihood=65,
        key_issues=["Corruption", "Infrastructure", "Law & order"],
        approach_strategy="Anti-corruption campaign + Development promises",
    ),
    SegmentRule(
        name="Progressive Minorities",
        size=_progressive_minorities,
        current_alignment="Locked with the ruling party",
        conversion_likelihood=20,
        key_issues=["Development", "Education", "Jobs"],
        approach_strategy="Pasmanda outreach + Development without appeasement",
    ),
]

_TACTICS: Dict[str, List[str]] = {rule.name: rule.tactics for rule in SEGMENT_RULES}


def identify_segments(
    profile: ConstituencyProfile, weights: StrategyWeights = DEFAULT_WEIGHTS
) -> List[VoterSegment]:
    """Apply SEGMENT_RULES in order; an empty profile yields an empty list."""
    segments = []
    for rule in SEGMENT_RULES:
        size = rule.size(profile, weights.segments)
        if size is None:
            continue
        segments.append(VoterSegment(
            name=rule.name,
            size=size,
            current_alignment=rule.current_alignment,
            conversion_likelihood=rule.conversion_likelihood,
            key_issues=list(rule.key_issues),
            approach_strategy=rule.approach_strategy,
        ))
    return segments


def rank_segments(segments: List[VoterSegment]) -> List[VoterSegment]:
    """Largest expected conversions first; ties keep rule order."""
    return sorted(segments, key=lambda s: s.expected_conversions, reverse=True)


def conversion_potential(segments: List[VoterSegment]) -> int:
    return sum(s.expected_conversions for s in segments)


def conversion_tactics(segments: List[VoterSegment]) -> List[str]:
    tactics: List[str] = []
    for segment in segments:
        tactics.extend(_TACTICS.get(segment.name, []))
    return tactics
