"""
Named weights and constants for the strategy pipeline.

Every ratio, threshold and bonus the engine uses lives here so the numbers
can be tested and tuned without touching control flow. A JSON file with the
same shape (partial sections allowed) may override the defaults.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models import ConstituencyStatus, ImpactTier


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


def _require_keys(name: str, mapping: Dict, keys) -> None:
    missing = [k.value for k in keys if k not in mapping]
    if missing:
        raise ValueError(f"{name} is missing entries for {missing}")


class DecompositionWeights(_Section):
    retention_rate: float = Field(0.75, ge=0, le=1)
    swing_pool_rate: float = Field(0.15, ge=0, le=1)
    opposition_core_rate: float = Field(0.30, ge=0, le=1)

    @model_validator(mode="after")
    def _pools_fit_electorate(self) -> "DecompositionWeights":
        if self.retention_rate + self.swing_pool_rate > 1:
            raise ValueError("retention_rate + swing_pool_rate must not exceed 1")
        return self


class SegmentWeights(_Section):
    youth_threshold: float = 20.0
    sc_st_threshold: float = 15.0
    urban_middle_class_rate: float = 0.35
    progressive_minority_rate: float = 0.15


class ScoringWeights(_Section):
    status_base: Dict[ConstituencyStatus, float] = Field(default_factory=lambda: {
        ConstituencyStatus.WINNABLE: 100,
        ConstituencyStatus.BATTLEGROUND: 80,
        ConstituencyStatus.HELD: 60,
        ConstituencyStatus.DIFFICULT: 20,
    })
    swing_penalty: float = 2.0
    anti_incumbency_weight: float = 0.5
    policy_bonus: Dict[ImpactTier, float] = Field(default_factory=lambda: {
        ImpactTier.HIGH: 20,
        ImpactTier.MEDIUM: 10,
        ImpactTier.LOW: 0,
    })
    # incumbent name -> bonus
    notable_incumbents: Dict[str, float] = Field(default_factory=lambda: {"Mamata Banerjee": 50})
    capital_district: str = "Kolkata"
    capital_bonus: float = 10.0

    # Win probability
    majority_share: float = 50.0
    held_base: float = 75.0
    held_span: float = 20.0
    held_share_floor: float = 30.0
    held_share_range: float = 30.0
    # (swing needed, probability) knots; linear in between, clamped after the last
    swing_curve: List[Tuple[float, float]] = Field(default_factory=lambda: [
        (0.0, 75.0), (8.0, 50.0), (15.0, 30.0), (30.0, 15.0),
    ])
    anti_incumbency_boost_threshold: float = 60.0
    anti_incumbency_boost: float = 5.0
    policy_probability_boost: Dict[ImpactTier, float] = Field(default_factory=lambda: {
        ImpactTier.HIGH: 8,
        ImpactTier.MEDIUM: 4,
        ImpactTier.LOW: 0,
    })
    max_probability: float = 95.0

    # Status thresholds (strict ">")
    winnable_threshold: float = 65.0
    battleground_threshold: float = 35.0

    @model_validator(mode="after")
    def _check_curve(self) -> "ScoringWeights":
        xs = [x for x, _ in self.swing_curve]
        ys = [y for _, y in self.swing_curve]
        if len(xs) < 2 or xs != sorted(xs) or ys != sorted(ys, reverse=True):
            raise ValueError("swing_curve must have increasing swing and non-increasing probability")
        if self.battleground_threshold >= self.winnable_threshold:
            raise ValueError("battleground_threshold must be below winnable_threshold")
        _require_keys("status_base", self.status_base, ConstituencyStatus)
        _require_keys("policy_bonus", self.policy_bonus, ImpactTier)
        _require_keys("policy_probability_boost", self.policy_probability_boost, ImpactTier)
        return self


class GroundWeights(_Section):
    voters_per_booth: int = 1000
    workers_per_booth: int = 5
    priority_multiplier: Dict[ConstituencyStatus, float] = Field(default_factory=lambda: {
        ConstituencyStatus.BATTLEGROUND: 1.5,
    })
    current_strength_rate: float = 0.6
    deployment_per_booth: Dict[str, int] = Field(default_factory=lambda: {
        "full_timers": 1,
        "volunteers": 2,
        "youth_wing": 1,
        "women_wing": 1,
    })

    # Booth classification
    weak_booth_fraction: float = Field(0.4, ge=0, le=1)
    weak_booth_ratio: float = 0.9
    weak_vote_factor: float = 0.7
    strong_vote_factor: float = 1.1
    booth_target_share: float = 0.52

    # Budget (rupees per voter)
    rate_minimum: Dict[ConstituencyStatus, float] = Field(default_factory=lambda: {
        ConstituencyStatus.HELD: 15,
        ConstituencyStatus.WINNABLE: 15,
        ConstituencyStatus.BATTLEGROUND: 15,
        ConstituencyStatus.DIFFICULT: 10,
    })
    rate_optimal: Dict[ConstituencyStatus, float] = Field(default_factory=lambda: {
        ConstituencyStatus.HELD: 20,
        ConstituencyStatus.WINNABLE: 25,
        ConstituencyStatus.BATTLEGROUND: 25,
        ConstituencyStatus.DIFFICULT: 15,
    })
    budget_allocation: Dict[str, int] = Field(default_factory=lambda: {
        "digital": 20,
        "ground": 30,
        "events": 25,
        "materials": 15,
        "personnel": 10,
    })

    # Materials and events
    voters_per_poster: int = 50
    voters_per_pamphlet: int = 5
    digital_content_pieces: int = 500
    voters_per_vehicle: int = 10000
    rallies: Dict[ConstituencyStatus, int] = Field(default_factory=lambda: {
        ConstituencyStatus.BATTLEGROUND: 3,
    })
    default_rallies: int = 1
    voters_per_small_meeting: int = 2000
    voters_per_door_to_door: int = 100

    @model_validator(mode="after")
    def _allocation_is_complete(self) -> "GroundWeights":
        total = sum(self.budget_allocation.values())
        if total != 100:
            raise ValueError(f"budget_allocation must sum to 100, got {total}")
        _require_keys("rate_minimum", self.rate_minimum, ConstituencyStatus)
        _require_keys("rate_optimal", self.rate_optimal, ConstituencyStatus)
        return self

    def multiplier(self, status: ConstituencyStatus) -> float:
        return self.priority_multiplier.get(status, 1.0)


class FormulaWeights(_Section):
    expected_turnout: float = 0.82
    winning_share: float = 0.40
    swing_capture: float = 0.3
    convertible_capture: float = 0.5
    young_voter_rate: float = 0.22
    matua_current_rate: float = 0.40
    matua_target_rate: float = 0.75
    youth_current_rate: float = 0.25
    youth_target_rate: float = 0.55
    confidence_reachable: int = 75
    confidence_unreachable: int = 45


class MessagingWeights(_Section):
    change_threshold: float = 60.0
    whatsapp_group_size: int = 250
    whatsapp_messages_per_day: int = 3
    voters_per_coordinator: int = 5000


class RiskWeights(_Section):
    violence_prone_districts: List[str] = Field(default_factory=lambda: ["Birbhum", "Cooch Behar"])
    minority_consolidation_threshold: float = 30.0
    corruption_threshold: float = 60.0
    local_anger_threshold: float = 55.0


class GlobalDefaults(_Section):
    """Last fallback tier of the resolver."""
    region: str = "Unassigned"
    district: str = "Unassigned"
    total_voters: int = 190000
    # larger electorates are rejected as implausible
    max_total_voters: int = Field(1_000_000, gt=0)
    focus_position: int = 2
    focus_vote_share: float = 35.0
    margin_votes: int = 16000
    anti_incumbency: float = 57.0
    welfare_dependency: float = 35.0
    unemployment: float = 35.0
    corruption_perception: float = 65.0
    religion: Dict[str, float] = Field(default_factory=lambda: {"hindu": 70.0, "muslim": 27.0, "other": 3.0})
    caste: Dict[str, float] = Field(default_factory=lambda: {"general": 48.0, "obc": 30.0, "sc_st": 22.0})
    age: Dict[str, float] = Field(default_factory=lambda: {"youth": 37.0, "middle": 41.0, "senior": 22.0})
    gender: Dict[str, float] = Field(default_factory=lambda: {"female": 48.0, "male": 52.0})


class StrategyWeights(_Section):
    decomposition: DecompositionWeights = Field(default_factory=DecompositionWeights)
    segments: SegmentWeights = Field(default_factory=SegmentWeights)
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)
    ground: GroundWeights = Field(default_factory=GroundWeights)
    formula: FormulaWeights = Field(default_factory=FormulaWeights)
    messaging: MessagingWeights = Field(default_factory=MessagingWeights)
    risks: RiskWeights = Field(default_factory=RiskWeights)
    defaults: GlobalDefaults = Field(default_factory=GlobalDefaults)


DEFAULT_WEIGHTS = StrategyWeights()


def load_weights(path: Optional[str | Path] = None) -> StrategyWeights:
    """Load weights from a JSON file, or the defaults when no path is given."""
    if not path:
        return DEFAULT_WEIGHTS
    with Path(path).open("r", encoding="utf-8") as f:
        payload = json.load(f)
    return StrategyWeights.model_validate(payload)
