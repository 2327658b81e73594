"""
Pydantic models for the Constituency Strategy Engine.
Defines the source records consumed by the resolver, the immutable profile
handed through the pipeline, and the WinningStrategy snapshot it emits.
"""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import ClassVar, Dict, List, Literal, Optional, Tuple
from enum import Enum


# ============= Enums =============

class AreaType(str, Enum):
    URBAN = "urban"
    SEMI_URBAN = "semi-urban"
    RURAL = "rural"


class ImpactTier(str, Enum):
    """Policy-impact tier (CAA-style national policy salience)."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Provenance(str, Enum):
    """Which fallback tier filled a profile field."""
    RECORD = "record"
    REGIONAL = "regional"
    DEFAULT = "default"


class SentimentTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class ConstituencyStatus(str, Enum):
    HELD = "HELD"
    WINNABLE = "WINNABLE"
    BATTLEGROUND = "BATTLEGROUND"
    DIFFICULT = "DIFFICULT"


class NarrativeTheme(str, Enum):
    CHANGE = "change"
    DEVELOPMENT_HERITAGE = "development_heritage"
    DEVELOPMENT = "development"


Likelihood = Literal["high", "medium", "low"]
Severity = Literal["severe", "moderate", "minor"]


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ============= Source Records (resolver input) =============

class ElectionCycle(_Frozen):
    """One historical election result for the constituency."""
    year: int
    winner_party: str
    focus_vote_share: Optional[float] = None
    winner_vote_share: Optional[float] = None
    margin_votes: Optional[int] = None


class SentimentSignals(_Frozen):
    """Optional news/social-derived signals. Any field may be absent."""
    overall: Optional[float] = None
    focus_party: Optional[float] = None
    anti_incumbency: Optional[float] = None
    trend: Optional[SentimentTrend] = None


class SourceRecord(BaseModel):
    """
    Partial constituency record as stored upstream.

    Only the identifier is required; every other field may be missing and is
    filled by the resolver's fallback tiers.
    """
    model_config = ConfigDict(extra="ignore")

    constituency_id: str
    name: Optional[str] = None
    district: Optional[str] = None
    region: Optional[str] = None
    assembly_number: Optional[int] = None
    total_voters: Optional[int] = None
    area_type: Optional[AreaType] = None

    # Prior election standing
    winning_party: Optional[str] = None
    incumbent_name: Optional[str] = None
    margin_votes: Optional[int] = None
    focus_position: Optional[int] = None
    focus_vote_share: Optional[float] = None
    winner_vote_share: Optional[float] = None
    runner_up_vote_share: Optional[float] = None
    focus_candidate: Optional[str] = None
    history: List[ElectionCycle] = Field(default_factory=list)

    # Demographic percentage groups (category -> percent)
    religion: Dict[str, float] = Field(default_factory=dict)
    caste: Dict[str, float] = Field(default_factory=dict)
    age: Dict[str, float] = Field(default_factory=dict)
    gender: Dict[str, float] = Field(default_factory=dict)
    matua_population: Optional[int] = None
    tea_garden_workers: Optional[int] = None

    # Swing factors
    anti_incumbency: Optional[float] = None
    policy_impact: Optional[ImpactTier] = None
    welfare_dependency: Optional[float] = None
    unemployment: Optional[float] = None
    corruption_perception: Optional[float] = None

    sentiment: Optional[SentimentSignals] = None
    key_issues: List[str] = Field(default_factory=list)
    booth_history: List[float] = Field(default_factory=list)


# ============= Constituency Profile =============

class PriorStanding(_Frozen):
    winning_party: str
    incumbent_name: Optional[str] = None
    margin_votes: int = 0
    focus_position: int = 2
    focus_vote_share: float = 0.0
    winner_vote_share: Optional[float] = None
    runner_up_vote_share: Optional[float] = None
    focus_candidate: Optional[str] = None


class Demographics(_Frozen):
    religion: Dict[str, float] = Field(default_factory=dict)
    caste: Dict[str, float] = Field(default_factory=dict)
    age: Dict[str, float] = Field(default_factory=dict)
    gender: Dict[str, float] = Field(default_factory=dict)
    matua_population: Optional[int] = None
    tea_garden_workers: Optional[int] = None

    GROUPS: ClassVar[Tuple[str, ...]] = ("religion", "caste", "age", "gender")

    def share(self, group: str, category: str) -> Optional[float]:
        """Percent for a category, or None when the group has no such entry."""
        return getattr(self, group).get(category)

    @property
    def is_empty(self) -> bool:
        return (
            not any(getattr(self, g) for g in self.GROUPS)
            and not self.matua_population
            and not self.tea_garden_workers
        )


class SwingFactors(_Frozen):
    anti_incumbency: float
    policy_impact: ImpactTier = ImpactTier.LOW
    welfare_dependency: float = 0.0
    unemployment: float = 0.0
    corruption_perception: float = 0.0


class ConstituencyProfile(_Frozen):
    """Fully populated, immutable view of one constituency."""
    constituency_id: str
    name: str
    district: str
    region: str
    assembly_number: Optional[int] = None
    total_voters: int
    area_type: AreaType
    standing: PriorStanding
    history: List[ElectionCycle] = Field(default_factory=list)
    demographics: Demographics = Field(default_factory=Demographics)
    swing_factors: SwingFactors
    sentiment: Optional[SentimentSignals] = None
    key_issues: List[str] = Field(default_factory=list)
    booth_history: List[float] = Field(default_factory=list)
    provenance: Dict[str, Provenance] = Field(default_factory=dict)

    @property
    def is_estimated(self) -> bool:
        return any(p is not Provenance.RECORD for p in self.provenance.values())


# ============= Engine Outputs =============

class ConstituencyRef(_Frozen):
    constituency_id: str
    name: str
    district: str
    region: str


class VoteBankBreakdown(_Frozen):
    """Disjoint voter pools of interest; not an exhaustive partition."""
    total_voters: int
    committed: int
    swing: int
    convertible: int
    opposition_core: int


class VoterSegment(_Frozen):
    name: str
    size: int
    current_alignment: str
    conversion_likelihood: float
    key_issues: List[str] = Field(default_factory=list)
    approach_strategy: str = ""

    @property
    def expected_conversions(self) -> int:
        return int(self.size * self.conversion_likelihood // 100)


class BoothPlan(_Frozen):
    booth_number: str
    voter_count: int
    current_votes: int
    target_votes: int
    weak: bool
    has_agent: bool
    action_items: List[str] = Field(default_factory=list)


class WorkerAllocation(_Frozen):
    total_needed: int
    current_strength: int
    gap: int
    full_timers: int
    volunteers: int
    youth_wing: int
    women_wing: int
    training_needs: List[str] = Field(default_factory=list)


class BudgetPlan(_Frozen):
    minimum: int
    optimal: int
    rate_minimum: float
    rate_optimal: float
    allocation_percent: Dict[str, int]
    allocation_amounts: Dict[str, int]


class MaterialsPlan(_Frozen):
    posters: int
    pamphlets: int
    digital_content: int
    vehicles: int


class EventsPlan(_Frozen):
    rallies: int
    small_meetings: int
    door_to_door: int


class GroundOperationsPlan(_Frozen):
    booth_count: int
    avg_voters_per_booth: int
    weak_booths: int
    booth_classification: Literal["historical", "proxy"]
    booths: List[BoothPlan]
    workers: WorkerAllocation
    budget: BudgetPlan
    materials: MaterialsPlan
    events: EventsPlan


class CampaignPhase(_Frozen):
    phase: str
    timeline: str
    objectives: List[str]
    activities: List[str]
    success_metrics: List[str]


class ConversionPath(_Frozen):
    voter_segment: str
    current_votes: int
    target_votes: int
    strategy: str
    timeline: str
    confidence: int


class WinningFormula(_Frozen):
    minimum_votes_needed: int
    current_expected_votes: int
    gap_to_victory: int
    conversion_paths: List[ConversionPath]
    confidence: int


class OppositionWeakness(_Frozen):
    incumbent_vulnerabilities: List[str]
    left_erosion: List[str]
    congress_irrelevance: List[str]
    exploitable_splits: List[str]


class WhatsAppPlan(_Frozen):
    total_groups: int
    messages_per_day: int
    content_types: List[str]
    viral_topics: List[str]
    coordinators: int


class MessagingPlan(_Frozen):
    theme: NarrativeTheme
    core_narrative: str
    demographic_messages: Dict[str, str]
    whatsapp: WhatsAppPlan
    last_mile_push: List[str]


class Risk(_Frozen):
    threat: str
    probability: Likelihood
    impact: Severity
    mitigation: str


class RiskRegister(_Frozen):
    threats: List[Risk]
    contingency_plans: Dict[str, str]
    early_warning_signals: List[str]


class WinningStrategy(_Frozen):
    """Terminal artifact of the pipeline; a read-only snapshot."""
    constituency: ConstituencyRef
    status: ConstituencyStatus
    priority_score: int
    win_probability: float
    swing_needed: float
    vote_bank: VoteBankBreakdown
    segments: List[VoterSegment]
    conversion_potential: int
    conversion_tactics: List[str]
    ground_plan: GroundOperationsPlan
    timeline: List[CampaignPhase]
    winning_formula: WinningFormula
    opposition: OppositionWeakness
    messaging: MessagingPlan
    risks: RiskRegister
    provenance: Dict[str, Provenance] = Field(default_factory=dict)


# ============= Collaborator / Roll-up Models =============

class Narrative(_Frozen):
    """Free-text recommendations produced from a WinningStrategy."""
    constituency_id: str
    text: str
    source: Literal["llm", "template"]
    model: Optional[str] = None


class RankedConstituency(_Frozen):
    rank: int
    constituency_id: str
    name: str
    status: ConstituencyStatus
    priority_score: int
    win_probability: float


class KPI(_Frozen):
    metric: str
    current: int
    target: int


class DistrictSummary(_Frozen):
    district: str
    total_seats: int
    held: int
    winnable: int
    battleground: int
    difficult: int
    target_seats: int
    total_optimal_budget: int
    total_workers_needed: int
    ranking: List[RankedConstituency]
    kpis: List[KPI]
