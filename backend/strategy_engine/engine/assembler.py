"""
Strategy Assembler - composes the stage outputs into a WinningStrategy.

Everything here is template rules over already-computed numbers; no I/O and
no state between calls.
"""
import math
from typing import Dict, List, Optional

from ..models import (
    AreaType, CampaignPhase, ConstituencyProfile, ConstituencyRef,
    ConstituencyStatus, ConversionPath, GroundOperationsPlan, MessagingPlan,
    NarrativeTheme, OppositionWeakness, Risk, RiskRegister, SentimentTrend,
    VoteBankBreakdown, VoterSegment, WhatsAppPlan, WinningFormula,
    WinningStrategy,
)
from .segments import conversion_potential, conversion_tactics
from .weights import DEFAULT_WEIGHTS, StrategyWeights

SEGMENT_MESSAGES: Dict[str, str] = {
    "Women Voters": "Safety, Dignity, Opportunity for every woman",
    "Youth (18-35)": "Jobs at home - Digital Bengal, Startup Bengal",
    "Matua Community": "Citizenship with dignity under CAA",
    "SC/ST Communities": "Reservation protected, land rights delivered",
    "Tea Garden Workers": "Rs 350 daily wage and free housing",
    "Urban Middle Class": "Corruption-free governance, better infrastructure",
    "Progressive Minorities": "Development for all, appeasement for none",
}
FARMER_MESSAGE = "MSP guarantee, debt relief, irrigation for every field"


def assemble(
    profile: ConstituencyProfile,
    vote_bank: VoteBankBreakdown,
    segments: List[VoterSegment],
    swing_needed: float,
    win_probability: float,
    status: ConstituencyStatus,
    priority_score: int,
    ground_plan: GroundOperationsPlan,
    weights: StrategyWeights = DEFAULT_WEIGHTS,
    focus_party: str = "BJP",
    ruling_party: str = "AITC",
) -> WinningStrategy:
    """Build the immutable strategy record from the stage outputs."""
    return WinningStrategy(
        constituency=ConstituencyRef(
            constituency_id=profile.constituency_id,
            name=profile.name,
            district=profile.district,
            region=profile.region,
        ),
        status=status,
        priority_score=priority_score,
        win_probability=win_probability,
        swing_needed=swing_needed,
        vote_bank=vote_bank,
        segments=list(segments),
        conversion_potential=conversion_potential(segments),
        conversion_tactics=conversion_tactics(segments),
        ground_plan=ground_plan,
        timeline=campaign_phases(ground_plan, focus_party),
        winning_formula=winning_formula(profile, vote_bank, segments, weights),
        opposition=opposition_weakness(profile, weights, focus_party, ruling_party),
        messaging=messaging_plan(profile, vote_bank, segments, weights, focus_party, ruling_party),
        risks=risk_register(profile, weights, focus_party, ruling_party),
        provenance=dict(profile.provenance),
    )


# ---------- timeline ----------

def campaign_phases(ground_plan: GroundOperationsPlan, focus_party: str) -> List[CampaignPhase]:
    workers = ground_plan.workers.total_needed
    return [
        CampaignPhase(
            phase="Foundation Building",
            timeline="Next 3 months",
            objectives=["Complete booth committees", "Voter list verification", "Issue identification"],
            activities=["Booth president appointments", "Volunteer recruitment", "Survey conduct"],
            success_metrics=[
                f"100% coverage of {ground_plan.booth_count} booths",
                f"{workers} workers enrolled",
                "Issues documented",
            ],
        ),
        CampaignPhase(
            phase="Momentum Building",
            timeline="3-6 months",
            objectives=["Anti-incumbency crystallization", f"{focus_party} narrative establishment", "Coalition building"],
            activities=["Issue-based campaigns", "Community outreach", "Social media blitz"],
            success_metrics=[
                "30% sentiment shift",
                f"{ground_plan.events.door_to_door} door-to-door drives scheduled",
                "Viral content creation",
            ],
        ),
        CampaignPhase(
            phase="Intensive Campaign",
            timeline="6-9 months",
            objectives=["Vote conversion", "Opposition neutralization", "Base consolidation"],
            activities=["Door-to-door campaign", "Major rallies", "Beneficiary contact"],
            success_metrics=[
                "80% voter contact",
                f"{ground_plan.events.rallies} major rallies done",
                "Swing voter identification",
            ],
        ),
        CampaignPhase(
            phase="Final Push",
            timeline="Last 3 months",
            objectives=["GOTV preparation", "Last mile conversion", "Booth management"],
            activities=["Voter slip distribution", "Transport arrangement", "Booth agent training"],
            success_metrics=[
                "100% slip distribution",
                f"Transport for {ground_plan.materials.vehicles} vehicles arranged",
                "All booths covered",
            ],
        ),
    ]


# ---------- winning formula ----------

def winning_formula(
    profile: ConstituencyProfile,
    vote_bank: VoteBankBreakdown,
    segments: List[VoterSegment],
    weights: StrategyWeights = DEFAULT_WEIGHTS,
) -> WinningFormula:
    w = weights.formula
    total = profile.total_voters
    # rates are inexact in binary; strip the noise before flooring
    needed = math.floor(round(total * w.expected_turnout * w.winning_share, 6))
    expected = (
        vote_bank.committed
        + math.floor(vote_bank.swing * w.swing_capture)
        + math.floor(vote_bank.convertible * w.convertible_capture)
    )
    gap = needed - expected

    paths: List[ConversionPath] = []
    matua = next((s for s in segments if s.name == "Matua Community"), None)
    if matua is not None:
        paths.append(ConversionPath(
            voter_segment="Matua Community",
            current_votes=math.floor(matua.size * w.matua_current_rate),
            target_votes=math.floor(matua.size * w.matua_target_rate),
            strategy="CAA benefit distribution + Community leader engagement",
            timeline="3 months",
            confidence=80,
        ))
    paths.append(ConversionPath(
        voter_segment="Dissatisfied incumbent voters",
        current_votes=0,
        target_votes=vote_bank.convertible,
        strategy="Anti-corruption campaign + Local issue resolution",
        timeline="6 months",
        confidence=65,
    ))
    young = math.floor(total * w.young_voter_rate)
    paths.append(ConversionPath(
        voter_segment="Youth first-time voters",
        current_votes=math.floor(young * w.youth_current_rate),
        target_votes=math.floor(young * w.youth_target_rate),
        strategy="Jobs promise + Social media engagement",
        timeline="9 months",
        confidence=70,
    ))

    reachable = sum(p.target_votes - p.current_votes for p in paths)
    return WinningFormula(
        minimum_votes_needed=needed,
        current_expected_votes=expected,
        gap_to_victory=gap,
        conversion_paths=paths,
        confidence=w.confidence_reachable if gap <= reachable else w.confidence_unreachable,
    )


# ---------- opposition ----------

def opposition_weakness(
    profile: ConstituencyProfile,
    weights: StrategyWeights = DEFAULT_WEIGHTS,
    focus_party: str = "BJP",
    ruling_party: str = "AITC",
) -> OppositionWeakness:
    w = weights.risks
    factors = profile.swing_factors

    vulnerabilities = []
    if factors.corruption_perception > w.corruption_threshold:
        vulnerabilities.append("Recruitment scam backlash among affected families")
    if factors.anti_incumbency > w.local_anger_threshold:
        mla = profile.standing.incumbent_name or "Sitting MLA"
        vulnerabilities.append(f"{mla} facing local anger")
    if profile.area_type is AreaType.URBAN:
        vulnerabilities.append("Urban civic failures - roads, water, garbage")
    vulnerabilities.append("Syndicate raj resentment among middle class")
    vulnerabilities.append(f"{ruling_party} welfare leakages resented by beneficiaries")

    splits = []
    muslim = profile.demographics.share("religion", "muslim")
    if muslim is not None and muslim > w.minority_consolidation_threshold:
        splits.append(f"ISF vs {ruling_party} split in minority votes")
    splits.append(f"{ruling_party} old guard vs new entrants conflict")
    splits.append(f"Local {ruling_party} faction fights to exploit")

    return OppositionWeakness(
        incumbent_vulnerabilities=vulnerabilities,
        left_erosion=[
            "Youth completely disconnected from Left ideology",
            "No organizational strength below district level",
            f"Vote transfer to {focus_party} in anti-incumbent areas",
        ],
        congress_irrelevance=[
            "No ground presence or workers",
            "Leadership vacuum at constituency level",
            "Can be ignored in campaign strategy",
        ],
        exploitable_splits=splits,
    )


# ---------- messaging ----------

def narrative_theme(profile: ConstituencyProfile, weights: StrategyWeights = DEFAULT_WEIGHTS) -> NarrativeTheme:
    if profile.swing_factors.anti_incumbency > weights.messaging.change_threshold:
        return NarrativeTheme.CHANGE
    if profile.area_type is AreaType.URBAN:
        return NarrativeTheme.DEVELOPMENT_HERITAGE
    return NarrativeTheme.DEVELOPMENT


def messaging_plan(
    profile: ConstituencyProfile,
    vote_bank: VoteBankBreakdown,
    segments: List[VoterSegment],
    weights: StrategyWeights = DEFAULT_WEIGHTS,
    focus_party: str = "BJP",
    ruling_party: str = "AITC",
) -> MessagingPlan:
    w = weights.messaging
    theme = narrative_theme(profile, weights)
    core = {
        NarrativeTheme.CHANGE: f"Time for change - freedom from {ruling_party} corruption and intimidation",
        NarrativeTheme.DEVELOPMENT_HERITAGE: f"Developed {profile.district}, prosperous Bengal - Development with Heritage",
        NarrativeTheme.DEVELOPMENT: "Sonar Bangla - Development for All",
    }[theme]

    messages = {s.name: SEGMENT_MESSAGES[s.name] for s in segments if s.name in SEGMENT_MESSAGES}
    if profile.area_type is AreaType.RURAL:
        messages["Farmers"] = FARMER_MESSAGE

    return MessagingPlan(
        theme=theme,
        core_narrative=core,
        demographic_messages=messages,
        whatsapp=WhatsAppPlan(
            total_groups=math.ceil(vote_bank.committed / w.whatsapp_group_size),
            messages_per_day=w.whatsapp_messages_per_day,
            content_types=["Morning motivation", "Issue expose", "Achievement highlight"],
            viral_topics=[
                f"{ruling_party} corruption videos",
                "Guarantee fulfillment stories",
                "Local problem solutions",
                f"{focus_party} achievement reels",
            ],
            coordinators=math.ceil(profile.total_voters / w.voters_per_coordinator),
        ),
        last_mile_push=[
            f"This time {focus_party} - vote for change",
            "Remember the recruitment scam - vote for change",
            f"Vote {focus_party} - Bengal on the road to progress",
            f"Every booth, every vote: {profile.name} decides",
        ],
    )


# ---------- risks ----------

def _eroding_since(profile: ConstituencyProfile) -> Optional[int]:
    """Year of the previous cycle when the focus share fell in the latest one."""
    cycles = [c for c in profile.history if c.focus_vote_share is not None]
    if len(cycles) < 2:
        return None
    latest, previous = cycles[0], cycles[1]
    return previous.year if latest.focus_vote_share < previous.focus_vote_share else None


def risk_register(
    profile: ConstituencyProfile,
    weights: StrategyWeights = DEFAULT_WEIGHTS,
    focus_party: str = "BJP",
    ruling_party: str = "AITC",
) -> RiskRegister:
    w = weights.risks
    threats: List[Risk] = []

    if profile.district in w.violence_prone_districts:
        threats.append(Risk(
            threat="Political violence and booth capture",
            probability="high",
            impact="severe",
            mitigation="Central force deployment request + Video documentation team",
        ))
    threats.append(Risk(
        threat=f"{ruling_party} cash and kind distribution before polls",
        probability="high",
        impact="moderate",
        mitigation="Counter with development promise + Report to EC",
    ))
    muslim = profile.demographics.share("religion", "muslim")
    if muslim is not None and muslim > w.minority_consolidation_threshold:
        threats.append(Risk(
            threat=f"Complete minority consolidation against {focus_party}",
            probability="high",
            impact="severe",
            mitigation="Hindu consolidation + Pasmanda outreach",
        ))
    threats.append(Risk(
        threat=f"Fake news and propaganda against {focus_party}",
        probability="medium",
        impact="moderate",
        mitigation="Rapid response team + Fact check network",
    ))
    if profile.sentiment is not None and profile.sentiment.trend is SentimentTrend.DECLINING:
        threats.append(Risk(
            threat=f"Declining sentiment toward {focus_party} in recent signals",
            probability="medium",
            impact="moderate",
            mitigation="Issue audit + Targeted grievance redressal camps",
        ))
    since = _eroding_since(profile)
    if since is not None:
        threats.append(Risk(
            threat=f"Vote share eroding since {since}",
            probability="medium",
            impact="severe",
            mitigation="Booth-level review of lost pockets + Candidate reassessment",
        ))

    return RiskRegister(
        threats=threats,
        contingency_plans={
            "Candidate health issue": "Ready panel of 3 backup candidates",
            "Major corruption expose": "Immediate press conference + Evidence release",
            "Communal tension": "Peace committee activation + Senior leader intervention",
            "EC restrictions": "Digital campaign intensification + Door-to-door increase",
            "Fund shortage": "Crowd funding + Business community mobilization",
        },
        early_warning_signals=[
            f"{ruling_party} muscle mobilization in sensitive booths",
            "Unusual government scheme announcements",
            "Opposition unity talks",
            "Negative social media trends",
            "Voter list manipulation attempts",
        ],
    )
