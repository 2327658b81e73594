from pathlib import Path
from typing import Dict, List, Optional

from strategy_engine.engine import ProfileResolver, StrategyPipeline
from strategy_engine.models import (
    AreaType, ConstituencyProfile, Demographics, ElectionCycle, ImpactTier,
    PriorStanding, SentimentSignals, SwingFactors,
)
from strategy_engine.services.record_store import JsonRecordStore, RecordStore
from strategy_engine.services.registry import ConstituencyRegistry, RegionalProfiles

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def full_demographics(**overrides) -> Demographics:
    values = dict(
        religion={"hindu": 68.0, "muslim": 30.0, "other": 2.0},
        caste={"general": 45.0, "obc": 27.0, "sc_st": 28.0},
        age={"youth": 36.0, "middle": 42.0, "senior": 22.0},
        gender={"female": 48.0, "male": 52.0},
    )
    values.update(overrides)
    return Demographics(**values)


def make_profile(
    total_voters: int = 150000,
    focus_position: int = 2,
    focus_vote_share: float = 45.0,
    anti_incumbency: float = 70.0,
    policy_impact: ImpactTier = ImpactTier.LOW,
    area_type: AreaType = AreaType.RURAL,
    demographics: Optional[Demographics] = None,
    constituency_id: str = "test-1",
    district: str = "Testpur",
    region: str = "Test Region",
    incumbent_name: Optional[str] = None,
    booth_history: Optional[List[float]] = None,
    history: Optional[List[ElectionCycle]] = None,
    sentiment: Optional[SentimentSignals] = None,
    corruption_perception: float = 50.0,
) -> ConstituencyProfile:
    return ConstituencyProfile(
        constituency_id=constituency_id,
        name=constituency_id.title(),
        district=district,
        region=region,
        total_voters=total_voters,
        area_type=area_type,
        standing=PriorStanding(
            winning_party="BJP" if focus_position == 1 else "AITC",
            incumbent_name=incumbent_name,
            margin_votes=5000,
            focus_position=focus_position,
            focus_vote_share=focus_vote_share,
        ),
        history=history or [],
        demographics=demographics if demographics is not None else full_demographics(),
        swing_factors=SwingFactors(
            anti_incumbency=anti_incumbency,
            policy_impact=policy_impact,
            welfare_dependency=30.0,
            unemployment=40.0,
            corruption_perception=corruption_perception,
        ),
        sentiment=sentiment,
        booth_history=booth_history or [],
    )


def bundled_registry() -> ConstituencyRegistry:
    return ConstituencyRegistry.from_data_dir(DATA_DIR)


def bundled_regional() -> RegionalProfiles:
    return RegionalProfiles.from_data_dir(DATA_DIR)


def bundled_resolver(store: Optional[RecordStore] = None) -> ProfileResolver:
    return ProfileResolver(
        registry=bundled_registry(),
        store=store or JsonRecordStore.from_data_dir(DATA_DIR),
        regional=bundled_regional(),
    )


def bundled_pipeline(store: Optional[RecordStore] = None) -> StrategyPipeline:
    return StrategyPipeline(bundled_resolver(store), max_workers=4)


def record_dict(constituency_id: str = "x-1", **fields) -> Dict:
    return {"constituency_id": constituency_id, **fields}
