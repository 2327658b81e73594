"""
Strategy Pipeline - wires resolver, decomposition, segments, scorer, ground
planner and assembler into one call.

Stages run strictly in order and never call back into an earlier one. The
pipeline keeps no state between calls, so one instance can serve any number
of threads.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Sequence

from ..models import ConstituencyProfile, SourceRecord, WinningStrategy
from .assembler import assemble
from .ground_ops import plan_ground_operations
from .resolver import ProfileResolver, validate_profile
from .scorer import derive_status, priority_score, swing_needed, win_probability
from .segments import identify_segments, rank_segments
from .vote_bank import decompose
from .weights import DEFAULT_WEIGHTS, StrategyWeights

logger = logging.getLogger(__name__)


class StrategyPipeline:
    def __init__(
        self,
        resolver: ProfileResolver,
        weights: Optional[StrategyWeights] = None,
        max_workers: int = 8,
    ):
        self.resolver = resolver
        self.weights = weights or resolver.weights or DEFAULT_WEIGHTS
        self.max_workers = max_workers

    @property
    def focus_party(self) -> str:
        return self.resolver.focus_party

    @property
    def ruling_party(self) -> str:
        return self.resolver.ruling_party

    def synthesize(self, constituency_id: str) -> WinningStrategy:
        """Resolve a constituency by id and build its strategy."""
        return self.synthesize_profile(self.resolver.resolve(constituency_id))

    def synthesize_record(self, record: SourceRecord) -> WinningStrategy:
        """Build a strategy from a caller-supplied partial record."""
        return self.synthesize_profile(self.resolver.build(record))

    def synthesize_profile(self, profile: ConstituencyProfile) -> WinningStrategy:
        # Profiles built outside the resolver get the same checks.
        w = self.weights
        validate_profile(profile, w, self.focus_party)

        vote_bank = decompose(profile, w)
        segments = rank_segments(identify_segments(profile, w))
        swing = swing_needed(profile, w)
        probability = win_probability(profile, w)
        status = derive_status(profile.standing.focus_position, probability, w)
        score = priority_score(profile, status, swing, w)
        ground_plan = plan_ground_operations(profile, status, w)

        strategy = assemble(
            profile, vote_bank, segments, swing, probability, status, score, ground_plan,
            weights=w, focus_party=self.focus_party, ruling_party=self.ruling_party,
        )
        logger.debug(
            "Synthesized %s: status=%s probability=%.1f priority=%d",
            profile.constituency_id, status.value, probability, score,
        )
        return strategy

    def synthesize_many(self, constituency_ids: Sequence[str]) -> List[WinningStrategy]:
        """
        Fan out one pipeline run per id on a thread pool.

        Results come back in input order. The first failing id raises its
        error after all runs finish.
        """
        if not constituency_ids:
            return []
        workers = max(1, min(self.max_workers, len(constituency_ids)))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self.synthesize, cid) for cid in constituency_ids]
        return [f.result() for f in futures]
