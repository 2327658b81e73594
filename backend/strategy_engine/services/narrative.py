"""
Narrative Generator - free-text recommendations for a WinningStrategy.

The strategy record goes to the LLM as read-only JSON context. Whatever comes
back is prose only; numeric fields are never read back from it. When the LLM
is missing or fails, a summary is assembled locally from the same fields.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from ..errors import CollaboratorUnavailable
from ..models import Narrative, WinningStrategy
from .llm import BaseLLM, MockLLM, get_llm

logger = logging.getLogger(__name__)


NARRATIVE_PROMPT = """Campaign strategy record (JSON, read-only):

{record}

Write a concise strategy briefing for the {name} campaign team:
1. Situation: status, win probability and swing needed
2. Top three voter segments to target and how
3. Ground operations priorities (weak booths, worker gap, budget)
4. The two most serious risks and their mitigations"""


def template_summary(strategy: WinningStrategy) -> str:
    """Plain-text briefing built only from the record's own fields."""
    c = strategy.constituency
    ground = strategy.ground_plan
    formula = strategy.winning_formula

    lines = [
        f"{c.name} ({c.district}, {c.region}): {strategy.status.value}",
        f"Win probability {strategy.win_probability:.1f}%, swing needed {strategy.swing_needed:.1f} points, "
        f"priority score {strategy.priority_score}.",
        f"Vote bank: {strategy.vote_bank.committed:,} committed, {strategy.vote_bank.swing:,} swing, "
        f"{strategy.vote_bank.convertible:,} convertible of {strategy.vote_bank.total_voters:,} voters.",
        f"Winning formula: {formula.minimum_votes_needed:,} votes needed, "
        f"{formula.current_expected_votes:,} expected (confidence {formula.confidence}%).",
        f"Lead narrative: {strategy.messaging.core_narrative}",
    ]

    if strategy.segments:
        lines.append("Priority segments:")
        for s in strategy.segments[:3]:
            lines.append(f"- {s.name}: {s.size:,} voters, {s.conversion_likelihood:.0f}% likelihood. {s.approach_strategy}")
    else:
        lines.append("No demographic segments identified; rely on booth-level outreach.")

    lines.append(
        f"Ground: {ground.booth_count} booths ({ground.weak_booths} weak), "
        f"{ground.workers.total_needed} workers needed (gap {ground.workers.gap}), "
        f"budget Rs {ground.budget.minimum:,} to Rs {ground.budget.optimal:,}."
    )

    severe = [r for r in strategy.risks.threats if r.impact == "severe"] or strategy.risks.threats
    if severe:
        lines.append("Key risks:")
        for r in severe[:2]:
            lines.append(f"- {r.threat}: {r.mitigation}")
    return "\n".join(lines)


class NarrativeGenerator:
    """Wraps an LLM and degrades to template_summary on any failure."""

    def __init__(
        self,
        llm: Optional[BaseLLM] = None,
        llm_factory: Callable[[], BaseLLM] = get_llm,
    ):
        self._llm = llm
        self._llm_factory = llm_factory

    def _get_llm(self) -> BaseLLM:
        if self._llm is None:
            try:
                self._llm = self._llm_factory()
            except Exception as e:
                raise CollaboratorUnavailable("narrative service", str(e)) from e
        return self._llm

    def generate(self, strategy: WinningStrategy) -> Narrative:
        cid = strategy.constituency.constituency_id
        try:
            llm = self._get_llm()
            if isinstance(llm, MockLLM):
                raise CollaboratorUnavailable("narrative service", "no LLM configured")
            prompt = NARRATIVE_PROMPT.format(
                record=strategy.model_dump_json(indent=2),
                name=strategy.constituency.name,
            )
            response = llm.generate(prompt, system=llm.strategy_system_prompt)
            if not response.text.strip():
                raise CollaboratorUnavailable("narrative service", "empty response")
            return Narrative(constituency_id=cid, text=response.text, source="llm", model=response.model or None)
        except CollaboratorUnavailable as e:
            logger.warning("Narrative for %s falls back to template: %s", cid, e)
        except Exception as e:
            logger.warning("Narrative service failed for %s, using template: %s", cid, e)
        return Narrative(constituency_id=cid, text=template_summary(strategy), source="template")
