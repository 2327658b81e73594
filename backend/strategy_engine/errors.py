"""
Error taxonomy for the strategy engine.

- UnknownConstituency: identifier resolves to nothing in any tier (fatal).
- MalformedProfile: a resolved profile breaks an invariant (fatal).
- CollaboratorUnavailable: record store or narrative service unreachable
  (recovered locally by the caller).
"""
from __future__ import annotations

from typing import Optional


class StrategyEngineError(Exception):
    """Base class for all engine errors."""


class UnknownConstituency(StrategyEngineError):
    def __init__(self, constituency_id: str):
        self.constituency_id = constituency_id
        super().__init__(f"Unknown constituency: {constituency_id!r}")


class MalformedProfile(StrategyEngineError):
    def __init__(self, field: str, reason: str, constituency_id: Optional[str] = None):
        self.field = field
        self.reason = reason
        self.constituency_id = constituency_id
        where = f" ({constituency_id})" if constituency_id else ""
        super().__init__(f"Malformed profile{where}: {field}: {reason}")


class CollaboratorUnavailable(StrategyEngineError):
    def __init__(self, collaborator: str, reason: str = ""):
        self.collaborator = collaborator
        self.reason = reason
        super().__init__(f"{collaborator} unavailable: {reason}" if reason else f"{collaborator} unavailable")
