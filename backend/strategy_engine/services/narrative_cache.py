"""
Time-bounded narrative cache keyed by constituency id.

Owned by the calling layer; the engine itself never caches.
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ..models import Narrative


class NarrativeCache:
    def __init__(self, ttl_seconds: float = 900, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Narrative]] = {}
        self._lock = threading.Lock()

    def get(self, constituency_id: str) -> Optional[Narrative]:
        with self._lock:
            entry = self._entries.get(constituency_id)
            if entry is None:
                return None
            stored_at, narrative = entry
            if self._clock() - stored_at >= self.ttl_seconds:
                del self._entries[constituency_id]
                return None
            return narrative

    def put(self, narrative: Narrative) -> None:
        with self._lock:
            self._entries[narrative.constituency_id] = (self._clock(), narrative)

    def invalidate(self, constituency_id: str) -> None:
        with self._lock:
            self._entries.pop(constituency_id, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
