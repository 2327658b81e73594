"""
Record Store - where raw constituency records come from.

Two backends share one interface:
1. JsonRecordStore: the bundled per-constituency records file (exact-match tier)
2. RestRecordStore: a hosted PostgREST-style table, reached over HTTP with a
   timeout and bounded exponential-backoff retries

Transport failures surface as CollaboratorUnavailable so the resolver can fall
back to regional and global estimates.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from ..errors import CollaboratorUnavailable
from ..models import SourceRecord

logger = logging.getLogger(__name__)

RECORDS_FILE = "constituency_records.json"


class RecordStore(ABC):
    """Read-only access to raw constituency records."""

    name: str = "record store"

    @abstractmethod
    def fetch(self, constituency_id: str) -> Optional[SourceRecord]:
        """Exact-match record, or None when the store has nothing for the id."""

    @abstractmethod
    def fetch_region(self, region: str) -> List[SourceRecord]:
        """All records tagged with the region (used for regional averages)."""


class JsonRecordStore(RecordStore):
    """Records loaded once from a local JSON file."""

    name = "json record store"

    def __init__(self, records: List[SourceRecord]):
        self._records: Dict[str, SourceRecord] = {r.constituency_id: r for r in records}

    @classmethod
    def from_file(cls, file_path: Path) -> "JsonRecordStore":
        if not file_path.exists():
            logger.warning("Record file not found: %s", file_path)
            return cls([])
        with file_path.open("r", encoding="utf-8") as f:
            payload = json.load(f)
        rows = payload.get("records", []) if isinstance(payload, dict) else payload

        records: List[SourceRecord] = []
        for idx, row in enumerate(rows):
            try:
                records.append(SourceRecord.model_validate(row))
            except ValidationError as e:
                logger.warning("Record %d in %s skipped: %s", idx, file_path.name, e)
        return cls(records)

    @classmethod
    def from_data_dir(cls, data_dir: Path) -> "JsonRecordStore":
        return cls.from_file(Path(data_dir) / RECORDS_FILE)

    def fetch(self, constituency_id: str) -> Optional[SourceRecord]:
        return self._records.get(constituency_id)

    def fetch_region(self, region: str) -> List[SourceRecord]:
        return [r for r in self._records.values() if r.region == region]


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500 or exc.response.status_code == 429
    return isinstance(exc, httpx.TransportError)


class RestRecordStore(RecordStore):
    """
    Hosted relational store exposed as a REST table.

    Query shape follows PostgREST: ``GET {base}/rest/v1/{table}?column=eq.value``
    with ``apikey`` and bearer headers.
    """

    name = "rest record store"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        table: str = "constituency_records",
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff: float = 0.5,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self.table = table
        self.max_attempts = max_attempts
        self.backoff = backoff
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def _get_rows(self, params: Dict[str, str]) -> List[Dict[str, Any]]:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=8),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        try:
            for attempt in retrying:
                with attempt:
                    resp = self._client.get(f"/rest/v1/{self.table}", params={"select": "*", **params})
                    resp.raise_for_status()
                    data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorUnavailable(self.name, str(e)) from e

        if not isinstance(data, list):
            raise CollaboratorUnavailable(self.name, f"unexpected payload type {type(data).__name__}")
        return data

    def _parse(self, rows: List[Dict[str, Any]]) -> List[SourceRecord]:
        records = []
        for row in rows:
            try:
                records.append(SourceRecord.model_validate(row))
            except ValidationError as e:
                logger.warning("Skipping unparseable row from %s: %s", self.table, e)
        return records

    def fetch(self, constituency_id: str) -> Optional[SourceRecord]:
        records = self._parse(self._get_rows({"constituency_id": f"eq.{constituency_id}", "limit": "1"}))
        return records[0] if records else None

    def fetch_region(self, region: str) -> List[SourceRecord]:
        return self._parse(self._get_rows({"region": f"eq.{region}"}))
