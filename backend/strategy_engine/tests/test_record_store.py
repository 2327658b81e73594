import json

import httpx
import pytest

from strategy_engine.errors import CollaboratorUnavailable
from strategy_engine.services.record_store import JsonRecordStore, RestRecordStore
from strategy_engine.tests.builders import DATA_DIR

ROW = {
    "constituency_id": "nadia-17",
    "name": "Krishnanagar Uttar",
    "region": "South Bengal",
    "total_voters": 195000,
    "focus_vote_share": 42.1,
    "unexpected_column": "ignored",
}


def _store(handler, max_attempts=3):
    return RestRecordStore(
        base_url="https://store.example/",
        api_key="secret",
        max_attempts=max_attempts,
        backoff=0,
        transport=httpx.MockTransport(handler),
    )


def test_rest_fetch_builds_postgrest_query():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[ROW])

    record = _store(handler).fetch("nadia-17")

    assert record.constituency_id == "nadia-17"
    assert record.focus_vote_share == 42.1
    request = seen[0]
    assert request.url.path == "/rest/v1/constituency_records"
    assert request.url.params["constituency_id"] == "eq.nadia-17"
    assert request.headers["apikey"] == "secret"
    assert request.headers["authorization"] == "Bearer secret"


def test_rest_fetch_missing_record_returns_none():
    store = _store(lambda request: httpx.Response(200, json=[]))
    assert store.fetch("nadia-99") is None


def test_rest_fetch_region():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["region"] == "eq.South Bengal"
        return httpx.Response(200, json=[ROW, {**ROW, "constituency_id": "nadia-16"}])

    records = _store(handler).fetch_region("South Bengal")
    assert [r.constituency_id for r in records] == ["nadia-17", "nadia-16"]


def test_rest_retries_server_errors():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json=[ROW])

    assert _store(handler).fetch("nadia-17") is not None
    assert len(calls) == 2


def test_rest_gives_up_after_bounded_attempts():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500)

    with pytest.raises(CollaboratorUnavailable):
        _store(handler, max_attempts=3).fetch("nadia-17")
    assert len(calls) == 3


def test_rest_client_errors_are_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(401)

    with pytest.raises(CollaboratorUnavailable):
        _store(handler).fetch("nadia-17")
    assert len(calls) == 1


def test_rest_transport_failure_is_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CollaboratorUnavailable) as exc:
        _store(handler, max_attempts=2).fetch("nadia-17")
    assert exc.value.collaborator == "rest record store"


def test_rest_unexpected_payload_is_unavailable():
    store = _store(lambda request: httpx.Response(200, json={"message": "not a list"}))
    with pytest.raises(CollaboratorUnavailable):
        store.fetch("nadia-17")


def test_json_store_reads_bundled_records():
    store = JsonRecordStore.from_data_dir(DATA_DIR)

    assert store.fetch("kolkata-2").incumbent_name == "Mamata Banerjee"
    assert {r.constituency_id for r in store.fetch_region("North Bengal")} == {"alipurduar-1", "alipurduar-2"}
    assert store.fetch("nadia-1") is None


def test_json_store_skips_invalid_rows(tmp_path):
    path = tmp_path / "records.json"
    path.write_text(json.dumps({"records": [ROW, {"name": "no id"}]}), encoding="utf-8")

    store = JsonRecordStore.from_file(path)
    assert store.fetch("nadia-17") is not None


def test_json_store_missing_file_is_empty(tmp_path):
    store = JsonRecordStore.from_file(tmp_path / "absent.json")
    assert store.fetch("nadia-17") is None
