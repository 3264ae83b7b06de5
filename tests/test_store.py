from __future__ import annotations

import json
import threading
from typing import Any, List, Optional, Tuple

import pytest
import requests

from album_vault import config
from album_vault.errors import DocumentFormatError, LoadFailure, PersistFailure
from album_vault.schemas import validate_document
from album_vault.store import FileDocumentStore, HttpDocumentStore, build_store

from conftest import FAST_RETRY, MemoryStore

BASE = "https://api.example.test"


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, *, invalid_json: bool = False) -> None:
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        if self._invalid_json:
            raise ValueError("not json")
        return self._payload


class FakeSession:
    def __init__(self, responses: List[Any]) -> None:
        self.responses = list(responses)
        self.requests: List[Tuple[str, str, Optional[dict]]] = []

    def request(self, method, url, json=None, headers=None, timeout=None):
        self.requests.append((method, url, json))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _http_store(responses: List[Any]) -> Tuple[HttpDocumentStore, FakeSession]:
    session = FakeSession(responses)
    store = HttpDocumentStore(BASE, "vault", "1", timeout=5, session=session, retry=FAST_RETRY, sleep=lambda _: None)
    return store, session


SAMPLE = [{"id": "a", "name": "A", "images": [{"id": "i", "name": "i.jpg", "url": "u", "size": "1.0 KB"}], "subAlbums": []}]


def test_http_load_returns_document_data() -> None:
    store, session = _http_store([FakeResponse(200, {"id": "1", "data": SAMPLE})])
    assert store.load() == SAMPLE
    assert session.requests == [("GET", f"{BASE}/vault/1", None)]


def test_http_load_retries_transient_failures() -> None:
    store, session = _http_store(
        [
            requests.exceptions.ConnectionError("reset"),
            FakeResponse(502),
            FakeResponse(200, {"id": "1", "data": None}),
        ]
    )
    assert store.load() == []
    assert len(session.requests) == 3


def test_http_load_creates_missing_document(capsys) -> None:
    store, session = _http_store([FakeResponse(404), FakeResponse(201, {"id": "1", "data": []})])
    assert store.load() == []
    assert session.requests[1] == ("POST", f"{BASE}/vault", {"id": "1", "data": []})
    assert "creating an empty one" in capsys.readouterr().out


def test_http_load_failure_after_exhausting_retries() -> None:
    store, session = _http_store([FakeResponse(500)] * 3)
    with pytest.raises(LoadFailure):
        store.load()
    assert len(session.requests) == 3


def test_http_load_rejects_malformed_document() -> None:
    store, _ = _http_store([FakeResponse(200, {"id": "1", "data": [{"name": "no id"}]})])
    with pytest.raises(LoadFailure):
        store.load()

    store, _ = _http_store([FakeResponse(200, invalid_json=True)])
    with pytest.raises(LoadFailure):
        store.load()


def test_http_fetch_picks_document_from_collection_response() -> None:
    store, _ = _http_store([FakeResponse(200, [{"id": "2", "data": []}, {"id": 1, "data": SAMPLE}])])
    assert store.load() == SAMPLE


def test_http_save_puts_whole_forest() -> None:
    store, session = _http_store([FakeResponse(200, {})])
    store.save(SAMPLE)
    assert session.requests == [("PUT", f"{BASE}/vault/1", {"data": SAMPLE})]


def test_http_save_falls_back_to_create_on_missing_document() -> None:
    store, session = _http_store([FakeResponse(404), FakeResponse(201, {})])
    store.save(SAMPLE)
    assert [request[0] for request in session.requests] == ["PUT", "POST"]
    assert session.requests[1][2] == {"id": "1", "data": SAMPLE}


def test_http_save_raises_persist_failure() -> None:
    store, session = _http_store([FakeResponse(503)] * 3)
    with pytest.raises(PersistFailure):
        store.save(SAMPLE)
    assert len(session.requests) == 3


def test_http_save_does_not_retry_client_errors() -> None:
    store, session = _http_store([FakeResponse(400)])
    with pytest.raises(PersistFailure):
        store.save(SAMPLE)
    assert len(session.requests) == 1


def test_file_store_round_trip(tmp_path) -> None:
    path = tmp_path / "nested" / "library.json"
    store = FileDocumentStore(path, retry=FAST_RETRY, sleep=lambda _: None)

    assert store.load() == []
    assert json.loads(path.read_text(encoding="utf-8")) == {"id": "1", "data": []}

    store.save(SAMPLE)
    assert store.load() == SAMPLE
    assert list(path.parent.glob("*.tmp")) == []


def test_file_store_invalid_json_fails_load(tmp_path) -> None:
    path = tmp_path / "library.json"
    path.write_text("{not json", encoding="utf-8")
    store = FileDocumentStore(path, retry=FAST_RETRY, sleep=lambda _: None)
    with pytest.raises(LoadFailure):
        store.load()


def test_memory_store_save_creates_when_missing() -> None:
    store = MemoryStore(exists=False)
    store.save(SAMPLE)
    assert store.calls == ["update", "create"]
    assert store.document == {"id": "1", "data": SAMPLE}


def test_validate_document_reports_nested_problems() -> None:
    validate_document({"id": "1", "data": SAMPLE})
    with pytest.raises(DocumentFormatError):
        validate_document({"data": [{"id": "a", "subAlbums": [{"name": "missing id"}]}]})


def test_build_store_selects_backend(tmp_path) -> None:
    app = config.load_app_config(str(tmp_path / "absent.json"))

    file_store = build_store(app, backend="file", file_path=str(tmp_path / "lib.json"), attempts=2)
    assert isinstance(file_store, FileDocumentStore)
    assert file_store.retry_settings.attempts == 2

    http_store = build_store(app, backend="http")
    assert isinstance(http_store, HttpDocumentStore)
    assert http_store.document_url == f"{app.remote.base_url}/{app.remote.resource}/{app.remote.document_id}"


def test_file_store_overlapping_saves(tmp_path) -> None:
    path = tmp_path / "library.json"
    store = FileDocumentStore(path, retry=FAST_RETRY, sleep=lambda _: None)
    store.load()
    errors: List[Exception] = []
    payloads = [[{"id": f"a{index}", "name": f"A{index}", "images": [], "subAlbums": []}] for index in range(8)]

    def save(payload) -> None:
        try:
            store.save(payload)
        except PersistFailure as exc:
            errors.append(exc)

    for _ in range(5):
        threads = [threading.Thread(target=save, args=(payload,)) for payload in payloads]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

    assert errors == []
    assert store.load() in payloads
    assert list(tmp_path.glob("*.tmp")) == []
