from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

import pytest

from album_vault.config import RetrySettings
from album_vault.errors import DocumentNotFoundError, RemoteStoreError
from album_vault.media import FileHandle
from album_vault.models import Album, Forest, Image
from album_vault.store import DocumentStore

FAST_RETRY = RetrySettings(attempts=3, base_delay=0.0, max_delay=0.0, jitter=False)


def id_counter(prefix: str = "id") -> Callable[[], str]:
    counter = itertools.count(1)
    return lambda: f"{prefix}{next(counter)}"


@pytest.fixture()
def ids() -> Callable[[], str]:
    return id_counter()


def make_image(image_id: str, name: Optional[str] = None) -> Image:
    return Image(id=image_id, name=name or f"{image_id}.jpg", url=f"https://example.test/{image_id}", size_label="1.0 KB")


@pytest.fixture()
def sample_forest() -> Forest:
    """Trip -> (Day1 -> Morning, Day2) plus an empty Work album."""

    morning = Album(id="morning", name="Morning", images=(make_image("m1"),))
    day1 = Album(id="day1", name="Day1", images=(make_image("d1a"), make_image("d1b")), sub_albums=(morning,))
    day2 = Album(id="day2", name="Day2")
    trip = Album(id="trip", name="Trip", images=(make_image("t1"),), sub_albums=(day1, day2))
    work = Album(id="work", name="Work")
    return (trip, work)


class FakeFile:
    is_file = True
    is_directory = False

    def __init__(self, name: str, size: int = 2048, content_type: Optional[str] = None) -> None:
        self.name = name
        self.size = size
        self.content_type = content_type

    async def open_file(self) -> FileHandle:
        return FileHandle(name=self.name, size=self.size, content_type=self.content_type)

    async def list_children(self) -> Sequence[Any]:
        raise AssertionError("files have no children")


class FakeDir:
    is_file = False
    is_directory = True

    def __init__(self, name: str, children: Sequence[Any] = ()) -> None:
        self.name = name
        self.children = list(children)
        self.listed = 0

    async def open_file(self) -> FileHandle:
        raise AssertionError("directories cannot be opened")

    async def list_children(self) -> Sequence[Any]:
        self.listed += 1
        return list(self.children)


class MemoryStore(DocumentStore):
    """In-memory store with scriptable failures."""

    def __init__(self, data: Optional[List[Dict[str, Any]]] = None, *, exists: bool = True) -> None:
        super().__init__("1", retry=FAST_RETRY, sleep=lambda _: None)
        self.document: Optional[Dict[str, Any]] = {"id": "1", "data": data or []} if exists else None
        self.fetch_errors: List[Exception] = []
        self.write_errors: List[Exception] = []
        self.saved: List[List[Dict[str, Any]]] = []
        self.calls: List[str] = []
        self.gate: Optional[threading.Event] = None

    def fetch_document(self) -> Dict[str, Any]:
        self.calls.append("fetch")
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        if self.document is None:
            raise DocumentNotFoundError("missing")
        return self.document

    def update_document(self, data: List[Dict[str, Any]]) -> None:
        self.calls.append("update")
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.write_errors:
            raise self.write_errors.pop(0)
        if self.document is None:
            raise DocumentNotFoundError("missing")
        self.document = {"id": "1", "data": data}
        self.saved.append(data)

    def create_document(self, data: List[Dict[str, Any]]) -> None:
        self.calls.append("create")
        self.document = {"id": "1", "data": data}
        self.saved.append(data)

    def fail_writes(self, count: int) -> None:
        self.write_errors.extend(RemoteStoreError("boom", status_code=503) for _ in range(count))

    def fail_fetches(self, count: int) -> None:
        self.fetch_errors.extend(RemoteStoreError("offline") for _ in range(count))


@pytest.fixture()
def memory_store() -> MemoryStore:
    return MemoryStore()
