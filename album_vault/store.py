"""Whole-document stores that hold the library forest.

The stores only speak three verbs against a single document: fetch it, update
it in place, or create it with a known id. ``load`` and ``save`` layer the
retry policy and the create-or-update fallback on top of those verbs.
"""

from __future__ import annotations

import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar, Union

import requests

from album_vault import config
from album_vault.errors import (
    DocumentFormatError,
    DocumentNotFoundError,
    LoadFailure,
    PersistFailure,
    RemoteStoreError,
)
from album_vault.retry import retry_with_backoff
from album_vault.schemas import validate_document

T = TypeVar("T")


class DocumentStore:
    """Base class implementing load/save on top of fetch/update/create primitives."""

    def __init__(
        self,
        document_id: str,
        *,
        retry: Optional[config.RetrySettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.document_id = str(document_id)
        self.retry_settings = retry or config.APP_CONFIG.retry
        self.sleep = sleep

    # ------------------------------------------------------------------
    # Primitive verbs
    # ------------------------------------------------------------------
    def describe(self) -> str:
        return f"document '{self.document_id}'"

    def fetch_document(self) -> Dict[str, Any]:
        raise NotImplementedError

    def update_document(self, data: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def create_document(self, data: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Retrying operations
    # ------------------------------------------------------------------
    def _with_retry(self, operation: Callable[[], T], label: str) -> T:
        settings = self.retry_settings
        return retry_with_backoff(
            operation,
            attempts=settings.attempts,
            base_delay=settings.base_delay,
            max_delay=settings.max_delay,
            jitter=settings.jitter,
            label=f"{label} {self.describe()}",
            retry_on=(RemoteStoreError,),
            sleep=self.sleep,
        )

    def load(self) -> List[Dict[str, Any]]:
        """Return the stored forest payload, creating an empty document when none exists."""

        try:
            document = self._with_retry(self.fetch_document, "Load")
        except DocumentNotFoundError:
            print(f"[INFO] No library found at {self.describe()}; creating an empty one")
            try:
                self._with_retry(lambda: self.create_document([]), "Create")
            except RemoteStoreError as exc:
                raise LoadFailure(f"Unable to create {self.describe()}: {exc}") from exc
            return []
        except RemoteStoreError as exc:
            raise LoadFailure(f"Unable to load {self.describe()}: {exc}") from exc
        try:
            validate_document(document)
        except DocumentFormatError as exc:
            raise LoadFailure(str(exc)) from exc
        return list(document.get("data") or [])

    def write_once(self, data: List[Dict[str, Any]]) -> None:
        """Update the document in place, creating it once if it does not exist yet."""

        try:
            self.update_document(data)
        except DocumentNotFoundError:
            self.create_document(data)

    def save(self, data: List[Dict[str, Any]]) -> None:
        try:
            self._with_retry(lambda: self.write_once(data), "Save")
        except RemoteStoreError as exc:
            raise PersistFailure(f"Unable to save {self.describe()}: {exc}") from exc


class HttpDocumentStore(DocumentStore):
    """Document store reached over a REST resource (``GET``/``PUT``/``POST``)."""

    def __init__(
        self,
        base_url: str,
        resource: str,
        document_id: str,
        *,
        timeout: int = config.DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
        retry: Optional[config.RetrySettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(document_id, retry=retry, sleep=sleep)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.collection_url = f"{base_url.rstrip('/')}/{resource.strip('/')}"
        self.document_url = f"{self.collection_url}/{self.document_id}"

    def describe(self) -> str:
        return self.document_url

    def _request(self, method: str, url: str, payload: Optional[Dict[str, Any]] = None) -> requests.Response:
        headers = {"content-type": "application/json"} if payload is not None else None
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            raise RemoteStoreError(f"{method} {url} failed: {exc}") from exc
        if response.status_code == 404:
            raise DocumentNotFoundError(f"{method} {url} returned 404")
        if not response.ok:
            raise RemoteStoreError(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        return response

    def fetch_document(self) -> Dict[str, Any]:
        response = self._request("GET", self.document_url)
        try:
            payload = response.json()
        except ValueError as exc:
            raise DocumentFormatError(f"GET {self.document_url} did not return JSON") from exc
        if isinstance(payload, list):
            # Some backends answer with the whole collection.
            payload = next(
                (entry for entry in payload if isinstance(entry, dict) and str(entry.get("id")) == self.document_id),
                None,
            )
            if payload is None:
                raise DocumentNotFoundError(f"{self.collection_url} has no document '{self.document_id}'")
        if not isinstance(payload, dict):
            raise DocumentFormatError(f"GET {self.document_url} returned {type(payload).__name__}, expected an object")
        return payload

    def update_document(self, data: List[Dict[str, Any]]) -> None:
        self._request("PUT", self.document_url, {"data": data})

    def create_document(self, data: List[Dict[str, Any]]) -> None:
        self._request("POST", self.collection_url, {"id": self.document_id, "data": data})


class FileDocumentStore(DocumentStore):
    """Document store persisted to a flat JSON file."""

    def __init__(
        self,
        path: Union[str, Path],
        document_id: str = config.DEFAULT_DOCUMENT_ID,
        *,
        retry: Optional[config.RetrySettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(document_id, retry=retry, sleep=sleep)
        self.path = Path(path)

    def describe(self) -> str:
        return str(self.path)

    def fetch_document(self) -> Dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError as exc:
            raise DocumentNotFoundError(f"{self.path} does not exist") from exc
        except json.JSONDecodeError as exc:
            raise DocumentFormatError(f"Invalid JSON data in {self.path}") from exc
        except OSError as exc:
            raise RemoteStoreError(f"Unable to read {self.path}: {exc}") from exc
        if not isinstance(payload, dict):
            raise DocumentFormatError(f"{self.path} must contain a JSON object")
        return payload

    def update_document(self, data: List[Dict[str, Any]]) -> None:
        if not self.path.exists():
            raise DocumentNotFoundError(f"{self.path} does not exist")
        self._write({"id": self.document_id, "data": data})

    def create_document(self, data: List[Dict[str, Any]]) -> None:
        self._write({"id": self.document_id, "data": data})

    def _write(self, document: Dict[str, Any]) -> None:
        # One temp file per write; background saves may overlap.
        tmp_name: Optional[str] = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, ensure_ascii=False, indent=2)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_name, self.path)
            tmp_name = None
        except OSError as exc:
            raise RemoteStoreError(f"Unable to write {self.path}: {exc}") from exc
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)


def build_store(
    app_config: Optional[config.AppConfig] = None,
    *,
    backend: Optional[str] = None,
    file_path: Optional[str] = None,
    attempts: Optional[int] = None,
) -> DocumentStore:
    app = app_config or config.APP_CONFIG
    retry = app.retry
    if attempts is not None:
        retry = config.RetrySettings(
            attempts=max(1, attempts),
            base_delay=retry.base_delay,
            max_delay=retry.max_delay,
            jitter=retry.jitter,
        )
    chosen = (backend or app.store.backend).lower()
    if chosen == "file":
        return FileDocumentStore(file_path or app.store.file_path, app.remote.document_id, retry=retry)
    return HttpDocumentStore(
        app.remote.base_url,
        app.remote.resource,
        app.remote.document_id,
        timeout=app.remote.timeout,
        retry=retry,
    )


__all__ = [
    "DocumentStore",
    "FileDocumentStore",
    "HttpDocumentStore",
    "build_store",
]
