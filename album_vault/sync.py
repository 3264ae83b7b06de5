"""Optimistic local edits with best-effort background persistence."""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Set

from album_vault import tree
from album_vault.errors import AlbumVaultError, LoadFailure
from album_vault.media import EntryDescriptor, ImageFactory, make_image_factory, stage_entries
from album_vault.models import EMPTY_FOREST, Forest, Image, check_forest, count_nodes, forest_from_json, forest_to_json, new_id
from album_vault.store import DocumentStore


class SyncStatus(str, Enum):
    INITIALIZING = "initializing"
    READY = "ready"
    DEGRADED = "degraded"


class SyncController:
    """Owns the authoritative forest and mirrors every accepted edit to the store.

    Local edits are applied synchronously and become visible immediately. Each
    edit then schedules an independent background write of the whole forest;
    a failed write is reported and dropped, never rolled back. Writes carry no
    sequence number, so when two of them complete out of order the store keeps
    whichever landed last.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        id_factory: Callable[[], str] = new_id,
        image_factory: Optional[ImageFactory] = None,
    ) -> None:
        self.store = store
        self.id_factory = id_factory
        self.image_factory = image_factory or make_image_factory(id_factory=id_factory)
        self.last_error: Optional[str] = None
        self.persist_failures = 0
        self._forest: Forest = EMPTY_FOREST
        self._status = SyncStatus.INITIALIZING
        self._in_flight = 0
        self._tasks: Set["asyncio.Task[None]"] = set()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def forest(self) -> Forest:
        return self._forest

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def ready(self) -> bool:
        return self._status is SyncStatus.READY

    @property
    def syncing(self) -> bool:
        return self._in_flight > 0

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load(self) -> bool:
        self._status = SyncStatus.INITIALIZING
        self.last_error = None
        try:
            payload = await asyncio.to_thread(self.store.load)
        except LoadFailure as exc:
            self._status = SyncStatus.DEGRADED
            self.last_error = str(exc)
            print(f"❌ {exc}")
            return False
        forest = forest_from_json(payload)
        for problem in check_forest(forest):
            print(f"[WARN] Stored library is inconsistent: {problem}")
        self._forest = forest
        self._status = SyncStatus.READY
        albums, images = count_nodes(forest)
        print(f"✅ Loaded library with {albums} album(s) and {images} image(s)")
        return True

    async def retry(self) -> bool:
        """Manual retry after a failed load; a loaded library is not fetched again."""

        if self._status is not SyncStatus.DEGRADED:
            return self.ready
        print("🔁 Retrying library load")
        return await self.load()

    # ------------------------------------------------------------------
    # Local edits
    # ------------------------------------------------------------------
    def apply(self, mutation: Callable[[Forest], Forest]) -> bool:
        """Apply *mutation* to the current forest; must run inside the event loop.

        Returns ``True`` when the forest changed and a background write was
        scheduled.
        """
        if self._status is not SyncStatus.READY:
            print(f"[WARN] Library is {self._status.value}; edit ignored")
            return False
        loop = asyncio.get_running_loop()
        current = self._forest
        updated = mutation(current)
        if updated is current or updated == current:
            return False
        self._forest = updated
        self._schedule_persist(loop, updated)
        return True

    def create_album(self, path: Iterable[str], name: str) -> bool:
        return self.apply(lambda forest: tree.create_album(forest, path, name, id_factory=self.id_factory))

    def add_images(self, path: Iterable[str], images: Sequence[Image]) -> bool:
        return self.apply(lambda forest: tree.add_images(forest, path, images))

    def delete_album(self, album_id: str) -> bool:
        return self.apply(lambda forest: tree.delete_album(forest, album_id))

    def delete_image(self, image_id: str) -> bool:
        return self.apply(lambda forest: tree.delete_image(forest, image_id))

    async def import_entries(self, path: Iterable[str], entries: Iterable[EntryDescriptor]) -> bool:
        if not self.ready:
            print(f"[WARN] Library is {self._status.value}; import ignored")
            return False
        target = list(path)
        staged = await stage_entries(entries)
        if not staged:
            return False
        # Staging awaited the host; merge into whatever the forest is now.
        return self.apply(
            lambda forest: tree.merge_import(
                forest,
                target,
                staged,
                image_factory=self.image_factory,
                id_factory=self.id_factory,
            )
        )

    # ------------------------------------------------------------------
    # Background persistence
    # ------------------------------------------------------------------
    def _schedule_persist(self, loop: asyncio.AbstractEventLoop, forest: Forest) -> None:
        payload = forest_to_json(forest)
        self._in_flight += 1
        task = loop.create_task(self._persist(payload))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _persist(self, payload: List[Dict[str, Any]]) -> None:
        try:
            await asyncio.to_thread(self.store.save, payload)
        except AlbumVaultError as exc:
            self.persist_failures += 1
            print(f"[WARN] Background sync failed; local changes kept: {exc}")
        finally:
            self._in_flight -= 1

    async def wait_idle(self) -> None:
        """Wait until every scheduled background write has finished; never raises."""

        while self._tasks:
            results = await asyncio.gather(*list(self._tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, Exception):
                    self.persist_failures += 1
                    print(f"[WARN] Background sync crashed; local changes kept: {result!r}")


__all__ = ["SyncController", "SyncStatus"]
