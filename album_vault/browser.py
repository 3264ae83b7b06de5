"""User-intent layer: current path, viewer state and folder operations."""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from album_vault.media import EntryDescriptor, FileHandle, is_image_handle
from album_vault.models import Album, Forest, Image
from album_vault.paths import AlbumPath, breadcrumbs, normalize_path, resolve_prefix
from album_vault.sync import SyncController
from album_vault.viewer import ViewerNavigator

ROOT_TITLE = "Library"


class LibraryBrowser:
    """Coordinates navigation and edits against a :class:`SyncController`."""

    def __init__(self, controller: SyncController, path: Iterable[str] = ()) -> None:
        self.controller = controller
        self._path: AlbumPath = normalize_path(path)
        self.viewer = ViewerNavigator(lambda: self.active_photos)

    # ------------------------------------------------------------------
    # Path state
    # ------------------------------------------------------------------
    @property
    def current_path(self) -> AlbumPath:
        return self.repair()

    def repair(self) -> AlbumPath:
        """Truncate the open path to its longest prefix that still exists."""

        repaired = resolve_prefix(self.controller.forest, self._path).path
        if repaired != self._path:
            print(f"[INFO] Open album vanished; returning to {' / '.join(repaired) or 'the library root'}")
            self._path = repaired
            self.viewer.close()
        return self._path

    def enter(self, album_id: str) -> bool:
        if not any(album.id == album_id for album in self.directory):
            return False
        self._path = self.current_path + (album_id,)
        self.viewer.close()
        return True

    def up(self) -> None:
        self._path = self.current_path[:-1]
        self.viewer.close()

    def go_to(self, depth: int) -> None:
        """Jump to the breadcrumb at *depth* (0 is the library root)."""

        self._path = self.current_path[: max(0, depth)]
        self.viewer.close()

    def go_root(self) -> None:
        self.go_to(0)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    @property
    def current_album(self) -> Optional[Album]:
        return resolve_prefix(self.controller.forest, self.current_path).node

    @property
    def directory(self) -> Tuple[Album, ...]:
        return resolve_prefix(self.controller.forest, self.current_path).siblings

    @property
    def active_photos(self) -> Tuple[Image, ...]:
        album = self.current_album
        return album.images if album is not None else ()

    @property
    def breadcrumbs(self) -> List[Tuple[str, str]]:
        return breadcrumbs(self.controller.forest, self.current_path)

    @property
    def title(self) -> str:
        album = self.current_album
        return album.name if album is not None else ROOT_TITLE

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------
    def create_album(self, name: str) -> bool:
        return self.controller.create_album(self.current_path, name)

    def upload(self, handles: Sequence[FileHandle]) -> bool:
        path = self.current_path
        if not path:
            return False
        images = [self.controller.image_factory(handle) for handle in handles if is_image_handle(handle)]
        return self.controller.add_images(path, images)

    async def import_folder(self, entries: Iterable[EntryDescriptor]) -> bool:
        return await self.controller.import_entries(self.current_path, entries)

    def delete_album(self, album_id: str) -> bool:
        changed = self.controller.delete_album(album_id)
        if changed:
            self.repair()
        return changed

    def delete_image(self, image_id: str) -> bool:
        changed = self.controller.delete_image(image_id)
        if changed:
            self.viewer.repair()
        return changed


def render_tree(forest: Forest, *, show_images: bool = False) -> str:
    if not forest:
        return "(empty library)"
    lines: List[str] = []

    def _render(albums: Sequence[Album], depth: int) -> None:
        for album in albums:
            indent = "  " * depth
            lines.append(f"{indent}📁 {album.name} [{album.id}] ({len(album.images)} image(s))")
            if show_images:
                for image in album.images:
                    lines.append(f"{indent}  🖼️ {image.name} [{image.id}] {image.size_label}")
            _render(album.sub_albums, depth + 1)

    _render(forest, 0)
    return "\n".join(lines)


__all__ = ["LibraryBrowser", "ROOT_TITLE", "render_tree"]
