"""Pure tree rewrites: every function returns a new forest and leaves its input untouched."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Iterable, Optional, Sequence, Tuple

from album_vault.media import ImageFactory, StagedEntry, merge_staged
from album_vault.models import Album, Forest, Image, new_id
from album_vault.paths import AlbumPath, normalize_path


def _update_along(
    level: Tuple[Album, ...],
    path: AlbumPath,
    update: Callable[[Album], Album],
) -> Optional[Tuple[Album, ...]]:
    """Rebuild *level* with *update* applied to the album at the end of *path*.

    Returns ``None`` when the path does not resolve so callers can hand back the
    original forest untouched.
    """
    head, rest = path[0], path[1:]
    for index, album in enumerate(level):
        if album.id != head:
            continue
        if rest:
            children = _update_along(album.sub_albums, rest, update)
            if children is None:
                return None
            rebuilt = replace(album, sub_albums=children)
        else:
            rebuilt = update(album)
        return level[:index] + (rebuilt,) + level[index + 1:]
    return None


def update_album(forest: Forest, path: Iterable[str], update: Callable[[Album], Album]) -> Forest:
    album_path = normalize_path(path)
    if not album_path:
        return forest
    rebuilt = _update_along(forest, album_path, update)
    return forest if rebuilt is None else rebuilt


def create_album(
    forest: Forest,
    path: Iterable[str],
    name: str,
    *,
    id_factory: Callable[[], str] = new_id,
) -> Forest:
    if not (name or "").strip():
        return forest
    album_path = normalize_path(path)
    if not album_path:
        return forest + (Album(id=id_factory(), name=name),)
    created = Album(id=id_factory(), name=name)
    return update_album(forest, album_path, lambda album: replace(album, sub_albums=album.sub_albums + (created,)))


def add_images(forest: Forest, path: Iterable[str], images: Sequence[Image]) -> Forest:
    additions = tuple(images)
    album_path = normalize_path(path)
    if not album_path or not additions:
        return forest
    return update_album(forest, album_path, lambda album: replace(album, images=album.images + additions))


def _without_album(level: Tuple[Album, ...], album_id: str) -> Tuple[Tuple[Album, ...], bool]:
    kept = []
    changed = False
    for album in level:
        if album.id == album_id:
            # Descendants go with their ancestor; nothing below is visited.
            changed = True
            continue
        children, child_changed = _without_album(album.sub_albums, album_id)
        if child_changed:
            album = replace(album, sub_albums=children)
            changed = True
        kept.append(album)
    if not changed:
        return level, False
    return tuple(kept), True


def delete_album(forest: Forest, album_id: str) -> Forest:
    rebuilt, _ = _without_album(forest, album_id)
    return rebuilt


def _without_image(level: Tuple[Album, ...], image_id: str) -> Tuple[Tuple[Album, ...], bool]:
    rebuilt = []
    changed = False
    for album in level:
        images = tuple(image for image in album.images if image.id != image_id)
        children, child_changed = _without_image(album.sub_albums, image_id)
        if len(images) != len(album.images) or child_changed:
            album = replace(album, images=images, sub_albums=children)
            changed = True
        rebuilt.append(album)
    if not changed:
        return level, False
    return tuple(rebuilt), True


def delete_image(forest: Forest, image_id: str) -> Forest:
    rebuilt, _ = _without_image(forest, image_id)
    return rebuilt


def merge_import(
    forest: Forest,
    path: Iterable[str],
    staged: Sequence[StagedEntry],
    *,
    image_factory: ImageFactory,
    id_factory: Callable[[], str] = new_id,
) -> Forest:
    """Merge a staged folder import into the album at *path* (the library root when empty)."""

    if not staged:
        return forest
    album_path = normalize_path(path)
    if not album_path:
        # The root holds no images, so loose files at this level are dropped.
        _, roots = merge_staged(
            None,
            forest,
            staged,
            image_factory=image_factory,
            id_factory=id_factory,
        )
        return roots

    def _merge(album: Album) -> Album:
        images, children = merge_staged(
            album.images,
            album.sub_albums,
            staged,
            image_factory=image_factory,
            id_factory=id_factory,
        )
        return replace(album, images=images, sub_albums=children)

    return update_album(forest, album_path, _merge)


__all__ = [
    "add_images",
    "create_album",
    "delete_album",
    "delete_image",
    "merge_import",
    "update_album",
]
