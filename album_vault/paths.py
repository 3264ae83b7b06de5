"""Current-path resolution helpers shared across the library views."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from album_vault.errors import StalePathError
from album_vault.models import Album, Forest, Image

AlbumPath = Tuple[str, ...]


@dataclass(frozen=True)
class Resolution:
    """Album addressed by a path (``None`` for the library root) and its visible children."""

    node: Optional[Album]
    siblings: Tuple[Album, ...]
    path: AlbumPath

    @property
    def is_root(self) -> bool:
        return self.node is None


def normalize_path(value: Union[str, Iterable[str], None]) -> AlbumPath:
    if value is None:
        return ()
    if isinstance(value, str):
        tokens = value.split(",")
    else:
        tokens = list(value)
    return tuple(token.strip() for token in tokens if token and token.strip())


def _walk(forest: Forest, path: AlbumPath) -> Tuple[Resolution, Optional[str]]:
    node: Optional[Album] = None
    level: Tuple[Album, ...] = forest
    consumed: List[str] = []
    for album_id in path:
        match = next((album for album in level if album.id == album_id), None)
        if match is None:
            return Resolution(node, level, tuple(consumed)), album_id
        node = match
        level = match.sub_albums
        consumed.append(album_id)
    return Resolution(node, level, tuple(consumed)), None


def resolve(forest: Forest, path: Iterable[str]) -> Resolution:
    """Resolve *path* from the forest root, raising :class:`StalePathError` when it is stale."""

    resolution, missing = _walk(forest, normalize_path(path))
    if missing is not None:
        raise StalePathError(missing, resolution.path)
    return resolution


def resolve_prefix(forest: Forest, path: Iterable[str]) -> Resolution:
    """Resolve the longest valid prefix of *path*; never raises."""

    resolution, _ = _walk(forest, normalize_path(path))
    return resolution


def repair_path(forest: Forest, path: Iterable[str]) -> AlbumPath:
    return resolve_prefix(forest, path).path


def current_images(forest: Forest, path: Iterable[str]) -> Tuple[Image, ...]:
    node = resolve_prefix(forest, path).node
    return node.images if node is not None else ()


def breadcrumbs(forest: Forest, path: Iterable[str]) -> List[Tuple[str, str]]:
    crumbs: List[Tuple[str, str]] = []
    level: Tuple[Album, ...] = forest
    for album_id in normalize_path(path):
        match = next((album for album in level if album.id == album_id), None)
        if match is None:
            break
        crumbs.append((match.id, match.name))
        level = match.sub_albums
    return crumbs


__all__ = [
    "AlbumPath",
    "Resolution",
    "breadcrumbs",
    "current_images",
    "normalize_path",
    "repair_path",
    "resolve",
    "resolve_prefix",
]
