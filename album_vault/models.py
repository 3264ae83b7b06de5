"""Album and image node definitions for the library tree."""

from __future__ import annotations

import uuid
from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple


def new_id() -> str:
    """Return a fresh opaque identifier for an album or image."""

    return uuid.uuid4().hex


@dataclass(frozen=True)
class Image:
    """Leaf node referencing one displayable picture."""

    id: str
    name: str
    url: str
    size_label: str = ""
    timestamp: Optional[int] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Image":
        size_label = data.get("size")
        if size_label is None:
            size_label = data.get("sizeLabel", "")
        timestamp = data.get("timestamp")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            url=str(data.get("url", "")),
            size_label=str(size_label or ""),
            timestamp=int(timestamp) if isinstance(timestamp, (int, float)) else None,
        )

    def to_json(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "size": self.size_label,
        }
        if self.timestamp is not None:
            payload["timestamp"] = self.timestamp
        return payload


@dataclass(frozen=True)
class Album:
    """Named folder node holding images and nested albums."""

    id: str
    name: str
    images: Tuple[Image, ...] = ()
    sub_albums: Tuple["Album", ...] = ()

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Album":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            images=tuple(Image.from_json(entry) for entry in data.get("images") or []),
            sub_albums=tuple(Album.from_json(entry) for entry in data.get("subAlbums") or []),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "images": [image.to_json() for image in self.images],
            "subAlbums": [album.to_json() for album in self.sub_albums],
        }

    def is_empty(self) -> bool:
        return not self.images and not self.sub_albums


Forest = Tuple[Album, ...]

EMPTY_FOREST: Forest = ()


def forest_from_json(data: Optional[List[Dict[str, Any]]]) -> Forest:
    return tuple(Album.from_json(entry) for entry in data or [])


def forest_to_json(forest: Forest) -> List[Dict[str, Any]]:
    return [album.to_json() for album in forest]


# ------------------------------------------------------------------
# Traversal helpers
# ------------------------------------------------------------------
def iter_albums(forest: Forest) -> Iterator[Tuple[Album, int]]:
    """Yield ``(album, depth)`` pairs depth-first in display order."""

    pending: List[Tuple[Album, int]] = [(album, 0) for album in reversed(forest)]
    while pending:
        album, depth = pending.pop()
        yield album, depth
        pending.extend((child, depth + 1) for child in reversed(album.sub_albums))


def iter_images(forest: Forest) -> Iterator[Image]:
    for album, _ in iter_albums(forest):
        yield from album.images


def find_album(forest: Forest, album_id: str) -> Optional[Album]:
    for album, _ in iter_albums(forest):
        if album.id == album_id:
            return album
    return None


def collect_ids(forest: Forest) -> List[str]:
    ids: List[str] = []
    for album, _ in iter_albums(forest):
        ids.append(album.id)
        ids.extend(image.id for image in album.images)
    return ids


def count_nodes(forest: Forest) -> Tuple[int, int]:
    """Return ``(album_count, image_count)`` for the whole forest."""

    albums = 0
    images = 0
    for album, _ in iter_albums(forest):
        albums += 1
        images += len(album.images)
    return albums, images


def check_forest(forest: Forest) -> List[str]:
    """Return human readable consistency problems; an empty list means healthy."""

    problems: List[str] = []
    counts = Counter(collect_ids(forest))
    for node_id, seen in sorted(counts.items()):
        if seen > 1:
            problems.append(f"id '{node_id}' appears {seen} times")
    return problems


__all__ = [
    "Album",
    "EMPTY_FOREST",
    "Forest",
    "Image",
    "check_forest",
    "collect_ids",
    "count_nodes",
    "find_album",
    "forest_from_json",
    "forest_to_json",
    "iter_albums",
    "iter_images",
    "new_id",
]
