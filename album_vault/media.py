"""Media ingestion helpers: entry descriptors, staging and the folder-import merge."""

from __future__ import annotations

import asyncio
import mimetypes
import os
import random
import time
from dataclasses import dataclass, replace
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, Set, Tuple, Union
from urllib.parse import quote

from album_vault import config
from album_vault.models import Album, Image, new_id

APP = config.APP_CONFIG


@dataclass(frozen=True)
class FileHandle:
    """Metadata for one file offered for import; the bytes stay with the host."""

    name: str
    size: int
    content_type: Optional[str] = None
    uri: Optional[str] = None


class EntryDescriptor(Protocol):
    """File-system entry abstraction supplied by the host environment."""

    name: str
    is_file: bool
    is_directory: bool

    async def open_file(self) -> FileHandle: ...

    async def list_children(self) -> Sequence["EntryDescriptor"]: ...


@dataclass(frozen=True)
class StagedFile:
    handle: FileHandle


@dataclass(frozen=True)
class StagedDirectory:
    name: str
    children: Tuple["StagedEntry", ...] = ()


StagedEntry = Union[StagedFile, StagedDirectory]
ImageFactory = Callable[[FileHandle], Image]


# ------------------------------------------------------------------
# Local filesystem entries
# ------------------------------------------------------------------
class LocalEntry:
    """:class:`EntryDescriptor` backed by a path on the local filesystem."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.name = self.path.name
        self.is_file = self.path.is_file()
        self.is_directory = self.path.is_dir()

    def __repr__(self) -> str:
        return f"LocalEntry({str(self.path)!r})"

    async def open_file(self) -> FileHandle:
        return await asyncio.to_thread(self._describe)

    async def list_children(self) -> List["LocalEntry"]:
        return await asyncio.to_thread(self._scan)

    def _describe(self) -> FileHandle:
        stat = self.path.stat()
        content_type, _ = mimetypes.guess_type(self.path.name)
        return FileHandle(
            name=self.path.name,
            size=stat.st_size,
            content_type=content_type,
            uri=self.path.resolve().as_uri(),
        )

    def _scan(self) -> List["LocalEntry"]:
        try:
            with os.scandir(self.path) as iterator:
                return [LocalEntry(entry.path) for entry in iterator]
        except PermissionError:
            print(f"[WARN] Permission denied while scanning '{self.path}'; skipping its contents")
        except (FileNotFoundError, NotADirectoryError):
            print(f"[WARN] '{self.path}' disappeared before it could be scanned")
        except OSError as exc:
            print(f"[WARN] Unable to scan '{self.path}': {exc}")
        return []


def local_entries(paths: Iterable[Union[str, Path]]) -> List[LocalEntry]:
    entries: List[LocalEntry] = []
    for raw in paths:
        entry = LocalEntry(raw)
        if not (entry.is_file or entry.is_directory):
            print(f"⚠️ '{raw}' does not exist; skipping")
            continue
        entries.append(entry)
    return entries


# ------------------------------------------------------------------
# Image detection and construction
# ------------------------------------------------------------------
def is_image_handle(handle: FileHandle, extensions: Optional[Set[str]] = None) -> bool:
    content_type = handle.content_type or mimetypes.guess_type(handle.name)[0] or ""
    if content_type.lower().startswith("image/"):
        return True
    _, extension = os.path.splitext(handle.name)
    known = extensions if extensions is not None else APP.media.image_extensions
    return extension.lower() in known


def format_size(size: int) -> str:
    return f"{size / 1024:.1f} KB"


def placeholder_url(name: str, template: Optional[str] = None) -> str:
    seed = quote(f"{name}{random.random()}", safe="")
    return (template or APP.media.placeholder_url_template).format(seed=seed)


def local_file_url(handle: FileHandle) -> str:
    return handle.uri or placeholder_url(handle.name)


def default_url_factory(prefer_local: Optional[bool] = None) -> Callable[[FileHandle], str]:
    use_local = APP.media.prefer_local_urls if prefer_local is None else prefer_local
    if use_local:
        return local_file_url
    return lambda handle: placeholder_url(handle.name)


def build_image(
    handle: FileHandle,
    *,
    id_factory: Callable[[], str] = new_id,
    url_factory: Optional[Callable[[FileHandle], str]] = None,
    clock: Callable[[], float] = time.time,
) -> Image:
    url_for = url_factory or default_url_factory()
    return Image(
        id=id_factory(),
        name=handle.name,
        url=url_for(handle),
        size_label=format_size(handle.size),
        timestamp=int(clock() * 1000),
    )


def make_image_factory(
    *,
    id_factory: Callable[[], str] = new_id,
    url_factory: Optional[Callable[[FileHandle], str]] = None,
    clock: Callable[[], float] = time.time,
) -> ImageFactory:
    return partial(build_image, id_factory=id_factory, url_factory=url_factory, clock=clock)


# ------------------------------------------------------------------
# Staging and merge
# ------------------------------------------------------------------
async def stage_entries(
    entries: Iterable[EntryDescriptor],
    *,
    extensions: Optional[Set[str]] = None,
    skip_reserved: Optional[bool] = None,
) -> List[StagedEntry]:
    """Walk *entries* into plain staged records, keeping host order.

    Non-image files are dropped here so the merge step never needs to touch the
    host again.
    """
    skip = APP.media.skip_reserved_names if skip_reserved is None else skip_reserved
    staged: List[StagedEntry] = []
    for entry in entries:
        if entry.is_file:
            handle = await entry.open_file()
            if is_image_handle(handle, extensions):
                staged.append(StagedFile(handle))
            continue
        if not entry.is_directory:
            continue
        if skip and not config.is_valid_entry_name(entry.name):
            continue
        children = await entry.list_children()
        nested = await stage_entries(children, extensions=extensions, skip_reserved=skip)
        staged.append(StagedDirectory(entry.name, tuple(nested)))
    return staged


def merge_staged(
    images: Optional[Tuple[Image, ...]],
    sub_albums: Tuple[Album, ...],
    staged: Sequence[StagedEntry],
    *,
    image_factory: ImageFactory,
    id_factory: Callable[[], str] = new_id,
) -> Tuple[Tuple[Image, ...], Tuple[Album, ...]]:
    """Merge *staged* into one container and return its new ``(images, sub_albums)``.

    ``images=None`` marks a container that cannot hold images (the library root);
    staged files at that level are ignored. Directories reuse the first existing
    child album with exactly the same name.
    """
    collected: Optional[List[Image]] = list(images) if images is not None else None
    children: List[Album] = list(sub_albums)
    for item in staged:
        if isinstance(item, StagedFile):
            if collected is not None:
                collected.append(image_factory(item.handle))
            continue
        index = next((position for position, album in enumerate(children) if album.name == item.name), None)
        if index is None:
            children.append(Album(id=id_factory(), name=item.name))
            index = len(children) - 1
        target = children[index]
        merged_images, merged_children = merge_staged(
            target.images,
            target.sub_albums,
            item.children,
            image_factory=image_factory,
            id_factory=id_factory,
        )
        children[index] = replace(target, images=merged_images, sub_albums=merged_children)
    return (tuple(collected) if collected is not None else ()), tuple(children)


def count_staged(staged: Sequence[StagedEntry]) -> Tuple[int, int]:
    """Return ``(directories, images)`` contained in *staged*."""

    directories = 0
    files = 0
    for item in staged:
        if isinstance(item, StagedFile):
            files += 1
            continue
        directories += 1
        nested_dirs, nested_files = count_staged(item.children)
        directories += nested_dirs
        files += nested_files
    return directories, files


__all__ = [
    "EntryDescriptor",
    "FileHandle",
    "ImageFactory",
    "LocalEntry",
    "StagedDirectory",
    "StagedEntry",
    "StagedFile",
    "build_image",
    "count_staged",
    "default_url_factory",
    "format_size",
    "is_image_handle",
    "local_entries",
    "local_file_url",
    "make_image_factory",
    "merge_staged",
    "placeholder_url",
    "stage_entries",
]
