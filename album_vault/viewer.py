"""Lightbox index navigation over the open album's photos."""

from __future__ import annotations

from typing import Callable, Optional, Sequence

from album_vault.models import Image


class ViewerNavigator:
    """Tracks the displayed photo index; the photo list is re-read on every call.

    Reading the photo list may close the viewer (the open album can vanish
    underneath it), so every method fetches the list before looking at
    ``index``.
    """

    def __init__(self, photos: Callable[[], Sequence[Image]]) -> None:
        self._photos = photos
        self.index: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.index is not None

    def open(self, index: int) -> bool:
        if not 0 <= index < len(self._photos()):
            return False
        self.index = index
        return True

    def close(self) -> None:
        self.index = None

    def next(self) -> Optional[int]:
        return self._step(1)

    def prev(self) -> Optional[int]:
        return self._step(-1)

    def _step(self, offset: int) -> Optional[int]:
        total = len(self._photos())
        if self.index is None:
            return None
        if total == 0:
            self.close()
            return None
        self.index = (self.index + offset) % total
        return self.index

    def repair(self) -> Optional[int]:
        """Re-fit the index after the photo list shrank."""

        total = len(self._photos())
        if self.index is None:
            return None
        if total == 0:
            self.close()
            return None
        self.index = min(self.index, total - 1)
        return self.index

    def current(self) -> Optional[Image]:
        photos = self._photos()
        if self.index is None or not 0 <= self.index < len(photos):
            return None
        return photos[self.index]

    def position_label(self) -> str:
        total = len(self._photos())
        if self.index is None:
            return ""
        return f"{self.index + 1} / {total}"


__all__ = ["ViewerNavigator"]
