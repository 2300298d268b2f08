"""
Base archive reader interface.

This module defines the abstract interface that all archive readers must
implement, together with the progress and cancellation helpers they share.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..exceptions import ImportCancelled
from ..models import ArchiveEntry, is_raster_path


ProgressCallback = Callable[[int, str], None]


def make_entry(path: str, raw: bytes) -> ArchiveEntry:
    """Build an entry, decoding text files and keeping rasters as bytes."""
    if is_raster_path(path):
        return ArchiveEntry(path=path, is_binary=True, content=raw)
    try:
        return ArchiveEntry(path=path, is_binary=False, content=raw.decode("utf-8-sig"))
    except UnicodeDecodeError:
        logging.warning(f"Entry {path} is not valid UTF-8, keeping it as binary")
        return ArchiveEntry(path=path, is_binary=True, content=raw)


class CancellationToken:
    """
    Cooperative cancellation flag, checked by readers at every entry boundary.
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise ImportCancelled("Archive decode was cancelled")


class ProgressReporter:
    """
    Wraps a progress callback so reported percentages never decrease.
    """

    def __init__(self, callback: Optional[ProgressCallback] = None, start: int = 0, end: int = 100):
        self.callback = callback
        self.start = start
        self.end = end
        self._last = start

    def report(self, fraction: float, message: str) -> None:
        if self.callback is None:
            return
        fraction = min(max(fraction, 0.0), 1.0)
        percent = int(self.start + (self.end - self.start) * fraction)
        self._last = max(self._last, percent)
        self.callback(self._last, message)


class BaseArchiveReader(ABC):
    """
    Abstract base class for all archive readers.

    Each reader decodes a specific container format (ZIP, legacy tar) into a
    flat list of named entries. Readers know nothing about configuration
    semantics.
    """

    @abstractmethod
    def read(
        self,
        data: bytes,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[ArchiveEntry]:
        """
        Decode archive bytes into entries.

        Args:
            data: Raw archive bytes
            progress: Optional callback receiving (percent, message)
            cancel_token: Optional token checked between entries

        Returns:
            List of ArchiveEntry objects in archive order

        Raises:
            ArchiveFormatError: If the bytes are not a valid archive of this kind
        """
        pass
