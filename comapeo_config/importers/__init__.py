"""Archive readers for the supported bundle formats."""

from typing import Union

from ..models import ArchiveKind
from .base import BaseArchiveReader, CancellationToken, ProgressCallback, ProgressReporter
from .zip_archive import ZipArchiveReader
from .legacy_tar import LegacyTarReader
from .sample import SampleConfigImporter


def detect_kind(filename: str) -> ArchiveKind:
    """Guess the container kind from a bundle filename."""
    if filename.lower().endswith(".mapeosettings"):
        return ArchiveKind.LEGACY_TAR
    return ArchiveKind.ZIP


def get_reader(kind: Union[ArchiveKind, str]) -> BaseArchiveReader:
    """Return a reader instance for the given archive kind."""
    kind = ArchiveKind(kind)
    if kind is ArchiveKind.LEGACY_TAR:
        return LegacyTarReader()
    return ZipArchiveReader()


__all__ = [
    "BaseArchiveReader",
    "CancellationToken",
    "ProgressCallback",
    "ProgressReporter",
    "ZipArchiveReader",
    "LegacyTarReader",
    "SampleConfigImporter",
    "detect_kind",
    "get_reader",
]
