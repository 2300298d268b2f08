"""
Archive entry and asset models.

Entries are what the archive readers decode; assets are the non-JSON part of
a configuration bundle (icons, the VERSION sentinel) that travel next to the
canonical configuration.
"""

import base64
import re
from dataclasses import dataclass
from enum import Enum
from typing import Union


RASTER_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp")

_DATA_URI = re.compile(r"^data:[^;,]*;base64,(?P<payload>.*)$", re.DOTALL)


class ArchiveKind(str, Enum):
    """Container formats a configuration bundle can arrive in."""

    ZIP = "zip"
    LEGACY_TAR = "legacy_tar"


def is_raster_path(path: str) -> bool:
    return path.lower().endswith(RASTER_EXTENSIONS)


@dataclass(frozen=True)
class ArchiveEntry:
    """A single named file decoded from an archive."""

    path: str
    is_binary: bool
    content: Union[str, bytes]

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    def text(self) -> str:
        """Entry content as text, decoding bytes as UTF-8."""
        if isinstance(self.content, bytes):
            return self.content.decode("utf-8")
        return self.content


@dataclass(frozen=True)
class TextContent:
    text: str

    def as_bytes(self) -> bytes:
        # Icons edited in the browser are sometimes stored as data URIs.
        match = _DATA_URI.match(self.text.strip())
        if match:
            return base64.b64decode(match.group("payload"))
        return self.text.encode("utf-8")


@dataclass(frozen=True)
class BinaryContent:
    data: bytes

    def as_bytes(self) -> bytes:
        return self.data


AssetContent = Union[TextContent, BinaryContent]


@dataclass(frozen=True)
class Asset:
    """A non-JSON file of a configuration bundle."""

    name: str
    path: str
    content: AssetContent

    @property
    def is_binary(self) -> bool:
        return isinstance(self.content, BinaryContent)

    @classmethod
    def from_entry(cls, entry: ArchiveEntry) -> "Asset":
        if entry.is_binary:
            data = entry.content if isinstance(entry.content, bytes) else entry.content.encode("utf-8")
            return cls(name=entry.name, path=entry.path, content=BinaryContent(data))
        return cls(name=entry.name, path=entry.path, content=TextContent(entry.text()))
