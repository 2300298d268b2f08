"""
Legacy tar reader for .mapeosettings bundles.

Mapeo settings files are POSIX tar containers. Only the handful of header
fields needed to walk the archive are decoded: the name (bytes 0-100), the
octal size (bytes 124-136), the checksum (bytes 148-156), the type flag and
the ustar prefix. Entries that are not configuration files are skipped.
"""

import logging
from typing import Iterable, List, Optional

from ..config import config
from ..exceptions import ArchiveFormatError
from ..models import ArchiveEntry
from .base import BaseArchiveReader, CancellationToken, ProgressCallback, ProgressReporter, make_entry


BLOCK_SIZE = 512
ZIP_MAGIC = b"PK\x03\x04"

# Regular file, old-style regular file, contiguous file
REGULAR_TYPES = (b"0", b"\0", b"7")


def _parse_octal(field: bytes) -> int:
    """Parse a NUL/space terminated octal header field."""
    text = field.lstrip(b" ")
    for terminator in (b"\0", b" "):
        text = text.split(terminator, 1)[0]
    return int(text.decode("ascii"), 8)


def _header_checksum(header: bytes) -> int:
    # The checksum field itself counts as eight spaces.
    return sum(header[:148]) + 8 * 32 + sum(header[156:BLOCK_SIZE])


class LegacyTarReader(BaseArchiveReader):
    """
    Minimal reader for fixed 512-byte-block POSIX tar archives.
    """

    def __init__(self, config_extensions: Optional[Iterable[str]] = None,
                 version_filename: Optional[str] = None):
        """
        Initialize the legacy tar reader.

        Args:
            config_extensions: File extensions to retain (defaults to config value)
            version_filename: Sentinel filename retained regardless of extension
        """
        extensions = config_extensions if config_extensions is not None else config.config_extensions
        self.config_extensions = tuple(ext.lower() for ext in extensions)
        self.version_filename = version_filename or config.version_filename

    def read(
        self,
        data: bytes,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[ArchiveEntry]:
        reporter = ProgressReporter(progress)
        reporter.report(0.0, "Reading legacy settings archive...")

        if data.startswith(ZIP_MAGIC):
            raise ArchiveFormatError("Expected a tar archive but found ZIP data")

        entries: List[ArchiveEntry] = []
        total = len(data) or 1
        offset = 0

        while offset < len(data):
            if cancel_token:
                cancel_token.raise_if_cancelled()

            header = data[offset:offset + BLOCK_SIZE]
            if len(header) < BLOCK_SIZE or not any(header):
                # Truncated or all-zero header marks the end of the archive
                break

            name = header[0:100].split(b"\0", 1)[0].decode("utf-8", errors="replace")
            if not name:
                break

            self._verify_checksum(header, name)

            magic = header[257:262]
            if magic == b"ustar":
                prefix = header[345:500].split(b"\0", 1)[0].decode("utf-8", errors="replace")
                if prefix:
                    name = f"{prefix}/{name}"

            try:
                size = _parse_octal(header[124:136])
            except (ValueError, UnicodeDecodeError):
                raise ArchiveFormatError(
                    f"Invalid size field {header[124:136]!r}", entry=name
                )

            offset += BLOCK_SIZE
            end = offset + size
            if end > len(data):
                raise ArchiveFormatError("Entry content extends past end of archive", entry=name)

            type_flag = header[156:157]
            path = name[2:] if name.startswith("./") else name
            if size > 0 and type_flag in REGULAR_TYPES and self._is_wanted(path):
                entries.append(make_entry(path, data[offset:end]))
                reporter.report(end / total, f"Extracted {path}")

            # Content is padded to the next 512-byte boundary
            offset += -(-size // BLOCK_SIZE) * BLOCK_SIZE

        reporter.report(1.0, "Finished reading legacy settings archive")
        logging.info(f"Read {len(entries)} entries from legacy tar archive")
        return entries

    @staticmethod
    def _verify_checksum(header: bytes, name: str) -> None:
        try:
            stored = _parse_octal(header[148:156])
        except (ValueError, UnicodeDecodeError):
            raise ArchiveFormatError("Invalid tar header checksum field", entry=name)
        if stored != _header_checksum(header):
            raise ArchiveFormatError("Tar header checksum mismatch", entry=name)

    def _is_wanted(self, path: str) -> bool:
        basename = path.rsplit("/", 1)[-1]
        return basename == self.version_filename or basename.lower().endswith(self.config_extensions)

