"""
ZIP archive reader.

Decodes .comapeocat bundles (and any plain ZIP export) into archive entries.
"""

import io
import logging
import zipfile
import zlib
from typing import List, Optional

from ..exceptions import ArchiveFormatError
from ..models import ArchiveEntry
from .base import BaseArchiveReader, CancellationToken, ProgressCallback, ProgressReporter, make_entry


class ZipArchiveReader(BaseArchiveReader):
    """
    Reader for ZIP-family containers using the central directory.

    Entries with a raster image extension are returned as bytes; everything
    else is decoded as UTF-8 text.
    """

    def read(
        self,
        data: bytes,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[ArchiveEntry]:
        reporter = ProgressReporter(progress)
        reporter.report(0.0, "Opening ZIP archive...")

        try:
            archive = zipfile.ZipFile(io.BytesIO(data), 'r')
        except zipfile.BadZipFile as e:
            raise ArchiveFormatError(f"Not a valid ZIP archive: {e}")

        entries: List[ArchiveEntry] = []
        with archive:
            infos = [info for info in archive.infolist() if not info.is_dir()]
            total = len(infos) or 1

            for index, info in enumerate(infos):
                if cancel_token:
                    cancel_token.raise_if_cancelled()

                if info.filename.startswith("__MACOSX/"):
                    continue

                try:
                    raw = archive.read(info)
                except (zipfile.BadZipFile, zlib.error, RuntimeError, EOFError) as e:
                    raise ArchiveFormatError(f"Corrupt ZIP entry: {e}", entry=info.filename)

                entries.append(make_entry(info.filename, raw))
                reporter.report((index + 1) / total, f"Extracted {info.filename}")

        logging.info(f"Read {len(entries)} entries from ZIP archive")
        return entries

