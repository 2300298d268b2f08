"""Export of canonical configurations to distributable archives."""

from .archive_writer import ArchiveWriter, fields_by_id, presets_by_id
from .builder import BuildClient

__all__ = ["ArchiveWriter", "BuildClient", "fields_by_id", "presets_by_id"]
