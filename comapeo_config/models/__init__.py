"""Data models for the CoMapeo configuration toolkit."""

from .canonical import (
    CoMapeoConfig,
    CoMapeoField,
    CoMapeoMetadata,
    CoMapeoPreset,
    FieldOption,
    FieldType,
    Geometry,
    utc_now_iso,
)
from .assets import (
    ArchiveEntry,
    ArchiveKind,
    Asset,
    AssetContent,
    BinaryContent,
    TextContent,
    is_raster_path,
)
from .draft import ConfigDraft, ConversionDegraded

__all__ = [
    "CoMapeoConfig",
    "CoMapeoField",
    "CoMapeoMetadata",
    "CoMapeoPreset",
    "FieldOption",
    "FieldType",
    "Geometry",
    "utc_now_iso",
    "ArchiveEntry",
    "ArchiveKind",
    "Asset",
    "AssetContent",
    "BinaryContent",
    "TextContent",
    "is_raster_path",
    "ConfigDraft",
    "ConversionDegraded",
]
