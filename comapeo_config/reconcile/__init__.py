"""Reassembly of configuration drafts from archive entries."""

from .reconciler import (
    COMPONENT_FILENAMES,
    UNIFIED_FILENAME,
    ComponentReconciler,
    is_legacy_metadata,
    parse_json_entry,
)

__all__ = [
    "COMPONENT_FILENAMES",
    "UNIFIED_FILENAME",
    "ComponentReconciler",
    "is_legacy_metadata",
    "parse_json_entry",
]
