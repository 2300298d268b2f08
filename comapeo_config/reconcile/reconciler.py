"""
Component reconciler.

Decides whether an archive carries a single unified configuration document
or a set of per-section component files, and reassembles one draft document
either way. Legacy (Mapeo) quirks in the component layout are resolved here;
per-value shape differences are left to the shape normalizer.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import ConfigParseError
from ..models import ArchiveEntry, Asset, ConfigDraft, utc_now_iso


UNIFIED_FILENAME = "config.json"

COMPONENT_FILENAMES = {
    "metadata": "metadata.json",
    "presets": "presets.json",
    "fields": "fields.json",
    "translations": "translations.json",
    "icons": "icons.json",
}

SECTIONS = ("metadata", "fields", "presets", "translations", "icons")

# Siblings of presets in a legacy presets.json that are not presets themselves
NON_PRESET_KEYS = ("fields", "categories", "defaults")

LEGACY_MARKER = "dataset_id"


def is_legacy_metadata(metadata: Any) -> bool:
    """A metadata document is legacy (Mapeo) iff it carries a dataset_id."""
    return isinstance(metadata, dict) and LEGACY_MARKER in metadata


def parse_json_entry(entry: ArchiveEntry) -> Any:
    """
    Parse a JSON archive entry.

    Raises:
        ConfigParseError: If the entry is not valid JSON
    """
    try:
        return json.loads(entry.text())
    except (ValueError, UnicodeDecodeError) as e:
        raise ConfigParseError(entry.path, str(e))


class ComponentReconciler:
    """
    Reassembles a ConfigDraft from a flat list of archive entries.
    """

    def reconcile(self, entries: List[ArchiveEntry]) -> Tuple[ConfigDraft, bool]:
        """
        Build a draft document from archive entries.

        The unified config.json always wins over component reassembly when
        both are present.

        Args:
            entries: Entries decoded by an archive reader

        Returns:
            Tuple of (draft, is_legacy_schema)

        Raises:
            ConfigParseError: If a located JSON entry cannot be parsed
        """
        unified = self._find_unified(entries)
        if unified is not None:
            logging.info(f"Found unified {UNIFIED_FILENAME}, using it directly")
            draft = self._draft_from_unified(unified)
        else:
            logging.info("No unified config found, reconstructing from component files")
            draft = self._draft_from_components(entries)

        if not draft.metadata.get("buildDate"):
            draft.metadata["buildDate"] = utc_now_iso()

        is_legacy = is_legacy_metadata(draft.metadata)
        logging.info(f"Detected {'legacy Mapeo' if is_legacy else 'CoMapeo'} schema")
        return draft, is_legacy

    def collect_assets(self, entries: List[ArchiveEntry]) -> List[Asset]:
        """
        Collect every non-JSON entry (icons, VERSION) into the asset list.

        Args:
            entries: Entries decoded by an archive reader

        Returns:
            Assets in archive order
        """
        return [Asset.from_entry(entry) for entry in entries if not self._is_json(entry)]

    @staticmethod
    def _is_json(entry: ArchiveEntry) -> bool:
        return entry.path.lower().endswith(".json")

    @staticmethod
    def _find_unified(entries: List[ArchiveEntry]) -> Optional[ArchiveEntry]:
        return next(
            (entry for entry in entries if entry.path == UNIFIED_FILENAME),
            None,
        )

    def _draft_from_unified(self, entry: ArchiveEntry) -> ConfigDraft:
        document = parse_json_entry(entry)
        if not isinstance(document, dict):
            raise ConfigParseError(entry.path, "expected a JSON object at the top level")

        draft = ConfigDraft()
        metadata = document.get("metadata")
        draft.metadata = dict(metadata) if isinstance(metadata, dict) else {}
        draft.fields = document.get("fields", [])
        draft.presets = document.get("presets", [])
        draft.translations = document.get("translations", {})
        draft.icons = document.get("icons", {})

        # A legacy unified document may still nest fields inside presets.
        if not draft.fields and isinstance(draft.presets, dict):
            draft.fields, draft.presets = self._split_presets_component(draft.presets, draft.fields)

        return draft

    def _draft_from_components(self, entries: List[ArchiveEntry]) -> ConfigDraft:
        components: Dict[str, Any] = {}
        for section, filename in COMPONENT_FILENAMES.items():
            entry = self._find_component(entries, filename)
            if entry is not None:
                components[section] = parse_json_entry(entry)
                logging.info(f"Extracted component file: {entry.path}")

        draft = ConfigDraft()
        metadata = components.get("metadata")
        draft.metadata = dict(metadata) if isinstance(metadata, dict) else {}

        fields_component = components.get("fields")
        presets_component = components.get("presets")
        if isinstance(presets_component, dict):
            fields_component, presets_component = self._split_presets_component(
                presets_component, fields_component
            )

        draft.fields = fields_component if fields_component is not None else []
        draft.presets = presets_component if presets_component is not None else []

        translations = components.get("translations")
        draft.translations = translations if translations is not None else {}
        icons = components.get("icons")
        draft.icons = icons if icons is not None else {}

        return draft

    @staticmethod
    def _split_presets_component(presets_component: Dict[str, Any],
                                 fields_component: Any) -> Tuple[Any, Any]:
        """
        Resolve the legacy presets.json layouts.

        Returns:
            Tuple of (fields_component, presets_value)
        """
        if not fields_component and isinstance(presets_component.get("fields"), (dict, list)):
            logging.info("Promoting fields nested in presets component")
            fields_component = presets_component["fields"]

        nested = presets_component.get("presets")
        if isinstance(nested, (dict, list)):
            presets_value = nested
        else:
            presets_value = {
                key: value for key, value in presets_component.items()
                if key not in NON_PRESET_KEYS
            }
        return fields_component, presets_value

    @staticmethod
    def _find_component(entries: List[ArchiveEntry], filename: str) -> Optional[ArchiveEntry]:
        candidates = [
            entry for entry in entries
            if entry.name == filename
        ]
        if not candidates:
            return None
        # The shallowest path wins, first in archive order on ties
        return min(candidates, key=lambda entry: entry.path.count("/"))
