"""
Archive writer for CoMapeo configurations.

Serializes a canonical configuration and its assets into a ZIP bundle that
later versions of the toolkit, and older tools expecting per-section files,
can both read.
"""

import io
import json
import logging
import zipfile
from typing import Any, Dict, List, Optional

from ..config import config
from ..models import Asset, CoMapeoConfig
from ..normalize.icons import ICON_PREFIX


UNIFIED_FILENAME = "config.json"


def _dumps(document: Any) -> str:
    return json.dumps(document, indent=2, ensure_ascii=False)


def fields_by_id(configuration: CoMapeoConfig) -> Dict[str, Dict[str, Any]]:
    """Fields keyed by id in the per-section file layout."""
    fields = {}
    for field in configuration.fields:
        entry: Dict[str, Any] = {
            "tagKey": field.tag_key,
            "type": field.type.value,
            "label": field.name,
            "helperText": field.helper_text,
            "universal": field.universal,
        }
        if field.options is not None:
            entry["options"] = [option.model_dump() for option in field.options]
        fields[field.id] = entry
    return fields


def presets_by_id(configuration: CoMapeoConfig) -> Dict[str, Dict[str, Any]]:
    """Presets keyed by id in the per-section file layout."""
    presets = {}
    for preset in configuration.presets:
        entry: Dict[str, Any] = {
            "name": preset.name,
            "tags": preset.tags,
            "color": preset.color,
            "icon": preset.icon,
            "fields": list(preset.field_refs),
            "geometry": [geometry.value for geometry in preset.geometry],
        }
        if preset.remove_tags is not None:
            entry["removeTags"] = preset.remove_tags
        if preset.add_tags is not None:
            entry["addTags"] = preset.add_tags
        presets[preset.id] = entry
    return presets


class ArchiveWriter:
    """
    Writes configuration bundles as deflated ZIP archives.
    """

    def __init__(self, version_filename: Optional[str] = None):
        """
        Initialize the writer.

        Args:
            version_filename: Name of the version sentinel file (defaults to config)
        """
        self.version_filename = version_filename or config.version_filename

    def write(self, configuration: CoMapeoConfig, assets: List[Asset]) -> bytes:
        """
        Serialize a configuration and its assets.

        Args:
            configuration: The canonical configuration
            assets: Assets travelling with it; only those under icons/ are written

        Returns:
            The ZIP archive bytes
        """
        document = configuration.to_document()
        buffer = io.BytesIO()

        with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(UNIFIED_FILENAME, _dumps(document))
            archive.writestr("metadata.json", _dumps(document["metadata"]))
            archive.writestr("presets.json", _dumps(presets_by_id(configuration)))
            archive.writestr("fields.json", _dumps(fields_by_id(configuration)))
            archive.writestr("translations.json", _dumps(document["translations"]))
            archive.writestr("icons.json", _dumps(document["icons"]))
            archive.writestr(self.version_filename, configuration.metadata.file_version)

            written = 0
            for asset in assets:
                if not asset.path.startswith(ICON_PREFIX):
                    continue
                archive.writestr(asset.path, asset.content.as_bytes())
                written += 1

        logging.info(
            f"Wrote archive for '{configuration.metadata.name}' with "
            f"{len(configuration.presets)} presets and {written} icon files"
        )
        return buffer.getvalue()
