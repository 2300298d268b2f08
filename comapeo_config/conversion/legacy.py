"""
Legacy (Mapeo) to CoMapeo schema conversion.

Maps a reconciled and shape-normalized Mapeo draft onto the current schema:
renames field attributes, derives preset colors from their ids and repairs
translation trees that carry field definitions instead of translations.
"""

import logging
from typing import Any, Dict, Optional

from ..config import config
from ..exceptions import ConversionDegradedError
from ..models import (
    CoMapeoConfig,
    CoMapeoField,
    CoMapeoMetadata,
    CoMapeoPreset,
    ConfigDraft,
    FieldOption,
    utc_now_iso,
)
from ..normalize import DegradationLog, ShapeNormalizer, normalize_options, slugify
from ..normalize.normalizer import DEFAULT_ICON, first_text
from ..normalize.shapes import coerce_field_type


GENERIC_DESCRIPTION = "Converted from a Mapeo configuration"
PLACEHOLDER_DESCRIPTION = "Conversion of the Mapeo configuration failed; this is an empty placeholder"


def derive_color(identifier: str) -> str:
    """
    Deterministic #rrggbb color for a preset id.

    Folds ``unit + ((acc << 5) - acc)`` over the UTF-16 code units of the id
    with 32-bit integer wrap-around and keeps the low 24 bits. Characters
    outside the BMP contribute both halves of their surrogate pair.
    """
    encoded = identifier.encode("utf-16-le", "surrogatepass")
    acc = 0
    for index in range(0, len(encoded), 2):
        unit = int.from_bytes(encoded[index:index + 2], "little")
        acc = (unit + ((acc << 5) - acc)) & 0xFFFFFFFF
    return f"#{acc & 0xFFFFFF:06x}"


class LegacyConverter:
    """
    Converts normalized Mapeo drafts into CoMapeo configurations.
    """

    def __init__(self, normalizer: Optional[ShapeNormalizer] = None):
        """
        Initialize the converter.

        Args:
            normalizer: Normalizer whose degradation log also receives
                conversion notices (a fresh one is created when omitted)
        """
        self.normalizer = normalizer or ShapeNormalizer()

    @property
    def log(self) -> DegradationLog:
        return self.normalizer.log

    def convert(self, draft: ConfigDraft) -> CoMapeoConfig:
        """
        Convert a legacy draft.

        The draft is normalized first; normalizing an already-normalized
        draft is a no-op.

        Args:
            draft: Draft flagged as legacy by the reconciler

        Returns:
            The converted canonical configuration
        """
        normalized = self.normalizer.normalize_draft(draft)
        converted = CoMapeoConfig(
            metadata=self.convert_metadata(normalized.metadata),
            fields=[self.convert_field(record) for record in normalized.fields],
            presets=[self.convert_preset(record) for record in normalized.presets],
            translations=self.convert_translations(normalized.translations),
            icons=normalized.icons,
        )
        logging.info(
            f"Converted Mapeo configuration: {len(converted.fields)} fields, "
            f"{len(converted.presets)} presets, {len(converted.translations)} locales"
        )
        return converted

    def convert_or_placeholder(self, draft: ConfigDraft) -> CoMapeoConfig:
        """
        Convert a legacy draft, substituting an empty placeholder on failure.

        Conversion runs automatically mid-import, so a failure must still
        leave a loadable document. Strict-mode errors are not substituted.
        """
        try:
            return self.convert(draft)
        except ConversionDegradedError:
            raise
        except Exception as e:
            logging.error(f"Mapeo conversion failed, using placeholder configuration: {e}", exc_info=True)
            return placeholder_config(str(e))

    def convert_metadata(self, metadata: Dict[str, Any]) -> CoMapeoMetadata:
        version = first_text(metadata, "version", default=config.default_version)
        if version.startswith("v"):
            version = version[1:]
        dataset_id = first_text(metadata, "dataset_id")
        description = f"Converted from Mapeo dataset {dataset_id}" if dataset_id else GENERIC_DESCRIPTION
        return CoMapeoMetadata(
            name=first_text(metadata, "name", default=config.default_config_name),
            version=version or config.default_version,
            file_version="1",
            build_date=utc_now_iso(),
            description=description,
        )

    def convert_field(self, record: Dict[str, Any]) -> CoMapeoField:
        field_type = coerce_field_type(record.get("type"), self.log, f"fields.{record['id']}")
        options = None
        if field_type.is_select:
            options = [FieldOption(**option) for option in record.get("options", [])]
        return CoMapeoField(
            id=record["id"],
            name=first_text(record, "label", "name", "id"),
            tag_key=first_text(record, "key", "tagKey", "id"),
            type=field_type,
            universal=bool(record.get("universal", False)),
            helper_text=first_text(record, "placeholder", "helperText"),
            options=options,
        )

    def convert_preset(self, record: Dict[str, Any]) -> CoMapeoPreset:
        # Legacy colors are not carried over; they are derived from the id
        return CoMapeoPreset(
            id=record["id"],
            name=first_text(record, "name", "id"),
            tags=record.get("tags", {}),
            color=derive_color(record["id"]),
            icon=first_text(record, "icon", default=DEFAULT_ICON),
            field_refs=record.get("fieldRefs", []),
            remove_tags=record.get("removeTags"),
            add_tags=record.get("addTags"),
            geometry=self.normalizer.build_geometry(record.get("geometry"), f"presets.{record['id']}"),
        )

    def convert_translations(self, translations: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
        """
        Walk every locale tree and repair field entries and option maps.
        """
        return {
            locale: self._convert_node(tree, locale) if isinstance(tree, dict) else {}
            for locale, tree in translations.items()
        }

    def _convert_node(self, node: Dict[str, Any], path: str) -> Dict[str, Any]:
        converted: Dict[str, Any] = {}
        for key, value in node.items():
            location = f"{path}/{key}"
            if key == "fields" and isinstance(value, dict):
                converted[key] = {
                    field_id: self._convert_field_translation(entry, f"{location}/{field_id}")
                    for field_id, entry in value.items()
                }
            elif key == "options" and isinstance(value, dict):
                converted[key] = self._convert_option_map(value, location)
            elif isinstance(value, dict):
                converted[key] = self._convert_node(value, location)
            else:
                converted[key] = value
        return converted

    def _convert_field_translation(self, entry: Any, location: str) -> Any:
        if not isinstance(entry, dict):
            return entry
        if "key" in entry or "type" in entry:
            # A field definition stored where its translation belongs
            self.log.record("translations", location, "field definition coerced into a translation entry")
            labels = {}
            for option in normalize_options(entry.get("options", []), self.log, f"{location}/options"):
                labels[option["value"]] = option["label"]
            return {
                "label": first_text(entry, "label", "name"),
                "helperText": first_text(entry, "helperText", "placeholder"),
                "options": labels,
            }
        converted = self._convert_node(entry, location)
        if "placeholder" in converted and "helperText" not in converted:
            converted["helperText"] = converted.pop("placeholder")
        return converted

    def _convert_option_map(self, options: Dict[str, Any], location: str) -> Dict[str, Any]:
        if not any(isinstance(value, list) for value in options.values()):
            return self._convert_node(options, location)
        labels: Dict[str, Any] = {}
        for key, value in options.items():
            if isinstance(value, list):
                for option in normalize_options(value, self.log, f"{location}/{key}"):
                    labels[option["value"]] = option["label"]
            else:
                labels[slugify(key)] = value
        return labels


def placeholder_config(reason: str = "") -> CoMapeoConfig:
    """Minimal empty configuration used when legacy conversion fails."""
    description = PLACEHOLDER_DESCRIPTION
    if reason:
        description = f"{description} ({reason})"
    return CoMapeoConfig(
        metadata=CoMapeoMetadata(
            name=config.default_config_name,
            version=config.default_version,
            file_version="1",
            build_date=utc_now_iso(),
            description=description,
        )
    )
