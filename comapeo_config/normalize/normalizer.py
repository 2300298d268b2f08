"""
Shape normalizer.

Converts each draft section from whatever shape it was found in into one
canonical shape, and assembles canonical-schema drafts into CoMapeoConfig.
Normalization is idempotent and never fails on a bad sub-value: defaults are
substituted and a ConversionDegraded notice is recorded instead.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models import (
    CoMapeoConfig,
    CoMapeoField,
    CoMapeoMetadata,
    CoMapeoPreset,
    ConfigDraft,
    ConversionDegraded,
    FieldOption,
    Geometry,
    utc_now_iso,
)
from .degradation import DegradationLog
from .icons import normalize_icons
from .shapes import (
    as_text,
    coerce_field_type,
    collection_chain,
    normalize_options,
    string_list,
    string_mapping,
    strip_quotes,
)
from .translations import normalize_translations


SECTION_KINDS = ("metadata", "fields", "presets", "translations", "icons")

DEFAULT_COLOR = "#000000"
DEFAULT_ICON = "default"


def first_text(record: Dict[str, Any], *keys: str, default: str = "") -> str:
    """First non-empty scalar among the given keys, as text."""
    for key in keys:
        value = record.get(key)
        if value is not None and not isinstance(value, (dict, list)) and as_text(value) != "":
            return as_text(value)
    return default


class ShapeNormalizer:
    """
    Normalizes draft sections and builds canonical configurations.
    """

    def __init__(self, strict: Optional[bool] = None, log: Optional[DegradationLog] = None):
        """
        Initialize the normalizer.

        Args:
            strict: Raise on the first shape irregularity instead of recovering
                (defaults to the normalization.strict config value)
            log: Shared degradation log, e.g. one also used by the legacy converter
        """
        self.log = log or DegradationLog(strict)

    @property
    def degradations(self) -> List[ConversionDegraded]:
        return self.log.notices

    def normalize(self, value: Any, kind: str) -> Any:
        """
        Normalize one section value.

        Args:
            value: The raw section value from a draft
            kind: One of metadata, fields, presets, translations, icons

        Returns:
            The section in canonical shape
        """
        if kind == "metadata":
            return self._normalize_metadata(value)
        if kind == "fields":
            return self._normalize_fields(value)
        if kind == "presets":
            return self._normalize_presets(value)
        if kind == "translations":
            return normalize_translations(value, self.log)
        if kind == "icons":
            return normalize_icons(value, self.log)
        raise ValueError(f"Unknown section kind: {kind}")

    def normalize_draft(self, draft: ConfigDraft) -> ConfigDraft:
        """Return a new draft with every section normalized."""
        return ConfigDraft(**{kind: self.normalize(draft.section(kind), kind) for kind in SECTION_KINDS})

    def _normalize_metadata(self, raw: Any) -> Dict[str, Any]:
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            self.log.record("metadata", "", f"expected a mapping, got {type(raw).__name__}")
            return {}
        metadata = {strip_quotes(k): v for k, v in raw.items()}
        if isinstance(metadata.get("version"), (int, float)) and not isinstance(metadata.get("version"), bool):
            metadata["version"] = as_text(metadata["version"])
        return metadata

    def _normalize_fields(self, raw: Any) -> List[Dict[str, Any]]:
        records = collection_chain("fields").apply(raw, self.log, "fields")
        for record in records:
            if "options" in record:
                record["options"] = normalize_options(record["options"], self.log, f"fields.{record['id']}.options")
        return self._unique_by_id(records, "fields")

    def _normalize_presets(self, raw: Any) -> List[Dict[str, Any]]:
        records = collection_chain("presets").apply(raw, self.log, "presets")
        for record in records:
            location = f"presets.{record['id']}"
            # Legacy documents use `fields` for the referenced field ids
            if "fieldRefs" not in record and "fields" in record:
                record["fieldRefs"] = record.pop("fields")
            if "fieldRefs" in record:
                record["fieldRefs"] = string_list(record["fieldRefs"], self.log, "presets", f"{location}.fieldRefs")
            for key in ("tags", "addTags", "removeTags"):
                if key in record:
                    mapping = string_mapping(record[key], self.log, "presets", f"{location}.{key}")
                    if mapping is None:
                        del record[key]
                    else:
                        record[key] = mapping
            if isinstance(record.get("geometry"), str):
                record["geometry"] = [record["geometry"]]
        return self._unique_by_id(records, "presets")

    def _unique_by_id(self, records: List[Dict[str, Any]], section: str) -> List[Dict[str, Any]]:
        seen = set()
        unique = []
        for record in records:
            if record["id"] in seen:
                self.log.record(section, record["id"], "duplicate id dropped")
                continue
            seen.add(record["id"])
            unique.append(record)
        return unique

    # Assembly of canonical-schema drafts

    def build_config(self, draft: ConfigDraft) -> CoMapeoConfig:
        """
        Normalize a canonical-schema draft and assemble the CoMapeoConfig.

        Args:
            draft: Draft produced by the reconciler for a non-legacy bundle

        Returns:
            The canonical configuration
        """
        normalized = self.normalize_draft(draft)
        config = CoMapeoConfig(
            metadata=self.build_metadata(normalized.metadata),
            fields=[self.build_field(record) for record in normalized.fields],
            presets=[self.build_preset(record) for record in normalized.presets],
            translations=normalized.translations,
            icons=normalized.icons,
        )
        logging.info(
            f"Built configuration with {len(config.fields)} fields and {len(config.presets)} presets"
        )
        return config

    def build_metadata(self, metadata: Dict[str, Any]) -> CoMapeoMetadata:
        description = metadata.get("description")
        return CoMapeoMetadata(
            name=first_text(metadata, "name"),
            version=first_text(metadata, "version", default="1.0.0"),
            file_version=first_text(metadata, "fileVersion", default="1"),
            build_date=first_text(metadata, "buildDate", default=utc_now_iso()),
            description=as_text(description) if description is not None else None,
        )

    def build_field(self, record: Dict[str, Any]) -> CoMapeoField:
        location = f"fields.{record['id']}"
        field_type = coerce_field_type(record.get("type"), self.log, location)
        options = None
        if field_type.is_select:
            options = [FieldOption(**option) for option in record.get("options", [])]
        return CoMapeoField(
            id=record["id"],
            name=first_text(record, "name", "label", "id"),
            tag_key=first_text(record, "tagKey", "key", "id"),
            type=field_type,
            universal=bool(record.get("universal", False)),
            helper_text=first_text(record, "helperText", "placeholder"),
            options=options,
        )

    def build_preset(self, record: Dict[str, Any]) -> CoMapeoPreset:
        color = record.get("color")
        if not isinstance(color, str) or not color:
            color = DEFAULT_COLOR
        return CoMapeoPreset(
            id=record["id"],
            name=first_text(record, "name", "id"),
            tags=record.get("tags", {}),
            color=color,
            icon=first_text(record, "icon", default=DEFAULT_ICON),
            field_refs=record.get("fieldRefs", []),
            remove_tags=record.get("removeTags"),
            add_tags=record.get("addTags"),
            geometry=self.build_geometry(record.get("geometry"), f"presets.{record['id']}"),
        )

    def build_geometry(self, raw: Any, location: str) -> List[Geometry]:
        if raw is None:
            return [Geometry.POINT]
        if not isinstance(raw, list):
            self.log.record("presets", f"{location}.geometry", f"expected a list, got {type(raw).__name__}")
            return [Geometry.POINT]
        geometry = []
        for item in raw:
            try:
                geometry.append(Geometry(item))
            except ValueError:
                self.log.record("presets", f"{location}.geometry", f"unknown geometry {item!r} dropped")
        return geometry
