"""
Canonical data models for CoMapeo configurations.

This module defines the unified configuration structure that every importer,
normalizer and converter must produce, regardless of the archive layout or
schema generation the data came from.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FieldType(str, Enum):
    """The fixed set of data-entry field types."""

    TEXT = "text"
    TEXTAREA = "textarea"
    NUMBER = "number"
    DATE = "date"
    SELECT_ONE = "selectOne"
    SELECT_MANY = "selectMany"

    @property
    def is_select(self) -> bool:
        return self in (FieldType.SELECT_ONE, FieldType.SELECT_MANY)


class Geometry(str, Enum):
    """Geometry kinds a preset may apply to."""

    POINT = "point"
    LINE = "line"
    AREA = "area"
    VERTEX = "vertex"
    RELATION = "relation"


class FieldOption(BaseModel):
    """A single choice of a selectOne/selectMany field."""

    label: str = Field(..., description="Display label of the option")
    value: str = Field(..., description="Value stored in the tag when the option is chosen")


class CoMapeoField(BaseModel):
    """
    A single data-entry question definition.

    Fields are attached to presets through ``CoMapeoPreset.field_refs``.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    id: str = Field(..., description="Unique identifier of the field")
    name: str = Field(..., description="Display label")
    tag_key: str = Field(..., alias="tagKey", description="The underlying data-tag name")
    type: FieldType = Field(default=FieldType.TEXT, description="Kind of input")
    universal: bool = Field(default=False, description="Whether the field is usable on any preset")
    helper_text: str = Field(default="", alias="helperText", description="Hint shown under the input")
    options: Optional[List[FieldOption]] = Field(
        default=None,
        description="Ordered choices, present only for select fields"
    )

    @model_validator(mode="after")
    def _options_only_for_select(self) -> "CoMapeoField":
        if not self.type.is_select:
            self.options = None
        elif self.options is None:
            self.options = []
        return self


class CoMapeoPreset(BaseModel):
    """
    A named rule mapping a tag set to a displayed category.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique identifier of the preset")
    name: str = Field(..., description="Display name")
    tags: Dict[str, str] = Field(default_factory=dict, description="Tag set this preset asserts")
    color: str = Field(default="#000000", description="Hex color")
    icon: str = Field(default="default", description="Icon reference name")
    field_refs: List[str] = Field(default_factory=list, alias="fieldRefs", description="Referenced field ids")
    remove_tags: Optional[Dict[str, str]] = Field(default=None, alias="removeTags")
    add_tags: Optional[Dict[str, str]] = Field(default=None, alias="addTags")
    geometry: List[Geometry] = Field(default_factory=lambda: [Geometry.POINT])

    @field_validator("geometry")
    @classmethod
    def _unique_geometry(cls, value: List[Geometry]) -> List[Geometry]:
        seen: List[Geometry] = []
        for item in value:
            if item not in seen:
                seen.append(item)
        return seen


class CoMapeoMetadata(BaseModel):
    """Descriptive metadata of a configuration bundle."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", description="Human-readable configuration name")
    version: str = Field(default="1.0.0", description="Semver version string")
    file_version: str = Field(default="1", alias="fileVersion")
    build_date: str = Field(default_factory=utc_now_iso, alias="buildDate")
    description: Optional[str] = Field(default=None)


class CoMapeoConfig(BaseModel):
    """
    The canonical configuration document.

    Binary assets are not part of this model; they travel alongside it in an
    asset list.
    """

    model_config = ConfigDict(populate_by_name=True)

    metadata: CoMapeoMetadata = Field(default_factory=CoMapeoMetadata)
    fields: List[CoMapeoField] = Field(default_factory=list)
    presets: List[CoMapeoPreset] = Field(default_factory=list)
    translations: Dict[str, Dict[str, Any]] = Field(
        default_factory=dict,
        description="Locale code -> {fields: {...}, presets: {...}}"
    )
    icons: Dict[str, Any] = Field(
        default_factory=dict,
        description="Icon reference name -> descriptor pointing at an asset path"
    )

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the JSON-ready canonical document."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def get_field(self, field_id: str) -> Optional[CoMapeoField]:
        return next((f for f in self.fields if f.id == field_id), None)

    def get_preset(self, preset_id: str) -> Optional[CoMapeoPreset]:
        return next((p for p in self.presets if p.id == preset_id), None)

    def translated_label(self, locale: str, field_id: str) -> str:
        """Field label for a locale, falling back to the canonical name."""
        field = self.get_field(field_id)
        fallback = field.name if field else field_id
        entry = self.translations.get(locale, {}).get("fields", {}).get(field_id)
        if isinstance(entry, dict) and isinstance(entry.get("label"), str) and entry["label"]:
            return entry["label"]
        return fallback

    def translated_helper_text(self, locale: str, field_id: str) -> str:
        field = self.get_field(field_id)
        fallback = field.helper_text if field else ""
        entry = self.translations.get(locale, {}).get("fields", {}).get(field_id)
        if isinstance(entry, dict) and isinstance(entry.get("helperText"), str) and entry["helperText"]:
            return entry["helperText"]
        return fallback

    def translated_preset_name(self, locale: str, preset_id: str) -> str:
        preset = self.get_preset(preset_id)
        fallback = preset.name if preset else preset_id
        entry = self.translations.get(locale, {}).get("presets", {}).get(preset_id)
        if isinstance(entry, dict) and isinstance(entry.get("name"), str) and entry["name"]:
            return entry["name"]
        return fallback
