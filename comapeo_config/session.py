"""
Configuration session.

A ConfigSession owns the configuration being edited together with its
assets, and is the only place that state changes: imports replace it,
editing operations update it, exports and the shared store read it.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from .conversion import LegacyConverter
from .exporters import ArchiveWriter
from .importers import CancellationToken, ProgressCallback, SampleConfigImporter, detect_kind, get_reader
from .models import (
    ArchiveKind,
    Asset,
    CoMapeoConfig,
    CoMapeoField,
    CoMapeoPreset,
    ConversionDegraded,
    TextContent,
)
from .normalize import DegradationLog, ShapeNormalizer, resolve_icon
from .normalize.icons import ICON_PREFIX
from .normalize.translations import insert_path
from .reconcile import ComponentReconciler
from .storage import ConfigStore


def _merged(model, updates: Dict[str, Any]):
    """Revalidated copy of a model with updates given by attribute name or alias."""
    data = model.model_dump(by_alias=True)
    for key, value in updates.items():
        field = type(model).model_fields.get(key)
        data[field.alias if field is not None and field.alias else key] = value
    return type(model).model_validate(data)


def _scaled(progress: Optional[ProgressCallback], start: int, end: int) -> Optional[ProgressCallback]:
    if progress is None:
        return None
    return lambda percent, message: progress(int(start + (end - start) * percent / 100), message)


class ConfigSession:
    """
    Holds one configuration and its assets between import and export.
    """

    def __init__(self, strict: Optional[bool] = None):
        """
        Initialize an empty session.

        Args:
            strict: Raise on shape irregularities during imports instead of
                recovering (defaults to the normalization.strict config value)
        """
        self.strict = strict
        self.config: Optional[CoMapeoConfig] = None
        self.assets: List[Asset] = []
        self.is_mapeo = False
        self.degradations: List[ConversionDegraded] = []
        self.hash_id: Optional[str] = None

    def _require_config(self) -> CoMapeoConfig:
        if self.config is None:
            raise ValueError("No configuration loaded")
        return self.config

    # Import and export

    def import_archive(
        self,
        data: bytes,
        kind: Union[ArchiveKind, str, None] = None,
        filename: Optional[str] = None,
        progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CoMapeoConfig:
        """
        Import an archive, replacing the session's configuration.

        The session is only updated once the whole pipeline has succeeded.

        Args:
            data: Raw archive bytes
            kind: Container kind; detected from filename when omitted
            filename: Original file name, used for kind detection
            progress: Optional (percent, message) callback
            cancel_token: Optional cancellation token for the decode

        Returns:
            The imported canonical configuration
        """
        if kind is None:
            kind = detect_kind(filename or "")
        reader = get_reader(kind)
        logging.info(f"Importing {filename or 'archive'} as {ArchiveKind(kind).value}")

        entries = reader.read(data, progress=_scaled(progress, 0, 80), cancel_token=cancel_token)
        if progress:
            progress(85, "Reconciling configuration files...")

        reconciler = ComponentReconciler()
        draft, is_legacy = reconciler.reconcile(entries)
        assets = reconciler.collect_assets(entries)

        normalizer = ShapeNormalizer(strict=self.strict)
        if is_legacy:
            if progress:
                progress(90, "Converting Mapeo configuration...")
            configuration = LegacyConverter(normalizer).convert_or_placeholder(draft)
        else:
            configuration = normalizer.build_config(draft)

        self.config = configuration
        self.assets = assets
        self.is_mapeo = is_legacy
        self.degradations = list(normalizer.degradations)
        self.hash_id = None

        if progress:
            progress(100, "Import complete")
        if self.degradations:
            logging.warning(f"Import recovered from {len(self.degradations)} shape irregularities")
        return configuration

    def import_sample(self) -> CoMapeoConfig:
        """Load the built-in sample configuration."""
        entries = SampleConfigImporter().get_entries()
        reconciler = ComponentReconciler()
        draft, _ = reconciler.reconcile(entries)
        normalizer = ShapeNormalizer(strict=self.strict)

        self.config = normalizer.build_config(draft)
        self.assets = reconciler.collect_assets(entries)
        self.is_mapeo = False
        self.degradations = list(normalizer.degradations)
        self.hash_id = None
        return self.config

    def export_archive(self) -> bytes:
        """Serialize the current configuration and its assets as a ZIP."""
        return ArchiveWriter().write(self._require_config(), self.assets)

    def save_to_store(self, store: ConfigStore) -> str:
        """
        Share the current configuration through the store.

        Saving again after a previous save updates the same record.

        Returns:
            The hash id of the stored record
        """
        configuration = self._require_config()
        if self.hash_id and store.update_config(self.hash_id, configuration, self.is_mapeo):
            return self.hash_id
        self.hash_id = store.create_config(configuration, is_mapeo=self.is_mapeo).hash_id
        return self.hash_id

    def load_from_store(self, store: ConfigStore, hash_id: str) -> Optional[CoMapeoConfig]:
        """
        Load a shared configuration.

        Assets are not stored, so the asset list is emptied.

        Returns:
            The loaded configuration, or None if the hash id is unknown
        """
        stored = store.get_config_by_hash(hash_id)
        if stored is None:
            logging.warning(f"No stored configuration with hash {hash_id}")
            return None
        self.config = stored.document
        self.assets = []
        self.is_mapeo = stored.is_mapeo
        self.degradations = []
        self.hash_id = stored.hash_id
        return self.config

    # Editing

    def update_metadata(self, **updates: Any) -> None:
        configuration = self._require_config()
        configuration.metadata = _merged(configuration.metadata, updates)

    def add_preset(self, preset: CoMapeoPreset) -> None:
        configuration = self._require_config()
        if configuration.get_preset(preset.id):
            raise ValueError(f"Preset already exists: {preset.id}")
        configuration.presets.append(preset)

    def update_preset(self, preset_id: str, **updates: Any) -> CoMapeoPreset:
        """
        Update attributes of a preset.

        Args:
            preset_id: Id of the preset to update
            **updates: Attribute names (or their camelCase aliases) and new values

        Returns:
            The updated, revalidated preset
        """
        configuration = self._require_config()
        for index, preset in enumerate(configuration.presets):
            if preset.id == preset_id:
                updated = _merged(preset, updates)
                configuration.presets[index] = updated
                return updated
        raise KeyError(preset_id)

    def delete_preset(self, preset_id: str) -> bool:
        configuration = self._require_config()
        remaining = [preset for preset in configuration.presets if preset.id != preset_id]
        deleted = len(remaining) != len(configuration.presets)
        configuration.presets = remaining
        return deleted

    def add_field(self, field: CoMapeoField) -> None:
        configuration = self._require_config()
        if configuration.get_field(field.id):
            raise ValueError(f"Field already exists: {field.id}")
        configuration.fields.append(field)

    def update_field(self, field_id: str, **updates: Any) -> CoMapeoField:
        configuration = self._require_config()
        for index, field in enumerate(configuration.fields):
            if field.id == field_id:
                updated = _merged(field, updates)
                configuration.fields[index] = updated
                return updated
        raise KeyError(field_id)

    def delete_field(self, field_id: str) -> bool:
        """
        Delete a field and drop it from every preset that references it.
        """
        configuration = self._require_config()
        remaining = [field for field in configuration.fields if field.id != field_id]
        if len(remaining) == len(configuration.fields):
            return False
        configuration.fields = remaining
        for preset in configuration.presets:
            if field_id in preset.field_refs:
                preset.field_refs = [ref for ref in preset.field_refs if ref != field_id]
        return True

    def add_language(self, locale: str) -> None:
        self._require_config().translations.setdefault(locale, {})

    def update_translation(self, locale: str, key: str, value: str) -> None:
        """
        Set one translated string.

        Args:
            locale: Locale code; created if missing
            key: Slash-separated path, e.g. "fields/name/label"
            value: The translated text
        """
        if not any(key.split("/")):
            raise ValueError("Empty translation key")
        tree = self._require_config().translations.setdefault(locale, {})
        insert_path(tree, key, value, DegradationLog(strict=False), locale)

    def add_icon(self, name: str, svg: str) -> Asset:
        """Add or replace the SVG icon for a reference name."""
        path = f"{ICON_PREFIX}{name}.svg"
        asset = Asset(name=f"{name}.svg", path=path, content=TextContent(svg))
        self.assets = [existing for existing in self.assets if existing.path != path]
        self.assets.append(asset)
        return asset

    def delete_icon(self, name: str) -> bool:
        path = f"{ICON_PREFIX}{name}.svg"
        remaining = [asset for asset in self.assets if asset.path != path]
        deleted = len(remaining) != len(self.assets)
        self.assets = remaining
        return deleted

    def icon_for_preset(self, preset_id: str) -> Optional[Asset]:
        """The asset a preset's icon reference resolves to, if any."""
        preset = self._require_config().get_preset(preset_id)
        if preset is None:
            return None
        return resolve_icon(preset.icon, self.assets)
