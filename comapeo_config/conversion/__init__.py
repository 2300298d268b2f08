"""Schema conversion from legacy Mapeo configurations."""

from .legacy import LegacyConverter, derive_color, placeholder_config

__all__ = ["LegacyConverter", "derive_color", "placeholder_config"]
