"""Shape normalization of configuration drafts."""

from .degradation import DegradationLog
from .icons import build_icon_map, icon_base_name, resolve_icon
from .normalizer import SECTION_KINDS, ShapeNormalizer
from .shapes import coerce_field_type, normalize_options, slugify, strip_quotes
from .translations import normalize_translations

__all__ = [
    "DegradationLog",
    "build_icon_map",
    "icon_base_name",
    "resolve_icon",
    "SECTION_KINDS",
    "ShapeNormalizer",
    "coerce_field_type",
    "normalize_options",
    "slugify",
    "strip_quotes",
    "normalize_translations",
]
