"""
Icon reference resolution against the asset list.

An icon reference name may have several candidate assets. Preference order
is SVG, then a medium-resolution raster, then any raster.
"""

import re
from typing import Any, Dict, List, Optional

from ..models import Asset, is_raster_path
from .degradation import DegradationLog
from .shapes import strip_quotes


ICON_PREFIX = "icons/"
MEDIUM_MARKER = "-medium@"

_RESOLUTION_SUFFIX = re.compile(r"-(small|medium|large)@\d+x$")
_EXTENSION = re.compile(r"\.(svg|png|jpe?g|gif|webp|bmp)$", re.IGNORECASE)


def icon_base_name(path: str) -> str:
    """'icons/tree-medium@2x.png' -> 'tree'."""
    filename = path.rsplit("/", 1)[-1]
    return _RESOLUTION_SUFFIX.sub("", _EXTENSION.sub("", filename))


def _ranked_rasters(name: str, assets: List[Asset]) -> List[Asset]:
    rasters = [asset for asset in assets if is_raster_path(asset.path) and name in asset.path]
    # Exact base-name matches before mere substring matches
    return sorted(rasters, key=lambda asset: icon_base_name(asset.path) != name)


def resolve_icon(name: str, assets: List[Asset]) -> Optional[Asset]:
    """
    Find the best asset for an icon reference name.

    Args:
        name: Icon reference name (not a path)
        assets: The asset list travelling with the configuration

    Returns:
        The preferred asset, or None when nothing matches
    """
    if not name:
        return None

    svg_path = f"{ICON_PREFIX}{name}.svg"
    for asset in assets:
        if asset.path == svg_path:
            return asset

    rasters = _ranked_rasters(name, assets)
    for asset in rasters:
        if MEDIUM_MARKER in asset.path:
            return asset
    return rasters[0] if rasters else None


def build_icon_map(assets: List[Asset]) -> Dict[str, Asset]:
    """Map every icon base name under icons/ to its preferred asset."""
    names = []
    for asset in assets:
        if asset.path.startswith(ICON_PREFIX):
            base = icon_base_name(asset.path)
            if base not in names:
                names.append(base)
    icon_map = {}
    for base in names:
        resolved = resolve_icon(base, assets)
        if resolved is not None:
            icon_map[base] = resolved
    return icon_map


def normalize_icons(raw: Any, log: DegradationLog) -> Dict[str, Any]:
    """
    Normalize the icons section to a name -> descriptor mapping.

    A list of descriptors is keyed by their ``name`` (or ``id``).
    """
    if raw is None:
        return {}
    if isinstance(raw, dict):
        return {strip_quotes(k): v for k, v in raw.items()}
    if isinstance(raw, list):
        icons = {}
        for index, item in enumerate(raw):
            key = item.get("name", item.get("id")) if isinstance(item, dict) else None
            if not key:
                log.record("icons", f"[{index}]", "icon descriptor without name dropped")
                continue
            icons[strip_quotes(key)] = {k: v for k, v in item.items() if k not in ("name", "id")}
        return icons
    log.record("icons", "", f"expected a mapping, got {type(raw).__name__}")
    return {}
