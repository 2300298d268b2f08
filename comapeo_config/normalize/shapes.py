"""
Shape detectors for loosely-typed configuration JSON.

Each section value may arrive in one of several encodings. A ShapeChain
tries its detectors in a fixed priority order and falls through to a safe
default, recording a degradation notice when nothing matches.
"""

import re
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from ..models import FieldType
from .degradation import DegradationLog


_WHITESPACE = re.compile(r"\s+")

FIELD_TYPE_ALIASES = {
    "select_one": FieldType.SELECT_ONE,
    "select_many": FieldType.SELECT_MANY,
    "select_multiple": FieldType.SELECT_MANY,
    "datetime": FieldType.DATE,
}


def slugify(text: str) -> str:
    """Lowercase and replace whitespace runs with underscores."""
    return _WHITESPACE.sub("_", str(text).lower())


def strip_quotes(key: Any) -> str:
    """
    Remove literal quote characters wrapping a key.

    Legacy translation and option keys were sometimes serialized with the
    quotes included, e.g. '"school"'. Every leading and trailing quote is
    removed, not just one pair, so stripping a stripped key changes nothing.
    """
    return str(key).strip('"')


def as_text(value: Any) -> str:
    """String form of a scalar, matching JSON spelling for booleans and null."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_field_type(raw: Any, log: DegradationLog, location: str) -> FieldType:
    """
    Map a raw field type token onto the canonical enumeration.

    Unknown or missing types become ``text``.
    """
    if isinstance(raw, FieldType):
        return raw
    if not isinstance(raw, str) or not raw:
        if raw is not None:
            log.record("fields", location, f"non-string type {raw!r}, using text")
        return FieldType.TEXT
    if raw in FIELD_TYPE_ALIASES:
        return FIELD_TYPE_ALIASES[raw]
    try:
        return FieldType(raw)
    except ValueError:
        log.record("fields", location, f"unknown type {raw!r}, using text")
        return FieldType.TEXT


class Shape(NamedTuple):
    name: str
    matches: Callable[[Any], bool]
    convert: Callable[[Any, DegradationLog, str], Any]


class ShapeChain:
    """
    Ordered chain of shape detectors for one kind of value.
    """

    def __init__(self, section: str, shapes: List[Shape], default: Callable[[], Any]):
        self.section = section
        self.shapes = shapes
        self.default = default

    def apply(self, raw: Any, log: DegradationLog, location: str) -> Any:
        for shape in self.shapes:
            if shape.matches(raw):
                return shape.convert(raw, log, location)
        log.record(self.section, location, f"unexpected {type(raw).__name__} value, using default")
        return self.default()


# Options

def _option_from_item(item: Any, log: DegradationLog, location: str) -> Optional[Dict[str, str]]:
    if isinstance(item, str):
        return {"label": item, "value": slugify(item)}
    if isinstance(item, dict):
        label = item.get("label", item.get("name"))
        value = item.get("value")
        if label is None and value is None:
            log.record("fields", location, "option without label or value dropped")
            return None
        if label is None:
            label = value
        if value is None:
            value = slugify(as_text(label))
        return {"label": as_text(label), "value": as_text(value)}
    if isinstance(item, (int, float)) and not isinstance(item, bool):
        text = as_text(item)
        return {"label": text, "value": slugify(text)}
    log.record("fields", location, f"option of type {type(item).__name__} dropped")
    return None


def _options_from_array(raw: List[Any], log: DegradationLog, location: str) -> List[Dict[str, str]]:
    options = []
    for index, item in enumerate(raw):
        option = _option_from_item(item, log, f"{location}[{index}]")
        if option is not None:
            options.append(option)
    return options


def _options_from_map(raw: Dict[str, Any], log: DegradationLog, location: str) -> List[Dict[str, str]]:
    options = []
    for key, body in raw.items():
        key = strip_quotes(key)
        if isinstance(body, dict):
            label = body.get("label", body.get("name", key))
        elif body is None:
            label = key
        else:
            label = body
        options.append({"label": as_text(label), "value": slugify(key)})
    return options


OPTION_SHAPES = ShapeChain(
    "fields",
    [
        Shape("array", lambda raw: isinstance(raw, list), _options_from_array),
        Shape("map", lambda raw: isinstance(raw, dict), _options_from_map),
    ],
    default=list,
)


def normalize_options(raw: Any, log: DegradationLog, location: str) -> List[Dict[str, str]]:
    """Normalize any supported options encoding to a list of {label, value}."""
    return OPTION_SHAPES.apply(raw, log, location)


# Id-keyed collections (fields, presets)

def _records_from_array(section: str):
    def convert(raw: List[Any], log: DegradationLog, location: str) -> List[Dict[str, Any]]:
        records = []
        for index, item in enumerate(raw):
            if not isinstance(item, dict):
                log.record(section, f"{location}[{index}]", f"{type(item).__name__} entry dropped")
                continue
            record = {strip_quotes(k): v for k, v in item.items()}
            if record.get("id") in (None, ""):
                fallback = record.get("tagKey") or record.get("key") or record.get("name")
                if not fallback:
                    log.record(section, f"{location}[{index}]", "entry without id dropped")
                    continue
                record["id"] = slugify(as_text(fallback))
            record["id"] = as_text(record["id"])
            records.append(record)
        return records
    return convert


def _records_from_map(section: str):
    def convert(raw: Dict[str, Any], log: DegradationLog, location: str) -> List[Dict[str, Any]]:
        records = []
        for key, body in raw.items():
            key = strip_quotes(key)
            if not isinstance(body, dict):
                log.record(section, f"{location}.{key}", f"{type(body).__name__} entry dropped")
                continue
            record = {strip_quotes(k): v for k, v in body.items()}
            # An explicit id inside the body wins over the map key
            record["id"] = as_text(record.get("id") or key)
            records.append(record)
        return records
    return convert


def collection_chain(section: str) -> ShapeChain:
    """Detector chain turning an array-or-map section into an array of records."""
    return ShapeChain(
        section,
        [
            Shape("absent", lambda raw: raw is None, lambda raw, log, location: []),
            Shape("array", lambda raw: isinstance(raw, list), _records_from_array(section)),
            Shape("map", lambda raw: isinstance(raw, dict), _records_from_map(section)),
        ],
        default=list,
    )


def string_mapping(raw: Any, log: DegradationLog, section: str, location: str) -> Optional[Dict[str, str]]:
    """Coerce a tag mapping to str -> str, or None when absent/unusable."""
    if raw is None:
        return None
    if not isinstance(raw, dict):
        log.record(section, location, f"expected a mapping, got {type(raw).__name__}")
        return None
    return {strip_quotes(k): as_text(v) for k, v in raw.items()}


def string_list(raw: Any, log: DegradationLog, section: str, location: str) -> List[str]:
    """Coerce a list of references to a list of strings."""
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list):
        log.record(section, location, f"expected a list, got {type(raw).__name__}")
        return []
    return [as_text(item) for item in raw if isinstance(item, (str, int, float)) and not isinstance(item, bool)]
