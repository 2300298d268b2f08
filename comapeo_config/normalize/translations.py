"""
Translation tree reshaping.

A locale document is either already nested ({fields: {...}, presets: {...}})
or flat with slash-delimited paths as keys ("fields/building-type/label").
Both become the nested form, with quoted keys cleaned at every depth.
"""

from typing import Any, Dict

from .degradation import DegradationLog
from .shapes import as_text, strip_quotes


def clean_keys(value: Any) -> Any:
    """Recursively strip quote artifacts from every mapping key."""
    if isinstance(value, dict):
        return {strip_quotes(k): clean_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [clean_keys(item) for item in value]
    return value


def _is_flat(document: Dict[str, Any]) -> bool:
    return any("/" in key for key in document)


def insert_path(tree: Dict[str, Any], path: str, value: Any,
                log: DegradationLog, locale: str) -> None:
    """Set a value at a slash-delimited path, creating subtrees as needed."""
    parts = [strip_quotes(part) for part in strip_quotes(path).split("/") if part]
    if not parts:
        log.record("translations", locale, f"empty translation path {path!r} dropped")
        return

    node = tree
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            if child is not None:
                log.record("translations", f"{locale}/{path}", f"leaf {part!r} replaced by a subtree")
            child = {}
            node[part] = child
        node = child
    node[parts[-1]] = clean_keys(value)


def _flatten_option_labels(tree: Dict[str, Any]) -> None:
    """Reduce {optionValue: {label: ...}} entries to {optionValue: label}."""
    fields = tree.get("fields")
    if not isinstance(fields, dict):
        return
    for entry in fields.values():
        if not isinstance(entry, dict) or not isinstance(entry.get("options"), dict):
            continue
        options = entry["options"]
        for key, label in list(options.items()):
            if isinstance(label, dict) and ("label" in label or "name" in label):
                options[key] = as_text(label.get("label", label.get("name")))


def normalize_locale(document: Any, log: DegradationLog, locale: str) -> Dict[str, Any]:
    """Normalize a single locale document to the nested tree form."""
    if not isinstance(document, dict):
        log.record("translations", locale, f"expected a mapping, got {type(document).__name__}")
        return {}

    if _is_flat(document):
        tree: Dict[str, Any] = {}
        # Plain keys first so slash paths can extend them
        for key, value in document.items():
            if "/" not in key:
                tree[strip_quotes(key)] = clean_keys(value)
        for key, value in document.items():
            if "/" in key:
                insert_path(tree, key, value, log, locale)
    else:
        tree = clean_keys(document)

    _flatten_option_labels(tree)
    return tree


def normalize_translations(raw: Any, log: DegradationLog) -> Dict[str, Dict[str, Any]]:
    """
    Normalize a translations section: locale code -> nested tree.

    Args:
        raw: Translations value as found in the draft
        log: Degradation log receiving recovery notices

    Returns:
        Mapping of locale code to its nested translation tree
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        log.record("translations", "", f"expected a mapping, got {type(raw).__name__}")
        return {}
    return {strip_quotes(locale): normalize_locale(document, log, strip_quotes(locale))
            for locale, document in raw.items()}
