# ============================================================================
# src/medical_structuring/utils/field_lookup.py
# ============================================================================
"""
Tolerant multi-candidate field lookup.

Processors describe each logical field as an ordered tuple of alternative
key spellings (see constants/field_synonyms.py); these helpers return the
first candidate that holds a non-empty value.
"""

from typing import Any, Dict, Iterable, List, Optional


def is_empty(value: Any) -> bool:
    """None, blank strings and empty containers count as missing."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict, tuple)):
        return len(value) == 0
    return False


def get_path(data: Any, path: str) -> Any:
    """Resolve a dotted path ("data.tests") inside nested mappings."""
    current = data
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def first_present(data: Any, candidates: Iterable[str]) -> Any:
    """Return the first non-empty value found under any candidate path."""
    if not isinstance(data, dict):
        return None
    for candidate in candidates:
        value = get_path(data, candidate)
        if not is_empty(value):
            return value
    return None


def first_text(data: Any, candidates: Iterable[str]) -> Optional[str]:
    """Like first_present but only accepts scalars, rendered as trimmed text."""
    if not isinstance(data, dict):
        return None
    for candidate in candidates:
        value = get_path(data, candidate)
        if is_empty(value) or isinstance(value, (dict, list)):
            continue
        return scalar_to_text(value)
    return None


def first_list(data: Any, candidates: Iterable[str]) -> Optional[List[Any]]:
    """Return the first non-empty list found under any candidate path."""
    if not isinstance(data, dict):
        return None
    for candidate in candidates:
        value = get_path(data, candidate)
        if isinstance(value, list) and value:
            return value
    return None


def first_mapping(data: Any, candidates: Iterable[str]) -> Optional[Dict[str, Any]]:
    """Return the first non-empty dict found under any candidate path."""
    if not isinstance(data, dict):
        return None
    for candidate in candidates:
        value = get_path(data, candidate)
        if isinstance(value, dict) and value:
            return value
    return None


def format_number(value: float) -> str:
    """Render integral floats without a trailing ".0" (4.0 -> "4")."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def scalar_to_text(value: Any) -> str:
    """Stringify a decoded scalar the way a reader would write it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return format_number(value)
    return str(value).strip()
