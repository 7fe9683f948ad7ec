# src/medical_structuring/processors/lab/utils/parsing.py
"""
Parsing utilities for lab values and reference ranges.

Only "." is treated as a decimal separator; comma decimals ("4,5") are not
interpreted.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from ....utils.field_lookup import format_number, scalar_to_text

# Bound key pairs accepted for object-shaped ranges, in lookup order
RANGE_KEY_PAIRS = (
    ("min", "max"),
    ("low", "high"),
    ("lower", "upper"),
    ("minimum", "maximum"),
)

_UNIT_LIKE = (
    re.compile(r'^x?10E\d', re.IGNORECASE),        # x10E3, 10E6
    re.compile(r'^[a-zA-Z]+/[a-zA-Z]+'),           # g/dL, mg/dL
    re.compile(r'^/[a-zA-Z]+'),                    # /uL
)
_LEADING_NUMBER = re.compile(r'^(?:<=|>=|[<>≤≥])?\s*(-?\d+(?:\.\d+)?)')
_ANY_NUMBER = re.compile(r'(-?\d+(?:\.\d+)?)')
_BETWEEN = re.compile(r'(-?\d+(?:\.\d+)?)\s*[-–—]\s*(\d+(?:\.\d+)?)')
_BELOW = re.compile(r'^(?:(<=|≤|<)|(?:less\s+than|up\s+to|below)\s*)\s*=?\s*(\d+(?:\.\d+)?)', re.IGNORECASE)
_ABOVE = re.compile(r'^(?:(>=|≥|>)|(?:greater\s+than|more\s+than|above)\s*)\s*=?\s*(\d+(?:\.\d+)?)', re.IGNORECASE)
_QUANTITY = re.compile(r'^\s*(<=|>=|<|>)?\s*(-?\d+(?:\.\d+)?)\s*$')
_DOSE = re.compile(r'^\s*(\d+(?:\.\d+)?)\s*([A-Za-zµ%][A-Za-zµ%/.]*)')


@dataclass(frozen=True)
class ReferenceBounds:
    """
    Parsed reference range.

    kind is "between" (low-high), "below" (upper limit only) or "above"
    (lower limit only). inclusive applies to one-sided limits: "<=130"
    accepts 130, "<130" does not.
    """
    kind: str
    low: Optional[float] = None
    high: Optional[float] = None
    inclusive: bool = False


def parse_numeric_value(value_str: str) -> Optional[float]:
    """
    Extract numeric value from a result string.

    Handles values like:
    - "12.5"
    - "1024 High"  (value with embedded flag)
    - "< 0.5"      (comparator values)

    Unit-like strings ("g/dL", "x10E3/uL") give None.
    """
    if value_str is None:
        return None
    if isinstance(value_str, bool):
        return None
    if isinstance(value_str, (int, float)):
        return float(value_str)

    value_str = str(value_str).strip()
    if not value_str:
        return None

    for pattern in _UNIT_LIKE:
        if pattern.match(value_str):
            return None

    match = _LEADING_NUMBER.match(value_str) or _ANY_NUMBER.search(value_str)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def parse_reference_bounds(ref_str: str) -> Optional[ReferenceBounds]:
    """
    Parse a normalized reference range string.

    Supports "lo-hi" (separators -, – and —), "<x", "<=x", "≤x",
    ">x", ">=x", "≥x" and their worded forms ("less than x").
    Qualitative ranges ("Negative") give None.
    """
    if not ref_str:
        return None
    ref_str = ref_str.strip()

    between = _BETWEEN.search(ref_str)
    if between:
        try:
            return ReferenceBounds("between", low=float(between.group(1)), high=float(between.group(2)))
        except ValueError:
            return None

    below = _BELOW.match(ref_str)
    if below:
        return ReferenceBounds(
            "below",
            high=float(below.group(2)),
            inclusive=below.group(1) in ("<=", "≤"),
        )

    above = _ABOVE.match(ref_str)
    if above:
        return ReferenceBounds(
            "above",
            low=float(above.group(2)),
            inclusive=above.group(1) in (">=", "≥"),
        )

    return None


def _bound_text(value: Any) -> str:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return format_number(float(value)) if isinstance(value, float) else str(value)
    return scalar_to_text(value)


def _present(value: Any) -> bool:
    return value is not None and not (isinstance(value, str) and not value.strip())


def format_reference_range(source: Any) -> str:
    """
    Render any observed reference-range shape as a human-readable string.

    - "70-100"                      -> "70-100"
    - {"low": 4.0, "high": 11.0}    -> "4-11"
    - {"max": 200}                  -> "<200"
    - [3.5, 5.0]                    -> "3.5-5"
    - anything else                 -> stringified
    """
    if source is None:
        return ""
    if isinstance(source, str):
        return source.strip()

    if isinstance(source, dict):
        for low_key, high_key in RANGE_KEY_PAIRS:
            low, high = source.get(low_key), source.get(high_key)
            if _present(low) and _present(high):
                return f"{_bound_text(low)}-{_bound_text(high)}"
            if _present(high):
                return f"<{_bound_text(high)}"
            if _present(low):
                return f">{_bound_text(low)}"
        for key in ("text", "range", "value"):
            if isinstance(source.get(key), str) and source[key].strip():
                return source[key].strip()
        return json.dumps(source, ensure_ascii=False, default=str)

    if isinstance(source, (list, tuple)):
        if len(source) == 2 and all(_present(b) and not isinstance(b, (dict, list)) for b in source):
            return f"{_bound_text(source[0])}-{_bound_text(source[1])}"
        return json.dumps(list(source), ensure_ascii=False, default=str)

    return _bound_text(source)


def parse_quantity(value_str: str) -> Optional[Tuple[Optional[str], float]]:
    """
    Parse a value that is purely numeric, optionally with a comparator.

    "130" -> (None, 130.0); "<0.5" -> ("<", 0.5); "130 High" -> None
    """
    if not value_str:
        return None
    match = _QUANTITY.match(str(value_str))
    if not match:
        return None
    return match.group(1), float(match.group(2))


def parse_dose(dosage: str) -> Optional[Tuple[float, str]]:
    """Leading "<number> <unit>" of a dosage string ("500 mg twice" -> (500.0, "mg"))."""
    if not dosage:
        return None
    match = _DOSE.match(str(dosage))
    if not match:
        return None
    return float(match.group(1)), match.group(2).rstrip(".")
