# src/medical_structuring/processors/lab/utils/status.py
"""
Clinical status determination for a single test result.

Priority order:
1. Explicit status/flag field, keyword matched
2. Explicit boolean flags
3. Numeric comparison of value against the reference range
4. NORMAL

Step 4 is a conservative default: a result whose source omitted the flag and
whose range could not be parsed is reported as normal. It is logged at debug
level so such results can be audited.
"""

import logging
import re
from typing import Any, Dict, Optional

from ....constants.field_synonyms import STATUS_BOOLEAN_FIELDS, TEST_STATUS_FIELDS
from ....core.context.enums import TestStatus
from .parsing import parse_numeric_value, parse_reference_bounds

logger = logging.getLogger(__name__)

# Keywords matched at the start of a word, strongest first
# ("abnormal" must be tested before "normal")
STATUS_KEYWORDS = (
    (("critical", "panic"), TestStatus.CRITICAL),
    (("high", "elevated", "above normal", "above range", "↑"), TestStatus.HIGH),
    (("low", "decreased", "below normal", "below range", "↓"), TestStatus.LOW),
    (("abnormal",), TestStatus.ABNORMAL),
    (("pending", "awaiting"), TestStatus.PENDING),
    (("normal", "within"), TestStatus.NORMAL),
)

# Whole-value flag codes used by lab analyzers
STATUS_CODES = {
    "h": TestStatus.HIGH,
    "l": TestStatus.LOW,
    "hh": TestStatus.CRITICAL,
    "ll": TestStatus.CRITICAL,
    "aa": TestStatus.CRITICAL,
    "c": TestStatus.CRITICAL,
    "a": TestStatus.ABNORMAL,
    "n": TestStatus.NORMAL,
}

_KEYWORD_PATTERNS = tuple(
    (re.compile(r"(?<![a-z])(?:" + "|".join(re.escape(k) for k in keywords) + ")"), status)
    for keywords, status in STATUS_KEYWORDS
)

# "non-critical", "not flagged", "no abnormality": left to the range comparison
_NEGATION = re.compile(r"(?<![a-z])(?:non|not|no)(?![a-z])")


def status_from_text(text: Any) -> Optional[TestStatus]:
    """Map a free-text status/flag to a TestStatus, or None if unrecognised."""
    if text is None or isinstance(text, (bool, dict, list)):
        return None
    normalized = str(text).strip().lower()
    if not normalized:
        return None
    if normalized in STATUS_CODES:
        return STATUS_CODES[normalized]
    if _NEGATION.search(normalized):
        return None
    for pattern, status in _KEYWORD_PATTERNS:
        if pattern.search(normalized):
            return status
    return None


def status_from_flags(data: Dict[str, Any]) -> Optional[TestStatus]:
    """Boolean flag fields (critical/high/low/abnormal), strongest first."""
    for fields, status in STATUS_BOOLEAN_FIELDS:
        if any(data.get(field) is True for field in fields):
            return TestStatus(status)
    return None


def status_from_range(value: str, reference_range: str) -> Optional[TestStatus]:
    """Compare a numeric value against a parsed reference range."""
    numeric = parse_numeric_value(value)
    bounds = parse_reference_bounds(reference_range)
    if numeric is None or bounds is None:
        return None

    if bounds.kind == "between":
        if numeric < bounds.low:
            return TestStatus.LOW
        if numeric > bounds.high:
            return TestStatus.HIGH
        return TestStatus.NORMAL

    if bounds.kind == "below":
        over = numeric > bounds.high if bounds.inclusive else numeric >= bounds.high
        return TestStatus.HIGH if over else TestStatus.NORMAL

    under = numeric < bounds.low if bounds.inclusive else numeric <= bounds.low
    return TestStatus.LOW if under else TestStatus.NORMAL


def determine_test_status(
    data: Optional[Dict[str, Any]],
    value: str = "",
    reference_range: str = "",
) -> TestStatus:
    """
    Determine the clinical status of one test result. Always returns a
    TestStatus.

    Args:
        data: Raw test mapping (explicit status and flag fields are read here)
        value: Result value as text
        reference_range: Normalized reference range text
    """
    data = data if isinstance(data, dict) else {}

    for field in TEST_STATUS_FIELDS:
        status = status_from_text(data.get(field))
        if status is not None:
            return status

    status = status_from_flags(data)
    if status is not None:
        return status

    status = status_from_range(value, reference_range)
    if status is not None:
        return status

    logger.debug(
        f"Status indeterminate for value={value!r} range={reference_range!r}, defaulting to normal"
    )
    return TestStatus.NORMAL
