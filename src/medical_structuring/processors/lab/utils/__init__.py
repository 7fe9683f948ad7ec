# src/medical_structuring/processors/lab/utils/__init__.py

from .parsing import (
    ReferenceBounds,
    parse_numeric_value,
    parse_reference_bounds,
    format_reference_range,
    parse_quantity,
    parse_dose,
)
from .status import determine_test_status, status_from_text
from .hierarchy import HierarchicalTestNormalizer, normalize_tests, recover_test_entry

__all__ = [
    "ReferenceBounds",
    "parse_numeric_value",
    "parse_reference_bounds",
    "format_reference_range",
    "parse_quantity",
    "parse_dose",
    "determine_test_status",
    "status_from_text",
    "HierarchicalTestNormalizer",
    "normalize_tests",
    "recover_test_entry",
]
