# ============================================================================
# src/medical_structuring/processors/lab/processor.py
# ============================================================================
"""
Lab Processor

Builds a LabResult from a decoded lab report:
1. Locate the test collection (synonym lookup, bare list, or a root-level
   profile object)
2. Normalize tests through the hierarchy normalizer
3. Collect subject, facility, physician and dates
"""

from typing import Any, Optional

from ..base_processor import BaseProcessor
from ...constants.field_synonyms import (
    COLLECTION_DATE_FIELDS,
    FACILITY_FIELDS,
    ORDERING_PHYSICIAN_FIELDS,
    REPORT_DATE_FIELDS,
    SUB_TEST_ARRAY_FIELDS,
    TEST_ARRAY_FIELDS,
)
from ...core.context.decoded_value import Structured
from ...core.context.records import LabResult
from ...utils.field_lookup import first_list, first_text, get_path, is_empty
from .utils.hierarchy import normalize_tests

# A root object carrying one of these plus results/sub-tests is itself a profile
PROFILE_ROOT_FIELDS = ("profile", "profile_name", "panel", "panel_name")


class LabProcessor(BaseProcessor):
    """
    Lab report record builder.
    """

    def get_name(self) -> str:
        return "LabProcessor"

    def build(self, decoded: Structured) -> Optional[LabResult]:
        root = decoded.value
        raw_tests = self.find_tests(root)
        tests = normalize_tests(raw_tests) if raw_tests is not None else []
        subject = self.extract_subject(root)

        if not tests and subject.is_empty():
            self.logger.debug("No tests or subject data found")
            return None

        collection_date = first_text(root, COLLECTION_DATE_FIELDS)
        report_date = first_text(root, REPORT_DATE_FIELDS)
        record = LabResult(
            subject=subject,
            tests=tests,
            facility_name=first_text(root, FACILITY_FIELDS),
            provider_name=first_text(root, ORDERING_PHYSICIAN_FIELDS),
            collection_date=collection_date,
            report_date=report_date,
            record_date=collection_date or report_date,
            confidence=self.confidence(decoded, bool(tests)),
        )
        self.logger.info(f"Built lab result: {len(tests)} tests, confidence {record.confidence}")
        return record

    def find_tests(self, root: Any) -> Optional[Any]:
        """Test list/mapping, or None when the value holds none."""
        if isinstance(root, list):
            return root
        if not isinstance(root, dict):
            return None

        if self._is_profile_root(root):
            return [root]

        for candidate in TEST_ARRAY_FIELDS:
            value = get_path(root, candidate)
            if isinstance(value, (list, dict)) and value:
                return value
        return None

    def _is_profile_root(self, root: dict) -> bool:
        has_profile_name = any(not is_empty(root.get(key)) for key in PROFILE_ROOT_FIELDS)
        has_members = bool(first_list(root, SUB_TEST_ARRAY_FIELDS)) or (
            isinstance(root.get("results"), (list, dict)) and bool(root.get("results"))
        )
        return has_profile_name and has_members
