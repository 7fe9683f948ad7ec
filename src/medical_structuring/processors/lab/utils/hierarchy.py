# ============================================================================
# src/medical_structuring/processors/lab/utils/hierarchy.py
# ============================================================================
"""
Hierarchical Test Normalizer

Flattens the nesting shapes extraction models produce for lab tests into one
ordered list of TestEntry:

- profile with a sub-test array      -> profileHeader, subTest, subTest, ...
- named test whose "results" object
  holds several named sub-results    -> profileHeader + one subTest per key
- named test whose "results" is a
  list                               -> profileHeader + one subTest per element
- flat test (a single-value "results"
  object is merged in)               -> standalone

A profileHeader is always emitted immediately before its subTests and never
carries a value, unit or reference range.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ....constants.field_synonyms import (
    PROFILE_NAME_FIELDS,
    SUB_TEST_ARRAY_FIELDS,
    TEST_NAME_FIELDS,
    TEST_NOTES_FIELDS,
    TEST_RANGE_FIELDS,
    TEST_UNIT_FIELDS,
    TEST_VALUE_FIELDS,
)
from ....core.context.enums import HierarchyRole, TestStatus
from ....core.context.records import TestEntry
from ....utils.field_lookup import first_list, first_present, first_text, scalar_to_text
from ....utils.text_normalizer import format_display_name
from .parsing import format_reference_range
from .status import determine_test_status

# Keys that mark a "results" object as one value rather than named sub-results
_OWN_VALUE_KEYS = ("value", "result")

DEFAULT_PROFILE_NAME = "Test Panel"


def _item_name(index: int) -> str:
    return f"Item {index + 1}"


def item_to_text(item: Any) -> str:
    """Text for a non-object test item; lists and mappings render as JSON."""
    if isinstance(item, (list, dict)):
        return json.dumps(item, ensure_ascii=False, default=str)
    return scalar_to_text(item)


def _sub_test_list(item: Dict[str, Any]) -> Optional[List[Any]]:
    """Sub-test array of a profile-shaped item, if any."""
    sub_tests = first_list(item, SUB_TEST_ARRAY_FIELDS)
    if sub_tests:
        return sub_tests
    results = item.get("results")
    if isinstance(results, list) and results:
        return results
    return None


def recover_test_entry(item: Any, index: int) -> TestEntry:
    """
    Salvage name and value from an item that could not be normalized.

    The entry is kept as a standalone test with status UNKNOWN rather than
    dropped.
    """
    if isinstance(item, dict):
        name = first_text(item, TEST_NAME_FIELDS) or _item_name(index)
        value = first_text(item, TEST_VALUE_FIELDS) or ""
    else:
        name = _item_name(index)
        value = item_to_text(item)
    return TestEntry(name=name, value=value, status=TestStatus.UNKNOWN)


class HierarchicalTestNormalizer:
    """Normalize raw test collections into ordered TestEntry lists."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def normalize(self, raw_tests: Any) -> List[TestEntry]:
        """
        Args:
            raw_tests: List of test items, or a mapping of test name to
                entry/value

        Returns:
            Ordered TestEntry list (headers precede their subTests)
        """
        entries: List[TestEntry] = []
        for index, item in enumerate(self._as_items(raw_tests)):
            try:
                entries.extend(self._normalize_item(item, index))
            except Exception as e:
                self.logger.warning(f"Could not normalize test item {index}, recovering: {e}")
                entries.append(recover_test_entry(item, index))

        headers = sum(1 for entry in entries if entry.is_profile_header)
        self.logger.debug(f"Normalized {len(entries)} test entries ({headers} profile headers)")
        return entries

    def _as_items(self, raw_tests: Any) -> List[Any]:
        if raw_tests is None:
            return []
        if isinstance(raw_tests, list):
            return raw_tests
        if isinstance(raw_tests, dict):
            # {"Glucose": {"value": 130, ...}} or {"Glucose": 130}
            items = []
            for name, body in raw_tests.items():
                if isinstance(body, dict):
                    items.append({"name": format_display_name(name), **body})
                else:
                    items.append({"name": format_display_name(name), "value": body})
            return items
        return [raw_tests]

    # ------------------------------------------------------------------
    # Shape detection
    # ------------------------------------------------------------------
    def _normalize_item(self, item: Any, index: int) -> List[TestEntry]:
        if not isinstance(item, dict):
            return [TestEntry(name=_item_name(index), value=item_to_text(item))]

        sub_tests = _sub_test_list(item)
        if sub_tests:
            profile_name = first_text(item, PROFILE_NAME_FIELDS) or DEFAULT_PROFILE_NAME
            return self._expand_profile(item, profile_name, sub_tests)

        results = item.get("results")
        if isinstance(results, dict) and results:
            has_own_value = any(key in item for key in _OWN_VALUE_KEYS) or any(
                key in results for key in _OWN_VALUE_KEYS
            )
            if len(results) > 1 and not has_own_value:
                profile_name = first_text(item, PROFILE_NAME_FIELDS) or DEFAULT_PROFILE_NAME
                named = [
                    {"name": format_display_name(key), **body}
                    if isinstance(body, dict)
                    else {"name": format_display_name(key), "value": body}
                    for key, body in results.items()
                ]
                return self._expand_profile(item, profile_name, named)

            merged = {key: value for key, value in item.items() if key != "results"}
            if len(results) == 1 and not any(key in results for key in _OWN_VALUE_KEYS):
                # {"results": {"hba1c": 6.1}}
                merged.setdefault("value", next(iter(results.values())))
            else:
                merged.update(results)
            return [self._build_entry(merged, HierarchyRole.STANDALONE, _item_name(index))]

        return [self._build_entry(item, HierarchyRole.STANDALONE, _item_name(index))]

    def _expand_profile(self, item: Dict[str, Any], profile_name: str, sub_items: List[Any]) -> List[TestEntry]:
        header = TestEntry(
            name=profile_name,
            status=TestStatus.NORMAL,
            hierarchy_role=HierarchyRole.PROFILE_HEADER,
            notes=first_text(item, TEST_NOTES_FIELDS) or "",
        )
        entries = [header]
        nested: List[TestEntry] = []
        for position, sub_item in enumerate(sub_items):
            if isinstance(sub_item, dict) and _sub_test_list(sub_item):
                # Nested profile: its own header group, after this profile's subTests
                self.logger.debug(f"Promoting nested profile under {profile_name} to its own group")
                nested.extend(self._normalize_item(sub_item, position))
                continue
            if isinstance(sub_item, dict):
                entry = self._build_entry(sub_item, HierarchyRole.SUB_TEST, _item_name(position))
            else:
                entry = TestEntry(
                    name=_item_name(position),
                    value=item_to_text(sub_item),
                    hierarchy_role=HierarchyRole.SUB_TEST,
                )
            entry.profile_name = profile_name
            entries.append(entry)
        return entries + nested

    # ------------------------------------------------------------------
    # Entry construction
    # ------------------------------------------------------------------
    def _build_entry(self, data: Dict[str, Any], role: HierarchyRole, fallback_name: str) -> TestEntry:
        value = first_text(data, TEST_VALUE_FIELDS) or ""
        reference_range = format_reference_range(first_present(data, TEST_RANGE_FIELDS))
        return TestEntry(
            name=first_text(data, TEST_NAME_FIELDS) or fallback_name,
            value=value,
            unit=first_text(data, TEST_UNIT_FIELDS) or "",
            reference_range=reference_range,
            status=determine_test_status(data, value, reference_range),
            hierarchy_role=role,
            notes=first_text(data, TEST_NOTES_FIELDS) or "",
        )


_default_normalizer: Optional[HierarchicalTestNormalizer] = None


def normalize_tests(raw_tests: Any) -> List[TestEntry]:
    """Normalize with a shared HierarchicalTestNormalizer."""
    global _default_normalizer
    if _default_normalizer is None:
        _default_normalizer = HierarchicalTestNormalizer()
    return _default_normalizer.normalize(raw_tests)
