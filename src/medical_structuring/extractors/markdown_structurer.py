# ============================================================================
# src/medical_structuring/extractors/markdown_structurer.py
# ============================================================================
"""
Markdown / Plain-Text Structurer

Salvage path for extraction text that is not JSON at all (the model answered
in markdown). Recovers:
- lab tests from markdown tables (header-mapped, or by cell count)
- lab tests from "Test : 5.2 mg/dL 3.5-7.2" result lines
- patient, facility, physician and date fields from "Label: value" lines

The output is shaped like a decoded lab report so the regular record
builders can consume it.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..constants.field_synonyms import TEXT_FIELD_LABELS, TABLE_COLUMN_LABELS

_LABEL_LINE = re.compile(
    r"^[ \t]*\**[ \t]*([A-Za-z][A-Za-z .()/_-]{0,40}?)[ \t]*\**[ \t]*:[ \t]*(.+?)[ \t]*$",
    re.MULTILINE,
)
_AGE_GENDER = re.compile(r"(\d+)\s*Y(?:\(s\)|rs?|ears)?\s*/\s*(Male|Female|M|F)\b", re.IGNORECASE)
_TABLE_SEPARATOR = re.compile(r"^\s*\|?\s*:?-{2,}")
_RESULT_LINE = re.compile(
    r"^[ \t]*([A-Za-z][A-Za-z0-9 ,()/.-]*?)[ \t]*:[ \t]*"
    r"([<>]?[ \t]*\d+(?:\.\d+)?)[ \t]*"
    r"([A-Za-z%µ/][A-Za-z0-9%µ/^.]*(?:[ \t]?[A-Za-z]+)?)?[ \t]*"
    r"(\d+(?:\.\d+)?[ \t]*[-–—][ \t]*\d+(?:\.\d+)?|[<>≤≥]=?[ \t]*\d+(?:\.\d+)?)?[ \t]*$",
    re.MULTILINE,
)
_RESULT_WITH_UNIT = re.compile(r"^([<>]?\s*[\d.,]+)\s*(.*)$")
_NON_WORD = re.compile(r"[^a-z0-9]+")

NO_RESULTS_MARKERS = ("no test results extracted", "no results found")


def _label_key(label: str) -> str:
    return _NON_WORD.sub(" ", label.lower()).strip()


def _match_label(label: str, table: Dict[str, tuple]) -> Optional[str]:
    key = _label_key(label)
    for field, labels in table.items():
        if key in labels:
            return field
    return None


class MarkdownStructurer:
    """Recover lab-report structure from markdown or plain text."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def structure(self, text: str) -> Optional[Dict[str, Any]]:
        """
        Structure free text.

        Returns:
            Dict with "patient", "tests" and report fields, or None when the
            text holds neither tests nor labelled patient data
        """
        if not text or not text.strip():
            return None

        fields = self.parse_labelled_fields(text)
        tests = self.parse_markdown_tables(text)
        if not tests:
            tests = self.parse_result_lines(text)

        patient = {
            key: fields.pop(key)
            for key in ("name", "birth_date", "patient_id", "age", "gender")
            if key in fields
        }

        if not tests and not patient:
            self.logger.debug("No tables, result lines or patient labels found in text")
            return None

        structured: Dict[str, Any] = {"tests": tests}
        if patient:
            structured["patient"] = patient
        structured.update(fields)
        self.logger.info(
            f"Structured plain text: {len(tests)} tests, {len(patient)} patient fields"
        )
        return structured

    # ------------------------------------------------------------------
    # Labelled fields
    # ------------------------------------------------------------------
    def parse_labelled_fields(self, text: str) -> Dict[str, str]:
        """Map "Label: value" lines onto known report fields (first wins)."""
        fields: Dict[str, str] = {}
        for match in _LABEL_LINE.finditer(text):
            field = _match_label(match.group(1), TEXT_FIELD_LABELS)
            value = match.group(2).strip().strip("*").strip()
            if field and value and field not in fields:
                fields[field] = value

        age_gender = _AGE_GENDER.search(text)
        if age_gender:
            fields.setdefault("age", age_gender.group(1))
            fields.setdefault("gender", age_gender.group(2))
        return fields

    # ------------------------------------------------------------------
    # Markdown tables
    # ------------------------------------------------------------------
    def parse_markdown_tables(self, text: str) -> List[Dict[str, str]]:
        """Parse every markdown table block into test dicts."""
        lowered = text.lower()
        if any(marker in lowered for marker in NO_RESULTS_MARKERS):
            return []

        tests: List[Dict[str, str]] = []
        for block in self._table_blocks(text):
            tests.extend(self._parse_table(block))
        return tests

    def _table_blocks(self, text: str) -> List[List[str]]:
        blocks: List[List[str]] = []
        current: List[str] = []
        for line in text.splitlines():
            if "|" in line:
                current.append(line)
            elif current:
                blocks.append(current)
                current = []
        if current:
            blocks.append(current)
        return [block for block in blocks if len(block) >= 2]

    def _split_row(self, line: str) -> List[str]:
        return [cell.strip() for cell in line.strip().strip("|").split("|")]

    def _parse_table(self, lines: List[str]) -> List[Dict[str, str]]:
        header = self._split_row(lines[0])
        columns = {}
        for index, cell in enumerate(header):
            field = _match_label(cell, TABLE_COLUMN_LABELS)
            if field and field not in columns:
                columns[field] = index

        rows = [line for line in lines[1:] if not _TABLE_SEPARATOR.match(line)]
        if "test_name" not in columns or "result" not in columns:
            # Header not recognised: the first row may already be data
            columns = {}
            if not _TABLE_SEPARATOR.match(lines[1]):
                rows = [line for line in lines if not _TABLE_SEPARATOR.match(line)]

        tests = []
        for line in rows:
            cells = self._split_row(line)
            test = self._row_to_test(cells, columns)
            if test:
                tests.append(test)
        return tests

    def _row_to_test(self, cells: List[str], columns: Dict[str, int]) -> Optional[Dict[str, str]]:
        if columns:
            test = {
                field: cells[index]
                for field, index in columns.items()
                if index < len(cells) and cells[index]
            }
        else:
            cells = [cell for cell in cells if cell]
            test = self._row_by_cell_count(cells)

        name = (test or {}).get("test_name", "").strip()
        if not name or name == "--" or not test.get("result"):
            return None
        return test

    def _row_by_cell_count(self, cells: List[str]) -> Optional[Dict[str, str]]:
        if len(cells) >= 4:
            return {
                "test_name": cells[0],
                "result": cells[1],
                "unit": cells[2],
                "reference_range": cells[3],
            }
        if len(cells) == 3:
            # | Test | Result Units | Range |
            test = {"test_name": cells[0], "reference_range": cells[2]}
            combined = _RESULT_WITH_UNIT.match(cells[1])
            if combined:
                test["result"] = combined.group(1).strip()
                test["unit"] = combined.group(2).strip()
            else:
                test["result"] = cells[1]
            return test
        if len(cells) == 2:
            return {"test_name": cells[0], "result": cells[1]}
        return None

    # ------------------------------------------------------------------
    # Result lines
    # ------------------------------------------------------------------
    def parse_result_lines(self, text: str) -> List[Dict[str, str]]:
        """Parse "Test : Result Units Range" lines, skipping labelled report fields."""
        tests: List[Dict[str, str]] = []
        seen = set()
        for match in _RESULT_LINE.finditer(text):
            name = re.sub(r"\s+", " ", match.group(1)).strip()
            if len(name) < 2 or _match_label(name, TEXT_FIELD_LABELS):
                continue
            if name.lower() in seen:
                continue
            seen.add(name.lower())
            tests.append({
                "test_name": name,
                "result": match.group(2).replace(" ", ""),
                "unit": (match.group(3) or "").strip(),
                "reference_range": (match.group(4) or "").strip(),
            })
        return tests
