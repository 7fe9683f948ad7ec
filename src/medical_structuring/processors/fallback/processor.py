# src/medical_structuring/processors/fallback/processor.py
"""
Fallback Processor - Universal Document Handler

Handles decoded values that:
1. Were classified as general (no type signal)
2. Were classified, but the type builder found nothing usable

Strategy:
1. If any top-level value is a list of objects, try the lab builder on it
   (tests often hide under an unexpected key)
2. Otherwise keep every top-level key as a titled section

This always succeeds, so every document gets some record.
"""

import json
from typing import Any, List, Optional

from ..base_processor import BaseProcessor
from ..lab.processor import LabProcessor
from ...config.pipeline_config import pipeline_settings
from ...constants.field_synonyms import (
    FACILITY_FIELDS,
    GENERAL_DATE_FIELDS,
    GENERAL_PROVIDER_FIELDS,
    SECTION_SKIP_KEYS,
)
from ...core.context.decoded_value import Structured
from ...core.context.enums import SectionCategory
from ...core.context.records import General, LabResult, MedicalRecord, Section
from ...utils.field_lookup import first_text, scalar_to_text
from ...utils.text_normalizer import format_display_name


def _render_item(item: Any) -> str:
    if isinstance(item, (dict, list)):
        return json.dumps(item, ensure_ascii=False, default=str)
    return scalar_to_text(item)


def build_section(title: str, value: Any) -> Section:
    """Lists become numbered lines, mappings "key: value" lines, scalars text."""
    if isinstance(value, list):
        content = "\n".join(f"{index + 1}. {_render_item(item)}" for index, item in enumerate(value))
        return Section(title=title, content=content, category=SectionCategory.LIST)
    if isinstance(value, dict):
        content = "\n".join(f"{key}: {_render_item(item)}" for key, item in value.items())
        return Section(title=title, content=content, category=SectionCategory.OBJECT)
    return Section(title=title, content=scalar_to_text(value), category=SectionCategory.TEXT)


def _is_object_list(value: Any) -> bool:
    return isinstance(value, list) and bool(value) and isinstance(value[0], dict)


class GeneralProcessor(BaseProcessor):
    """
    Universal fallback builder for documents without a usable type.
    """

    def __init__(self):
        super().__init__()
        self.lab_processor = LabProcessor()

    def get_name(self) -> str:
        return "GeneralProcessor"

    def build(self, decoded: Structured) -> MedicalRecord:
        rescued = self.rescue_lab(decoded)
        if rescued is not None:
            return rescued

        root = decoded.value
        if isinstance(root, list):
            sections = [
                build_section(f"Item {index + 1}", item) for index, item in enumerate(root)
            ]
        else:
            sections = [
                build_section(format_display_name(key), value)
                for key, value in root.items()
                if key not in SECTION_SKIP_KEYS
            ]

        record = General(
            sections=sections,
            facility_name=first_text(root, FACILITY_FIELDS),
            provider_name=first_text(root, GENERAL_PROVIDER_FIELDS),
            record_date=first_text(root, GENERAL_DATE_FIELDS),
            confidence=pipeline_settings.CONFIDENCE_SECTIONS,
        )
        self.logger.info(f"Built general record: {len(sections)} sections")
        return record

    def rescue_lab(self, decoded: Structured) -> Optional[LabResult]:
        """
        Lab rescue: the first top-level list of objects is tried as a test
        list. Accepted only when at least one test carries a value.
        """
        root = decoded.value
        candidates: List[Any] = []
        if _is_object_list(root):
            candidates.append(root)
        elif isinstance(root, dict):
            candidates.extend(value for value in root.values() if _is_object_list(value))
        if not candidates:
            return None

        record = self.lab_processor.build(Structured({"tests": candidates[0]}, decoded.strategy))
        if record is None or not any(test.value for test in record.tests):
            return None

        if isinstance(root, dict):
            record.subject = self.extract_subject(root)
            record.facility_name = first_text(root, FACILITY_FIELDS)
        record.confidence = pipeline_settings.CONFIDENCE_PARTIAL
        self.logger.info(f"Rescued {len(record.tests)} tests from general document")
        return record
