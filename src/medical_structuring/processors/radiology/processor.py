# ============================================================================
# src/medical_structuring/processors/radiology/processor.py
# ============================================================================
"""
Radiology Processor

Builds a Radiology record from a decoded imaging report:
- Study type, body part and modality (top level or a nested study object)
- Findings and impression
- Radiologist, facility, study and report dates
"""

import json
from typing import Any, Optional

from ..base_processor import BaseProcessor
from ...constants.field_synonyms import (
    FACILITY_FIELDS,
    FINDINGS_FIELDS,
    IMPRESSION_FIELDS,
    RADIOLOGIST_FIELDS,
    REPORT_DATE_FIELDS,
    STUDY_BLOCK_FIELDS,
    STUDY_DATE_FIELDS,
    STUDY_FIELDS,
)
from ...core.context.decoded_value import Structured
from ...core.context.records import Radiology
from ...utils.field_lookup import first_mapping, first_present, first_text, scalar_to_text


def render_narrative(value: Any) -> str:
    """Findings may arrive as text, a list of statements or a mapping."""
    if value is None:
        return ""
    if isinstance(value, list):
        return "\n".join(render_narrative(item) for item in value if item is not None).strip()
    if isinstance(value, dict):
        return "\n".join(
            f"{key}: {render_narrative(item)}" if not isinstance(item, (dict, list))
            else f"{key}: {json.dumps(item, ensure_ascii=False, default=str)}"
            for key, item in value.items()
        )
    return scalar_to_text(value)


class RadiologyProcessor(BaseProcessor):
    """
    Radiology report record builder.
    """

    def get_name(self) -> str:
        return "RadiologyProcessor"

    def build(self, decoded: Structured) -> Optional[Radiology]:
        root = decoded.value
        if not isinstance(root, dict):
            return None

        study = first_mapping(root, STUDY_BLOCK_FIELDS) or {}
        study_fields = {
            field: first_text(study, candidates) or first_text(root, candidates)
            for field, candidates in STUDY_FIELDS.items()
        }
        findings = render_narrative(first_present(root, FINDINGS_FIELDS))
        impression = render_narrative(first_present(root, IMPRESSION_FIELDS))

        if not (findings or impression or study_fields["study_type"]):
            self.logger.debug("No study, findings or impression found")
            return None

        study_date = first_text(study, STUDY_DATE_FIELDS) or first_text(root, STUDY_DATE_FIELDS)
        report_date = first_text(root, REPORT_DATE_FIELDS)
        record = Radiology(
            subject=self.extract_subject(root),
            study_type=study_fields["study_type"],
            body_part=study_fields["body_part"],
            modality=study_fields["modality"],
            findings=findings,
            impression=impression,
            study_date=study_date,
            report_date=report_date,
            facility_name=first_text(root, FACILITY_FIELDS),
            provider_name=first_text(root, RADIOLOGIST_FIELDS),
            record_date=study_date or report_date,
            confidence=self.confidence(decoded, bool(findings or impression)),
        )
        self.logger.info(
            f"Built radiology report: {record.study_type or 'unknown study'}, "
            f"confidence {record.confidence}"
        )
        return record
