# ============================================================================
# src/medical_structuring/processors/prescription/processor.py
# ============================================================================
"""
Prescription Processor

Builds a Prescription from a decoded medication order:
- Medication names, dosage, frequency, duration, instructions
- Route of administration
- Quantity and refills
- Prescriber and pharmacy
"""

from typing import Any, Dict, Optional

from ..base_processor import BaseProcessor
from ...constants.field_synonyms import (
    FACILITY_FIELDS,
    MEDICATION_ARRAY_FIELDS,
    MEDICATION_FIELDS,
    PHARMACY_FIELDS,
    PRESCRIBER_FIELDS,
    PRESCRIPTION_DATE_FIELDS,
)
from ...core.context.decoded_value import Structured
from ...core.context.records import Medication, Prescription
from ...utils.field_lookup import first_list, first_text
from ..lab.utils.parsing import parse_numeric_value

UNNAMED_MEDICATION = "Unnamed medication"


class PrescriptionProcessor(BaseProcessor):
    """
    Prescription record builder.
    """

    def get_name(self) -> str:
        return "PrescriptionProcessor"

    def build(self, decoded: Structured) -> Optional[Prescription]:
        root = decoded.value
        raw_medications = root if isinstance(root, list) else first_list(root, MEDICATION_ARRAY_FIELDS)
        medications = [
            medication
            for medication in (self._to_medication(item) for item in raw_medications or [])
            if medication is not None
        ]
        prescriber = first_text(root, PRESCRIBER_FIELDS)

        if not medications and not prescriber:
            self.logger.debug("No medications or prescriber found")
            return None

        record = Prescription(
            subject=self.extract_subject(root),
            medications=medications,
            pharmacy=first_text(root, PHARMACY_FIELDS),
            facility_name=first_text(root, FACILITY_FIELDS),
            provider_name=prescriber,
            record_date=first_text(root, PRESCRIPTION_DATE_FIELDS),
            confidence=self.confidence(decoded, bool(medications)),
        )
        self.logger.info(
            f"Built prescription: {len(medications)} medications, confidence {record.confidence}"
        )
        return record

    def _to_medication(self, item: Any) -> Optional[Medication]:
        if isinstance(item, str):
            return Medication(name=item.strip()) if item.strip() else None
        if not isinstance(item, dict):
            return None

        fields: Dict[str, Optional[str]] = {
            field: first_text(item, candidates)
            for field, candidates in MEDICATION_FIELDS.items()
        }
        if not any(fields.values()):
            return None

        return Medication(
            name=fields["name"] or UNNAMED_MEDICATION,
            dosage=fields["dosage"] or "",
            frequency=fields["frequency"] or "",
            duration=fields["duration"] or "",
            instructions=fields["instructions"] or "",
            route=fields["route"] or "",
            quantity=fields["quantity"],
            refills=self._parse_refills(fields["refills"]),
        )

    def _parse_refills(self, refills: Optional[str]) -> Optional[int]:
        """Refill count from text ("2 refills" -> 2, "none" -> 0)."""
        if refills is None:
            return None
        if refills.strip().lower() in ("none", "no", "nil", "false"):
            return 0
        value = parse_numeric_value(refills)
        if value is None or value < 0:
            return None
        return int(value)

