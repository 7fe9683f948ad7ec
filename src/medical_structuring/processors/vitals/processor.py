# ============================================================================
# src/medical_structuring/processors/vitals/processor.py
# ============================================================================
"""
Vitals Processor

Builds a Vitals record from either shape extraction models produce:
- a list of {type, value, unit, timestamp} readings
- a mapping of vital type -> value or reading object

Vital types are canonicalized through VITAL_TYPE_SYNONYMS ("pulse" ->
"heart_rate"). Unknown types are kept under their slugified name. Blood
pressure given as systolic/diastolic is rendered "120/80".
"""

import re
from typing import Any, Dict, List, Optional

from ..base_processor import BaseProcessor
from ...constants.field_synonyms import (
    FACILITY_FIELDS,
    GENERAL_DATE_FIELDS,
    GENERAL_PROVIDER_FIELDS,
    VITAL_FIELDS,
    VITALS_ARRAY_FIELDS,
)
from ...constants.vital_codes import VITAL_SIGN_CODES, VITAL_TYPE_SYNONYMS
from ...core.context.decoded_value import Structured
from ...core.context.records import VitalEntry, Vitals
from ...utils.field_lookup import first_text, get_path, scalar_to_text
from ..lab.utils.status import status_from_text

_SLUG = re.compile(r"[^a-z0-9]+")

SYSTOLIC_FIELDS = ("systolic", "sbp", "systolic_bp")
DIASTOLIC_FIELDS = ("diastolic", "dbp", "diastolic_bp")
BLOOD_PRESSURE_UNIT = "mm[Hg]"

# Keys describing a reading rather than naming a vital
_READING_DETAIL_KEYS = VITAL_FIELDS["timestamp"] + VITAL_FIELDS["unit"] + VITAL_FIELDS["notes"]


def canonical_vital_type(name: str) -> str:
    """Lowercase slug, mapped onto a canonical vital type when known."""
    slug = _SLUG.sub("_", str(name).lower()).strip("_")
    return VITAL_TYPE_SYNONYMS.get(slug, slug)


class VitalsProcessor(BaseProcessor):
    """
    Vital signs record builder.
    """

    def get_name(self) -> str:
        return "VitalsProcessor"

    def build(self, decoded: Structured) -> Optional[Vitals]:
        root = decoded.value
        vitals = [entry for entry in self._readings(root) if entry is not None]
        if not vitals:
            self.logger.debug("No vital sign readings found")
            return None

        record = Vitals(
            subject=self.extract_subject(root),
            vitals=vitals,
            facility_name=first_text(root, FACILITY_FIELDS),
            provider_name=first_text(root, GENERAL_PROVIDER_FIELDS),
            record_date=first_text(root, GENERAL_DATE_FIELDS) or vitals[0].timestamp,
            confidence=self.confidence(decoded, True),
        )
        self.logger.info(f"Built vitals: {len(vitals)} readings, confidence {record.confidence}")
        return record

    # ------------------------------------------------------------------
    # Reading discovery
    # ------------------------------------------------------------------
    def _readings(self, root: Any) -> List[Optional[VitalEntry]]:
        if isinstance(root, list):
            return [self._from_item(item) for item in root]
        if not isinstance(root, dict):
            return []

        for candidate in VITALS_ARRAY_FIELDS:
            container = get_path(root, candidate)
            if isinstance(container, list) and container:
                return [self._from_item(item) for item in container]
            if isinstance(container, dict) and container:
                return self._from_mapping(container, known_only=False)

        # Vital types directly at the root, next to patient/date keys
        return self._from_mapping(root, known_only=True)

    def _from_mapping(self, mapping: Dict[str, Any], known_only: bool) -> List[Optional[VitalEntry]]:
        readings: List[Optional[VitalEntry]] = []
        if self._has_blood_pressure_pair(mapping):
            timestamp = first_text(mapping, VITAL_FIELDS["timestamp"])
            readings.append(self._blood_pressure(mapping, {"timestamp": timestamp}))

        for key, body in mapping.items():
            vital_type = canonical_vital_type(key)
            if key in SYSTOLIC_FIELDS or key in DIASTOLIC_FIELDS or key in _READING_DETAIL_KEYS:
                continue
            if known_only and vital_type not in VITAL_SIGN_CODES:
                continue
            if isinstance(body, dict):
                readings.append(self._from_item({"type": key, **body}))
            elif isinstance(body, list):
                continue
            elif scalar_to_text(body):
                readings.append(self._from_item({"type": key, "value": body}))
        return readings

    # ------------------------------------------------------------------
    # Single reading
    # ------------------------------------------------------------------
    def _from_item(self, item: Any) -> Optional[VitalEntry]:
        if not isinstance(item, dict):
            return None

        raw_type = first_text(item, VITAL_FIELDS["type"])
        if raw_type is None and self._has_blood_pressure_pair(item):
            raw_type = "blood_pressure"
        if raw_type is None:
            return None

        vital_type = canonical_vital_type(raw_type)
        if vital_type == "blood_pressure" and self._has_blood_pressure_pair(item):
            return self._blood_pressure(item, item)

        value = first_text(item, VITAL_FIELDS["value"]) or ""
        if not value:
            return None
        return VitalEntry(
            type=vital_type,
            value=value,
            unit=first_text(item, VITAL_FIELDS["unit"]) or "",
            timestamp=first_text(item, VITAL_FIELDS["timestamp"]),
            status=status_from_text(item.get("status")),
            notes=first_text(item, VITAL_FIELDS["notes"]) or "",
        )

    def _has_blood_pressure_pair(self, data: Dict[str, Any]) -> bool:
        return (
            first_text(data, SYSTOLIC_FIELDS) is not None
            and first_text(data, DIASTOLIC_FIELDS) is not None
        )

    def _blood_pressure(self, values: Dict[str, Any], details: Dict[str, Any]) -> VitalEntry:
        systolic = first_text(values, SYSTOLIC_FIELDS)
        diastolic = first_text(values, DIASTOLIC_FIELDS)
        return VitalEntry(
            type="blood_pressure",
            value=f"{systolic}/{diastolic}",
            unit=first_text(details, VITAL_FIELDS["unit"]) or BLOOD_PRESSURE_UNIT,
            timestamp=first_text(details, VITAL_FIELDS["timestamp"]),
            status=status_from_text(details.get("status")),
            notes=first_text(details, VITAL_FIELDS["notes"]) or "",
        )
