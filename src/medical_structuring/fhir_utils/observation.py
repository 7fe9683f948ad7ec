# ============================================================================
# src/medical_structuring/fhir_utils/observation.py
# ============================================================================
"""
FHIR Observation resource builders for lab results and vital signs.
"""

from typing import Any, Dict, List, Optional

from fhir.resources.annotation import Annotation
from fhir.resources.codeableconcept import CodeableConcept
from fhir.resources.coding import Coding
from fhir.resources.observation import (
    Observation,
    ObservationComponent,
    ObservationReferenceRange,
)
from fhir.resources.quantity import Quantity
from fhir.resources.reference import Reference

from ..config.fhir_config import fhir_settings
from ..constants.loinc import lookup_loinc
from ..constants.vital_codes import VITAL_SIGN_CODES
from ..core.context.enums import TestStatus
from ..core.context.records import TestEntry, VitalEntry
from ..processors.lab.utils.parsing import parse_quantity, parse_reference_bounds
from ..utils.text_normalizer import format_display_name
from .common import (
    INTERPRETATION_SYSTEM,
    LOINC_SYSTEM,
    UCUM_SYSTEM,
    build_meta,
    clean_code,
    confidence_extensions,
    concept,
    observation_category,
    performer_references,
    subject_reference,
)
from .identifiers import linkage_identifiers, observation_identifier

# TestStatus -> v3-ObservationInterpretation (pending/unknown carry none)
INTERPRETATION_CODES = {
    TestStatus.NORMAL: ("N", "Normal"),
    TestStatus.HIGH: ("H", "High"),
    TestStatus.LOW: ("L", "Low"),
    TestStatus.CRITICAL: ("AA", "Critical abnormal"),
    TestStatus.ABNORMAL: ("A", "Abnormal"),
}

BLOOD_PRESSURE_COMPONENTS = (
    ("8480-6", "Systolic blood pressure"),
    ("8462-4", "Diastolic blood pressure"),
)


def build_quantity(value: str, unit: str) -> Optional[Quantity]:
    """Quantity for a purely numeric value (optional comparator) with a unit."""
    parsed = parse_quantity(value)
    if parsed is None or not unit:
        return None
    comparator, number = parsed
    unit = clean_code(unit)
    data: Dict[str, Any] = {"value": number, "unit": unit, "system": UCUM_SYSTEM, "code": unit}
    if comparator:
        data["comparator"] = comparator
    return Quantity(**data)


def build_reference_range(reference_range: str, unit: str) -> Optional[List[ObservationReferenceRange]]:
    """
    Build FHIR reference range for a test.

    Text is always kept; low/high are added for two-sided numeric ranges.
    """
    if not reference_range:
        return None

    range_data: Dict[str, Any] = {"text": reference_range}
    bounds = parse_reference_bounds(reference_range)
    if bounds is not None and bounds.kind == "between":
        for key, value in (("low", bounds.low), ("high", bounds.high)):
            quantity: Dict[str, Any] = {"value": value}
            if unit:
                quantity.update(unit=clean_code(unit), system=UCUM_SYSTEM, code=clean_code(unit))
            range_data[key] = Quantity(**quantity)
    return [ObservationReferenceRange(**range_data)]


def build_interpretation(status: Optional[TestStatus]) -> Optional[List[CodeableConcept]]:
    """
    Build FHIR interpretation from a test status.

    Returns:
        List with CodeableConcept, or None for pending/unknown/missing
    """
    if status not in INTERPRETATION_CODES:
        return None
    code, display = INTERPRETATION_CODES[status]
    return [concept(INTERPRETATION_SYSTEM, code, display)]


def build_lab_code(name: str) -> CodeableConcept:
    """Code text is the test name; LOINC coding only when the name is known."""
    loinc = lookup_loinc(name)
    codings = None
    if loinc:
        code, display = loinc
        codings = [Coding(system=LOINC_SYSTEM, code=code, display=display)]
    return CodeableConcept(coding=codings, text=name)


def create_lab_observation(
    test: TestEntry,
    resource_id: str,
    subject_id: str,
    index: int,
    document_id: Optional[str] = None,
    effective_date: Optional[str] = None,
    facility: Optional[str] = None,
    member_ids: Optional[List[str]] = None,
    confidence: Optional[float] = None,
) -> Observation:
    """
    Create FHIR Observation resource for one test entry.

    Args:
        test: Normalized test entry
        resource_id: Synthetic Observation id
        subject_id: Patient resource id
        index: Position of the test within its document
        document_id: Source document id (identifier linkage)
        effective_date: FHIR date of collection/report
        facility: Performing lab display name
        member_ids: Observation ids of a profile header's subTests
        confidence: Record confidence for the extension

    Returns:
        FHIR Observation resource
    """
    obs_data: Dict[str, Any] = {
        "id": resource_id,
        "meta": build_meta(),
        "status": "registered" if test.status == TestStatus.PENDING else "final",
        "category": observation_category("laboratory", "Laboratory"),
        "code": build_lab_code(test.name),
        "subject": subject_reference(subject_id),
    }

    identifiers = linkage_identifiers(
        document_id, *([observation_identifier(document_id, index)] if document_id else [])
    )
    if identifiers:
        obs_data["identifier"] = identifiers
    if effective_date:
        obs_data["effectiveDateTime"] = effective_date

    performers = performer_references(facility)
    if performers:
        obs_data["performer"] = performers

    if test.is_profile_header:
        if member_ids:
            obs_data["hasMember"] = [Reference(reference=f"Observation/{member_id}") for member_id in member_ids]
    else:
        quantity = build_quantity(test.value, test.unit)
        if quantity is not None:
            obs_data["valueQuantity"] = quantity
        elif test.value:
            obs_data["valueString"] = test.value

        reference_range = build_reference_range(test.reference_range, test.unit)
        if reference_range:
            obs_data["referenceRange"] = reference_range

        interpretation = build_interpretation(test.status)
        if interpretation:
            obs_data["interpretation"] = interpretation

    if test.notes:
        obs_data["note"] = [Annotation(text=test.notes)]

    extensions = confidence_extensions(confidence)
    if extensions:
        obs_data["extension"] = extensions

    return Observation(**obs_data)


def build_vital_code(vital_type: str) -> CodeableConcept:
    """LOINC for known vital types, local vital-types system otherwise."""
    known = VITAL_SIGN_CODES.get(vital_type)
    if known:
        return CodeableConcept(
            coding=[Coding(system=LOINC_SYSTEM, code=known["code"], display=known["display"])],
            text=known["display"],
        )
    code = vital_type or "unknown"
    display = format_display_name(code)
    return concept(fhir_settings.identifier_system("vital-types"), code, display, text=display)


def build_blood_pressure_components(value: str, unit: str) -> Optional[List[ObservationComponent]]:
    """Split "120/80" into systolic and diastolic components."""
    parts = [part.strip() for part in value.split("/")]
    if len(parts) != 2:
        return None
    components = []
    for part, (code, display) in zip(parts, BLOOD_PRESSURE_COMPONENTS):
        quantity = build_quantity(part, unit)
        if quantity is None:
            return None
        components.append(ObservationComponent(
            code=concept(LOINC_SYSTEM, code, display),
            valueQuantity=quantity,
        ))
    return components


def create_vital_observation(
    vital: VitalEntry,
    resource_id: str,
    subject_id: str,
    document_id: Optional[str] = None,
    effective_date: Optional[str] = None,
    performer: Optional[str] = None,
    confidence: Optional[float] = None,
) -> Observation:
    """
    Create FHIR Observation resource for one vital sign reading.

    Unknown vital types are coded in the local vital-types system and never
    dropped.
    """
    known = VITAL_SIGN_CODES.get(vital.type)
    unit = vital.unit or (known["unit"] if known else "")

    obs_data: Dict[str, Any] = {
        "id": resource_id,
        "meta": build_meta(),
        "status": "final",
        "category": observation_category("vital-signs", "Vital Signs"),
        "code": build_vital_code(vital.type),
        "subject": subject_reference(subject_id),
    }

    identifiers = linkage_identifiers(document_id)
    if identifiers:
        obs_data["identifier"] = identifiers
    if effective_date:
        obs_data["effectiveDateTime"] = effective_date

    performers = performer_references(performer)
    if performers:
        obs_data["performer"] = performers

    components = None
    if vital.type == "blood_pressure":
        components = build_blood_pressure_components(vital.value, unit)
    if components:
        obs_data["component"] = components
    else:
        quantity = build_quantity(vital.value, unit)
        if quantity is not None:
            obs_data["valueQuantity"] = quantity
        elif vital.value:
            obs_data["valueString"] = vital.value

    interpretation = build_interpretation(vital.status)
    if interpretation:
        obs_data["interpretation"] = interpretation
    if vital.notes:
        obs_data["note"] = [Annotation(text=vital.notes)]

    extensions = confidence_extensions(confidence)
    if extensions:
        obs_data["extension"] = extensions

    return Observation(**obs_data)
