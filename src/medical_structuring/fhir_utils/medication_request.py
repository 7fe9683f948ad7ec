# ============================================================================
# src/medical_structuring/fhir_utils/medication_request.py
# ============================================================================
"""
FHIR MedicationRequest resource builder for prescriptions.

R5 shape (fhir.resources >= 7):
- medication[x] is a single 'medication' CodeableReference
- subject is required
"""

from typing import Any, Dict, Optional

from fhir.resources.codeableconcept import CodeableConcept
from fhir.resources.codeablereference import CodeableReference
from fhir.resources.dosage import Dosage, DosageDoseAndRate
from fhir.resources.medicationrequest import MedicationRequest, MedicationRequestDispenseRequest
from fhir.resources.quantity import Quantity

from ..core.context.records import Medication
from ..processors.lab.utils.parsing import parse_dose, parse_numeric_value
from .common import (
    UCUM_SYSTEM,
    build_meta,
    clean_code,
    confidence_extensions,
    display_reference,
    subject_reference,
)
from .identifiers import linkage_identifiers

DOSAGE_TEXT_SEPARATOR = " - "


def create_medication_request(
    medication: Medication,
    resource_id: str,
    subject_id: str,
    document_id: Optional[str] = None,
    authored_on: Optional[str] = None,
    prescriber: Optional[str] = None,
    pharmacy: Optional[str] = None,
    confidence: Optional[float] = None,
) -> MedicationRequest:
    """
    Create FHIR MedicationRequest for one prescribed medication.

    Args:
        medication: Canonical medication
        resource_id: Synthetic MedicationRequest id
        subject_id: Patient resource id
        document_id: Source document id (identifier linkage)
        authored_on: FHIR date of the prescription
        prescriber: Requester display name
        pharmacy: Dispenser display name
        confidence: Record confidence for the extension

    Returns:
        FHIR MedicationRequest resource
    """
    request_data: Dict[str, Any] = {
        "id": resource_id,
        "meta": build_meta(),
        "status": "active",
        "intent": "order",
        "medication": CodeableReference(concept=build_medication_concept(medication.name)),
        "subject": subject_reference(subject_id),
    }

    identifiers = linkage_identifiers(document_id)
    if identifiers:
        request_data["identifier"] = identifiers
    if authored_on:
        request_data["authoredOn"] = authored_on

    requester = display_reference(prescriber)
    if requester:
        request_data["requester"] = requester

    dosage = build_dosage(medication)
    if dosage is not None:
        request_data["dosageInstruction"] = [dosage]

    dispense_request = build_dispense_request(medication.quantity, medication.refills, pharmacy)
    if dispense_request is not None:
        request_data["dispenseRequest"] = dispense_request

    extensions = confidence_extensions(confidence)
    if extensions:
        request_data["extension"] = extensions

    return MedicationRequest(**request_data)


def build_medication_concept(medication_name: str) -> CodeableConcept:
    """
    Build CodeableConcept for medication.

    Args:
        medication_name: Name of medication

    Returns:
        CodeableConcept with the name as text
    """
    return CodeableConcept(text=medication_name)


def build_dosage(medication: Medication) -> Optional[Dosage]:
    """
    Dosage text is dosage, frequency, duration and instructions joined by
    " - ". A parseable dosage ("500 mg") also becomes a dose quantity.
    """
    parts = [
        part for part in (
            medication.dosage,
            medication.frequency,
            medication.duration,
            medication.instructions,
        )
        if part
    ]
    if not parts and not medication.route:
        return None

    dosage_data: Dict[str, Any] = {}
    if parts:
        dosage_data["text"] = DOSAGE_TEXT_SEPARATOR.join(parts)

    dose = parse_dose(medication.dosage)
    if dose is not None:
        value, unit = dose
        dosage_data["doseAndRate"] = [DosageDoseAndRate(
            doseQuantity=Quantity(value=value, unit=unit, system=UCUM_SYSTEM, code=clean_code(unit))
        )]

    if medication.route:
        dosage_data["route"] = CodeableConcept(text=medication.route)

    return Dosage(**dosage_data)


def build_dispense_request(
    quantity: Optional[str] = None,
    refills: Optional[int] = None,
    pharmacy: Optional[str] = None,
) -> Optional[MedicationRequestDispenseRequest]:
    """
    Build dispense request with quantity, refills and dispensing pharmacy.

    Returns:
        MedicationRequestDispenseRequest, or None when nothing is known
    """
    dispense_data: Dict[str, Any] = {}

    quantity_value = parse_numeric_value(quantity) if quantity else None
    if quantity_value is not None and quantity_value >= 0:
        dispense_data["quantity"] = Quantity(value=quantity_value)

    if refills is not None:
        dispense_data["numberOfRepeatsAllowed"] = refills

    dispenser = display_reference(pharmacy)
    if dispenser:
        dispense_data["dispenser"] = dispenser

    if not dispense_data:
        return None
    return MedicationRequestDispenseRequest(**dispense_data)
