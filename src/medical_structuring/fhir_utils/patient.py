# ============================================================================
# src/medical_structuring/fhir_utils/patient.py
# ============================================================================
"""
FHIR Patient resource builder.

Details come from the person's profile first and from the subject block
found in the document second.
"""

from typing import Any, Dict, List, Optional

from fhir.resources.address import Address
from fhir.resources.codeableconcept import CodeableConcept
from fhir.resources.contactpoint import ContactPoint
from fhir.resources.humanname import HumanName
from fhir.resources.identifier import Identifier
from fhir.resources.patient import Patient, PatientContact

from ..config.fhir_config import fhir_settings
from ..constants.field_synonyms import PROFILE_FIELDS
from ..core.context.records import SubjectInfo
from ..utils.field_lookup import first_present, first_text
from .common import build_meta, concept, parse_date_to_fhir
from .identifiers import patient_identifier

GENDER_MAP = {
    "male": "male", "m": "male",
    "female": "female", "f": "female",
    "other": "other", "unknown": "unknown",
}

EMERGENCY_CONTACT_SYSTEM = "http://terminology.hl7.org/CodeSystem/v2-0131"

# Structured address keys -> FHIR Address fields
ADDRESS_KEYS = {
    "city": "city",
    "district": "district",
    "state": "state",
    "postal_code": "postalCode",
    "pincode": "postalCode",
    "postalCode": "postalCode",
    "country": "country",
}


def build_human_name(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    full_name: Optional[str] = None,
) -> Optional[HumanName]:
    """Given/family from explicit parts, otherwise split a full name."""
    if first_name or last_name:
        text = " ".join(part for part in (first_name, last_name) if part)
        return HumanName(
            given=[first_name] if first_name else None,
            family=last_name or None,
            text=full_name or text,
        )
    if full_name:
        parts = full_name.split()
        return HumanName(
            family=parts[-1] if len(parts) > 1 else parts[0],
            given=parts[:-1] if len(parts) > 1 else None,
            text=full_name,
        )
    return None


def build_address(address: Any) -> Optional[Address]:
    if isinstance(address, dict):
        address_data: Dict[str, Any] = {}
        line = first_present(address, ("line", "street", "address_line", "line1"))
        if isinstance(line, list):
            address_data["line"] = [str(item) for item in line if item]
        elif line:
            address_data["line"] = [str(line)]
        for key, field in ADDRESS_KEYS.items():
            if address.get(key) and field not in address_data:
                address_data[field] = str(address[key])
        return Address(**address_data) if address_data else None
    if address:
        return Address(text=str(address))
    return None


def build_emergency_contact(name: Optional[str], phone: Optional[str]) -> Optional[PatientContact]:
    if not name and not phone:
        return None
    contact_data: Dict[str, Any] = {
        "relationship": [concept(EMERGENCY_CONTACT_SYSTEM, "C", "Emergency Contact")],
    }
    if name:
        contact_data["name"] = HumanName(text=name)
    if phone:
        contact_data["telecom"] = [ContactPoint(system="phone", value=phone)]
    return PatientContact(**contact_data)


def create_patient_resource(
    resource_id: str,
    person_id: str,
    profile: Optional[Dict[str, Any]] = None,
    fallback: Optional[SubjectInfo] = None,
) -> Patient:
    """
    Create FHIR Patient for a person.

    Args:
        resource_id: Synthetic Patient id
        person_id: Upstream person id (patient-id identifier)
        profile: Person profile mapping (names, gender, dob, phone, ...)
        fallback: Subject details found in the document

    Returns:
        FHIR Patient resource
    """
    profile = profile or {}
    fallback = fallback or SubjectInfo()
    fields = {
        field: first_text(profile, candidates)
        for field, candidates in PROFILE_FIELDS.items()
        if field != "address"
    }

    patient_data: Dict[str, Any] = {"id": resource_id, "meta": build_meta()}

    name = build_human_name(
        fields["first_name"], fields["last_name"], fields["full_name"] or fallback.name
    )
    if name:
        patient_data["name"] = [name]

    gender = (fields["gender"] or fallback.gender or "").strip().lower()
    if gender in GENDER_MAP:
        patient_data["gender"] = GENDER_MAP[gender]

    birth_date = parse_date_to_fhir(fields["birth_date"] or fallback.birth_date)
    if birth_date:
        patient_data["birthDate"] = birth_date

    if fields["phone"]:
        patient_data["telecom"] = [ContactPoint(system="phone", value=fields["phone"])]

    address = build_address(first_present(profile, PROFILE_FIELDS["address"]))
    if address:
        patient_data["address"] = [address]

    contact = build_emergency_contact(
        fields["emergency_contact_name"], fields["emergency_contact_phone"]
    )
    if contact:
        patient_data["contact"] = [contact]

    identifiers: List[Identifier] = [patient_identifier(person_id)]
    if fields["national_id"]:
        identifiers.append(Identifier(
            system=fhir_settings.FHIR_NATIONAL_ID_SYSTEM,
            type=CodeableConcept(text="ABHA"),
            value=fields["national_id"],
        ))
    if fallback.patient_id:
        identifiers.append(Identifier(
            type=CodeableConcept(text="MRN"),
            value=fallback.patient_id,
        ))
    patient_data["identifier"] = identifiers

    return Patient(**patient_data)
