# ============================================================================
# FILE: tests/unit/test_fhir_converter.py
# ============================================================================
"""
Unit tests for the FHIR R5 converter
"""

import re

import pytest

from medical_structuring.core.context import (
    General,
    HierarchyRole,
    LabResult,
    MedicalRecord,
    Medication,
    Prescription,
    Radiology,
    ResourceKind,
    Section,
    SubjectInfo,
    TestEntry,
    TestStatus,
    VitalEntry,
    Vitals,
)
from medical_structuring.fhir_utils import FHIRConverter, generate_fhir_id
from medical_structuring.fhir_utils.common import parse_date_to_fhir
from medical_structuring.utils.exceptions import FHIRConversionError

SOURCE_SYSTEM = "http://beingwell.app/source-document"
SUBJECT_ID = "patient-1"


@pytest.fixture
def converter():
    return FHIRConverter()


def identifiers(resource):
    return {(identifier.system, identifier.value) for identifier in resource.identifier or []}


@pytest.fixture
def lipid_record():
    return LabResult(
        facility_name="City Lab",
        collection_date="01/21/2025",
        confidence=0.9,
        tests=[
            TestEntry(name="Lipid Panel", hierarchy_role=HierarchyRole.PROFILE_HEADER),
            TestEntry(
                name="LDL", value="160", unit="mg/dL", reference_range="<130",
                status=TestStatus.HIGH, hierarchy_role=HierarchyRole.SUB_TEST,
                profile_name="Lipid Panel",
            ),
            TestEntry(
                name="HDL", value="45", unit="mg/dL", reference_range="40-60",
                hierarchy_role=HierarchyRole.SUB_TEST, profile_name="Lipid Panel",
            ),
            TestEntry(name="Urine Culture", value="No growth", status=TestStatus.PENDING),
        ],
    )


# ============================================================================
# LAB
# ============================================================================

def test_lab_observations(converter, lipid_record):
    resources = converter.convert(lipid_record, SUBJECT_ID, document_id="doc-1")

    assert len(resources) == 4
    assert all(resource.kind == ResourceKind.OBSERVATION for resource in resources)
    assert all(resource.source_document_id == "doc-1" for resource in resources)

    header, ldl, hdl, culture = [resource.resource for resource in resources]
    assert [member.reference for member in header.hasMember] == [
        f"Observation/{resources[1].resource_id}",
        f"Observation/{resources[2].resource_id}",
    ]
    assert header.valueQuantity is None
    assert header.interpretation is None

    assert ldl.code.coding[0].code == "13457-7"
    assert ldl.code.text == "LDL"
    assert float(ldl.valueQuantity.value) == 160
    assert ldl.valueQuantity.unit == "mg/dL"
    assert ldl.interpretation[0].coding[0].code == "H"
    assert ldl.referenceRange[0].text == "<130"
    assert ldl.subject.reference == f"Patient/{SUBJECT_ID}"
    assert str(ldl.effectiveDateTime).startswith("2025-01-21")
    assert ldl.performer[0].display == "City Lab"
    assert (SOURCE_SYSTEM, "doc-1") in identifiers(ldl)
    assert ("http://beingwell.app/observation-id", "doc-1-1") in identifiers(ldl)

    assert float(hdl.referenceRange[0].low.value) == 40
    assert float(hdl.referenceRange[0].high.value) == 60
    assert hdl.interpretation[0].coding[0].code == "N"

    assert culture.status == "registered"
    assert culture.valueString == "No growth"
    assert culture.code.coding is None
    assert culture.interpretation is None


def test_profile_adds_patient_first(converter, lipid_record):
    profile = {
        "id": "person-9",
        "first_name": "Jane",
        "last_name": "Roe",
        "gender": "F",
        "date_of_birth": "1980-05-01",
        "abha_id": "91-1234-5678-9012",
    }
    resources = converter.convert(lipid_record, SUBJECT_ID, document_id="doc-1", profile=profile)

    patient = resources[0]
    assert patient.kind == ResourceKind.PATIENT
    assert patient.resource_id == SUBJECT_ID
    assert patient.resource.name[0].given == ["Jane"]
    assert patient.resource.name[0].family == "Roe"
    assert patient.resource.gender == "female"
    assert str(patient.resource.birthDate) == "1980-05-01"
    assert ("http://beingwell.app/patient-id", "person-9") in identifiers(patient.resource)
    assert ("https://healthid.abdm.gov.in", "91-1234-5678-9012") in identifiers(patient.resource)
    assert len(resources) == 5


def test_subject_falls_back_to_document_details(converter):
    subject = SubjectInfo(name="Ravi Kumar", gender="M", patient_id="MRN-7")
    patient = converter.build_subject(SUBJECT_ID, "person-3", None, subject).resource

    assert patient.name[0].family == "Kumar"
    assert patient.name[0].given == ["Ravi"]
    assert patient.gender == "male"
    assert (None, "MRN-7") in identifiers(patient)


# ============================================================================
# OTHER RECORD TYPES
# ============================================================================

def test_prescription(converter):
    record = Prescription(
        provider_name="Dr. Smith",
        pharmacy="Main Street Pharmacy",
        record_date="2024-02-01",
        medications=[Medication(
            name="Metformin", dosage="500 mg", frequency="twice daily",
            route="oral", quantity="60", refills=2,
        )],
    )
    resources = converter.convert(record, SUBJECT_ID, document_id="doc-2")
    request = resources[0].resource

    assert resources[0].kind == ResourceKind.MEDICATION_REQUEST
    assert request.medication.concept.text == "Metformin"
    assert request.intent == "order"
    assert request.requester.display == "Dr. Smith"
    assert str(request.authoredOn).startswith("2024-02-01")
    dosage = request.dosageInstruction[0]
    assert dosage.text == "500 mg - twice daily"
    assert float(dosage.doseAndRate[0].doseQuantity.value) == 500
    assert dosage.route.text == "oral"
    assert float(request.dispenseRequest.quantity.value) == 60
    assert request.dispenseRequest.numberOfRepeatsAllowed == 2
    assert request.dispenseRequest.dispenser.display == "Main Street Pharmacy"


def test_vitals(converter):
    record = Vitals(
        record_date="2024-04-01",
        vitals=[
            VitalEntry(type="blood_pressure", value="120/80", unit="mm[Hg]"),
            VitalEntry(type="heart_rate", value="72", unit="bpm"),
            VitalEntry(type="pain_score", value="3"),
        ],
    )
    bp, pulse, pain = [resource.resource for resource in converter.convert(record, SUBJECT_ID)]

    assert bp.code.coding[0].code == "85354-9"
    assert [component.code.coding[0].code for component in bp.component] == ["8480-6", "8462-4"]
    assert [float(component.valueQuantity.value) for component in bp.component] == [120, 80]
    assert bp.valueQuantity is None

    assert pulse.code.coding[0].code == "8867-4"
    assert pulse.valueQuantity.unit == "bpm"
    assert str(pulse.effectiveDateTime).startswith("2024-04-01")

    assert pain.code.coding[0].system == "http://beingwell.app/vital-types"
    assert pain.code.coding[0].code == "pain_score"
    assert pain.valueString == "3"


def test_radiology(converter):
    record = Radiology(
        study_type="CT", body_part="Head", findings="No hemorrhage",
        impression="Normal CT head", provider_name="Dr. Lee", report_date="2024-03-11",
    )
    resources = converter.convert(record, SUBJECT_ID, document_id="doc-3")
    report = resources[0].resource

    assert resources[0].kind == ResourceKind.DIAGNOSTIC_REPORT
    assert report.code.coding[0].code == "18748-4"
    assert report.code.text == "CT Head"
    assert report.category[0].coding[0].code == "RAD"
    assert report.conclusion == "Normal CT head"
    assert report.performer[0].display == "Dr. Lee"
    assert report.issued is not None


def test_general(converter):
    record = General(sections=[Section("Chief complaint", "Headache")], confidence=0.3)
    report = converter.convert(record, SUBJECT_ID)[0].resource

    assert report.code.coding[0].code == "34109-9"
    assert report.conclusion == "Chief complaint: Headache"
    assert float(report.extension[0].valueDecimal) == 0.3


def test_empty_record_still_links(converter):
    record = LabResult(subject=SubjectInfo(name="Ann Lee"), confidence=0.5)
    resources = converter.convert(record, SUBJECT_ID, document_id="doc-4")

    assert len(resources) == 1
    assert resources[0].kind == ResourceKind.DIAGNOSTIC_REPORT
    assert resources[0].resource.code.coding[0].code == "11502-2"
    assert (SOURCE_SYSTEM, "doc-4") in identifiers(resources[0].resource)


def test_unsupported_record_raises(converter):
    with pytest.raises(FHIRConversionError) as excinfo:
        converter.convert(MedicalRecord(), SUBJECT_ID, document_id="doc-5")
    assert excinfo.value.document_id == "doc-5"


def test_to_dict(converter):
    resource = converter.convert(General(raw_text="note"), SUBJECT_ID)[0]
    data = resource.to_dict()

    assert data["id"] == resource.resource_id
    assert data["subject"]["reference"] == f"Patient/{SUBJECT_ID}"


# ============================================================================
# HELPERS
# ============================================================================

def test_generate_fhir_id():
    resource_id = generate_fhir_id("obs-")
    assert re.match(r"^obs-\d{13}-[0-9a-z]{6}$", resource_id)
    assert generate_fhir_id("obs-") != generate_fhir_id("obs-")


@pytest.mark.parametrize("raw, expected", [
    ("2024-01-15", "2024-01-15"),
    ("2024-01-15T10:30:00Z", "2024-01-15"),
    ("01/21/2025", "2025-01-21"),
    ("13/01/2025", "2025-01-13"),
    ("21 Jan 2025", "2025-01-21"),
    ("January 21, 2025", "2025-01-21"),
    ("2024-02-30", None),
    ("n/a", None),
    (None, None),
])
def test_parse_date_to_fhir(raw, expected):
    assert parse_date_to_fhir(raw) == expected
