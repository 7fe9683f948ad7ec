# ============================================================================
# FILE: tests/unit/test_record_builder.py
# ============================================================================
"""
Unit tests for the canonical record builders
"""

import pytest

from medical_structuring.config.pipeline_config import pipeline_settings
from medical_structuring.constants.document_types import DocumentType
from medical_structuring.core.context import (
    DecodeStrategy,
    General,
    LabResult,
    Prescription,
    Radiology,
    SectionCategory,
    Structured,
    TestStatus,
    Vitals,
)
from medical_structuring.processors import RecordBuilder
from medical_structuring.processors.fallback.processor import build_section
from medical_structuring.processors.vitals.processor import canonical_vital_type


@pytest.fixture
def builder():
    return RecordBuilder()


def build(builder, value, document_type, strategy=DecodeStrategy.DIRECT):
    return builder.build(Structured(value, strategy), document_type)


# ============================================================================
# LAB
# ============================================================================

def test_lab_result(builder):
    record = build(builder, {
        "patient": {"name": "John Doe", "age": 45, "gender": "Male"},
        "lab_name": "City Lab",
        "report_date": "2024-01-15",
        "ordering_physician": "Dr. Rao",
        "tests": [{"name": "Glucose", "value": 130, "unit": "mg/dL", "reference_range": "70-100"}],
    }, DocumentType.LAB)

    assert isinstance(record, LabResult)
    assert record.subject.name == "John Doe"
    assert record.subject.age == "45"
    assert record.facility_name == "City Lab"
    assert record.provider_name == "Dr. Rao"
    assert record.record_date == "2024-01-15"
    assert record.tests[0].status == TestStatus.HIGH
    assert record.confidence == pipeline_settings.CONFIDENCE_STRUCTURED


def test_lab_root_profile(builder):
    record = build(builder, {
        "profile": "Lipid Panel",
        "subTests": [{"name": "LDL", "value": 160, "unit": "mg/dL", "range": "<130"}],
    }, DocumentType.LAB)

    assert [test.name for test in record.tests] == ["Lipid Panel", "LDL"]
    assert record.tests[1].status == TestStatus.HIGH


def test_salvaged_lab_is_partial(builder):
    record = build(
        builder, {"tests": [{"name": "Glucose", "value": 90}]}, DocumentType.LAB,
        strategy=DecodeStrategy.KEY_VALUE,
    )
    assert record.confidence == pipeline_settings.CONFIDENCE_PARTIAL


def test_lab_with_subject_only_is_partial(builder):
    record = build(builder, {"patient": {"name": "Ann Lee"}, "tests": []}, DocumentType.LAB)

    assert isinstance(record, LabResult)
    assert record.tests == []
    assert record.confidence == pipeline_settings.CONFIDENCE_PARTIAL


def test_empty_lab_falls_back_to_general(builder):
    record = build(builder, {"comment": "sample rejected"}, DocumentType.LAB)

    assert isinstance(record, General)
    assert record.sections[0].title == "Comment"
    assert record.confidence == pipeline_settings.CONFIDENCE_SECTIONS


# ============================================================================
# PRESCRIPTION
# ============================================================================

def test_prescription(builder):
    record = build(builder, {
        "prescriber": "Dr. Smith",
        "pharmacy": "Main Street Pharmacy",
        "date": "2024-02-01",
        "medications": [
            {"name": "Metformin", "dosage": "500 mg", "frequency": "twice daily", "refills": "2"},
            "Aspirin 81 mg",
            {"dose": "10 mg", "refills": "none"},
        ],
    }, DocumentType.PRESCRIPTION)

    assert isinstance(record, Prescription)
    assert [medication.name for medication in record.medications] == [
        "Metformin", "Aspirin 81 mg", "Unnamed medication",
    ]
    assert record.medications[0].refills == 2
    assert record.medications[2].refills == 0
    assert record.provider_name == "Dr. Smith"
    assert record.pharmacy == "Main Street Pharmacy"
    assert record.record_date == "2024-02-01"


# ============================================================================
# RADIOLOGY
# ============================================================================

def test_radiology(builder):
    record = build(builder, {
        "study": {"type": "CT", "body_part": "Head"},
        "findings": ["No hemorrhage", "No mass effect"],
        "impression": "Normal CT head",
        "radiologist": "Dr. Lee",
        "study_date": "2024-03-10",
    }, DocumentType.RADIOLOGY)

    assert isinstance(record, Radiology)
    assert record.study_type == "CT"
    assert record.body_part == "Head"
    assert record.findings == "No hemorrhage\nNo mass effect"
    assert record.impression == "Normal CT head"
    assert record.provider_name == "Dr. Lee"
    assert record.record_date == "2024-03-10"


def test_radiology_without_content_falls_back(builder):
    record = build(builder, {"radiologist": "Dr. Lee"}, DocumentType.RADIOLOGY)
    assert isinstance(record, General)


# ============================================================================
# VITALS
# ============================================================================

def test_vitals_list(builder):
    record = build(builder, {
        "vitals": [
            {"type": "BP", "systolic": 120, "diastolic": 80, "timestamp": "2024-04-01"},
            {"type": "pulse", "value": 72, "unit": "bpm"},
            {"type": "Pain Score", "value": 3},
            {"type": "weight"},
        ],
    }, DocumentType.VITALS)

    assert isinstance(record, Vitals)
    assert [(vital.type, vital.value, vital.unit) for vital in record.vitals] == [
        ("blood_pressure", "120/80", "mm[Hg]"),
        ("heart_rate", "72", "bpm"),
        ("pain_score", "3", ""),
    ]
    assert record.record_date == "2024-04-01"


def test_vitals_at_root(builder):
    record = build(builder, {
        "patient_name": "Jane",
        "date": "2024-05-05",
        "blood_pressure": "130/85",
        "heart_rate": 80,
    }, DocumentType.VITALS)

    assert [vital.type for vital in record.vitals] == ["blood_pressure", "heart_rate"]
    assert record.vitals[0].value == "130/85"
    assert record.subject.name == "Jane"
    assert record.record_date == "2024-05-05"


def test_canonical_vital_type():
    assert canonical_vital_type("SpO2") == "oxygen_saturation"
    assert canonical_vital_type("Heart Rate") == "heart_rate"
    assert canonical_vital_type("Pain Score") == "pain_score"


# ============================================================================
# GENERAL
# ============================================================================

def test_general_sections(builder):
    record = build(builder, {
        "chief_complaint": "Headache",
        "medications_reviewed": ["None"],
        "plan": {"follow_up": "2 weeks"},
    }, DocumentType.GENERAL)

    assert isinstance(record, General)
    assert [(s.title, s.content, s.category) for s in record.sections] == [
        ("Chief complaint", "Headache", SectionCategory.TEXT),
        ("Medications reviewed", "1. None", SectionCategory.LIST),
        ("Plan", "follow_up: 2 weeks", SectionCategory.OBJECT),
    ]
    assert record.confidence == pipeline_settings.CONFIDENCE_SECTIONS


def test_general_rescues_hidden_tests(builder):
    record = build(builder, {
        "patient_name": "Sam",
        "items": [{"name": "Glucose", "value": "110"}, {"name": "Urea", "value": "30"}],
    }, DocumentType.GENERAL)

    assert isinstance(record, LabResult)
    assert [test.name for test in record.tests] == ["Glucose", "Urea"]
    assert record.subject.name == "Sam"
    assert record.confidence == pipeline_settings.CONFIDENCE_PARTIAL


def test_rescue_needs_a_value(builder):
    record = build(builder, {"items": [{"name": "A"}, {"name": "B"}]}, DocumentType.GENERAL)

    assert isinstance(record, General)
    assert record.sections[0].category == SectionCategory.LIST


def test_list_root_sections(builder):
    record = build(builder, ["first note", "second note"], DocumentType.GENERAL)
    assert [section.title for section in record.sections] == ["Item 1", "Item 2"]


def test_build_section_renders_nested_items():
    section = build_section("Contacts", [{"name": "A"}, "B"])
    assert section.content == '1. {"name": "A"}\n2. B'


def test_record_to_dict_uses_plain_values(builder):
    record = build(builder, {"tests": [{"name": "TSH", "value": 2.0}]}, DocumentType.LAB)
    data = record.to_dict()

    assert data["document_type"] == "lab"
    assert data["tests"][0]["status"] == "normal"
    assert data["tests"][0]["hierarchy_role"] == "standalone"
