# ============================================================================
# FILE: tests/unit/test_document_pipeline.py
# ============================================================================
"""
Unit tests for the document structuring pipeline
"""

import pytest

from medical_structuring.config.pipeline_config import pipeline_settings
from medical_structuring.constants.document_types import DocumentType
from medical_structuring.core.context import (
    DecodeStrategy,
    General,
    HierarchyRole,
    LabResult,
    Prescription,
    Structured,
    TestStatus,
)
from medical_structuring.core.document_pipeline import RAW_TEXT_SECTION_TITLE, DocumentPipeline


@pytest.fixture(scope="module")
def pipeline():
    return DocumentPipeline()


def test_fenced_lab_report(pipeline, glucose_fenced_text):
    result = pipeline.process(glucose_fenced_text)

    assert not result.decode_failed
    assert result.decoded.strategy == DecodeStrategy.DIRECT
    assert result.document_type == DocumentType.LAB
    assert isinstance(result.record, LabResult)
    assert result.record.tests[0].name == "Glucose"
    assert result.record.tests[0].status == TestStatus.HIGH
    assert result.record.subject.name == "John Doe"


def test_root_profile_report(pipeline, lipid_profile_text):
    result = pipeline.process(lipid_profile_text)
    tests = result.record.tests

    assert result.document_type == DocumentType.LAB
    assert tests[0].name == "Lipid Panel"
    assert tests[0].hierarchy_role == HierarchyRole.PROFILE_HEADER
    assert tests[1].name == "LDL"
    assert tests[1].profile_name == "Lipid Panel"
    assert tests[1].status == TestStatus.HIGH
    assert tests[2].status == TestStatus.NORMAL


def test_prescription(pipeline, prescription_text):
    result = pipeline.process(prescription_text)

    assert result.document_type == DocumentType.PRESCRIPTION
    assert isinstance(result.record, Prescription)
    assert len(result.record.medications) == 2


def test_untyped_notes_become_sections(pipeline, visit_notes_text):
    result = pipeline.process(visit_notes_text)

    assert result.document_type == DocumentType.GENERAL
    assert isinstance(result.record, General)
    assert len(result.record.sections) == 2
    assert result.record.confidence == pipeline_settings.CONFIDENCE_SECTIONS


def test_truncated_lab_report(pipeline):
    text = '{"tests": [{"name": "Hemoglobin", "value": 10.1, "unit": "g/dL", "range": "12-16"}, {"name": "WB'
    result = pipeline.process(text)

    assert isinstance(result.decoded, Structured)
    assert result.document_type == DocumentType.LAB
    assert result.record.tests[0].status == TestStatus.LOW


def test_bracketed_prose_before_lab_report(pipeline):
    text = (
        'Results [see page 2] follow: '
        '{"tests": [{"name": "Glucose", "value": 130, "unit": "mg/dL", "range": "70-100"}]}'
    )
    result = pipeline.process(text)

    assert result.decoded.strategy == DecodeStrategy.PARTIAL
    assert result.document_type == DocumentType.LAB
    assert [test.name for test in result.record.tests] == ["Glucose"]
    assert result.record.tests[0].status == TestStatus.HIGH


def test_markdown_lab_report(pipeline, markdown_lab_text):
    result = pipeline.process(markdown_lab_text)

    assert result.decode_failed
    assert result.document_type == DocumentType.LAB
    assert [test.name for test in result.record.tests] == ["Hemoglobin", "Glucose"]
    assert result.record.tests[0].status == TestStatus.LOW
    assert result.record.subject.name == "Jane Roe"
    assert result.record.confidence == pipeline_settings.CONFIDENCE_PARTIAL


def test_prose_keeps_raw_text(pipeline):
    result = pipeline.process("Patient seen today. Advised rest.")

    assert result.decode_failed
    assert result.document_type == DocumentType.GENERAL
    assert result.record.raw_text == "Patient seen today. Advised rest."
    assert result.record.sections[0].title == RAW_TEXT_SECTION_TITLE
    assert result.record.confidence == pipeline_settings.CONFIDENCE_RAW_TEXT


def test_empty_text(pipeline):
    result = pipeline.process("")

    assert result.decode_failed
    assert isinstance(result.record, General)
    assert result.record.sections == []
