# ============================================================================
# FILE: tests/unit/test_document_classifier.py
# ============================================================================
"""
Unit tests for the schema classifier
"""

import pytest

from medical_structuring.classifiers.document_classifier import DocumentClassifier
from medical_structuring.constants.document_types import DocumentType
from medical_structuring.core.context import Structured, Undecodable


@pytest.fixture
def classifier():
    return DocumentClassifier()


def classify(classifier, value):
    return classifier.classify(Structured(value))


def test_lab_by_test_array(classifier):
    value = {"tests": [{"name": "Glucose", "value": 130}]}
    assert classify(classifier, value) == DocumentType.LAB


def test_prescription(classifier):
    value = {"medications": [{"name": "Metformin", "dosage": "500 mg", "frequency": "twice daily"}]}
    assert classify(classifier, value) == DocumentType.PRESCRIPTION


def test_radiology(classifier):
    value = {
        "study_type": "Chest X-Ray",
        "findings": "Lungs are clear",
        "impression": "Normal chest radiograph",
    }
    assert classify(classifier, value) == DocumentType.RADIOLOGY


def test_vitals(classifier):
    value = {
        "vitals": [
            {"type": "blood_pressure", "systolic": 120, "diastolic": 80},
            {"type": "heart_rate", "value": 72},
        ]
    }
    assert classify(classifier, value) == DocumentType.VITALS


def test_bare_list_of_tests(classifier):
    value = [{"test_name": "WBC", "result": "7.2", "reference_range": "4-11"}]
    assert classify(classifier, value) == DocumentType.LAB


def test_data_wrapper_keys_count(classifier):
    value = {"data": {"medications": [{"name": "Amoxicillin"}]}}
    assert classify(classifier, value) == DocumentType.PRESCRIPTION


def test_vocabulary_alone_is_enough(classifier):
    assert classify(classifier, {"summary": "Hemoglobin slightly low"}) == DocumentType.LAB


def test_tie_goes_to_priority_order(classifier):
    # one lab term, one prescription term
    assert classify(classifier, {"info": "glucose tablet"}) == DocumentType.LAB


def test_no_signal_is_general(classifier):
    value = {"notes": "Patient doing well", "follow_up": "2 weeks"}
    assert classify(classifier, value) == DocumentType.GENERAL


def test_undecodable_is_general(classifier):
    assert classifier.classify(Undecodable()) == DocumentType.GENERAL


def test_scores(classifier):
    scores = classifier.classify_with_scores({"tests": [], "glucose": 1})
    assert scores[DocumentType.LAB]["fields"] == 3
    assert scores[DocumentType.LAB]["vocabulary"] == 1
    assert scores[DocumentType.LAB]["score"] == 4
    assert scores[DocumentType.RADIOLOGY]["score"] == 0
