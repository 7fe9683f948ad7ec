# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import json

import pytest

from medical_structuring.core.resource_store import ResourceStore


@pytest.fixture
def glucose_fenced_text():
    """Fenced JSON lab report with one out-of-range test"""
    body = {
        "patient": {"name": "John Doe", "age": 45, "gender": "Male"},
        "lab_name": "City Diagnostics",
        "report_date": "2024-01-15",
        "tests": [
            {"name": "Glucose", "value": 130, "unit": "mg/dL", "reference_range": "70-100"},
        ],
    }
    return "```json\n" + json.dumps(body, indent=2) + "\n```"


@pytest.fixture
def lipid_profile_text():
    """Root-level profile object with a sub-test array"""
    return json.dumps({
        "profile": "Lipid Panel",
        "subTests": [
            {"name": "LDL", "value": 160, "unit": "mg/dL", "range": "<130"},
            {"name": "HDL", "value": 45, "unit": "mg/dL", "range": "40-60"},
        ],
    })


@pytest.fixture
def prescription_text():
    return json.dumps({
        "prescriber": "Dr. Smith",
        "pharmacy": "Main Street Pharmacy",
        "date": "2024-02-01",
        "medications": [
            {"name": "Metformin", "dosage": "500 mg", "frequency": "twice daily", "refills": "2"},
            {"name": "Atorvastatin", "dosage": "20 mg", "frequency": "once daily"},
        ],
    })


@pytest.fixture
def visit_notes_text():
    """Decodable JSON with no type signal"""
    return json.dumps({
        "visit_notes": "Patient reports mild headache",
        "plan": "Rest and fluids",
    })


@pytest.fixture
def markdown_lab_text():
    """Lab report answered as markdown instead of JSON"""
    return (
        "## Lab Report\n"
        "\n"
        "Patient Name: Jane Roe\n"
        "Age: 42\n"
        "\n"
        "| Test | Result | Unit | Reference Range |\n"
        "|------|--------|------|-----------------|\n"
        "| Hemoglobin | 11.2 | g/dL | 12-16 |\n"
        "| Glucose | 92 | mg/dL | 70-100 |\n"
    )


@pytest.fixture
def store(tmp_path):
    """Resource store in a temporary directory"""
    return ResourceStore(tmp_path / "resources.db")
