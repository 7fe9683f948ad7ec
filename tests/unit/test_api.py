# ============================================================================
# FILE: tests/unit/test_api.py
# ============================================================================
"""
Unit tests for the REST API
"""

import pytest
from fastapi.testclient import TestClient

from api import main
from api.main import app, get_store
from medical_structuring.utils.exceptions import FHIRConversionError


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# HEALTH
# ============================================================================

def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "version": "1.0.0"}


def test_root(client):
    assert client.get("/").json()["status"] == "ok"


# ============================================================================
# STRUCTURE / CONVERT
# ============================================================================

def test_structure_lab_text(client, glucose_fenced_text):
    body = client.post("/api/structure", json={"text": glucose_fenced_text}).json()

    assert body["document_type"] == "lab"
    assert body["decode_failed"] is False
    assert body["decode_strategy"] == "direct"
    assert body["record"]["tests"][0]["name"] == "Glucose"
    assert body["record"]["tests"][0]["status"] == "high"


def test_structure_prose(client):
    body = client.post("/api/structure", json={"text": "Patient seen today, no issues."}).json()

    assert body["document_type"] == "general"
    assert body["decode_failed"] is True
    assert body["decode_strategy"] is None


def test_convert_prescription(client, prescription_text):
    response = client.post("/api/convert", json={
        "text": prescription_text,
        "person_id": "person-1",
        "document_id": "doc-1",
        "profile": {"first_name": "Ann", "last_name": "Lee"},
    })
    body = response.json()

    assert response.status_code == 200
    assert body["document_type"] == "prescription"
    patient, *requests = body["resources"]
    assert patient["id"] == body["subject_id"]
    assert patient["name"][0]["family"] == "Lee"
    assert len(requests) == 2
    assert requests[0]["subject"]["reference"] == f"Patient/{body['subject_id']}"


def test_convert_failure_is_422(client, monkeypatch):
    def failing_convert(*args, **kwargs):
        raise FHIRConversionError("validation failed")

    monkeypatch.setattr(main.converter, "convert", failing_convert)
    response = client.post("/api/convert", json={"text": "{}", "person_id": "person-1"})

    assert response.status_code == 422
    assert response.json()["detail"] == "validation failed"


# ============================================================================
# DOCUMENTS / BACKFILL
# ============================================================================

def test_register_and_fetch_document(client, store, glucose_fenced_text):
    response = client.post("/api/documents", json={
        "person_id": "person-1",
        "extracted_text": glucose_fenced_text,
        "document_id": "doc-1",
        "profile": {"first_name": "John", "last_name": "Doe"},
    })
    assert response.json() == {"document_id": "doc-1", "status": "completed"}
    assert store.get_profile("person-1") == {"first_name": "John", "last_name": "Doe"}

    body = client.get("/api/documents/doc-1").json()
    assert body["person_id"] == "person-1"
    assert body["resources"] == []


def test_missing_document_is_404(client):
    assert client.get("/api/documents/nope").status_code == 404


def test_backfill(client, store, glucose_fenced_text, prescription_text):
    store.add_document("person-1", glucose_fenced_text, document_id="doc-1")
    store.add_document("person-2", prescription_text, document_id="doc-2")

    body = client.post("/api/backfill", json={"batchSize": 5}).json()

    assert body["success"] is True
    assert body["totalScanned"] == 2
    assert body["successCount"] == 2
    assert body["message"] == "FHIR backfill completed: 2 successful, 0 failed"

    resources = client.get("/api/documents/doc-1").json()["resources"]
    assert resources[0]["code"]["text"] == "Glucose"


def test_backfill_person_filter(client, store, glucose_fenced_text):
    store.add_document("person-1", glucose_fenced_text, document_id="doc-1")
    store.add_document("person-2", glucose_fenced_text, document_id="doc-2")

    body = client.post("/api/backfill", json={"personId": "person-2"}).json()

    assert body["totalScanned"] == 1
    assert store.has_linked_resources("doc-2")
    assert not store.has_linked_resources("doc-1")


def test_backfill_rejects_bad_batch_size(client):
    assert client.post("/api/backfill", json={"batchSize": 0}).status_code == 400
