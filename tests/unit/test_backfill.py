# ============================================================================
# FILE: tests/unit/test_backfill.py
# ============================================================================
"""
Unit tests for the FHIR backfill runner
"""

import pytest

from medical_structuring.core.backfill import BackfillRunner, BackfillSummary, DocumentOutcome
from medical_structuring.utils.exceptions import ConfigurationError, FHIRConversionError


@pytest.fixture
def seeded_store(store, glucose_fenced_text, prescription_text):
    store.add_document("person-1", glucose_fenced_text, document_id="doc-1")
    store.add_document("person-1", "Follow-up visit, no complaints.", document_id="doc-2")
    store.add_document("person-2", prescription_text, document_id="doc-3")
    store.add_document("person-2", "still processing", status="processing", document_id="doc-4")
    return store


@pytest.fixture
def runner(seeded_store):
    return BackfillRunner(seeded_store)


def test_backfill_converts_pending_documents(runner, seeded_store):
    summary = runner.run()

    assert summary.total_scanned == 3
    assert summary.needing_backfill == 3
    assert summary.success_count == 3
    assert summary.error_count == 0
    assert summary.message == "FHIR backfill completed: 3 successful, 0 failed"
    assert seeded_store.count_subjects() == 2
    for document_id in ("doc-1", "doc-2", "doc-3"):
        assert seeded_store.has_linked_resources(document_id)
    assert not seeded_store.has_linked_resources("doc-4")


def test_backfill_is_idempotent(runner, seeded_store):
    runner.run()
    resource_count = seeded_store.count_resources()

    summary = runner.run()

    assert summary.total_scanned == 0
    assert summary.needing_backfill == 0
    assert summary.success_count == 0
    assert seeded_store.count_resources() == resource_count
    assert seeded_store.count_subjects() == 2


def test_successive_runs_advance_through_documents(store, glucose_fenced_text):
    for index in range(4):
        store.add_document("person-1", glucose_fenced_text, document_id=f"doc-{index}")
    runner = BackfillRunner(store)

    first = runner.run(batch_size=2)
    second = runner.run(batch_size=2)
    third = runner.run(batch_size=2)

    assert (first.needing_backfill, first.success_count) == (2, 2)
    assert (second.needing_backfill, second.success_count) == (2, 2)
    assert third.total_scanned == 0
    assert all(store.has_linked_resources(f"doc-{index}") for index in range(4))
    assert store.count_subjects() == 1


def test_profile_feeds_subject(runner, seeded_store):
    seeded_store.save_profile("person-1", {"first_name": "Ann", "last_name": "Lee"})
    runner.run(person_id="person-1")

    patient = seeded_store.get_subject("person-1")
    assert patient["name"][0]["family"] == "Lee"
    assert patient["name"][0]["given"] == ["Ann"]


def test_resources_reference_the_stored_subject(runner, seeded_store):
    runner.run()
    subject_id = seeded_store.get_subject_id("person-2")

    requests = seeded_store.list_resources(person_id="person-2", kind="MedicationRequest")
    assert len(requests) == 2
    assert {request["subject"]["reference"] for request in requests} == {f"Patient/{subject_id}"}


def test_failures_are_isolated(runner, seeded_store, monkeypatch):
    convert = runner.converter.convert

    def flaky_convert(record, subject_id, document_id=None, profile=None):
        if document_id == "doc-2":
            raise FHIRConversionError("validation failed", document_id=document_id)
        return convert(record, subject_id, document_id=document_id, profile=profile)

    monkeypatch.setattr(runner.converter, "convert", flaky_convert)
    summary = runner.run()

    assert summary.success_count == 2
    assert summary.error_count == 1
    assert summary.errors == ["doc-2: validation failed"]
    assert not seeded_store.has_linked_resources("doc-2")

    # the failed document is retried on the next run
    monkeypatch.setattr(runner.converter, "convert", convert)
    assert runner.run().success_count == 1


def test_unexpected_errors_are_counted(runner, monkeypatch):
    def broken_process(text):
        raise RuntimeError("pipeline exploded")

    monkeypatch.setattr(runner.pipeline, "process", broken_process)
    summary = runner.run()

    assert summary.error_count == 3
    assert summary.success_count == 0
    assert summary.success


def test_batch_size_and_person_filter(runner):
    assert runner.run(batch_size=1).total_scanned == 1
    assert runner.run(person_id="person-2").total_scanned == 1


@pytest.mark.parametrize("options", [{"batch_size": 0}, {"max_workers": 0}])
def test_invalid_options(runner, options):
    with pytest.raises(ConfigurationError):
        runner.run(**options)


def test_parallel_run(runner, seeded_store):
    seeded_store.add_document("person-3", '{"tests": [{"name": "TSH", "value": 2.1}]}', document_id="doc-5")
    summary = runner.run(max_workers=3)

    assert summary.success_count == 4
    assert seeded_store.count_subjects() == 3


def test_stop_leaves_remaining_documents(runner, monkeypatch):
    process_document = runner.process_document

    def process_then_stop(document):
        outcome = process_document(document)
        runner.stop()
        return outcome

    monkeypatch.setattr(runner, "process_document", process_then_stop)
    summary = runner.run(max_workers=1)

    assert summary.cancelled
    assert summary.success_count == 1
    assert summary.needing_backfill == 3


def test_summary_views():
    summary = BackfillSummary(total_scanned=2, needing_backfill=2)
    summary.record(DocumentOutcome("doc-1", True, resource_count=3), error_sample=1)
    summary.record(DocumentOutcome("doc-2", False, error="boom"), error_sample=1)
    summary.record(DocumentOutcome("doc-3", False, error="bang"), error_sample=1)

    assert summary.errors == ["doc-2: boom"]
    assert summary.to_response() == {
        "success": True,
        "totalScanned": 2,
        "needingBackfill": 2,
        "successCount": 1,
        "errorCount": 2,
        "errors": ["doc-2: boom"],
        "message": "FHIR backfill completed: 1 successful, 2 failed",
    }
    assert summary.to_dict()["cancelled"] is False
