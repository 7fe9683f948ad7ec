# ============================================================================
# FILE: tests/unit/test_configuration.py
# ============================================================================
"""
Unit tests for settings and logging setup
"""

import json
import logging

import pytest
from pydantic import ValidationError

from medical_structuring.config import base_settings, fhir_settings, logging_settings, pipeline_settings
from medical_structuring.config.fhir_config import FHIRSettings
from medical_structuring.config.pipeline_config import PipelineSettings
from medical_structuring.utils.logging import JsonFormatter, LogAdapter


# ============================================================================
# SETTINGS
# ============================================================================

def test_settings_load():
    assert base_settings.RESOURCE_DB_PATH.name == "resources.db"
    assert fhir_settings.FHIR_VERSION == "R5"
    assert logging_settings.LOG_LEVEL
    assert pipeline_settings.DECODER_MIN_CHUNK_SIZE <= pipeline_settings.DECODER_MAX_CHUNK_SIZE


def test_default_confidence_tiers():
    settings = PipelineSettings()
    assert settings.CONFIDENCE_STRUCTURED == 0.9
    assert settings.CONFIDENCE_PARTIAL == 0.5
    assert settings.CONFIDENCE_SECTIONS == 0.3
    assert settings.CONFIDENCE_RAW_TEXT == 0.1


def test_confidence_tiers_must_not_increase():
    with pytest.raises(ValidationError):
        PipelineSettings(CONFIDENCE_PARTIAL=0.95)


def test_chunk_bounds_must_be_ordered():
    with pytest.raises(ValidationError):
        PipelineSettings(DECODER_MIN_CHUNK_SIZE=5000, DECODER_MAX_CHUNK_SIZE=2000)


def test_backfill_batch_size_must_be_positive():
    with pytest.raises(ValidationError):
        PipelineSettings(BACKFILL_BATCH_SIZE=0)


def test_identifier_system():
    assert fhir_settings.identifier_system("source-document") == "http://beingwell.app/source-document"
    custom = FHIRSettings(FHIR_IDENTIFIER_NAMESPACE="https://example.org/")
    assert custom.identifier_system("patient-id") == "https://example.org/patient-id"


# ============================================================================
# LOGGING
# ============================================================================

def _record(**extra):
    record = logging.LogRecord(
        "medical_structuring.test", logging.INFO, __file__, 10, "converted %s", ("doc",), None
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter():
    payload = json.loads(JsonFormatter().format(_record()))
    assert payload["message"] == "converted doc"
    assert payload["level"] == "INFO"
    assert "document_id" not in payload


def test_json_formatter_includes_document_id():
    payload = json.loads(JsonFormatter().format(_record(document_id="doc-1")))
    assert payload["document_id"] == "doc-1"


def test_log_adapter_adds_context(caplog):
    logger = logging.getLogger("medical_structuring.test")
    adapter = LogAdapter(logger, {"document_id": "doc-7"})

    with caplog.at_level(logging.INFO, logger="medical_structuring.test"):
        adapter.info("backfilled")

    assert caplog.records[-1].document_id == "doc-7"
    assert caplog.records[-1].getMessage() == "backfilled"
