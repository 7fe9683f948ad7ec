# ============================================================================
# api/main.py
# ============================================================================
"""
FastAPI Backend for the Medical Structuring Engine

Runs on port 8000.
Provides REST API for structuring extraction text, converting it to FHIR
resources and running the FHIR backfill.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from medical_structuring import __version__
from medical_structuring.config.base_config import base_settings
from medical_structuring.config.logging_config import logging_settings
from medical_structuring.core.backfill import BackfillRunner
from medical_structuring.core.context.decoded_value import Structured
from medical_structuring.core.document_pipeline import DocumentPipeline
from medical_structuring.core.resource_store import ResourceStore, STATUS_COMPLETED
from medical_structuring.fhir_utils.builder import FHIRConverter
from medical_structuring.utils.exceptions import (
    ConfigurationError,
    DocumentNotFoundError,
    FHIRConversionError,
    StorageError,
)
from medical_structuring.utils.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and the data directory at startup."""
    setup_logging(
        level=logging_settings.LOG_LEVEL,
        log_file=logging_settings.LOG_FILE,
        format_json=logging_settings.LOG_FORMAT_JSON,
    )
    base_settings.create_directories()
    logger.info(f"Medical Structuring Engine API {__version__} starting")
    yield


app = FastAPI(
    title="Medical Structuring Engine API",
    description="API for structuring medical extraction text into FHIR resources",
    version=__version__,
    lifespan=lifespan,
)

# CORS for the web frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

pipeline = DocumentPipeline()
converter = FHIRConverter()

_store: Optional[ResourceStore] = None


def get_store() -> ResourceStore:
    """Shared resource store (created on first use)."""
    global _store
    if _store is None:
        _store = ResourceStore(base_settings.RESOURCE_DB_PATH)
    return _store


# ============================================================================
# Models
# ============================================================================

class StructureRequest(BaseModel):
    text: str


class ConvertRequest(BaseModel):
    text: str
    person_id: str
    document_id: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None


class DocumentRequest(BaseModel):
    person_id: str
    extracted_text: Optional[str] = None
    status: str = STATUS_COMPLETED
    document_id: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None


class BackfillRequest(BaseModel):
    """Invocation contract uses camelCase keys."""
    model_config = ConfigDict(populate_by_name=True)

    batch_size: Optional[int] = Field(default=None, alias="batchSize")
    person_id: Optional[str] = Field(default=None, alias="personId")


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Medical Structuring Engine API"}


@app.get("/api/health")
async def health():
    """Health check for monitoring."""
    return {"status": "healthy", "version": __version__}


@app.post("/api/structure")
def structure_text(request: StructureRequest):
    """
    Decode, classify and normalize one extraction text into a canonical
    record.
    """
    result = pipeline.process(request.text)
    strategy = result.decoded.strategy.value if isinstance(result.decoded, Structured) else None
    return {
        "document_type": result.document_type.value,
        "decode_failed": result.decode_failed,
        "decode_strategy": strategy,
        "record": result.record.to_dict(),
    }


@app.post("/api/convert")
def convert_text(request: ConvertRequest):
    """
    Structure one extraction text and convert it to FHIR resources.

    Nothing is persisted; the Patient resource is built from the given
    profile and the subject details found in the document.
    """
    result = pipeline.process(request.text)
    subject_id = converter.new_subject_id()
    profile = dict(request.profile or {})
    profile.setdefault("id", request.person_id)

    try:
        resources = converter.convert(
            result.record, subject_id, document_id=request.document_id, profile=profile
        )
    except FHIRConversionError as e:
        logger.error(f"FHIR conversion failed: {e}")
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "document_type": result.document_type.value,
        "subject_id": subject_id,
        "resources": [resource.to_dict() for resource in resources],
    }


@app.post("/api/documents")
def register_document(request: DocumentRequest, store: ResourceStore = Depends(get_store)):
    """Register a source document (and optionally the person's profile)."""
    try:
        if request.profile:
            store.save_profile(request.person_id, request.profile)
        document_id = store.add_document(
            request.person_id,
            request.extracted_text,
            status=request.status,
            document_id=request.document_id,
        )
    except StorageError as e:
        logger.error(f"Could not register document: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return {"document_id": document_id, "status": request.status}


@app.get("/api/documents/{document_id}")
def get_document(document_id: str, store: ResourceStore = Depends(get_store)):
    """Source document plus the FHIR resources linked to it."""
    try:
        document = store.get_document(document_id)
        resources = store.list_resources(source_document_id=document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StorageError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {**document, "resources": resources}


@app.post("/api/backfill")
def run_backfill(request: BackfillRequest, store: ResourceStore = Depends(get_store)):
    """
    Convert completed documents that have no linked FHIR resources yet.

    Body: {"batchSize": 10, "personId": "..."}; both optional.
    """
    runner = BackfillRunner(store, pipeline=pipeline, converter=converter)
    try:
        summary = runner.run(batch_size=request.batch_size, person_id=request.person_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StorageError as e:
        logger.error(f"Backfill aborted: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    return summary.to_response()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
