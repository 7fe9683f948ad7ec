# src/medical_structuring/fhir_utils/__init__.py

from .builder import FHIRConverter, ConvertedResource
from .identifiers import generate_fhir_id, source_document_identifier
from .patient import create_patient_resource

__all__ = [
    "FHIRConverter",
    "ConvertedResource",
    "generate_fhir_id",
    "source_document_identifier",
    "create_patient_resource",
]
