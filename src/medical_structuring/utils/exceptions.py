# ============================================================================
# src/medical_structuring/utils/exceptions.py
# ============================================================================
"""
Custom exceptions for the medical structuring engine.

Decoding, classification and status determination degrade instead of
raising; exceptions are reserved for resource conversion and storage.
"""


class MedicalStructuringError(Exception):
    """Base exception for all medical structuring errors."""
    pass


class ConfigurationError(MedicalStructuringError):
    """Invalid configuration or runtime option."""
    pass


class FHIRConversionError(MedicalStructuringError):
    """Error converting a canonical record to FHIR resources."""
    def __init__(self, message: str, document_id: str = None):
        super().__init__(message)
        self.document_id = document_id


class StorageError(MedicalStructuringError):
    """Error reading or writing the resource store."""
    pass


class DocumentNotFoundError(StorageError):
    """Source document does not exist in the store."""
    def __init__(self, document_id: str):
        super().__init__(f"Source document not found: {document_id}")
        self.document_id = document_id
