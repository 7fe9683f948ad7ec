# ============================================================================
# src/medical_structuring/constants/document_types.py
# ============================================================================
"""
Document Types and Processor Mappings
- Canonical record types produced by classification
- Maps document type → processor
"""

from enum import Enum

class DocumentType(str, Enum):
    """
    Canonical medical record types.
    Each type routes to a specific record builder.
    """
    LAB = "lab"
    PRESCRIPTION = "prescription"
    RADIOLOGY = "radiology"
    VITALS = "vitals"
    GENERAL = "general"

# Processor mapping must match processor registration in RecordBuilder
PROCESSOR_MAPPING = {
    DocumentType.LAB: "lab",
    DocumentType.PRESCRIPTION: "prescription",
    DocumentType.RADIOLOGY: "radiology",
    DocumentType.VITALS: "vitals",
    DocumentType.GENERAL: "fallback"
}

# Tie-break order when two types score the same
CLASSIFICATION_PRIORITY = [
    DocumentType.LAB,
    DocumentType.PRESCRIPTION,
    DocumentType.VITALS,
    DocumentType.RADIOLOGY,
]
