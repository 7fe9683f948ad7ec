# ============================================================================
# src/medical_structuring/__init__.py
# ============================================================================
"""
Medical Structuring Engine

Turns malformed OCR/LLM extraction text into canonical medical records and
FHIR R5 resources linked back to their source documents.
"""

__version__ = "1.0.0"
