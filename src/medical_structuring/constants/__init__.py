# ============================================================================
# src/medical_structuring/constants/__init__.py
# ============================================================================
"""
Convenient imports for all constants
"""

from .document_types import DocumentType, PROCESSOR_MAPPING, CLASSIFICATION_PRIORITY
from .loinc import LOINC_CODES, lookup_loinc
from .vital_codes import VITAL_SIGN_CODES, VITAL_TYPE_SYNONYMS
