# ============================================================================
# src/medical_structuring/processors/prescription/__init__.py
# ============================================================================
"""
Prescription processing module.
"""

from .processor import PrescriptionProcessor

__all__ = ['PrescriptionProcessor']
