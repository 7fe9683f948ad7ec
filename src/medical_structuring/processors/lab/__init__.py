# ============================================================================
# src/medical_structuring/processors/lab/__init__.py
# ============================================================================
"""
Lab report processing module.
"""

from .processor import LabProcessor

__all__ = ['LabProcessor']
