# ============================================================================
# src/medical_structuring/processors/vitals/__init__.py
# ============================================================================
"""
Vital signs processing module.
"""

from .processor import VitalsProcessor, canonical_vital_type

__all__ = ['VitalsProcessor', 'canonical_vital_type']
