# ============================================================================
# src/medical_structuring/processors/radiology/__init__.py
# ============================================================================
"""
Radiology report processing module.
"""

from .processor import RadiologyProcessor

__all__ = ['RadiologyProcessor']
