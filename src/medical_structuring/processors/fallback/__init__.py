# src/medical_structuring/processors/fallback/__init__.py
"""
Fallback Processor - Universal handler for documents no type builder claims.
"""

from .processor import GeneralProcessor

__all__ = ["GeneralProcessor"]
