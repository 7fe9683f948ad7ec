# ============================================================================
# src/medical_structuring/config/__init__.py
# ============================================================================
"""
Convenient imports for all settings
"""

from .base_config import base_settings
from .pipeline_config import pipeline_settings
from .fhir_config import fhir_settings
from .logging_config import logging_settings
