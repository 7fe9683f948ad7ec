# ============================================================================
# src/medical_structuring/processors/base_processor.py
# ============================================================================
"""
Base Processor Class

All record builders (Lab, Prescription, Radiology, Vitals, General) inherit
from this.

Defines the standard builder interface and the shared pieces:
- subject (patient) lookup
- confidence assignment
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import logging

from ..config.pipeline_config import pipeline_settings
from ..constants.field_synonyms import (
    PATIENT_BLOCK_FIELDS,
    PATIENT_FIELDS,
    ROOT_PATIENT_FIELDS,
)
from ..core.context.decoded_value import Structured
from ..core.context.records import MedicalRecord, SubjectInfo
from ..utils.field_lookup import first_mapping, first_text


class BaseProcessor(ABC):
    """
    Abstract base class for all record builders.

    Subclasses must implement:
    - get_name(): Processor identifier
    - build(): Decoded value -> canonical record, or None when the value
      does not look like this processor's document type
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.get_name()}")

    @abstractmethod
    def get_name(self) -> str:
        """Return processor name (e.g., 'LabProcessor')"""
        pass

    @abstractmethod
    def build(self, decoded: Structured) -> Optional[MedicalRecord]:
        """
        Build a canonical record.

        Args:
            decoded: Structured decoder output

        Returns:
            Record, or None if nothing of this type was found
        """
        pass

    def confidence(self, decoded: Structured, has_entries: bool) -> float:
        """
        Structured confidence when entries were produced from a properly
        decoded value, partial otherwise.
        """
        if has_entries and not decoded.is_salvaged:
            return pipeline_settings.CONFIDENCE_STRUCTURED
        return pipeline_settings.CONFIDENCE_PARTIAL

    def extract_subject(self, root: Any) -> SubjectInfo:
        """Patient details from a patient block, then root-level patient_* keys."""
        if not isinstance(root, dict):
            return SubjectInfo()

        block: Dict[str, Any] = first_mapping(root, PATIENT_BLOCK_FIELDS) or {}
        values = {}
        for field, candidates in PATIENT_FIELDS.items():
            values[field] = first_text(block, candidates) or first_text(
                root, ROOT_PATIENT_FIELDS.get(field, ())
            )
        return SubjectInfo(**values)
