# ============================================================================
# src/medical_structuring/processors/record_builder.py
# ============================================================================
"""
Canonical Record Builder

Dispatches a decoded value to the builder registered for its document type
and falls back to the general builder whenever the type builder finds
nothing usable.
"""

import logging
from typing import Dict

from ..constants.document_types import DocumentType, PROCESSOR_MAPPING
from ..core.context.decoded_value import Structured
from ..core.context.records import MedicalRecord
from .base_processor import BaseProcessor
from .fallback import GeneralProcessor
from .lab import LabProcessor
from .prescription import PrescriptionProcessor
from .radiology import RadiologyProcessor
from .vitals import VitalsProcessor


class RecordBuilder:
    """Registry of record builders keyed by PROCESSOR_MAPPING names."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.fallback = GeneralProcessor()
        self.processors: Dict[str, BaseProcessor] = {
            "lab": LabProcessor(),
            "prescription": PrescriptionProcessor(),
            "radiology": RadiologyProcessor(),
            "vitals": VitalsProcessor(),
            "fallback": self.fallback,
        }

    def build(self, decoded: Structured, document_type: DocumentType) -> MedicalRecord:
        """
        Build the canonical record for a classified value.

        Args:
            decoded: Structured decoder output
            document_type: Classifier decision

        Returns:
            Record of the classified type, or a General record
        """
        processor = self.processors[PROCESSOR_MAPPING[document_type]]
        record = processor.build(decoded)
        if record is not None:
            return record

        self.logger.info(
            f"{processor.get_name()} found nothing usable, falling back to {self.fallback.get_name()}"
        )
        return self.fallback.build(decoded)
