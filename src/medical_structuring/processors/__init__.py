# src/medical_structuring/processors/__init__.py
"""
Record Builders Module

Contains specialized builders for each canonical record type:
- Lab reports (LabProcessor)
- Prescriptions (PrescriptionProcessor)
- Radiology reports (RadiologyProcessor)
- Vital signs (VitalsProcessor)
- Fallback for everything else (GeneralProcessor)

RecordBuilder dispatches between them.
"""

from .base_processor import BaseProcessor
from .lab import LabProcessor
from .prescription import PrescriptionProcessor
from .radiology import RadiologyProcessor
from .vitals import VitalsProcessor
from .fallback import GeneralProcessor
from .record_builder import RecordBuilder

__all__ = [
    "BaseProcessor",
    "LabProcessor",
    "PrescriptionProcessor",
    "RadiologyProcessor",
    "VitalsProcessor",
    "GeneralProcessor",
    "RecordBuilder",
]
