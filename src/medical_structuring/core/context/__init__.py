# src/medical_structuring/core/context/__init__.py

from .enums import (
    DecodeStrategy,
    TestStatus,
    HierarchyRole,
    SectionCategory,
    ResourceKind,
    LINKED_RESOURCE_KINDS,
)
from .decoded_value import Structured, Undecodable, DecodedValue
from .records import (
    SubjectInfo,
    TestEntry,
    Medication,
    VitalEntry,
    Section,
    MedicalRecord,
    LabResult,
    Prescription,
    Radiology,
    Vitals,
    General,
)

__all__ = [
    "DecodeStrategy",
    "TestStatus",
    "HierarchyRole",
    "SectionCategory",
    "ResourceKind",
    "LINKED_RESOURCE_KINDS",
    "Structured",
    "Undecodable",
    "DecodedValue",
    "SubjectInfo",
    "TestEntry",
    "Medication",
    "VitalEntry",
    "Section",
    "MedicalRecord",
    "LabResult",
    "Prescription",
    "Radiology",
    "Vitals",
    "General",
]
