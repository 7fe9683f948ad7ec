# ============================================================================
# src/medical_structuring/core/context/enums.py
# ============================================================================
"""
Pipeline Enums
- Decoder strategy tiers
- Test status and hierarchy role
- Clinical resource kinds
"""

from enum import Enum

class DecodeStrategy(str, Enum):
    DIRECT = "direct"
    CHUNKED = "chunked"
    REPAIRED = "repaired"
    PARTIAL = "partial"
    KEY_VALUE = "key_value"

class TestStatus(str, Enum):
    __test__ = False  # keep pytest from collecting this as a test class

    NORMAL = "normal"
    HIGH = "high"
    LOW = "low"
    CRITICAL = "critical"
    ABNORMAL = "abnormal"
    PENDING = "pending"
    UNKNOWN = "unknown"

class HierarchyRole(str, Enum):
    STANDALONE = "standalone"
    PROFILE_HEADER = "profileHeader"
    SUB_TEST = "subTest"

class SectionCategory(str, Enum):
    TEXT = "text"
    LIST = "list"
    OBJECT = "object"

class ResourceKind(str, Enum):
    PATIENT = "Patient"
    OBSERVATION = "Observation"
    MEDICATION_REQUEST = "MedicationRequest"
    DIAGNOSTIC_REPORT = "DiagnosticReport"

# Kinds whose presence marks a source document as already converted
LINKED_RESOURCE_KINDS = (
    ResourceKind.OBSERVATION,
    ResourceKind.MEDICATION_REQUEST,
    ResourceKind.DIAGNOSTIC_REPORT,
)
