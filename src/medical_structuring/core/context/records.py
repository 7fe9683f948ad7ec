# ============================================================================
# src/medical_structuring/core/context/records.py
# ============================================================================
"""
Canonical Medical Records

One uniform shape per document type, independent of how the source text was
laid out. Records are ephemeral: built per invocation, converted to FHIR,
never persisted as-is.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

from ...constants.document_types import DocumentType
from .enums import TestStatus, HierarchyRole, SectionCategory


@dataclass
class SubjectInfo:
    """Patient details found inside the document itself."""
    name: Optional[str] = None
    birth_date: Optional[str] = None
    patient_id: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None

    def is_empty(self) -> bool:
        return not any([self.name, self.birth_date, self.patient_id, self.age, self.gender])


@dataclass
class TestEntry:
    __test__ = False  # keep pytest from collecting this as a test class

    name: str
    value: str = ""
    unit: str = ""
    reference_range: str = ""
    status: TestStatus = TestStatus.NORMAL
    hierarchy_role: HierarchyRole = HierarchyRole.STANDALONE
    notes: str = ""
    profile_name: Optional[str] = None  # owning header, subTests only

    @property
    def is_profile_header(self) -> bool:
        return self.hierarchy_role == HierarchyRole.PROFILE_HEADER


@dataclass
class Medication:
    name: str
    dosage: str = ""
    frequency: str = ""
    duration: str = ""
    instructions: str = ""
    route: str = ""
    quantity: Optional[str] = None
    refills: Optional[int] = None


@dataclass
class VitalEntry:
    type: str
    value: str = ""
    unit: str = ""
    timestamp: Optional[str] = None
    status: Optional[TestStatus] = None
    notes: str = ""


@dataclass
class Section:
    title: str
    content: str
    category: SectionCategory = SectionCategory.TEXT


@dataclass
class MedicalRecord:
    document_type: DocumentType = DocumentType.GENERAL
    facility_name: Optional[str] = None
    provider_name: Optional[str] = None
    record_date: Optional[str] = None
    confidence: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view (enums collapse to their string values)."""
        return _jsonable(asdict(self))


@dataclass
class LabResult(MedicalRecord):
    document_type: DocumentType = DocumentType.LAB
    subject: SubjectInfo = field(default_factory=SubjectInfo)
    tests: List[TestEntry] = field(default_factory=list)
    collection_date: Optional[str] = None
    report_date: Optional[str] = None


@dataclass
class Prescription(MedicalRecord):
    document_type: DocumentType = DocumentType.PRESCRIPTION
    subject: SubjectInfo = field(default_factory=SubjectInfo)
    medications: List[Medication] = field(default_factory=list)
    pharmacy: Optional[str] = None


@dataclass
class Radiology(MedicalRecord):
    document_type: DocumentType = DocumentType.RADIOLOGY
    subject: SubjectInfo = field(default_factory=SubjectInfo)
    study_type: Optional[str] = None
    body_part: Optional[str] = None
    modality: Optional[str] = None
    findings: str = ""
    impression: str = ""
    study_date: Optional[str] = None
    report_date: Optional[str] = None


@dataclass
class Vitals(MedicalRecord):
    document_type: DocumentType = DocumentType.VITALS
    subject: SubjectInfo = field(default_factory=SubjectInfo)
    vitals: List[VitalEntry] = field(default_factory=list)


@dataclass
class General(MedicalRecord):
    document_type: DocumentType = DocumentType.GENERAL
    sections: List[Section] = field(default_factory=list)
    raw_text: Optional[str] = None


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, (TestStatus, HierarchyRole, SectionCategory, DocumentType)):
        return value.value
    return value
