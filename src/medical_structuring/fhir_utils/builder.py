# ============================================================================
# src/medical_structuring/fhir_utils/builder.py
# ============================================================================
"""
FHIR R5 Resource Converter

Converts canonical medical records into FHIR R5 resources.

Supports:
- Lab results -> one Observation per test (LOINC when known); profile
  headers reference their subTests through hasMember
- Prescriptions -> one MedicationRequest per medication
- Radiology reports -> DiagnosticReport
- Vital signs -> one Observation per reading (LOINC vital-sign codes)
- General documents -> DiagnosticReport holding the sections

Every resource gets a synthetic id, a Patient subject reference and, when a
source document id is given, a source-document identifier. A record that
yields no entries still produces a DiagnosticReport so the document is
linked.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from fhir.resources.resource import Resource

from ..constants.document_types import DocumentType
from ..core.context.enums import HierarchyRole, ResourceKind
from ..core.context.records import (
    General,
    LabResult,
    MedicalRecord,
    Prescription,
    Radiology,
    SubjectInfo,
    Vitals,
)
from ..utils.exceptions import FHIRConversionError
from .common import (
    LOINC_SYSTEM,
    concept,
    date_to_instant,
    parse_date_to_fhir,
    performer_references,
    report_category,
)
from .diagnostic_report import (
    create_diagnostic_report,
    create_general_report,
    create_radiology_report,
)
from .identifiers import (
    DIAGNOSTIC_REPORT_PREFIX,
    MEDICATION_REQUEST_PREFIX,
    OBSERVATION_PREFIX,
    PATIENT_PREFIX,
    VITAL_OBSERVATION_PREFIX,
    generate_fhir_id,
)
from .medication_request import create_medication_request
from .observation import create_lab_observation, create_vital_observation
from .patient import create_patient_resource

logger = logging.getLogger(__name__)

# Report code/category for records that produced no entries
EMPTY_RECORD_REPORTS = {
    DocumentType.LAB: (("11502-2", "Laboratory report"), ("LAB", "Laboratory")),
    DocumentType.PRESCRIPTION: (("57833-6", "Prescription for medication"), ("PHR", "Pharmacy")),
    DocumentType.VITALS: (("85353-1", "Vital signs panel"), ("OTH", "Other")),
}


@dataclass
class ConvertedResource:
    """A FHIR resource plus the linkage data the store keys it by."""
    kind: ResourceKind
    resource_id: str
    resource: Resource
    subject_id: str
    source_document_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """FHIR JSON of the resource."""
        return json.loads(self.resource.model_dump_json())


class FHIRConverter:
    """
    FHIR R5 resource converter.

    Converts canonical records (and person profiles) into fhir.resources
    models.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    # ========================================================================
    # ENTRY POINTS
    # ========================================================================

    def convert(
        self,
        record: MedicalRecord,
        subject_id: str,
        document_id: Optional[str] = None,
        profile: Optional[Dict[str, Any]] = None,
    ) -> List[ConvertedResource]:
        """
        Convert one canonical record.

        Args:
            record: Canonical record
            subject_id: Patient resource id the resources refer to
            document_id: Source document id for linkage identifiers
            profile: Person profile; when given, a Patient resource with id
                subject_id is emitted first

        Returns:
            Non-empty list of converted resources

        Raises:
            FHIRConversionError: A resource failed FHIR validation
        """
        try:
            resources: List[ConvertedResource] = []
            if profile is not None:
                subject = getattr(record, "subject", None)
                person_id = str(profile.get("id") or profile.get("person_id") or subject_id)
                resources.append(self.build_subject(subject_id, person_id, profile, subject))

            resources.extend(self._convert_record(record, subject_id, document_id))
        except ValidationError as e:
            raise FHIRConversionError(
                f"FHIR validation failed for {record.document_type.value} record: {e}",
                document_id=document_id,
            ) from e
        except (TypeError, ValueError) as e:
            raise FHIRConversionError(
                f"Could not convert {record.document_type.value} record: {e}",
                document_id=document_id,
            ) from e

        kinds = ", ".join(sorted({resource.kind.value for resource in resources}))
        self.logger.info(
            f"Converted {record.document_type.value} record into {len(resources)} resources ({kinds})"
        )
        return resources

    def build_subject(
        self,
        subject_id: str,
        person_id: str,
        profile: Optional[Dict[str, Any]] = None,
        fallback: Optional[SubjectInfo] = None,
    ) -> ConvertedResource:
        """Patient resource for a person (profile first, document subject second)."""
        patient = create_patient_resource(subject_id, person_id, profile, fallback)
        return ConvertedResource(ResourceKind.PATIENT, subject_id, patient, subject_id)

    def new_subject_id(self) -> str:
        return generate_fhir_id(PATIENT_PREFIX)

    # ========================================================================
    # DISPATCH
    # ========================================================================

    def _convert_record(
        self, record: MedicalRecord, subject_id: str, document_id: Optional[str]
    ) -> List[ConvertedResource]:
        if isinstance(record, LabResult):
            resources = self._convert_lab(record, subject_id, document_id)
        elif isinstance(record, Prescription):
            resources = self._convert_prescription(record, subject_id, document_id)
        elif isinstance(record, Vitals):
            resources = self._convert_vitals(record, subject_id, document_id)
        elif isinstance(record, Radiology):
            resources = [self._convert_radiology(record, subject_id, document_id)]
        elif isinstance(record, General):
            resources = [self._convert_general(record, subject_id, document_id)]
        else:
            raise TypeError(f"Unsupported record type: {type(record).__name__}")

        if not resources:
            resources = [self._convert_empty(record, subject_id, document_id)]
        return resources

    # ========================================================================
    # LAB
    # ========================================================================

    def _convert_lab(
        self, record: LabResult, subject_id: str, document_id: Optional[str]
    ) -> List[ConvertedResource]:
        effective_date = parse_date_to_fhir(record.collection_date) or parse_date_to_fhir(record.report_date)
        resource_ids = [generate_fhir_id(OBSERVATION_PREFIX) for _ in record.tests]

        resources = []
        for index, test in enumerate(record.tests):
            member_ids = None
            if test.is_profile_header:
                member_ids = []
                for follower_id, follower in zip(resource_ids[index + 1:], record.tests[index + 1:]):
                    if follower.hierarchy_role != HierarchyRole.SUB_TEST:
                        break
                    member_ids.append(follower_id)

            observation = create_lab_observation(
                test,
                resource_id=resource_ids[index],
                subject_id=subject_id,
                index=index,
                document_id=document_id,
                effective_date=effective_date,
                facility=record.facility_name,
                member_ids=member_ids,
                confidence=record.confidence,
            )
            resources.append(ConvertedResource(
                ResourceKind.OBSERVATION, resource_ids[index], observation, subject_id, document_id
            ))
        return resources

    # ========================================================================
    # PRESCRIPTION
    # ========================================================================

    def _convert_prescription(
        self, record: Prescription, subject_id: str, document_id: Optional[str]
    ) -> List[ConvertedResource]:
        authored_on = parse_date_to_fhir(record.record_date)
        resources = []
        for medication in record.medications:
            resource_id = generate_fhir_id(MEDICATION_REQUEST_PREFIX)
            request = create_medication_request(
                medication,
                resource_id=resource_id,
                subject_id=subject_id,
                document_id=document_id,
                authored_on=authored_on,
                prescriber=record.provider_name,
                pharmacy=record.pharmacy,
                confidence=record.confidence,
            )
            resources.append(ConvertedResource(
                ResourceKind.MEDICATION_REQUEST, resource_id, request, subject_id, document_id
            ))
        return resources

    # ========================================================================
    # VITALS
    # ========================================================================

    def _convert_vitals(
        self, record: Vitals, subject_id: str, document_id: Optional[str]
    ) -> List[ConvertedResource]:
        record_date = parse_date_to_fhir(record.record_date)
        resources = []
        for vital in record.vitals:
            resource_id = generate_fhir_id(VITAL_OBSERVATION_PREFIX)
            observation = create_vital_observation(
                vital,
                resource_id=resource_id,
                subject_id=subject_id,
                document_id=document_id,
                effective_date=parse_date_to_fhir(vital.timestamp) or record_date,
                performer=record.provider_name or record.facility_name,
                confidence=record.confidence,
            )
            resources.append(ConvertedResource(
                ResourceKind.OBSERVATION, resource_id, observation, subject_id, document_id
            ))
        return resources

    # ========================================================================
    # REPORTS
    # ========================================================================

    def _convert_radiology(
        self, record: Radiology, subject_id: str, document_id: Optional[str]
    ) -> ConvertedResource:
        resource_id = generate_fhir_id(DIAGNOSTIC_REPORT_PREFIX)
        report = create_radiology_report(
            record,
            resource_id=resource_id,
            subject_id=subject_id,
            document_id=document_id,
            effective_date=parse_date_to_fhir(record.study_date),
            issued=date_to_instant(record.report_date),
        )
        return ConvertedResource(ResourceKind.DIAGNOSTIC_REPORT, resource_id, report, subject_id, document_id)

    def _convert_general(
        self, record: General, subject_id: str, document_id: Optional[str]
    ) -> ConvertedResource:
        resource_id = generate_fhir_id(DIAGNOSTIC_REPORT_PREFIX)
        report = create_general_report(
            record,
            resource_id=resource_id,
            subject_id=subject_id,
            document_id=document_id,
            effective_date=parse_date_to_fhir(record.record_date),
        )
        return ConvertedResource(ResourceKind.DIAGNOSTIC_REPORT, resource_id, report, subject_id, document_id)

    def _convert_empty(
        self, record: MedicalRecord, subject_id: str, document_id: Optional[str]
    ) -> ConvertedResource:
        """DiagnosticReport for a lab/prescription/vitals record with no entries."""
        (code, display), (category_code, category_display) = EMPTY_RECORD_REPORTS.get(
            record.document_type, EMPTY_RECORD_REPORTS[DocumentType.VITALS]
        )
        resource_id = generate_fhir_id(DIAGNOSTIC_REPORT_PREFIX)
        report = create_diagnostic_report(
            resource_id=resource_id,
            subject_id=subject_id,
            code=concept(LOINC_SYSTEM, code, display, text=display),
            category=report_category(category_code, category_display),
            document_id=document_id,
            conclusion=f"No {record.document_type.value} entries could be extracted",
            effective_date=parse_date_to_fhir(record.record_date),
            performers=performer_references(record.provider_name, record.facility_name),
            confidence=record.confidence,
        )
        self.logger.info(f"No entries in {record.document_type.value} record, emitted summary report")
        return ConvertedResource(ResourceKind.DIAGNOSTIC_REPORT, resource_id, report, subject_id, document_id)
