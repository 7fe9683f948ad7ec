# ============================================================================
# src/medical_structuring/fhir_utils/diagnostic_report.py
# ============================================================================
"""
FHIR DiagnosticReport resource builders for radiology reports, general
documents and records that produced no entries.
"""

from typing import Any, Dict, List, Optional

from fhir.resources.codeableconcept import CodeableConcept
from fhir.resources.diagnosticreport import DiagnosticReport
from fhir.resources.reference import Reference

from ..core.context.records import General, Radiology
from .common import (
    LOINC_SYSTEM,
    build_meta,
    concept,
    confidence_extensions,
    performer_references,
    report_category,
    subject_reference,
)
from .identifiers import linkage_identifiers

RADIOLOGY_CODE = ("18748-4", "Diagnostic imaging study")
GENERAL_CODE = ("34109-9", "Note")

# v2-0074 diagnostic service sections
RADIOLOGY_CATEGORY = ("RAD", "Radiology")
GENERAL_CATEGORY = ("GE", "General Contact")


def create_diagnostic_report(
    resource_id: str,
    subject_id: str,
    code: CodeableConcept,
    category: List[CodeableConcept],
    document_id: Optional[str] = None,
    conclusion: Optional[str] = None,
    effective_date: Optional[str] = None,
    issued: Optional[str] = None,
    performers: Optional[List[Reference]] = None,
    result_ids: Optional[List[str]] = None,
    confidence: Optional[float] = None,
) -> DiagnosticReport:
    """
    Create FHIR DiagnosticReport.

    Args:
        resource_id: Synthetic DiagnosticReport id
        subject_id: Patient resource id
        code: Report code
        category: Diagnostic service section
        document_id: Source document id (identifier linkage)
        conclusion: Conclusion text
        effective_date: FHIR date the report applies to
        issued: FHIR instant the report was issued
        performers: Performer references
        result_ids: Observation ids included in the report
        confidence: Record confidence for the extension

    Returns:
        FHIR DiagnosticReport resource
    """
    report_data: Dict[str, Any] = {
        "id": resource_id,
        "meta": build_meta(),
        "status": "final",
        "category": category,
        "code": code,
        "subject": subject_reference(subject_id),
    }

    identifiers = linkage_identifiers(document_id)
    if identifiers:
        report_data["identifier"] = identifiers
    if conclusion:
        report_data["conclusion"] = conclusion
    if effective_date:
        report_data["effectiveDateTime"] = effective_date
    if issued:
        report_data["issued"] = issued
    if performers:
        report_data["performer"] = performers
    if result_ids:
        report_data["result"] = [Reference(reference=f"Observation/{result_id}") for result_id in result_ids]

    extensions = confidence_extensions(confidence)
    if extensions:
        report_data["extension"] = extensions

    return DiagnosticReport(**report_data)


def create_radiology_report(
    record: Radiology,
    resource_id: str,
    subject_id: str,
    document_id: Optional[str] = None,
    effective_date: Optional[str] = None,
    issued: Optional[str] = None,
) -> DiagnosticReport:
    """
    Create FHIR DiagnosticReport for a radiology study.

    Conclusion is the impression, falling back to findings.
    """
    code, display = RADIOLOGY_CODE
    study_text = " ".join(part for part in (record.study_type, record.body_part) if part) or display
    return create_diagnostic_report(
        resource_id=resource_id,
        subject_id=subject_id,
        code=concept(LOINC_SYSTEM, code, display, text=study_text),
        category=report_category(*RADIOLOGY_CATEGORY),
        document_id=document_id,
        conclusion=record.impression or record.findings or None,
        effective_date=effective_date,
        issued=issued,
        performers=performer_references(record.provider_name, record.facility_name),
        confidence=record.confidence,
    )


def general_conclusion(record: General) -> str:
    """Sections as "title: content" lines."""
    return "\n".join(f"{section.title}: {section.content}" for section in record.sections)


def create_general_report(
    record: General,
    resource_id: str,
    subject_id: str,
    document_id: Optional[str] = None,
    effective_date: Optional[str] = None,
) -> DiagnosticReport:
    """Create FHIR DiagnosticReport for a general (unstructured) document."""
    code, display = GENERAL_CODE
    return create_diagnostic_report(
        resource_id=resource_id,
        subject_id=subject_id,
        code=concept(LOINC_SYSTEM, code, display, text="General medical document"),
        category=report_category(*GENERAL_CATEGORY),
        document_id=document_id,
        conclusion=general_conclusion(record) or record.raw_text or None,
        effective_date=effective_date,
        performers=performer_references(record.provider_name, record.facility_name),
        confidence=record.confidence,
    )
