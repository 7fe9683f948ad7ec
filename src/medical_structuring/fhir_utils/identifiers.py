# ============================================================================
# src/medical_structuring/fhir_utils/identifiers.py
# ============================================================================
"""
Synthetic resource ids and source-document linkage identifiers.

Resource ids look like "obs-1718000000000-k3x9q2": prefix, millisecond
timestamp, six random base36 characters. They satisfy the FHIR id pattern
([A-Za-z0-9\\-\\.]{1,64}).
"""

import secrets
import string
import time
from typing import List, Optional

from fhir.resources.identifier import Identifier

from ..config.fhir_config import fhir_settings

_BASE36 = string.digits + string.ascii_lowercase

PATIENT_PREFIX = "patient-"
OBSERVATION_PREFIX = "obs-"
VITAL_OBSERVATION_PREFIX = "vital-obs-"
MEDICATION_REQUEST_PREFIX = "med-req-"
DIAGNOSTIC_REPORT_PREFIX = "diag-report-"


def generate_fhir_id(prefix: str) -> str:
    """prefix + ms timestamp + "-" + 6 base36 chars"""
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{prefix}{timestamp}-{suffix}"


def source_document_identifier(document_id: str) -> Identifier:
    """Identifier linking a resource back to the document it came from."""
    return Identifier(
        system=fhir_settings.identifier_system("source-document"),
        value=str(document_id),
    )


def observation_identifier(document_id: str, index: int) -> Identifier:
    return Identifier(
        system=fhir_settings.identifier_system("observation-id"),
        value=f"{document_id}-{index}",
    )


def patient_identifier(person_id: str) -> Identifier:
    return Identifier(
        system=fhir_settings.identifier_system("patient-id"),
        value=str(person_id),
    )


def linkage_identifiers(document_id: Optional[str], *extra: Identifier) -> Optional[List[Identifier]]:
    """Extra identifiers plus the source-document one, or None when there are none."""
    identifiers = list(extra)
    if document_id:
        identifiers.append(source_document_identifier(document_id))
    return identifiers or None
