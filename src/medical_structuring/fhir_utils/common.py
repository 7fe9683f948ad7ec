# ============================================================================
# src/medical_structuring/fhir_utils/common.py
# ============================================================================
"""
Shared FHIR building blocks: timestamps, meta, dates, references, codes.
"""

import logging
import re
from datetime import datetime, timezone
from typing import List, Optional

from fhir.resources.codeableconcept import CodeableConcept
from fhir.resources.coding import Coding
from fhir.resources.extension import Extension
from fhir.resources.meta import Meta
from fhir.resources.reference import Reference

from ..config.fhir_config import fhir_settings

logger = logging.getLogger(__name__)

LOINC_SYSTEM = "http://loinc.org"
UCUM_SYSTEM = "http://unitsofmeasure.org"
OBSERVATION_CATEGORY_SYSTEM = "http://terminology.hl7.org/CodeSystem/observation-category"
DIAGNOSTIC_SERVICE_SYSTEM = "http://terminology.hl7.org/CodeSystem/v2-0074"
INTERPRETATION_SYSTEM = "http://terminology.hl7.org/CodeSystem/v3-ObservationInterpretation"

_FHIR_DATE_PREFIX = re.compile(r'^\d{4}-\d{2}-\d{2}')
_WHITESPACE = re.compile(r"\s+")

DATE_FORMATS = [
    "%m/%d/%Y",      # 01/21/2025
    "%m-%d-%Y",      # 01-21-2025
    "%d/%m/%Y",      # 21/01/2025
    "%B %d, %Y",     # January 21, 2025
    "%b %d, %Y",     # Jan 21, 2025
    "%d %B %Y",      # 21 January 2025
    "%d %b %Y",      # 21 Jan 2025
    "%d-%b-%Y",      # 21-Jan-2025
    "%Y%m%d",        # 20250121
]


def now_instant() -> str:
    """Current UTC time as a FHIR instant."""
    return datetime.now(timezone.utc).isoformat()


def build_meta() -> Meta:
    return Meta(lastUpdated=now_instant())


def parse_date_to_fhir(date_str: Optional[str]) -> Optional[str]:
    """
    Parse various date formats to FHIR-compatible date string.

    Handles: MM/DD/YYYY, YYYY-MM-DD, Month DD YYYY, DD-Mon-YYYY, etc.
    Returns YYYY-MM-DD format, or None when the date cannot be read.
    """
    if not date_str or date_str.strip().lower() in ("", "none", "n/a", "unknown"):
        return None

    date_str = date_str.strip()

    # Already FHIR format (YYYY-MM-DD or ISO datetime)
    if _FHIR_DATE_PREFIX.match(date_str):
        candidate = date_str[:10]
        try:
            datetime.strptime(candidate, "%Y-%m-%d")
            return candidate
        except ValueError:
            logger.debug(f"Invalid calendar date: {date_str}")
            return None

    for fmt in DATE_FORMATS:
        try:
            dt = datetime.strptime(date_str, fmt)
            return dt.strftime("%Y-%m-%d")
        except ValueError:
            continue

    logger.debug(f"Could not parse date: {date_str}")
    return None


def date_to_instant(date_str: Optional[str]) -> Optional[str]:
    """FHIR date -> midnight UTC instant (instants require a time and zone)."""
    parsed = parse_date_to_fhir(date_str)
    if parsed is None:
        return None
    return f"{parsed}T00:00:00+00:00"


def subject_reference(subject_id: str) -> Reference:
    return Reference(reference=f"Patient/{subject_id}")


def display_reference(display: Optional[str]) -> Optional[Reference]:
    """Reference carrying only a display name (performer, requester, ...)."""
    if not display:
        return None
    return Reference(display=display)


def performer_references(*names: Optional[str]) -> Optional[List[Reference]]:
    references = [display_reference(name) for name in names if name]
    return references or None


def clean_code(code: str) -> str:
    """FHIR codes allow single inner spaces only."""
    return _WHITESPACE.sub(" ", str(code)).strip()


def concept(system: str, code: str, display: Optional[str] = None, text: Optional[str] = None) -> CodeableConcept:
    return CodeableConcept(
        coding=[Coding(system=system, code=clean_code(code), display=display)],
        text=text,
    )


def observation_category(code: str, display: str) -> List[CodeableConcept]:
    return [concept(OBSERVATION_CATEGORY_SYSTEM, code, display)]


def report_category(code: str, display: str) -> List[CodeableConcept]:
    return [concept(DIAGNOSTIC_SERVICE_SYSTEM, code, display)]


def confidence_extensions(confidence: Optional[float]) -> Optional[List[Extension]]:
    """Record confidence as an extension, when enabled in settings."""
    if confidence is None or not fhir_settings.FHIR_INCLUDE_CONFIDENCE:
        return None
    return [Extension(
        url=fhir_settings.identifier_system("StructureDefinition/extraction-confidence"),
        valueDecimal=round(float(confidence), 4),
    )]
