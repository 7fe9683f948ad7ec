# ============================================================================
# src/medical_structuring/config/fhir_config.py
# ============================================================================
"""
FHIR Output Settings
- Version
- Identifier namespace
- Confidence scores
"""

from pydantic import Field
from pydantic_settings import BaseSettings

class FHIRSettings(BaseSettings):
    FHIR_VERSION: str = Field(
        default="R5",
        description="FHIR specification version (fhir.resources default model set)"
    )
    FHIR_IDENTIFIER_NAMESPACE: str = Field(
        default="http://beingwell.app",
        description="Base URI for locally minted identifier systems"
    )
    FHIR_NATIONAL_ID_SYSTEM: str = Field(
        default="https://healthid.abdm.gov.in",
        description="Identifier system for the national health id on Patient"
    )
    FHIR_INCLUDE_CONFIDENCE: bool = Field(
        default=True,
        description="Include record confidence scores in FHIR extensions"
    )

    def identifier_system(self, name: str) -> str:
        """Build an identifier system URI under the local namespace"""
        return f"{self.FHIR_IDENTIFIER_NAMESPACE.rstrip('/')}/{name}"

fhir_settings = FHIRSettings()
