# ============================================================================
# src/medical_structuring/config/pipeline_config.py
# ============================================================================
"""
Pipeline Settings
- Decoder chunk window bounds
- Confidence levels per salvage tier
- Backfill defaults
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

class PipelineSettings(BaseSettings):
    # Chunked decode: window starts at min(len, max) and shrinks by step down to min
    DECODER_MAX_CHUNK_SIZE: int = Field(
        default=50000,
        gt=0,
        description="Largest window tried by chunked decode (bounds worst-case cost)"
    )
    DECODER_CHUNK_STEP: int = Field(
        default=1000,
        gt=0,
        description="Decrement between chunked decode windows"
    )
    DECODER_MIN_CHUNK_SIZE: int = Field(
        default=1000,
        gt=0,
        description="Smallest window tried by chunked decode"
    )
    DECODER_MAX_REPAIR_BACKTRACK: int = Field(
        default=50,
        ge=0,
        description="How many separators truncation repair may cut back through"
    )
    DECODER_USE_JSON_REPAIR: bool = Field(
        default=True,
        description="Use json_repair when truncation repair and partial extraction fail"
    )

    CONFIDENCE_STRUCTURED: float = Field(
        default=0.9,
        ge=0.0, le=1.0,
        description="Structured entries were produced"
    )
    CONFIDENCE_PARTIAL: float = Field(
        default=0.5,
        ge=0.0, le=1.0,
        description="Type matched without entries, or data came from salvage"
    )
    CONFIDENCE_SECTIONS: float = Field(
        default=0.3,
        ge=0.0, le=1.0,
        description="Free-text section grouping"
    )
    CONFIDENCE_RAW_TEXT: float = Field(
        default=0.1,
        ge=0.0, le=1.0,
        description="Nothing decodable, record only wraps the raw text"
    )

    BACKFILL_BATCH_SIZE: int = Field(
        default=10,
        gt=0,
        description="Default number of documents scanned per backfill run"
    )
    BACKFILL_MAX_WORKERS: int = Field(
        default=1,
        ge=1,
        description="Worker threads for backfill (1 = serial fold)"
    )
    BACKFILL_ERROR_SAMPLE: int = Field(
        default=10,
        ge=0,
        description="Number of error messages kept in the backfill summary"
    )

    @model_validator(mode="after")
    def _check_ordering(self) -> "PipelineSettings":
        if self.DECODER_MIN_CHUNK_SIZE > self.DECODER_MAX_CHUNK_SIZE:
            raise ValueError("DECODER_MIN_CHUNK_SIZE must not exceed DECODER_MAX_CHUNK_SIZE")
        if not (self.CONFIDENCE_STRUCTURED >= self.CONFIDENCE_PARTIAL
                >= self.CONFIDENCE_SECTIONS >= self.CONFIDENCE_RAW_TEXT):
            raise ValueError("Confidence levels must be non-increasing by salvage tier")
        return self

pipeline_settings = PipelineSettings()
