# ============================================================================
# src/medical_structuring/core/document_pipeline.py
# ============================================================================
"""
Document Structuring Pipeline

Pipeline Flow:
    Extraction text -> Normalize -> Decode -> Classify -> Build record

Undecodable text is not an error: the markdown structurer gets a chance to
recover a lab report, and failing that the record wraps the raw text.
FHIR conversion is left to the caller, which owns the subject id.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..classifiers.document_classifier import DocumentClassifier
from ..config.pipeline_config import pipeline_settings
from ..constants.document_types import DocumentType
from ..extractors.json_decoder import ResilientDecoder
from ..extractors.markdown_structurer import MarkdownStructurer
from ..processors.lab import LabProcessor
from ..processors.record_builder import RecordBuilder
from ..utils.text_normalizer import normalize_extraction_text
from .context.decoded_value import DecodedValue, Structured, Undecodable
from .context.enums import DecodeStrategy, SectionCategory
from .context.records import General, MedicalRecord, Section

logger = logging.getLogger(__name__)

RAW_TEXT_SECTION_TITLE = "Extracted Text"


@dataclass
class PipelineResult:
    """Result from the document structuring pipeline."""
    decoded: DecodedValue
    document_type: DocumentType
    record: MedicalRecord

    @property
    def decode_failed(self) -> bool:
        return isinstance(self.decoded, Undecodable)


class DocumentPipeline:
    """
    Runs normalization, decoding, classification and record building for
    one extraction text.
    """

    def __init__(
        self,
        decoder: Optional[ResilientDecoder] = None,
        classifier: Optional[DocumentClassifier] = None,
        record_builder: Optional[RecordBuilder] = None,
    ):
        self.decoder = decoder or ResilientDecoder()
        self.classifier = classifier or DocumentClassifier()
        self.record_builder = record_builder or RecordBuilder()
        self.markdown_structurer = MarkdownStructurer()
        self.lab_processor = LabProcessor()

    def process(self, text: str) -> PipelineResult:
        """
        Structure one extraction text.

        Args:
            text: Raw OCR/LLM extraction text

        Returns:
            PipelineResult with the decoded value, type and canonical record
        """
        decoded = self.decoder.decode(text)

        if isinstance(decoded, Structured):
            document_type = self.classifier.classify(decoded)
            record = self.record_builder.build(decoded, document_type)
            return PipelineResult(decoded, record.document_type, record)

        logger.warning(f"Extraction text undecodable ({decoded.reason}), trying plain-text salvage")
        normalized = normalize_extraction_text(text or "")
        record = self._salvage_markdown(normalized) or self._raw_text_record(normalized)
        return PipelineResult(decoded, record.document_type, record)

    def _salvage_markdown(self, normalized: str) -> Optional[MedicalRecord]:
        structured = self.markdown_structurer.structure(normalized)
        if structured is None:
            return None

        record = self.lab_processor.build(Structured(structured, DecodeStrategy.PARTIAL))
        if record is None:
            return None
        record.confidence = min(record.confidence, pipeline_settings.CONFIDENCE_PARTIAL)
        logger.info(f"Recovered lab report from plain text: {len(record.tests)} tests")
        return record

    def _raw_text_record(self, normalized: str) -> General:
        logger.info("No structure recovered, keeping raw text")
        sections = []
        if normalized:
            sections.append(Section(RAW_TEXT_SECTION_TITLE, normalized, SectionCategory.TEXT))
        return General(
            sections=sections,
            raw_text=normalized,
            confidence=pipeline_settings.CONFIDENCE_RAW_TEXT,
        )
