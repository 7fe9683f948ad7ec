# ============================================================================
# src/medical_structuring/classifiers/document_classifier.py
# ============================================================================
"""
Schema Classifier

Decides which canonical record type a decoded value describes.

Two signals per type:
1. FIELD INDICATORS - type-indicative keys at the top level or inside a
   generic "data" wrapper (entry arrays weigh more than context fields)
2. VOCABULARY - distinct domain terms found anywhere in the serialized value

Either signal alone is enough. The highest score wins, ties go to the fixed
priority order, and no signal at all means "general". This is deliberately
permissive: a false positive still keeps the data, a false negative drops it
into unstructured sections.
"""

import json
import logging
import re
from typing import Any, Dict, Iterable

from ..constants.document_types import DocumentType, CLASSIFICATION_PRIORITY
from ..constants.vocabulary import (
    ENTRY_ARRAY_WEIGHT,
    ENTRY_FIELD_INDICATORS,
    TYPE_FIELD_INDICATORS,
    TYPE_VOCABULARY,
)
from ..core.context.decoded_value import DecodedValue, Structured

# Compiled once: one alternation per type, longest terms first
_VOCABULARY_PATTERNS = {
    doc_type: re.compile(
        r"(?<![a-z0-9])(" + "|".join(
            re.escape(term) for term in sorted(terms, key=len, reverse=True)
        ) + r")(?![a-z0-9])"
    )
    for doc_type, terms in TYPE_VOCABULARY.items()
}

# Entries inspected when the decoded value is a bare list
_LIST_SAMPLE_SIZE = 5


class DocumentClassifier:
    """
    Classify decoded extraction output into a DocumentType.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def classify(self, decoded: DecodedValue) -> DocumentType:
        """
        Classify a decoded value.

        Args:
            decoded: Decoder output

        Returns:
            DocumentType (GENERAL when no signal is found or nothing decoded)
        """
        if not isinstance(decoded, Structured):
            return DocumentType.GENERAL

        scores = self.classify_with_scores(decoded.value)
        best_type = DocumentType.GENERAL
        best_score = 0
        for doc_type in CLASSIFICATION_PRIORITY:
            if scores[doc_type]["score"] > best_score:
                best_type = doc_type
                best_score = scores[doc_type]["score"]

        if best_type == DocumentType.GENERAL:
            self.logger.info("No type signal found, defaulting to general")
        else:
            all_scores = {k.value: v["score"] for k, v in scores.items()}
            self.logger.info(
                f"Classified as {best_type.value} (score {best_score}, all: {all_scores})"
            )
        return best_type

    def classify_with_scores(self, value: Any) -> Dict[DocumentType, Dict[str, int]]:
        """Per-type field, vocabulary and total scores for a decoded value."""
        serialized = json.dumps(value, ensure_ascii=False, default=str).lower()
        keys = self._candidate_keys(value)
        entry_keys = self._entry_keys(value)

        scores = {}
        for doc_type in CLASSIFICATION_PRIORITY:
            indicators = TYPE_FIELD_INDICATORS[doc_type]
            field_score = sum(weight for key, weight in indicators.items() if key in keys)
            field_score += sum(
                ENTRY_ARRAY_WEIGHT
                for key in ENTRY_FIELD_INDICATORS[doc_type]
                if key in entry_keys
            )
            vocabulary_score = len(set(_VOCABULARY_PATTERNS[doc_type].findall(serialized)))
            scores[doc_type] = {
                "fields": field_score,
                "vocabulary": vocabulary_score,
                "score": field_score + vocabulary_score,
            }
        return scores

    def _candidate_keys(self, value: Any) -> set:
        """Top-level keys plus keys of a generic "data" wrapper."""
        if not isinstance(value, dict):
            return set()
        keys = set(value.keys())
        wrapper = value.get("data")
        if isinstance(wrapper, dict):
            keys.update(wrapper.keys())
        return keys

    def _entry_keys(self, value: Any) -> set:
        """Keys of the first few entries when the value is a bare list."""
        if not isinstance(value, list):
            return set()
        return set(self._keys_of(item for item in value[:_LIST_SAMPLE_SIZE] if isinstance(item, dict)))

    def _keys_of(self, items: Iterable[Dict[str, Any]]) -> Iterable[str]:
        for item in items:
            yield from item.keys()
