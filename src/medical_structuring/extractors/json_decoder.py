# ============================================================================
# src/medical_structuring/extractors/json_decoder.py
# ============================================================================
"""
Resilient Structure Decoder

Turns OCR/LLM extraction text into a best-effort structured value even when
the text is not valid JSON. Strategies run in order and the first one that
yields a dict/list wins:

1. Direct decode (raw text, then the outer {...}/[...] span)
2. Chunked decode (shrinking windows from the structure start, each closed)
3. Truncation repair (close open structures, cutting back if needed)
4. Partial-object extraction (regex-found objects/arrays, longest first)
5. json_repair, only when the first structure runs to the end of the text
6. Key-value salvage ("key": value pairs into a flat mapping)

Never raises. Total failure gives an Undecodable marker.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from json_repair import repair_json

from ..config.pipeline_config import pipeline_settings
from ..core.context.decoded_value import Structured, Undecodable, DecodedValue
from ..core.context.enums import DecodeStrategy
from ..utils.text_normalizer import normalize_extraction_text, strip_code_fences
from .structure_repair import (
    close_at,
    find_structure_start,
    first_value_end,
    largest_cut_within,
    loads_structured,
    repair_truncated_json,
    scan_cut_points,
    strip_trailing_commas,
)

# Two-level nesting aware patterns, then a flat-object fallback
NESTED_OBJECT_PATTERN = re.compile(r"\{(?:[^{}]|\{[^{}]*\})*\}")
NESTED_ARRAY_PATTERN = re.compile(r"\[(?:[^\[\]]|\[[^\[\]]*\])*\]")
SIMPLE_OBJECT_PATTERN = re.compile(r"\{[^{}]+\}")

KEY_VALUE_PATTERN = re.compile(
    r'"([^"]+)"\s*:\s*('
    r'"(?:[^"\\]|\\.)*"'
    r'|-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?'
    r'|true|false|null)'
)


class ResilientDecoder:
    """
    Best-effort JSON decoder for machine-generated text.

    Window sizes and repair limits come from pipeline_settings unless
    overridden per instance.
    """

    def __init__(
        self,
        max_chunk_size: Optional[int] = None,
        chunk_step: Optional[int] = None,
        min_chunk_size: Optional[int] = None,
        max_repair_backtrack: Optional[int] = None,
        use_json_repair: Optional[bool] = None,
    ):
        self.logger = logging.getLogger(__name__)
        self.max_chunk_size = max_chunk_size or pipeline_settings.DECODER_MAX_CHUNK_SIZE
        self.chunk_step = chunk_step or pipeline_settings.DECODER_CHUNK_STEP
        self.min_chunk_size = min_chunk_size or pipeline_settings.DECODER_MIN_CHUNK_SIZE
        self.max_repair_backtrack = (
            max_repair_backtrack
            if max_repair_backtrack is not None
            else pipeline_settings.DECODER_MAX_REPAIR_BACKTRACK
        )
        self.use_json_repair = (
            use_json_repair
            if use_json_repair is not None
            else pipeline_settings.DECODER_USE_JSON_REPAIR
        )

    def decode(self, text: str) -> DecodedValue:
        """
        Decode raw or normalized extraction text.

        Args:
            text: Extraction text, possibly fenced, truncated or corrupted

        Returns:
            Structured(value, strategy) or Undecodable(reason)
        """
        if not text or not text.strip():
            return Undecodable("empty input")

        normalized = normalize_extraction_text(text)

        value = self.decode_direct(text, normalized)
        if value is not None:
            self.logger.debug("Decoded extraction text directly")
            return Structured(value, DecodeStrategy.DIRECT)

        start = find_structure_start(normalized)
        body = normalized[start:] if start >= 0 else ""
        if body:
            value = self.decode_chunked(body)
            if value is not None:
                self.logger.info(f"Decoded extraction text via chunked decode ({len(body)} chars)")
                return Structured(value, DecodeStrategy.CHUNKED)

            value = self.decode_repaired(body)
            if value is not None:
                self.logger.info("Decoded extraction text via truncation repair")
                return Structured(value, DecodeStrategy.REPAIRED)

        value = self.extract_partial_structure(normalized)
        if value is not None:
            self.logger.warning("Decoded extraction text via partial-object extraction")
            return Structured(value, DecodeStrategy.PARTIAL)

        value = self.decode_with_json_repair(body)
        if value is not None:
            return Structured(value, DecodeStrategy.REPAIRED)

        value = self.salvage_key_values(normalized)
        if value is not None:
            self.logger.warning(f"Salvaged {len(value)} key-value pairs from undecodable text")
            return Structured(value, DecodeStrategy.KEY_VALUE)

        self.logger.warning(
            f"All decoding strategies failed. Text (first 200 chars): {normalized[:200]}"
        )
        return Undecodable("all decoding strategies failed")

    # ========================================================================
    # STRATEGY 1: DIRECT
    # ========================================================================

    def decode_direct(self, raw: str, normalized: str) -> Optional[Any]:
        """Raw text first (exact round-trip), then the outer span of cleaned text."""
        candidates = [raw.strip()]
        for source in (strip_code_fences(raw), normalized):
            span = self._outer_span(source)
            if span:
                candidates.append(span)
        span = self._outer_span(normalized)
        if span:
            candidates.append(strip_trailing_commas(span))

        seen = set()
        for candidate in candidates:
            if candidate in seen:
                continue
            seen.add(candidate)
            value = loads_structured(candidate)
            if value is not None:
                return value
        return None

    def _outer_span(self, text: str) -> Optional[str]:
        """From the first opener to the last closer."""
        start = find_structure_start(text)
        end = max(text.rfind("}"), text.rfind("]"))
        if start < 0 or end <= start:
            return None
        return text[start:end + 1]

    # ========================================================================
    # STRATEGY 2: CHUNKED
    # ========================================================================

    def decode_chunked(self, body: str) -> Optional[Any]:
        """
        Shrink a window from the structure start in fixed steps, closing the
        largest clean prefix inside each window.

        The scan is bounded to max_chunk_size characters.
        """
        window = min(len(body), self.max_chunk_size)
        if window < self.min_chunk_size:
            return None

        bounded = body[:window]
        cuts, full = scan_cut_points(bounded)
        if full is not None and (not cuts or full.length > cuts[-1].length):
            cuts = cuts + [full]

        tried = set()
        while window >= self.min_chunk_size:
            cut = largest_cut_within(cuts, window)
            if cut is not None and cut.length not in tried:
                tried.add(cut.length)
                value = loads_structured(close_at(bounded, cut))
                if value is not None:
                    return value
            window -= self.chunk_step
        return None

    # ========================================================================
    # STRATEGY 3: TRUNCATION REPAIR
    # ========================================================================

    def decode_repaired(self, body: str) -> Optional[Any]:
        """Close open structures, cutting back through earlier separators if needed."""
        return repair_truncated_json(body, self.max_repair_backtrack)

    # ========================================================================
    # STRATEGY 4: PARTIAL OBJECTS
    # ========================================================================

    def extract_partial_structure(self, text: str) -> Optional[Any]:
        """
        Regex-scan for balanced-looking objects/arrays and decode the longest
        one that yields a non-empty value.
        """
        bounded = text[:self.max_chunk_size]

        nested = [
            match.group(0)
            for pattern in (NESTED_OBJECT_PATTERN, NESTED_ARRAY_PATTERN)
            for match in pattern.finditer(bounded)
        ]
        value = self._first_non_empty(nested)
        if value is not None:
            return value

        simple = [match.group(0) for match in SIMPLE_OBJECT_PATTERN.finditer(bounded)]
        return self._first_non_empty(simple)

    def _first_non_empty(self, candidates: List[str]) -> Optional[Any]:
        for candidate in sorted(set(candidates), key=len, reverse=True):
            value = loads_structured(candidate)
            if value is None:
                value = loads_structured(strip_trailing_commas(candidate))
            if value is None:
                value = repair_truncated_json(candidate, self.max_repair_backtrack)
            if value:
                return value
        return None

    # ========================================================================
    # STRATEGY 5: JSON_REPAIR
    # ========================================================================

    def decode_with_json_repair(self, body: str) -> Optional[Any]:
        """
        Hand the text to json_repair as a last structural attempt.

        Skipped when the first structure closes before trailing text: that text
        is commentary (e.g. "[see page 2] follow: ..."), and json_repair would
        turn it into data.
        """
        if not body or not self.use_json_repair:
            return None

        end = first_value_end(body)
        if end is not None and body[end:].strip():
            self.logger.debug("First structure closes before trailing text, skipping json_repair")
            return None

        try:
            repaired = repair_json(body, return_objects=True)
        except Exception as e:
            self.logger.debug(f"json_repair could not process text: {e}")
            return None

        if isinstance(repaired, (dict, list)) and repaired:
            self.logger.warning(
                f"json_repair fixed extraction text - potential data loss. "
                f"Original (first 200 chars): {body[:200]}"
            )
            return repaired
        return None

    # ========================================================================
    # STRATEGY 6: KEY-VALUE SALVAGE
    # ========================================================================

    def salvage_key_values(self, text: str) -> Optional[Dict[str, Any]]:
        """Assemble a flat mapping from loose "key": value pairs."""
        result: Dict[str, Any] = {}
        for match in KEY_VALUE_PATTERN.finditer(text):
            key, raw_value = match.group(1), match.group(2)
            try:
                result[key] = json.loads(raw_value)
            except ValueError:
                result[key] = raw_value.strip('"')
        return result or None


_default_decoder: Optional[ResilientDecoder] = None


def decode_structure(text: str) -> DecodedValue:
    """Decode with a shared default ResilientDecoder."""
    global _default_decoder
    if _default_decoder is None:
        _default_decoder = ResilientDecoder()
    return _default_decoder.decode(text)
