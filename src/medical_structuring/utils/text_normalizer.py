# ============================================================================
# src/medical_structuring/utils/text_normalizer.py
# ============================================================================
"""
Text Normalization Utilities

Cleans up machine-generated extraction text before decoding:
- Removes markdown code fences (with or without a language tag)
- Unwraps inline code markers
- Drops heading and list-bullet markup
- Trims and collapses blank lines

Also hosts the display-name formatter shared by the lab and general builders.
"""

import re
import logging

logger = logging.getLogger(__name__)

_OPENING_FENCE = re.compile(r"```(?:json|javascript|js|typescript|ts)?\s*\n?", re.IGNORECASE)
_ANY_FENCE = re.compile(r"```")
_INLINE_CODE = re.compile(r"`([^`]+)`")
_HEADER_MARKUP = re.compile(r"^\s*#+\s*", re.MULTILINE)
_LIST_BULLET = re.compile(r"^\s*[-*]\s+", re.MULTILINE)
_BLANK_LINES = re.compile(r"\n\s*\n")

_CAMEL_BOUNDARY = re.compile(r"([a-z])([A-Z])")
_WHITESPACE = re.compile(r"\s+")


def strip_code_fences(text: str) -> str:
    """Remove ``` fences (and their language tag) but leave everything else."""
    if not text:
        return ""
    text = _OPENING_FENCE.sub("", text)
    return _ANY_FENCE.sub("", text)


def normalize_extraction_text(text: str) -> str:
    """
    Normalize raw extraction text.

    Args:
        text: Raw OCR/LLM output, possibly fenced or markdown-formatted

    Returns:
        Cleaned text; empty input gives empty output
    """
    if not text:
        return ""

    cleaned = strip_code_fences(text)
    cleaned = _INLINE_CODE.sub(r"\1", cleaned)
    cleaned = _HEADER_MARKUP.sub("", cleaned)
    cleaned = _LIST_BULLET.sub("", cleaned)
    cleaned = cleaned.strip()
    cleaned = _BLANK_LINES.sub("\n", cleaned)

    if len(cleaned) != len(text):
        logger.debug(f"Normalized extraction text: {len(text)} -> {len(cleaned)} chars")
    return cleaned


def format_display_name(name: str) -> str:
    """
    Turn a key like "total_cholesterol" into "Total cholesterol"
    ("totalCholesterol" gives "Total Cholesterol").
    """
    if not name:
        return ""
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", str(name)).replace("_", " ")
    spaced = _WHITESPACE.sub(" ", spaced).strip()
    if not spaced:
        return ""
    return spaced[0].upper() + spaced[1:]
