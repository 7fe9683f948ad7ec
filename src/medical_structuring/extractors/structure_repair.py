# ============================================================================
# src/medical_structuring/extractors/structure_repair.py
# ============================================================================
"""
Truncation repair for JSON-like text.

Upstream generation is token-bounded, so most corruption is a document that
simply stops mid-structure. The scanner below walks the text once (outside
string literals) and records every position where the text could be cut and
closed again:

- after a completed object/array (kept),
- at a comma separator (comma dropped),
- at a nested opener (opener dropped).

Each cut point carries the closers needed for whatever is still open at that
position, so closing a prefix never needs a second scan.
"""

import json
import re
from bisect import bisect_right
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

_CLOSER_FOR = {"{": "}", "[": "]"}
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


@dataclass(frozen=True)
class CutPoint:
    length: int   # characters of the source text kept
    closers: str  # appended to close every structure still open


def _closers(stack: List[str]) -> str:
    return "".join(_CLOSER_FOR[opener] for opener in reversed(stack))


def strip_trailing_commas(text: str) -> str:
    """Remove commas that directly precede a closing brace/bracket."""
    return _TRAILING_COMMA.sub(r"\1", text)


def find_structure_start(text: str) -> int:
    """Index of the first '{' or '[' in text, or -1."""
    positions = [p for p in (text.find("{"), text.find("[")) if p >= 0]
    return min(positions) if positions else -1


def scan_cut_points(text: str) -> Tuple[List[CutPoint], Optional[CutPoint]]:
    """
    Walk text (which should start at its first opener) once.

    Returns:
        (cut points in ascending order, cut point for the whole text or None
        when the whole text cannot be closed: it ends inside a string, hits a
        mismatched closer, or never opens a structure)
    """
    stack: List[str] = []
    cuts: List[CutPoint] = []
    in_string = False
    escape = False
    opened = False

    for index, char in enumerate(text):
        if in_string:
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSER_FOR:
            if stack:
                cuts.append(CutPoint(index, _closers(stack)))
            stack.append(char)
            opened = True
        elif char in "}]":
            if not stack or _CLOSER_FOR[stack[-1]] != char:
                # Nothing past a mismatched closer can be part of a valid prefix
                return cuts, None
            stack.pop()
            cut = CutPoint(index + 1, _closers(stack))
            cuts.append(cut)
            if not stack:
                # First top-level value is complete; the rest is commentary
                return cuts, cut
        elif char == "," and stack:
            cuts.append(CutPoint(index, _closers(stack)))

    if in_string or not opened:
        return cuts, None
    return cuts, CutPoint(len(text), _closers(stack))


def close_at(text: str, cut: CutPoint) -> str:
    """Cut text at a cut point and append the closers it needs."""
    return strip_trailing_commas(text[:cut.length].rstrip() + cut.closers)


def loads_structured(text: str) -> Optional[Any]:
    """json.loads that only accepts dict/list results and never raises."""
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    if isinstance(value, (dict, list)):
        return value
    return None


def first_value_end(text: str) -> Optional[int]:
    """
    Index just past the first top-level value when it closes inside text.

    None when the value is still open at the end of text (truncated) or the
    nesting is broken.
    """
    _, full = scan_cut_points(text)
    if full is None or full.closers:
        return None
    return full.length


def repair_truncated_json(text: str, max_backtrack: int = 50) -> Optional[Any]:
    """
    Recover the largest decodable prefix of truncated JSON text.

    Tries the whole text closed as-is first, then cuts back through up to
    max_backtrack earlier cut points, largest first.

    Args:
        text: JSON-like text starting at its first opener
        max_backtrack: How many earlier cut points may be tried

    Returns:
        Decoded dict/list, or None
    """
    cuts, full = scan_cut_points(text)
    candidates: List[CutPoint] = []
    if full is not None:
        candidates.append(full)
    if max_backtrack > 0:
        candidates.extend(reversed(cuts[-max_backtrack:]))

    tried = set()
    for cut in candidates:
        if cut.length in tried:
            continue
        tried.add(cut.length)
        value = loads_structured(close_at(text, cut))
        if value is not None:
            return value
    return None


def largest_cut_within(cuts: List[CutPoint], limit: int) -> Optional[CutPoint]:
    """Largest cut point whose kept length fits inside limit characters."""
    lengths = [cut.length for cut in cuts]
    position = bisect_right(lengths, limit)
    if position == 0:
        return None
    return cuts[position - 1]
