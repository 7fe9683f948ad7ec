# ============================================================================
# src/medical_structuring/core/context/decoded_value.py
# ============================================================================
"""
Decoder output
- Structured: a dict/list recovered from the text, plus the tier that won
- Undecodable: every tier failed

DecodedValue is closed over these two classes; consumers branch with
isinstance() instead of probing for None.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Union

from .enums import DecodeStrategy


@dataclass(frozen=True)
class Structured:
    value: Union[Dict[str, Any], List[Any]]
    strategy: DecodeStrategy = DecodeStrategy.DIRECT

    @property
    def is_salvaged(self) -> bool:
        """True when only loose key/value pairs could be recovered."""
        return self.strategy == DecodeStrategy.KEY_VALUE


@dataclass(frozen=True)
class Undecodable:
    reason: str = "no decoding strategy produced a structured value"


DecodedValue = Union[Structured, Undecodable]
