# ============================================================================
# FILE: tests/unit/test_json_decoder.py
# ============================================================================
"""
Unit tests for the resilient structure decoder
"""

import json

import pytest

from medical_structuring.core.context import DecodeStrategy, Structured, Undecodable
from medical_structuring.extractors.json_decoder import ResilientDecoder, decode_structure
from medical_structuring.extractors.structure_repair import (
    find_structure_start,
    first_value_end,
    repair_truncated_json,
    strip_trailing_commas,
)


@pytest.fixture
def decoder():
    return ResilientDecoder()


# ============================================================================
# DIRECT DECODE
# ============================================================================

def test_valid_json_decodes_directly(decoder):
    result = decoder.decode('{"tests": []}')
    assert isinstance(result, Structured)
    assert result.strategy == DecodeStrategy.DIRECT
    assert result.value == {"tests": []}


def test_fenced_json(decoder):
    result = decoder.decode('```json\n{"a": 1}\n```')
    assert result == Structured({"a": 1}, DecodeStrategy.DIRECT)


def test_surrounding_prose_is_ignored(decoder):
    result = decoder.decode('Here is the result: {"a": 1} Hope this helps')
    assert result.value == {"a": 1}


def test_trailing_commas(decoder):
    result = decoder.decode('{"a": [1, 2,],}')
    assert result.value == {"a": [1, 2]}


@pytest.mark.parametrize("text", [
    '{"a": [[1, 2], [3, [4, 5]]], "b": {}}',
    json.dumps({"name": "Größe µg/dL 血糖"}),
    json.dumps({"name": "Größe µg/dL 血糖"}, ensure_ascii=False),
    '{"value": 1.5e-3, "big": 2E10, "neg": -0.25}',
    '[true, false, null, 0]',
    '{"note": "say \\"hi\\" from C:\\\\lab\\\\results"}',
])
def test_valid_documents_decode_unchanged(decoder, text):
    result = decoder.decode(text)

    assert result.strategy == DecodeStrategy.DIRECT
    assert result.value == json.loads(text)


def test_decode_structure_uses_shared_decoder():
    assert decode_structure('[1, 2, 3]').value == [1, 2, 3]


# ============================================================================
# TRUNCATION
# ============================================================================

def test_truncated_object_is_repaired(decoder):
    text = '{"tests": [{"name": "Glucose", "value": 130}, {"name": "HbA1c", "val'
    result = decoder.decode(text)

    assert isinstance(result, Structured)
    assert result.strategy == DecodeStrategy.REPAIRED
    assert result.value["tests"][0] == {"name": "Glucose", "value": 130}
    assert result.value["tests"][1] == {"name": "HbA1c"}


def test_long_truncated_document_uses_chunked_decode(decoder):
    tests = [{"name": f"Test {i}", "value": i, "unit": "mg/dL"} for i in range(60)]
    text = json.dumps({"tests": tests})
    truncated = text[:text.rindex('"value": 59') + 4]

    result = decoder.decode(truncated)

    assert result.strategy == DecodeStrategy.CHUNKED
    assert len(result.value["tests"]) == 60
    assert result.value["tests"][0] == {"name": "Test 0", "value": 0, "unit": "mg/dL"}
    assert result.value["tests"][-1] == {"name": "Test 59"}


def test_repair_closes_in_nesting_order():
    assert repair_truncated_json('{"a": [1, {"b": 2') == {"a": [1, {"b": 2}]}
    assert repair_truncated_json('[{"a": 1}, {"b": "unterminated') == [{"a": 1}]


def test_repair_helpers():
    assert find_structure_start("noise [1] {2}") == 6
    assert find_structure_start("no structure") == -1
    assert strip_trailing_commas('{"a": [1,],}') == '{"a": [1]}'


def test_first_value_end():
    assert first_value_end("[1] tail") == 3
    assert first_value_end('{"a": "}"} more') == 10
    assert first_value_end('{"a": [1') is None
    assert first_value_end('{"a": ]') is None


REPORT = json.dumps(
    {
        "patient": {"name": "Ana Silva", "age": 54},
        "tests": [
            {"name": "Glucose", "value": 130, "flags": ["H"]},
            {"name": "LDL", "value": 160.5, "range": [0, 130]},
        ],
        "notes": [],
    },
    separators=(",", ":"),
)


def _close_open(prefix):
    stack = []
    in_string = escape = False
    for char in prefix:
        if in_string:
            if escape:
                escape = False
            elif char == "\\":
                escape = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]":
            stack.pop()
    return "".join(reversed(stack))


@pytest.mark.parametrize("end", [i + 1 for i, char in enumerate(REPORT) if char in "}]"])
def test_report_cut_after_any_closer_keeps_everything_before_it(decoder, end):
    prefix = REPORT[:end]
    result = decoder.decode(prefix)

    assert isinstance(result, Structured)
    assert result.value == json.loads(prefix + _close_open(prefix))


# ============================================================================
# SALVAGE
# ============================================================================

def test_partial_structure_prefers_longest_object(decoder):
    text = 'noise {"a": 1} more {"b": {"c": 2}} end'
    assert decoder.extract_partial_structure(text) == {"b": {"c": 2}}


def test_bracketed_prose_before_object(decoder):
    tests = {"tests": [{"name": "Glucose", "value": 130}]}
    result = decoder.decode("Results [see page 2] follow: " + json.dumps(tests))

    assert result.strategy == DecodeStrategy.PARTIAL
    assert result.value == tests


def test_bracketed_prose_is_not_turned_into_data(decoder):
    assert isinstance(decoder.decode("Patient [stable] today"), Undecodable)


def test_key_value_salvage(decoder):
    text = '"name": "Glucose", "value": 130 and "unit": "mg/dL"'
    result = decoder.decode(text)

    assert result.strategy == DecodeStrategy.KEY_VALUE
    assert result.is_salvaged
    assert result.value == {"name": "Glucose", "value": 130, "unit": "mg/dL"}


def test_plain_prose_is_undecodable(decoder):
    result = decoder.decode("Patient seen today, no issues.")
    assert isinstance(result, Undecodable)


def test_empty_input_is_undecodable(decoder):
    assert isinstance(decoder.decode(""), Undecodable)
    assert isinstance(decoder.decode("   \n"), Undecodable)


def test_garbage_never_raises(decoder):
    for text in ("{{{[[[", '{"a": }}}]]', "]]]}}}", '"unterminated'):
        assert isinstance(decoder.decode(text), (Structured, Undecodable))
