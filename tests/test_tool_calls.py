"""Tests for tool-call delta accumulation."""

import itertools

import pytest

from llm_kit.core.exceptions import ToolCallProtocolError
from llm_kit.core.tool_calls import ToolCallAccumulator, generate_tool_call_id
from llm_kit.core.types import ErrorPart, ToolCallDeltaPart, ToolCallStreamPart

SEARCH_FRAGMENTS = [
    (0, {"tool_call_id": "call_a", "tool_name": "search", "args_text_delta": '{"q":'}),
    (0, {"args_text_delta": '"rust'}),
    (0, {"args_text_delta": ' lang"}'}),
]
LOOKUP_FRAGMENTS = [
    (1, {"tool_call_id": "call_b", "tool_name": "lookup", "args_text_delta": '{"id"'}),
    (1, {"args_text_delta": ": 7"}),
    (1, {"args_text_delta": "}"}),
]


def _interleavings(left, right):
    """Every merge of two sequences that keeps each sequence's own order."""
    total = len(left) + len(right)
    for left_positions in itertools.combinations(range(total), len(left)):
        merged, li, ri = [], iter(left), iter(right)
        for position in range(total):
            merged.append(next(li) if position in left_positions else next(ri))
        yield merged


def _feed(accumulator, fragments):
    parts = []
    for index, fields in fragments:
        parts.extend(accumulator.add(index, **fields))
    return parts


@pytest.mark.parametrize("fragments", list(_interleavings(SEARCH_FRAGMENTS, LOOKUP_FRAGMENTS)))
def test_interleaved_indices_complete_once_each(fragments):
    parts = _feed(ToolCallAccumulator(), fragments)

    completed = [p for p in parts if isinstance(p, ToolCallStreamPart)]
    assert sorted(p.tool_call_id for p in completed) == ["call_a", "call_b"]

    by_id = {p.tool_call_id: p for p in completed}
    assert by_id["call_a"].tool_name == "search"
    assert by_id["call_a"].args == '{"q":"rust lang"}'
    assert by_id["call_b"].tool_name == "lookup"
    assert by_id["call_b"].args == '{"id": 7}'

    for index, tool_call_id in ((0, "call_a"), (1, "call_b")):
        deltas = [p for p in parts if isinstance(p, ToolCallDeltaPart) and p.index == index]
        assert "".join(d.args_text_delta for d in deltas) == by_id[tool_call_id].args
        assert all(d.tool_call_id == tool_call_id for d in deltas)

    assert not any(isinstance(p, ErrorPart) for p in parts)


def test_deltas_carry_only_the_new_fragment():
    accumulator = ToolCallAccumulator()
    accumulator.add(0, tool_call_id="c1", tool_name="t", args_text_delta='{"a":')
    parts = accumulator.add(0, args_text_delta=" 1}")

    assert parts[0] == ToolCallDeltaPart(index=0, tool_call_id="c1", tool_name="t", args_text_delta=" 1}")
    assert parts[1] == ToolCallStreamPart(tool_call_id="c1", tool_name="t", args='{"a": 1}')


def test_completion_waits_for_tool_name():
    accumulator = ToolCallAccumulator()
    parts = accumulator.add(0, tool_call_id="c1", args_text_delta="{}")
    assert [p.type for p in parts] == ["tool-call-delta"]

    parts = accumulator.add(0, tool_name="late")
    assert parts == [ToolCallStreamPart(tool_call_id="c1", tool_name="late", args="{}")]


def test_missing_id_is_generated():
    accumulator = ToolCallAccumulator(id_generator=lambda: "generated-1")
    parts = accumulator.add(0, tool_name="t", args_text_delta="{}")
    assert parts[-1].tool_call_id == "generated-1"


def test_generate_tool_call_id_is_unique():
    assert generate_tool_call_id() != generate_tool_call_id()


def test_fragment_after_completion_is_reported():
    accumulator = ToolCallAccumulator(provider="test")
    accumulator.add(0, tool_call_id="c1", tool_name="t", args_text_delta="{}")

    parts = accumulator.add(0, args_text_delta='{"x": 1}')
    assert len(parts) == 1
    assert isinstance(parts[0], ErrorPart)
    assert isinstance(parts[0].error, ToolCallProtocolError)
    assert parts[0].error.index == 0
    assert parts[0].error.provider == "test"


def test_empty_fragment_after_completion_is_ignored():
    accumulator = ToolCallAccumulator()
    accumulator.add(0, tool_call_id="c1", tool_name="t", args_text_delta="{}")
    assert accumulator.add(0, tool_call_id="c1") == []


def test_conflicting_name_is_reported():
    accumulator = ToolCallAccumulator()
    accumulator.add(0, tool_call_id="c1", tool_name="first", args_text_delta="{")

    parts = accumulator.add(0, tool_name="second", args_text_delta="}")
    assert len(parts) == 1
    assert isinstance(parts[0].error, ToolCallProtocolError)

    # the rejected fragment was not applied
    parts = accumulator.add(0, args_text_delta="}")
    assert parts[-1] == ToolCallStreamPart(tool_call_id="c1", tool_name="first", args="{}")


def test_flush_reports_unfinished_calls():
    accumulator = ToolCallAccumulator()
    accumulator.add(0, tool_call_id="c1", tool_name="t", args_text_delta="{}")
    accumulator.add(1, tool_call_id="c2", tool_name="t", args_text_delta='{"a"')

    parts = accumulator.flush()
    assert len(parts) == 1
    assert parts[0].error.index == 1
