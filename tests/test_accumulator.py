"""Tests for StreamAccumulator."""

from __future__ import annotations

import pytest

from stream_session.services.accumulator import StreamAccumulator


def test_text_deltas_concatenate_in_order() -> None:
    acc = StreamAccumulator()
    acc.append_text('Hello, ')
    acc.append_text('World!')

    assert acc.partial_text == 'Hello, World!'


def test_tool_input_fragments_are_kept_per_tool() -> None:
    acc = StreamAccumulator()
    acc.append_tool_input('t1', '{"command":')
    acc.append_tool_input('t2', '{"path"')
    acc.append_tool_input('t1', '"ls"}')

    assert acc.tool_input('t1') == '{"command":"ls"}'
    assert acc.tool_input('t2') == '{"path"'
    assert acc.tool_input('missing') == ''
    assert dict(acc.partial_tool_input) == {'t1': '{"command":"ls"}', 't2': '{"path"'}


def test_block_index_resolves_tool() -> None:
    acc = StreamAccumulator()
    acc.start_block(0)
    acc.start_block(1, 't1')

    assert acc.tool_for_block(1) == 't1'
    assert acc.tool_for_block(0) is None
    # No index on the delta: fall back to the block being streamed
    assert acc.tool_for_block(None) == 't1'


def test_clear_resets_every_buffer() -> None:
    acc = StreamAccumulator()
    acc.append_text('a')
    acc.append_thinking('b')
    acc.append_tool_input('t1', 'c')
    acc.start_block(0, 't1')
    assert not acc.is_empty()

    acc.clear()

    assert acc.is_empty()
    assert acc.partial_text == ''
    assert acc.partial_thinking == ''
    assert acc.partial_tool_input == {}
    assert acc.tool_for_block(0) is None
    assert acc.current_index is None


def test_partial_tool_input_is_read_only_view() -> None:
    acc = StreamAccumulator()
    acc.append_tool_input('t1', 'x')
    view = acc.partial_tool_input

    with pytest.raises(TypeError):
        view['t1'] = 'y'  # type: ignore[index]
    assert acc.tool_input('t1') == 'x'
