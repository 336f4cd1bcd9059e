"""
Buffers for content that is still streaming.

Text and thinking deltas append to one string each; input_json_delta fragments append
to a per-tool string in arrival order (fragments are not valid JSON until the block
ends). All buffers are cleared together at a message boundary.

Deltas on the wire identify their block by index only, so content_block_start binds
the index of a tool_use block to its tool id for the fragments that follow.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType


class StreamAccumulator:
    """Partial text, thinking and tool input for the message in flight."""

    def __init__(self) -> None:
        self.partial_text = ''
        self.partial_thinking = ''
        self._tool_input: dict[str, str] = {}
        self._block_tools: dict[int, str] = {}
        self.current_index: int | None = None

    @property
    def partial_tool_input(self) -> Mapping[str, str]:
        """Read-only view of tool id -> concatenated fragments."""
        return MappingProxyType(self._tool_input)

    def append_text(self, text: str) -> None:
        self.partial_text += text

    def append_thinking(self, thinking: str) -> None:
        self.partial_thinking += thinking

    def append_tool_input(self, tool_id: str, fragment: str) -> None:
        self._tool_input[tool_id] = self._tool_input.get(tool_id, '') + fragment

    def tool_input(self, tool_id: str) -> str:
        return self._tool_input.get(tool_id, '')

    def start_block(self, index: int | None, tool_id: str | None = None) -> None:
        """Track the block being streamed; tool blocks also bind index -> tool id."""
        self.current_index = index
        if index is not None and tool_id is not None:
            self._block_tools[index] = tool_id

    def tool_for_block(self, index: int | None) -> str | None:
        if index is None:
            index = self.current_index
        if index is None:
            return None
        return self._block_tools.get(index)

    def is_empty(self) -> bool:
        return not (self.partial_text or self.partial_thinking or self._tool_input)

    def clear(self) -> None:
        """Reset every buffer at once."""
        self.partial_text = ''
        self.partial_thinking = ''
        self._tool_input = {}
        self._block_tools = {}
        self.current_index = None
