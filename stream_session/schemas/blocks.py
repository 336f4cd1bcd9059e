"""
Content block schemas - the units inside assistant and user turns.

Blocks are validated left-to-right rather than with a strict 'type' discriminator so
that one unrecognized block (image, document, server-side tool use, a stray scalar)
degrades to UnknownBlock / RawJson instead of failing the whole line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal

import orjson
import pydantic

from stream_session.schemas.types import RawJson, WireModel

# ==============================================================================
# Text and Reasoning
# ==============================================================================


class TextBlock(WireModel):
    """Final text of an assistant turn (or a user prompt block)."""

    type: Literal['text']
    text: str = ''


class ThinkingBlock(WireModel):
    """Extended thinking content."""

    type: Literal['thinking']
    thinking: str = ''
    signature: str | None = None


class RedactedThinkingBlock(WireModel):
    """Thinking content the producer withheld; only an opaque payload remains."""

    type: Literal['redacted_thinking']
    data: str | None = None


# ==============================================================================
# Tool Invocation
# ==============================================================================


class ToolInvocation(WireModel):
    """
    Tool use block from assistant turns.

    STREAMING BEHAVIOR: input is {} at content_block_start and is filled by
    input_json_delta fragments; the final assistant turn carries the full object.
    """

    type: Literal['tool_use']
    id: str
    name: str = ''
    input: Any = None  # Usually an object; kept untyped so partial/odd inputs still decode

    def input_json(self) -> str:
        """Input re-encoded as compact JSON text ('' when absent or empty)."""
        if self.input is None or self.input == {}:
            return ''
        return orjson.dumps(self.input).decode()

    def input_str(self, key: str) -> str | None:
        """A string-valued input parameter, or None."""
        if isinstance(self.input, Mapping):
            value = self.input.get(key)
            if isinstance(value, str):
                return value
        return None


# ==============================================================================
# Tool Outcome
# ==============================================================================


class OutcomeItem(WireModel):
    """One entry of an array-form tool result (usually text, sometimes image)."""

    type: str | None = None
    text: str | None = None


class ToolOutcome(WireModel):
    """Tool result content block from user turns."""

    type: Literal['tool_result']
    tool_use_id: str
    # Structured array first, then plain string, then whatever else was sent
    content: Annotated[
        Sequence[OutcomeItem] | str | RawJson | None,
        pydantic.Field(union_mode='left_to_right'),
    ] = None
    is_error: bool | None = None

    def result_text(self) -> str:
        """Flatten content to display text."""
        match self.content:
            case None:
                return ''
            case str():
                return self.content
            case RawJson():
                return self.content.text()
            case _:
                return '\n'.join(item.text for item in self.content if item.text is not None)


# ==============================================================================
# Fallback
# ==============================================================================


class UnknownBlock(WireModel):
    """Block with a type this package does not model (image, document, ...)."""

    type: str | None = None


ContentBlock = Annotated[
    TextBlock
    | ThinkingBlock
    | RedactedThinkingBlock
    | ToolInvocation
    | ToolOutcome
    | UnknownBlock  # Any other object - must be after all typed blocks!
    | RawJson,  # Not an object at all
    pydantic.Field(union_mode='left_to_right'),
]

# Message content is either a plain prompt string or a block list
MessageContent = Annotated[
    str | Sequence[ContentBlock],
    pydantic.Field(union_mode='left_to_right'),
]
