"""
Event schemas for the stream-json output of the generator CLI.

One line of output decodes to exactly one of these. Top-level discriminator values:

    system (subtype init)              -> SessionStart
    system (subtype compact_boundary)  -> CompactionBoundary
    compact_boundary                   -> CompactionBoundary
    assistant                          -> TurnMessage
    user                               -> UserTurn
    result                             -> TurnResult
    stream_event                       -> nested stream event, or StreamEnvelope if it has none
    message_start ... message_stop     -> stream event (bare form)
    anything else                      -> Unknown

Stream event sequence for one assistant message:
    message_start -> content_block_start -> [content_block_delta]* ->
    content_block_stop -> message_delta -> message_stop

Every optional sub-payload (message, content_block, delta, usage) may be absent or null.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Annotated, Any, Literal

import pydantic

from stream_session.schemas.blocks import ContentBlock, MessageContent
from stream_session.schemas.types import BaseStrictModel, RawJson, WireModel

# ==============================================================================
# Usage
# ==============================================================================


class Usage(WireModel):
    """
    Token usage attached to turns, message deltas and the final result.

    Counters are lax: producers sometimes serialize them as integral floats (10.0).
    Fractional values are still rejected.
    """

    input_tokens: int | None = pydantic.Field(default=None, strict=False)
    output_tokens: int | None = pydantic.Field(default=None, strict=False)
    cache_creation_input_tokens: int | None = pydantic.Field(default=None, strict=False)
    cache_read_input_tokens: int | None = pydantic.Field(default=None, strict=False)


# ==============================================================================
# Session Lifecycle
# ==============================================================================


class SessionStart(WireModel):
    """System init record - first line of every run."""

    type: Literal['system']
    subtype: Literal['init'] | None = None  # Other system subtypes are not session starts
    session_id: str | None = None
    model: str | None = None
    cwd: str | None = None
    permissionMode: str | None = None
    claude_code_version: str | None = None
    uuid: str | None = None


class CompactionBoundary(WireModel):
    """Marker emitted when the producer compacted its context."""

    type: Literal['system', 'compact_boundary']
    subtype: str | None = None
    session_id: str | None = None
    uuid: str | None = None

    @pydantic.model_validator(mode='after')
    def require_subtype_on_system(self) -> CompactionBoundary:
        # type 'system' alone would re-read as a SessionStart
        if self.type == 'system' and self.subtype != 'compact_boundary':
            raise ValueError("a 'system' compaction boundary needs subtype 'compact_boundary'")
        return self


class TurnResult(WireModel):
    """Final record of a run, carrying authoritative usage totals."""

    type: Literal['result']
    subtype: str | None = None  # e.g. 'success', 'error_max_turns'
    is_error: bool | None = None
    result: str | None = None
    total_cost_usd: float | None = None
    duration_ms: int | None = None
    duration_api_ms: int | None = None
    num_turns: int | None = None
    session_id: str | None = None
    usage: Usage | None = None
    uuid: str | None = None


# ==============================================================================
# Turns
# ==============================================================================


class TurnPayload(WireModel):
    """The API message inside a turn record (also message_start.message)."""

    id: str | None = None
    type: str | None = None  # 'message'
    role: str | None = None
    model: str | None = None
    content: MessageContent = ()
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage | None = None


class ToolUseResult(WireModel):
    """Structured tool execution metadata (Bash-style output, among others)."""

    stdout: str | None = None
    stderr: str | None = None
    interrupted: bool | None = None
    isImage: bool | None = None


class _Turn(WireModel):
    message: TurnPayload | None = None
    session_id: str | None = None
    parent_tool_use_id: str | None = None  # Set when a sub-agent produced this turn
    uuid: str | None = None

    @property
    def blocks(self) -> Sequence[ContentBlock]:
        """Content blocks of the turn; empty for a missing message or a plain-string prompt."""
        if self.message is None or isinstance(self.message.content, str):
            return ()
        return self.message.content

    @property
    def message_usage(self) -> Usage | None:
        return self.message.usage if self.message is not None else None


class TurnMessage(_Turn):
    """Complete assistant turn."""

    type: Literal['assistant']


class UserTurn(_Turn):
    """User turn - a prompt, or tool results fed back to the model."""

    type: Literal['user']
    # Object first, then plain string, then anything else
    tool_use_result: Annotated[
        ToolUseResult | str | RawJson | None,
        pydantic.Field(union_mode='left_to_right'),
    ] = None


# ==============================================================================
# Delta Types (content_block_delta payloads)
# ==============================================================================


class TextDelta(WireModel):
    type: Literal['text_delta']
    text: str = ''


class ThinkingDelta(WireModel):
    type: Literal['thinking_delta']
    thinking: str = ''


class InputJsonDelta(WireModel):
    """Fragment of a tool's input JSON; fragments are not valid JSON on their own."""

    type: Literal['input_json_delta']
    partial_json: str = ''


class SignatureDelta(WireModel):
    type: Literal['signature_delta']
    signature: str = ''


class UnknownDelta(WireModel):
    type: str | None = None


Delta = Annotated[
    TextDelta | ThinkingDelta | InputJsonDelta | SignatureDelta | UnknownDelta,
    pydantic.Field(union_mode='left_to_right'),
]


class MessageDeltaPayload(WireModel):
    stop_reason: str | None = None
    stop_sequence: str | None = None


# ==============================================================================
# Stream Events
# ==============================================================================


class _StreamEvent(WireModel):
    # Copied from the stream_event wrapper when the event is unwrapped
    parent_tool_use_id: str | None = None


class MessageStart(_StreamEvent):
    type: Literal['message_start']
    message: TurnPayload | None = None


class ContentBlockStart(_StreamEvent):
    type: Literal['content_block_start']
    index: int | None = None
    content_block: ContentBlock | None = None


class ContentBlockDelta(_StreamEvent):
    type: Literal['content_block_delta']
    index: int | None = None
    delta: Delta | None = None
    content_block: ContentBlock | None = None  # Rare; identifies the tool directly when present


class ContentBlockStop(_StreamEvent):
    type: Literal['content_block_stop']
    index: int | None = None


class MessageDelta(_StreamEvent):
    type: Literal['message_delta']
    delta: MessageDeltaPayload | None = None
    usage: Usage | None = None


class MessageStop(_StreamEvent):
    type: Literal['message_stop']


StreamEvent = Annotated[
    MessageStart | ContentBlockStart | ContentBlockDelta | ContentBlockStop | MessageDelta | MessageStop,
    pydantic.Field(discriminator='type'),
]

STREAM_EVENT_TYPES = frozenset(
    {
        'message_start',
        'content_block_start',
        'content_block_delta',
        'content_block_stop',
        'message_delta',
        'message_stop',
    }
)


class StreamEnvelope(WireModel):
    """A stream_event wrapper that carried no nested event."""

    type: Literal['stream_event']
    event: Any = None
    session_id: str | None = None
    parent_tool_use_id: str | None = None
    uuid: str | None = None

    @pydantic.field_validator('event')
    @classmethod
    def reject_nested_object(cls, value: Any) -> Any:
        # An object here is a stream event and decodes to that event instead
        if isinstance(value, dict):
            raise ValueError('an envelope with an object event is the nested event, not an envelope')
        return value


# ==============================================================================
# Unknown
# ==============================================================================


class Unknown(BaseStrictModel):
    """Record with a discriminator this package does not model. Not an error."""

    discriminator: str
    raw: bytes


# ==============================================================================
# Event (union of everything decode() can return on success)
# ==============================================================================

Event = (
    SessionStart
    | CompactionBoundary
    | TurnMessage
    | UserTurn
    | MessageStart
    | ContentBlockStart
    | ContentBlockDelta
    | ContentBlockStop
    | MessageDelta
    | MessageStop
    | TurnResult
    | StreamEnvelope
    | Unknown
)

StreamEventAdapter: pydantic.TypeAdapter[StreamEvent] = pydantic.TypeAdapter(StreamEvent)
