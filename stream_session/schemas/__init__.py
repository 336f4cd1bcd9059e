"""Schemas for stream records, decode errors and session state."""

from __future__ import annotations

from stream_session.schemas.blocks import (
    ContentBlock,
    OutcomeItem,
    RedactedThinkingBlock,
    TextBlock,
    ThinkingBlock,
    ToolInvocation,
    ToolOutcome,
    UnknownBlock,
)
from stream_session.schemas.errors import DecodeError, DecodeErrorKind
from stream_session.schemas.events import (
    CompactionBoundary,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    Delta,
    Event,
    InputJsonDelta,
    MessageDelta,
    MessageDeltaPayload,
    MessageStart,
    MessageStop,
    SessionStart,
    SignatureDelta,
    StreamEnvelope,
    StreamEvent,
    TextDelta,
    ThinkingDelta,
    ToolUseResult,
    TurnMessage,
    TurnPayload,
    TurnResult,
    Unknown,
    UnknownDelta,
    Usage,
    UserTurn,
)
from stream_session.schemas.state import (
    AgentContext,
    AgentStatus,
    AgentView,
    SessionSnapshot,
    TokenTotals,
    ToolCallRecord,
    ToolCallStatus,
)
from stream_session.schemas.types import BaseStrictModel, RawJson, WireModel

__all__ = [
    # Foundation
    'BaseStrictModel',
    'RawJson',
    'WireModel',
    # Blocks
    'ContentBlock',
    'OutcomeItem',
    'RedactedThinkingBlock',
    'TextBlock',
    'ThinkingBlock',
    'ToolInvocation',
    'ToolOutcome',
    'UnknownBlock',
    # Events
    'CompactionBoundary',
    'ContentBlockDelta',
    'ContentBlockStart',
    'ContentBlockStop',
    'Delta',
    'Event',
    'InputJsonDelta',
    'MessageDelta',
    'MessageDeltaPayload',
    'MessageStart',
    'MessageStop',
    'SessionStart',
    'SignatureDelta',
    'StreamEnvelope',
    'StreamEvent',
    'TextDelta',
    'ThinkingDelta',
    'ToolUseResult',
    'TurnMessage',
    'TurnPayload',
    'TurnResult',
    'Unknown',
    'UnknownDelta',
    'Usage',
    'UserTurn',
    # Errors
    'DecodeError',
    'DecodeErrorKind',
    # State
    'AgentContext',
    'AgentStatus',
    'AgentView',
    'SessionSnapshot',
    'TokenTotals',
    'ToolCallRecord',
    'ToolCallStatus',
]
