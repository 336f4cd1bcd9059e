"""
Session state records.

ToolCallRecord, TokenTotals and the *View / snapshot types are frozen: the ledger swaps
whole records on every transition, so a snapshot handed to a renderer never changes
underneath it. AgentContext is the one mutable node type and lives only inside AgentTree.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Literal

import attrs

from stream_session.schemas.events import ToolUseResult, TurnResult
from stream_session.schemas.types import RawJson

# ==============================================================================
# Statuses
# ==============================================================================

ToolCallStatus = Literal['pending', 'running', 'completed', 'failed']
AgentStatus = Literal['idle', 'thinking', 'running', 'completed', 'failed']

TERMINAL_TOOL_STATUSES: frozenset[ToolCallStatus] = frozenset({'completed', 'failed'})

# Forward-only ordering of non-terminal tool states
TOOL_STATUS_RANK: Mapping[ToolCallStatus, int] = {
    'pending': 0,
    'running': 1,
    'completed': 2,
    'failed': 2,
}


# ==============================================================================
# Tool Calls
# ==============================================================================


@attrs.define(frozen=True)
class ToolCallRecord:
    """One tool invocation and how far it got."""

    id: str
    name: str = ''
    input: str = ''  # Raw JSON text of the parameters
    status: ToolCallStatus = 'pending'
    result: str = ''
    is_error: bool = False
    metadata: ToolUseResult | str | RawJson | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_TOOL_STATUSES


# ==============================================================================
# Agents
# ==============================================================================


@attrs.define
class AgentContext:
    """A node of the agent tree. Depth is fixed when the node is created."""

    id: str
    type: str
    depth: int = attrs.field(on_setattr=attrs.setters.frozen)
    parent_id: str | None = attrs.field(default=None, on_setattr=attrs.setters.frozen)
    description: str = ''
    status: AgentStatus = 'idle'
    tool_calls: list[ToolCallRecord] = attrs.field(factory=list)
    children: list[str] = attrs.field(factory=list)

    def view(self) -> AgentView:
        return AgentView(
            id=self.id,
            type=self.type,
            depth=self.depth,
            parent_id=self.parent_id,
            description=self.description,
            status=self.status,
            tool_calls=tuple(self.tool_calls),
            children=tuple(self.children),
        )


@attrs.define(frozen=True)
class AgentView:
    """Read-only projection of an AgentContext."""

    id: str
    type: str
    depth: int
    parent_id: str | None
    description: str
    status: AgentStatus
    tool_calls: tuple[ToolCallRecord, ...]
    children: tuple[str, ...]


# ==============================================================================
# Tokens
# ==============================================================================


@attrs.define(frozen=True)
class TokenTotals:
    input: int = 0
    output: int = 0
    cache_write: int = 0
    cache_read: int = 0
    total: int = 0


# ==============================================================================
# Session Snapshot
# ==============================================================================


@attrs.define(frozen=True)
class SessionSnapshot:
    """Everything a renderer needs, captured at one point in the stream."""

    session_id: str
    model: str
    focus_id: str | None
    focus_status: AgentStatus | None
    agents: tuple[AgentView, ...]
    tool_calls: tuple[ToolCallRecord, ...]
    tokens: TokenTotals
    partial_text: str
    partial_thinking: str
    partial_tool_input: Mapping[str, str]
    final_text: str
    result: TurnResult | None
    compaction_count: int
