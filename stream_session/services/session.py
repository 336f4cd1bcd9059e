"""
Session state - the aggregate root driven by decoded events.

SessionState owns the agent tree, the tool call ledger, the token ledger and the stream
accumulator. Callers hand it events with apply(); renderers read it through the
projection methods, which return frozen records and never expose the mutable nodes.

Mutators never raise. Events that reference something unknown (an outcome for an
unseen tool id, focus on an unseen agent, a missing optional payload) are logged at
debug level and otherwise ignored.

Single writer: nothing here is synchronized. Concurrent callers must serialize apply()
themselves (EventPump does this with one lock per apply).
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TypeAlias

from stream_session.config import StreamSessionSettings, settings as default_settings
from stream_session.schemas.blocks import (
    ContentBlock,
    RedactedThinkingBlock,
    TextBlock,
    ThinkingBlock,
    ToolInvocation,
    ToolOutcome,
)
from stream_session.schemas.events import (
    CompactionBoundary,
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    Event,
    InputJsonDelta,
    MessageDelta,
    MessageStart,
    MessageStop,
    SessionStart,
    TextDelta,
    ThinkingDelta,
    ToolUseResult,
    TurnMessage,
    TurnResult,
    UserTurn,
)
from stream_session.schemas.state import (
    AgentStatus,
    AgentView,
    SessionSnapshot,
    TokenTotals,
    ToolCallRecord,
    ToolCallStatus,
)
from stream_session.schemas.types import RawJson
from stream_session.services.accumulator import StreamAccumulator
from stream_session.services.agents import AgentTree
from stream_session.services.tokens import TokenLedger
from stream_session.services.tool_calls import ToolCallLedger

__all__ = [
    'SessionState',
]

logger = logging.getLogger(__name__)

StreamEventVariant: TypeAlias = (
    MessageStart | ContentBlockStart | ContentBlockDelta | ContentBlockStop | MessageDelta | MessageStop
)


class SessionState:
    """
    Aggregate session model.

    Example:
        state = SessionState()
        for line in lines:
            event = decoder.decode(line)
            if not isinstance(event, DecodeError):
                state.apply(event)
        print(state.tokens.total, state.focus_id)
    """

    def __init__(self, settings: StreamSessionSettings | None = None) -> None:
        self.settings = settings if settings is not None else default_settings
        self.session_id = ''
        self.model = ''
        self.tree = AgentTree()
        self.ledger = ToolCallLedger()
        self.token_ledger = TokenLedger()
        self.stream = StreamAccumulator()
        self.result: TurnResult | None = None
        self.final_text = ''
        self.final_thinking = ''
        self.compaction_count = 0

    # ==========================================================================
    # Dispatch
    # ==========================================================================

    def apply(self, event: Event) -> None:
        """Apply one decoded event."""
        match event:
            case SessionStart():
                self.apply_session_start(event)
            case TurnMessage():
                self.apply_turn_message(event)
            case UserTurn():
                self.apply_user_turn(event)
            case (
                MessageStart() | ContentBlockStart() | ContentBlockDelta() | ContentBlockStop() | MessageDelta() | MessageStop()
            ):
                self.apply_stream_event(event)
            case TurnResult():
                self.apply_turn_result(event)
            case CompactionBoundary():
                self.apply_compaction_boundary(event)
            case _:
                logger.debug(f'No state change for {type(event).__name__}')

    # ==========================================================================
    # Mutators
    # ==========================================================================

    def apply_session_start(self, info: SessionStart) -> None:
        """
        Start (or restart) the session.

        The first call creates the root agent. Later calls keep the agent tree and every
        tool call record; the root goes back to idle and takes focus again.
        """
        session_id = info.session_id or ''
        if self.tree.root is None:
            self._ensure_root()
        else:
            if self.session_id and session_id and session_id != self.session_id:
                logger.warning(
                    f'Session restarted as {session_id} (was {self.session_id}); keeping agent tree and tool calls'
                )
            root_id = self.tree.root_id
            assert root_id is not None
            self.tree.focus_id = root_id
            self.tree.set_status(root_id, 'idle')

        if session_id:
            self.session_id = session_id
        if info.model:
            self.model = info.model

    def apply_turn_message(self, msg: TurnMessage) -> None:
        """Fold in a complete assistant turn, then close the streaming buffers."""
        self._follow(msg.parent_tool_use_id)
        for block in msg.blocks:
            self._apply_block(block)
        self.token_ledger.add(msg.message_usage)
        self.stream.clear()

    def apply_user_turn(self, turn: UserTurn) -> None:
        """Complete the tool calls answered by a user turn."""
        self._follow(turn.parent_tool_use_id)
        outcomes = [block for block in turn.blocks if isinstance(block, ToolOutcome)]
        # tool_use_result describes the turn as a whole; only attributable to a single outcome
        metadata = turn.tool_use_result if len(outcomes) == 1 else None
        for outcome in outcomes:
            self._complete(outcome, metadata)

    def apply_stream_event(self, event: StreamEventVariant) -> None:
        self._follow(event.parent_tool_use_id)
        match event:
            case MessageStart():
                if event.message is not None and event.message.model and not self.model:
                    self.model = event.message.model
            case ContentBlockStart():
                block = event.content_block
                if isinstance(block, ToolInvocation):
                    self.stream.start_block(event.index, block.id)
                    self._invoke(block, 'pending')
                else:
                    self.stream.start_block(event.index)
            case ContentBlockDelta():
                self._apply_delta(event)
            case ContentBlockStop():
                pass
            case MessageDelta():
                self.token_ledger.add(event.usage)
            case MessageStop():
                self.stream.clear()

    def apply_turn_result(self, result: TurnResult) -> None:
        """Record the final result; its usage is authoritative for the totals."""
        self.result = result
        self.token_ledger.merge_totals(result.usage)
        if result.session_id and not self.session_id:
            self.session_id = result.session_id

    def apply_compaction_boundary(self, boundary: CompactionBoundary) -> None:
        self.compaction_count += 1
        logger.debug(f'Context compacted ({self.compaction_count} so far)')

    def set_focus(self, agent_id: str) -> None:
        """Focus a known agent; unknown ids are ignored."""
        if not self.tree.set_focus(agent_id):
            logger.debug(f'Ignoring focus on unknown agent {agent_id}')

    def flush(self) -> None:
        """Message boundary without a message: drop whatever is still streaming."""
        self.stream.clear()

    # ==========================================================================
    # Internals
    # ==========================================================================

    def _ensure_root(self) -> None:
        self.tree.create_root(self.settings.ROOT_AGENT_ID, self.settings.ROOT_AGENT_TYPE)

    def _follow(self, parent_tool_use_id: str | None) -> None:
        if parent_tool_use_id and self.settings.FOLLOW_PARENT_TOOL_USE_ID:
            self.set_focus(parent_tool_use_id)

    def _apply_block(self, block: ContentBlock) -> None:
        match block:
            case TextBlock():
                self.final_text = block.text
            case ThinkingBlock():
                self.final_thinking = block.thinking
            case RedactedThinkingBlock():
                pass
            case ToolInvocation():
                self._invoke(block, 'running')
            case ToolOutcome():
                self._complete(block, None)
            case _:
                logger.debug(f'Skipping unmodeled content block {type(block).__name__}')

    def _apply_delta(self, event: ContentBlockDelta) -> None:
        match event.delta:
            case TextDelta():
                self.stream.append_text(event.delta.text)
            case ThinkingDelta():
                self.stream.append_thinking(event.delta.thinking)
            case InputJsonDelta():
                if isinstance(event.content_block, ToolInvocation):
                    tool_id = event.content_block.id
                else:
                    tool_id = self.stream.tool_for_block(event.index)
                if tool_id is None:
                    logger.debug(f'Dropping input fragment for unbound block {event.index}')
                    return
                self.stream.append_tool_input(tool_id, event.delta.partial_json)
            case _:
                pass

    def _invoke(self, block: ToolInvocation, status: ToolCallStatus) -> None:
        self._ensure_root()
        tool_input = block.input_json() or self.stream.tool_input(block.id)
        record = self.ledger.upsert(block.id, block.name, tool_input, status)
        self.tree.attach(record)

        if status == 'running' and block.name == self.settings.SPAWN_TOOL_NAME:
            self.tree.spawn_child(
                block.id,
                block.input_str('subagent_type') or self.settings.DEFAULT_AGENT_TYPE,
                block.input_str('description') or '',
            )

    def _complete(self, outcome: ToolOutcome, metadata: ToolUseResult | str | RawJson | None) -> None:
        is_error = bool(outcome.is_error)
        record = self.ledger.complete(outcome.tool_use_id, outcome.result_text(), is_error, metadata)
        if record is None:
            return
        self.tree.attach(record)
        if outcome.tool_use_id != self.tree.root_id:
            self.tree.finish_agent(outcome.tool_use_id, failed=is_error)

    # ==========================================================================
    # Projections (read-only)
    # ==========================================================================

    @property
    def focus_id(self) -> str | None:
        return self.tree.focus_id

    @property
    def focus_status(self) -> AgentStatus | None:
        focus = self.tree.focus
        return focus.status if focus is not None else None

    @property
    def tokens(self) -> TokenTotals:
        return self.token_ledger.totals()

    @property
    def partial_text(self) -> str:
        return self.stream.partial_text

    @property
    def partial_thinking(self) -> str:
        return self.stream.partial_thinking

    def partial_tool_input(self, tool_id: str) -> str:
        return self.stream.tool_input(tool_id)

    def agent(self, agent_id: str) -> AgentView | None:
        agent = self.tree.get(agent_id)
        return agent.view() if agent is not None else None

    def agents(self) -> tuple[AgentView, ...]:
        return self.tree.views()

    def tool_call(self, tool_id: str) -> ToolCallRecord | None:
        return self.ledger.get(tool_id)

    def tool_calls(self) -> tuple[ToolCallRecord, ...]:
        return self.ledger.records()

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            model=self.model,
            focus_id=self.focus_id,
            focus_status=self.focus_status,
            agents=self.agents(),
            tool_calls=self.tool_calls(),
            tokens=self.tokens,
            partial_text=self.partial_text,
            partial_thinking=self.partial_thinking,
            partial_tool_input=MappingProxyType(dict(self.stream.partial_tool_input)),
            final_text=self.final_text,
            result=self.result,
            compaction_count=self.compaction_count,
        )
