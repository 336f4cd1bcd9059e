"""
Tool call ledger - the authoritative id -> ToolCallRecord map.

State machine:
    (first sighting) -> pending   content_block_start, input not yet streamed
    (first sighting) -> running   complete tool_use block in an assistant turn
    pending -> running            complete tool_use block arrives later
    pending|running -> completed  matching tool_result, is_error false
    pending|running -> failed     matching tool_result, is_error true

Only a matching outcome is terminal. A second outcome for an already terminal id
overwrites the first. Invocation events for a terminal id change nothing, and an
outcome for an id that was never seen is dropped rather than fabricating a record.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import attrs

from stream_session.schemas.events import ToolUseResult
from stream_session.schemas.state import TOOL_STATUS_RANK, ToolCallRecord, ToolCallStatus
from stream_session.schemas.types import RawJson

logger = logging.getLogger(__name__)


class ToolCallLedger:
    def __init__(self) -> None:
        self._records: dict[str, ToolCallRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._records

    def __iter__(self) -> Iterator[ToolCallRecord]:
        return iter(self._records.values())

    def get(self, tool_id: str) -> ToolCallRecord | None:
        return self._records.get(tool_id)

    def records(self) -> tuple[ToolCallRecord, ...]:
        """All records in first-sighting order."""
        return tuple(self._records.values())

    def upsert(self, tool_id: str, name: str, input: str, status: ToolCallStatus) -> ToolCallRecord:
        """
        Create a record or merge a later sighting into it.

        Non-empty name/input replace the stored ones; status only moves forward.
        A terminal record is returned unchanged.
        """
        existing = self._records.get(tool_id)
        if existing is None:
            record = ToolCallRecord(id=tool_id, name=name, input=input, status=status)
            self._records[tool_id] = record
            return record

        if existing.is_terminal:
            logger.debug(f'Ignoring invocation update for finished tool call {tool_id}')
            return existing

        record = attrs.evolve(
            existing,
            name=name or existing.name,
            input=input or existing.input,
            status=status if TOOL_STATUS_RANK[status] > TOOL_STATUS_RANK[existing.status] else existing.status,
        )
        self._records[tool_id] = record
        return record

    def complete(
        self,
        tool_id: str,
        result: str,
        is_error: bool,
        metadata: ToolUseResult | str | RawJson | None = None,
    ) -> ToolCallRecord | None:
        """
        Apply a matching outcome.

        Returns:
            The terminal record, or None if the id is unknown (nothing is created)
        """
        existing = self._records.get(tool_id)
        if existing is None:
            logger.debug(f'Dropping outcome for unknown tool call {tool_id}')
            return None

        if existing.is_terminal:
            logger.debug(f'Duplicate outcome for tool call {tool_id} overwrites {existing.status}')

        record = attrs.evolve(
            existing,
            status='failed' if is_error else 'completed',
            result=result,
            is_error=is_error,
            metadata=metadata if metadata is not None else existing.metadata,
        )
        self._records[tool_id] = record
        return record
