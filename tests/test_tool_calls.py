"""Tests for the ToolCallLedger state machine."""

from __future__ import annotations

import pytest

from stream_session.schemas import ToolUseResult
from stream_session.services.tool_calls import ToolCallLedger


def test_first_sighting_creates_record() -> None:
    ledger = ToolCallLedger()
    record = ledger.upsert('t1', 'Read', '{"file_path":"/a"}', 'running')

    assert record.status == 'running'
    assert record.name == 'Read'
    assert 't1' in ledger
    assert len(ledger) == 1


def test_pending_moves_to_running_and_keeps_streamed_fields() -> None:
    ledger = ToolCallLedger()
    ledger.upsert('t1', 'Bash', '', 'pending')

    record = ledger.upsert('t1', '', '{"command":"ls"}', 'running')

    assert record.status == 'running'
    assert record.name == 'Bash'
    assert record.input == '{"command":"ls"}'


def test_status_never_moves_backwards() -> None:
    ledger = ToolCallLedger()
    ledger.upsert('t1', 'Bash', '', 'running')

    assert ledger.upsert('t1', 'Bash', '', 'pending').status == 'running'


@pytest.mark.parametrize(
    ('is_error', 'expected_status'),
    [(False, 'completed'), (True, 'failed')],
    ids=['success', 'error'],
)
def test_complete_sets_terminal_status(is_error: bool, expected_status: str) -> None:
    ledger = ToolCallLedger()
    ledger.upsert('t1', 'Bash', '', 'running')
    metadata = ToolUseResult(stdout='out')

    record = ledger.complete('t1', 'out', is_error, metadata)

    assert record is not None
    assert record.status == expected_status
    assert record.is_error is is_error
    assert record.is_terminal
    assert record.metadata == metadata


def test_complete_unknown_id_is_noop() -> None:
    ledger = ToolCallLedger()
    ledger.upsert('t1', 'Bash', '', 'running')

    assert ledger.complete('ghost', 'x', False) is None
    assert len(ledger) == 1
    assert 'ghost' not in ledger


def test_duplicate_outcome_overwrites() -> None:
    ledger = ToolCallLedger()
    ledger.upsert('t1', 'Bash', '', 'running')
    ledger.complete('t1', 'first', False)

    record = ledger.complete('t1', 'second', True)

    assert record is not None
    assert record.status == 'failed'
    assert record.result == 'second'
    assert len(ledger) == 1


def test_invocation_after_outcome_does_not_reopen() -> None:
    ledger = ToolCallLedger()
    ledger.upsert('t1', 'Bash', '{"command":"ls"}', 'running')
    done = ledger.complete('t1', 'ok', False)

    record = ledger.upsert('t1', 'Other', '{}', 'running')

    assert record == done
    assert ledger.get('t1') == done


def test_records_are_replaced_not_mutated() -> None:
    ledger = ToolCallLedger()
    pending = ledger.upsert('t1', 'Bash', '', 'pending')
    ledger.complete('t1', 'ok', False)

    assert pending.status == 'pending'
    assert [record.id for record in ledger.records()] == ['t1']
