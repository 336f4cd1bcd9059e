"""
Tests for captured stream fixtures.

Every fixture in fixtures/streams/ is replayed end to end through the decoder and a
fresh SessionState, and the resulting state is compared with the expectations recorded
in manifest.json. This keeps real-world streams (and their oddities) as regression tests
without needing a live producer.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from stream_session.services.pipeline import replay

# Path to fixtures directory (relative to repo root)
FIXTURES_DIR = Path(__file__).parent.parent / 'fixtures'
STREAMS_DIR = FIXTURES_DIR / 'streams'


def load_manifest() -> dict[str, Any]:
    with open(STREAMS_DIR / 'manifest.json') as f:
        return json.load(f)


def get_stream_fixtures() -> list[Path]:
    """Get all stream fixture files."""
    if not STREAMS_DIR.exists():
        return []
    return sorted(STREAMS_DIR.glob('*.jsonl'))


@pytest.mark.parametrize(
    'fixture_path',
    get_stream_fixtures(),
    ids=lambda p: p.name,
)
def test_stream_fixture_replays(fixture_path: Path) -> None:
    """Replaying a fixture yields the state documented in the manifest."""
    expected = load_manifest()['fixtures'][fixture_path.name]['expected']

    with open(fixture_path, 'rb') as f:
        report = replay(f)

    state = report.state
    assert report.events == expected['events']
    assert [line_no for line_no, _ in report.errors] == expected['error_lines']
    assert all(error.kind == 'malformed' for _, error in report.errors)
    assert state.session_id == expected['session_id']
    assert len(state.agents()) == expected['agents']
    assert len(state.tool_calls()) == expected['tool_calls']
    assert state.tokens.total == expected['total_tokens']
    assert state.focus_id == expected['focus_id']
    assert state.final_text == expected['final_text']
    assert state.compaction_count == expected['compaction_count']

    # Replay ends on a boundary: nothing is left streaming
    assert state.partial_text == ''
    assert state.snapshot().partial_tool_input == {}


@pytest.mark.parametrize(
    'fixture_path',
    get_stream_fixtures(),
    ids=lambda p: p.name,
)
def test_stream_fixture_tool_calls_are_terminal(fixture_path: Path) -> None:
    """Every captured run answers each tool call it makes."""
    with open(fixture_path, 'rb') as f:
        report = replay(f)

    unfinished = [record.id for record in report.state.tool_calls() if not record.is_terminal]
    assert not unfinished, f'Tool calls left open: {unfinished}'


def test_task_spawn_fixture_builds_subagent() -> None:
    with open(STREAMS_DIR / 'task_spawn.jsonl', 'rb') as f:
        state = replay(f).state

    child = state.agent('t1')
    assert child is not None
    assert child.type == 'explorer'
    assert child.description == 'Survey repo'
    assert child.depth == 1
    assert child.parent_id == 'main'
    assert child.status == 'completed'
    # The sub-agent's own tool call is attributed to it, not to the root
    assert [record.id for record in child.tool_calls] == ['r1']

    read = state.tool_call('r1')
    assert read is not None
    assert read.result == 'print(1)'
    assert read.metadata is not None
    assert read.metadata.stdout == 'print(1)'


def test_fixtures_directory_exists() -> None:
    """Verify fixtures directory structure exists."""
    assert FIXTURES_DIR.exists(), 'fixtures/ directory not found'
    assert STREAMS_DIR.exists(), 'fixtures/streams/ directory not found'


def test_streams_have_manifest() -> None:
    """Verify streams has a manifest.json documenting the fixtures."""
    manifest_path = STREAMS_DIR / 'manifest.json'
    assert manifest_path.exists(), 'fixtures/streams/manifest.json not found'

    manifest = load_manifest()
    assert 'fixtures' in manifest, 'manifest.json missing "fixtures" key'

    # Verify each fixture in the directory is documented in manifest
    fixture_files = {p.name for p in get_stream_fixtures()}
    documented_fixtures = set(manifest['fixtures'].keys())

    undocumented = fixture_files - documented_fixtures
    assert not undocumented, f'Fixtures not documented in manifest: {undocumented}'
