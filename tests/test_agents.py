"""Tests for AgentTree."""

from __future__ import annotations

import attrs
import pytest

from stream_session.schemas import ToolCallRecord
from stream_session.services.agents import AgentTree


def _tree() -> AgentTree:
    tree = AgentTree()
    tree.create_root('main', 'main')
    return tree


def test_create_root_is_idempotent() -> None:
    tree = AgentTree()
    first = tree.create_root('main', 'main')
    second = tree.create_root('other', 'other')

    assert first is second
    assert tree.root_id == 'main'
    assert tree.focus_id == 'main'
    assert len(tree) == 1


@pytest.mark.parametrize('depth', [1, 3, 25], ids=lambda d: f'depth-{d}')
def test_nested_spawns_build_a_chain(depth: int) -> None:
    tree = _tree()
    for i in range(depth):
        child = tree.spawn_child(f't{i}', 'task')
        assert child is not None
        assert tree.set_focus(f't{i}')

    for i in range(depth):
        agent = tree.get(f't{i}')
        assert agent is not None
        assert agent.depth == i + 1
        assert agent.parent_id == ('main' if i == 0 else f't{i - 1}')

    assert tree.focus_id == f't{depth - 1}'
    assert [view.id for view in tree.views()] == ['main'] + [f't{i}' for i in range(depth)]


def test_spawn_does_not_move_focus() -> None:
    tree = _tree()
    child = tree.spawn_child('t1', 'explorer', 'Survey repo')

    assert child is not None
    assert child.status == 'running'
    assert child.description == 'Survey repo'
    assert tree.focus_id == 'main'
    assert tree.get('main').children == ['t1']


def test_repeated_spawn_updates_existing_node() -> None:
    tree = _tree()
    tree.spawn_child('t1', 'task')
    again = tree.spawn_child('t1', 'explorer', 'later')

    assert again is tree.get('t1')
    assert again.type == 'explorer'
    assert again.description == 'later'
    assert tree.get('main').children == ['t1']


def test_spawn_without_root_returns_none() -> None:
    assert AgentTree().spawn_child('t1', 'task') is None


def test_set_focus_unknown_agent_changes_nothing() -> None:
    tree = _tree()

    assert not tree.set_focus('ghost')
    assert tree.focus_id == 'main'
    assert tree.get('main').status == 'idle'


def test_finish_agent_returns_focus_to_parent() -> None:
    tree = _tree()
    tree.spawn_child('t1', 'task')
    tree.set_focus('t1')
    tree.spawn_child('t2', 'task')
    tree.set_focus('t2')

    tree.finish_agent('t2', failed=True)

    assert tree.get('t2').status == 'failed'
    assert tree.focus_id == 't1'


def test_finish_agent_without_focus_keeps_focus() -> None:
    tree = _tree()
    tree.spawn_child('t1', 'task')
    tree.spawn_child('t2', 'task')
    tree.set_focus('t1')

    tree.finish_agent('t2', failed=False)

    assert tree.get('t2').status == 'completed'
    assert tree.focus_id == 't1'


def test_attach_keeps_first_owner() -> None:
    tree = _tree()
    tree.spawn_child('t1', 'task')
    record = ToolCallRecord(id='r1', name='Read', status='running')

    assert tree.attach(record) == 'main'
    tree.set_focus('t1')
    done = attrs.evolve(record, status='completed', result='ok')

    assert tree.attach(done) == 'main'
    assert tree.get('main').tool_calls == [done]
    assert tree.get('t1').tool_calls == []
    assert tree.owner_of('r1') == 'main'


def test_attach_without_agents_returns_none() -> None:
    assert AgentTree().attach(ToolCallRecord(id='r1')) is None


def test_depth_and_parent_are_fixed() -> None:
    tree = _tree()
    child = tree.spawn_child('t1', 'task')
    assert child is not None

    with pytest.raises(attrs.exceptions.FrozenAttributeError):
        child.depth = 5
    with pytest.raises(attrs.exceptions.FrozenAttributeError):
        child.parent_id = None


def test_views_are_snapshots() -> None:
    tree = _tree()
    before = tree.views()
    tree.spawn_child('t1', 'task')

    assert before[0].children == ()
    assert tree.views()[0].children == ('t1',)
