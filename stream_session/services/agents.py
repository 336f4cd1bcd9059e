"""
Agent tree - agent contexts stored in one id -> node map, linked by id.

Nodes never hold references to each other: parent_id and children are ids resolved
through the map, and the focus pointer is an id as well. The root is created once per
session; every other node is created by a spawn-tool invocation and takes that
invocation's id as its own.

Each node owns denormalized copies of the ToolCallRecords attributed to it. A tool id
is owned by at most one node (the one holding focus when the id was first attached),
and attach() replaces that node's copy whenever the ledger's record changes.
"""

from __future__ import annotations

import logging

from stream_session.schemas.state import AgentContext, AgentStatus, AgentView, ToolCallRecord

logger = logging.getLogger(__name__)


class AgentTree:
    def __init__(self) -> None:
        self._agents: dict[str, AgentContext] = {}
        self._owners: dict[str, str] = {}  # tool id -> owning agent id
        self.root_id: str | None = None
        self.focus_id: str | None = None

    def __contains__(self, agent_id: object) -> bool:
        return agent_id in self._agents

    def __len__(self) -> int:
        return len(self._agents)

    # ==========================================================================
    # Lookup
    # ==========================================================================

    @property
    def root(self) -> AgentContext | None:
        return self._agents.get(self.root_id) if self.root_id is not None else None

    @property
    def focus(self) -> AgentContext | None:
        return self._agents.get(self.focus_id) if self.focus_id is not None else None

    def get(self, agent_id: str) -> AgentContext | None:
        return self._agents.get(agent_id)

    def owner_of(self, tool_id: str) -> str | None:
        return self._owners.get(tool_id)

    def views(self) -> tuple[AgentView, ...]:
        """Depth-first from the root, children in creation order."""
        root = self.root
        if root is None:
            return ()
        ordered: list[AgentView] = []
        stack = [root.id]
        while stack:
            agent = self._agents[stack.pop()]
            ordered.append(agent.view())
            stack.extend(reversed(agent.children))
        return tuple(ordered)

    # ==========================================================================
    # Structure
    # ==========================================================================

    def create_root(self, agent_id: str, agent_type: str) -> AgentContext:
        """Create the root and focus it. Only the first call creates anything."""
        root = self.root
        if root is not None:
            return root
        root = AgentContext(id=agent_id, type=agent_type, depth=0, status='idle')
        self._agents[agent_id] = root
        self.root_id = agent_id
        self.focus_id = agent_id
        return root

    def spawn_child(self, tool_id: str, agent_type: str, description: str = '') -> AgentContext | None:
        """
        Create a child of the focused agent. Focus does not move.

        A repeated spawn for the same id fills in type/description and returns the
        existing node. Returns None when there is no focused agent to attach to.
        """
        existing = self._agents.get(tool_id)
        if existing is not None:
            if agent_type:
                existing.type = agent_type
            if description:
                existing.description = description
            return existing

        parent = self.focus
        if parent is None:
            logger.debug(f'No focused agent for spawned agent {tool_id}')
            return None

        child = AgentContext(
            id=tool_id,
            type=agent_type,
            depth=parent.depth + 1,
            parent_id=parent.id,
            description=description,
            status='running',
        )
        self._agents[tool_id] = child
        parent.children.append(tool_id)
        return child

    # ==========================================================================
    # Focus and status
    # ==========================================================================

    def set_focus(self, agent_id: str) -> bool:
        """Focus a known agent and mark it running. Unknown ids change nothing."""
        agent = self._agents.get(agent_id)
        if agent is None:
            return False
        self.focus_id = agent_id
        agent.status = 'running'
        return True

    def set_status(self, agent_id: str, status: AgentStatus) -> None:
        agent = self._agents.get(agent_id)
        if agent is not None:
            agent.status = status

    def finish_agent(self, agent_id: str, failed: bool) -> AgentContext | None:
        """
        Mark a spawned agent completed/failed.

        If it held focus, focus returns to its parent.
        """
        agent = self._agents.get(agent_id)
        if agent is None:
            return None
        agent.status = 'failed' if failed else 'completed'
        if self.focus_id == agent_id and agent.parent_id is not None:
            self.focus_id = agent.parent_id
        return agent

    # ==========================================================================
    # Tool call mirrors
    # ==========================================================================

    def attach(self, record: ToolCallRecord) -> str | None:
        """
        Store the record in its owner's list, replacing the previous copy.

        The first attach of an id assigns it to the focused agent. Returns the owner id,
        or None when there is no agent to own it yet.
        """
        owner_id = self._owners.get(record.id) or self.focus_id
        owner = self._agents.get(owner_id) if owner_id is not None else None
        if owner is None:
            return None

        self._owners[record.id] = owner.id
        for i, existing in enumerate(owner.tool_calls):
            if existing.id == record.id:
                owner.tool_calls[i] = record
                break
        else:
            owner.tool_calls.append(record)
        return owner.id
