"""Decoding and session-state services."""

from __future__ import annotations

from stream_session.services.accumulator import StreamAccumulator
from stream_session.services.agents import AgentTree
from stream_session.services.decoder import MessageDecoder, decode, encode
from stream_session.services.pipeline import EventPump, ReplayReport, replay
from stream_session.services.session import SessionState
from stream_session.services.tokens import TokenLedger
from stream_session.services.tool_calls import ToolCallLedger

__all__ = [
    'AgentTree',
    'EventPump',
    'MessageDecoder',
    'ReplayReport',
    'SessionState',
    'StreamAccumulator',
    'TokenLedger',
    'ToolCallLedger',
    'decode',
    'encode',
    'replay',
]
