"""
claude-stream-session - decode the stream-json output of a coding-agent CLI into a live
session model (agent tree, tool calls, token usage, in-flight content).
"""

from __future__ import annotations

from stream_session.config import StreamSessionSettings, settings
from stream_session.schemas import DecodeError, Event, SessionSnapshot
from stream_session.services import EventPump, MessageDecoder, ReplayReport, SessionState, decode, encode, replay

__all__ = [
    'DecodeError',
    'Event',
    'EventPump',
    'MessageDecoder',
    'ReplayReport',
    'SessionSnapshot',
    'SessionState',
    'StreamSessionSettings',
    'decode',
    'encode',
    'replay',
    'settings',
]
