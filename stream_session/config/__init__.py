"""Configuration for claude-stream-session."""

from __future__ import annotations

from stream_session.config.base import StreamSessionSettings, get_settings, lazy_settings

__all__ = [
    'StreamSessionSettings',
    'get_settings',
    'lazy_settings',
    'settings',
]

# Module-level singleton (lazy-loaded)
settings = lazy_settings(StreamSessionSettings)
