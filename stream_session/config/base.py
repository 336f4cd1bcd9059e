"""
Base configuration for claude-stream-session.

Settings are plain values threaded into MessageDecoder and SessionState. Nothing in the
core reads the environment on its own; the module-level singleton in
stream_session.config is only the default when no settings object is passed.
"""

from __future__ import annotations

import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings

T = TypeVar('T', bound='StreamSessionSettings')


class StreamSessionSettings(pydantic_settings.BaseSettings):
    """Decoder and session-state configuration."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='forbid',  # Reject unknown environment variables
    )

    # Agent tree
    SPAWN_TOOL_NAME: str = 'Task'  # Tool whose invocation creates a child agent
    ROOT_AGENT_ID: str = 'main'
    ROOT_AGENT_TYPE: str = 'main'
    DEFAULT_AGENT_TYPE: str = 'task'  # Used when the spawn input has no subagent_type
    FOLLOW_PARENT_TOOL_USE_ID: bool = True  # Route parent_tool_use_id to set_focus

    # Decoder
    MAX_NESTING_DEPTH: int = 512
    ERROR_EXCERPT_CHARS: int = 200

    # Pipeline
    QUEUE_MAXSIZE: int = 1024

    @pydantic.field_validator('MAX_NESTING_DEPTH')
    @classmethod
    def validate_max_nesting_depth(cls, v: int) -> int:
        """orjson refuses anything past 1024 levels, so a higher guard would never fire."""
        if not 1 <= v <= 1024:
            raise ValueError('MAX_NESTING_DEPTH must be between 1-1024')
        return v

    @pydantic.field_validator('QUEUE_MAXSIZE', 'ERROR_EXCERPT_CHARS')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError('must be a positive integer')
        return v


def get_settings(settings_class: type[T], env_file: str | None = None) -> T:
    """
    Build decoder/session settings from the process environment.

    Embedding applications can point LOAD_ENV_FILE (or env_file) at a dotenv file to
    override e.g. SPAWN_TOOL_NAME for a producer that names its sub-agent tool differently.
    Values in the file are layered under real environment variables.

    Raises:
        FileNotFoundError: If the named dotenv file does not exist
    """
    source = env_file or os.getenv('LOAD_ENV_FILE')
    if not source:
        return settings_class()

    path = pathlib.Path(source).resolve()
    if not path.is_file():
        raise FileNotFoundError(f'Settings file not found: {path}')
    return settings_class(_env_file=path)


def lazy_settings(settings_class: type[T]) -> T:
    """
    Default settings for MessageDecoder/SessionState created without explicit settings.

    Resolved on first attribute access, so importing stream_session never reads the
    environment and tests can set variables before the first decode.
    """
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))
