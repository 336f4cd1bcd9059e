"""
Shared exceptions for claude-stream-session.

The decoder raises these internally and converts them into DecodeError values at its
fault boundary, so callers of decode() never see them. Only the pipeline surfaces one
directly (feeding a stopped pump).

Exception Hierarchy:
    StreamSessionError (base)
    ├── DecodeFailure (a line could not be turned into an event)
    │   └── MalformedLineError (unparseable JSON or unusable envelope)
    │       ├── EmptyLineError (empty or whitespace-only line)
    │       ├── NestingTooDeepError (nesting beyond the configured guard)
    │       └── DiscriminatorError (type field present but not a string)
    └── PipelineClosedError (line fed to a stopped EventPump)
"""

from __future__ import annotations


class StreamSessionError(Exception):
    """Base exception for all claude-stream-session errors."""


class DecodeFailure(StreamSessionError):
    """Base exception for lines that could not be decoded."""


class MalformedLineError(DecodeFailure):
    """Raised when a line is not a decodable JSON object."""


class EmptyLineError(MalformedLineError):
    """Raised for empty or whitespace-only input."""

    def __init__(self) -> None:
        super().__init__('empty line')


class NestingTooDeepError(MalformedLineError):
    """Raised when a line nests objects/arrays deeper than the guard allows."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f'nesting deeper than {limit} levels')


class DiscriminatorError(MalformedLineError):
    """Raised when the 'type' field is present but is not a string."""

    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f'undecodable discriminator of type {type(value).__name__}')


class PipelineClosedError(StreamSessionError):
    """Raised when a line is fed to an EventPump after stop()."""

    def __init__(self) -> None:
        super().__init__('EventPump is stopped; no further lines are accepted')
