"""
Message decoder - one line of stream-json output in, one event (or error value) out.

Decoding is two-phase: the line is parsed into a generic JSON object to read the 'type'
discriminator, then validated into the concrete variant. Unrecognized discriminators
decode to Unknown so newer producers never break older consumers.

Fault boundary:
- Expected failures (bad JSON, non-object lines, nesting past the guard, non-string
  discriminators, modeled fields with the wrong shape) become malformed DecodeErrors
- Anything else raised while decoding is logged and becomes an internal_fault DecodeError
- decode() itself never raises
"""

from __future__ import annotations

import logging
from typing import Any, TypeAlias

import orjson
import pydantic

from stream_session.config import StreamSessionSettings, settings as default_settings
from stream_session.exceptions import DiscriminatorError, EmptyLineError, MalformedLineError, NestingTooDeepError
from stream_session.schemas.errors import DecodeError, DecodeErrorKind
from stream_session.schemas.events import (
    STREAM_EVENT_TYPES,
    CompactionBoundary,
    Event,
    SessionStart,
    StreamEnvelope,
    StreamEventAdapter,
    TurnMessage,
    TurnResult,
    Unknown,
    UserTurn,
)

__all__ = [
    'MessageDecoder',
    'decode',
    'encode',
]

logger = logging.getLogger(__name__)

Line: TypeAlias = bytes | bytearray | memoryview | str


# ==============================================================================
# Message Decoder
# ==============================================================================


class MessageDecoder:
    """
    Decoder for stream-json lines.

    Stateless apart from its settings; one instance can be shared by any number of
    producers.
    """

    def __init__(self, settings: StreamSessionSettings | None = None) -> None:
        self.settings = settings if settings is not None else default_settings

    def decode(self, line: Line) -> Event | DecodeError:
        """
        Decode one line.

        Args:
            line: One line of output, with or without its trailing newline

        Returns:
            The decoded event, or a DecodeError describing why it could not be decoded
        """
        discriminator: str | None = None
        try:
            data = self._load(line)
            discriminator = _discriminator(data)
            return self._dispatch(discriminator, data, line)
        except pydantic.ValidationError as e:
            return self._error('malformed', _summarize(e), line, discriminator)
        except MalformedLineError as e:
            return self._error('malformed', str(e), line, discriminator)
        except Exception as e:
            logger.exception('Recovered fault while decoding line')
            return self._error('internal_fault', f'{type(e).__name__}: {e}', line, discriminator)

    # ==========================================================================
    # Phase 1: generic envelope
    # ==========================================================================

    def _load(self, line: Line) -> dict[str, Any]:
        if isinstance(line, (bytes, bytearray, memoryview)):
            # Invalid UTF-8 is replaced with U+FFFD rather than rejected
            text = bytes(line).decode('utf-8', errors='replace')
        else:
            text = line

        if not text.strip():
            raise EmptyLineError()

        try:
            data = orjson.loads(text)
        except orjson.JSONDecodeError as e:
            raise MalformedLineError(f'invalid JSON: {e}') from e

        if not isinstance(data, dict):
            raise MalformedLineError(f'expected a JSON object, got {type(data).__name__}')

        limit = self.settings.MAX_NESTING_DEPTH
        if _nesting_exceeds(data, limit):
            raise NestingTooDeepError(limit)

        return data

    # ==========================================================================
    # Phase 2: concrete variant
    # ==========================================================================

    def _dispatch(self, discriminator: str, data: dict[str, Any], line: Line) -> Event:
        match discriminator:
            case 'system':
                subtype = data.get('subtype')
                if subtype is None or subtype == 'init':
                    return SessionStart.model_validate(data)
                if subtype == 'compact_boundary':
                    return CompactionBoundary.model_validate(data)
                # Status/hook notices and the like: not a new session
                return Unknown(discriminator=discriminator, raw=_raw_bytes(line))
            case 'compact_boundary':
                return CompactionBoundary.model_validate(data)
            case 'assistant':
                return TurnMessage.model_validate(data)
            case 'user':
                return UserTurn.model_validate(data)
            case 'result':
                return TurnResult.model_validate(data)
            case 'stream_event':
                return self._unwrap(data, line)
            case _ if discriminator in STREAM_EVENT_TYPES:
                return StreamEventAdapter.validate_python(data)
            case _:
                return Unknown(discriminator=discriminator, raw=_raw_bytes(line))

    def _unwrap(self, data: dict[str, Any], line: Line) -> Event:
        """
        Return the event nested in a stream_event wrapper, or the wrapper when there is none.

        A nested record that is not a stream event stays wrapped: it becomes Unknown with
        the whole wrapper line as raw, so re-encoding reproduces the wrapper rather than a
        bare record of that type.
        """
        inner = data.get('event')
        if not isinstance(inner, dict):
            return StreamEnvelope.model_validate(data)

        inner_type = _discriminator(inner)
        parent = data.get('parent_tool_use_id')
        if parent is not None and 'parent_tool_use_id' not in inner:
            inner = {**inner, 'parent_tool_use_id': parent}

        if inner_type in STREAM_EVENT_TYPES:
            return StreamEventAdapter.validate_python(inner)
        logger.debug(f'Keeping stream_event wrapper around unmodeled event {inner_type!r}')
        return Unknown(discriminator=data['type'], raw=_raw_bytes(line))

    # ==========================================================================
    # Errors
    # ==========================================================================

    def _error(self, kind: DecodeErrorKind, message: str, line: Line, discriminator: str | None) -> DecodeError:
        logger.debug(f'Dropping line ({kind}): {message}')
        return DecodeError(
            kind=kind,
            message=message,
            excerpt=_excerpt(line, self.settings.ERROR_EXCERPT_CHARS),
            discriminator=discriminator or None,
        )


# ==============================================================================
# Helpers
# ==============================================================================


def _discriminator(data: dict[str, Any]) -> str:
    value = data.get('type', '')
    if not isinstance(value, str):
        raise DiscriminatorError(value)
    return value


def _nesting_exceeds(value: Any, limit: int) -> bool:
    """Iterative depth check; the top-level object is depth 1."""
    stack: list[tuple[Any, int]] = [(value, 1)]
    while stack:
        node, depth = stack.pop()
        if depth > limit:
            return True
        children = node.values() if isinstance(node, dict) else node
        for child in children:
            if isinstance(child, (dict, list)):
                stack.append((child, depth + 1))
    return False


def _raw_bytes(line: Line) -> bytes:
    if isinstance(line, str):
        return line.strip().encode('utf-8', errors='replace')
    return bytes(line).strip()


def _excerpt(line: object, limit: int) -> str:
    if isinstance(line, str):
        return line[:limit]
    if isinstance(line, (bytes, bytearray, memoryview)):
        # 4 bytes per character is the UTF-8 worst case
        return bytes(line[: limit * 4]).decode('utf-8', errors='replace')[:limit]
    return ''


def _summarize(error: pydantic.ValidationError) -> str:
    first = error.errors(include_url=False)[0]
    location = '.'.join(str(part) for part in first['loc']) or '<root>'
    return f'{error.error_count()} validation error(s); first at {location}: {first["msg"]}'


# ==============================================================================
# Module-level API
# ==============================================================================


def decode(line: Line) -> Event | DecodeError:
    """Decode one line with the default settings."""
    return MessageDecoder().decode(line)


def encode(event: Event) -> bytes:
    """
    Encode an event back to one line of compact JSON (no trailing newline).

    Unknown events are emitted verbatim. Fields that were never set are omitted, so a
    decoded event re-encodes to the same logical record it was read from.
    """
    if isinstance(event, Unknown):
        return event.raw
    return orjson.dumps(event.model_dump(mode='json', exclude_unset=True))
