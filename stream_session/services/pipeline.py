"""
Pipeline helpers that drive a SessionState from a line source.

EventPump - threaded: producers call feed() (decoding happens on their thread), a
single worker applies events in arrival order under one lock, and readers take
projections with read() under the same lock. The queue is bounded, so a slow
consumer applies backpressure to the producer instead of growing memory.

replay() - synchronous: applies a finite iterable of lines (e.g. a captured .jsonl
file) and reports line-numbered decode errors.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable, Iterable
from types import TracebackType
from typing import TypeVar

import attrs

from stream_session.exceptions import PipelineClosedError
from stream_session.schemas.errors import DecodeError
from stream_session.schemas.events import Event
from stream_session.services.decoder import Line, MessageDecoder
from stream_session.services.session import SessionState

__all__ = [
    'EventPump',
    'ReplayReport',
    'replay',
]

logger = logging.getLogger(__name__)

T = TypeVar('T')

_STOP = object()  # Worker sentinel


# ==============================================================================
# Event Pump
# ==============================================================================


class EventPump:
    """
    Bounded producer/consumer bridge in front of a SessionState.

    Example:
        with EventPump(SessionState()) as pump:
            for line in process.stdout:
                pump.feed(line)
            print(pump.read(lambda s: s.tokens.total))
    """

    def __init__(
        self,
        state: SessionState,
        maxsize: int | None = None,
        decoder: MessageDecoder | None = None,
    ) -> None:
        self.state = state
        self.decoder = decoder if decoder is not None else MessageDecoder(state.settings)
        self.errors: list[DecodeError] = []
        self.applied = 0
        self._lock = threading.Lock()
        self._feed_lock = threading.Lock()  # Orders put() against the stop sentinel
        self._queue: queue.Queue[Event | object] = queue.Queue(
            maxsize=maxsize if maxsize is not None else state.settings.QUEUE_MAXSIZE
        )
        self._closed = threading.Event()
        self._worker = threading.Thread(target=self._run, name='stream-session-pump', daemon=True)
        self._worker.start()

    def feed(self, line: Line) -> Event | DecodeError:
        """
        Decode a line and queue it for the worker. Blocks while the queue is full.

        Raises:
            PipelineClosedError: If stop() was already called
        """
        if self._closed.is_set():
            raise PipelineClosedError()

        result = self.decoder.decode(line)
        if isinstance(result, DecodeError):
            logger.warning(f'Skipping undecodable line: {result}')
            with self._lock:
                self.errors.append(result)
            return result

        with self._feed_lock:
            # Re-checked: stop() may have run while this line was decoding
            if self._closed.is_set():
                raise PipelineClosedError()
            self._queue.put(result)
        return result

    def read(self, fn: Callable[[SessionState], T]) -> T:
        """Run a projection against the state without racing the worker."""
        with self._lock:
            return fn(self.state)

    def stop(self) -> None:
        """Apply everything already queued, stop the worker and flush partial content."""
        with self._feed_lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._queue.put(_STOP)
        self._worker.join()
        with self._lock:
            self.state.flush()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            with self._lock:
                try:
                    self.state.apply(item)  # type: ignore[arg-type]
                except Exception:
                    # Keep the worker alive; producers may be blocked on put()
                    logger.exception(f'Failed to apply {type(item).__name__}')
                    continue
                self.applied += 1

    def __enter__(self) -> EventPump:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()


# ==============================================================================
# Replay
# ==============================================================================


@attrs.define(frozen=True)
class ReplayReport:
    """Outcome of replaying a finite stream."""

    state: SessionState
    events: int  # Lines that decoded and were applied
    errors: tuple[tuple[int, DecodeError], ...]  # (1-based line number, error)


def replay(
    lines: Iterable[Line],
    state: SessionState | None = None,
    decoder: MessageDecoder | None = None,
) -> ReplayReport:
    """
    Apply every line to a state, synchronously and in order.

    Blank lines are skipped without counting as errors. The state is flushed at the end,
    as if the stream had reached a message boundary.
    """
    state = state if state is not None else SessionState()
    decoder = decoder if decoder is not None else MessageDecoder(state.settings)

    events = 0
    errors: list[tuple[int, DecodeError]] = []
    for line_no, line in enumerate(lines, start=1):
        if _is_blank(line):
            continue
        result = decoder.decode(line)
        if isinstance(result, DecodeError):
            logger.warning(f'Line {line_no}: {result}')
            errors.append((line_no, result))
            continue
        state.apply(result)
        events += 1

    state.flush()
    return ReplayReport(state=state, events=events, errors=tuple(errors))


def _is_blank(line: Line) -> bool:
    if isinstance(line, memoryview):
        line = bytes(line)
    return not line.strip()
