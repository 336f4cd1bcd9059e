"""
Decode error value returned by MessageDecoder.decode().

Errors are values, not exceptions: one bad line is reported and the stream goes on.

Kinds:
- malformed: unparseable JSON, non-object line, nesting beyond the guard, a type field
  that is not a string, or a modeled field with the wrong shape
- internal_fault: anything else that went wrong inside the decoder and was recovered
"""

from __future__ import annotations

from typing import Literal

from stream_session.schemas.types import BaseStrictModel

DecodeErrorKind = Literal['malformed', 'internal_fault']


class DecodeError(BaseStrictModel):
    """One line that could not be decoded."""

    kind: DecodeErrorKind
    message: str
    excerpt: str = ''  # Leading characters of the offending line
    discriminator: str | None = None  # The 'type' value, when it could be read

    def __str__(self) -> str:
        where = f' ({self.discriminator})' if self.discriminator else ''
        return f'{self.kind}{where}: {self.message}'
