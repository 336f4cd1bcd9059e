"""
Foundation model types for stream schemas.

Layering:
- BaseStrictModel: closed, immutable value types built by this package (errors, Unknown)
- WireModel: immutable models of wire records; unknown fields are kept as extras so
  newer producers still decode and re-encode losslessly
- RawJson: last arm of ordered-fallback unions; accepts any JSON value and keeps its bytes
"""

from __future__ import annotations

from typing import Any

import orjson
import pydantic

# ==============================================================================
# Base Strict Model (Foundation)
# ==============================================================================


class BaseStrictModel(pydantic.BaseModel):
    """
    Foundation strict model for values this package constructs itself.

    Uses extra='forbid' to reject unknown fields - any field not modeled
    causes immediate validation failure (fail-fast).
    """

    model_config = pydantic.ConfigDict(
        extra='forbid',  # Reject unknown fields (fail-fast)
        strict=True,  # Strict type coercion
        frozen=True,  # Immutable after creation
    )


# ==============================================================================
# Wire Model (Foundation)
# ==============================================================================


class WireModel(pydantic.BaseModel):
    """
    Foundation model for records read off the stream.

    Symmetry with BaseStrictModel:
    - BaseStrictModel: extra='forbid' (rejects unknown fields)
    - WireModel: extra='allow' (accepts unknown fields)

    Known fields are still validated strictly; a wrong type on a modeled field is a
    malformed line. Unknown fields ride along in __pydantic_extra__ and are emitted
    again by model_dump(), which is what makes encode -> decode lossless.
    """

    model_config = pydantic.ConfigDict(
        extra='allow',  # Accept unknown fields (forward compatibility)
        strict=True,  # Strict type coercion for known fields
        frozen=True,  # Immutable after creation
    )

    def get_extra_fields(self) -> dict[str, object]:
        """Get extra fields captured by this model.

        Returns only the unknown fields, not defined model fields.
        """
        return dict(self.__pydantic_extra__) if self.__pydantic_extra__ else {}


# ==============================================================================
# Raw JSON Fallback
# ==============================================================================


class RawJson(BaseStrictModel):
    """
    Any JSON value that matched none of the typed shapes before it in a union.

    Use as the LAST type in ordered-fallback unions:

        content: Annotated[
            Sequence[OutcomeItem] | str | RawJson | None,
            pydantic.Field(union_mode='left_to_right'),
        ]

    The encoded bytes are kept verbatim (orjson compact form) and serialized back as
    the original JSON value, never as a wrapper object. JSON null is never captured;
    unions that accept null list None explicitly.
    """

    raw: bytes

    @pydantic.model_validator(mode='before')
    @classmethod
    def capture(cls, value: Any) -> Any:
        if isinstance(value, RawJson):
            return value
        if isinstance(value, dict) and value.keys() == {'raw'} and isinstance(value['raw'], bytes):
            return value
        if value is None:
            raise ValueError('null is not captured as RawJson')
        return {'raw': orjson.dumps(value)}

    @pydantic.model_serializer(mode='plain')
    def emit(self) -> Any:
        return orjson.loads(self.raw)

    def value(self) -> Any:
        """Decoded JSON value."""
        return orjson.loads(self.raw)

    def text(self) -> str:
        return self.raw.decode('utf-8', errors='replace')
