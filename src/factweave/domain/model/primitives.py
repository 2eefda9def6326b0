"""Domain primitives: scalar aliases + small helpers.

Scalar aliases may be promoted to proper value objects later without changing imports.
"""

from __future__ import annotations

from datetime import UTC, datetime

type JsonScalar = str | int | float | bool | None
type JsonValue = JsonScalar | list[JsonValue] | dict[str, JsonValue]
type EntityId = str
type FieldKey = str
type Confidence = float


def utcnow() -> datetime:
    return datetime.now(tz=UTC)


def clamp_confidence(value: float) -> Confidence:
    """Pin ``value`` into the ``[0, 1]`` confidence scale."""

    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, float(value)))
