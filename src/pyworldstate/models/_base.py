"""Base model and enums for world-state signals.

Every signal model inherits from :class:`SignalModel` which provides:

* ``frozen=True`` so a signal is immutable once produced.
* ``alias_generator=to_camel`` so ``model_dump(by_alias=True)`` emits the
  camelCase keys the rendering layer consumes (``toneScore``, ``kpIndex``).
* ``allow_inf_nan=False`` so a NaN that slipped through upstream parsing
  fails validation instead of poisoning the aggregate.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel


def parse_utc_datetime(value: Any) -> datetime | None:
    """Coerce ISO strings, epoch seconds and naive datetimes to aware UTC datetimes."""
    if value is None:
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=UTC)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


UtcDatetime = Annotated[datetime, BeforeValidator(parse_utc_datetime)]
"""Annotated type that normalizes timestamps to timezone-aware UTC."""


class TrendDirection(StrEnum):
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class HealthStatus(StrEnum):
    """How a signal's value was obtained."""

    LIVE = "live"
    FALLBACK = "fallback"
    SIMULATED = "simulated"


class SignalModel(BaseModel):
    """Base for every signal and for the aggregate itself."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
        allow_inf_nan=False,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """camelCase JSON-ready dict; unset optionals are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
