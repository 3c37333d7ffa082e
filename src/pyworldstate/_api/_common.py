"""Shared helpers for upstream fetcher modules.

This module centralizes the most repeated patterns:
- issuing one bounded GET and mapping transport failures to the signal
- defensive numeric parsing of provider payloads
- building a validated signal model

It is internal to pyworldstate and may change at any time.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import ValidationError

from pyworldstate._transport import Transport
from pyworldstate.exceptions import SignalFetchError, WorldStateTransportError
from pyworldstate.models._base import SignalModel

TModel = TypeVar("TModel", bound=SignalModel)


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


async def get_signal_json(
    transport: Transport,
    *,
    signal: str,
    url: str,
    timeout: float,
    params: Mapping[str, str] | None = None,
    headers: Mapping[str, str] | None = None,
) -> Any:
    """GET *url* and return decoded JSON, raising :class:`SignalFetchError` on any failure."""
    try:
        return await transport.get_json(url, params=params, headers=headers, timeout=timeout)
    except WorldStateTransportError as exc:
        raise SignalFetchError(f"{signal}: {exc}", signal=signal, endpoint=url) from exc


def build_signal(model_cls: type[TModel], *, signal: str, endpoint: str = "", **values: Any) -> TModel:
    """Validate *values* into *model_cls*; out-of-range data is a fetch failure."""
    try:
        return model_cls(**values)
    except ValidationError as exc:
        raise SignalFetchError(
            f"{signal}: payload out of range ({exc.error_count()} errors)",
            signal=signal,
            endpoint=endpoint,
        ) from exc
