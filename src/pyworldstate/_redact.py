"""Helpers for safe debug logging.

Some upstream providers take credentials as query parameters (TomTom's
``key``) or headers (Twitter's bearer token).  These helpers strip them
before request details are emitted to DEBUG logs.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

_REDACTED = "<redacted>"

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "key",
        "apikey",
        "api_key",
        "token",
        "access_token",
        "authorization",
        "cookie",
        "password",
    }
)


def _is_sensitive(key: str) -> bool:
    return key.lower() in _SENSITIVE_KEYS


def redact_mapping(values: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a copy of query params or headers with credentials masked."""
    if not values:
        return {}
    return {key: _REDACTED if _is_sensitive(key) else value for key, value in values.items()}


def redact_url(url: str) -> str:
    """Mask credential query parameters embedded in *url*."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    pairs = [(key, _REDACTED if _is_sensitive(key) else value) for key, value in parse_qsl(parts.query)]
    return urlunsplit(parts._replace(query=urlencode(pairs, safe="<>")))
