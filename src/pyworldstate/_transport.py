"""HTTP transport for read-only upstream JSON APIs."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyworldstate._redact import redact_mapping, redact_url
from pyworldstate.exceptions import WorldStateTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the fetcher modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float,
    ) -> Any:
        ...


class HttpTransport:
    """GET-and-decode-JSON transport over a shared :class:`aiohttp.ClientSession`.

    Every call carries its own total timeout.  There are no retries: a
    timeout, connection error, non-2xx status, body that is not valid text
    in its declared charset, or invalid JSON is a single final
    :class:`WorldStateTransportError`.
    """

    def __init__(self, http_session: aiohttp.ClientSession, *, user_agent: str) -> None:
        self._http = http_session
        self._user_agent = user_agent

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float,
    ) -> Any:
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": self._user_agent,
        }
        if headers:
            request_headers.update(headers)

        _logger.debug(
            "GET %s params=%s headers=%s",
            redact_url(url),
            redact_mapping(params),
            redact_mapping(headers),
        )

        try:
            async with self._http.get(
                url,
                params=dict(params) if params else None,
                headers=request_headers,
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                body = await resp.read()
                if resp.status < 200 or resp.status >= 300:
                    raise WorldStateTransportError(
                        f"HTTP {resp.status} from {redact_url(url)}: {body[:200].decode('utf-8', 'replace')}",
                        status_code=resp.status,
                        endpoint=url,
                    )
                text = body.decode(resp.get_encoding())
        except WorldStateTransportError:
            raise
        except (UnicodeDecodeError, LookupError) as exc:
            raise WorldStateTransportError(
                f"Undecodable body from {redact_url(url)}: {exc}",
                endpoint=url,
            ) from exc
        except asyncio.TimeoutError as exc:
            raise WorldStateTransportError(
                f"Request to {redact_url(url)} timed out after {timeout}s",
                endpoint=url,
            ) from exc
        except aiohttp.ClientError as exc:
            raise WorldStateTransportError(
                f"Request to {redact_url(url)} failed: {exc}",
                endpoint=url,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise WorldStateTransportError(
                f"Invalid JSON from {redact_url(url)}: {text[:200]}",
                endpoint=url,
            ) from exc
