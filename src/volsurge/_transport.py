"""HTTP transport for the exchange REST API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from volsurge._constants import USER_AGENT
from volsurge.config import ScannerConfig
from volsurge.exceptions import VolsurgeTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, endpoint: str, params: Mapping[str, str | int] | None = None) -> Any:
        ...


class HttpTransport:
    """GET-only JSON transport over a shared ``aiohttp`` session."""

    def __init__(self, config: ScannerConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_json(self, endpoint: str, params: Mapping[str, str | int] | None = None) -> Any:
        """GET ``endpoint`` and return the decoded JSON body."""
        url = f"{self._config.rest_base_url}{endpoint}"
        headers = {"accept": "application/json", "user-agent": USER_AGENT}

        _logger.debug("GET %s params=%s", url, dict(params or {}))

        try:
            async with self._http.get(url, params=params, headers=headers, timeout=self._timeout) as resp:
                status = resp.status
                body = await resp.read()
                text = body.decode("utf-8", errors="replace")
                if status != 200:
                    raise VolsurgeTransportError(
                        f"HTTP {status} from {endpoint}: {text[:200]}",
                        status_code=status,
                        endpoint=endpoint,
                    )
        except VolsurgeTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise VolsurgeTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise VolsurgeTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc
