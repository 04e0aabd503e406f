"""Internal WebSocket runtime for the combined market stream."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from enum import StrEnum

import aiohttp

from volsurge.exceptions import StreamClosedError, StreamError


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


class StreamMultiplexer:
    """One WebSocket carrying the interleaved streams of every instrument.

    The runtime never reconnects on its own: once the connection drops the
    owner has to build a new one (and a new state store with it).
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        url: str,
        *,
        on_state: Callable[[ConnectionState], None] | None = None,
        heartbeat: float = 30.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = http_session
        self._url = url
        self._on_state = on_state
        self._heartbeat = heartbeat
        self._logger = logger or logging.getLogger(__name__)
        self._ws: aiohttp.ClientWebSocketResponse | None = None
        self._state = ConnectionState.DISCONNECTED
        self._closing = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def url(self) -> str:
        return self._url

    def _set_state(self, state: ConnectionState) -> None:
        if state == self._state:
            return
        self._logger.debug("Stream state %s -> %s", self._state, state)
        self._state = state
        if self._on_state is not None:
            try:
                self._on_state(state)
            except Exception:
                self._logger.debug("on_state callback failed", exc_info=True)

    async def connect(self) -> None:
        """Open the WebSocket."""
        if self._ws is not None:
            raise StreamError("Stream already connected")
        self._closing = False
        self._set_state(ConnectionState.CONNECTING)
        self._logger.debug("Stream connect requested url=%s", self._url)
        try:
            self._ws = await self._http.ws_connect(self._url, heartbeat=self._heartbeat)
        except (aiohttp.ClientError, TimeoutError) as exc:
            self._set_state(ConnectionState.ERROR)
            raise StreamError(f"Stream connect failed: {exc}") from exc
        self._set_state(ConnectionState.CONNECTED)

    async def messages(self) -> AsyncIterator[str]:
        """Yield raw text frames in arrival order until the stream ends.

        A remote close raises :class:`StreamClosedError` in
        ``DISCONNECTED``; a transport error raises :class:`StreamError` in
        ``ERROR``. Iteration ends quietly after a local :meth:`close`.
        """
        ws = self._ws
        if ws is None:
            raise StreamError("Stream not connected")

        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                yield msg.data
            elif msg.type == aiohttp.WSMsgType.BINARY:
                yield msg.data.decode("utf-8", errors="replace")
            elif msg.type == aiohttp.WSMsgType.ERROR:
                self._set_state(ConnectionState.ERROR)
                raise StreamError(f"Stream transport error: {ws.exception()}")

        if not self._closing:
            self._set_state(ConnectionState.DISCONNECTED)
            raise StreamClosedError(f"Stream closed by remote (code={ws.close_code})")

    async def close(self) -> None:
        """Close the WebSocket if open."""
        ws = self._ws
        self._ws = None
        self._closing = True
        try:
            if ws is not None and not ws.closed:
                self._logger.debug("Stream close requested")
                await ws.close()
        finally:
            if self._state != ConnectionState.ERROR:
                self._set_state(ConnectionState.DISCONNECTED)
