"""High-level async volume breakout scanner."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Protocol

import aiohttp

from volsurge._stream import ConnectionState, StreamMultiplexer
from volsurge._transport import HttpTransport, Transport
from volsurge.baseline import resolve_instruments
from volsurge.config import ScannerConfig, validate_threshold
from volsurge.detector import evaluate
from volsurge.exceptions import (
    MalformedMessageError,
    StaleGenerationError,
    StreamClosedError,
    StreamError,
    UniverseFetchError,
    VolsurgeError,
)
from volsurge.ingestion.stream import build_stream_url, decode_message
from volsurge.models.alert import AlertEvent
from volsurge.models.instrument import Instrument
from volsurge.selector import resolve_targets
from volsurge.state.alerts import AlertLog
from volsurge.state.events import VolumeUpdate
from volsurge.state.store import InstrumentStore

_logger = logging.getLogger(__name__)


class ScannerStatus(StrEnum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


_CONNECTION_STATUS: dict[ConnectionState, ScannerStatus] = {
    ConnectionState.CONNECTING: ScannerStatus.CONNECTING,
    ConnectionState.CONNECTED: ScannerStatus.CONNECTED,
    ConnectionState.DISCONNECTED: ScannerStatus.DISCONNECTED,
    ConnectionState.ERROR: ScannerStatus.ERROR,
}


class MarketStream(Protocol):
    """What the scanner needs from a stream connection."""

    async def connect(self) -> None: ...

    def messages(self) -> Any: ...

    async def close(self) -> None: ...


StreamFactory = Callable[[str, Callable[[ConnectionState], None]], MarketStream]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class VolumeScanner:
    """Tracks a set of instruments and raises alerts on volume surges.

    Usage::

        async with VolumeScanner(config, on_alert=print) as scanner:
            await scanner.start()
            await scanner.wait()

    All state mutation happens on one consumer task: a message is decoded,
    applied, evaluated and (maybe) recorded before the next one is read.
    Every (re)configuration runs under a new generation number and results
    tagged with an older generation are discarded.
    """

    def __init__(
        self,
        config: ScannerConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        stream_factory: StreamFactory | None = None,
        on_alert: Callable[[AlertEvent], None] | None = None,
        on_high_alert: Callable[[AlertEvent], None] | None = None,
        on_status: Callable[[ScannerStatus], None] | None = None,
        on_instrument: Callable[[Instrument], None] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config or ScannerConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._stream_factory = stream_factory
        self._on_alert = on_alert
        self._on_high_alert = on_high_alert
        self._on_status = on_status
        self._on_instrument = on_instrument
        self._store = InstrumentStore(clock=clock)
        self._alerts = AlertLog(
            max_size=self._config.alert_log_size,
            debounce_ms=self._config.debounce_ms,
            clock=clock,
        )
        self._status = ScannerStatus.IDLE
        self._generation = 0
        self._task: asyncio.Task[None] | None = None
        self._stream: MarketStream | None = None
        self._known_keys: dict[str, str] = {}
        self._threshold = self._config.threshold
        self._notifications_enabled = self._config.notifications_enabled

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> VolumeScanner:
        needs_http = self._transport is None or self._stream_factory is None
        if needs_http and self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        if self._transport is None:
            assert self._http_session is not None  # noqa: S101
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def config(self) -> ScannerConfig:
        return self._config

    @property
    def status(self) -> ScannerStatus:
        return self._status

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def threshold(self) -> float:
        return self._threshold

    @property
    def notifications_enabled(self) -> bool:
        return self._notifications_enabled

    @property
    def last_update_at(self) -> datetime | None:
        return self._store.last_update_at

    def snapshot(self) -> Mapping[str, Instrument]:
        """Read-only key -> instrument mapping for renderers."""
        return self._store.snapshot()

    def search(self, term: str) -> list[Instrument]:
        return self._store.search(term)

    def alerts(self) -> tuple[AlertEvent, ...]:
        """Accepted alerts, newest first."""
        return self._alerts.events()

    # ------------------------------------------------------------------
    # Runtime settings (no restart needed)
    # ------------------------------------------------------------------

    def set_threshold(self, value: float) -> None:
        threshold = validate_threshold(value)
        self._threshold = threshold
        self._config = self._config.replace(threshold=threshold)

    def set_notifications_enabled(self, enabled: bool) -> None:
        self._notifications_enabled = bool(enabled)
        self._config = self._config.replace(notifications_enabled=self._notifications_enabled)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Initialize and start consuming under a fresh generation."""
        await self._restart()

    async def restart(self) -> None:
        """Rebuild everything with the current configuration.

        This is the only way back from a dropped connection.
        """
        await self._restart()

    async def reconfigure(self, **changes: Any) -> None:
        """Apply configuration changes (mode, rank window, watchlist, ...) and restart."""
        config = self._config.replace(**changes)
        self._config = config
        self._threshold = config.threshold
        self._notifications_enabled = config.notifications_enabled
        await self._restart()

    async def stop(self) -> None:
        """Stop consuming and release the connection."""
        self._generation += 1
        await self._cancel_current()
        if self._status not in (ScannerStatus.IDLE, ScannerStatus.ERROR):
            self._set_status(ScannerStatus.DISCONNECTED)

    async def wait(self) -> None:
        """Wait until the current generation's consumer finishes."""
        task = self._task
        if task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _restart(self) -> None:
        await self._cancel_current()
        self._generation += 1
        generation = self._generation
        _logger.info("Starting generation %d (mode=%s)", generation, self._config.mode)
        self._task = asyncio.create_task(self._run(generation), name=f"volsurge-generation-{generation}")

    async def _cancel_current(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        stream = self._stream
        self._stream = None
        if stream is not None:
            await stream.close()

    def _check_generation(self, generation: int) -> None:
        if generation != self._generation:
            raise StaleGenerationError(f"generation {generation} superseded by {self._generation}")

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise VolsurgeError("Scanner not initialized. Use 'async with VolumeScanner(...) as scanner:'")
        return self._transport

    async def initialize(self) -> list[Instrument]:
        """Select instruments, resolve baselines and rebuild the store.

        Raises :class:`StaleGenerationError` (without touching the store)
        when a newer configuration started while this one was fetching.
        """
        generation = self._generation
        config = self._config
        transport = self._require_transport()
        self._set_status(ScannerStatus.INITIALIZING)

        targets = await resolve_targets(transport, config)
        self._check_generation(generation)

        instruments = await resolve_instruments(transport, targets, config)
        self._check_generation(generation)

        self._store.replace_all(instruments)
        self._known_keys = {instrument.key.lower(): instrument.key for instrument in instruments}
        _logger.info("Generation %d tracking %d instruments", generation, len(instruments))
        return instruments

    async def _run(self, generation: int) -> None:
        try:
            instruments = await self.initialize()
        except StaleGenerationError:
            _logger.debug("Discarding results of generation %d", generation)
            return
        except UniverseFetchError:
            _logger.error("Universe unavailable and no fallback watchlist configured", exc_info=True)
            self._set_status(ScannerStatus.ERROR)
            return
        except VolsurgeError:
            _logger.error("Initialization of generation %d failed", generation, exc_info=True)
            self._set_status(ScannerStatus.ERROR)
            return
        except Exception:
            _logger.error("Unexpected failure initializing generation %d", generation, exc_info=True)
            if generation == self._generation:
                self._set_status(ScannerStatus.ERROR)
            return

        if not instruments:
            _logger.warning("Nothing to subscribe to in generation %d", generation)
            self._set_status(ScannerStatus.DISCONNECTED)
            return

        url = build_stream_url(self._config.stream_base_url, [instrument.key for instrument in instruments])
        stream = self._create_stream(url, generation)
        self._stream = stream
        try:
            await stream.connect()
            async for text in stream.messages():
                if generation != self._generation:
                    break
                self.handle_raw(text)
        except StreamClosedError as exc:
            _logger.warning("Generation %d: %s; call restart() to resubscribe", generation, exc)
        except StreamError:
            _logger.warning("Stream for generation %d failed", generation, exc_info=True)
        finally:
            if self._stream is stream:
                self._stream = None
            await stream.close()

    def _create_stream(self, url: str, generation: int) -> MarketStream:
        def on_state(state: ConnectionState) -> None:
            if generation == self._generation:
                self._set_status(_CONNECTION_STATUS[state])

        if self._stream_factory is not None:
            return self._stream_factory(url, on_state)
        if self._http_session is None:
            raise VolsurgeError("Scanner not initialized. Use 'async with VolumeScanner(...) as scanner:'")
        return StreamMultiplexer(
            self._http_session,
            url,
            on_state=on_state,
            heartbeat=self._config.heartbeat,
            logger=_logger,
        )

    # ------------------------------------------------------------------
    # Consumer path
    # ------------------------------------------------------------------

    def handle_raw(self, text: str) -> AlertEvent | None:
        """Parse one raw stream frame and process it."""
        try:
            message = json.loads(text)
        except json.JSONDecodeError:
            _logger.debug("Dropping non-JSON stream frame %.200s", text)
            return None
        if not isinstance(message, dict):
            _logger.debug("Dropping non-object stream frame %.200s", text)
            return None
        return self.handle_message(message)

    def handle_message(self, message: Mapping[str, Any]) -> AlertEvent | None:
        """Decode, apply, evaluate and record one message.

        Returns the accepted alert, if the message produced one.
        """
        try:
            event = decode_message(message, self._known_keys)
        except MalformedMessageError:
            _logger.debug("Dropping malformed stream message", exc_info=True)
            return None
        if event is None:
            return None

        instrument = self._store.apply(event)
        if instrument is None:
            return None
        self._emit(self._on_instrument, instrument, "on_instrument")

        if isinstance(event, VolumeUpdate):
            return self._check_breakout(instrument)
        return None

    def _check_breakout(self, instrument: Instrument) -> AlertEvent | None:
        evaluation = evaluate(instrument, self._threshold, high_tier_ratio=self._config.high_tier_ratio)
        if evaluation is None or not evaluation.is_breakout:
            return None

        alert = self._alerts.record(instrument, evaluation.ratio, evaluation.tier)
        if alert is None:
            return None

        _logger.info(
            "Breakout %s ratio=%sx volume=%s tier=%s",
            alert.instrument_key,
            alert.ratio,
            alert.raw_volume,
            alert.tier,
        )
        self._emit(self._on_alert, alert, "on_alert")
        if alert.is_high and self._notifications_enabled:
            self._emit(self._on_high_alert, alert, "on_high_alert")
        return alert

    def _set_status(self, status: ScannerStatus) -> None:
        if status == self._status:
            return
        _logger.debug("Scanner status %s -> %s", self._status, status)
        self._status = status
        self._emit(self._on_status, status, "on_status")

    @staticmethod
    def _emit(callback: Callable[[Any], None] | None, value: Any, name: str) -> None:
        if callback is None:
            return
        try:
            callback(value)
        except Exception:
            _logger.debug("%s callback failed", name, exc_info=True)
