"""Bounded, newest-first alert log with per-instrument debounce."""

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from volsurge._constants import ALERT_LOG_SIZE, DEBOUNCE_MS
from volsurge.models.alert import AlertEvent, AlertTier
from volsurge.models.instrument import Instrument

_logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class AlertLog:
    """Record of accepted alerts, newest first.

    The log itself is the debounce table: the newest entry for a key is
    found by a linear scan, which stays cheap because the log is bounded.
    """

    def __init__(
        self,
        *,
        max_size: int = ALERT_LOG_SIZE,
        debounce_ms: int = DEBOUNCE_MS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        self._max_size = max_size
        self._debounce = timedelta(milliseconds=debounce_ms)
        self._clock = clock
        self._events: list[AlertEvent] = []
        self._sequence = itertools.count()

    def __len__(self) -> int:
        return len(self._events)

    @property
    def max_size(self) -> int:
        return self._max_size

    def latest(self, key: str) -> AlertEvent | None:
        """Newest recorded event for *key*, if any is still in the log."""
        wanted = key.upper()
        for event in self._events:
            if event.instrument_key == wanted:
                return event
        return None

    def is_suppressed(self, key: str, now: datetime) -> bool:
        previous = self.latest(key)
        return previous is not None and now - previous.emitted_at < self._debounce

    def record(
        self,
        instrument: Instrument,
        ratio: float,
        tier: AlertTier,
        volume: float | None = None,
    ) -> AlertEvent | None:
        """Append an alert unless one for the same instrument is too recent.

        Returns the new event, or ``None`` when suppressed.
        """
        now = self._clock()
        if self.is_suppressed(instrument.key, now):
            _logger.debug("Alert for %s suppressed (debounce)", instrument.key)
            return None

        emitted_ms = int(now.timestamp() * 1000)
        event = AlertEvent(
            id=f"{emitted_ms}-{next(self._sequence):06d}",
            instrument_key=instrument.key,
            price_at_alert=instrument.price,
            ratio=ratio,
            raw_volume=instrument.last_minute_volume if volume is None else volume,
            tier=tier,
            emitted_at=now,
        )
        self._events.insert(0, event)
        del self._events[self._max_size :]
        return event

    def events(self) -> tuple[AlertEvent, ...]:
        """Immutable snapshot, newest first."""
        return tuple(self._events)

    def clear(self) -> None:
        self._events = []
