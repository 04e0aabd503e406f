"""In-memory instrument state store.

This is the only component allowed to mutate tracked instruments.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, datetime
from types import MappingProxyType

from volsurge.models.instrument import Instrument
from volsurge.state.events import StreamEvent, TickerUpdate, VolumeUpdate


def _utcnow() -> datetime:
    return datetime.now(UTC)


class InstrumentStore:
    """Mapping of instrument key to :class:`Instrument`.

    Every update replaces exactly one entry with a new instance; untouched
    entries keep their identity, so a renderer can detect changes with
    ``is``. The store assumes a single writer and does no locking.
    """

    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._clock = clock
        self._instruments: dict[str, Instrument] = {}
        self._last_update_at: datetime | None = None

    def __len__(self) -> int:
        return len(self._instruments)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.upper() in self._instruments

    @property
    def last_update_at(self) -> datetime | None:
        return self._last_update_at

    def replace_all(self, instruments: Iterable[Instrument]) -> None:
        """Rebuild the store from scratch, preserving iteration order."""
        self._instruments = {instrument.key: instrument for instrument in instruments}
        self._last_update_at = self._clock()

    def clear(self) -> None:
        self._instruments = {}
        self._last_update_at = None

    def get(self, key: str) -> Instrument | None:
        return self._instruments.get(key.upper())

    def keys(self) -> list[str]:
        return list(self._instruments)

    def _replace(self, key: str, **changes: object) -> Instrument | None:
        current = self._instruments.get(key)
        if current is None:
            return None
        now = self._clock()
        updated = current.model_copy(update={**changes, "last_updated_at": now})
        self._instruments[key] = updated
        self._last_update_at = now
        return updated

    def apply_volume_update(self, key: str, volume: float) -> Instrument | None:
        """Set the current-minute volume. Unknown keys are ignored."""
        return self._replace(key.upper(), last_minute_volume=max(0.0, float(volume)))

    def apply_ticker_update(self, key: str, close: float, open_: float | None = None) -> Instrument | None:
        """Set the price; recompute the change when a non-zero window open is known."""
        changes: dict[str, object] = {"price": max(0.0, float(close))}
        if open_:
            changes["change_24h"] = (close - open_) / open_ * 100
        return self._replace(key.upper(), **changes)

    def apply(self, event: StreamEvent) -> Instrument | None:
        if isinstance(event, VolumeUpdate):
            return self.apply_volume_update(event.key, event.current_minute_volume)
        if isinstance(event, TickerUpdate):
            return self.apply_ticker_update(event.key, event.close_price, event.open_price_of_window)
        return None

    def snapshot(self) -> Mapping[str, Instrument]:
        """Read-only copy of the current mapping."""
        return MappingProxyType(dict(self._instruments))

    def search(self, term: str) -> list[Instrument]:
        """Instruments whose key or display name contains *term* (case-insensitive)."""
        needle = term.strip().lower()
        if not needle:
            return list(self._instruments.values())
        return [
            instrument
            for instrument in self._instruments.values()
            if needle in instrument.key.lower() or needle in instrument.display_name.lower()
        ]
