from __future__ import annotations

from datetime import UTC, datetime, timedelta

from volsurge.models.alert import AlertTier
from volsurge.models.instrument import Instrument
from volsurge.state.alerts import AlertLog


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


def _instrument(key: str = "BTCUSDT") -> Instrument:
    return Instrument(key=key, price=100.0, last_minute_volume=42.0, minute_baseline=1.0)


def test_second_alert_within_debounce_is_suppressed() -> None:
    clock = _Clock()
    log = AlertLog(clock=clock)

    assert log.record(_instrument(), 3.0, AlertTier.NORMAL) is not None
    clock.advance(milliseconds=4999)
    assert log.record(_instrument(), 3.5, AlertTier.NORMAL) is None
    assert len(log) == 1


def test_alert_after_debounce_is_recorded() -> None:
    clock = _Clock()
    log = AlertLog(clock=clock)

    log.record(_instrument(), 3.0, AlertTier.NORMAL)
    clock.advance(milliseconds=5001)
    second = log.record(_instrument(), 4.0, AlertTier.NORMAL)

    assert second is not None
    assert [event.ratio for event in log.events()] == [4.0, 3.0]


def test_debounce_is_per_instrument() -> None:
    clock = _Clock()
    log = AlertLog(clock=clock)

    log.record(_instrument("BTCUSDT"), 3.0, AlertTier.NORMAL)
    clock.advance(milliseconds=10)
    other = log.record(_instrument("ETHUSDT"), 3.0, AlertTier.NORMAL)

    assert other is not None
    assert len(log) == 2


def test_log_is_bounded_newest_first() -> None:
    clock = _Clock()
    log = AlertLog(clock=clock)

    for index in range(60):
        clock.advance(milliseconds=1)
        log.record(_instrument(f"SYM{index}USDT"), float(index), AlertTier.NORMAL)

    events = log.events()
    assert len(events) == 50
    assert events[0].instrument_key == "SYM59USDT"
    assert events[-1].instrument_key == "SYM10USDT"
    assert all(a.emitted_at > b.emitted_at for a, b in zip(events, events[1:]))


def test_event_fields_come_from_instrument() -> None:
    clock = _Clock()
    log = AlertLog(clock=clock)

    event = log.record(_instrument(), 15.457, AlertTier.HIGH)

    assert event is not None
    assert event.instrument_key == "BTCUSDT"
    assert event.price_at_alert == 100.0
    assert event.raw_volume == 42.0
    assert event.ratio == 15.46
    assert event.is_high
    assert event.emitted_at == clock.now
    assert event.message == "Volume surge 15.46x"


def test_ids_are_unique_for_same_timestamp() -> None:
    clock = _Clock()
    log = AlertLog(clock=clock)

    first = log.record(_instrument("AUSDT"), 3.0, AlertTier.NORMAL)
    second = log.record(_instrument("BUSDT"), 3.0, AlertTier.NORMAL)

    assert first is not None and second is not None
    assert first.id != second.id
    assert first.id < second.id


def test_evicted_alert_no_longer_debounces() -> None:
    clock = _Clock()
    log = AlertLog(max_size=1, clock=clock)

    log.record(_instrument("AUSDT"), 3.0, AlertTier.NORMAL)
    log.record(_instrument("BUSDT"), 3.0, AlertTier.NORMAL)

    assert log.latest("AUSDT") is None
    assert log.record(_instrument("AUSDT"), 3.0, AlertTier.NORMAL) is not None
