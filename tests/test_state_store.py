from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from volsurge.models.instrument import Instrument
from volsurge.state.events import TickerUpdate, VolumeUpdate
from volsurge.state.store import InstrumentStore


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def _store() -> InstrumentStore:
    store = InstrumentStore(clock=_Clock())
    store.replace_all(
        [
            Instrument(key="BTCUSDT", price=100.0, change_24h=1.0, minute_baseline=10.0),
            Instrument(key="ETHUSDT", price=10.0, change_24h=-1.0, minute_baseline=5.0),
        ]
    )
    return store


def test_volume_update_replaces_only_target_entry() -> None:
    store = _store()
    before = store.snapshot()

    updated = store.apply_volume_update("BTCUSDT", 123.0)

    after = store.snapshot()
    assert updated is not None
    assert updated.last_minute_volume == 123.0
    assert store.last_update_at == updated.last_updated_at
    assert after["BTCUSDT"] is updated
    assert after["BTCUSDT"] is not before["BTCUSDT"]
    assert after["ETHUSDT"] is before["ETHUSDT"]
    assert before["BTCUSDT"].last_minute_volume == 0.0


def test_ticker_update_recomputes_change_from_window_open() -> None:
    store = _store()

    updated = store.apply_ticker_update("BTCUSDT", 110.0, 100.0)

    assert updated is not None
    assert updated.price == 110.0
    assert updated.change_24h == pytest.approx(10.0)


@pytest.mark.parametrize("open_", [None, 0.0])
def test_ticker_update_without_open_keeps_change(open_: float | None) -> None:
    store = _store()

    updated = store.apply_ticker_update("ETHUSDT", 12.0, open_)

    assert updated is not None
    assert updated.price == 12.0
    assert updated.change_24h == -1.0


def test_unknown_key_is_noop() -> None:
    store = _store()
    before = store.snapshot()

    assert store.apply_volume_update("DOGEUSDT", 5.0) is None
    assert store.apply_ticker_update("DOGEUSDT", 5.0, 4.0) is None
    assert dict(store.snapshot()) == dict(before)


def test_apply_dispatches_stream_events() -> None:
    store = _store()

    store.apply(VolumeUpdate(key="ethusdt", current_minute_volume=9.0))
    store.apply(TickerUpdate(key="ETHUSDT", close_price=11.0, open_price_of_window=10.0))

    eth = store.get("ETHUSDT")
    assert eth is not None
    assert eth.last_minute_volume == 9.0
    assert eth.change_24h == pytest.approx(10.0)


def test_snapshot_is_read_only() -> None:
    store = _store()
    snapshot = store.snapshot()

    with pytest.raises(TypeError):
        snapshot["BTCUSDT"] = Instrument(key="BTCUSDT")  # type: ignore[index]

    store.replace_all([])
    assert "BTCUSDT" in snapshot
    assert len(store) == 0


def test_search_matches_key_and_display_name() -> None:
    store = _store()

    assert [i.key for i in store.search("eth")] == ["ETHUSDT"]
    assert [i.key for i in store.search("usdt")] == ["BTCUSDT", "ETHUSDT"]
    assert len(store.search("")) == 2


def test_baseline_never_stored_as_non_positive() -> None:
    assert Instrument(key="XUSDT", minute_baseline=0).minute_baseline == 1.0
    assert Instrument(key="XUSDT", minute_baseline=-5).minute_baseline == 1.0
    assert Instrument(key="XUSDT", minute_baseline=float("nan")).minute_baseline == 1.0


def test_clear_resets_last_update() -> None:
    store = _store()
    store.apply_volume_update("BTCUSDT", 1.0)
    assert store.last_update_at is not None

    store.clear()

    assert len(store) == 0
    assert store.last_update_at is None
