from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from volsurge.baseline import compute_minute_baseline, resolve_instruments
from volsurge.config import ScannerConfig
from volsurge.exceptions import VolsurgeTransportError
from volsurge.models.market import DailyCandle, UniverseTicker


def _kline(close: float, volume: float, open_time: int = 0) -> list[Any]:
    return [open_time, "1.0", "2.0", "0.5", str(close), str(volume), open_time + 86_399_999, "0", 10]


def _candles(volumes: list[float]) -> list[DailyCandle]:
    return [DailyCandle.from_kline(_kline(1.0, v, i)) for i, v in enumerate(volumes)]


def test_baseline_averages_five_days_before_latest() -> None:
    # Oldest (9999) is context only, newest (7777) is the running day.
    candles = _candles([9999, 1440, 2880, 4320, 5760, 7200, 7777])

    assert compute_minute_baseline(candles) == pytest.approx(3.0)


def test_baseline_with_exactly_six_candles() -> None:
    candles = _candles([1440, 1440, 1440, 1440, 1440, 0])

    assert compute_minute_baseline(candles) == pytest.approx(1.0 * 1440 / 1440)


def test_short_history_uses_fallback_baseline() -> None:
    assert compute_minute_baseline(_candles([1e9, 1e9, 1e9, 1e9, 1e9])) == 1.0
    assert compute_minute_baseline([]) == 1.0


def test_zero_volume_history_uses_fallback_baseline() -> None:
    assert compute_minute_baseline(_candles([0, 0, 0, 0, 0, 0, 0])) == 1.0


class _KlineTransport:
    def __init__(self, payloads: dict[str, Any]) -> None:
        self.payloads = payloads

    async def get_json(self, endpoint: str, params: Mapping[str, str | int] | None = None) -> Any:
        assert params is not None
        symbol = str(params["symbol"])
        payload = self.payloads[symbol]
        if isinstance(payload, Exception):
            raise payload
        return payload


@pytest.mark.asyncio
async def test_failed_history_drops_only_that_instrument() -> None:
    week = [_kline(10.0, 1440 * 2, i) for i in range(7)]
    transport = _KlineTransport(
        {
            "AUSDT": week,
            "BUSDT": VolsurgeTransportError("HTTP 429", status_code=429, endpoint="/fapi/v1/klines"),
            "CUSDT": [["garbage"]],
            "DUSDT": week,
        }
    )
    targets = [
        UniverseTicker(symbol="AUSDT", price_change_percent=5.0, last_price=11.0),
        UniverseTicker(symbol="BUSDT", price_change_percent=4.0, last_price=11.0),
        UniverseTicker(symbol="CUSDT", price_change_percent=3.0, last_price=11.0),
        UniverseTicker.placeholder("DUSDT"),
    ]

    instruments = await resolve_instruments(transport, targets, ScannerConfig())

    assert [i.key for i in instruments] == ["AUSDT", "DUSDT"]
    assert instruments[0].minute_baseline == pytest.approx(2.0)
    assert instruments[0].price == 11.0
    assert instruments[0].change_24h == 5.0
    assert instruments[0].display_name == "A"
    # Placeholder targets take the latest close as their price.
    assert instruments[1].price == 10.0
    assert instruments[1].change_24h == 0.0
