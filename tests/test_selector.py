from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from volsurge.config import ScannerConfig, SelectionMode
from volsurge.exceptions import UniverseFetchError, VolsurgeTransportError
from volsurge.models.market import UniverseTicker
from volsurge.selector import (
    RankWindow,
    is_eligible_symbol,
    normalize_range,
    resolve_targets,
    select_explicit_list,
    select_ranked_window,
)


def _ticker(symbol: str, change: float, price: float = 1.0) -> UniverseTicker:
    return UniverseTicker.model_validate(
        {"symbol": symbol, "priceChangePercent": str(change), "lastPrice": str(price)}
    )


class _UniverseTransport:
    def __init__(self, payload: Any = None, error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error

    async def get_json(self, endpoint: str, params: Mapping[str, str | int] | None = None) -> Any:
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.mark.parametrize(
    ("start", "end", "expected"),
    [
        (50, 10, RankWindow(10, 50)),
        (0, 500, RankWindow(1, 100)),
        (None, None, RankWindow(1, 100)),
        (-3, 20, RankWindow(1, 20)),
        (20, 30, RankWindow(20, 30)),
        (5, 0, RankWindow(1, 5)),
        (300, 300, RankWindow(300, 300)),
    ],
)
def test_normalize_range(start: int | None, end: int | None, expected: RankWindow) -> None:
    assert normalize_range(start, end) == expected


def test_ranked_window_selects_inclusive_slice() -> None:
    universe = [
        _ticker("AUSDT", 50),
        _ticker("BUSDT", 40),
        _ticker("CUSDT", 30),
        _ticker("DUSDT", 20),
        _ticker("EUSDT", 10),
    ]

    selected = select_ranked_window(list(reversed(universe)), RankWindow(2, 4))

    assert [t.symbol for t in selected] == ["BUSDT", "CUSDT", "DUSDT"]


def test_ranked_window_clamps_to_available_instruments() -> None:
    universe = [_ticker("AUSDT", 5), _ticker("BUSDT", 4), _ticker("CUSDT", 3)]

    assert [t.symbol for t in select_ranked_window(universe, RankWindow(2, 100))] == ["BUSDT", "CUSDT"]
    assert select_ranked_window(universe, RankWindow(10, 20)) == []


def test_ranked_window_ties_keep_upstream_order() -> None:
    universe = [_ticker("XUSDT", 7), _ticker("YUSDT", 7), _ticker("ZUSDT", 7), _ticker("TOPUSDT", 9)]

    selected = select_ranked_window(universe, RankWindow(1, 4))

    assert [t.symbol for t in selected] == ["TOPUSDT", "XUSDT", "YUSDT", "ZUSDT"]


@pytest.mark.parametrize(
    ("symbol", "eligible"),
    [
        ("BTCUSDT", True),
        ("BTCUSDT_250627", False),
        ("USDCUSDT", False),
        ("ETHBTC", False),
        ("ETHUSDC", False),
    ],
)
def test_symbol_eligibility(symbol: str, eligible: bool) -> None:
    assert is_eligible_symbol(symbol) is eligible


def test_ranked_window_filters_ineligible_symbols() -> None:
    universe = [
        _ticker("USDCUSDT", 99),
        _ticker("BTCUSDT_250627", 98),
        _ticker("ETHBTC", 97),
        _ticker("SOLUSDT", 1),
    ]

    assert [t.symbol for t in select_ranked_window(universe, RankWindow(1, 10))] == ["SOLUSDT"]


def test_explicit_list_uses_configured_order() -> None:
    universe = [_ticker("AUSDT", 1), _ticker("BUSDT", 2), _ticker("CUSDT", 3)]

    selected = select_explicit_list(universe, ["CUSDT", "MISSINGUSDT", "AUSDT"])

    assert [t.symbol for t in selected] == ["CUSDT", "AUSDT"]


@pytest.mark.asyncio
async def test_resolve_targets_falls_back_to_watchlist_placeholders() -> None:
    config = ScannerConfig(watchlist=("BTCUSDT", "ETHUSDT"))
    transport = _UniverseTransport(error=VolsurgeTransportError("boom", endpoint="/fapi/v1/ticker/24hr"))

    targets = await resolve_targets(transport, config)

    assert [t.symbol for t in targets] == ["BTCUSDT", "ETHUSDT"]
    assert all(t.last_price == 0.0 and t.price_change_percent == 0.0 for t in targets)


@pytest.mark.asyncio
async def test_resolve_targets_without_fallback_raises() -> None:
    config = ScannerConfig(watchlist=())
    transport = _UniverseTransport(payload={"code": -1121, "msg": "Invalid symbol."})

    with pytest.raises(UniverseFetchError):
        await resolve_targets(transport, config)


@pytest.mark.asyncio
async def test_resolve_targets_watchlist_mode() -> None:
    config = ScannerConfig(mode=SelectionMode.WATCHLIST, watchlist=("ETHUSDT", "BTCUSDT"))
    transport = _UniverseTransport(
        payload=[
            {"symbol": "BTCUSDT", "priceChangePercent": "1.5", "lastPrice": "65000.1"},
            {"symbol": "ETHUSDT", "priceChangePercent": "-2.0", "lastPrice": "3100"},
            {"symbol": "SOLUSDT", "priceChangePercent": "9.0", "lastPrice": "150"},
        ]
    )

    targets = await resolve_targets(transport, config)

    assert [t.symbol for t in targets] == ["ETHUSDT", "BTCUSDT"]
    assert targets[1].last_price == pytest.approx(65000.1)
    assert targets[0].price_change_percent == pytest.approx(-2.0)
