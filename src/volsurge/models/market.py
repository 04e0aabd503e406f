"""REST market data models: universe tickers and daily candles."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import Field, field_validator

from volsurge.exceptions import VolsurgeError
from volsurge.ingestion.normalize import non_negative_or_zero, normalize_symbol, safe_float
from volsurge.models._base import ExchangeModel


class UniverseTicker(ExchangeModel):
    """One row of the 24h ticker universe snapshot.

    Parameters
    ----------
    symbol : str
        Exchange symbol (e.g. ``BTCUSDT``).
    price_change_percent : float
        Signed 24h change in percent.
    last_price : float
        Last traded price. ``0`` for placeholder rows.
    raw : dict
        Full API row.
    """

    symbol: str
    price_change_percent: float = 0.0
    last_price: float = 0.0

    @field_validator("symbol", mode="before")
    @classmethod
    def _normalize_symbol(cls, value: Any) -> str:
        symbol = normalize_symbol(value)
        if symbol is None:
            raise ValueError("symbol must be non-empty")
        return symbol

    @field_validator("price_change_percent", mode="before")
    @classmethod
    def _coerce_change(cls, value: Any) -> float:
        parsed = safe_float(value)
        return 0.0 if parsed is None else parsed

    @field_validator("last_price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> float:
        parsed = non_negative_or_zero(value)
        return 0.0 if parsed is None else parsed

    @classmethod
    def placeholder(cls, symbol: str) -> UniverseTicker:
        """Neutral row used when the universe snapshot is unavailable."""
        return cls(symbol=symbol, price_change_percent=0.0, last_price=0.0, raw={})


class DailyCandle(ExchangeModel):
    """A daily kline reduced to the fields the baseline needs.

    The exchange encodes klines as positional arrays:
    ``[open_time, open, high, low, close, volume, close_time, ...]``.
    """

    open_time: int | None = None
    close: float = 0.0
    volume: float = Field(default=0.0, ge=0.0)

    @field_validator("close", "volume", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> float:
        parsed = non_negative_or_zero(value)
        if parsed is None:
            raise ValueError(f"not a number: {value!r}")
        return parsed

    @classmethod
    def from_kline(cls, row: Sequence[Any]) -> DailyCandle:
        if isinstance(row, (str, bytes)) or len(row) < 6:
            raise VolsurgeError(f"kline row too short: {row!r}")
        open_time = safe_float(row[0])
        return cls.model_validate(
            {
                "openTime": int(open_time) if open_time is not None else None,
                "close": row[4],
                "volume": row[5],
                "raw": {"kline": list(row)},
            }
        )
