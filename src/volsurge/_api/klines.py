"""Daily kline endpoint.

Endpoint:
  - /fapi/v1/klines?symbol=<S>&interval=1d&limit=<N>
"""

from __future__ import annotations

from pydantic import ValidationError

from volsurge._constants import HISTORY_CANDLES, KLINES_ENDPOINT
from volsurge._transport import Transport
from volsurge.exceptions import HistoryFetchError, VolsurgeError, VolsurgeTransportError
from volsurge.models.market import DailyCandle


async def fetch_daily_candles(
    transport: Transport,
    symbol: str,
    *,
    limit: int = HISTORY_CANDLES,
) -> list[DailyCandle]:
    """Fetch the most recent ``limit`` daily candles, oldest first."""
    params = {"symbol": symbol, "interval": "1d", "limit": limit}
    try:
        payload = await transport.get_json(KLINES_ENDPOINT, params)
    except VolsurgeTransportError as exc:
        raise HistoryFetchError(f"Kline fetch for {symbol} failed: {exc}", symbol=symbol) from exc

    if not isinstance(payload, list):
        raise HistoryFetchError(f"Kline payload for {symbol} is not a list", symbol=symbol)

    try:
        return [DailyCandle.from_kline(row) for row in payload]
    except (ValidationError, VolsurgeError, TypeError) as exc:
        raise HistoryFetchError(f"Kline payload for {symbol} is malformed: {exc}", symbol=symbol) from exc
