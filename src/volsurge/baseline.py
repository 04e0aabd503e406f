"""Per-minute volume baseline from recent daily candles."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from volsurge._api.klines import fetch_daily_candles
from volsurge._constants import BASELINE_WINDOW, FALLBACK_MINUTE_BASELINE, MINUTES_PER_DAY
from volsurge._transport import Transport
from volsurge.config import ScannerConfig
from volsurge.exceptions import HistoryFetchError
from volsurge.models.instrument import Instrument, display_name_for
from volsurge.models.market import DailyCandle, UniverseTicker

_logger = logging.getLogger(__name__)


def compute_minute_baseline(candles: Sequence[DailyCandle]) -> float:
    """Average daily volume of the five candles before the newest, per minute.

    The newest candle is still in progress and is left out; anything older
    than the five-day window only provides context. Short history or a zero
    average yields the fallback baseline of 1.
    """
    if len(candles) < BASELINE_WINDOW + 1:
        return FALLBACK_MINUTE_BASELINE
    window = candles[-(BASELINE_WINDOW + 1) : -1]
    average = sum(candle.volume for candle in window) / len(window)
    if average <= 0:
        return FALLBACK_MINUTE_BASELINE
    return average / MINUTES_PER_DAY


async def resolve_instrument(
    transport: Transport,
    target: UniverseTicker,
    config: ScannerConfig,
) -> Instrument:
    """Fetch history for ``target`` and build its initial instrument state."""
    candles = await fetch_daily_candles(transport, target.symbol, limit=config.history_limit)
    if not candles:
        raise HistoryFetchError(f"No candles returned for {target.symbol}", symbol=target.symbol)

    # Placeholder targets carry price 0; the latest close stands in.
    price = target.last_price or candles[-1].close
    return Instrument(
        key=target.symbol,
        display_name=display_name_for(target.symbol, config.quote_asset),
        price=price,
        change_24h=target.price_change_percent,
        minute_baseline=compute_minute_baseline(candles),
    )


async def resolve_instruments(
    transport: Transport,
    targets: Sequence[UniverseTicker],
    config: ScannerConfig,
) -> list[Instrument]:
    """Resolve all targets concurrently, dropping the ones whose history fails.

    The result keeps the order of ``targets``.
    """
    semaphore = asyncio.Semaphore(config.history_concurrency)

    async def _resolve(target: UniverseTicker) -> Instrument | None:
        async with semaphore:
            try:
                return await resolve_instrument(transport, target, config)
            except HistoryFetchError as exc:
                _logger.warning("Dropping %s: %s", target.symbol, exc)
                return None

    results = await asyncio.gather(*(_resolve(target) for target in targets))
    instruments = [instrument for instrument in results if instrument is not None]
    _logger.debug("Resolved %d/%d instrument baselines", len(instruments), len(targets))
    return instruments
