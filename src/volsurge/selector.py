"""Instrument selection.

Turns a universe snapshot into the ordered list of symbols to subscribe to,
either a window of the 24h gainers board or a fixed watchlist.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import NamedTuple

from volsurge._api.universe import fetch_universe
from volsurge._constants import (
    CONTRACT_DELIMITER,
    DEFAULT_RANK_END,
    EXCLUDED_PREFIXES,
    QUOTE_ASSET,
    RANK_MAX,
    RANK_MIN,
)
from volsurge._transport import Transport
from volsurge.config import ScannerConfig, SelectionMode
from volsurge.exceptions import UniverseFetchError
from volsurge.models.market import UniverseTicker

_logger = logging.getLogger(__name__)


class RankWindow(NamedTuple):
    """1-based inclusive rank window."""

    start: int
    end: int


def normalize_range(start: int | None, end: int | None) -> RankWindow:
    """Normalize user input into a usable rank window.

    A missing or non-positive ``start`` becomes 1, a missing or oversized
    ``end`` becomes 100, and reversed bounds are swapped.
    """
    if start is None or start <= 0:
        start = RANK_MIN
    if end is None or end > RANK_MAX:
        end = DEFAULT_RANK_END
    if start > end:
        start, end = end, start
    # A non-positive end swapped into start.
    start = max(start, RANK_MIN)
    return RankWindow(start, end)


def is_eligible_symbol(
    symbol: str,
    *,
    quote_asset: str = QUOTE_ASSET,
    excluded_prefixes: Iterable[str] = EXCLUDED_PREFIXES,
) -> bool:
    if not symbol.endswith(quote_asset):
        return False
    if CONTRACT_DELIMITER in symbol:
        return False
    return not any(symbol.startswith(prefix) for prefix in excluded_prefixes)


def select_ranked_window(
    universe: Sequence[UniverseTicker],
    window: RankWindow,
    *,
    quote_asset: str = QUOTE_ASSET,
    excluded_prefixes: Iterable[str] = EXCLUDED_PREFIXES,
) -> list[UniverseTicker]:
    """Eligible instruments ranked by 24h change, sliced to ``window``.

    ``sorted`` is stable, so equal changes keep their upstream order.
    """
    prefixes = tuple(excluded_prefixes)
    candidates = [
        ticker
        for ticker in universe
        if is_eligible_symbol(ticker.symbol, quote_asset=quote_asset, excluded_prefixes=prefixes)
    ]
    candidates = sorted(candidates, key=lambda t: t.price_change_percent, reverse=True)

    start = min(max(window.start, RANK_MIN), RANK_MAX)
    end = min(max(window.end, RANK_MIN), RANK_MAX, len(candidates))
    if end < start:
        return []
    return candidates[start - 1 : end]


def select_explicit_list(universe: Sequence[UniverseTicker], symbols: Sequence[str]) -> list[UniverseTicker]:
    """Universe rows for ``symbols``, in the order of ``symbols``."""
    by_symbol: dict[str, UniverseTicker] = {}
    for ticker in universe:
        by_symbol.setdefault(ticker.symbol, ticker)
    selected: list[UniverseTicker] = []
    seen: set[str] = set()
    for symbol in symbols:
        key = symbol.upper()
        if key in seen:
            continue
        ticker = by_symbol.get(key)
        if ticker is not None:
            selected.append(ticker)
            seen.add(key)
    return selected


def fallback_targets(symbols: Sequence[str]) -> list[UniverseTicker]:
    """Placeholder rows (price 0, change 0) for a degraded start."""
    seen: set[str] = set()
    targets: list[UniverseTicker] = []
    for symbol in symbols:
        key = symbol.upper()
        if key not in seen:
            seen.add(key)
            targets.append(UniverseTicker.placeholder(key))
    return targets


def select_targets(universe: Sequence[UniverseTicker], config: ScannerConfig) -> list[UniverseTicker]:
    if config.mode == SelectionMode.WATCHLIST:
        return select_explicit_list(universe, config.watchlist)
    window = normalize_range(config.rank_start, config.rank_end)
    return select_ranked_window(
        universe,
        window,
        quote_asset=config.quote_asset,
        excluded_prefixes=config.excluded_prefixes,
    )


async def resolve_targets(transport: Transport, config: ScannerConfig) -> list[UniverseTicker]:
    """Fetch the universe and select the subscription targets.

    When the universe is unavailable the configured watchlist is used with
    placeholder values. Raises :class:`UniverseFetchError` only when that
    watchlist is empty too.
    """
    try:
        universe = await fetch_universe(transport)
    except UniverseFetchError:
        if not config.watchlist:
            raise
        _logger.warning(
            "Universe unavailable, falling back to %d watchlist symbols",
            len(config.watchlist),
            exc_info=True,
        )
        return fallback_targets(config.watchlist)

    targets = select_targets(universe, config)
    _logger.info(
        "Selected %d instruments (mode=%s): %s",
        len(targets),
        config.mode,
        ", ".join(f"{t.symbol} ({t.price_change_percent}%)" for t in targets),
    )
    return targets
