"""Terminal formatting for prices and volumes."""

from __future__ import annotations


def _trim_decimals(text: str, min_decimals: int) -> str:
    whole, _, decimals = text.partition(".")
    decimals = decimals.rstrip("0")
    if len(decimals) < min_decimals:
        decimals = decimals.ljust(min_decimals, "0")
    return f"{whole}.{decimals}" if decimals else whole


def format_price(value: float | None) -> str:
    """Compact price: 4 significant digits for dust, grouping above 1000."""
    if not value:
        return "0.00"
    if value < 0.01:
        return f"{value:.4g}"
    if value > 1000:
        return _trim_decimals(f"{value:,.2f}", 0)
    return _trim_decimals(f"{value:,.4f}", 2)


def format_volume(value: float | None) -> str:
    """Volume with K/M suffixes."""
    if not value:
        return "0"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return f"{value:.0f}"
