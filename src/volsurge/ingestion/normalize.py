"""Normalization helpers.

Centralizes defensive parsing of exchange numbers and symbols. The exchange
sends most numeric fields as strings.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    if isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def non_negative_or_zero(value: Any) -> float | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return 0.0 if parsed < 0 else parsed


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def normalize_symbol(value: Any) -> str | None:
    """Upper-case exchange symbol, or ``None`` for blank input."""
    text = safe_str(value)
    return text.upper() if text else None


def stream_symbol(stream: str) -> str:
    """Extract the lower-cased symbol part of a combined stream name.

    ``"btcusdt@kline_1m"`` -> ``"btcusdt"``.
    """
    return stream.split("@", 1)[0].strip().lower()
