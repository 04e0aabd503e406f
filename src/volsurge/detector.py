"""Breakout detection.

Pure functions: no state, no clock, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass

from volsurge._constants import HIGH_TIER_RATIO
from volsurge.models.alert import AlertTier
from volsurge.models.instrument import Instrument


@dataclass(frozen=True, slots=True)
class BreakoutEvaluation:
    ratio: float
    is_breakout: bool
    tier: AlertTier


def classify_tier(ratio: float, high_tier_ratio: float = HIGH_TIER_RATIO) -> AlertTier:
    """``HIGH`` at or above the fixed escalation ratio, regardless of threshold."""
    return AlertTier.HIGH if ratio >= high_tier_ratio else AlertTier.NORMAL


def evaluate_volume(
    volume: float,
    baseline: float,
    threshold: float,
    *,
    high_tier_ratio: float = HIGH_TIER_RATIO,
) -> BreakoutEvaluation | None:
    """Compare the current-minute volume with the per-minute baseline.

    Returns ``None`` while the baseline is unknown (``<= 0``).
    """
    if baseline <= 0:
        return None
    ratio = round(volume / baseline, 2)
    return BreakoutEvaluation(
        ratio=ratio,
        is_breakout=ratio > threshold,
        tier=classify_tier(ratio, high_tier_ratio),
    )


def evaluate(
    instrument: Instrument,
    threshold: float,
    *,
    high_tier_ratio: float = HIGH_TIER_RATIO,
) -> BreakoutEvaluation | None:
    return evaluate_volume(
        instrument.last_minute_volume,
        instrument.minute_baseline,
        threshold,
        high_tier_ratio=high_tier_ratio,
    )
