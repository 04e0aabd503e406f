"""Tracked instrument model."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from volsurge._constants import FALLBACK_MINUTE_BASELINE, QUOTE_ASSET


def display_name_for(key: str, quote_asset: str = QUOTE_ASSET) -> str:
    """Cosmetic name: the symbol without its quote asset suffix."""
    if quote_asset and key.endswith(quote_asset) and len(key) > len(quote_asset):
        return key[: -len(quote_asset)]
    return key


class Instrument(BaseModel):
    """Observable state of one tracked symbol.

    Instances are immutable; the state store replaces an entry with an
    updated copy on every mutation.

    Parameters
    ----------
    key : str
        Exchange symbol, unique within the store.
    display_name : str
        Derived from ``key`` when not given.
    price : float
        Last known price.
    change_24h : float
        Percentage change over the trailing 24h window.
    last_minute_volume : float
        Volume of the current (or last completed) 1-minute candle.
    minute_baseline : float
        Expected per-minute volume. Never zero or negative.
    last_updated_at : datetime
        Time of the last mutation (UTC).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str
    display_name: str = ""
    price: float = Field(default=0.0, ge=0.0)
    change_24h: float = 0.0
    last_minute_volume: float = Field(default=0.0, ge=0.0)
    minute_baseline: float = FALLBACK_MINUTE_BASELINE
    last_updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="before")
    @classmethod
    def _derive_display_name(cls, values: Any) -> Any:
        if isinstance(values, dict) and not values.get("display_name") and values.get("key"):
            values = dict(values)
            values["display_name"] = display_name_for(str(values["key"]))
        return values

    @field_validator("key")
    @classmethod
    def _normalize_key(cls, value: str) -> str:
        key = value.strip().upper()
        if not key:
            raise ValueError("key must be non-empty")
        return key

    @field_validator("minute_baseline", mode="before")
    @classmethod
    def _baseline_positive(cls, value: Any) -> float:
        try:
            baseline = float(value)
        except (TypeError, ValueError):
            return FALLBACK_MINUTE_BASELINE
        if baseline != baseline or baseline <= 0:
            return FALLBACK_MINUTE_BASELINE
        return baseline

    @field_validator("last_updated_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
