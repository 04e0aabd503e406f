"""Normalized stream events.

The stream decoder converts every inbound message into one of these events.
Only the state store is allowed to apply them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventKind(StrEnum):
    VOLUME = "volume"
    TICKER = "ticker"


class _StreamEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Instrument key (upper-case symbol)")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    raw: dict[str, Any] = Field(default_factory=dict, description="Original payload (as received)")

    @field_validator("key")
    @classmethod
    def _normalize_key(cls, value: str) -> str:
        key = value.strip().upper()
        if not key:
            raise ValueError("key must be non-empty")
        return key


class VolumeUpdate(_StreamEvent):
    """Rolling 1-minute candle volume."""

    kind: EventKind = EventKind.VOLUME
    current_minute_volume: float = Field(ge=0.0)


class TickerUpdate(_StreamEvent):
    """Last price plus the open of the ticker's rolling window."""

    kind: EventKind = EventKind.TICKER
    close_price: float = Field(ge=0.0)
    open_price_of_window: float | None = None


StreamEvent = VolumeUpdate | TickerUpdate
