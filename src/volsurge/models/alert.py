"""Alert event model."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AlertTier(StrEnum):
    NORMAL = "normal"
    HIGH = "high"


class AlertEvent(BaseModel):
    """An accepted volume breakout.

    Refers to its instrument by key only; the instrument may leave the
    store later without invalidating the event.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    instrument_key: str
    price_at_alert: float = Field(ge=0.0)
    ratio: float
    raw_volume: float = Field(ge=0.0)
    tier: AlertTier
    emitted_at: datetime

    @field_validator("ratio")
    @classmethod
    def _round_ratio(cls, value: float) -> float:
        return round(value, 2)

    @field_validator("emitted_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def is_high(self) -> bool:
        return self.tier == AlertTier.HIGH

    @property
    def message(self) -> str:
        return f"Volume surge {self.ratio}x"
