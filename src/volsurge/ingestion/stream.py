"""Combined stream decoding.

Translates raw combined-stream messages into normalized state-store events
and routes each one to exactly one instrument key.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from volsurge._constants import TICKER_STREAM_SUFFIX, VOLUME_STREAM_SUFFIX
from volsurge.exceptions import MalformedMessageError
from volsurge.ingestion.normalize import non_negative_or_zero, safe_float, stream_symbol
from volsurge.state.events import StreamEvent, TickerUpdate, VolumeUpdate

_KLINE_EVENT = "kline"
_MINI_TICKER_EVENT = "24hrMiniTicker"


def stream_names(key: str) -> tuple[str, str]:
    """Volume and ticker stream names for one instrument."""
    symbol = key.lower()
    return f"{symbol}@{VOLUME_STREAM_SUFFIX}", f"{symbol}@{TICKER_STREAM_SUFFIX}"


def build_stream_url(base_url: str, keys: list[str]) -> str:
    """Combined stream URL subscribing to both streams of every key."""
    streams = "/".join(name for key in keys for name in stream_names(key))
    return f"{base_url.rstrip('/')}/stream?streams={streams}"


class _KlinePayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    v: float = Field(..., description="Base asset volume of the candle so far")

    @field_validator("v", mode="before")
    @classmethod
    def _coerce_volume(cls, value: Any) -> float:
        parsed = non_negative_or_zero(value)
        if parsed is None:
            raise ValueError(f"invalid volume {value!r}")
        return parsed


class _KlineEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    k: _KlinePayload


class _MiniTickerEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    c: float
    o: float | None = None

    @field_validator("c", mode="before")
    @classmethod
    def _coerce_close(cls, value: Any) -> float:
        parsed = non_negative_or_zero(value)
        if parsed is None:
            raise ValueError(f"invalid close {value!r}")
        return parsed

    @field_validator("o", mode="before")
    @classmethod
    def _coerce_open(cls, value: Any) -> float | None:
        return safe_float(value)


def decode_message(
    message: Mapping[str, Any],
    known_keys: Mapping[str, str],
) -> StreamEvent | None:
    """Decode one combined-stream message.

    Parameters
    ----------
    message
        Parsed JSON message, ``{"stream": ..., "data": {...}}``.
    known_keys
        Lower-cased symbol to instrument key for the current subscription.

    Returns ``None`` for control frames (no ``data``), unknown instruments
    and event types the engine does not track. Raises
    :class:`MalformedMessageError` when a tracked payload cannot be parsed.
    """
    data = message.get("data")
    if not isinstance(data, Mapping):
        return None

    stream = message.get("stream")
    if not isinstance(stream, str) or not stream:
        raise MalformedMessageError(f"message without stream identifier: {message!r:.200}")

    key = known_keys.get(stream_symbol(stream))
    if key is None:
        return None

    event_type = data.get("e")
    raw = dict(data)
    try:
        if event_type == _KLINE_EVENT:
            kline = _KlineEnvelope.model_validate(data)
            return VolumeUpdate(key=key, current_minute_volume=kline.k.v, raw=raw)
        if event_type == _MINI_TICKER_EVENT:
            ticker = _MiniTickerEnvelope.model_validate(data)
            return TickerUpdate(key=key, close_price=ticker.c, open_price_of_window=ticker.o, raw=raw)
    except ValidationError as exc:
        raise MalformedMessageError(f"invalid {event_type} payload on {stream}: {exc}") from exc
    return None
