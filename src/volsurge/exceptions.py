"""Custom exception hierarchy for volsurge."""

from __future__ import annotations


class VolsurgeError(Exception):
    """Base exception for all volsurge errors."""


class VolsurgeConfigError(VolsurgeError):
    """Invalid or missing configuration."""


class VolsurgeTransportError(VolsurgeError):
    """HTTP-level failure (network, non-200, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class UniverseFetchError(VolsurgeError):
    """The instrument universe snapshot could not be fetched or parsed.

    The selector recovers by falling back to the configured watchlist with
    placeholder prices.  Raised to the caller only when that fallback has
    nothing to offer (empty watchlist).
    """


class HistoryFetchError(VolsurgeError):
    """Daily candle history for one instrument is unavailable.

    The instrument is dropped from the subscription set; the rest of the
    batch carries on.
    """

    def __init__(self, message: str, *, symbol: str = "") -> None:
        self.symbol = symbol
        super().__init__(message)


class StreamError(VolsurgeError):
    """The multiplexed WebSocket stream failed."""


class StreamClosedError(StreamError):
    """The remote end closed the multiplexed stream."""


class MalformedMessageError(VolsurgeError):
    """A single stream message could not be decoded.

    The message is dropped; the consumer loop keeps running.
    """


class StaleGenerationError(VolsurgeError):
    """Work started for a configuration that has since been replaced."""
