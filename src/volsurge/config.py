"""Scanner configuration for volsurge."""

from __future__ import annotations

import dataclasses
import os
from enum import StrEnum
from typing import Any

from volsurge._constants import (
    ALERT_LOG_SIZE,
    DEBOUNCE_MS,
    DEFAULT_THRESHOLD,
    DEFAULT_WATCHLIST,
    EXCLUDED_PREFIXES,
    HIGH_TIER_RATIO,
    HISTORY_CANDLES,
    QUOTE_ASSET,
    REST_BASE_URL,
    STREAM_BASE_URL,
    THRESHOLD_MAX,
    THRESHOLD_MIN,
)
from volsurge.exceptions import VolsurgeConfigError


class SelectionMode(StrEnum):
    RANKED = "ranked"
    WATCHLIST = "watchlist"


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip().upper() for item in value.split(",") if item.strip())


def _env_int(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise VolsurgeConfigError(f"{name} must be an integer, got {value!r}") from exc


def validate_threshold(value: float) -> float:
    """Return *value* as float, raising if it is outside the supported range."""
    try:
        threshold = float(value)
    except (TypeError, ValueError) as exc:
        raise VolsurgeConfigError(f"threshold must be a number, got {value!r}") from exc
    if not THRESHOLD_MIN <= threshold <= THRESHOLD_MAX:
        raise VolsurgeConfigError(f"threshold must be between {THRESHOLD_MIN} and {THRESHOLD_MAX}, got {threshold}")
    return threshold


@dataclasses.dataclass(frozen=True)
class ScannerConfig:
    """Scanner configuration.

    Parameters
    ----------
    mode : SelectionMode
        ``ranked`` picks a window of the 24h gainers board, ``watchlist``
        tracks the fixed ``watchlist`` symbols.
    rank_start : int or None
        1-based first rank of the window (inclusive). Normalized before use.
    rank_end : int or None
        1-based last rank of the window (inclusive). Normalized before use.
    watchlist : tuple of str
        Symbols tracked in ``watchlist`` mode, and the fallback set when
        the universe snapshot is unavailable.
    threshold : float
        Breakout ratio threshold (strictly exceeded), 1.0 to 10.0.
    notifications_enabled : bool
        Whether ``high`` tier alerts reach the strong notification hook.
    rest_base_url : str
        REST API base URL.
    stream_base_url : str
        WebSocket base URL for combined streams.
    quote_asset : str
        Quote currency suffix ranked instruments must carry.
    excluded_prefixes : tuple of str
        Symbol prefixes excluded from ranking (stablecoin-quoted pairs).
    history_limit : int
        Number of daily candles requested per instrument.
    history_concurrency : int
        Maximum concurrent candle requests during initialization.
    debounce_ms : int
        Per-instrument alert suppression window in milliseconds.
    alert_log_size : int
        Maximum number of alerts kept in the log.
    high_tier_ratio : float
        Ratio at or above which an alert is classified ``high``.
    request_timeout : float
        Total timeout in seconds for each REST request.
    heartbeat : float
        WebSocket heartbeat interval in seconds.
    """

    mode: SelectionMode = SelectionMode.RANKED
    rank_start: int | None = 20
    rank_end: int | None = 30
    watchlist: tuple[str, ...] = DEFAULT_WATCHLIST
    threshold: float = DEFAULT_THRESHOLD
    notifications_enabled: bool = False
    rest_base_url: str = REST_BASE_URL
    stream_base_url: str = STREAM_BASE_URL
    quote_asset: str = QUOTE_ASSET
    excluded_prefixes: tuple[str, ...] = EXCLUDED_PREFIXES
    history_limit: int = HISTORY_CANDLES
    history_concurrency: int = 10
    debounce_ms: int = DEBOUNCE_MS
    alert_log_size: int = ALERT_LOG_SIZE
    high_tier_ratio: float = HIGH_TIER_RATIO
    request_timeout: float = 10.0
    heartbeat: float = 30.0

    def __post_init__(self) -> None:
        try:
            mode = SelectionMode(self.mode)
        except ValueError as exc:
            raise VolsurgeConfigError(f"unknown selection mode {self.mode!r}") from exc
        object.__setattr__(self, "mode", mode)
        object.__setattr__(self, "threshold", validate_threshold(self.threshold))
        object.__setattr__(self, "watchlist", tuple(s.strip().upper() for s in self.watchlist if s.strip()))
        if self.alert_log_size <= 0:
            raise VolsurgeConfigError("alert_log_size must be positive")
        if self.debounce_ms < 0:
            raise VolsurgeConfigError("debounce_ms must not be negative")
        if self.history_concurrency <= 0:
            raise VolsurgeConfigError("history_concurrency must be positive")

    def replace(self, **changes: Any) -> ScannerConfig:
        """Return a copy with *changes* applied (and re-validated)."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_env(cls, **overrides: Any) -> ScannerConfig:
        """Create configuration from environment variables.

        Reads optional ``VOLSURGE_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        ScannerConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "VOLSURGE_MODE": "mode",
            "VOLSURGE_REST_BASE_URL": "rest_base_url",
            "VOLSURGE_STREAM_BASE_URL": "stream_base_url",
            "VOLSURGE_QUOTE_ASSET": "quote_asset",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = val.strip()

        _ENV_INT_MAP = {
            "VOLSURGE_RANK_START": "rank_start",
            "VOLSURGE_RANK_END": "rank_end",
            "VOLSURGE_HISTORY_CONCURRENCY": "history_concurrency",
            "VOLSURGE_DEBOUNCE_MS": "debounce_ms",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_int(env_key, val)

        threshold_env = env.get("VOLSURGE_THRESHOLD")
        if threshold_env is not None and "threshold" not in overrides:
            try:
                config_kwargs["threshold"] = float(threshold_env)
            except ValueError as exc:
                raise VolsurgeConfigError(f"VOLSURGE_THRESHOLD must be a number, got {threshold_env!r}") from exc

        watchlist_env = env.get("VOLSURGE_WATCHLIST")
        if watchlist_env is not None and "watchlist" not in overrides:
            config_kwargs["watchlist"] = _env_list(watchlist_env)

        if "notifications_enabled" not in overrides:
            config_kwargs["notifications_enabled"] = _env_bool(env.get("VOLSURGE_NOTIFICATIONS"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
