"""volsurge - Async volume breakout scanner for exchange futures streams."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("volsurge")
except PackageNotFoundError:
    __version__ = "0+local"
from volsurge._stream import ConnectionState, StreamMultiplexer
from volsurge.baseline import compute_minute_baseline
from volsurge.config import ScannerConfig, SelectionMode
from volsurge.detector import BreakoutEvaluation, evaluate, evaluate_volume
from volsurge.exceptions import (
    HistoryFetchError,
    MalformedMessageError,
    StaleGenerationError,
    StreamClosedError,
    StreamError,
    UniverseFetchError,
    VolsurgeConfigError,
    VolsurgeError,
    VolsurgeTransportError,
)
from volsurge.models import AlertEvent, AlertTier, DailyCandle, Instrument, UniverseTicker
from volsurge.scanner import ScannerStatus, VolumeScanner
from volsurge.selector import RankWindow, normalize_range
from volsurge.state.alerts import AlertLog
from volsurge.state.store import InstrumentStore

__all__ = [
    "__version__",
    "AlertEvent",
    "AlertLog",
    "AlertTier",
    "BreakoutEvaluation",
    "ConnectionState",
    "DailyCandle",
    "HistoryFetchError",
    "Instrument",
    "InstrumentStore",
    "MalformedMessageError",
    "RankWindow",
    "ScannerConfig",
    "ScannerStatus",
    "SelectionMode",
    "StaleGenerationError",
    "StreamClosedError",
    "StreamError",
    "StreamMultiplexer",
    "UniverseFetchError",
    "UniverseTicker",
    "VolsurgeConfigError",
    "VolsurgeError",
    "VolsurgeTransportError",
    "VolumeScanner",
    "compute_minute_baseline",
    "evaluate",
    "evaluate_volume",
    "normalize_range",
]
