"""Internal constants shared across the library."""

REST_BASE_URL = "https://fapi.binance.com"
STREAM_BASE_URL = "wss://fstream.binance.com"
USER_AGENT = "volsurge/0.1"

UNIVERSE_ENDPOINT = "/fapi/v1/ticker/24hr"
KLINES_ENDPOINT = "/fapi/v1/klines"

QUOTE_ASSET = "USDT"
CONTRACT_DELIMITER = "_"
EXCLUDED_PREFIXES: tuple[str, ...] = ("USDC",)

DEFAULT_WATCHLIST: tuple[str, ...] = (
    "BTCUSDT",
    "ETHUSDT",
    "SOLUSDT",
    "BNBUSDT",
    "DOGEUSDT",
    "XRPUSDT",
    "PEPEUSDT",
    "WIFUSDT",
    "ORDIUSDT",
    "SUIUSDT",
    "AVAXUSDT",
    "SHIBUSDT",
)

# ------------------------------------------------------------------
# Ranked window bounds (1-based, inclusive)
# ------------------------------------------------------------------

RANK_MIN = 1
RANK_MAX = 300
DEFAULT_RANK_END = 100

# ------------------------------------------------------------------
# Baseline
# ------------------------------------------------------------------

MINUTES_PER_DAY = 1440
HISTORY_CANDLES = 7
BASELINE_WINDOW = 5
#: Baseline used whenever history is missing or averages to zero.
FALLBACK_MINUTE_BASELINE = 1.0

# ------------------------------------------------------------------
# Detection and alerting
# ------------------------------------------------------------------

HIGH_TIER_RATIO = 15.0
THRESHOLD_MIN = 1.0
THRESHOLD_MAX = 10.0
DEFAULT_THRESHOLD = 2.0
DEBOUNCE_MS = 5000
ALERT_LOG_SIZE = 50

# ------------------------------------------------------------------
# Stream names
# ------------------------------------------------------------------

VOLUME_STREAM_SUFFIX = "kline_1m"
TICKER_STREAM_SUFFIX = "miniTicker"
