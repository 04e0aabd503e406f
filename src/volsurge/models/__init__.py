"""Public data models."""

from volsurge.models.alert import AlertEvent, AlertTier
from volsurge.models.instrument import Instrument, display_name_for
from volsurge.models.market import DailyCandle, UniverseTicker

__all__ = [
    "AlertEvent",
    "AlertTier",
    "DailyCandle",
    "Instrument",
    "UniverseTicker",
    "display_name_for",
]
