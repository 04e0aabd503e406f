"""24h ticker universe endpoint.

Endpoint:
  - /fapi/v1/ticker/24hr (all symbols)
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from volsurge._constants import UNIVERSE_ENDPOINT
from volsurge._transport import Transport
from volsurge.exceptions import UniverseFetchError, VolsurgeTransportError
from volsurge.models.market import UniverseTicker

_logger = logging.getLogger(__name__)


async def fetch_universe(transport: Transport) -> list[UniverseTicker]:
    """Fetch every tradable instrument with its 24h change and last price.

    Rows that fail validation are skipped; a payload that is not a list,
    or a transport failure, raises :class:`UniverseFetchError`.
    """
    try:
        payload = await transport.get_json(UNIVERSE_ENDPOINT)
    except VolsurgeTransportError as exc:
        raise UniverseFetchError(f"Universe fetch failed: {exc}") from exc

    if not isinstance(payload, list):
        raise UniverseFetchError(f"Universe payload is not a list: {type(payload).__name__}")

    tickers: list[UniverseTicker] = []
    for row in payload:
        try:
            tickers.append(UniverseTicker.model_validate(row))
        except ValidationError:
            _logger.debug("Skipping unparseable universe row %r", row)
    return tickers
