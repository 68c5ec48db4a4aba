"""Online exchange-rate fetcher — BCRP statistics API.

Only fetches the USD/PEN interbank sell rate (series PD04640PD).
All fetches are user-triggered (no background polling).
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

import requests

from .config import DEFAULT_HTTP_TIMEOUT
from .exceptions import FetchError

logger = logging.getLogger(__name__)

_BCRP_SERIES = "PD04640PD"

# BCRP endpoint: /series/api/{codes}/{format}; default period is the latest months
_BCRP_URL = "https://estadisticas.bcrp.gob.pe/estadisticas/series/api/{series}/json"


def fetch_exchange_rate(timeout: float = DEFAULT_HTTP_TIMEOUT) -> Decimal:
    """Fetch the latest published USD/PEN rate.

    Returns PEN per USD as a Decimal (e.g. 3.75).
    Raises FetchError on any error (network, parsing, missing data).
    """
    url = _BCRP_URL.format(series=_BCRP_SERIES)
    logger.info("Fetching USD/PEN exchange rate from %s", url)
    try:
        resp = requests.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise FetchError(f"BCRP API request failed: {exc}") from exc

    try:
        data = resp.json()
        # {"config": {...}, "periods": [{"name": "02.Ene.24", "values": ["3.70"]}, ...]}
        periods = data["periods"]
        last_value = None
        for period in periods:
            raw = str(period["values"][0]).strip()
            if raw and raw.lower() != "n.d.":
                last_value = raw
        if last_value is None:
            raise FetchError("BCRP returned no exchange-rate observations.")
        rate = Decimal(last_value)
    except (KeyError, IndexError, TypeError, ValueError, InvalidOperation) as exc:
        raise FetchError(f"Failed to parse BCRP response: {exc}") from exc

    if rate <= 0:
        raise FetchError(f"BCRP returned a non-positive exchange rate: {rate}")
    logger.info("Fetched USD/PEN exchange rate %s", rate)
    return rate
