"""
Exchange Rate Provider

DESIGN DECISION: The EUR to RSD rate comes from FastForex, which only
quotes against USD. We ask for USD->EUR and USD->RSD and divide:

    EUR->RSD = (USD->RSD) / (USD->EUR)

A rate refresh must NEVER fail the app. Whatever goes wrong (no API key,
network down, HTTP error, unexpected payload, a zero rate) we log a
warning and hand back the fallback rate instead. There is no retry: a
refresh is user-triggered and the fallback is good enough until the next
one.

The HTTP calls are blocking (requests), so they run in a worker thread
to keep the event loop free.
"""

import asyncio
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests
import structlog

from my_finance.config import get_settings


logger = structlog.get_logger(__name__)

FALLBACK_RATE = Decimal("117")

# The quotient of two quotes is rounded to this before it is handed out
RATE_QUANTUM = Decimal("0.000001")


class RateFetchError(Exception):
    """The remote service did not produce a usable rate."""
    pass


class ExchangeRateProvider(ABC):
    """
    Source of the EUR to RSD exchange rate.

    `last_was_fallback` tells the caller whether the most recent
    fetch_rate() returned the fallback instead of a live rate.
    """

    last_was_fallback: bool = False

    @abstractmethod
    async def fetch_rate(self) -> Decimal:
        """Current EUR to RSD rate. Always positive; never raises."""
        pass


class StaticRateProvider(ExchangeRateProvider):
    """Always returns the same rate. Used offline and in tests."""

    def __init__(self, rate: Decimal = FALLBACK_RATE):
        self._rate = Decimal(rate)

    async def fetch_rate(self) -> Decimal:
        self.last_was_fallback = False
        return self._rate


class FastForexRateProvider(ExchangeRateProvider):
    """
    Live rates from the FastForex `fetch-one` endpoint.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        fallback_rate: Optional[Decimal] = None,
        session: Optional[requests.Session] = None,
    ):
        settings = get_settings()
        self._api_key = api_key if api_key is not None else settings.fastforex.api_key
        self._base_url = (base_url or settings.fastforex.base_url).rstrip("/")
        self._timeout = timeout_seconds or settings.fastforex.timeout_seconds
        self._fallback = (
            fallback_rate if fallback_rate is not None
            else settings.app.fallback_exchange_rate
        )
        self._http = session or requests

    def _fetch_one(self, to_currency: str) -> Decimal:
        """USD -> `to_currency` rate from the `result` object of the response."""
        response = self._http.get(
            f"{self._base_url}/fetch-one",
            params={"from": "USD", "to": to_currency},
            headers={"X-API-Key": self._api_key, "Accept": "application/json"},
            timeout=self._timeout,
        )
        response.raise_for_status()

        try:
            payload = response.json()
            value = Decimal(str(payload["result"][to_currency]))
        except (ValueError, KeyError, TypeError, InvalidOperation) as e:
            raise RateFetchError(f"Unexpected response for USD/{to_currency}: {e}") from e

        if not value.is_finite() or value <= 0:
            raise RateFetchError(f"Non-positive USD/{to_currency} rate: {value}")
        return value

    def fetch_rate_sync(self) -> Decimal:
        """Blocking variant of fetch_rate()."""
        if not self._api_key:
            logger.warning("fastforex_api_key_missing", fallback=str(self._fallback))
            self.last_was_fallback = True
            return self._fallback

        try:
            usd_eur = self._fetch_one("EUR")
            usd_rsd = self._fetch_one("RSD")
        except (requests.RequestException, RateFetchError) as e:
            logger.warning(
                "exchange_rate_fetch_failed",
                error=str(e),
                fallback=str(self._fallback),
            )
            self.last_was_fallback = True
            return self._fallback

        rate = (usd_rsd / usd_eur).quantize(RATE_QUANTUM)
        logger.info("exchange_rate_fetched", rate=str(rate))
        self.last_was_fallback = False
        return rate

    async def fetch_rate(self) -> Decimal:
        return await asyncio.to_thread(self.fetch_rate_sync)
