"""Exchange rate services package."""

from my_finance.services.rates.provider import (
    FALLBACK_RATE,
    ExchangeRateProvider,
    FastForexRateProvider,
    RateFetchError,
    StaticRateProvider,
)

__all__ = [
    "FALLBACK_RATE",
    "ExchangeRateProvider",
    "FastForexRateProvider",
    "RateFetchError",
    "StaticRateProvider",
]
