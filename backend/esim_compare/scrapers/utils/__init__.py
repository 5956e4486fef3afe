"""Scraper utilities: browser session, retrying fetcher, currency normalization."""

from .normalizer import (
    CurrencyNormalizer,
    clean_price_string,
    currency_from_symbol,
    detect_currency,
    to_decimal,
)
from .retry import RetryingFetcher, fetch_with_retry
from .user_agents import (
    BROWSER_EXTRA_HEADERS,
    DEFAULT_USER_AGENT,
    FETCH_HEADERS,
    USER_AGENTS,
    get_random_user_agent,
)


__all__ = [
    # Currency
    "CurrencyNormalizer",
    "clean_price_string",
    "currency_from_symbol",
    "detect_currency",
    "to_decimal",
    # Plain HTTP
    "RetryingFetcher",
    "fetch_with_retry",
    # Headers
    "BROWSER_EXTRA_HEADERS",
    "DEFAULT_USER_AGENT",
    "FETCH_HEADERS",
    "USER_AGENTS",
    "get_random_user_agent",
]
