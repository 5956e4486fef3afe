"""Currency normalization and price parsing utilities."""

import re
import time
from decimal import Decimal, InvalidOperation
from typing import Dict, Mapping, Optional, Union

import httpx
import structlog

from esim_compare.scrapers.catalog import CANONICAL_CURRENCY, CURRENCY_SYMBOLS, STATIC_USD_RATES

logger = structlog.get_logger(__name__)


Number = Union[Decimal, int, float, str]

_CENTS = Decimal("0.01")
_DECIMAL_COMMA = re.compile(r"\d+,\d{1,2}")


def to_decimal(value: Number) -> Decimal:
    """Convert a scraped number to Decimal without float artefacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class CurrencyNormalizer:
    """Converts scraped prices to USD.

    Uses a static rate table by default.  ``refresh_rates`` optionally
    pulls live rates from an exchange-rate API (USD base); any failure
    leaves the static table in charge.  Live rates are cached in memory
    for ``ttl_seconds``.

    An unrecognized currency code is treated as already-USD (rate 1.0).
    """

    def __init__(
        self,
        rates: Mapping[str, Decimal] = STATIC_USD_RATES,
        live_rate_url: Optional[str] = None,
        timeout: float = 5.0,
        ttl_seconds: int = 3600,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the normalizer.

        Args:
            rates: Static multipliers from currency to USD
            live_rate_url: Exchange-rate endpoint returning {"rates": {...}} for base USD
            timeout: Live fetch timeout in seconds
            ttl_seconds: How long fetched live rates stay valid
            client: Optional shared httpx client (mainly for tests)
        """
        self._static_rates = rates
        self._live_rate_url = live_rate_url
        self._timeout = timeout
        self._ttl_seconds = ttl_seconds
        self._client = client
        self._live_rates: Dict[str, Decimal] = {}
        self._last_fetched: float = 0

    def get_rate(self, currency: str) -> Decimal:
        """Get the multiplier from ``currency`` to USD.

        Uses live rates if available and fresh, otherwise the static table.
        """
        currency = (currency or CANONICAL_CURRENCY).upper()
        if self.live_rates_fresh:
            rate = self._live_rates.get(currency)
            if rate is not None:
                return rate
        return self._static_rates.get(currency, Decimal("1"))

    def normalize(self, amount: Number, currency: str) -> Decimal:
        """Convert an amount in ``currency`` to USD, rounded to cents.

        Rounding is half-even on the decimal value.  A float goes through
        its shortest repr first, so ``2.675`` is the decimal 2.675 and
        gives ``2.68``; the result equals ``round(amount, 2)`` for Decimal
        input, not for binary-float input.

        Args:
            amount: Price in the original currency
            currency: 3-letter currency code

        Returns:
            USD amount quantized to 2 decimal places
        """
        value = to_decimal(amount) * self.get_rate(currency)
        return value.quantize(_CENTS)

    async def refresh_rates(self) -> bool:
        """Fetch live exchange rates.

        Returns:
            True if live rates were updated, False if the static table stays in use
        """
        if not self._live_rate_url:
            return False

        try:
            data = await self._fetch_rates_payload()
            rates_from_usd = data["rates"]
            new_rates: Dict[str, Decimal] = {CANONICAL_CURRENCY: Decimal("1")}
            for code in self._static_rates:
                rate_from_usd = rates_from_usd.get(code)
                if rate_from_usd is None:
                    continue
                rate_from_usd = Decimal(str(rate_from_usd))
                if rate_from_usd > 0:
                    # API gives USD→X, we need X→USD (inverse)
                    new_rates[code] = (Decimal("1") / rate_from_usd).quantize(Decimal("0.000001"))
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError, InvalidOperation) as e:
            logger.warning("exchange_rate_fetch_failed", url=self._live_rate_url, error=str(e))
            return False

        if len(new_rates) == 1:
            logger.warning("exchange_rate_payload_empty", url=self._live_rate_url)
            return False

        self._live_rates = new_rates
        self._last_fetched = time.time()
        logger.info("exchange_rates_updated", rates={k: str(v) for k, v in new_rates.items()})
        return True

    @property
    def live_rates_fresh(self) -> bool:
        return bool(self._live_rates) and time.time() - self._last_fetched < self._ttl_seconds

    async def ensure_fresh_rates(self) -> bool:
        """Refresh live rates only when they are missing or expired.

        Batch runs call this before each provider.

        Returns:
            True if fresh live rates are in use afterwards
        """
        if not self._live_rate_url:
            return False
        if self.live_rates_fresh:
            return True
        return await self.refresh_rates()

    async def _fetch_rates_payload(self) -> dict:
        if self._client is not None:
            resp = await self._client.get(self._live_rate_url, timeout=self._timeout)
            resp.raise_for_status()
            return resp.json()
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.get(self._live_rate_url)
            resp.raise_for_status()
            return resp.json()


def currency_from_symbol(symbol: str) -> str:
    """Map a currency symbol to its code; unknown symbols count as USD."""
    return CURRENCY_SYMBOLS.get(symbol, CANONICAL_CURRENCY)


def detect_currency(price_text: str) -> Optional[str]:
    """Detect the currency of a price string like "€20.00" or "US$3.99".

    Returns:
        Currency code, or None if no known symbol is present
    """
    if not price_text:
        return None
    for symbol, code in CURRENCY_SYMBOLS.items():
        if symbol in price_text:
            return code
    return None


def clean_price_string(raw: str) -> Optional[Decimal]:
    """Parse a price string and extract its numeric value.

    Handles "$4.50", "4.50 €", "4,50 €", "US$1,299.00".

    Returns:
        Decimal price value, or None if parsing fails
    """
    if not raw:
        return None

    cleaned = re.sub(r"[^\d.,]", "", raw)
    if _DECIMAL_COMMA.fullmatch(cleaned):
        cleaned = cleaned.replace(",", ".")
    else:
        # Thousand separators
        cleaned = cleaned.replace(",", "")
    cleaned = cleaned.strip(".")

    if not cleaned:
        return None

    try:
        return Decimal(cleaned)
    except InvalidOperation:
        return None
