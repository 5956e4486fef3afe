"""Tests for currency normalization and price parsing."""

from decimal import Decimal

import httpx
import pytest

from esim_compare.scrapers.utils.normalizer import (
    CurrencyNormalizer,
    clean_price_string,
    currency_from_symbol,
    detect_currency,
)


RATE_URL = "https://rates.example/latest/USD"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestStaticNormalization:
    """Tests for the static rate table."""

    @pytest.mark.parametrize("amount", [Decimal("4.5"), Decimal("19.999"), Decimal("0.004"), Decimal("12")])
    def test_usd_is_identity_rounded_to_cents(self, amount):
        normalizer = CurrencyNormalizer()
        assert normalizer.normalize(amount, "USD") == round(amount, 2)

    def test_eur_uses_static_rate(self):
        assert CurrencyNormalizer().normalize(Decimal("4.50"), "EUR") == Decimal("4.95")

    def test_gbp_and_jpy(self):
        normalizer = CurrencyNormalizer()
        assert normalizer.normalize(Decimal("10"), "GBP") == Decimal("12.70")
        assert normalizer.normalize(Decimal("1500"), "JPY") == Decimal("10.05")

    def test_lowercase_code(self):
        assert CurrencyNormalizer().normalize("10", "eur") == Decimal("11.00")

    def test_unknown_currency_treated_as_usd(self):
        assert CurrencyNormalizer().normalize(Decimal("7.25"), "XYZ") == Decimal("7.25")

    def test_float_input_has_no_artefacts(self):
        assert CurrencyNormalizer().normalize(0.1 + 0.2, "USD") == Decimal("0.30")

    def test_float_input_rounds_its_decimal_repr(self):
        # Decimal("2.675") rounds half-even to 2.68; round() on the binary float gives 2.67
        assert CurrencyNormalizer().normalize(2.675, "USD") == Decimal("2.68")


class TestLiveRates:
    """Tests for the optional live-rate refresh."""

    async def test_refresh_uses_inverted_rates(self):
        def handler(request):
            return httpx.Response(200, json={"base": "USD", "rates": {"EUR": 0.8, "GBP": 0.5}})

        async with _client(handler) as client:
            normalizer = CurrencyNormalizer(live_rate_url=RATE_URL, client=client)
            assert await normalizer.refresh_rates() is True

        assert normalizer.normalize(Decimal("10"), "EUR") == Decimal("12.50")
        assert normalizer.normalize(Decimal("10"), "GBP") == Decimal("20.00")
        # Not in the payload: static rate still applies
        assert normalizer.normalize(Decimal("100"), "INR") == Decimal("1.20")

    async def test_non_success_response_keeps_static_table(self):
        async with _client(lambda request: httpx.Response(503)) as client:
            normalizer = CurrencyNormalizer(live_rate_url=RATE_URL, client=client)
            assert await normalizer.refresh_rates() is False

        assert normalizer.normalize(Decimal("4.50"), "EUR") == Decimal("4.95")

    async def test_malformed_payload_keeps_static_table(self):
        async with _client(lambda request: httpx.Response(200, json={"unexpected": True})) as client:
            normalizer = CurrencyNormalizer(live_rate_url=RATE_URL, client=client)
            assert await normalizer.refresh_rates() is False

        assert normalizer.get_rate("EUR") == Decimal("1.10")

    async def test_timeout_keeps_static_table(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with _client(handler) as client:
            normalizer = CurrencyNormalizer(live_rate_url=RATE_URL, client=client)
            assert await normalizer.refresh_rates() is False

        assert normalizer.get_rate("GBP") == Decimal("1.27")

    async def test_refresh_without_url_is_noop(self):
        assert await CurrencyNormalizer().refresh_rates() is False

    async def test_ensure_fresh_rates_refetches_only_when_expired(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"rates": {"EUR": 0.8}})

        async with _client(handler) as client:
            normalizer = CurrencyNormalizer(live_rate_url=RATE_URL, client=client, ttl_seconds=3600)
            assert await normalizer.ensure_fresh_rates() is True
            assert await normalizer.ensure_fresh_rates() is True
            assert len(calls) == 1

            normalizer._last_fetched -= 7200
            assert normalizer.live_rates_fresh is False
            assert await normalizer.ensure_fresh_rates() is True
            assert len(calls) == 2

        assert normalizer.get_rate("EUR") == Decimal("1.250000")

    async def test_ensure_fresh_rates_without_url(self):
        assert await CurrencyNormalizer().ensure_fresh_rates() is False


class TestPriceParsing:
    """Tests for symbol and price-string helpers."""

    def test_currency_from_symbol(self):
        assert currency_from_symbol("€") == "EUR"
        assert currency_from_symbol("£") == "GBP"
        assert currency_from_symbol("¤") == "USD"

    def test_detect_currency(self):
        assert detect_currency("€20.00") == "EUR"
        assert detect_currency("US$3.99") == "USD"
        assert detect_currency("20.00") is None

    def test_clean_price_string(self):
        assert clean_price_string("$4.50") == Decimal("4.50")
        assert clean_price_string("4.50 €") == Decimal("4.50")
        assert clean_price_string("US$1,299.00") == Decimal("1299.00")
        assert clean_price_string("4,50 €") == Decimal("4.50")
        assert clean_price_string("¥1,500") == Decimal("1500")
        assert clean_price_string("free") is None
        assert clean_price_string("") is None
