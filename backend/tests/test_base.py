"""Tests for ScrapedPlan validation and shared scraper behaviour."""

from decimal import Decimal
from uuid import uuid4

import pytest

from esim_compare.core.exceptions import ScraperError
from esim_compare.scrapers.base import BaseProviderScraper, ScrapedPlan, allowance_label, deduplicate_plans
from esim_compare.scrapers.catalog import UNLIMITED_DATA_GB


def plan(**overrides) -> ScrapedPlan:
    fields = dict(
        name="Japan 3GB - 30 Days",
        data_amount_gb=Decimal("3"),
        validity_days=30,
        price_usd=Decimal("11.00"),
        plan_url="https://example.com/jp",
        country_code="JP",
    )
    fields.update(overrides)
    return ScrapedPlan(**fields)


class TestScrapedPlan:
    """Tests for ScrapedPlan construction."""

    def test_defaults(self):
        p = plan()
        assert p.currency == "USD"
        assert p.network_type == "4G/5G"
        assert p.coverage_type == "National"
        assert p.hotspot_allowed is True
        assert p.voice_calls is False
        assert p.sms_included is False

    def test_unlimited_forces_sentinel(self):
        p = plan(is_unlimited=True, data_amount_gb=Decimal("0"))
        assert p.data_amount_gb == UNLIMITED_DATA_GB
        assert p.is_unlimited is True

    @pytest.mark.parametrize("overrides", [
        {"validity_days": 0},
        {"price_usd": Decimal("0")},
        {"price_usd": Decimal("-1")},
        {"data_amount_gb": Decimal("0")},
        {"name": ""},
    ])
    def test_invalid_plans_rejected(self, overrides):
        with pytest.raises(ValueError):
            plan(**overrides)

    def test_immutable(self):
        p = plan()
        with pytest.raises(AttributeError):
            p.price_usd = Decimal("1")

    def test_allowance_label(self):
        assert allowance_label(Decimal("10"), False) == "10GB"
        assert allowance_label(Decimal("1.50"), False) == "1.5GB"
        assert allowance_label(UNLIMITED_DATA_GB, True) == "Unlimited"


class TestDeduplicate:
    def test_first_occurrence_wins(self):
        cheap = plan(price_usd=Decimal("9.00"))
        expensive = plan(price_usd=Decimal("12.00"))
        other = plan(validity_days=7)

        assert deduplicate_plans([cheap, other, expensive]) == [cheap, other]


class StaticScraper(BaseProviderScraper):
    provider_name = "Static"
    default_countries = ("JP", "US")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.closed = False

    async def scrape_country(self, country_code):
        return [plan(country_code=country_code)]

    async def close(self):
        self.closed = True


class TestBaseProviderScraper:
    async def test_scrape_all_default_countries(self, test_settings):
        scraper = StaticScraper(uuid4(), config=test_settings)
        plans = await scraper.scrape_all_countries()

        assert [p.country_code for p in plans] == ["JP", "US"]
        assert scraper.closed is True

    async def test_save_plans_requires_store(self, test_settings):
        with pytest.raises(ScraperError):
            await StaticScraper(uuid4(), config=test_settings).save_plans([plan()])

    async def test_save_plans_writes_through_store(self, store, providers, countries, test_settings):
        scraper = StaticScraper(providers["Airalo"], store=store, config=test_settings)
        result = await scraper.save_plans(await scraper.scrape_country("JP"))

        assert result.success is True
        assert result.plans_added == 1

    def test_build_plan_discards_invalid(self, test_settings):
        scraper = StaticScraper(uuid4(), config=test_settings)
        assert scraper.build_plan(name="x", data_amount_gb=Decimal("1"), validity_days=0,
                                  price_usd=Decimal("1"), plan_url="u", country_code="JP") is None
