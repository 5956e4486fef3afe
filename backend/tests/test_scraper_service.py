"""Tests for batch orchestration across providers and countries."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from esim_compare.core.exceptions import BrowserLaunchError, ProviderNotFoundError
from esim_compare.db.store import PLANS_TABLE, SCRAPING_LOGS_TABLE
from esim_compare.scrapers.base import BaseProviderScraper, ScrapedPlan
from esim_compare.scrapers.factory import ScraperFactory
from esim_compare.scrapers.scraper_service import ScraperService


AIRALO_US = "https://www.airalo.com/united-states-esim"
AIRALO_DE = "https://www.airalo.com/germany-esim"

AIRALO_PAGE = """
<h2>United States</h2>
<a href="/united-states-esim/change-7days-1gb"><span>$4.50</span></a>
<a href="/united-states-esim/change-30days-10gb"><span>$26.00</span></a>
"""


@pytest.fixture
def sessions(fake_session_cls):
    """Fake browser sessions per provider: Airalo serves US, fails DE; Saily can't launch."""
    return {
        "Airalo": fake_session_cls(pages={AIRALO_US: AIRALO_PAGE}, failing_urls=[AIRALO_DE]),
        "Saily": fake_session_cls(launch_error=BrowserLaunchError("Saily", "Executable doesn't exist")),
        "Holafly": fake_session_cls(),
    }


@pytest.fixture
def factory(store, test_settings, sessions):
    return ScraperFactory(store, config=test_settings, browser_session_factory=lambda name: sessions[name])


class ExplodingScraper(BaseProviderScraper):
    """Raises for GB, returns one plan elsewhere."""

    provider_name = "Airalo"

    async def scrape_country(self, country_code):
        if country_code == "GB":
            raise RuntimeError("page structure changed")
        return [ScrapedPlan(
            name=f"{country_code} 1GB - 7 Days",
            data_amount_gb=Decimal("1"),
            validity_days=7,
            price_usd=Decimal("5.00"),
            plan_url="https://example.com",
            country_code=country_code,
        )]


class TestRunProvider:
    """Tests for ScraperService.run_provider."""

    async def test_failed_navigation_contributes_zero_plans(
        self, store, providers, countries, factory, test_settings, sessions
    ):
        service = ScraperService(factory, config=test_settings)
        outcomes = await service.run_provider("Airalo", ["US", "DE"])

        us, de = outcomes
        assert (us.country, us.plans_found, us.plans_added, us.success) == ("US", 2, 2, True)
        assert (de.country, de.plans_found, de.plans_added, de.success) == ("DE", 0, 0, True)

        runs = await store.select_many(SCRAPING_LOGS_TABLE, {"provider_id": providers["Airalo"]})
        assert [run["status"] for run in runs] == ["completed"]
        de_plans = await store.select_many(PLANS_TABLE, {"country_id": countries["DE"]})
        assert de_plans == []
        assert sessions["Airalo"].close_calls == 1

    async def test_country_exception_does_not_stop_loop(self, store, providers, countries, factory, test_settings):
        factory.register_scraper("Airalo", ExplodingScraper)
        service = ScraperService(factory, config=test_settings)

        outcomes = await service.run_provider("Airalo", ["GB", "US"])

        assert outcomes[0].success is False
        assert outcomes[0].errors == ["page structure changed"]
        assert outcomes[1].plans_added == 1

    async def test_launch_failure_propagates(self, store, providers, factory, test_settings, sessions):
        service = ScraperService(factory, config=test_settings)
        with pytest.raises(BrowserLaunchError):
            await service.run_provider("Saily", ["US", "GB"])
        assert sessions["Saily"].close_calls == 1

    async def test_unknown_provider(self, store, providers, factory, test_settings):
        with pytest.raises(ProviderNotFoundError):
            await ScraperService(factory, config=test_settings).run_provider("Nomad", ["US"])

    async def test_dry_run_writes_nothing(self, store, providers, countries, factory, test_settings):
        service = ScraperService(factory, config=test_settings, dry_run=True)
        outcomes = await service.run_provider("Airalo", ["US"])

        assert outcomes[0].plans_found == 2
        assert outcomes[0].plans_added == 0
        assert await store.select_many(SCRAPING_LOGS_TABLE) == []


class TestRunAll:
    """Tests for ScraperService.run_all."""

    async def test_provider_failure_is_isolated(self, store, providers, countries, factory, test_settings):
        report = await ScraperService(factory, config=test_settings).run_all(["US", "DE"])

        assert [(o.provider, o.country) for o in report.outcomes] == [
            ("Airalo", "US"),
            ("Airalo", "DE"),
            ("Holafly", "US"),
            ("Holafly", "DE"),
        ]
        assert len(report.provider_errors) == 1
        assert report.provider_errors[0].startswith("Saily:")
        assert report.total_plans_found == 2
        assert report.total_plans_added == 2
        assert report.success is False

    async def test_selected_providers_only(self, store, providers, countries, factory, test_settings):
        report = await ScraperService(factory, config=test_settings).run_all(["US"], providers=["Airalo"])

        assert report.success is True
        assert report.total_errors == 0
        assert [o.provider for o in report.outcomes] == ["Airalo"]

    async def test_live_rates_checked_before_each_provider(self, store, providers, countries, factory, test_settings):
        factory.normalizer.ensure_fresh_rates = AsyncMock(return_value=False)

        await ScraperService(factory, config=test_settings).run_all(["US"], providers=["Airalo", "Holafly"])

        assert factory.normalizer.ensure_fresh_rates.await_count == 2
