"""Scraper orchestration service.

Runs providers and countries one after another: scrape a country, save
its plans when any were found, move on.  A failure in one country never
stops the others; a provider whose browser cannot start is skipped.
"""

import asyncio
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import structlog

from esim_compare.config import Settings, settings as default_settings
from esim_compare.core.exceptions import BrowserLaunchError
from esim_compare.scrapers.base import BaseProviderScraper
from esim_compare.scrapers.factory import ScraperFactory

logger = structlog.get_logger(__name__)


@dataclass
class CountryOutcome:
    """Result of scraping (and saving) one provider/country pair."""

    provider: str
    country: str
    plans_found: int = 0
    plans_added: int = 0
    success: bool = True
    errors: List[str] = field(default_factory=list)


@dataclass
class BatchReport:
    """Everything a batch run did, for logging and the CLI exit status."""

    outcomes: List[CountryOutcome] = field(default_factory=list)
    provider_errors: List[str] = field(default_factory=list)

    @property
    def total_plans_found(self) -> int:
        return sum(o.plans_found for o in self.outcomes)

    @property
    def total_plans_added(self) -> int:
        return sum(o.plans_added for o in self.outcomes)

    @property
    def total_errors(self) -> int:
        return sum(len(o.errors) for o in self.outcomes) + len(self.provider_errors)

    @property
    def success(self) -> bool:
        return not self.provider_errors and all(o.success for o in self.outcomes)


class ScraperService:
    """Service for running provider scrapers and saving their results."""

    def __init__(
        self,
        factory: ScraperFactory,
        config: Settings = default_settings,
        dry_run: bool = False,
    ):
        """Initialize scraper service.

        Args:
            factory: Creates scrapers bound to the store
            config: Settings providing the delays
            dry_run: Scrape without writing to the store
        """
        self.factory = factory
        self.config = config
        self.dry_run = dry_run
        self.logger = logger.bind(service="scraper_service")

    async def run_provider(self, provider_name: str, countries: Sequence[str]) -> List[CountryOutcome]:
        """Scrape and save each country for one provider.

        Args:
            provider_name: Provider name as stored (e.g., "Airalo")
            countries: ISO country codes

        Returns:
            One outcome per country attempted

        Raises:
            ProviderNotFoundError: If the provider is not in the store
            BrowserLaunchError: If the provider's browser cannot start
        """
        scraper = await self.factory.create_scraper(provider_name)
        if scraper is None:
            self.logger.warning("no_scraper_available", provider=provider_name)
            return []

        outcomes: List[CountryOutcome] = []
        try:
            for index, country in enumerate(countries):
                outcomes.append(await self._run_country(scraper, provider_name, country))
                if index < len(countries) - 1:
                    await scraper.delay(self.config.COUNTRY_DELAY_SECONDS)
        finally:
            await scraper.close()

        return outcomes

    async def _run_country(self, scraper: BaseProviderScraper, provider_name: str, country: str) -> CountryOutcome:
        outcome = CountryOutcome(provider=provider_name, country=country)
        try:
            plans = await scraper.scrape_country(country)
            outcome.plans_found = len(plans)
            self.logger.info("country_scraped", provider=provider_name, country=country, count=len(plans))

            if plans and not self.dry_run:
                result = await scraper.save_plans(plans)
                outcome.plans_added = result.plans_added
                outcome.success = result.success
                outcome.errors.extend(result.errors)
        except BrowserLaunchError:
            raise
        except Exception as e:
            outcome.success = False
            outcome.errors.append(str(e))
            self.logger.error(
                "country_run_failed",
                provider=provider_name,
                country=country,
                error=str(e),
                exc_info=True,
            )
        return outcome

    async def run_all(
        self,
        countries: Sequence[str],
        providers: Optional[Sequence[str]] = None,
    ) -> BatchReport:
        """Run every provider over the same countries.

        Args:
            countries: ISO country codes
            providers: Provider names, defaults to every supported provider

        Returns:
            BatchReport with per-country outcomes and provider-level errors
        """
        providers = list(providers or self.factory.get_supported_providers())
        report = BatchReport()

        self.logger.info("batch_started", providers=providers, countries=list(countries), dry_run=self.dry_run)

        for index, provider_name in enumerate(providers):
            await self.factory.normalizer.ensure_fresh_rates()
            try:
                report.outcomes.extend(await self.run_provider(provider_name, countries))
            except Exception as e:
                report.provider_errors.append(f"{provider_name}: {e}")
                self.logger.error("provider_run_failed", provider=provider_name, error=str(e), exc_info=True)

            if index < len(providers) - 1 and self.config.PROVIDER_DELAY_SECONDS > 0:
                await asyncio.sleep(self.config.PROVIDER_DELAY_SECONDS)

        self.logger.info(
            "batch_complete",
            plans_found=report.total_plans_found,
            plans_added=report.total_plans_added,
            errors=report.total_errors,
        )
        return report
