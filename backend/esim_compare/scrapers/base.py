"""Base scraper interface.

Every provider gets one concrete scraper exposing ``scrape_country``,
``scrape_all_countries`` and ``save_plans``.  Browser-driven providers
inherit from BrowserProviderScraper, which owns the page lifecycle and
navigation and leaves only URL building and extraction to subclasses.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

import structlog
from playwright.async_api import Error as PlaywrightError, Page

from esim_compare.config import Settings, settings as default_settings
from esim_compare.core.exceptions import NavigationError, ScraperError
from esim_compare.db.store import PlanStore
from esim_compare.scrapers.catalog import UNLIMITED_DATA_GB
from esim_compare.scrapers.utils.browser_session import BrowserSession
from esim_compare.scrapers.utils.normalizer import CurrencyNormalizer, to_decimal


def allowance_label(data_amount_gb: Decimal, is_unlimited: bool) -> str:
    """Human label for a plan's data allowance ("Unlimited", "5GB", "0.5GB")."""
    if is_unlimited:
        return "Unlimited"
    return f"{data_amount_gb.normalize():f}GB"


@dataclass(frozen=True)
class ScrapedPlan:
    """One plan offer as scraped, normalized to USD.

    Unlimited plans always carry the 999 GB sentinel so consumers that
    only read data_amount_gb still sort them last.
    """

    name: str
    data_amount_gb: Decimal
    validity_days: int
    price_usd: Decimal
    plan_url: str
    country_code: str
    currency: str = "USD"  # Currency shown on the provider site
    original_price: Optional[Decimal] = None  # Price in that currency
    is_unlimited: bool = False
    network_type: str = "4G/5G"
    coverage_type: str = "National"
    hotspot_allowed: bool = True
    voice_calls: bool = False
    sms_included: bool = False

    def __post_init__(self):
        """Validate data after initialization."""
        if not self.name:
            raise ValueError("name is required")
        if not self.country_code:
            raise ValueError("country_code is required")
        if self.validity_days is None or self.validity_days <= 0:
            raise ValueError("validity_days must be positive")
        if self.price_usd is None or self.price_usd <= 0:
            raise ValueError("price_usd must be positive")
        if self.is_unlimited:
            object.__setattr__(self, "data_amount_gb", UNLIMITED_DATA_GB)
        elif self.data_amount_gb is None or self.data_amount_gb <= 0:
            raise ValueError("data_amount_gb must be positive for metered plans")

    @property
    def dedup_key(self) -> Tuple[str, Decimal, int, bool]:
        return (self.country_code, self.data_amount_gb, self.validity_days, self.is_unlimited)


@dataclass
class ScrapingResult:
    """Outcome of one save_plans call."""

    success: bool = True
    plans_found: int = 0
    plans_added: int = 0
    plans_updated: int = 0
    errors: List[str] = field(default_factory=list)


def deduplicate_plans(plans: Sequence[ScrapedPlan]) -> List[ScrapedPlan]:
    """Drop repeated (country, data, validity, unlimited) offers, first one wins."""
    seen: Dict[Tuple[str, Decimal, int, bool], ScrapedPlan] = {}
    for plan in plans:
        seen.setdefault(plan.dedup_key, plan)
    return list(seen.values())


class BaseProviderScraper(ABC):
    """Abstract base class for all provider scrapers."""

    provider_name: str = ""  # Must be overridden in subclass (e.g., "Airalo")
    base_url: str = ""
    default_countries: Tuple[str, ...] = ()

    def __init__(
        self,
        provider_id: uuid.UUID,
        store: Optional[PlanStore] = None,
        normalizer: Optional[CurrencyNormalizer] = None,
        config: Settings = default_settings,
    ):
        """Initialize the scraper.

        Args:
            provider_id: Id of this provider's row in the providers table
            store: Persistence capability, required for save_plans
            normalizer: Currency normalizer (static rates if omitted)
            config: Settings providing delays and timeouts
        """
        self.provider_id = provider_id
        self.store = store
        self.normalizer = normalizer or CurrencyNormalizer()
        self.config = config
        self.country_delay = config.COUNTRY_DELAY_SECONDS
        self.logger = structlog.get_logger(__name__).bind(provider=self.provider_name)

    @abstractmethod
    async def scrape_country(self, country_code: str) -> List[ScrapedPlan]:
        """Scrape every plan offered for one country.

        Args:
            country_code: ISO country code (e.g., "US")

        Returns:
            Plans found; empty if the page could not be loaded or parsed
        """

    async def scrape_all_countries(self, countries: Optional[Sequence[str]] = None) -> List[ScrapedPlan]:
        """Scrape countries one after another with a politeness delay.

        Args:
            countries: Country codes, defaults to this provider's list

        Returns:
            Plans for all countries, in country order
        """
        countries = list(countries or self.default_countries)
        all_plans: List[ScrapedPlan] = []

        self.logger.info("scraping_all_countries", count=len(countries))
        try:
            for index, country_code in enumerate(countries):
                plans = await self.scrape_country(country_code)
                all_plans.extend(plans)
                self.logger.info("country_scraped", country=country_code, count=len(plans))

                if index < len(countries) - 1:
                    await self.delay(self.country_delay)
        finally:
            await self.close()

        return all_plans

    async def save_plans(self, plans: Sequence[ScrapedPlan]) -> ScrapingResult:
        """Replace this provider's persisted plans for every country in the batch."""
        from esim_compare.services.ingestion_service import PlanIngestionService

        if self.store is None:
            raise ScraperError(self.provider_name, "no store configured for save_plans")
        return await PlanIngestionService(self.store, self.provider_id).save_plans(plans)

    async def close(self) -> None:
        """Release resources held by the scraper."""

    async def delay(self, seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)

    def build_plan(self, **fields) -> Optional[ScrapedPlan]:
        """Construct a ScrapedPlan, or None (logged) if it fails validation."""
        try:
            return ScrapedPlan(**fields)
        except (ValueError, TypeError) as e:
            self.logger.debug("plan_discarded", name=fields.get("name"), reason=str(e))
            return None

    def price_to_usd(self, amount, currency: str) -> Tuple[Decimal, Decimal]:
        """Return (usd_price, original_price) for a scraped amount."""
        original = to_decimal(amount)
        return self.normalizer.normalize(original, currency), original

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class BrowserProviderScraper(BaseProviderScraper):
    """Base class for scrapers that render provider pages in Chromium.

    Handles the page scope, multi-strategy navigation and the settle
    delay.  Subclasses implement ``country_url`` and ``extract_plans``.
    """

    def __init__(
        self,
        provider_id: uuid.UUID,
        store: Optional[PlanStore] = None,
        normalizer: Optional[CurrencyNormalizer] = None,
        config: Settings = default_settings,
        session: Optional[BrowserSession] = None,
    ):
        """Initialize the browser scraper.

        Args:
            session: Browser session to use; one is created per scraper if omitted
        """
        super().__init__(provider_id, store=store, normalizer=normalizer, config=config)
        self.session = session or BrowserSession(
            headless=config.BROWSER_HEADLESS,
            navigation_timeout_ms=config.NAVIGATION_TIMEOUT_MS,
            name=self.provider_name,
        )
        self.settle_delay = config.SETTLE_DELAY_SECONDS

    @abstractmethod
    def country_url(self, country_code: str) -> Optional[str]:
        """Page URL for a country, or None if the provider isn't tracked there."""

    @abstractmethod
    async def extract_plans(self, page: Page, country_code: str) -> List[ScrapedPlan]:
        """Extract plans from a loaded, settled page."""

    async def initialize(self) -> None:
        await self.session.initialize()

    async def close(self) -> None:
        await self.session.close()

    async def wait_for_content(self, page: Page) -> None:
        """Wait for the page to render after navigation."""
        await self.delay(self.settle_delay)

    async def scrape_country(self, country_code: str) -> List[ScrapedPlan]:
        url = self.country_url(country_code)
        if url is None:
            self.logger.warning("country_not_supported", country=country_code)
            return []

        self.logger.info("scraping_country", country=country_code, url=url)

        # Browser launch failures propagate out of page()
        async with self.session.page() as page:
            try:
                await self.session.navigate(page, url)
            except NavigationError as e:
                self.logger.error("navigation_failed", country=country_code, error=str(e))
                return []

            try:
                await self.wait_for_content(page)
                plans = await self.extract_plans(page, country_code)
            except (PlaywrightError, ScraperError) as e:
                self.logger.error("extraction_failed", country=country_code, error=str(e))
                return []

        plans = deduplicate_plans(plans)
        self.logger.info("plans_extracted", country=country_code, count=len(plans))
        return plans
