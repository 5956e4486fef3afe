"""Factory for creating provider scraper instances."""

from typing import Callable, Dict, List, Optional, Type

import structlog

from esim_compare.config import Settings, settings as default_settings
from esim_compare.core.exceptions import ProviderNotFoundError
from esim_compare.db.store import PROVIDERS_TABLE, PlanStore
from esim_compare.scrapers.adapters import AiraloScraper, HolaflyScraper, SailyScraper
from esim_compare.scrapers.base import BaseProviderScraper, BrowserProviderScraper
from esim_compare.scrapers.utils.browser_session import BrowserSession
from esim_compare.scrapers.utils.normalizer import CurrencyNormalizer


logger = structlog.get_logger(__name__)


BrowserSessionFactory = Callable[[str], BrowserSession]


class ScraperFactory:
    """Creates scrapers bound to their provider row.

    Provides dependency injection for the store, the currency normalizer
    and (optionally) how browser sessions are built.
    """

    def __init__(
        self,
        store: PlanStore,
        normalizer: Optional[CurrencyNormalizer] = None,
        config: Settings = default_settings,
        browser_session_factory: Optional[BrowserSessionFactory] = None,
    ):
        """Initialize the scraper factory.

        Args:
            store: Persistence capability, also used to resolve provider ids
            normalizer: Shared currency normalizer
            config: Settings passed to every scraper
            browser_session_factory: Builds a BrowserSession for a provider name
        """
        self.store = store
        self.normalizer = normalizer or CurrencyNormalizer()
        self.config = config
        self.browser_session_factory = browser_session_factory

        # Keyed by lower-cased provider name
        self._scraper_registry: Dict[str, Type[BaseProviderScraper]] = {}
        self._provider_names: Dict[str, str] = {}
        for scraper_class in (AiraloScraper, SailyScraper, HolaflyScraper):
            self.register_scraper(scraper_class.provider_name, scraper_class)

    def register_scraper(self, provider_name: str, scraper_class: Type[BaseProviderScraper]) -> None:
        """Register a scraper class for a provider.

        Args:
            provider_name: Provider name as stored (e.g., "Airalo")
            scraper_class: Scraper class (must inherit from BaseProviderScraper)
        """
        if not issubclass(scraper_class, BaseProviderScraper):
            raise ValueError(f"Scraper class must inherit from BaseProviderScraper: {scraper_class}")

        self._scraper_registry[provider_name.lower()] = scraper_class
        self._provider_names[provider_name.lower()] = provider_name
        logger.debug("scraper_registered", provider=provider_name, scraper=scraper_class.__name__)

    async def create_scraper(self, provider_name: str) -> Optional[BaseProviderScraper]:
        """Create a scraper for a provider.

        Args:
            provider_name: Exact provider name as stored in the providers table

        Returns:
            Configured scraper, or None if no scraper exists for this provider

        Raises:
            ProviderNotFoundError: If the provider is not in the store
        """
        provider_id = await self.store.resolve_entity_id(PROVIDERS_TABLE, {"name": provider_name})
        if provider_id is None:
            logger.error("provider_not_found", provider=provider_name)
            raise ProviderNotFoundError(provider_name)

        scraper_class = self._scraper_registry.get(provider_name.lower())
        if scraper_class is None:
            logger.warning("scraper_not_implemented", provider=provider_name)
            return None

        kwargs = dict(store=self.store, normalizer=self.normalizer, config=self.config)
        if self.browser_session_factory and issubclass(scraper_class, BrowserProviderScraper):
            kwargs["session"] = self.browser_session_factory(provider_name)

        scraper = scraper_class(provider_id, **kwargs)
        logger.info("scraper_created", provider=provider_name, provider_id=str(provider_id))
        return scraper

    def get_supported_providers(self) -> List[str]:
        """Names of providers with a scraper, in registration order."""
        return list(self._provider_names.values())
