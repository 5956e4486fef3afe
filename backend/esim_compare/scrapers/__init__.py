"""Provider scrapers, extraction strategies and orchestration."""

from .base import BaseProviderScraper, BrowserProviderScraper, ScrapedPlan, ScrapingResult
from .factory import ScraperFactory
from .scraper_service import BatchReport, CountryOutcome, ScraperService

__all__ = [
    "BaseProviderScraper",
    "BrowserProviderScraper",
    "ScrapedPlan",
    "ScrapingResult",
    "ScraperFactory",
    "ScraperService",
    "BatchReport",
    "CountryOutcome",
]
