"""Holafly scraper.

Holafly sells unlimited plans only.  The country page embeds its pricing
tiers as serialized component props, so no DOM scanning is needed: the
markup is decoded directly, whether it comes from the browser or from a
plain HTTP fetch (``HOLAFLY_FETCH_MODE``).
"""

import uuid
from typing import List, Optional

import httpx
from playwright.async_api import Page

from esim_compare.config import Settings, settings as default_settings
from esim_compare.db.store import PlanStore
from esim_compare.scrapers.base import BrowserProviderScraper, ScrapedPlan, deduplicate_plans
from esim_compare.scrapers.catalog import (
    CANONICAL_CURRENCY,
    HOLAFLY_COUNTRY_SLUGS,
    HOLAFLY_TARGET_DAYS,
    UNLIMITED_DATA_GB,
)
from esim_compare.scrapers.extraction.embedded_data import extract_variants, select_priced_variants
from esim_compare.scrapers.utils.browser_session import BrowserSession
from esim_compare.scrapers.utils.normalizer import CurrencyNormalizer
from esim_compare.scrapers.utils.retry import RetryingFetcher


FETCH_MODE_BROWSER = "browser"
FETCH_MODE_HTTP = "http"


class HolaflyScraper(BrowserProviderScraper):
    """Holafly scraper (embedded variant data)."""

    provider_name = "Holafly"
    base_url = "https://esim.holafly.com"
    default_countries = tuple(HOLAFLY_COUNTRY_SLUGS)
    country_slugs = HOLAFLY_COUNTRY_SLUGS
    target_days = HOLAFLY_TARGET_DAYS

    def __init__(
        self,
        provider_id: uuid.UUID,
        store: Optional[PlanStore] = None,
        normalizer: Optional[CurrencyNormalizer] = None,
        config: Settings = default_settings,
        session: Optional[BrowserSession] = None,
        fetcher: Optional[RetryingFetcher] = None,
        fetch_mode: Optional[str] = None,
    ):
        """Initialize the Holafly scraper.

        Args:
            fetcher: Plain-HTTP fetcher used in http mode
            fetch_mode: "browser" or "http"; defaults to HOLAFLY_FETCH_MODE
        """
        super().__init__(provider_id, store=store, normalizer=normalizer, config=config, session=session)
        self.fetcher = fetcher or RetryingFetcher()
        self.fetch_mode = (fetch_mode or config.HOLAFLY_FETCH_MODE).lower()
        if self.fetch_mode not in (FETCH_MODE_BROWSER, FETCH_MODE_HTTP):
            raise ValueError(f"Unknown Holafly fetch mode: {self.fetch_mode}")

    def country_url(self, country_code: str) -> Optional[str]:
        slug = self.country_slugs.get(country_code.upper())
        if slug is None:
            return None
        return f"{self.base_url}/esim-{slug}/"

    async def scrape_country(self, country_code: str) -> List[ScrapedPlan]:
        if self.fetch_mode == FETCH_MODE_BROWSER:
            return await super().scrape_country(country_code)

        url = self.country_url(country_code)
        if url is None:
            self.logger.warning("country_not_supported", country=country_code)
            return []

        self.logger.info("fetching_country", country=country_code, url=url)
        try:
            response = await self.fetcher.fetch_with_retry(url)
        except httpx.HTTPError as e:
            self.logger.error("fetch_failed", country=country_code, url=url, error=str(e))
            return []

        plans = deduplicate_plans(self.plans_from_html(response.text, country_code, url))
        self.logger.info("plans_extracted", country=country_code, count=len(plans))
        return plans

    async def extract_plans(self, page: Page, country_code: str) -> List[ScrapedPlan]:
        return self.plans_from_html(await page.content(), country_code, page.url)

    def plans_from_html(self, html: str, country_code: str, page_url: str) -> List[ScrapedPlan]:
        """Decode embedded variants into unlimited USD plans.

        Args:
            html: Country page markup
            country_code: ISO country code
            page_url: Used as every plan's URL

        Returns:
            Plans for the allowed day counts; empty if the data can't be decoded
        """
        variants = extract_variants(html)
        priced = select_priced_variants(variants, self.target_days, CANONICAL_CURRENCY)
        self.logger.debug(
            "variants_selected",
            country=country_code,
            decoded=len(variants),
            selected=len(priced),
        )

        code = country_code.upper()
        plans: List[ScrapedPlan] = []
        for variant, price in priced:
            plan = self.build_plan(
                name=f"{code} Unlimited - {variant.days} Days",
                data_amount_gb=UNLIMITED_DATA_GB,
                validity_days=variant.days,
                price_usd=self.normalizer.normalize(price.amount, CANONICAL_CURRENCY),
                currency=CANONICAL_CURRENCY,
                is_unlimited=True,
                plan_url=page_url,
                country_code=code,
            )
            if plan is not None:
                plans.append(plan)
        return plans
