"""Airalo scraper.

Country pages list every package as a link whose URL encodes the data
amount and validity (``.../united-states-esim/...-10gb-30days``); the
price sits inside the link text.  Unlimited packages live behind a
second tab on the same page.
"""

from typing import List, Optional

from playwright.async_api import Page

from esim_compare.scrapers.base import BrowserProviderScraper, ScrapedPlan, allowance_label
from esim_compare.scrapers.catalog import AIRALO_COUNTRY_SLUGS, AIRALO_DEFAULT_COUNTRIES
from esim_compare.scrapers.extraction.dom_scan import (
    PlanCandidate,
    heading_text,
    scan_plan_links,
    scan_tabbed_page,
)


def is_airalo_plan_link(url: str) -> bool:
    """Plan links point below a ``<country>-esim/`` path and carry a day count."""
    return "-esim/" in url and "days" in url


class AiraloScraper(BrowserProviderScraper):
    """Airalo country-page scraper (DOM scan, two tabs)."""

    provider_name = "Airalo"
    base_url = "https://www.airalo.com"
    default_countries = AIRALO_DEFAULT_COUNTRIES
    country_slugs = AIRALO_COUNTRY_SLUGS

    def country_url(self, country_code: str) -> Optional[str]:
        slug = self.country_slugs.get(country_code.upper())
        if slug is None:
            # Airalo's own URL scheme; works for most countries
            slug = f"{country_code.lower()}-esim"
        return f"{self.base_url}/{slug}"

    async def extract_plans(self, page: Page, country_code: str) -> List[ScrapedPlan]:
        page_url = page.url
        html = await page.content()
        country_name = heading_text(html, "h2", default=country_code.upper())
        network = heading_text(html, "h3")
        self.logger.debug("country_page_headings", country=country_code, name=country_name, network=network)

        def scan(markup: str, unlimited_context: bool) -> List[PlanCandidate]:
            return scan_plan_links(markup, is_airalo_plan_link, page_url, unlimited_context)

        candidates = await scan_tabbed_page(
            page,
            scan,
            tab_label="unlimited",
            tab_delay=self.config.TAB_SWITCH_DELAY_SECONDS,
        )
        if not candidates:
            self.logger.warning("no_plan_links_found", country=country_code, url=page_url)
            return []

        plans: List[ScrapedPlan] = []
        for candidate in candidates:
            plan = self._to_plan(candidate, country_code, country_name)
            if plan is not None:
                plans.append(plan)
        return plans

    def _to_plan(
        self,
        candidate: PlanCandidate,
        country_code: str,
        country_name: str,
    ) -> Optional[ScrapedPlan]:
        price_usd, original_price = self.price_to_usd(candidate.price, candidate.currency)
        allowance = allowance_label(candidate.data_amount_gb, candidate.is_unlimited)

        return self.build_plan(
            name=f"{country_name} {allowance} - {candidate.validity_days} Days",
            data_amount_gb=candidate.data_amount_gb,
            validity_days=candidate.validity_days,
            price_usd=price_usd,
            currency=candidate.currency,
            original_price=original_price,
            is_unlimited=candidate.is_unlimited,
            plan_url=candidate.url,
            country_code=country_code.upper(),
        )
