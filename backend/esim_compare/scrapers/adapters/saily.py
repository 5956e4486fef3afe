"""Saily scraper.

Saily renders one card per package under ``#plansSection``.  Cards
carry data and validity as standalone paragraphs ("5 GB", "30 days")
and the price in a dedicated element.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional
from urllib.parse import urlsplit, urlunsplit

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Error as PlaywrightError, Page

from esim_compare.scrapers.base import BrowserProviderScraper, ScrapedPlan, allowance_label
from esim_compare.scrapers.catalog import (
    SAILY_COUNTRY_SLUGS,
    SAILY_DEFAULT_COUNTRIES,
    UNLIMITED_DATA_GB,
)
from esim_compare.scrapers.extraction.dom_scan import find_price_tokens
from esim_compare.scrapers.utils.normalizer import clean_price_string, detect_currency


PLANS_SECTION_SELECTOR = "#plansSection"
PLAN_CARD_SELECTOR = 'li[data-testid^="destination-hero-plan-card"]'
PRICE_SELECTOR = '[data-testid="pricing-card-original-price"]'
TITLE_SELECTOR = "#plan-section-title"

DATA_TEXT_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s*GB$", re.IGNORECASE)
VALIDITY_TEXT_PATTERN = re.compile(r"^(\d+)\s*days?$", re.IGNORECASE)
TITLE_COUNTRY_PATTERN = re.compile(r"for (?:the )?(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class PlanCard:
    """Fields read from one Saily plan card."""

    data_amount_gb: Decimal
    validity_days: int
    price: Decimal
    currency: str
    is_unlimited: bool
    url: str


def _plan_url(page_url: str, plan_id: str) -> str:
    if not plan_id:
        return page_url
    parts = urlsplit(page_url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, f"plan={plan_id}", ""))


def _card_price(card: Tag):
    element = card.select_one(PRICE_SELECTOR)
    if element is None:
        return None, None
    text = element.get_text(" ", strip=True)
    tokens = find_price_tokens(text)
    if tokens:
        return tokens[0].amount, tokens[0].currency
    # Bare number: the currency label may sit elsewhere on the card
    return clean_price_string(text), detect_currency(card.get_text(" ", strip=True)) or "USD"


def parse_plan_card(card: Tag, page_url: str) -> Optional[PlanCard]:
    """Read one card; None when data, validity or price is missing."""
    paragraphs = [p.get_text(" ", strip=True) for p in card.find_all("p")]

    data_amount: Optional[Decimal] = None
    is_unlimited = False
    for text in paragraphs:
        if "unlimited" in text.lower():
            is_unlimited = True
            data_amount = UNLIMITED_DATA_GB
            break
        match = DATA_TEXT_PATTERN.match(text)
        if match:
            data_amount = Decimal(match.group(1))

    validity_days: Optional[int] = None
    for text in paragraphs:
        match = VALIDITY_TEXT_PATTERN.match(text)
        if match:
            validity_days = int(match.group(1))
            break

    price, currency = _card_price(card)

    if data_amount is None or not validity_days or not price:
        return None

    radio = card.select_one('input[type="radio"]')
    plan_id = radio.get("value", "") if radio is not None else ""

    return PlanCard(
        data_amount_gb=data_amount,
        validity_days=validity_days,
        price=price,
        currency=currency,
        is_unlimited=is_unlimited,
        url=_plan_url(page_url, plan_id),
    )


def parse_plan_cards(html: str, page_url: str) -> List[PlanCard]:
    """All complete plan cards on a rendered Saily country page."""
    soup = BeautifulSoup(html, "html.parser")
    cards = []
    for element in soup.select(PLAN_CARD_SELECTOR):
        card = parse_plan_card(element, page_url)
        if card is not None:
            cards.append(card)
    return cards


def parse_country_name(html: str, default: str) -> str:
    """Country name from the section title ("... for the United States")."""
    soup = BeautifulSoup(html, "html.parser")
    title = soup.select_one(TITLE_SELECTOR)
    if title is None:
        return default
    match = TITLE_COUNTRY_PATTERN.search(title.get_text(" ", strip=True))
    return match.group(1) if match else default


class SailyScraper(BrowserProviderScraper):
    """Saily country-page scraper (plan cards)."""

    provider_name = "Saily"
    base_url = "https://saily.com"
    default_countries = SAILY_DEFAULT_COUNTRIES
    country_slugs = SAILY_COUNTRY_SLUGS

    section_timeout_ms = 10_000
    missing_section_delay = 5.0

    def country_url(self, country_code: str) -> Optional[str]:
        slug = self.country_slugs.get(country_code.upper(), f"esim-{country_code.lower()}")
        return f"{self.base_url}/{slug}/"

    async def wait_for_content(self, page: Page) -> None:
        """Wait for the plans section, or a longer fixed delay if it never shows."""
        try:
            await page.wait_for_selector(PLANS_SECTION_SELECTOR, timeout=self.section_timeout_ms)
        except PlaywrightError:
            self.logger.warning("plans_section_not_found", url=page.url)
            await self.delay(self.missing_section_delay)
            return
        await self.delay(self.settle_delay)

    async def extract_plans(self, page: Page, country_code: str) -> List[ScrapedPlan]:
        html = await page.content()
        cards = parse_plan_cards(html, page.url)
        if not cards:
            self.logger.warning("no_plan_cards_found", country=country_code, url=page.url)
            return []

        country_name = parse_country_name(html, default=country_code.upper())

        plans: List[ScrapedPlan] = []
        for card in cards:
            price_usd, original_price = self.price_to_usd(card.price, card.currency)
            allowance = allowance_label(card.data_amount_gb, card.is_unlimited)
            plan = self.build_plan(
                name=f"{country_name} {allowance} - {card.validity_days} Days",
                data_amount_gb=card.data_amount_gb,
                validity_days=card.validity_days,
                price_usd=price_usd,
                currency=card.currency,
                original_price=original_price,
                is_unlimited=card.is_unlimited,
                plan_url=card.url,
                country_code=country_code.upper(),
            )
            if plan is not None:
                plans.append(plan)
        return plans
