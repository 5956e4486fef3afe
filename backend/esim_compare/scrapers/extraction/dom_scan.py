"""DOM-scan extraction: plan links and adjacent price text.

The scanning functions are pure (HTML in, candidates out) so they can be
exercised without a browser; ``scan_tabbed_page`` drives a live page
through a standard/unlimited tab switch and feeds both renders to them.
"""

import asyncio
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, List, Optional
from urllib.parse import urljoin

import structlog
from bs4 import BeautifulSoup, Comment, Tag
from playwright.async_api import Error as PlaywrightError, Page

from esim_compare.scrapers.catalog import CURRENCY_SYMBOLS, UNLIMITED_DATA_GB
from esim_compare.scrapers.utils.normalizer import clean_price_string, currency_from_symbol

logger = structlog.get_logger(__name__)


_SYMBOLS = "".join(re.escape(s) for s in CURRENCY_SYMBOLS)
# Thousands-grouped ("1,299.00"), decimal comma ("4,50") or plain ("4.50")
_AMOUNT = r"\d{1,3}(?:,\d{3})+(?:\.\d+)?|\d+(?:\.\d+|,\d{1,2}(?!\d))?"

# Symbol before ("$4.50", "US$ 4.50") or after ("4.50€", "4,50 €") the numeral.
# A symbol directly followed by a digit leads its own amount ("10 $4.50").
PRICE_PATTERN = re.compile(
    rf"(?P<lead>[{_SYMBOLS}])\s*(?P<lead_amount>{_AMOUNT})"
    rf"|(?<![\d.,])(?P<trail_amount>{_AMOUNT})\s*(?P<trail>[{_SYMBOLS}])(?!\d)"
)
VALIDITY_PATTERN = re.compile(r"(\d+)\s*-?days?", re.IGNORECASE)
DATA_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*-?gb", re.IGNORECASE)

LinkMatcher = Callable[[str], bool]


@dataclass(frozen=True)
class PriceToken:
    """A price amount with the currency its symbol maps to."""

    amount: Decimal
    currency: str
    text: str


@dataclass(frozen=True)
class PlanCandidate:
    """A plan link that yielded validity and price, before normalization."""

    url: str
    validity_days: int
    data_amount_gb: Decimal
    price: Decimal
    currency: str
    is_unlimited: bool


def find_price_tokens(text: str) -> List[PriceToken]:
    """All currency-adjacent amounts in ``text``, in order of appearance."""
    tokens: List[PriceToken] = []
    if not text:
        return tokens

    for match in PRICE_PATTERN.finditer(text):
        if match.group("lead"):
            symbol, raw_amount = match.group("lead"), match.group("lead_amount")
        else:
            symbol, raw_amount = match.group("trail"), match.group("trail_amount")
        amount = clean_price_string(raw_amount)
        if amount is None:
            continue
        tokens.append(PriceToken(amount=amount, currency=currency_from_symbol(symbol), text=match.group(0)))
    return tokens


def _text_nodes(element: Tag) -> Iterable[str]:
    for node in element.find_all(string=True):
        if isinstance(node, Comment) or node.parent.name in ("script", "style"):
            continue
        text = " ".join(node.split())
        if text:
            yield text


def extract_last_price(element: Tag) -> Optional[PriceToken]:
    """The last price fragment inside ``element`` in DOM order.

    Text nodes are scanned one by one; if no single node carries a
    price (symbol and amount split across tags) the joined text is used.
    """
    tokens: List[PriceToken] = []
    for text in _text_nodes(element):
        tokens.extend(find_price_tokens(text))

    if not tokens:
        tokens = find_price_tokens(element.get_text(" ", strip=True))

    return tokens[-1] if tokens else None


def parse_validity_days(text: str) -> Optional[int]:
    match = VALIDITY_PATTERN.search(text or "")
    if not match:
        return None
    days = int(match.group(1))
    return days if days > 0 else None


def parse_data_amount(text: str) -> Optional[Decimal]:
    match = DATA_PATTERN.search(text or "")
    return Decimal(match.group(1)) if match else None


def scan_plan_links(
    html: str,
    link_matcher: LinkMatcher,
    page_url: str = "",
    unlimited_context: bool = False,
) -> List[PlanCandidate]:
    """Extract plan candidates from anchors whose target matches a pattern.

    Validity and data amount come from the link URL; the price from the
    link's descendant text.  Links missing validity or price are
    dropped, as are metered links without a positive data amount.

    Args:
        html: Rendered page markup
        link_matcher: Predicate over the absolute link URL
        page_url: URL the markup was loaded from, used to absolutize hrefs
        unlimited_context: The active tab shows unlimited plans

    Returns:
        Candidates in DOM order (may be empty)
    """
    soup = BeautifulSoup(html, "html.parser")
    candidates: List[PlanCandidate] = []

    for link in soup.find_all("a", href=True):
        url = urljoin(page_url, link["href"])
        if not link_matcher(url):
            continue

        validity_days = parse_validity_days(url)
        price = extract_last_price(link)
        if not validity_days or price is None or price.amount <= 0:
            continue

        is_unlimited = "unlimited" in url.lower() or unlimited_context
        if is_unlimited:
            data_amount = UNLIMITED_DATA_GB
        else:
            data_amount = parse_data_amount(url) or Decimal("0")
            if data_amount <= 0:
                continue

        candidates.append(PlanCandidate(
            url=url,
            validity_days=validity_days,
            data_amount_gb=data_amount,
            price=price.amount,
            currency=price.currency,
            is_unlimited=is_unlimited,
        ))

    logger.debug(
        "plan_links_scanned",
        page_url=page_url,
        unlimited_context=unlimited_context,
        count=len(candidates),
    )
    return candidates


def heading_text(html: str, selector: str, default: str = "Unknown") -> str:
    """Stripped text of the first element matching ``selector``."""
    soup = BeautifulSoup(html, "html.parser")
    element = soup.select_one(selector)
    text = element.get_text(" ", strip=True) if element else ""
    return text or default


async def activate_tab(page: Page, label: str) -> bool:
    """Click the first button/tab whose text contains ``label``.

    Returns:
        True if a matching tab was found and clicked
    """
    tabs = page.locator("button, [role='tab']").filter(has_text=re.compile(re.escape(label), re.IGNORECASE))
    if await tabs.count() == 0:
        return False
    await tabs.first.click()
    return True


async def scan_tabbed_page(
    page: Page,
    scan: Callable[[str, bool], List[PlanCandidate]],
    tab_label: str = "unlimited",
    tab_delay: float = 2.0,
) -> List[PlanCandidate]:
    """Scan the default tab, then the ``tab_label`` tab if the page has one.

    A missing or unclickable tab is not an error; the default tab's
    results are returned alone.

    Args:
        page: Page already navigated and settled
        scan: ``scan(html, unlimited_context)`` returning candidates
        tab_label: Text identifying the second tab
        tab_delay: Seconds to wait for the tab content to refresh

    Returns:
        Standard-tab candidates followed by unlimited-tab candidates
    """
    candidates = scan(await page.content(), False)

    try:
        if await activate_tab(page, tab_label):
            logger.info("tab_activated", tab=tab_label, url=page.url)
            await asyncio.sleep(tab_delay)
            tab_candidates = scan(await page.content(), True)
            logger.info("tab_scanned", tab=tab_label, count=len(tab_candidates))
            candidates.extend(tab_candidates)
        else:
            logger.info("tab_not_found", tab=tab_label, url=page.url)
    except PlaywrightError as e:
        logger.warning("tab_switch_failed", tab=tab_label, error=str(e))

    return candidates
