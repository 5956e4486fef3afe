"""Pytest configuration and shared fixtures."""

from contextlib import asynccontextmanager
from typing import Dict, Iterable, List, Optional, Tuple, Union

import pytest
import pytest_asyncio
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from esim_compare.config import Settings
from esim_compare.core.exceptions import NavigationError
from esim_compare.db.session import create_tables
from esim_compare.db.store import COUNTRIES_TABLE, PROVIDERS_TABLE, SQLAlchemyPlanStore


@pytest.fixture
def anyio_backend():
    """Use asyncio as the async backend for tests."""
    return "asyncio"


@pytest.fixture
def test_settings() -> Settings:
    """Settings with every delay disabled."""
    return Settings(
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        DEBUG=False,
        SETTLE_DELAY_SECONDS=0,
        TAB_SWITCH_DELAY_SECONDS=0,
        COUNTRY_DELAY_SECONDS=0,
        PROVIDER_DELAY_SECONDS=0,
        HOLAFLY_FETCH_MODE="browser",
    )


# ============================================================================
# DATABASE
# ============================================================================

@pytest_asyncio.fixture
async def session_factory():
    """In-memory SQLite database shared across sessions."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )

    await create_tables(engine)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_factory) -> SQLAlchemyPlanStore:
    return SQLAlchemyPlanStore(session_factory)


@pytest_asyncio.fixture
async def providers(store: SQLAlchemyPlanStore) -> Dict[str, object]:
    """Provider ids keyed by name."""
    ids = {}
    for name in ("Airalo", "Saily", "Holafly"):
        row = await store.insert(PROVIDERS_TABLE, {"name": name, "website_url": f"https://{name.lower()}.example"})
        ids[name] = row["id"]
    return ids


@pytest_asyncio.fixture
async def countries(store: SQLAlchemyPlanStore) -> Dict[str, object]:
    """Country ids keyed by ISO code."""
    ids = {}
    for code, name in (("US", "United States"), ("GB", "United Kingdom"), ("DE", "Germany"), ("JP", "Japan")):
        row = await store.insert(COUNTRIES_TABLE, {"code": code, "name": name})
        ids[code] = row["id"]
    return ids


# ============================================================================
# BROWSER FAKES
# ============================================================================

class FakeLocator:
    """Stands in for a tab locator; clicking swaps the page to its tab markup."""

    def __init__(self, page: "FakePage"):
        self.page = page

    def filter(self, has_text=None) -> "FakeLocator":
        return self

    @property
    def first(self) -> "FakeLocator":
        return self

    async def count(self) -> int:
        return 1 if self.page.tab_html is not None else 0

    async def click(self) -> None:
        self.page.html = self.page.tab_html
        self.page.tab_clicked = True


class FakePage:
    """Minimal Playwright page: serves canned markup."""

    def __init__(self):
        self.url = "about:blank"
        self.html = ""
        self.tab_html: Optional[str] = None
        self.tab_clicked = False
        self.has_plans_section = True
        self.closed = False

    async def content(self) -> str:
        return self.html

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self)

    async def wait_for_selector(self, selector: str, timeout: Optional[float] = None) -> None:
        if not self.has_plans_section:
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def close(self) -> None:
        self.closed = True


PageSpec = Union[str, Tuple[str, str]]


class FakeBrowserSession:
    """BrowserSession double serving markup per URL.

    ``pages`` maps a URL to its markup, or to (markup, unlimited tab markup).
    URLs in ``failing_urls`` fail every wait strategy.
    """

    def __init__(
        self,
        pages: Optional[Dict[str, PageSpec]] = None,
        failing_urls: Iterable[str] = (),
        launch_error: Optional[Exception] = None,
        has_plans_section: bool = True,
    ):
        self.pages = pages or {}
        self.failing_urls = set(failing_urls)
        self.launch_error = launch_error
        self.has_plans_section = has_plans_section
        self.initialized = False
        self.close_calls = 0
        self.visited: List[str] = []
        self.opened_pages: List[FakePage] = []

    async def initialize(self) -> None:
        if self.launch_error is not None:
            raise self.launch_error
        self.initialized = True

    async def close(self) -> None:
        self.close_calls += 1
        self.initialized = False

    @asynccontextmanager
    async def page(self):
        await self.initialize()
        page = FakePage()
        page.has_plans_section = self.has_plans_section
        self.opened_pages.append(page)
        try:
            yield page
        finally:
            await page.close()

    async def navigate(self, page: FakePage, url: str) -> str:
        self.visited.append(url)
        if url in self.failing_urls or url not in self.pages:
            raise NavigationError(url, "all wait strategies failed")
        spec = self.pages[url]
        page.url = url
        if isinstance(spec, tuple):
            page.html, page.tab_html = spec
        else:
            page.html = spec
        return "domcontentloaded"


@pytest.fixture
def fake_session_cls():
    return FakeBrowserSession
