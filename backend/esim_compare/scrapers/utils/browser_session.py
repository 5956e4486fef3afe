"""Headless Chromium lifecycle for one scraper instance.

One BrowserSession owns one browser process.  Pages are opened per
scrape through ``page()`` and are always closed, including when
extraction raises.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Optional, Sequence

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from esim_compare.core.exceptions import BrowserLaunchError, NavigationError
from esim_compare.scrapers.utils.launch_config import (
    BROWSER_ARGS,
    VIEWPORT,
    BrowserExecutableResolver,
    resolve_browser_executable,
)
from esim_compare.scrapers.utils.user_agents import BROWSER_EXTRA_HEADERS, get_random_user_agent

logger = structlog.get_logger(__name__)


# Tried in order; the first one that loads wins
WAIT_STRATEGIES: Sequence[str] = ("domcontentloaded", "networkidle", "load")


class BrowserSession:
    """Owns a headless browser process and hands out scoped pages.

    ``initialize()`` is idempotent while the browser is alive and
    ``close()`` is safe to call repeatedly.
    """

    def __init__(
        self,
        headless: bool = True,
        navigation_timeout_ms: int = 60_000,
        resolve_executable: BrowserExecutableResolver = resolve_browser_executable,
        user_agent: Optional[str] = None,
        block_resources: bool = True,
        playwright_factory: Callable[[], Any] = async_playwright,
        name: str = "default",
    ):
        """Initialize the session without launching anything.

        Args:
            headless: Run Chromium headless
            navigation_timeout_ms: Timeout for each wait strategy
            resolve_executable: Returns a browser binary path or None for the bundled one
            user_agent: User agent for the browser context, a random desktop one if omitted
            block_resources: Abort image/font requests to speed up loads
            playwright_factory: Returns an object with ``start()`` (swap for a fake driver in tests)
            name: Label used in logs, usually the provider name
        """
        self._headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self._resolve_executable = resolve_executable
        self._user_agent = user_agent or get_random_user_agent()
        self._block_resources = block_resources
        self._playwright_factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._lock = asyncio.Lock()
        self.logger = logger.bind(session=name)

    @property
    def is_alive(self) -> bool:
        return self._browser is not None

    async def initialize(self) -> None:
        """Launch the browser once.  No-op while a session is alive.

        Raises:
            BrowserLaunchError: If Playwright or Chromium fails to start
        """
        async with self._lock:
            if self._browser:
                return

            executable_path = self._resolve_executable()
            launch_kwargs = {"headless": self._headless, "args": list(BROWSER_ARGS)}
            if executable_path:
                launch_kwargs["executable_path"] = executable_path

            try:
                self._playwright = await self._playwright_factory().start()
                self._browser = await self._playwright.chromium.launch(**launch_kwargs)
                self._context = await self._browser.new_context(
                    user_agent=self._user_agent,
                    viewport=dict(VIEWPORT),
                    extra_http_headers=dict(BROWSER_EXTRA_HEADERS),
                    java_script_enabled=True,
                    bypass_csp=True,
                )
                await self._context.add_init_script(STEALTH_JS)
                if self._block_resources:
                    await self._context.route(
                        "**/*.{png,jpg,jpeg,gif,svg,webp,woff,woff2,ttf,eot}",
                        lambda route: route.abort(),
                    )
            except PlaywrightError as e:
                await self._teardown()
                self.logger.error("browser_launch_failed", executable_path=executable_path, error=str(e))
                raise BrowserLaunchError("browser", str(e)) from e

            self.logger.info(
                "browser_started",
                headless=self._headless,
                executable_path=executable_path or "bundled",
            )

    async def close(self) -> None:
        """Close the browser and stop Playwright."""
        async with self._lock:
            was_alive = self._browser is not None
            await self._teardown()
            if was_alive:
                self.logger.info("browser_stopped")

    async def _teardown(self) -> None:
        context, browser, playwright = self._context, self._browser, self._playwright
        self._context = None
        self._browser = None
        self._playwright = None

        if context is not None:
            try:
                await context.close()
            except PlaywrightError as e:
                self.logger.warning("context_close_failed", error=str(e))
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                self.logger.warning("browser_close_failed", error=str(e))
        if playwright is not None:
            await playwright.stop()

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Open a fresh page, closing it on every exit path."""
        await self.initialize()
        page = await self._context.new_page()
        try:
            yield page
        finally:
            try:
                await page.close()
            except PlaywrightError as e:
                self.logger.warning("page_close_failed", error=str(e))

    async def navigate(self, page: Page, url: str) -> str:
        """Navigate with successive wait strategies.

        Args:
            page: Page to navigate
            url: Target URL

        Returns:
            The wait strategy that succeeded

        Raises:
            NavigationError: If every strategy failed
        """
        last_error: Optional[Exception] = None

        for strategy in WAIT_STRATEGIES:
            try:
                self.logger.debug("navigating", url=url, wait_until=strategy)
                await page.goto(url, wait_until=strategy, timeout=self.navigation_timeout_ms)
                self.logger.info("page_loaded", url=url, wait_until=strategy)
                return strategy
            except PlaywrightError as e:
                self.logger.warning("navigation_strategy_failed", url=url, wait_until=strategy, error=str(e))
                last_error = e

        raise NavigationError(url, str(last_error))


# Minimal stealth JS to mask automation signals
STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = { runtime: {} };
"""
