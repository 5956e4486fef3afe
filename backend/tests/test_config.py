"""Tests for settings, logging setup and exceptions."""

import structlog

from esim_compare.config import Settings
from esim_compare.core.exceptions import (
    BrowserLaunchError,
    CatalogError,
    NavigationError,
    NotFoundError,
    ProviderNotFoundError,
    ScraperError,
    StoreError,
)
from esim_compare.core.logging import configure_logging


class TestSettings:
    def test_postgres_url_rewritten_for_asyncpg(self):
        assert Settings(DATABASE_URL="postgres://u:p@db/esim").DATABASE_URL == "postgresql+asyncpg://u:p@db/esim"
        assert Settings(DATABASE_URL="postgresql://u:p@db/esim").DATABASE_URL == "postgresql+asyncpg://u:p@db/esim"

    def test_sqlite_url_untouched(self):
        assert Settings(DATABASE_URL="sqlite+aiosqlite:///./esim.db").DATABASE_URL == "sqlite+aiosqlite:///./esim.db"

    def test_country_groups(self):
        settings = Settings()
        assert settings.get_country_group("2") == ["IT", "JP", "AU", "NL", "CH", "SG"]
        assert settings.get_country_group("9") == settings.get_country_group("1")
        assert settings.get_country_group(None)[0] == "US"

    def test_browser_executable_override(self):
        assert Settings(BROWSER_EXECUTABLE_PATH="").get_browser_executable_path() is None
        assert Settings(BROWSER_EXECUTABLE_PATH=" /usr/bin/chromium ").get_browser_executable_path() == "/usr/bin/chromium"


class TestLogging:
    def test_configure_logging_json(self, capsys):
        configure_logging(Settings(DEBUG=False, LOG_LEVEL="INFO"))
        structlog.get_logger("test").info("plans_extracted", country="US", count=3)

        out = capsys.readouterr().out
        assert '"event": "plans_extracted"' in out
        assert '"country": "US"' in out

    def test_debug_events_filtered_at_info(self, capsys):
        configure_logging(Settings(DEBUG=False, LOG_LEVEL="INFO"))
        structlog.get_logger("test").debug("noisy_event")

        assert "noisy_event" not in capsys.readouterr().out


class TestExceptions:
    def test_hierarchy(self):
        for exc in (
            ProviderNotFoundError("Nomad"),
            ScraperError("Airalo", "boom"),
            BrowserLaunchError("Airalo", "boom"),
            NavigationError("https://x", "timeout"),
            StoreError("esim_plans", "insert", "boom"),
        ):
            assert isinstance(exc, CatalogError)

        assert isinstance(ProviderNotFoundError("Nomad"), NotFoundError)
        assert isinstance(NavigationError("https://x", "t"), ScraperError)

    def test_messages(self):
        assert str(ProviderNotFoundError("Nomad")) == "Provider with identifier 'Nomad' not found"
        assert str(StoreError("esim_plans", "insert", "boom")) == "insert on esim_plans failed: boom"
