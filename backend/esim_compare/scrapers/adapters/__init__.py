"""Provider scrapers."""

from .airalo import AiraloScraper
from .holafly import HolaflyScraper
from .saily import SailyScraper

__all__ = ["AiraloScraper", "HolaflyScraper", "SailyScraper"]
