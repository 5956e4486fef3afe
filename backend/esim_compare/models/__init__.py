"""SQLAlchemy models for the plan catalog.

All models are imported here so metadata.create_all sees every table.
"""

from esim_compare.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from esim_compare.models.provider import Provider
from esim_compare.models.country import Country
from esim_compare.models.esim_plan import EsimPlan
from esim_compare.models.scraping_log import ScrapingLog

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Provider",
    "Country",
    "EsimPlan",
    "ScrapingLog",
]
