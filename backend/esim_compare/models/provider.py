"""Provider model representing eSIM vendors."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from esim_compare.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from esim_compare.models.esim_plan import EsimPlan
    from esim_compare.models.scraping_log import ScrapingLog


class Provider(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """eSIM provider (Airalo, Saily, Holafly...).

    Reference data: seeded once and resolved by exact name when a
    scraper is created. The pipeline never writes to this table.
    """

    __tablename__ = "providers"

    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    website_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    plans: Mapped[list["EsimPlan"]] = relationship(back_populates="provider", cascade="all, delete-orphan")
    scraping_logs: Mapped[list["ScrapingLog"]] = relationship(back_populates="provider", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Provider(id={self.id}, name='{self.name}')>"
