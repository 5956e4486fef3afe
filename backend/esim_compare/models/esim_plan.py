"""Persisted eSIM plan offers."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from esim_compare.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from esim_compare.models.country import Country
    from esim_compare.models.provider import Provider


class EsimPlan(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One pricing/data-allowance offer for a provider + country pair.

    The set of rows for a (provider_id, country_id) pair is replaced
    wholesale by every ingestion run; rows are never updated in place.
    """

    __tablename__ = "esim_plans"

    provider_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    country_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("countries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    data_amount_gb: Mapped[Decimal] = mapped_column(
        Numeric(8, 2),
        nullable=False,
        comment="Data allowance in GB, 999 for unlimited",
    )
    validity_days: Mapped[int] = mapped_column(Integer, nullable=False)

    # Pricing
    price_usd: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, comment="Normalized USD price")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD", comment="Currency shown on the site")
    original_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2),
        nullable=True,
        comment="Price in the original currency",
    )

    # Features
    is_unlimited: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    network_type: Mapped[str] = mapped_column(String(20), nullable=False, default="4G/5G")
    coverage_type: Mapped[str] = mapped_column(String(50), nullable=False, default="National")
    hotspot_allowed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    voice_calls: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    sms_included: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    plan_url: Mapped[str] = mapped_column(String(2000), nullable=False)
    last_scraped_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When this offer was scraped",
    )

    __table_args__ = (
        Index("idx_esim_plans_provider_country", "provider_id", "country_id"),
    )

    provider: Mapped["Provider"] = relationship(back_populates="plans")
    country: Mapped["Country"] = relationship(back_populates="plans")

    def __repr__(self) -> str:
        return f"<EsimPlan(id={self.id}, name='{self.name}', price_usd={self.price_usd})>"
