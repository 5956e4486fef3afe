"""Scrape run audit log."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from esim_compare.models.base import Base, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from esim_compare.models.provider import Provider


class ScrapingLog(UUIDPrimaryKeyMixin, Base):
    """Tracks one ingestion run for a provider.

    Inserted as 'running' when save_plans starts and updated exactly
    once when it finishes, to either 'completed' or 'failed'.
    """

    __tablename__ = "scraping_logs"

    provider_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    scrape_type: Mapped[str] = mapped_column(String(20), nullable=False, default="full")
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="running",
        index=True,
        comment="Status: 'running', 'completed', 'failed'",
    )

    # Metrics
    plans_found: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    plans_added: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    plans_updated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    error_message: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Per-plan and per-country errors joined with '; '",
    )

    # Timing
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    provider: Mapped["Provider"] = relationship(back_populates="scraping_logs")

    def __repr__(self) -> str:
        return f"<ScrapingLog(id={self.id}, provider_id={self.provider_id}, status='{self.status}')>"
