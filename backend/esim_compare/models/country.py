"""Country reference model."""

from typing import TYPE_CHECKING, Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from esim_compare.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from esim_compare.models.esim_plan import EsimPlan


class Country(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Destination country, resolved by ISO 3166-1 alpha-2 code."""

    __tablename__ = "countries"

    code: Mapped[str] = mapped_column(String(2), unique=True, index=True, nullable=False, comment="ISO country code")
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    region: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    plans: Mapped[list["EsimPlan"]] = relationship(back_populates="country", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Country(id={self.id}, code='{self.code}')>"
