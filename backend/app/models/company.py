"""Company model representing a marketplace participant."""

from __future__ import annotations

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin


if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from app.models.listing import DriverListing, VehicleListing


class Company(TimestampMixin, Base):
    """A company that publishes listings and books other companies' listings."""

    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    organization_number: Mapped[str | None] = mapped_column(String(32), unique=True)
    city: Mapped[str | None] = mapped_column(String(120))
    fylke: Mapped[str | None] = mapped_column(String(120), index=True)
    kommune: Mapped[str | None] = mapped_column(String(120), index=True)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    suspended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    aggregated_rating: Mapped[Decimal | None] = mapped_column(Numeric(3, 2))

    vehicle_listings: Mapped[list["VehicleListing"]] = relationship(
        "VehicleListing", back_populates="company", cascade="all, delete-orphan"
    )
    driver_listings: Mapped[list["DriverListing"]] = relationship(
        "DriverListing", back_populates="company", cascade="all, delete-orphan"
    )
