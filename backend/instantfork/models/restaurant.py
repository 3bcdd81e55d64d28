"""Restaurant model representing a deal-issuing venue."""

import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, Text, Boolean, Float, ForeignKey
from sqlalchemy import JSON as JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from instantfork.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from instantfork.models.deal import Deal
    from instantfork.models.user import User


class Restaurant(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A restaurant managed by exactly one owner account.

    The unique ``owner_id`` gives the one owner to zero-or-one restaurant
    relationship used by the back office.
    """

    __tablename__ = "restaurants"

    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
        index=True,
    )

    # Basic info
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(
        String(50), nullable=False, index=True,
        comment="Cuisine category (e.g., 'Italian', 'Mexican')"
    )

    # Location
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    # Contact
    phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    opening_hours: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        comment="Per-weekday {open, close} strings"
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    owner: Mapped["User"] = relationship(back_populates="restaurant")
    deals: Mapped[list["Deal"]] = relationship(back_populates="restaurant", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Restaurant(id={self.id}, name='{self.name}')>"
