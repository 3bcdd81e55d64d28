"""Deal model representing a restaurant's time-limited discount offer."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import String, Text, ForeignKey, Boolean, Numeric, DateTime, Integer, Float, Index
from sqlalchemy import JSON as JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from instantfork.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from instantfork.models.claimed_deal import ClaimedDeal
    from instantfork.models.restaurant import Restaurant


class Deal(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A discount offer published by a restaurant owner.

    Deals are bounded by ``start_time``/``end_time`` and optionally by
    ``quantity_available``. ``quantity_claimed`` is only ever incremented
    through a conditional update, so it never exceeds the available quantity.
    """

    __tablename__ = "deals"

    restaurant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Content
    title: Mapped[str] = mapped_column(String(200), nullable=False, comment="Deal title")
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    tags: Mapped[List[str]] = mapped_column(
        JSONB,
        nullable=False,
        default=list,
        comment="Free-form tags (meal, dietary, ...)"
    )

    # Pricing
    original_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Regular menu price"
    )
    deal_price: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        comment="Discounted price"
    )

    # Location (copied from the restaurant unless overridden)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Time bounds
    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When deal becomes claimable"
    )
    end_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When deal stops being claimable"
    )

    # Status
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        index=True,
        comment="Owner-controlled visibility toggle"
    )

    # Inventory
    quantity_available: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Total units on offer; NULL means unlimited"
    )
    quantity_claimed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Engagement
    view_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, comment="Number of views")

    __table_args__ = (
        Index("idx_deals_active_end_time", "is_active", "end_time"),
    )

    # Relationships
    restaurant: Mapped["Restaurant"] = relationship(back_populates="deals")
    claims: Mapped[list["ClaimedDeal"]] = relationship(
        back_populates="deal", cascade="all, delete-orphan"
    )

    @property
    def discount_percentage(self) -> int:
        """Whole-percent saving, rounded half up."""
        from instantfork.services.formatting import calculate_savings

        if not self.original_price:
            return 0
        return calculate_savings(self.original_price, self.deal_price)

    @property
    def quantity_remaining(self) -> Optional[int]:
        if self.quantity_available is None:
            return None
        return max(0, self.quantity_available - (self.quantity_claimed or 0))

    def __repr__(self) -> str:
        return f"<Deal(id={self.id}, title='{self.title[:50]}', deal_price={self.deal_price})>"
