"""DealHistory model: a user's record of redeemed deals."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from instantfork.models.base import Base, UUIDPrimaryKeyMixin, utcnow


class DealHistory(UUIDPrimaryKeyMixin, Base):
    """Written once per successful redemption."""

    __tablename__ = "deal_history"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    deal_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("deals.id", ondelete="SET NULL"),
        nullable=True,
    )
    claimed_deal_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("claimed_deals.id", ondelete="SET NULL"),
        nullable=True, unique=True,
    )

    deal_title: Mapped[str] = mapped_column(String(200), nullable=False)
    restaurant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    deal_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    original_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    redeemed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    def __repr__(self) -> str:
        return f"<DealHistory(user={self.user_id}, deal='{self.deal_title}')>"
