"""ClaimedDeal model: one user's reservation of one unit of a deal."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, ForeignKey, Numeric, DateTime, Index, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from instantfork.models.base import Base, UUIDPrimaryKeyMixin, utcnow

if TYPE_CHECKING:
    from instantfork.models.deal import Deal
    from instantfork.models.user import User

CLAIM_STATUS_ACTIVE = "active"
CLAIM_STATUS_REDEEMED = "redeemed"
CLAIM_STATUS_EXPIRED = "expired"

CLAIM_STATUSES = (CLAIM_STATUS_ACTIVE, CLAIM_STATUS_REDEEMED, CLAIM_STATUS_EXPIRED)


class ClaimedDeal(UUIDPrimaryKeyMixin, Base):
    """A claim issued to a user, redeemable once at the issuing restaurant.

    Deal title, restaurant name and prices are snapshotted at claim time so
    receipts and QR payloads render without re-joining.
    """

    __tablename__ = "claimed_deals"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    deal_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    restaurant_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )

    claim_code: Mapped[str] = mapped_column(
        String(16), unique=True, nullable=False, index=True,
        comment="Short human-typable code"
    )
    status: Mapped[str] = mapped_column(
        String(10), nullable=False, default=CLAIM_STATUS_ACTIVE,
        comment="'active', 'redeemed' or 'expired'"
    )

    claimed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    redeemed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Snapshot
    deal_title: Mapped[str] = mapped_column(String(200), nullable=False)
    restaurant_name: Mapped[str] = mapped_column(String(200), nullable=False)
    deal_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    original_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    __table_args__ = (
        Index("idx_claimed_deals_user_deal_status", "user_id", "deal_id", "status"),
        # At most one outstanding claim per user and deal
        Index(
            "uq_claimed_deals_active_user_deal",
            "user_id",
            "deal_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="claims")
    deal: Mapped["Deal"] = relationship(back_populates="claims")

    def __repr__(self) -> str:
        return f"<ClaimedDeal(code={self.claim_code}, status={self.status}, deal={self.deal_id})>"
