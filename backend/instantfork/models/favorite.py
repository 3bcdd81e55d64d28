"""Favorite model for deals a user has saved."""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from instantfork.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from instantfork.models.deal import Deal
    from instantfork.models.user import User


class Favorite(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """A (user, deal) bookmark; at most one per pair."""

    __tablename__ = "favorites"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    deal_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("deals.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )

    __table_args__ = (
        UniqueConstraint("user_id", "deal_id", name="uq_user_deal_favorite"),
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="favorites")
    deal: Mapped["Deal"] = relationship()

    def __repr__(self) -> str:
        return f"<Favorite(user={self.user_id}, deal={self.deal_id})>"
