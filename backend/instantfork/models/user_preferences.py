"""UserPreferences model for catalog personalisation."""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING, List

from sqlalchemy import ForeignKey, Boolean, Float, Numeric
from sqlalchemy import JSON as JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from instantfork.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from instantfork.models.user import User


class UserPreferences(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """One row per user; created with defaults on first read."""

    __tablename__ = "user_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True, nullable=False, index=True,
    )
    favorite_cuisines: Mapped[List[str]] = mapped_column(JSONB, nullable=False, default=list)
    dietary_preferences: Mapped[List[str]] = mapped_column(JSONB, nullable=False, default=list)
    distance_preference: Mapped[float] = mapped_column(
        Float, nullable=False, default=50.0,
        comment="Maximum distance in miles"
    )
    price_min: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    price_max: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("100"))

    notification_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    email_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    push_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    user: Mapped["User"] = relationship(back_populates="preferences")

    def __repr__(self) -> str:
        return f"<UserPreferences(user={self.user_id})>"
