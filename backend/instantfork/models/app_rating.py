"""AppRating model: one star rating per user."""

import uuid
from typing import Optional

from sqlalchemy import ForeignKey, Integer, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from instantfork.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class AppRating(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "app_ratings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True, nullable=False, index=True,
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False, comment="1-5 stars")
    review: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("rating BETWEEN 1 AND 5", name="ck_app_ratings_rating_range"),
    )

    def __repr__(self) -> str:
        return f"<AppRating(user={self.user_id}, rating={self.rating})>"
