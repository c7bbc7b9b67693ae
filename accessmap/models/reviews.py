from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accessmap.db.base import Base


class AccessibilityReview(Base):
    __tablename__ = "accessibility_reviews"

    # Append-only: rows are never updated or deleted after creation.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    place_id: Mapped[str] = mapped_column(String(255), ForeignKey("places.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users_auth.id"), nullable=False, index=True)
    place_name: Mapped[str] = mapped_column(String(200), nullable=False, default="")

    physical_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    sensory_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    cognitive_rating: Mapped[int] = mapped_column(Integer, nullable=False)

    text: Mapped[str] = mapped_column(String(2000), nullable=False)
    photos: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    place: Mapped["PlaceAggregate"] = relationship(back_populates="reviews")

    __table_args__ = (
        CheckConstraint("physical_rating >= 1 AND physical_rating <= 5", name="ck_reviews_physical_range"),
        CheckConstraint("sensory_rating >= 1 AND sensory_rating <= 5", name="ck_reviews_sensory_range"),
        CheckConstraint("cognitive_rating >= 1 AND cognitive_rating <= 5", name="ck_reviews_cognitive_range"),
    )


Index("ix_accessibility_reviews_place_created_at", AccessibilityReview.place_id, AccessibilityReview.created_at)
