from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accessmap.db.base import Base


class PlaceAggregate(Base):
    """Accessibility stats for one Google place.

    Stores per-category rating totals rather than averages so that a new review
    is applied with a commutative increment. Averages are derived on read.
    """

    __tablename__ = "places"

    # Google place id
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    physical_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sensory_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    cognitive_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    last_updated: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)

    reviews: Mapped[list["AccessibilityReview"]] = relationship(back_populates="place")

    __table_args__ = (
        CheckConstraint("review_count >= 0", name="ck_places_review_count_non_negative"),
    )

    def _average(self, total: int) -> float:
        if not self.review_count:
            return 0.0
        return total / self.review_count

    @property
    def physical_rating(self) -> float:
        return self._average(self.physical_total)

    @property
    def sensory_rating(self) -> float:
        return self._average(self.sensory_total)

    @property
    def cognitive_rating(self) -> float:
        return self._average(self.cognitive_total)
