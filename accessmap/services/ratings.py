from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from accessmap.core.errors import AuthRequiredError, NetworkError
from accessmap.db.crud import (
    count_place_reviews,
    get_place_aggregate,
    get_reviewed_place_ids,
    increment_place_aggregate,
    overwrite_place_aggregate_from_reviews,
)
from accessmap.models.places import PlaceAggregate
from accessmap.models.reviews import AccessibilityReview
from accessmap.models.users import UserAuth
from accessmap.services.validation import validate_review

logger = logging.getLogger(__name__)


def submit_review(
    db: Session,
    *,
    author: UserAuth | None,
    place_id: str,
    place_name: str,
    physical: int,
    sensory: int,
    cognitive: int,
    text: str,
    photos: list[str] | None = None,
) -> AccessibilityReview:
    """Store a new accessibility review and fold it into the place aggregate.

    The review row and the aggregate increment commit together or not at all.
    """
    if author is None:
        raise AuthRequiredError("Sign in to add a review")

    cleaned_text = validate_review(physical=physical, sensory=sensory, cognitive=cognitive, text=text)

    now = datetime.utcnow()
    review = AccessibilityReview(
        place_id=place_id,
        user_id=author.id,
        place_name=(place_name or "").strip(),
        physical_rating=physical,
        sensory_rating=sensory,
        cognitive_rating=cognitive,
        text=cleaned_text,
        photos=list(photos or []),
        created_at=now,
        updated_at=now,
    )

    try:
        # Aggregate row first: the review references it.
        increment_place_aggregate(
            db,
            place_id=place_id,
            place_name=review.place_name,
            physical=physical,
            sensory=sensory,
            cognitive=cognitive,
        )
        db.add(review)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to store review for place %s", place_id)
        raise NetworkError("Failed to submit review. Please try again.") from e

    db.refresh(review)
    logger.info("Review %s added for place %s by %s", review.id, place_id, author.id)
    return review


def recompute_aggregate(db: Session, *, place_id: str) -> PlaceAggregate | None:
    """Rebuild a place aggregate from scratch out of its reviews.

    Reconciliation path for aggregates that drifted. Returns None when the
    place has neither reviews nor an aggregate.
    """
    if get_place_aggregate(db, place_id) is None and count_place_reviews(db, place_id) == 0:
        return None

    try:
        overwrite_place_aggregate_from_reviews(db, place_id=place_id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to recompute aggregate for place %s", place_id)
        raise NetworkError() from e

    place = get_place_aggregate(db, place_id)
    if place is not None:
        logger.info(
            "Recomputed aggregate for %s: count=%s physical=%.2f sensory=%.2f cognitive=%.2f",
            place_id,
            place.review_count,
            place.physical_rating,
            place.sensory_rating,
            place.cognitive_rating,
        )
    return place


def recompute_all_aggregates(db: Session) -> int:
    place_ids = get_reviewed_place_ids(db)
    for place_id in place_ids:
        recompute_aggregate(db, place_id=place_id)
    return len(place_ids)
