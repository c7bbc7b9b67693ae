from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from accessmap.core.deps import get_current_user
from accessmap.db.session import get_db
from accessmap.models.reviews import AccessibilityReview
from accessmap.models.users import UserAuth
from accessmap.schemas.reviews import ReviewCreate, ReviewListResponse, ReviewResponse
from accessmap.services.ratings import submit_review

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/places/{place_id}/accessibility-reviews", tags=["reviews"])


def _to_review_response(r: AccessibilityReview) -> ReviewResponse:
    return ReviewResponse(
        id=r.id,
        place_id=r.place_id,
        place_name=r.place_name,
        user_id=r.user_id,
        physical_rating=r.physical_rating,
        sensory_rating=r.sensory_rating,
        cognitive_rating=r.cognitive_rating,
        text=r.text,
        photos=list(r.photos or []),
        created_at=r.created_at,
        updated_at=r.updated_at,
    )


@router.post("", response_model=ReviewResponse, status_code=201)
def create_review(
    payload: ReviewCreate,
    place_id: str = Path(min_length=1, max_length=255),
    current: UserAuth = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReviewResponse:
    review = submit_review(
        db,
        author=current,
        place_id=place_id,
        place_name=payload.place_name,
        physical=payload.physical_rating,
        sensory=payload.sensory_rating,
        cognitive=payload.cognitive_rating,
        text=payload.text,
        photos=payload.photos,
    )
    return _to_review_response(review)


@router.get("", response_model=ReviewListResponse)
def list_reviews(
    place_id: str = Path(min_length=1, max_length=255),
    db: Session = Depends(get_db),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> ReviewListResponse:
    stmt = (
        select(AccessibilityReview)
        .where(AccessibilityReview.place_id == place_id)
        .order_by(AccessibilityReview.created_at.desc(), AccessibilityReview.id.desc())
    )
    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    items = list(db.scalars(stmt.limit(limit).offset(offset)).all())
    return ReviewListResponse(items=[_to_review_response(r) for r in items], total=int(total or 0))
