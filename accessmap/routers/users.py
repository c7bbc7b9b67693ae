from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from accessmap.core.deps import get_current_user
from accessmap.db.session import get_db
from accessmap.models.reviews import AccessibilityReview
from accessmap.models.users import UserAuth
from accessmap.routers.reviews import _to_review_response
from accessmap.schemas.auth import UserMeResponse
from accessmap.schemas.reviews import ReviewListResponse

router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserMeResponse)
def me(current: UserAuth = Depends(get_current_user)) -> UserMeResponse:
    return UserMeResponse(
        id=current.id,
        email=current.email,
        display_name=current.profile.display_name if current.profile else "",
        role=current.role,
        is_active=current.is_active,
    )


@router.get("/me/reviews", response_model=ReviewListResponse)
def my_reviews(
    current: UserAuth = Depends(get_current_user),
    db: Session = Depends(get_db),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> ReviewListResponse:
    stmt = (
        select(AccessibilityReview)
        .where(AccessibilityReview.user_id == current.id)
        .order_by(AccessibilityReview.created_at.desc(), AccessibilityReview.id.desc())
    )
    total = db.scalar(select(func.count()).select_from(stmt.subquery()))
    items = list(db.scalars(stmt.limit(limit).offset(offset)).all())
    return ReviewListResponse(items=[_to_review_response(r) for r in items], total=int(total or 0))
