from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from accessmap.core.config import settings
from accessmap.core.deps import require_role
from accessmap.db.crud import get_place_aggregate, get_place_aggregates
from accessmap.db.session import get_db
from accessmap.models.enums import UserRole
from accessmap.models.places import PlaceAggregate
from accessmap.schemas.places import (
    GoogleReviewListResponse,
    GoogleReviewResponse,
    PlaceAggregateResponse,
    PlaceListResponse,
    PlaceResponse,
)
from accessmap.services.places_client import GooglePlacesClient, PlaceResult, get_places_client
from accessmap.services.ratings import recompute_aggregate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/places", tags=["places"])


def _to_place_response(
    place: PlaceResult,
    aggregate: PlaceAggregate | None,
    client: GooglePlacesClient,
) -> PlaceResponse:
    has_reviews = aggregate is not None and aggregate.review_count > 0
    return PlaceResponse(
        id=place.id,
        name=place.name,
        address=place.address,
        latitude=place.latitude,
        longitude=place.longitude,
        google_rating=place.rating,
        google_review_count=place.review_count,
        physical_rating=aggregate.physical_rating if has_reviews else None,
        sensory_rating=aggregate.sensory_rating if has_reviews else None,
        cognitive_rating=aggregate.cognitive_rating if has_reviews else None,
        accessibility_review_count=aggregate.review_count if aggregate else 0,
        photos=[client.photo_url(ref) for ref in place.photo_refs],
        phone_number=place.phone_number,
    )


def _to_aggregate_response(place: PlaceAggregate) -> PlaceAggregateResponse:
    return PlaceAggregateResponse(
        place_id=place.id,
        name=place.name,
        physical_rating=place.physical_rating,
        sensory_rating=place.sensory_rating,
        cognitive_rating=place.cognitive_rating,
        review_count=place.review_count,
        last_updated=place.last_updated,
    )


@router.get("/search", response_model=PlaceListResponse)
async def search_places(
    q: str = Query(min_length=1, max_length=200),
    lat: float = Query(ge=-90, le=90),
    lng: float = Query(ge=-180, le=180),
    radius: int = Query(default=settings.places_search_radius_meters, ge=1, le=50_000),
    db: Session = Depends(get_db),
    client: GooglePlacesClient = Depends(get_places_client),
) -> PlaceListResponse:
    results = await client.text_search(q.strip(), lat=lat, lng=lng, radius_meters=radius)
    aggregates = get_place_aggregates(db, [p.id for p in results])
    items = [_to_place_response(p, aggregates.get(p.id), client) for p in results]
    return PlaceListResponse(items=items, total=len(items))


@router.get("/{place_id}/google-reviews", response_model=GoogleReviewListResponse)
async def google_reviews(
    place_id: str = Path(min_length=1, max_length=255),
    client: GooglePlacesClient = Depends(get_places_client),
) -> GoogleReviewListResponse:
    reviews = await client.place_details(place_id)
    items = [
        GoogleReviewResponse(
            author=r.author,
            rating=r.rating,
            text=r.text,
            time=r.time,
            relative_time_description=r.relative_time_description,
            profile_photo_url=r.profile_photo_url,
        )
        for r in reviews
    ]
    return GoogleReviewListResponse(items=items, total=len(items))


@router.get("/{place_id}/accessibility", response_model=PlaceAggregateResponse)
def get_accessibility(
    place_id: str = Path(min_length=1, max_length=255),
    db: Session = Depends(get_db),
) -> PlaceAggregateResponse:
    place = get_place_aggregate(db, place_id)
    if not place:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No accessibility reviews yet")
    return _to_aggregate_response(place)


@router.post(
    "/{place_id}/accessibility/recompute",
    response_model=PlaceAggregateResponse,
    dependencies=[Depends(require_role(UserRole.admin))],
)
def recompute_accessibility(
    place_id: str = Path(min_length=1, max_length=255),
    db: Session = Depends(get_db),
) -> PlaceAggregateResponse:
    place = recompute_aggregate(db, place_id=place_id)
    if not place:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No accessibility reviews yet")
    return _to_aggregate_response(place)
