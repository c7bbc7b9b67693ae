from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class PlaceResponse(BaseModel):
    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    google_rating: float
    google_review_count: int
    physical_rating: float | None
    sensory_rating: float | None
    cognitive_rating: float | None
    accessibility_review_count: int
    photos: list[str]
    phone_number: str | None = None


class PlaceListResponse(BaseModel):
    items: list[PlaceResponse]
    total: int


class PlaceAggregateResponse(BaseModel):
    place_id: str
    name: str | None
    physical_rating: float
    sensory_rating: float
    cognitive_rating: float
    review_count: int
    last_updated: datetime


class GoogleReviewResponse(BaseModel):
    author: str
    rating: int
    text: str
    time: datetime
    relative_time_description: str | None
    profile_photo_url: str | None


class GoogleReviewListResponse(BaseModel):
    items: list[GoogleReviewResponse]
    total: int
