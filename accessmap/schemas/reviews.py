from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field


class ReviewCreate(BaseModel):
    place_name: str = Field(default="", max_length=200)
    # 0 means "not rated"; rejected with a field-level error by the service.
    physical_rating: int = Field(default=0, ge=0, le=5)
    sensory_rating: int = Field(default=0, ge=0, le=5)
    cognitive_rating: int = Field(default=0, ge=0, le=5)
    text: str = Field(default="", max_length=2000)
    photos: list[Annotated[str, Field(max_length=500)]] = Field(default_factory=list, max_length=10)


class ReviewResponse(BaseModel):
    id: int
    place_id: str
    place_name: str
    user_id: str
    physical_rating: int
    sensory_rating: int
    cognitive_rating: int
    text: str
    photos: list[str]
    created_at: datetime
    updated_at: datetime


class ReviewListResponse(BaseModel):
    items: list[ReviewResponse]
    total: int
