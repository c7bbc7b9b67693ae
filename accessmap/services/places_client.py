from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import urlencode

import aiohttp
from aiohttp import ClientError
from fastapi import status

from accessmap.core.config import settings
from accessmap.core.errors import NetworkError

logger = logging.getLogger(__name__)

_OK_STATUSES = {"OK", "ZERO_RESULTS"}


@dataclass
class PlaceResult:
    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    rating: float = 0.0
    review_count: int = 0
    photo_refs: list[str] = field(default_factory=list)
    phone_number: str | None = None


@dataclass
class GoogleReview:
    author: str
    rating: int
    text: str
    time: datetime
    relative_time_description: str | None = None
    profile_photo_url: str | None = None


def _parse_place(result: dict) -> PlaceResult | None:
    place_id = result.get("place_id")
    name = (result.get("name") or "").strip()
    location = (result.get("geometry") or {}).get("location") or {}
    if not place_id or not name or "lat" not in location or "lng" not in location:
        return None

    return PlaceResult(
        id=str(place_id),
        name=name,
        address=result.get("formatted_address") or result.get("vicinity") or "",
        latitude=float(location["lat"]),
        longitude=float(location["lng"]),
        rating=float(result.get("rating") or 0.0),
        review_count=int(result.get("user_ratings_total") or 0),
        photo_refs=[p["photo_reference"] for p in result.get("photos") or [] if p.get("photo_reference")],
        phone_number=result.get("formatted_phone_number"),
    )


def _parse_review(review: dict) -> GoogleReview:
    return GoogleReview(
        author=review.get("author_name") or "Anonymous",
        rating=int(review.get("rating") or 0),
        text=review.get("text") or "",
        time=datetime.fromtimestamp(int(review.get("time") or 0), tz=timezone.utc),
        relative_time_description=review.get("relative_time_description"),
        profile_photo_url=review.get("profile_photo_url"),
    )


def _raise_for_api_status(endpoint: str, data: dict) -> None:
    # Google reports quota and key problems with HTTP 200 and a status field.
    api_status = data.get("status", "OK")
    if api_status not in _OK_STATUSES:
        logger.warning("Places API %s status=%s: %s", endpoint, api_status, data.get("error_message"))
        raise NetworkError(f"Places API error: {api_status}")


class GooglePlacesClient:
    """Thin async wrapper over the Google Places web service."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.api_key = (api_key if api_key is not None else settings.google_maps_api_key or "").strip()
        self.base_url = (base_url or settings.google_places_url).rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds or settings.places_timeout_seconds)

    def photo_url(self, reference: str, *, max_width: int | None = None) -> str:
        params = {
            "maxwidth": max_width or settings.places_photo_max_width,
            "photoreference": reference,
            "key": self.api_key,
        }
        return f"{self.base_url}/photo?{urlencode(params)}"

    async def _get_json(self, endpoint: str, params: dict) -> dict:
        url = f"{self.base_url}/{endpoint}"
        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.get(url, params={**params, "key": self.api_key}) as response:
                    if response.status != status.HTTP_200_OK:
                        raise NetworkError(f"Places API returned HTTP {response.status}")
                    data = await response.json(content_type=None)
        except (ClientError, asyncio.TimeoutError) as e:
            logger.warning("Places API request error (%s): %s", endpoint, e)
            raise NetworkError("Places API unavailable") from e

        _raise_for_api_status(endpoint, data)
        return data

    async def text_search(
        self,
        query: str,
        *,
        lat: float,
        lng: float,
        radius_meters: int | None = None,
    ) -> list[PlaceResult]:
        if not self.api_key:
            logger.warning("Google Maps API key not configured; skipping search")
            return []

        params = {
            "query": query,
            "location": f"{lat},{lng}",
            "radius": radius_meters or settings.places_search_radius_meters,
        }
        data = await self._get_json("textsearch/json", params)

        places: list[PlaceResult] = []
        for result in data.get("results") or []:
            place = _parse_place(result)
            if place is not None:
                places.append(place)

        logger.info("Places search %r returned %s results", query, len(places))
        return places

    async def place_details(self, place_id: str) -> list[GoogleReview]:
        if not self.api_key:
            logger.warning("Google Maps API key not configured; skipping details")
            return []

        params = {"place_id": place_id, "fields": "reviews", "reviews_sort": "newest"}
        data = await self._get_json("details/json", params)
        reviews = (data.get("result") or {}).get("reviews") or []
        return [_parse_review(r) for r in reviews]


places_client = GooglePlacesClient()


def get_places_client() -> GooglePlacesClient:
    return places_client
