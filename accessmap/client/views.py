from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import anyio

from accessmap.client.api import AccessMapAPI, APIError
from accessmap.core.errors import AppError, NetworkError

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."


class ScreenView:
    """View state for one screen, refreshed each time the screen is activated.

    Each activation issues a single fetch. When a newer activation starts
    before an older fetch returns, the older result is dropped.
    """

    def __init__(self) -> None:
        self.data: Any = None
        self.loading = False
        self.error: str | None = None
        self._generation = 0

    def fetch(self) -> Any:
        raise NotImplementedError

    async def on_activate(self) -> Any:
        self._generation += 1
        generation = self._generation
        self.loading = True

        try:
            result = await anyio.to_thread.run_sync(self.fetch)
        except (AppError, APIError) as e:
            if generation == self._generation:
                if isinstance(e, NetworkError):
                    logger.exception("%s fetch failed", type(self).__name__)
                    self.error = GENERIC_FAILURE_MESSAGE
                else:
                    self.error = e.message
            return None
        except Exception:
            # Malformed payloads end this fetch only.
            logger.exception("%s fetch failed unexpectedly", type(self).__name__)
            if generation == self._generation:
                self.error = GENERIC_FAILURE_MESSAGE
            return None
        else:
            if generation != self._generation:
                logger.debug("%s: discarding stale fetch #%s", type(self).__name__, generation)
                return None
            self.data = result
            self.error = None
            return result
        finally:
            if generation == self._generation:
                self.loading = False


class PlaceSearchView(ScreenView):
    """Map screen: re-runs the last search whenever it is activated."""

    def __init__(self, api: AccessMapAPI, *, lat: float, lng: float) -> None:
        super().__init__()
        self.api = api
        self.lat = lat
        self.lng = lng
        self.last_query: str | None = None

    async def search(self, query: str) -> Any:
        self.last_query = query
        return await self.on_activate()

    def fetch(self) -> list[dict]:
        if not self.last_query:
            return []
        payload = self.api.search_places(self.last_query, lat=self.lat, lng=self.lng)
        return list(payload.get("items") or [])


class GoogleReviewsView(ScreenView):
    def __init__(self, api: AccessMapAPI, place_id: str) -> None:
        super().__init__()
        self.api = api
        self.place_id = place_id

    def fetch(self) -> list[dict]:
        return list(self.api.google_reviews(self.place_id).get("items") or [])


class AccessibilityReviewsView(ScreenView):
    def __init__(self, api: AccessMapAPI, place_id: str) -> None:
        super().__init__()
        self.api = api
        self.place_id = place_id

    def fetch(self) -> list[dict]:
        items = list(self.api.list_reviews(self.place_id).get("items") or [])
        # Newest first regardless of server order.
        items.sort(key=lambda r: datetime.fromisoformat(r["created_at"]), reverse=True)
        return items
