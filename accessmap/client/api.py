from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from accessmap.core.errors import AuthRequiredError, NetworkError

logger = logging.getLogger(__name__)


@dataclass
class APIError(Exception):
    status_code: int
    message: str
    details: Any = None


class AccessMapAPI:
    def __init__(self, base_url: str, *, timeout: float = 20):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _headers(self, token: str | None) -> Dict[str, str]:
        h = {"Accept": "application/json"}
        if token:
            h["Authorization"] = f"Bearer {token}"
        return h

    def request(self, method: str, path: str, *,
                token: str | None = None,
                params: Optional[dict] = None,
                json: Optional[dict] = None,
                data: Optional[dict] = None) -> Any:
        url = f"{self.base_url}{path}"
        try:
            resp = requests.request(
                method=method.upper(),
                url=url,
                headers=self._headers(token),
                params=params,
                json=json,
                data=data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method.upper(), path, e)
            raise NetworkError() from e

        if resp.status_code == 204:
            return None

        # Error bodies are not always JSON.
        try:
            payload = resp.json()
        except ValueError:
            payload = resp.text

        if resp.status_code >= 400:
            msg = None
            if isinstance(payload, dict):
                msg = payload.get("detail")
            if resp.status_code == 401 and token:
                raise AuthRequiredError(msg or "Session expired, please sign in again")
            if resp.status_code >= 500:
                logger.warning("%s %s -> %s", method.upper(), path, resp.status_code)
                raise NetworkError()
            raise APIError(resp.status_code, msg or f"HTTP {resp.status_code}", payload)

        return payload

    # --- Auth ---
    def register(self, email: str, password: str, display_name: str) -> str:
        payload = self.request(
            "POST",
            "/auth/register",
            json={"email": email, "password": password, "display_name": display_name},
        )
        return payload.get("access_token", "") if isinstance(payload, dict) else ""

    def token(self, email: str, password: str) -> str:
        # OAuth2PasswordRequestForm expects form-data username/password
        payload = self.request("POST", "/auth/token", data={"username": email, "password": password})
        return payload.get("access_token", "") if isinstance(payload, dict) else ""

    def logout(self, token: str) -> None:
        self.request("POST", "/auth/logout", token=token)

    def me(self, token: str) -> Any:
        return self.request("GET", "/me", token=token)

    # --- Places ---
    def search_places(self, query: str, *, lat: float, lng: float, radius: int | None = None) -> Any:
        params = {"q": query, "lat": lat, "lng": lng}
        if radius:
            params["radius"] = radius
        return self.request("GET", "/places/search", params=params)

    def google_reviews(self, place_id: str) -> Any:
        return self.request("GET", f"/places/{place_id}/google-reviews")

    def accessibility(self, place_id: str) -> Any:
        return self.request("GET", f"/places/{place_id}/accessibility")

    # --- Accessibility reviews ---
    def list_reviews(self, place_id: str, *, limit: int = 50, offset: int = 0) -> Any:
        return self.request(
            "GET", f"/places/{place_id}/accessibility-reviews", params={"limit": limit, "offset": offset}
        )

    def add_review(self, place_id: str, body: dict, *, token: str) -> Any:
        return self.request("POST", f"/places/{place_id}/accessibility-reviews", token=token, json=body)
