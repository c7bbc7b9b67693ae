from __future__ import annotations

import logging
from dataclasses import dataclass

from accessmap.client.api import AccessMapAPI
from accessmap.core.errors import AuthRequiredError
from accessmap.services.validation import validate_review

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserSession:
    """The signed-in user. Created by sign-in, discarded on sign-out."""

    token: str
    user_id: str
    email: str
    display_name: str


def _load_session(api: AccessMapAPI, token: str) -> UserSession:
    if not token:
        raise AuthRequiredError("Sign in failed")
    me = api.me(token)
    return UserSession(
        token=token,
        user_id=me["id"],
        email=me["email"],
        display_name=me.get("display_name") or "",
    )


def create_account(api: AccessMapAPI, email: str, password: str, display_name: str) -> UserSession:
    return _load_session(api, api.register(email, password, display_name))


def sign_in(api: AccessMapAPI, email: str, password: str) -> UserSession:
    return _load_session(api, api.token(email, password))


def sign_out(api: AccessMapAPI, session: UserSession | None) -> None:
    """Revoke the session server-side. The caller drops its reference."""
    if session is None:
        return
    try:
        api.logout(session.token)
    except AuthRequiredError:
        # Already revoked or expired.
        logger.info("Session for %s was already closed", session.user_id)


def submit_review(
    api: AccessMapAPI,
    session: UserSession | None,
    *,
    place_id: str,
    place_name: str,
    physical: int,
    sensory: int,
    cognitive: int,
    text: str,
    photos: list[str] | None = None,
) -> dict:
    if session is None:
        raise AuthRequiredError("Sign in to add a review")

    cleaned = validate_review(physical=physical, sensory=sensory, cognitive=cognitive, text=text)
    body = {
        "place_name": place_name,
        "physical_rating": physical,
        "sensory_rating": sensory,
        "cognitive_rating": cognitive,
        "text": cleaned,
        "photos": list(photos or []),
    }
    return api.add_review(place_id, body, token=session.token)
