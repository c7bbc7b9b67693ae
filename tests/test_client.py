import threading
from unittest.mock import MagicMock, patch

import anyio
import pytest
import requests

from accessmap.client.api import AccessMapAPI, APIError
from accessmap.client.session import UserSession, sign_in, sign_out, submit_review
from accessmap.client.views import (
    GENERIC_FAILURE_MESSAGE,
    AccessibilityReviewsView,
    ScreenView,
    PlaceSearchView,
)
from accessmap.core.errors import AuthRequiredError, NetworkError, ValidationError

SESSION = UserSession(token="tok", user_id="u1", email="u1@example.com", display_name="U1")


def _response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload if payload is not None else {}
    resp.text = ""
    return resp


def _api_with(request_mock):
    api = AccessMapAPI("http://api.test/")
    api.request = request_mock
    return api


class TestAccessMapAPI:
    def test_sends_bearer_token(self):
        api = AccessMapAPI("http://api.test/")
        with patch("accessmap.client.api.requests.request", return_value=_response(200, {"id": "u1"})) as req:
            assert api.me("tok") == {"id": "u1"}

        kwargs = req.call_args.kwargs
        assert kwargs["url"] == "http://api.test/me"
        assert kwargs["headers"]["Authorization"] == "Bearer tok"

    def test_transport_error_becomes_network_error(self):
        api = AccessMapAPI("http://api.test")
        with patch("accessmap.client.api.requests.request", side_effect=requests.ConnectionError("down")):
            with pytest.raises(NetworkError):
                api.search_places("cafe", lat=0, lng=0)

    def test_server_error_becomes_network_error(self):
        api = AccessMapAPI("http://api.test")
        with patch("accessmap.client.api.requests.request", return_value=_response(502, {"detail": "x"})):
            with pytest.raises(NetworkError):
                api.google_reviews("p1")

    def test_expired_session_becomes_auth_required(self):
        api = AccessMapAPI("http://api.test")
        with patch("accessmap.client.api.requests.request", return_value=_response(401, {"detail": "expired"})):
            with pytest.raises(AuthRequiredError):
                api.me("old-token")

    def test_client_error_keeps_detail(self):
        api = AccessMapAPI("http://api.test")
        with patch("accessmap.client.api.requests.request", return_value=_response(404, {"detail": "No accessibility reviews yet"})):
            with pytest.raises(APIError) as exc_info:
                api.accessibility("p1")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "No accessibility reviews yet"

    def test_no_content(self):
        api = AccessMapAPI("http://api.test")
        with patch("accessmap.client.api.requests.request", return_value=_response(204)):
            assert api.logout("tok") is None


class TestSession:
    def test_sign_in_builds_session(self):
        def fake_request(method, path, **kwargs):
            if path == "/auth/token":
                assert kwargs["data"] == {"username": "a@example.com", "password": "pw"}
                return {"access_token": "t1"}
            if path == "/me":
                assert kwargs["token"] == "t1"
                return {"id": "u9", "email": "a@example.com", "display_name": "Ana"}
            raise AssertionError(path)

        session = sign_in(_api_with(MagicMock(side_effect=fake_request)), "a@example.com", "pw")
        assert session == UserSession(token="t1", user_id="u9", email="a@example.com", display_name="Ana")

    def test_sign_in_without_token_fails(self):
        api = _api_with(MagicMock(return_value={}))
        with pytest.raises(AuthRequiredError):
            sign_in(api, "a@example.com", "pw")

    def test_sign_out_revokes(self):
        request = MagicMock(return_value=None)
        sign_out(_api_with(request), SESSION)
        request.assert_called_once_with("POST", "/auth/logout", token="tok")

    def test_sign_out_tolerates_closed_session(self):
        sign_out(_api_with(MagicMock(side_effect=AuthRequiredError())), SESSION)

    def test_sign_out_without_session_is_noop(self):
        request = MagicMock()
        sign_out(_api_with(request), None)
        request.assert_not_called()


class TestSubmitReview:
    def _submit(self, api, session=SESSION, **overrides):
        kwargs = dict(
            place_id="p1",
            place_name="Cafe",
            physical=4,
            sensory=3,
            cognitive=5,
            text="  Quiet room available on request.  ",
        )
        kwargs.update(overrides)
        return submit_review(api, session, **kwargs)

    def test_posts_cleaned_review(self):
        request = MagicMock(return_value={"id": 1})
        assert self._submit(_api_with(request)) == {"id": 1}

        method, path = request.call_args.args
        assert (method, path) == ("POST", "/places/p1/accessibility-reviews")
        assert request.call_args.kwargs["token"] == "tok"
        assert request.call_args.kwargs["json"]["text"] == "Quiet room available on request."

    def test_requires_session(self):
        request = MagicMock()
        with pytest.raises(AuthRequiredError):
            self._submit(_api_with(request), session=None)
        request.assert_not_called()

    @pytest.mark.parametrize(
        "overrides, field",
        [({"physical": 0}, "ratings"), ({"sensory": 0}, "ratings"), ({"text": "short"}, "text")],
    )
    def test_validates_before_network(self, overrides, field):
        request = MagicMock()
        with pytest.raises(ValidationError) as exc_info:
            self._submit(_api_with(request), **overrides)
        assert exc_info.value.field == field
        request.assert_not_called()


class _ScriptedView(ScreenView):
    def __init__(self, loader):
        super().__init__()
        self.loader = loader

    def fetch(self):
        return self.loader()


@pytest.mark.anyio
async def test_on_activate_updates_state():
    view = _ScriptedView(lambda: ["a", "b"])
    assert await view.on_activate() == ["a", "b"]
    assert view.data == ["a", "b"]
    assert view.loading is False
    assert view.error is None


@pytest.mark.anyio
async def test_stale_fetch_is_discarded():
    release_first = threading.Event()
    calls: list[int] = []

    def loader():
        n = len(calls)
        calls.append(n)
        if n == 0:
            release_first.wait(timeout=5)
            return "stale"
        return "fresh"

    view = _ScriptedView(loader)
    results = {}

    async def first():
        results["first"] = await view.on_activate()

    async with anyio.create_task_group() as tg:
        tg.start_soon(first)
        with anyio.fail_after(5):
            while not calls:
                await anyio.sleep(0.01)
        results["second"] = await view.on_activate()
        release_first.set()

    assert results == {"first": None, "second": "fresh"}
    assert view.data == "fresh"
    assert view.loading is False


@pytest.mark.anyio
async def test_network_failure_sets_generic_message():
    def loader():
        raise NetworkError("Places API error: OVER_QUERY_LIMIT")

    view = _ScriptedView(loader)
    view.data = ["previous"]

    assert await view.on_activate() is None
    assert view.error == GENERIC_FAILURE_MESSAGE
    assert view.data == ["previous"]
    assert view.loading is False


@pytest.mark.anyio
async def test_malformed_payload_does_not_leave_view_loading():
    def loader():
        return {}["items"]

    view = _ScriptedView(loader)

    assert await view.on_activate() is None
    assert view.loading is False
    assert view.error == GENERIC_FAILURE_MESSAGE


@pytest.mark.anyio
async def test_bad_timestamp_in_reviews_is_reported():
    api = MagicMock()
    api.list_reviews.return_value = {"items": [{"id": 1, "created_at": "yesterday"}], "total": 1}
    view = AccessibilityReviewsView(api, "p1")

    assert await view.on_activate() is None
    assert view.loading is False
    assert view.error == GENERIC_FAILURE_MESSAGE

    api.list_reviews.return_value = {"items": [{"id": 1, "created_at": "2024-01-01T10:00:00"}], "total": 1}
    await view.on_activate()
    assert view.error is None
    assert [r["id"] for r in view.data] == [1]


@pytest.mark.anyio
async def test_search_view_reruns_last_query_on_activate():
    api = MagicMock()
    api.search_places.return_value = {"items": [{"id": "p1"}], "total": 1}
    view = PlaceSearchView(api, lat=1.0, lng=2.0)

    assert await view.on_activate() == []
    api.search_places.assert_not_called()

    await view.search("cafe")
    await view.on_activate()

    assert api.search_places.call_count == 2
    api.search_places.assert_called_with("cafe", lat=1.0, lng=2.0)
    assert view.data == [{"id": "p1"}]


@pytest.mark.anyio
async def test_accessibility_reviews_view_sorts_newest_first():
    api = MagicMock()
    api.list_reviews.return_value = {
        "items": [
            {"id": 1, "created_at": "2024-01-01T10:00:00"},
            {"id": 3, "created_at": "2024-03-01T10:00:00"},
            {"id": 2, "created_at": "2024-02-01T10:00:00"},
        ],
        "total": 3,
    }
    view = AccessibilityReviewsView(api, "p1")

    await view.on_activate()
    assert [r["id"] for r in view.data] == [3, 2, 1]
