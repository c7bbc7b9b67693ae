import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

_tmpdir = Path(tempfile.mkdtemp(prefix="accessmap_test_"))
_db_path = _tmpdir / "test.db"

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_db_path.as_posix()}")
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key")
os.environ.setdefault("GOOGLE_MAPS_API_KEY", "test-maps-key")
os.environ.setdefault("LOG_DIR", (_tmpdir / "logs").as_posix())

import pytest
from fastapi.testclient import TestClient

from accessmap.db.base import Base
from accessmap.db.session import engine, SessionLocal
from accessmap.main import create_app
from accessmap.models.users import UserAuth, UserProfile
from accessmap.services.places_client import GoogleReview, PlaceResult, get_places_client


class FakePlacesClient:
    def __init__(self):
        self.results: list[PlaceResult] = []
        self.reviews: dict[str, list[GoogleReview]] = {}
        self.error: Exception | None = None
        self.search_calls: list[dict] = []

    def photo_url(self, reference: str, *, max_width: int | None = None) -> str:
        return f"https://photos.test/{reference}?maxwidth={max_width or 400}"

    async def text_search(self, query, *, lat, lng, radius_meters=None):
        self.search_calls.append({"query": query, "lat": lat, "lng": lng, "radius": radius_meters})
        if self.error:
            raise self.error
        return list(self.results)

    async def place_details(self, place_id):
        if self.error:
            raise self.error
        return list(self.reviews.get(place_id, []))


@pytest.fixture()
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def db(clean_db):
    session = SessionLocal()
    try:
        yield session
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def places_client():
    return FakePlacesClient()


@pytest.fixture()
def app(clean_db, places_client):
    app = create_app()
    app.dependency_overrides[get_places_client] = lambda: places_client
    return app


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def user(db):
    u = UserAuth(email="author@example.com", password_hash="x")
    u.profile = UserProfile(display_name="Author")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def register(client, email="u1@example.com", password="password123", display_name="Test User") -> str:
    r = client.post(
        "/auth/register",
        json={"email": email, "password": password, "display_name": display_name},
    )
    assert r.status_code == 201, r.text
    return r.json()["access_token"]


def make_place(place_id="place-1", name="Cafe Alpha", photo_refs=None, **kwargs) -> PlaceResult:
    return PlaceResult(
        id=place_id,
        name=name,
        address=kwargs.pop("address", "1 Main St"),
        latitude=kwargs.pop("latitude", 40.0),
        longitude=kwargs.pop("longitude", -74.0),
        photo_refs=list(photo_refs or []),
        **kwargs,
    )


def make_google_review(author="Jane", rating=4, text="Nice", epoch=1_700_000_000) -> GoogleReview:
    return GoogleReview(
        author=author,
        rating=rating,
        text=text,
        time=datetime.fromtimestamp(epoch, tz=timezone.utc),
    )
