from accessmap.core.errors import NetworkError
from accessmap.models.places import PlaceAggregate
from conftest import make_google_review, make_place


def _search(client, **params):
    query = {"q": "cafe", "lat": 40.0, "lng": -74.0}
    query.update(params)
    return client.get("/places/search", params=query)


def test_search_merges_accessibility_aggregates(client, db, places_client):
    db.add(
        PlaceAggregate(
            id="reviewed",
            name="Cafe Reviewed",
            physical_total=9,
            sensory_total=6,
            cognitive_total=3,
            review_count=3,
        )
    )
    db.commit()
    places_client.results = [
        make_place("reviewed", "Cafe Reviewed", rating=4.5, review_count=120, photo_refs=["ref-a", "ref-b"]),
        make_place("fresh", "Cafe Fresh"),
    ]

    r = _search(client)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total"] == 2

    reviewed, fresh = body["items"]
    assert reviewed["id"] == "reviewed"
    assert reviewed["google_rating"] == 4.5
    assert reviewed["google_review_count"] == 120
    assert reviewed["physical_rating"] == 3.0
    assert reviewed["sensory_rating"] == 2.0
    assert reviewed["cognitive_rating"] == 1.0
    assert reviewed["accessibility_review_count"] == 3
    assert reviewed["photos"] == [
        "https://photos.test/ref-a?maxwidth=400",
        "https://photos.test/ref-b?maxwidth=400",
    ]

    assert fresh["physical_rating"] is None
    assert fresh["sensory_rating"] is None
    assert fresh["cognitive_rating"] is None
    assert fresh["accessibility_review_count"] == 0
    assert fresh["photos"] == []


def test_search_passes_location_and_radius(client, places_client):
    r = _search(client, q="  library ", radius=1200)
    assert r.status_code == 200, r.text
    assert places_client.search_calls == [{"query": "library", "lat": 40.0, "lng": -74.0, "radius": 1200}]


def test_search_uses_default_radius(client, places_client):
    assert _search(client).status_code == 200
    assert places_client.search_calls[0]["radius"] == 5000


def test_search_requires_location(client):
    r = client.get("/places/search", params={"q": "cafe"})
    assert r.status_code == 422


def test_search_network_error_502(client, places_client):
    places_client.error = NetworkError("Places API error: OVER_QUERY_LIMIT")

    r = _search(client)
    assert r.status_code == 502
    # upstream detail is not leaked to the user
    assert r.json() == {"detail": "Service temporarily unavailable"}


def test_google_reviews(client, places_client):
    places_client.reviews["p1"] = [
        make_google_review("Jane", 5, "Great ramps", 1_700_000_000),
        make_google_review("Sam", 2, "Loud music", 1_600_000_000),
    ]

    r = client.get("/places/p1/google-reviews")
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["total"] == 2
    assert [x["author"] for x in body["items"]] == ["Jane", "Sam"]
    assert body["items"][0]["rating"] == 5
    assert body["items"][0]["time"].startswith("2023-11-14T22:13:20")


def test_google_reviews_network_error(client, places_client):
    places_client.error = NetworkError()
    r = client.get("/places/p1/google-reviews")
    assert r.status_code == 502
