from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from api.main import app
from tests.helpers import FakeCatalog, movie


@pytest.fixture
def catalog():
    fake = FakeCatalog(
        discover={
            ("movie", "hi"): [
                movie(1, "Kahaani", lang="hi", genre_ids=[53], popularity=40.0)
            ],
            ("movie", "en"): [movie(2, "Gone Girl", genre_ids=[53])],
        },
        search=[movie(9, "Heat")],
    )
    app.state.tmdb_client = fake
    app.state.gemini_client = None
    yield fake
    app.state.tmdb_client = None
    app.state.gemini_client = None


def test_health():
    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_search_returns_ranked_items(catalog):
    client = TestClient(app)
    response = client.post("/search", json={"prompt": "hindi thriller"})
    assert response.status_code == 200
    items = response.json()["items"]
    assert [it["id"] for it in items] == [1, 2]
    assert items[0]["original_language"] == "hi"
    assert items[0]["source"] == "discover"
    assert items[0]["score"] > items[1]["score"]


def test_search_passes_hints(catalog):
    client = TestClient(app)
    response = client.post(
        "/search",
        json={"prompt": "thriller", "media_type_hint": "tv", "language_hint": "hi"},
    )
    assert response.status_code == 200
    discover = catalog.calls_named("discover")
    assert all(call[1] == "tv" and call[3] == "hi-US" for call in discover)


def test_empty_prompt_is_ok(catalog):
    client = TestClient(app)
    response = client.post("/search", json={"prompt": ""})
    assert response.status_code == 200
    assert response.json() == {"items": []}
    assert catalog.calls == []


def test_use_ai_fuses_suggestion(catalog, monkeypatch):
    seen = {}

    async def fake_suggest(text, client, mode="describe"):
        seen["text"] = text
        seen["client"] = client
        return {"mediaType": "movie", "query": "fincher", "liked_titles": ["Zodiac"]}

    monkeypatch.setattr("api.routes.search.suggest_plan", fake_suggest)
    client = TestClient(app)
    response = client.post("/search", json={"prompt": "dark thriller", "use_ai": True})

    assert response.status_code == 200
    assert seen == {"text": "dark thriller", "client": None}
    assert ("search_title", "Zodiac", None, "movie", "en-US") in catalog.calls


def test_invalid_body_is_rejected(catalog):
    client = TestClient(app)
    response = client.post("/search", json={"prompt": "x", "media_type_hint": "radio"})
    assert response.status_code == 422


def test_missing_catalog_client_returns_503():
    app.state.tmdb_client = None
    client = TestClient(app)
    response = client.post("/search", json={"prompt": "thriller"})
    assert response.status_code == 503
