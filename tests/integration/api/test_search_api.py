"""Search, catalog and health endpoints end to end."""

from conftest import UpstreamStub
from fastapi.testclient import TestClient

TOKEN_URL = "https://accounts.spotify.com/api/token"
API = "https://api.spotify.com/v1"


def stub_app_token(upstream: UpstreamStub) -> None:
    upstream.json(
        "POST", TOKEN_URL, {"access_token": "app-token", "token_type": "Bearer", "expires_in": 3600}
    )


def test_health(client: TestClient) -> None:
    body = client.get("/api/health").json()

    assert body["ok"] is True
    assert body["service"] == "recordcrate-api"
    assert body["time"]


def test_natural_language_fallback_without_key(client: TestClient) -> None:
    response = client.post("/api/search/natural-language", json={"query": "sad indie songs"})

    assert response.status_code == 200
    body = response.json()
    assert body["isNaturalLanguage"] is True
    assert body["usedModel"] is False
    assert body["additionalSearchTerms"] == ["indie", "sad"]


def test_natural_language_plain_term(client: TestClient) -> None:
    body = client.post("/api/search/natural-language", json={"query": "Radiohead"}).json()

    assert body["isNaturalLanguage"] is False


def test_natural_language_requires_query(client: TestClient) -> None:
    assert client.post("/api/search/natural-language", json={"query": "  "}).status_code == 400
    assert client.post("/api/search/natural-language", json={}).status_code == 400


def test_search_health(client: TestClient) -> None:
    body = client.get("/api/search/health").json()

    assert body == {
        "status": "ok",
        "geminiConfigured": False,
        "service": "natural-language-search",
    }


def test_catalog_search_uses_app_token(client: TestClient, upstream: UpstreamStub) -> None:
    stub_app_token(upstream)
    upstream.json("GET", f"{API}/search", {"albums": {"items": [{"id": "blonde"}]}})

    first = client.get("/api/search/catalog", params={"q": "blonde", "type": "album"})
    client.get("/api/search/catalog", params={"q": "channel orange"})

    assert first.json() == {"albums": {"items": [{"id": "blonde"}]}}
    search = upstream.calls[1]
    assert search.headers["Authorization"] == "Bearer app-token"
    assert search.url.params["q"] == "blonde"
    assert upstream.count("POST", TOKEN_URL) == 1


def test_catalog_search_rejects_unknown_type(client: TestClient) -> None:
    response = client.get("/api/search/catalog", params={"q": "x", "type": "playlist"})

    assert response.status_code == 400
    assert response.json()["field"] == "type"


def test_catalog_upstream_failure_is_503(client: TestClient, upstream: UpstreamStub) -> None:
    stub_app_token(upstream)
    upstream.json("GET", f"{API}/albums/missing", {"error": "boom"}, status_code=500)

    response = client.get("/api/catalog/albums/missing")

    assert response.status_code == 503
    assert response.json()["error"] == "upstream_unavailable"


def test_catalog_without_credentials_is_503(client: TestClient, upstream: UpstreamStub) -> None:
    upstream.json("POST", TOKEN_URL, {"error": "invalid_client"}, status_code=401)

    assert client.get("/api/catalog/genres").status_code == 503


def test_genres(client: TestClient, upstream: UpstreamStub) -> None:
    stub_app_token(upstream)
    upstream.json(
        "GET", f"{API}/recommendations/available-genre-seeds", {"genres": ["jazz"]}
    )

    assert client.get("/api/catalog/genres").json() == {"genres": ["jazz"]}
