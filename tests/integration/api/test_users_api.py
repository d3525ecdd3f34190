"""User endpoints end to end."""

from fastapi.testclient import TestClient


def test_sync_creates_and_updates(client: TestClient) -> None:
    created = client.post(
        "/api/users/sync", json={"spotifyId": "user1", "displayName": "Frank"}
    )
    updated = client.post(
        "/api/users/sync",
        json={"spotifyId": "user1", "displayName": "Frank O", "avatarUrl": "https://i/a.png"},
    )

    assert created.status_code == 200
    assert created.json()["spotifyLinked"] is False
    assert updated.json()["displayName"] == "Frank O"
    assert updated.json()["createdAt"] == created.json()["createdAt"]

    fetched = client.get("/api/users/user1").json()
    assert fetched["avatarUrl"] == "https://i/a.png"


def test_sync_requires_spotify_id(client: TestClient) -> None:
    response = client.post("/api/users/sync", json={"displayName": "Nobody"})

    assert response.status_code == 400


def test_unknown_user(client: TestClient) -> None:
    assert client.get("/api/users/ghost").status_code == 404
