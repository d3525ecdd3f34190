"""Unit tests for DiscographyService (streaming chart tiers and genre filter)."""

from typing import Any

import httpx
import pytest
from pytest_mock import MockerFixture

from recordcrate.application.services.discography_service import (
    SAMPLE_TRACKS,
    SOURCE_CSV,
    SOURCE_SAMPLE,
    SOURCE_SPOTIFY,
    DiscographyService,
    popularity_from_rows,
)
from recordcrate.domain.entities import StreamingChartRow
from recordcrate.domain.exceptions import ConfigurationError, ExternalServiceError

CSV = """Position,Track Name,Artist,Streams,URL
1,"Flowers","Miley Cyrus","5,000,000",https://open.spotify.com/track/t1
2,"Kill Bill","SZA","3,000,000",https://open.spotify.com/track/t2
3,"Creepin'","Metro Boomin, The Weeknd","1,000,000",https://open.spotify.com/track/t3
"""


def catalog_track(track_id: str, artist_id: str) -> dict[str, Any]:
    return {
        "id": track_id,
        "name": f"Track {track_id}",
        "artists": [{"id": artist_id, "name": f"Artist {artist_id}"}],
        "album": {
            "name": "Album",
            "release_date": "2023-01-13",
            "images": [{"url": f"https://i.scdn.co/{track_id}"}],
        },
        "popularity": 91,
        "explicit": True,
        "external_urls": {"spotify": f"https://open.spotify.com/track/{track_id}"},
    }


@pytest.fixture
def chart_client(mocker: MockerFixture) -> Any:
    client = mocker.Mock()
    client.fetch_csv = mocker.AsyncMock(return_value=CSV)
    return client


@pytest.fixture
def spotify(mocker: MockerFixture) -> Any:
    client = mocker.Mock()
    client.get_tracks = mocker.AsyncMock(
        return_value=[catalog_track("t1", "a1"), catalog_track("t2", "a2")]
    )
    client.get_artists = mocker.AsyncMock(
        return_value=[
            {"id": "a1", "genres": ["pop", "dance pop"]},
            {"id": "a2", "genres": ["r&b"]},
        ]
    )
    return client


@pytest.fixture
def app_tokens(mocker: MockerFixture) -> Any:
    tokens = mocker.Mock()
    tokens.get_app_access_token = mocker.AsyncMock(return_value="app-token")
    return tokens


@pytest.fixture
def service(chart_client: Any, spotify: Any, app_tokens: Any) -> DiscographyService:
    return DiscographyService(chart_client, spotify, app_tokens)


class TestTiers:
    async def test_spotify_tier_enriches_rows(
        self, service: DiscographyService, spotify: Any
    ) -> None:
        result = await service.get_top_tracks(limit=50)

        assert result.source == SOURCE_SPOTIFY
        spotify.get_tracks.assert_awaited_once_with(["t1", "t2", "t3"], "app-token")
        spotify.get_artists.assert_awaited_once_with(["a1", "a2"], "app-token")
        first = result.entries[0].to_dict()
        assert first["id"] == "t1"
        assert first["imageUrl"] == "https://i.scdn.co/t1"
        assert first["releaseYear"] == 2023
        assert first["explicit"] is True
        assert first["genres"] == ["pop", "dance pop"]
        assert first["artists"] == [{"id": "a1", "name": "Artist a1"}]

    @pytest.mark.parametrize(
        "error",
        [ConfigurationError("no creds"), ExternalServiceError("down", service="spotify")],
    )
    async def test_csv_tier_without_catalog(
        self, service: DiscographyService, app_tokens: Any, error: Exception
    ) -> None:
        app_tokens.get_app_access_token.side_effect = error

        result = await service.get_top_tracks()

        assert result.source == SOURCE_CSV
        assert [e.name for e in result.entries] == ["Flowers", "Kill Bill", "Creepin'"]
        assert result.entries[2].artists == [
            {"id": "", "name": "Metro Boomin"},
            {"id": "", "name": "The Weeknd"},
        ]
        assert [e.popularity for e in result.entries] == [100, 80, 60]

    async def test_track_lookup_failure_falls_back_to_csv(
        self, service: DiscographyService, spotify: Any
    ) -> None:
        spotify.get_tracks.side_effect = ExternalServiceError("503", service="spotify")

        assert (await service.get_top_tracks()).source == SOURCE_CSV

    async def test_artist_lookup_failure_only_costs_genres(
        self, service: DiscographyService, spotify: Any
    ) -> None:
        spotify.get_artists.side_effect = ExternalServiceError("503", service="spotify")

        result = await service.get_top_tracks()

        assert result.source == SOURCE_SPOTIFY
        assert all(e.genres == [] for e in result.entries)

    @pytest.mark.parametrize(
        "failure",
        [httpx.ConnectError("refused"), "Position,Track Name,Artist,Streams,URL\n"],
    )
    async def test_sample_tier_when_chart_unusable(
        self, service: DiscographyService, chart_client: Any, spotify: Any, failure: Any
    ) -> None:
        if isinstance(failure, Exception):
            chart_client.fetch_csv.side_effect = failure
        else:
            chart_client.fetch_csv.return_value = failure

        result = await service.get_top_tracks(limit=3)

        assert result.source == SOURCE_SAMPLE
        assert [e.id for e in result.entries] == [s.track_id for s in SAMPLE_TRACKS[:3]]
        spotify.get_tracks.assert_not_awaited()


class TestGenreFilter:
    async def test_case_insensitive_substring(self, service: DiscographyService) -> None:
        result = await service.get_top_tracks(genre="POP")

        assert [e.id for e in result.entries] == ["t1"]

    async def test_entries_without_genres_never_match(
        self, service: DiscographyService, app_tokens: Any
    ) -> None:
        app_tokens.get_app_access_token.side_effect = ConfigurationError("no creds")

        assert (await service.get_top_tracks(genre="pop")).entries == []

    async def test_blank_genre_is_ignored(self, service: DiscographyService) -> None:
        assert len((await service.get_top_tracks(genre="  ")).entries) == 2


def test_popularity_by_position_without_streams() -> None:
    rows = [StreamingChartRow(p, f"s{p}", ("a",), 0, f"t{p}") for p in range(1, 5)]

    assert popularity_from_rows(rows) == [100, 75, 50, 25]
