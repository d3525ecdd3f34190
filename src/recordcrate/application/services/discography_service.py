"""Top tracks from the Spotify daily streaming chart.

Hey future me - get_top_tracks() NEVER raises for upstream trouble. Same idea
as the Hot 100 pipeline, three tiers:

    spotify  CSV rows enriched with /v1/tracks and /v1/artists (genres)
    csv      CSV rows only: names, artists, links, popularity from streams
    sample   built-in 10-track list (the CSV download failed or was empty)

The csv tier kicks in when there is no app token or the track lookup fails.
Artist genres are best-effort; a failed /v1/artists call only costs genres.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from recordcrate.application.services.app_token_provider import AppTokenProvider
from recordcrate.domain.entities import StreamingChartRow
from recordcrate.domain.exceptions import ConfigurationError, ExternalServiceError
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient
from recordcrate.infrastructure.integrations.streaming_chart_client import (
    StreamingChartClient,
    parse_streaming_chart_csv,
)

logger = logging.getLogger(__name__)

SOURCE_SPOTIFY = "spotify"
SOURCE_CSV = "csv"
SOURCE_SAMPLE = "sample"

MAX_LIMIT = 100
MAX_GENRES_PER_TRACK = 6

SAMPLE_TRACKS: tuple[StreamingChartRow, ...] = (
    StreamingChartRow(1, "Hey Ya!", ("Outkast",), 0, "3n3Ppam7vgaVa1iaRUc9Lp"),
    StreamingChartRow(2, "Never Gonna Give You Up", ("Rick Astley",), 0, "7GhIk7Il098yCjg4BQjzvb"),
    StreamingChartRow(3, "Blinding Lights", ("The Weeknd",), 0, "0VjIjW4GlUZAMYd2vXMi3b"),
    StreamingChartRow(4, "Levitating", ("Dua Lipa",), 0, "2VxeLyX666F8uXCJ0dZF8B"),
    StreamingChartRow(5, "good 4 u", ("Olivia Rodrigo",), 0, "4Oun2ylbjFKMPTiaSbbCih"),
    StreamingChartRow(6, "As It Was", ("Harry Styles",), 0, "1fDsrQ23eTAVFElUMaf38X"),
    StreamingChartRow(7, "Dance Monkey", ("Tones And I",), 0, "1rqqCSm0Qe4I9rUvWncaom"),
    StreamingChartRow(8, "Bad Guy", ("Billie Eilish",), 0, "4uUG5RXrOk84mYEfFvj3cK"),
    StreamingChartRow(9, "Flowers", ("Miley Cyrus",), 0, "2bgTY4UwhfBYhGT4HUYStN"),
    StreamingChartRow(10, "Stay", ("The Kid LAROI", "Justin Bieber"), 0, "0ZcohShptsJ8ovC9UZk7Xw"),
)


@dataclass
class TopTrackEntry:
    """A top-chart track in the shape the discography page renders."""

    id: str
    name: str
    artists: list[dict[str, str]]
    external_url: str
    image_url: str | None = None
    release_date: str = ""
    popularity: int = 0
    explicit: bool = False
    album_name: str | None = None
    genres: list[str] = field(default_factory=list)

    @property
    def release_year(self) -> int:
        year = self.release_date[:4]
        return int(year) if year.isdigit() else 0

    def matches_genre(self, genre: str) -> bool:
        needle = genre.strip().lower()
        return any(needle in g.lower() for g in self.genres)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "track",
            "name": self.name,
            "artists": self.artists,
            "imageUrl": self.image_url,
            "releaseDate": self.release_date,
            "releaseYear": self.release_year,
            "popularity": self.popularity,
            "explicit": self.explicit,
            "albumName": self.album_name,
            "genres": self.genres,
            "externalUrl": self.external_url,
        }


@dataclass
class TopTracksResult:
    entries: list[TopTrackEntry]
    source: str


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def popularity_from_rows(rows: list[StreamingChartRow]) -> list[int]:
    """Chart-relative popularity for CSV rows, aligned with ``rows``.

    With stream counts on at least two rows the counts are scaled to 60..100;
    otherwise popularity falls linearly with chart position (1..100).
    """
    streamed = [r.streams for r in rows if r.streams > 0]
    if len(streamed) > 1:
        low, high = min(streamed), max(streamed)
        span = max(1, high - low)
        return [_round_half_up(60 + (r.streams - low) / span * 40) for r in rows]
    step = 100 / max(1, len(rows))
    return [
        max(1, min(100, _round_half_up(100 - (r.position - 1) * step))) for r in rows
    ]


def entries_from_rows(rows: list[StreamingChartRow]) -> list[TopTrackEntry]:
    """Entries built from CSV data alone (no catalog lookups)."""
    return [
        TopTrackEntry(
            id=row.track_id,
            name=row.track_name,
            artists=[{"id": "", "name": name} for name in row.artists],
            external_url=row.external_url,
            popularity=popularity,
        )
        for row, popularity in zip(rows, popularity_from_rows(rows), strict=True)
    ]


def entry_from_track(track: dict[str, Any], genres: list[str]) -> TopTrackEntry:
    album = track.get("album") or {}
    images = album.get("images") or []
    return TopTrackEntry(
        id=str(track["id"]),
        name=str(track.get("name") or ""),
        artists=[
            {"id": str(a.get("id") or ""), "name": str(a.get("name") or "")}
            for a in track.get("artists") or []
        ],
        external_url=(track.get("external_urls") or {}).get("spotify") or "",
        image_url=images[0].get("url") if images else None,
        release_date=str(album.get("release_date") or ""),
        popularity=int(track.get("popularity") or 0),
        explicit=bool(track.get("explicit")),
        album_name=album.get("name"),
        genres=genres,
    )


class DiscographyService:
    """Builds the top-tracks list for the discography page."""

    def __init__(
        self,
        chart_client: StreamingChartClient,
        spotify_client: SpotifyClient,
        app_tokens: AppTokenProvider,
    ) -> None:
        self._charts = chart_client
        self._spotify = spotify_client
        self._app_tokens = app_tokens

    async def _fetch_rows(self, limit: int) -> list[StreamingChartRow]:
        # Broad except: network errors and odd payloads both mean "use the sample"
        try:
            text = await self._charts.fetch_csv()
            return parse_streaming_chart_csv(text, limit)
        except Exception as e:
            logger.warning("Streaming chart download failed: %s", e)
            return []

    async def _artist_genres(
        self, tracks: list[dict[str, Any]], token: str
    ) -> dict[str, list[str]]:
        artist_ids = list(
            dict.fromkeys(
                a["id"] for t in tracks for a in t.get("artists") or [] if a.get("id")
            )
        )
        if not artist_ids:
            return {}
        try:
            artists = await self._spotify.get_artists(artist_ids, token)
        except ExternalServiceError as e:
            logger.warning("Artist genre lookup failed: %s", e)
            return {}
        return {a["id"]: list(a.get("genres") or []) for a in artists}

    async def _enrich(
        self, rows: list[StreamingChartRow]
    ) -> list[TopTrackEntry] | None:
        """Catalog-enriched entries, or None when the catalog is unavailable."""
        try:
            token = await self._app_tokens.get_app_access_token()
            tracks = await self._spotify.get_tracks([r.track_id for r in rows], token)
        except (ConfigurationError, ExternalServiceError) as e:
            logger.warning("Top tracks enrichment unavailable: %s", e)
            return None
        if not tracks:
            return None

        genres_by_artist = await self._artist_genres(tracks, token)
        entries = []
        for track in tracks:
            genres = list(
                dict.fromkeys(
                    g
                    for a in track.get("artists") or []
                    for g in genres_by_artist.get(a.get("id") or "", [])
                )
            )
            entries.append(entry_from_track(track, genres[:MAX_GENRES_PER_TRACK]))
        return entries

    async def get_top_tracks(
        self, limit: int = 50, genre: str | None = None
    ) -> TopTracksResult:
        """Today's top tracks, best tier first.

        Args:
            limit: Number of chart rows to use (capped at 100)
            genre: Optional case-insensitive substring matched against each
                track's artist genres. Entries without genre data never match.
        """
        limit = max(1, min(limit, MAX_LIMIT))
        rows = await self._fetch_rows(limit)

        if not rows:
            result = TopTracksResult(
                entries=entries_from_rows(list(SAMPLE_TRACKS[:limit])),
                source=SOURCE_SAMPLE,
            )
        else:
            enriched = await self._enrich(rows)
            if enriched is None:
                result = TopTracksResult(entries=entries_from_rows(rows), source=SOURCE_CSV)
            else:
                result = TopTracksResult(entries=enriched, source=SOURCE_SPOTIFY)

        if genre and genre.strip():
            result.entries = [e for e in result.entries if e.matches_genre(genre)]
        logger.info(
            "Serving %d top tracks from %s tier", len(result.entries), result.source
        )
        return result
