"""Billboard Hot 100 ingest with Spotify enrichment.

Hey future me - fetch_top_tracks() NEVER raises. It walks three tiers:

    rss     Billboard RSS feed            (fast, structured)
    html    Billboard chart page scrape   (when the feed is down or empty)
    sample  built-in 20-track list        (when Billboard blocks us entirely)

Each tier returns a TierResult instead of raising, so the pipeline is a plain
loop and every tier's failure reason ends up in the result for logging. The
chart is display sugar; a broken scraper must never turn into a 500.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from recordcrate.application.services.app_token_provider import AppTokenProvider
from recordcrate.domain.entities import ChartEntry
from recordcrate.domain.exceptions import ConfigurationError, ExternalServiceError
from recordcrate.infrastructure.integrations.billboard_client import (
    BillboardClient,
    parse_html_chart,
    parse_rss_chart,
)
from recordcrate.infrastructure.integrations.spotify_client import SpotifyClient

logger = logging.getLogger(__name__)

SOURCE_RSS = "rss"
SOURCE_HTML = "html"
SOURCE_SAMPLE = "sample"

# Spotify search calls in flight at once while enriching a page
ENRICH_CONCURRENCY = 5

SAMPLE_CHART: tuple[ChartEntry, ...] = (
    ChartEntry(1, "Flowers", "Miley Cyrus"),
    ChartEntry(2, "Kill Bill", "SZA"),
    ChartEntry(3, "Anti-Hero", "Taylor Swift"),
    ChartEntry(4, "Creepin'", "Metro Boomin, The Weeknd & 21 Savage"),
    ChartEntry(5, "Unholy", "Sam Smith & Kim Petras"),
    ChartEntry(6, "Rich Flex", "Drake & 21 Savage"),
    ChartEntry(7, "Die For You", "The Weeknd"),
    ChartEntry(8, "Superhero", "Metro Boomin, Future & Chris Brown"),
    ChartEntry(9, "Just Wanna Rock", "Lil Uzi Vert"),
    ChartEntry(10, "Allegedly", "Megan Thee Stallion"),
    ChartEntry(11, "I'm Good (Blue)", "David Guetta & Bebe Rexha"),
    ChartEntry(12, "Shirt", "SZA"),
    ChartEntry(13, "As It Was", "Harry Styles"),
    ChartEntry(14, "You Proof", "Morgan Wallen"),
    ChartEntry(15, "Calm Down", "Rema & Selena Gomez"),
    ChartEntry(16, "Used to This", "Future"),
    ChartEntry(17, "Spin Bout U", "Drake & 21 Savage"),
    ChartEntry(18, "blind", "SZA"),
    ChartEntry(19, "Lavender Haze", "Taylor Swift"),
    ChartEntry(20, "Escapism", "RAYE & 070 Shake"),
)


@dataclass
class TierResult:
    """Outcome of one fetch tier: tracks on success, error text on failure."""

    source: str
    tracks: list[ChartEntry] = field(default_factory=list)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.tracks)


@dataclass
class ChartFetchResult:
    """The chart plus which tier produced it."""

    tracks: list[ChartEntry]
    source: str
    errors: dict[str, str] = field(default_factory=dict)
    """Failure reason per tier that was tried and failed (tier -> message)."""


@dataclass(frozen=True)
class SkippedTrack:
    """A chart entry with no catalog match."""

    rank: int
    title: str
    artist: str

    @classmethod
    def from_entry(cls, entry: ChartEntry) -> "SkippedTrack":
        return cls(rank=entry.rank, title=entry.title, artist=entry.artist)

    def to_dict(self) -> dict[str, Any]:
        return {"rank": self.rank, "title": self.title, "artist": self.artist}


@dataclass
class EnrichedTrack:
    """A chart entry matched to a Spotify track.

    skipped_before lists unmatched entries ranked between the previous match
    and this one; skipped_after is only ever set on the last match of a page.
    """

    rank: int
    title: str
    artist: str
    spotify_track: dict[str, Any]
    skipped_before: list[SkippedTrack] = field(default_factory=list)
    skipped_after: list[SkippedTrack] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "title": self.title,
            "artist": self.artist,
            "spotifyTrack": self.spotify_track,
            "skippedBefore": [s.to_dict() for s in self.skipped_before],
            "skippedAfter": [s.to_dict() for s in self.skipped_after],
        }


@dataclass
class EnrichedPage:
    """Matched tracks for one page plus the entries no match could carry.

    skipped is only non-empty when the page has no match at all (or no app
    token); otherwise unmatched entries ride on the neighbouring matches.
    """

    tracks: list[EnrichedTrack] = field(default_factory=list)
    skipped: list[SkippedTrack] = field(default_factory=list)


def _simplify_track(item: dict[str, Any]) -> dict[str, Any]:
    album = item.get("album") or {}
    images = album.get("images") or []
    return {
        "id": item.get("id"),
        "name": item.get("name"),
        "artists": [a.get("name") for a in item.get("artists") or []],
        "album": {
            "id": album.get("id"),
            "name": album.get("name"),
            "imageUrl": images[0].get("url") if images else None,
        },
        "previewUrl": item.get("preview_url"),
        "externalUrl": (item.get("external_urls") or {}).get("spotify"),
    }


class ChartsService:
    """Fetches the Hot 100 and matches entries to Spotify tracks."""

    def __init__(
        self,
        billboard_client: BillboardClient,
        spotify_client: SpotifyClient,
        app_tokens: AppTokenProvider,
        max_entries: int = 100,
    ) -> None:
        self._billboard = billboard_client
        self._spotify = spotify_client
        self._app_tokens = app_tokens
        self._max_entries = max_entries

    async def _run_tier(
        self,
        source: str,
        fetch: Callable[[], Awaitable[str]],
        parse: Callable[[str, int], list[ChartEntry]],
        limit: int,
    ) -> TierResult:
        # Hey future me - broad except on purpose: network errors, bad XML, markup
        # changes... whatever breaks, the next tier gets its turn.
        try:
            body = await fetch()
            tracks = parse(body, limit)
        except Exception as e:
            logger.warning("Chart tier %s failed: %s", source, e)
            return TierResult(source=source, error=f"{type(e).__name__}: {e}")
        if not tracks:
            return TierResult(source=source, error="no chart entries parsed")
        return TierResult(source=source, tracks=tracks)

    async def fetch_top_tracks(self, limit: int | None = None) -> ChartFetchResult:
        """Hot 100 entries from the first tier that yields any."""
        limit = min(limit or self._max_entries, self._max_entries)
        errors: dict[str, str] = {}

        for source, fetch, parse in (
            (SOURCE_RSS, self._billboard.fetch_rss, parse_rss_chart),
            (SOURCE_HTML, self._billboard.fetch_html, parse_html_chart),
        ):
            tier = await self._run_tier(source, fetch, parse, limit)
            if tier.ok:
                logger.info("Fetched %d chart entries from %s", len(tier.tracks), source)
                return ChartFetchResult(tracks=tier.tracks, source=source, errors=errors)
            errors[source] = tier.error or "unknown error"

        logger.warning("All Billboard tiers failed, serving sample chart: %s", errors)
        return ChartFetchResult(
            tracks=list(SAMPLE_CHART[:limit]), source=SOURCE_SAMPLE, errors=errors
        )

    async def _search_match(
        self, entry: ChartEntry, token: str, semaphore: asyncio.Semaphore
    ) -> dict[str, Any] | None:
        query = f"track:{entry.title} artist:{entry.artist}"
        async with semaphore:
            try:
                data = await self._spotify.search(query, ["track"], token, limit=1)
            except ExternalServiceError as e:
                logger.debug("No catalog match for #%d (%s)", entry.rank, e)
                return None
        items = (data.get("tracks") or {}).get("items") or []
        return _simplify_track(items[0]) if items else None

    async def enrich_with_catalog_data(self, tracks: list[ChartEntry]) -> EnrichedPage:
        """Match entries to Spotify tracks; unmatched ones ride along as skips.

        Every entry ends up exactly once in the result: as a match, in a
        match's skipped_before/skipped_after, or in the page-level skipped list.
        """
        if not tracks:
            return EnrichedPage()
        try:
            token = await self._app_tokens.get_app_access_token()
        except (ConfigurationError, ExternalServiceError) as e:
            logger.warning("Chart enrichment unavailable: %s", e)
            return EnrichedPage(skipped=[SkippedTrack.from_entry(t) for t in tracks])

        semaphore = asyncio.Semaphore(ENRICH_CONCURRENCY)
        matches = await asyncio.gather(
            *(self._search_match(entry, token, semaphore) for entry in tracks)
        )

        enriched: list[EnrichedTrack] = []
        pending: list[SkippedTrack] = []
        for entry, match in zip(tracks, matches, strict=True):
            if match is None:
                pending.append(SkippedTrack.from_entry(entry))
                continue
            enriched.append(
                EnrichedTrack(
                    rank=entry.rank,
                    title=entry.title,
                    artist=entry.artist,
                    spotify_track=match,
                    skipped_before=pending,
                )
            )
            pending = []

        if not enriched:
            return EnrichedPage(skipped=pending)
        enriched[-1].skipped_after = pending
        return EnrichedPage(tracks=enriched)
