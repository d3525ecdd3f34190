"""Spotify daily streaming chart (CSV download) fetch and parsing.

The download is a plain CSV, one row per chart position:

    Position,Track Name,Artist,Streams,URL
    1,"Flowers","Miley Cyrus","5,120,345",https://open.spotify.com/track/0yLdNVWF3Srea0uzk55zFn

Hey future me - some mirrors prepend a note line before the header, and the
Streams column uses thousands separators inside quotes. Rows are recognised by
their track URL, not by line number, so neither breaks parsing.
"""

import csv
import io
import logging
import re

import httpx

from recordcrate.config.settings import ChartSettings, HttpSettings
from recordcrate.domain.entities import StreamingChartRow
from recordcrate.infrastructure.integrations.http_pool import HttpClientPool

logger = logging.getLogger(__name__)

TRACK_URL_PATTERN = re.compile(r"track/([A-Za-z0-9]+)")
MIN_COLUMNS = 5


def _to_int(value: str) -> int:
    digits = value.replace(",", "").strip()
    return int(digits) if digits.isdigit() else 0


def parse_streaming_chart_csv(text: str, limit: int = 200) -> list[StreamingChartRow]:
    """Parse the daily chart CSV into rows that carry a Spotify track id.

    Header lines, short rows and rows without a track URL are skipped. Quoted
    fields (embedded commas, doubled quotes) are handled by the csv module.
    """
    rows: list[StreamingChartRow] = []
    for cols in csv.reader(io.StringIO(text)):
        if len(cols) < MIN_COLUMNS:
            continue
        cols = [c.strip() for c in cols]
        match = TRACK_URL_PATTERN.search(cols[4])
        if not match:
            continue
        artists = tuple(name.strip() for name in cols[2].split(",") if name.strip())
        rows.append(
            StreamingChartRow(
                position=_to_int(cols[0]) or len(rows) + 1,
                track_name=cols[1] or "Unknown",
                artists=artists,
                streams=_to_int(cols[3]),
                track_id=match.group(1),
            )
        )
        if len(rows) >= limit:
            break
    return rows


class StreamingChartClient:
    """Downloads the raw daily streaming chart CSV."""

    def __init__(
        self,
        settings: ChartSettings,
        http_settings: HttpSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.http_settings = http_settings or HttpSettings()
        self._client = http_client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await HttpClientPool.get_client(
            timeout=self.http_settings.timeout,
            max_keepalive=self.http_settings.max_keepalive,
            max_connections=self.http_settings.max_connections,
        )

    async def fetch_csv(self) -> str:
        """Raw CSV body of the latest global daily chart.

        Raises:
            httpx.HTTPError: network failure or non-2xx
        """
        client = await self._get_client()
        response = await client.get(
            self.settings.streaming_csv_url,
            headers={"User-Agent": self.settings.user_agent},
            timeout=self.http_settings.timeout,
        )
        response.raise_for_status()
        logger.debug("Downloaded streaming chart CSV (%d bytes)", len(response.content))
        return response.text
