"""Billboard Hot 100 fetch and parsing.

Two public sources, tried in this order by ChartsService:

    RSS  https://www.billboard.com/charts/hot-100/feed/
         <item><title>1: Flowers - Miley Cyrus</title></item>
    HTML https://www.billboard.com/charts/hot-100/
         <ul class="o-chart-results-list-row ..."> per chart row

Hey future me - Billboard changes their markup every few months. The HTML
parser is deliberately loose (any h3 for the title, two artist class fallbacks)
and the row labels LW/PEAK/WEEKS/NEW/RE-ENTRY are filtered because they share
the artist span's classes on some layouts.
"""

import logging
import re
import xml.etree.ElementTree as ET  # nosec B405 - public feed, no entity expansion

import httpx
from bs4 import BeautifulSoup

from recordcrate.config.settings import ChartSettings, HttpSettings
from recordcrate.domain.entities import ChartEntry
from recordcrate.infrastructure.integrations.http_pool import HttpClientPool

logger = logging.getLogger(__name__)

# "1: Song Title - Artist Name". The spaced " - " separator is tried first so
# "Anti-Hero - Taylor Swift" keeps its hyphen; the loose form covers "Title-Artist".
RSS_TITLE_PATTERN = re.compile(r"^(\d+):\s*(.+?)\s+-\s+(.+)$")
RSS_TITLE_FALLBACK_PATTERN = re.compile(r"^(\d+):\s*(.+?)\s*-\s*(.+)$")
UI_LABEL_PATTERN = re.compile(r"^(LW|PEAK|WEEKS|NEW|RE-ENTRY)$", re.IGNORECASE)


def _collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def parse_rss_chart(xml_text: str, limit: int = 100) -> list[ChartEntry]:
    """Parse Billboard's RSS feed into chart entries.

    Items whose title doesn't match "N: Title - Artist" are skipped.

    Raises:
        xml.etree.ElementTree.ParseError: the payload isn't XML
    """
    root = ET.fromstring(xml_text)  # nosec B314
    entries: list[ChartEntry] = []
    for item in root.iter("item"):
        title = item.findtext("title")
        if not title:
            continue
        title = title.strip()
        match = RSS_TITLE_PATTERN.match(title) or RSS_TITLE_FALLBACK_PATTERN.match(title)
        if not match:
            continue
        entries.append(
            ChartEntry(
                rank=int(match.group(1)),
                title=match.group(2).strip(),
                artist=match.group(3).strip(),
            )
        )
        if len(entries) >= limit:
            break
    return entries


def parse_html_chart(html: str, limit: int = 100) -> list[ChartEntry]:
    """Parse the Hot 100 chart page into chart entries.

    Ranks are assigned in document order, starting at 1.
    """
    soup = BeautifulSoup(html, "html.parser")
    entries: list[ChartEntry] = []

    for row in soup.select("ul.o-chart-results-list-row"):
        title_tag = row.find("h3", id="title-of-a-story") or row.find("h3")
        artist_tag = row.select_one("span.c-label.a-no-trucate") or row.select_one(
            "span.a-font-primary-s"
        )
        if title_tag is None or artist_tag is None:
            continue

        title = _collapse_whitespace(title_tag.get_text(" ", strip=True))
        artist = _collapse_whitespace(artist_tag.get_text(" ", strip=True))
        if not title or not artist or UI_LABEL_PATTERN.match(artist):
            continue

        entries.append(ChartEntry(rank=len(entries) + 1, title=title, artist=artist))
        if len(entries) >= limit:
            break
    return entries


class BillboardClient:
    """Fetches the raw Billboard RSS feed and chart page."""

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

    async def _get_text(self, url: str) -> str:
        client = await self._get_client()
        response = await client.get(
            url,
            headers={"User-Agent": self.settings.user_agent},
            timeout=self.http_settings.timeout,
        )
        response.raise_for_status()
        return response.text

    async def fetch_rss(self) -> str:
        """Raw RSS feed body.

        Raises:
            httpx.HTTPError: network failure or non-2xx
        """
        return await self._get_text(self.settings.rss_url)

    async def fetch_html(self) -> str:
        """Raw chart page body.

        Raises:
            httpx.HTTPError: network failure or non-2xx
        """
        return await self._get_text(self.settings.html_url)
