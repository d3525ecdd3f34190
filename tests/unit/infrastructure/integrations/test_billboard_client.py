"""Unit tests for Billboard chart parsing and fetching."""

import xml.etree.ElementTree as ET

import httpx
import pytest

from recordcrate.config import ChartSettings
from recordcrate.domain.entities import ChartEntry
from recordcrate.infrastructure.integrations.billboard_client import (
    BillboardClient,
    parse_html_chart,
    parse_rss_chart,
)
from conftest import UpstreamStub

RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
  <title>Billboard Hot 100</title>
  <item><title>1: Flowers - Miley Cyrus</title></item>
  <item><title>  2: Anti-Hero - Taylor Swift  </title></item>
  <item><title>3: Kill Bill-SZA</title></item>
  <item><title>Editor's pick of the week</title></item>
  <item><title>4: Creepin' - Metro Boomin, The Weeknd &amp; 21 Savage</title></item>
</channel></rss>"""

HTML = """<html><body>
<div class="chart-results-list">
  <ul class="o-chart-results-list-row // lrv-a-unstyle-list">
    <li><h3 id="title-of-a-story" class="c-title">
        Flowers
    </h3>
    <span class="c-label a-no-trucate">  Miley   Cyrus </span></li>
  </ul>
  <ul class="o-chart-results-list-row">
    <li><h3 class="c-title">Kill Bill</h3>
    <span class="c-label a-no-trucate">NEW</span></li>
  </ul>
  <ul class="o-chart-results-list-row">
    <li><h3 class="c-title">Anti-Hero</h3>
    <span class="a-font-primary-s">Taylor Swift</span></li>
  </ul>
  <ul class="o-chart-results-list-row"><li><p>advert</p></li></ul>
</div>
</body></html>"""


class TestParseRss:
    def test_parses_items(self) -> None:
        entries = parse_rss_chart(RSS)

        assert entries == [
            ChartEntry(1, "Flowers", "Miley Cyrus"),
            ChartEntry(2, "Anti-Hero", "Taylor Swift"),
            ChartEntry(3, "Kill Bill", "SZA"),
            ChartEntry(4, "Creepin'", "Metro Boomin, The Weeknd & 21 Savage"),
        ]

    def test_limit(self) -> None:
        assert len(parse_rss_chart(RSS, limit=2)) == 2

    def test_not_xml(self) -> None:
        with pytest.raises(ET.ParseError):
            parse_rss_chart("<html><body>blocked")


class TestParseHtml:
    def test_parses_rows_and_skips_ui_labels(self) -> None:
        entries = parse_html_chart(HTML)

        assert entries == [
            ChartEntry(1, "Flowers", "Miley Cyrus"),
            ChartEntry(2, "Anti-Hero", "Taylor Swift"),
        ]

    def test_no_rows(self) -> None:
        assert parse_html_chart("<html><body>Access denied</body></html>") == []


class TestBillboardClient:
    @pytest.fixture
    def chart_settings(self) -> ChartSettings:
        return ChartSettings(
            rss_url="https://billboard.test/charts/hot-100/feed/",
            html_url="https://billboard.test/charts/hot-100/",
            user_agent="RecordCrateTest/1.0",
        )

    async def test_fetch_rss_sends_user_agent(
        self,
        chart_settings: ChartSettings,
        http_client: httpx.AsyncClient,
        upstream: UpstreamStub,
    ) -> None:
        upstream.text("GET", chart_settings.rss_url, RSS)
        client = BillboardClient(chart_settings, http_client=http_client)

        body = await client.fetch_rss()

        assert "Flowers" in body
        assert upstream.calls[0].headers["User-Agent"] == "RecordCrateTest/1.0"

    async def test_fetch_html_raises_on_block(
        self,
        chart_settings: ChartSettings,
        http_client: httpx.AsyncClient,
        upstream: UpstreamStub,
    ) -> None:
        upstream.text("GET", chart_settings.html_url, "Forbidden", status_code=403)
        client = BillboardClient(chart_settings, http_client=http_client)

        with pytest.raises(httpx.HTTPStatusError):
            await client.fetch_html()
