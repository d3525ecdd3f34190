"""Unit tests for the daily streaming chart CSV parser and client."""

import httpx
import pytest

from recordcrate.config import ChartSettings
from recordcrate.domain.entities import StreamingChartRow
from recordcrate.infrastructure.integrations.streaming_chart_client import (
    StreamingChartClient,
    parse_streaming_chart_csv,
)
from conftest import UpstreamStub

CSV_URL = "https://spotifycharts.test/regional/global/daily/latest/download"

DAILY_CSV = '''Note that these figures are generated using a formula that protects against any artificial inflation of chartpositions.,,,,
Position,Track Name,Artist,Streams,URL
1,"Flowers","Miley Cyrus","5,120,345",https://open.spotify.com/track/0yLdNVWF3Srea0uzk55zFn
2,"Kill Bill","SZA","4,002,117",https://open.spotify.com/track/1Qrg8KqiBpW07V7PNxwwwL
3,"Creepin' (with The Weeknd & 21 Savage)","Metro Boomin, The Weeknd, 21 Savage","3,500,000",https://open.spotify.com/track/2dHHgzDwk4BJdRwy9uXhTO
4,"Say ""Hi""","Nobody",100,not-a-track-url
'''


class TestParseStreamingChartCsv:
    def test_parses_rows_with_track_urls(self) -> None:
        rows = parse_streaming_chart_csv(DAILY_CSV)

        assert [r.position for r in rows] == [1, 2, 3]
        assert rows[0] == StreamingChartRow(
            position=1,
            track_name="Flowers",
            artists=("Miley Cyrus",),
            streams=5120345,
            track_id="0yLdNVWF3Srea0uzk55zFn",
        )
        assert rows[0].external_url == (
            "https://open.spotify.com/track/0yLdNVWF3Srea0uzk55zFn"
        )

    def test_quoted_fields_keep_commas(self) -> None:
        creepin = parse_streaming_chart_csv(DAILY_CSV)[2]

        assert creepin.track_name == "Creepin' (with The Weeknd & 21 Savage)"
        assert creepin.artists == ("Metro Boomin", "The Weeknd", "21 Savage")

    def test_doubled_quotes_are_unescaped(self) -> None:
        text = '1,"Say ""Hi""","Someone",10,https://open.spotify.com/track/abc123\n'

        assert parse_streaming_chart_csv(text)[0].track_name == 'Say "Hi"'

    def test_limit(self) -> None:
        assert len(parse_streaming_chart_csv(DAILY_CSV, limit=2)) == 2

    @pytest.mark.parametrize("text", ["", "Position,Track Name,Artist,Streams,URL\n", "a,b\n"])
    def test_nothing_usable(self, text: str) -> None:
        assert parse_streaming_chart_csv(text) == []


class TestStreamingChartClient:
    @pytest.fixture
    def chart_client(self, http_client: httpx.AsyncClient) -> StreamingChartClient:
        return StreamingChartClient(
            ChartSettings(streaming_csv_url=CSV_URL, user_agent="crate-test"),
            http_client=http_client,
        )

    async def test_fetch_csv(
        self, chart_client: StreamingChartClient, upstream: UpstreamStub
    ) -> None:
        upstream.text("GET", CSV_URL, DAILY_CSV)

        assert await chart_client.fetch_csv() == DAILY_CSV
        assert upstream.calls[0].headers["User-Agent"] == "crate-test"

    async def test_fetch_csv_raises_on_error_status(
        self, chart_client: StreamingChartClient, upstream: UpstreamStub
    ) -> None:
        upstream.text("GET", CSV_URL, "gone", status_code=410)

        with pytest.raises(httpx.HTTPStatusError):
            await chart_client.fetch_csv()
