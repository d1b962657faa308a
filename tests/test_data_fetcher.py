"""
Tests for the Data Fetcher

Tests cover:
- Alpha Vantage payload parsing and API error messages
- yfinance history conversion
- Google News RSS parsing
- Failures returned as FetchResult values
"""

import pytest
import pandas as pd
import requests
from datetime import date, datetime
from unittest.mock import MagicMock, patch
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import AppSettings
from core.data_fetcher import DataFetcher, clean_snippet, parse_alpha_vantage_payload
from core.errors import FetchError
from storage.models import PriceSeries


@pytest.fixture
def av_payload():
    """Alpha Vantage FX_DAILY response, newest date first."""
    return {
        "Meta Data": {"2. From Symbol": "USD", "3. To Symbol": "BRL"},
        "Time Series FX (Daily)": {
            "2024-05-03": {"1. open": "5.08", "2. high": "5.10", "3. low": "5.05", "4. close": "5.0700"},
            "2024-05-02": {"1. open": "5.12", "2. high": "5.14", "3. low": "5.08", "4. close": "5.0900"},
            "2024-05-01": {"1. open": "5.18", "2. high": "5.20", "3. low": "5.11", "4. close": "5.1200"},
        },
    }


@pytest.fixture
def feed():
    """Parsed Google News RSS feed."""
    return {
        "bozo": 0,
        "entries": [
            {
                "title": "Dólar dispara com tensão fiscal - Valor Econômico",
                "summary": "<a href='x'>Dólar dispara</a>&nbsp;<font>Valor</font>",
                "link": "https://example.com/1",
                "published_parsed": (2024, 5, 3, 14, 30, 0, 4, 124, 0),
            },
            {
                "title": "Ibovespa despenca - InfoMoney",
                "summary": "",
                "link": "https://example.com/2",
            },
            {"title": "", "summary": "no title"},
        ],
    }


class TestAlphaVantageParsing:

    def test_parses_closes(self, av_payload):
        bars = parse_alpha_vantage_payload(av_payload)
        assert len(bars) == 3
        assert {bar.date for bar in bars} == {date(2024, 5, 1), date(2024, 5, 2), date(2024, 5, 3)}

    def test_series_is_oldest_first(self, av_payload):
        series = PriceSeries.from_bars(parse_alpha_vantage_payload(av_payload))
        assert series.closes == [5.12, 5.09, 5.07]
        assert series.latest.date == date(2024, 5, 3)

    @pytest.mark.parametrize("key", ["Error Message", "Note", "Information"])
    def test_api_messages_raise(self, key):
        with pytest.raises(FetchError):
            parse_alpha_vantage_payload({key: "rate limited"})

    def test_missing_series_raises(self):
        with pytest.raises(FetchError):
            parse_alpha_vantage_payload({"Meta Data": {}})

    def test_malformed_rows_skipped(self, av_payload):
        av_payload["Time Series FX (Daily)"]["2024-05-04"] = {"1. open": "5.0"}
        assert len(parse_alpha_vantage_payload(av_payload)) == 3


class TestFetchPriceSeries:

    def test_alpha_vantage_success(self, av_payload):
        fetcher = DataFetcher(AppSettings(alpha_vantage_api_key="demo"))
        response = MagicMock()
        response.json.return_value = av_payload

        with patch("core.data_fetcher.requests.get", return_value=response) as mock_get:
            result = fetcher.fetch_price_series()

        assert result.ok
        assert result.source == "alpha_vantage"
        assert result.data.latest_close == 5.07
        params = mock_get.call_args.kwargs["params"]
        assert params["function"] == "FX_DAILY"
        assert params["from_symbol"] == "USD"
        assert params["to_symbol"] == "BRL"

    def test_alpha_vantage_rate_limit_is_failure(self):
        fetcher = DataFetcher(AppSettings(alpha_vantage_api_key="demo"))
        response = MagicMock()
        response.json.return_value = {"Note": "Thank you for using Alpha Vantage!"}

        with patch("core.data_fetcher.requests.get", return_value=response):
            result = fetcher.fetch_price_series()

        assert not result.ok
        assert "Alpha Vantage" in result.error

    def test_http_status_error_not_retried(self):
        fetcher = DataFetcher(AppSettings(alpha_vantage_api_key="bad-key"))
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("401 Client Error")

        with patch("core.data_fetcher.requests.get", return_value=response) as mock_get:
            result = fetcher.fetch_price_series()

        assert not result.ok
        assert mock_get.call_count == 1

    def test_connection_error_retried(self, av_payload):
        fetcher = DataFetcher(AppSettings(alpha_vantage_api_key="demo"))
        response = MagicMock()
        response.json.return_value = av_payload

        with patch("tenacity.nap.time.sleep"), patch(
            "core.data_fetcher.requests.get",
            side_effect=[requests.ConnectionError("reset"), response],
        ) as mock_get:
            result = fetcher.fetch_price_series()

        assert result.ok
        assert mock_get.call_count == 2

    def test_yfinance_success(self):
        index = pd.date_range("2024-01-01", periods=80, freq="D", tz="America/Sao_Paulo")
        history = pd.DataFrame({"Close": [5.0 + i * 0.001 for i in range(80)]}, index=index)
        ticker = MagicMock()
        ticker.history.return_value = history

        fetcher = DataFetcher(AppSettings(), max_bars=60)
        with patch("core.data_fetcher.yf.Ticker", return_value=ticker) as mock_ticker:
            result = fetcher.fetch_price_series()

        mock_ticker.assert_called_once_with("BRL=X")
        assert result.ok
        assert result.source == "yfinance"
        assert len(result.data) == 60
        assert result.data.latest.date == date(2024, 3, 20)
        assert result.data.latest_close == pytest.approx(5.079)

    def test_yfinance_empty_is_failure(self):
        ticker = MagicMock()
        ticker.history.return_value = pd.DataFrame()

        with patch("core.data_fetcher.yf.Ticker", return_value=ticker):
            result = DataFetcher(AppSettings()).fetch_price_series()

        assert not result.ok
        assert result.data is None

    def test_unexpected_error_is_failure(self):
        with patch("core.data_fetcher.yf.Ticker", side_effect=KeyError("chart")):
            result = DataFetcher(AppSettings()).fetch_price_series()
        assert not result.ok


class TestFetchNews:

    def test_parses_and_scores_entries(self, feed):
        with patch("core.data_fetcher.feedparser.parse", return_value=feed):
            result = DataFetcher(AppSettings()).fetch_news()

        assert result.ok
        items = result.data
        assert [item.title for item in items] == ["Dólar dispara com tensão fiscal", "Ibovespa despenca"]
        assert items[0].snippet == "Dólar dispara Valor"
        assert items[0].published_at == datetime(2024, 5, 3, 14, 30, 0)
        assert items[1].published_at is None
        assert all(item.sentiment is not None for item in items)
        assert items[1].sentiment == -1.0

    def test_news_limit(self, feed):
        with patch("core.data_fetcher.feedparser.parse", return_value=feed):
            result = DataFetcher(AppSettings(news_limit=1)).fetch_news()
        assert len(result.data) == 1

    def test_bozo_feed_without_entries_is_failure(self):
        broken = {"bozo": 1, "bozo_exception": "not well-formed", "entries": []}
        with patch("core.data_fetcher.feedparser.parse", return_value=broken):
            result = DataFetcher(AppSettings()).fetch_news()
        assert not result.ok
        assert "not well-formed" in result.error

    def test_news_url(self):
        url = DataFetcher(AppSettings()).build_news_url()
        assert url.startswith("https://news.google.com/rss/search?q=d%C3%B3lar%20economia%20brasil")
        assert "hl=pt-BR" in url
        assert "ceid=BR:pt-419" in url


class TestCleanSnippet:

    def test_strips_markup(self):
        assert clean_snippet("<b>Dólar</b>   sobe") == "Dólar sobe"

    def test_empty(self):
        assert clean_snippet(None) == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
