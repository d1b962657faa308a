"""
Data Fetcher for FX Pulse.
Fetches the daily price series and the news feed, returning explicit FetchResult values.
"""

import html as html_lib
import logging
import re
from datetime import datetime
from typing import Optional, List, Dict, Any

import yfinance as yf
import feedparser
import requests
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.config import AppSettings
from core.errors import FetchError
from core.news_classifier import NewsClassifier
from storage.models import FetchResult, NewsItem, PriceBar, PriceSeries

logger = logging.getLogger(__name__)

ALPHA_VANTAGE_URL = "https://www.alphavantage.co/query"
GOOGLE_NEWS_RSS_URL = "https://news.google.com/rss/search"

_TAG_RE = re.compile(r"<[^>]+>")
_SPACE_RE = re.compile(r"\s+")

# HTTP status errors (bad key, 4xx) are not retried
_TRANSIENT_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    ConnectionError,
    TimeoutError,
)


def parse_alpha_vantage_payload(payload: Dict[str, Any]) -> List[PriceBar]:
    """
    Extract daily closes from an Alpha Vantage FX_DAILY response.

    Raises:
        FetchError: if the payload carries an API message or no series
    """
    for key in ("Error Message", "Note", "Information"):
        if key in payload:
            raise FetchError(f"Alpha Vantage: {payload[key]}", source="alpha_vantage")

    time_series = payload.get("Time Series FX (Daily)")
    if not time_series:
        raise FetchError("Alpha Vantage response has no daily series", source="alpha_vantage")

    bars = []
    for day, values in time_series.items():
        try:
            bars.append(PriceBar(
                date=datetime.strptime(day, "%Y-%m-%d").date(),
                close=float(values["4. close"]),
            ))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed Alpha Vantage row {day}: {e}")
    return bars


def clean_snippet(markup: Optional[str]) -> str:
    """Strip markup from an RSS summary."""
    if not markup:
        return ""
    text = html_lib.unescape(_TAG_RE.sub(" ", markup))
    return _SPACE_RE.sub(" ", text).strip()


class DataFetcher:
    """
    Fetches FX prices from yfinance (or Alpha Vantage when a key is set)
    and news from Google News RSS.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        classifier: Optional[NewsClassifier] = None,
        max_bars: int = 60,
        timeout: float = 15.0,
    ):
        """
        Initialize data fetcher.

        Args:
            settings: Application settings (pair, API keys, news query)
            classifier: News classifier used to score fetched items
            max_bars: Number of most recent bars to keep
            timeout: HTTP timeout in seconds
        """
        self.settings = settings or AppSettings()
        self.classifier = classifier or NewsClassifier()
        self.max_bars = max_bars
        self.timeout = timeout

    @property
    def price_source(self) -> str:
        return "alpha_vantage" if self.settings.alpha_vantage_api_key else "yfinance"

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _download_alpha_vantage(self) -> List[PriceBar]:
        response = requests.get(
            ALPHA_VANTAGE_URL,
            params={
                "function": "FX_DAILY",
                "from_symbol": self.settings.base_currency,
                "to_symbol": self.settings.quote_currency,
                "outputsize": "compact",
                "apikey": self.settings.alpha_vantage_api_key,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()
        return parse_alpha_vantage_payload(response.json())

    @retry(
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _download_yfinance(self) -> List[PriceBar]:
        ticker = yf.Ticker(self.settings.symbol)
        df = ticker.history(period="6mo", interval="1d")

        if df is None or df.empty:
            raise FetchError(f"No price data returned for {self.settings.symbol}", source="yfinance")

        bars = []
        for idx, row in df.iterrows():
            # Handle timezone-aware datetime
            if hasattr(idx, 'tz') and idx.tz is not None:
                bar_date = idx.tz_localize(None).date()
            else:
                bar_date = idx.date() if hasattr(idx, 'date') else idx
            bars.append(PriceBar(date=bar_date, close=float(row['Close'])))
        return bars

    def fetch_price_series(self) -> FetchResult:
        """
        Fetch and normalize the daily price series.

        Returns:
            FetchResult wrapping a PriceSeries, or a failure
        """
        source = self.price_source
        logger.info(f"Fetching {self.settings.pair} prices from {source}")

        try:
            if source == "alpha_vantage":
                bars = self._download_alpha_vantage()
            else:
                bars = self._download_yfinance()
            series = PriceSeries.from_bars(bars, self.max_bars, symbol=self.settings.pair)
        except FetchError as e:
            logger.error(f"Error fetching prices: {e}")
            return FetchResult.failure(str(e), source=source)
        except ValueError as e:
            logger.error(f"Price data for {self.settings.pair} unusable: {e}")
            return FetchResult.failure(str(e), source=source)
        except Exception as e:
            logger.error(f"Error fetching prices from {source}: {e}")
            return FetchResult.failure(str(e), source=source)

        logger.info(f"Fetched {len(series)} bars, latest close {series.latest_close:.4f} on {series.latest.date}")
        return FetchResult.success(series, source=source)

    def build_news_url(self) -> str:
        query = requests.utils.quote(self.settings.news_query)
        return (
            f"{GOOGLE_NEWS_RSS_URL}?q={query}"
            f"&hl={self.settings.news_language}"
            f"&gl={self.settings.news_region}"
            f"&ceid={self.settings.news_edition}"
        )

    def fetch_news(self) -> FetchResult:
        """
        Fetch the news feed and score each item.

        Returns:
            FetchResult wrapping a list of NewsItem, or a failure
        """
        url = self.build_news_url()
        logger.info(f"Fetching news for '{self.settings.news_query}'")

        try:
            feed = feedparser.parse(url)
        except Exception as e:
            logger.error(f"Error fetching news feed: {e}")
            return FetchResult.failure(str(e), source="google_news")

        entries = feed.get("entries", [])
        if feed.get("bozo") and not entries:
            error = feed.get("bozo_exception", "malformed feed")
            logger.error(f"News feed unusable: {error}")
            return FetchResult.failure(str(error), source="google_news")

        items = []
        for entry in entries[:self.settings.news_limit]:
            title = entry.get('title', '').strip()
            if not title:
                continue

            # Google News format: "Title - Source"
            if ' - ' in title:
                title = title.rsplit(' - ', 1)[0]

            pub_time = entry.get('published_parsed')
            published_at = datetime(*pub_time[:6]) if pub_time else None

            items.append(NewsItem(
                title=title,
                snippet=clean_snippet(entry.get('summary')),
                link=entry.get('link'),
                published_at=published_at,
            ))

        self.classifier.score_batch(items)
        logger.info(f"Fetched {len(items)} news items")
        return FetchResult.success(items, source="google_news")
