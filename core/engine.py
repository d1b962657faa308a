"""
Prediction Engine for FX Pulse.
Runs one recompute cycle: trigger decision, indicators, sentiment and the decision policy.
"""

import logging
import threading
from datetime import datetime
from typing import List, Optional, Tuple

from core.change_detector import ChangeDetector
from core.config import EngineConfig
from core.indicators import IndicatorCalculator
from core.sentiment import SentimentAggregator
from storage.models import (
    CycleOutcome,
    CycleStatus,
    Direction,
    FetchResult,
    IndicatorSet,
    NewsItem,
    PredictionResult,
    PriceBar,
    PriceSeries,
)

logger = logging.getLogger(__name__)


def _all_known(*values: Optional[float]) -> bool:
    return all(v is not None for v in values)


def decide(
    price: float,
    indicators: IndicatorSet,
    avg_sentiment: float,
    config: Optional[EngineConfig] = None,
) -> Tuple[Direction, float]:
    """
    Apply the decision policy; the first matching rule wins.

    A rule that needs a missing indicator cannot match and falls
    through to the next one, ending at STABLE.

    Args:
        price: Latest close
        indicators: IndicatorSet for the current series
        avg_sentiment: Average of the sentiment window
        config: Engine configuration with the policy coefficients

    Returns:
        Tuple of (Direction, price delta)
    """
    config = config or EngineConfig()
    sma = indicators.sma_latest
    ema = indicators.ema_latest
    rsi = indicators.rsi
    upper = indicators.bollinger_upper_latest
    lower = indicators.bollinger_lower_latest

    # Bullish conditions
    if avg_sentiment > 0 and _all_known(sma, ema, indicators.support, rsi):
        if (
            price > sma and
            price > ema and
            price > indicators.support and
            rsi < config.rsi_overbought
        ):
            return Direction.BULLISH, avg_sentiment * config.sentiment_scale

    # Bearish conditions
    if avg_sentiment < 0 and _all_known(sma, ema, indicators.resistance, rsi):
        if (
            price < sma and
            price < ema and
            price < indicators.resistance and
            rsi > config.rsi_oversold
        ):
            return Direction.BEARISH, -abs(avg_sentiment) * config.sentiment_scale

    if upper is not None and price > upper:
        return Direction.OVERBOUGHT_CORRECTION, -config.correction_step

    if lower is not None and price < lower:
        return Direction.OVERSOLD_CORRECTION, config.correction_step

    return Direction.STABLE, 0.0


class PredictionEngine:
    """
    Owns the sentiment window, processed titles and last price.

    State changes only inside run_cycle, and only when the cycle
    reaches RECOMPUTE.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        calculator: Optional[IndicatorCalculator] = None,
        aggregator: Optional[SentimentAggregator] = None,
        change_detector: Optional[ChangeDetector] = None,
    ):
        """
        Initialize prediction engine.

        Args:
            config: Engine configuration
            calculator: Indicator calculator instance
            aggregator: Sentiment aggregator instance
            change_detector: Change detector instance
        """
        self.config = (config or EngineConfig()).validate()
        self.calculator = calculator or IndicatorCalculator(self.config)
        self.aggregator = aggregator or SentimentAggregator(
            capacity=self.config.sentiment_capacity,
            max_titles=self.config.max_processed_titles,
        )
        self.change_detector = change_detector or ChangeDetector(
            self.config.change_threshold_pct
        )
        self._last_price: Optional[float] = None
        self._last_prediction: Optional[PredictionResult] = None
        self._cycle_lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._cycle_lock.locked()

    @property
    def last_price(self) -> Optional[float]:
        return self._last_price

    @property
    def last_prediction(self) -> Optional[PredictionResult]:
        return self._last_prediction

    def _resolve_series(self, price_result: FetchResult) -> Tuple[Optional[PriceSeries], str]:
        if not price_result.ok or price_result.data is None:
            return None, price_result.error or "price series unavailable"

        data = price_result.data
        try:
            if isinstance(data, PriceSeries):
                # Re-normalize so a hand-built series still honors the bound
                series = PriceSeries.from_bars(data.bars, self.config.max_bars, data.symbol)
            else:
                bars: List[PriceBar] = list(data)
                series = PriceSeries.from_bars(bars, self.config.max_bars)
        except (TypeError, ValueError) as e:
            return None, f"price series could not be normalized: {e}"

        return series, ""

    def _resolve_news(self, news_result: Optional[FetchResult]) -> List[NewsItem]:
        if news_result is None:
            return []
        if not news_result.ok:
            logger.warning(f"News unavailable ({news_result.source}): {news_result.error}")
            return []
        return list(news_result.data or [])

    def should_recompute(
        self,
        series: PriceSeries,
        unseen_news: List[NewsItem],
    ) -> bool:
        """IDLE -> RECOMPUTE when there is unseen news or the price moved enough."""
        if unseen_news:
            logger.info(f"{len(unseen_news)} unseen news items")
            return True
        return self.change_detector.check(series, self._last_price)

    def run_cycle(
        self,
        price_result: FetchResult,
        news_result: Optional[FetchResult] = None,
    ) -> CycleOutcome:
        """
        Run one cycle over already-fetched data.

        Only one cycle runs at a time per engine; a call made while
        another thread is inside a cycle returns SKIPPED at once.

        Args:
            price_result: FetchResult holding a PriceSeries (or raw PriceBars)
            news_result: FetchResult holding a list of NewsItem

        Returns:
            CycleOutcome with status UPDATED, IDLE, DATA_UNAVAILABLE or SKIPPED
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("Engine cycle already running, skipping this call")
            return CycleOutcome(status=CycleStatus.SKIPPED, reason="cycle already running")
        try:
            return self._run_cycle(price_result, news_result)
        finally:
            self._cycle_lock.release()

    def _run_cycle(
        self,
        price_result: FetchResult,
        news_result: Optional[FetchResult],
    ) -> CycleOutcome:
        series, error = self._resolve_series(price_result)
        if series is None:
            logger.error(f"Cycle aborted, price data unavailable: {error}")
            return CycleOutcome(status=CycleStatus.DATA_UNAVAILABLE, reason=error)

        news = self._resolve_news(news_result)
        unseen = self.aggregator.filter_unseen(news)

        if not self.should_recompute(series, unseen):
            logger.info("No unseen news and no significant price change, staying idle")
            return CycleOutcome(status=CycleStatus.IDLE, reason="no trigger")

        accepted = self.aggregator.ingest_batch(unseen)
        avg_sentiment = self.aggregator.average_sentiment()

        indicators = self.calculator.compute(series)
        price = series.latest_close
        direction, delta = decide(price, indicators, avg_sentiment, self.config)

        self._last_price = price

        prediction = PredictionResult(
            estimated_price=price + delta,
            direction=direction,
            price=price,
            delta=delta,
            support=indicators.support,
            resistance=indicators.resistance,
            rsi=indicators.rsi,
            bollinger_upper=indicators.bollinger_upper_latest,
            bollinger_lower=indicators.bollinger_lower_latest,
            sma=indicators.sma_latest,
            ema=indicators.ema_latest,
            average_sentiment=avg_sentiment,
            new_news_count=accepted,
            as_of=series.latest.date,
            created_at=datetime.now(),
        )
        self._last_prediction = prediction

        logger.info(
            f"Prediction {direction.value}: price {price:.4f} -> {prediction.estimated_price:.4f} "
            f"(sentiment {avg_sentiment:+.3f}, {accepted} new news)"
        )

        return CycleOutcome(
            status=CycleStatus.UPDATED,
            prediction=prediction,
            new_news_count=accepted,
        )
