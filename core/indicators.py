"""
Technical Indicators Calculator for FX Pulse.
Computes SMA, EMA, Bollinger Bands, RSI and support/resistance.

Every function expects closes in chronological order (oldest first),
the same convention PriceSeries enforces.
"""

import logging
from typing import Optional, List, Sequence, Tuple, Union

import pandas as pd

from core.config import EngineConfig
from core.errors import InsufficientDataError
from storage.models import BollingerBands, IndicatorSet, PriceSeries

logger = logging.getLogger(__name__)

Prices = Union[Sequence[float], pd.Series]


def _to_series(prices: Prices) -> pd.Series:
    if isinstance(prices, pd.Series):
        return prices.astype(float).reset_index(drop=True)
    return pd.Series(list(prices), dtype=float)


def _require(name: str, prices: pd.Series, period: int, extra: int = 0) -> None:
    if period < 1:
        raise ValueError(f"{name} period must be >= 1, got {period}")
    if len(prices) < period + extra:
        raise InsufficientDataError(name, period + extra, len(prices))


def calculate_sma(prices: Prices, period: int) -> List[float]:
    """
    Calculate Simple Moving Average.

    Args:
        prices: Close prices, oldest first
        period: Window length

    Returns:
        One mean per full window (len(prices) - period + 1 values)
    """
    series = _to_series(prices)
    _require("SMA", series, period)
    sma = series.rolling(window=period).mean()
    return sma.iloc[period - 1:].tolist()


def calculate_ema(prices: Prices, period: int) -> List[float]:
    """
    Calculate Exponential Moving Average.

    The first value is the SMA of the first `period` prices; every later
    value moves toward the current price by 2 / (period + 1).

    Args:
        prices: Close prices, oldest first
        period: EMA period

    Returns:
        EMA values aligned with calculate_sma output
    """
    series = _to_series(prices)
    _require("EMA", series, period)

    seed = series.iloc[:period].mean()
    seeded = pd.concat(
        [pd.Series([seed]), series.iloc[period:]],
        ignore_index=True,
    )
    ema = seeded.ewm(alpha=2 / (period + 1), adjust=False).mean()
    return ema.tolist()


def calculate_bollinger_bands(
    prices: Prices,
    period: int = 20,
    num_std: float = 2.0,
) -> BollingerBands:
    """
    Calculate Bollinger Bands.

    Args:
        prices: Close prices, oldest first
        period: Period for moving average
        num_std: Number of population standard deviations

    Returns:
        BollingerBands with upper, middle and lower lists
    """
    series = _to_series(prices)
    _require("Bollinger Bands", series, period)

    middle = series.rolling(window=period).mean()
    std = series.rolling(window=period).std(ddof=0)

    upper = middle + (std * num_std)
    lower = middle - (std * num_std)

    start = period - 1
    return BollingerBands(
        upper=upper.iloc[start:].tolist(),
        middle=middle.iloc[start:].tolist(),
        lower=lower.iloc[start:].tolist(),
    )


def calculate_rsi(prices: Prices, period: int = 14) -> float:
    """
    Calculate Relative Strength Index.

    Average gain and average loss come from the first `period` deltas
    only, without Wilder smoothing. A zero average loss yields 100.

    Args:
        prices: Close prices, oldest first
        period: RSI period (default 14)

    Returns:
        RSI value (0-100)
    """
    series = _to_series(prices)
    _require("RSI", series, period, extra=1)

    delta = series.diff().iloc[1:period + 1]

    gains = delta.where(delta > 0, 0.0)
    losses = (-delta).where(delta < 0, 0.0)

    avg_gain = float(gains.sum()) / period
    avg_loss = float(losses.sum()) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def calculate_support_resistance(
    prices: Prices,
    window: int = 60,
) -> Tuple[float, float]:
    """
    Lowest and highest close over the trailing window.

    Uses every available close when the series is shorter than the window.

    Returns:
        Tuple of (support, resistance)
    """
    series = _to_series(prices)
    if window < 1:
        raise ValueError(f"Support/Resistance window must be >= 1, got {window}")
    if series.empty:
        raise InsufficientDataError("Support/Resistance", 1, 0)

    recent = series.tail(window)
    return float(recent.min()), float(recent.max())


class IndicatorCalculator:
    """
    Calculates the indicator set used by the prediction engine.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize indicator calculator.

        Args:
            config: Engine configuration holding indicator periods
        """
        self.config = config or EngineConfig()

    def sma(self, prices: Prices) -> List[float]:
        return calculate_sma(prices, self.config.sma_period)

    def ema(self, prices: Prices) -> List[float]:
        return calculate_ema(prices, self.config.ema_period)

    def bollinger_bands(self, prices: Prices) -> BollingerBands:
        return calculate_bollinger_bands(
            prices, self.config.bollinger_period, self.config.bollinger_std
        )

    def rsi(self, prices: Prices) -> float:
        # Feed only the trailing period + 1 closes so the deltas used are the latest ones
        closes = list(_to_series(prices))
        return calculate_rsi(closes[-(self.config.rsi_period + 1):], self.config.rsi_period)

    def support_resistance(self, prices: Prices) -> Tuple[float, float]:
        return calculate_support_resistance(prices, self.config.support_resistance_window)

    def compute(self, series: PriceSeries) -> IndicatorSet:
        """
        Compute every indicator for a price series.

        An indicator whose period exceeds the series length is left as None.

        Args:
            series: Normalized PriceSeries

        Returns:
            IndicatorSet
        """
        closes = series.closes
        result = IndicatorSet()

        try:
            result.sma = self.sma(closes)
        except InsufficientDataError as e:
            logger.warning(f"SMA unavailable: {e}")

        try:
            result.ema = self.ema(closes)
        except InsufficientDataError as e:
            logger.warning(f"EMA unavailable: {e}")

        try:
            result.bollinger = self.bollinger_bands(closes)
        except InsufficientDataError as e:
            logger.warning(f"Bollinger Bands unavailable: {e}")

        try:
            result.rsi = self.rsi(closes)
        except InsufficientDataError as e:
            logger.warning(f"RSI unavailable: {e}")

        try:
            result.support, result.resistance = self.support_resistance(closes)
        except InsufficientDataError as e:
            logger.warning(f"Support/Resistance unavailable: {e}")

        return result
