"""
Data Models for FX Pulse.
Dataclasses representing price bars, news, indicators and predictions.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, date
from typing import Optional, List, Dict, Any, Generic, Iterable, TypeVar, Tuple
from enum import Enum

import pandas as pd

T = TypeVar("T")


class Direction(Enum):
    """Outcome of the decision policy."""
    BULLISH = "bullish"
    BEARISH = "bearish"
    OVERBOUGHT_CORRECTION = "overbought_correction"
    OVERSOLD_CORRECTION = "oversold_correction"
    STABLE = "stable"

    @property
    def label(self) -> str:
        """Operator-facing recommendation text."""
        return DIRECTION_LABELS[self]


DIRECTION_LABELS = {
    Direction.BULLISH: "Possible rise in the next 24 hours",
    Direction.BEARISH: "Possible drop in the next 24 hours",
    Direction.OVERBOUGHT_CORRECTION: "Possible downward correction (overbought)",
    Direction.OVERSOLD_CORRECTION: "Possible upward correction (oversold)",
    Direction.STABLE: "Possible stability in the next 24 hours",
}


class NewsSentiment(Enum):
    """News sentiment enum."""
    POSITIVE = 1
    NEGATIVE = -1
    NEUTRAL = 0


class CycleStatus(Enum):
    """Result status of one engine cycle."""
    UPDATED = "updated"
    IDLE = "idle"
    DATA_UNAVAILABLE = "data_unavailable"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PriceBar:
    """Daily closing price for the tracked currency pair."""
    date: date
    close: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat() if isinstance(self.date, date) else self.date,
            "close": self.close,
        }


@dataclass(frozen=True)
class PriceSeries:
    """
    Chronological (oldest first) sequence of PriceBar.

    Dates are strictly ascending with no duplicates. Build instances
    with from_bars() so the ordering and size bound always hold.
    """
    bars: Tuple[PriceBar, ...]
    symbol: str = ""

    @classmethod
    def from_bars(
        cls,
        bars: Iterable[PriceBar],
        max_bars: int = 60,
        symbol: str = "",
    ) -> "PriceSeries":
        """
        Normalize raw bars into a PriceSeries.

        Sorts by date, keeps the last occurrence of a duplicated date,
        drops non-finite or non-positive closes and keeps the most
        recent max_bars.

        Raises:
            ValueError: if no usable bar remains
        """
        by_date: Dict[date, PriceBar] = {}
        for bar in bars:
            try:
                close = float(bar.close)
            except (TypeError, ValueError):
                continue
            if not math.isfinite(close) or close <= 0:
                continue
            by_date[bar.date] = PriceBar(date=bar.date, close=close)

        if not by_date:
            raise ValueError("price series has no usable bars")

        ordered = [by_date[d] for d in sorted(by_date)]
        if max_bars > 0:
            ordered = ordered[-max_bars:]
        return cls(bars=tuple(ordered), symbol=symbol)

    def __len__(self) -> int:
        return len(self.bars)

    @property
    def closes(self) -> List[float]:
        return [bar.close for bar in self.bars]

    @property
    def latest(self) -> PriceBar:
        return self.bars[-1]

    @property
    def latest_close(self) -> float:
        return self.bars[-1].close

    @property
    def previous_close(self) -> Optional[float]:
        """Second-most-recent close, or None for a single-bar series."""
        if len(self.bars) < 2:
            return None
        return self.bars[-2].close

    def to_series(self) -> pd.Series:
        """Closes as a pandas Series indexed by date."""
        return pd.Series(
            self.closes,
            index=pd.to_datetime([bar.date for bar in self.bars]),
            name="close",
            dtype=float,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "bars": [bar.to_dict() for bar in self.bars],
        }


@dataclass
class NewsItem:
    """News headline; the title is the deduplication key."""
    title: str
    snippet: str = ""
    sentiment: Optional[float] = None
    link: Optional[str] = None
    published_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "snippet": self.snippet,
            "sentiment": self.sentiment,
            "link": self.link,
            "published_at": self.published_at.isoformat() if self.published_at else None,
        }


@dataclass
class BollingerBands:
    """Volatility envelope, index-aligned with the middle band."""
    upper: List[float] = field(default_factory=list)
    middle: List[float] = field(default_factory=list)
    lower: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"upper": self.upper, "middle": self.middle, "lower": self.lower}


@dataclass
class IndicatorSet:
    """
    Indicators computed for one cycle.
    A None field means the series was too short for that indicator.
    """
    sma: Optional[List[float]] = None
    ema: Optional[List[float]] = None
    bollinger: Optional[BollingerBands] = None
    rsi: Optional[float] = None
    support: Optional[float] = None
    resistance: Optional[float] = None

    @property
    def sma_latest(self) -> Optional[float]:
        return self.sma[-1] if self.sma else None

    @property
    def ema_latest(self) -> Optional[float]:
        return self.ema[-1] if self.ema else None

    @property
    def bollinger_upper_latest(self) -> Optional[float]:
        if self.bollinger is None or not self.bollinger.upper:
            return None
        return self.bollinger.upper[-1]

    @property
    def bollinger_lower_latest(self) -> Optional[float]:
        if self.bollinger is None or not self.bollinger.lower:
            return None
        return self.bollinger.lower[-1]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sma": self.sma,
            "ema": self.ema,
            "bollinger": self.bollinger.to_dict() if self.bollinger else None,
            "rsi": self.rsi,
            "support": self.support,
            "resistance": self.resistance,
        }


@dataclass
class PredictionResult:
    """Directional estimate emitted by one recompute cycle."""
    estimated_price: float
    direction: Direction
    price: float
    delta: float
    support: Optional[float] = None
    resistance: Optional[float] = None
    rsi: Optional[float] = None
    bollinger_upper: Optional[float] = None
    bollinger_lower: Optional[float] = None
    sma: Optional[float] = None
    ema: Optional[float] = None
    average_sentiment: float = 0.0
    new_news_count: int = 0
    as_of: Optional[date] = None
    created_at: Optional[datetime] = None

    @property
    def direction_label(self) -> str:
        return self.direction.label

    def to_dict(self) -> Dict[str, Any]:
        return {
            "estimated_price": self.estimated_price,
            "direction": self.direction.value if isinstance(self.direction, Direction) else self.direction,
            "direction_label": self.direction_label,
            "price": self.price,
            "delta": self.delta,
            "support": self.support,
            "resistance": self.resistance,
            "rsi": self.rsi,
            "bollinger_upper": self.bollinger_upper,
            "bollinger_lower": self.bollinger_lower,
            "sma": self.sma,
            "ema": self.ema,
            "average_sentiment": self.average_sentiment,
            "new_news_count": self.new_news_count,
            "as_of": self.as_of.isoformat() if isinstance(self.as_of, date) else self.as_of,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass
class CycleOutcome:
    """What a single engine cycle produced."""
    status: CycleStatus
    prediction: Optional[PredictionResult] = None
    reason: str = ""
    new_news_count: int = 0

    @property
    def updated(self) -> bool:
        return self.status == CycleStatus.UPDATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "prediction": self.prediction.to_dict() if self.prediction else None,
            "reason": self.reason,
            "new_news_count": self.new_news_count,
        }


@dataclass
class FetchResult(Generic[T]):
    """Explicit success or failure value returned by a data collaborator."""
    ok: bool
    data: Optional[T] = None
    error: Optional[str] = None
    source: str = ""

    @classmethod
    def success(cls, data: T, source: str = "") -> "FetchResult[T]":
        return cls(ok=True, data=data, source=source)

    @classmethod
    def failure(cls, error: str, source: str = "") -> "FetchResult[T]":
        return cls(ok=False, error=error, source=source)
