"""
Storage Module - Domain records exchanged between FX Pulse components.
"""

from storage.models import (
    Direction,
    NewsSentiment,
    CycleStatus,
    PriceBar,
    PriceSeries,
    NewsItem,
    BollingerBands,
    IndicatorSet,
    PredictionResult,
    CycleOutcome,
    FetchResult,
)

__all__ = [
    "Direction",
    "NewsSentiment",
    "CycleStatus",
    "PriceBar",
    "PriceSeries",
    "NewsItem",
    "BollingerBands",
    "IndicatorSet",
    "PredictionResult",
    "CycleOutcome",
    "FetchResult",
]
