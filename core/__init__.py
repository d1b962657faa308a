"""
Core Module - Indicators, sentiment, change detection, prediction and scheduling.
"""

from core.config import EngineConfig, AppSettings
from core.indicators import IndicatorCalculator
from core.sentiment import SentimentAggregator
from core.change_detector import ChangeDetector
from core.engine import PredictionEngine
from core.news_classifier import NewsClassifier
from core.data_fetcher import DataFetcher
from core.scheduler import CycleScheduler

__all__ = [
    "EngineConfig",
    "AppSettings",
    "IndicatorCalculator",
    "SentimentAggregator",
    "ChangeDetector",
    "PredictionEngine",
    "NewsClassifier",
    "DataFetcher",
    "CycleScheduler",
]
