"""
News Classifier for FX Pulse.
Scores news sentiment using Portuguese and English keyword matching.
"""

import logging
import re
from typing import List, Optional, Tuple

from storage.models import NewsItem, NewsSentiment

logger = logging.getLogger(__name__)


POSITIVE_KEYWORDS = [
    # Portuguese
    "alta", "sobe", "subiu", "dispara", "disparou", "avança", "avanço",
    "ganho", "ganhos", "valoriza", "valorização", "recorde", "forte",
    "crescimento", "cresce", "otimismo", "otimista", "recuperação",
    "melhora", "positivo", "supera", "lucro", "aprovação", "acordo",
    # English
    "surge", "soar", "rally", "jump", "gain", "rise", "climb", "strong",
    "growth", "record", "positive", "optimistic", "boost", "recovery",
    "beat", "exceed", "upside",
]

NEGATIVE_KEYWORDS = [
    # Portuguese
    "queda", "cai", "caiu", "recua", "recuo", "despenca", "despencou",
    "perda", "perdas", "desvaloriza", "desvalorização", "fraco", "crise",
    "risco", "incerteza", "pessimismo", "pessimista", "recessão",
    "inflação", "déficit", "piora", "negativo", "tensão", "temor",
    # English
    "drop", "fall", "plunge", "decline", "weak", "slump", "crash",
    "tumble", "sink", "loss", "concern", "warning", "risk", "recession",
    "slowdown", "crisis", "fear", "downside",
]


class NewsClassifier:
    """
    Scores news headlines and snippets on a -1 to 1 scale.
    """

    def __init__(
        self,
        neutral_band: float = 0.2,
        positive_keywords: Optional[List[str]] = None,
        negative_keywords: Optional[List[str]] = None,
    ):
        """
        Initialize news classifier.

        Args:
            neutral_band: Scores within +/- this band are labelled neutral
            positive_keywords: Override the positive lexicon
            negative_keywords: Override the negative lexicon
        """
        self.neutral_band = neutral_band

        positive = positive_keywords or POSITIVE_KEYWORDS
        negative = negative_keywords or NEGATIVE_KEYWORDS

        # Compile regex patterns for efficiency
        self._positive_pattern = re.compile(
            r'\b(' + '|'.join(re.escape(kw) for kw in positive) + r')\b', re.IGNORECASE
        )
        self._negative_pattern = re.compile(
            r'\b(' + '|'.join(re.escape(kw) for kw in negative) + r')\b', re.IGNORECASE
        )

    def classify_sentiment(
        self,
        title: str,
        snippet: Optional[str] = None,
    ) -> Tuple[NewsSentiment, float]:
        """
        Classify news sentiment.

        Args:
            title: News title
            snippet: Optional news snippet

        Returns:
            Tuple of (NewsSentiment, score from -1 to 1)
        """
        text = title or ""
        if snippet:
            text += " " + snippet

        positive_count = len(self._positive_pattern.findall(text))
        negative_count = len(self._negative_pattern.findall(text))

        total = positive_count + negative_count
        if total == 0:
            return NewsSentiment.NEUTRAL, 0.0

        score = (positive_count - negative_count) / total

        if score > self.neutral_band:
            return NewsSentiment.POSITIVE, score
        elif score < -self.neutral_band:
            return NewsSentiment.NEGATIVE, score
        else:
            return NewsSentiment.NEUTRAL, score

    def score(self, item: NewsItem) -> float:
        """Sentiment score for a news item."""
        _, value = self.classify_sentiment(item.title, item.snippet)
        return value

    def score_batch(self, items: List[NewsItem]) -> List[NewsItem]:
        """
        Fill in sentiment for items that have none.

        Args:
            items: List of NewsItem objects

        Returns:
            The same list, scored in place
        """
        for item in items:
            if item.sentiment is None:
                item.sentiment = self.score(item)
        return items
