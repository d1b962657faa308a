"""
Sentiment Aggregator for FX Pulse.
Keeps a bounded window of recent news sentiment scores, deduplicated by title.
"""

import logging
from collections import OrderedDict, deque
from typing import Callable, Deque, Iterable, List, Optional, Tuple

from storage.models import NewsItem

logger = logging.getLogger(__name__)

Scorer = Callable[[NewsItem], float]


class SentimentAggregator:
    """
    Rolling FIFO of sentiment samples plus the set of titles already scored.

    The processed-title set is insertion ordered and capped; once full,
    the oldest titles are forgotten first.
    """

    def __init__(
        self,
        capacity: int = 10,
        max_titles: int = 1000,
        scorer: Optional[Scorer] = None,
    ):
        """
        Initialize sentiment aggregator.

        Args:
            capacity: Number of sentiment samples kept for the average
            max_titles: Number of processed titles remembered
            scorer: Fallback used for items that carry no sentiment
        """
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        if max_titles < 1:
            raise ValueError(f"max_titles must be >= 1, got {max_titles}")

        self.capacity = capacity
        self.max_titles = max_titles
        self.scorer = scorer

        self._samples: Deque[float] = deque(maxlen=capacity)
        self._titles: "OrderedDict[str, None]" = OrderedDict()

    @property
    def samples(self) -> Tuple[float, ...]:
        """Current samples, oldest first."""
        return tuple(self._samples)

    @property
    def processed_count(self) -> int:
        return len(self._titles)

    def has_seen(self, title: str) -> bool:
        return title in self._titles

    def is_new(self, item: NewsItem) -> bool:
        """Check whether a news item has not been scored yet."""
        return not self.has_seen(item.title)

    def filter_unseen(self, items: Iterable[NewsItem]) -> List[NewsItem]:
        """
        Return the items whose titles were never ingested.

        Repeated titles within the same batch are collapsed to the first.
        """
        unseen = []
        batch_titles = set()
        for item in items:
            if item.title in batch_titles or self.has_seen(item.title):
                continue
            batch_titles.add(item.title)
            unseen.append(item)
        return unseen

    def _score(self, item: NewsItem, score: Optional[float]) -> float:
        if score is not None:
            return float(score)
        if item.sentiment is not None:
            return float(item.sentiment)
        if self.scorer is not None:
            return float(self.scorer(item))
        return 0.0

    def _remember(self, title: str) -> None:
        self._titles[title] = None
        while len(self._titles) > self.max_titles:
            forgotten, _ = self._titles.popitem(last=False)
            logger.debug(f"Forgetting processed title: {forgotten[:60]}")

    def ingest(self, item: NewsItem, score: Optional[float] = None) -> bool:
        """
        Add a news item's sentiment to the window.

        Args:
            item: News item to ingest
            score: Explicit score; defaults to item.sentiment, then the scorer

        Returns:
            True if accepted, False if the title was already processed
        """
        if self.has_seen(item.title):
            logger.debug(f"Skipping already processed news: {item.title[:60]}")
            return False

        value = self._score(item, score)
        self._samples.append(value)
        self._remember(item.title)
        return True

    def ingest_batch(self, items: Iterable[NewsItem]) -> int:
        """Ingest several items, returning how many were accepted."""
        return sum(1 for item in items if self.ingest(item))

    def average_sentiment(self) -> float:
        """Mean of the current samples, 0.0 when the window is empty."""
        if not self._samples:
            return 0.0
        return sum(self._samples) / len(self._samples)
