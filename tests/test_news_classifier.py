"""
Tests for the News Classifier Module

Tests cover:
- Sentiment detection in Portuguese and English
- Score bounds
- Batch scoring
"""

import pytest
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.news_classifier import NewsClassifier
from storage.models import NewsItem, NewsSentiment


@pytest.fixture
def classifier():
    """Create news classifier instance."""
    return NewsClassifier()


class TestSentimentDetection:
    """Tests for sentiment detection."""

    def test_positive_sentiment(self, classifier):
        """Should detect positive sentiment."""
        headlines = [
            "Dólar dispara e fecha em alta",
            "Ibovespa avança com otimismo no exterior",
            "Exportações batem recorde em março",
            "Stocks rally as growth accelerates",
        ]

        for headline in headlines:
            sentiment, score = classifier.classify_sentiment(headline)
            assert sentiment == NewsSentiment.POSITIVE, headline
            assert score > 0

    def test_negative_sentiment(self, classifier):
        """Should detect negative sentiment."""
        headlines = [
            "Ibovespa despenca em meio a crise fiscal",
            "Real sofre desvalorização e incerteza aumenta",
            "Markets plunge on recession fears",
        ]

        for headline in headlines:
            sentiment, score = classifier.classify_sentiment(headline)
            assert sentiment == NewsSentiment.NEGATIVE, headline
            assert score < 0

    def test_neutral_sentiment(self, classifier):
        """Headlines without lexicon words score zero."""
        headlines = [
            "Banco Central divulga ata da reunião",
            "Ministro participa de evento em Brasília",
        ]

        for headline in headlines:
            sentiment, score = classifier.classify_sentiment(headline)
            assert sentiment == NewsSentiment.NEUTRAL
            assert score == 0.0

    def test_balanced_is_neutral(self, classifier):
        sentiment, score = classifier.classify_sentiment("Dólar sobe, bolsa cai")
        assert sentiment == NewsSentiment.NEUTRAL
        assert score == 0.0

    def test_snippet_contributes(self, classifier):
        _, title_only = classifier.classify_sentiment("Dólar fecha o dia")
        _, with_snippet = classifier.classify_sentiment("Dólar fecha o dia", "Moeda dispara após dados")
        assert title_only == 0.0
        assert with_snippet == 1.0

    def test_case_insensitive(self, classifier):
        sentiment, _ = classifier.classify_sentiment("DÓLAR DISPARA")
        assert sentiment == NewsSentiment.POSITIVE

    def test_score_bounds(self, classifier):
        for text in ["alta alta alta", "queda queda", "alta queda queda", ""]:
            _, score = classifier.classify_sentiment(text)
            assert -1.0 <= score <= 1.0


class TestBatchScoring:
    """Tests for scoring NewsItem objects."""

    def test_score_item(self, classifier):
        item = NewsItem(title="Dólar recua", snippet="Moeda tem queda")
        assert classifier.score(item) == -1.0

    def test_score_batch_fills_missing_only(self, classifier):
        items = [
            NewsItem(title="Dólar dispara"),
            NewsItem(title="Dólar dispara", sentiment=-0.25),
        ]

        classifier.score_batch(items)

        assert items[0].sentiment == 1.0
        assert items[1].sentiment == -0.25

    def test_custom_lexicon(self):
        classifier = NewsClassifier(positive_keywords=["hawkish"], negative_keywords=["dovish"])
        sentiment, score = classifier.classify_sentiment("Fed turns hawkish")
        assert sentiment == NewsSentiment.POSITIVE
        assert score == 1.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
