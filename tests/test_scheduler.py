"""
Tests for the Cycle Scheduler

Tests cover:
- Fetch join before the engine runs
- Skipping a trigger while a cycle is outstanding
- Fetch exceptions and failing reporters
"""

import asyncio
import threading
import pytest
from datetime import date, timedelta
import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import AppSettings
from core.engine import PredictionEngine
from core.scheduler import CycleScheduler, build_scheduler
from notifications.console import ConsoleReporter
from storage.models import CycleStatus, FetchResult, NewsItem, PriceBar, PriceSeries


def make_series(closes):
    start = date(2024, 1, 1)
    return PriceSeries.from_bars(
        [PriceBar(date=start + timedelta(days=i), close=c) for i, c in enumerate(closes)]
    )


class StubFetcher:
    """Returns canned results; either fetch can be held on an event."""

    def __init__(self, series=None, news=None, gate=None, price_error=None, news_gate=None):
        self.series = series or make_series([5.00] * 59 + [5.10])
        self.news = news or []
        self.gate = gate
        self.price_error = price_error
        self.news_gate = news_gate
        self.price_calls = 0
        self.news_calls = 0

    def fetch_price_series(self):
        self.price_calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.price_error:
            raise self.price_error
        return FetchResult.success(self.series, source="stub")

    def fetch_news(self):
        self.news_calls += 1
        if self.news_gate is not None:
            self.news_gate.wait(timeout=5)
        return FetchResult.success(self.news, source="stub")


class RecordingReporter:

    def __init__(self):
        self.outcomes = []

    def report(self, outcome):
        self.outcomes.append(outcome)


class RecordingEngine(PredictionEngine):
    """Notes whether the news gate was open when the cycle started."""

    def __init__(self, news_gate):
        super().__init__()
        self.news_gate = news_gate
        self.gate_open_at_cycle = []

    def run_cycle(self, price_result, news_result=None):
        self.gate_open_at_cycle.append(self.news_gate.is_set())
        return super().run_cycle(price_result, news_result)


class BrokenReporter:

    def report(self, outcome):
        raise RuntimeError("display gone")


class TestRunOnce:

    def test_cycle_fetches_both_sources(self):
        fetcher = StubFetcher(news=[NewsItem(title="Dólar dispara", sentiment=0.4)])
        reporter = RecordingReporter()
        scheduler = CycleScheduler(PredictionEngine(), fetcher, reporters=[reporter])

        outcome = asyncio.run(scheduler.run_once())

        assert outcome.status == CycleStatus.UPDATED
        assert outcome.new_news_count == 1
        assert fetcher.price_calls == 1
        assert fetcher.news_calls == 1
        assert reporter.outcomes == [outcome]
        assert not scheduler.is_running

    def test_engine_waits_for_both_fetches(self):
        news_gate = threading.Event()
        fetcher = StubFetcher(
            news=[NewsItem(title="Dólar recua", sentiment=-0.3)],
            news_gate=news_gate,
        )
        engine = RecordingEngine(news_gate)
        scheduler = CycleScheduler(engine, fetcher)

        async def scenario():
            task = asyncio.create_task(scheduler.run_once())
            # The price fetch returns at once; the news fetch is still held
            await asyncio.sleep(0.1)
            assert engine.gate_open_at_cycle == []
            assert not task.done()

            news_gate.set()
            return await task

        outcome = asyncio.run(scenario())

        assert engine.gate_open_at_cycle == [True]
        assert outcome.status == CycleStatus.UPDATED
        assert outcome.new_news_count == 1

    def test_overlapping_trigger_is_skipped(self):
        gate = threading.Event()
        fetcher = StubFetcher(gate=gate)
        scheduler = CycleScheduler(PredictionEngine(), fetcher)

        async def scenario():
            first = asyncio.create_task(scheduler.run_once())
            await asyncio.sleep(0)
            assert scheduler.is_running

            second = await scheduler.run_once()
            gate.set()
            return await first, second

        first, second = asyncio.run(scenario())

        assert second.status == CycleStatus.SKIPPED
        assert first.status == CycleStatus.UPDATED
        assert fetcher.price_calls == 1
        assert scheduler.stats == {"cycles_run": 1, "cycles_skipped": 1}

    def test_fetch_exception_is_data_unavailable(self):
        fetcher = StubFetcher(price_error=ConnectionError("network down"))
        engine = PredictionEngine()
        scheduler = CycleScheduler(engine, fetcher)

        outcome = asyncio.run(scheduler.run_once())

        assert outcome.status == CycleStatus.DATA_UNAVAILABLE
        assert "network down" in outcome.reason
        assert engine.last_price is None

    def test_failing_reporter_does_not_stop_others(self):
        reporter = RecordingReporter()
        scheduler = CycleScheduler(
            PredictionEngine(),
            StubFetcher(),
            reporters=[BrokenReporter(), reporter],
        )

        outcome = asyncio.run(scheduler.run_once())

        assert reporter.outcomes == [outcome]


class TestRunForever:

    def test_max_cycles(self):
        scheduler = CycleScheduler(PredictionEngine(), StubFetcher(), interval_seconds=0)

        asyncio.run(scheduler.run_forever(max_cycles=3))

        stats = scheduler.stats
        assert stats["cycles_run"] >= 1
        assert stats["cycles_run"] + stats["cycles_skipped"] == 3
        assert not scheduler.is_running

    def test_second_tick_goes_idle(self):
        reporter = RecordingReporter()
        scheduler = CycleScheduler(PredictionEngine(), StubFetcher(), reporters=[reporter])

        async def two_cycles():
            await scheduler.run_once()
            await scheduler.run_once()

        asyncio.run(two_cycles())

        assert [o.status for o in reporter.outcomes] == [CycleStatus.UPDATED, CycleStatus.IDLE]


class TestBuildScheduler:

    def test_console_only_without_telegram(self):
        scheduler = build_scheduler(AppSettings(cycle_interval_minutes=5))

        assert scheduler.interval_seconds == 300
        assert len(scheduler.reporters) == 1
        assert isinstance(scheduler.reporters[0], ConsoleReporter)

    def test_telegram_added_when_configured(self):
        settings = AppSettings(telegram_bot_token="123:abc", telegram_chat_id="42")
        scheduler = build_scheduler(settings)
        assert len(scheduler.reporters) == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
