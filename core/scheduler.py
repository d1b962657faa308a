"""
Cycle Scheduler for FX Pulse.
Runs the prediction engine once at start and then on a fixed interval.
"""

import argparse
import asyncio
import logging
from typing import Iterable, List, Optional, Protocol

from core.config import AppSettings, EngineConfig
from core.data_fetcher import DataFetcher
from core.engine import PredictionEngine
from storage.models import CycleOutcome, CycleStatus, FetchResult

logger = logging.getLogger(__name__)


class Reporter(Protocol):
    """Anything that presents a cycle outcome to an operator."""

    def report(self, outcome: CycleOutcome) -> None:
        ...


class CycleScheduler:
    """
    Periodic timer around PredictionEngine.run_cycle.

    Only one cycle runs at a time: a tick that fires while a cycle is
    still outstanding is skipped.
    """

    def __init__(
        self,
        engine: PredictionEngine,
        fetcher: DataFetcher,
        interval_seconds: float = 1800,
        reporters: Optional[Iterable[Reporter]] = None,
    ):
        """
        Initialize scheduler.

        Args:
            engine: Engine instance owning the prediction state
            fetcher: Data fetcher for prices and news
            interval_seconds: Seconds between ticks (default 30 minutes)
            reporters: Presentation layers receiving each outcome
        """
        self.engine = engine
        self.fetcher = fetcher
        self.interval_seconds = interval_seconds
        self.reporters: List[Reporter] = list(reporters or [])

        self._running = False
        self._cycles_run = 0
        self._cycles_skipped = 0
        self._tasks: List[asyncio.Task] = []

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def stats(self) -> dict:
        return {
            "cycles_run": self._cycles_run,
            "cycles_skipped": self._cycles_skipped,
        }

    async def _fetch_all(self):
        # Both fetches must finish before the engine decides
        price_result, news_result = await asyncio.gather(
            asyncio.to_thread(self.fetcher.fetch_price_series),
            asyncio.to_thread(self.fetcher.fetch_news),
            return_exceptions=True,
        )
        if isinstance(price_result, BaseException):
            logger.error(f"Price fetch raised: {price_result}")
            price_result = FetchResult.failure(str(price_result), source="prices")
        if isinstance(news_result, BaseException):
            logger.error(f"News fetch raised: {news_result}")
            news_result = FetchResult.failure(str(news_result), source="news")
        return price_result, news_result

    def _publish(self, outcome: CycleOutcome) -> None:
        for reporter in self.reporters:
            try:
                reporter.report(outcome)
            except Exception as e:
                logger.error(f"Reporter {type(reporter).__name__} failed: {e}")

    async def run_once(self) -> CycleOutcome:
        """
        Run a single guarded cycle.

        Returns:
            CycleOutcome, SKIPPED if another cycle is still running
        """
        if self._running:
            self._cycles_skipped += 1
            logger.warning("Previous cycle still running, skipping this trigger")
            return CycleOutcome(status=CycleStatus.SKIPPED, reason="cycle already running")

        self._running = True
        try:
            price_result, news_result = await self._fetch_all()
            outcome = self.engine.run_cycle(price_result, news_result)
        except Exception as e:
            logger.exception(f"Cycle failed: {e}")
            outcome = CycleOutcome(status=CycleStatus.DATA_UNAVAILABLE, reason=str(e))
        finally:
            self._running = False
            self._cycles_run += 1

        self._publish(outcome)
        return outcome

    async def run_forever(self, max_cycles: Optional[int] = None) -> None:
        """
        Run at start, then once per interval.

        Args:
            max_cycles: Stop after this many ticks (None runs until cancelled)
        """
        logger.info(f"Scheduler started, interval {self.interval_seconds}s")
        ticks = 0
        while max_cycles is None or ticks < max_cycles:
            task = asyncio.create_task(self.run_once())
            self._tasks.append(task)
            self._tasks = [t for t in self._tasks if not t.done()]
            ticks += 1
            if max_cycles is not None and ticks >= max_cycles:
                break
            await asyncio.sleep(self.interval_seconds)

        if self._tasks:
            await asyncio.gather(*self._tasks)


def build_scheduler(
    settings: AppSettings,
    config: Optional[EngineConfig] = None,
) -> CycleScheduler:
    """Wire engine, fetcher and reporters from settings."""
    from notifications.console import ConsoleReporter
    from notifications.telegram import TelegramNotifier

    config = config or EngineConfig()
    engine = PredictionEngine(config)
    fetcher = DataFetcher(settings, max_bars=config.max_bars)

    reporters: List[Reporter] = [ConsoleReporter(pair=settings.pair)]
    telegram = TelegramNotifier(settings.telegram_bot_token, settings.telegram_chat_id, pair=settings.pair)
    if telegram.is_configured:
        reporters.append(telegram)

    return CycleScheduler(
        engine,
        fetcher,
        interval_seconds=settings.cycle_interval_seconds,
        reporters=reporters,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Command line entry point."""
    parser = argparse.ArgumentParser(description="FX Pulse prediction loop")
    parser.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    parser.add_argument("--interval", type=int, default=None, help="Minutes between cycles")
    args = parser.parse_args(argv)

    settings = AppSettings.from_env()
    if args.interval is not None:
        settings.cycle_interval_minutes = args.interval

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    scheduler = build_scheduler(settings)
    try:
        if args.once:
            asyncio.run(scheduler.run_once())
        else:
            asyncio.run(scheduler.run_forever())
    except KeyboardInterrupt:
        logger.info("Scheduler stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
