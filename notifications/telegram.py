"""
Telegram Reporter

Pushes FX Pulse predictions and data outages to a Telegram chat through
the Bot API. Sends are throttled per minute and identical alerts are
suppressed for a configurable window.
"""

import hashlib
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Deque, Dict, Optional

import requests

from storage.models import CycleOutcome, CycleStatus, Direction, PredictionResult

logger = logging.getLogger(__name__)

BOT_API_URL = "https://api.telegram.org/bot{token}/sendMessage"

DIRECTION_EMOJI = {
    Direction.BULLISH: "🟢",
    Direction.BEARISH: "🔴",
    Direction.OVERBOUGHT_CORRECTION: "🔻",
    Direction.OVERSOLD_CORRECTION: "🔺",
    Direction.STABLE: "⚪",
}


@dataclass
class TelegramMessage:
    """One chat message; kind is 'prediction' or 'outage'."""

    kind: str
    title: str
    body: str
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def fingerprint(self) -> str:
        # created_at is left out so a repeated alert maps to the same key
        raw = "\x1f".join((self.kind, self.title, self.body))
        return hashlib.sha1(raw.encode("utf-8")).hexdigest()


def _num(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.4f}"


def prediction_message(prediction: PredictionResult, pair: str = "USD/BRL") -> TelegramMessage:
    """Build the chat message for a fresh prediction."""
    emoji = DIRECTION_EMOJI.get(prediction.direction, "⚪")
    body = "\n".join([
        f"{emoji} {prediction.direction_label}",
        "",
        f"💵 Price: {_num(prediction.price)}",
        f"🎯 Estimate (24h): {_num(prediction.estimated_price)} ({prediction.delta:+.4f})",
        f"📉 Support: {_num(prediction.support)} | 📈 Resistance: {_num(prediction.resistance)}",
        f"📊 RSI: {_num(prediction.rsi)}",
        f"🎚 Bollinger: U {_num(prediction.bollinger_upper)} / L {_num(prediction.bollinger_lower)}",
        f"📰 Sentiment: {prediction.average_sentiment:+.3f} ({prediction.new_news_count} new)",
    ])
    return TelegramMessage(kind="prediction", title=f"{pair} prediction", body=body)


def outage_message(reason: str, pair: str = "USD/BRL") -> TelegramMessage:
    return TelegramMessage(kind="outage", title=f"{pair} data unavailable", body=reason)


class TelegramNotifier:
    """
    Reporter that forwards cycle outcomes to a Telegram chat.

    Missing credentials turn every send into a no-op, so the scheduler can
    always hold one of these.
    """

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        pair: str = "USD/BRL",
        max_per_minute: int = 20,
        repeat_window_minutes: int = 60,
        timeout: float = 10.0,
    ):
        """
        Initialize Telegram notifier.

        Args:
            bot_token: Bot token issued by BotFather
            chat_id: Destination chat
            pair: Currency pair named in message titles
            max_per_minute: Sends allowed in any 60 second window
            repeat_window_minutes: How long an identical message stays suppressed
            timeout: HTTP timeout in seconds
        """
        self.bot_token = bot_token or ""
        self.chat_id = chat_id or ""
        self.pair = pair
        self.max_per_minute = max_per_minute
        self.repeat_window = timedelta(minutes=repeat_window_minutes)
        self.timeout = timeout

        self._recent_sends: Deque[datetime] = deque()
        self._delivered: Dict[str, datetime] = {}
        self._sent = 0
        self._suppressed = 0
        self._last_error: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "configured": self.is_configured,
            "sent": self._sent,
            "suppressed": self._suppressed,
            "last_error": self._last_error,
        }

    def _throttled(self, now: datetime) -> bool:
        horizon = now - timedelta(seconds=60)
        while self._recent_sends and self._recent_sends[0] < horizon:
            self._recent_sends.popleft()
        return len(self._recent_sends) >= self.max_per_minute

    def _repeated(self, message: TelegramMessage, now: datetime) -> bool:
        self._delivered = {
            key: sent_at for key, sent_at in self._delivered.items()
            if now - sent_at <= self.repeat_window
        }
        return message.fingerprint in self._delivered

    def render(self, message: TelegramMessage) -> str:
        """Markdown text for the Bot API."""
        if message.kind == "outage":
            return f"⚠️ *{message.title}*\n\n`{message.body}`"
        return f"💱 *{message.title}*\n\n{message.body}\n\n⏰ {message.created_at:%Y-%m-%d %H:%M}"

    def _post(self, text: str) -> bool:
        try:
            response = requests.post(
                BOT_API_URL.format(token=self.bot_token),
                json={
                    "chat_id": self.chat_id,
                    "text": text,
                    "parse_mode": "Markdown",
                    "disable_web_page_preview": True,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            self._last_error = str(e)
            logger.error(f"Telegram request failed: {e}")
            return False

        if response.status_code != 200:
            self._last_error = f"HTTP {response.status_code}: {response.text}"
            logger.error(f"Telegram rejected message: {self._last_error}")
            return False
        return True

    def send(self, message: TelegramMessage, force: bool = False) -> bool:
        """
        Deliver a message unless throttled or recently sent.

        Args:
            message: Message to deliver
            force: Bypass throttling and repeat suppression

        Returns:
            True if Telegram accepted the message
        """
        if not self.is_configured:
            logger.debug("Telegram credentials missing, message dropped")
            return False

        now = datetime.now()
        if not force:
            if self._throttled(now):
                logger.warning(f"Telegram throttled, dropping: {message.title}")
                self._suppressed += 1
                return False
            if self._repeated(message, now):
                logger.debug(f"Telegram repeat suppressed: {message.title}")
                self._suppressed += 1
                return False

        if not self._post(self.render(message)):
            return False

        self._recent_sends.append(now)
        self._delivered[message.fingerprint] = now
        self._sent += 1
        logger.info(f"Telegram message delivered: {message.title}")
        return True

    def report(self, outcome: CycleOutcome) -> None:
        """Forward updates and outages; idle and skipped cycles stay quiet."""
        if outcome.status == CycleStatus.UPDATED and outcome.prediction:
            self.send(prediction_message(outcome.prediction, self.pair))
        elif outcome.status == CycleStatus.DATA_UNAVAILABLE:
            self.send(outage_message(outcome.reason, self.pair))
