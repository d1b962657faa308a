"""
Configuration for FX Pulse.
Engine tuning lives in EngineConfig; deployment settings come from the environment.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass
class EngineConfig:
    """Configuration for the prediction engine."""
    # Indicator periods
    sma_period: int = 20
    ema_period: int = 20
    bollinger_period: int = 20
    bollinger_std: float = 2.0
    rsi_period: int = 14
    support_resistance_window: int = 60
    max_bars: int = 60

    # Recompute trigger
    change_threshold_pct: float = 0.5  # 0.5%

    # Sentiment window
    sentiment_capacity: int = 10
    max_processed_titles: int = 1000

    # Decision policy
    sentiment_scale: float = 0.01
    correction_step: float = 0.01
    rsi_overbought: float = 70
    rsi_oversold: float = 30

    def validate(self) -> "EngineConfig":
        """Raise ValueError on periods or capacities that cannot work."""
        positive = {
            "sma_period": self.sma_period,
            "ema_period": self.ema_period,
            "bollinger_period": self.bollinger_period,
            "rsi_period": self.rsi_period,
            "support_resistance_window": self.support_resistance_window,
            "max_bars": self.max_bars,
            "sentiment_capacity": self.sentiment_capacity,
            "max_processed_titles": self.max_processed_titles,
        }
        for name, value in positive.items():
            if value < 1:
                raise ValueError(f"{name} must be >= 1, got {value}")
        if self.change_threshold_pct < 0:
            raise ValueError("change_threshold_pct must be >= 0")
        return self


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass
class AppSettings:
    """Deployment settings for data sources, scheduling and notifications."""
    base_currency: str = "USD"
    quote_currency: str = "BRL"
    yfinance_symbol: Optional[str] = None
    alpha_vantage_api_key: Optional[str] = None
    news_query: str = "dólar economia brasil"
    news_language: str = "pt-BR"
    news_region: str = "BR"
    news_edition: str = "BR:pt-419"
    news_limit: int = 20
    cycle_interval_minutes: int = 30
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None
    log_level: str = "INFO"

    @property
    def pair(self) -> str:
        return f"{self.base_currency}/{self.quote_currency}"

    @property
    def symbol(self) -> str:
        """yfinance ticker for the pair (USD base pairs use the short form)."""
        if self.yfinance_symbol:
            return self.yfinance_symbol
        if self.base_currency == "USD":
            return f"{self.quote_currency}=X"
        return f"{self.base_currency}{self.quote_currency}=X"

    @property
    def cycle_interval_seconds(self) -> int:
        return self.cycle_interval_minutes * 60

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "AppSettings":
        """
        Build settings from environment variables.

        Args:
            dotenv: Load a .env file first

        Returns:
            AppSettings instance
        """
        if dotenv:
            load_dotenv()

        return cls(
            base_currency=os.getenv("FX_BASE_CURRENCY", "USD").upper(),
            quote_currency=os.getenv("FX_QUOTE_CURRENCY", "BRL").upper(),
            yfinance_symbol=os.getenv("FX_YFINANCE_SYMBOL") or None,
            alpha_vantage_api_key=os.getenv("ALPHA_VANTAGE_API_KEY") or None,
            news_query=os.getenv("NEWS_QUERY", "dólar economia brasil"),
            news_language=os.getenv("NEWS_LANGUAGE", "pt-BR"),
            news_region=os.getenv("NEWS_REGION", "BR"),
            news_edition=os.getenv("NEWS_EDITION", "BR:pt-419"),
            news_limit=_env_int("NEWS_LIMIT", 20),
            cycle_interval_minutes=_env_int("CYCLE_INTERVAL_MINUTES", 30),
            telegram_bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or None,
            telegram_chat_id=os.getenv("TELEGRAM_CHAT_ID") or None,
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
