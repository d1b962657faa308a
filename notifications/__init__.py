"""
Notifications Module - Console and Telegram presentation of predictions.
"""

from notifications.console import ConsoleReporter
from notifications.telegram import TelegramNotifier

__all__ = [
    "ConsoleReporter",
    "TelegramNotifier",
]
