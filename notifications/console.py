"""
Console Reporter

Prints each cycle outcome for an operator watching the terminal.
"""

import logging
import sys
from typing import List, Optional, TextIO

from storage.models import CycleOutcome, CycleStatus, PredictionResult

logger = logging.getLogger(__name__)


def _fmt(value: Optional[float], digits: int = 2) -> str:
    return "n/a" if value is None else f"{value:.{digits}f}"


def format_prediction_lines(prediction: PredictionResult, currency: str = "R$") -> List[str]:
    """Render a prediction as console lines."""
    return [
        "=== New Prediction ===",
        f"Recommendation: {prediction.direction_label}.",
        f"Estimated price for the next 24 hours: {currency} {_fmt(prediction.estimated_price)}",
        f"Support: {currency} {_fmt(prediction.support)}, Resistance: {currency} {_fmt(prediction.resistance)}",
        f"RSI: {_fmt(prediction.rsi)}, Bollinger Bands "
        f"(U: {_fmt(prediction.bollinger_upper)}, L: {_fmt(prediction.bollinger_lower)})",
    ]


def format_outcome_lines(outcome: CycleOutcome, currency: str = "R$") -> List[str]:
    """Render any cycle outcome as console lines."""
    if outcome.status == CycleStatus.UPDATED and outcome.prediction:
        return format_prediction_lines(outcome.prediction, currency)
    if outcome.status == CycleStatus.DATA_UNAVAILABLE:
        return [f"=== Historical data unavailable: {outcome.reason} ==="]
    if outcome.status == CycleStatus.SKIPPED:
        return ["=== Previous cycle still running ==="]
    return ["=== Waiting for new prediction... ==="]


class ConsoleReporter:
    """Writes cycle outcomes to a text stream."""

    def __init__(
        self,
        pair: str = "USD/BRL",
        currency: str = "R$",
        stream: Optional[TextIO] = None,
        clear: bool = False,
    ):
        """
        Initialize console reporter.

        Args:
            pair: Currency pair shown in the header
            currency: Symbol printed before prices
            stream: Output stream (default stdout)
            clear: Clear the terminal before each report
        """
        self.pair = pair
        self.currency = currency
        self.stream = stream or sys.stdout
        self.clear = clear

    def report(self, outcome: CycleOutcome) -> None:
        lines = format_outcome_lines(outcome, self.currency)
        if outcome.status == CycleStatus.UPDATED:
            lines.insert(1, f"Pair: {self.pair}")

        if self.clear:
            self.stream.write("\033[2J\033[H")
        self.stream.write("\n".join(lines) + "\n")
        self.stream.flush()
