"""
Change Detector for FX Pulse.
Decides whether the price moved enough since the last prediction to recompute.
"""

import logging
from typing import Optional

from storage.models import PriceSeries

logger = logging.getLogger(__name__)


def significant_change(
    current_price: float,
    last_recorded_price: float,
    threshold_pct: float = 0.5,
) -> bool:
    """
    Check whether the percentage move reaches the threshold.

    Args:
        current_price: Latest price
        last_recorded_price: Reference price
        threshold_pct: Threshold in percent (0.5 means 0.5%)

    Returns:
        True if |current - last| / last * 100 >= threshold_pct
    """
    if last_recorded_price <= 0:
        raise ValueError(f"reference price must be positive, got {last_recorded_price}")

    pct_change = abs(current_price - last_recorded_price) / last_recorded_price * 100
    return pct_change >= threshold_pct


def has_significant_change(
    series: PriceSeries,
    last_price: Optional[float],
    threshold_pct: float = 0.5,
) -> bool:
    """
    Compare the latest close against the last recorded price.

    Falls back to the second-most-recent close when no price was recorded
    yet. With neither available there is nothing to compare, so this
    reports a change and lets the first cycle run.
    """
    reference = last_price if last_price else series.previous_close
    if reference is None:
        return True
    return significant_change(series.latest_close, reference, threshold_pct)


class ChangeDetector:
    """Percent-change trigger with a configurable threshold."""

    def __init__(self, threshold_pct: float = 0.5):
        self.threshold_pct = threshold_pct

    def check(self, series: PriceSeries, last_price: Optional[float]) -> bool:
        changed = has_significant_change(series, last_price, self.threshold_pct)
        reference = last_price if last_price else series.previous_close
        if changed:
            logger.info(
                f"Significant price change: {series.latest_close:.4f} vs reference {reference}"
            )
        else:
            logger.debug(
                f"No significant change: {series.latest_close:.4f} vs reference {reference}"
            )
        return changed
