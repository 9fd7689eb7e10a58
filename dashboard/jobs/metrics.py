"""Counters for one reconciliation run."""
import time
import logging
from collections import defaultdict
from typing import Dict

logger = logging.getLogger(__name__)


class ReconcileMetrics:
    """Track how a reconciliation request was served."""

    def __init__(self, requested: int):
        self.requested = requested
        self.start_time = time.monotonic()
        self.counters: Dict[str, int] = defaultdict(int)

    def increment(self, key: str, amount: int = 1) -> None:
        """Increment a counter."""
        self.counters[key] += amount

    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def report(self) -> Dict:
        """Log a one-line summary and return it."""
        summary = self.get_summary()
        logger.info(
            f"Reconciled {summary['requested']} dates in {summary['elapsed_seconds']:.2f}s | "
            f"Cached: {summary['cached']} | "
            f"Fetched: {summary['fetched']} | "
            f"Failed: {summary['failed']} | "
            f"Rows fetched: {summary['rows_fetched']} | "
            f"Rows cached: {summary['rows_cached']}"
        )
        return summary

    def get_summary(self) -> Dict:
        """Get summary statistics."""
        return {
            "requested": self.requested,
            "cached": self.counters.get("cached", 0),
            "fetched": self.counters.get("fetched", 0),
            "failed": self.counters.get("failed", 0),
            "rows_fetched": self.counters.get("rows_fetched", 0),
            "rows_cached": self.counters.get("rows_cached", 0),
            "elapsed_seconds": round(self.elapsed(), 3),
        }
