"""
Call budget for the external AI services.
Tracks inference + refinement calls against one combined limit.
"""
import logging
from typing import Dict, Optional, Tuple
from datetime import datetime, timedelta
from threading import Lock
from collections import defaultdict

from formprobe.config import Config

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Counts calls per service and enforces a combined total.
    Safe to share between concurrent requests.
    """

    def __init__(self, max_total_calls: Optional[int] = None, enabled: Optional[bool] = None):
        """
        Initialize the limiter.

        Args:
            max_total_calls: Combined budget (defaults to Config.MAX_TOTAL_CALLS)
            enabled: When False calls are only counted, never refused
                (defaults to Config.ENABLE_RATE_LIMITING)
        """
        self.max_total_calls = max_total_calls or Config.MAX_TOTAL_CALLS
        self.enabled = Config.ENABLE_RATE_LIMITING if enabled is None else enabled
        self.call_history: Dict[str, list] = defaultdict(list)  # service -> timestamps
        self.total_calls: Dict[str, int] = defaultdict(int)  # service -> count
        self.lock = Lock()
        self.start_time = datetime.now()

    def can_make_call(self, service: str) -> Tuple[bool, str]:
        """
        Check whether another call fits in the budget.

        Args:
            service: Service name (e.g., 'inference', 'refinement')

        Returns:
            Tuple of (can_call, reason)
        """
        if not self.enabled:
            return True, "OK"

        with self.lock:
            total_calls_made = sum(self.total_calls.values())
            if total_calls_made >= self.max_total_calls:
                return False, (
                    f"Total call limit reached: {total_calls_made}/{self.max_total_calls} "
                    f"calls across all services"
                )
            return True, "OK"

    def record_call(self, service: str):
        """Record that a call to the service was made (successful or not)."""
        with self.lock:
            self.call_history[service].append(datetime.now())
            self.total_calls[service] += 1
            logger.debug(
                f"Recorded {service} call. "
                f"Total calls: {sum(self.total_calls.values())}/{self.max_total_calls}"
            )

    def get_stats(self) -> Dict:
        """Combined statistics across all services."""
        with self.lock:
            now = datetime.now()
            cutoff_1h = now - timedelta(hours=1)
            total_calls_made = sum(self.total_calls.values())
            return {
                'total_calls': total_calls_made,
                'max_calls': self.max_total_calls,
                'remaining_calls': max(0, self.max_total_calls - total_calls_made),
                'calls_by_service': dict(self.total_calls),
                'calls_last_hour': sum(
                    1 for stamps in self.call_history.values() for ts in stamps if ts > cutoff_1h
                ),
            }

    def reset(self):
        """Reset all call tracking."""
        with self.lock:
            self.call_history.clear()
            self.total_calls.clear()
            self.start_time = datetime.now()
            logger.info("Rate limiter reset")
