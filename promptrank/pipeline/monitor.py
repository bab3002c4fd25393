"""Optional latency and failure tracking for ranking calls.

The monitor is owned by the caller and shared across ``rank()`` calls only if
the caller chooses to pass the same instance. The pipeline itself keeps no
state between invocations.
"""

import threading
from collections import defaultdict, deque
from typing import Dict

from .models import RankResponse


class LatencyMonitor:
    """Tracks the last ``window`` ranking calls."""

    def __init__(self, window: int = 1000):
        self._latencies = deque(maxlen=window)
        self._result_counts = deque(maxlen=window)
        self._failures: Dict[str, int] = defaultdict(int)
        self._calls = 0
        self._lock = threading.Lock()

    def record(self, response: RankResponse) -> None:
        with self._lock:
            self._calls += 1
            self._latencies.append(response.elapsed_ms)
            self._result_counts.append(len(response.results))
            for report in response.sub_queries:
                if not report.succeeded:
                    self._failures[report.source.value] += 1

    @staticmethod
    def _percentile(sorted_values, percentile: int) -> float:
        index = int((percentile / 100.0) * len(sorted_values))
        return sorted_values[min(index, len(sorted_values) - 1)]

    def get_performance_stats(self) -> Dict[str, float]:
        """Latency percentiles in milliseconds. Empty before the first call."""
        with self._lock:
            latencies = sorted(self._latencies)
            counts = list(self._result_counts)

        if not latencies:
            return {}

        n = len(latencies)
        return {
            "count": n,
            "p50": self._percentile(latencies, 50),
            "p95": self._percentile(latencies, 95),
            "p99": self._percentile(latencies, 99),
            "mean": sum(latencies) / n,
            "min": latencies[0],
            "max": latencies[-1],
            "mean_results": sum(counts) / n
        }

    def get_failure_counts(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._failures)

    @property
    def calls(self) -> int:
        return self._calls
