from __future__ import annotations

import threading
from collections import Counter
from typing import Tuple

# counter name -> label key used when rendering
_COUNTER_LABELS = {
    "ticket_operations_total": "operation",
    "ticket_errors_total": "code",
    "tickets_issued_total": "queue",
    "http_requests_total": "route",
    "audit_write_errors_total": "operation",
}


class MetricsCollector:
    """Small in-memory Prometheus-style metrics collector."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._counters: Counter[Tuple[str, str]] = Counter()
        self._latency_buckets: Counter[Tuple[str, str]] = Counter()
        self._bucket_edges = (1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500)

    def inc(self, name: str, label: str, n: int = 1) -> None:
        with self._lock:
            self._counters[(name, label)] += n

    def observe_latency(self, operation: str, latency_ms: float) -> None:
        bucket = self._bucket_for(latency_ms)
        with self._lock:
            self._latency_buckets[(operation, bucket)] += 1

    def value(self, name: str, label: str) -> int:
        with self._lock:
            return self._counters[(name, label)]

    def _bucket_for(self, latency_ms: float) -> str:
        for edge in self._bucket_edges:
            if latency_ms <= edge:
                return str(edge)
        return "+Inf"

    def render_prometheus(self) -> str:
        with self._lock:
            counters = sorted(self._counters.items())
            buckets = sorted(self._latency_buckets.items())

        lines = []
        for metric, label_key in _COUNTER_LABELS.items():
            lines.append(f"# TYPE {metric} counter")
            for (name, label), value in counters:
                if name != metric:
                    continue
                lines.append(f'{metric}{{{label_key}="{label}"}} {value}')

        lines.append("# TYPE ticket_operation_latency_ms_bucket counter")
        for (operation, bucket), value in buckets:
            lines.append(
                f'ticket_operation_latency_ms_bucket{{operation="{operation}",le="{bucket}"}} {value}'
            )

        return "\n".join(lines) + "\n"


metrics = MetricsCollector()
