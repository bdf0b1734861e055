"""Prometheus metrics and a tiny HTTP server to expose them.

Call `start_metrics_server(port)` once in a process to expose /metrics.
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram, start_http_server


# Consumer metrics
QUEUE_RECEIVED_TOTAL = Counter(
    "queue_received_total", "Total messages received from the queue", ["queue"]
)
QUEUE_MESSAGE_TOTAL = Counter(
    "queue_message_total", "Total messages processed by the poll loop", ["queue", "status"]
)
QUEUE_HANDLE_LATENCY_SECONDS = Histogram(
    "queue_handle_latency_seconds",
    "Time to handle and acknowledge a single message",
    ["queue"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10, 30),
)
QUEUE_RECEIVE_ERRORS_TOTAL = Counter(
    "queue_receive_errors_total", "Total failed receive or queue url resolve calls", ["queue"]
)

# Publisher metrics
PUBLISH_BATCH_TOTAL = Counter(
    "publish_batch_total", "Total batch publish calls", ["queue", "result"]
)
PUBLISH_MESSAGE_TOTAL = Counter(
    "publish_message_total", "Total messages accepted by batch publish calls", ["queue"]
)


def start_metrics_server(port: int = 9000) -> None:
    start_http_server(port)
