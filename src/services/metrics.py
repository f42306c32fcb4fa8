"""CloudWatch custom metrics with background batching.

Two kinds of data points are collected:

* **external calls**: count / latency / error type for every call to the
  model provider, the inventory store and the conversation store;
* **tool calls**: one event per tool invocation with the number of results
  and the search mode that produced them.

Data points are buffered in memory and pushed by a daemon thread every
``FLUSH_INTERVAL_SECONDS`` when ``METRICS_ENABLED=true``.  Otherwise they are
only logged at DEBUG level and dropped on flush.

Usage
-----
>>> from src.services.metrics import metrics
>>> with metrics.timed("anthropic", "llm_invoke"):
...     ...
>>> metrics.record_tool_call("item_lookup", result_count=2, search_type="vector")
"""

from __future__ import annotations

import atexit
import logging
import os
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any

logger = logging.getLogger(__name__)

NAMESPACE = "InventoryChatAgent"
FLUSH_INTERVAL_SECONDS = 60
MAX_BATCH_SIZE = 1_000  # PutMetricData limit


def _dims(**pairs: str) -> list[dict[str, str]]:
    return [{"Name": name, "Value": value} for name, value in pairs.items()]


class MetricsClient:
    """Buffered CloudWatch publisher."""

    def __init__(self, *, enabled: bool | None = None) -> None:
        if enabled is None:
            enabled = os.getenv("METRICS_ENABLED", "false").lower() == "true"
        self._enabled = enabled
        self._buffer: list[dict[str, Any]] = []
        self._lock = threading.Lock()
        self._cw_client = None

        if self._enabled:
            self._start_flush_thread()

    # ── External calls ───────────────────────────────────────────────

    def record_success(self, service: str, operation: str, latency_ms: float) -> None:
        now = datetime.now(UTC)
        self._append(self._point(
            "ExternalAPI/RequestCount", 1, "Count", now,
            _dims(Service=service, Status="success"),
        ))
        self._append(self._point(
            "ExternalAPI/Latency", latency_ms, "Milliseconds", now,
            _dims(Service=service, Operation=operation),
        ))
        logger.debug("Metric: %s %s ok %.1fms", service, operation, latency_ms)

    def record_failure(
        self,
        service: str,
        operation: str,
        error_type: str,
        latency_ms: float = 0,
    ) -> None:
        now = datetime.now(UTC)
        self._append(self._point(
            "ExternalAPI/RequestCount", 1, "Count", now,
            _dims(Service=service, Status="failure"),
        ))
        self._append(self._point(
            "ExternalAPI/ErrorCount", 1, "Count", now,
            _dims(Service=service, ErrorType=error_type),
        ))
        if latency_ms > 0:
            self._append(self._point(
                "ExternalAPI/Latency", latency_ms, "Milliseconds", now,
                _dims(Service=service, Operation=operation),
            ))
        logger.debug(
            "Metric: %s %s failed (%s) %.1fms", service, operation, error_type, latency_ms,
        )

    @contextmanager
    def timed(self, service: str, operation: str) -> Iterator[None]:
        """Record latency and outcome of the wrapped block; exceptions re-raise."""
        t0 = time.perf_counter()
        try:
            yield
        except Exception as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            self.record_failure(service, operation, type(exc).__name__, latency_ms=elapsed)
            raise
        self.record_success(service, operation, (time.perf_counter() - t0) * 1000)

    # ── Tool calls ───────────────────────────────────────────────────

    def record_tool_call(
        self,
        tool_name: str,
        result_count: int,
        search_type: str | None = None,
        error: str | None = None,
    ) -> None:
        now = datetime.now(UTC)
        outcome = error or search_type or "none"
        self._append(self._point(
            "Tools/InvocationCount", 1, "Count", now,
            _dims(Tool=tool_name, Outcome=outcome),
        ))
        self._append(self._point(
            "Tools/ResultCount", result_count, "Count", now,
            _dims(Tool=tool_name),
        ))

    # ── Flushing ─────────────────────────────────────────────────────

    def flush(self) -> int:
        """Push buffered points to CloudWatch.  Returns the number sent."""
        with self._lock:
            batch, self._buffer = self._buffer, []
        if not batch:
            return 0

        if not self._enabled:
            logger.debug("Metrics disabled, dropping %d points", len(batch))
            return 0

        sent = 0
        try:
            cw = self._get_cw_client()
            for start in range(0, len(batch), MAX_BATCH_SIZE):
                chunk = batch[start:start + MAX_BATCH_SIZE]
                cw.put_metric_data(Namespace=NAMESPACE, MetricData=chunk)
                sent += len(chunk)
            logger.info("Flushed %d metrics to CloudWatch", sent)
        except Exception:
            logger.exception("Failed to flush metrics to CloudWatch")
        return sent

    # ── Internal ─────────────────────────────────────────────────────

    @staticmethod
    def _point(
        name: str, value: float, unit: str, ts: datetime, dims: list[dict[str, str]],
    ) -> dict[str, Any]:
        return {"MetricName": name, "Dimensions": dims, "Timestamp": ts, "Value": value, "Unit": unit}

    def _append(self, point: dict[str, Any]) -> None:
        with self._lock:
            self._buffer.append(point)

    def _get_cw_client(self):
        if self._cw_client is None:
            import boto3

            self._cw_client = boto3.client("cloudwatch")
        return self._cw_client

    def _start_flush_thread(self) -> None:
        def _loop():
            while True:
                time.sleep(FLUSH_INTERVAL_SECONDS)
                try:
                    self.flush()
                except Exception:
                    logger.exception("Metrics flush thread error")

        threading.Thread(target=_loop, daemon=True, name="metrics-flush").start()
        atexit.register(self.flush)
        logger.info("Metrics flush thread started (interval=%ds)", FLUSH_INTERVAL_SECONDS)


metrics = MetricsClient()
