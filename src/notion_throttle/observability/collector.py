# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector for the throttle: a dict snapshot plus Prometheus export.

Every event is recorded twice, once in an in-memory snapshot (read by tests
and ``get_metrics``) and once in the matching prometheus_client metric.
Each metric tracks at most MAX_LABEL_COMBINATIONS label combinations.

Usage:
    >>> from notion_throttle.observability.collector import get_metrics_collector
    >>> collector = get_metrics_collector()
    >>> collector.inc_counter('notion_throttle_retries_total',
    ...                       labels={'reason': 'rate_limited'})
    >>> collector.start_http_server(port=9464)

Operations take an RLock: the scheduler is single-threaded, but the scrape
endpoint runs in a daemon thread.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

from .constants import (
    AVAILABLE_TOKENS,
    CALLBACK_ERRORS_TOTAL,
    LATENCY_BUCKETS,
    QUEUE_DEPTH,
    QUEUE_REJECTIONS_TOTAL,
    REQUESTS_CANCELLED_TOTAL,
    REQUESTS_COMPLETED_TOTAL,
    REQUESTS_FAILED_TOTAL,
    REQUESTS_IN_FLIGHT,
    REQUESTS_SUBMITTED_TOTAL,
    RETRIES_TOTAL,
    TRANSPORT_LATENCY_SECONDS,
)

logger = logging.getLogger(__name__)


@dataclass
class MetricDefinition:
    """
    Definition for a metric that can be instantiated.

    Holds the metric's type, description, labels and histogram buckets.
    """

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    # === Counters ===
    REQUESTS_SUBMITTED_TOTAL: MetricDefinition(
        REQUESTS_SUBMITTED_TOTAL,
        "counter",
        "Total requests accepted into the queue",
    ),
    REQUESTS_COMPLETED_TOTAL: MetricDefinition(
        REQUESTS_COMPLETED_TOTAL,
        "counter",
        "Total requests completed successfully",
    ),
    REQUESTS_FAILED_TOTAL: MetricDefinition(
        REQUESTS_FAILED_TOTAL,
        "counter",
        "Total requests that reached a terminal failure",
        ("reason",),
    ),
    REQUESTS_CANCELLED_TOTAL: MetricDefinition(
        REQUESTS_CANCELLED_TOTAL,
        "counter",
        "Total requests cancelled",
    ),
    QUEUE_REJECTIONS_TOTAL: MetricDefinition(
        QUEUE_REJECTIONS_TOTAL,
        "counter",
        "Total submissions rejected because the queue was full",
    ),
    RETRIES_TOTAL: MetricDefinition(
        RETRIES_TOTAL,
        "counter",
        "Total retries",
        ("reason",),
    ),
    CALLBACK_ERRORS_TOTAL: MetricDefinition(
        CALLBACK_ERRORS_TOTAL,
        "counter",
        "Total exceptions raised by result callbacks",
    ),
    # === Gauges ===
    QUEUE_DEPTH: MetricDefinition(
        QUEUE_DEPTH,
        "gauge",
        "Requests waiting for dispatch",
    ),
    REQUESTS_IN_FLIGHT: MetricDefinition(
        REQUESTS_IN_FLIGHT,
        "gauge",
        "Requests awaiting a transport response",
    ),
    AVAILABLE_TOKENS: MetricDefinition(
        AVAILABLE_TOKENS,
        "gauge",
        "Tokens available in the bucket",
    ),
    # === Histograms ===
    TRANSPORT_LATENCY_SECONDS: MetricDefinition(
        TRANSPORT_LATENCY_SECONDS,
        "histogram",
        "Duration of a single transport exchange",
        buckets=LATENCY_BUCKETS,
    ),
}


class UnifiedMetricsCollector:
    """
    Metrics collector keeping a dict snapshot alongside Prometheus metrics.

    Cardinality Protection:
        To prevent unbounded memory growth, a maximum of MAX_LABEL_COMBINATIONS
        unique label combinations are tracked per metric.

    Example:
        >>> collector = UnifiedMetricsCollector(registry=CollectorRegistry())
        >>> collector.inc_counter('notion_throttle_requests_submitted_total')
        >>> collector.get_flat_metrics()['notion_throttle_requests_submitted_total']
        1
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Whether to register Prometheus metrics
            registry: Optional Prometheus CollectorRegistry (tests pass a
                fresh one to avoid duplicate registration)
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else REGISTRY

        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._gauges: dict[str, dict[str, float]] = defaultdict(
            lambda: defaultdict(float)
        )
        # Running (count, sum) per label key; buckets live in Prometheus only
        self._histograms: dict[str, dict[str, tuple[int, float]]] = defaultdict(
            lambda: defaultdict(lambda: (0, 0.0))
        )

        self._lock = threading.RLock()

        self._prom_metrics: dict[str, Any] = {}
        self._label_combinations: dict[str, set[str]] = defaultdict(set)
        self._server_running = False

        logger.debug(
            f"UnifiedMetricsCollector initialized "
            f"(prometheus={'enabled' if self._enable_prometheus else 'disabled'})"
        )

    def _admit(self, name: str, labels: dict[str, str] | None) -> str | None:
        """
        Return the snapshot key for ``labels``, or None when the metric has
        already reached MAX_LABEL_COMBINATIONS and this combination is new.

        Must be called with the lock held.
        """
        key = ",".join(f"{k}={v}" for k, v in sorted((labels or {}).items()))
        seen = self._label_combinations[name]
        if key not in seen:
            if len(seen) >= self.MAX_LABEL_COMBINATIONS:
                logger.warning(
                    f"Metric {name} is at {self.MAX_LABEL_COMBINATIONS} label "
                    f"combinations, dropping {key}"
                )
                return None
            seen.add(key)
        return key

    def _get_or_create_prom_metric(self, name: str, metric_type: str) -> Any | None:
        """Get or create the Prometheus metric backing ``name``."""
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name in self._prom_metrics:
                return self._prom_metrics[name]

            defn = METRIC_DEFINITIONS.get(name)
            if defn is None or defn.metric_type != metric_type:
                defn = MetricDefinition(
                    name, metric_type, f"Dynamic {metric_type}: {name}"
                )

            try:
                metric: Any
                if metric_type == "counter":
                    metric = Counter(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                elif metric_type == "gauge":
                    metric = Gauge(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                else:
                    metric = Histogram(
                        name,
                        defn.description,
                        list(defn.label_names),
                        buckets=defn.buckets or LATENCY_BUCKETS,
                        registry=self._registry,
                    )
            except ValueError as e:
                # Duplicate registration in a shared registry
                logger.warning(f"Failed to create Prometheus {metric_type} {name}: {e}")
                metric = None

            self._prom_metrics[name] = metric
            return metric

    # === Recording ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        with self._lock:
            key = self._admit(name, labels)
            if key is None:
                return
            self._counters[name][key] += value

        self._update_prom(name, "counter", labels, lambda m: m.inc(value))

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        with self._lock:
            key = self._admit(name, labels)
            if key is None:
                return
            self._gauges[name][key] = value

        self._update_prom(name, "gauge", labels, lambda m: m.set(value))

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation (count and sum here, buckets in Prometheus)."""
        with self._lock:
            key = self._admit(name, labels)
            if key is None:
                return
            count, total = self._histograms[name][key]
            self._histograms[name][key] = (count + 1, total + value)

        self._update_prom(name, "histogram", labels, lambda m: m.observe(value))

    def _update_prom(
        self,
        name: str,
        metric_type: str,
        labels: dict[str, str] | None,
        update: Callable[[Any], None],
    ) -> None:
        metric = self._get_or_create_prom_metric(name, metric_type)
        if metric is None:
            return
        try:
            update(metric.labels(**labels) if labels else metric)
        except ValueError as e:
            logger.debug(f"Prometheus {metric_type} update failed for {name}: {e}")

    # === Snapshot ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Snapshot of every metric, keyed by metric name then label key.

        Histograms report ``{"count": n, "sum": s}`` per label key.
        """
        with self._lock:
            return {
                "counters": {n: dict(v) for n, v in self._counters.items()},
                "gauges": {n: dict(v) for n, v in self._gauges.items()},
                "histograms": {
                    n: {k: {"count": c, "sum": s} for k, (c, s) in v.items()}
                    for n, v in self._histograms.items()
                },
            }

    def get_flat_metrics(self) -> dict[str, Any]:
        """
        Counters and gauges as a flat dict.

        Labeled metrics use the key format "metric_name{label=value,...}".
        """
        with self._lock:
            return {
                f"{name}{{{key}}}" if key else name: value
                for store in (self._counters, self._gauges)
                for name, values in store.items()
                for key, value in values.items()
            }

    def reset(self) -> None:
        """Reset the dict snapshot. Prometheus counters are monotonic and kept."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._label_combinations.clear()

    # === Prometheus HTTP Server ===

    def start_http_server(self, host: str = "127.0.0.1", port: int = 9090) -> bool:
        """
        Expose the registry for scraping on ``host:port`` (daemon thread).

        Returns:
            True if the server is running
        """
        if not self._enable_prometheus:
            logger.warning("Cannot start Prometheus server: prometheus export disabled")
            return False

        if self._server_running:
            return True

        try:
            start_http_server(port, addr=host, registry=self._registry)
        except OSError as e:
            logger.error(f"Failed to start Prometheus server on {host}:{port}: {e}")
            return False

        self._server_running = True
        logger.info(f"Prometheus metrics server started on {host}:{port}")
        return True

    @property
    def prometheus_enabled(self) -> bool:
        return self._enable_prometheus

    @property
    def server_running(self) -> bool:
        return self._server_running


# ===== SHARED COLLECTOR =====

_shared: UnifiedMetricsCollector | None = None
_shared_lock = threading.Lock()


def get_metrics_collector(enable_prometheus: bool = True) -> UnifiedMetricsCollector:
    """Return the process-wide collector, creating it on first use."""
    global _shared
    with _shared_lock:
        if _shared is None:
            _shared = UnifiedMetricsCollector(enable_prometheus=enable_prometheus)
        return _shared


def reset_metrics_collector() -> None:
    """
    Drop the shared collector. For tests.

    Metrics already registered with the default Prometheus registry stay
    registered; the next shared collector keeps only the dict snapshot for them.
    """
    global _shared
    with _shared_lock:
        if _shared is not None:
            _shared.reset()
        _shared = None


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "UnifiedMetricsCollector",
    "get_metrics_collector",
    "reset_metrics_collector",
]
