"""Prometheus metrics for relay observability.

This module provides Prometheus metrics for the relay, exposed at the
`/metrics` endpoint in Prometheus format.

Metrics Defined:
- revbot_webhooks_received_total: Counter of webhook bodies by decoded kind
- revbot_lookup_failures_total: Counter of failed GitLab enrichment lookups
- revbot_notifications_sent_total: Counter of delivered notifications
- revbot_notifications_failed_total: Counter of notifications Webex rejected
- revbot_delivery_duration_seconds: Histogram of per-delivery handling time
"""

from typing import Optional

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


# Deliveries involve at most two lookups and a handful of sends
DEFAULT_DURATION_BUCKETS = (
    0.01,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
    30.0,
)

WEBHOOK_KINDS = ("merge_request", "pipeline", "unsupported")
LOOKUP_KINDS = ("pipeline", "merge_request")


class RelayMetrics:
    """Container for all relay Prometheus metrics.

    Supports custom registries so tests can observe counters in isolation.

    Attributes:
        registry: The Prometheus registry for these metrics.
        webhooks_received_total: Counter labelled by kind.
        lookup_failures_total: Counter labelled by lookup.
        notifications_sent_total: Counter of successful sends.
        notifications_failed_total: Counter of failed sends.
        delivery_duration_seconds: Histogram of delivery handling time.

    Example:
        >>> metrics = RelayMetrics(registry=CollectorRegistry())
        >>> metrics.record_webhook("pipeline")
        >>> metrics.record_notification_sent()
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize relay metrics.

        Args:
            registry: Optional Prometheus registry. If None, uses the
                      default REGISTRY. Pass a custom registry for testing.
        """
        self.registry = registry or REGISTRY

        self.webhooks_received_total = Counter(
            "revbot_webhooks_received_total",
            "Total number of webhook bodies received, by decoded kind",
            labelnames=["kind"],
            registry=self.registry,
        )

        self.lookup_failures_total = Counter(
            "revbot_lookup_failures_total",
            "Total number of failed GitLab enrichment lookups",
            labelnames=["lookup"],
            registry=self.registry,
        )

        self.notifications_sent_total = Counter(
            "revbot_notifications_sent_total",
            "Total number of notifications delivered to Webex",
            registry=self.registry,
        )

        self.notifications_failed_total = Counter(
            "revbot_notifications_failed_total",
            "Total number of notifications that failed to deliver",
            registry=self.registry,
        )

        self.delivery_duration_seconds = Histogram(
            "revbot_delivery_duration_seconds",
            "Time spent handling one webhook delivery in seconds",
            buckets=DEFAULT_DURATION_BUCKETS,
            registry=self.registry,
        )

        # Expose zero-valued series for every known label
        for kind in WEBHOOK_KINDS:
            self.webhooks_received_total.labels(kind=kind)
        for lookup in LOOKUP_KINDS:
            self.lookup_failures_total.labels(lookup=lookup)

    def record_webhook(self, kind: str) -> None:
        """Record a received webhook body.

        Args:
            kind: "merge_request", "pipeline" or "unsupported".
        """
        self.webhooks_received_total.labels(kind=kind).inc()

    def record_lookup_failure(self, lookup: str) -> None:
        """Record a failed enrichment lookup.

        Args:
            lookup: "pipeline" or "merge_request".
        """
        self.lookup_failures_total.labels(lookup=lookup).inc()

    def record_notification_sent(self) -> None:
        self.notifications_sent_total.inc()

    def record_notification_failed(self) -> None:
        self.notifications_failed_total.inc()

    def record_delivery_duration(self, duration_seconds: float) -> None:
        self.delivery_duration_seconds.observe(duration_seconds)


# Global metrics instance for the default registry
_default_metrics: Optional[RelayMetrics] = None


def get_metrics(registry: Optional[CollectorRegistry] = None) -> RelayMetrics:
    """Get or create the relay metrics instance.

    Args:
        registry: Optional Prometheus registry. If None, returns the
                  global metrics instance for the default registry.

    Returns:
        RelayMetrics: The metrics instance.
    """
    global _default_metrics

    if registry is not None:
        return RelayMetrics(registry=registry)

    if _default_metrics is None:
        _default_metrics = RelayMetrics()

    return _default_metrics


def generate_metrics_output(registry: Optional[CollectorRegistry] = None) -> bytes:
    """Generate Prometheus metrics output for the /metrics endpoint.

    Args:
        registry: Optional Prometheus registry. If None, uses the
                  default REGISTRY.

    Returns:
        bytes: Prometheus metrics in text format.
    """
    target_registry = registry or REGISTRY
    return generate_latest(target_registry)
