"""Prometheus metrics for the controller.

``ReconcileMetrics`` owns its own ``CollectorRegistry``; it is created by
whoever starts the controller and passed to the reconciler and the manager.
Tests build a fresh instance per case.
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

from application_operator.controller.results import ApplyResult


class ReconcileMetrics:
    """Counters and histograms describing reconcile activity."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()

        self.reconcile_total = Counter(
            "application_reconcile_total",
            "Reconcile passes by result",
            ["result"],
            registry=self.registry,
        )
        self.reconcile_duration = Histogram(
            "application_reconcile_duration_seconds",
            "Wall time of one reconcile pass",
            registry=self.registry,
        )
        self.resource_operations = Counter(
            "application_resource_operations_total",
            "Create, update and delete calls against managed resources",
            ["kind", "outcome"],
            registry=self.registry,
        )
        self.issuer_fanout_requests = Counter(
            "application_issuer_fanout_requests_total",
            "Applications enqueued because a ClusterIssuer changed",
            registry=self.registry,
        )
        self.workqueue_depth = Gauge(
            "application_workqueue_depth",
            "Items waiting in the work queue",
            registry=self.registry,
        )

    def observe_reconcile(self, result: str, duration: float) -> None:
        """Record one finished pass; ``result`` is success, requeue, error, invalid or cancelled."""
        self.reconcile_total.labels(result=result).inc()
        self.reconcile_duration.observe(duration)

    def observe_step(self, step: ApplyResult) -> None:
        self.resource_operations.labels(kind=step.kind, outcome=step.outcome.value).inc()

    def observe_fanout(self, count: int) -> None:
        self.issuer_fanout_requests.inc(count)

    def set_queue_depth(self, depth: int) -> None:
        self.workqueue_depth.set(depth)
