"""Reconciliation of a single Application.

One pass fetches the Application and then runs, in order:

1. ConfigMap, Secret, Deployment, Service and Ingress synchronizers
   (the Deployment references ConfigMap/Secret keys and the Ingress
   routes to the Service)
2. the finalizer, persisted before any ClusterIssuer can exist
3. the TLS state machine
4. the ``Available`` status condition

A deleting Application only runs the finalizer teardown. Any failing step
aborts the rest of the pass; the work queue retries it with backoff.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from application_operator.controller.exceptions import (
    InvalidApplicationError,
    ReconcileCancelledError,
    ReconcileError,
)
from application_operator.controller.finalizer import FinalizerHandler
from application_operator.controller.metrics import ReconcileMetrics
from application_operator.controller.results import (
    ApplyOutcome,
    ApplyResult,
    ReconcileReport,
    ReconcileResult,
)
from application_operator.controller.synchronizers import (
    ConfigMapSynchronizer,
    DeploymentSynchronizer,
    IngressSynchronizer,
    ResourceSynchronizer,
    SecretSynchronizer,
    ServiceSynchronizer,
)
from application_operator.controller.tls import TLSProvisioner
from application_operator.integrations.kubernetes.exceptions import KubernetesNotFoundError
from application_operator.integrations.kubernetes.models.application import APPLICATION_KIND
from application_operator.integrations.kubernetes.models.base import Condition, utc_now_rfc3339
from application_operator.services.kubernetes.application_manager import ApplicationManager

if TYPE_CHECKING:
    from collections.abc import Callable

    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.config import ControllerConfig
    from application_operator.integrations.kubernetes.models.application import Application

logger = structlog.get_logger()

AVAILABLE = "Available"
RECONCILED_REASON = "Reconciled"
RECONCILED_MESSAGE = "Application resources successfully reconciled"


@dataclass(frozen=True)
class ReconcileRequest:
    """Identity of an Application, used as the work queue key."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class ApplicationReconciler:
    """Converges the cluster onto one Application per call.

    Holds no per-Application state between calls; everything is re-read
    from the cluster at the start of each pass.
    """

    def __init__(
        self,
        client: KubernetesClient,
        controller_config: ControllerConfig,
        metrics: ReconcileMetrics | None = None,
    ) -> None:
        self._client = client
        self._applications = ApplicationManager(client)
        self._synchronizers: list[ResourceSynchronizer] = [
            ConfigMapSynchronizer(client, controller_config),
            SecretSynchronizer(client, controller_config),
            DeploymentSynchronizer(client, controller_config),
            ServiceSynchronizer(client, controller_config),
            IngressSynchronizer(client, controller_config),
        ]
        self._tls = TLSProvisioner(client, controller_config)
        self._finalizer = FinalizerHandler(client, self._tls)
        self._metrics = metrics or ReconcileMetrics()

    def reconcile(
        self,
        request: ReconcileRequest,
        cancel: threading.Event | None = None,
    ) -> ReconcileResult:
        """Run one pass for ``request``.

        Args:
            request: Application to reconcile.
            cancel: Set when the process is shutting down; checked between steps.

        Returns:
            What the work queue should do next with ``request``.

        Raises:
            InvalidApplicationError: The spec cannot be applied as written.
            ReconcileCancelledError: ``cancel`` was set before the pass finished.
            ReconcileError: A step failed.
        """
        log = logger.bind(application=request.name, namespace=request.namespace)
        report = ReconcileReport()
        started = time.monotonic()
        outcome = "error"
        try:
            result = self._reconcile(request, cancel or threading.Event(), report, log)
            outcome = "requeue" if result.requeue else "success"
            return result
        except InvalidApplicationError as e:
            outcome = "invalid"
            log.warning("application_invalid", problems=e.problems)
            raise
        except ReconcileCancelledError as e:
            outcome = "cancelled"
            log.info("reconcile_cancelled", step=e.step)
            raise
        except ReconcileError as e:
            log.error("reconcile_failed", step=e.step, error=str(e.cause))
            raise
        finally:
            self._metrics.observe_reconcile(outcome, time.monotonic() - started)

    def _reconcile(
        self,
        request: ReconcileRequest,
        cancel: threading.Event,
        report: ReconcileReport,
        log: Any,
    ) -> ReconcileResult:
        _check_cancelled(cancel, "fetch")
        fetch = self._client.make_retry_decorator()(self._applications.get_application)
        try:
            app = fetch(request.name, request.namespace)
        except KubernetesNotFoundError:
            log.debug("application_not_found")
            return ReconcileResult(report=report)
        except Exception as e:
            raise ReconcileError("fetch", e, report) from e

        if app.is_deleting:
            steps = self._step(
                "teardown", APPLICATION_KIND, app.name, report, self._finalizer.teardown, app
            )
            for step in steps:
                self._record(report, step)
            log.info("application_released", steps=report.summary())
            return ReconcileResult(report=report)

        problems = app.spec_problems()
        if problems:
            raise InvalidApplicationError(app.name, app.namespace, problems)

        for synchronizer in self._synchronizers:
            _check_cancelled(cancel, synchronizer.kind)
            result = self._step(
                synchronizer.kind, synchronizer.kind, app.name, report, synchronizer.sync, app
            )
            self._record(report, result)

        _check_cancelled(cancel, "finalizer")
        finalizer_result, app = self._step(
            "finalizer", APPLICATION_KIND, app.name, report, self._finalizer.ensure, app
        )
        self._record(report, finalizer_result)

        _check_cancelled(cancel, "tls")
        tls_result = self._step("tls", "ClusterIssuer", app.name, report, self._tls.run, app)
        for step in tls_result.steps:
            self._record(report, step)
        log.debug("tls_step_finished", state=tls_result.state.value)

        _check_cancelled(cancel, "status")
        self._step("status", APPLICATION_KIND, app.name, report, self._update_status, app, report)

        if report.changed:
            log.info("application_reconciled", steps=report.summary())
        return ReconcileResult(requeue_after=tls_result.requeue_after, report=report)

    def _update_status(self, app: Application, report: ReconcileReport) -> None:
        """Write the ``Available`` condition unless it is already the latest one."""
        conditions = app.conditions
        if conditions and conditions[0].type == AVAILABLE and conditions[0].status == "True":
            return
        condition = Condition(
            type=AVAILABLE,
            status="True",
            reason=RECONCILED_REASON,
            message=RECONCILED_MESSAGE,
            last_transition_time=utc_now_rfc3339(),
            observed_generation=app.metadata.generation,
        )
        self._applications.patch_status(app.name, [condition], app.namespace)
        self._record(report, ApplyResult(APPLICATION_KIND, app.name, ApplyOutcome.UPDATED))

    def _step(
        self,
        step: str,
        kind: str,
        name: str,
        report: ReconcileReport,
        func: Callable[..., Any],
        *args: Any,
    ) -> Any:
        """Run one step, turning any failure into a ``ReconcileError``."""
        try:
            return func(*args)
        except (InvalidApplicationError, ReconcileCancelledError):
            raise
        except Exception as e:
            self._record(report, ApplyResult.failed(kind, name, str(e)))
            raise ReconcileError(step, e, report) from e

    def _record(self, report: ReconcileReport, result: ApplyResult) -> None:
        report.record(result)
        self._metrics.observe_step(result)


def _check_cancelled(cancel: threading.Event, step: str) -> None:
    if cancel.is_set():
        raise ReconcileCancelledError(step)
