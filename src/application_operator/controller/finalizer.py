"""Finalizer handling for Applications.

The ClusterIssuer an Application causes to exist carries no owner
reference, so garbage collection never removes it. The finalizer keeps the
Application around until the operator has deleted the issuer itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from application_operator.controller.naming import FINALIZER
from application_operator.controller.results import ApplyOutcome, ApplyResult
from application_operator.integrations.kubernetes.models.application import APPLICATION_KIND
from application_operator.services.kubernetes.application_manager import ApplicationManager

if TYPE_CHECKING:
    from application_operator.controller.tls import TLSProvisioner
    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.models.application import Application

logger = structlog.get_logger()


class FinalizerHandler:
    """Adds the finalizer to live Applications and runs teardown for deleting ones."""

    def __init__(self, client: KubernetesClient, tls: TLSProvisioner) -> None:
        self._applications = ApplicationManager(client)
        self._tls = tls
        self._log = logger.bind(component="finalizer")

    def ensure(self, app: Application) -> tuple[ApplyResult, Application]:
        """Add the finalizer if missing and persist it immediately.

        The patch carries the resourceVersion that was read, so a concurrent
        edit fails with a conflict and the pass is retried.

        Returns:
            The step result and the Application as now stored.
        """
        if FINALIZER in app.metadata.finalizers:
            return ApplyResult(APPLICATION_KIND, app.name, ApplyOutcome.UNCHANGED), app

        finalizers = [*app.metadata.finalizers, FINALIZER]
        stored = self._applications.patch_finalizers(
            app.name,
            finalizers,
            app.namespace,
            resource_version=app.metadata.resource_version,
        )
        self._log.info("finalizer_added", application=app.name, namespace=app.namespace)
        return ApplyResult(APPLICATION_KIND, app.name, ApplyOutcome.UPDATED), stored

    def teardown(self, app: Application) -> list[ApplyResult]:
        """Delete the namespace issuer, then release the Application.

        Any failure leaves the finalizer in place and propagates, so the
        Application stays visible until a retry succeeds.
        """
        if FINALIZER not in app.metadata.finalizers:
            return []

        steps = [self._tls.delete_issuer(app.namespace)]

        finalizers = [f for f in app.metadata.finalizers if f != FINALIZER]
        self._applications.patch_finalizers(
            app.name,
            finalizers,
            app.namespace,
            resource_version=app.metadata.resource_version,
        )
        self._log.info("finalizer_removed", application=app.name, namespace=app.namespace)
        steps.append(ApplyResult(APPLICATION_KIND, app.name, ApplyOutcome.UPDATED))
        return steps
