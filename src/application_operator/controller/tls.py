"""TLS provisioning state machine.

For an Application with ``spec.tls.enable`` the operator keeps one ACME
ClusterIssuer per namespace (``app-<namespace>-issuer``) in line with the
spec and, once cert-manager reports the issuer ready, binds a ``tls``
section onto the Application's Ingress.

When TLS is turned off again the ``tls`` section is stripped from the
Ingress; the issuer stays until the finalizer removes it.

A pass never waits for the issuer. While it is being provisioned or is not
ready yet the step asks to be requeued after
``ControllerConfig.issuer_requeue_seconds``; the ClusterIssuer watch also
triggers a pass as soon as its status changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import structlog

from application_operator.controller.naming import MANAGED_BY, ingress_name, issuer_name
from application_operator.controller.results import ApplyOutcome, ApplyResult
from application_operator.integrations.kubernetes.exceptions import KubernetesNotFoundError
from application_operator.services.kubernetes.certmanager_manager import (
    CLUSTER_ISSUER_KIND,
    CertManagerManager,
)
from application_operator.services.kubernetes.networking_manager import NetworkingManager

if TYPE_CHECKING:
    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.config import ControllerConfig
    from application_operator.integrations.kubernetes.models.application import (
        ACMEIssuerSpec,
        Application,
    )
    from application_operator.integrations.kubernetes.models.certmanager import (
        ClusterIssuerSummary,
    )

logger = structlog.get_logger()


class TLSState(StrEnum):
    """Where the TLS step ended for one pass."""

    DISABLED = "disabled"
    ISSUER_PROVISIONING = "issuer_provisioning"
    ISSUER_PENDING = "issuer_pending"
    ISSUER_READY = "issuer_ready"
    TLS_BOUND = "tls_bound"
    TLS_UNCHANGED = "tls_unchanged"


@dataclass(frozen=True)
class TLSStepResult:
    state: TLSState
    steps: list[ApplyResult] = field(default_factory=list)
    requeue_after: float | None = None


class TLSProvisioner:
    """Runs the issuer and ingress binding steps for one Application."""

    def __init__(self, client: KubernetesClient, controller_config: ControllerConfig) -> None:
        self._config = controller_config
        self._issuers = CertManagerManager(client)
        self._networking = NetworkingManager(client)
        self._log = logger.bind(component="tls")

    def run(self, app: Application) -> TLSStepResult:
        """Advance the state machine by one pass."""
        acme = self._acme_spec(app)
        if acme is None:
            unbound = self.unbind_ingress(app)
            return TLSStepResult(TLSState.DISABLED, [unbound] if unbound.changed else [])

        issuer_result, issuer = self.ensure_issuer(app, acme)
        steps = [issuer_result]
        requeue = self._config.issuer_requeue_seconds

        if issuer_result.outcome in (ApplyOutcome.CREATED, ApplyOutcome.UPDATED):
            return TLSStepResult(TLSState.ISSUER_PROVISIONING, steps, requeue_after=requeue)
        if not issuer.ready:
            self._log.debug("issuer_not_ready", application=app.name, issuer=issuer.name)
            return TLSStepResult(TLSState.ISSUER_PENDING, steps, requeue_after=requeue)
        if app.spec.ingress is None:
            return TLSStepResult(TLSState.ISSUER_READY, steps)

        binding = self.bind_ingress(app, acme)
        steps.append(binding)
        if binding.outcome == ApplyOutcome.UPDATED:
            return TLSStepResult(TLSState.TLS_BOUND, steps)
        return TLSStepResult(TLSState.TLS_UNCHANGED, steps)

    # =========================================================================
    # Issuer
    # =========================================================================

    def desired_acme(self, acme: ACMEIssuerSpec) -> dict[str, Any]:
        """``spec.acme`` for a new issuer: the Application's ACME config plus one HTTP-01 solver."""
        body = acme.to_k8s_object()
        body["solvers"] = [
            {"http01": {"ingress": {"ingressClassName": self._config.ingress_class}}}
        ]
        return body

    def ensure_issuer(
        self, app: Application, acme: ACMEIssuerSpec
    ) -> tuple[ApplyResult, ClusterIssuerSummary]:
        """Create the namespace issuer, or realign its ACME email and server."""
        name = issuer_name(app.namespace)
        try:
            issuer = self._issuers.get_cluster_issuer(name)
        except KubernetesNotFoundError:
            issuer = self._issuers.create_cluster_issuer(
                name,
                acme=self.desired_acme(acme),
                labels={"managed": MANAGED_BY},
            )
            self._log.info("issuer_created", application=app.name, issuer=name)
            return ApplyResult(CLUSTER_ISSUER_KIND, name, ApplyOutcome.CREATED), issuer

        if issuer.email == acme.email and issuer.server == acme.server:
            return ApplyResult(CLUSTER_ISSUER_KIND, name, ApplyOutcome.UNCHANGED), issuer

        issuer = self._issuers.update_cluster_issuer_account(
            name,
            email=acme.email,
            server=acme.server,
            resource_version=issuer.metadata.resource_version,
        )
        self._log.info("issuer_updated", application=app.name, issuer=name, server=acme.server)
        return ApplyResult(CLUSTER_ISSUER_KIND, name, ApplyOutcome.UPDATED), issuer

    def delete_issuer(self, namespace: str) -> ApplyResult:
        """Delete the namespace issuer; an absent issuer counts as success."""
        name = issuer_name(namespace)
        try:
            self._issuers.delete_cluster_issuer(name)
        except KubernetesNotFoundError:
            return ApplyResult(CLUSTER_ISSUER_KIND, name, ApplyOutcome.UNCHANGED)
        self._log.info("issuer_deleted", issuer=name, namespace=namespace)
        return ApplyResult(CLUSTER_ISSUER_KIND, name, ApplyOutcome.DELETED)

    # =========================================================================
    # Ingress binding
    # =========================================================================

    def bind_ingress(self, app: Application, acme: ACMEIssuerSpec) -> ApplyResult:
        """Point ``tls[0]`` of the Ingress at the issuer's certificate secret."""
        ingress = app.spec.ingress
        name = ingress_name(app.name)
        if ingress is None:
            return ApplyResult("Ingress", name, ApplyOutcome.UNCHANGED)

        live = self._networking.get_ingress(name, app.namespace)
        spec = live.setdefault("spec", {})
        host = ingress.host
        hosts = [host] if host else []
        secret = acme.private_key_secret_ref.name
        changed = False

        rules: list[dict[str, Any]] = spec.get("rules") or []
        if rules and (rules[0].get("host") or "") != host:
            if host:
                rules[0]["host"] = host
            else:
                rules[0].pop("host", None)
            changed = True

        tls: list[dict[str, Any]] = spec.get("tls") or []
        if not tls:
            spec["tls"] = [{"hosts": hosts, "secretName": secret}]
            changed = True
        else:
            if (tls[0].get("hosts") or []) != hosts:
                tls[0]["hosts"] = hosts
                changed = True
            if tls[0].get("secretName") != secret:
                tls[0]["secretName"] = secret
                changed = True

        if not changed:
            return ApplyResult("Ingress", name, ApplyOutcome.UNCHANGED)

        self._networking.replace_ingress(name, live, app.namespace)
        self._log.info("ingress_tls_bound", application=app.name, name=name, secret=secret)
        return ApplyResult("Ingress", name, ApplyOutcome.UPDATED)

    def unbind_ingress(self, app: Application) -> ApplyResult:
        """Remove the ``tls`` section left on the Ingress by an earlier binding."""
        name = ingress_name(app.name)
        if app.spec.ingress is None:
            return ApplyResult("Ingress", name, ApplyOutcome.UNCHANGED)
        try:
            live = self._networking.get_ingress(name, app.namespace)
        except KubernetesNotFoundError:
            return ApplyResult("Ingress", name, ApplyOutcome.UNCHANGED)

        spec = live.get("spec") or {}
        if not spec.get("tls"):
            return ApplyResult("Ingress", name, ApplyOutcome.UNCHANGED)
        del spec["tls"]
        self._networking.replace_ingress(name, live, app.namespace)
        self._log.info("ingress_tls_unbound", application=app.name, name=name)
        return ApplyResult("Ingress", name, ApplyOutcome.UPDATED)

    @staticmethod
    def _acme_spec(app: Application) -> ACMEIssuerSpec | None:
        tls = app.spec.tls
        if not app.spec.tls_requested or tls is None or tls.issuer is None:
            return None
        return tls.issuer.acme_issuer
