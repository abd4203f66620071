"""Ingress synchronizer.

Owns the class, the single routing rule, labels, owner reference and
the declared annotations of ``<app>-ingress``. The ``tls`` section
belongs to the TLS step and is never touched here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from application_operator.controller.exceptions import InvalidApplicationError
from application_operator.controller.naming import ingress_name, service_name
from application_operator.controller.results import ApplyOutcome, ApplyResult
from application_operator.controller.synchronizers.base import ResourceSynchronizer
from application_operator.services.kubernetes.networking_manager import NetworkingManager

if TYPE_CHECKING:
    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.config import ControllerConfig
    from application_operator.integrations.kubernetes.models.application import Application

PATH_TYPE = "Prefix"


class IngressSynchronizer(ResourceSynchronizer):
    """Maintains ``<app>-ingress`` while ``spec.ingress`` is set."""

    kind = "Ingress"

    def __init__(self, client: KubernetesClient, controller_config: ControllerConfig) -> None:
        super().__init__(client, controller_config)
        self._manager = NetworkingManager(client)

    def desired_rules(self, app: Application) -> list[dict[str, Any]]:
        """The single host/path rule routing to the Application's Service."""
        ingress = app.spec.ingress
        service = app.spec.service
        if ingress is None or service is None:
            raise InvalidApplicationError(
                app.name, app.namespace, ["spec.ingress requires spec.service to route to"]
            )
        rule: dict[str, Any] = {
            "http": {
                "paths": [
                    {
                        "path": ingress.path,
                        "pathType": PATH_TYPE,
                        "backend": {
                            "service": {
                                "name": service_name(app.name),
                                "port": {"number": service.port},
                            }
                        },
                    }
                ]
            }
        }
        if ingress.host:
            rule["host"] = ingress.host
        return [rule]

    def build(self, app: Application) -> dict[str, Any]:
        metadata = self._owned_metadata(app, ingress_name(app.name))
        annotations = _desired_annotations(app)
        if annotations:
            metadata["annotations"] = self._owned_annotations(annotations)
        return {
            "apiVersion": "networking.k8s.io/v1",
            "kind": "Ingress",
            "metadata": metadata,
            "spec": {
                "ingressClassName": self._controller_config.ingress_class,
                "rules": self.desired_rules(app),
            },
        }

    def sync(self, app: Application) -> ApplyResult:
        name = ingress_name(app.name)
        if app.spec.ingress is None:
            return self._delete_if_present(self._manager.delete_ingress, app, name)

        live = self._get_or_none(self._manager.get_ingress, name, app.namespace)
        if live is None:
            self._manager.create_ingress(self.build(app), app.namespace)
            return self._changed(app, name, ApplyOutcome.CREATED)

        if not self._converge(live, app):
            return self._result(name, ApplyOutcome.UNCHANGED)
        self._manager.replace_ingress(name, live, app.namespace)
        return self._changed(app, name, ApplyOutcome.UPDATED)

    def _converge(self, live: dict[str, Any], app: Application) -> bool:
        changed = self._ensure_ownership(live, app)

        if self._converge_annotations(live, _desired_annotations(app)):
            changed = True

        spec = live.setdefault("spec", {})
        if spec.get("ingressClassName") != self._controller_config.ingress_class:
            spec["ingressClassName"] = self._controller_config.ingress_class
            changed = True
        rules = self.desired_rules(app)
        if spec.get("rules") != rules:
            spec["rules"] = rules
            changed = True
        return changed


def _desired_annotations(app: Application) -> dict[str, str]:
    ingress = app.spec.ingress
    return dict(ingress.annotations or {}) if ingress is not None else {}
