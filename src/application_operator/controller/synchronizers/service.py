"""Service synchronizer."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from application_operator.controller.naming import managed_labels, service_name
from application_operator.controller.results import ApplyOutcome, ApplyResult
from application_operator.controller.synchronizers.base import ResourceSynchronizer
from application_operator.services.kubernetes.networking_manager import NetworkingManager

if TYPE_CHECKING:
    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.config import ControllerConfig
    from application_operator.integrations.kubernetes.models.application import (
        Application,
        ServiceSpec,
    )

DEFAULT_SERVICE_TYPE = "ClusterIP"


class ServiceSynchronizer(ResourceSynchronizer):
    """Maintains ``<app>-service`` while ``spec.service`` is set.

    Only the operator-owned fields are compared and rewritten; ``clusterIP``
    and other values the API server fills in are carried over from the live
    object.
    """

    kind = "Service"

    def __init__(self, client: KubernetesClient, controller_config: ControllerConfig) -> None:
        super().__init__(client, controller_config)
        self._manager = NetworkingManager(client)

    def desired_ports(self, app: Application, service: ServiceSpec) -> list[dict[str, Any]]:
        return [
            {
                "name": "http",
                "port": service.port,
                "targetPort": app.spec.container_port,
                "protocol": "TCP",
            }
        ]

    def build(self, app: Application, service: ServiceSpec) -> dict[str, Any]:
        metadata = self._owned_metadata(app, service_name(app.name))
        if service.annotations:
            metadata["annotations"] = self._owned_annotations(dict(service.annotations))
        return {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": metadata,
            "spec": {
                "type": service.type or DEFAULT_SERVICE_TYPE,
                "selector": managed_labels(app.name),
                "ports": self.desired_ports(app, service),
            },
        }

    def sync(self, app: Application) -> ApplyResult:
        name = service_name(app.name)
        service = app.spec.service
        if service is None:
            return self._delete_if_present(self._manager.delete_service, app, name)

        live = self._get_or_none(self._manager.get_service, name, app.namespace)
        if live is None:
            self._manager.create_service(self.build(app, service), app.namespace)
            return self._changed(app, name, ApplyOutcome.CREATED)

        if not self._converge(live, app, service):
            return self._result(name, ApplyOutcome.UNCHANGED)
        self._manager.replace_service(name, live, app.namespace)
        return self._changed(app, name, ApplyOutcome.UPDATED)

    def _converge(self, live: dict[str, Any], app: Application, service: ServiceSpec) -> bool:
        """Overwrite owned fields of ``live`` in place, True when any differed."""
        changed = self._ensure_ownership(live, app)

        if self._converge_annotations(live, dict(service.annotations or {})):
            changed = True

        spec = live.setdefault("spec", {})
        desired_type = service.type or DEFAULT_SERVICE_TYPE
        if spec.get("type") != desired_type:
            spec["type"] = desired_type
            changed = True
        if spec.get("selector") != managed_labels(app.name):
            spec["selector"] = managed_labels(app.name)
            changed = True
        if _comparable_ports(spec.get("ports")) != self.desired_ports(app, service):
            spec["ports"] = _merge_ports(spec.get("ports"), self.desired_ports(app, service))
            changed = True
        return changed


def _comparable_ports(ports: Any) -> list[dict[str, Any]]:
    return [
        {
            "name": port.get("name"),
            "port": port.get("port"),
            "targetPort": port.get("targetPort"),
            "protocol": port.get("protocol", "TCP"),
        }
        for port in ports or []
    ]


def _merge_ports(live_ports: Any, desired: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Desired ports keeping a server-allocated ``nodePort`` of the same name."""
    node_ports = {p.get("name"): p.get("nodePort") for p in live_ports or [] if p.get("nodePort")}
    merged: list[dict[str, Any]] = []
    for port in desired:
        entry = dict(port)
        if port["name"] in node_ports:
            entry["nodePort"] = node_ports[port["name"]]
        merged.append(entry)
    return merged
