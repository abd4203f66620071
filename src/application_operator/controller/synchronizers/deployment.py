"""Deployment synchronizer.

The Deployment is written with server-side apply: the operator re-asserts
every field it owns on each pass and the API server leaves the object
untouched when nothing differs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from application_operator.controller.naming import (
    CONFIG_MAP_PREFIX,
    SECRET_PREFIX,
    config_map_name,
    deployment_name,
    managed_labels,
    secret_name,
)
from application_operator.controller.results import ApplyOutcome, ApplyResult
from application_operator.controller.synchronizers.base import ResourceSynchronizer
from application_operator.services.kubernetes.workload_manager import WorkloadManager

if TYPE_CHECKING:
    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.config import ControllerConfig
    from application_operator.integrations.kubernetes.models.application import (
        Application,
        ResourceLimits,
        ResourcesSpec,
    )


def container_env(app: Application) -> list[dict[str, Any]]:
    """Container env in spec order, routed variables turned into key references."""
    env: list[dict[str, Any]] = []
    for var in app.spec.env_vars:
        if var.name.startswith(CONFIG_MAP_PREFIX):
            key = var.name[len(CONFIG_MAP_PREFIX) :]
            env.append(
                {
                    "name": key,
                    "valueFrom": {
                        "configMapKeyRef": {"name": config_map_name(app.name), "key": key}
                    },
                }
            )
        elif var.name.startswith(SECRET_PREFIX):
            key = var.name[len(SECRET_PREFIX) :]
            env.append(
                {
                    "name": key,
                    "valueFrom": {"secretKeyRef": {"name": secret_name(app.name), "key": key}},
                }
            )
        else:
            env.append({"name": var.name, "value": var.value})
    return env


def _resource_list(limits: ResourceLimits | None) -> dict[str, str]:
    if limits is None:
        return {}
    values: dict[str, str] = {}
    if limits.cpu:
        values["cpu"] = limits.cpu
    if limits.memory:
        values["memory"] = limits.memory
    return values


def resource_requirements(resources: ResourcesSpec | None) -> dict[str, Any]:
    """Container ``resources`` block; empty sections are left out."""
    if resources is None:
        return {}
    requirements: dict[str, Any] = {}
    requests = _resource_list(resources.requests)
    if requests:
        requirements["requests"] = requests
    limits = _resource_list(resources.limits)
    if limits:
        requirements["limits"] = limits
    return requirements


class DeploymentSynchronizer(ResourceSynchronizer):
    """Applies ``<app>-deployment``."""

    kind = "Deployment"

    def __init__(self, client: KubernetesClient, controller_config: ControllerConfig) -> None:
        super().__init__(client, controller_config)
        self._manager = WorkloadManager(client)

    def build(self, app: Application) -> dict[str, Any]:
        """Complete apply manifest for the Deployment.

        ``replicas`` is only declared when the spec sets it, leaving the API
        server default in place otherwise.
        """
        labels = managed_labels(app.name)
        container: dict[str, Any] = {
            "name": app.name,
            "image": app.spec.image,
            "ports": [{"containerPort": app.spec.container_port}],
            "env": container_env(app),
        }
        requirements = resource_requirements(app.spec.resources)
        if requirements:
            container["resources"] = requirements

        spec: dict[str, Any] = {
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {"containers": [container]},
            },
        }
        if app.spec.replicas is not None:
            spec["replicas"] = app.spec.replicas

        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": self._owned_metadata(app, deployment_name(app.name)),
            "spec": spec,
        }

    def sync(self, app: Application) -> ApplyResult:
        name = deployment_name(app.name)
        before = self._get_or_none(self._manager.get_deployment, name, app.namespace)
        applied = self._manager.apply_deployment(
            self.build(app),
            app.namespace,
            field_manager=self._controller_config.field_manager,
            force=True,
        )

        if before is None:
            return self._changed(app, name, ApplyOutcome.CREATED)
        previous = before.get("metadata", {}).get("resourceVersion")
        current = applied.get("metadata", {}).get("resourceVersion")
        if previous != current:
            return self._changed(app, name, ApplyOutcome.UPDATED)
        return self._result(name, ApplyOutcome.UNCHANGED)
