"""ConfigMap and Secret synchronizers.

Both are fed from ``spec.envVars`` filtered by a routing prefix. When the
filter yields nothing the resource is deleted instead of written empty.
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any

from application_operator.controller.naming import (
    CONFIG_MAP_PREFIX,
    SECRET_PREFIX,
    config_map_name,
    secret_name,
)
from application_operator.controller.results import ApplyOutcome, ApplyResult
from application_operator.controller.synchronizers.base import ResourceSynchronizer
from application_operator.services.kubernetes.configuration_manager import ConfigurationManager

if TYPE_CHECKING:
    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.config import ControllerConfig
    from application_operator.integrations.kubernetes.models.application import (
        Application,
        EnvVar,
    )


def routed_env_data(env_vars: list[EnvVar], prefix: str) -> dict[str, str]:
    """Env values whose name starts with ``prefix``, keyed by the stripped name.

    A later duplicate key wins.
    """
    data: dict[str, str] = {}
    for env in env_vars:
        if env.name.startswith(prefix):
            data[env.name[len(prefix) :]] = env.value
    return data


class _EnvDataSynchronizer(ResourceSynchronizer):
    """Shared create-or-update-or-delete flow for env-backed resources."""

    prefix: str = ""

    def __init__(self, client: KubernetesClient, controller_config: ControllerConfig) -> None:
        super().__init__(client, controller_config)
        self._manager = ConfigurationManager(client)

    def sync(self, app: Application) -> ApplyResult:
        name = self._name(app)
        data = self._encode(routed_env_data(app.spec.env_vars, self.prefix))
        if not data:
            return self._delete_if_present(self._delete, app, name)

        live = self._get_or_none(self._get, name, app.namespace)
        if live is None:
            body = self._build(app, name, data)
            self._create(body, app.namespace)
            return self._changed(app, name, ApplyOutcome.CREATED)

        changed = self._ensure_ownership(live, app)
        if (live.get("data") or {}) != data:
            live["data"] = data
            changed = True
        if not changed:
            return self._result(name, ApplyOutcome.UNCHANGED)

        self._replace(name, live, app.namespace)
        return self._changed(app, name, ApplyOutcome.UPDATED)

    def _encode(self, data: dict[str, str]) -> dict[str, str]:
        return data

    def _name(self, app: Application) -> str:
        raise NotImplementedError

    def _build(self, app: Application, name: str, data: dict[str, str]) -> dict[str, Any]:
        raise NotImplementedError

    def _get(self, name: str, namespace: str) -> dict[str, Any]:
        raise NotImplementedError

    def _create(self, body: dict[str, Any], namespace: str) -> None:
        raise NotImplementedError

    def _replace(self, name: str, body: dict[str, Any], namespace: str) -> None:
        raise NotImplementedError

    def _delete(self, name: str, namespace: str) -> None:
        raise NotImplementedError


class ConfigMapSynchronizer(_EnvDataSynchronizer):
    """Maintains ``<app>-config`` from ``CM_`` variables."""

    kind = "ConfigMap"
    prefix = CONFIG_MAP_PREFIX

    def _name(self, app: Application) -> str:
        return config_map_name(app.name)

    def _build(self, app: Application, name: str, data: dict[str, str]) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "ConfigMap",
            "metadata": self._owned_metadata(app, name),
            "data": data,
        }

    def _get(self, name: str, namespace: str) -> dict[str, Any]:
        return self._manager.get_config_map(name, namespace)

    def _create(self, body: dict[str, Any], namespace: str) -> None:
        self._manager.create_config_map(body, namespace)

    def _replace(self, name: str, body: dict[str, Any], namespace: str) -> None:
        self._manager.replace_config_map(name, body, namespace)

    def _delete(self, name: str, namespace: str) -> None:
        self._manager.delete_config_map(name, namespace)


class SecretSynchronizer(_EnvDataSynchronizer):
    """Maintains ``<app>-secret`` from ``SEC_`` variables.

    Values are stored base64 encoded under ``data``, which is also how the
    API returns them, so live and desired compare directly.
    """

    kind = "Secret"
    prefix = SECRET_PREFIX

    def _encode(self, data: dict[str, str]) -> dict[str, str]:
        return {key: base64.b64encode(value.encode()).decode() for key, value in data.items()}

    def _name(self, app: Application) -> str:
        return secret_name(app.name)

    def _build(self, app: Application, name: str, data: dict[str, str]) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": self._owned_metadata(app, name),
            "type": "Opaque",
            "data": data,
        }

    def _get(self, name: str, namespace: str) -> dict[str, Any]:
        return self._manager.get_secret(name, namespace)

    def _create(self, body: dict[str, Any], namespace: str) -> None:
        self._manager.create_secret(body, namespace)

    def _replace(self, name: str, body: dict[str, Any], namespace: str) -> None:
        self._manager.replace_secret(name, body, namespace)

    def _delete(self, name: str, namespace: str) -> None:
        self._manager.delete_secret(name, namespace)
