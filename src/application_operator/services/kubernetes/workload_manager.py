"""Kubernetes workload resource manager.

Deployments are written with server-side apply: the operator declares the
complete set of fields it owns and the API server merges them, taking
ownership from other field managers when ``force`` is set.
"""

from __future__ import annotations

from typing import Any

from application_operator.services.kubernetes.base import K8sBaseManager

APPLY_PATCH_CONTENT_TYPE = "application/apply-patch+yaml"


class WorkloadManager(K8sBaseManager):
    """Manager for Deployments."""

    _entity_name = "workload"

    def get_deployment(self, name: str, namespace: str | None = None) -> dict[str, Any]:
        """Get a deployment by name.

        Args:
            name: Deployment name.
            namespace: Target namespace.

        Returns:
            The deployment as a wire-form dict.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_deployment", name=name, namespace=ns)
        try:
            result = self._client.apps_v1.read_namespaced_deployment(
                name=name, namespace=ns, **self._request_options
            )
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Deployment", name, ns)

    def apply_deployment(
        self,
        body: dict[str, Any],
        namespace: str | None = None,
        *,
        field_manager: str,
        force: bool = True,
    ) -> dict[str, Any]:
        """Server-side apply a complete deployment manifest.

        Creates the deployment when missing. The API server leaves the object
        untouched (same resourceVersion) when the applied fields already match.

        Args:
            body: Manifest including ``apiVersion`` and ``kind``.
            namespace: Target namespace.
            field_manager: Field manager name recorded for owned fields.
            force: Take ownership of conflicting fields.

        Returns:
            The stored deployment.
        """
        ns = self._resolve_namespace(namespace)
        name = body.get("metadata", {}).get("name")
        self._log.debug("applying_deployment", name=name, namespace=ns, field_manager=field_manager)
        try:
            result = self._client.apps_v1.patch_namespaced_deployment(
                name=name,
                namespace=ns,
                body=body,
                field_manager=field_manager,
                force=force,
                _content_type=APPLY_PATCH_CONTENT_TYPE,
                **self._request_options,
            )
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Deployment", name, ns)
