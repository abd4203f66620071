"""Kubernetes networking resource manager.

Reads and writes the Services and Ingresses that expose an Application.
"""

from __future__ import annotations

from typing import Any

from application_operator.services.kubernetes.base import K8sBaseManager


class NetworkingManager(K8sBaseManager):
    """Manager for Services and Ingresses.

    Replace operations must be given the live object (with its
    resourceVersion and any server-populated fields such as ``clusterIP``)
    with only the operator-owned fields changed.
    """

    _entity_name = "networking"

    # =========================================================================
    # Service Operations
    # =========================================================================

    def get_service(self, name: str, namespace: str | None = None) -> dict[str, Any]:
        """Get a service by name.

        Args:
            name: Service name.
            namespace: Target namespace.

        Returns:
            The service as a wire-form dict.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_service", name=name, namespace=ns)
        try:
            result = self._client.core_v1.read_namespaced_service(
                name=name, namespace=ns, **self._request_options
            )
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Service", name, ns)

    def create_service(
        self,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Create a service from a complete manifest."""
        ns = self._resolve_namespace(namespace)
        name = body.get("metadata", {}).get("name")
        self._log.debug("creating_service", name=name, namespace=ns)
        try:
            result = self._client.core_v1.create_namespaced_service(
                namespace=ns, body=body, **self._request_options
            )
            self._log.info("created_service", name=name, namespace=ns)
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Service", name, ns)

    def replace_service(
        self,
        name: str,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Replace a service."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("replacing_service", name=name, namespace=ns)
        try:
            result = self._client.core_v1.replace_namespaced_service(
                name=name, namespace=ns, body=body, **self._request_options
            )
            self._log.info("replaced_service", name=name, namespace=ns)
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Service", name, ns)

    def delete_service(self, name: str, namespace: str | None = None) -> None:
        """Delete a service."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("deleting_service", name=name, namespace=ns)
        try:
            self._client.core_v1.delete_namespaced_service(
                name=name, namespace=ns, **self._request_options
            )
            self._log.info("deleted_service", name=name, namespace=ns)
        except Exception as e:
            self._handle_api_error(e, "Service", name, ns)

    # =========================================================================
    # Ingress Operations
    # =========================================================================

    def get_ingress(self, name: str, namespace: str | None = None) -> dict[str, Any]:
        """Get an ingress by name."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_ingress", name=name, namespace=ns)
        try:
            result = self._client.networking_v1.read_namespaced_ingress(
                name=name, namespace=ns, **self._request_options
            )
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Ingress", name, ns)

    def create_ingress(
        self,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Create an ingress from a complete manifest."""
        ns = self._resolve_namespace(namespace)
        name = body.get("metadata", {}).get("name")
        self._log.debug("creating_ingress", name=name, namespace=ns)
        try:
            result = self._client.networking_v1.create_namespaced_ingress(
                namespace=ns, body=body, **self._request_options
            )
            self._log.info("created_ingress", name=name, namespace=ns)
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Ingress", name, ns)

    def replace_ingress(
        self,
        name: str,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Replace an ingress."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("replacing_ingress", name=name, namespace=ns)
        try:
            result = self._client.networking_v1.replace_namespaced_ingress(
                name=name, namespace=ns, body=body, **self._request_options
            )
            self._log.info("replaced_ingress", name=name, namespace=ns)
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Ingress", name, ns)

    def delete_ingress(self, name: str, namespace: str | None = None) -> None:
        """Delete an ingress."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("deleting_ingress", name=name, namespace=ns)
        try:
            self._client.networking_v1.delete_namespaced_ingress(
                name=name, namespace=ns, **self._request_options
            )
            self._log.info("deleted_ingress", name=name, namespace=ns)
        except Exception as e:
            self._handle_api_error(e, "Ingress", name, ns)
