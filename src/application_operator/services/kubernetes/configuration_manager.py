"""Kubernetes configuration resource manager.

Reads and writes the ConfigMaps and Secrets that carry an Application's
environment. Bodies are exchanged as wire-form dicts.
"""

from __future__ import annotations

from typing import Any

from application_operator.services.kubernetes.base import K8sBaseManager


class ConfigurationManager(K8sBaseManager):
    """Manager for ConfigMaps and Secrets.

    Update operations are full replaces carrying the live resourceVersion,
    so a concurrent writer makes them fail with a conflict instead of being
    silently overwritten.
    """

    _entity_name = "configuration"

    # =========================================================================
    # ConfigMap Operations
    # =========================================================================

    def get_config_map(self, name: str, namespace: str | None = None) -> dict[str, Any]:
        """Get a configmap by name.

        Args:
            name: ConfigMap name.
            namespace: Target namespace.

        Returns:
            The configmap as a wire-form dict.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_configmap", name=name, namespace=ns)
        try:
            result = self._client.core_v1.read_namespaced_config_map(
                name=name, namespace=ns, **self._request_options
            )
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "ConfigMap", name, ns)

    def create_config_map(
        self,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Create a configmap.

        Args:
            body: Complete configmap manifest.
            namespace: Target namespace.

        Returns:
            Created configmap.
        """
        ns = self._resolve_namespace(namespace)
        name = body.get("metadata", {}).get("name")
        self._log.debug("creating_configmap", name=name, namespace=ns)
        try:
            result = self._client.core_v1.create_namespaced_config_map(
                namespace=ns, body=body, **self._request_options
            )
            self._log.info("created_configmap", name=name, namespace=ns)
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "ConfigMap", name, ns)

    def replace_config_map(
        self,
        name: str,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Replace a configmap.

        Args:
            name: ConfigMap name.
            body: Full manifest including ``metadata.resourceVersion``.
            namespace: Target namespace.

        Returns:
            Stored configmap.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("replacing_configmap", name=name, namespace=ns)
        try:
            result = self._client.core_v1.replace_namespaced_config_map(
                name=name, namespace=ns, body=body, **self._request_options
            )
            self._log.info("replaced_configmap", name=name, namespace=ns)
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "ConfigMap", name, ns)

    def delete_config_map(self, name: str, namespace: str | None = None) -> None:
        """Delete a configmap.

        Args:
            name: ConfigMap name.
            namespace: Target namespace.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("deleting_configmap", name=name, namespace=ns)
        try:
            self._client.core_v1.delete_namespaced_config_map(
                name=name, namespace=ns, **self._request_options
            )
            self._log.info("deleted_configmap", name=name, namespace=ns)
        except Exception as e:
            self._handle_api_error(e, "ConfigMap", name, ns)

    # =========================================================================
    # Secret Operations
    # =========================================================================

    def get_secret(self, name: str, namespace: str | None = None) -> dict[str, Any]:
        """Get a secret by name.

        ``data`` values stay base64 encoded, as the API returns them.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_secret", name=name, namespace=ns)
        try:
            result = self._client.core_v1.read_namespaced_secret(
                name=name, namespace=ns, **self._request_options
            )
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Secret", name, ns)

    def create_secret(
        self,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Create a secret from a complete manifest."""
        ns = self._resolve_namespace(namespace)
        name = body.get("metadata", {}).get("name")
        self._log.debug("creating_secret", name=name, namespace=ns)
        try:
            result = self._client.core_v1.create_namespaced_secret(
                namespace=ns, body=body, **self._request_options
            )
            self._log.info("created_secret", name=name, namespace=ns)
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Secret", name, ns)

    def replace_secret(
        self,
        name: str,
        body: dict[str, Any],
        namespace: str | None = None,
    ) -> dict[str, Any]:
        """Replace a secret; the body must carry the live resourceVersion."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("replacing_secret", name=name, namespace=ns)
        try:
            result = self._client.core_v1.replace_namespaced_secret(
                name=name, namespace=ns, body=body, **self._request_options
            )
            self._log.info("replaced_secret", name=name, namespace=ns)
            return self._to_dict(result)
        except Exception as e:
            self._handle_api_error(e, "Secret", name, ns)

    def delete_secret(self, name: str, namespace: str | None = None) -> None:
        """Delete a secret."""
        ns = self._resolve_namespace(namespace)
        self._log.debug("deleting_secret", name=name, namespace=ns)
        try:
            self._client.core_v1.delete_namespaced_secret(
                name=name, namespace=ns, **self._request_options
            )
            self._log.info("deleted_secret", name=name, namespace=ns)
        except Exception as e:
            self._handle_api_error(e, "Secret", name, ns)
