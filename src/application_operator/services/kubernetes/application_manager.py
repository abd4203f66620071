"""Application custom resource manager.

Reads Applications and writes the two parts of them the controller owns:
the finalizer list and the status subresource.
"""

from __future__ import annotations

from typing import Any

from application_operator.integrations.kubernetes.models.application import (
    APPLICATION_GROUP,
    APPLICATION_KIND,
    APPLICATION_PLURAL,
    APPLICATION_VERSION,
    Application,
)
from application_operator.integrations.kubernetes.models.base import Condition
from application_operator.services.kubernetes.base import K8sBaseManager


class ApplicationManager(K8sBaseManager):
    """Manager for ``apps.example.com`` Applications."""

    _entity_name = "application"

    def get_application(self, name: str, namespace: str | None = None) -> Application:
        """Get an Application by name.

        Args:
            name: Application name.
            namespace: Target namespace.

        Returns:
            Parsed Application.
        """
        ns = self._resolve_namespace(namespace)
        self._log.debug("getting_application", name=name, namespace=ns)
        try:
            result = self._client.custom_objects.get_namespaced_custom_object(
                APPLICATION_GROUP,
                APPLICATION_VERSION,
                ns,
                APPLICATION_PLURAL,
                name,
                **self._request_options,
            )
            return Application.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, APPLICATION_KIND, name, ns)

    def list_applications(self, namespace: str | None = None) -> list[Application]:
        """List Applications in one namespace, or in all when ``namespace`` is None.

        Args:
            namespace: Namespace to list, None for a cluster-wide list.

        Returns:
            List of parsed Applications.
        """
        self._log.debug("listing_applications", namespace=namespace)
        try:
            if namespace:
                result = self._client.custom_objects.list_namespaced_custom_object(
                    APPLICATION_GROUP,
                    APPLICATION_VERSION,
                    namespace,
                    APPLICATION_PLURAL,
                    **self._request_options,
                )
            else:
                result = self._client.custom_objects.list_cluster_custom_object(
                    APPLICATION_GROUP,
                    APPLICATION_VERSION,
                    APPLICATION_PLURAL,
                    **self._request_options,
                )
            items: list[dict[str, Any]] = result.get("items", [])
            apps = [Application.from_k8s_object(item) for item in items]
            self._log.debug("listed_applications", namespace=namespace, count=len(apps))
            return apps
        except Exception as e:
            self._handle_api_error(e, APPLICATION_KIND, None, namespace)

    def patch_finalizers(
        self,
        name: str,
        finalizers: list[str],
        namespace: str | None = None,
        *,
        resource_version: str | None = None,
    ) -> Application:
        """Replace the finalizer list of an Application.

        Sent as a merge patch. With ``resource_version`` set the write fails
        with a conflict when the Application changed since it was read.

        Args:
            name: Application name.
            finalizers: Complete new finalizer list.
            namespace: Target namespace.
            resource_version: Version the new list was computed from.

        Returns:
            The stored Application.
        """
        ns = self._resolve_namespace(namespace)
        metadata: dict[str, Any] = {"finalizers": finalizers}
        if resource_version:
            metadata["resourceVersion"] = resource_version
        self._log.debug("patching_finalizers", name=name, namespace=ns, finalizers=finalizers)
        try:
            result = self._client.custom_objects.patch_namespaced_custom_object(
                APPLICATION_GROUP,
                APPLICATION_VERSION,
                ns,
                APPLICATION_PLURAL,
                name,
                {"metadata": metadata},
                **self._request_options,
            )
            return Application.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, APPLICATION_KIND, name, ns)

    def patch_status(
        self,
        name: str,
        conditions: list[Condition],
        namespace: str | None = None,
    ) -> Application:
        """Write ``status.conditions`` through the status subresource.

        Args:
            name: Application name.
            conditions: Complete new condition list.
            namespace: Target namespace.

        Returns:
            The stored Application.
        """
        ns = self._resolve_namespace(namespace)
        body = {"status": {"conditions": [c.to_k8s_object() for c in conditions]}}
        self._log.debug("patching_status", name=name, namespace=ns)
        try:
            result = self._client.custom_objects.patch_namespaced_custom_object_status(
                APPLICATION_GROUP,
                APPLICATION_VERSION,
                ns,
                APPLICATION_PLURAL,
                name,
                body,
                **self._request_options,
            )
            return Application.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, APPLICATION_KIND, name, ns)
