"""Cert-manager resource manager.

Manages the ClusterIssuers the operator provisions for TLS-enabled
Applications, through the Kubernetes ``CustomObjectsApi``.
"""

from __future__ import annotations

from typing import Any

from application_operator.integrations.kubernetes.models.certmanager import (
    ClusterIssuerSummary,
)
from application_operator.services.kubernetes.base import K8sBaseManager

# cert-manager.io CRD coordinates
CERT_MANAGER_GROUP = "cert-manager.io"
CERT_MANAGER_VERSION = "v1"
CLUSTER_ISSUER_PLURAL = "clusterissuers"
CLUSTER_ISSUER_KIND = "ClusterIssuer"


class CertManagerManager(K8sBaseManager):
    """Manager for cert-manager ClusterIssuers.

    ClusterIssuers are cluster-scoped, so none of these operations take a
    namespace.
    """

    _entity_name = "certmanager"

    def get_cluster_issuer(self, name: str) -> ClusterIssuerSummary:
        """Get a single ClusterIssuer by name.

        Args:
            name: ClusterIssuer name.

        Returns:
            Cluster issuer summary.
        """
        self._log.debug("getting_cluster_issuer", name=name)
        try:
            result = self._client.custom_objects.get_cluster_custom_object(
                CERT_MANAGER_GROUP,
                CERT_MANAGER_VERSION,
                CLUSTER_ISSUER_PLURAL,
                name,
                **self._request_options,
            )
            return ClusterIssuerSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, CLUSTER_ISSUER_KIND, name)

    def create_cluster_issuer(
        self,
        name: str,
        *,
        acme: dict[str, Any],
        labels: dict[str, str] | None = None,
    ) -> ClusterIssuerSummary:
        """Create an ACME ClusterIssuer.

        Args:
            name: ClusterIssuer name.
            acme: Complete ``spec.acme`` block, solvers included.
            labels: Optional labels.

        Returns:
            Created cluster issuer summary.
        """
        self._log.debug("creating_cluster_issuer", name=name, server=acme.get("server"))
        body: dict[str, Any] = {
            "apiVersion": f"{CERT_MANAGER_GROUP}/{CERT_MANAGER_VERSION}",
            "kind": CLUSTER_ISSUER_KIND,
            "metadata": {
                "name": name,
                "labels": labels or {},
            },
            "spec": {
                "acme": acme,
            },
        }
        try:
            result = self._client.custom_objects.create_cluster_custom_object(
                CERT_MANAGER_GROUP,
                CERT_MANAGER_VERSION,
                CLUSTER_ISSUER_PLURAL,
                body,
                **self._request_options,
            )
            self._log.info("created_cluster_issuer", name=name)
            return ClusterIssuerSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, CLUSTER_ISSUER_KIND, name)

    def update_cluster_issuer_account(
        self,
        name: str,
        *,
        email: str,
        server: str,
        resource_version: str | None = None,
    ) -> ClusterIssuerSummary:
        """Update the ACME account email and server of a ClusterIssuer.

        Sent as a merge patch; when ``resource_version`` is given the API
        server rejects the write with a conflict if the issuer changed since
        it was read.

        Args:
            name: ClusterIssuer name.
            email: ACME registration email.
            server: ACME directory URL.
            resource_version: Version the caller based its decision on.

        Returns:
            Updated cluster issuer summary.
        """
        self._log.debug("updating_cluster_issuer", name=name, server=server)
        metadata: dict[str, Any] = {}
        if resource_version:
            metadata["resourceVersion"] = resource_version
        patch: dict[str, Any] = {
            "metadata": metadata,
            "spec": {"acme": {"email": email, "server": server}},
        }
        try:
            result = self._client.custom_objects.patch_cluster_custom_object(
                CERT_MANAGER_GROUP,
                CERT_MANAGER_VERSION,
                CLUSTER_ISSUER_PLURAL,
                name,
                patch,
                **self._request_options,
            )
            self._log.info("updated_cluster_issuer", name=name)
            return ClusterIssuerSummary.from_k8s_object(result)
        except Exception as e:
            self._handle_api_error(e, CLUSTER_ISSUER_KIND, name)

    def delete_cluster_issuer(self, name: str) -> None:
        """Delete a ClusterIssuer.

        Args:
            name: ClusterIssuer name to delete.
        """
        self._log.debug("deleting_cluster_issuer", name=name)
        try:
            self._client.custom_objects.delete_cluster_custom_object(
                CERT_MANAGER_GROUP,
                CERT_MANAGER_VERSION,
                CLUSTER_ISSUER_PLURAL,
                name,
                **self._request_options,
            )
            self._log.info("deleted_cluster_issuer", name=name)
        except Exception as e:
            self._handle_api_error(e, CLUSTER_ISSUER_KIND, name)
