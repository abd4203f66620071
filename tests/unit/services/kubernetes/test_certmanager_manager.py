"""Unit tests for CertManagerManager."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest

from application_operator.services.kubernetes.certmanager_manager import (
    CERT_MANAGER_GROUP,
    CERT_MANAGER_VERSION,
    CLUSTER_ISSUER_PLURAL,
    CertManagerManager,
)

ACME = {
    "email": "ops@example.com",
    "server": "https://acme.example/directory",
    "privateKeySecretRef": {"name": "demo-acme"},
}


def _issuer(name: str = "app-ns1-issuer", **acme: Any) -> dict[str, Any]:
    return {
        "metadata": {"name": name, "resourceVersion": "1"},
        "spec": {"acme": {**ACME, **acme}},
        "status": {"conditions": [{"type": "Ready", "status": "True"}]},
    }


@pytest.fixture
def certmanager_manager(mock_k8s_client: MagicMock) -> CertManagerManager:
    """Create a CertManagerManager instance with mocked client."""
    return CertManagerManager(mock_k8s_client)


class TestClusterIssuerOperations:
    """Tests for ClusterIssuer operations."""

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_get_cluster_issuer(
        self, certmanager_manager: CertManagerManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should parse the issuer."""
        mock_k8s_client.custom_objects.get_cluster_custom_object.return_value = _issuer()

        issuer = certmanager_manager.get_cluster_issuer("app-ns1-issuer")

        assert issuer.email == "ops@example.com"
        assert issuer.ready is True

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_get_cluster_issuer_error(
        self, certmanager_manager: CertManagerManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should translate errors without a namespace."""
        original = Exception("API error")
        mock_k8s_client.custom_objects.get_cluster_custom_object.side_effect = original
        mock_k8s_client.translate_api_exception.side_effect = RuntimeError("Translated error")

        with pytest.raises(RuntimeError, match="Translated error"):
            certmanager_manager.get_cluster_issuer("app-ns1-issuer")

        mock_k8s_client.translate_api_exception.assert_called_once_with(
            original,
            resource_type="ClusterIssuer",
            resource_name="app-ns1-issuer",
            namespace=None,
        )

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_create_cluster_issuer(
        self, certmanager_manager: CertManagerManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should create a ClusterIssuer with the given ACME block."""
        mock_k8s_client.custom_objects.create_cluster_custom_object.return_value = _issuer()

        certmanager_manager.create_cluster_issuer(
            "app-ns1-issuer", acme=ACME, labels={"managed": "application-operator"}
        )

        args = mock_k8s_client.custom_objects.create_cluster_custom_object.call_args[0]
        assert args[:3] == (CERT_MANAGER_GROUP, CERT_MANAGER_VERSION, CLUSTER_ISSUER_PLURAL)
        body = args[3]
        assert body["apiVersion"] == "cert-manager.io/v1"
        assert body["kind"] == "ClusterIssuer"
        assert body["metadata"] == {
            "name": "app-ns1-issuer",
            "labels": {"managed": "application-operator"},
        }
        assert body["spec"] == {"acme": ACME}

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_update_cluster_issuer_account(
        self, certmanager_manager: CertManagerManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should merge-patch email and server guarded by the resourceVersion."""
        mock_k8s_client.custom_objects.patch_cluster_custom_object.return_value = _issuer(
            email="new@example.com"
        )

        issuer = certmanager_manager.update_cluster_issuer_account(
            "app-ns1-issuer",
            email="new@example.com",
            server="https://acme.example/directory",
            resource_version="1",
        )

        assert issuer.email == "new@example.com"
        mock_k8s_client.custom_objects.patch_cluster_custom_object.assert_called_once_with(
            CERT_MANAGER_GROUP,
            CERT_MANAGER_VERSION,
            CLUSTER_ISSUER_PLURAL,
            "app-ns1-issuer",
            {
                "metadata": {"resourceVersion": "1"},
                "spec": {
                    "acme": {
                        "email": "new@example.com",
                        "server": "https://acme.example/directory",
                    }
                },
            },
            _request_timeout=30,
        )

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_delete_cluster_issuer(
        self, certmanager_manager: CertManagerManager, mock_k8s_client: MagicMock
    ) -> None:
        """Should delete the issuer by name."""
        certmanager_manager.delete_cluster_issuer("app-ns1-issuer")

        mock_k8s_client.custom_objects.delete_cluster_custom_object.assert_called_once_with(
            CERT_MANAGER_GROUP,
            CERT_MANAGER_VERSION,
            CLUSTER_ISSUER_PLURAL,
            "app-ns1-issuer",
            _request_timeout=30,
        )
