"""Unit tests for K8sBaseManager."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from application_operator.integrations.kubernetes.exceptions import KubernetesNotFoundError
from application_operator.services.kubernetes.base import K8sBaseManager


class TestK8sBaseManager:
    """Tests for K8sBaseManager base class."""

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_init(self, mock_k8s_client: MagicMock) -> None:
        """Manager should initialize with client."""
        manager = K8sBaseManager(mock_k8s_client)

        assert manager._client == mock_k8s_client
        assert manager._log is not None

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_resolve_namespace_with_explicit_namespace(self, mock_k8s_client: MagicMock) -> None:
        """Should return explicit namespace when provided."""
        manager = K8sBaseManager(mock_k8s_client)

        assert manager._resolve_namespace("ns1") == "ns1"

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_resolve_namespace_with_none(self, mock_k8s_client: MagicMock) -> None:
        """Should return default namespace when None provided."""
        manager = K8sBaseManager(mock_k8s_client)

        assert manager._resolve_namespace(None) == "default"

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_request_options_carry_client_timeout(self, mock_k8s_client: MagicMock) -> None:
        """Every API call is bounded by the configured cluster timeout."""
        mock_k8s_client.timeout = 7
        manager = K8sBaseManager(mock_k8s_client)

        assert manager._request_options == {"_request_timeout": 7}

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_to_dict_delegates_to_client(self, mock_k8s_client: MagicMock) -> None:
        """Should serialize through the client."""
        manager = K8sBaseManager(mock_k8s_client)
        obj = {"metadata": {"name": "x"}}

        assert manager._to_dict(obj) is obj
        mock_k8s_client.to_dict.assert_called_once_with(obj)

    @pytest.mark.unit
    @pytest.mark.kubernetes
    def test_handle_api_error_raises_translated(self, mock_k8s_client: MagicMock) -> None:
        """Should raise whatever the client translates the error into."""
        manager = K8sBaseManager(mock_k8s_client)
        original = Exception("API error")
        translated = KubernetesNotFoundError(resource_type="Pod", resource_name="p")
        mock_k8s_client.translate_api_exception.return_value = translated

        with pytest.raises(KubernetesNotFoundError) as exc_info:
            manager._handle_api_error(original, "Pod", "p", "ns1")

        assert exc_info.value is translated
        mock_k8s_client.translate_api_exception.assert_called_once_with(
            original, resource_type="Pod", resource_name="p", namespace="ns1"
        )
