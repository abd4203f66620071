"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client.

    API group attributes (core_v1, apps_v1, networking_v1, custom_objects)
    are auto-created MagicMocks. ``timeout`` matches the ClusterConfig
    default. ``to_dict`` returns its argument, so API responses set as plain
    dicts come back unchanged.
    """
    mock_client = MagicMock()
    mock_client.default_namespace = "default"
    mock_client.timeout = 30
    mock_client.to_dict.side_effect = lambda obj: obj
    return mock_client
