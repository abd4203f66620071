"""Kubernetes integration - API client, configuration and resource models."""

from application_operator.integrations.kubernetes.client import KubernetesClient
from application_operator.integrations.kubernetes.config import (
    ClusterConfig,
    ControllerConfig,
    OperatorConfig,
)
from application_operator.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
    KubernetesValidationError,
)

__all__ = [
    "ClusterConfig",
    "ControllerConfig",
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesTimeoutError",
    "KubernetesValidationError",
    "OperatorConfig",
]
