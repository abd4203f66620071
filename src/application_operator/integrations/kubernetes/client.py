"""Kubernetes API client wrapper.

Wraps the official kubernetes Python client with configuration loading,
lazy API group initialization, retry logic, and consistent error translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from application_operator.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import (
        ApiClient,
        AppsV1Api,
        CoreV1Api,
        CustomObjectsApi,
        NetworkingV1Api,
    )

    from application_operator.integrations.kubernetes.config import OperatorConfig

logger = structlog.get_logger()


class KubernetesClient:
    """Cluster API client used by the operator.

    Wraps the official kubernetes Python client with:
    - In-cluster or kubeconfig loading
    - Lazy API group initialization
    - Automatic retry with tenacity for transient connection errors
    - Consistent error translation to custom exceptions
    - Context manager support

    Example:
        ```python
        from application_operator.integrations.kubernetes import KubernetesClient
        from application_operator.integrations.kubernetes.config import OperatorConfig

        with KubernetesClient(OperatorConfig.from_env()) as client:
            apps = client.custom_objects.list_cluster_custom_object(
                "apps.example.com", "v1alpha1", "applications"
            )
        ```
    """

    def __init__(self, operator_config: OperatorConfig) -> None:
        """Initialize the client and load cluster credentials.

        Args:
            operator_config: Complete operator configuration.
        """
        self._config = operator_config
        self._retries = operator_config.retry_attempts
        self._current_context: str | None = None

        self._api_client: ApiClient | None = None
        self._core_v1: CoreV1Api | None = None
        self._apps_v1: AppsV1Api | None = None
        self._networking_v1: NetworkingV1Api | None = None
        self._custom_objects: CustomObjectsApi | None = None

        self._load_config()

        logger.info(
            "kubernetes_client_initialized",
            context=self._current_context,
            watch_namespace=operator_config.controller.watch_namespace,
        )

    def _load_config(self) -> None:
        """Load configuration from the pod service account or a kubeconfig."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        cluster_cfg = self._config.cluster

        if cluster_cfg.in_cluster:
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as e:
                raise KubernetesConnectionError(
                    message="In-cluster configuration requested but not available.",
                    original_error=e,
                ) from e
            self._invalidate_api_cache()
            return

        try:
            config.load_kube_config(
                config_file=cluster_cfg.kubeconfig,
                context=cluster_cfg.context,
            )
            self._current_context = cluster_cfg.context or "default"
            logger.debug(
                "loaded_kubeconfig",
                context=cluster_cfg.context,
                kubeconfig=cluster_cfg.kubeconfig,
            )
        except ConfigException:
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as e:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=e,
                ) from e

        self._invalidate_api_cache()

    def _invalidate_api_cache(self) -> None:
        """Clear cached API group instances."""
        self._api_client = None
        self._core_v1 = None
        self._apps_v1 = None
        self._networking_v1 = None
        self._custom_objects = None

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def api_client(self) -> ApiClient:
        """Shared ApiClient, also used for serialization."""
        if self._api_client is None:
            from kubernetes.client import ApiClient

            self._api_client = ApiClient()
        return self._api_client

    @property
    def core_v1(self) -> CoreV1Api:
        """CoreV1Api (configmaps, secrets, services)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api(self.api_client)
        return self._core_v1

    @property
    def apps_v1(self) -> AppsV1Api:
        """AppsV1Api (deployments)."""
        if self._apps_v1 is None:
            from kubernetes.client import AppsV1Api

            self._apps_v1 = AppsV1Api(self.api_client)
        return self._apps_v1

    @property
    def networking_v1(self) -> NetworkingV1Api:
        """NetworkingV1Api (ingresses)."""
        if self._networking_v1 is None:
            from kubernetes.client import NetworkingV1Api

            self._networking_v1 = NetworkingV1Api(self.api_client)
        return self._networking_v1

    @property
    def custom_objects(self) -> CustomObjectsApi:
        """CustomObjectsApi (Applications, cert-manager ClusterIssuers)."""
        if self._custom_objects is None:
            from kubernetes.client import CustomObjectsApi

            self._custom_objects = CustomObjectsApi(self.api_client)
        return self._custom_objects

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self, obj: Any) -> dict[str, Any]:
        """Serialize an SDK model into its camelCase wire representation.

        Custom objects already arrive as dicts and are returned unchanged.
        """
        if obj is None:
            return {}
        if isinstance(obj, dict):
            return obj
        result: dict[str, Any] = self.api_client.sanitize_for_serialization(obj)
        return result

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException to a custom exception.

        Args:
            e: The original ApiException.
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException
        from urllib3.exceptions import HTTPError

        if isinstance(e, KubernetesError):
            return e

        if isinstance(e, HTTPError):
            return KubernetesConnectionError(
                message=f"Kubernetes API unreachable: {e}",
                original_error=e,
            )

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
                reason=e.reason,
            )

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Validation failed",
                status_code=status,
            )

        if status is not None and status >= 500:
            return KubernetesConnectionError(
                message=e.reason or f"Kubernetes API server error: {status}",
                original_error=e,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Retry Decorator
    # =========================================================================

    def make_retry_decorator(self) -> Any:
        """Create a retry decorator for transient connection errors.

        Returns:
            A tenacity retry decorator configured with exponential backoff.
        """
        return retry(
            retry=retry_if_exception_type(KubernetesConnectionError),
            stop=stop_after_attempt(self._retries),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            reraise=True,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def default_namespace(self) -> str:
        """Namespace used when a caller does not pass one."""
        return self._config.controller.watch_namespace or "default"

    @property
    def timeout(self) -> int:
        """Request timeout in seconds."""
        return self._config.cluster.timeout

    def get_current_context(self) -> str:
        """Get the active context name, or 'in-cluster'."""
        return self._current_context or "unknown"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release resources."""
        if self._api_client is not None:
            self._api_client.close()
        self._invalidate_api_cache()
        logger.debug("kubernetes_client_closed")

    def __enter__(self) -> KubernetesClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
