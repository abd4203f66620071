"""Base manager for Kubernetes resource managers.

Provides shared infrastructure for all managers: client access, namespace
resolution, serialization to wire dicts, and error translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, NoReturn

import structlog

if TYPE_CHECKING:
    from application_operator.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()


class K8sBaseManager:
    """Base class for Kubernetes resource managers.

    Provides shared concerns for all managers:
    - Client reference and API group access
    - Structured logging with entity binding
    - Namespace resolution with config fallback
    - Conversion of SDK models to camelCase dicts
    - Consistent API error translation

    Managers return plain wire-form dicts so that callers compare desired
    and live state without caring whether an object came from a typed API
    or from ``CustomObjectsApi``.

    Subclasses set ``_entity_name`` for structured log context.

    Example:
        >>> class WorkloadManager(K8sBaseManager):
        ...     _entity_name = "workload"
    """

    _entity_name: str = ""

    def __init__(self, client: KubernetesClient) -> None:
        """Initialize the manager.

        Args:
            client: Kubernetes API client instance.
        """
        self._client = client
        self._log = logger.bind(entity=self._entity_name)

    @property
    def _request_options(self) -> dict[str, Any]:
        """Keyword arguments passed to every generated API call.

        ``_request_timeout`` bounds each request by ``ClusterConfig.timeout``
        so a stalled API server cannot hold a worker indefinitely.
        """
        return {"_request_timeout": self._client.timeout}

    def _resolve_namespace(self, namespace: str | None) -> str:
        """Resolve namespace, falling back to the client default."""
        return namespace or self._client.default_namespace

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        """Serialize an API response into its wire-form dict."""
        return self._client.to_dict(obj)

    def _handle_api_error(
        self,
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> NoReturn:
        """Translate a Kubernetes API exception and re-raise.

        Args:
            e: The original exception (typically ApiException).
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Raises:
            KubernetesError: Always raises an appropriate subclass.
        """
        raise self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )
