"""Shared fixtures for controller tests.

``FakeCluster`` stands in for ``KubernetesClient``: it exposes the API
group attributes the managers call, keeps objects as wire-form dicts and
follows the API server's optimistic concurrency rules closely enough for
the controller to be exercised end to end.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Callable
from typing import Any

import pytest
from kubernetes.client import ApiException

from application_operator.controller.metrics import ReconcileMetrics
from application_operator.integrations.kubernetes.client import KubernetesClient
from application_operator.integrations.kubernetes.config import ControllerConfig

Key = tuple[str, str, str]


def _merge_patch(target: Any, patch: Any) -> Any:
    """JSON merge patch (RFC 7386)."""
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = dict(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = _merge_patch(result.get(key), value)
    return result


def _without_version(obj: dict[str, Any]) -> dict[str, Any]:
    stripped = copy.deepcopy(obj)
    stripped.get("metadata", {}).pop("resourceVersion", None)
    return stripped


class FakeCluster:
    """In-memory object store with the client surface used by the managers."""

    default_namespace = "default"
    translate_api_exception = staticmethod(KubernetesClient.translate_api_exception)
    make_retry_decorator = KubernetesClient.make_retry_decorator
    _retries = 1
    timeout = 30

    def __init__(self) -> None:
        self.objects: dict[Key, dict[str, Any]] = {}
        self.writes: list[tuple[str, str, str, str]] = []
        self._failures: dict[tuple[str, str], ApiException] = {}
        self._versions = itertools.count(1)
        self._uids = itertools.count(1)

        self.core_v1 = _CoreV1(self)
        self.apps_v1 = _AppsV1(self)
        self.networking_v1 = _NetworkingV1(self)
        self.custom_objects = _CustomObjects(self)

    # =========================================================================
    # Client surface
    # =========================================================================

    def to_dict(self, obj: Any) -> dict[str, Any]:
        return obj if obj is not None else {}

    # =========================================================================
    # Test helpers
    # =========================================================================

    def get(self, kind: str, name: str, namespace: str = "") -> dict[str, Any] | None:
        obj = self.objects.get((kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def put(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        """Store ``obj`` as if it had been created by someone else."""
        obj = copy.deepcopy(obj)
        metadata = obj.setdefault("metadata", {})
        metadata.setdefault("uid", f"uid-{next(self._uids)}")
        metadata["resourceVersion"] = str(next(self._versions))
        self.objects[(kind, metadata.get("namespace", ""), metadata["name"])] = obj
        return copy.deepcopy(obj)

    def fail(self, verb: str, kind: str, status: int = 500, reason: str = "Boom") -> None:
        """Make every ``verb`` on ``kind`` fail with ``status`` until cleared."""
        self._failures[(verb, kind)] = ApiException(status=status, reason=reason)

    def clear_failures(self) -> None:
        self._failures.clear()

    def writes_of(self, kind: str) -> list[tuple[str, str, str, str]]:
        return [w for w in self.writes if w[1] == kind]

    def mutations(self) -> list[tuple[str, str, str, str]]:
        """Writes that are not server-side applies (those are sent on every pass)."""
        return [w for w in self.writes if w[0] != "apply"]

    def set_issuer_ready(self, name: str, ready: bool = True) -> None:
        issuer = self.objects[("ClusterIssuer", "", name)]
        issuer["status"] = {
            "conditions": [{"type": "Ready", "status": "True" if ready else "False"}]
        }
        issuer["metadata"]["resourceVersion"] = str(next(self._versions))

    def mark_deleting(self, kind: str, name: str, namespace: str) -> None:
        obj = self.objects[(kind, namespace, name)]
        if not obj["metadata"].get("finalizers"):
            del self.objects[(kind, namespace, name)]
            return
        obj["metadata"]["deletionTimestamp"] = "2026-01-01T00:00:00Z"

    # =========================================================================
    # Store operations
    # =========================================================================

    def _check(self, verb: str, kind: str) -> None:
        failure = self._failures.get((verb, kind))
        if failure is not None:
            raise failure

    def _read(self, kind: str, namespace: str, name: str) -> dict[str, Any]:
        self._check("get", kind)
        obj = self.objects.get((kind, namespace, name))
        if obj is None:
            raise ApiException(status=404, reason="Not Found")
        return copy.deepcopy(obj)

    def _list(self, kind: str, namespace: str | None) -> dict[str, Any]:
        self._check("list", kind)
        items = [
            copy.deepcopy(obj)
            for (k, ns, _), obj in sorted(self.objects.items())
            if k == kind and (namespace is None or ns == namespace)
        ]
        return {"metadata": {"resourceVersion": str(next(self._versions))}, "items": items}

    def _create(self, kind: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        self._check("create", kind)
        obj = copy.deepcopy(body)
        metadata = obj.setdefault("metadata", {})
        name = metadata["name"]
        if (kind, namespace, name) in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        if namespace:
            metadata["namespace"] = namespace
        metadata["uid"] = f"uid-{next(self._uids)}"
        metadata["resourceVersion"] = str(next(self._versions))
        if kind == "Service":
            obj.setdefault("spec", {})["clusterIP"] = "10.96.0.10"
        self.objects[(kind, namespace, name)] = obj
        self.writes.append(("create", kind, namespace, name))
        return copy.deepcopy(obj)

    def _store(self, kind: str, namespace: str, name: str, new: dict[str, Any]) -> dict[str, Any]:
        """Persist ``new``, bumping the version only when content changed."""
        key = (kind, namespace, name)
        current = self.objects[key]
        if _without_version(new) != _without_version(current):
            new["metadata"]["resourceVersion"] = str(next(self._versions))
        else:
            new["metadata"]["resourceVersion"] = current["metadata"]["resourceVersion"]
        metadata = new["metadata"]
        if metadata.get("deletionTimestamp") and not metadata.get("finalizers"):
            del self.objects[key]
        else:
            self.objects[key] = new
        return copy.deepcopy(new)

    def _replace(
        self, kind: str, namespace: str, name: str, body: dict[str, Any]
    ) -> dict[str, Any]:
        self._check("replace", kind)
        current = self._read(kind, namespace, name)
        sent = (body.get("metadata") or {}).get("resourceVersion")
        if sent != current["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")
        new = copy.deepcopy(body)
        new["metadata"]["uid"] = current["metadata"]["uid"]
        if "status" in current:
            new["status"] = current["status"]
        self.writes.append(("replace", kind, namespace, name))
        return self._store(kind, namespace, name, new)

    def _patch(
        self,
        kind: str,
        namespace: str,
        name: str,
        patch: dict[str, Any],
        verb: str = "patch",
    ) -> dict[str, Any]:
        self._check(verb, kind)
        current = self._read(kind, namespace, name)
        patch = copy.deepcopy(patch)
        sent = (patch.get("metadata") or {}).pop("resourceVersion", None)
        if sent is not None and sent != current["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")
        self.writes.append((verb, kind, namespace, name))
        return self._store(kind, namespace, name, _merge_patch(current, patch))

    def _apply(self, kind: str, namespace: str, body: dict[str, Any]) -> dict[str, Any]:
        self._check("apply", kind)
        name = body["metadata"]["name"]
        self.writes.append(("apply", kind, namespace, name))
        current = self.objects.get((kind, namespace, name))
        if current is None:
            obj = copy.deepcopy(body)
            obj["spec"].setdefault("replicas", 1)
            obj["metadata"]["namespace"] = namespace
            obj["metadata"]["uid"] = f"uid-{next(self._uids)}"
            obj["metadata"]["resourceVersion"] = str(next(self._versions))
            self.objects[(kind, namespace, name)] = obj
            return copy.deepcopy(obj)
        new = _merge_patch(current, body)
        if "replicas" not in body.get("spec", {}):
            new["spec"]["replicas"] = current["spec"].get("replicas", 1)
        return self._store(kind, namespace, name, new)

    def _delete(self, kind: str, namespace: str, name: str) -> None:
        self._check("delete", kind)
        if (kind, namespace, name) not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        del self.objects[(kind, namespace, name)]
        self.writes.append(("delete", kind, namespace, name))


class _CoreV1:
    def __init__(self, cluster: FakeCluster) -> None:
        self._c = cluster

    def read_namespaced_config_map(
        self, name: str, namespace: str, **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._read("ConfigMap", namespace, name)

    def create_namespaced_config_map(
        self, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._create("ConfigMap", namespace, body)

    def replace_namespaced_config_map(
        self, name: str, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._replace("ConfigMap", namespace, name, body)

    def delete_namespaced_config_map(self, name: str, namespace: str, **kwargs: Any) -> None:
        self._c._delete("ConfigMap", namespace, name)

    def read_namespaced_secret(self, name: str, namespace: str, **kwargs: Any) -> dict[str, Any]:
        return self._c._read("Secret", namespace, name)

    def create_namespaced_secret(
        self, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._create("Secret", namespace, body)

    def replace_namespaced_secret(
        self, name: str, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._replace("Secret", namespace, name, body)

    def delete_namespaced_secret(self, name: str, namespace: str, **kwargs: Any) -> None:
        self._c._delete("Secret", namespace, name)

    def read_namespaced_service(self, name: str, namespace: str, **kwargs: Any) -> dict[str, Any]:
        return self._c._read("Service", namespace, name)

    def create_namespaced_service(
        self, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._create("Service", namespace, body)

    def replace_namespaced_service(
        self, name: str, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._replace("Service", namespace, name, body)

    def delete_namespaced_service(self, name: str, namespace: str, **kwargs: Any) -> None:
        self._c._delete("Service", namespace, name)


class _AppsV1:
    def __init__(self, cluster: FakeCluster) -> None:
        self._c = cluster

    def read_namespaced_deployment(
        self, name: str, namespace: str, **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._read("Deployment", namespace, name)

    def patch_namespaced_deployment(
        self, name: str, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._apply("Deployment", namespace, body)


class _NetworkingV1:
    def __init__(self, cluster: FakeCluster) -> None:
        self._c = cluster

    def read_namespaced_ingress(self, name: str, namespace: str, **kwargs: Any) -> dict[str, Any]:
        return self._c._read("Ingress", namespace, name)

    def create_namespaced_ingress(
        self, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._create("Ingress", namespace, body)

    def replace_namespaced_ingress(
        self, name: str, namespace: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._replace("Ingress", namespace, name, body)

    def delete_namespaced_ingress(self, name: str, namespace: str, **kwargs: Any) -> None:
        self._c._delete("Ingress", namespace, name)


class _CustomObjects:
    """Applications (namespaced) and ClusterIssuers (cluster scoped)."""

    _KINDS = {"applications": "Application", "clusterissuers": "ClusterIssuer"}

    def __init__(self, cluster: FakeCluster) -> None:
        self._c = cluster

    def get_namespaced_custom_object(
        self, group: str, version: str, namespace: str, plural: str, name: str, **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._read(self._KINDS[plural], namespace, name)

    def list_namespaced_custom_object(
        self, group: str, version: str, namespace: str, plural: str, **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._list(self._KINDS[plural], namespace)

    def list_cluster_custom_object(
        self, group: str, version: str, plural: str, **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._list(self._KINDS[plural], None)

    def patch_namespaced_custom_object(
        self,
        group: str,
        version: str,
        namespace: str,
        plural: str,
        name: str,
        body: dict[str, Any],
        **kwargs: Any,
    ) -> dict[str, Any]:
        return self._c._patch(self._KINDS[plural], namespace, name, body)

    def patch_namespaced_custom_object_status(
        self,
        group: str,
        version: str,
        namespace: str,
        plural: str,
        name: str,
        body: dict[str, Any],
        **kwargs: Any,
    ) -> dict[str, Any]:
        return self._c._patch(self._KINDS[plural], namespace, name, body, verb="status")

    def get_cluster_custom_object(
        self, group: str, version: str, plural: str, name: str, **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._read(self._KINDS[plural], "", name)

    def create_cluster_custom_object(
        self, group: str, version: str, plural: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._create(self._KINDS[plural], "", body)

    def patch_cluster_custom_object(
        self, group: str, version: str, plural: str, name: str, body: dict[str, Any], **kwargs: Any
    ) -> dict[str, Any]:
        return self._c._patch(self._KINDS[plural], "", name, body)

    def delete_cluster_custom_object(
        self, group: str, version: str, plural: str, name: str, **kwargs: Any
    ) -> None:
        self._c._delete(self._KINDS[plural], "", name)


# =============================================================================
# Fixtures
# =============================================================================

DEMO_SPEC: dict[str, Any] = {
    "image": "x:1",
    "containerPort": 8080,
    "envVars": [{"name": "CM_MODE", "value": "prod"}],
    "service": {"port": 80},
    "ingress": {"host": "demo.example.com", "path": "/"},
}

_TLS_SPEC: dict[str, Any] = {
    "enable": True,
    "issuer": {
        "acmeIssuer": {
            "email": "ops@example.com",
            "server": "https://acme.example/directory",
            "privateKeySecretRef": {"name": "demo-tls"},
        }
    },
}


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def controller_config() -> ControllerConfig:
    return ControllerConfig()


@pytest.fixture
def tls_spec() -> dict[str, Any]:
    """A TLS section requesting an ACME issuer with secret ``demo-tls``."""
    return copy.deepcopy(_TLS_SPEC)


@pytest.fixture
def metrics() -> ReconcileMetrics:
    return ReconcileMetrics()


@pytest.fixture
def make_application(cluster: FakeCluster) -> Callable[..., dict[str, Any]]:
    """Store an Application and return it as stored.

    Defaults to the ``demo`` Application in ``ns1``; keyword arguments
    replace top-level spec fields. Calling it again for a stored Application
    replaces its spec and keeps metadata and status.
    """

    def _make(
        name: str = "demo",
        namespace: str = "ns1",
        spec: dict[str, Any] | None = None,
        finalizers: list[str] | None = None,
        **overrides: Any,
    ) -> dict[str, Any]:
        body_spec = copy.deepcopy(DEMO_SPEC if spec is None else spec)
        body_spec.update(overrides)
        existing = cluster.get("Application", name, namespace)
        if existing is not None:
            existing["spec"] = body_spec
            if finalizers is not None:
                existing["metadata"]["finalizers"] = finalizers
            existing["metadata"]["generation"] = existing["metadata"].get("generation", 1) + 1
            return cluster.put("Application", existing)
        metadata: dict[str, Any] = {"name": name, "namespace": namespace, "generation": 1}
        if finalizers is not None:
            metadata["finalizers"] = finalizers
        return cluster.put(
            "Application",
            {
                "apiVersion": "apps.example.com/v1alpha1",
                "kind": "Application",
                "metadata": metadata,
                "spec": body_spec,
            },
        )

    return _make
