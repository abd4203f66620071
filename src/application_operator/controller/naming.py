"""Derived names, labels and routing prefixes.

Child and issuer names are part of the operator's external contract and
must not change between releases.
"""

from __future__ import annotations

FINALIZER = "apps.example.com/finalizer"
# Comma-separated keys of the annotations the operator wrote on a child
MANAGED_ANNOTATIONS = "apps.example.com/managed-annotations"
MANAGED_BY = "application-operator"

CONFIG_MAP_PREFIX = "CM_"
SECRET_PREFIX = "SEC_"

_ISSUER_PREFIX = "app-"
_ISSUER_SUFFIX = "-issuer"


def config_map_name(app_name: str) -> str:
    return f"{app_name}-config"


def secret_name(app_name: str) -> str:
    return f"{app_name}-secret"


def deployment_name(app_name: str) -> str:
    return f"{app_name}-deployment"


def service_name(app_name: str) -> str:
    return f"{app_name}-service"


def ingress_name(app_name: str) -> str:
    return f"{app_name}-ingress"


def issuer_name(namespace: str) -> str:
    """Name of the ClusterIssuer shared by every Application in ``namespace``."""
    return f"{_ISSUER_PREFIX}{namespace}{_ISSUER_SUFFIX}"


def namespace_from_issuer_name(name: str) -> str | None:
    """Invert :func:`issuer_name`, None for issuers the operator did not name."""
    if not (name.startswith(_ISSUER_PREFIX) and name.endswith(_ISSUER_SUFFIX)):
        return None
    namespace = name[len(_ISSUER_PREFIX) : -len(_ISSUER_SUFFIX)]
    return namespace or None


def managed_labels(app_name: str) -> dict[str, str]:
    """Labels carried by every managed child, also used as the pod selector."""
    return {"app": app_name, "managed": MANAGED_BY}
