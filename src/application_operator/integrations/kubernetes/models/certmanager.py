"""Cert-manager ClusterIssuer model.

The controller only needs the ACME email/server, the private key secret
reference and the status conditions of the issuer it provisions.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from application_operator.integrations.kubernetes.models.base import (
    Condition,
    ObjectMeta,
    parse_conditions,
)


class ClusterIssuerSummary(BaseModel):
    """A cert-manager ClusterIssuer as observed in the cluster."""

    model_config = ConfigDict(extra="ignore")

    metadata: ObjectMeta
    acme: dict[str, Any] = Field(default_factory=dict, description="Raw spec.acme block")
    conditions: list[Condition] = Field(default_factory=list, description="Status conditions")

    @classmethod
    def from_k8s_object(cls, obj: dict[str, Any]) -> ClusterIssuerSummary:
        """Create from a ClusterIssuer custom object dict."""
        spec: dict[str, Any] = obj.get("spec") or {}
        return cls(
            metadata=ObjectMeta.from_k8s_object(obj.get("metadata", {})),
            acme=dict(spec.get("acme") or {}),
            conditions=parse_conditions(obj.get("status")),
        )

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def email(self) -> str:
        return str(self.acme.get("email") or "")

    @property
    def server(self) -> str:
        return str(self.acme.get("server") or "")

    @property
    def ready(self) -> bool:
        """Readiness as judged by the first reported condition."""
        return bool(self.conditions) and self.conditions[0].status == "True"
