"""Base models shared by custom resource models.

Custom resources are read through ``CustomObjectsApi``, which returns raw
``dict`` objects in their camelCase wire form, so ``from_k8s_object``
classmethods read with ``dict.get()``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ObjectMeta(BaseModel):
    """The subset of ``metadata`` the controller reads and writes."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: str = Field(description="Resource name")
    namespace: str | None = Field(default=None, description="Resource namespace")
    uid: str | None = Field(default=None, description="Kubernetes UID")
    resource_version: str | None = Field(default=None, description="Optimistic concurrency token")
    generation: int | None = Field(default=None, description="Spec generation")
    deletion_timestamp: str | None = Field(default=None, description="Set once deletion started")
    finalizers: list[str] = Field(default_factory=list, description="Deletion blockers")
    labels: dict[str, str] | None = Field(default=None, description="Resource labels")
    annotations: dict[str, str] | None = Field(default=None, description="Resource annotations")

    @classmethod
    def from_k8s_object(cls, metadata: dict[str, Any]) -> ObjectMeta:
        """Create from a ``metadata`` dict."""
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace"),
            uid=metadata.get("uid"),
            resource_version=metadata.get("resourceVersion"),
            generation=metadata.get("generation"),
            deletion_timestamp=_get_timestamp(metadata.get("deletionTimestamp")),
            finalizers=list(metadata.get("finalizers") or []),
            labels=metadata.get("labels") or None,
            annotations=metadata.get("annotations") or None,
        )


class Condition(BaseModel):
    """Status condition as found in ``.status.conditions[]``."""

    model_config = ConfigDict(extra="ignore")

    type: str = Field(default="", description="Condition type (Available, Ready, ...)")
    status: str = Field(default="Unknown", description="Condition status (True, False, Unknown)")
    reason: str = Field(default="", description="Machine-readable reason")
    message: str | None = Field(default=None, description="Human-readable message")
    last_transition_time: str | None = Field(default=None, description="Last transition timestamp")
    observed_generation: int | None = Field(default=None, description="Generation observed")

    @classmethod
    def from_k8s_object(cls, obj: dict[str, Any]) -> Condition:
        """Create from a condition dict."""
        return cls(
            type=obj.get("type", ""),
            status=obj.get("status", "Unknown"),
            reason=obj.get("reason", ""),
            message=obj.get("message"),
            last_transition_time=_get_timestamp(obj.get("lastTransitionTime")),
            observed_generation=obj.get("observedGeneration"),
        )

    def to_k8s_object(self) -> dict[str, Any]:
        """Render back to the wire form (metav1.Condition)."""
        body: dict[str, Any] = {
            "type": self.type,
            "status": self.status,
            "reason": self.reason,
            "message": self.message or "",
            "lastTransitionTime": self.last_transition_time or utc_now_rfc3339(),
        }
        if self.observed_generation is not None:
            body["observedGeneration"] = self.observed_generation
        return body


def parse_conditions(status: dict[str, Any] | None) -> list[Condition]:
    """Parse ``.status.conditions`` into a list of Condition."""
    raw: list[dict[str, Any]] = (status or {}).get("conditions") or []
    return [Condition.from_k8s_object(c) for c in raw]


def utc_now_rfc3339() -> str:
    """Current UTC time as a compact RFC 3339 string, e.g. ``2026-01-15T08:30:00Z``."""
    return datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def _get_timestamp(obj: Any) -> str | None:
    """Extract ISO timestamp string from a datetime or string."""
    if obj is None:
        return None
    if isinstance(obj, str):
        return obj
    if isinstance(obj, datetime):
        return obj.isoformat()
    return str(obj)
