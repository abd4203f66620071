"""Base class for resource synchronizers.

A synchronizer computes the desired shape of one child resource from an
Application and converges the cluster onto it. Every call is safe to
repeat: with no spec change it performs no write.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from application_operator.controller.naming import MANAGED_ANNOTATIONS, managed_labels
from application_operator.controller.results import ApplyOutcome, ApplyResult
from application_operator.integrations.kubernetes.exceptions import KubernetesNotFoundError

if TYPE_CHECKING:
    from application_operator.integrations.kubernetes.client import KubernetesClient
    from application_operator.integrations.kubernetes.config import ControllerConfig
    from application_operator.integrations.kubernetes.models.application import Application

logger = structlog.get_logger()


class ResourceSynchronizer:
    """Converges one kind of managed child resource.

    Subclasses set ``kind`` and implement :meth:`sync`.
    """

    kind: str = ""

    def __init__(self, client: KubernetesClient, controller_config: ControllerConfig) -> None:
        self._client = client
        self._controller_config = controller_config
        self._log = logger.bind(kind=self.kind)

    def sync(self, app: Application) -> ApplyResult:
        """Converge the child resource for ``app``."""
        raise NotImplementedError

    # =========================================================================
    # Helpers
    # =========================================================================

    def _owned_metadata(self, app: Application, name: str) -> dict[str, Any]:
        """Metadata of a freshly built child: name, labels and owner reference."""
        return {
            "name": name,
            "namespace": app.namespace,
            "labels": managed_labels(app.name),
            "ownerReferences": [app.owner_reference()],
        }

    def _ensure_ownership(self, live: dict[str, Any], app: Application) -> bool:
        """Bring labels and owner references of ``live`` in line, in place.

        Foreign labels are kept. The owner reference list is reset to the
        single controller reference of ``app``.

        Returns:
            True when ``live`` was modified.
        """
        changed = False
        metadata = live.setdefault("metadata", {})
        labels: dict[str, str] = dict(metadata.get("labels") or {})
        for key, value in managed_labels(app.name).items():
            if labels.get(key) != value:
                labels[key] = value
                changed = True
        metadata["labels"] = labels

        owner_refs = [app.owner_reference()]
        if _normalise_owner_refs(metadata.get("ownerReferences")) != owner_refs:
            metadata["ownerReferences"] = owner_refs
            changed = True
        return changed

    def _owned_annotations(self, desired: dict[str, str]) -> dict[str, str]:
        """Annotations of a freshly built child, tagged with the keys written."""
        if not desired:
            return {}
        return {**desired, MANAGED_ANNOTATIONS: ",".join(sorted(desired))}

    def _converge_annotations(self, live: dict[str, Any], desired: dict[str, str]) -> bool:
        """Merge ``desired`` into the annotations of ``live``, in place.

        Annotations set by anyone else are kept. A key the operator wrote on
        an earlier pass, recorded under ``MANAGED_ANNOTATIONS``, is removed
        once ``desired`` no longer names it.

        Returns:
            True when ``live`` was modified.
        """
        metadata = live.setdefault("metadata", {})
        current: dict[str, str] = dict(metadata.get("annotations") or {})
        merged = dict(current)
        previous = merged.pop(MANAGED_ANNOTATIONS, "")
        for key in previous.split(","):
            if key and key not in desired:
                merged.pop(key, None)
        merged.update(self._owned_annotations(desired))
        if merged == current:
            return False
        metadata["annotations"] = merged
        return True

    def _get_or_none(
        self,
        getter: Callable[[str, str], dict[str, Any]],
        name: str,
        namespace: str,
    ) -> dict[str, Any] | None:
        try:
            return getter(name, namespace)
        except KubernetesNotFoundError:
            return None

    def _delete_if_present(
        self,
        deleter: Callable[[str, str], None],
        app: Application,
        name: str,
    ) -> ApplyResult:
        """Delete a child, treating an already absent one as success."""
        try:
            deleter(name, app.namespace)
        except KubernetesNotFoundError:
            return self._result(name, ApplyOutcome.UNCHANGED)
        return self._changed(app, name, ApplyOutcome.DELETED)

    def _result(self, name: str, outcome: ApplyOutcome) -> ApplyResult:
        return ApplyResult(kind=self.kind, name=name, outcome=outcome)

    def _changed(self, app: Application, name: str, outcome: ApplyOutcome) -> ApplyResult:
        """Build a result for a write and log it."""
        self._log.info(
            "resource_reconciled",
            application=app.name,
            namespace=app.namespace,
            name=name,
            operation=outcome.value,
        )
        return self._result(name, outcome)


def _normalise_owner_refs(refs: Any) -> list[dict[str, Any]]:
    """Owner references with server defaults dropped, for comparison."""
    normalised: list[dict[str, Any]] = []
    for ref in refs or []:
        normalised.append(
            {
                "apiVersion": ref.get("apiVersion"),
                "kind": ref.get("kind"),
                "name": ref.get("name"),
                "uid": ref.get("uid"),
                "controller": bool(ref.get("controller")),
                "blockOwnerDeletion": bool(ref.get("blockOwnerDeletion")),
            }
        )
    return normalised
