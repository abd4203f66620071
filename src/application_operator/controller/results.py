"""Outcomes of synchronizer steps and reconcile passes."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class ApplyOutcome(StrEnum):
    """What a single create-or-update (or delete-if-present) call did."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    FAILED = "failed"


@dataclass(frozen=True)
class ApplyResult:
    """Result of one step against one resource.

    Attributes:
        kind: Resource kind the step acted on.
        name: Resource name.
        outcome: What happened.
        reason: Failure reason, only set for ``FAILED``.
    """

    kind: str
    name: str
    outcome: ApplyOutcome
    reason: str | None = None

    @property
    def changed(self) -> bool:
        return self.outcome in (ApplyOutcome.CREATED, ApplyOutcome.UPDATED, ApplyOutcome.DELETED)

    @classmethod
    def failed(cls, kind: str, name: str, reason: str) -> ApplyResult:
        return cls(kind=kind, name=name, outcome=ApplyOutcome.FAILED, reason=reason)


@dataclass
class ReconcileReport:
    """Every step result of one reconcile pass, in execution order."""

    steps: list[ApplyResult] = field(default_factory=list)

    def record(self, result: ApplyResult) -> ApplyResult:
        self.steps.append(result)
        return result

    @property
    def changed(self) -> bool:
        return any(result.changed for result in self.steps)

    def summary(self) -> dict[str, str]:
        return {f"{r.kind}/{r.name}": r.outcome.value for r in self.steps}


@dataclass
class ReconcileResult:
    """What the work queue should do with the item after a pass.

    ``requeue_after`` is a delay in seconds; None means no scheduled retry.
    """

    requeue_after: float | None = None
    report: ReconcileReport = field(default_factory=ReconcileReport)

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None
