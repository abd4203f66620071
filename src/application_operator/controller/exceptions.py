"""Controller exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from application_operator.controller.results import ReconcileReport


class ControllerError(Exception):
    """Base exception for reconcile failures."""


class InvalidApplicationError(ControllerError):
    """The Application spec cannot be applied as written.

    Not retried with backoff: nothing changes until the spec is edited,
    which produces a new watch event.
    """

    def __init__(self, name: str, namespace: str, problems: list[str]) -> None:
        self.name = name
        self.namespace = namespace
        self.problems = problems
        super().__init__(f"Application {namespace}/{name} is invalid: {'; '.join(problems)}")


class ReconcileCancelledError(ControllerError):
    """The pass stopped at a step boundary because shutdown was requested."""

    def __init__(self, step: str) -> None:
        self.step = step
        super().__init__(f"Reconcile cancelled before step '{step}'")


class ReconcileError(ControllerError):
    """A reconcile step failed; the remaining steps of the pass were skipped.

    Attributes:
        step: Name of the failing step.
        cause: The underlying exception.
        report: Step results up to and including the failure.
    """

    def __init__(
        self,
        step: str,
        cause: Exception,
        report: ReconcileReport | None = None,
    ) -> None:
        self.step = step
        self.cause = cause
        self.report = report
        super().__init__(f"Reconcile step '{step}' failed: {cause}")
