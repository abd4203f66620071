"""Application controller: reconciler, work queue and controller manager."""

from application_operator.controller.exceptions import (
    ControllerError,
    InvalidApplicationError,
    ReconcileCancelledError,
    ReconcileError,
)
from application_operator.controller.manager import ControllerManager
from application_operator.controller.metrics import ReconcileMetrics
from application_operator.controller.queue import WorkQueue
from application_operator.controller.reconciler import ApplicationReconciler, ReconcileRequest
from application_operator.controller.results import (
    ApplyOutcome,
    ApplyResult,
    ReconcileReport,
    ReconcileResult,
)
from application_operator.controller.tls import TLSProvisioner, TLSState

__all__ = [
    "ApplicationReconciler",
    "ApplyOutcome",
    "ApplyResult",
    "ControllerError",
    "ControllerManager",
    "InvalidApplicationError",
    "ReconcileCancelledError",
    "ReconcileError",
    "ReconcileMetrics",
    "ReconcileReport",
    "ReconcileRequest",
    "ReconcileResult",
    "TLSProvisioner",
    "TLSState",
    "WorkQueue",
]
