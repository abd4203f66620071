"""Unit tests for step results and reports."""

from __future__ import annotations

import pytest

from application_operator.controller.results import (
    ApplyOutcome,
    ApplyResult,
    ReconcileReport,
    ReconcileResult,
)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestApplyResult:
    """Test ApplyResult."""

    @pytest.mark.parametrize(
        ("outcome", "changed"),
        [
            (ApplyOutcome.CREATED, True),
            (ApplyOutcome.UPDATED, True),
            (ApplyOutcome.DELETED, True),
            (ApplyOutcome.UNCHANGED, False),
            (ApplyOutcome.FAILED, False),
        ],
    )
    def test_changed(self, outcome: ApplyOutcome, changed: bool) -> None:
        assert ApplyResult("ConfigMap", "demo-config", outcome).changed is changed

    def test_failed_carries_reason(self) -> None:
        result = ApplyResult.failed("Service", "demo-service", "conflict")
        assert result.outcome == ApplyOutcome.FAILED
        assert result.reason == "conflict"

    def test_outcome_is_string_valued(self) -> None:
        assert ApplyOutcome.UNCHANGED == "unchanged"


@pytest.mark.unit
@pytest.mark.kubernetes
class TestReconcileReport:
    """Test ReconcileReport."""

    def test_record_and_summary(self) -> None:
        report = ReconcileReport()
        report.record(ApplyResult("ConfigMap", "demo-config", ApplyOutcome.CREATED))
        report.record(ApplyResult("Secret", "demo-secret", ApplyOutcome.UNCHANGED))

        assert report.changed is True
        assert report.summary() == {
            "ConfigMap/demo-config": "created",
            "Secret/demo-secret": "unchanged",
        }

    def test_unchanged_report(self) -> None:
        report = ReconcileReport([ApplyResult("Secret", "s", ApplyOutcome.UNCHANGED)])
        assert report.changed is False


@pytest.mark.unit
@pytest.mark.kubernetes
class TestReconcileResult:
    def test_requeue(self) -> None:
        assert ReconcileResult().requeue is False
        assert ReconcileResult(requeue_after=30.0).requeue is True
