"""Reconcile command: run a single pass for one Application."""

from __future__ import annotations

import typer
from rich.table import Table

from application_operator.cli.commands.base import (
    ConfigOption,
    apply_config_logging,
    console,
    handle_k8s_error,
    load_config,
)
from application_operator.controller.exceptions import InvalidApplicationError, ReconcileError
from application_operator.controller.metrics import ReconcileMetrics
from application_operator.controller.reconciler import ApplicationReconciler, ReconcileRequest
from application_operator.controller.results import ApplyOutcome, ReconcileReport
from application_operator.integrations.kubernetes.client import KubernetesClient
from application_operator.integrations.kubernetes.exceptions import KubernetesError

_OUTCOME_STYLES = {
    ApplyOutcome.CREATED: "green",
    ApplyOutcome.UPDATED: "yellow",
    ApplyOutcome.DELETED: "magenta",
    ApplyOutcome.UNCHANGED: "dim",
    ApplyOutcome.FAILED: "red",
}


def _print_report(title: str, report: ReconcileReport) -> None:
    table = Table(title=title)
    table.add_column("Kind", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Outcome")
    table.add_column("Reason", style="dim")
    for step in report.steps:
        style = _OUTCOME_STYLES[step.outcome]
        outcome = f"[{style}]{step.outcome.value}[/{style}]"
        table.add_row(step.kind, step.name, outcome, step.reason or "")
    console.print(table)


def reconcile(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Application name."),
    namespace: str = typer.Option(
        "default",
        "--namespace",
        "-n",
        help="Namespace of the Application.",
    ),
    config_file: ConfigOption = None,
) -> None:
    """Reconcile one Application once and print what changed."""
    config = load_config(config_file)
    apply_config_logging(ctx, config)
    request = ReconcileRequest(namespace=namespace, name=name)

    try:
        client = KubernetesClient(config)
    except KubernetesError as e:
        handle_k8s_error(e)
        return

    reconciler = ApplicationReconciler(client, config.controller, ReconcileMetrics())
    with client:
        try:
            result = reconciler.reconcile(request)
        except InvalidApplicationError as e:
            console.print(f"[red]Error:[/red] Application {request} is invalid")
            for problem in e.problems:
                console.print(f"  - {problem}")
            raise typer.Exit(1) from e
        except ReconcileError as e:
            if e.report is not None:
                _print_report(f"Application {request}", e.report)
            if isinstance(e.cause, KubernetesError):
                handle_k8s_error(e.cause)
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e

    if not result.report.steps:
        console.print(f"[yellow]Application {request} not found.[/yellow]")
        return
    _print_report(f"Application {request}", result.report)
    if result.requeue_after is not None:
        console.print(f"[dim]Requeue requested in {result.requeue_after:g}s.[/dim]")
