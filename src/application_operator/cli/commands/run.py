"""Run command: start the controller until interrupted."""

from __future__ import annotations

import signal
from types import FrameType

import typer
from prometheus_client import start_http_server

from application_operator.cli.commands.base import (
    ConfigOption,
    NamespaceOption,
    apply_config_logging,
    console,
    handle_k8s_error,
    load_config,
)
from application_operator.controller.manager import ControllerManager
from application_operator.controller.metrics import ReconcileMetrics
from application_operator.integrations.kubernetes.client import KubernetesClient
from application_operator.integrations.kubernetes.exceptions import KubernetesError
from application_operator.logging import get_logger


def run(
    ctx: typer.Context,
    config_file: ConfigOption = None,
    namespace: NamespaceOption = None,
    workers: int | None = typer.Option(
        None,
        "--workers",
        "-w",
        min=1,
        help="Maximum concurrent reconciles (default 2).",
    ),
    metrics_port: int | None = typer.Option(
        None,
        "--metrics-port",
        help="Port of the Prometheus endpoint, 0 to disable.",
    ),
) -> None:
    """Watch Applications and reconcile them until SIGINT or SIGTERM."""
    config = load_config(
        config_file,
        **{
            "controller.watch_namespace": namespace,
            "controller.max_concurrent_reconciles": workers,
            "metrics_port": metrics_port,
        },
    )
    apply_config_logging(ctx, config)
    log = get_logger(__name__, watch_namespace=config.controller.watch_namespace or "*")

    try:
        client = KubernetesClient(config)
    except KubernetesError as e:
        handle_k8s_error(e)
        return

    metrics = ReconcileMetrics()
    if config.metrics_port:
        start_http_server(config.metrics_port, registry=metrics.registry)
        log.info("metrics_server_started", port=config.metrics_port)

    manager = ControllerManager(client, config.controller, metrics=metrics)

    def _handle_signal(signum: int, frame: FrameType | None) -> None:
        log.info("shutdown_requested", signal=signal.Signals(signum).name)
        manager.request_stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    console.print(
        f"[green]Controller running[/green] (context: {client.get_current_context()}, "
        f"namespace: {config.controller.watch_namespace or 'all'}, "
        f"workers: {config.controller.max_concurrent_reconciles})"
    )
    with client:
        manager.run()
    console.print("[dim]Controller stopped.[/dim]")
