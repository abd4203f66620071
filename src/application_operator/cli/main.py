"""Command-line entry point of the Application operator."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from application_operator import __version__
from application_operator.cli.commands import reconcile, run
from application_operator.cli.commands.base import LoggingOptions
from application_operator.logging.config import configure_logging

app = typer.Typer(
    name="application-operator",
    help=(
        "Reconcile Application custom resources into Deployments, Services, "
        "Ingresses and cert-manager ClusterIssuers."
    ),
    add_completion=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print the operator version and exit."""
    if value:
        console.print(f"application-operator version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show the operator version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log reconcile progress at INFO level.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Log at DEBUG level, including Kubernetes client traffic.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        envvar="APP_OPERATOR_LOG_JSON",
        help="Emit logs as JSON lines (also enabled by log_json in the config file).",
    ),
    log_file: Path | None = typer.Option(
        None,
        "--log-file",
        envvar="APP_OPERATOR_LOG_FILE",
        dir_okay=False,
        help="Also write JSON logs to this rotating file.",
    ),
) -> None:
    """Run the controller or reconcile a single Application by hand.

    A command switches the logs to JSON once its configuration turns on
    ``log_json``.
    """
    options = LoggingOptions(verbose=verbose, debug=debug, json_output=json_logs, log_file=log_file)
    ctx.obj = options
    configure_logging(
        verbose=options.verbose,
        debug=options.debug,
        json_output=options.json_output,
        log_file=options.log_file,
    )


app.command()(run.run)
app.command()(reconcile.reconcile)


if __name__ == "__main__":
    app()
