"""Shared options, configuration loading and error output for CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console

from application_operator.integrations.kubernetes.config import OperatorConfig
from application_operator.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)
from application_operator.logging.config import configure_logging

console = Console()


# =============================================================================
# Common Typer Option Annotations
# =============================================================================

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="YAML configuration file (environment variables take precedence)",
        exists=True,
        dir_okay=False,
        readable=True,
    ),
]

NamespaceOption = Annotated[
    str | None,
    typer.Option(
        "--namespace",
        "-n",
        help="Kubernetes namespace",
    ),
]


# =============================================================================
# Configuration
# =============================================================================


def load_config(config_file: Path | None, **overrides: Any) -> OperatorConfig:
    """Build the operator configuration for a command.

    Precedence, lowest first: the YAML file, ``APP_OPERATOR_*`` environment
    variables, then explicit command-line options (``overrides`` entries
    that are not None, keyed ``<section>.<field>`` or ``<field>``).

    Raises:
        typer.Exit: When the file or the resulting configuration is invalid.
    """
    base: dict[str, Any] = {}
    if config_file is not None:
        try:
            loaded = yaml.safe_load(config_file.read_text()) or {}
        except yaml.YAMLError as e:
            console.print(f"[red]Error:[/red] Cannot parse {config_file}: {e}")
            raise typer.Exit(1) from e
        if not isinstance(loaded, dict):
            console.print(f"[red]Error:[/red] {config_file} must contain a mapping")
            raise typer.Exit(1)
        base = loaded

    try:
        config = OperatorConfig.from_env(base)
        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return config
        data = config.model_dump()
        for key, value in updates.items():
            section, _, field = key.rpartition(".")
            target = data[section] if section else data
            target[field] = value
        return OperatorConfig.model_validate(data)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Error:[/red] Invalid configuration\n  {e}")
        raise typer.Exit(1) from e


# =============================================================================
# Logging
# =============================================================================


@dataclass(frozen=True)
class LoggingOptions:
    """Global logging flags given before the command name."""

    verbose: bool = False
    debug: bool = False
    json_output: bool = False
    log_file: Path | None = None


def apply_config_logging(ctx: typer.Context, config: OperatorConfig) -> None:
    """Switch to JSON logs when the loaded configuration asks for them.

    The global flags are kept; only ``log_json`` from the file or the
    environment is layered on top.
    """
    options = ctx.obj if isinstance(ctx.obj, LoggingOptions) else LoggingOptions()
    if not config.log_json or options.json_output:
        return
    configure_logging(
        verbose=options.verbose,
        debug=options.debug,
        json_output=True,
        log_file=options.log_file,
    )


# =============================================================================
# Error Handling
# =============================================================================


def handle_k8s_error(error: KubernetesError) -> None:
    """Print a Kubernetes error for humans.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {error.message}")
        if error.original_error:
            console.print(f"  Cause: {error.original_error}")
        console.print(
            "\n[dim]Hint: Check APP_OPERATOR_KUBECONFIG or run inside the cluster.[/dim]"
        )

    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {error.message}")
        console.print("\n[dim]Hint: Check the operator's RBAC permissions.[/dim]")

    elif isinstance(error, KubernetesNotFoundError):
        console.print("[red]Error:[/red] Resource not found")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesValidationError):
        console.print("[red]Error:[/red] Validation failed")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesConflictError):
        console.print("[red]Error:[/red] Resource conflict")
        console.print(f"  {error.message}")

    else:
        console.print(f"[red]Error:[/red] {error.message}")
        if error.status_code:
            console.print(f"  HTTP Status: {error.status_code}")

    raise typer.Exit(1)
