"""Shared options, output and error handling for CLI commands."""

from __future__ import annotations

import json
import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from enum import StrEnum
from typing import Annotated, Any

import typer
import yaml
from rich.console import Console
from rich.table import Table

from logs_collector_manager.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesTimeoutError,
)
from logs_collector_manager.services.logs_collector.exceptions import (
    CleanupError,
    LogsCollectorError,
    ProvisionError,
)

# Shared console instance
console = Console()


class OutputFormat(StrEnum):
    """Supported output formats for CLI commands."""

    TABLE = "table"
    JSON = "json"
    YAML = "yaml"


OutputOption = Annotated[
    OutputFormat,
    typer.Option(
        "--output",
        "-o",
        help="Output format: table, json, or yaml",
        case_sensitive=False,
    ),
]

GuidArgument = Annotated[str, typer.Argument(help="Logs collector guid")]

ForceOption = Annotated[
    bool,
    typer.Option(
        "--force",
        "-f",
        help="Skip confirmation prompts",
    ),
]


# =============================================================================
# Output
# =============================================================================


def print_data(data: dict[str, Any], output: OutputFormat, title: str = "") -> None:
    """Print a flat mapping as a key-value table, JSON or YAML."""
    if output == OutputFormat.JSON:
        console.print_json(json.dumps(data, default=str))
        return
    if output == OutputFormat.YAML:
        console.print(yaml.safe_dump(data, default_flow_style=False, sort_keys=False), end="")
        return

    table = Table(title=title or None, show_header=True)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    for field, value in data.items():
        if isinstance(value, list):
            value = ", ".join(str(v) for v in value) or "-"
        table.add_row(field, str(value) if value is not None else "-")
    console.print(table)


# =============================================================================
# Cancellation
# =============================================================================


@contextmanager
def cancel_on_signals() -> Iterator[threading.Event]:
    """Yield an event that SIGINT or SIGTERM sets instead of interrupting.

    Long waits observe the event and unwind cleanly.
    """
    event = threading.Event()

    def _handler(signum: int, frame: Any) -> None:
        console.print("[yellow]Cancelling, cleaning up...[/yellow]")
        event.set()

    if threading.current_thread() is not threading.main_thread():
        yield event
        return

    previous = {sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        yield event
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


# =============================================================================
# Error Handling
# =============================================================================


def handle_k8s_error(error: KubernetesError) -> None:
    """Print a Kubernetes error with a hint and exit.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {error.message}")
        if error.original_error:
            console.print(f"  Cause: {error.original_error}")
        console.print(
            "\n[dim]Hint: Check that your kubeconfig is valid and the cluster is reachable.[/dim]"
        )

    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {error}")
        console.print("\n[dim]Hint: Check your credentials, token, or RBAC permissions.[/dim]")

    elif isinstance(error, KubernetesNotFoundError):
        console.print("[red]Error:[/red] Resource not found")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesTimeoutError):
        console.print("[red]Error:[/red] Operation timed out")
        console.print(f"  {error}")

    else:
        console.print(f"[red]Error:[/red] {error}")

    raise typer.Exit(1)


def handle_lcm_error(error: LogsCollectorError) -> None:
    """Print a logs collector error, listing anything left for the operator.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    console.print(f"[red]Error:[/red] {error.message}")

    if isinstance(error, ProvisionError):
        console.print(f"  Failed step: {error.step}")
        console.print(f"  Cause: {error.cause}")
        if error.orphaned_resources:
            console.print("\n[bold red]ACTION REQUIRED:[/bold red] remove these manually:")
            for orphan in error.orphaned_resources:
                console.print(f"  - {orphan.ref}: {orphan.cause}")
        else:
            console.print("  All created resources were removed.")

    elif isinstance(error, CleanupError):
        console.print(f"  Failed step: {error.step}")
        if error.cause is not None:
            console.print(f"  Cause: {error.cause}")
        if error.manual_actions:
            console.print("\n[bold red]ACTION REQUIRED:[/bold red]")
            for action in error.manual_actions:
                target = f"{action.kind}/{action.name}"
                if action.namespace:
                    target += f" in {action.namespace}"
                console.print(f"  - {action.action} ({target})")

    raise typer.Exit(1)


def confirm_action(message: str, default: bool = False) -> bool:
    """Prompt user to confirm an action."""
    return typer.confirm(message, default=default)
