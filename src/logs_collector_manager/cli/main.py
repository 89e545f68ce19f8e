"""Main CLI entry point using Typer."""

from __future__ import annotations

from functools import cache

import typer
from rich.console import Console

from logs_collector_manager import __version__
from logs_collector_manager.cli.commands import register_logs_collector_commands
from logs_collector_manager.integrations.kubernetes.client import KubernetesClient
from logs_collector_manager.integrations.kubernetes.config import KubernetesPluginConfig
from logs_collector_manager.logging.config import configure_logging
from logs_collector_manager.services.kubernetes.backend import KubernetesBackend
from logs_collector_manager.services.logs_collector.cleaner import CleanupChoreographer
from logs_collector_manager.services.logs_collector.config import LogsCollectorConfig
from logs_collector_manager.services.logs_collector.provisioner import LogsCollectorProvisioner

app = typer.Typer(
    name="lcm",
    help="Provision, clean and destroy the cluster-wide logs collector.",
    add_completion=True,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"lcm version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output.",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug mode.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Render console logs as JSON.",
    ),
) -> None:
    """Logs collector manager - run a node-level logs collector on Kubernetes."""
    configure_logging(verbose=verbose, debug=debug, json_output=json_logs)


@cache
def get_config() -> LogsCollectorConfig:
    return LogsCollectorConfig.from_env()


@cache
def get_backend() -> KubernetesBackend:
    return KubernetesBackend(KubernetesClient(KubernetesPluginConfig.from_env()))


def get_provisioner() -> LogsCollectorProvisioner:
    return LogsCollectorProvisioner(get_backend(), get_config())


def get_choreographer() -> CleanupChoreographer:
    return CleanupChoreographer(get_backend(), get_config())


register_logs_collector_commands(app, get_config, get_provisioner, get_choreographer)


if __name__ == "__main__":
    app()
