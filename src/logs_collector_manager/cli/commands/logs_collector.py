"""CLI commands for logs collector deployments."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import typer
import yaml
from pydantic import ValidationError

from logs_collector_manager.cli.commands.base import (
    ForceOption,
    GuidArgument,
    OutputFormat,
    OutputOption,
    cancel_on_signals,
    confirm_action,
    console,
    handle_k8s_error,
    handle_lcm_error,
    print_data,
)
from logs_collector_manager.integrations.kubernetes.exceptions import KubernetesError
from logs_collector_manager.services.logs_collector.config import (
    CollectorRules,
    LogsCollectorConfig,
)
from logs_collector_manager.services.logs_collector.exceptions import LogsCollectorError
from logs_collector_manager.services.logs_collector.models import ProvisionParameters

if TYPE_CHECKING:
    from logs_collector_manager.services.logs_collector.cleaner import CleanupChoreographer
    from logs_collector_manager.services.logs_collector.provisioner import (
        LogsCollectorProvisioner,
    )


def _load_rules(path: Path | None) -> CollectorRules:
    if path is None:
        return CollectorRules()
    try:
        return CollectorRules.from_yaml(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[red]Error:[/red] Cannot load rules from {path}: {e}")
        raise typer.Exit(1) from e


def register_logs_collector_commands(
    app: typer.Typer,
    get_config: Callable[[], LogsCollectorConfig],
    get_provisioner: Callable[[], LogsCollectorProvisioner],
    get_choreographer: Callable[[], CleanupChoreographer],
) -> None:
    """Register logs collector CLI commands."""

    @app.command("create")
    def create(
        aggregator_host: str | None = typer.Option(
            None, "--aggregator-host", help="Host logs are forwarded to"
        ),
        aggregator_port: int | None = typer.Option(
            None, "--aggregator-port", help="Port logs are forwarded to"
        ),
        http_port: int | None = typer.Option(None, "--http-port", help="Collector HTTP port"),
        tcp_port: int | None = typer.Option(None, "--tcp-port", help="Collector TCP port"),
        rules: Path | None = typer.Option(
            None, "--rules", "-r", help="YAML file with filters and parsers"
        ),
        output: OutputOption = OutputFormat.TABLE,
    ) -> None:
        """Provision a logs collector and wait until it is ready.

        Examples:
            lcm create --aggregator-host agg.local --aggregator-port 9000
            lcm create --aggregator-host agg.local --rules rules.yaml
        """
        try:
            config = get_config()
        except ValueError as e:
            console.print(f"[red]Error:[/red] Invalid configuration\n{e}")
            raise typer.Exit(1) from e
        host = aggregator_host or config.aggregator_host
        if not host:
            console.print(
                "[red]Error:[/red] No aggregator host; pass --aggregator-host "
                "or set LCM_AGGREGATOR_HOST"
            )
            raise typer.Exit(1)
        collector_rules = _load_rules(rules)
        try:
            params = ProvisionParameters(
                aggregator_host=host,
                aggregator_port=aggregator_port or config.aggregator_port,
                http_port_number=http_port or config.http_port,
                tcp_port_number=tcp_port or config.tcp_port,
                http_port_id=config.http_port_id,
                tcp_port_id=config.tcp_port_id,
                filters=collector_rules.filters,
                parsers=collector_rules.parsers,
            )
        except ValidationError as e:
            console.print(f"[red]Error:[/red] Invalid parameters\n{e}")
            raise typer.Exit(1) from e

        try:
            provisioner = get_provisioner()
            with cancel_on_signals() as cancel_event:
                result = provisioner.provision(params, cancel_event=cancel_event)
        except ValueError as e:
            console.print(f"[red]Error:[/red] Invalid configuration\n{e}")
            raise typer.Exit(1) from e
        except LogsCollectorError as e:
            handle_lcm_error(e)
        except KubernetesError as e:
            handle_k8s_error(e)

        resource_set = result.resource_set
        data: dict[str, object] = {"guid": resource_set.guid}
        for handle in resource_set.handles():
            data[str(handle.kind)] = handle.ref
        data["ready_pods"] = result.health.ready_pod_count
        data["health_endpoint"] = result.http_health_endpoint
        print_data(data, output, title="Logs Collector Created")

    @app.command("status")
    def status(guid: GuidArgument, output: OutputOption = OutputFormat.TABLE) -> None:
        """Show the health of a logs collector.

        Examples:
            lcm status 0a1b2c3d4e5f40718293a4b5c6d7e8f9
        """
        try:
            provisioner = get_provisioner()
            resource_set = provisioner.resource_set_for(guid)
            health = provisioner.get_health(resource_set)
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        except KubernetesError as e:
            handle_k8s_error(e)

        data = health.model_dump()
        data["ready"] = health.ready
        print_data(data, output, title=f"Logs Collector {guid}")

    @app.command("clean")
    def clean(guid: GuidArgument, force: ForceOption = False) -> None:
        """Clear the checkpoint databases on every node.

        Collector replicas are evicted during the cleanup and rescheduled
        afterwards.

        Examples:
            lcm clean 0a1b2c3d4e5f40718293a4b5c6d7e8f9
        """
        if not force and not confirm_action(
            "Logs collection stops on every node during the cleanup. Continue?"
        ):
            raise typer.Abort()
        try:
            resource_set = get_provisioner().resource_set_for(guid)
            choreographer = get_choreographer()
            with cancel_on_signals() as cancel_event:
                health = choreographer.clean(
                    resource_set.daemon_set.name,
                    resource_set.namespace.name,
                    cancel_event=cancel_event,
                )
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        except LogsCollectorError as e:
            handle_lcm_error(e)
        except KubernetesError as e:
            handle_k8s_error(e)

        console.print(
            f"[green]Cleaned logs collector '{guid}' on {len(health.nodes)} node(s)[/green]"
        )

    @app.command("destroy")
    def destroy(guid: GuidArgument, force: ForceOption = False) -> None:
        """Remove every resource of a logs collector.

        Examples:
            lcm destroy 0a1b2c3d4e5f40718293a4b5c6d7e8f9
            lcm destroy 0a1b2c3d4e5f40718293a4b5c6d7e8f9 --force
        """
        if not force and not confirm_action(f"Destroy logs collector '{guid}'?"):
            raise typer.Abort()
        try:
            provisioner = get_provisioner()
            teardown = provisioner.build_teardown(provisioner.resource_set_for(guid))
        except ValueError as e:
            console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(1) from e
        except KubernetesError as e:
            handle_k8s_error(e)

        orphans = teardown()
        if orphans:
            console.print("[bold red]ACTION REQUIRED:[/bold red] remove these manually:")
            for orphan in orphans:
                console.print(f"  - {orphan.ref}: {orphan.cause}")
            raise typer.Exit(1)
        console.print(f"[green]Logs collector '{guid}' destroyed[/green]")
