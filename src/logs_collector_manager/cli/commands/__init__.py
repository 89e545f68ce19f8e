"""CLI command groups."""

from logs_collector_manager.cli.commands.logs_collector import (
    register_logs_collector_commands,
)

__all__ = ["register_logs_collector_commands"]
