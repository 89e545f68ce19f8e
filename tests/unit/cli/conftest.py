"""Shared fixtures for CLI command tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import typer

from logs_collector_manager.cli.commands import register_logs_collector_commands
from logs_collector_manager.services.logs_collector import LogsCollectorConfig
from logs_collector_manager.services.logs_collector.attributes import (
    DefaultObjectAttributesProvider,
    build_resource_set,
)


@pytest.fixture
def lc_config() -> LogsCollectorConfig:
    """Config without an aggregator default."""
    return LogsCollectorConfig()


@pytest.fixture
def mock_provisioner() -> MagicMock:
    """A provisioner that resolves guids with the default naming scheme."""
    provisioner = MagicMock()
    provisioner.resource_set_for.side_effect = lambda guid: build_resource_set(
        DefaultObjectAttributesProvider(), guid
    )
    return provisioner


@pytest.fixture
def mock_choreographer() -> MagicMock:
    """Create a mock CleanupChoreographer."""
    return MagicMock()


@pytest.fixture
def lc_app(
    lc_config: LogsCollectorConfig,
    mock_provisioner: MagicMock,
    mock_choreographer: MagicMock,
) -> typer.Typer:
    """An app with the logs collector commands bound to mocks."""
    app = typer.Typer()
    register_logs_collector_commands(
        app,
        lambda: lc_config,
        lambda: mock_provisioner,
        lambda: mock_choreographer,
    )
    return app
