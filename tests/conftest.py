"""Shared pytest fixtures for logs_collector_manager tests."""

from __future__ import annotations

import logging
import os

import pytest
import typer
from typer.testing import CliRunner

from logs_collector_manager.cli.main import app


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear LCM_ prefixed environment variables for each test."""
    for key in list(os.environ.keys()):
        if key.startswith("LCM_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def capture_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    """Fixture to capture log output."""
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app
