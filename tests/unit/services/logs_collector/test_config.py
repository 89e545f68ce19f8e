"""Unit tests for logs collector configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from logs_collector_manager.services.logs_collector.config import (
    CollectorRules,
    LogsCollectorConfig,
    PollingConfig,
)


@pytest.mark.unit
class TestLogsCollectorConfig:
    """Tests for LogsCollectorConfig."""

    def test_defaults(self) -> None:
        config = LogsCollectorConfig()

        assert config.collector_image == "fluent/fluent-bit:3.1.9"
        assert config.aggregator_host is None
        assert config.readiness.to_policy().max_attempts == 30
        assert config.readiness.to_policy().interval == 1.0
        assert config.termination.max_attempts == 120

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LCM_COLLECTOR_IMAGE", "fluent/fluent-bit:latest")
        monkeypatch.setenv("LCM_HELPER_IMAGE", "alpine:3")
        monkeypatch.setenv("LCM_AGGREGATOR_HOST", "agg.local")
        monkeypatch.setenv("LCM_AGGREGATOR_PORT", "9001")
        monkeypatch.setenv("LCM_READINESS_INTERVAL", "0.5")
        monkeypatch.setenv("LCM_READINESS_MAX_ATTEMPTS", "10")

        config = LogsCollectorConfig.from_env({"tcp_port": 24225})

        assert config.collector_image == "fluent/fluent-bit:latest"
        assert config.helper_image == "alpine:3"
        assert config.aggregator_host == "agg.local"
        assert config.aggregator_port == 9001
        assert config.readiness == PollingConfig(interval=0.5, max_attempts=10)
        assert config.tcp_port == 24225

    @pytest.mark.parametrize(
        ("variable", "value", "field"),
        [
            ("LCM_AGGREGATOR_PORT", "abc", "aggregator_port"),
            ("LCM_READINESS_INTERVAL", "soon", "interval"),
            ("LCM_READINESS_MAX_ATTEMPTS", "1.5", "max_attempts"),
        ],
    )
    def test_malformed_env_values_rejected(
        self, monkeypatch: pytest.MonkeyPatch, variable: str, value: str, field: str
    ) -> None:
        monkeypatch.setenv(variable, value)

        with pytest.raises(ValidationError) as exc_info:
            LogsCollectorConfig.from_env()

        assert field in str(exc_info.value)

    def test_rejects_unknown_keys(self) -> None:
        with pytest.raises(ValidationError):
            LogsCollectorConfig.model_validate({"collector": "x"})

    def test_rejects_invalid_port_id(self) -> None:
        with pytest.raises(ValidationError):
            LogsCollectorConfig(http_port_id="HTTP")

    def test_polling_bounds(self) -> None:
        with pytest.raises(ValidationError):
            PollingConfig(interval=0)
        with pytest.raises(ValidationError):
            PollingConfig(max_attempts=0)


@pytest.mark.unit
class TestCollectorRules:
    """Tests for CollectorRules.from_yaml."""

    def test_loads_filters_and_parsers(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(
            yaml.safe_dump(
                {
                    "filters": [
                        {
                            "name": "grep",
                            "params": [{"key": "Exclude", "value": "log ^DEBUG"}],
                        }
                    ],
                    "parsers": [{"name": "json", "format": "json"}],
                }
            )
        )

        rules = CollectorRules.from_yaml(path)

        assert rules.filters[0].name == "grep"
        assert rules.filters[0].match == "*"
        assert rules.filters[0].params[0].value == "log ^DEBUG"
        assert rules.parsers[0].settings() == [("Name", "json"), ("Format", "json")]

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("")

        assert CollectorRules.from_yaml(path) == CollectorRules()

    def test_invalid_rules(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("filters:\n  - match: '*'\n")

        with pytest.raises(ValidationError):
            CollectorRules.from_yaml(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            CollectorRules.from_yaml(tmp_path / "missing.yaml")
