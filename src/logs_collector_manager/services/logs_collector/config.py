"""Logs collector configuration models."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from logs_collector_manager.services.logs_collector.models import (
    Filter,
    Parser,
    validate_port_id,
)
from logs_collector_manager.utils.polling import RetryPolicy

logger = structlog.get_logger()

DEFAULT_COLLECTOR_IMAGE = "fluent/fluent-bit:3.1.9"
DEFAULT_HELPER_IMAGE = "busybox:1.36"


class PollingConfig(BaseModel):
    """Interval and attempt bounds for one kind of wait."""

    model_config = ConfigDict(extra="forbid")

    interval: float = Field(default=1.0, gt=0)
    max_attempts: int = Field(default=30, ge=1)

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(interval=self.interval, max_attempts=self.max_attempts)


class LogsCollectorConfig(BaseModel):
    """Settings for provisioning and cleaning logs collectors.

    Example:
        >>> config = LogsCollectorConfig.from_env()
        >>> config.readiness.to_policy().timeout
        30.0
    """

    model_config = ConfigDict(extra="forbid")

    collector_image: str = DEFAULT_COLLECTOR_IMAGE
    helper_image: str = DEFAULT_HELPER_IMAGE
    aggregator_host: str | None = None
    aggregator_port: int = Field(default=9000, ge=1, le=65535)
    http_port: int = Field(default=2020, ge=1, le=65535)
    tcp_port: int = Field(default=24224, ge=1, le=65535)
    http_port_id: str = "http"
    tcp_port_id: str = "tcp"
    readiness: PollingConfig = PollingConfig()
    termination: PollingConfig = PollingConfig(max_attempts=120)
    node_command: PollingConfig = PollingConfig(max_attempts=60)

    @field_validator("http_port_id", "tcp_port_id")
    @classmethod
    def validate_port_ids(cls, v: str) -> str:
        """Validate port ids are valid container port names."""
        return validate_port_id(v)

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> LogsCollectorConfig:
        """Create configuration with environment variable overrides.

        Supported environment variables:
            LCM_COLLECTOR_IMAGE: Collector image
            LCM_HELPER_IMAGE: Image used for node commands
            LCM_AGGREGATOR_HOST: Default aggregator host
            LCM_AGGREGATOR_PORT: Default aggregator port
            LCM_READINESS_INTERVAL: Seconds between readiness checks
            LCM_READINESS_MAX_ATTEMPTS: Maximum readiness checks
        """
        config_dict = dict(base_config) if base_config else {}
        config_dict["readiness"] = dict(config_dict.get("readiness", {}))

        if image := os.environ.get("LCM_COLLECTOR_IMAGE"):
            config_dict["collector_image"] = image
        if helper_image := os.environ.get("LCM_HELPER_IMAGE"):
            config_dict["helper_image"] = helper_image
        if host := os.environ.get("LCM_AGGREGATOR_HOST"):
            config_dict["aggregator_host"] = host
        if port := os.environ.get("LCM_AGGREGATOR_PORT"):
            config_dict["aggregator_port"] = port
        if interval := os.environ.get("LCM_READINESS_INTERVAL"):
            config_dict["readiness"]["interval"] = interval
        if attempts := os.environ.get("LCM_READINESS_MAX_ATTEMPTS"):
            config_dict["readiness"]["max_attempts"] = attempts

        return cls.model_validate(config_dict)


class CollectorRules(BaseModel):
    """Filter and parser rules, usually loaded from a YAML file.

    Example file::

        filters:
          - name: grep
            match: "*"
            params:
              - {key: Exclude, value: "log ^DEBUG"}
        parsers:
          - name: json
            format: json
    """

    model_config = ConfigDict(extra="forbid")

    filters: list[Filter] = Field(default_factory=list)
    parsers: list[Parser] = Field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: Path) -> CollectorRules:
        """Load rules from a YAML file; an empty file yields no rules."""
        logger.debug("loading_collector_rules", path=str(path))
        data = yaml.safe_load(path.read_text())
        if data is None:
            return cls()
        rules = cls.model_validate(data)
        logger.debug(
            "collector_rules_loaded", filters=len(rules.filters), parsers=len(rules.parsers)
        )
        return rules
