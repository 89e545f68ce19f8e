"""Unit tests for logs collector models."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import ValidationError

from logs_collector_manager.integrations.kubernetes.exceptions import KubernetesError
from logs_collector_manager.services.logs_collector.models import (
    DaemonHealth,
    Filter,
    FilterParam,
    OrphanedResource,
    Parser,
    ProvisionParameters,
    ResourceHandle,
    ResourceKind,
    TransportProtocol,
    validate_port_id,
)


@pytest.mark.unit
class TestValidatePortId:
    """Tests for container port name validation."""

    @pytest.mark.parametrize("port_id", ["http", "tcp", "metrics-2", "a", "abcdefghijklmno"])
    def test_accepts(self, port_id: str) -> None:
        assert validate_port_id(port_id) == port_id

    @pytest.mark.parametrize(
        "port_id",
        ["", "1234", "Http", "-http", "http-", "ht--tp", "abcdefghijklmnop", "ht_tp"],
    )
    def test_rejects(self, port_id: str) -> None:
        with pytest.raises(ValueError):
            validate_port_id(port_id)


@pytest.mark.unit
class TestParser:
    """Tests for Parser settings."""

    def test_settings_keep_declaration_order(self) -> None:
        parser = Parser(name="docker", format="json", time_key="time", time_keep=True)

        assert parser.settings() == [
            ("Name", "docker"),
            ("Format", "json"),
            ("Time_Key", "time"),
            ("Time_Keep", "True"),
        ]

    def test_name_required(self) -> None:
        with pytest.raises(ValidationError):
            Parser.model_validate({"format": "json"})

    @pytest.mark.parametrize(
        "data",
        [
            {"name": "json\n[OUTPUT]"},
            {"name": "json", "format": "json\n[OUTPUT]\n    Name stdout"},
            {"name": "json", "time\nkey": "time"},
        ],
    )
    def test_line_breaks_rejected(self, data: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            Parser.model_validate(data)


@pytest.mark.unit
class TestFilter:
    """Tests for Filter and FilterParam."""

    def test_defaults(self) -> None:
        rule = Filter(name="grep")

        assert rule.match == "*"
        assert rule.params == []

    @pytest.mark.parametrize(
        "data",
        [
            {"name": "grep\n[OUTPUT]"},
            {"name": "grep", "match": "*\r\n[OUTPUT]"},
            {"name": "grep", "params": [{"key": "Regex", "value": "log x\n[OUTPUT]"}]},
            {"name": "grep", "params": [{"key": "Re\ngex", "value": "log x"}]},
        ],
    )
    def test_line_breaks_rejected(self, data: dict[str, Any]) -> None:
        with pytest.raises(ValidationError):
            Filter.model_validate(data)

    def test_param_value_may_contain_spaces(self) -> None:
        assert FilterParam(key="Exclude", value="log ^DEBUG").value == "log ^DEBUG"


@pytest.mark.unit
class TestProvisionParameters:
    """Tests for ProvisionParameters."""

    def test_defaults(self) -> None:
        params = ProvisionParameters(aggregator_host="agg.local", aggregator_port=9000)

        assert params.http_port_number == 2020
        assert params.tcp_port_number == 24224
        assert params.filters == []
        assert params.parsers == []

    def test_port_specs_tcp_first(self) -> None:
        specs = ProvisionParameters(aggregator_host="agg.local", aggregator_port=9000).port_specs()

        assert list(specs) == ["tcp", "http"]
        assert specs["tcp"].number == 24224
        assert specs["http"].number == 2020
        assert specs["tcp"].transport_protocol is TransportProtocol.TCP

    @pytest.mark.parametrize(
        "overrides",
        [
            {"http_port_number": 24224},
            {"tcp_port_id": "http"},
            {"http_port_id": "HTTP"},
            {"aggregator_port": 0},
            {"aggregator_host": ""},
        ],
    )
    def test_rejects_invalid(self, overrides: dict[str, Any]) -> None:
        values: dict[str, Any] = {"aggregator_host": "agg.local", "aggregator_port": 9000}
        values.update(overrides)

        with pytest.raises(ValidationError):
            ProvisionParameters(**values)


@pytest.mark.unit
class TestResourceRecords:
    """Tests for handles and diagnostic records."""

    def test_namespaced_kinds(self) -> None:
        assert [k for k in ResourceKind if k.namespaced] == [
            ResourceKind.SERVICE_ACCOUNT,
            ResourceKind.CONFIG_MAP,
            ResourceKind.DAEMON_SET,
        ]

    def test_handle_ref(self) -> None:
        namespaced = ResourceHandle(kind=ResourceKind.CONFIG_MAP, name="cfg", namespace="ns")
        cluster = ResourceHandle(kind=ResourceKind.CLUSTER_ROLE, name="role")

        assert namespaced.ref == "ConfigMap/cfg in ns"
        assert cluster.ref == "ClusterRole/role"

    def test_orphan_from_handle(self) -> None:
        handle = ResourceHandle(kind=ResourceKind.DAEMON_SET, name="ds", namespace="ns")

        orphan = OrphanedResource.from_handle(handle, KubernetesError("forbidden"))

        assert orphan.kind == "DaemonSet"
        assert orphan.ref == "DaemonSet/ds in ns"
        assert orphan.cause == "forbidden"


@pytest.mark.unit
class TestDaemonHealth:
    """Tests for DaemonHealth."""

    def test_from_pods(self, make_pod: Any) -> None:
        pods = [
            make_pod("p1", "node-b"),
            make_pod("p2", "node-a", ready=False),
            make_pod("p3", "node-a"),
        ]

        health = DaemonHealth.from_pods("logs-collector", "ns", pods)

        assert health.pod_count == 3
        assert health.ready_pod_count == 2
        assert health.nodes == ["node-a", "node-b"]
        assert health.ready

    def test_no_pods_not_ready(self) -> None:
        assert not DaemonHealth.from_pods("logs-collector", "ns", []).ready
