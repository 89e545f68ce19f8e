"""Pod template and RBAC rules for the collector daemon set."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from logs_collector_manager.services.logs_collector.constants import (
    CHECKPOINT_DB_PATH,
    COLLECTOR_BINARY,
    COLLECTOR_CONTAINER_NAME,
    COLLECTOR_WORKDIR,
    CONFIG_MOUNT_PATH,
    CONTAINER_LOGS_PATH,
    DOCKER_CONTAINERS_PATH,
    HOST_LOGS_PATH,
    MAIN_CONFIG_KEY,
    VAR_LOG_PATH,
)
from logs_collector_manager.services.logs_collector.models import PortSpec, validate_port_id

if TYPE_CHECKING:
    from kubernetes.client import (
        V1Container,
        V1ContainerPort,
        V1PodSpec,
        V1Volume,
        V1VolumeMount,
    )

COLLECTOR_CLUSTER_ROLE_RULES: list[dict[str, Any]] = [
    {
        "verbs": ["get", "list"],
        "api_groups": [""],
        "resources": ["pods", "pods/logs"],
    }
]


class VolumeKind(StrEnum):
    """Where a volume's content comes from."""

    HOST_PATH = "host_path"
    CONFIG_MAP = "config_map"


@dataclass(frozen=True)
class VolumeSpec:
    """One volume of the collector pod and where the container mounts it.

    Attributes:
        name: Volume name.
        kind: Volume source kind.
        source: Host path, or config map name.
        mount_path: Mount path inside the container.
    """

    name: str
    kind: VolumeKind
    source: str
    mount_path: str

    def to_volume(self) -> V1Volume:
        from kubernetes.client import (
            V1ConfigMapVolumeSource,
            V1HostPathVolumeSource,
            V1Volume,
        )

        if self.kind is VolumeKind.CONFIG_MAP:
            return V1Volume(name=self.name, config_map=V1ConfigMapVolumeSource(name=self.source))
        return V1Volume(name=self.name, host_path=V1HostPathVolumeSource(path=self.source))

    def to_mount(self) -> V1VolumeMount:
        from kubernetes.client import V1VolumeMount

        return V1VolumeMount(name=self.name, mount_path=self.mount_path, read_only=False)


def collector_volumes(config_map_name: str) -> list[VolumeSpec]:
    """The six volumes the collector needs.

    Three node log directories are read by the tail input, the config map
    holds the rendered config, and two host directories hold extra host logs
    and the checkpoint database.
    """
    return [
        VolumeSpec("varlog", VolumeKind.HOST_PATH, VAR_LOG_PATH, VAR_LOG_PATH),
        VolumeSpec(
            "varlibdockercontainers",
            VolumeKind.HOST_PATH,
            DOCKER_CONTAINERS_PATH,
            DOCKER_CONTAINERS_PATH,
        ),
        VolumeSpec(
            "varlogcontainers", VolumeKind.HOST_PATH, CONTAINER_LOGS_PATH, CONTAINER_LOGS_PATH
        ),
        VolumeSpec("fluent-bit-config", VolumeKind.CONFIG_MAP, config_map_name, CONFIG_MOUNT_PATH),
        VolumeSpec("fluent-bit-host-logs", VolumeKind.HOST_PATH, HOST_LOGS_PATH, HOST_LOGS_PATH),
        VolumeSpec(
            "fluent-bit-checkpoint-db",
            VolumeKind.HOST_PATH,
            CHECKPOINT_DB_PATH,
            CHECKPOINT_DB_PATH,
        ),
    ]


def to_container_ports(port_specs: Mapping[str, PortSpec]) -> list[V1ContainerPort]:
    """Translate port specs keyed by port id into container ports.

    Raises:
        ValueError: A port id is not a valid container port name.
    """
    from kubernetes.client import V1ContainerPort

    ports = []
    for port_id, spec in port_specs.items():
        validate_port_id(port_id)
        ports.append(
            V1ContainerPort(
                name=port_id,
                container_port=spec.number,
                protocol=str(spec.transport_protocol),
            )
        )
    return ports


def collector_container(
    image: str,
    port_specs: Mapping[str, PortSpec],
    volumes: list[VolumeSpec],
) -> V1Container:
    """The collector container.

    The pre-stop hook clears the checkpoint database on graceful shutdown
    only; a crashed or killed pod leaves it in place.
    """
    from kubernetes.client import (
        V1Container,
        V1ExecAction,
        V1Lifecycle,
        V1LifecycleHandler,
    )

    return V1Container(
        name=COLLECTOR_CONTAINER_NAME,
        image=image,
        command=[COLLECTOR_BINARY],
        args=[
            f"--workdir={COLLECTOR_WORKDIR}",
            f"--config={CONFIG_MOUNT_PATH}/{MAIN_CONFIG_KEY}",
        ],
        ports=to_container_ports(port_specs),
        lifecycle=V1Lifecycle(
            pre_stop=V1LifecycleHandler(
                _exec=V1ExecAction(command=["sh", "-c", f"rm -rf {CHECKPOINT_DB_PATH}/*"]),
            ),
        ),
        volume_mounts=[v.to_mount() for v in volumes],
    )


def collector_pod_spec(
    *,
    image: str,
    service_account_name: str,
    config_map_name: str,
    port_specs: Mapping[str, PortSpec],
) -> V1PodSpec:
    """Assemble the collector pod spec."""
    from kubernetes.client import V1PodSpec

    volumes = collector_volumes(config_map_name)
    return V1PodSpec(
        service_account_name=service_account_name,
        containers=[collector_container(image, port_specs, volumes)],
        volumes=[v.to_volume() for v in volumes],
    )
