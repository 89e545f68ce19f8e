"""Fixed names and paths shared by the pod template and the rendered config."""

# Config map keys; also the file names under CONFIG_MOUNT_PATH
MAIN_CONFIG_KEY = "fluent-bit.conf"
PARSER_CONFIG_KEY = "parsers.conf"

COLLECTOR_CONTAINER_NAME = "fluent-bit"
COLLECTOR_BINARY = "/fluent-bit/bin/fluent-bit"
COLLECTOR_WORKDIR = "/fluent-bit/etc"
CONFIG_MOUNT_PATH = "/fluent-bit/etc/conf"

# Node-local directories
VAR_LOG_PATH = "/var/log"
DOCKER_CONTAINERS_PATH = "/var/lib/docker/containers"
CONTAINER_LOGS_PATH = "/var/log/containers"
HOST_LOGS_PATH = "/var/log/logs-collector"
CHECKPOINT_DB_PATH = "/var/lib/fluent-bit/db"

HTTP_HEALTH_CHECK_ENDPOINT = "/api/v1/health"
KUBERNETES_API_URL = "https://kubernetes.default.svc:443"

# Sentinel selector no node carries; applying it evicts every replica
EVICTION_NODE_SELECTOR = {"non-existent-label": "true"}

# Label keys the collector lifts from workload pods into each record
LABEL_PREFIX = "lcm.io"
GUID_LABEL = f"{LABEL_PREFIX}/logs-collector-guid"
RESOURCE_TYPE_LABEL = f"{LABEL_PREFIX}/resource-type"
WORKSPACE_UUID_LABEL = f"{LABEL_PREFIX}/workspace-uuid"
SERVICE_UUID_LABEL = f"{LABEL_PREFIX}/service-uuid"
SERVICE_NAME_LABEL = f"{LABEL_PREFIX}/service-name"
USER_SERVICE_RESOURCE_TYPE = "user-service"

MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
MANAGED_BY_VALUE = "logs-collector-manager"
COMPONENT_LABEL = "app.kubernetes.io/component"
COMPONENT_VALUE = "logs-collector"
