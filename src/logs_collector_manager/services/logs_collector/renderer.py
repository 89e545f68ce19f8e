"""Render the collector's configuration files.

Templates are held in memory; rendering never touches the filesystem.
"""

from __future__ import annotations

from collections.abc import Sequence

from jinja2 import DictLoader, Environment, StrictUndefined

from logs_collector_manager.services.logs_collector.constants import (
    CHECKPOINT_DB_PATH,
    CONFIG_MOUNT_PATH,
    CONTAINER_LOGS_PATH,
    KUBERNETES_API_URL,
    MAIN_CONFIG_KEY,
    PARSER_CONFIG_KEY,
    RESOURCE_TYPE_LABEL,
    SERVICE_NAME_LABEL,
    SERVICE_UUID_LABEL,
    USER_SERVICE_RESOURCE_TYPE,
    WORKSPACE_UUID_LABEL,
)
from logs_collector_manager.services.logs_collector.models import Filter, Parser

MAIN_CONFIG_TEMPLATE = """\
[SERVICE]
    Flush             1
    Daemon            off
    Log_Level         info
    HTTP_Server       On
    HTTP_Listen       0.0.0.0
    HTTP_Port         {{ http_port }}
    Health_Check      On
    Parsers_File      {{ parsers_file }}
    storage.path      {{ checkpoint_db_path }}/storage

[INPUT]
    Name              tail
    Tag               kube.*
    Path              {{ container_logs_path }}/*.log
    multiline.parser  docker, cri
    DB                {{ checkpoint_db_path }}/fluent-bit.db
    Mem_Buf_Limit     5MB
    Skip_Long_Lines   On
    Refresh_Interval  10

[FILTER]
    Name              kubernetes
    Match             kube.*
    Kube_URL          {{ kubernetes_api_url }}
    Merge_Log         On
    Keep_Log          Off
    Labels            On
    Annotations       Off

[FILTER]
    Name              grep
    Match             kube.*
    Regex             $kubernetes['labels']['{{ resource_type_label }}'] ^{{ user_service_resource_type }}$

[FILTER]
    Name              nest
    Match             kube.*
    Operation         lift
    Nested_under      kubernetes
    Add_prefix        kubernetes_

[FILTER]
    Name              nest
    Match             kube.*
    Operation         lift
    Nested_under      kubernetes_labels
    Add_prefix        label_

[FILTER]
    Name              modify
    Match             kube.*
    Rename            label_{{ workspace_uuid_label }} workspace_uuid
    Rename            label_{{ service_uuid_label }} service_uuid
    Rename            label_{{ service_name_label }} service_name
{% for filter in filters %}

[FILTER]
    Name              {{ filter.name }}
    Match             {{ filter.match }}
{% for param in filter.params %}
    {{ param.key }}    {{ param.value }}
{% endfor %}
{% endfor %}

[OUTPUT]
    Name              forward
    Match             *
    Host              {{ aggregator_host }}
    Port              {{ aggregator_port }}
"""

PARSER_CONFIG_TEMPLATE = """\
{% for parser in parsers %}
[PARSER]
{% for key, value in parser.settings() %}
    {{ key }}    {{ value }}
{% endfor %}

{% endfor %}
"""

_env = Environment(
    loader=DictLoader(
        {
            MAIN_CONFIG_KEY: MAIN_CONFIG_TEMPLATE,
            PARSER_CONFIG_KEY: PARSER_CONFIG_TEMPLATE,
        }
    ),
    undefined=StrictUndefined,
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)


def parsers_file_path() -> str:
    """Where the main config expects the parser config inside the container."""
    return f"{CONFIG_MOUNT_PATH}/{PARSER_CONFIG_KEY}"


def render_main_config(
    http_port: int,
    aggregator_host: str,
    aggregator_port: int,
    filters: Sequence[Filter],
) -> str:
    """Render the main collector config.

    Args:
        http_port: Port of the collector's HTTP server.
        aggregator_host: Host records are forwarded to.
        aggregator_port: Port records are forwarded to.
        filters: Extra filters, applied in order after the built-in ones.

    Returns:
        The config file text.
    """
    return _env.get_template(MAIN_CONFIG_KEY).render(
        http_port=http_port,
        parsers_file=parsers_file_path(),
        checkpoint_db_path=CHECKPOINT_DB_PATH,
        container_logs_path=CONTAINER_LOGS_PATH,
        kubernetes_api_url=KUBERNETES_API_URL,
        resource_type_label=RESOURCE_TYPE_LABEL,
        user_service_resource_type=USER_SERVICE_RESOURCE_TYPE,
        workspace_uuid_label=WORKSPACE_UUID_LABEL,
        service_uuid_label=SERVICE_UUID_LABEL,
        service_name_label=SERVICE_NAME_LABEL,
        aggregator_host=aggregator_host,
        aggregator_port=aggregator_port,
        filters=list(filters),
    )


def render_parser_config(parsers: Sequence[Parser]) -> str:
    """Render one ``[PARSER]`` stanza per parser, in order."""
    return _env.get_template(PARSER_CONFIG_KEY).render(parsers=list(parsers))


def render_config_files(
    http_port: int,
    aggregator_host: str,
    aggregator_port: int,
    filters: Sequence[Filter],
    parsers: Sequence[Parser],
) -> dict[str, str]:
    """Render both files keyed by their config map key."""
    return {
        MAIN_CONFIG_KEY: render_main_config(http_port, aggregator_host, aggregator_port, filters),
        PARSER_CONFIG_KEY: render_parser_config(parsers),
    }
