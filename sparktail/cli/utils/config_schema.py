"""Configuration schema for sparktail.

Defines all environment variables and TOML configuration keys with metadata
for documentation, validation, and `config show`.
"""

from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class ConfigOption:
    """A single configuration option with metadata.

    Attributes:
        env_var: Environment variable name
        toml_key: TOML configuration key (e.g., "cluster.url")
        field: Config dataclass field the option populates
        description: Human-readable description
        default: Default value (None if unset)
        category: Configuration category for grouping
        secret: If True, value should be hidden in output
        parser: Optional function to parse string value to correct type
    """

    env_var: str
    toml_key: str
    field: str
    description: str
    default: Any | None
    category: str
    secret: bool = False
    parser: Callable[[str], Any] | None = None


# Parser functions
def _parse_int(value: str) -> int:
    """Parse string to integer."""
    return int(value)


def _parse_positive_int(value: str) -> int:
    parsed = int(value)
    if parsed < 1:
        raise ValueError(f"must be >= 1, got {parsed}")
    return parsed


def _parse_float(value: str) -> float:
    """Parse string to float."""
    return float(value)


def _parse_bool(value: str) -> bool:
    """Parse string to boolean."""
    return value.lower() in ("1", "true", "yes", "on")


CONFIG_OPTIONS: list[ConfigOption] = [
    # Cluster endpoints
    ConfigOption(
        env_var="SPARKTAIL_DCOS_URL",
        toml_key="cluster.url",
        field="dcos_url",
        description="Cluster base URL (e.g., https://dcos.example.com)",
        default=None,
        category="Cluster",
    ),
    ConfigOption(
        env_var="SPARKTAIL_ACS_TOKEN",
        toml_key="cluster.acs_token",
        field="acs_token",
        description="Cluster auth token sent as 'Authorization: token=...'",
        default=None,
        category="Cluster",
        secret=True,
    ),
    ConfigOption(
        env_var="SPARKTAIL_DISPATCHER_URL",
        toml_key="cluster.dispatcher_url",
        field="dispatcher_url",
        description="Spark dispatcher URL (default: <url>/service/spark)",
        default=None,
        category="Cluster",
    ),
    ConfigOption(
        env_var="SPARKTAIL_MARATHON_URL",
        toml_key="cluster.marathon_url",
        field="marathon_url",
        description="Marathon URL (default: <url>/marathon)",
        default=None,
        category="Cluster",
    ),
    ConfigOption(
        env_var="SPARKTAIL_AGENT_URL",
        toml_key="cluster.agent_url",
        field="agent_url_template",
        description="Agent URL template with {host} / {agent_id} placeholders",
        default="http://{host}:5051",
        category="Cluster",
    ),
    # API Settings
    ConfigOption(
        env_var="SPARKTAIL_TIMEOUT",
        toml_key="api.timeout",
        field="timeout",
        description="HTTP timeout in seconds",
        default=30,
        category="API",
        parser=_parse_positive_int,
    ),
    ConfigOption(
        env_var="SPARKTAIL_MAX_RETRIES",
        toml_key="api.max_retries",
        field="max_retries",
        description="Retries for timeouts, connection errors and 5xx (0 = fail fast)",
        default=0,
        category="API",
        parser=_parse_int,
    ),
    ConfigOption(
        env_var="SPARKTAIL_RETRY_DELAY",
        toml_key="api.retry_delay",
        field="retry_delay",
        description="Delay between retries in seconds",
        default=1.0,
        category="API",
        parser=_parse_float,
    ),
    ConfigOption(
        env_var="SPARKTAIL_SKIP_SSL_VERIFY",
        toml_key="api.skip_ssl_verify",
        field="skip_ssl_verify",
        description="Disable TLS certificate verification",
        default=False,
        category="API",
        parser=_parse_bool,
    ),
    # Log streaming
    ConfigOption(
        env_var="SPARKTAIL_CHUNK_SIZE",
        toml_key="logs.chunk_size",
        field="chunk_size",
        description="Bytes requested per remote read while following",
        default=100000,
        category="Logs",
        parser=_parse_positive_int,
    ),
    ConfigOption(
        env_var="SPARKTAIL_POLL_INTERVAL",
        toml_key="logs.poll_interval",
        field="poll_interval",
        description="Seconds between remote reads while following",
        default=1.0,
        category="Logs",
        parser=_parse_float,
    ),
    ConfigOption(
        env_var="SPARKTAIL_TAIL_LINES",
        toml_key="logs.tail_lines",
        field="tail_lines",
        description="Lines of context printed when following starts",
        default=10,
        category="Logs",
        parser=_parse_int,
    ),
    ConfigOption(
        env_var="SPARKTAIL_TAIL_INTERVAL",
        toml_key="logs.tail_interval",
        field="tail_interval",
        description="Seconds between local buffer checks while following",
        default=0.2,
        category="Logs",
        parser=_parse_float,
    ),
    ConfigOption(
        env_var="SPARKTAIL_QUEUED_INTERVAL",
        toml_key="logs.queued_interval",
        field="queued_interval",
        description="Seconds between status checks while a submission is queued",
        default=1.0,
        category="Logs",
        parser=_parse_float,
    ),
]

CATEGORY_ORDER = ["Cluster", "API", "Logs"]


def get_options_by_category(category: str) -> list[ConfigOption]:
    """Get all configuration options for a category."""
    return [opt for opt in CONFIG_OPTIONS if opt.category == category]


def get_option_by_env(env_var: str) -> ConfigOption | None:
    """Get configuration option by environment variable name."""
    for opt in CONFIG_OPTIONS:
        if opt.env_var == env_var:
            return opt
    return None


def get_option_by_toml(toml_key: str) -> ConfigOption | None:
    """Get configuration option by TOML key."""
    for opt in CONFIG_OPTIONS:
        if opt.toml_key == toml_key:
            return opt
    return None


def get_categories() -> list[str]:
    """Get all unique categories in order."""
    return [cat for cat in CATEGORY_ORDER if any(opt.category == cat for opt in CONFIG_OPTIONS)]


def parse_value(option: ConfigOption, value: Any) -> Any:
    """Parse a raw value based on the option's parser.

    TOML values arrive already typed and are validated through the same parser.

    Raises:
        ValueError: If the parser rejects the value
    """
    if option.parser and value is not None:
        return option.parser(value if isinstance(value, str) else str(value))
    return value
