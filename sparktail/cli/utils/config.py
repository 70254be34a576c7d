"""Configuration management for sparktail.

Reads configuration from TOML config files and environment variables with sensible defaults.

Config precedence (lowest to highest):
    Hardcoded defaults < Global config.toml < Project config.toml < Environment variables
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib
except ImportError:
    # Python < 3.11 fallback
    import tomli as tomllib

from sparktail.cluster_api import ClusterConfig
from sparktail.cli.utils.config_schema import (
    CONFIG_OPTIONS,
    get_option_by_toml,
    parse_value,
)

# Config file paths
CONFIG_FILENAME = "config.toml"
PROJECT_CONFIG_DIR = ".sparktail"  # ./.sparktail/config.toml


class ConfigError(Exception):
    """Configuration error - missing or invalid settings."""

    pass


# Source tracking for config values
SOURCE_DEFAULT = "default"
SOURCE_GLOBAL = "global"
SOURCE_PROJECT = "project"
SOURCE_ENV = "env"


@dataclass
class Config:
    """sparktail configuration.

    **Cluster (required for every network command):**
    - SPARKTAIL_DCOS_URL: Cluster base URL
    - SPARKTAIL_ACS_TOKEN: Auth token (optional)
    - SPARKTAIL_DISPATCHER_URL / SPARKTAIL_MARATHON_URL: Override derived service URLs
    - SPARKTAIL_AGENT_URL: Agent URL template (default: http://{host}:5051)

    **API tuning (optional):**
    - SPARKTAIL_TIMEOUT, SPARKTAIL_MAX_RETRIES, SPARKTAIL_RETRY_DELAY, SPARKTAIL_SKIP_SSL_VERIFY

    **Log streaming (optional):**
    - SPARKTAIL_CHUNK_SIZE, SPARKTAIL_POLL_INTERVAL, SPARKTAIL_TAIL_LINES,
      SPARKTAIL_TAIL_INTERVAL, SPARKTAIL_QUEUED_INTERVAL
    """

    dcos_url: Optional[str] = None
    acs_token: Optional[str] = None
    dispatcher_url: Optional[str] = None
    marathon_url: Optional[str] = None
    agent_url_template: str = "http://{host}:5051"

    # API settings
    timeout: int = 30
    max_retries: int = 0
    retry_delay: float = 1.0
    skip_ssl_verify: bool = False

    # Log streaming
    chunk_size: int = 100000
    poll_interval: float = 1.0
    tail_lines: int = 10
    tail_interval: float = 0.2
    queued_interval: float = 1.0

    def get_dispatcher_url(self) -> str:
        """Dispatcher URL, derived from the cluster URL unless set explicitly."""
        if self.dispatcher_url:
            return self.dispatcher_url.rstrip("/")
        if not self.dcos_url:
            raise ConfigError(
                "Missing cluster URL.\n"
                "Set SPARKTAIL_DCOS_URL or SPARKTAIL_DISPATCHER_URL"
            )
        return f"{self.dcos_url.rstrip('/')}/service/spark"

    def get_marathon_url(self) -> str:
        """Marathon URL, derived from the cluster URL unless set explicitly."""
        if self.marathon_url:
            return self.marathon_url.rstrip("/")
        if not self.dcos_url:
            raise ConfigError(
                "Missing cluster URL.\n"
                "Set SPARKTAIL_DCOS_URL or SPARKTAIL_MARATHON_URL"
            )
        return f"{self.dcos_url.rstrip('/')}/marathon"

    def to_cluster_config(self) -> ClusterConfig:
        """Build the HTTP client configuration.

        Raises:
            ConfigError: If the service URLs cannot be determined
        """
        return ClusterConfig(
            dispatcher_url=self.get_dispatcher_url(),
            marathon_url=self.get_marathon_url(),
            agent_url_template=self.agent_url_template,
            acs_token=self.acs_token,
            timeout=self.timeout,
            max_retries=self.max_retries,
            retry_delay=self.retry_delay,
            verify_ssl=not self.skip_ssl_verify,
        )

    # Class-level config paths
    GLOBAL_CONFIG_PATH = Path.home() / ".config" / "sparktail" / CONFIG_FILENAME

    @classmethod
    def _find_project_config(cls) -> Path | None:
        """Walk up from cwd to find .sparktail/config.toml."""
        current = Path.cwd()
        while current != current.parent:
            config_path = current / PROJECT_CONFIG_DIR / CONFIG_FILENAME
            if config_path.exists():
                return config_path
            current = current.parent
        return None

    @staticmethod
    def _load_toml(path: Path) -> dict[str, Any]:
        """Load and parse a TOML config file."""
        try:
            with open(path, "rb") as f:
                return tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}")

    @staticmethod
    def _flatten_toml(data: dict[str, Any], prefix: str = "") -> dict[str, Any]:
        """Flatten nested TOML dict to dotted keys (e.g., cluster.url)."""
        result = {}
        for key, value in data.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                result.update(Config._flatten_toml(value, full_key))
            else:
                result[full_key] = value
        return result

    @classmethod
    def _merge_file(
        cls,
        path: Path,
        source: str,
        config_dict: dict[str, Any],
        sources: dict[str, str],
    ) -> None:
        flat = cls._flatten_toml(cls._load_toml(path))
        for toml_key, value in flat.items():
            option = get_option_by_toml(toml_key)
            if option is None:
                continue
            try:
                config_dict[option.field] = parse_value(option, value)
            except (ValueError, TypeError):
                raise ConfigError(f"Invalid value for {toml_key} in {path}: {value!r}")
            sources[option.field] = source

    @classmethod
    def from_files_and_env(cls, require_url: bool = True) -> tuple["Config", dict[str, str]]:
        """Load config from files + env vars with layered precedence.

        Args:
            require_url: If True, raise error if no cluster URL can be determined

        Returns:
            Tuple of (Config instance, dict mapping field names to their sources)

        Raises:
            ConfigError: If required configuration is missing or invalid
        """
        # 1. Start with defaults
        config_dict: dict[str, Any] = {opt.field: opt.default for opt in CONFIG_OPTIONS}
        sources: dict[str, str] = {key: SOURCE_DEFAULT for key in config_dict}

        # 2. Merge global config.toml
        global_config_path: Path | None = None
        if cls.GLOBAL_CONFIG_PATH.exists():
            global_config_path = cls.GLOBAL_CONFIG_PATH
            cls._merge_file(global_config_path, SOURCE_GLOBAL, config_dict, sources)

        # 3. Merge project config.toml
        project_config_path = cls._find_project_config()
        if project_config_path:
            cls._merge_file(project_config_path, SOURCE_PROJECT, config_dict, sources)

        # 4. Override with env vars (highest priority)
        for option in CONFIG_OPTIONS:
            value = os.getenv(option.env_var)
            if value is None:
                continue
            try:
                config_dict[option.field] = parse_value(option, value)
            except (ValueError, TypeError):
                raise ConfigError(f"Invalid {option.env_var} value: {value}")
            sources[option.field] = SOURCE_ENV

        if require_url and not config_dict["dcos_url"] and not (
            config_dict["dispatcher_url"] and config_dict["marathon_url"]
        ):
            raise ConfigError(
                "Missing cluster URL configuration.\n"
                "Set SPARKTAIL_DCOS_URL env var or add to config.toml:\n"
                "  [cluster]\n"
                "  url = 'https://dcos.example.com'"
            )

        config = cls(**config_dict)

        # Attach paths for display purposes
        config._global_config_path = global_config_path  # type: ignore
        config._project_config_path = project_config_path  # type: ignore

        return config, sources

    @classmethod
    def get_config_paths(cls) -> tuple[Path | None, Path | None]:
        """Get paths to global and project config files if they exist."""
        global_path = cls.GLOBAL_CONFIG_PATH if cls.GLOBAL_CONFIG_PATH.exists() else None
        project_path = cls._find_project_config()
        return global_path, project_path
