"""Cluster client management for sparktail.

Provides a shared ClusterAPI instance per process.
"""

from typing import Optional

from sparktail.cluster_api import ClusterAPI, ClusterConfig
from sparktail.cli.utils.config import Config


class ClientManager:
    """Builds and caches the ClusterAPI client for the current session."""

    _api: Optional[ClusterAPI] = None
    _cluster_config: Optional[ClusterConfig] = None

    @classmethod
    def get_api(cls, config: Optional[Config] = None) -> ClusterAPI:
        """Get a configured cluster client.

        The cached client is reused while the resolved cluster settings are
        unchanged, even when they come from a freshly loaded Config.

        Args:
            config: Configuration to use. If None, reads files and environment.

        Returns:
            ClusterAPI instance

        Raises:
            ConfigError: If the cluster URL is not configured
        """
        if config is None:
            config, _ = Config.from_files_and_env()

        cluster_config = config.to_cluster_config()
        if cls._api is not None and cls._cluster_config == cluster_config:
            return cls._api

        cls._api = ClusterAPI(cluster_config)
        cls._cluster_config = cluster_config
        return cls._api

    @classmethod
    def clear_cache(cls) -> None:
        """Drop the cached client."""
        cls._api = None
        cls._cluster_config = None
