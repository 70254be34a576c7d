"""CLI utility modules."""

from sparktail.cli.utils.config import Config, ConfigError
from sparktail.cli.utils.client import ClientManager

__all__ = ["Config", "ConfigError", "ClientManager"]
