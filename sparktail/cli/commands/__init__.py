"""CLI command modules."""

from sparktail.cli.commands.submission import log, status, kill
from sparktail.cli.commands.config import config

__all__ = ["log", "status", "kill", "config"]
