"""CLI context and exit codes shared by every sparktail command.

Kept apart from main.py so command modules can import it without a cycle.
"""

import click

from sparktail.cli.formatters import human_formatter


# Exit codes
EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_CONFIG_ERROR = 10
EXIT_VALIDATION_ERROR = 12     # empty submission id
EXIT_API_ERROR = 13            # transport failure or malformed response
EXIT_SUBMISSION_NOT_FOUND = 16
EXIT_SUBMISSION_QUEUED = 17
EXIT_RESOLUTION_ERROR = 18     # task/agent/executor missing or ambiguous
EXIT_INTERRUPTED = 130         # 128 + SIGINT


class Context:
    """Global options (--json, --debug) seen by every command."""

    def __init__(self) -> None:
        self.json_output: bool = False
        self.debug: bool = False

    def warn(self, message: str) -> None:
        """Print a warning to stderr; JSON output stays machine-readable."""
        if not self.json_output:
            click.echo(human_formatter.format_warning(message), err=True)


pass_context = click.make_pass_decorator(Context, ensure=True)
