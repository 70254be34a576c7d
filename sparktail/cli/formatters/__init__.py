"""Human and JSON output for sparktail commands."""

from sparktail.cli.formatters.json_formatter import format_json, format_json_error, format_json_event
from sparktail.cli.formatters.human_formatter import (
    format_submission_status,
    format_error,
    format_success,
    format_warning,
)

__all__ = [
    "format_json",
    "format_json_error",
    "format_json_event",
    "format_submission_status",
    "format_error",
    "format_success",
    "format_warning",
]
