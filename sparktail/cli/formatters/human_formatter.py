"""Human-readable output formatter for CLI commands."""

from typing import Any, Dict, Optional


# Status emoji mapping
STATUS_EMOJI = {
    "QUEUED": "⏳",  # hourglass
    "RUNNING": "\U0001f3c3",  # runner
    "FINISHED": "✅",  # check mark
    "FAILED": "❌",  # cross mark
    "KILLED": "\U0001f6d1",  # stop sign
    "NOT_FOUND": "❓",  # question mark
}

DEFAULT_STATUS_EMOJI = "\U0001f4ca"  # bar chart


def format_submission_status(status_data: Dict[str, Any]) -> str:
    """Format a dispatcher status document as a pretty box.

    Args:
        status_data: Status response from the dispatcher

    Returns:
        Formatted string with submission status
    """
    state = status_data.get("driverState", "UNKNOWN")
    emoji = STATUS_EMOJI.get(state, DEFAULT_STATUS_EMOJI)

    lines = [
        "",
        "╭" + "─" * 50 + "╮",
        "│" + " Submission Status".ljust(50) + "│",
        "├" + "─" * 50 + "┤",
    ]

    fields = [
        ("Submission ID", status_data.get("submissionId", "N/A")),
        ("State", f"{emoji} {state}"),
        ("Spark Version", status_data.get("serverSparkVersion", "N/A")),
    ]
    if status_data.get("message"):
        fields.append(("Message", str(status_data["message"]).splitlines()[0]))

    for label, value in fields:
        line = f" {label}: {value}"
        if len(line) > 49:
            line = line[:46] + "..."
        lines.append("│" + line.ljust(50) + "│")

    lines.append("╰" + "─" * 50 + "╯")
    return "\n".join(lines)


def format_error(message: str, hint: Optional[str] = None) -> str:
    """Format an error message.

    Args:
        message: Error message
        hint: Optional hint for fixing

    Returns:
        Formatted error string
    """
    lines = [f"\n❌ Error: {message}"]
    if hint:
        lines.append(f"\U0001f4a1 Hint: {hint}")
    return "\n".join(lines)


def format_success(message: str) -> str:
    return f"✅ {message}"


def format_warning(message: str) -> str:
    return f"⚠️ {message}"
