"""JSON output for --json mode.

One-shot results and errors are single pretty-printed documents.
Follow mode prints one compact JSON object per line (NDJSON) so a
consumer can parse events as they arrive.
"""

import json
from typing import Any, Dict, Optional


def format_json(data: Any, success: bool = True) -> str:
    """Wrap a command result as {"success": ..., "data": ...}."""
    return json.dumps({"success": success, "data": data}, indent=2, ensure_ascii=False)


def format_json_event(event: str, **fields: Any) -> str:
    """Format one streaming event as a single-line JSON object.

    Example:
        >>> format_json_event("line", stream="stdout", line="hello")
        '{"event": "line", "stream": "stdout", "line": "hello"}'
    """
    return json.dumps({"event": event, **fields}, ensure_ascii=False)


def format_json_error(
    error_type: str,
    message: str,
    code: int = 1,
    hint: Optional[str] = None,
) -> str:
    """Format an error as {"success": false, "error": {...}}.

    Args:
        error_type: Exception kind, e.g. "SubmissionNotFound"
        message: Error message
        code: Process exit code
        hint: Optional suggestion for the user
    """
    error: Dict[str, Any] = {"type": error_type, "code": code, "message": message}
    if hint:
        error["hint"] = hint
    return json.dumps({"success": False, "error": error}, indent=2, ensure_ascii=False)
