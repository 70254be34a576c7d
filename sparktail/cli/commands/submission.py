"""Submission commands for sparktail.

Commands:
    sparktail log    - Print or follow a submission's stdout/stderr
    sparktail status - Show a submission's dispatcher state
    sparktail kill   - Kill a submission
"""

import sys
from typing import Callable, Dict, Optional

import click

from sparktail.cli.context import (
    Context,
    pass_context,
    EXIT_CONFIG_ERROR,
    EXIT_VALIDATION_ERROR,
    EXIT_API_ERROR,
    EXIT_SUBMISSION_NOT_FOUND,
    EXIT_SUBMISSION_QUEUED,
    EXIT_RESOLUTION_ERROR,
    EXIT_INTERRUPTED,
)
from sparktail.cluster_api import TransportError, validate_submission_id
from sparktail.cli.utils.capture import STDERR, STDOUT
from sparktail.cli.utils.client import ClientManager
from sparktail.cli.utils.config import Config, ConfigError
from sparktail.cli.utils.locator import ResolutionError, SubmissionNotFound
from sparktail.cli.utils.session import LogSession, SessionInterrupted, SubmissionStillQueued
from sparktail.cli.formatters import json_formatter, human_formatter


def _check_submission_id(ctx: Context, submission_id: str) -> None:
    """Reject empty ids and warn about ids that do not look like driver ids."""
    try:
        hint = validate_submission_id(submission_id)
    except ValueError as e:
        _handle_error(ctx, "InvalidSubmissionID", str(e), EXIT_VALIDATION_ERROR)
        return
    if hint:
        ctx.warn(hint)


def _make_output(ctx: Context, follow: bool, collected: Dict[str, str]) -> Callable[[str, str], None]:
    """Build the session output callback for the current output mode."""

    def human_output(stream_name: str, text: str) -> None:
        click.echo(text, nl=False, err=stream_name == STDERR)

    def json_follow_output(stream_name: str, text: str) -> None:
        click.echo(json_formatter.format_json_event("line", stream=stream_name, line=text.rstrip("\n")))

    def json_snapshot_output(stream_name: str, text: str) -> None:
        collected[stream_name] = text

    if not ctx.json_output:
        return human_output
    return json_follow_output if follow else json_snapshot_output


@click.command("log")
@click.argument("submission_id")
@click.option("--follow", "-f", is_flag=True, help="Keep streaming new output until interrupted")
@click.option("--stderr", "show_stderr", is_flag=True, help="Also show the driver's stderr")
@click.option(
    "--lines",
    "-n",
    type=click.IntRange(min=0),
    default=None,
    help="Lines of existing output to show when following (default: 10, env: SPARKTAIL_TAIL_LINES)",
)
@pass_context
def log(ctx: Context, submission_id: str, follow: bool, show_stderr: bool, lines: Optional[int]):
    """Print the console output of a Spark submission.

    Without --follow, prints the current stderr (with --stderr) and stdout
    once. With --follow, waits for a queued submission to start, then
    streams new output until Ctrl+C.

    \b
    Examples:
        sparktail log driver-20260101120000-0001
        sparktail log driver-20260101120000-0001 --stderr
        sparktail log driver-20260101120000-0001 --follow -n 50
    """
    _check_submission_id(ctx, submission_id)

    collected: Dict[str, str] = {}
    try:
        config, _ = Config.from_files_and_env()
        api = ClientManager.get_api(config)

        session = LogSession(
            api,
            output=_make_output(ctx, follow, collected),
            chunk_size=config.chunk_size,
            poll_interval=config.poll_interval,
            tail_lines=config.tail_lines if lines is None else lines,
            tail_interval=config.tail_interval,
            queued_interval=config.queued_interval,
        )
        if follow and not ctx.json_output:
            click.echo(f"--- Following {submission_id} (Ctrl+C to stop) ---", err=True)

        session.resolve_and_stream(submission_id, follow=follow, show_stderr=show_stderr)

        if ctx.json_output:
            payload = {"submission_id": submission_id, STDOUT: collected.get(STDOUT, "")}
            if show_stderr:
                payload[STDERR] = collected.get(STDERR, "")
            click.echo(json_formatter.format_json(payload))

    except ConfigError as e:
        _handle_error(ctx, "ConfigError", str(e), EXIT_CONFIG_ERROR)
    except SubmissionNotFound as e:
        _handle_error(ctx, "SubmissionNotFound", str(e), EXIT_SUBMISSION_NOT_FOUND)
    except SubmissionStillQueued as e:
        _handle_error(
            ctx,
            "SubmissionStillQueued",
            str(e),
            EXIT_SUBMISSION_QUEUED,
            hint="Use --follow to wait for it to start",
        )
    except ResolutionError as e:
        _handle_error(ctx, type(e).__name__, str(e), EXIT_RESOLUTION_ERROR)
    except TransportError as e:
        _handle_error(ctx, "TransportError", str(e), EXIT_API_ERROR)
    except SessionInterrupted as e:
        if ctx.json_output:
            _handle_error(ctx, "Interrupted", str(e), EXIT_INTERRUPTED)
        click.echo("\nStopped following.", err=True)
        sys.exit(EXIT_INTERRUPTED)


@click.command("status")
@click.argument("submission_id")
@pass_context
def status(ctx: Context, submission_id: str):
    """Show the dispatcher state of a submission.

    \b
    Example:
        sparktail status driver-20260101120000-0001
    """
    _check_submission_id(ctx, submission_id)

    try:
        config, _ = Config.from_files_and_env()
        api = ClientManager.get_api(config)
        result = api.get_submission_status(submission_id)

        if result.get("driverState") == "NOT_FOUND":
            _handle_error(
                ctx,
                "SubmissionNotFound",
                f"Submission {submission_id} not found",
                EXIT_SUBMISSION_NOT_FOUND,
            )

        if ctx.json_output:
            click.echo(json_formatter.format_json(result))
        else:
            click.echo(human_formatter.format_submission_status(result))

    except ConfigError as e:
        _handle_error(ctx, "ConfigError", str(e), EXIT_CONFIG_ERROR)
    except TransportError as e:
        _handle_error(ctx, "TransportError", str(e), EXIT_API_ERROR)


@click.command("kill")
@click.argument("submission_id")
@pass_context
def kill(ctx: Context, submission_id: str):
    """Kill a submission.

    \b
    Example:
        sparktail kill driver-20260101120000-0001
    """
    _check_submission_id(ctx, submission_id)

    try:
        config, _ = Config.from_files_and_env()
        api = ClientManager.get_api(config)
        result = api.kill_submission(submission_id)

        if result.get("success") is False:
            message = result.get("message") or f"Dispatcher refused to kill {submission_id}"
            _handle_error(ctx, "KillFailed", message, EXIT_API_ERROR)

        if ctx.json_output:
            click.echo(json_formatter.format_json({"submission_id": submission_id, "status": "killed"}))
        else:
            click.echo(human_formatter.format_success(f"Submission killed: {submission_id}"))

    except ConfigError as e:
        _handle_error(ctx, "ConfigError", str(e), EXIT_CONFIG_ERROR)
    except TransportError as e:
        _handle_error(ctx, "TransportError", str(e), EXIT_API_ERROR)


def _handle_error(ctx: Context, error_type: str, message: str, exit_code: int, hint: Optional[str] = None):
    """Handle and format errors consistently."""
    if ctx.json_output:
        click.echo(json_formatter.format_json_error(error_type, message, exit_code, hint), err=True)
    else:
        click.echo(human_formatter.format_error(message, hint), err=True)
    sys.exit(exit_code)
