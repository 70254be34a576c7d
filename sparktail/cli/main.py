"""sparktail - Main entry point.

Usage:
    sparktail log driver-20260101120000-0001
    sparktail log driver-20260101120000-0001 --follow --stderr
    sparktail status driver-20260101120000-0001
    sparktail config show
"""

import logging
import sys

import click

from sparktail import __version__
from sparktail.cli.context import (
    Context,
    pass_context,
    EXIT_GENERAL_ERROR,
)
from sparktail.cli.commands import log, status, kill, config


@click.group()
@click.version_option(version=__version__, prog_name="sparktail")
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output as JSON (machine-readable)",
)
@click.option(
    "--debug",
    is_flag=True,
    help="Enable debug logging",
)
@pass_context
def main(ctx: Context, json_output: bool, debug: bool) -> None:
    """Stream Spark driver logs from a Mesos cluster.

    Finds where a submission's driver runs and prints its stdout/stderr,
    once or continuously like `tail -f`.

    \b
    Examples:
        sparktail log driver-20260101120000-0001
        sparktail log driver-20260101120000-0001 --follow
        sparktail status driver-20260101120000-0001
    """
    ctx.json_output = json_output
    ctx.debug = debug

    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )


main.add_command(log)
main.add_command(status)
main.add_command(kill)
main.add_command(config)


def cli() -> None:
    """Entry point for the CLI."""
    try:
        main()
    except Exception as e:  # pragma: no cover - top-level safety net
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_GENERAL_ERROR)


if __name__ == "__main__":  # pragma: no cover
    cli()
