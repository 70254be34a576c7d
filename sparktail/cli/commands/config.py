"""Configuration commands for sparktail.

Commands:
    sparktail config show - Display merged configuration with sources
"""

from pathlib import Path
from typing import Any

import click

from sparktail.cli.context import (
    Context,
    pass_context,
    EXIT_CONFIG_ERROR,
)
from sparktail.cli.utils.config import (
    Config,
    ConfigError,
    SOURCE_DEFAULT,
    SOURCE_GLOBAL,
    SOURCE_PROJECT,
    SOURCE_ENV,
)
from sparktail.cli.utils.config_schema import (
    ConfigOption,
    get_categories,
    get_options_by_category,
)
from sparktail.cli.formatters import json_formatter, human_formatter


# Source display labels with color
SOURCE_LABELS = {
    SOURCE_DEFAULT: ("default", "white"),
    SOURCE_GLOBAL: ("global", "cyan"),
    SOURCE_PROJECT: ("project", "green"),
    SOURCE_ENV: ("env", "yellow"),
}


@click.group()
def config() -> None:
    """Inspect sparktail configuration."""
    pass


def _get_field_value(cfg: Config, option: ConfigOption) -> tuple[Any, bool]:
    """Get the display value for an option and whether it is set."""
    value = getattr(cfg, option.field, None)
    is_set = value is not None and value != ""
    if option.secret and value:
        return "********", is_set
    return value, is_set


@config.command("show")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format (table, json)",
)
@click.option(
    "--compact",
    "-c",
    is_flag=True,
    help="Hide unset options",
)
@pass_context
def show_config(ctx: Context, output_format: str, compact: bool) -> None:
    """Display merged configuration with value sources.

    \b
    Examples:
        sparktail config show
        sparktail config show --format json
        sparktail config show --compact
    """
    try:
        cfg, sources = Config.from_files_and_env(require_url=False)
    except ConfigError as e:
        if ctx.json_output:
            click.echo(json_formatter.format_json_error("ConfigError", str(e), EXIT_CONFIG_ERROR), err=True)
        else:
            click.echo(human_formatter.format_error(str(e)), err=True)
        raise SystemExit(EXIT_CONFIG_ERROR)

    global_path, project_path = Config.get_config_paths()

    if output_format == "json" or ctx.json_output:
        _show_json(cfg, sources, global_path, project_path, compact)
    else:
        _show_table(cfg, sources, global_path, project_path, compact)


def _show_table(
    cfg: Config,
    sources: dict[str, str],
    global_path: Path | None,
    project_path: Path | None,
    compact: bool,
) -> None:
    """Display configuration in table format."""
    click.echo(click.style("Configuration Overview", bold=True))
    click.echo()

    click.echo("Config files:")
    click.echo(f"  Global:  {global_path or Config.GLOBAL_CONFIG_PATH} "
               + click.style("(found)" if global_path else "(not found)",
                             fg="green" if global_path else "white"))
    click.echo(f"  Project: {project_path or './.sparktail/config.toml'} "
               + click.style("(found)" if project_path else "(not found)",
                             fg="green" if project_path else "white"))
    click.echo()

    for category in get_categories():
        options = get_options_by_category(category)
        if compact:
            options = [opt for opt in options if _get_field_value(cfg, opt)[1]]
        if not options:
            continue

        click.echo(click.style(category, bold=True, fg="blue"))
        for option in options:
            value, is_set = _get_field_value(cfg, option)
            value_display = str(value) if is_set else "(not set)"
            label, color = SOURCE_LABELS.get(sources.get(option.field, SOURCE_DEFAULT), ("?", "white"))
            click.echo(f"  {option.env_var.ljust(28)} {value_display.ljust(40)} "
                       + click.style(f"[{label}]", fg=color))
        click.echo()


def _show_json(
    cfg: Config,
    sources: dict[str, str],
    global_path: Path | None,
    project_path: Path | None,
    compact: bool,
) -> None:
    """Display configuration as JSON."""
    values = {}
    for category in get_categories():
        for option in get_options_by_category(category):
            value, is_set = _get_field_value(cfg, option)
            if compact and not is_set:
                continue
            values[option.env_var] = {
                "toml_key": option.toml_key,
                "value": value,
                "source": sources.get(option.field, SOURCE_DEFAULT),
                "category": category,
            }

    click.echo(json_formatter.format_json({
        "config_files": {
            "global": str(global_path) if global_path else None,
            "project": str(project_path) if project_path else None,
        },
        "values": values,
    }))
