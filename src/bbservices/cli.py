"""Root CLI group for bbservices with global flags and command registration."""

from __future__ import annotations

import click

from bbservices import __version__
from bbservices.commands import register_commands
from bbservices.commands._context import AppContext
from bbservices.config.settings import BBServicesSettings, ConfigError


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="bbservices")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--telemetry", is_flag=True, help="Include span timings in results.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    verbose: bool,
    log_json: bool,
    telemetry: bool,
    config_path: str | None,
) -> None:
    """bbservices — run and chain service objects."""
    # Unset flags must not mask env vars or bbservices.toml.
    flags = {
        "json_output": json_output,
        "verbose": verbose,
        "log_json": log_json,
        "telemetry": telemetry,
    }
    try:
        settings = BBServicesSettings.load(
            config_path=config_path,
            **{name: True for name, value in flags.items() if value},
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
