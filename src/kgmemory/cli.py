"""Root CLI group for kgmemory with global flags and command registration."""

from __future__ import annotations

import click

from kgmemory import __version__
from kgmemory.commands import register_commands
from kgmemory.commands._context import AppContext
from kgmemory.config.settings import KgSettings


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="kgmemory")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging and operation timings.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "-m",
    "--memory-file",
    default=None,
    help="Knowledge graph file. [default: $MEMORY_FILE_PATH, else memory.json]",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    config_path: str | None,
    memory_file: str | None,
) -> None:
    """kgmemory — knowledge graph memory for MCP clients."""
    ctx.ensure_object(dict)
    settings = KgSettings.from_cli(
        config_path=config_path,
        memory_file=memory_file,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
