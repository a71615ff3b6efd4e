#!/usr/bin/env python3
"""
ClariValue CLI - Main Entry Point

Usage:
    clarivalue [OPTIONS] COMMAND [ARGS]...

Examples:
    clarivalue valuation run --company "Acme Oy" --revenue "350 000" --profit "45 000" \\
        --assets "120 000" --liabilities "70 000"
    clarivalue valuation blend analysis.json --format json
    clarivalue progress show SESSION_ID
"""

import sys

import click

from clarivalue import __version__
from clarivalue.config import get_settings

from .groups import progress, valuation
from .utils import setup_logging

CONTEXT_SETTINGS = dict(
    help_option_names=["-h", "--help"],
    max_content_width=120,
)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config", "-c",
    default="config.yaml",
    envvar="CLARIVALUE_CONFIG",
    help="Configuration file path"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    envvar="CLARIVALUE_LOG_LEVEL",
    help="Logging level"
)
@click.option(
    "--log-file",
    type=click.Path(),
    envvar="CLARIVALUE_LOG_FILE",
    help="Log file path"
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output (same as --log-level DEBUG)"
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Suppress non-essential output"
)
@click.version_option(
    version=__version__,
    prog_name="clarivalue"
)
@click.pass_context
def cli(ctx, config, log_level, log_file, verbose, quiet):
    """ClariValue - business valuation with a clarification round

    \b
    COMMAND GROUPS:
      valuation  Run a valuation or blend a saved analysis
      progress   Saved clarification answers

    Run 'clarivalue COMMAND --help' for more information on a command.
    """
    effective_level = "DEBUG" if verbose else log_level
    if quiet:
        effective_level = "WARNING"

    setup_logging(effective_level, log_file)

    ctx.ensure_object(dict)
    try:
        ctx.obj["settings"] = get_settings(config)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config")
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


cli.add_command(valuation)
cli.add_command(progress)


def main():
    """Main entry point for the CLI"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        click.echo("\nInterrupted")
        sys.exit(130)
    except Exception as e:
        if "--verbose" in sys.argv or "-v" in sys.argv:
            raise
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
