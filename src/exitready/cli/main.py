#!/usr/bin/env python3
"""
ExitReady CLI - Main Entry Point

Provides a unified command-line interface for exit-readiness scoring,
valuation, risk signals and retirement planning.

Usage:
    exitready [OPTIONS] COMMAND [ARGS]...

Examples:
    exitready valuation score assessment.yaml
    exitready valuation dcf dcf.yaml --sensitivity
    exitready signals summary signals.yaml
    exitready retirement simulate plan.yaml --seed 42
"""

import sys

import click

from .groups import retirement, signals, valuation
from .utils import load_config, setup_logging

CONTEXT_SETTINGS = dict(
    help_option_names=["-h", "--help"],
    max_content_width=120,
)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option(
    "--config", "-c",
    default="config.yaml",
    envvar="EXITREADY_CONFIG",
    help="Configuration file path"
)
@click.option(
    "--log-level", "-l",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    default="INFO",
    envvar="EXITREADY_LOG_LEVEL",
    help="Logging level"
)
@click.option(
    "--log-file",
    type=click.Path(),
    envvar="EXITREADY_LOG_FILE",
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
    version="0.1.0",
    prog_name="exitready"
)
@click.pass_context
def cli(ctx, config, log_level, log_file, verbose, quiet):
    """ExitReady - Valuation and Exit-Readiness Engine

    Scores business readiness, values the company, prioritizes risk
    signals and projects the owner's retirement outcome.

    \b
    COMMAND GROUPS:
      valuation   Assessment scoring, valuation formula and DCF
      signals     Risk signal ranking, value at risk and audit
      retirement  Retirement projection and Monte Carlo simulation

    Run 'exitready COMMAND --help' for more information on a command.
    """
    effective_level = "DEBUG" if verbose else log_level
    if quiet:
        effective_level = "WARNING"

    setup_logging(effective_level, log_file)

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


cli.add_command(valuation)
cli.add_command(signals)
cli.add_command(retirement)


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
