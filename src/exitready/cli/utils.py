"""
Shared CLI utilities for ExitReady
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import click
import yaml

from exitready.config.settings import ExitReadyConfig


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Configure application logging."""
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    # stdout is reserved for command output
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=numeric_level,
        format=log_format,
        handlers=handlers,
        force=True,
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def load_config(config_file: str = "config.yaml") -> ExitReadyConfig:
    """Load configuration from YAML file, falling back to defaults when it is missing"""
    config_path = Path(config_file)

    if not config_path.exists():
        logging.getLogger(__name__).debug(f"No config at {config_path}; using defaults")
        return ExitReadyConfig()

    return ExitReadyConfig.from_yaml(config_path)


def load_input(path: str) -> Any:
    """Read a JSON or YAML input document"""
    with open(path, "r") as f:
        return yaml.safe_load(f)


def echo_json(payload: Any):
    click.echo(json.dumps(payload, indent=2, default=str))


def format_currency(value: Optional[float], symbol: str = "$") -> str:
    """Format a value as currency"""
    if value is None:
        return "N/A"
    if abs(value) >= 1_000_000_000:
        return f"{symbol}{value/1_000_000_000:.2f}B"
    if abs(value) >= 1_000_000:
        return f"{symbol}{value/1_000_000:.2f}M"
    if abs(value) >= 1_000:
        return f"{symbol}{value/1_000:.2f}K"
    return f"{symbol}{value:.2f}"


def format_percent(value: Optional[float]) -> str:
    """Format a value as percentage"""
    if value is None:
        return "N/A"
    return f"{value:.2f}%"


def error_exit(message: str, code: int = 1):
    """Print error message and exit"""
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(code)
