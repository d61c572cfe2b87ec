"""
ExitReady CLI Package

Usage:
    from exitready.cli import cli, main

Entry Points:
    exitready - Main CLI command (configured in pyproject.toml)
"""

from .main import cli, main
from .utils import error_exit, format_currency, format_percent, load_config, load_input, setup_logging

__all__ = [
    "cli",
    "main",
    "setup_logging",
    "load_config",
    "load_input",
    "format_currency",
    "format_percent",
    "error_exit",
]
