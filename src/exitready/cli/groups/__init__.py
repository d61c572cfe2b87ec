"""
CLI command groups for ExitReady
"""

from .retirement import retirement
from .signals import signals
from .valuation import valuation

__all__ = ["retirement", "signals", "valuation"]
