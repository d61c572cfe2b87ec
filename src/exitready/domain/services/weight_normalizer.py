"""
Weight Normalizer Utility

Validation and normalization for category weight sets. Weights are decimal
fractions (0.25 = 25%) and are compared at whole-percentage granularity, so
a set like {0.333, 0.333, 0.334} is valid while {0.3, 0.3, 0.3} is not.

Author: ExitReady Team
Date: 2025-11-07
"""

import logging
import math
from typing import Dict, Hashable, Iterable, Optional


logger = logging.getLogger(__name__)


class WeightNormalizer:
    """
    Utility for checking and normalizing weight mappings.

    Features:
    - Validate that weights sum to 100% at a percentage increment
    - Normalize arbitrary non-negative weights to sum to exactly 100%
    - Round to whole-percentage increments with largest-remainder allocation
    """

    def __init__(self, rounding_increment: int = 1):
        """
        Initialize WeightNormalizer.

        Args:
            rounding_increment: Percentage increment used for rounding and
                               validation (default: 1 = whole percentages)
        """
        if rounding_increment <= 0 or rounding_increment > 100:
            raise ValueError(f"Rounding increment must be 1-100, got {rounding_increment}")

        self.increment = rounding_increment

    def to_increments(self, fraction: float) -> int:
        """Round a fraction to a whole number of increments (half away from zero)."""
        units = fraction * 100 / self.increment
        return int(math.floor(units + 0.5)) if units >= 0 else -int(math.floor(-units + 0.5))

    def sums_to_one(self, weights: Dict[Hashable, float]) -> bool:
        """
        True when the weights sum to 100% at the configured increment.

        The total is rounded to the increment, so floating-point noise such
        as 0.1 + 0.2 never makes a valid set fail.
        """
        total_units = self.to_increments(sum(weights.values()))
        return total_units * self.increment == 100

    def find_problems(self, weights: Dict[Hashable, float]) -> list:
        """Return human-readable problems with ``weights`` (empty when valid)."""
        problems = []
        if not weights:
            return ["weight set is empty"]

        for key, value in weights.items():
            if value is None or not math.isfinite(value):
                problems.append(f"{key} weight is not a finite number")
            elif value < 0:
                problems.append(f"{key} weight {value} is negative")

        if not problems and not self.sums_to_one(weights):
            problems.append(f"weights sum to {sum(weights.values()) * 100:.2f}%, expected 100%")
        return problems

    def normalize(
        self,
        weights: Dict[Hashable, float],
        key_order: Optional[Iterable[Hashable]] = None,
    ) -> Dict[Hashable, float]:
        """
        Rescale non-negative weights so they sum to exactly 1.0.

        Args:
            weights: Mapping of key -> raw weight (any positive scale)
            key_order: Optional complete key order; missing keys get 0.0

        Returns:
            Mapping of key -> fraction, each a multiple of the increment

        Raises:
            ValueError: If all weights are zero or negative
        """
        if not weights:
            raise ValueError("Cannot normalize empty weights dict")

        positive = {k: v for k, v in weights.items() if v is not None and v > 0}
        if not positive:
            raise ValueError("All weights are zero or negative, cannot normalize")

        total = sum(positive.values())
        slots = 100 // self.increment
        exact = {k: v / total * slots for k, v in positive.items()}

        floored = {k: int(math.floor(v)) for k, v in exact.items()}
        shortfall = slots - sum(floored.values())

        # Largest remainder gets the leftover increments; ties keep insertion order
        by_remainder = sorted(exact, key=lambda k: exact[k] - floored[k], reverse=True)
        for key in by_remainder[:shortfall]:
            floored[key] += 1

        normalized = {k: units * self.increment / 100 for k, units in floored.items()}

        if key_order is not None:
            normalized = {k: normalized.get(k, 0.0) for k in key_order}

        logger.debug(f"Normalized weights: {self.format_weights_string(normalized)}")
        return normalized

    @staticmethod
    def format_weights_string(weights: Dict[Hashable, float]) -> str:
        """
        Format weights as human-readable string.

        Example: "FINANCIAL=25%, TRANSFERABILITY=20%, ..."
        """
        non_zero = {k: v for k, v in weights.items() if v and v > 0}
        if not non_zero:
            return "No weights"

        parts = [
            f"{getattr(key, 'value', key)}={weight * 100:.0f}%"
            for key, weight in sorted(non_zero.items(), key=lambda x: x[1], reverse=True)
        ]
        return ", ".join(parts)
