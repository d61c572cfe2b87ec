# Copyright 2025 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Valuation Formula

Multiple-based valuation of a private company from adjusted EBITDA, an
industry multiple range, the core factor score and the BRI composite.

Formula:
    base_multiple     = (multiple_low + multiple_high) / 2
    blend             = core_weight * core_score + (1 - core_weight) * bri_score
    discount_fraction = min(max_discount, (1 - blend) ** alpha)
    final_multiple    = base_multiple * (1 - discount_fraction)
    current_value     = max(0, adjusted_ebitda * final_multiple)
    potential_value   = max(0, adjusted_ebitda * base_multiple)
    value_gap         = potential_value - current_value

The discount curve is a ``DiscountPolicy`` so the shape can be tuned
without touching the formula. Any policy must be monotonically decreasing
in both scores and stay inside [0, 1).

Usage:
    from exitready.domain.services.valuation.valuation_formula import calculate_valuation

    result = calculate_valuation(1_000_000, 4.0, 6.0, core_score=0.8, bri_score=0.8)
    print(result.current_value)
"""

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict

from exitready.domain.exceptions import InvalidValuationInputError
from exitready.domain.services.valuation.industry_multiples import IndustryMultiples

logger = logging.getLogger(__name__)

ALPHA = 1.4
DEFAULT_CORE_WEIGHT = 0.5
DEFAULT_MAX_DISCOUNT = 0.95

EBITDA_ESTIMATE_ROUNDING = 100_000


@dataclass(frozen=True)
class DiscountPolicy:
    """
    Maps (core_score, bri_score) to a multiple discount.

    Attributes:
        alpha: Curvature; higher values forgive mid-range scores more
        core_weight: Share of the blend taken by the core score (rest is BRI)
        max_discount: Upper clamp, must be below 1 so the final multiple stays positive
    """

    alpha: float = ALPHA
    core_weight: float = DEFAULT_CORE_WEIGHT
    max_discount: float = DEFAULT_MAX_DISCOUNT

    def __post_init__(self):
        if not (math.isfinite(self.alpha) and self.alpha > 0):
            raise InvalidValuationInputError(f"alpha must be positive, got {self.alpha}")
        if not 0.0 <= self.core_weight <= 1.0:
            raise InvalidValuationInputError(f"core_weight must be in [0, 1], got {self.core_weight}")
        if not 0.0 <= self.max_discount < 1.0:
            raise InvalidValuationInputError(f"max_discount must be in [0, 1), got {self.max_discount}")

    def discount_fraction(self, core_score: float, bri_score: float) -> float:
        blend = self.core_weight * core_score + (1.0 - self.core_weight) * bri_score
        raw = (1.0 - blend) ** self.alpha
        return min(self.max_discount, max(0.0, raw))


@dataclass
class ValuationResult:
    """Derived valuation figures; value_gap is never negative."""

    base_multiple: float
    discount_fraction: float
    final_multiple: float
    current_value: float
    potential_value: float
    value_gap: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _require_finite(name: str, value: float) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidValuationInputError(f"{name} must be a number, got {value!r}") from e
    if not math.isfinite(value):
        raise InvalidValuationInputError(f"{name} must be finite, got {value}")
    return value


def _require_score(name: str, value: float) -> float:
    value = _require_finite(name, value)
    if not 0.0 <= value <= 1.0:
        raise InvalidValuationInputError(f"{name} must be in [0, 1], got {value}")
    return value


def calculate_valuation(
    adjusted_ebitda: float,
    multiple_low: float,
    multiple_high: float,
    core_score: float,
    bri_score: float,
    policy: DiscountPolicy = DiscountPolicy(),
) -> ValuationResult:
    """
    Compute current and potential enterprise value.

    Args:
        adjusted_ebitda: Normalized EBITDA; negative values floor the result at 0
        multiple_low: Low end of the industry EBITDA multiple range (> 0)
        multiple_high: High end of the range (>= multiple_low)
        core_score: Core factor score in [0, 1]
        bri_score: BRI composite in [0, 1]
        policy: Discount curve

    Raises:
        InvalidValuationInputError: On non-positive multiples, an inverted
            range, non-finite numbers or scores outside [0, 1].
    """
    adjusted_ebitda = _require_finite("adjusted_ebitda", adjusted_ebitda)
    multiple_low = _require_finite("multiple_low", multiple_low)
    multiple_high = _require_finite("multiple_high", multiple_high)
    core_score = _require_score("core_score", core_score)
    bri_score = _require_score("bri_score", bri_score)

    if multiple_low <= 0 or multiple_high <= 0:
        raise InvalidValuationInputError(
            f"Industry multiples must be positive, got low={multiple_low}, high={multiple_high}"
        )
    if multiple_low > multiple_high:
        raise InvalidValuationInputError(
            f"multiple_low ({multiple_low}) cannot exceed multiple_high ({multiple_high})"
        )

    base_multiple = (multiple_low + multiple_high) / 2
    discount_fraction = policy.discount_fraction(core_score, bri_score)
    final_multiple = base_multiple * (1 - discount_fraction)

    current_value = max(0.0, adjusted_ebitda * final_multiple)
    potential_value = max(0.0, adjusted_ebitda * base_multiple)
    value_gap = max(0.0, potential_value - current_value)

    logger.debug(
        f"Valuation: base={base_multiple:.2f}x discount={discount_fraction:.4f} "
        f"final={final_multiple:.2f}x current=${current_value:,.0f} potential=${potential_value:,.0f}"
    )

    return ValuationResult(
        base_multiple=base_multiple,
        discount_fraction=discount_fraction,
        final_multiple=final_multiple,
        current_value=current_value,
        potential_value=potential_value,
        value_gap=value_gap,
    )


def _round_half_up(value: float, increment: int) -> float:
    return math.floor(value / increment + 0.5) * increment


def estimate_ebitda_from_revenue(revenue: float, multiples: IndustryMultiples) -> float:
    """
    Estimate EBITDA when no actual figure exists.

    Pairs the low revenue multiple with the high EBITDA multiple (and vice
    versa) to get an implied margin range, averages both ends, and rounds to
    the nearest $100,000. Returns 0 when an EBITDA multiple is zero.
    """
    if multiples.ebitda_multiple_low == 0 or multiples.ebitda_multiple_high == 0:
        return 0.0

    low_estimate = revenue * multiples.revenue_multiple_low / multiples.ebitda_multiple_high
    high_estimate = revenue * multiples.revenue_multiple_high / multiples.ebitda_multiple_low
    return float(_round_half_up((low_estimate + high_estimate) / 2, EBITDA_ESTIMATE_ROUNDING))
