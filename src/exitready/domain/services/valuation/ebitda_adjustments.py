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
EBITDA Adjustments

Normalizes reported EBITDA into the adjusted EBITDA a buyer would underwrite:

    adjusted = base + add_backs + excess_owner_comp - deductions

Excess owner compensation is pay above a market salary benchmarked on the
company's revenue size band. When no positive EBITDA is reported, the base
is estimated from revenue and industry multiples instead.

Also provides the EBITDA improvement multiplier: how much margin headroom
closing each category gap is typically worth, capped at +25%.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional

from exitready.domain.models.scoring import BriCategory, CategoryScore
from exitready.domain.services.valuation.industry_multiples import IndustryMultiples
from exitready.domain.services.valuation.valuation_formula import estimate_ebitda_from_revenue

logger = logging.getLogger(__name__)

DEFAULT_MARKET_SALARY = 150_000.0

MARKET_SALARY_BY_REVENUE: Dict[str, float] = {
    "UNDER_500K": 80_000.0,
    "FROM_500K_TO_1M": 120_000.0,
    "FROM_1M_TO_3M": 150_000.0,
    "FROM_3M_TO_10M": 200_000.0,
    "FROM_10M_TO_25M": 300_000.0,
    "OVER_25M": 400_000.0,
}

EBITDA_IMPROVEMENT_BY_CATEGORY: Dict[BriCategory, float] = {
    BriCategory.FINANCIAL: 0.05,
    BriCategory.TRANSFERABILITY: 0.02,
    BriCategory.OPERATIONAL: 0.08,
    BriCategory.MARKET: 0.04,
    BriCategory.LEGAL_TAX: 0.03,
    BriCategory.PERSONAL: 0.01,
}
MAX_EBITDA_IMPROVEMENT = 0.25
AVERAGE_CATEGORY_WEIGHT = 0.25


class AdjustmentType(Enum):
    ADD_BACK = "ADD_BACK"
    DEDUCTION = "DEDUCTION"


@dataclass(frozen=True)
class EbitdaAdjustment:
    description: str
    amount: float
    type: AdjustmentType


@dataclass
class AdjustedEbitda:
    base_ebitda: float
    is_estimated: bool
    add_backs: float
    deductions: float
    market_salary: float
    excess_owner_compensation: float
    adjusted_ebitda: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def get_market_salary(revenue_size_category: Optional[str]) -> float:
    """Benchmark owner salary for a revenue size band ($150K when unknown)."""
    if not revenue_size_category:
        return DEFAULT_MARKET_SALARY
    return MARKET_SALARY_BY_REVENUE.get(revenue_size_category, DEFAULT_MARKET_SALARY)


def calculate_adjusted_ebitda(
    reported_ebitda: float,
    annual_revenue: float,
    multiples: IndustryMultiples,
    adjustments: Iterable[EbitdaAdjustment] = (),
    owner_compensation: float = 0.0,
    revenue_size_category: Optional[str] = None,
) -> AdjustedEbitda:
    adjustments = list(adjustments)
    add_backs = sum(a.amount for a in adjustments if a.type == AdjustmentType.ADD_BACK)
    deductions = sum(a.amount for a in adjustments if a.type == AdjustmentType.DEDUCTION)

    market_salary = min(owner_compensation, get_market_salary(revenue_size_category))
    excess_comp = max(0.0, owner_compensation - market_salary)

    is_estimated = reported_ebitda <= 0
    if is_estimated:
        base = estimate_ebitda_from_revenue(annual_revenue, multiples)
        logger.debug(f"No reported EBITDA; estimated ${base:,.0f} from revenue ${annual_revenue:,.0f}")
    else:
        base = reported_ebitda

    return AdjustedEbitda(
        base_ebitda=base,
        is_estimated=is_estimated,
        add_backs=add_backs,
        deductions=deductions,
        market_salary=market_salary,
        excess_owner_compensation=excess_comp,
        adjusted_ebitda=base + add_backs + excess_comp - deductions,
    )


def calculate_ebitda_improvement_multiplier(
    category_scores: Iterable[CategoryScore],
    category_weights: Mapping[BriCategory, float],
) -> float:
    """
    Multiplier (>= 1.0) on adjusted EBITDA if every category gap were closed.

    Each category contributes ``gap x max_improvement x weight / 0.25``; the
    total is capped at 25%.
    """
    potential = 0.0
    for category_score in category_scores:
        gap = 1.0 - category_score.score
        weight = category_weights.get(category_score.category, 0.0)
        max_improvement = EBITDA_IMPROVEMENT_BY_CATEGORY.get(category_score.category, 0.0)
        potential += gap * max_improvement * (weight / AVERAGE_CATEGORY_WEIGHT)
    return 1.0 + min(potential, MAX_EBITDA_IMPROVEMENT)
