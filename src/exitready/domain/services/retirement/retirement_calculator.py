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
Retirement Calculator - after-tax portfolio value and deterministic projections.

Tax treatment per asset:
    tax_free       face value (Roth, HSA)
    already_taxed  face value (cash, taxable basis)
    tax_deferred   value x (1 - federal - state - local)
    capital_gains  value - gain x rate, where the rate is long-term when held
                   more than 12 months; QSBS held 60+ months excludes gain up
                   to the remaining Section 1202 limit

Projections use constant growth and inflation; ``monte_carlo`` adds the
randomness on top of the same starting balance.

Usage:
    from exitready.domain.services.retirement.retirement_calculator import (
        calculate_retirement_projections,
    )

    projections = calculate_retirement_projections(assets, RetirementAssumptions())
    print(projections.years_money_lasts, projections.surplus_or_shortfall)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from exitready.domain.models.retirement import RetirementAsset, RetirementAssumptions, TaxTreatment

logger = logging.getLogger(__name__)

SAFE_WITHDRAWAL_RATE = 0.04
QSBS_MIN_HOLDING_MONTHS = 60
LONG_TERM_HOLDING_MONTHS = 12
# Extra years the deterministic run-out search is allowed past life expectancy
RUN_OUT_SEARCH_SLACK_YEARS = 50


@dataclass
class YearlyProjection:
    year: int
    age: int
    portfolio_start: float
    growth: float
    withdrawal: float
    portfolio_end: float
    spending: float
    other_income: float
    is_retired: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "year": self.year,
            "age": self.age,
            "portfolio_start": round(self.portfolio_start, 2),
            "growth": round(self.growth, 2),
            "withdrawal": round(self.withdrawal, 2),
            "portfolio_end": round(self.portfolio_end, 2),
            "spending": round(self.spending, 2),
            "other_income": round(self.other_income, 2),
            "is_retired": self.is_retired,
        }


@dataclass
class RetirementProjections:
    """Deterministic retirement picture at constant growth and inflation."""

    total_after_tax_today: float
    value_at_retirement: float
    spending_at_retirement: float
    annual_other_income: float
    annual_withdrawal_needed: float
    years_money_lasts: int
    years_in_retirement: int
    years_to_retirement: int
    required_nest_egg: float
    surplus_or_shortfall: float
    additional_needed_today: float
    safe_withdrawal_amount: float
    sustainable_spending_level: float
    portfolio_by_year: List[YearlyProjection] = field(default_factory=list)

    @property
    def is_funded(self) -> bool:
        return self.years_money_lasts >= self.years_in_retirement

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_after_tax_today": round(self.total_after_tax_today, 2),
            "value_at_retirement": round(self.value_at_retirement, 2),
            "spending_at_retirement": round(self.spending_at_retirement, 2),
            "annual_other_income": round(self.annual_other_income, 2),
            "annual_withdrawal_needed": round(self.annual_withdrawal_needed, 2),
            "years_money_lasts": self.years_money_lasts,
            "years_in_retirement": self.years_in_retirement,
            "years_to_retirement": self.years_to_retirement,
            "required_nest_egg": round(self.required_nest_egg, 2),
            "surplus_or_shortfall": round(self.surplus_or_shortfall, 2),
            "additional_needed_today": round(self.additional_needed_today, 2),
            "safe_withdrawal_amount": round(self.safe_withdrawal_amount, 2),
            "sustainable_spending_level": round(self.sustainable_spending_level, 2),
            "is_funded": self.is_funded,
            "portfolio_by_year": [p.to_dict() for p in self.portfolio_by_year],
        }


def calculate_after_tax_value(asset: RetirementAsset, assumptions: RetirementAssumptions) -> float:
    """Value of one asset after the tax due on liquidation."""
    value = asset.current_value
    treatment = asset.tax_treatment

    if treatment == TaxTreatment.TAX_DEFERRED:
        return value * (1 - assumptions.total_income_tax_rate)

    if treatment != TaxTreatment.CAPITAL_GAINS:
        return value

    gain = value - (asset.cost_basis or 0.0)
    if gain <= 0:
        return value

    if asset.is_qsbs and asset.holding_period_months >= QSBS_MIN_HOLDING_MONTHS:
        remaining_exclusion = max(0.0, assumptions.qsbs_exclusion_limit - asset.qsbs_exclusion_used)
        taxable_gain = gain - min(gain, remaining_exclusion)
        return value - taxable_gain * assumptions.capital_gains_tax_rate

    if asset.holding_period_months > LONG_TERM_HOLDING_MONTHS:
        rate = assumptions.capital_gains_tax_rate
    elif assumptions.short_term_capital_gains_rate is not None:
        rate = assumptions.short_term_capital_gains_rate
    else:
        rate = assumptions.total_income_tax_rate
    return value - gain * rate


def calculate_total_after_tax_value(
    assets: Iterable[RetirementAsset], assumptions: RetirementAssumptions
) -> float:
    return sum(calculate_after_tax_value(asset, assumptions) for asset in assets)


def generate_yearly_projections(
    total_after_tax_today: float, assumptions: RetirementAssumptions
) -> List[YearlyProjection]:
    """
    Year-by-year table from today through life expectancy.

    Before retirement the portfolio grows and receives the savings
    contribution; spending is shown at the pre-retirement rate but is not
    withdrawn. The table stops at the first retired year that empties the
    portfolio.
    """
    a = assumptions
    projections: List[YearlyProjection] = []
    portfolio = total_after_tax_today
    annual_spending = a.annual_spending_needs
    fixed_income = a.annual_fixed_income

    for year in range(max(0, a.life_expectancy - a.current_age) + 1):
        age = a.current_age + year
        is_retired = age >= a.retirement_age
        start = portfolio

        growth = portfolio * a.growth_rate
        spending = annual_spending if is_retired else a.annual_spending_needs * a.pre_retirement_spending_rate
        other_income = fixed_income if is_retired else 0.0
        withdrawal = max(0.0, spending - other_income) if is_retired else 0.0
        contribution = 0.0 if is_retired else a.annual_savings_contribution

        portfolio = max(0.0, portfolio + growth + contribution - withdrawal)
        projections.append(
            YearlyProjection(
                year=year,
                age=age,
                portfolio_start=start,
                growth=growth,
                withdrawal=withdrawal,
                portfolio_end=portfolio,
                spending=spending,
                other_income=other_income,
                is_retired=is_retired,
            )
        )

        annual_spending *= 1 + a.inflation_rate
        if portfolio <= 0 and is_retired:
            break

    return projections


def _required_nest_egg(annual_withdrawal: float, assumptions: RetirementAssumptions) -> float:
    """Present value at retirement of a withdrawal stream growing with inflation."""
    g = assumptions.growth_rate
    i = assumptions.inflation_rate
    years = assumptions.years_in_retirement
    real_return = (1 + g) / (1 + i) - 1
    if real_return <= 0.001:
        return annual_withdrawal * years
    pv_factor = (1 - ((1 + i) / (1 + g)) ** years) / (g - i)
    return annual_withdrawal * pv_factor


def calculate_retirement_projections(
    assets: Iterable[RetirementAsset], assumptions: RetirementAssumptions
) -> RetirementProjections:
    """Deterministic projection: value at retirement, run-out year and funding gap."""
    a = assumptions
    years_to_retirement = a.years_to_retirement
    years_in_retirement = a.years_in_retirement

    total_after_tax_today = calculate_total_after_tax_value(assets, a)
    value_at_retirement = total_after_tax_today * (1 + a.growth_rate) ** years_to_retirement
    spending_at_retirement = a.annual_spending_needs * (1 + a.inflation_rate) ** years_to_retirement
    fixed_income = a.annual_fixed_income
    annual_withdrawal_needed = max(0.0, spending_at_retirement - fixed_income)

    max_years = years_in_retirement + RUN_OUT_SEARCH_SLACK_YEARS
    portfolio = value_at_retirement
    spending = spending_at_retirement
    years_money_lasts = 0
    while portfolio > 0 and years_money_lasts < max_years:
        portfolio = portfolio * (1 + a.growth_rate) - max(0.0, spending - fixed_income)
        spending *= 1 + a.inflation_rate
        years_money_lasts += 1

    required_nest_egg = _required_nest_egg(annual_withdrawal_needed, a)
    surplus_or_shortfall = value_at_retirement - required_nest_egg
    additional_needed_today = (
        -surplus_or_shortfall / (1 + a.growth_rate) ** years_to_retirement if surplus_or_shortfall < 0 else 0.0
    )
    safe_withdrawal_amount = value_at_retirement * SAFE_WITHDRAWAL_RATE

    logger.debug(
        f"Retirement projection: ${total_after_tax_today:,.0f} today, ${value_at_retirement:,.0f} at retirement, "
        f"lasts {years_money_lasts}/{years_in_retirement} years"
    )

    return RetirementProjections(
        total_after_tax_today=total_after_tax_today,
        value_at_retirement=value_at_retirement,
        spending_at_retirement=spending_at_retirement,
        annual_other_income=fixed_income,
        annual_withdrawal_needed=annual_withdrawal_needed,
        years_money_lasts=years_money_lasts,
        years_in_retirement=years_in_retirement,
        years_to_retirement=years_to_retirement,
        required_nest_egg=required_nest_egg,
        surplus_or_shortfall=surplus_or_shortfall,
        additional_needed_today=additional_needed_today,
        safe_withdrawal_amount=safe_withdrawal_amount,
        sustainable_spending_level=safe_withdrawal_amount + fixed_income,
        portfolio_by_year=generate_yearly_projections(total_after_tax_today, a),
    )
