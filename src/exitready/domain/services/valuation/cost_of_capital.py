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
Cost of Capital - build-up WACC for privately held companies.

Provides:
1. Cost of equity (CAPM plus size and company-specific premiums)
2. WACC from capital weights and after-tax cost of debt
3. Calibrated defaults by EBITDA size tier
4. BRI-driven company-specific risk

Private companies have no observable beta, so the discount rate is built up
from a market baseline plus a size premium (log-interpolated on EBITDA) and a
company-specific premium that falls as the buyer readiness score rises.

Usage:
    from exitready.domain.services.valuation.cost_of_capital import calculate_wacc_defaults, calculate_wacc

    inputs = calculate_wacc_defaults(adjusted_ebitda=3_000_000, bri_score=0.72)
    result = calculate_wacc(inputs)
    print(f"WACC: {result.wacc:.2%} ({result.ebitda_tier})")
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from exitready.domain.exceptions import InvalidDCFInputError

logger = logging.getLogger(__name__)

RISK_FREE_RATE = 0.041  # 10-year Treasury
EQUITY_RISK_PREMIUM = 0.050
DEFAULT_BETA = 1.0
DEFAULT_TAX_RATE = 0.25  # federal plus typical state
DEFAULT_TERMINAL_GROWTH_RATE = 0.025
DEFAULT_GROWTH_RATES = [0.05, 0.05, 0.04, 0.03, 0.025]

# Bands outside which figures derived from financial statements are ignored
COST_OF_DEBT_BAND = (0.03, 0.20)
TAX_RATE_BAND = (0.05, 0.50)
DEBT_WEIGHT_BAND = (0.0, 0.80)


@dataclass(frozen=True)
class EbitdaTier:
    """Calibration ranges for companies within an EBITDA band."""

    label: str
    ebitda_min: float
    ebitda_max: float
    size_premium: Tuple[float, float]
    company_specific_risk: Tuple[float, float]
    pre_tax_cost_of_debt: Tuple[float, float]
    typical_debt_weight: float


EBITDA_TIERS: List[EbitdaTier] = [
    EbitdaTier("Micro", 0, 500_000, (0.065, 0.080), (0.06, 0.12), (0.11, 0.14), 0.15),
    EbitdaTier("Small", 500_000, 2_000_000, (0.055, 0.070), (0.05, 0.10), (0.10, 0.12), 0.20),
    EbitdaTier("Lower-Mid", 2_000_000, 5_000_000, (0.040, 0.055), (0.03, 0.06), (0.085, 0.10), 0.25),
    EbitdaTier("Mid-Market", 5_000_000, 10_000_000, (0.030, 0.045), (0.02, 0.05), (0.08, 0.095), 0.30),
    EbitdaTier("Upper-Mid", 10_000_000, 25_000_000, (0.020, 0.035), (0.01, 0.03), (0.075, 0.09), 0.35),
    EbitdaTier("Large", 25_000_000, 50_000_000, (0.015, 0.025), (0.005, 0.02), (0.07, 0.085), 0.35),
    EbitdaTier("Enterprise", 50_000_000, math.inf, (0.010, 0.020), (0.0, 0.015), (0.065, 0.08), 0.40),
]

# (EBITDA, premium) anchor points; premium is roughly linear in log(EBITDA)
SIZE_PREMIUM_ANCHORS: List[Tuple[float, float]] = [
    (250_000, 0.080),
    (500_000, 0.070),
    (1_000_000, 0.062),
    (2_000_000, 0.055),
    (5_000_000, 0.042),
    (10_000_000, 0.032),
    (25_000_000, 0.022),
    (50_000_000, 0.015),
]


def _round_rate(value: float) -> float:
    """Round a rate to 4 decimals (0.01 bp), half up."""
    return math.floor(value * 10000 + 0.5) / 10000


@dataclass
class WACCInputs:
    """Build-up WACC components; rates are decimals."""

    risk_free_rate: float = RISK_FREE_RATE
    market_risk_premium: float = EQUITY_RISK_PREMIUM
    beta: float = DEFAULT_BETA
    size_risk_premium: float = 0.0
    company_specific_risk: float = 0.0
    cost_of_debt: float = 0.0
    tax_rate: float = DEFAULT_TAX_RATE
    debt_weight: float = 0.0
    ebitda_tier: Optional[str] = None
    notes: List[str] = field(default_factory=list)

    @property
    def equity_weight(self) -> float:
        return 1.0 - self.debt_weight

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WACCInputs":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)


@dataclass
class WACCResult:
    """Result of a WACC build-up."""

    cost_of_equity: float
    after_tax_cost_of_debt: float
    equity_weight: float
    debt_weight: float
    wacc: float
    inputs: WACCInputs

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["inputs"]["equity_weight"] = self.inputs.equity_weight
        return result


def calculate_cost_of_equity(
    risk_free_rate: float,
    beta: float,
    market_risk_premium: float,
    size_risk_premium: float = 0.0,
    company_specific_risk: float = 0.0,
) -> float:
    """
    Cost of equity by build-up.

    Formula: Ke = Rf + Beta x MRP + Size Premium + Company-Specific Risk
    """
    return risk_free_rate + beta * market_risk_premium + size_risk_premium + company_specific_risk


def calculate_wacc(inputs: WACCInputs) -> WACCResult:
    """
    Weighted average cost of capital.

    Formula: WACC = E/V x Ke + D/V x Kd x (1 - t), with E/V = 1 - D/V

    Raises:
        InvalidDCFInputError: If the debt weight is outside [0, 1] or the tax
            rate is outside [0, 1), or any input is not finite.
    """
    values = asdict(inputs)
    for name in (
        "risk_free_rate",
        "market_risk_premium",
        "beta",
        "size_risk_premium",
        "company_specific_risk",
        "cost_of_debt",
        "tax_rate",
        "debt_weight",
    ):
        if not math.isfinite(values[name]):
            raise InvalidDCFInputError(f"{name} must be finite, got {values[name]}")

    if not 0.0 <= inputs.debt_weight <= 1.0:
        raise InvalidDCFInputError(f"debt_weight must be in [0, 1], got {inputs.debt_weight}")
    if not 0.0 <= inputs.tax_rate < 1.0:
        raise InvalidDCFInputError(f"tax_rate must be in [0, 1), got {inputs.tax_rate}")

    cost_of_equity = calculate_cost_of_equity(
        inputs.risk_free_rate,
        inputs.beta,
        inputs.market_risk_premium,
        inputs.size_risk_premium,
        inputs.company_specific_risk,
    )
    after_tax_cost_of_debt = inputs.cost_of_debt * (1 - inputs.tax_rate)
    equity_weight = inputs.equity_weight
    wacc = equity_weight * cost_of_equity + inputs.debt_weight * after_tax_cost_of_debt

    logger.debug(
        f"WACC build-up: Ke={cost_of_equity:.2%} Kd(after tax)={after_tax_cost_of_debt:.2%} "
        f"E/V={equity_weight:.0%} D/V={inputs.debt_weight:.0%} -> WACC={wacc:.2%}"
    )

    return WACCResult(
        cost_of_equity=cost_of_equity,
        after_tax_cost_of_debt=after_tax_cost_of_debt,
        equity_weight=equity_weight,
        debt_weight=inputs.debt_weight,
        wacc=wacc,
        inputs=inputs,
    )


def find_ebitda_tier(ebitda: float) -> EbitdaTier:
    """Tier whose [min, max) band contains ``ebitda``; Enterprise above the top."""
    for tier in EBITDA_TIERS:
        if tier.ebitda_min <= ebitda < tier.ebitda_max:
            return tier
    if ebitda < 0:
        return EBITDA_TIERS[0]
    return EBITDA_TIERS[-1]


def interpolate_size_premium(ebitda: float) -> float:
    """
    Size risk premium by log-linear interpolation between anchor points.

    Clamped to the first and last anchors outside their range.
    """
    first_ebitda, first_premium = SIZE_PREMIUM_ANCHORS[0]
    last_ebitda, last_premium = SIZE_PREMIUM_ANCHORS[-1]
    if ebitda <= first_ebitda:
        return first_premium
    if ebitda >= last_ebitda:
        return last_premium

    log_ebitda = math.log(ebitda)
    for (low_ebitda, low_premium), (high_ebitda, high_premium) in zip(
        SIZE_PREMIUM_ANCHORS, SIZE_PREMIUM_ANCHORS[1:]
    ):
        if low_ebitda <= ebitda < high_ebitda:
            t = (log_ebitda - math.log(low_ebitda)) / (math.log(high_ebitda) - math.log(low_ebitda))
            return _round_rate(low_premium + t * (high_premium - low_premium))

    return last_premium


def csr_from_bri(bri_score: float, csr_low: float, csr_high: float) -> float:
    """
    Company-specific risk within a tier's range.

    Linear inverse of BRI: a perfect score earns the low end, zero the high end.
    """
    clamped = max(0.0, min(1.0, bri_score))
    return _round_rate(csr_high - clamped * (csr_high - csr_low))


def _within(value: Optional[float], band: Tuple[float, float]) -> bool:
    return value is not None and band[0] <= value <= band[1]


def calculate_wacc_defaults(
    adjusted_ebitda: float,
    bri_score: float,
    derived_cost_of_debt: Optional[float] = None,
    derived_tax_rate: Optional[float] = None,
    derived_debt_weight: Optional[float] = None,
    risk_free_rate: float = RISK_FREE_RATE,
    market_risk_premium: float = EQUITY_RISK_PREMIUM,
    beta: float = DEFAULT_BETA,
    default_tax_rate: float = DEFAULT_TAX_RATE,
) -> WACCInputs:
    """
    Calibrated starting WACC components for a company.

    Figures derived from the company's own statements replace the tier
    defaults only when they fall inside plausible bands; every substitution
    is recorded in ``notes``. The market baseline (risk-free rate, equity
    risk premium, beta) and the fallback tax rate can be overridden.
    """
    tier = find_ebitda_tier(adjusted_ebitda)
    notes = [f"EBITDA tier: {tier.label}"]

    if _within(derived_cost_of_debt, COST_OF_DEBT_BAND):
        cost_of_debt = derived_cost_of_debt
        notes.append("Cost of debt derived from financials")
    else:
        cost_of_debt = sum(tier.pre_tax_cost_of_debt) / 2
        if derived_cost_of_debt is not None:
            notes.append(f"Derived cost of debt {derived_cost_of_debt:.2%} out of range; using tier midpoint")

    if _within(derived_tax_rate, TAX_RATE_BAND):
        tax_rate = derived_tax_rate
        notes.append("Tax rate derived from financials")
    else:
        tax_rate = default_tax_rate

    if _within(derived_debt_weight, DEBT_WEIGHT_BAND):
        debt_weight = derived_debt_weight
        notes.append("Capital structure derived from balance sheet")
    else:
        debt_weight = tier.typical_debt_weight

    return WACCInputs(
        risk_free_rate=risk_free_rate,
        market_risk_premium=market_risk_premium,
        beta=beta,
        size_risk_premium=interpolate_size_premium(adjusted_ebitda),
        company_specific_risk=csr_from_bri(bri_score, *tier.company_specific_risk),
        cost_of_debt=cost_of_debt,
        tax_rate=tax_rate,
        debt_weight=debt_weight,
        ebitda_tier=tier.label,
        notes=notes,
    )
