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
Retirement Models

Static per-run inputs for the retirement projection and Monte Carlo
simulator. Rates are decimals (0.06 = 6%).
"""

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, Optional


class TaxTreatment(Enum):
    TAX_FREE = "tax_free"
    TAX_DEFERRED = "tax_deferred"
    CAPITAL_GAINS = "capital_gains"
    ALREADY_TAXED = "already_taxed"


@dataclass
class RetirementAsset:
    """One holding counted toward the retirement portfolio."""

    id: str
    name: str
    current_value: float
    tax_treatment: TaxTreatment = TaxTreatment.ALREADY_TAXED
    category: str = "other"
    cost_basis: Optional[float] = None
    holding_period_months: int = 13
    is_qsbs: bool = False
    qsbs_exclusion_used: float = 0.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetirementAsset":
        return cls(
            id=str(data.get("id", data.get("name", ""))),
            name=data.get("name", ""),
            current_value=float(data.get("current_value", 0)),
            tax_treatment=TaxTreatment(data.get("tax_treatment", TaxTreatment.ALREADY_TAXED.value)),
            category=data.get("category", "other"),
            cost_basis=data.get("cost_basis"),
            holding_period_months=int(data.get("holding_period_months", 13)),
            is_qsbs=bool(data.get("is_qsbs", False)),
            qsbs_exclusion_used=float(data.get("qsbs_exclusion_used", 0.0)),
        )


@dataclass
class RetirementAssumptions:
    """Owner's retirement plan. Monetary amounts are in today's dollars."""

    current_age: int = 50
    retirement_age: int = 65
    life_expectancy: int = 90
    annual_spending_needs: float = 100_000.0
    inflation_rate: float = 0.03
    growth_rate: float = 0.06
    federal_tax_rate: float = 0.22
    state_tax_rate: float = 0.133
    local_tax_rate: float = 0.0
    capital_gains_tax_rate: float = 0.15
    short_term_capital_gains_rate: Optional[float] = None
    qsbs_exclusion_limit: float = 10_000_000.0
    social_security_monthly: float = 2_000.0
    other_income_monthly: float = 0.0
    pre_retirement_spending_rate: float = 0.7
    annual_savings_contribution: float = 0.0

    @property
    def years_to_retirement(self) -> int:
        return max(0, self.retirement_age - self.current_age)

    @property
    def years_in_retirement(self) -> int:
        return max(0, self.life_expectancy - self.retirement_age)

    @property
    def total_income_tax_rate(self) -> float:
        return self.federal_tax_rate + self.state_tax_rate + self.local_tax_rate

    @property
    def annual_fixed_income(self) -> float:
        return (self.social_security_monthly + self.other_income_monthly) * 12

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetirementAssumptions":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SimulationResult:
    """
    Outcome of a single Monte Carlo path.

    ``retirement_years_survived`` counts retirement years up to and including
    the year the money ran out, i.e. ``years_lasted - years_to_retirement``.
    """

    ending_balance: float
    years_lasted: int
    ran_out_of_money: bool
    retirement_years_survived: int = field(default=0, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationResult":
        return cls(
            ending_balance=float(data["ending_balance"]),
            years_lasted=int(data["years_lasted"]),
            ran_out_of_money=bool(data["ran_out_of_money"]),
            retirement_years_survived=int(data.get("retirement_years_survived", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ending_balance": round(self.ending_balance, 2),
            "years_lasted": self.years_lasted,
            "ran_out_of_money": self.ran_out_of_money,
            "retirement_years_survived": self.retirement_years_survived,
        }
