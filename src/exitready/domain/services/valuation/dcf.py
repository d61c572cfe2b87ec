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
DCF Engine - five-year discounted cash flow with terminal value.

Steps:
1. Project free cash flow for 5 years, compounding each year's growth rate
   on the previous year's cash flow
2. Discount each year at WACC (period ``year - 0.5`` under the mid-year
   convention, ``year`` otherwise)
3. Terminal value by Gordon growth ``FCF5 x (1 + g) / (WACC - g)`` or by
   ``exit multiple x terminal-year EBITDA``, discounted at period 5
4. Enterprise value = PV(FCFs) + PV(terminal); equity = EV - net debt

``calculate_dcf`` never raises on bad assumptions: it returns a
``DCFNotApplicable`` so callers can tell "no valuation" apart from a real
zero. ``run_dcf`` is the raising variant for callers that prefer exceptions.

Usage:
    from exitready.domain.services.valuation.dcf import DCFInputs, calculate_dcf

    result = calculate_dcf(DCFInputs(base_fcf=850_000, growth_rates=[0.05] * 5, wacc=0.18))
    if isinstance(result, DCFNotApplicable):
        print(result.reason)
"""

import logging
import math
from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from exitready.domain.exceptions import InvalidDCFInputError, TerminalGrowthError

logger = logging.getLogger(__name__)

PROJECTION_YEARS = 5

DEFAULT_WACC_STEP = 0.01
DEFAULT_GROWTH_STEP = 0.005
DEFAULT_MULTIPLE_STEP = 1.0
DEFAULT_SENSITIVITY_STEPS = 2

IMPLIED_WACC_CEILING = 0.50
IMPLIED_WACC_ITERATIONS = 50
IMPLIED_WACC_TOLERANCE = 1e-4


class TerminalMethod(Enum):
    GORDON = "gordon"
    EXIT_MULTIPLE = "exit_multiple"


@dataclass
class DCFInputs:
    """Assumptions for one DCF run; rates are decimals."""

    base_fcf: float
    growth_rates: List[float]
    wacc: float
    terminal_method: TerminalMethod = TerminalMethod.GORDON
    perpetual_growth_rate: float = 0.025
    exit_multiple: Optional[float] = None
    net_debt: float = 0.0
    use_mid_year_convention: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DCFInputs":
        exit_multiple = data.get("exit_multiple")
        return cls(
            base_fcf=float(data["base_fcf"]),
            growth_rates=[float(rate) for rate in data["growth_rates"]],
            wacc=float(data["wacc"]),
            terminal_method=TerminalMethod(data.get("terminal_method", TerminalMethod.GORDON.value)),
            perpetual_growth_rate=float(data.get("perpetual_growth_rate", 0.025)),
            exit_multiple=float(exit_multiple) if exit_multiple is not None else None,
            net_debt=float(data.get("net_debt", 0.0)),
            use_mid_year_convention=bool(data.get("use_mid_year_convention", False)),
        )


@dataclass
class DCFProjection:
    """Single year projection in DCF."""

    year: int
    growth_rate: float
    fcf: float
    discount_period: float
    discount_factor: float
    present_value: float


@dataclass
class DCFResults:
    enterprise_value: float
    equity_value: float
    present_value_of_fcfs: float
    terminal_value: float
    present_value_of_terminal: float
    terminal_value_share: float
    wacc: float
    terminal_method: TerminalMethod
    projections: List[DCFProjection] = field(default_factory=list)
    implied_ev_to_ebitda: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["terminal_method"] = self.terminal_method.value
        return result


@dataclass
class DCFNotApplicable:
    """Returned instead of a result when the assumptions cannot be valued."""

    reason: str
    error_type: str = "InvalidDCFInputError"

    def to_dict(self) -> Dict[str, Any]:
        return {"applicable": False, "reason": self.reason, "error_type": self.error_type}


DCFOutput = Union[DCFResults, DCFNotApplicable]


def _check_finite(name: str, value: Optional[float]) -> None:
    if value is None or not math.isfinite(value):
        raise InvalidDCFInputError(f"{name} must be a finite number, got {value}")


def _validate(inputs: DCFInputs, ebitda: Optional[float]) -> None:
    if len(inputs.growth_rates) != PROJECTION_YEARS:
        raise InvalidDCFInputError(
            f"Expected {PROJECTION_YEARS} growth rates, got {len(inputs.growth_rates)}"
        )
    _check_finite("base_fcf", inputs.base_fcf)
    _check_finite("wacc", inputs.wacc)
    _check_finite("net_debt", inputs.net_debt)
    for year, rate in enumerate(inputs.growth_rates, start=1):
        _check_finite(f"growth rate for year {year}", rate)
        if rate <= -1:
            raise InvalidDCFInputError(f"Growth rate for year {year} must be above -100%, got {rate:.2%}")

    if inputs.wacc <= 0:
        raise InvalidDCFInputError(f"WACC must be positive, got {inputs.wacc:.2%}")

    if inputs.terminal_method == TerminalMethod.GORDON:
        _check_finite("perpetual_growth_rate", inputs.perpetual_growth_rate)
        if inputs.perpetual_growth_rate >= inputs.wacc:
            raise TerminalGrowthError(inputs.perpetual_growth_rate, inputs.wacc)
    else:
        if inputs.exit_multiple is None or not math.isfinite(inputs.exit_multiple) or inputs.exit_multiple <= 0:
            raise InvalidDCFInputError(f"Exit multiple must be positive, got {inputs.exit_multiple}")
        if ebitda is None or not math.isfinite(ebitda) or ebitda <= 0:
            raise InvalidDCFInputError(f"Exit multiple method requires positive terminal-year EBITDA, got {ebitda}")


def project_free_cash_flows(base_fcf: float, growth_rates: Sequence[float]) -> List[float]:
    """Compound ``base_fcf`` through each year's growth rate in turn."""
    fcfs = []
    current = base_fcf
    for rate in growth_rates:
        current = current * (1 + rate)
        fcfs.append(current)
    return fcfs


def run_dcf(inputs: DCFInputs, ebitda: Optional[float] = None) -> DCFResults:
    """
    Run the DCF and raise on unusable assumptions.

    Args:
        inputs: DCF assumptions
        ebitda: Terminal-year EBITDA, required for the exit multiple method
            and used for the implied EV/EBITDA figure

    Raises:
        TerminalGrowthError: Gordon method with perpetual growth >= WACC
        InvalidDCFInputError: Any other unusable input
    """
    _validate(inputs, ebitda)

    wacc = inputs.wacc
    projections = []
    for year, (rate, fcf) in enumerate(
        zip(inputs.growth_rates, project_free_cash_flows(inputs.base_fcf, inputs.growth_rates)), start=1
    ):
        period = year - 0.5 if inputs.use_mid_year_convention else float(year)
        discount_factor = 1 / ((1 + wacc) ** period)
        projections.append(
            DCFProjection(
                year=year,
                growth_rate=rate,
                fcf=fcf,
                discount_period=period,
                discount_factor=discount_factor,
                present_value=fcf * discount_factor,
            )
        )

    pv_fcfs = sum(p.present_value for p in projections)
    final_fcf = projections[-1].fcf

    if inputs.terminal_method == TerminalMethod.GORDON:
        g = inputs.perpetual_growth_rate
        terminal_value = final_fcf * (1 + g) / (wacc - g)
    else:
        terminal_value = inputs.exit_multiple * ebitda

    pv_terminal = terminal_value / ((1 + wacc) ** PROJECTION_YEARS)
    enterprise_value = pv_fcfs + pv_terminal

    terminal_share = pv_terminal / enterprise_value if enterprise_value else 0.0
    implied_multiple = enterprise_value / ebitda if ebitda else None

    logger.debug(
        f"DCF: WACC={wacc:.2%} PV(FCF)=${pv_fcfs:,.0f} TV=${terminal_value:,.0f} "
        f"PV(TV)=${pv_terminal:,.0f} EV=${enterprise_value:,.0f} ({terminal_share:.0%} terminal)"
    )

    return DCFResults(
        enterprise_value=enterprise_value,
        equity_value=enterprise_value - inputs.net_debt,
        present_value_of_fcfs=pv_fcfs,
        terminal_value=terminal_value,
        present_value_of_terminal=pv_terminal,
        terminal_value_share=terminal_share,
        wacc=wacc,
        terminal_method=inputs.terminal_method,
        projections=projections,
        implied_ev_to_ebitda=implied_multiple,
    )


def calculate_dcf(inputs: DCFInputs, ebitda: Optional[float] = None) -> DCFOutput:
    """Run the DCF, returning ``DCFNotApplicable`` instead of raising."""
    try:
        return run_dcf(inputs, ebitda)
    except InvalidDCFInputError as e:
        logger.debug(f"DCF not applicable: {e}")
        return DCFNotApplicable(reason=str(e), error_type=type(e).__name__)


@dataclass
class SensitivityTable:
    """
    Enterprise value grid: rows are WACC values, columns are terminal growth
    rates (Gordon) or exit multiples. Infeasible cells are None.
    """

    column_variable: str
    wacc_values: List[float]
    column_values: List[float]
    enterprise_values: List[List[Optional[float]]]

    def value_at(self, wacc: float, column_value: float) -> Optional[float]:
        row = min(range(len(self.wacc_values)), key=lambda i: abs(self.wacc_values[i] - wacc))
        col = min(range(len(self.column_values)), key=lambda j: abs(self.column_values[j] - column_value))
        return self.enterprise_values[row][col]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _centered_range(center: float, step: float, steps: int) -> List[float]:
    return [round(center + offset * step, 10) for offset in range(-steps, steps + 1)]


def build_sensitivity_table(
    inputs: DCFInputs,
    ebitda: Optional[float] = None,
    wacc_values: Optional[Sequence[float]] = None,
    column_values: Optional[Sequence[float]] = None,
    wacc_step: float = DEFAULT_WACC_STEP,
    growth_step: float = DEFAULT_GROWTH_STEP,
    multiple_step: float = DEFAULT_MULTIPLE_STEP,
    steps: int = DEFAULT_SENSITIVITY_STEPS,
) -> SensitivityTable:
    """
    Recompute enterprise value over a WACC x (growth | exit multiple) grid.

    By default the grid is centered on the inputs' own WACC and terminal
    assumption with ``steps`` perturbations either side. Every cell is an
    independent full DCF run.
    """
    if wacc_values is None:
        wacc_values = _centered_range(inputs.wacc, wacc_step, steps)

    if inputs.terminal_method == TerminalMethod.GORDON:
        column_variable = "perpetual_growth_rate"
        if column_values is None:
            column_values = _centered_range(inputs.perpetual_growth_rate, growth_step, steps)
    else:
        column_variable = "exit_multiple"
        if column_values is None:
            center = inputs.exit_multiple if inputs.exit_multiple is not None else 0.0
            column_values = _centered_range(center, multiple_step, steps)

    grid: List[List[Optional[float]]] = []
    for wacc in wacc_values:
        row = []
        for column_value in column_values:
            cell_inputs = replace(inputs, wacc=wacc, **{column_variable: column_value})
            result = calculate_dcf(cell_inputs, ebitda)
            row.append(result.enterprise_value if isinstance(result, DCFResults) else None)
        grid.append(row)

    return SensitivityTable(
        column_variable=column_variable,
        wacc_values=list(wacc_values),
        column_values=list(column_values),
        enterprise_values=grid,
    )


def solve_implied_wacc(
    target_ev: float,
    base_fcf: float,
    growth_rates: Sequence[float],
    terminal_growth_rate: float,
    use_mid_year_convention: bool = True,
) -> Optional[float]:
    """
    WACC at which a Gordon-growth DCF reproduces ``target_ev``.

    Bisection between ``g + 0.1%`` and 50%. Returns None when the target is
    outside what that range can produce, or inputs are not positive.
    """
    if target_ev <= 0 or base_fcf <= 0:
        return None

    def enterprise_value_at(wacc: float) -> Optional[float]:
        result = calculate_dcf(
            DCFInputs(
                base_fcf=base_fcf,
                growth_rates=list(growth_rates),
                wacc=wacc,
                perpetual_growth_rate=terminal_growth_rate,
                use_mid_year_convention=use_mid_year_convention,
            )
        )
        return result.enterprise_value if isinstance(result, DCFResults) else None

    lo = terminal_growth_rate + 0.001
    hi = IMPLIED_WACC_CEILING

    ev_lo = enterprise_value_at(lo)
    ev_hi = enterprise_value_at(hi)
    if ev_lo is None or ev_hi is None:
        return None
    if ev_lo < target_ev or ev_hi > target_ev:
        return None

    for _ in range(IMPLIED_WACC_ITERATIONS):
        mid = (lo + hi) / 2
        ev_mid = enterprise_value_at(mid)
        if ev_mid is None:
            lo = mid
            continue
        if abs(ev_mid - target_ev) / target_ev < IMPLIED_WACC_TOLERANCE:
            return round(mid, 4)
        if ev_mid > target_ev:
            lo = mid
        else:
            hi = mid

    return round((lo + hi) / 2, 4)
