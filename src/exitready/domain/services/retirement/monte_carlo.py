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
Retirement Monte Carlo - probability that the portfolio outlives the owner.

Each path:
1. Accumulation: every year draw a return and an inflation rate from normal
   distributions, clamp them, grow the balance (plus savings contribution)
   and inflate the spending need
2. Retirement: withdraw max(0, spending - fixed income) after applying the
   year's return; the path fails the first year the balance reaches zero
3. Fixed income (Social Security, other) is inflated by realized inflation
   from the first retirement year on

Paths are simulated in chunks, vectorized with numpy across the chunk. The
synchronous and chunked runners walk the same chunks in the same order, so a
given seed produces identical results in both.

Usage:
    from exitready.domain.services.retirement.monte_carlo import run_simulation

    results = run_simulation(assets, assumptions, 0.15, 0.01, iterations=5000, seed=42)
    print(results.success_rate, results.median_ending_balance)

    # In async code, with progress and cancellation
    results = await run_simulation_chunked(
        assets, assumptions, 0.15, 0.01, 10_000, on_progress=print, cancel_event=stop
    )
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np

from exitready.domain.exceptions import InvalidSimulationInputError
from exitready.domain.models.retirement import RetirementAsset, RetirementAssumptions, SimulationResult
from exitready.domain.services.retirement.retirement_calculator import calculate_total_after_tax_value
from exitready.domain.services.retirement.statistics import (
    DEFAULT_HISTOGRAM_BINS,
    HistogramBin,
    build_histogram,
    percentile,
)

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 500
RETURN_BOUNDS = (-0.4, 0.5)
INFLATION_BOUNDS = (0.0, 0.15)

ProgressCallback = Callable[[float], None]


@dataclass
class MonteCarloResults:
    success_rate: float
    median_ending_balance: float
    percentile_10_ending_balance: float
    percentile_90_ending_balance: float
    median_years_lasted: float
    avg_ending_balance: float
    histogram: List[HistogramBin]
    yearly_success_rates: List[Dict[str, float]]
    simulations: List[SimulationResult] = field(default_factory=list, repr=False)
    iterations_completed: int = 0
    cancelled: bool = False

    def to_dict(self, include_simulations: bool = False) -> Dict[str, Any]:
        result = {
            "success_rate": round(self.success_rate, 2),
            "median_ending_balance": round(self.median_ending_balance, 2),
            "percentile_10_ending_balance": round(self.percentile_10_ending_balance, 2),
            "percentile_90_ending_balance": round(self.percentile_90_ending_balance, 2),
            "median_years_lasted": self.median_years_lasted,
            "avg_ending_balance": round(self.avg_ending_balance, 2),
            "histogram": [b.to_dict() for b in self.histogram],
            "yearly_success_rates": self.yearly_success_rates,
            "iterations_completed": self.iterations_completed,
            "cancelled": self.cancelled,
        }
        if include_simulations:
            result["simulations"] = [s.to_dict() for s in self.simulations]
        return result


def _validate(return_std_dev: float, inflation_std_dev: float, iterations: int, chunk_size: int) -> None:
    for name, value in (("return_std_dev", return_std_dev), ("inflation_std_dev", inflation_std_dev)):
        if not math.isfinite(value) or value < 0:
            raise InvalidSimulationInputError(f"{name} must be a non-negative number, got {value}")
    if iterations < 1:
        raise InvalidSimulationInputError(f"iterations must be at least 1, got {iterations}")
    if chunk_size < 1:
        raise InvalidSimulationInputError(f"chunk_size must be at least 1, got {chunk_size}")


def _simulate_chunk(
    starting_balance: float,
    assumptions: RetirementAssumptions,
    return_std_dev: float,
    inflation_std_dev: float,
    count: int,
    rng: np.random.Generator,
) -> List[SimulationResult]:
    """Simulate ``count`` independent paths at once."""
    a = assumptions
    years_to_retirement = a.years_to_retirement
    years_in_retirement = a.years_in_retirement
    total_years = years_to_retirement + years_in_retirement

    returns = np.clip(rng.normal(a.growth_rate, return_std_dev, (count, total_years)), *RETURN_BOUNDS)
    inflation = np.clip(rng.normal(a.inflation_rate, inflation_std_dev, (count, total_years)), *INFLATION_BOUNDS)

    balance = np.full(count, float(starting_balance))
    spending = np.full(count, float(a.annual_spending_needs))

    for year in range(years_to_retirement):
        balance = balance * (1 + returns[:, year]) + a.annual_savings_contribution
        spending *= 1 + inflation[:, year]

    fixed_income = a.annual_fixed_income
    income_factor = np.ones(count)
    alive = np.ones(count, dtype=bool)
    failed_in_year = np.full(count, -1)

    for offset in range(years_in_retirement):
        year = years_to_retirement + offset
        withdrawal = np.maximum(0.0, spending - fixed_income * income_factor)
        balance = np.where(alive, balance * (1 + returns[:, year]) - withdrawal, balance)
        spending *= 1 + inflation[:, year]
        income_factor *= 1 + inflation[:, year]

        newly_failed = alive & (balance <= 0)
        failed_in_year[newly_failed] = offset
        alive &= ~newly_failed

    results = []
    for i in range(count):
        if alive[i]:
            results.append(
                SimulationResult(
                    ending_balance=float(balance[i]),
                    years_lasted=total_years,
                    ran_out_of_money=False,
                    retirement_years_survived=years_in_retirement,
                )
            )
        else:
            failed = int(failed_in_year[i])
            results.append(
                SimulationResult(
                    ending_balance=0.0,
                    years_lasted=years_to_retirement + failed + 1,
                    ran_out_of_money=True,
                    retirement_years_survived=failed + 1,
                )
            )
    return results


def aggregate_simulations(
    simulations: Iterable[SimulationResult],
    years_in_retirement: int,
    histogram_bins: int = DEFAULT_HISTOGRAM_BINS,
    cancelled: bool = False,
) -> MonteCarloResults:
    """
    Summary statistics over per-path results.

    Order does not matter, so lists produced by independent workers can be
    concatenated and aggregated once.
    """
    simulations = list(simulations)
    total = len(simulations)
    if total == 0:
        return MonteCarloResults(
            success_rate=0.0,
            median_ending_balance=0.0,
            percentile_10_ending_balance=0.0,
            percentile_90_ending_balance=0.0,
            median_years_lasted=0.0,
            avg_ending_balance=0.0,
            histogram=[],
            yearly_success_rates=[{"year": y, "success_rate": 0.0} for y in range(years_in_retirement + 1)],
            simulations=[],
            iterations_completed=0,
            cancelled=cancelled,
        )

    balances = np.array([s.ending_balance for s in simulations], dtype=float)
    years_lasted = np.array([s.years_lasted for s in simulations], dtype=float)
    survived = np.array([s.retirement_years_survived for s in simulations])
    successes = sum(1 for s in simulations if not s.ran_out_of_money)

    yearly_success_rates = [
        {"year": year, "success_rate": float(np.count_nonzero(survived >= year)) / total * 100}
        for year in range(years_in_retirement + 1)
    ]

    return MonteCarloResults(
        success_rate=successes / total * 100,
        median_ending_balance=percentile(balances, 50),
        percentile_10_ending_balance=percentile(balances, 10),
        percentile_90_ending_balance=percentile(balances, 90),
        median_years_lasted=percentile(years_lasted, 50),
        avg_ending_balance=float(balances.mean()),
        histogram=build_histogram(balances[balances > 0], histogram_bins),
        yearly_success_rates=yearly_success_rates,
        simulations=simulations,
        iterations_completed=total,
        cancelled=cancelled,
    )


def run_simulation(
    assets: Iterable[RetirementAsset],
    assumptions: RetirementAssumptions,
    return_std_dev: float,
    inflation_std_dev: float,
    iterations: int,
    seed: Optional[int] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    histogram_bins: int = DEFAULT_HISTOGRAM_BINS,
) -> MonteCarloResults:
    """
    Run every iteration synchronously.

    Raises:
        InvalidSimulationInputError: Negative or non-finite standard
            deviations, or fewer than one iteration.
    """
    _validate(return_std_dev, inflation_std_dev, iterations, chunk_size)
    starting_balance = calculate_total_after_tax_value(assets, assumptions)
    rng = np.random.default_rng(seed)

    simulations: List[SimulationResult] = []
    for start in range(0, iterations, chunk_size):
        count = min(chunk_size, iterations - start)
        simulations.extend(
            _simulate_chunk(starting_balance, assumptions, return_std_dev, inflation_std_dev, count, rng)
        )

    results = aggregate_simulations(simulations, assumptions.years_in_retirement, histogram_bins)
    logger.info(
        f"Monte Carlo: {iterations} paths from ${starting_balance:,.0f}, success rate {results.success_rate:.1f}%"
    )
    return results


async def run_simulation_chunked(
    assets: Iterable[RetirementAsset],
    assumptions: RetirementAssumptions,
    return_std_dev: float,
    inflation_std_dev: float,
    iterations: int,
    seed: Optional[int] = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    on_progress: Optional[ProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None,
    histogram_bins: int = DEFAULT_HISTOGRAM_BINS,
) -> MonteCarloResults:
    """
    Run iterations in chunks, yielding to the event loop between chunks.

    ``on_progress`` receives the completed fraction after each chunk.
    Setting ``cancel_event`` stops further chunks from starting; the result
    then covers the completed iterations and has ``cancelled=True``.
    """
    _validate(return_std_dev, inflation_std_dev, iterations, chunk_size)
    starting_balance = calculate_total_after_tax_value(assets, assumptions)
    rng = np.random.default_rng(seed)

    simulations: List[SimulationResult] = []
    cancelled = False
    for start in range(0, iterations, chunk_size):
        if cancel_event is not None and cancel_event.is_set():
            cancelled = True
            logger.info(f"Monte Carlo cancelled after {len(simulations)}/{iterations} paths")
            break

        count = min(chunk_size, iterations - start)
        simulations.extend(
            _simulate_chunk(starting_balance, assumptions, return_std_dev, inflation_std_dev, count, rng)
        )
        if on_progress is not None:
            on_progress(len(simulations) / iterations)

        if len(simulations) < iterations:
            await asyncio.sleep(0)

    results = aggregate_simulations(
        simulations, assumptions.years_in_retirement, histogram_bins, cancelled=cancelled
    )
    if not cancelled:
        logger.info(f"Monte Carlo: {iterations} paths in chunks of {chunk_size}, success rate {results.success_rate:.1f}%")
    return results
