"""
Retirement Services

After-tax portfolio value, deterministic projections and the Monte Carlo
survival simulator.
"""

from exitready.domain.services.retirement.monte_carlo import (
    MonteCarloResults,
    aggregate_simulations,
    run_simulation,
    run_simulation_chunked,
)
from exitready.domain.services.retirement.retirement_calculator import (
    RetirementProjections,
    YearlyProjection,
    calculate_after_tax_value,
    calculate_retirement_projections,
    calculate_total_after_tax_value,
    generate_yearly_projections,
)
from exitready.domain.services.retirement.statistics import HistogramBin, build_histogram, percentile

__all__ = [
    "HistogramBin",
    "MonteCarloResults",
    "RetirementProjections",
    "YearlyProjection",
    "aggregate_simulations",
    "build_histogram",
    "calculate_after_tax_value",
    "calculate_retirement_projections",
    "calculate_total_after_tax_value",
    "generate_yearly_projections",
    "percentile",
    "run_simulation",
    "run_simulation_chunked",
]
