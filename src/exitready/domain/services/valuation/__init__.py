"""
Valuation Services
==================

Two independent valuation paths that callers may run side by side:

    - Multiple-based: adjusted EBITDA x industry multiple, discounted by the
      core factor score and the BRI composite (valuation_formula)
    - Intrinsic: five-year DCF with a build-up WACC for private companies
      (dcf, cost_of_capital)

Supporting modules cover the industry multiple cascade, comparable company
weighting, core factor scoring and EBITDA normalization.
"""

from exitready.domain.services.valuation.comparables import (
    ComparableCompany,
    ComparableSet,
    calculate_weighted_multiple,
    summarize_comparables,
    validate_and_normalize_comparables,
)
from exitready.domain.services.valuation.core_factors import calculate_core_score
from exitready.domain.services.valuation.cost_of_capital import (
    WACCInputs,
    WACCResult,
    calculate_cost_of_equity,
    calculate_wacc,
    calculate_wacc_defaults,
)
from exitready.domain.services.valuation.dcf import (
    DCFInputs,
    DCFNotApplicable,
    DCFOutput,
    DCFResults,
    SensitivityTable,
    TerminalMethod,
    build_sensitivity_table,
    calculate_dcf,
    run_dcf,
    solve_implied_wacc,
)
from exitready.domain.services.valuation.industry_multiples import (
    DEFAULT_MULTIPLES,
    IndustryMultipleRecord,
    IndustryMultiples,
    resolve_industry_multiples,
)
from exitready.domain.services.valuation.valuation_formula import (
    ALPHA,
    DiscountPolicy,
    ValuationResult,
    calculate_valuation,
    estimate_ebitda_from_revenue,
)

__all__ = [
    "ALPHA",
    "ComparableCompany",
    "ComparableSet",
    "DCFInputs",
    "DCFNotApplicable",
    "DCFOutput",
    "DCFResults",
    "DEFAULT_MULTIPLES",
    "DiscountPolicy",
    "IndustryMultipleRecord",
    "IndustryMultiples",
    "SensitivityTable",
    "TerminalMethod",
    "ValuationResult",
    "WACCInputs",
    "WACCResult",
    "build_sensitivity_table",
    "calculate_core_score",
    "calculate_cost_of_equity",
    "calculate_dcf",
    "calculate_valuation",
    "calculate_wacc",
    "calculate_wacc_defaults",
    "calculate_weighted_multiple",
    "estimate_ebitda_from_revenue",
    "resolve_industry_multiples",
    "run_dcf",
    "solve_implied_wacc",
    "summarize_comparables",
    "validate_and_normalize_comparables",
]
