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
Comparable Company Weighting

Deterministic half of the comparables workflow. Candidate companies come
from an external source (analyst list, model output) as loosely-typed
dicts; this module validates them, clamps implausible values, and turns
relevance scores into weighted EV/EBITDA and EV/Revenue multiples.

Usage:
    from exitready.domain.services.valuation.comparables import summarize_comparables

    comp_set = summarize_comparables(raw_candidates)
    print(comp_set.weighted_ebitda_multiple)
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

MAX_COMPARABLES = 5
DEFAULT_RELEVANCE = 0.5
MAX_EV_TO_EBITDA = 100.0
MAX_EV_TO_REVENUE = 50.0
NO_RATIONALE = "No rationale provided"


@dataclass
class ComparableMetrics:
    """Trading metrics; rates are decimals, revenue in full dollars."""

    revenue: Optional[float] = None
    ebitda_margin: Optional[float] = None
    revenue_growth_rate: Optional[float] = None
    ev_to_ebitda: Optional[float] = None
    ev_to_revenue: Optional[float] = None


@dataclass
class ComparableCompany:
    name: str
    ticker: Optional[str]
    rationale: str
    metrics: ComparableMetrics
    relevance_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ComparableSet:
    """Validated comparables with their relevance-weighted multiples."""

    comparables: List[ComparableCompany]
    weighted_ebitda_multiple: Optional[float]
    weighted_revenue_multiple: Optional[float]
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "comparables": [c.to_dict() for c in self.comparables],
            "weighted_ebitda_multiple": self.weighted_ebitda_multiple,
            "weighted_revenue_multiple": self.weighted_revenue_multiple,
            "warnings": list(self.warnings),
        }


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def normalize_positive_number(value: Any) -> Optional[float]:
    """Return ``value`` if it is a positive finite number, else None."""
    if not _is_number(value) or not math.isfinite(value) or value <= 0:
        return None
    return float(value)


def normalize_decimal_rate(value: Any, min_value: float, max_value: float) -> Optional[float]:
    """
    Normalize a rate to a decimal clamped to [min_value, max_value].

    Values given as percentages (22 instead of 0.22) are divided by 100, but
    only when they are out of range and the division brings them into range,
    so a legitimate 1.5 (150% growth) is left alone.
    """
    if not _is_number(value) or not math.isfinite(value):
        return None

    normalized = float(value)
    if (normalized > max_value or normalized < min_value) and abs(normalized) <= 100:
        as_decimal = normalized / 100
        if min_value <= as_decimal <= max_value:
            normalized = as_decimal

    return max(min_value, min(max_value, normalized))


def validate_and_normalize_comparables(raw: Any) -> List[ComparableCompany]:
    """
    Turn raw candidate dicts into at most five validated comparables.

    Entries without a name are dropped; relevance defaults to 0.5 and is
    clamped to [0, 1]; EV/EBITDA above 100x and EV/Revenue above 50x are
    discarded as data errors. Sorted by relevance, highest first.
    """
    if not isinstance(raw, list):
        return []

    validated: List[ComparableCompany] = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        name = entry.get("name")
        if not isinstance(name, str) or not name.strip():
            continue

        relevance = entry.get("relevance_score")
        relevance = float(relevance) if _is_number(relevance) else DEFAULT_RELEVANCE
        if not math.isfinite(relevance):
            relevance = DEFAULT_RELEVANCE
        relevance = max(0.0, min(1.0, relevance))

        raw_metrics = entry.get("metrics") or {}
        metrics = ComparableMetrics(
            revenue=normalize_positive_number(raw_metrics.get("revenue")),
            ebitda_margin=normalize_decimal_rate(raw_metrics.get("ebitda_margin"), -1.0, 1.0),
            revenue_growth_rate=normalize_decimal_rate(raw_metrics.get("revenue_growth_rate"), -1.0, 5.0),
            ev_to_ebitda=normalize_positive_number(raw_metrics.get("ev_to_ebitda")),
            ev_to_revenue=normalize_positive_number(raw_metrics.get("ev_to_revenue")),
        )

        if metrics.ev_to_ebitda is not None and metrics.ev_to_ebitda > MAX_EV_TO_EBITDA:
            logger.debug(f"Discarding EV/EBITDA {metrics.ev_to_ebitda}x for {name}")
            metrics.ev_to_ebitda = None
        if metrics.ev_to_revenue is not None and metrics.ev_to_revenue > MAX_EV_TO_REVENUE:
            logger.debug(f"Discarding EV/Revenue {metrics.ev_to_revenue}x for {name}")
            metrics.ev_to_revenue = None

        ticker = entry.get("ticker")
        rationale = entry.get("rationale")
        validated.append(
            ComparableCompany(
                name=name.strip(),
                ticker=ticker.strip().upper() if isinstance(ticker, str) else None,
                rationale=rationale.strip() if isinstance(rationale, str) else NO_RATIONALE,
                metrics=metrics,
                relevance_score=relevance,
            )
        )

    validated.sort(key=lambda c: c.relevance_score, reverse=True)
    return validated[:MAX_COMPARABLES]


def calculate_weighted_multiple(
    comparables: List[ComparableCompany],
    extractor: Callable[[ComparableCompany], Optional[float]],
) -> Optional[float]:
    """
    Relevance-weighted mean of one multiple across comparables.

    Only positive finite values count. One qualifying comparable returns its
    own value; None when nothing qualifies or every relevance is zero.
    """
    values = []
    for comp in comparables:
        value = extractor(comp)
        if value is not None and math.isfinite(value) and value > 0:
            values.append((value, comp.relevance_score))

    if not values:
        return None
    if len(values) == 1:
        return values[0][0]

    total_weight = sum(weight for _, weight in values)
    if total_weight == 0:
        return None
    return sum(value * weight for value, weight in values) / total_weight


def summarize_comparables(raw: Any, warnings: Optional[List[str]] = None) -> ComparableSet:
    """Validate raw candidates and compute both weighted multiples."""
    warnings = list(warnings or [])
    comparables = validate_and_normalize_comparables(raw)

    if not comparables:
        warnings.append("No valid comparables were supplied. Multiple ranges may be unreliable.")

    ebitda_multiple = calculate_weighted_multiple(comparables, lambda c: c.metrics.ev_to_ebitda)
    revenue_multiple = calculate_weighted_multiple(comparables, lambda c: c.metrics.ev_to_revenue)

    if ebitda_multiple is None and revenue_multiple is None:
        warnings.append("Insufficient comparable data to compute weighted multiples.")

    return ComparableSet(
        comparables=comparables,
        weighted_ebitda_multiple=ebitda_multiple,
        weighted_revenue_multiple=revenue_multiple,
        warnings=warnings,
    )
