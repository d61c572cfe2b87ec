"""
Core Factor Score

Scores five structural business fundamentals on [0, 1] and averages them.
Unlike the BRI, these describe what the business *is* (revenue model, margin
profile, labor and asset intensity, owner dependence) rather than how ready
it is for a sale.
"""

import logging
from typing import Any, Dict, Mapping, Optional

logger = logging.getLogger(__name__)

NEUTRAL_FACTOR_SCORE = 0.5

CORE_FACTOR_SCORES: Dict[str, Dict[str, float]] = {
    "revenue_model": {
        "PROJECT_BASED": 0.25,
        "TRANSACTIONAL": 0.5,
        "RECURRING_CONTRACTS": 0.75,
        "SUBSCRIPTION_SAAS": 1.0,
    },
    "gross_margin_proxy": {
        "LOW": 0.25,
        "MODERATE": 0.5,
        "GOOD": 0.75,
        "EXCELLENT": 1.0,
    },
    "labor_intensity": {
        "VERY_HIGH": 0.25,
        "HIGH": 0.5,
        "MODERATE": 0.75,
        "LOW": 1.0,
    },
    "asset_intensity": {
        "ASSET_HEAVY": 0.33,
        "MODERATE": 0.67,
        "ASSET_LIGHT": 1.0,
    },
    "owner_involvement": {
        "CRITICAL": 0.0,
        "HIGH": 0.25,
        "MODERATE": 0.5,
        "LOW": 0.75,
        "MINIMAL": 1.0,
    },
}


def score_core_factor(factor: str, value: Optional[str]) -> float:
    """Score one factor; unknown or missing values are neutral (0.5)."""
    table = CORE_FACTOR_SCORES.get(factor)
    if table is None:
        raise KeyError(f"Unknown core factor: {factor}")
    if value is None:
        return NEUTRAL_FACTOR_SCORE
    return table.get(str(value).upper(), NEUTRAL_FACTOR_SCORE)


def calculate_core_score(core_factors: Optional[Mapping[str, Any]]) -> float:
    """
    Average of the five factor scores.

    A company with no recorded factors scores a neutral 0.5. Extra keys in
    ``core_factors`` (e.g. revenue size category) are ignored.
    """
    if not core_factors:
        return NEUTRAL_FACTOR_SCORE

    scores = [score_core_factor(factor, core_factors.get(factor)) for factor in CORE_FACTOR_SCORES]
    core_score = sum(scores) / len(scores)
    logger.debug(f"Core score {core_score:.3f} from {dict(zip(CORE_FACTOR_SCORES, scores))}")
    return core_score
