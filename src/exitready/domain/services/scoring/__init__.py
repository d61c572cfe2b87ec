"""
Scoring Services

Category scores, composite BRI and Deal Readiness scores, and weight sets.
"""

from exitready.domain.services.scoring.category_scorer import (
    AssessmentScore,
    calculate_category_scores,
    calculate_deal_readiness_score,
    calculate_weighted_bri_score,
    deduplicate_responses,
    get_category_score,
    score_assessment,
)
from exitready.domain.services.scoring.category_weights import (
    DEAL_READINESS_WEIGHTS,
    DEFAULT_CATEGORY_WEIGHTS,
    CategoryWeights,
    normalize_category_weights,
    resolve_category_weights,
    validate_category_weights,
)

__all__ = [
    "AssessmentScore",
    "CategoryWeights",
    "DEAL_READINESS_WEIGHTS",
    "DEFAULT_CATEGORY_WEIGHTS",
    "calculate_category_scores",
    "calculate_deal_readiness_score",
    "calculate_weighted_bri_score",
    "deduplicate_responses",
    "get_category_score",
    "normalize_category_weights",
    "resolve_category_weights",
    "score_assessment",
    "validate_category_weights",
]
