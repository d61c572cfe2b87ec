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
Category Scorer

Turns assessment responses into per-category scores and the weighted
Buyer Readiness Index (BRI).

Steps:
1. Deduplicate to one response per question (latest ``updated_at`` wins)
2. Drop not-applicable and unanswered responses from numerator and denominator
3. Per category: earned / total impact points, or 0 when total is 0
4. Composite: sum of category score x weight

Usage:
    from exitready.domain.services.scoring import calculate_category_scores, calculate_weighted_bri_score

    scores = calculate_category_scores(responses)
    bri = calculate_weighted_bri_score(scores)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from exitready.domain.models.scoring import BriCategory, CategoryScore, ScoringResponse
from exitready.domain.services.scoring.category_weights import (
    DEAL_READINESS_WEIGHTS,
    DEFAULT_CATEGORY_WEIGHTS,
    validate_category_weights,
)

logger = logging.getLogger(__name__)


def deduplicate_responses(responses: Iterable[ScoringResponse]) -> Dict[str, ScoringResponse]:
    """
    Keep only the most recently updated response per question.

    The result does not depend on input order; on an exact ``updated_at``
    tie the later record in the input wins.
    """
    latest: Dict[str, ScoringResponse] = {}
    for response in responses:
        current = latest.get(response.question_id)
        if current is None or response.updated_at >= current.updated_at:
            latest[response.question_id] = response
    return latest


def calculate_category_scores(responses: Iterable[ScoringResponse]) -> List[CategoryScore]:
    """
    Score each category that has at least one applicable response.

    Returned in the fixed category order. Responses in unknown categories are
    skipped (debug-logged), never fatal.
    """
    totals: Dict[BriCategory, List[float]] = {}

    for response in deduplicate_responses(responses).values():
        if not response.is_applicable:
            continue

        category = BriCategory.parse(response.category)
        if category is None:
            logger.debug(f"Skipping response {response.question_id}: unknown category {response.category!r}")
            continue

        max_points = max(0.0, float(response.max_impact_points))
        score_value = min(1.0, max(0.0, float(response.score_value)))

        earned_total = totals.setdefault(category, [0.0, 0.0])
        earned_total[0] += max_points * score_value
        earned_total[1] += max_points

    scores = []
    for category in BriCategory:
        if category not in totals:
            continue
        earned, total = totals[category]
        scores.append(
            CategoryScore(
                category=category,
                total_points=total,
                earned_points=earned,
                score=earned / total if total > 0 else 0.0,
            )
        )
    return scores


def calculate_weighted_bri_score(
    category_scores: Iterable[CategoryScore],
    weights: Optional[Mapping[Any, float]] = None,
) -> float:
    """
    Weighted composite of category scores.

    Categories missing from ``weights`` contribute nothing. Categories with
    a weight but no score also contribute nothing, so an empty assessment
    scores 0 rather than NaN.

    Raises:
        InvalidWeightsError: If ``weights`` is malformed.
    """
    resolved = validate_category_weights(weights) if weights is not None else DEFAULT_CATEGORY_WEIGHTS

    composite = 0.0
    for category_score in category_scores:
        weight = resolved.get(category_score.category)
        if weight is None:
            continue
        composite += category_score.score * weight

    # Weights are only exact to the whole percent, so the sum can drift past 1
    return min(1.0, max(0.0, composite))


def calculate_deal_readiness_score(
    category_scores: Iterable[CategoryScore],
    weights: Optional[Mapping[Any, float]] = None,
) -> float:
    """Composite using the Deal Readiness weights (PERSONAL excluded by default)."""
    return calculate_weighted_bri_score(category_scores, weights if weights is not None else DEAL_READINESS_WEIGHTS)


def get_category_score(category_scores: Iterable[CategoryScore], category: BriCategory) -> float:
    """Score for one category, 0.0 when it was not scored."""
    for category_score in category_scores:
        if category_score.category == category:
            return category_score.score
    return 0.0


@dataclass
class AssessmentScore:
    """Category breakdown with both composites."""

    category_scores: List[CategoryScore]
    bri_score: float
    deal_readiness_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bri_score": round(self.bri_score, 4),
            "deal_readiness_score": round(self.deal_readiness_score, 4),
            "categories": [score.to_dict() for score in self.category_scores],
        }


def score_assessment(
    responses: Iterable[ScoringResponse],
    weights: Optional[Mapping[Any, float]] = None,
    deal_readiness_weights: Optional[Mapping[Any, float]] = None,
) -> AssessmentScore:
    """Run the full scoring pipeline on one set of responses."""
    category_scores = calculate_category_scores(responses)
    return AssessmentScore(
        category_scores=category_scores,
        bri_score=calculate_weighted_bri_score(category_scores, weights),
        deal_readiness_score=calculate_deal_readiness_score(category_scores, deal_readiness_weights),
    )
