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
Category Weights

Weight sets used to blend the six category scores into a composite.

Resolution precedence is explicit: the caller passes the company override
and the global override it has loaded, and the first non-empty one wins
over the built-in defaults. Nothing here reads ambient configuration.

Usage:
    from exitready.domain.services.scoring.category_weights import resolve_category_weights

    weights = resolve_category_weights(company_weights=None, global_weights={"FINANCIAL": 0.3, ...})
"""

import logging
from typing import Any, Dict, Mapping, Optional

from exitready.domain.exceptions import InvalidWeightsError
from exitready.domain.models.scoring import BriCategory
from exitready.domain.services.weight_normalizer import WeightNormalizer

logger = logging.getLogger(__name__)

CategoryWeights = Dict[BriCategory, float]

DEFAULT_CATEGORY_WEIGHTS: CategoryWeights = {
    BriCategory.FINANCIAL: 0.25,
    BriCategory.TRANSFERABILITY: 0.20,
    BriCategory.OPERATIONAL: 0.20,
    BriCategory.MARKET: 0.15,
    BriCategory.LEGAL_TAX: 0.10,
    BriCategory.PERSONAL: 0.10,
}

# PERSONAL is excluded; its 10% moves to FINANCIAL and TRANSFERABILITY.
DEAL_READINESS_WEIGHTS: CategoryWeights = {
    BriCategory.FINANCIAL: 0.30,
    BriCategory.TRANSFERABILITY: 0.25,
    BriCategory.OPERATIONAL: 0.20,
    BriCategory.MARKET: 0.15,
    BriCategory.LEGAL_TAX: 0.10,
}

_normalizer = WeightNormalizer(rounding_increment=1)


def coerce_category_weights(weights: Mapping[Any, Any]) -> CategoryWeights:
    """
    Convert a raw mapping (string keys from JSON/YAML, numeric strings) into
    a CategoryWeights dict.

    Raises:
        InvalidWeightsError: On unknown categories or non-numeric values.
    """
    coerced: CategoryWeights = {}
    for key, value in weights.items():
        category = BriCategory.parse(key)
        if category is None:
            raise InvalidWeightsError(f"Unknown category in weight set: {key!r}")
        try:
            coerced[category] = float(value)
        except (TypeError, ValueError) as e:
            raise InvalidWeightsError(f"Weight for {category.value} is not numeric: {value!r}") from e
    return coerced


def validate_category_weights(weights: Mapping[Any, Any]) -> CategoryWeights:
    """
    Validate a weight set and return it keyed by BriCategory.

    A valid set has only known categories, non-negative finite weights, and
    sums to 100% at whole-percentage granularity.

    Raises:
        InvalidWeightsError: Describing every problem found.
    """
    coerced = coerce_category_weights(weights)
    problems = _normalizer.find_problems(coerced)
    if problems:
        raise InvalidWeightsError("Invalid category weights: " + "; ".join(problems))
    return coerced


def normalize_category_weights(weights: Mapping[Any, Any]) -> CategoryWeights:
    """
    Rescale arbitrary non-negative weights to whole percentages summing to 100%.

    Useful when an administrator enters relative importances (e.g. 3, 2, 2, ...)
    rather than fractions.
    """
    coerced = coerce_category_weights(weights)
    negative = [c.value for c, w in coerced.items() if w < 0]
    if negative:
        raise InvalidWeightsError(f"Negative weights cannot be normalized: {', '.join(negative)}")
    try:
        return _normalizer.normalize(coerced, key_order=list(coerced))
    except ValueError as e:
        raise InvalidWeightsError(str(e)) from e


def resolve_category_weights(
    company_weights: Optional[Mapping[Any, Any]] = None,
    global_weights: Optional[Mapping[Any, Any]] = None,
    defaults: Optional[Mapping[BriCategory, float]] = None,
) -> CategoryWeights:
    """
    Resolve the weight set for one calculation.

    Precedence: company override -> global override -> defaults. An override
    is used only when it is non-empty; a non-empty override that fails
    validation is an error rather than a silent fallback.
    """
    if company_weights:
        logger.debug("Using company-specific category weights")
        return validate_category_weights(company_weights)
    if global_weights:
        logger.debug("Using global category weights")
        return validate_category_weights(global_weights)
    return dict(defaults if defaults is not None else DEFAULT_CATEGORY_WEIGHTS)
