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
Scoring Models

Assessment categories, per-question responses, and derived category scores.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class BriCategory(Enum):
    """The six fixed buyer-readiness categories."""

    FINANCIAL = "FINANCIAL"
    TRANSFERABILITY = "TRANSFERABILITY"
    OPERATIONAL = "OPERATIONAL"
    MARKET = "MARKET"
    LEGAL_TAX = "LEGAL_TAX"
    PERSONAL = "PERSONAL"

    @property
    def label(self) -> str:
        return BRI_CATEGORY_LABELS[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["BriCategory"]:
        """Return the category for ``value`` or None when it is not one of the six."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                return None
        return None


BRI_CATEGORY_LABELS: Dict[BriCategory, str] = {
    BriCategory.FINANCIAL: "Financial Health",
    BriCategory.TRANSFERABILITY: "Transferability",
    BriCategory.OPERATIONAL: "Operations",
    BriCategory.MARKET: "Market Position",
    BriCategory.LEGAL_TAX: "Legal & Tax",
    BriCategory.PERSONAL: "Personal Readiness",
}


@dataclass(frozen=True)
class ScoringResponse:
    """
    One answered assessment question.

    ``category`` is kept as given (enum or raw string) so that responses for
    unknown categories can be reported and skipped rather than rejected at
    construction time.
    """

    question_id: str
    category: Any
    max_impact_points: float
    score_value: Optional[float]
    updated_at: datetime
    not_applicable: bool = False

    @property
    def is_applicable(self) -> bool:
        return not self.not_applicable and self.score_value is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScoringResponse":
        updated_at = data.get("updated_at")
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at)
        score_value = data.get("score_value")
        return cls(
            question_id=str(data["question_id"]),
            category=data.get("category"),
            max_impact_points=float(data.get("max_impact_points", 0)),
            score_value=float(score_value) if score_value is not None else None,
            updated_at=updated_at or datetime.min,
            not_applicable=bool(data.get("not_applicable", False)),
        )


@dataclass
class CategoryScore:
    """Normalized score for one category."""

    category: BriCategory
    total_points: float
    earned_points: float
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "total_points": self.total_points,
            "earned_points": self.earned_points,
            "score": round(self.score, 4),
        }
