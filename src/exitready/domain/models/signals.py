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
Signal Models

Risk and opportunity signals raised by external detectors, plus the
severity, confidence and resolution vocabularies used to rank them.

Confidence is an explicit ladder: ``ConfidenceLevel.rank`` gives a total
order and ``upgrade()`` / ``downgrade()`` move one step, saturating at
the ends instead of raising.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from exitready.domain.models.scoring import BriCategory


class SignalSeverity(Enum):
    INFO = "INFO"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def weight(self) -> int:
        return SEVERITY_WEIGHTS[self]


SEVERITY_WEIGHTS: Dict[SignalSeverity, int] = {
    SignalSeverity.INFO: 1,
    SignalSeverity.LOW: 2,
    SignalSeverity.MEDIUM: 3,
    SignalSeverity.HIGH: 4,
    SignalSeverity.CRITICAL: 5,
}


class ConfidenceLevel(Enum):
    """How certain the estimated dollar impact of a signal is."""

    UNCERTAIN = "UNCERTAIN"
    SOMEWHAT_CONFIDENT = "SOMEWHAT_CONFIDENT"
    CONFIDENT = "CONFIDENT"
    VERIFIED = "VERIFIED"
    NOT_APPLICABLE = "NOT_APPLICABLE"

    @property
    def rank(self) -> int:
        """Position on the ladder; NOT_APPLICABLE sorts below everything."""
        return _CONFIDENCE_RANK[self]

    def upgrade(self) -> "ConfidenceLevel":
        """One step up after an advisor confirms the signal."""
        return _CONFIDENCE_UPGRADE[self]

    def downgrade(self) -> "ConfidenceLevel":
        """One step down after an advisor dismisses the signal."""
        return _CONFIDENCE_DOWNGRADE[self]


_CONFIDENCE_RANK: Dict[ConfidenceLevel, int] = {
    ConfidenceLevel.NOT_APPLICABLE: 0,
    ConfidenceLevel.UNCERTAIN: 1,
    ConfidenceLevel.SOMEWHAT_CONFIDENT: 2,
    ConfidenceLevel.CONFIDENT: 3,
    ConfidenceLevel.VERIFIED: 4,
}

# Confirming an uncertain estimate jumps straight to CONFIDENT; the ladder
# for upgrades is UNCERTAIN -> CONFIDENT -> VERIFIED.
_CONFIDENCE_UPGRADE: Dict[ConfidenceLevel, ConfidenceLevel] = {
    ConfidenceLevel.UNCERTAIN: ConfidenceLevel.CONFIDENT,
    ConfidenceLevel.SOMEWHAT_CONFIDENT: ConfidenceLevel.VERIFIED,
    ConfidenceLevel.CONFIDENT: ConfidenceLevel.VERIFIED,
    ConfidenceLevel.VERIFIED: ConfidenceLevel.VERIFIED,
    ConfidenceLevel.NOT_APPLICABLE: ConfidenceLevel.NOT_APPLICABLE,
}

_CONFIDENCE_DOWNGRADE: Dict[ConfidenceLevel, ConfidenceLevel] = {
    ConfidenceLevel.VERIFIED: ConfidenceLevel.SOMEWHAT_CONFIDENT,
    ConfidenceLevel.CONFIDENT: ConfidenceLevel.UNCERTAIN,
    ConfidenceLevel.SOMEWHAT_CONFIDENT: ConfidenceLevel.UNCERTAIN,
    ConfidenceLevel.UNCERTAIN: ConfidenceLevel.UNCERTAIN,
    ConfidenceLevel.NOT_APPLICABLE: ConfidenceLevel.NOT_APPLICABLE,
}


class ResolutionStatus(Enum):
    OPEN = "OPEN"
    ACKNOWLEDGED = "ACKNOWLEDGED"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    DISMISSED = "DISMISSED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self in (ResolutionStatus.RESOLVED, ResolutionStatus.DISMISSED, ResolutionStatus.EXPIRED)

    @property
    def stage(self) -> int:
        """Lifecycle stage; terminal states share the last stage."""
        return _RESOLUTION_STAGE[self]


_RESOLUTION_STAGE: Dict[ResolutionStatus, int] = {
    ResolutionStatus.OPEN: 0,
    ResolutionStatus.ACKNOWLEDGED: 1,
    ResolutionStatus.IN_PROGRESS: 2,
    ResolutionStatus.RESOLVED: 3,
    ResolutionStatus.DISMISSED: 3,
    ResolutionStatus.EXPIRED: 3,
}


class SignalChannel(Enum):
    """Detector that produced the signal."""

    PROMPTED_DISCLOSURE = "PROMPTED_DISCLOSURE"
    TASK_GENERATED = "TASK_GENERATED"
    TIME_DECAY = "TIME_DECAY"
    EXTERNAL = "EXTERNAL"
    ADVISOR = "ADVISOR"


@dataclass(frozen=True)
class Signal:
    """A discrete, timestamped risk or opportunity event."""

    id: str
    title: str
    severity: SignalSeverity
    confidence: ConfidenceLevel
    estimated_value_impact: Optional[float]
    category: Optional[BriCategory]
    resolution_status: ResolutionStatus
    event_type: str
    created_at: datetime
    resolved_at: Optional[datetime] = None
    channel: Optional[SignalChannel] = None
    description: Optional[str] = None

    def with_changes(self, **changes: Any) -> "Signal":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Signal":
        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        resolved_at = data.get("resolved_at")
        if isinstance(resolved_at, str):
            resolved_at = datetime.fromisoformat(resolved_at)
        impact = data.get("estimated_value_impact")
        channel = data.get("channel")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            severity=SignalSeverity(data.get("severity", "MEDIUM")),
            confidence=ConfidenceLevel(data.get("confidence", "SOMEWHAT_CONFIDENT")),
            estimated_value_impact=float(impact) if impact is not None else None,
            category=BriCategory.parse(data.get("category")),
            resolution_status=ResolutionStatus(data.get("resolution_status", "OPEN")),
            event_type=data.get("event_type", ""),
            created_at=created_at or datetime.min,
            resolved_at=resolved_at,
            channel=SignalChannel(channel) if channel else None,
            description=data.get("description"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "severity": self.severity.value,
            "confidence": self.confidence.value,
            "estimated_value_impact": self.estimated_value_impact,
            "category": self.category.value if self.category else None,
            "resolution_status": self.resolution_status.value,
            "event_type": self.event_type,
            "created_at": self.created_at.isoformat(),
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
            "channel": self.channel.value if self.channel else None,
        }
