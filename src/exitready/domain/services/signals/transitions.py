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
Signal Transitions - advisor confirm/dismiss with an explainable audit record.

Provides:
1. Confirm: confidence moves one step up the ladder (saturates at VERIFIED)
2. Dismiss: confidence moves one step down and the signal becomes DISMISSED
3. Monotone resolution changes (OPEN -> ACKNOWLEDGED -> IN_PROGRESS -> terminal)
4. Before/after snapshots of confidence and weighted value for every action

Signals are immutable; each transition returns the updated signal together
with a ``ConfidenceTransition`` that the caller appends to its audit ledger.

Usage:
    from exitready.domain.services.signals.transitions import SignalAuditTrail, confirm_signal

    trail = SignalAuditTrail(company_id="acme")
    updated, transition = confirm_signal(signal, actor="advisor@firm.com")
    trail.record(transition)
    trail.log_summary()
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from exitready.domain.exceptions import SignalTransitionError
from exitready.domain.models.signals import ConfidenceLevel, ResolutionStatus, Signal
from exitready.domain.services.signals.confidence import weighted_impact

logger = logging.getLogger(__name__)


class TransitionAction(Enum):
    CONFIRM = "confirm"
    DISMISS = "dismiss"
    RESOLUTION_CHANGE = "resolution_change"


@dataclass
class ConfidenceTransition:
    """Audit record for one advisor or system action on a signal."""

    signal_id: str
    action: TransitionAction
    timestamp: str
    confidence_before: ConfidenceLevel
    confidence_after: ConfidenceLevel
    resolution_before: ResolutionStatus
    resolution_after: ResolutionStatus
    weighted_value_before: Optional[float]
    weighted_value_after: Optional[float]
    actor: Optional[str] = None
    reason: Optional[str] = None

    @property
    def weighted_value_delta(self) -> float:
        return (self.weighted_value_after or 0.0) - (self.weighted_value_before or 0.0)

    @property
    def value_at_risk_delta(self) -> float:
        """Change in this signal's contribution to open value-at-risk."""
        return _open_contribution(self.resolution_after, self.weighted_value_after) - _open_contribution(
            self.resolution_before, self.weighted_value_before
        )

    def describe(self) -> str:
        return (
            f"{self.action.value} {self.signal_id}: "
            f"{self.confidence_before.value} -> {self.confidence_after.value}, "
            f"{self.resolution_before.value} -> {self.resolution_after.value}, "
            f"weighted value {_fmt(self.weighted_value_before)} -> {_fmt(self.weighted_value_after)} "
            f"(delta {self.weighted_value_delta:+,.0f})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signal_id": self.signal_id,
            "action": self.action.value,
            "timestamp": self.timestamp,
            "confidence_before": self.confidence_before.value,
            "confidence_after": self.confidence_after.value,
            "resolution_before": self.resolution_before.value,
            "resolution_after": self.resolution_after.value,
            "weighted_value_before": self.weighted_value_before,
            "weighted_value_after": self.weighted_value_after,
            "weighted_value_delta": self.weighted_value_delta,
            "value_at_risk_delta": self.value_at_risk_delta,
            "actor": self.actor,
            "reason": self.reason,
        }


def _fmt(value: Optional[float]) -> str:
    return "n/a" if value is None else f"${value:,.0f}"


def _open_contribution(status: ResolutionStatus, weighted: Optional[float]) -> float:
    if status != ResolutionStatus.OPEN or weighted is None:
        return 0.0
    return abs(weighted)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _build_transition(
    before: Signal,
    after: Signal,
    action: TransitionAction,
    at: datetime,
    actor: Optional[str],
    reason: Optional[str],
) -> ConfidenceTransition:
    return ConfidenceTransition(
        signal_id=before.id,
        action=action,
        timestamp=at.isoformat(),
        confidence_before=before.confidence,
        confidence_after=after.confidence,
        resolution_before=before.resolution_status,
        resolution_after=after.resolution_status,
        weighted_value_before=weighted_impact(before.estimated_value_impact, before.confidence),
        weighted_value_after=weighted_impact(after.estimated_value_impact, after.confidence),
        actor=actor,
        reason=reason,
    )


def _require_active(signal: Signal, action: TransitionAction) -> None:
    if signal.resolution_status.is_terminal:
        raise SignalTransitionError(
            f"Cannot {action.value} signal {signal.id}: already {signal.resolution_status.value}"
        )


def confirm_signal(
    signal: Signal,
    at: Optional[datetime] = None,
    actor: Optional[str] = None,
    reason: Optional[str] = None,
) -> Tuple[Signal, ConfidenceTransition]:
    """
    Advisor confirms the signal: confidence moves exactly one step up.

    Raises:
        SignalTransitionError: If the signal is already in a terminal state.
    """
    _require_active(signal, TransitionAction.CONFIRM)
    at = at or _now()
    updated = signal.with_changes(confidence=signal.confidence.upgrade())
    transition = _build_transition(signal, updated, TransitionAction.CONFIRM, at, actor, reason)
    logger.debug(transition.describe())
    return updated, transition


def dismiss_signal(
    signal: Signal,
    at: Optional[datetime] = None,
    actor: Optional[str] = None,
    reason: Optional[str] = None,
) -> Tuple[Signal, ConfidenceTransition]:
    """
    Advisor dismisses the signal: confidence moves one step down and the
    signal ends in the terminal DISMISSED state.

    Raises:
        SignalTransitionError: If the signal is already in a terminal state.
    """
    _require_active(signal, TransitionAction.DISMISS)
    at = at or _now()
    updated = signal.with_changes(
        confidence=signal.confidence.downgrade(),
        resolution_status=ResolutionStatus.DISMISSED,
        resolved_at=at,
    )
    transition = _build_transition(signal, updated, TransitionAction.DISMISS, at, actor, reason)
    logger.debug(transition.describe())
    return updated, transition


def advance_resolution(
    signal: Signal,
    new_status: ResolutionStatus,
    at: Optional[datetime] = None,
    actor: Optional[str] = None,
    reason: Optional[str] = None,
) -> Tuple[Signal, ConfidenceTransition]:
    """
    Move a signal forward in its lifecycle without touching confidence.

    Raises:
        SignalTransitionError: If ``new_status`` is not strictly later than
            the current status (terminal states cannot change).
    """
    if new_status.stage <= signal.resolution_status.stage:
        raise SignalTransitionError(
            f"Signal {signal.id} cannot move from {signal.resolution_status.value} to {new_status.value}"
        )
    at = at or _now()
    changes: Dict[str, Any] = {"resolution_status": new_status}
    if new_status.is_terminal:
        changes["resolved_at"] = at
    updated = signal.with_changes(**changes)
    transition = _build_transition(signal, updated, TransitionAction.RESOLUTION_CHANGE, at, actor, reason)
    logger.debug(transition.describe())
    return updated, transition


@dataclass
class SignalAuditTrail:
    """
    Ordered ledger of transitions for one company.

    Example:
        trail = SignalAuditTrail(company_id="acme")
        trail.record(transition)
        print(trail.total_value_at_risk_delta)
    """

    company_id: str
    transitions: List[ConfidenceTransition] = field(default_factory=list)

    def record(self, transition: ConfidenceTransition) -> None:
        self.transitions.append(transition)

    def for_signal(self, signal_id: str) -> List[ConfidenceTransition]:
        return [t for t in self.transitions if t.signal_id == signal_id]

    @property
    def total_value_at_risk_delta(self) -> float:
        return sum(t.value_at_risk_delta for t in self.transitions)

    def summary(self) -> Dict[str, Any]:
        by_action: Dict[str, int] = {}
        for transition in self.transitions:
            by_action[transition.action.value] = by_action.get(transition.action.value, 0) + 1
        return {
            "company_id": self.company_id,
            "total_transitions": len(self.transitions),
            "by_action": by_action,
            "total_value_at_risk_delta": self.total_value_at_risk_delta,
        }

    def log_summary(self) -> None:
        summary = self.summary()
        logger.info(
            f"Signal audit for {self.company_id}: {summary['total_transitions']} transitions, "
            f"VaR delta {summary['total_value_at_risk_delta']:+,.0f}"
        )
        for transition in self.transitions:
            logger.debug(f"  {transition.describe()}")

    def to_json(self) -> str:
        return json.dumps(
            {"summary": self.summary(), "transitions": [t.to_dict() for t in self.transitions]},
            indent=2,
        )
