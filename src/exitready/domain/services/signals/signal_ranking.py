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
Signal Ranking - prioritize, group and cap risk signals for display.

Rank score:
    severity_weight x confidence_multiplier x resolution_multiplier x value_factor
    value_factor = max(1, |confidence-weighted impact| / 10,000)

Pipeline:
1. Rank every signal (ties: newest first, then by id)
2. Group signals sharing an event type; the best-ranked member is primary
3. Put the top N groups (default 3) in active display, the rest in queue
4. Sum confidence-weighted value at risk over OPEN signals

Signals in a terminal state (RESOLVED, DISMISSED, EXPIRED) only reach the
active display when no live signal exists.

Usage:
    from exitready.domain.services.signals.signal_ranking import process_signals_for_display

    result = process_signals_for_display(signals)
    for group in result.active_display_groups:
        print(group.display_title, group.group_rank_score)
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from exitready.domain.models.signals import (
    ConfidenceLevel,
    ResolutionStatus,
    Signal,
    SignalSeverity,
)
from exitready.domain.services.signals.confidence import (
    apply_confidence_weight,
    confidence_multiplier,
    weighted_impact,
)

logger = logging.getLogger(__name__)

MAX_ACTIVE_DISPLAY_SIGNALS = 3
VALUE_NORMALIZER = 10_000.0

RESOLUTION_STATUS_MULTIPLIERS: Dict[ResolutionStatus, float] = {
    ResolutionStatus.OPEN: 1.0,
    ResolutionStatus.ACKNOWLEDGED: 0.9,
    ResolutionStatus.IN_PROGRESS: 0.8,
    ResolutionStatus.RESOLVED: 0.3,
    ResolutionStatus.DISMISSED: 0.1,
    ResolutionStatus.EXPIRED: 0.05,
}


@dataclass
class RankedSignal:
    signal: Signal
    rank_score: float
    weighted_value_impact: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        result = self.signal.to_dict()
        result["rank_score"] = round(self.rank_score, 4)
        result["weighted_value_impact"] = self.weighted_value_impact
        return result


@dataclass
class SignalGroup:
    """Signals sharing an event type, displayed as one item."""

    group_key: str
    display_title: str
    primary_signal: RankedSignal
    signals: List[RankedSignal]
    count: int
    group_rank_score: float
    total_weighted_impact: float
    max_severity: SignalSeverity
    max_confidence: ConfidenceLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_key": self.group_key,
            "display_title": self.display_title,
            "primary_signal_id": self.primary_signal.signal.id,
            "signals": [s.to_dict() for s in self.signals],
            "count": self.count,
            "group_rank_score": round(self.group_rank_score, 4),
            "total_weighted_impact": self.total_weighted_impact,
            "max_severity": self.max_severity.value,
            "max_confidence": self.max_confidence.value,
        }


@dataclass
class SignalRankingResult:
    active_display_groups: List[SignalGroup]
    queued_groups: List[SignalGroup]
    total_weighted_value_at_risk: float
    total_signal_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_display_groups": [g.to_dict() for g in self.active_display_groups],
            "queued_groups": [g.to_dict() for g in self.queued_groups],
            "total_weighted_value_at_risk": self.total_weighted_value_at_risk,
            "total_signal_count": self.total_signal_count,
        }


def calculate_rank_score(signal: Signal, value_normalizer: float = VALUE_NORMALIZER) -> float:
    """Composite priority; never zero because value_factor is floored at 1."""
    weighted = weighted_impact(signal.estimated_value_impact, signal.confidence)
    value_factor = max(1.0, abs(weighted) / value_normalizer) if weighted is not None else 1.0
    resolution_multiplier = RESOLUTION_STATUS_MULTIPLIERS.get(signal.resolution_status, 1.0)
    return (
        signal.severity.weight
        * confidence_multiplier(signal.confidence)
        * resolution_multiplier
        * value_factor
    )


def rank_signals(signals: Iterable[Signal], value_normalizer: float = VALUE_NORMALIZER) -> List[RankedSignal]:
    """Rank signals by score, descending. Equal scores: newest first, then id."""
    ranked = [
        RankedSignal(
            signal=signal,
            rank_score=calculate_rank_score(signal, value_normalizer),
            weighted_value_impact=weighted_impact(signal.estimated_value_impact, signal.confidence),
        )
        for signal in signals
    ]
    # Stable sorts, least significant key first
    ranked.sort(key=lambda r: r.signal.id)
    ranked.sort(key=lambda r: r.signal.created_at, reverse=True)
    ranked.sort(key=lambda r: r.rank_score, reverse=True)
    return ranked


def _build_group_title(signals: List[RankedSignal]) -> str:
    primary = signals[0].signal
    if len(signals) == 1:
        return primary.title

    count = len(signals)
    event_type = primary.event_type.lower()
    if "document" in event_type or "staleness" in event_type or "time_decay" in event_type:
        return f"{count} documents need attention"
    if "drift" in event_type:
        return f"{count} drift signals detected"
    if "disclosure" in event_type:
        return f"{count} disclosure findings"
    if "external" in event_type:
        return f"{count} external signals"
    return f"{primary.title} (+{count - 1} related)"


def group_signals(ranked_signals: List[RankedSignal]) -> List[SignalGroup]:
    """
    Collapse ranked signals sharing an event type into groups.

    Input must already be ranked; each group keeps that order, so its first
    member is the primary and sets the group's rank.
    """
    buckets: Dict[str, List[RankedSignal]] = {}
    for ranked in ranked_signals:
        buckets.setdefault(ranked.signal.event_type, []).append(ranked)

    groups = []
    for group_key, members in buckets.items():
        primary = members[0]
        groups.append(
            SignalGroup(
                group_key=group_key,
                display_title=_build_group_title(members),
                primary_signal=primary,
                signals=members,
                count=len(members),
                group_rank_score=primary.rank_score,
                total_weighted_impact=sum(m.weighted_value_impact or 0.0 for m in members),
                max_severity=max((m.signal.severity for m in members), key=lambda s: s.weight),
                max_confidence=max((m.signal.confidence for m in members), key=lambda c: c.rank),
            )
        )

    # Stable: groups with equal scores keep the order of their primaries
    groups.sort(key=lambda g: g.group_rank_score, reverse=True)
    return groups


def calculate_open_weighted_value_at_risk(ranked_signals: Iterable[RankedSignal]) -> float:
    """Sum of positive confidence-weighted impacts over OPEN signals."""
    return sum(
        r.weighted_value_impact
        for r in ranked_signals
        if r.signal.resolution_status == ResolutionStatus.OPEN
        and r.weighted_value_impact is not None
        and r.weighted_value_impact > 0
    )


def calculate_weighted_value_at_risk(signals: Iterable[Signal]) -> float:
    """Confidence-weighted sum of absolute impacts; signals without an estimate are skipped."""
    return sum(
        apply_confidence_weight(abs(s.estimated_value_impact), s.confidence)
        for s in signals
        if s.estimated_value_impact is not None
    )


def process_signals_for_display(
    signals: Iterable[Signal],
    max_display: int = MAX_ACTIVE_DISPLAY_SIGNALS,
    value_normalizer: float = VALUE_NORMALIZER,
) -> SignalRankingResult:
    """
    Rank, group and split signals into active display and queue.

    When any live (non-terminal) signal exists, terminal signals are grouped
    separately and queued behind every live group.
    """
    signals = list(signals)
    if not signals:
        return SignalRankingResult([], [], 0.0, 0)

    ranked = rank_signals(signals, value_normalizer)
    live = [r for r in ranked if not r.signal.resolution_status.is_terminal]
    closed = [r for r in ranked if r.signal.resolution_status.is_terminal]

    if live:
        live_groups = group_signals(live)
        active = live_groups[:max_display]
        queued = live_groups[max_display:] + group_signals(closed)
    else:
        closed_groups = group_signals(closed)
        active = closed_groups[:max_display]
        queued = closed_groups[max_display:]

    logger.debug(f"Signals: {len(signals)} ranked into {len(active)} active and {len(queued)} queued groups")

    return SignalRankingResult(
        active_display_groups=active,
        queued_groups=queued,
        total_weighted_value_at_risk=calculate_open_weighted_value_at_risk(ranked),
        total_signal_count=len(signals),
    )
