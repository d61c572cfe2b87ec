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
Value at Risk - confidence-weighted dollar exposure from open signals.

Provides:
1. Total weighted and raw value at risk
2. Top threats by weighted impact
3. Breakdown across all six categories
4. 30-day trend against a historical baseline, with a tolerance band

All amounts are absolute values: value at risk is loss potential, so a
negative impact estimate still counts as exposure. Signals without an
estimate are counted but contribute $0.

``calculate_value_at_risk`` does not filter by status; feed it OPEN
signals (``select_open_signals``) or use ``summarize_value_at_risk`` for the
whole pipeline including the historical baseline.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from exitready.domain.models.scoring import BRI_CATEGORY_LABELS, BriCategory
from exitready.domain.models.signals import ConfidenceLevel, ResolutionStatus, Signal, SignalSeverity
from exitready.domain.services.signals.confidence import apply_confidence_weight

logger = logging.getLogger(__name__)

TREND_STABILITY_THRESHOLD = 0.05
DEFAULT_TOP_THREATS = 3
DEFAULT_LOOKBACK_DAYS = 30


class VarTrend(Enum):
    INCREASING = "increasing"
    STABLE = "stable"
    DECREASING = "decreasing"


@dataclass
class ThreatEntry:
    signal_id: str
    title: str
    severity: SignalSeverity
    confidence: ConfidenceLevel
    raw_impact: float
    weighted_impact: float
    category: Optional[BriCategory]
    category_label: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "signal_id": self.signal_id,
            "title": self.title,
            "severity": self.severity.value,
            "confidence": self.confidence.value,
            "raw_impact": self.raw_impact,
            "weighted_impact": self.weighted_impact,
            "category": self.category.value if self.category else None,
            "category_label": self.category_label,
        }


@dataclass
class CategoryRisk:
    category: BriCategory
    label: str
    signal_count: int
    raw_value_at_risk: float
    weighted_value_at_risk: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "label": self.label,
            "signal_count": self.signal_count,
            "raw_value_at_risk": self.raw_value_at_risk,
            "weighted_value_at_risk": self.weighted_value_at_risk,
        }


@dataclass
class VarTrendResult:
    direction: VarTrend
    absolute_change: float
    percentage_change: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "direction": self.direction.value,
            "absolute_change": self.absolute_change,
            "percentage_change": self.percentage_change,
        }


@dataclass
class ValueAtRiskResult:
    total_value_at_risk: float
    raw_value_at_risk: float
    signal_count: int
    top_threats: List[ThreatEntry]
    by_category: List[CategoryRisk]
    trend: Optional[VarTrendResult]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_value_at_risk": self.total_value_at_risk,
            "raw_value_at_risk": self.raw_value_at_risk,
            "signal_count": self.signal_count,
            "top_threats": [t.to_dict() for t in self.top_threats],
            "by_category": [c.to_dict() for c in self.by_category],
            "trend": self.trend.to_dict() if self.trend else None,
        }


def get_weighted_impact(signal: Signal) -> float:
    if signal.estimated_value_impact is None:
        return 0.0
    return abs(apply_confidence_weight(signal.estimated_value_impact, signal.confidence))


def get_raw_impact(signal: Signal) -> float:
    if signal.estimated_value_impact is None:
        return 0.0
    return abs(signal.estimated_value_impact)


def extract_top_threats(signals: Iterable[Signal], limit: int = DEFAULT_TOP_THREATS) -> List[ThreatEntry]:
    """Highest weighted-impact signals, skipping those with no or zero estimate."""
    threats = [
        ThreatEntry(
            signal_id=s.id,
            title=s.title,
            severity=s.severity,
            confidence=s.confidence,
            raw_impact=get_raw_impact(s),
            weighted_impact=get_weighted_impact(s),
            category=s.category,
            category_label=BRI_CATEGORY_LABELS[s.category] if s.category else None,
        )
        for s in signals
        if s.estimated_value_impact is not None and s.estimated_value_impact != 0
    ]
    threats.sort(key=lambda t: t.weighted_impact, reverse=True)
    return threats[:limit]


def aggregate_by_category(signals: Iterable[Signal]) -> List[CategoryRisk]:
    """One entry per category in canonical order; uncategorized signals are left out."""
    buckets = {category: [0, 0.0, 0.0] for category in BriCategory}
    for signal in signals:
        if signal.category is None:
            continue
        bucket = buckets[signal.category]
        bucket[0] += 1
        bucket[1] += get_raw_impact(signal)
        bucket[2] += get_weighted_impact(signal)

    return [
        CategoryRisk(
            category=category,
            label=BRI_CATEGORY_LABELS[category],
            signal_count=count,
            raw_value_at_risk=raw,
            weighted_value_at_risk=weighted,
        )
        for category, (count, raw, weighted) in buckets.items()
    ]


def calculate_var_trend(
    current_weighted_var: float,
    previous_weighted_var: Optional[float],
    threshold: float = TREND_STABILITY_THRESHOLD,
) -> Optional[VarTrendResult]:
    """
    Compare current value at risk to a baseline.

    Changes within +/- ``threshold`` (relative) are stable. A zero baseline
    counts as +100% when risk has appeared, 0% otherwise. Returns None
    without a baseline.
    """
    if previous_weighted_var is None:
        return None

    absolute_change = current_weighted_var - previous_weighted_var
    if previous_weighted_var > 0:
        percentage_change = absolute_change / previous_weighted_var
    else:
        percentage_change = 1.0 if current_weighted_var > 0 else 0.0

    direction = VarTrend.STABLE
    if percentage_change > threshold:
        direction = VarTrend.INCREASING
    elif percentage_change < -threshold:
        direction = VarTrend.DECREASING

    return VarTrendResult(direction, absolute_change, percentage_change)


def calculate_value_at_risk(
    signals: Iterable[Signal],
    previous_weighted_var: Optional[float] = None,
    top_threats_limit: int = DEFAULT_TOP_THREATS,
    trend_threshold: float = TREND_STABILITY_THRESHOLD,
) -> ValueAtRiskResult:
    """Aggregate value at risk over the given (already filtered) signals."""
    signals = list(signals)
    total_weighted = sum(get_weighted_impact(s) for s in signals)
    total_raw = sum(get_raw_impact(s) for s in signals)

    return ValueAtRiskResult(
        total_value_at_risk=total_weighted,
        raw_value_at_risk=total_raw,
        signal_count=len(signals),
        top_threats=extract_top_threats(signals, top_threats_limit),
        by_category=aggregate_by_category(signals),
        trend=calculate_var_trend(total_weighted, previous_weighted_var, trend_threshold),
    )


def select_open_signals(signals: Iterable[Signal]) -> List[Signal]:
    return [s for s in signals if s.resolution_status == ResolutionStatus.OPEN]


def select_historical_snapshot(
    signals: Iterable[Signal],
    as_of: datetime,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> List[Signal]:
    """
    Approximate the signals that were open ``lookback_days`` before ``as_of``.

    A signal qualifies if it existed at the cutoff and is either still OPEN
    or was resolved after the cutoff. Signals that moved to ACKNOWLEDGED or
    IN_PROGRESS and stayed there are not counted, so the baseline can
    under-count as well as over-count true point-in-time exposure.
    """
    cutoff = as_of - timedelta(days=lookback_days)
    snapshot = []
    for signal in signals:
        if signal.created_at > cutoff:
            continue
        if signal.resolution_status == ResolutionStatus.OPEN:
            snapshot.append(signal)
        elif signal.resolved_at is not None and signal.resolved_at > cutoff:
            snapshot.append(signal)
    return snapshot


def summarize_value_at_risk(
    signals: Iterable[Signal],
    as_of: datetime,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
    top_threats_limit: int = DEFAULT_TOP_THREATS,
    trend_threshold: float = TREND_STABILITY_THRESHOLD,
) -> ValueAtRiskResult:
    """
    Full pipeline: current OPEN exposure plus trend against the snapshot from
    ``lookback_days`` ago. No trend is reported when the snapshot is empty.
    """
    signals = list(signals)
    snapshot = select_historical_snapshot(signals, as_of, lookback_days)
    previous = sum(get_weighted_impact(s) for s in snapshot) if snapshot else None

    logger.debug(f"Value at risk: {len(signals)} signals, {len(snapshot)} in {lookback_days}-day baseline")

    return calculate_value_at_risk(
        select_open_signals(signals),
        previous_weighted_var=previous,
        top_threats_limit=top_threats_limit,
        trend_threshold=trend_threshold,
    )
