"""
Signal Services

Confidence weighting, advisor transitions, display ranking and value-at-risk
aggregation for risk signals.
"""

from exitready.domain.services.signals.confidence import (
    CONFIDENCE_MULTIPLIERS,
    apply_confidence_weight,
    confidence_multiplier,
    default_confidence_for_channel,
    weighted_impact,
)
from exitready.domain.services.signals.signal_ranking import (
    RankedSignal,
    SignalGroup,
    SignalRankingResult,
    calculate_rank_score,
    calculate_weighted_value_at_risk,
    group_signals,
    process_signals_for_display,
    rank_signals,
)
from exitready.domain.services.signals.transitions import (
    ConfidenceTransition,
    SignalAuditTrail,
    TransitionAction,
    advance_resolution,
    confirm_signal,
    dismiss_signal,
)
from exitready.domain.services.signals.value_at_risk import (
    ValueAtRiskResult,
    VarTrend,
    VarTrendResult,
    calculate_value_at_risk,
    calculate_var_trend,
    select_historical_snapshot,
    select_open_signals,
    summarize_value_at_risk,
)

__all__ = [
    "CONFIDENCE_MULTIPLIERS",
    "ConfidenceTransition",
    "RankedSignal",
    "SignalAuditTrail",
    "SignalGroup",
    "SignalRankingResult",
    "TransitionAction",
    "ValueAtRiskResult",
    "VarTrend",
    "VarTrendResult",
    "advance_resolution",
    "apply_confidence_weight",
    "calculate_rank_score",
    "calculate_value_at_risk",
    "calculate_var_trend",
    "calculate_weighted_value_at_risk",
    "confidence_multiplier",
    "confirm_signal",
    "default_confidence_for_channel",
    "dismiss_signal",
    "group_signals",
    "process_signals_for_display",
    "rank_signals",
    "select_historical_snapshot",
    "select_open_signals",
    "summarize_value_at_risk",
    "weighted_impact",
]
