"""
Confidence Weighting

Discounts a signal's raw dollar impact by how certain the estimate is, so an
UNCERTAIN $100K signal counts for half of a VERIFIED one in every ranking
and aggregate.
"""

from typing import Dict, Optional

from exitready.domain.models.signals import ConfidenceLevel, SignalChannel

CONFIDENCE_MULTIPLIERS: Dict[ConfidenceLevel, float] = {
    ConfidenceLevel.UNCERTAIN: 0.5,
    ConfidenceLevel.SOMEWHAT_CONFIDENT: 0.7,
    ConfidenceLevel.CONFIDENT: 0.85,
    ConfidenceLevel.VERIFIED: 1.0,
    ConfidenceLevel.NOT_APPLICABLE: 1.0,
}

# Starting confidence by detector channel
DEFAULT_CONFIDENCE_BY_CHANNEL: Dict[SignalChannel, ConfidenceLevel] = {
    SignalChannel.PROMPTED_DISCLOSURE: ConfidenceLevel.SOMEWHAT_CONFIDENT,
    SignalChannel.TASK_GENERATED: ConfidenceLevel.CONFIDENT,
    SignalChannel.TIME_DECAY: ConfidenceLevel.CONFIDENT,
    SignalChannel.EXTERNAL: ConfidenceLevel.SOMEWHAT_CONFIDENT,
    SignalChannel.ADVISOR: ConfidenceLevel.CONFIDENT,
}


def confidence_multiplier(confidence: ConfidenceLevel) -> float:
    return CONFIDENCE_MULTIPLIERS.get(confidence, CONFIDENCE_MULTIPLIERS[ConfidenceLevel.UNCERTAIN])


def apply_confidence_weight(amount: float, confidence: ConfidenceLevel) -> float:
    """Scale ``amount`` by the confidence multiplier; the sign is preserved."""
    return amount * confidence_multiplier(confidence)


def weighted_impact(estimated_value_impact: Optional[float], confidence: ConfidenceLevel) -> Optional[float]:
    """Confidence-weighted impact, or None when the signal has no estimate."""
    if estimated_value_impact is None:
        return None
    return apply_confidence_weight(estimated_value_impact, confidence)


def default_confidence_for_channel(channel: Optional[SignalChannel]) -> ConfidenceLevel:
    """Initial confidence for a newly detected signal (SOMEWHAT_CONFIDENT if unknown)."""
    if channel is None:
        return ConfidenceLevel.SOMEWHAT_CONFIDENT
    return DEFAULT_CONFIDENCE_BY_CHANNEL.get(channel, ConfidenceLevel.SOMEWHAT_CONFIDENT)
