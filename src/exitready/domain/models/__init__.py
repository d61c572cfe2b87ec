"""
Domain Models

Value objects shared by the scoring, valuation, signal and retirement services.
"""

from exitready.domain.models.retirement import (
    RetirementAsset,
    RetirementAssumptions,
    SimulationResult,
    TaxTreatment,
)
from exitready.domain.models.scoring import BRI_CATEGORY_LABELS, BriCategory, CategoryScore, ScoringResponse
from exitready.domain.models.signals import (
    ConfidenceLevel,
    ResolutionStatus,
    Signal,
    SignalChannel,
    SignalSeverity,
)

__all__ = [
    "BriCategory",
    "BRI_CATEGORY_LABELS",
    "CategoryScore",
    "ScoringResponse",
    "ConfidenceLevel",
    "ResolutionStatus",
    "Signal",
    "SignalChannel",
    "SignalSeverity",
    "RetirementAsset",
    "RetirementAssumptions",
    "SimulationResult",
    "TaxTreatment",
]
