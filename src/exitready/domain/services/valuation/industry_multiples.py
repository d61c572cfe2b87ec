"""Industry multiple ranges with cascading classification lookup."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

MATCH_LEVELS = ("subsector", "sector", "supersector", "industry")


@dataclass(frozen=True)
class IndustryMultipleRecord:
    """One published multiple range, tagged with its ICB classification."""

    ebitda_multiple_low: float
    ebitda_multiple_high: float
    revenue_multiple_low: float
    revenue_multiple_high: float
    effective_date: date
    icb_subsector: Optional[str] = None
    icb_sector: Optional[str] = None
    icb_supersector: Optional[str] = None
    icb_industry: Optional[str] = None
    ebitda_margin_low: Optional[float] = None
    ebitda_margin_high: Optional[float] = None
    source: Optional[str] = None

    def classification(self, level: str) -> Optional[str]:
        return getattr(self, f"icb_{level}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> IndustryMultipleRecord:
        effective = data.get("effective_date")
        if isinstance(effective, str):
            effective = date.fromisoformat(effective)
        return cls(
            ebitda_multiple_low=float(data["ebitda_multiple_low"]),
            ebitda_multiple_high=float(data["ebitda_multiple_high"]),
            revenue_multiple_low=float(data["revenue_multiple_low"]),
            revenue_multiple_high=float(data["revenue_multiple_high"]),
            effective_date=effective or date.min,
            icb_subsector=data.get("icb_subsector"),
            icb_sector=data.get("icb_sector"),
            icb_supersector=data.get("icb_supersector"),
            icb_industry=data.get("icb_industry"),
            ebitda_margin_low=data.get("ebitda_margin_low"),
            ebitda_margin_high=data.get("ebitda_margin_high"),
            source=data.get("source"),
        )


@dataclass(frozen=True)
class IndustryMultiples:
    """Multiple range chosen for a company, with where it came from."""

    ebitda_multiple_low: float
    ebitda_multiple_high: float
    revenue_multiple_low: float
    revenue_multiple_high: float
    source: Optional[str] = None
    is_default: bool = False
    match_level: str = "default"
    ebitda_margin_low: Optional[float] = None
    ebitda_margin_high: Optional[float] = None

    @property
    def base_ebitda_multiple(self) -> float:
        return (self.ebitda_multiple_low + self.ebitda_multiple_high) / 2

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


DEFAULT_MULTIPLES = IndustryMultiples(
    ebitda_multiple_low=3.0,
    ebitda_multiple_high=6.0,
    revenue_multiple_low=0.5,
    revenue_multiple_high=1.5,
    source="Default SMB multiple range",
    is_default=True,
    match_level="default",
)


def resolve_industry_multiples(
    records: Iterable[IndustryMultipleRecord],
    subsector: Optional[str],
    sector: Optional[str] = None,
    supersector: Optional[str] = None,
    industry: Optional[str] = None,
) -> IndustryMultiples:
    """
    Find the most specific multiple range for a classification.

    Tries subsector, then sector, supersector and industry; within a level
    the record with the latest ``effective_date`` wins. Falls back to
    ``DEFAULT_MULTIPLES`` when nothing matches.
    """
    records = list(records)
    wanted = {"subsector": subsector, "sector": sector, "supersector": supersector, "industry": industry}

    for level in MATCH_LEVELS:
        code = wanted[level]
        if not code:
            continue
        matches = [r for r in records if r.classification(level) == code]
        if not matches:
            continue

        latest = max(matches, key=lambda r: r.effective_date)
        logger.debug(f"Industry multiples matched at {level} level for {code}")
        return IndustryMultiples(
            ebitda_multiple_low=latest.ebitda_multiple_low,
            ebitda_multiple_high=latest.ebitda_multiple_high,
            revenue_multiple_low=latest.revenue_multiple_low,
            revenue_multiple_high=latest.revenue_multiple_high,
            source=latest.source,
            is_default=False,
            match_level=level,
            ebitda_margin_low=latest.ebitda_margin_low,
            ebitda_margin_high=latest.ebitda_margin_high,
        )

    logger.debug(f"No industry multiples for subsector={subsector}; using default range")
    return DEFAULT_MULTIPLES


def recommend_valuation_method(
    revenue: float,
    ebitda: float,
    revenue_growth_rate: Optional[float] = None,
    is_recurring_revenue: bool = False,
) -> str:
    """
    Pick 'ebitda', 'revenue' or 'hybrid' multiples for a company.

    Loss-making, fast-growing (>30%) and thin-margin recurring-revenue
    businesses are valued on revenue; sub-10% margins get a hybrid.
    """
    if ebitda <= 0:
        return "revenue"

    margin = ebitda / revenue if revenue > 0 else 0.0

    if revenue_growth_rate and revenue_growth_rate > 0.30:
        return "revenue"
    if is_recurring_revenue and margin < 0.15:
        return "revenue"
    if margin < 0.10:
        return "hybrid"
    return "ebitda"
