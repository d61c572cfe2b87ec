"""
Unit tests for core factor scoring and EBITDA normalization.
"""

import pytest

from exitready.domain.models.scoring import BriCategory, CategoryScore
from exitready.domain.services.valuation.core_factors import (
    NEUTRAL_FACTOR_SCORE,
    calculate_core_score,
    score_core_factor,
)
from exitready.domain.services.valuation.ebitda_adjustments import (
    DEFAULT_MARKET_SALARY,
    AdjustmentType,
    EbitdaAdjustment,
    calculate_adjusted_ebitda,
    calculate_ebitda_improvement_multiplier,
    get_market_salary,
)
from exitready.domain.services.valuation.industry_multiples import DEFAULT_MULTIPLES


class TestCoreFactors:
    """Tests for core factor scoring."""

    def test_factor_lookup(self):
        """Test individual factor values."""
        assert score_core_factor("revenue_model", "SUBSCRIPTION_SAAS") == 1.0
        assert score_core_factor("owner_involvement", "CRITICAL") == 0.0
        assert score_core_factor("asset_intensity", "asset_heavy") == 0.33

    def test_unknown_value_is_neutral(self):
        """Test that missing or unknown values score 0.5."""
        assert score_core_factor("labor_intensity", None) == NEUTRAL_FACTOR_SCORE
        assert score_core_factor("labor_intensity", "EXTREME") == NEUTRAL_FACTOR_SCORE

    def test_unknown_factor_raises(self):
        """Test that an unknown factor name is a programming error."""
        with pytest.raises(KeyError):
            score_core_factor("headcount", "LOW")

    def test_core_score_average(self):
        """Test the mean over all five factors."""
        score = calculate_core_score(
            {
                "revenue_model": "SUBSCRIPTION_SAAS",
                "gross_margin_proxy": "GOOD",
                "labor_intensity": "LOW",
                "asset_intensity": "ASSET_LIGHT",
                "owner_involvement": "MODERATE",
                "revenue_size_category": "FROM_1M_TO_3M",
            }
        )
        assert score == pytest.approx((1.0 + 0.75 + 1.0 + 1.0 + 0.5) / 5)

    def test_missing_factors(self):
        """Test neutral scoring for absent factors."""
        assert calculate_core_score(None) == 0.5
        assert calculate_core_score({}) == 0.5
        assert calculate_core_score({"revenue_model": "PROJECT_BASED"}) == pytest.approx((0.25 + 0.5 * 4) / 5)


class TestAdjustedEbitda:
    """Tests for EBITDA normalization."""

    def test_market_salary(self):
        """Test the salary benchmark lookup."""
        assert get_market_salary("UNDER_500K") == 80_000
        assert get_market_salary("OVER_25M") == 400_000
        assert get_market_salary(None) == DEFAULT_MARKET_SALARY
        assert get_market_salary("UNKNOWN") == DEFAULT_MARKET_SALARY

    def test_add_backs_and_excess_comp(self):
        """Test add-backs, deductions and excess owner compensation."""
        result = calculate_adjusted_ebitda(
            reported_ebitda=800_000,
            annual_revenue=5_000_000,
            multiples=DEFAULT_MULTIPLES,
            adjustments=[
                EbitdaAdjustment("One-time legal", 50_000, AdjustmentType.ADD_BACK),
                EbitdaAdjustment("Family payroll", 30_000, AdjustmentType.ADD_BACK),
                EbitdaAdjustment("Below-market rent", 20_000, AdjustmentType.DEDUCTION),
            ],
            owner_compensation=350_000,
            revenue_size_category="FROM_3M_TO_10M",
        )

        assert result.is_estimated is False
        assert result.add_backs == 80_000
        assert result.deductions == 20_000
        assert result.market_salary == 200_000
        assert result.excess_owner_compensation == 150_000
        assert result.adjusted_ebitda == 800_000 + 80_000 + 150_000 - 20_000

    def test_underpaid_owner(self):
        """Test that owners paid below market add nothing."""
        result = calculate_adjusted_ebitda(500_000, 2_000_000, DEFAULT_MULTIPLES, owner_compensation=60_000)
        assert result.market_salary == 60_000
        assert result.excess_owner_compensation == 0.0
        assert result.adjusted_ebitda == 500_000

    def test_estimated_from_revenue(self):
        """Test that missing EBITDA is estimated from revenue."""
        result = calculate_adjusted_ebitda(0, 2_000_000, DEFAULT_MULTIPLES)
        assert result.is_estimated is True
        assert result.base_ebitda == 600_000
        assert result.adjusted_ebitda == 600_000


class TestEbitdaImprovementMultiplier:
    """Tests for the potential EBITDA uplift multiplier."""

    @pytest.fixture
    def weights(self):
        return {
            BriCategory.FINANCIAL: 0.25,
            BriCategory.TRANSFERABILITY: 0.20,
            BriCategory.OPERATIONAL: 0.20,
            BriCategory.MARKET: 0.15,
            BriCategory.LEGAL_TAX: 0.10,
            BriCategory.PERSONAL: 0.10,
        }

    def test_perfect_scores(self, weights):
        """Test that no gaps means no uplift."""
        scores = [CategoryScore(c, 10, 10, 1.0) for c in weights]
        assert calculate_ebitda_improvement_multiplier(scores, weights) == 1.0

    def test_single_gap(self, weights):
        """Test the contribution of one category gap."""
        scores = [CategoryScore(BriCategory.OPERATIONAL, 10, 5, 0.5)]
        expected = 1.0 + 0.5 * 0.08 * (0.20 / 0.25)
        assert calculate_ebitda_improvement_multiplier(scores, weights) == pytest.approx(expected)

    def test_capped(self):
        """Test that the uplift is capped at 25%."""
        heavy = {c: 5.0 for c in BriCategory}
        scores = [CategoryScore(c, 10, 0, 0.0) for c in BriCategory]
        assert calculate_ebitda_improvement_multiplier(scores, heavy) == 1.25
