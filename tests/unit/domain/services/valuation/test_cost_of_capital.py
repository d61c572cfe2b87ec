"""
Unit tests for the build-up WACC and its calibrated defaults.
"""

import pytest

from exitready.domain.exceptions import InvalidDCFInputError
from exitready.domain.services.valuation.cost_of_capital import (
    DEFAULT_TAX_RATE,
    EBITDA_TIERS,
    EQUITY_RISK_PREMIUM,
    RISK_FREE_RATE,
    WACCInputs,
    calculate_cost_of_equity,
    calculate_wacc,
    calculate_wacc_defaults,
    csr_from_bri,
    find_ebitda_tier,
    interpolate_size_premium,
)


class TestCostOfEquity:
    """Tests for the build-up cost of equity."""

    def test_build_up(self):
        """Test Ke = Rf + beta x MRP + size + company-specific."""
        ke = calculate_cost_of_equity(0.04, 1.2, 0.05, size_risk_premium=0.03, company_specific_risk=0.02)
        assert ke == pytest.approx(0.04 + 0.06 + 0.03 + 0.02)


class TestCalculateWACC:
    """Tests for calculate_wacc."""

    def test_all_equity(self):
        """Test that with no debt WACC equals the cost of equity."""
        result = calculate_wacc(WACCInputs(risk_free_rate=0.04, market_risk_premium=0.05, size_risk_premium=0.03))
        assert result.wacc == pytest.approx(result.cost_of_equity)
        assert result.equity_weight == 1.0

    def test_with_debt(self):
        """Test the weighted blend with after-tax cost of debt."""
        inputs = WACCInputs(
            risk_free_rate=0.04,
            market_risk_premium=0.05,
            beta=1.0,
            size_risk_premium=0.05,
            company_specific_risk=0.04,
            cost_of_debt=0.10,
            tax_rate=0.25,
            debt_weight=0.20,
        )
        result = calculate_wacc(inputs)

        assert result.cost_of_equity == pytest.approx(0.18)
        assert result.after_tax_cost_of_debt == pytest.approx(0.075)
        assert result.wacc == pytest.approx(0.8 * 0.18 + 0.2 * 0.075)

    @pytest.mark.parametrize(
        "changes",
        [
            {"debt_weight": -0.1},
            {"debt_weight": 1.1},
            {"tax_rate": 1.0},
            {"tax_rate": -0.05},
            {"beta": float("nan")},
        ],
    )
    def test_invalid_inputs(self, changes):
        """Test that out-of-range weights and rates are rejected."""
        with pytest.raises(InvalidDCFInputError):
            calculate_wacc(WACCInputs(**changes))

    def test_to_dict_includes_equity_weight(self):
        """Test that serialized inputs carry the derived equity weight."""
        data = calculate_wacc(WACCInputs(debt_weight=0.3)).to_dict()
        assert data["inputs"]["equity_weight"] == pytest.approx(0.7)
        assert data["debt_weight"] == 0.3

    def test_from_dict_ignores_unknown_keys(self):
        """Test that from_dict drops keys it does not know."""
        inputs = WACCInputs.from_dict({"beta": 1.3, "debt_weight": 0.25, "analyst": "jd"})
        assert inputs.beta == 1.3
        assert inputs.equity_weight == pytest.approx(0.75)


class TestEbitdaTiers:
    """Tests for tier lookup."""

    @pytest.mark.parametrize(
        "ebitda,label",
        [
            (100_000, "Micro"),
            (499_999, "Micro"),
            (500_000, "Small"),
            (3_000_000, "Lower-Mid"),
            (7_500_000, "Mid-Market"),
            (20_000_000, "Upper-Mid"),
            (40_000_000, "Large"),
            (500_000_000, "Enterprise"),
            (-250_000, "Micro"),
        ],
    )
    def test_find_tier(self, ebitda, label):
        """Test that EBITDA maps to the expected tier."""
        assert find_ebitda_tier(ebitda).label == label

    def test_tiers_are_contiguous(self):
        """Test that each tier starts where the previous one ends."""
        for lower, upper in zip(EBITDA_TIERS, EBITDA_TIERS[1:]):
            assert lower.ebitda_max == upper.ebitda_min


class TestSizePremium:
    """Tests for log-linear size premium interpolation."""

    def test_anchor_points(self):
        """Test exact values at anchors."""
        assert interpolate_size_premium(1_000_000) == pytest.approx(0.062)
        assert interpolate_size_premium(5_000_000) == pytest.approx(0.042)

    def test_clamped_outside_range(self):
        """Test that values beyond the anchors use the end premiums."""
        assert interpolate_size_premium(10_000) == 0.080
        assert interpolate_size_premium(0) == 0.080
        assert interpolate_size_premium(1_000_000_000) == 0.015

    def test_between_anchors(self):
        """Test interpolation at the geometric midpoint of two anchors."""
        premium = interpolate_size_premium((1_000_000 * 2_000_000) ** 0.5)
        assert premium == pytest.approx((0.062 + 0.055) / 2, abs=1e-4)

    def test_decreases_with_size(self):
        """Test that bigger companies get smaller premiums."""
        sizes = [300_000, 800_000, 3_000_000, 8_000_000, 30_000_000]
        premiums = [interpolate_size_premium(s) for s in sizes]
        assert premiums == sorted(premiums, reverse=True)


class TestCsrFromBri:
    """Tests for company-specific risk from the BRI score."""

    def test_endpoints(self):
        """Test that BRI 1.0 maps to the low end and 0.0 to the high end."""
        assert csr_from_bri(1.0, 0.05, 0.10) == 0.05
        assert csr_from_bri(0.0, 0.05, 0.10) == 0.10

    def test_midpoint(self):
        """Test linear interpolation."""
        assert csr_from_bri(0.5, 0.05, 0.10) == pytest.approx(0.075)

    def test_clamps_score(self):
        """Test that out-of-range scores are clamped."""
        assert csr_from_bri(1.5, 0.05, 0.10) == 0.05
        assert csr_from_bri(-1.0, 0.05, 0.10) == 0.10


class TestWACCDefaults:
    """Tests for calibrated default WACC inputs."""

    def test_small_company_defaults(self):
        """Test defaults for a $1M EBITDA company with BRI 0.6."""
        inputs = calculate_wacc_defaults(1_000_000, 0.6)

        assert inputs.ebitda_tier == "Small"
        assert inputs.risk_free_rate == RISK_FREE_RATE
        assert inputs.market_risk_premium == EQUITY_RISK_PREMIUM
        assert inputs.size_risk_premium == pytest.approx(0.062)
        assert inputs.company_specific_risk == pytest.approx(0.07)
        assert inputs.cost_of_debt == pytest.approx(0.11)
        assert inputs.tax_rate == DEFAULT_TAX_RATE
        assert inputs.debt_weight == 0.20
        assert inputs.notes[0] == "EBITDA tier: Small"

    def test_derived_values_within_bands(self):
        """Test that plausible company figures replace tier defaults."""
        inputs = calculate_wacc_defaults(
            3_000_000, 0.5, derived_cost_of_debt=0.09, derived_tax_rate=0.21, derived_debt_weight=0.4
        )
        assert inputs.cost_of_debt == 0.09
        assert inputs.tax_rate == 0.21
        assert inputs.debt_weight == 0.4
        assert len(inputs.notes) == 4

    def test_derived_values_out_of_band(self):
        """Test that implausible company figures fall back to defaults."""
        inputs = calculate_wacc_defaults(
            3_000_000, 0.5, derived_cost_of_debt=0.35, derived_tax_rate=0.9, derived_debt_weight=0.95
        )
        assert inputs.cost_of_debt == pytest.approx((0.085 + 0.10) / 2)
        assert inputs.tax_rate == DEFAULT_TAX_RATE
        assert inputs.debt_weight == 0.25
        assert any("out of range" in note for note in inputs.notes)

    def test_better_bri_lowers_wacc(self):
        """Test that a higher BRI produces a lower WACC."""
        weak = calculate_wacc(calculate_wacc_defaults(1_500_000, 0.2)).wacc
        strong = calculate_wacc(calculate_wacc_defaults(1_500_000, 0.9)).wacc
        assert strong < weak

    def test_defaults_produce_valid_wacc(self):
        """Test that default inputs always pass WACC validation."""
        for ebitda in (50_000, 750_000, 4_000_000, 60_000_000):
            result = calculate_wacc(calculate_wacc_defaults(ebitda, 0.5))
            assert 0.05 < result.wacc < 0.40

    def test_market_baseline_overrides(self):
        """Test that the risk-free rate, premium, beta and tax fallback can be overridden."""
        inputs = calculate_wacc_defaults(
            1_000_000,
            0.6,
            risk_free_rate=0.05,
            market_risk_premium=0.06,
            beta=1.2,
            default_tax_rate=0.30,
        )
        assert inputs.risk_free_rate == 0.05
        assert inputs.market_risk_premium == 0.06
        assert inputs.beta == 1.2
        assert inputs.tax_rate == 0.30
        assert calculate_wacc(inputs).wacc > calculate_wacc(calculate_wacc_defaults(1_000_000, 0.6)).wacc

    def test_derived_tax_rate_beats_override(self):
        """Test that an in-band derived tax rate wins over the fallback."""
        inputs = calculate_wacc_defaults(1_000_000, 0.6, derived_tax_rate=0.21, default_tax_rate=0.30)
        assert inputs.tax_rate == 0.21
