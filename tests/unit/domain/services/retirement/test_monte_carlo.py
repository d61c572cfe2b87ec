"""
Unit tests for the retirement Monte Carlo simulator.

With both standard deviations at zero every path is identical, which lets
the tests check exact balances and failure years.
"""

import asyncio

import pytest

from exitready.domain.exceptions import InvalidSimulationInputError
from exitready.domain.models.retirement import RetirementAsset, RetirementAssumptions, SimulationResult, TaxTreatment
from exitready.domain.services.retirement.monte_carlo import (
    aggregate_simulations,
    run_simulation,
    run_simulation_chunked,
)


def portfolio(value):
    return [RetirementAsset(id="p", name="Portfolio", current_value=value, tax_treatment=TaxTreatment.TAX_FREE)]


def plan(**overrides):
    values = dict(
        current_age=65,
        retirement_age=65,
        life_expectancy=90,
        annual_spending_needs=40_000,
        inflation_rate=0.0,
        growth_rate=0.0,
        social_security_monthly=0.0,
    )
    values.update(overrides)
    return RetirementAssumptions(**values)


class TestDeterministicPaths:
    """Tests with zero volatility."""

    def test_always_succeeds(self):
        """Test that an overfunded plan succeeds on every path."""
        results = run_simulation(portfolio(1_500_000), plan(), 0.0, 0.0, iterations=50, seed=1)

        assert results.success_rate == 100.0
        assert results.median_ending_balance == pytest.approx(1_500_000 - 25 * 40_000)
        assert results.percentile_10_ending_balance == results.percentile_90_ending_balance
        assert results.median_years_lasted == 25
        assert all(r["success_rate"] == 100.0 for r in results.yearly_success_rates)

    def test_always_fails(self):
        """Test the failure year when spending exhausts the portfolio."""
        results = run_simulation(portfolio(1_000_000), plan(annual_spending_needs=250_000), 0.0, 0.0, 10, seed=1)

        assert results.success_rate == 0.0
        assert results.median_ending_balance == 0.0
        # 1M -> 750K -> 500K -> 250K -> 0 in the fourth retirement year
        assert results.median_years_lasted == 4
        assert all(s.years_lasted == 4 for s in results.simulations)
        rates = {r["year"]: r["success_rate"] for r in results.yearly_success_rates}
        assert rates[0] == 100.0
        # The failure year itself still counts as a year the money lasted
        assert rates[4] == 100.0
        assert rates[5] == 0.0
        assert all(s.ran_out_of_money for s in results.simulations)

    def test_accumulation_phase(self):
        """Test growth, savings and spending inflation before retirement."""
        assumptions = plan(
            current_age=63,
            retirement_age=65,
            life_expectancy=66,
            growth_rate=0.10,
            inflation_rate=0.05,
            annual_spending_needs=10_000,
            annual_savings_contribution=1_000,
        )
        results = run_simulation(portfolio(100_000), assumptions, 0.0, 0.0, iterations=1, seed=0)

        balance = 100_000 * 1.1 + 1_000
        balance = balance * 1.1 + 1_000
        spending = 10_000 * 1.05**2
        balance = balance * 1.1 - spending
        assert results.simulations[0].ending_balance == pytest.approx(balance)
        assert results.simulations[0].years_lasted == 3

    def test_survival_curve_matches_years_lasted(self):
        """Test that retirement years survived line up with years lasted."""
        assumptions = plan(current_age=62, annual_spending_needs=300_000)
        results = run_simulation(portfolio(1_000_000), assumptions, 0.0, 0.0, iterations=4, seed=2)

        # 3 accumulation years, then 1M -> 700K -> 400K -> 100K -> 0
        for path in results.simulations:
            assert path.years_lasted == 7
            assert path.retirement_years_survived == path.years_lasted - assumptions.years_to_retirement
        rates = {r["year"]: r["success_rate"] for r in results.yearly_success_rates}
        assert rates[4] == 100.0
        assert rates[5] == 0.0

    def test_fixed_income_covers_spending(self):
        """Test that income above spending means no withdrawals."""
        assumptions = plan(annual_spending_needs=30_000, social_security_monthly=3_000)
        results = run_simulation(portfolio(10_000), assumptions, 0.0, 0.0, iterations=5, seed=3)
        assert results.success_rate == 100.0
        assert results.median_ending_balance == pytest.approx(10_000)

    def test_fixed_income_inflates(self):
        """Test that fixed income keeps pace with realized inflation."""
        assumptions = plan(
            annual_spending_needs=36_000,
            social_security_monthly=3_000,
            inflation_rate=0.04,
            life_expectancy=75,
        )
        results = run_simulation(portfolio(50_000), assumptions, 0.0, 0.0, iterations=3, seed=3)
        assert results.median_ending_balance == pytest.approx(50_000)


class TestStochasticPaths:
    """Tests with volatility."""

    @pytest.fixture
    def assumptions(self):
        return plan(current_age=55, annual_spending_needs=60_000, growth_rate=0.06, inflation_rate=0.03)

    def test_seed_reproducible(self, assumptions):
        """Test that the same seed gives identical results."""
        a = run_simulation(portfolio(1_200_000), assumptions, 0.15, 0.01, 400, seed=42)
        b = run_simulation(portfolio(1_200_000), assumptions, 0.15, 0.01, 400, seed=42)
        assert a.success_rate == b.success_rate
        assert a.median_ending_balance == b.median_ending_balance

    def test_success_rate_bounds(self, assumptions):
        """Test rates and percentile ordering."""
        results = run_simulation(portfolio(1_200_000), assumptions, 0.15, 0.01, 500, seed=7)

        assert 0.0 <= results.success_rate <= 100.0
        assert results.percentile_10_ending_balance <= results.median_ending_balance
        assert results.median_ending_balance <= results.percentile_90_ending_balance
        assert results.iterations_completed == 500
        rates = [r["success_rate"] for r in results.yearly_success_rates]
        assert rates == sorted(rates, reverse=True)
        assert rates[-1] >= results.success_rate

    def test_more_spending_never_helps(self, assumptions):
        """Test that success is non-increasing in spending for a fixed seed."""
        rates = []
        for spending in (40_000, 60_000, 80_000, 120_000):
            assumptions.annual_spending_needs = spending
            rates.append(run_simulation(portfolio(1_200_000), assumptions, 0.15, 0.01, 300, seed=11).success_rate)
        assert rates == sorted(rates, reverse=True)

    def test_chunk_size_independent_count(self, assumptions):
        """Test that uneven chunking still runs every iteration."""
        results = run_simulation(portfolio(1_000_000), assumptions, 0.15, 0.01, 1_234, seed=5, chunk_size=500)
        assert results.iterations_completed == 1_234
        assert len(results.simulations) == 1_234

    def test_histogram_present(self, assumptions):
        """Test that surviving balances produce a histogram."""
        results = run_simulation(portfolio(3_000_000), assumptions, 0.15, 0.01, 300, seed=9, histogram_bins=10)
        assert len(results.histogram) == 10


class TestValidation:
    """Tests for input validation."""

    @pytest.mark.parametrize(
        "return_std,inflation_std,iterations,chunk_size",
        [
            (-0.1, 0.01, 100, 50),
            (0.15, -0.01, 100, 50),
            (float("nan"), 0.01, 100, 50),
            (0.15, float("inf"), 100, 50),
            (0.15, 0.01, 0, 50),
            (0.15, 0.01, 100, 0),
        ],
    )
    def test_invalid(self, return_std, inflation_std, iterations, chunk_size):
        """Test that invalid parameters raise before simulating."""
        with pytest.raises(InvalidSimulationInputError):
            run_simulation(portfolio(1), plan(), return_std, inflation_std, iterations, chunk_size=chunk_size)


class TestChunkedSimulation:
    """Tests for the async chunked runner."""

    @pytest.fixture
    def assumptions(self):
        return plan(current_age=60, annual_spending_needs=50_000, growth_rate=0.05, inflation_rate=0.025)

    @pytest.mark.asyncio
    async def test_matches_sync_run(self, assumptions):
        """Test that a seeded chunked run equals the synchronous run."""
        sync = run_simulation(portfolio(1_000_000), assumptions, 0.15, 0.01, 700, seed=21, chunk_size=200)
        chunked = await run_simulation_chunked(
            portfolio(1_000_000), assumptions, 0.15, 0.01, 700, seed=21, chunk_size=200
        )

        assert chunked.success_rate == sync.success_rate
        assert chunked.median_ending_balance == sync.median_ending_balance
        assert chunked.cancelled is False

    @pytest.mark.asyncio
    async def test_progress(self, assumptions):
        """Test monotone progress ending at 1.0."""
        progress = []
        await run_simulation_chunked(
            portfolio(1_000_000), assumptions, 0.15, 0.01, 250, seed=1, chunk_size=100, on_progress=progress.append
        )
        assert progress == pytest.approx([0.4, 0.8, 1.0])

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, assumptions):
        """Test that a pre-set cancel event runs nothing."""
        cancel = asyncio.Event()
        cancel.set()
        results = await run_simulation_chunked(
            portfolio(1_000_000), assumptions, 0.15, 0.01, 1_000, seed=1, chunk_size=100, cancel_event=cancel
        )
        assert results.cancelled is True
        assert results.iterations_completed == 0
        assert results.success_rate == 0.0

    @pytest.mark.asyncio
    async def test_cancel_mid_run(self, assumptions):
        """Test that cancelling keeps completed chunks only."""
        cancel = asyncio.Event()

        def on_progress(fraction):
            if fraction >= 0.2:
                cancel.set()

        results = await run_simulation_chunked(
            portfolio(1_000_000),
            assumptions,
            0.15,
            0.01,
            1_000,
            seed=1,
            chunk_size=100,
            on_progress=on_progress,
            cancel_event=cancel,
        )
        assert results.cancelled is True
        assert results.iterations_completed == 200

    @pytest.mark.asyncio
    async def test_validates(self, assumptions):
        """Test that the chunked runner validates like the sync one."""
        with pytest.raises(InvalidSimulationInputError):
            await run_simulation_chunked(portfolio(1), assumptions, -1.0, 0.01, 10)


class TestAggregateSimulations:
    """Tests for aggregate_simulations."""

    def test_empty(self):
        """Test zeroed statistics for no paths."""
        results = aggregate_simulations([], years_in_retirement=3)
        assert results.success_rate == 0.0
        assert results.iterations_completed == 0
        assert len(results.yearly_success_rates) == 4

    def test_merge_worker_results(self):
        """Test that lists from separate runs combine into one summary."""
        first = [SimulationResult(500_000.0, 30, False, 25)] * 3
        second = [SimulationResult(0.0, 12, True, 7)]
        results = aggregate_simulations(first + second, years_in_retirement=25)

        assert results.success_rate == 75.0
        assert results.iterations_completed == 4
        assert results.avg_ending_balance == pytest.approx(375_000)
        rates = {r["year"]: r["success_rate"] for r in results.yearly_success_rates}
        assert rates[7] == 100.0
        assert rates[8] == 75.0

    def test_merge_serialized_results(self):
        """Test that results round-tripped through dicts keep the survival curve."""
        assumptions = plan(annual_spending_needs=250_000)
        results = run_simulation(portfolio(1_000_000), assumptions, 0.0, 0.0, iterations=3, seed=1)

        payload = results.to_dict(include_simulations=True)["simulations"]
        restored = [SimulationResult.from_dict(item) for item in payload]
        merged = aggregate_simulations(restored, assumptions.years_in_retirement)

        assert merged.yearly_success_rates == results.yearly_success_rates
        assert payload[0]["retirement_years_survived"] == 4

    def test_to_dict(self):
        """Test that per-path results are only serialized on request."""
        results = aggregate_simulations([SimulationResult(1.0, 1, False, 1)], years_in_retirement=1)
        assert "simulations" not in results.to_dict()
        assert len(results.to_dict(include_simulations=True)["simulations"]) == 1
