"""
Retirement planning commands for ExitReady CLI
"""

import asyncio

import click

from ..utils import echo_json, format_currency, format_percent, load_input


@click.group()
@click.pass_context
def retirement(ctx):
    """Retirement projections and Monte Carlo simulation

    INPUT_FILE documents hold "assets" and "assumptions".

    Examples:
        exitready retirement project plan.yaml
        exitready retirement simulate plan.yaml --iterations 10000 --seed 7
        exitready retirement simulate plan.yaml --chunked --json
    """
    pass


def _load_plan(input_file):
    from exitready.domain.models.retirement import RetirementAsset, RetirementAssumptions

    document = load_input(input_file) or {}
    assets = [RetirementAsset.from_dict(item) for item in document.get("assets", [])]
    assumptions = RetirementAssumptions.from_dict(document.get("assumptions", {}))
    return document, assets, assumptions


@retirement.command("project")
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def project(input_file, json_output):
    """Deterministic projection at constant growth and inflation"""
    from exitready.domain.services.retirement import calculate_retirement_projections

    _, assets, assumptions = _load_plan(input_file)
    projections = calculate_retirement_projections(assets, assumptions)

    if json_output:
        echo_json(projections.to_dict())
        return

    click.echo("\n" + "=" * 60)
    click.echo("RETIREMENT PROJECTION")
    click.echo("=" * 60)
    click.echo(f"  After-tax today:       {format_currency(projections.total_after_tax_today)}")
    click.echo(f"  Value at retirement:   {format_currency(projections.value_at_retirement)}")
    click.echo(f"  Required nest egg:     {format_currency(projections.required_nest_egg)}")
    click.echo(f"  Surplus / shortfall:   {format_currency(projections.surplus_or_shortfall)}")
    click.echo(f"  Money lasts:           {projections.years_money_lasts} of {projections.years_in_retirement} years")


@retirement.command("simulate")
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--iterations", "-n", type=int, help="Number of paths (default from config)")
@click.option("--seed", type=int, help="Random seed for reproducible runs")
@click.option("--chunked", is_flag=True, help="Run in chunks and report progress")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def simulate(ctx, input_file, iterations, seed, chunked, json_output):
    """Monte Carlo probability that the portfolio lasts through retirement

    The plan may override "return_std_dev" and "inflation_std_dev".
    """
    from exitready.domain.services.retirement import run_simulation, run_simulation_chunked

    config = ctx.obj["config"].simulation
    document, assets, assumptions = _load_plan(input_file)
    return_std_dev = float(document.get("return_std_dev", config.return_std_dev))
    inflation_std_dev = float(document.get("inflation_std_dev", config.inflation_std_dev))
    iterations = iterations or config.iterations
    seed = seed if seed is not None else config.seed

    def on_progress(fraction):
        click.echo(f"\rProgress: {fraction:.0%}", nl=False, err=True)

    async def run_chunked():
        return await run_simulation_chunked(
            assets,
            assumptions,
            return_std_dev,
            inflation_std_dev,
            iterations,
            seed=seed,
            chunk_size=config.chunk_size,
            on_progress=on_progress,
            histogram_bins=config.histogram_bins,
        )

    if chunked:
        results = asyncio.run(run_chunked())
        click.echo("", err=True)
    else:
        results = run_simulation(
            assets,
            assumptions,
            return_std_dev,
            inflation_std_dev,
            iterations,
            seed=seed,
            chunk_size=config.chunk_size,
            histogram_bins=config.histogram_bins,
        )

    if json_output:
        echo_json(results.to_dict())
        return

    click.echo("\n" + "=" * 60)
    click.echo("MONTE CARLO")
    click.echo("=" * 60)
    click.echo(f"  Paths:                {results.iterations_completed}")
    click.echo(f"  Success rate:         {format_percent(results.success_rate)}")
    click.echo(f"  Median ending:        {format_currency(results.median_ending_balance)}")
    click.echo(f"  10th / 90th pct:      {format_currency(results.percentile_10_ending_balance)}"
               f" / {format_currency(results.percentile_90_ending_balance)}")
    click.echo(f"  Median years lasted:  {results.median_years_lasted:.1f}")
