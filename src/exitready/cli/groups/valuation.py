"""
Valuation commands for ExitReady CLI
"""

import click

from ..utils import echo_json, error_exit, format_currency, load_input


@click.group()
@click.pass_context
def valuation(ctx):
    """Assessment scoring, multiple-based valuation and DCF

    Every command reads a JSON or YAML document.

    Examples:
        exitready valuation score assessment.yaml
        exitready valuation value company.json --json
        exitready valuation dcf dcf.yaml --sensitivity
    """
    pass


def _scoring_responses(raw):
    from exitready.domain.models.scoring import ScoringResponse

    return [ScoringResponse.from_dict(item) for item in raw]


@valuation.command("score")
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def score(ctx, input_file, json_output):
    """Score an assessment: category scores, BRI and Deal Readiness

    INPUT_FILE holds "responses" and optionally company "weights".
    """
    from exitready.domain.services.scoring import resolve_category_weights, score_assessment

    config = ctx.obj["config"]
    document = load_input(input_file) or {}
    weights = resolve_category_weights(
        company_weights=document.get("weights"),
        defaults=config.scoring.bri_weights(),
    )
    result = score_assessment(
        _scoring_responses(document.get("responses", [])),
        weights,
        deal_readiness_weights=config.scoring.deal_readiness_category_weights(),
    )

    if json_output:
        echo_json(result.to_dict())
        return

    click.echo("\n" + "=" * 60)
    click.echo("BUSINESS READINESS")
    click.echo("=" * 60)
    for category_score in result.category_scores:
        click.echo(f"  {category_score.category.label:<28} {category_score.score:6.1%}")
    click.echo("-" * 60)
    click.echo(f"  {'BRI score':<28} {result.bri_score:6.1%}")
    click.echo(f"  {'Deal Readiness score':<28} {result.deal_readiness_score:6.1%}")


def _resolve_multiples(document):
    from exitready.domain.services.valuation.industry_multiples import (
        DEFAULT_MULTIPLES,
        IndustryMultipleRecord,
        IndustryMultiples,
        resolve_industry_multiples,
    )

    if "multiples" in document:
        return IndustryMultiples(**document["multiples"])
    if "industry_records" in document:
        classification = document.get("classification", {})
        records = [IndustryMultipleRecord.from_dict(r) for r in document["industry_records"]]
        return resolve_industry_multiples(
            records,
            subsector=classification.get("subsector"),
            sector=classification.get("sector"),
            supersector=classification.get("supersector"),
            industry=classification.get("industry"),
        )
    return DEFAULT_MULTIPLES


def _adjusted_ebitda(document, multiples):
    from exitready.domain.services.valuation.ebitda_adjustments import (
        AdjustmentType,
        EbitdaAdjustment,
        calculate_adjusted_ebitda,
    )

    adjustments = [
        EbitdaAdjustment(a.get("description", ""), float(a["amount"]), AdjustmentType(a["type"]))
        for a in document.get("adjustments", [])
    ]
    return calculate_adjusted_ebitda(
        reported_ebitda=float(document.get("reported_ebitda", 0)),
        annual_revenue=float(document.get("annual_revenue", 0)),
        multiples=multiples,
        adjustments=adjustments,
        owner_compensation=float(document.get("owner_compensation", 0)),
        revenue_size_category=document.get("revenue_size_category"),
    )


@valuation.command("value")
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def value(ctx, input_file, json_output):
    """Multiple-based valuation with core and BRI discount

    \b
    INPUT_FILE keys:
      adjusted_ebitda, or reported_ebitda/annual_revenue/adjustments/owner_compensation
      multiples, or industry_records + classification (default range otherwise)
      core_score, or core_factors
      bri_score, or responses (scored with the configured weights)
      comparables (optional)
    """
    from exitready.domain.exceptions import ExitReadyError
    from exitready.domain.services.scoring import score_assessment
    from exitready.domain.services.valuation import calculate_core_score, calculate_valuation, summarize_comparables

    config = ctx.obj["config"]
    document = load_input(input_file) or {}

    multiples = _resolve_multiples(document)
    if "adjusted_ebitda" in document:
        adjusted_ebitda = float(document["adjusted_ebitda"])
        ebitda_detail = None
    else:
        ebitda_detail = _adjusted_ebitda(document, multiples)
        adjusted_ebitda = ebitda_detail.adjusted_ebitda

    if "core_score" in document:
        core_score = float(document["core_score"])
    else:
        core_score = calculate_core_score(document.get("core_factors"))

    if "bri_score" in document:
        bri_score = float(document["bri_score"])
    else:
        bri_score = score_assessment(
            _scoring_responses(document.get("responses", [])), config.scoring.bri_weights()
        ).bri_score

    try:
        result = calculate_valuation(
            adjusted_ebitda,
            multiples.ebitda_multiple_low,
            multiples.ebitda_multiple_high,
            core_score,
            bri_score,
            policy=config.valuation.to_discount_policy(),
        )
    except ExitReadyError as e:
        error_exit(str(e))

    output = {
        "valuation": result.to_dict(),
        "multiples": multiples.to_dict(),
        "adjusted_ebitda": adjusted_ebitda,
        "core_score": core_score,
        "bri_score": bri_score,
    }
    if ebitda_detail is not None:
        output["ebitda_detail"] = ebitda_detail.to_dict()
    if "comparables" in document:
        output["comparables"] = summarize_comparables(document["comparables"]).to_dict()

    if json_output:
        echo_json(output)
        return

    click.echo("\n" + "=" * 60)
    click.echo("VALUATION")
    click.echo("=" * 60)
    click.echo(f"  Adjusted EBITDA:   {format_currency(adjusted_ebitda)}")
    click.echo(f"  Core / BRI score:  {core_score:.2f} / {bri_score:.2f}")
    click.echo(f"  Base multiple:     {result.base_multiple:.2f}x ({multiples.match_level})")
    click.echo(f"  Discount:          {result.discount_fraction:.1%}")
    click.echo(f"  Final multiple:    {result.final_multiple:.2f}x")
    click.echo(f"  Current value:     {format_currency(result.current_value)}")
    click.echo(f"  Potential value:   {format_currency(result.potential_value)}")
    click.echo(f"  Value gap:         {format_currency(result.value_gap)}")


@valuation.command("dcf")
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--sensitivity", is_flag=True, help="Include the WACC sensitivity grid")
@click.option("--target-ev", type=float, help="Solve for the WACC implied by this enterprise value")
@click.pass_context
def dcf(ctx, input_file, sensitivity, target_ev):
    """Five-year DCF with Gordon growth or exit multiple terminal value

    INPUT_FILE holds DCF assumptions. When "wacc" is absent it is built up
    from "wacc_inputs", or from calibrated defaults when "adjusted_ebitda"
    and "bri_score" are given. Missing growth rates use the configured ones.
    """
    from exitready.domain.services.valuation import (
        DCFInputs,
        DCFResults,
        WACCInputs,
        build_sensitivity_table,
        calculate_dcf,
        calculate_wacc,
        calculate_wacc_defaults,
        solve_implied_wacc,
    )

    config = ctx.obj["config"]
    document = dict(load_input(input_file) or {})
    document.setdefault("growth_rates", config.dcf.growth_rates)
    document.setdefault("perpetual_growth_rate", config.dcf.terminal_growth_rate)
    document.setdefault("use_mid_year_convention", config.dcf.use_mid_year_convention)

    baseline = {
        "risk_free_rate": config.dcf.risk_free_rate,
        "market_risk_premium": config.dcf.equity_risk_premium,
        "beta": config.dcf.beta,
    }

    output = {}
    if "wacc" not in document:
        if "wacc_inputs" in document:
            wacc_inputs = WACCInputs.from_dict({**baseline, "tax_rate": config.dcf.tax_rate, **document["wacc_inputs"]})
        elif "adjusted_ebitda" in document and "bri_score" in document:
            wacc_inputs = calculate_wacc_defaults(
                float(document["adjusted_ebitda"]),
                float(document["bri_score"]),
                derived_cost_of_debt=document.get("derived_cost_of_debt"),
                derived_tax_rate=document.get("derived_tax_rate"),
                derived_debt_weight=document.get("derived_debt_weight"),
                default_tax_rate=config.dcf.tax_rate,
                **baseline,
            )
        else:
            error_exit("Provide wacc, wacc_inputs, or adjusted_ebitda with bri_score")
        wacc_result = calculate_wacc(wacc_inputs)
        document["wacc"] = wacc_result.wacc
        output["wacc"] = wacc_result.to_dict()

    inputs = DCFInputs.from_dict(document)
    ebitda = document.get("ebitda")
    result = calculate_dcf(inputs, ebitda)
    output["dcf"] = result.to_dict()

    if sensitivity and isinstance(result, DCFResults):
        table = build_sensitivity_table(
            inputs,
            ebitda,
            wacc_step=config.dcf.wacc_step,
            growth_step=config.dcf.growth_step,
            multiple_step=config.dcf.multiple_step,
            steps=config.dcf.sensitivity_steps,
        )
        output["sensitivity"] = table.to_dict()

    if target_ev is not None:
        output["implied_wacc"] = solve_implied_wacc(
            target_ev,
            inputs.base_fcf,
            inputs.growth_rates,
            inputs.perpetual_growth_rate,
            use_mid_year_convention=inputs.use_mid_year_convention,
        )

    echo_json(output)
