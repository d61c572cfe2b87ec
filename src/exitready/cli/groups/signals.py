"""
Risk signal commands for ExitReady CLI
"""

from datetime import datetime, timezone

import click

from ..utils import echo_json, error_exit, format_currency, load_input


@click.group()
@click.pass_context
def signals(ctx):
    """Risk signal prioritization and value at risk

    Examples:
        exitready signals summary signals.yaml
        exitready signals summary signals.yaml --as-of 2025-06-30T00:00:00 --json
        exitready signals audit actions.yaml --company acme
    """
    pass


def _load_signals(raw):
    from exitready.domain.models.signals import Signal

    return [Signal.from_dict(item) for item in raw]


def _default_as_of(signal_list):
    # Match the timezone awareness of the input timestamps
    if signal_list and signal_list[0].created_at.tzinfo is not None:
        return datetime.now(timezone.utc)
    return datetime.now()


@signals.command("summary")
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--as-of", "as_of", type=click.DateTime(), help="Reference time for the trend baseline (default: now)")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
@click.pass_context
def summary(ctx, input_file, as_of, json_output):
    """Ranked display groups and confidence-weighted value at risk

    INPUT_FILE holds a "signals" list.
    """
    from exitready.domain.services.signals import process_signals_for_display, summarize_value_at_risk

    config = ctx.obj["config"].signals
    document = load_input(input_file) or {}
    signal_list = _load_signals(document.get("signals", []))
    as_of = as_of or _default_as_of(signal_list)

    display = process_signals_for_display(
        signal_list, max_display=config.max_display, value_normalizer=config.value_normalizer
    )
    var = summarize_value_at_risk(
        signal_list,
        as_of,
        lookback_days=config.lookback_days,
        top_threats_limit=config.top_threats,
        trend_threshold=config.trend_threshold,
    )

    if json_output:
        echo_json({"display": display.to_dict(), "value_at_risk": var.to_dict()})
        return

    click.echo("\n" + "=" * 60)
    click.echo("RISK SIGNALS")
    click.echo("=" * 60)
    for group in display.active_display_groups:
        click.echo(f"  [{group.max_severity.value:<8}] {group.display_title}  (score {group.group_rank_score:.2f})")
    if display.queued_groups:
        click.echo(f"  ... {len(display.queued_groups)} more queued")

    click.echo("\nVALUE AT RISK")
    click.echo("-" * 40)
    click.echo(f"  Weighted:  {format_currency(var.total_value_at_risk)}")
    click.echo(f"  Raw:       {format_currency(var.raw_value_at_risk)}")
    if var.trend is not None:
        click.echo(f"  Trend:     {var.trend.direction.value} ({var.trend.percentage_change:+.1%})")
    for threat in var.top_threats:
        click.echo(f"  - {threat.title}: {format_currency(threat.weighted_impact)}")


@signals.command("audit")
@click.argument("input_file", type=click.Path(exists=True))
@click.option("--company", default="company", help="Company identifier for the audit trail")
@click.pass_context
def audit(ctx, input_file, company):
    """Apply advisor actions and print the audit trail

    INPUT_FILE holds "signals" and "actions"; each action has signal_id,
    action (confirm, dismiss or a resolution status) and optional actor
    and reason.
    """
    from exitready.domain.exceptions import SignalTransitionError
    from exitready.domain.models.signals import ResolutionStatus
    from exitready.domain.services.signals import (
        SignalAuditTrail,
        advance_resolution,
        confirm_signal,
        dismiss_signal,
    )

    document = load_input(input_file) or {}
    by_id = {s.id: s for s in _load_signals(document.get("signals", []))}
    trail = SignalAuditTrail(company_id=company)

    for action in document.get("actions", []):
        signal_id = str(action["signal_id"])
        if signal_id not in by_id:
            error_exit(f"Unknown signal: {signal_id}")

        kind = action["action"]
        kwargs = {"actor": action.get("actor"), "reason": action.get("reason")}
        try:
            if kind == "confirm":
                updated, transition = confirm_signal(by_id[signal_id], **kwargs)
            elif kind == "dismiss":
                updated, transition = dismiss_signal(by_id[signal_id], **kwargs)
            else:
                updated, transition = advance_resolution(by_id[signal_id], ResolutionStatus(kind), **kwargs)
        except (SignalTransitionError, ValueError) as e:
            error_exit(str(e))

        by_id[signal_id] = updated
        trail.record(transition)

    trail.log_summary()
    click.echo(trail.to_json())
