"""
Unit tests for confidence weighting and signal ranking, grouping and display.
"""

from datetime import datetime, timedelta

import pytest

from exitready.domain.models.signals import (
    ConfidenceLevel,
    ResolutionStatus,
    Signal,
    SignalChannel,
    SignalSeverity,
)
from exitready.domain.services.signals.confidence import (
    apply_confidence_weight,
    confidence_multiplier,
    default_confidence_for_channel,
    weighted_impact,
)
from exitready.domain.services.signals.signal_ranking import (
    calculate_rank_score,
    calculate_weighted_value_at_risk,
    group_signals,
    process_signals_for_display,
    rank_signals,
)

T0 = datetime(2025, 6, 1, 9, 0, 0)


def make_signal(
    signal_id,
    severity=SignalSeverity.MEDIUM,
    confidence=ConfidenceLevel.CONFIDENT,
    impact=None,
    status=ResolutionStatus.OPEN,
    event_type=None,
    created_at=T0,
    title=None,
):
    return Signal(
        id=signal_id,
        title=title or f"Signal {signal_id}",
        severity=severity,
        confidence=confidence,
        estimated_value_impact=impact,
        category=None,
        resolution_status=status,
        event_type=event_type or f"event_{signal_id}",
        created_at=created_at,
    )


class TestConfidence:
    """Tests for confidence multipliers and the confidence ladder."""

    @pytest.mark.parametrize(
        "level,multiplier",
        [
            (ConfidenceLevel.UNCERTAIN, 0.5),
            (ConfidenceLevel.SOMEWHAT_CONFIDENT, 0.7),
            (ConfidenceLevel.CONFIDENT, 0.85),
            (ConfidenceLevel.VERIFIED, 1.0),
            (ConfidenceLevel.NOT_APPLICABLE, 1.0),
        ],
    )
    def test_multipliers(self, level, multiplier):
        """Test the multiplier for each confidence level."""
        assert confidence_multiplier(level) == multiplier

    def test_weight_preserves_sign(self):
        """Test that weighting keeps negative impacts negative."""
        assert apply_confidence_weight(-10_000, ConfidenceLevel.UNCERTAIN) == -5_000

    def test_weighted_impact_none(self):
        """Test that a missing estimate stays missing."""
        assert weighted_impact(None, ConfidenceLevel.VERIFIED) is None
        assert weighted_impact(20_000, ConfidenceLevel.CONFIDENT) == pytest.approx(17_000)

    def test_upgrade_ladder(self):
        """Test confirm steps: UNCERTAIN -> CONFIDENT -> VERIFIED, saturating."""
        assert ConfidenceLevel.UNCERTAIN.upgrade() == ConfidenceLevel.CONFIDENT
        assert ConfidenceLevel.CONFIDENT.upgrade() == ConfidenceLevel.VERIFIED
        assert ConfidenceLevel.VERIFIED.upgrade() == ConfidenceLevel.VERIFIED
        assert ConfidenceLevel.NOT_APPLICABLE.upgrade() == ConfidenceLevel.NOT_APPLICABLE

    def test_downgrade_ladder(self):
        """Test dismiss steps, saturating at UNCERTAIN."""
        assert ConfidenceLevel.VERIFIED.downgrade() == ConfidenceLevel.SOMEWHAT_CONFIDENT
        assert ConfidenceLevel.CONFIDENT.downgrade() == ConfidenceLevel.UNCERTAIN
        assert ConfidenceLevel.UNCERTAIN.downgrade() == ConfidenceLevel.UNCERTAIN

    def test_rank_order(self):
        """Test the total order used for max_confidence."""
        ranks = [level.rank for level in (
            ConfidenceLevel.NOT_APPLICABLE,
            ConfidenceLevel.UNCERTAIN,
            ConfidenceLevel.SOMEWHAT_CONFIDENT,
            ConfidenceLevel.CONFIDENT,
            ConfidenceLevel.VERIFIED,
        )]
        assert ranks == sorted(ranks)

    def test_default_confidence_for_channel(self):
        """Test initial confidence by detector channel."""
        assert default_confidence_for_channel(SignalChannel.TIME_DECAY) == ConfidenceLevel.CONFIDENT
        assert default_confidence_for_channel(SignalChannel.EXTERNAL) == ConfidenceLevel.SOMEWHAT_CONFIDENT
        assert default_confidence_for_channel(None) == ConfidenceLevel.SOMEWHAT_CONFIDENT


class TestRankScore:
    """Tests for calculate_rank_score."""

    def test_composite(self):
        """Test severity x confidence x resolution x value factor."""
        signal = make_signal("a", SignalSeverity.HIGH, ConfidenceLevel.CONFIDENT, impact=100_000)
        # weighted impact 85,000 -> value factor 8.5
        assert calculate_rank_score(signal) == pytest.approx(4 * 0.85 * 1.0 * 8.5)

    def test_value_factor_floor(self):
        """Test that small or missing impacts use a value factor of 1."""
        small = make_signal("a", SignalSeverity.LOW, ConfidenceLevel.VERIFIED, impact=500)
        missing = make_signal("b", SignalSeverity.LOW, ConfidenceLevel.VERIFIED)
        assert calculate_rank_score(small) == pytest.approx(2.0)
        assert calculate_rank_score(missing) == pytest.approx(2.0)

    def test_negative_impact_uses_magnitude(self):
        """Test that the value factor uses the absolute weighted impact."""
        signal = make_signal("a", SignalSeverity.INFO, ConfidenceLevel.VERIFIED, impact=-50_000)
        assert calculate_rank_score(signal) == pytest.approx(5.0)

    def test_resolution_multiplier(self):
        """Test that resolution status scales the score."""
        open_score = calculate_rank_score(make_signal("a"))
        resolved = calculate_rank_score(make_signal("b", status=ResolutionStatus.RESOLVED))
        assert resolved == pytest.approx(open_score * 0.3)

    def test_never_zero(self):
        """Test that every signal gets a positive score."""
        signal = make_signal("a", SignalSeverity.INFO, ConfidenceLevel.UNCERTAIN, status=ResolutionStatus.EXPIRED)
        assert calculate_rank_score(signal) > 0

    def test_custom_normalizer(self):
        """Test that the value normalizer scales the value factor."""
        signal = make_signal("a", SignalSeverity.LOW, ConfidenceLevel.VERIFIED, impact=50_000)
        assert calculate_rank_score(signal, value_normalizer=25_000) == pytest.approx(4.0)


class TestRankSignals:
    """Tests for rank_signals ordering."""

    def test_descending_by_score(self):
        """Test that higher scores come first."""
        low = make_signal("low", SignalSeverity.LOW)
        critical = make_signal("crit", SignalSeverity.CRITICAL)
        ranked = rank_signals([low, critical])
        assert [r.signal.id for r in ranked] == ["crit", "low"]

    def test_ties_newest_first_then_id(self):
        """Test the tie-break on equal scores."""
        older = make_signal("a", created_at=T0)
        newer = make_signal("z", created_at=T0 + timedelta(hours=1))
        same_time_b = make_signal("c", created_at=T0)
        ranked = rank_signals([same_time_b, older, newer])
        assert [r.signal.id for r in ranked] == ["z", "a", "c"]


class TestGroupSignals:
    """Tests for event-type grouping."""

    def test_groups_share_event_type(self):
        """Test grouping with the best-ranked member as primary."""
        signals = [
            make_signal("d1", SignalSeverity.LOW, event_type="document_staleness"),
            make_signal("d2", SignalSeverity.HIGH, event_type="document_staleness"),
            make_signal("x", SignalSeverity.MEDIUM, event_type="customer_loss"),
        ]
        groups = group_signals(rank_signals(signals))

        assert [g.group_key for g in groups] == ["document_staleness", "customer_loss"]
        docs = groups[0]
        assert docs.count == 2
        assert docs.primary_signal.signal.id == "d2"
        assert docs.display_title == "2 documents need attention"
        assert docs.max_severity == SignalSeverity.HIGH
        assert groups[1].display_title == "Signal x"

    @pytest.mark.parametrize(
        "event_type,title",
        [
            ("kpi_drift", "3 drift signals detected"),
            ("prompted_disclosure", "3 disclosure findings"),
            ("external_news", "3 external signals"),
            ("customer_loss", "Lost customer (+2 related)"),
        ],
    )
    def test_group_titles(self, event_type, title):
        """Test titles for multi-member groups."""
        signals = [
            make_signal(f"s{i}", event_type=event_type, title="Lost customer", created_at=T0 + timedelta(minutes=i))
            for i in range(3)
        ]
        assert group_signals(rank_signals(signals))[0].display_title == title

    def test_group_totals(self):
        """Test total weighted impact and max confidence across members."""
        signals = [
            make_signal("a", confidence=ConfidenceLevel.VERIFIED, impact=10_000, event_type="e"),
            make_signal("b", confidence=ConfidenceLevel.UNCERTAIN, impact=20_000, event_type="e"),
            make_signal("c", confidence=ConfidenceLevel.UNCERTAIN, event_type="e"),
        ]
        group = group_signals(rank_signals(signals))[0]
        assert group.total_weighted_impact == pytest.approx(20_000)
        assert group.max_confidence == ConfidenceLevel.VERIFIED


class TestProcessSignalsForDisplay:
    """Tests for the display pipeline."""

    def test_empty(self):
        """Test that no signals produce an empty result."""
        result = process_signals_for_display([])
        assert result.active_display_groups == []
        assert result.queued_groups == []
        assert result.total_weighted_value_at_risk == 0.0
        assert result.total_signal_count == 0

    def test_caps_active_display(self):
        """Test that at most three groups are active and the rest queue."""
        signals = [make_signal(f"s{i}", SignalSeverity.HIGH, impact=10_000 * (i + 1)) for i in range(5)]
        result = process_signals_for_display(signals)

        assert len(result.active_display_groups) == 3
        assert len(result.queued_groups) == 2
        assert [g.primary_signal.signal.id for g in result.active_display_groups] == ["s4", "s3", "s2"]

    def test_custom_max_display(self):
        """Test a non-default display cap."""
        signals = [make_signal(f"s{i}") for i in range(4)]
        result = process_signals_for_display(signals, max_display=1)
        assert len(result.active_display_groups) == 1
        assert len(result.queued_groups) == 3

    def test_terminal_signals_queue_behind_live(self):
        """Test that resolved signals never displace a live one."""
        live = make_signal("live", SignalSeverity.INFO, ConfidenceLevel.UNCERTAIN)
        resolved = make_signal("done", SignalSeverity.CRITICAL, impact=1_000_000, status=ResolutionStatus.RESOLVED)
        result = process_signals_for_display([resolved, live])

        assert [g.primary_signal.signal.id for g in result.active_display_groups] == ["live"]
        assert [g.primary_signal.signal.id for g in result.queued_groups] == ["done"]

    def test_terminal_only_displayed(self):
        """Test that terminal signals show when nothing live remains."""
        result = process_signals_for_display([make_signal("done", status=ResolutionStatus.DISMISSED)])
        assert [g.primary_signal.signal.id for g in result.active_display_groups] == ["done"]

    def test_value_at_risk_counts_open_positive(self):
        """Test the open weighted value at risk total."""
        signals = [
            make_signal("a", confidence=ConfidenceLevel.VERIFIED, impact=40_000),
            make_signal("b", confidence=ConfidenceLevel.UNCERTAIN, impact=10_000),
            make_signal("c", impact=-5_000),
            make_signal("d", impact=90_000, status=ResolutionStatus.ACKNOWLEDGED),
            make_signal("e"),
        ]
        result = process_signals_for_display(signals)
        assert result.total_weighted_value_at_risk == pytest.approx(45_000)
        assert result.total_signal_count == 5

    def test_to_dict(self):
        """Test serialization of the display result."""
        data = process_signals_for_display([make_signal("a", impact=10_000)]).to_dict()
        assert data["active_display_groups"][0]["primary_signal_id"] == "a"
        assert data["total_signal_count"] == 1


class TestWeightedValueAtRisk:
    """Tests for calculate_weighted_value_at_risk."""

    def test_absolute_values(self):
        """Test that all statuses count and negatives count by magnitude."""
        signals = [
            make_signal("a", confidence=ConfidenceLevel.VERIFIED, impact=-10_000),
            make_signal("b", confidence=ConfidenceLevel.UNCERTAIN, impact=10_000, status=ResolutionStatus.RESOLVED),
            make_signal("c"),
        ]
        assert calculate_weighted_value_at_risk(signals) == pytest.approx(15_000)
