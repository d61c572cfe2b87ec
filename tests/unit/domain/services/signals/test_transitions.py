"""
Unit tests for advisor confirm/dismiss transitions and the audit trail.
"""

import json
from datetime import datetime, timezone

import pytest

from exitready.domain.exceptions import SignalTransitionError
from exitready.domain.models.signals import ConfidenceLevel, ResolutionStatus, Signal, SignalSeverity
from exitready.domain.services.signals.transitions import (
    SignalAuditTrail,
    TransitionAction,
    advance_resolution,
    confirm_signal,
    dismiss_signal,
)

AT = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def signal():
    return Signal(
        id="sig-1",
        title="Key customer concentration",
        severity=SignalSeverity.HIGH,
        confidence=ConfidenceLevel.UNCERTAIN,
        estimated_value_impact=100_000,
        category=None,
        resolution_status=ResolutionStatus.OPEN,
        event_type="customer_concentration",
        created_at=datetime(2025, 6, 1, tzinfo=timezone.utc),
    )


class TestConfirmSignal:
    """Tests for confirm_signal."""

    def test_upgrades_confidence(self, signal):
        """Test one step up with before/after weighted values."""
        updated, transition = confirm_signal(signal, at=AT, actor="advisor@firm.com", reason="Verified AR aging")

        assert updated.confidence == ConfidenceLevel.CONFIDENT
        assert updated.resolution_status == ResolutionStatus.OPEN
        assert transition.action == TransitionAction.CONFIRM
        assert transition.weighted_value_before == pytest.approx(50_000)
        assert transition.weighted_value_after == pytest.approx(85_000)
        assert transition.weighted_value_delta == pytest.approx(35_000)
        assert transition.value_at_risk_delta == pytest.approx(35_000)
        assert transition.timestamp == AT.isoformat()
        assert transition.actor == "advisor@firm.com"

    def test_original_unchanged(self, signal):
        """Test that the input signal is not mutated."""
        confirm_signal(signal, at=AT)
        assert signal.confidence == ConfidenceLevel.UNCERTAIN

    def test_saturates_at_verified(self, signal):
        """Test that confirming a verified signal is a no-op on confidence."""
        verified = signal.with_changes(confidence=ConfidenceLevel.VERIFIED)
        updated, transition = confirm_signal(verified, at=AT)
        assert updated.confidence == ConfidenceLevel.VERIFIED
        assert transition.weighted_value_delta == 0.0

    def test_terminal_signal_rejected(self, signal):
        """Test that resolved signals cannot be confirmed."""
        resolved = signal.with_changes(resolution_status=ResolutionStatus.RESOLVED)
        with pytest.raises(SignalTransitionError):
            confirm_signal(resolved, at=AT)


class TestDismissSignal:
    """Tests for dismiss_signal."""

    def test_downgrades_and_dismisses(self, signal):
        """Test one step down, DISMISSED status and resolved_at."""
        confident = signal.with_changes(confidence=ConfidenceLevel.CONFIDENT)
        updated, transition = dismiss_signal(confident, at=AT, reason="Customer renewed")

        assert updated.confidence == ConfidenceLevel.UNCERTAIN
        assert updated.resolution_status == ResolutionStatus.DISMISSED
        assert updated.resolved_at == AT
        assert transition.resolution_after == ResolutionStatus.DISMISSED
        # Leaves open value at risk entirely
        assert transition.value_at_risk_delta == pytest.approx(-85_000)

    def test_cannot_dismiss_twice(self, signal):
        """Test that a dismissed signal cannot be dismissed again."""
        dismissed, _ = dismiss_signal(signal, at=AT)
        with pytest.raises(SignalTransitionError):
            dismiss_signal(dismissed, at=AT)


class TestAdvanceResolution:
    """Tests for monotone resolution changes."""

    def test_forward_moves(self, signal):
        """Test OPEN -> ACKNOWLEDGED -> IN_PROGRESS -> RESOLVED."""
        acknowledged, _ = advance_resolution(signal, ResolutionStatus.ACKNOWLEDGED, at=AT)
        in_progress, _ = advance_resolution(acknowledged, ResolutionStatus.IN_PROGRESS, at=AT)
        resolved, transition = advance_resolution(in_progress, ResolutionStatus.RESOLVED, at=AT)

        assert resolved.resolution_status == ResolutionStatus.RESOLVED
        assert resolved.resolved_at == AT
        assert resolved.confidence == signal.confidence
        assert transition.action == TransitionAction.RESOLUTION_CHANGE
        assert acknowledged.resolved_at is None

    def test_skip_ahead_allowed(self, signal):
        """Test that stages may be skipped going forward."""
        expired, _ = advance_resolution(signal, ResolutionStatus.EXPIRED, at=AT)
        assert expired.resolution_status == ResolutionStatus.EXPIRED

    @pytest.mark.parametrize(
        "current,target",
        [
            (ResolutionStatus.IN_PROGRESS, ResolutionStatus.ACKNOWLEDGED),
            (ResolutionStatus.ACKNOWLEDGED, ResolutionStatus.ACKNOWLEDGED),
            (ResolutionStatus.RESOLVED, ResolutionStatus.DISMISSED),
            (ResolutionStatus.DISMISSED, ResolutionStatus.OPEN),
        ],
    )
    def test_backward_or_same_rejected(self, signal, current, target):
        """Test that resolution never moves backwards or sideways."""
        with pytest.raises(SignalTransitionError):
            advance_resolution(signal.with_changes(resolution_status=current), target, at=AT)

    def test_acknowledging_removes_open_exposure(self, signal):
        """Test the value at risk delta when a signal leaves OPEN."""
        _, transition = advance_resolution(signal, ResolutionStatus.ACKNOWLEDGED, at=AT)
        assert transition.weighted_value_delta == 0.0
        assert transition.value_at_risk_delta == pytest.approx(-50_000)


class TestSignalAuditTrail:
    """Tests for the audit ledger."""

    def test_records_and_summarizes(self, signal):
        """Test the ledger summary across several actions."""
        trail = SignalAuditTrail(company_id="acme")
        confirmed, t1 = confirm_signal(signal, at=AT)
        trail.record(t1)
        _, t2 = dismiss_signal(confirmed, at=AT)
        trail.record(t2)

        summary = trail.summary()
        assert summary["total_transitions"] == 2
        assert summary["by_action"] == {"confirm": 1, "dismiss": 1}
        # Confirm +35,000 then dismiss -85,000: the signal's original 50,000 is gone
        assert trail.total_value_at_risk_delta == pytest.approx(-50_000)
        assert len(trail.for_signal("sig-1")) == 2
        assert trail.for_signal("other") == []

    def test_to_json(self, signal):
        """Test that the ledger serializes to JSON."""
        trail = SignalAuditTrail(company_id="acme")
        trail.record(confirm_signal(signal, at=AT, actor="jd")[1])

        data = json.loads(trail.to_json())
        assert data["summary"]["company_id"] == "acme"
        assert data["transitions"][0]["confidence_after"] == "CONFIDENT"
        assert data["transitions"][0]["actor"] == "jd"

    def test_describe(self, signal):
        """Test the human-readable transition line."""
        _, transition = confirm_signal(signal, at=AT)
        text = transition.describe()
        assert "UNCERTAIN -> CONFIDENT" in text
        assert "$50,000 -> $85,000" in text
