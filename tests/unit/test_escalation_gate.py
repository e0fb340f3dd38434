"""Tests for the confidence gate and escalation reason codes."""

import pytest
from concierge_config import ConfidencePolicy
from concierge_core.escalation import (
    ALWAYS_ESCALATE,
    REASON_PRIORITIES,
    ConfidenceGate,
    EscalationDecision,
    EscalationReason,
    derive_priority,
)
from concierge_runtime import AnswerSource, TicketPriority


@pytest.fixture
def gate():
    """Create a gate with the default policy."""
    return ConfidenceGate(ConfidencePolicy())


class TestEscalationReason:
    """Tests for EscalationReason."""

    def test_reason_messages(self):
        """Test the recorded reason strings."""
        assert (
            EscalationReason.LOW_CONFIDENCE_LISTING.message
            == "Low confidence in listing data response"
        )
        assert EscalationReason.LOW_CONFIDENCE_FAQ.message == "Low confidence in FAQ response"
        assert (
            EscalationReason.NO_ANSWER_FOUND.message
            == "No answer found in knowledge bases (listing/FAQ)"
        )
        assert (
            EscalationReason.INVALID_AI_RESPONSE.message == "AI service returned invalid response"
        )

    def test_every_reason_has_a_priority(self):
        """Test the priority table covers every reason code."""
        assert set(REASON_PRIORITIES) == set(EscalationReason)

    def test_priorities(self):
        """Test low-confidence reasons are low and failures are high."""
        assert EscalationReason.LOW_CONFIDENCE_FAQ.priority == TicketPriority.LOW
        assert EscalationReason.NO_ANSWER_FOUND.priority == TicketPriority.MEDIUM
        assert EscalationReason.ALL_SOURCES_FAILED.priority == TicketPriority.HIGH


class TestDerivePriority:
    """Tests for derive_priority."""

    def test_error_is_high(self):
        """Test an attached error always yields high priority."""
        assert (
            derive_priority(EscalationReason.LOW_CONFIDENCE_LISTING, "boom") == TicketPriority.HIGH
        )

    def test_table_lookup(self):
        """Test the priority comes from the reason table."""
        assert derive_priority(EscalationReason.LOW_CONFIDENCE_LISTING) == TicketPriority.LOW

    def test_no_reason(self):
        """Test a missing reason defaults to low."""
        assert derive_priority(None) == TicketPriority.LOW


class TestEscalationDecision:
    """Tests for EscalationDecision."""

    def test_reason_required_when_escalating(self):
        """Test an escalation must carry a reason."""
        with pytest.raises(ValueError):
            EscalationDecision(True)

    def test_no_reason_when_not_escalating(self):
        """Test a non-escalation carries no reason."""
        with pytest.raises(ValueError):
            EscalationDecision(False, EscalationReason.LOW_CONFIDENCE_FAQ)

        assert EscalationDecision(False).reason_message is None


class TestConfidenceGate:
    """Tests for ConfidenceGate."""

    @pytest.mark.parametrize(
        "source_confidence,rewrite_confidence",
        [(0.9, 0.95), (0.81, 0.8), (0.7, 0.95), (1.0, 1.0), (0.0, 0.95)],
    )
    def test_compose_never_exceeds_inputs(self, gate, source_confidence, rewrite_confidence):
        """Test composed confidence is at most the smaller input."""
        composed = gate.compose(source_confidence, rewrite_confidence)

        assert composed <= min(source_confidence, rewrite_confidence)
        assert 0.0 <= composed <= 1.0

    def test_compose_is_monotonic(self, gate):
        """Test a higher source confidence never lowers the result."""
        assert gate.compose(0.9, 0.95) >= gate.compose(0.81, 0.95)

    def test_confident_listing_answer(self, gate):
        """Test a confident listing answer is not escalated."""
        decision = gate.evaluate(AnswerSource.LISTING_DIRECT, gate.compose(0.9, 0.95))

        assert decision.requires_escalation is False
        assert decision.reason is None

    def test_low_confidence_listing(self, gate):
        """Test a weak listing answer escalates with the listing reason."""
        decision = gate.evaluate(AnswerSource.LISTING_SPECIAL, gate.compose(0.7, 0.95))

        assert decision.requires_escalation is True
        assert decision.reason == EscalationReason.LOW_CONFIDENCE_LISTING
        assert decision.reason_message == "Low confidence in listing data response"

    def test_low_confidence_faq(self, gate):
        """Test a weak FAQ answer escalates with the FAQ reason."""
        decision = gate.evaluate(AnswerSource.FAQ, gate.compose(0.8, 0.8))

        assert decision.requires_escalation is True
        assert decision.reason == EscalationReason.LOW_CONFIDENCE_FAQ

    def test_threshold_is_inclusive(self, gate):
        """Test a confidence equal to the threshold is accepted."""
        assert gate.evaluate(AnswerSource.FAQ, 0.7).requires_escalation is False

    @pytest.mark.parametrize("source", list(ALWAYS_ESCALATE))
    def test_unverified_sources_always_escalate(self, gate, source):
        """Test unverified sources escalate even at full confidence."""
        decision = gate.evaluate(source, 1.0)

        assert decision.requires_escalation is True
        assert decision.reason == ALWAYS_ESCALATE[source]

    def test_custom_threshold(self):
        """Test the threshold comes from the policy."""
        gate = ConfidenceGate(ConfidencePolicy(escalation_threshold=0.9))

        assert gate.threshold == 0.9
        assert gate.evaluate(AnswerSource.LISTING_DIRECT, 0.855).requires_escalation is True
