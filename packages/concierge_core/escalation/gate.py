"""Confidence composition and the escalation decision."""

from dataclasses import dataclass
from typing import Dict, Optional

from concierge_config import ConfidencePolicy
from concierge_runtime import AnswerSource

from .reasons import EscalationReason

# Sources that escalate whatever their numeric confidence.
ALWAYS_ESCALATE: Dict[AnswerSource, EscalationReason] = {
    AnswerSource.AI_FALLBACK: EscalationReason.NO_ANSWER_FOUND,
    AnswerSource.TECHNICAL_FALLBACK: EscalationReason.INVALID_AI_RESPONSE,
    AnswerSource.EMERGENCY_FALLBACK: EscalationReason.ALL_SOURCES_FAILED,
    AnswerSource.ERROR: EscalationReason.PIPELINE_ERROR,
}


@dataclass
class EscalationDecision:
    """Outcome of the confidence gate.

    Attributes:
        requires_escalation: Whether a human must follow up
        reason: Reason code, set iff escalation is required
    """

    requires_escalation: bool
    reason: Optional[EscalationReason] = None

    def __post_init__(self) -> None:
        """Validate the decision."""
        if self.requires_escalation != (self.reason is not None):
            raise ValueError("reason must be set iff escalation is required")

    @property
    def reason_message(self) -> Optional[str]:
        """Human-readable text of the reason code, if any."""
        return self.reason.message if self.reason is not None else None


class ConfidenceGate:
    """Compose confidences and decide whether to escalate."""

    def __init__(self, policy: Optional[ConfidencePolicy] = None):
        """Initialize the gate.

        Args:
            policy: Threshold and confidence constants
        """
        self.policy = policy or ConfidencePolicy()

    @property
    def threshold(self) -> float:
        return self.policy.escalation_threshold

    def compose(self, source_confidence: float, rewrite_confidence: float) -> float:
        """Multiply source and rewrite confidence, clamped to [0, 1]."""
        composed = source_confidence * rewrite_confidence
        return max(0.0, min(1.0, composed))

    def evaluate(self, source: AnswerSource, confidence: float) -> EscalationDecision:
        """Decide escalation for a composed answer.

        Args:
            source: Answer source tag
            confidence: Final composed confidence

        Returns:
            EscalationDecision with the branch's reason code
        """
        if source in ALWAYS_ESCALATE:
            return EscalationDecision(True, ALWAYS_ESCALATE[source])

        if confidence < self.threshold:
            if source.is_listing:
                return EscalationDecision(True, EscalationReason.LOW_CONFIDENCE_LISTING)
            return EscalationDecision(True, EscalationReason.LOW_CONFIDENCE_FAQ)

        return EscalationDecision(False)
