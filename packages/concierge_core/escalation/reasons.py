"""Escalation reason codes and their ticket priorities."""

from enum import Enum
from typing import Dict, Optional

from concierge_runtime import TicketPriority


class EscalationReason(str, Enum):
    """Why a reply was handed to a human."""

    LOW_CONFIDENCE_LISTING = "low_confidence_listing"
    LOW_CONFIDENCE_FAQ = "low_confidence_faq"
    NO_ANSWER_FOUND = "no_answer_found"
    INVALID_AI_RESPONSE = "invalid_ai_response"
    ALL_SOURCES_FAILED = "all_sources_failed"
    DISPATCH_FAILED = "dispatch_failed"
    PERSISTENCE_FAILED = "persistence_failed"
    PIPELINE_ERROR = "pipeline_error"

    @property
    def message(self) -> str:
        """Human-readable reason recorded on results and tickets."""
        return REASON_MESSAGES[self]

    @property
    def priority(self) -> TicketPriority:
        """Ticket priority for this reason when no error is attached."""
        return REASON_PRIORITIES[self]


REASON_MESSAGES: Dict[EscalationReason, str] = {
    EscalationReason.LOW_CONFIDENCE_LISTING: "Low confidence in listing data response",
    EscalationReason.LOW_CONFIDENCE_FAQ: "Low confidence in FAQ response",
    EscalationReason.NO_ANSWER_FOUND: "No answer found in knowledge bases (listing/FAQ)",
    EscalationReason.INVALID_AI_RESPONSE: "AI service returned invalid response",
    EscalationReason.ALL_SOURCES_FAILED: "Technical failure: every knowledge source failed",
    EscalationReason.DISPATCH_FAILED: "Technical failure: reply could not be sent to the guest",
    EscalationReason.PERSISTENCE_FAILED: "Technical failure: conversation could not be saved",
    EscalationReason.PIPELINE_ERROR: "Technical failure: unexpected error while processing message",
}

REASON_PRIORITIES: Dict[EscalationReason, TicketPriority] = {
    EscalationReason.LOW_CONFIDENCE_LISTING: TicketPriority.LOW,
    EscalationReason.LOW_CONFIDENCE_FAQ: TicketPriority.LOW,
    EscalationReason.NO_ANSWER_FOUND: TicketPriority.MEDIUM,
    EscalationReason.INVALID_AI_RESPONSE: TicketPriority.HIGH,
    EscalationReason.ALL_SOURCES_FAILED: TicketPriority.HIGH,
    EscalationReason.DISPATCH_FAILED: TicketPriority.HIGH,
    EscalationReason.PERSISTENCE_FAILED: TicketPriority.HIGH,
    EscalationReason.PIPELINE_ERROR: TicketPriority.HIGH,
}


def derive_priority(
    reason: Optional[EscalationReason], error: Optional[str] = None
) -> TicketPriority:
    """Pick the ticket priority for an escalation.

    Args:
        reason: Reason code, if the branch produced one
        error: Error text attached to the escalation

    Returns:
        ``high`` when an error is attached, otherwise the table entry for
        the reason, ``low`` when there is no reason
    """
    if error:
        return TicketPriority.HIGH
    if reason is None:
        return TicketPriority.LOW
    return REASON_PRIORITIES[reason]
