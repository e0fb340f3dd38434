"""Escalation: confidence gate, reason codes and support notifications.

This module decides when a reply needs a human and opens the support
ticket that hands it over.
"""

from .gate import ALWAYS_ESCALATE, ConfidenceGate, EscalationDecision
from .notifier import (
    EscalationNotifier,
    EscalationRequest,
    NotificationChannel,
    NotificationPayload,
    TicketCreationResult,
    format_support_message,
)
from .reasons import REASON_MESSAGES, REASON_PRIORITIES, EscalationReason, derive_priority

__all__ = [
    "ALWAYS_ESCALATE",
    "REASON_MESSAGES",
    "REASON_PRIORITIES",
    "ConfidenceGate",
    "EscalationDecision",
    "EscalationNotifier",
    "EscalationReason",
    "EscalationRequest",
    "NotificationChannel",
    "NotificationPayload",
    "TicketCreationResult",
    "derive_priority",
    "format_support_message",
]
