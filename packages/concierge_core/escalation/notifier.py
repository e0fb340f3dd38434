"""Support tickets and push notifications for escalated replies.

The notifier is the only writer of support tickets. Each escalation
creates exactly one ticket and attempts exactly one push through the
configured notification channel. Push failures are logged and never
reach the caller.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from concierge_runtime import (
    PersistenceError,
    SupportTicket,
    SupportTicketRepository,
    TicketError,
    TicketPriority,
)
from pydantic import ValidationError

from ..metrics import ESCALATIONS, NOTIFICATION_FAILURES, TICKETS
from .reasons import EscalationReason, derive_priority

logger = logging.getLogger(__name__)

DEFAULT_REASON = "Support request from AI agent"
DEFAULT_ADMIN_PANEL_URL = "Panel de administración"

PRIORITY_MARKERS: Dict[TicketPriority, str] = {
    TicketPriority.HIGH: "🔴",
    TicketPriority.MEDIUM: "🟡",
    TicketPriority.LOW: "🟢",
}


@dataclass
class NotificationPayload:
    """Push sent to the support team when a ticket opens."""

    ticket_id: str
    guest_id: str
    reservation_id: str
    question: str
    reason: str
    priority: TicketPriority
    message: str
    type: str = "support_ticket_created"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationChannel(Protocol):
    """Human-facing push channel (chat, e-mail, ...)."""

    async def send_notification(self, payload: NotificationPayload) -> None:
        """Deliver the payload; raise on failure."""
        ...


@dataclass
class EscalationRequest:
    """Everything the notifier needs to open a ticket for a reply.

    Attributes:
        guest_id: Guest identity
        reservation_id: Reservation the question belongs to
        question: Original guest question
        listing_map_id: Listing, when known
        response: Reply that was (or would have been) sent
        reason: Reason code from the failing or low-confidence branch
        error: Error text when a stage failed
        priority: Explicit priority; derived from reason and error when None
    """

    guest_id: str
    reservation_id: str
    question: str
    listing_map_id: Optional[str] = None
    response: Optional[str] = None
    reason: Optional[EscalationReason] = None
    error: Optional[str] = None
    priority: Optional[TicketPriority] = None


@dataclass
class TicketCreationResult:
    """Outcome of the ticket creation entrypoint."""

    success: bool
    ticket_id: str
    ticket: SupportTicket


def format_support_message(
    ticket: SupportTicket, admin_panel_url: str = DEFAULT_ADMIN_PANEL_URL
) -> str:
    """Render the chat message announcing a ticket."""
    marker = PRIORITY_MARKERS.get(ticket.priority, "⚪")
    created = ticket.created_at.strftime("%d/%m/%Y %H:%M:%S")
    return (
        f"{marker} *SOPORTE AGENTE VIRTUAL*\n\n"
        f"📅 {created}\n"
        f"🏠 Reserva: {ticket.reservation_id}\n"
        f"👤 Huésped: {ticket.guest_id}\n\n"
        f"❓ *Pregunta:*\n{ticket.question}\n\n"
        f"⚠️ *Motivo:*\n{ticket.reason}\n\n"
        f"🔗 Revisar: {admin_panel_url}"
    )


class EscalationNotifier:
    """Open support tickets and alert the support team."""

    def __init__(
        self,
        repository: SupportTicketRepository,
        channel: Optional[NotificationChannel] = None,
        admin_panel_url: str = DEFAULT_ADMIN_PANEL_URL,
    ):
        """Initialize the notifier.

        Args:
            repository: Ticket store
            channel: Push channel; pushes are skipped when None
            admin_panel_url: Link included in the push message
        """
        self.repository = repository
        self.channel = channel
        self.admin_panel_url = admin_panel_url

    async def notify(self, request: EscalationRequest) -> TicketCreationResult:
        """Open the ticket for an escalated reply and push it.

        Args:
            request: Escalation details

        Returns:
            TicketCreationResult for the created ticket

        Raises:
            TicketError: If the request cannot form a valid ticket
            PersistenceError: If the ticket cannot be saved
        """
        priority = request.priority or derive_priority(request.reason, request.error)
        reason_text = request.reason.message if request.reason is not None else DEFAULT_REASON
        reason_code = request.reason.value if request.reason is not None else None

        ESCALATIONS.labels(reason_code=reason_code or "unspecified").inc()
        logger.info(
            "Escalating question from guest %s (reason=%s, priority=%s)",
            request.guest_id,
            reason_code,
            priority.value,
        )

        return await self.create_ticket(
            guest_id=request.guest_id,
            reservation_id=request.reservation_id,
            listing_map_id=request.listing_map_id,
            question=request.question,
            reason=reason_text,
            priority=priority,
            metadata={
                "response": request.response,
                "error": request.error,
                "reason_code": reason_code,
            },
        )

    async def create_ticket(
        self,
        guest_id: str,
        reservation_id: str,
        question: str,
        reason: str,
        listing_map_id: Optional[str] = None,
        priority: TicketPriority = TicketPriority.MEDIUM,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> TicketCreationResult:
        """Create and save one ticket, then push it best-effort.

        Args:
            guest_id: Guest identity
            reservation_id: Reservation the question belongs to
            question: Guest question
            reason: Human-readable reason
            listing_map_id: Listing, when known
            priority: Ticket priority
            metadata: Ticket metadata; unknown keys are dropped

        Returns:
            TicketCreationResult with the new ticket's ID

        Raises:
            TicketError: If the ticket data is invalid
            PersistenceError: If the ticket cannot be saved
        """
        try:
            ticket = SupportTicket(
                guest_id=guest_id,
                reservation_id=reservation_id,
                listing_map_id=listing_map_id,
                question=question,
                reason=reason,
                priority=priority,
                metadata=metadata or {},
            )
        except ValidationError as e:
            raise TicketError(f"Invalid support ticket: {e}") from e

        try:
            saved = await self.repository.save(ticket)
        except Exception as e:
            logger.error("Failed to save support ticket for guest %s: %s", guest_id, e)
            raise PersistenceError(f"Error saving support ticket: {e}") from e

        TICKETS.labels(priority=saved.priority.value).inc()
        logger.info(
            "Support ticket %s created for guest %s (priority=%s)",
            saved.id,
            guest_id,
            saved.priority.value,
        )

        await self._push(saved)
        return TicketCreationResult(success=True, ticket_id=saved.id, ticket=saved)

    async def get_ticket(self, ticket_id: str) -> SupportTicket:
        """Load a ticket.

        Raises:
            KeyError: If no ticket has this ID
        """
        ticket = await self.repository.find_by_id(ticket_id)
        if ticket is None:
            raise KeyError(ticket_id)
        return ticket

    async def assign_ticket(self, ticket_id: str, user_id: str) -> SupportTicket:
        """Move an open ticket to in_progress under ``user_id``."""
        ticket = await self.get_ticket(ticket_id)
        ticket.assign_to(user_id)
        return await self.repository.save(ticket)

    async def resolve_ticket(self, ticket_id: str, resolution: str, resolved_by: str) -> SupportTicket:
        """Record the resolution of an in-progress ticket."""
        ticket = await self.get_ticket(ticket_id)
        ticket.resolve(resolution, resolved_by)
        return await self.repository.save(ticket)

    async def close_ticket(self, ticket_id: str) -> SupportTicket:
        """Close a resolved ticket."""
        ticket = await self.get_ticket(ticket_id)
        ticket.close()
        return await self.repository.save(ticket)

    async def _push(self, ticket: SupportTicket) -> None:
        if self.channel is None:
            logger.debug("No notification channel configured, ticket %s not pushed", ticket.id)
            return

        payload = NotificationPayload(
            ticket_id=ticket.id,
            guest_id=ticket.guest_id,
            reservation_id=ticket.reservation_id,
            question=ticket.question,
            reason=ticket.reason,
            priority=ticket.priority,
            message=format_support_message(ticket, self.admin_panel_url),
        )
        channel_name = type(self.channel).__name__
        try:
            await self.channel.send_notification(payload)
        except Exception as e:
            NOTIFICATION_FAILURES.labels(channel=channel_name).inc()
            logger.error("Notification via %s failed for ticket %s: %s", channel_name, ticket.id, e)
