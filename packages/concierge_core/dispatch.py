"""Outbound delivery of replies through the messaging gateway."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from concierge_runtime import ConciergeError

from .metrics import DISPATCHES

logger = logging.getLogger(__name__)


class DispatchError(ConciergeError):
    """Raised when the messaging gateway cannot deliver a reply."""

    pass


class MessagingGateway(Protocol):
    """Property-management messaging API."""

    async def send_message_to_guest(
        self,
        reservation_id: str,
        text: str,
        conversation_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Send a message to the guest; return the provider record with an ``id``."""
        ...


@dataclass
class DeliveryResult:
    """Outcome of one outbound send.

    Attributes:
        sent: Whether the gateway accepted the message
        message_id: Provider message ID, when sent
        error: Error text, when not sent
    """

    sent: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class OutboundDispatcher:
    """Send resolved replies and report the delivery outcome."""

    def __init__(self, gateway: MessagingGateway, timeout_seconds: Optional[float] = 80.0):
        """Initialize the dispatcher.

        Args:
            gateway: Messaging gateway
            timeout_seconds: Upper bound for one send; None disables it
        """
        self.gateway = gateway
        self.timeout_seconds = timeout_seconds

    async def dispatch(
        self,
        reservation_id: str,
        text: str,
        conversation_id: Optional[str] = None,
    ) -> DeliveryResult:
        """Send a reply to the guest.

        Args:
            reservation_id: Reservation to reply on
            text: Reply text
            conversation_id: Provider conversation, when known

        Returns:
            DeliveryResult; send failures are reported, not raised
        """
        try:
            record = await self._send(reservation_id, text, conversation_id)
        except asyncio.TimeoutError:
            error = f"Timed out after {self.timeout_seconds}s sending message"
            logger.error("Dispatch to reservation %s failed: %s", reservation_id, error)
            DISPATCHES.labels(outcome="timeout").inc()
            return DeliveryResult(sent=False, error=error)
        except Exception as e:
            logger.error("Dispatch to reservation %s failed: %s", reservation_id, e)
            DISPATCHES.labels(outcome="failed").inc()
            return DeliveryResult(sent=False, error=str(e) or type(e).__name__)

        message_id = record.get("id")
        DISPATCHES.labels(outcome="sent").inc()
        logger.info("Reply sent to reservation %s (message_id=%s)", reservation_id, message_id)
        return DeliveryResult(sent=True, message_id=str(message_id) if message_id is not None else None)

    async def _send(
        self, reservation_id: str, text: str, conversation_id: Optional[str]
    ) -> Dict[str, Any]:
        record = await asyncio.wait_for(
            self.gateway.send_message_to_guest(reservation_id, text, conversation_id),
            timeout=self.timeout_seconds,
        )
        if not record:
            raise DispatchError("Messaging gateway did not return a message record")
        return dict(record)
