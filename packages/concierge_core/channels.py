"""Logging-only collaborators for running without external systems."""

import logging
from itertools import count
from typing import Any, Dict, List, Optional

from .escalation import NotificationPayload

logger = logging.getLogger(__name__)


class LoggingMessagingGateway:
    """Messaging gateway that logs replies instead of sending them."""

    def __init__(self) -> None:
        """Initialize with an empty record of replies."""
        self._ids = count(1)
        self.sent: List[Dict[str, Any]] = []

    async def send_message_to_guest(
        self,
        reservation_id: str,
        text: str,
        conversation_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Record and log the reply, returning a local message id.

        Args:
            reservation_id: Reservation the reply belongs to
            text: Reply text
            conversation_id: Optional provider conversation

        Returns:
            The recorded message, with ``id`` set
        """
        record = {
            "id": f"local-{next(self._ids)}",
            "reservation_id": reservation_id,
            "conversation_id": conversation_id,
            "body": text,
        }
        self.sent.append(record)
        logger.info("Reply for reservation %s (not sent): %s", reservation_id, text)
        return record


class LoggingNotificationChannel:
    """Notification channel that writes support pushes to the log."""

    def __init__(self) -> None:
        """Initialize with an empty record of notifications."""
        self.delivered: List[NotificationPayload] = []

    async def send_notification(self, payload: NotificationPayload) -> None:
        """Record the notification and write it to the log."""
        self.delivered.append(payload)
        logger.info("Support notification (simulated):\n%s", payload.message)
