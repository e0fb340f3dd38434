"""Support ticket entity for human follow-up.

A ticket is opened exactly once per escalation event and moves through
open -> in_progress -> resolved -> closed.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from .errors import TicketError

MAX_TICKET_TEXT_LENGTH = 2000

ALLOWED_TICKET_METADATA_KEYS = frozenset(
    {"response", "error", "resolved_at", "resolved_by", "context", "reason_code"}
)


class TicketPriority(str, Enum):
    """Urgency of a support ticket."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TicketStatus(str, Enum):
    """Lifecycle status of a support ticket."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


def _sanitize_text(text: Optional[str]) -> str:
    if not text:
        return ""
    return str(text).strip()[:MAX_TICKET_TEXT_LENGTH]


class SupportTicket(BaseModel):
    """A request for a human to follow up on a guest question."""

    id: str = Field(default_factory=lambda: str(uuid4()), description="Ticket ID")
    guest_id: str = Field(..., description="Guest who asked the question")
    reservation_id: str = Field(..., description="Reservation the question belongs to")
    listing_map_id: Optional[str] = Field(default=None, description="Listing, when known")
    question: str = Field(..., description="Original guest question")
    reason: str = Field(..., description="Why a human is needed")
    priority: TicketPriority = Field(default=TicketPriority.MEDIUM)
    status: TicketStatus = Field(default=TicketStatus.OPEN)
    assigned_to: Optional[str] = Field(default=None)
    resolution: Optional[str] = Field(default=None)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("guest_id", "reservation_id", "question", "reason", mode="before")
    @classmethod
    def validate_required_text(cls, v: Any) -> str:
        """Validate required text fields are present, then trim and cap them."""
        text = _sanitize_text(v if v is None else str(v))
        if not text:
            raise ValueError("field is required")
        return text

    @field_validator("listing_map_id", mode="before")
    @classmethod
    def validate_listing_map_id(cls, v: Any) -> Optional[str]:
        """Store listing ids as strings."""
        return None if v in (None, "") else str(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def validate_metadata(cls, v: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Drop empty values and keys outside the allow-list."""
        if not v:
            return {}
        return {
            k: val for k, val in v.items() if k in ALLOWED_TICKET_METADATA_KEYS and val is not None
        }

    def assign_to(self, user_id: str) -> None:
        """Assign the ticket to a support agent and start work on it."""
        if self.status != TicketStatus.OPEN:
            raise TicketError(f"Cannot assign a ticket in status '{self.status.value}'")
        if not user_id or not user_id.strip():
            raise TicketError("assigned user is required")
        self.assigned_to = user_id.strip()
        self.status = TicketStatus.IN_PROGRESS
        self._touch()

    def resolve(self, resolution: str, resolved_by: str) -> None:
        """Record the resolution of an in-progress ticket."""
        if self.status != TicketStatus.IN_PROGRESS:
            raise TicketError(f"Cannot resolve a ticket in status '{self.status.value}'")
        if not resolution or not resolution.strip():
            raise TicketError("resolution is required")
        if not resolved_by or not resolved_by.strip():
            raise TicketError("resolved_by is required")
        self.resolution = _sanitize_text(resolution)
        self.status = TicketStatus.RESOLVED
        self.metadata["resolved_at"] = datetime.now(timezone.utc)
        self.metadata["resolved_by"] = resolved_by.strip()
        self._touch()

    def close(self) -> None:
        """Close a resolved ticket."""
        if self.status != TicketStatus.RESOLVED:
            raise TicketError(f"Cannot close a ticket in status '{self.status.value}'")
        self.status = TicketStatus.CLOSED
        self._touch()

    @property
    def is_open(self) -> bool:
        """Whether the ticket still needs work."""
        return self.status in (TicketStatus.OPEN, TicketStatus.IN_PROGRESS)

    @property
    def is_resolved(self) -> bool:
        """Whether the ticket has been resolved or closed."""
        return self.status in (TicketStatus.RESOLVED, TicketStatus.CLOSED)

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
