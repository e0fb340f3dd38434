"""Pydantic models for API request/response schemas."""

from datetime import datetime
from typing import Any, Optional

from concierge_core import GuestContext
from concierge_runtime import TicketPriority
from pydantic import BaseModel, ConfigDict, Field, field_validator


class WebhookMessageRequest(BaseModel):
    """Already-normalized guest message from the messaging webhook."""

    model_config = ConfigDict(populate_by_name=True)

    guest_id: str = Field(..., alias="guestId", description="Stable guest identity")
    reservation_id: str = Field(..., alias="reservationId", description="Reservation ID")
    conversation_id: Optional[str] = Field(None, alias="conversationId")
    listing_map_id: Optional[str] = Field(None, alias="listingMapId")
    message: str = Field(..., description="The guest's question")
    context: Optional[GuestContext] = Field(None, description="Guest and property context")

    @field_validator("guest_id", "reservation_id", "conversation_id", "listing_map_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> Any:
        """Accept numeric ids from the messaging provider."""
        return str(v) if isinstance(v, int) and not isinstance(v, bool) else v


class ConversationResponse(BaseModel):
    """Response model for a guest's conversation log."""

    guest_id: str = Field(..., description="Guest identity")
    messages: list[dict[str, Any]] = Field(
        default_factory=list, description="Conversation messages, oldest first"
    )
    summary: dict[str, Any] = Field(default_factory=dict, description="Derived analytics")
    last_activity: datetime = Field(..., description="Last update time")


class CreateTicketRequest(BaseModel):
    """Request model for opening a support ticket."""

    model_config = ConfigDict(populate_by_name=True)

    guest_id: str = Field(..., alias="guestId")
    reservation_id: str = Field(..., alias="reservationId")
    listing_map_id: Optional[str] = Field(None, alias="listingMapId")
    question: str = Field(..., description="Guest question")
    reason: str = Field(..., description="Why a human is needed")
    priority: TicketPriority = Field(default=TicketPriority.MEDIUM)
    metadata: dict[str, Any] = Field(default_factory=dict)


class CreateTicketResponse(BaseModel):
    """Response model for the ticket creation entrypoint."""

    success: bool = Field(..., description="Whether the ticket was created")
    ticket_id: str = Field(..., description="ID of the new ticket")


class AssignTicketRequest(BaseModel):
    """Request model for assigning a ticket."""

    model_config = ConfigDict(populate_by_name=True)

    assigned_to: str = Field(..., alias="assignedTo")


class ResolveTicketRequest(BaseModel):
    """Request model for resolving a ticket."""

    model_config = ConfigDict(populate_by_name=True)

    resolution: str = Field(...)
    resolved_by: str = Field(..., alias="resolvedBy")


class TicketResponse(BaseModel):
    """Response model for a support ticket."""

    id: str
    guest_id: str
    reservation_id: str
    listing_map_id: Optional[str] = None
    question: str
    reason: str
    priority: str
    status: str
    assigned_to: Optional[str] = None
    resolution: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
