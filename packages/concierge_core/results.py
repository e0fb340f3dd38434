"""Pipeline inputs and results."""

from typing import Optional

from concierge_runtime import AnswerSource
from pydantic import BaseModel, Field, field_validator, model_validator

from .classifier import UNKNOWN_FIELD
from .escalation import EscalationReason
from .knowledge import TECHNICAL_FALLBACK_MESSAGE, GuestContext


class InboundMessage(BaseModel):
    """A guest message delivered by the messaging webhook."""

    guest_id: str = Field(..., description="Stable guest identity")
    reservation_id: str = Field(..., description="Reservation the message belongs to")
    conversation_id: Optional[str] = Field(default=None)
    listing_map_id: Optional[str] = Field(default=None)
    message: str = Field(..., description="Guest question")
    context: Optional[GuestContext] = Field(default=None)

    @field_validator("guest_id", "reservation_id", "message", mode="before")
    @classmethod
    def validate_required(cls, v: object) -> str:
        """Validate required fields are non-empty strings."""
        if v is None or not str(v).strip():
            raise ValueError("field is required and must be a non-empty string")
        return str(v).strip()

    @field_validator("conversation_id", "listing_map_id", mode="before")
    @classmethod
    def validate_optional_id(cls, v: object) -> Optional[str]:
        """Store provider ids as strings."""
        return None if v in (None, "") else str(v)


class ResolutionResult(BaseModel):
    """Reply chosen by the pipeline and the escalation decision."""

    response: str = Field(..., description="Reply text, never empty")
    source: AnswerSource
    detected_field: str = Field(default=UNKNOWN_FIELD)
    confidence: float = Field(..., ge=0.0, le=1.0)
    requires_escalation: bool = Field(default=False)
    escalation_reason: Optional[str] = Field(default=None)
    reason_code: Optional[EscalationReason] = Field(default=None)
    processing_time_ms: Optional[int] = Field(default=None, ge=0)

    @field_validator("response", mode="before")
    @classmethod
    def validate_response(cls, v: object) -> str:
        """Substitute the technical fallback for an empty reply."""
        if not isinstance(v, str) or not v.strip():
            return TECHNICAL_FALLBACK_MESSAGE
        return v.strip()

    @model_validator(mode="after")
    def validate_escalation(self) -> "ResolutionResult":
        """An escalation reason is present iff escalation is required."""
        if self.requires_escalation and not self.escalation_reason:
            raise ValueError("escalation_reason is required when escalating")
        if not self.requires_escalation and (self.escalation_reason or self.reason_code):
            raise ValueError("escalation_reason is only set when escalating")
        return self


class PipelineOutcome(ResolutionResult):
    """Resolution plus the outbound delivery result."""

    sent: bool = Field(default=False)
    message_id: Optional[str] = Field(default=None)
    error: Optional[str] = Field(default=None)
