"""Conversation models for the Concierge runtime.

This module defines the bounded conversation log entity: guest and agent
messages, the derived summary, and the closed set of answer-source tags
recorded in message metadata.
"""

from collections import Counter
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

MAX_MESSAGES = 50
MAX_CONTENT_LENGTH = 5000

# Metadata keys that survive sanitization; anything else is dropped.
ALLOWED_METADATA_KEYS = frozenset(
    {
        "source",
        "detected_field",
        "confidence",
        "processing_time",
        "listing_map_id",
        "reservation_id",
        "conversation_id",
        "message_id",
        "context",
    }
)


class MessageRole(str, Enum):
    """Role of the message sender."""

    GUEST = "guest"
    AGENT = "agent"


class AnswerSource(str, Enum):
    """Knowledge source that produced a reply."""

    LISTING_DIRECT = "listing-direct"
    LISTING_KEYWORD = "listing-keyword"
    LISTING_SPECIAL = "listing-special"
    FAQ = "faq"
    AI_FALLBACK = "ai-fallback"
    TECHNICAL_FALLBACK = "technical-fallback"
    EMERGENCY_FALLBACK = "emergency-fallback"
    ERROR = "error"

    @property
    def is_listing(self) -> bool:
        """Whether the answer came from the property fact sheet."""
        return self in (
            AnswerSource.LISTING_DIRECT,
            AnswerSource.LISTING_KEYWORD,
            AnswerSource.LISTING_SPECIAL,
        )

    @property
    def is_verified(self) -> bool:
        """Whether a curated knowledge source backed the answer."""
        return self.is_listing or self is AnswerSource.FAQ


UNVERIFIED_SOURCES = frozenset(
    source.value for source in AnswerSource if not source.is_verified
)


def sanitize_content(content: str) -> str:
    """Trim and cap message content."""
    return str(content).strip()[:MAX_CONTENT_LENGTH]


def sanitize_metadata(metadata: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keep only allow-listed metadata keys with a value."""
    if not metadata:
        return {}
    sanitized: Dict[str, Any] = {}
    for key in ALLOWED_METADATA_KEYS:
        value = metadata.get(key)
        if value is None:
            continue
        sanitized[key] = value.value if isinstance(value, Enum) else value
    return sanitized


class Message(BaseModel):
    """A single message in the conversation."""

    role: MessageRole = Field(..., description="Role of the message sender")
    content: str = Field(..., description="Content of the message")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        frozen=True,
        description="When the message was written",
    )
    metadata: Dict[str, Any] = Field(
        default_factory=dict, description="Allow-listed message metadata"
    )

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Trim content and cap its length."""
        return sanitize_content(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def validate_metadata(cls, v: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Drop metadata keys outside the allow-list."""
        return sanitize_metadata(v)


class TopicCount(BaseModel):
    """How often a detected topic appears in the log."""

    topic: str
    count: int


class ConversationSummary(BaseModel):
    """Aggregate view derived from the message log."""

    total_messages: int = Field(default=0, ge=0)
    needs_human_support: bool = Field(default=False)
    common_topics: List[TopicCount] = Field(default_factory=list)
    satisfaction_score: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class Conversation(BaseModel):
    """Bounded message history for one guest."""

    guest_id: str = Field(..., frozen=True, description="Stable guest identity")
    messages: List[Message] = Field(
        default_factory=list, description="Most recent messages, oldest first"
    )
    last_activity: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Timestamp of the most recent mutation",
    )
    summary: ConversationSummary = Field(default_factory=ConversationSummary)

    @field_validator("guest_id")
    @classmethod
    def validate_guest_id(cls, v: str) -> str:
        """Validate guest id is a non-empty string."""
        if not v or not v.strip():
            raise ValueError("guest_id is required and must be a non-empty string")
        return v.strip()

    @model_validator(mode="after")
    def enforce_bounds(self) -> "Conversation":
        """Apply the message cap and refresh the summary on load."""
        self._trim_messages()
        self._refresh_summary()
        return self

    def add_message(
        self,
        role: MessageRole,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Message:
        """Append a message, evicting the oldest entries beyond the cap.

        Args:
            role: Role of the message sender
            content: Message text, trimmed and capped at 5000 characters
            metadata: Message metadata; unknown keys are dropped

        Returns:
            The stored Message

        Raises:
            ValueError: If the role is unknown or the content is blank
        """
        role = MessageRole(role)
        if not isinstance(content, str) or not content.strip():
            raise ValueError("Content is required and must be a non-empty string")

        message = Message(role=role, content=content, metadata=metadata or {})
        self.messages.append(message)
        self._trim_messages()
        self.last_activity = datetime.now(timezone.utc)
        self._refresh_summary()
        return message

    def get_recent_messages(self, count: int = 10) -> List[Message]:
        """Return the last ``count`` messages, oldest first."""
        if count <= 0:
            return []
        return list(self.messages[-count:])

    def _trim_messages(self) -> None:
        if len(self.messages) > MAX_MESSAGES:
            self.messages = self.messages[-MAX_MESSAGES:]

    def _refresh_summary(self) -> None:
        self.summary.total_messages = len(self.messages)
        self.summary.common_topics = self._rank_topics()
        self.summary.needs_human_support = self._needs_human_support()

    def _rank_topics(self, limit: int = 5) -> List[TopicCount]:
        topics = Counter(
            msg.metadata["detected_field"]
            for msg in self.messages
            if msg.metadata.get("detected_field") not in (None, "", "unknown")
        )
        return [TopicCount(topic=topic, count=count) for topic, count in topics.most_common(limit)]

    def _needs_human_support(self) -> bool:
        # Two unverified agent replies among the last five turns
        recent_fallbacks = sum(
            1
            for msg in self.messages[-5:]
            if msg.role == MessageRole.AGENT and msg.metadata.get("source") in UNVERIFIED_SOURCES
        )
        return recent_fallbacks >= 2
