"""Concierge guest-reply service - Runtime Package."""

from .conversation_log import ConversationLog
from .errors import ConciergeError, PersistenceError, TicketError
from .state import (
    MAX_CONTENT_LENGTH,
    MAX_MESSAGES,
    AnswerSource,
    Conversation,
    ConversationSummary,
    Message,
    MessageRole,
    TopicCount,
)
from .store import (
    ConversationRepository,
    InMemoryConversationRepository,
    InMemorySupportTicketRepository,
    SupportTicketRepository,
)
from .tickets import SupportTicket, TicketPriority, TicketStatus

__version__ = "0.1.0"

__all__ = [
    "MAX_CONTENT_LENGTH",
    "MAX_MESSAGES",
    "AnswerSource",
    "ConciergeError",
    "Conversation",
    "ConversationLog",
    "ConversationRepository",
    "ConversationSummary",
    "InMemoryConversationRepository",
    "InMemorySupportTicketRepository",
    "Message",
    "MessageRole",
    "PersistenceError",
    "SupportTicket",
    "SupportTicketRepository",
    "TicketError",
    "TicketPriority",
    "TicketStatus",
    "TopicCount",
]
