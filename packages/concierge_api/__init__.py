"""Concierge guest-reply service - API Package."""

from .app import AppState, create_app, get_app_state
from .logging_setup import JsonFormatter, SecretMaskingFilter, init_logging
from .models import (
    ConversationResponse,
    CreateTicketRequest,
    CreateTicketResponse,
    ErrorResponse,
    TicketResponse,
    WebhookMessageRequest,
)
from .routes import conversations_router, tickets_router, webhook_router

__version__ = "0.1.0"

__all__ = [
    "AppState",
    "ConversationResponse",
    "CreateTicketRequest",
    "CreateTicketResponse",
    "ErrorResponse",
    "JsonFormatter",
    "SecretMaskingFilter",
    "TicketResponse",
    "WebhookMessageRequest",
    "conversations_router",
    "create_app",
    "get_app_state",
    "init_logging",
    "tickets_router",
    "webhook_router",
]
