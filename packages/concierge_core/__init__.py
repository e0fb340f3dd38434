"""Concierge guest-reply service - Core Package."""

from .channels import LoggingMessagingGateway, LoggingNotificationChannel
from .classifier import (
    UNKNOWN_FIELD,
    FieldClassifier,
    KeywordFieldClassifier,
    LLMFieldClassifier,
    create_classifier,
)
from .dispatch import DeliveryResult, DispatchError, MessagingGateway, OutboundDispatcher
from .escalation import (
    ConfidenceGate,
    EscalationDecision,
    EscalationNotifier,
    EscalationReason,
    EscalationRequest,
    NotificationChannel,
    NotificationPayload,
    TicketCreationResult,
)
from .graph import PipelineState, create_pipeline_graph
from .knowledge import (
    TECHNICAL_FALLBACK_MESSAGE,
    CuratedFAQResolver,
    FAQEntry,
    GenerativeFallbackResolver,
    GuestContext,
    InMemoryFAQRepository,
    InMemoryListingRepository,
    Listing,
    StructuredPropertyResolver,
)
from .llm_provider import LLMProvider, LLMProviderError, create_llm
from .pipeline import ResponsePipeline
from .results import InboundMessage, PipelineOutcome, ResolutionResult
from .rewrite import FriendlyRewriter, RewriteResult

__version__ = "0.1.0"

__all__ = [
    "TECHNICAL_FALLBACK_MESSAGE",
    "UNKNOWN_FIELD",
    "ConfidenceGate",
    "CuratedFAQResolver",
    "DeliveryResult",
    "DispatchError",
    "EscalationDecision",
    "EscalationNotifier",
    "EscalationReason",
    "EscalationRequest",
    "FAQEntry",
    "FieldClassifier",
    "FriendlyRewriter",
    "GenerativeFallbackResolver",
    "GuestContext",
    "InMemoryFAQRepository",
    "InMemoryListingRepository",
    "InboundMessage",
    "KeywordFieldClassifier",
    "LLMFieldClassifier",
    "LLMProvider",
    "LLMProviderError",
    "Listing",
    "LoggingMessagingGateway",
    "LoggingNotificationChannel",
    "MessagingGateway",
    "NotificationChannel",
    "NotificationPayload",
    "OutboundDispatcher",
    "PipelineOutcome",
    "PipelineState",
    "ResolutionResult",
    "ResponsePipeline",
    "RewriteResult",
    "StructuredPropertyResolver",
    "TicketCreationResult",
    "create_classifier",
    "create_llm",
    "create_pipeline_graph",
]
