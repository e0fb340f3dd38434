"""FastAPI Application Factory for the Concierge service.

This module provides the FastAPI application factory and the container
holding the pipeline and its collaborators.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from concierge_config import ConciergeConfig, load_config_from_yaml
from concierge_core import (
    EscalationNotifier,
    FieldClassifier,
    InMemoryFAQRepository,
    InMemoryListingRepository,
    LLMProvider,
    LoggingMessagingGateway,
    LoggingNotificationChannel,
    ResponsePipeline,
)
from concierge_core.dispatch import MessagingGateway
from concierge_core.escalation import NotificationChannel
from concierge_core.knowledge import FAQRepository, ListingRepository
from concierge_runtime import (
    ConversationLog,
    ConversationRepository,
    InMemoryConversationRepository,
    InMemorySupportTicketRepository,
    SupportTicketRepository,
)
from fastapi import FastAPI, Response  # type: ignore[import-not-found]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import-not-found]
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # type: ignore[import-not-found]

from .logging_setup import init_logging


class AppState:
    """Application state container."""

    def __init__(self) -> None:
        """Initialize application state."""
        self.config: Optional[ConciergeConfig] = None
        self.conversation_log: Optional[ConversationLog] = None
        self.ticket_repository: Optional[SupportTicketRepository] = None
        self.notifier: Optional[EscalationNotifier] = None
        self.pipeline: Optional[ResponsePipeline] = None


app_state = AppState()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan.

    Args:
        app: FastAPI application instance

    Yields:
        None during application lifetime
    """
    yield

    # Shutdown: Cleanup resources
    app_state.pipeline = None
    app_state.notifier = None
    app_state.conversation_log = None
    app_state.ticket_repository = None
    app_state.config = None


def create_app(
    config: Optional[ConciergeConfig] = None,
    config_path: Optional[str] = None,
    conversation_repository: Optional[ConversationRepository] = None,
    ticket_repository: Optional[SupportTicketRepository] = None,
    listing_repository: Optional[ListingRepository] = None,
    faq_repository: Optional[FAQRepository] = None,
    gateway: Optional[MessagingGateway] = None,
    notification_channel: Optional[NotificationChannel] = None,
    llm_provider: Optional[LLMProvider] = None,
    classifier: Optional[FieldClassifier] = None,
    cors_origins: Optional[list[str]] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators that are not supplied fall back to in-memory stores and
    logging-only channels, so the service runs without external systems.

    Args:
        config: Optional pre-loaded configuration
        config_path: Optional path to a YAML configuration file
        conversation_repository: Conversation document store
        ticket_repository: Support ticket store
        listing_repository: Property fact sheets
        faq_repository: Curated FAQ corpus
        gateway: Outbound messaging gateway
        notification_channel: Support push channel
        llm_provider: Generative capability
        classifier: Field classifier
        cors_origins: Optional list of allowed CORS origins

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: If the configuration file is invalid
    """
    init_logging()

    app = FastAPI(
        title="Concierge Guest Reply Service",
        description="Automated replies to guest questions with human escalation",
        version="0.1.0",
        lifespan=lifespan,
    )

    if cors_origins is None:
        cors_origins = ["*"]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Load configuration
    if config is None:
        config = load_config_from_yaml(config_path) if config_path else ConciergeConfig()
    app_state.config = config

    app_state.conversation_log = ConversationLog(
        conversation_repository or InMemoryConversationRepository(),
        serialize_writes=config.pipeline.serialize_guest_writes,
    )
    app_state.ticket_repository = ticket_repository or InMemorySupportTicketRepository()
    app_state.notifier = EscalationNotifier(
        app_state.ticket_repository,
        notification_channel or LoggingNotificationChannel(),
        admin_panel_url=config.notifications.admin_panel_url,
    )
    app_state.pipeline = ResponsePipeline(
        config,
        app_state.conversation_log,
        listing_repository or InMemoryListingRepository(),
        faq_repository or InMemoryFAQRepository(),
        gateway or LoggingMessagingGateway(),
        app_state.notifier,
        llm_provider=llm_provider,
        classifier=classifier,
    )

    _register_routes(app)

    return app


def _register_routes(app: FastAPI) -> None:
    """Register API routes.

    Args:
        app: FastAPI application instance
    """
    from .routes import conversations_router, tickets_router, webhook_router

    app.include_router(webhook_router)
    app.include_router(conversations_router)
    app.include_router(tickets_router)

    @app.get("/health")  # type: ignore[misc]
    async def health_check() -> dict[str, Any]:
        """Health check endpoint.

        Returns:
            Health status information
        """
        return {
            "status": "healthy",
            "version": "0.1.0",
            "pipeline_configured": app_state.pipeline is not None,
        }

    @app.get("/metrics")  # type: ignore[misc]
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/")  # type: ignore[misc]
    async def root() -> dict[str, Any]:
        """Root endpoint.

        Returns:
            Welcome message and API information
        """
        return {
            "message": "Welcome to the Concierge Guest Reply Service API",
            "version": "0.1.0",
            "docs_url": "/docs",
        }


def get_app_state() -> AppState:
    """Get the application state.

    Returns:
        Current application state
    """
    return app_state
