"""API routes for guest messages, conversation logs and support tickets."""

import time
from typing import Any, Dict, Optional

from concierge_core import EscalationNotifier, PipelineOutcome, ResponsePipeline
from concierge_core.metrics import HTTP_LATENCY, HTTP_REQUESTS
from concierge_runtime import ConversationLog, PersistenceError, SupportTicket, TicketError
from fastapi import APIRouter, HTTPException  # type: ignore[import-not-found]

from .app import get_app_state
from .models import (
    AssignTicketRequest,
    ConversationResponse,
    CreateTicketRequest,
    CreateTicketResponse,
    ErrorResponse,
    ResolveTicketRequest,
    TicketResponse,
    WebhookMessageRequest,
)

webhook_router = APIRouter(prefix="/webhooks", tags=["webhooks"])
conversations_router = APIRouter(prefix="/conversations", tags=["conversations"])
tickets_router = APIRouter(prefix="/tickets", tags=["tickets"])


def _observe(method: str, endpoint: str, status_code: str, start_time: float) -> None:
    HTTP_LATENCY.labels(method=method, endpoint=endpoint).observe(time.perf_counter() - start_time)
    HTTP_REQUESTS.labels(method=method, endpoint=endpoint, status=status_code).inc()


def _not_configured() -> HTTPException:
    return HTTPException(status_code=503, detail="Service not configured.")


def _require_pipeline() -> ResponsePipeline:
    pipeline = get_app_state().pipeline
    if pipeline is None:
        raise _not_configured()
    return pipeline


def _require_conversation_log() -> ConversationLog:
    conversation_log = get_app_state().conversation_log
    if conversation_log is None:
        raise _not_configured()
    return conversation_log


def _require_notifier() -> EscalationNotifier:
    notifier = get_app_state().notifier
    if notifier is None:
        raise _not_configured()
    return notifier


def _ticket_response(ticket: SupportTicket) -> TicketResponse:
    return TicketResponse(
        id=ticket.id,
        guest_id=ticket.guest_id,
        reservation_id=ticket.reservation_id,
        listing_map_id=ticket.listing_map_id,
        question=ticket.question,
        reason=ticket.reason,
        priority=ticket.priority.value,
        status=ticket.status.value,
        assigned_to=ticket.assigned_to,
        resolution=ticket.resolution,
        created_at=ticket.created_at,
        updated_at=ticket.updated_at,
    )


@webhook_router.post(
    "/messages",
    response_model=PipelineOutcome,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def receive_message(request: WebhookMessageRequest) -> PipelineOutcome:
    """Answer a guest message.

    The pipeline never raises for a valid message: failures are reported in
    the outcome (``sent``/``error``) and escalated to the support team.

    Args:
        request: Normalized guest message

    Returns:
        PipelineOutcome with the reply and delivery result
    """
    start_time = time.perf_counter()
    status_code = "200"

    try:
        pipeline = _require_pipeline()
        try:
            return await pipeline.execute(request.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except Exception:
        status_code = "500"
        raise
    finally:
        _observe("POST", "/webhooks/messages", status_code, start_time)


@conversations_router.get(
    "/{guest_id}",
    response_model=ConversationResponse,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def get_conversation(guest_id: str) -> ConversationResponse:
    """Get a guest's conversation log and summary.

    Args:
        guest_id: Guest identity

    Returns:
        ConversationResponse with messages and analytics

    Raises:
        HTTPException: If the guest has no conversation or the store fails
    """
    start_time = time.perf_counter()
    status_code = "200"

    try:
        conversation_log = _require_conversation_log()

        try:
            conversation = await conversation_log.get(guest_id)
        except PersistenceError as e:
            raise HTTPException(status_code=503, detail=str(e)) from e

        if conversation is None:
            raise HTTPException(
                status_code=404,
                detail=f"Conversation for guest '{guest_id}' not found.",
            )

        return ConversationResponse(
            guest_id=conversation.guest_id,
            messages=[
                {
                    "role": msg.role.value,
                    "content": msg.content,
                    "timestamp": msg.timestamp,
                    "metadata": msg.metadata,
                }
                for msg in conversation.messages
            ],
            summary=conversation.summary.model_dump(),
            last_activity=conversation.last_activity,
        )
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except Exception:
        status_code = "500"
        raise
    finally:
        _observe("GET", "/conversations/{id}", status_code, start_time)


@tickets_router.post(
    "",
    response_model=CreateTicketResponse,
    status_code=201,
    responses={422: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def create_ticket(request: CreateTicketRequest) -> CreateTicketResponse:
    """Open a support ticket.

    Args:
        request: Ticket details

    Returns:
        CreateTicketResponse with the new ticket's ID

    Raises:
        HTTPException: If the ticket data is invalid or cannot be saved
    """
    start_time = time.perf_counter()
    status_code = "201"

    try:
        notifier = _require_notifier()

        try:
            created = await notifier.create_ticket(
                guest_id=request.guest_id,
                reservation_id=request.reservation_id,
                listing_map_id=request.listing_map_id,
                question=request.question,
                reason=request.reason,
                priority=request.priority,
                metadata=request.metadata,
            )
        except TicketError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        except PersistenceError as e:
            raise HTTPException(status_code=503, detail=str(e)) from e

        return CreateTicketResponse(success=created.success, ticket_id=created.ticket_id)
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except Exception:
        status_code = "500"
        raise
    finally:
        _observe("POST", "/tickets", status_code, start_time)


@tickets_router.get(
    "/{ticket_id}",
    response_model=TicketResponse,
    responses={404: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def get_ticket(ticket_id: str) -> TicketResponse:
    """Get a support ticket.

    Args:
        ticket_id: Ticket ID

    Returns:
        TicketResponse

    Raises:
        HTTPException: If the ticket is not found
    """
    return await _transition("GET", "/tickets/{id}", ticket_id, "get")


@tickets_router.post(
    "/{ticket_id}/assign",
    response_model=TicketResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def assign_ticket(ticket_id: str, request: AssignTicketRequest) -> TicketResponse:
    """Assign an open ticket to a support agent."""
    return await _transition(
        "POST", "/tickets/{id}/assign", ticket_id, "assign", user_id=request.assigned_to
    )


@tickets_router.post(
    "/{ticket_id}/resolve",
    response_model=TicketResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def resolve_ticket(ticket_id: str, request: ResolveTicketRequest) -> TicketResponse:
    """Resolve an in-progress ticket."""
    return await _transition(
        "POST",
        "/tickets/{id}/resolve",
        ticket_id,
        "resolve",
        resolution=request.resolution,
        resolved_by=request.resolved_by,
    )


@tickets_router.post(
    "/{ticket_id}/close",
    response_model=TicketResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)  # type: ignore[misc]
async def close_ticket(ticket_id: str) -> TicketResponse:
    """Close a resolved ticket."""
    return await _transition("POST", "/tickets/{id}/close", ticket_id, "close")


async def _transition(
    method: str, endpoint: str, ticket_id: str, action: str, **kwargs: Optional[str]
) -> TicketResponse:
    """Run a ticket lookup or status transition and map its errors to HTTP."""
    start_time = time.perf_counter()
    status_code = "200"

    try:
        notifier = _require_notifier()

        actions: Dict[str, Any] = {
            "get": notifier.get_ticket,
            "assign": notifier.assign_ticket,
            "resolve": notifier.resolve_ticket,
            "close": notifier.close_ticket,
        }
        try:
            ticket = await actions[action](ticket_id, **kwargs)
        except KeyError as e:
            raise HTTPException(
                status_code=404, detail=f"Ticket '{ticket_id}' not found."
            ) from e
        except TicketError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e

        return _ticket_response(ticket)
    except HTTPException as e:
        status_code = str(e.status_code)
        raise
    except Exception:
        status_code = "500"
        raise
    finally:
        _observe(method, endpoint, status_code, start_time)
