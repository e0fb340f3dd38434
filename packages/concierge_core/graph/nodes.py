"""Node functions for the reply pipeline graph.

Each node performs one stage of the pipeline: reading history,
classification, the three knowledge sources, composition, dispatch,
persistence and escalation. Knowledge stages degrade to a miss on any
exception or timeout; dispatch and persistence failures route to
``error_end``.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Dict

from concierge_runtime import AnswerSource, MessageRole

from ..escalation import EscalationReason
from ..knowledge import TECHNICAL_FALLBACK_MESSAGE, SourceAnswer
from ..results import ResolutionResult
from .state import PipelineState

if TYPE_CHECKING:
    from concierge_core.pipeline import ResponsePipeline

logger = logging.getLogger(__name__)


def elapsed_ms(state: PipelineState) -> int:
    """Milliseconds since the run started."""
    return max(0, int((time.monotonic() - state["started_at"]) * 1000))


def require_result(state: PipelineState) -> ResolutionResult:
    """Return the composed result; stages after compose rely on it."""
    result = state["result"]
    if result is None:
        raise RuntimeError("Pipeline reached a post-compose stage without a result")
    return result


async def load_history_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Read the guest's recent turns; an unreadable log counts as empty.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state with history
    """
    request = state["request"]
    history = await pipeline.run_stage(
        state,
        "load_history",
        lambda: pipeline.conversation_log.recent(
            request.guest_id, pipeline.config.pipeline.history_window
        ),
    )
    state["history"] = list(history or [])
    return state


async def classify_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Map the question to a topic field.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state with the detected field
    """
    detected = await pipeline.run_stage(
        state,
        "classify",
        lambda: pipeline.classifier.classify(
            state["request"].message,
            state["history"],
            pipeline.listing_resolver.candidate_fields(),
        ),
    )
    state["detected_field"] = detected or "unknown"
    return state


async def try_listing_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Look for the answer in the property's fact sheet.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state with a listing candidate, if any
    """
    request = state["request"]
    if request.listing_map_id is None:
        logger.debug("No listing for reservation %s, skipping listing lookup", request.reservation_id)
        return state

    listing = await pipeline.run_stage(
        state,
        "try_listing",
        lambda: pipeline.listing_repository.find_by_map_id(request.listing_map_id),
    )
    state["listing"] = listing
    if listing is None:
        return state

    try:
        state["candidate"] = pipeline.listing_resolver.resolve(
            listing, state["detected_field"], request.message
        )
    except Exception as e:
        pipeline.record_stage_failure(state, "try_listing", e)
    return state


async def try_faq_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Look for the answer in the curated FAQ corpus.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state with a FAQ candidate, if any
    """
    answer = await pipeline.run_stage(
        state,
        "try_faq",
        lambda: pipeline.faq_resolver.resolve(state["request"].message, state["history"]),
    )
    if answer:
        state["candidate"] = SourceAnswer(
            answer=answer,
            confidence=pipeline.config.confidence.faq_confidence,
            source=AnswerSource.FAQ,
        )
    return state


async def try_ai_fallback_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Generate generic guidance when no verified source answered.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state with the fallback answer, if any
    """
    request = state["request"]
    state["ai_answer"] = await pipeline.run_stage(
        state,
        "try_ai_fallback",
        lambda: pipeline.fallback_resolver.resolve(
            request.message, state["history"], request.context
        ),
    )
    return state


async def compose_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Build the ResolutionResult and apply the confidence gate.

    Verified facts go through the friendly rewrite and their confidence is
    multiplied by the rewrite confidence. With no answer at all the
    emergency fallback is used.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state with the result
    """
    request = state["request"]
    candidate = state["candidate"]
    ai_answer = state["ai_answer"]
    detected_field = state["detected_field"]

    if candidate is not None:
        rewrite = await pipeline.rewriter.rewrite(request.message, candidate.answer, state["history"])
        source = candidate.source
        response = rewrite.text
        confidence = pipeline.gate.compose(candidate.confidence, rewrite.confidence)
        detected_field = candidate.category or detected_field
    elif ai_answer is not None:
        source = AnswerSource.AI_FALLBACK if ai_answer.valid else AnswerSource.TECHNICAL_FALLBACK
        response = ai_answer.response
        confidence = ai_answer.confidence
    else:
        logger.error("Every knowledge source failed for guest %s", request.guest_id)
        source = AnswerSource.EMERGENCY_FALLBACK
        response = TECHNICAL_FALLBACK_MESSAGE
        confidence = 0.0

    decision = pipeline.gate.evaluate(source, confidence)
    state["result"] = ResolutionResult(
        response=response,
        source=source,
        detected_field=detected_field,
        confidence=confidence,
        requires_escalation=decision.requires_escalation,
        escalation_reason=decision.reason_message,
        reason_code=decision.reason,
        processing_time_ms=elapsed_ms(state),
    )
    return state


async def dispatch_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Send the reply to the guest.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state with the delivery outcome
    """
    request = state["request"]
    result = require_result(state)

    delivery = await pipeline.dispatcher.dispatch(
        request.reservation_id, result.response, request.conversation_id
    )
    state["delivery"] = delivery
    if not delivery.sent:
        state["error"] = delivery.error or "Message could not be sent"
        state["error_reason"] = EscalationReason.DISPATCH_FAILED
    return state


async def persist_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Append the guest and agent turns to the conversation log.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state; a save failure sets the error fields
    """
    request = state["request"]
    result = require_result(state)
    delivery = state["delivery"]

    guest_metadata: Dict[str, Any] = {
        "reservation_id": request.reservation_id,
        "conversation_id": request.conversation_id,
        "listing_map_id": request.listing_map_id,
    }
    if request.context is not None and not request.context.is_empty():
        guest_metadata["context"] = request.context.model_dump(exclude_none=True)

    agent_metadata: Dict[str, Any] = {
        "source": result.source,
        "detected_field": result.detected_field,
        "confidence": result.confidence,
        "processing_time": elapsed_ms(state),
        "message_id": delivery.message_id if delivery is not None else None,
        "reservation_id": request.reservation_id,
        "conversation_id": request.conversation_id,
    }

    try:
        await pipeline.with_stage_timeout(
            pipeline.conversation_log.append_many(
                request.guest_id,
                [
                    (MessageRole.GUEST, request.message, guest_metadata),
                    (MessageRole.AGENT, result.response, agent_metadata),
                ],
            )
        )
    except Exception as e:
        logger.error("Failed to save conversation for guest %s: %s", request.guest_id, e)
        state["error"] = f"Conversation could not be saved: {e}"
        state["error_reason"] = EscalationReason.PERSISTENCE_FAILED
    return state


async def escalate_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Open a ticket for a low-confidence or unverified reply.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state
    """
    result = require_result(state)
    await pipeline.escalate(state, reason=result.reason_code, error=None)
    return state


async def error_end_node(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Open a ticket for a fatal dispatch or persistence failure.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state
    """
    await pipeline.escalate(state, reason=state["error_reason"], error=state["error"])
    return state
