"""Graph state definition for the reply pipeline.

This module defines the TypedDict state that flows through the graph
nodes, carrying the inbound message, intermediate source answers and the
delivery outcome.
"""

from typing import Any, List, Optional, TypedDict

from concierge_runtime import Message

from ..dispatch import DeliveryResult
from ..escalation import EscalationReason
from ..knowledge import FallbackAnswer, Listing, SourceAnswer
from ..results import InboundMessage, ResolutionResult


class PipelineState(TypedDict):
    """State that flows through the reply pipeline graph.

    Attributes:
        request: The inbound guest message
        history: Recent conversation turns read before classification
        detected_field: Field emitted by the classifier, or "unknown"
        listing: Property fact sheet, when found
        candidate: Verified answer from the listing or FAQ stage
        ai_answer: Reply from the generative fallback
        result: Composed resolution
        delivery: Outcome of the outbound send
        stage_failures: Stages degraded to a miss by an exception or timeout
        error: Error text of a fatal stage failure
        error_reason: Reason code of a fatal stage failure
        started_at: Monotonic start time of the run
        metadata: Additional metadata for the graph execution
    """

    request: InboundMessage
    history: List[Message]
    detected_field: str
    listing: Optional[Listing]
    candidate: Optional[SourceAnswer]
    ai_answer: Optional[FallbackAnswer]
    result: Optional[ResolutionResult]
    delivery: Optional[DeliveryResult]
    stage_failures: List[str]
    error: Optional[str]
    error_reason: Optional[EscalationReason]
    started_at: float
    metadata: dict[str, Any]


def create_initial_state(request: InboundMessage, started_at: float) -> PipelineState:
    """Create an initial pipeline state for an inbound message.

    Args:
        request: The inbound guest message
        started_at: Monotonic start time

    Returns:
        Initialized PipelineState with default values
    """
    return PipelineState(
        request=request,
        history=[],
        detected_field="unknown",
        listing=None,
        candidate=None,
        ai_answer=None,
        result=None,
        delivery=None,
        stage_failures=[],
        error=None,
        error_reason=None,
        started_at=started_at,
        metadata={},
    )
