"""Edge routing functions for the reply pipeline.

This module provides the conditional routing functions that determine
the next node to execute based on the current pipeline state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from .state import PipelineState

if TYPE_CHECKING:
    from concierge_core.pipeline import ResponsePipeline


def route_after_listing(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> Literal["compose", "try_faq"]:
    """Short-circuit to composition when the listing answered.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Next node to execute
    """
    if state["candidate"] is not None:
        return "compose"
    return "try_faq"


def route_after_faq(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> Literal["compose", "try_ai_fallback"]:
    """Short-circuit to composition when the FAQ answered.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Next node to execute
    """
    if state["candidate"] is not None:
        return "compose"
    return "try_ai_fallback"


def route_after_dispatch(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> Literal["persist", "error_end"]:
    """Persist after a successful send; a failed send is fatal.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Next node to execute
    """
    delivery = state["delivery"]
    if delivery is not None and delivery.sent:
        return "persist"
    return "error_end"


def route_after_persist(
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> Literal["escalate", "error_end", "__end__"]:
    """Escalate when the result asks for it; a failed save is fatal.

    Args:
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Next node to execute
    """
    if state["error"] is not None:
        return "error_end"
    result = state["result"]
    if result is not None and result.requires_escalation:
        return "escalate"
    return "__end__"
