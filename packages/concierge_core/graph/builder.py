"""Graph builder for the reply pipeline.

This module provides the function to construct and compile the reply
state machine graph.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING, Any

from langgraph.graph import END, StateGraph  # type: ignore[import-not-found]

from .edges import route_after_dispatch, route_after_faq, route_after_listing, route_after_persist
from .nodes import (
    classify_node,
    compose_node,
    dispatch_node,
    error_end_node,
    escalate_node,
    load_history_node,
    persist_node,
    try_ai_fallback_node,
    try_faq_node,
    try_listing_node,
)
from .state import PipelineState

if TYPE_CHECKING:
    from concierge_core.pipeline import ResponsePipeline
    from langgraph.graph.state import CompiledStateGraph  # type: ignore[import-not-found]


def create_pipeline_graph(pipeline: ResponsePipeline) -> CompiledStateGraph:
    """Create and compile the reply state machine graph.

    The graph follows this flow:
    ```
    START → load_history → classify → try_listing
                                          │
                                   ┌──────┴──────┐
                                   ↓             ↓
                                compose ←── try_faq
                                   ↑             ↓
                                   └──── try_ai_fallback
                                   │
                                   ↓
                                dispatch
                                   │
                            ┌──────┴──────┐
                            ↓             ↓
                         persist      error_end → END
                            │             ↑
                     ┌──────┼─────────────┘
                     ↓      ↓
                 escalate  END
                     ↓
                    END
    ```

    Args:
        pipeline: The pipeline instance to bind to node functions

    Returns:
        Compiled StateGraph ready for execution
    """
    workflow: StateGraph[PipelineState, Any, Any] = StateGraph(PipelineState)

    nodes = {
        "load_history": load_history_node,
        "classify": classify_node,
        "try_listing": try_listing_node,
        "try_faq": try_faq_node,
        "try_ai_fallback": try_ai_fallback_node,
        "compose": compose_node,
        "dispatch": dispatch_node,
        "persist": persist_node,
        "escalate": escalate_node,
        "error_end": error_end_node,
    }
    for name, node in nodes.items():
        workflow.add_node(name, partial(_wrap_node, node, pipeline=pipeline))

    workflow.set_entry_point("load_history")
    workflow.add_edge("load_history", "classify")
    workflow.add_edge("classify", "try_listing")

    # First non-null answer short-circuits the remaining sources
    workflow.add_conditional_edges(
        "try_listing",
        partial(route_after_listing, pipeline=pipeline),
        {
            "compose": "compose",
            "try_faq": "try_faq",
        },
    )
    workflow.add_conditional_edges(
        "try_faq",
        partial(route_after_faq, pipeline=pipeline),
        {
            "compose": "compose",
            "try_ai_fallback": "try_ai_fallback",
        },
    )
    workflow.add_edge("try_ai_fallback", "compose")
    workflow.add_edge("compose", "dispatch")

    workflow.add_conditional_edges(
        "dispatch",
        partial(route_after_dispatch, pipeline=pipeline),
        {
            "persist": "persist",
            "error_end": "error_end",
        },
    )
    workflow.add_conditional_edges(
        "persist",
        partial(route_after_persist, pipeline=pipeline),
        {
            "escalate": "escalate",
            "error_end": "error_end",
            "__end__": END,
        },
    )

    workflow.add_edge("escalate", END)
    workflow.add_edge("error_end", END)

    return workflow.compile()


async def _wrap_node(
    node_func: Any,
    state: PipelineState,
    pipeline: ResponsePipeline,
) -> PipelineState:
    """Wrap and handle async node execution.

    Args:
        node_func: The node function to execute
        state: Current pipeline state
        pipeline: The pipeline instance

    Returns:
        Updated pipeline state
    """
    return await node_func(state, pipeline)  # type: ignore[no-any-return]
