"""LangGraph state machine for the reply pipeline.

This module sequences the knowledge sources, composition, delivery,
persistence and escalation as an explicit state graph.
"""

from .builder import create_pipeline_graph
from .state import PipelineState, create_initial_state

__all__ = ["create_pipeline_graph", "create_initial_state", "PipelineState"]
