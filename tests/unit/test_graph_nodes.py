"""Tests for graph node functions."""

import time
from unittest.mock import AsyncMock, Mock

import pytest
from concierge_config import ConciergeConfig
from concierge_core import (
    TECHNICAL_FALLBACK_MESSAGE,
    EscalationNotifier,
    InboundMessage,
    InMemoryFAQRepository,
    InMemoryListingRepository,
    LLMProvider,
    LoggingMessagingGateway,
    ResponsePipeline,
)
from concierge_core.escalation import EscalationReason
from concierge_core.graph.nodes import (
    compose_node,
    dispatch_node,
    try_faq_node,
    try_listing_node,
)
from concierge_core.graph.state import create_initial_state
from concierge_core.knowledge import FallbackAnswer, Listing, SourceAnswer
from concierge_runtime import (
    AnswerSource,
    ConversationLog,
    InMemoryConversationRepository,
    InMemorySupportTicketRepository,
)


@pytest.fixture
def mock_llm_provider():
    """Create a mock LLM provider whose rewrite echoes a fixed reply."""
    provider = Mock(spec=LLMProvider)
    provider.ask = AsyncMock(return_value="Respuesta amable")
    return provider


@pytest.fixture
def pipeline(mock_llm_provider):
    """Create a pipeline over in-memory collaborators."""
    return ResponsePipeline(
        ConciergeConfig(),
        ConversationLog(InMemoryConversationRepository()),
        InMemoryListingRepository([Listing(id="7", check_in_time="15:00")]),
        InMemoryFAQRepository(),
        LoggingMessagingGateway(),
        EscalationNotifier(InMemorySupportTicketRepository()),
        llm_provider=mock_llm_provider,
    )


def make_state(listing_map_id=None, message="¿A qué hora es el check-in?"):
    """Create an initial state for a message."""
    request = InboundMessage(
        guest_id="guest-1",
        reservation_id="res-1",
        listing_map_id=listing_map_id,
        message=message,
    )
    return create_initial_state(request, time.monotonic())


class TestTryListingNode:
    """Tests for try_listing_node."""

    @pytest.mark.asyncio
    async def test_skipped_without_listing_id(self, pipeline):
        """Test the listing stage is skipped without a listing."""
        state = await try_listing_node(make_state(), pipeline)

        assert state["listing"] is None
        assert state["candidate"] is None
        assert state["stage_failures"] == []

    @pytest.mark.asyncio
    async def test_finds_candidate(self, pipeline):
        """Test a listing fact becomes the candidate."""
        state = make_state(listing_map_id="7")
        state["detected_field"] = "checkIn"

        state = await try_listing_node(state, pipeline)

        assert state["candidate"].source == AnswerSource.LISTING_DIRECT
        assert state["candidate"].answer == "Hora de check-in: 15:00"

    @pytest.mark.asyncio
    async def test_lookup_failure_is_recorded(self, pipeline):
        """Test a failing lookup is a recorded miss."""
        pipeline.listing_repository = Mock()
        pipeline.listing_repository.find_by_map_id = AsyncMock(side_effect=RuntimeError("down"))

        state = await try_listing_node(make_state(listing_map_id="7"), pipeline)

        assert state["candidate"] is None
        assert state["stage_failures"] == ["try_listing"]


class TestTryFAQNode:
    """Tests for try_faq_node."""

    @pytest.mark.asyncio
    async def test_faq_answer_uses_configured_confidence(self, pipeline):
        """Test a FAQ answer carries the FAQ confidence."""
        pipeline._faq_resolver = Mock()
        pipeline._faq_resolver.resolve = AsyncMock(return_value="Sí, hay cuna.")

        state = await try_faq_node(make_state(), pipeline)

        assert state["candidate"].source == AnswerSource.FAQ
        assert state["candidate"].confidence == 0.8


class TestComposeNode:
    """Tests for compose_node."""

    @pytest.mark.asyncio
    async def test_candidate_is_rewritten(self, pipeline):
        """Test a verified fact is rewritten and composed."""
        state = make_state()
        state["candidate"] = SourceAnswer(
            "Hora de check-in: 15:00", 0.9, AnswerSource.LISTING_DIRECT, category="checkIn"
        )

        state = await compose_node(state, pipeline)

        result = state["result"]
        assert result.response == "Respuesta amable"
        assert result.detected_field == "checkIn"
        assert result.confidence == pytest.approx(0.855)
        assert result.requires_escalation is False

    @pytest.mark.asyncio
    async def test_ai_answer(self, pipeline, mock_llm_provider):
        """Test a generated answer is sent as is and escalated."""
        state = make_state()
        state["ai_answer"] = FallbackAnswer("Consulta con el anfitrión.", 0.3)

        state = await compose_node(state, pipeline)

        result = state["result"]
        assert result.source == AnswerSource.AI_FALLBACK
        assert result.reason_code == EscalationReason.NO_ANSWER_FOUND
        mock_llm_provider.ask.assert_not_called()

    @pytest.mark.asyncio
    async def test_nothing_found(self, pipeline):
        """Test the emergency fallback when no source answered."""
        state = await compose_node(make_state(), pipeline)

        result = state["result"]
        assert result.source == AnswerSource.EMERGENCY_FALLBACK
        assert result.response == TECHNICAL_FALLBACK_MESSAGE
        assert result.confidence == 0.0
        assert result.requires_escalation is True


class TestDispatchNode:
    """Tests for dispatch_node."""

    @pytest.mark.asyncio
    async def test_failed_send_sets_error(self, pipeline):
        """Test a failed send records the dispatch failure."""
        pipeline.gateway = Mock()
        pipeline.gateway.send_message_to_guest = AsyncMock(side_effect=RuntimeError("503"))
        state = await compose_node(make_state(), pipeline)

        state = await dispatch_node(state, pipeline)

        assert state["delivery"].sent is False
        assert state["error"] == "503"
        assert state["error_reason"] == EscalationReason.DISPATCH_FAILED

    @pytest.mark.asyncio
    async def test_requires_composed_result(self, pipeline):
        """Test dispatch refuses to run before a result was composed."""
        with pytest.raises(RuntimeError, match="without a result"):
            await dispatch_node(make_state(), pipeline)
