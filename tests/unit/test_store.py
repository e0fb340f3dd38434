"""Tests for the in-memory document repositories."""

import pytest
from concierge_runtime import (
    Conversation,
    InMemoryConversationRepository,
    InMemorySupportTicketRepository,
    MessageRole,
    SupportTicket,
    TicketStatus,
)


def make_ticket(**overrides):
    """Build a ticket with sensible defaults."""
    data = {
        "guest_id": "guest-1",
        "reservation_id": "res-1",
        "question": "¿Puedo hacer late check-out?",
        "reason": "Low confidence in answer",
    }
    data.update(overrides)
    return SupportTicket(**data)


class TestInMemoryConversationRepository:
    """Tests for InMemoryConversationRepository."""

    @pytest.fixture
    def repository(self):
        """Create a fresh repository for each test."""
        return InMemoryConversationRepository()

    @pytest.mark.asyncio
    async def test_find_missing(self, repository):
        """Test an unknown guest returns None."""
        assert await repository.find_by_guest_id("nobody") is None

    @pytest.mark.asyncio
    async def test_save_and_find(self, repository):
        """Test a saved conversation can be found again."""
        conversation = Conversation(guest_id="guest-1")
        conversation.add_message(MessageRole.GUEST, "Hola")

        await repository.save(conversation)
        found = await repository.find_by_guest_id("guest-1")

        assert found is not None
        assert found.messages[0].content == "Hola"
        assert repository.count() == 1

    @pytest.mark.asyncio
    async def test_unsaved_mutation_is_not_visible(self, repository):
        """Test documents are copied in and out of the store."""
        conversation = Conversation(guest_id="guest-1")
        await repository.save(conversation)

        loaded = await repository.find_by_guest_id("guest-1")
        loaded.add_message(MessageRole.GUEST, "Hola")

        reloaded = await repository.find_by_guest_id("guest-1")
        assert reloaded.messages == []

    @pytest.mark.asyncio
    async def test_clear(self, repository):
        """Test clearing the repository."""
        await repository.save(Conversation(guest_id="a"))
        await repository.save(Conversation(guest_id="b"))

        assert repository.clear() == 2
        assert repository.count() == 0


class TestInMemorySupportTicketRepository:
    """Tests for InMemorySupportTicketRepository."""

    @pytest.fixture
    def repository(self):
        """Create a fresh repository for each test."""
        return InMemorySupportTicketRepository()

    @pytest.mark.asyncio
    async def test_save_and_find(self, repository):
        """Test a saved ticket can be found by ID."""
        ticket = make_ticket()

        await repository.save(ticket)
        found = await repository.find_by_id(ticket.id)

        assert found is not None
        assert found.id == ticket.id
        assert found is not ticket

    @pytest.mark.asyncio
    async def test_find_missing(self, repository):
        """Test an unknown ticket returns None."""
        assert await repository.find_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_list_and_count_by_status(self, repository):
        """Test listing and counting with a status filter."""
        open_ticket = make_ticket()
        assigned = make_ticket(guest_id="guest-2")
        assigned.assign_to("agent-1")
        await repository.save(open_ticket)
        await repository.save(assigned)

        assert repository.count() == 2
        assert repository.count(TicketStatus.OPEN) == 1
        in_progress = repository.list(status=TicketStatus.IN_PROGRESS)
        assert [t.id for t in in_progress] == [assigned.id]
        assert len(repository.list(limit=1)) == 1
