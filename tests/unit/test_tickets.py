"""Tests for the support ticket entity."""

import pytest
from concierge_runtime import SupportTicket, TicketError, TicketPriority, TicketStatus
from pydantic import ValidationError


def make_ticket(**overrides):
    """Build a ticket with sensible defaults."""
    data = {
        "guest_id": "guest-1",
        "reservation_id": "res-1",
        "question": "¿Dónde puedo aparcar?",
        "reason": "Low confidence in answer",
    }
    data.update(overrides)
    return SupportTicket(**data)


class TestSupportTicket:
    """Tests for SupportTicket model."""

    def test_defaults(self):
        """Test a new ticket is open with medium priority."""
        ticket = make_ticket()

        assert ticket.id
        assert ticket.status == TicketStatus.OPEN
        assert ticket.priority == TicketPriority.MEDIUM
        assert ticket.is_open is True
        assert ticket.is_resolved is False

    @pytest.mark.parametrize("field", ["guest_id", "reservation_id", "question", "reason"])
    def test_required_fields(self, field):
        """Test required text fields cannot be blank."""
        with pytest.raises(ValidationError):
            make_ticket(**{field: "   "})

    def test_text_is_capped(self):
        """Test long questions are truncated."""
        ticket = make_ticket(question="x" * 3000)

        assert len(ticket.question) == 2000

    def test_listing_map_id_is_string(self):
        """Test numeric listing ids are stored as strings."""
        ticket = make_ticket(listing_map_id=12345)

        assert ticket.listing_map_id == "12345"

    def test_metadata_allow_list(self):
        """Test unknown metadata keys and empty values are dropped."""
        ticket = make_ticket(
            metadata={"response": "texto", "error": None, "door_code": "1234"}
        )

        assert ticket.metadata == {"response": "texto"}


class TestTicketLifecycle:
    """Tests for ticket status transitions."""

    def test_full_lifecycle(self):
        """Test open -> in_progress -> resolved -> closed."""
        ticket = make_ticket()

        ticket.assign_to("agent-1")
        assert ticket.status == TicketStatus.IN_PROGRESS
        assert ticket.assigned_to == "agent-1"

        ticket.resolve("Late check-out confirmado", "agent-1")
        assert ticket.status == TicketStatus.RESOLVED
        assert ticket.resolution == "Late check-out confirmado"
        assert ticket.metadata["resolved_by"] == "agent-1"
        assert "resolved_at" in ticket.metadata
        assert ticket.is_resolved is True

        ticket.close()
        assert ticket.status == TicketStatus.CLOSED

    def test_cannot_resolve_open_ticket(self):
        """Test resolving requires an in-progress ticket."""
        ticket = make_ticket()

        with pytest.raises(TicketError) as exc_info:
            ticket.resolve("done", "agent-1")

        assert "open" in str(exc_info.value)

    def test_cannot_close_unresolved_ticket(self):
        """Test closing requires a resolved ticket."""
        ticket = make_ticket()
        ticket.assign_to("agent-1")

        with pytest.raises(TicketError):
            ticket.close()

    def test_cannot_reassign(self):
        """Test only open tickets can be assigned."""
        ticket = make_ticket()
        ticket.assign_to("agent-1")

        with pytest.raises(TicketError):
            ticket.assign_to("agent-2")

    def test_assign_requires_user(self):
        """Test an assignee is required."""
        ticket = make_ticket()

        with pytest.raises(TicketError):
            ticket.assign_to("  ")

    def test_resolve_requires_resolution(self):
        """Test a resolution text is required."""
        ticket = make_ticket()
        ticket.assign_to("agent-1")

        with pytest.raises(TicketError):
            ticket.resolve("", "agent-1")
