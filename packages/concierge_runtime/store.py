"""Document repositories for conversations and support tickets.

The pipeline only depends on the repository protocols. The in-memory
implementations keep copies of the stored documents so callers observe
the same find/save semantics a document database gives them.
For production use, replace them with a persistent store.
"""

from threading import Lock
from typing import Dict, List, Optional, Protocol

from .state import Conversation
from .tickets import SupportTicket, TicketStatus


class ConversationRepository(Protocol):
    """Keyed document store for conversation logs."""

    async def find_by_guest_id(self, guest_id: str) -> Optional[Conversation]:
        """Return the stored conversation for a guest, if any."""
        ...

    async def save(self, conversation: Conversation) -> Conversation:
        """Insert or replace the conversation document."""
        ...


class SupportTicketRepository(Protocol):
    """Store for support tickets."""

    async def save(self, ticket: SupportTicket) -> SupportTicket:
        """Insert or replace a ticket."""
        ...

    async def find_by_id(self, ticket_id: str) -> Optional[SupportTicket]:
        """Return a ticket by ID, if any."""
        ...


class InMemoryConversationRepository:
    """In-memory conversation store.

    Uses a dictionary with lock-protected access. Documents are copied on
    the way in and out, so an unsaved mutation is never visible to other
    readers.
    """

    def __init__(self) -> None:
        """Initialize the repository."""
        self._conversations: Dict[str, Conversation] = {}
        self._lock = Lock()

    async def find_by_guest_id(self, guest_id: str) -> Optional[Conversation]:
        """Retrieve a conversation by guest ID.

        Args:
            guest_id: Guest identity to look up

        Returns:
            A copy of the stored Conversation if found, None otherwise
        """
        with self._lock:
            stored = self._conversations.get(guest_id)
            return stored.model_copy(deep=True) if stored is not None else None

    async def save(self, conversation: Conversation) -> Conversation:
        """Store the conversation, replacing any previous version.

        Args:
            conversation: Conversation to store

        Returns:
            The saved Conversation
        """
        with self._lock:
            self._conversations[conversation.guest_id] = conversation.model_copy(deep=True)
            return conversation

    def count(self) -> int:
        """Count stored conversations."""
        with self._lock:
            return len(self._conversations)

    def clear(self) -> int:
        """Remove all conversations.

        Returns:
            Number of conversations cleared
        """
        with self._lock:
            count = len(self._conversations)
            self._conversations.clear()
            return count


class InMemorySupportTicketRepository:
    """In-memory support ticket store."""

    def __init__(self) -> None:
        """Initialize the repository."""
        self._tickets: Dict[str, SupportTicket] = {}
        self._lock = Lock()

    async def save(self, ticket: SupportTicket) -> SupportTicket:
        """Store a ticket, replacing any previous version.

        Args:
            ticket: Ticket to store

        Returns:
            The saved SupportTicket
        """
        with self._lock:
            self._tickets[ticket.id] = ticket.model_copy(deep=True)
            return ticket

    async def find_by_id(self, ticket_id: str) -> Optional[SupportTicket]:
        """Retrieve a ticket by ID.

        Args:
            ticket_id: Ticket ID to look up

        Returns:
            A copy of the stored SupportTicket if found, None otherwise
        """
        with self._lock:
            stored = self._tickets.get(ticket_id)
            return stored.model_copy(deep=True) if stored is not None else None

    def list(
        self,
        status: Optional[TicketStatus] = None,
        limit: Optional[int] = None,
    ) -> List[SupportTicket]:
        """List tickets with optional filtering.

        Args:
            status: Optional status filter
            limit: Optional limit on number of results

        Returns:
            Tickets matching the criteria, most recent first
        """
        with self._lock:
            tickets = list(self._tickets.values())

            if status is not None:
                tickets = [t for t in tickets if t.status == status]

            tickets.sort(key=lambda t: t.created_at, reverse=True)

            if limit is not None:
                tickets = tickets[:limit]

            return [t.model_copy(deep=True) for t in tickets]

    def count(self, status: Optional[TicketStatus] = None) -> int:
        """Count tickets with optional filtering."""
        with self._lock:
            if status is None:
                return len(self._tickets)
            return sum(1 for t in self._tickets.values() if t.status == status)
