"""Append-only, size-bounded conversation history keyed by guest.

Each append is a read-modify-write against the conversation repository
(``find_by_guest_id`` then ``save``). Within one process, appends for the
same guest are serialized with a per-guest ``asyncio.Lock`` when
``serialize_writes`` is on. A guest's lock lives only while an append for
that guest is running or waiting. Deliveries handled by different
processes can still interleave; in that case the last writer wins and a
concurrent append is lost.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from .errors import PersistenceError
from .state import Conversation, Message, MessageRole
from .store import ConversationRepository

logger = logging.getLogger(__name__)


class ConversationLog:
    """Sole writer of persisted conversation messages."""

    def __init__(self, repository: ConversationRepository, serialize_writes: bool = True):
        """Initialize the conversation log.

        Args:
            repository: Document store for conversations
            serialize_writes: Serialize appends per guest inside this process
        """
        self.repository = repository
        self.serialize_writes = serialize_writes
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_holders: Dict[str, int] = {}

    async def append(
        self,
        guest_id: str,
        role: MessageRole,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Message:
        """Append one message to a guest's conversation.

        The conversation is created on the first message for a guest.

        Args:
            guest_id: Guest identity
            role: Sender role (guest or agent)
            content: Message text
            metadata: Message metadata, filtered through the allow-list

        Returns:
            The stored Message

        Raises:
            ValueError: If the role, content or guest id is invalid
            PersistenceError: If the repository fails
        """
        return (await self.append_many(guest_id, [(role, content, metadata)]))[0]

    async def append_many(
        self,
        guest_id: str,
        entries: List[tuple[MessageRole, str, Optional[Dict[str, Any]]]],
    ) -> List[Message]:
        """Append several messages in order with a single save.

        Args:
            guest_id: Guest identity
            entries: (role, content, metadata) tuples in insertion order

        Returns:
            The stored Messages, in the same order

        Raises:
            ValueError: If any role, content or the guest id is invalid
            PersistenceError: If the repository fails
        """
        if not self.serialize_writes:
            return await self._append_unlocked(guest_id, entries)

        async with self._guest_lock(guest_id):
            return await self._append_unlocked(guest_id, entries)

    async def recent(self, guest_id: str, count: int) -> List[Message]:
        """Return the last ``count`` messages for a guest, oldest first.

        Args:
            guest_id: Guest identity
            count: Maximum number of messages

        Returns:
            Recent messages, or an empty list for an unknown guest

        Raises:
            PersistenceError: If the repository fails
        """
        conversation = await self.get(guest_id)
        if conversation is None:
            return []
        return conversation.get_recent_messages(count)

    async def get(self, guest_id: str) -> Optional[Conversation]:
        """Load the full conversation for a guest."""
        try:
            return await self.repository.find_by_guest_id(guest_id)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Error loading conversation: {e}") from e

    @asynccontextmanager
    async def _guest_lock(self, guest_id: str) -> AsyncIterator[None]:
        """Hold the guest's lock, dropping it once no append needs it."""
        lock = self._locks.setdefault(guest_id, asyncio.Lock())
        self._lock_holders[guest_id] = self._lock_holders.get(guest_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[guest_id] -= 1
            if not self._lock_holders[guest_id]:
                del self._lock_holders[guest_id]
                del self._locks[guest_id]

    async def _append_unlocked(
        self,
        guest_id: str,
        entries: List[tuple[MessageRole, str, Optional[Dict[str, Any]]]],
    ) -> List[Message]:
        conversation = await self.get(guest_id)
        if conversation is None:
            conversation = Conversation(guest_id=guest_id)

        messages = [
            conversation.add_message(role, content, metadata) for role, content, metadata in entries
        ]

        try:
            await self.repository.save(conversation)
        except Exception as e:
            raise PersistenceError(f"Error saving conversation: {e}") from e

        logger.debug(
            "Saved %d message(s) for guest %s (total=%d)",
            len(messages),
            guest_id,
            conversation.summary.total_messages,
        )
        return messages
