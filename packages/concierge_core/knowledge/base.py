"""Contracts shared by the knowledge sources."""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from concierge_runtime import AnswerSource, Message

from .models import FAQEntry, Listing


class ListingRepository(Protocol):
    """Lookup of property fact sheets."""

    async def find_by_map_id(self, listing_map_id: str) -> Optional[Listing]:
        """Return the listing for a map ID, if any."""
        ...


class FAQRepository(Protocol):
    """Access to the curated FAQ corpus."""

    async def find_all(self) -> List[FAQEntry]:
        """Return every FAQ entry."""
        ...


@dataclass
class SourceAnswer:
    """Raw fact returned by a verified knowledge source.

    Attributes:
        answer: Fact text, before any rewrite
        confidence: Source confidence (0.0-1.0)
        source: Which source produced the fact
        category: Topic category the fact belongs to, if known
    """

    answer: str
    confidence: float
    source: AnswerSource
    category: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate source answer attributes."""
        if self.confidence < 0.0 or self.confidence > 1.0:
            raise ValueError("Confidence must be between 0.0 and 1.0")


def format_history(messages: Sequence[Message], limit: int = 3) -> str:
    """Render the last ``limit`` turns as ``role: content`` lines."""
    if limit <= 0:
        return ""
    return "\n".join(f"{msg.role.value}: {msg.content}" for msg in list(messages)[-limit:])
