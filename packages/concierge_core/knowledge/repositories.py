"""In-memory listing and FAQ repositories for development and tests."""

from threading import Lock
from typing import Dict, Iterable, List, Optional

from .models import FAQEntry, Listing


class InMemoryListingRepository:
    """Listing store keyed by listing map ID."""

    def __init__(self, listings: Optional[Iterable[Listing]] = None) -> None:
        """Initialize the repository.

        Args:
            listings: Listings to preload
        """
        self._listings: Dict[str, Listing] = {}
        self._lock = Lock()
        for listing in listings or []:
            self.add(listing)

    def add(self, listing: Listing) -> Listing:
        """Store or replace a listing."""
        with self._lock:
            self._listings[listing.id] = listing.model_copy(deep=True)
            return listing

    async def find_by_map_id(self, listing_map_id: str) -> Optional[Listing]:
        """Retrieve a listing by its map ID.

        Args:
            listing_map_id: Listing map ID; integers are accepted

        Returns:
            A copy of the stored Listing if found, None otherwise
        """
        with self._lock:
            stored = self._listings.get(str(listing_map_id))
            return stored.model_copy(deep=True) if stored is not None else None


class InMemoryFAQRepository:
    """FAQ corpus held in memory."""

    def __init__(self, entries: Optional[Iterable[FAQEntry]] = None) -> None:
        """Initialize the repository.

        Args:
            entries: FAQ entries to preload
        """
        self._entries: List[FAQEntry] = list(entries or [])
        self._lock = Lock()

    def add(self, entry: FAQEntry) -> FAQEntry:
        """Append an entry to the corpus."""
        with self._lock:
            self._entries.append(entry)
            return entry

    async def find_all(self) -> List[FAQEntry]:
        """Return every FAQ entry."""
        with self._lock:
            return [entry.model_copy() for entry in self._entries]
