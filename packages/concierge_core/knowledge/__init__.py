"""Knowledge sources for guest questions.

Three resolvers, in priority order:
- StructuredPropertyResolver: the property's fact sheet
- CuratedFAQResolver: the curated FAQ corpus
- GenerativeFallbackResolver: generic generated guidance
"""

from .base import FAQRepository, ListingRepository, SourceAnswer, format_history
from .categories import (
    DEFAULT_CATEGORIES,
    Fact,
    TopicCategory,
    build_categories,
    candidate_fields,
    normalize_key,
)
from .faq import NOT_FOUND_SENTINEL, CuratedFAQResolver
from .fallback import TECHNICAL_FALLBACK_MESSAGE, FallbackAnswer, GenerativeFallbackResolver
from .listing import SPECIAL_INSTRUCTION_MARKERS, StructuredPropertyResolver
from .models import FAQEntry, GuestContext, Listing
from .repositories import InMemoryFAQRepository, InMemoryListingRepository

__all__ = [
    "DEFAULT_CATEGORIES",
    "NOT_FOUND_SENTINEL",
    "SPECIAL_INSTRUCTION_MARKERS",
    "TECHNICAL_FALLBACK_MESSAGE",
    "CuratedFAQResolver",
    "FAQEntry",
    "FAQRepository",
    "Fact",
    "FallbackAnswer",
    "GenerativeFallbackResolver",
    "GuestContext",
    "InMemoryFAQRepository",
    "InMemoryListingRepository",
    "Listing",
    "ListingRepository",
    "SourceAnswer",
    "StructuredPropertyResolver",
    "TopicCategory",
    "build_categories",
    "candidate_fields",
    "format_history",
    "normalize_key",
]
