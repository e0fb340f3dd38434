"""Structured property resolver.

Answers a question from a listing's fact sheet by walking the category
table: direct match on the detected field, then a keyword scan of the
question, then the listing's free-text special instructions.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from concierge_config import ConfidencePolicy
from concierge_runtime import AnswerSource

from .base import SourceAnswer
from .categories import DEFAULT_CATEGORIES, TopicCategory, candidate_fields
from .models import Listing

logger = logging.getLogger(__name__)

SPECIAL_INSTRUCTION_MARKERS: Tuple[str, ...] = (
    "how do i",
    "how can i",
    "how to",
    "help",
    "instructions",
    "instrucciones",
    "ayuda",
    "cómo",
    "como hago",
    "como puedo",
)


class StructuredPropertyResolver:
    """Resolve questions against a listing's structured facts."""

    def __init__(
        self,
        policy: Optional[ConfidencePolicy] = None,
        categories: Sequence[TopicCategory] = DEFAULT_CATEGORIES,
        markers: Iterable[str] = SPECIAL_INSTRUCTION_MARKERS,
    ):
        """Initialize the resolver.

        Args:
            policy: Confidence constants (keyword penalty, special instructions)
            categories: Category table in match order
            markers: Phrases that ask for help or instructions
        """
        self.policy = policy or ConfidencePolicy()
        self.categories = tuple(categories)
        self.markers = tuple(marker.lower() for marker in markers)

    def candidate_fields(self) -> List[str]:
        """Vocabulary the field classifier may emit."""
        return candidate_fields(self.categories)

    def resolve(
        self, listing: Optional[Listing], detected_field: str, question: str
    ) -> Optional[SourceAnswer]:
        """Find an answer in the listing, first match wins.

        Args:
            listing: Property fact sheet, or None when the lookup missed
            detected_field: Field emitted by the classifier, or "unknown"
            question: Raw guest question

        Returns:
            The matched fact with its confidence and source tag, or None
        """
        if listing is None:
            return None

        direct = self._direct_match(listing, detected_field)
        if direct is not None:
            return direct

        keyword = self._keyword_match(listing, question)
        if keyword is not None:
            return keyword

        return self._special_instructions(listing, question)

    def find_category(self, detected_field: str) -> Optional[TopicCategory]:
        """Return the category a detected field names, if any."""
        if not detected_field or detected_field == "unknown":
            return None
        for category in self.categories:
            if category.matches_field(detected_field):
                return category
        return None

    def _direct_match(self, listing: Listing, detected_field: str) -> Optional[SourceAnswer]:
        category = self.find_category(detected_field)
        if category is None:
            return None
        answer = category.answer(listing)
        if answer is None:
            logger.debug("Listing %s has no facts for category %s", listing.id, category.name)
            return None
        return SourceAnswer(
            answer=answer,
            confidence=category.confidence,
            source=AnswerSource.LISTING_DIRECT,
            category=category.name,
        )

    def _keyword_match(self, listing: Listing, question: str) -> Optional[SourceAnswer]:
        for category in self.categories:
            if not category.matches_text(question):
                continue
            answer = category.answer(listing)
            if answer is None:
                continue
            return SourceAnswer(
                answer=answer,
                confidence=category.confidence * self.policy.keyword_penalty,
                source=AnswerSource.LISTING_KEYWORD,
                category=category.name,
            )
        return None

    def _special_instructions(self, listing: Listing, question: str) -> Optional[SourceAnswer]:
        if not listing.special_instructions:
            return None
        lowered = question.lower()
        if not any(marker in lowered for marker in self.markers):
            return None
        return SourceAnswer(
            answer=listing.special_instructions,
            confidence=self.policy.special_instructions_confidence,
            source=AnswerSource.LISTING_SPECIAL,
        )
