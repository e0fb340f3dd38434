"""Field classification for guest questions.

A classifier maps a free-text question to one field from a closed
vocabulary, or to ``"unknown"``. Classification is advisory: failures
degrade to ``"unknown"`` instead of propagating.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from concierge_config import ClassifierConfig, ClassifierMode
from concierge_runtime import Message

from .knowledge import DEFAULT_CATEGORIES, TopicCategory, format_history, normalize_key
from .llm_provider import LLMProvider

logger = logging.getLogger(__name__)

UNKNOWN_FIELD = "unknown"

_SEPARATORS = re.compile(r"[\n,.;:]")
_QUOTES = "\"'`“”‘’«» "


def first_token(raw: str) -> str:
    """Cut a raw completion at the first separator character."""
    return _SEPARATORS.split(raw.strip())[0].strip().strip(_QUOTES)


def match_candidate(token: str, candidate_fields: Sequence[str]) -> str:
    """Return the candidate spelled like ``token``, or ``"unknown"``."""
    key = normalize_key(token)
    if not key:
        return UNKNOWN_FIELD
    for candidate in candidate_fields:
        if normalize_key(candidate) == key:
            return candidate
    return UNKNOWN_FIELD


class FieldClassifier(ABC):
    """Abstract base class for field classifiers."""

    @abstractmethod
    async def classify(
        self,
        question: str,
        recent_history: Sequence[Message],
        candidate_fields: Sequence[str],
    ) -> str:
        """Map a question to a candidate field.

        Args:
            question: Guest question, non-empty
            recent_history: Recent conversation turns, oldest first
            candidate_fields: Closed vocabulary the caller acts on

        Returns:
            One of ``candidate_fields`` or ``"unknown"``
        """
        pass


class LLMFieldClassifier(FieldClassifier):
    """Classify with the generative capability."""

    def __init__(self, llm_provider: LLMProvider, history_window: int = 3):
        """Initialize the classifier.

        Args:
            llm_provider: Generative capability
            history_window: History turns included as context
        """
        self.llm_provider = llm_provider
        self.history_window = history_window

    async def classify(
        self,
        question: str,
        recent_history: Sequence[Message],
        candidate_fields: Sequence[str],
    ) -> str:
        """Ask the capability for a field and keep it only if it is a candidate."""
        prompt = self._build_classification_prompt(question, recent_history, candidate_fields)
        try:
            raw = await self.llm_provider.ask(prompt, operation="classify")
        except Exception as e:
            logger.warning("Field classification failed: %s", e)
            return UNKNOWN_FIELD

        if not isinstance(raw, str):
            logger.warning("Field classification returned %s", type(raw).__name__)
            return UNKNOWN_FIELD

        detected = match_candidate(first_token(raw), candidate_fields)
        logger.debug("Detected field %s for question %r", detected, question)
        return detected

    def _build_classification_prompt(
        self,
        question: str,
        recent_history: Sequence[Message],
        candidate_fields: Sequence[str],
    ) -> str:
        """Build the classification prompt.

        Args:
            question: Guest question
            recent_history: Recent conversation turns
            candidate_fields: Allowed field names

        Returns:
            Formatted prompt string
        """
        history = format_history(recent_history, self.history_window)
        if history:
            context = (
                f"Historial de conversación reciente:\n{history}\n\nPregunta actual: \"{question}\""
            )
        else:
            context = f'Pregunta: "{question}"'

        fields = f"\nCampos disponibles: {', '.join(candidate_fields)}" if candidate_fields else ""

        return f"""Contexto de conversación:
{context}
{fields}

Tu tarea es identificar el campo específico que el usuario está preguntando.

Ejemplos de mapeo:
- "¿A qué hora es el check in?" → checkInTime
- "¿Cuál es la hora de entrada?" → checkInTime
- "¿A qué hora puedo llegar?" → checkInTime
- "¿Cuál es la hora de salida?" → checkOutTime
- "¿Hay wifi?" → wifi
- "¿Dónde puedo aparcar?" → parking
- "¿Cuál es la dirección?" → address

Analiza la pregunta y devuelve SOLO el nombre del campo más apropiado.
Si no coincide con ningún campo específico, responde "{UNKNOWN_FIELD}"."""


class KeywordFieldClassifier(FieldClassifier):
    """Classify by scanning the question for category aliases."""

    def __init__(self, categories: Sequence[TopicCategory] = DEFAULT_CATEGORIES):
        """Initialize the classifier.

        Args:
            categories: Category table in match order
        """
        self.categories = tuple(categories)

    async def classify(
        self,
        question: str,
        recent_history: Sequence[Message],
        candidate_fields: Sequence[str],
    ) -> str:
        """Return the first category whose aliases occur in the question."""
        for category in self.categories:
            if category.matches_text(question):
                if not candidate_fields:
                    return category.name
                return match_candidate(category.name, candidate_fields)
        return UNKNOWN_FIELD


def create_classifier(
    config: ClassifierConfig,
    llm_provider: Optional[LLMProvider] = None,
    categories: Sequence[TopicCategory] = DEFAULT_CATEGORIES,
) -> FieldClassifier:
    """Create the classifier selected by configuration.

    Args:
        config: Classifier configuration
        llm_provider: Generative capability, required in ``llm`` mode
        categories: Category table for keyword mode

    Returns:
        A FieldClassifier

    Raises:
        ValueError: If ``llm`` mode is selected without a provider
    """
    if config.mode == ClassifierMode.KEYWORD:
        return KeywordFieldClassifier(categories)
    if llm_provider is None:
        raise ValueError("An LLM provider is required for the llm classifier mode")
    return LLMFieldClassifier(llm_provider, history_window=config.history_window)
