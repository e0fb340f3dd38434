"""Curated FAQ resolver.

Asks the generative capability to pick the best-matching entry from the
whole FAQ corpus and return its answer verbatim.
"""

import logging
from typing import List, Optional, Sequence

from concierge_runtime import Message

from ..llm_provider import LLMProvider
from .base import FAQRepository, format_history
from .models import FAQEntry

logger = logging.getLogger(__name__)

NOT_FOUND_SENTINEL = "No encontrado"


class CuratedFAQResolver:
    """Resolve questions against the curated FAQ corpus."""

    def __init__(
        self,
        repository: FAQRepository,
        llm_provider: LLMProvider,
        history_window: int = 3,
    ):
        """Initialize the FAQ resolver.

        Args:
            repository: Source of FAQ entries
            llm_provider: Generative capability that selects the entry
            history_window: History turns included as context
        """
        self.repository = repository
        self.llm_provider = llm_provider
        self.history_window = history_window

    async def resolve(self, question: str, recent_history: Sequence[Message] = ()) -> Optional[str]:
        """Return the answer of the best-matching FAQ, or None.

        Args:
            question: Guest question
            recent_history: Recent conversation turns, oldest first

        Returns:
            FAQ answer text, or None when the corpus is empty or nothing matches

        Raises:
            LLMProviderError: If the generative capability fails
        """
        entries = await self.repository.find_all()
        if not entries:
            logger.debug("FAQ corpus is empty")
            return None

        prompt = self._build_search_prompt(question, recent_history, entries)
        answer = await self.llm_provider.ask(prompt, operation="faq_search")

        if not isinstance(answer, str) or not answer.strip():
            return None
        if answer.strip().strip("\"'.").strip() == NOT_FOUND_SENTINEL:
            logger.debug("No FAQ matched the question")
            return None
        return answer.strip()

    def _build_search_prompt(
        self,
        question: str,
        recent_history: Sequence[Message],
        entries: List[FAQEntry],
    ) -> str:
        """Build the FAQ selection prompt.

        Args:
            question: Guest question
            recent_history: Recent conversation turns
            entries: Full FAQ corpus

        Returns:
            Formatted prompt string
        """
        faqs_text = "\n\n".join(f"Q: {entry.question}\nA: {entry.answer}" for entry in entries)

        history = format_history(recent_history, self.history_window)
        if history:
            query = f"Contexto previo:\n{history}\n\nPregunta actual: {question}"
        else:
            query = question

        return f"""FAQs disponibles:
{faqs_text}

Consulta del huésped: "{query}"

Instrucciones:
1. Busca la FAQ que mejor responda a la pregunta
2. Si hay contexto de conversación previa, úsalo para dar una respuesta más precisa
3. Considera sinónimos y variaciones de la pregunta
4. Si encuentras una respuesta relevante, devuélvela tal como está en la FAQ
5. Si no hay ninguna FAQ relevante, responde exactamente: "{NOT_FOUND_SENTINEL}"

Respuesta:"""
