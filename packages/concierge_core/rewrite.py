"""Friendly rewrite of verified facts into a chat reply."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from concierge_config import ConfidencePolicy
from concierge_runtime import Message

from .knowledge import format_history
from .llm_provider import LLMProvider

logger = logging.getLogger(__name__)


@dataclass
class RewriteResult:
    """Rewritten reply and the confidence of the rewrite."""

    text: str
    confidence: float
    rewritten: bool = True


class FriendlyRewriter:
    """Turn a raw fact into a short conversational reply.

    A failed or empty rewrite keeps the raw fact, at the lower
    ``rewrite_failure_confidence``.
    """

    def __init__(
        self,
        llm_provider: LLMProvider,
        policy: Optional[ConfidencePolicy] = None,
        language: str = "español",
        timeout_seconds: Optional[float] = None,
    ):
        """Initialize the rewriter.

        Args:
            llm_provider: Generative capability used for the rewrite
            policy: Rewrite success and failure confidences
            language: Language of the guest-facing reply
            timeout_seconds: Optional limit on the rewrite call
        """
        self.llm_provider = llm_provider
        self.policy = policy or ConfidencePolicy()
        self.language = language
        self.timeout_seconds = timeout_seconds

    async def rewrite(
        self, question: str, fact: str, recent_history: Sequence[Message] = ()
    ) -> RewriteResult:
        """Rewrite a fact for the guest.

        Args:
            question: Guest question
            fact: Verified fact text
            recent_history: Recent conversation turns

        Returns:
            RewriteResult; never raises
        """
        prompt = self._build_rewrite_prompt(question, fact, recent_history)
        try:
            text = await asyncio.wait_for(
                self.llm_provider.ask(prompt, operation="rewrite"),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            logger.warning("Friendly rewrite failed, sending the raw fact: %s", e)
            return self._raw(fact)

        if not isinstance(text, str) or not text.strip():
            logger.warning("Friendly rewrite returned an empty response")
            return self._raw(fact)

        return RewriteResult(text=text.strip(), confidence=self.policy.rewrite_confidence)

    def _raw(self, fact: str) -> RewriteResult:
        return RewriteResult(
            text=fact,
            confidence=self.policy.rewrite_failure_confidence,
            rewritten=False,
        )

    def _build_rewrite_prompt(
        self, question: str, fact: str, recent_history: Sequence[Message]
    ) -> str:
        history = format_history(recent_history, 2)
        history_block = f"\nContexto de conversación previa:\n{history}\n" if history else ""

        return f"""Genera una respuesta breve, amable y personalizada para un huésped,
usando el siguiente dato como respuesta principal:

Pregunta: "{question}"
Dato: "{fact}"
{history_block}
Reglas:
- No uses plantillas ni marcadores como [Su nombre] o [nombre del hotel].
- Usa un tono cordial, profesional y natural.
- No inventes datos adicionales.
- Máximo 2 o 3 frases.
- Escribe en {self.language}.
- Haz que suene natural como un mensaje de chat."""
