"""Generative fallback resolver.

Used only after the listing and FAQ sources both miss. The reply is generic
guidance that points the guest to the host; it is never backed by a
verified source.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from concierge_runtime import Message

from ..llm_provider import LLMProvider
from .base import format_history
from .models import GuestContext

logger = logging.getLogger(__name__)

TECHNICAL_FALLBACK_MESSAGE = (
    "Disculpa, estoy experimentando dificultades técnicas. "
    "Un miembro de nuestro equipo te contactará pronto para ayudarte."
)

UNAVAILABLE = "No disponible"


@dataclass
class FallbackAnswer:
    """Reply produced by the generative fallback.

    Attributes:
        response: Text to send to the guest
        confidence: Text confidence, 0.0 when the output was unusable
        valid: Whether the capability returned usable text
    """

    response: str
    confidence: float
    valid: bool = True


class GenerativeFallbackResolver:
    """Produce a generic reply with the generative capability."""

    def __init__(
        self,
        llm_provider: LLMProvider,
        confidence: float = 0.3,
        history_window: int = 3,
        language: str = "español",
    ):
        """Initialize the fallback resolver.

        Args:
            llm_provider: Generative capability
            confidence: Confidence assigned to a usable reply
            history_window: History turns included in the prompt
            language: Language of the reply
        """
        self.llm_provider = llm_provider
        self.confidence = confidence
        self.history_window = history_window
        self.language = language

    async def resolve(
        self,
        question: str,
        recent_history: Sequence[Message] = (),
        context: Optional[GuestContext] = None,
    ) -> FallbackAnswer:
        """Generate a generic reply.

        Empty or non-string output is replaced by the technical-difficulties
        message with confidence 0.

        Args:
            question: Guest question
            recent_history: Recent conversation turns, oldest first
            context: Guest and property context, when known

        Returns:
            FallbackAnswer with the reply and its confidence

        Raises:
            LLMProviderError: If the generative capability fails
        """
        prompt = self._build_fallback_prompt(question, recent_history, context)
        response = await self.llm_provider.ask(prompt, operation="fallback")

        if not isinstance(response, str) or not response.strip():
            logger.warning("Fallback generation returned an unusable response")
            return FallbackAnswer(response=TECHNICAL_FALLBACK_MESSAGE, confidence=0.0, valid=False)

        return FallbackAnswer(response=response.strip(), confidence=self.confidence)

    def _build_fallback_prompt(
        self,
        question: str,
        recent_history: Sequence[Message],
        context: Optional[GuestContext],
    ) -> str:
        """Build the fallback prompt.

        Args:
            question: Guest question
            recent_history: Recent conversation turns
            context: Guest and property context

        Returns:
            Formatted prompt string
        """
        history = format_history(recent_history, self.history_window)
        history_block = f"Contexto de conversación previa:\n{history}\n" if history else ""

        context_block = ""
        if context is not None and not context.is_empty():
            context_block = f"""Información de contexto disponible:
- Huésped: {context.guest_name or UNAVAILABLE}
- Propiedad: {context.listing_name or UNAVAILABLE}
- Check-in: {context.check_in_date or UNAVAILABLE}
- Check-out: {context.check_out_date or UNAVAILABLE}
"""

        return f"""Eres un asistente amable y profesional para huéspedes de alojamientos.
{history_block}{context_block}
Pregunta actual: "{question}"

Analiza la pregunta y responde de manera útil:

Si pregunta sobre horarios de check-in/check-out:
- Proporciona horarios estándar comunes (check-in: 15:00, check-out: 11:00)
- Menciona que puede verificar la información específica de su reserva
- Sugiere contactar al anfitrión para casos especiales

Si pregunta sobre otros temas (wifi, dirección, amenidades):
- Da una respuesta general útil
- Indica que puedes obtener información más específica
- Sugiere contactar al anfitrión para detalles exactos

Mantén un tono cordial y profesional. Responde en {self.language}.
Máximo 3 frases."""
