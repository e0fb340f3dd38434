"""Tests for the curated FAQ resolver."""

from unittest.mock import AsyncMock, Mock

import pytest
from concierge_core import LLMProvider, LLMProviderError
from concierge_core.knowledge import (
    NOT_FOUND_SENTINEL,
    CuratedFAQResolver,
    FAQEntry,
    InMemoryFAQRepository,
)
from concierge_runtime import Message, MessageRole
from pydantic import ValidationError


@pytest.fixture
def mock_llm_provider():
    """Create a mock LLM provider."""
    provider = Mock(spec=LLMProvider)
    provider.ask = AsyncMock(return_value="Sí, admitimos mascotas pequeñas.")
    return provider


@pytest.fixture
def faq_repository():
    """Create an FAQ corpus with two entries."""
    return InMemoryFAQRepository(
        [
            FAQEntry(question="¿Se admiten mascotas?", answer="Sí, admitimos mascotas pequeñas."),
            FAQEntry(question="¿Hay cuna?", answer="Sí, bajo petición.", category="familia"),
        ]
    )


class TestFAQEntry:
    """Tests for FAQEntry model."""

    def test_blank_answer_fails(self):
        """Test question and answer are required."""
        with pytest.raises(ValidationError):
            FAQEntry(question="¿Hay cuna?", answer="   ")

    def test_text_is_capped(self):
        """Test long answers are truncated."""
        entry = FAQEntry(question="q", answer="a" * 2500, tags=[" niños ", ""])

        assert len(entry.answer) == 2000
        assert entry.tags == ["niños"]


class TestCuratedFAQResolver:
    """Tests for CuratedFAQResolver."""

    @pytest.mark.asyncio
    async def test_returns_matching_answer(self, faq_repository, mock_llm_provider):
        """Test the selected FAQ answer is returned."""
        resolver = CuratedFAQResolver(faq_repository, mock_llm_provider)

        answer = await resolver.resolve("¿Puedo llevar a mi perro?")

        assert answer == "Sí, admitimos mascotas pequeñas."
        prompt = mock_llm_provider.ask.call_args.args[0]
        assert "¿Se admiten mascotas?" in prompt
        assert "¿Hay cuna?" in prompt
        assert mock_llm_provider.ask.call_args.kwargs["operation"] == "faq_search"

    @pytest.mark.asyncio
    async def test_not_found_sentinel(self, faq_repository, mock_llm_provider):
        """Test the not-found sentinel means no match."""
        mock_llm_provider.ask.return_value = f'"{NOT_FOUND_SENTINEL}"'
        resolver = CuratedFAQResolver(faq_repository, mock_llm_provider)

        assert await resolver.resolve("¿Hay jacuzzi?") is None

    @pytest.mark.asyncio
    async def test_answer_mentioning_sentinel_words_is_kept(
        self, faq_repository, mock_llm_provider
    ):
        """Test a real answer containing the sentinel words is not a miss."""
        answer = "Si algún objeto no encontrado aparece, lo guardamos 30 días."
        mock_llm_provider.ask.return_value = answer
        resolver = CuratedFAQResolver(faq_repository, mock_llm_provider)

        assert await resolver.resolve("¿Qué pasa si olvido algo?") == answer

    @pytest.mark.asyncio
    async def test_blank_response(self, faq_repository, mock_llm_provider):
        """Test a blank completion means no match."""
        mock_llm_provider.ask.return_value = "  "
        resolver = CuratedFAQResolver(faq_repository, mock_llm_provider)

        assert await resolver.resolve("¿Hay jacuzzi?") is None

    @pytest.mark.asyncio
    async def test_empty_corpus_skips_llm(self, mock_llm_provider):
        """Test an empty corpus answers nothing without calling the model."""
        resolver = CuratedFAQResolver(InMemoryFAQRepository(), mock_llm_provider)

        assert await resolver.resolve("¿Hay cuna?") is None
        mock_llm_provider.ask.assert_not_called()

    @pytest.mark.asyncio
    async def test_history_is_included(self, faq_repository, mock_llm_provider):
        """Test recent turns are passed as context."""
        resolver = CuratedFAQResolver(faq_repository, mock_llm_provider, history_window=1)
        history = [
            Message(role=MessageRole.GUEST, content="Viajo con niños"),
            Message(role=MessageRole.AGENT, content="¡Genial!"),
        ]

        await resolver.resolve("¿Hay cuna?", history)

        prompt = mock_llm_provider.ask.call_args.args[0]
        assert "agent: ¡Genial!" in prompt
        assert "Viajo con niños" not in prompt

    @pytest.mark.asyncio
    async def test_llm_error_propagates(self, faq_repository, mock_llm_provider):
        """Test provider failures are raised to the caller."""
        mock_llm_provider.ask.side_effect = LLMProviderError("boom")
        resolver = CuratedFAQResolver(faq_repository, mock_llm_provider)

        with pytest.raises(LLMProviderError):
            await resolver.resolve("¿Hay cuna?")
