"""Tests for LLM Provider module."""

import os
from unittest.mock import AsyncMock, Mock, patch

import pytest
from concierge_config import LLMConfig
from concierge_config import LLMProvider as LLMProviderEnum
from concierge_core import LLMProvider, LLMProviderError, create_llm
from langchain_openai import ChatOpenAI


class TestCreateLLM:
    """Tests for create_llm function."""

    def test_create_openai_llm_success(self):
        """Test creating OpenAI LLM with valid config."""
        config = LLMConfig(
            provider=LLMProviderEnum.OPENAI,
            model_name="gpt-4o-mini",
            temperature=0.4,
        )

        with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}):
            llm = create_llm(config)

        assert isinstance(llm, ChatOpenAI)
        assert llm.model_name == "gpt-4o-mini"
        assert llm.temperature == 0.4

    def test_create_llm_missing_api_key(self):
        """Test creating LLM without API key raises error."""
        config = LLMConfig(api_key_env_var="MISSING_KEY")

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError) as exc_info:
                create_llm(config)

        assert "API key not found" in str(exc_info.value)
        assert "MISSING_KEY" in str(exc_info.value)

    def test_create_llm_with_max_tokens(self):
        """Test creating LLM with max_tokens specified."""
        config = LLMConfig(max_tokens=150)

        with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}):
            llm = create_llm(config)

        assert llm.max_tokens == 150

    def test_create_llm_with_base_url(self):
        """Test creating LLM with custom base URL."""
        config = LLMConfig(base_url="https://custom.api.url")

        with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}):
            llm = create_llm(config)

        assert llm.openai_api_base == "https://custom.api.url"

    def test_create_konko_llm_uses_default_endpoint(self):
        """Test Konko provider points at its OpenAI-compatible endpoint."""
        config = LLMConfig(provider=LLMProviderEnum.KONKO, api_key_env_var="KONKO_API_KEY")

        with patch.dict(os.environ, {"KONKO_API_KEY": "test-key"}):
            llm = create_llm(config)

        assert isinstance(llm, ChatOpenAI)
        assert llm.openai_api_base == "https://api.konko.ai/v1"


class TestLLMProvider:
    """Tests for LLMProvider class."""

    def test_llm_provider_initialization(self):
        """Test LLM Provider initialization."""
        config = LLMConfig()

        provider = LLMProvider(config)

        assert provider.config == config
        assert provider._llm is None

    def test_llm_property_caches_instance(self):
        """Test LLM instance is created lazily and cached."""
        provider = LLMProvider(LLMConfig())

        with patch.dict(os.environ, {"OPENAI_API_KEY": "test-key"}):
            llm1 = provider.llm
            llm2 = provider.llm

        assert isinstance(llm1, ChatOpenAI)
        assert llm1 is llm2

    @pytest.mark.asyncio
    async def test_ask_success(self):
        """Test successful prompt completion."""
        provider = LLMProvider(LLMConfig())

        mock_response = Mock()
        mock_response.content = "El check-in es a las 15:00"
        mock_llm = Mock()
        mock_llm.ainvoke = AsyncMock(return_value=mock_response)
        provider._llm = mock_llm

        result = await provider.ask("¿A qué hora es el check-in?")

        assert result == "El check-in es a las 15:00"
        mock_llm.ainvoke.assert_awaited_once_with("¿A qué hora es el check-in?")

    @pytest.mark.asyncio
    async def test_ask_passes_options(self):
        """Test per-call options are forwarded to the model."""
        provider = LLMProvider(LLMConfig())

        mock_response = Mock()
        mock_response.content = "wifi"
        mock_llm = Mock()
        mock_llm.ainvoke = AsyncMock(return_value=mock_response)
        provider._llm = mock_llm

        await provider.ask("prompt", options={"max_tokens": 20}, operation="classify")

        mock_llm.ainvoke.assert_awaited_once_with("prompt", max_tokens=20)

    @pytest.mark.asyncio
    async def test_ask_error_handling(self):
        """Test provider errors are wrapped in LLMProviderError."""
        provider = LLMProvider(LLMConfig())

        mock_llm = Mock()
        mock_llm.ainvoke = AsyncMock(side_effect=Exception("API Error"))
        provider._llm = mock_llm

        with pytest.raises(LLMProviderError) as exc_info:
            await provider.ask("Test prompt")

        assert "Error invoking LLM" in str(exc_info.value)
        assert "API Error" in str(exc_info.value)
