"""LLM Provider for the Concierge service.

This module provides LLM initialization and the ``ask`` interface used by
the classifier, the knowledge resolvers and the friendly-rewrite step.
"""

import os
from typing import Any, Dict, Optional, cast

from concierge_config import LLMConfig
from concierge_config import LLMProvider as LLMProviderEnum
from concierge_runtime import ConciergeError
from langchain_core.language_models import BaseChatModel  # type: ignore[import-not-found]
from langchain_openai import ChatOpenAI  # type: ignore[import-not-found]

from .metrics import LLM_CALLS, LLM_LATENCY


class LLMProviderError(ConciergeError):
    """Raised when there's an error with the LLM provider."""

    pass


def create_llm(config: LLMConfig) -> BaseChatModel:
    """Create and configure an LLM instance based on configuration.

    Args:
        config: LLM configuration

    Returns:
        Initialized LLM instance

    Raises:
        LLMProviderError: If provider is not supported or configuration is invalid
        ValueError: If API key is not found in environment variables
    """
    api_key = os.getenv(config.api_key_env_var)
    if not api_key:
        raise ValueError(
            f"API key not found in environment variable '{config.api_key_env_var}'. "
            f"Please set it before using the LLM provider."
        )

    common_params: Dict[str, Any] = {
        "model": config.model_name,
        "temperature": config.temperature,
        "api_key": api_key,
        "timeout": config.timeout_seconds,
    }

    if config.max_tokens is not None:
        common_params["max_tokens"] = config.max_tokens

    if config.provider == LLMProviderEnum.OPENAI:
        if config.base_url:
            common_params["base_url"] = config.base_url
        return ChatOpenAI(**common_params)

    elif config.provider == LLMProviderEnum.KONKO:
        # Konko exposes an OpenAI-compatible API
        common_params["base_url"] = config.base_url or "https://api.konko.ai/v1"
        return ChatOpenAI(**common_params)

    elif config.provider == LLMProviderEnum.ANTHROPIC:
        if config.base_url:
            common_params["base_url"] = config.base_url
        return ChatOpenAI(**common_params)

    else:
        raise LLMProviderError(f"Unsupported LLM provider: {config.provider}")


class LLMProvider:
    """Generative-text capability with error handling and call metrics."""

    def __init__(self, config: LLMConfig):
        """Initialize LLM Provider.

        Args:
            config: LLM configuration
        """
        self.config = config
        self._llm: Optional[BaseChatModel] = None

    @property
    def llm(self) -> BaseChatModel:
        """Get or create LLM instance.

        Returns:
            Initialized LLM instance
        """
        if self._llm is None:
            self._llm = create_llm(self.config)
        return self._llm

    async def ask(
        self,
        prompt: str,
        options: Optional[Dict[str, Any]] = None,
        operation: str = "ask",
    ) -> str:
        """Send a prompt and return the completion text.

        Args:
            prompt: Input prompt for the LLM
            options: Per-call overrides such as ``max_tokens`` or ``temperature``
            operation: Label recorded in the call metrics

        Returns:
            LLM response as string

        Raises:
            LLMProviderError: If there's an error during invocation
        """
        LLM_CALLS.labels(operation=operation).inc()
        with LLM_LATENCY.labels(operation=operation).time():
            try:
                response = await self.llm.ainvoke(prompt, **(options or {}))
                return cast(str, response.content)
            except Exception as e:
                raise LLMProviderError(f"Error invoking LLM: {str(e)}") from e
