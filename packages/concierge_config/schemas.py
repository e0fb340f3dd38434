"""Configuration schemas for the Concierge guest-reply service.

This module defines Pydantic models for service configuration validation.
All configuration must be validated before use to ensure type safety.
"""

import re
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator, model_validator

# Listing topics that accept extra aliases; mirrors the category table in
# concierge_core.knowledge.categories.
TOPIC_CATEGORIES: Tuple[str, ...] = (
    "checkIn",
    "checkOut",
    "wifi",
    "access",
    "location",
    "rules",
    "amenities",
    "contact",
)

_NON_ALNUM = re.compile(r"[\W_]+")


class LLMProvider(str, Enum):
    """Supported generative-text providers."""

    OPENAI = "openai"
    KONKO = "konko"
    ANTHROPIC = "anthropic"


class ClassifierMode(str, Enum):
    """How the topic field of a guest question is detected."""

    LLM = "llm"
    KEYWORD = "keyword"


class LLMConfig(BaseModel):
    """Configuration for the generative-text capability."""

    provider: LLMProvider = Field(
        default=LLMProvider.OPENAI,
        description="Generative-text provider",
    )
    model_name: str = Field(
        default="gpt-4o-mini",
        description="Model identifier passed to the provider",
    )
    temperature: float = Field(
        default=0.4,
        ge=0.0,
        le=2.0,
        description="Sampling temperature",
    )
    max_tokens: Optional[int] = Field(
        default=2000,
        gt=0,
        description="Maximum tokens per completion",
    )
    api_key_env_var: str = Field(
        default="OPENAI_API_KEY",
        description="Environment variable holding the API key",
    )
    base_url: Optional[str] = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout for provider calls",
    )

    @field_validator("model_name")
    @classmethod
    def validate_model_name(cls, v: str) -> str:
        """Validate model name is not empty."""
        if not v or not v.strip():
            raise ValueError("Model name cannot be empty")
        return v.strip()


class ConfidencePolicy(BaseModel):
    """Confidence constants and the escalation threshold.

    Final confidence for listing and FAQ answers is the source confidence
    multiplied by the rewrite confidence. Any result under
    ``escalation_threshold`` is escalated.
    """

    escalation_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    faq_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    ai_fallback_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    rewrite_confidence: float = Field(default=0.95, ge=0.0, le=1.0)
    rewrite_failure_confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    keyword_penalty: float = Field(default=0.9, ge=0.0, le=1.0)
    special_instructions_confidence: float = Field(default=0.7, ge=0.0, le=1.0)


class ClassifierConfig(BaseModel):
    """Configuration for the field classifier."""

    mode: ClassifierMode = Field(
        default=ClassifierMode.LLM,
        description="Classifier backend",
    )
    history_window: int = Field(
        default=3,
        ge=0,
        description="Number of history turns included as classification context",
    )


class PipelineConfig(BaseModel):
    """Configuration for the response pipeline."""

    history_window: int = Field(
        default=5,
        ge=0,
        description="Number of recent conversation turns read before resolving",
    )
    stage_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to each knowledge-source stage",
    )
    dispatch_timeout_seconds: float = Field(
        default=80.0,
        gt=0,
        description="Timeout applied to the outbound messaging gateway",
    )
    serialize_guest_writes: bool = Field(
        default=True,
        description="Serialize conversation read-modify-write per guest in-process",
    )


class NotificationConfig(BaseModel):
    """Configuration for escalation notifications."""

    admin_panel_url: str = Field(
        default="Panel de administración",
        description="Link included in support notifications",
    )


class KnowledgeConfig(BaseModel):
    """Configuration for the structured property resolver."""

    extra_aliases: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Additional alias keywords keyed by topic category",
    )

    @field_validator("extra_aliases")
    @classmethod
    def validate_extra_aliases(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        """Reject unknown topics, drop blank aliases and normalize to lowercase."""
        known = {_NON_ALNUM.sub("", name.lower()) for name in TOPIC_CATEGORIES}
        unknown = sorted(
            category for category in v if _NON_ALNUM.sub("", category.lower()) not in known
        )
        if unknown:
            raise ValueError(f"Unknown categories in extra aliases: {', '.join(unknown)}")
        return {
            category: [alias.strip().lower() for alias in aliases if alias and alias.strip()]
            for category, aliases in v.items()
        }


class ConciergeConfig(BaseModel):
    """Complete service configuration."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    confidence: ConfidencePolicy = Field(default_factory=ConfidencePolicy)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    knowledge: KnowledgeConfig = Field(default_factory=KnowledgeConfig)
    language: str = Field(
        default="español",
        description="Language the guest-facing replies are written in",
    )

    @model_validator(mode="after")
    def validate_rewrite_bounds(self) -> "ConciergeConfig":
        """A failed rewrite must never be trusted more than a successful one."""
        policy = self.confidence
        if policy.rewrite_failure_confidence > policy.rewrite_confidence:
            raise ValueError("rewrite_failure_confidence cannot exceed rewrite_confidence")
        return self
