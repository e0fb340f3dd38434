"""Concierge guest-reply service - Configuration Package."""

from .loader import ConfigurationError, load_config_from_dict, load_config_from_yaml
from .schemas import (
    TOPIC_CATEGORIES,
    ClassifierConfig,
    ClassifierMode,
    ConciergeConfig,
    ConfidencePolicy,
    KnowledgeConfig,
    LLMConfig,
    LLMProvider,
    NotificationConfig,
    PipelineConfig,
)

__version__ = "0.1.0"

__all__ = [
    "TOPIC_CATEGORIES",
    "ClassifierConfig",
    "ClassifierMode",
    "ConciergeConfig",
    "ConfidencePolicy",
    "ConfigurationError",
    "KnowledgeConfig",
    "LLMConfig",
    "LLMProvider",
    "NotificationConfig",
    "PipelineConfig",
    "load_config_from_dict",
    "load_config_from_yaml",
]
