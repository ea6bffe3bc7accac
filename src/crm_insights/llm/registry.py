"""Registry for discovering and instantiating reasoning service adapters."""

from typing import Type

from crm_insights.config import Settings

from .anthropic_service import AnthropicService
from .base import BaseReasoningService
from .ollama_service import OllamaService
from .openai_service import OpenAIService


class ReasoningServiceRegistry:
    """Maps provider names to adapters."""

    _services: dict[str, Type[BaseReasoningService]] = {
        "anthropic": AnthropicService,
        "openai": OpenAIService,
        "ollama": OllamaService,
    }

    @classmethod
    def get(cls, name: str, settings: Settings, **kwargs) -> BaseReasoningService:
        """Get an adapter for the given provider. kwargs passed to the adapter __init__."""
        service_cls = cls._services.get(name.lower())
        if not service_cls:
            raise ValueError(f"Unknown provider: {name}. Available: {list(cls._services.keys())}")
        return service_cls(settings, **kwargs)

    @classmethod
    def for_settings(cls, settings: Settings) -> BaseReasoningService:
        """Adapter selected by settings.provider."""
        return cls.get(settings.provider, settings)

    @classmethod
    def available_services(cls) -> list[str]:
        return list(cls._services.keys())
