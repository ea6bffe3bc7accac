"""Adapters for the external reasoning service behind the chat assistant."""

from .anthropic_service import AnthropicService
from .base import BaseReasoningService, ReasoningServiceError
from .ollama_service import OllamaService
from .openai_service import OpenAIService
from .registry import ReasoningServiceRegistry

__all__ = [
    "AnthropicService",
    "BaseReasoningService",
    "OllamaService",
    "OpenAIService",
    "ReasoningServiceError",
    "ReasoningServiceRegistry",
]
