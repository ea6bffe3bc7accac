"""Abstract base class for reasoning service adapters."""

from abc import ABC, abstractmethod
from typing import Any

from crm_insights.config import Settings
from crm_insights.models.chat import ModelTurn

# Transcript entries use one canonical shape for every provider:
#   {"role": "user" | "assistant", "content": str | list[block]}
# where a block is {"type": "text", "text"}, {"type": "tool_use", "id", "name", "input"}
# or {"type": "tool_result", "tool_use_id", "content"}.
Message = dict[str, Any]


class ReasoningServiceError(RuntimeError):
    """The external reasoning service could not be reached or rejected the request."""


def content_blocks(message: Message) -> list[dict[str, Any]]:
    """Content of a transcript entry as a block list (plain strings become one text block)."""
    content = message.get("content")
    if isinstance(content, str):
        return [{"type": "text", "text": content}] if content else []
    return list(content or [])


def joined_text(blocks: list[dict[str, Any]]) -> str:
    return "\n".join(b["text"] for b in blocks if b.get("type") == "text" and b.get("text"))


class BaseReasoningService(ABC):
    """
    Standard interface for the model behind the chat assistant.
    One create() call is one round: send system prompt, tools and transcript;
    get back either text or tool-call requests.
    """

    service_id: str = ""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def model(self) -> str:
        return self.settings.resolved_model

    @abstractmethod
    def create(self, system: str, tools: list[dict[str, Any]], messages: list[Message]) -> ModelTurn:
        """
        Run one model round. Raises ReasoningServiceError on transport or API failure.
        """
        pass
