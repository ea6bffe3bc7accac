"""Anthropic Messages API adapter (transcript format is native)."""

import os
from typing import Any, Optional

import anthropic

from crm_insights.config import Settings
from crm_insights.models.chat import ModelTurn, TextBlock, ToolUseBlock

from .base import BaseReasoningService, Message, ReasoningServiceError


class AnthropicService(BaseReasoningService):
    """Calls client.messages.create with the query tool attached."""

    service_id = "anthropic"

    def __init__(self, settings: Settings, client: Optional[anthropic.Anthropic] = None):
        super().__init__(settings)
        self._client = client

    def _get_client(self) -> anthropic.Anthropic:
        if self._client is None:
            if not os.environ.get("ANTHROPIC_API_KEY"):
                raise ReasoningServiceError("ANTHROPIC_API_KEY not set")
            self._client = anthropic.Anthropic(timeout=self.settings.request_timeout)
        return self._client

    def create(self, system: str, tools: list[dict[str, Any]], messages: list[Message]) -> ModelTurn:
        client = self._get_client()
        try:
            response = client.messages.create(
                model=self.model,
                max_tokens=self.settings.max_tokens,
                system=system,
                tools=tools,
                messages=messages,
            )
        except anthropic.AnthropicError as e:
            raise ReasoningServiceError(f"Anthropic request failed: {e}") from e

        content = []
        for block in response.content:
            if block.type == "text":
                content.append(TextBlock(text=block.text))
            elif block.type == "tool_use":
                content.append(ToolUseBlock(id=block.id, name=block.name, input=dict(block.input or {})))
        return ModelTurn(stop_reason=response.stop_reason or "", content=content)
