"""OpenAI chat completions adapter with function calling."""

import json
import logging
import os
from typing import Any, Optional

from openai import OpenAI, OpenAIError

from crm_insights.config import Settings
from crm_insights.models.chat import ModelTurn, TextBlock, ToolUseBlock

from .base import BaseReasoningService, Message, ReasoningServiceError, content_blocks, joined_text

logger = logging.getLogger(__name__)

# finish_reason -> canonical stop reason
_STOP_REASONS = {
    "stop": "end_turn",
    "length": "max_tokens",
    "tool_calls": "tool_use",
}


def to_openai_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Tool definitions as OpenAI function specs."""
    return [
        {
            "type": "function",
            "function": {
                "name": t["name"],
                "description": t.get("description", ""),
                "parameters": t["input_schema"],
            },
        }
        for t in tools
    ]


def to_openai_messages(system: str, messages: list[Message]) -> list[dict[str, Any]]:
    """
    Canonical transcript -> chat completions messages.
    Tool results become role=tool messages; tool_use blocks become tool_calls.
    """
    out: list[dict[str, Any]] = [{"role": "system", "content": system}]
    for msg in messages:
        blocks = content_blocks(msg)
        if msg["role"] == "assistant":
            entry: dict[str, Any] = {"role": "assistant", "content": joined_text(blocks) or None}
            calls = [
                {
                    "id": b["id"],
                    "type": "function",
                    "function": {"name": b["name"], "arguments": json.dumps(b.get("input") or {})},
                }
                for b in blocks
                if b.get("type") == "tool_use"
            ]
            if calls:
                entry["tool_calls"] = calls
            out.append(entry)
            continue

        for b in blocks:
            if b.get("type") == "tool_result":
                out.append({"role": "tool", "tool_call_id": b["tool_use_id"], "content": b["content"]})
        text = joined_text(blocks)
        if text:
            out.append({"role": "user", "content": text})
    return out


class OpenAIService(BaseReasoningService):
    """Calls client.chat.completions.create with the query tool as a function."""

    service_id = "openai"

    def __init__(self, settings: Settings, client: Optional[OpenAI] = None):
        super().__init__(settings)
        self._client = client

    def _get_client(self) -> OpenAI:
        if self._client is None:
            api_key = os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise ReasoningServiceError("OPENAI_API_KEY not set")
            self._client = OpenAI(api_key=api_key, timeout=self.settings.request_timeout)
        return self._client

    def create(self, system: str, tools: list[dict[str, Any]], messages: list[Message]) -> ModelTurn:
        client = self._get_client()
        try:
            response = client.chat.completions.create(
                model=self.model,
                messages=to_openai_messages(system, messages),
                tools=to_openai_tools(tools),
                max_tokens=self.settings.max_tokens,
            )
        except OpenAIError as e:
            raise ReasoningServiceError(f"OpenAI request failed: {e}") from e

        choice = response.choices[0]
        message = choice.message
        content: list = []
        if message.content:
            content.append(TextBlock(text=message.content))
        for call in message.tool_calls or []:
            try:
                arguments = json.loads(call.function.arguments or "{}")
            except json.JSONDecodeError:
                arguments = None
            if not isinstance(arguments, dict):
                logger.warning("Unparseable tool arguments for %s: %r", call.id, call.function.arguments)
                arguments = {}
            content.append(ToolUseBlock(id=call.id, name=call.function.name, input=arguments))
        stop_reason = _STOP_REASONS.get(choice.finish_reason, choice.finish_reason or "")
        return ModelTurn(stop_reason=stop_reason, content=content)
