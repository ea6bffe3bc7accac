"""Ollama /api/chat adapter over httpx (local models with tool support)."""

import json
import uuid
from typing import Any, Optional

import httpx

from crm_insights.config import Settings
from crm_insights.models.chat import ModelTurn, TextBlock, ToolUseBlock

from .base import BaseReasoningService, Message, ReasoningServiceError, content_blocks, joined_text
from .openai_service import to_openai_tools


def to_ollama_messages(system: str, messages: list[Message]) -> list[dict[str, Any]]:
    """Canonical transcript -> Ollama chat messages (tool results carry the tool name)."""
    out: list[dict[str, Any]] = [{"role": "system", "content": system}]
    tool_names: dict[str, str] = {}
    for msg in messages:
        blocks = content_blocks(msg)
        if msg["role"] == "assistant":
            entry: dict[str, Any] = {"role": "assistant", "content": joined_text(blocks)}
            calls = []
            for b in blocks:
                if b.get("type") == "tool_use":
                    tool_names[b["id"]] = b["name"]
                    calls.append({"function": {"name": b["name"], "arguments": b.get("input") or {}}})
            if calls:
                entry["tool_calls"] = calls
            out.append(entry)
            continue

        for b in blocks:
            if b.get("type") == "tool_result":
                out.append(
                    {
                        "role": "tool",
                        "content": b["content"],
                        "tool_name": tool_names.get(b["tool_use_id"], ""),
                    }
                )
        text = joined_text(blocks)
        if text:
            out.append({"role": "user", "content": text})
    return out


class OllamaService(BaseReasoningService):
    """Posts non-streaming chat requests to a local Ollama server."""

    service_id = "ollama"

    def __init__(self, settings: Settings, client: Optional[httpx.Client] = None):
        super().__init__(settings)
        self._client = client or httpx.Client(timeout=settings.request_timeout)

    def create(self, system: str, tools: list[dict[str, Any]], messages: list[Message]) -> ModelTurn:
        url = f"{self.settings.ollama_url.rstrip('/')}/api/chat"
        payload = {
            "model": self.model,
            "messages": to_ollama_messages(system, messages),
            "tools": to_openai_tools(tools),
            "stream": False,
            "options": {"num_predict": self.settings.max_tokens},
        }
        try:
            resp = self._client.post(url, json=payload)
            resp.raise_for_status()
            out = resp.json()
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            raise ReasoningServiceError(f"Ollama request failed: {e}") from e

        message = out.get("message") or {}
        content: list = []
        if message.get("content"):
            content.append(TextBlock(text=message["content"]))
        for call in message.get("tool_calls") or []:
            fn = call.get("function") or {}
            arguments = fn.get("arguments")
            if isinstance(arguments, str):
                try:
                    arguments = json.loads(arguments)
                except json.JSONDecodeError:
                    arguments = {}
            content.append(
                ToolUseBlock(
                    id=call.get("id") or f"call_{uuid.uuid4().hex[:12]}",
                    name=fn.get("name", ""),
                    input=arguments if isinstance(arguments, dict) else {},
                )
            )

        if any(isinstance(b, ToolUseBlock) for b in content):
            stop_reason = "tool_use"
        else:
            done_reason = out.get("done_reason") or "stop"
            stop_reason = {"stop": "end_turn", "length": "max_tokens"}.get(done_reason, done_reason)
        return ModelTurn(stop_reason=stop_reason, content=content)
