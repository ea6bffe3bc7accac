"""Tests for reasoning service adapters and the provider registry."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import httpx
import openai
import pytest

from crm_insights.config import Settings
from crm_insights.llm import (
    AnthropicService,
    OllamaService,
    OpenAIService,
    ReasoningServiceError,
    ReasoningServiceRegistry,
)
from crm_insights.llm.ollama_service import to_ollama_messages
from crm_insights.llm.openai_service import to_openai_messages, to_openai_tools
from crm_insights.models.chat import TextBlock, ToolUseBlock
from crm_insights.query import QUERY_CRM_TOOL

TRANSCRIPT = [
    {"role": "user", "content": "How many leads?"},
    {
        "role": "assistant",
        "content": [
            {"type": "text", "text": "Let me check."},
            {"type": "tool_use", "id": "call_1", "name": "query_crm", "input": {"entity": "leads", "operation": "count"}},
        ],
    },
    {
        "role": "user",
        "content": [{"type": "tool_result", "tool_use_id": "call_1", "content": '{"operation": "count", "result": 4}'}],
    },
]


class TestAnthropicService:
    """Tests for AnthropicService."""

    def _response(self, stop_reason: str, *blocks) -> SimpleNamespace:
        return SimpleNamespace(stop_reason=stop_reason, content=list(blocks))

    def test_text_turn(self) -> None:
        client = MagicMock()
        client.messages.create.return_value = self._response(
            "end_turn", SimpleNamespace(type="text", text="There are 4 leads.")
        )
        service = AnthropicService(Settings(max_tokens=512), client=client)
        turn = service.create("system", [QUERY_CRM_TOOL], TRANSCRIPT)

        assert turn.stop_reason == "end_turn"
        assert turn.text == "There are 4 leads."
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-haiku-4-5-20251001"
        assert kwargs["max_tokens"] == 512
        assert kwargs["system"] == "system"
        assert kwargs["tools"] == [QUERY_CRM_TOOL]
        assert kwargs["messages"] == TRANSCRIPT

    def test_tool_use_turn(self) -> None:
        client = MagicMock()
        client.messages.create.return_value = self._response(
            "tool_use",
            SimpleNamespace(type="tool_use", id="toolu_9", name="query_crm", input={"entity": "leads", "operation": "count"}),
        )
        turn = AnthropicService(Settings(), client=client).create("s", [QUERY_CRM_TOOL], TRANSCRIPT[:1])
        assert turn.stop_reason == "tool_use"
        assert turn.tool_uses == [
            ToolUseBlock(id="toolu_9", name="query_crm", input={"entity": "leads", "operation": "count"})
        ]

    def test_api_error_wrapped(self) -> None:
        client = MagicMock()
        client.messages.create.side_effect = anthropic.AnthropicError("overloaded")
        with pytest.raises(ReasoningServiceError, match="overloaded"):
            AnthropicService(Settings(), client=client).create("s", [], TRANSCRIPT[:1])

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(ReasoningServiceError, match="ANTHROPIC_API_KEY"):
            AnthropicService(Settings()).create("s", [], TRANSCRIPT[:1])


class TestOpenAIConversion:
    """Transcript and tool conversion for chat completions."""

    def test_tools_become_functions(self) -> None:
        tools = to_openai_tools([QUERY_CRM_TOOL])
        assert tools[0]["type"] == "function"
        assert tools[0]["function"]["name"] == "query_crm"
        assert tools[0]["function"]["parameters"] == QUERY_CRM_TOOL["input_schema"]

    def test_messages(self) -> None:
        out = to_openai_messages("sys", TRANSCRIPT)
        assert out[0] == {"role": "system", "content": "sys"}
        assert out[1] == {"role": "user", "content": "How many leads?"}
        assert out[2]["role"] == "assistant"
        assert out[2]["content"] == "Let me check."
        call = out[2]["tool_calls"][0]
        assert call["id"] == "call_1"
        assert json.loads(call["function"]["arguments"]) == {"entity": "leads", "operation": "count"}
        assert out[3] == {"role": "tool", "tool_call_id": "call_1", "content": '{"operation": "count", "result": 4}'}


class TestOpenAIService:
    """Tests for OpenAIService."""

    def _completion(self, finish_reason: str, content=None, tool_calls=None) -> SimpleNamespace:
        message = SimpleNamespace(content=content, tool_calls=tool_calls)
        return SimpleNamespace(choices=[SimpleNamespace(finish_reason=finish_reason, message=message)])

    def test_tool_calls_mapped(self) -> None:
        client = MagicMock()
        client.chat.completions.create.return_value = self._completion(
            "tool_calls",
            tool_calls=[
                SimpleNamespace(
                    id="call_7",
                    function=SimpleNamespace(name="query_crm", arguments='{"entity": "accounts", "operation": "count"}'),
                )
            ],
        )
        turn = OpenAIService(Settings(provider="openai"), client=client).create("s", [QUERY_CRM_TOOL], TRANSCRIPT[:1])
        assert turn.stop_reason == "tool_use"
        assert turn.tool_uses[0].input == {"entity": "accounts", "operation": "count"}
        assert client.chat.completions.create.call_args.kwargs["model"] == "gpt-4o-mini"

    def test_finish_reasons(self) -> None:
        client = MagicMock()
        service = OpenAIService(Settings(provider="openai"), client=client)
        client.chat.completions.create.return_value = self._completion("stop", content="Done.")
        assert service.create("s", [], TRANSCRIPT[:1]).stop_reason == "end_turn"
        client.chat.completions.create.return_value = self._completion("length", content="Cut")
        assert service.create("s", [], TRANSCRIPT[:1]).stop_reason == "max_tokens"
        client.chat.completions.create.return_value = self._completion("content_filter")
        assert service.create("s", [], TRANSCRIPT[:1]).stop_reason == "content_filter"

    def test_bad_arguments_become_empty_input(self) -> None:
        client = MagicMock()
        client.chat.completions.create.return_value = self._completion(
            "tool_calls",
            tool_calls=[SimpleNamespace(id="c", function=SimpleNamespace(name="query_crm", arguments="{not json"))],
        )
        turn = OpenAIService(Settings(provider="openai"), client=client).create("s", [], TRANSCRIPT[:1])
        assert turn.tool_uses[0].input == {}

    def test_api_error_wrapped(self) -> None:
        client = MagicMock()
        client.chat.completions.create.side_effect = openai.OpenAIError("rate limited")
        with pytest.raises(ReasoningServiceError, match="rate limited"):
            OpenAIService(Settings(provider="openai"), client=client).create("s", [], TRANSCRIPT[:1])

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ReasoningServiceError, match="OPENAI_API_KEY"):
            OpenAIService(Settings(provider="openai")).create("s", [], TRANSCRIPT[:1])


class TestOllamaService:
    """Tests for OllamaService over a mocked transport."""

    def _service(self, handler) -> OllamaService:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        return OllamaService(Settings(provider="ollama", ollama_url="http://ollama.test/"), client=client)

    def test_messages_carry_tool_name(self) -> None:
        out = to_ollama_messages("sys", TRANSCRIPT)
        assert out[2]["tool_calls"][0]["function"]["arguments"] == {"entity": "leads", "operation": "count"}
        assert out[3] == {"role": "tool", "content": '{"operation": "count", "result": 4}', "tool_name": "query_crm"}

    def test_request_and_text_reply(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "4 leads."}, "done_reason": "stop"})

        turn = self._service(handler).create("sys", [QUERY_CRM_TOOL], TRANSCRIPT[:1])
        assert turn.stop_reason == "end_turn"
        assert turn.content == [TextBlock(text="4 leads.")]
        assert seen["url"] == "http://ollama.test/api/chat"
        assert seen["body"]["model"] == "llama3.2"
        assert seen["body"]["stream"] is False
        assert seen["body"]["tools"][0]["function"]["name"] == "query_crm"

    def test_tool_calls_get_ids(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={
                    "message": {
                        "role": "assistant",
                        "content": "",
                        "tool_calls": [{"function": {"name": "query_crm", "arguments": {"entity": "leads", "operation": "count"}}}],
                    },
                    "done_reason": "stop",
                },
            )

        turn = self._service(handler).create("sys", [QUERY_CRM_TOOL], TRANSCRIPT[:1])
        assert turn.stop_reason == "tool_use"
        call = turn.tool_uses[0]
        assert call.id.startswith("call_")
        assert call.input == {"entity": "leads", "operation": "count"}

    def test_http_error_wrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="model not found")

        with pytest.raises(ReasoningServiceError, match="Ollama request failed"):
            self._service(handler).create("sys", [], TRANSCRIPT[:1])


class TestReasoningServiceRegistry:
    """Tests for ReasoningServiceRegistry."""

    def test_get_known_providers(self) -> None:
        settings = Settings()
        assert isinstance(ReasoningServiceRegistry.get("anthropic", settings), AnthropicService)
        assert isinstance(ReasoningServiceRegistry.get("OpenAI", settings), OpenAIService)
        assert isinstance(ReasoningServiceRegistry.get("ollama", settings), OllamaService)

    def test_for_settings(self) -> None:
        service = ReasoningServiceRegistry.for_settings(Settings(provider="ollama", model="qwen2.5"))
        assert isinstance(service, OllamaService)
        assert service.model == "qwen2.5"

    def test_unknown_provider(self) -> None:
        with pytest.raises(ValueError, match="Unknown provider: gemini"):
            ReasoningServiceRegistry.get("gemini", Settings())

    def test_available_services(self) -> None:
        assert ReasoningServiceRegistry.available_services() == ["anthropic", "openai", "ollama"]
