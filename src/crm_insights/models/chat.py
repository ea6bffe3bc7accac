"""Chat transcript models: inbound messages and normalized model turns."""

from typing import Any, Literal, Union

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """One message of client-supplied chat history."""

    role: Literal["user", "assistant"]
    content: str


class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    """A tool invocation requested by the reasoning service."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


ContentBlock = Union[TextBlock, ToolUseBlock]


class ModelTurn(BaseModel):
    """
    Provider-neutral response from the reasoning service.
    stop_reason uses the end_turn | max_tokens | tool_use vocabulary;
    adapters map their own finish reasons onto it and pass unknown ones through.
    """

    stop_reason: str
    content: list[ContentBlock] = Field(default_factory=list)

    @property
    def text(self) -> str:
        """First text segment, or empty string."""
        for block in self.content:
            if isinstance(block, TextBlock) and block.text:
                return block.text
        return ""

    @property
    def tool_uses(self) -> list[ToolUseBlock]:
        return [b for b in self.content if isinstance(b, ToolUseBlock)]

    def as_message(self) -> dict[str, Any]:
        """Assistant transcript entry carrying every block of this turn."""
        return {"role": "assistant", "content": [b.model_dump() for b in self.content]}
