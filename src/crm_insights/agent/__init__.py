"""Tool-calling chat agent over the CRM query engine."""

from .loop import (
    ABORTED_REPLY,
    MAX_HISTORY,
    MAX_ROUNDS,
    NO_ANSWER_REPLY,
    SYSTEM_PROMPT,
    AgentReply,
    AgentState,
    ChatAgent,
)

__all__ = [
    "ABORTED_REPLY",
    "AgentReply",
    "AgentState",
    "ChatAgent",
    "MAX_HISTORY",
    "MAX_ROUNDS",
    "NO_ANSWER_REPLY",
    "SYSTEM_PROMPT",
]
