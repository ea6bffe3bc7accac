"""Bounded tool-calling conversation between the reasoning service and the query engine."""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Union

from crm_insights.config import Settings
from crm_insights.llm.base import BaseReasoningService, Message
from crm_insights.models.chat import ChatMessage, ToolUseBlock
from crm_insights.query import QUERY_CRM_TOOL, TOOL_NAME, QueryEngine

logger = logging.getLogger(__name__)

MAX_HISTORY = 6
MAX_ROUNDS = 8

SYSTEM_PROMPT = (
    "You are a CRM data analyst assistant. You have access to the query_crm tool which queries the CRM database. "
    "Always call the tool to get real data before answering - never guess or estimate. "
    "You may call it multiple times if needed to build a complete answer. "
    "Respond concisely in plain language. Format currency with $ and commas. Round percentages to one decimal place."
)

NO_ANSWER_REPLY = "I was unable to produce an answer."
ABORTED_REPLY = "I was unable to complete the analysis. Please try again."

FINAL_STOP_REASONS = ("end_turn", "max_tokens")


class AgentState(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class AgentReply:
    """Outcome of one user message: the answer plus the full replayable transcript."""

    text: str
    state: AgentState
    rounds: int
    transcript: list[Message] = field(default_factory=list)


class ChatAgent:
    """
    Drives the round loop: each round is one model call and, when the model
    asks for tools, one batch of query executions whose results are fed back.
    Ends on a text answer, an unsupported stop reason or the round budget.
    """

    def __init__(
        self,
        service: BaseReasoningService,
        engine: QueryEngine,
        *,
        max_history: int = MAX_HISTORY,
        max_rounds: int = MAX_ROUNDS,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        self.service = service
        self.engine = engine
        self.max_history = max_history
        self.max_rounds = max_rounds
        self.system_prompt = system_prompt

    @classmethod
    def from_settings(
        cls, settings: Settings, service: BaseReasoningService, engine: QueryEngine
    ) -> "ChatAgent":
        return cls(
            service,
            engine,
            max_history=settings.max_history,
            max_rounds=settings.max_rounds,
        )

    def seed_transcript(
        self, messages: Iterable[Union[ChatMessage, Mapping[str, Any]]]
    ) -> list[Message]:
        """Most recent max_history client messages as transcript entries."""
        entries = [
            m.model_dump() if isinstance(m, ChatMessage) else ChatMessage.model_validate(m).model_dump()
            for m in messages
        ]
        return entries[-self.max_history :]

    def execute_tool(self, call: ToolUseBlock) -> str:
        """Run one tool invocation; failures come back as an error payload, never raise."""
        if call.name != TOOL_NAME:
            payload: dict[str, Any] = {"error": f"Unknown tool: {call.name}"}
        else:
            try:
                payload = self.engine.execute(call.input).to_payload()
            except Exception as e:
                logger.warning("query_crm call %s failed: %s", call.id, e)
                payload = {"error": str(e)}
        return json.dumps(payload, default=str)

    def reply(self, messages: Iterable[Union[ChatMessage, Mapping[str, Any]]]) -> AgentReply:
        """Answer the latest user message. Service errors propagate as ReasoningServiceError."""
        transcript = self.seed_transcript(messages)
        state = AgentState.AWAITING_MODEL
        rounds = 0

        while state is AgentState.AWAITING_MODEL:
            if rounds >= self.max_rounds:
                logger.warning("Round budget of %d exhausted without an answer", self.max_rounds)
                state = AgentState.ABORTED
                break
            rounds += 1
            turn = self.service.create(self.system_prompt, [QUERY_CRM_TOOL], list(transcript))
            transcript.append(turn.as_message())

            if turn.stop_reason in FINAL_STOP_REASONS:
                state = AgentState.DONE
                return AgentReply(turn.text or NO_ANSWER_REPLY, state, rounds, transcript)

            if turn.stop_reason == "tool_use" and turn.tool_uses:
                state = AgentState.EXECUTING_TOOLS
                results = [
                    {"type": "tool_result", "tool_use_id": call.id, "content": self.execute_tool(call)}
                    for call in turn.tool_uses
                ]
                transcript.append({"role": "user", "content": results})
                state = AgentState.AWAITING_MODEL
                continue

            logger.warning("Unsupported stop reason %r in round %d; aborting", turn.stop_reason, rounds)
            state = AgentState.ABORTED

        return AgentReply(ABORTED_REPLY, state, rounds, transcript)
