#!/usr/bin/env python3
"""Quick live check of the chat agent against a real reasoning service.

Run:
  poetry run python scripts/chat_live.py                       # default question, provider from env
  poetry run python scripts/chat_live.py "Median deal size?"   # custom question
  CRM_INSIGHTS_LLM_PROVIDER=ollama poetry run python scripts/chat_live.py
"""

import sys

from crm_insights.agent import AgentState, ChatAgent
from crm_insights.config import Settings
from crm_insights.llm import ReasoningServiceRegistry
from crm_insights.query import QueryEngine
from crm_insights.store import load_crm_data


def main() -> None:
    question = sys.argv[1] if len(sys.argv) > 1 else "What is total revenue for Closed Won deals?"
    settings = Settings.from_env()
    service = ReasoningServiceRegistry.for_settings(settings)
    print(f"Provider: {service.service_id} ({service.model}), data: {settings.data_dir}")

    agent = ChatAgent.from_settings(settings, service, QueryEngine(load_crm_data(settings.data_dir)))
    result = agent.reply([{"role": "user", "content": question}])

    tool_calls = [
        block["input"]
        for msg in result.transcript
        if msg["role"] == "assistant" and isinstance(msg["content"], list)
        for block in msg["content"]
        if block.get("type") == "tool_use"
    ]
    print(f"Rounds: {result.rounds}, tool calls: {len(tool_calls)}")
    for i, call in enumerate(tool_calls, 1):
        print(f"  {i}. {call}")
    print(f"\n{result.text}")
    if result.state is not AgentState.DONE:
        print("\n⚠️ Agent did not finish cleanly. Check logs for the stop reason.")


if __name__ == "__main__":
    main()
