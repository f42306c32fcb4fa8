"""Tool-augmented agent loop for the furniture store chat assistant.

Architecture:
  One turn is a bounded decision cycle::

      load history → + user message
        └─► model ──► FinalAnswer  ──► persist new messages → reply
              ▲   └─► ToolCalls    ──► run tools → + tool results ─┐
              └─────────────────────────────────────────────────────┘

  * Every model call goes through :func:`with_retry` (rate limits only).
  * The model's response is interpreted as a tagged variant,
    ``FinalAnswer`` or ``ToolCalls``, rather than poked at ad hoc.
  * The messages produced during the turn live in an explicit accumulator
    and are appended to the conversation store once the model has answered.
    A failed turn persists nothing, so the stored thread stays consistent.

  The model client, the conversation store and the tools are built once at
  startup (see :func:`create_inventory_agent`) and passed in, which keeps the
  loop testable with substitute collaborators.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    InvalidToolCall,
    SystemMessage,
    ToolCall,
    ToolMessage,
)
from langchain_core.tools import BaseTool

from src.config import (
    AGENT_MAX_CYCLES,
    LLM_MAX_ATTEMPTS,
    MODEL_NAME,
    MODEL_TEMPERATURE,
    RETRY_BASE_DELAY_SECONDS,
    RETRY_MAX_DELAY_SECONDS,
    anthropic_api_key,
)
from src.errors import AgentError, LoopExceeded, ProviderUnavailable, translate_provider_error
from src.prompts import get_system_prompt
from src.services.conversation_store import ConversationStore, create_conversation_store
from src.services.inventory_store import ChromaInventoryStore
from src.services.metrics import metrics
from src.services.retry import with_retry
from src.tools.inventory import InventoryLookup

logger = logging.getLogger(__name__)


# ── Model decisions ──────────────────────────────────────────────────


@dataclass(frozen=True)
class FinalAnswer:
    text: str


@dataclass(frozen=True)
class ToolCalls:
    calls: list[ToolCall]
    # calls whose arguments could not be parsed; answered with an error result
    invalid: list[InvalidToolCall] = field(default_factory=list)


ModelDecision = FinalAnswer | ToolCalls


def _message_text(message: BaseMessage) -> str:
    """Flatten string or content-block message content into plain text."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def interpret_response(message: AIMessage) -> ModelDecision:
    """Classify a model response as a final answer or a batch of tool calls."""
    calls = getattr(message, "tool_calls", None) or []
    invalid = getattr(message, "invalid_tool_calls", None) or []
    if calls or invalid:
        return ToolCalls(list(calls), list(invalid))
    return FinalAnswer(_message_text(message))


@dataclass(frozen=True)
class AgentReply:
    response: str
    thread_id: str


# ── Agent loop ───────────────────────────────────────────────────────


class InventoryAgent:
    """Runs chat turns against a tool-calling model."""

    def __init__(
        self,
        llm,
        conversations: ConversationStore,
        tools: Sequence[BaseTool],
        *,
        max_cycles: int = AGENT_MAX_CYCLES,
        max_attempts: int = LLM_MAX_ATTEMPTS,
        retry_base_delay: float = RETRY_BASE_DELAY_SECONDS,
        retry_max_delay: float = RETRY_MAX_DELAY_SECONDS,
        system_prompt: Callable[[], str] = get_system_prompt,
    ) -> None:
        if max_cycles < 1:
            raise ValueError("max_cycles must be at least 1")
        self._llm = llm
        self._conversations = conversations
        self._tools = {t.name: t for t in tools}
        self._max_cycles = max_cycles
        self._max_attempts = max_attempts
        self._retry_base_delay = retry_base_delay
        self._retry_max_delay = retry_max_delay
        self._system_prompt = system_prompt

    @property
    def conversations(self) -> ConversationStore:
        return self._conversations

    async def run(self, thread_id: str | None, user_message: str) -> AgentReply:
        """Process one user message and return the assistant's reply.

        A missing *thread_id* starts a new thread; the generated id is
        returned in the reply.

        Raises:
            ValueError: *user_message* is empty.
            AgentError: the model or conversation store failed, or the
                decision cycle exceeded its bound.
        """
        if not user_message or not user_message.strip():
            raise ValueError("user_message must not be empty")

        if not thread_id:
            thread_id = str(uuid.uuid4())
            logger.info("Starting new thread %s", thread_id)

        try:
            history = await self._conversations.load(thread_id)
        except Exception as exc:
            raise ProviderUnavailable("conversation_store", str(exc)) from exc

        turn: list[BaseMessage] = [HumanMessage(content=user_message)]
        answer = await self._decide(history, turn)

        try:
            await self._conversations.append(thread_id, turn)
        except Exception as exc:
            raise ProviderUnavailable("conversation_store", str(exc)) from exc

        logger.info(
            "Thread %s: turn complete (%d new messages)", thread_id, len(turn),
        )
        return AgentReply(response=answer, thread_id=thread_id)

    async def _decide(self, history: list[BaseMessage], turn: list[BaseMessage]) -> str:
        """Alternate model calls and tool runs until the model answers.

        *turn* is the accumulator for this turn's messages and is extended
        in place.
        """
        for cycle in range(1, self._max_cycles + 1):
            response = await self._call_model(history + turn)
            turn.append(response)

            decision = interpret_response(response)
            if isinstance(decision, FinalAnswer):
                logger.debug("Final answer after %d cycle(s)", cycle)
                return decision.text

            logger.debug(
                "Cycle %d: model requested %s",
                cycle, ", ".join(call["name"] for call in decision.calls) or "-",
            )
            turn.extend(await self._run_tools(decision.calls))
            turn.extend(self._reject_invalid(call) for call in decision.invalid)

        logger.error("No final answer after %d cycles", self._max_cycles)
        raise LoopExceeded(self._max_cycles)

    async def _call_model(self, messages: list[BaseMessage]) -> AIMessage:
        prompt = [SystemMessage(content=self._system_prompt()), *messages]

        async def invoke():
            with metrics.timed("anthropic", "llm_invoke"):
                return await self._llm.ainvoke(prompt)

        try:
            return await with_retry(
                invoke,
                self._max_attempts,
                base_delay=self._retry_base_delay,
                max_delay=self._retry_max_delay,
            )
        except AgentError:
            raise
        except Exception as exc:
            raise translate_provider_error(exc, "anthropic") from exc

    async def _run_tools(self, calls: list[ToolCall]) -> list[ToolMessage]:
        # gather() keeps results in the order the model requested them
        return list(await asyncio.gather(*(self._run_tool(call) for call in calls)))

    @staticmethod
    def _reject_invalid(call: InvalidToolCall) -> ToolMessage:
        name = call.get("name") or ""
        logger.warning("Model sent malformed arguments for tool %r: %s", name, call.get("error"))
        content = json.dumps({
            "error": "InvalidToolCall",
            "message": f"Could not parse arguments for tool {name!r}",
            "details": call.get("error") or "",
        })
        return ToolMessage(content=content, tool_call_id=call.get("id") or "", name=name)

    async def _run_tool(self, call: ToolCall) -> ToolMessage:
        name = call["name"]
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Model requested unknown tool %r", name)
            content = json.dumps({"error": "UnknownTool", "message": f"Unknown tool: {name}"})
        else:
            try:
                content = await tool.ainvoke(call.get("args") or {})
            except Exception as exc:
                logger.exception("Tool %s failed", name)
                content = json.dumps({"error": "ToolFailed", "details": str(exc)})

        if not isinstance(content, str):
            content = json.dumps(content, default=str)
        return ToolMessage(content=content, tool_call_id=call.get("id") or "", name=name)


# ── Assembly ─────────────────────────────────────────────────────────


def build_llm(tools: Sequence[BaseTool]):
    """Build the chat model with the tools bound.

    SDK-level retries are disabled; :func:`with_retry` owns retry policy.
    """
    llm = ChatAnthropic(
        model=MODEL_NAME,
        api_key=anthropic_api_key(),
        temperature=MODEL_TEMPERATURE,
        max_tokens=1024,
        max_retries=0,
    )
    return llm.bind_tools(list(tools))


def create_inventory_agent(
    inventory: ChromaInventoryStore | None = None,
    conversations: ConversationStore | None = None,
) -> InventoryAgent:
    """Wire the inventory store, conversation store, tools and model together."""
    inventory = inventory or ChromaInventoryStore.from_settings()
    conversations = conversations or create_conversation_store()
    tools = [InventoryLookup(inventory).as_tool()]

    agent = InventoryAgent(build_llm(tools), conversations, tools)
    logger.debug(
        "Inventory agent ready. model: %s, tools: %s, max cycles: %d",
        MODEL_NAME, ", ".join(t.name for t in tools), AGENT_MAX_CYCLES,
    )
    return agent
