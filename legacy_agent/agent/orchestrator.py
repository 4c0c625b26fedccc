"""Turn loop: drives one user message through model calls and tool rounds.

    ModelTurn ──tool_use blocks──▶ ToolRound ──▶ ModelTurn ... (at most max_rounds)
        │
        └──no tool_use──▶ Terminal (shape the text, return TurnResult)

A response containing any tool_use block is treated as a tool request
whatever its stop_reason says. When the round cap is reached the loop ends
with the response in hand; unanswered tool requests in it are dropped and
only its text is used.

An empty or failed first response is retried once with just the current user
message, in case the endpoint choked on a long history. A second failure
raises LLMError.

Once a tool has run, a failing model call no longer raises: the turn ends and
the reply is built from the tool outcomes, so the caller still records the
tool calls that changed the legacy.

Every model call is bounded by `timeout`; a timeout raises LLMError.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import BaseModel, Field

from legacy_agent.llm import LLM, LLMError, ModelMessage, ModelRequest, ModelResponse
from legacy_agent.models import (
    ContentBlock,
    Role,
    TextBlock,
    ToolCallRecord,
    ToolDefinition,
    ToolResultBlock,
    text_of,
    tool_uses,
)

from .catalog import list_tools
from .executor import ToolExecutor
from .shaping import shape_reply

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROUNDS = 5


class TurnResult(BaseModel):
    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model_id: str = ""
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    rounds: int = 0


def append_turn(messages: list[ModelMessage], role: Role, blocks: list[ContentBlock]) -> None:
    """Append a turn, merging into the previous one when the role repeats.

    Chat endpoints expect user and assistant turns to alternate.
    """
    if not blocks:
        return
    if messages and messages[-1].role == role:
        messages[-1] = ModelMessage(role=role, content=[*messages[-1].content, *blocks])
    else:
        messages.append(ModelMessage(role=role, content=list(blocks)))


def is_question(text: str) -> bool:
    return "?" in text


def outcome_text(record: ToolCallRecord) -> str:
    """One sentence reporting what a tool call did."""
    text = (record.result.message or record.result.error or "").strip()
    if text and text[-1] not in ".!?":
        text += "."
    return text


class TurnLoop:
    """Runs the model/tool exchange for one turn. Holds no per-turn state."""

    def __init__(
        self,
        llm: LLM,
        *,
        tools: list[ToolDefinition] | None = None,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        max_tokens: int = 1024,
        temperature: float = 0.3,
        timeout: float = 60.0,
    ) -> None:
        self._llm = llm
        self._tools = list_tools() if tools is None else tools
        self._max_rounds = max_rounds
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout = timeout

    async def _call(
        self,
        messages: list[ModelMessage],
        system: str,
        tools: list[ToolDefinition],
    ) -> ModelResponse:
        request = ModelRequest(
            messages=list(messages),
            system=system,
            tools=tools,
            max_tokens=self._max_tokens,
            temperature=self._temperature,
        )
        try:
            return await asyncio.wait_for(self._llm(request), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise LLMError(f"LLM request timed out after {self._timeout}s") from e

    async def run(
        self,
        history: list[ModelMessage],
        user_text: str,
        system: str,
        executor: ToolExecutor,
    ) -> TurnResult:
        """Answer `user_text`, the last user turn in `history`.

        `history` is not modified; the loop works on its own copy.
        """
        messages = list(history)
        question = is_question(user_text)
        pre_tool: list[str] = []
        records: list[ToolCallRecord] = []
        input_tokens = output_tokens = 0

        def count(response: ModelResponse) -> None:
            nonlocal input_tokens, output_tokens
            input_tokens += response.usage.input_tokens
            output_tokens += response.usage.output_tokens

        logger.debug("Turn start: %d history messages, question=%s", len(messages), question)
        response: ModelResponse | None
        try:
            response = await self._call(messages, system, self._tools)
        except LLMError as e:
            logger.warning("Model call failed (%s); retrying with the user message only", e)
            response = None
        else:
            count(response)

        if response is None or not response.content:
            if response is not None:
                logger.warning("Empty model response; retrying with the user message only")
            retry_messages = [ModelMessage(role="user", content=[TextBlock(text=user_text)])]
            response = await self._call(retry_messages, system, self._tools)
            count(response)
            messages = retry_messages

        rounds = 0
        failed = False
        while tool_uses(response.content):
            if rounds >= self._max_rounds:
                logger.warning("Round cap (%d) reached; ending turn", self._max_rounds)
                break
            rounds += 1

            # Answer-first: get a direct reply before the model acts on tools.
            if question and not pre_tool:
                try:
                    answer = await self._call(messages, system, [])
                except LLMError as e:
                    logger.warning("Answer-first call failed, continuing without it: %s", e)
                    answer = ModelResponse()
                count(answer)
                answer_text = "\n".join(text_of(answer.content)).strip()
                if answer_text:
                    pre_tool.append(answer_text)
                    append_turn(messages, "assistant", [TextBlock(text=answer_text)])

            if question:
                pre_tool.extend(t.strip() for t in text_of(response.content) if t.strip())

            append_turn(messages, "assistant", response.content)

            results: list[ContentBlock] = []
            for call in tool_uses(response.content):
                outcome = executor.execute(call.name, call.input)
                logger.debug("Round %d: %s → success=%s", rounds, call.name, outcome.success)
                records.append(ToolCallRecord(name=call.name, input=call.input, result=outcome))
                results.append(ToolResultBlock(
                    tool_use_id=call.id,
                    content=outcome.model_dump_json(exclude_none=True),
                    is_error=not outcome.success,
                ))
            append_turn(messages, "user", results)

            model_id = response.model
            try:
                response = await self._call(messages, system, self._tools)
            except LLMError as e:
                logger.warning("Model call failed after %d tool calls; ending turn: %s", len(records), e)
                response = ModelResponse(model=model_id)
                failed = True
                break
            count(response)

        if failed:
            final = " ".join(outcome_text(r) for r in records)
        else:
            final = "\n".join(t.strip() for t in text_of(response.content) if t.strip())
        missing = [piece for piece in pre_tool if piece not in final]
        if missing:
            prefix = "\n\n".join(missing)
            final = f"{prefix}\n\n{final}" if final else prefix

        return TurnResult(
            text=shape_reply(final, tools_ran=bool(records)),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model_id=response.model or getattr(self._llm, "model", ""),
            tool_calls=records,
            rounds=rounds,
        )
