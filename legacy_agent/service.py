"""Chat service — the surface the HTTP layer calls.

send_message validates everything (ids, text length, ownership) before it
writes anything or calls the model. Failures are raised as ChatError
subclasses; LLMError from the model call propagates unchanged.
"""

from __future__ import annotations

import logging
import uuid

from pydantic import BaseModel, Field

from legacy_agent.agent import ContextAssembler, ToolExecutor, TurnLoop, append_turn
from legacy_agent.config import AgentConfig
from legacy_agent.llm import LLM, EchoLLM, HttpLLM, ModelMessage
from legacy_agent.models import (
    ChatMessage,
    Conversation,
    TextBlock,
    ToolCallRecord,
)
from legacy_agent.prompts import PromptTemplate
from legacy_agent.storage import (
    ConversationStore,
    Reference,
    Storage,
    load_reference,
    load_rules,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ChatError(Exception):
    """Base class for errors reported back to the caller."""


class InvalidRequest(ChatError):
    pass


class NotFound(ChatError):
    """Missing, or owned by someone else. Both report the same message."""


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class AssistantReply(BaseModel):
    role: str = "assistant"
    content: str
    input_tokens: int = 0
    output_tokens: int = 0
    model_id: str = ""
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)


class ChatReply(BaseModel):
    conversation_id: str
    reply: AssistantReply


class ConversationView(BaseModel):
    conversation: Conversation | None = None
    messages: list[ChatMessage] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _require_uuid(value: str | None, field: str) -> str:
    try:
        return str(uuid.UUID(str(value)))
    except ValueError:
        raise InvalidRequest(f"{field} must be a valid UUID") from None


def _optional_uuid(value: str | None, field: str) -> str | None:
    if value is None or value == "":
        return None
    return _require_uuid(value, field)


def _validate_text(text: object, limit: int) -> str:
    if not isinstance(text, str) or not text.strip():
        raise InvalidRequest("message is required")
    if len(text) > limit:
        raise InvalidRequest(f"message must be {limit} characters or fewer")
    return text.strip()


def to_model_history(messages: list[ChatMessage]) -> list[ModelMessage]:
    """Replayable model turns from stored messages (text only, user first)."""
    history: list[ModelMessage] = []
    for message in messages:
        text = message.text.strip()
        if not text:
            continue
        if not history and message.role != "user":
            continue
        append_turn(history, message.role, [TextBlock(text=text)])
    return history


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ChatService:
    def __init__(
        self,
        storage: Storage,
        conversations: ConversationStore,
        reference: Reference,
        assembler: ContextAssembler,
        turn_loop: TurnLoop,
        *,
        history_limit: int = 20,
        message_limit: int = 8000,
    ) -> None:
        self.storage = storage
        self.conversations = conversations
        self.reference = reference
        self._assembler = assembler
        self._turn_loop = turn_loop
        self._history_limit = history_limit
        self._message_limit = message_limit

    @classmethod
    def from_config(cls, config: AgentConfig, llm: LLM | None = None) -> ChatService:
        """Wire every component from config. An empty provider URL selects EchoLLM."""
        if llm is None:
            if config.provider_url:
                llm = HttpLLM(
                    provider_url=config.provider_url,
                    api_key=config.api_key,
                    provider_format=config.provider_format,
                    model=config.model,
                    timeout=config.timeout,
                )
            else:
                logger.warning("LLM_PROVIDER_URL not set — using EchoLLM")
                llm = EchoLLM()

        storage = Storage(config.data_dir)
        return cls(
            storage=storage,
            conversations=ConversationStore(config.data_dir),
            reference=load_reference(config.presets_dir),
            assembler=ContextAssembler(storage, load_rules(config.presets_dir), PromptTemplate()),
            turn_loop=TurnLoop(
                llm,
                max_rounds=config.max_rounds,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                timeout=config.timeout,
            ),
            history_limit=config.history_limit,
            message_limit=config.message_limit,
        )

    def _owned(self, legacy_id: str, user_id: str) -> None:
        if self.storage.get_owned_legacy(legacy_id, user_id) is None:
            raise NotFound("Legacy not found")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def send_message(
        self,
        user_id: str,
        legacy_id: str,
        text: str,
        conversation_id: str | None = None,
    ) -> ChatReply:
        legacy_id = _require_uuid(legacy_id, "legacy_id")
        conversation_id = _optional_uuid(conversation_id, "conversation_id")
        text = _validate_text(text, self._message_limit)
        self._owned(legacy_id, user_id)

        conversation = self.conversations.get(legacy_id, user_id, conversation_id)
        if conversation is None:
            if conversation_id is not None:
                raise NotFound("Conversation not found")
            conversation = self.conversations.create(legacy_id, user_id)
            logger.info("Started conversation %s on legacy %s", conversation.conversation_id, legacy_id)

        prior = self.conversations.get_messages(conversation, limit=self._history_limit)
        self.conversations.append_message(conversation, ChatMessage(
            conversation_id=conversation.conversation_id,
            role="user",
            content=[TextBlock(text=text)],
        ))

        context = self._assembler.build(legacy_id, user_id)
        if context is None:
            raise NotFound("Legacy not found")

        history = to_model_history(prior)
        append_turn(history, "user", [TextBlock(text=text)])

        executor = ToolExecutor(self.storage, self.reference, legacy_id)
        result = await self._turn_loop.run(history, text, context.system_prompt, executor)
        logger.info(
            "Turn on legacy %s: %d rounds, %d tool calls, %d/%d tokens",
            legacy_id, result.rounds, len(result.tool_calls),
            result.input_tokens, result.output_tokens,
        )

        self.conversations.append_message(conversation, ChatMessage(
            conversation_id=conversation.conversation_id,
            role="assistant",
            content=[TextBlock(text=result.text)],
            input_tokens=result.input_tokens,
            output_tokens=result.output_tokens,
            tool_calls=result.tool_calls or None,
        ))

        return ChatReply(
            conversation_id=conversation.conversation_id,
            reply=AssistantReply(
                content=result.text,
                input_tokens=result.input_tokens,
                output_tokens=result.output_tokens,
                model_id=result.model_id,
                tool_calls=result.tool_calls,
            ),
        )

    def get_conversation(
        self, user_id: str, legacy_id: str, conversation_id: str | None = None
    ) -> ConversationView:
        legacy_id = _require_uuid(legacy_id, "legacy_id")
        conversation_id = _optional_uuid(conversation_id, "conversation_id")
        self._owned(legacy_id, user_id)

        conversation = self.conversations.get(legacy_id, user_id, conversation_id)
        if conversation is None:
            return ConversationView()
        return ConversationView(
            conversation=conversation,
            messages=self.conversations.get_messages(conversation),
        )

    def clear_conversation(
        self, user_id: str, legacy_id: str, conversation_id: str | None = None
    ) -> bool:
        """Delete one conversation, or all of the user's conversations on the legacy."""
        legacy_id = _require_uuid(legacy_id, "legacy_id")
        conversation_id = _optional_uuid(conversation_id, "conversation_id")
        self._owned(legacy_id, user_id)

        if conversation_id is not None:
            conversation = self.conversations.get(legacy_id, user_id, conversation_id)
            return conversation is not None and self.conversations.delete(conversation)

        deleted = False
        for conversation in self.conversations.list_for(legacy_id, user_id):
            deleted = self.conversations.delete(conversation) or deleted
        return deleted
