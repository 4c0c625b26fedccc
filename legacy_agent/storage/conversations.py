"""Conversation storage (append-only message log per conversation)."""

from __future__ import annotations

import shutil
from datetime import datetime, timezone
from pathlib import Path

from legacy_agent.models import ChatMessage, Conversation

from .core import read_json, write_json


class ConversationStore:
    """Conversations live under the legacy they concern:

        {base}/legacies/{legacy_id}/conversations/
          {conversation_id}.json            ← conversation metadata
          {conversation_id}/messages.json   ← ordered ChatMessage list
    """

    def __init__(self, base_path: Path) -> None:
        self._legacy_root = base_path / "legacies"

    def _dir(self, legacy_id: str) -> Path:
        return self._legacy_root / legacy_id / "conversations"

    def _meta_file(self, conversation: Conversation) -> Path:
        return self._dir(conversation.legacy_id) / f"{conversation.conversation_id}.json"

    def _messages_file(self, conversation: Conversation) -> Path:
        return self._dir(conversation.legacy_id) / conversation.conversation_id / "messages.json"

    def _save(self, conversation: Conversation) -> None:
        write_json(self._meta_file(conversation), conversation.model_dump(mode="json"))

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def create(self, legacy_id: str, user_id: str) -> Conversation:
        conversation = Conversation(legacy_id=legacy_id, user_id=user_id)
        self._save(conversation)
        return conversation

    def list_for(self, legacy_id: str, user_id: str) -> list[Conversation]:
        """All of the user's conversations about a legacy, most recently updated first."""
        directory = self._dir(legacy_id)
        if not directory.is_dir():
            return []
        found = [
            Conversation.model_validate(read_json(path))
            for path in directory.glob("*.json")
        ]
        found = [c for c in found if c.user_id == user_id]
        return sorted(found, key=lambda c: c.updated_at, reverse=True)

    def get(
        self, legacy_id: str, user_id: str, conversation_id: str | None = None
    ) -> Conversation | None:
        """The named conversation, or the user's latest one when no id is given."""
        if conversation_id is None:
            latest = self.list_for(legacy_id, user_id)
            return latest[0] if latest else None
        path = self._dir(legacy_id) / f"{conversation_id}.json"
        if not path.is_file():
            return None
        conversation = Conversation.model_validate(read_json(path))
        if conversation.user_id != user_id:
            return None
        return conversation

    def delete(self, conversation: Conversation) -> bool:
        meta = self._meta_file(conversation)
        if not meta.is_file():
            return False
        meta.unlink()
        child_dir = meta.with_suffix("")
        if child_dir.is_dir():
            shutil.rmtree(child_dir)
        return True

    # ------------------------------------------------------------------
    # Messages (append-only)
    # ------------------------------------------------------------------

    def get_messages(
        self, conversation: Conversation, limit: int | None = None
    ) -> list[ChatMessage]:
        """Messages in creation order; with `limit`, only the most recent ones."""
        path = self._messages_file(conversation)
        if not path.is_file():
            return []
        messages = [ChatMessage.model_validate(m) for m in read_json(path)]
        # sorted() is stable, so equal timestamps keep append order
        messages = sorted(messages, key=lambda m: m.created_at)
        if limit is not None:
            messages = messages[-limit:] if limit > 0 else []
        return messages

    def append_message(self, conversation: Conversation, message: ChatMessage) -> ChatMessage:
        """Append a message and bump the conversation's updated_at."""
        path = self._messages_file(conversation)
        existing = read_json(path) if path.is_file() else []
        existing.append(message.model_dump(mode="json"))
        write_json(path, existing)
        conversation.updated_at = datetime.now(timezone.utc)
        self._save(conversation)
        return message
