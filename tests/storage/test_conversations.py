"""Tests for ConversationStore."""

from datetime import datetime, timedelta, timezone

import pytest

from legacy_agent.models import ChatMessage, TextBlock
from legacy_agent.storage import ConversationStore

LEGACY = "11111111-1111-4111-8111-111111111111"
T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path) -> ConversationStore:
    return ConversationStore(tmp_path)


def _message(conversation, text, role="user", at=None):
    kwargs = {"created_at": at} if at else {}
    return ChatMessage(
        conversation_id=conversation.conversation_id, role=role,
        content=[TextBlock(text=text)], **kwargs,
    )


class TestConversations:
    def test_create_and_get(self, store):
        conversation = store.create(LEGACY, "u1")
        assert store.get(LEGACY, "u1", conversation.conversation_id) == conversation

    def test_other_users_conversation_is_invisible(self, store):
        conversation = store.create(LEGACY, "u1")
        assert store.get(LEGACY, "u2", conversation.conversation_id) is None
        assert store.get(LEGACY, "u2") is None

    def test_latest_is_most_recently_updated(self, store):
        first = store.create(LEGACY, "u1")
        second = store.create(LEGACY, "u1")
        store.append_message(first, _message(first, "bump"))
        assert store.get(LEGACY, "u1").conversation_id == first.conversation_id
        assert [c.conversation_id for c in store.list_for(LEGACY, "u1")] == [
            first.conversation_id, second.conversation_id,
        ]

    def test_none_yet(self, store):
        assert store.get(LEGACY, "u1") is None
        assert store.list_for(LEGACY, "u1") == []

    def test_delete(self, store):
        conversation = store.create(LEGACY, "u1")
        store.append_message(conversation, _message(conversation, "hi"))
        assert store.delete(conversation)
        assert store.get(LEGACY, "u1") is None
        assert store.get_messages(conversation) == []
        assert not store.delete(conversation)


class TestMessages:
    def test_append_bumps_updated_at(self, store):
        conversation = store.create(LEGACY, "u1")
        before = conversation.updated_at
        store.append_message(conversation, _message(conversation, "hi"))
        reloaded = store.get(LEGACY, "u1", conversation.conversation_id)
        assert reloaded.updated_at >= before
        assert reloaded.updated_at == conversation.updated_at

    def test_messages_in_creation_order(self, store):
        conversation = store.create(LEGACY, "u1")
        store.append_message(conversation, _message(conversation, "second", at=T0 + timedelta(seconds=2)))
        store.append_message(conversation, _message(conversation, "first", at=T0))
        store.append_message(conversation, _message(conversation, "third", at=T0 + timedelta(seconds=3)))
        assert [m.text for m in store.get_messages(conversation)] == ["first", "second", "third"]

    def test_equal_timestamps_keep_append_order(self, store):
        conversation = store.create(LEGACY, "u1")
        for text in ("a", "b", "c"):
            store.append_message(conversation, _message(conversation, text, at=T0))
        assert [m.text for m in store.get_messages(conversation)] == ["a", "b", "c"]

    def test_limit_keeps_most_recent(self, store):
        conversation = store.create(LEGACY, "u1")
        for i in range(5):
            store.append_message(conversation, _message(conversation, str(i), at=T0 + timedelta(seconds=i)))
        assert [m.text for m in store.get_messages(conversation, limit=2)] == ["3", "4"]
        assert store.get_messages(conversation, limit=0) == []

    def test_tool_calls_round_trip(self, store):
        from legacy_agent.models import ToolCallRecord, ToolOutcome

        conversation = store.create(LEGACY, "u1")
        record = ToolCallRecord(
            name="add_sim_trait", input={"sim_name": "Rose", "trait_name": "Genius"},
            result=ToolOutcome.ok("Added trait 'Genius' (slot 1) to Rose"),
        )
        message = _message(conversation, "Done.", role="assistant")
        message.tool_calls = [record]
        message.input_tokens, message.output_tokens = 120, 30
        store.append_message(conversation, message)

        [loaded] = store.get_messages(conversation)
        assert loaded.tool_calls == [record]
        assert (loaded.input_tokens, loaded.output_tokens) == (120, 30)
