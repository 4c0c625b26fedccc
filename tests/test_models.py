"""Tests for legacy_agent.models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from legacy_agent.models import (
    ChatMessage,
    ContentBlock,
    Legacy,
    Sim,
    TextBlock,
    ToolOutcome,
    ToolResultBlock,
    ToolUseBlock,
    text_of,
    tool_uses,
)

BLOCK = TypeAdapter(ContentBlock)


class TestContentBlocks:
    def test_discriminated_by_type(self) -> None:
        assert isinstance(BLOCK.validate_python({"type": "text", "text": "hi"}), TextBlock)
        block = BLOCK.validate_python(
            {"type": "tool_use", "id": "toolu_1", "name": "get_sim_details", "input": {"sim_name": "Rose"}}
        )
        assert isinstance(block, ToolUseBlock)
        assert block.input == {"sim_name": "Rose"}
        result = BLOCK.validate_python({"type": "tool_result", "tool_use_id": "toolu_1", "content": "{}"})
        assert isinstance(result, ToolResultBlock)
        assert result.is_error is False

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BLOCK.validate_python({"type": "image", "source": {}})

    def test_helpers(self) -> None:
        blocks = [
            TextBlock(text="one"),
            ToolUseBlock(id="a", name="get_generation_progress"),
            TextBlock(text="two"),
        ]
        assert text_of(blocks) == ["one", "two"]
        assert [b.id for b in tool_uses(blocks)] == ["a"]


class TestToolOutcome:
    def test_ok(self) -> None:
        outcome = ToolOutcome.ok("Done", {"sim_id": "x"})
        assert outcome.success
        assert outcome.error is None
        assert outcome.data == {"sim_id": "x"}

    def test_fail_serialises_without_empty_fields(self) -> None:
        outcome = ToolOutcome.fail("Sim 'Bob' not found in your legacy")
        assert outcome.model_dump(exclude_none=True) == {
            "success": False, "error": "Sim 'Bob' not found in your legacy",
        }


class TestChatMessage:
    def test_text_joins_text_blocks(self) -> None:
        message = ChatMessage(
            conversation_id="c", role="assistant",
            content=[TextBlock(text="a"), ToolUseBlock(id="t", name="x"), TextBlock(text="b")],
        )
        assert message.text == "a\nb"

    def test_serialise_roundtrip(self) -> None:
        message = ChatMessage(conversation_id="c", role="user", content=[TextBlock(text="hi")])
        assert ChatMessage.model_validate_json(message.model_dump_json()) == message

    def test_invalid_role_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ChatMessage(conversation_id="c", role="system", content=[])


class TestLegacyDomain:
    def test_sim_defaults(self) -> None:
        sim = Sim(legacy_id="L", name="Rose", gender="female", life_stage="teen")
        assert sim.status == "alive"
        assert sim.occult_type == "human"
        assert sim.current_household is True
        assert sim.is_generation_heir is False
        assert sim.sim_id

    def test_invalid_life_stage_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Sim(legacy_id="L", name="Rose", gender="female", life_stage="baby")

    def test_ids_are_unique(self) -> None:
        a = Legacy(user_id="u", legacy_name="A")
        b = Legacy(user_id="u", legacy_name="A")
        assert a.legacy_id != b.legacy_id
        assert a.current_generation == 1
