"""Core domain models.

Every component (store, resolver, executor, orchestrator, chat service)
operates on these types. Pydantic is used for validation and serialisation
at every data boundary.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


def today() -> str:
    """ISO date used for completion / achievement stamps."""
    return date.today().isoformat()


# ---------------------------------------------------------------------------
# Legacy domain
# ---------------------------------------------------------------------------

Gender = Literal["male", "female"]

LifeStage = Literal[
    "infant", "toddler", "child", "teen", "young_adult", "adult", "elder",
]

SimStatus = Literal["alive", "dead", "moved_out", "deleted"]

RelationshipType = Literal[
    "spouse", "romantic_interest", "friend", "enemy", "parent", "child", "sibling",
]

TraitSlot = Literal["1", "2", "3", "bonus", "reward"]


class Legacy(BaseModel):
    """A multi-generation challenge owned by one user."""

    legacy_id: str = Field(default_factory=_new_id)
    user_id: str
    legacy_name: str
    current_generation: int = 1
    created_at: datetime = Field(default_factory=_now)


class Generation(BaseModel):
    generation_id: str = Field(default_factory=_new_id)
    legacy_id: str
    generation_number: int
    pack_name: str | None = None
    backstory: str | None = None
    is_active: bool = False
    required_traits: list[str] = Field(default_factory=list)
    required_careers: list[str] = Field(default_factory=list)


class Goal(BaseModel):
    goal_id: str = Field(default_factory=_new_id)
    generation_id: str
    goal_text: str
    is_optional: bool = False
    is_completed: bool = False
    completion_date: str | None = None


class Sim(BaseModel):
    sim_id: str = Field(default_factory=_new_id)
    legacy_id: str
    generation_id: str | None = None
    name: str
    gender: Gender
    life_stage: LifeStage
    occult_type: str = "human"
    status: SimStatus = "alive"
    mother_id: str | None = None
    father_id: str | None = None
    is_generation_heir: bool = False
    current_household: bool = True
    created_at: datetime = Field(default_factory=_now)


class SimSkill(BaseModel):
    sim_id: str
    skill_name: str
    current_level: int
    is_maxed: bool = False
    maxed_date: str | None = None


class SimTrait(BaseModel):
    sim_id: str
    trait_name: str
    trait_slot: TraitSlot = "1"
    acquired_date: str | None = None


class SimCareer(BaseModel):
    sim_career_id: str = Field(default_factory=_new_id)
    sim_id: str
    career_name: str
    branch_name: str | None = None
    current_level: int = 1
    is_current: bool = True
    is_completed: bool = False
    completion_date: str | None = None


class SimAspiration(BaseModel):
    sim_id: str
    aspiration_name: str
    is_current: bool = False
    is_completed: bool = False
    completion_date: str | None = None


class SimMilestone(BaseModel):
    sim_id: str
    milestone_name: str
    category: str | None = None
    achieved_date: str
    notes: str | None = None


class Relationship(BaseModel):
    sim_id_1: str
    sim_id_2: str
    relationship_type: RelationshipType
    is_active: bool = True
    started_date: str | None = None


# ---------------------------------------------------------------------------
# Reference catalogs (read-only, loaded once per process)
# ---------------------------------------------------------------------------

class Skill(BaseModel):
    name: str
    max_level: int = 10


class Trait(BaseModel):
    name: str


class Aspiration(BaseModel):
    name: str


class Milestone(BaseModel):
    name: str
    category: str | None = None


class Career(BaseModel):
    name: str
    branches: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Content blocks — the unit of every model message
# ---------------------------------------------------------------------------

class TextBlock(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(BaseModel):
    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(BaseModel):
    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool = False


ContentBlock = Annotated[
    Union[TextBlock, ToolUseBlock, ToolResultBlock],
    Field(discriminator="type"),
]

Role = Literal["user", "assistant"]


def text_of(blocks: list[ContentBlock]) -> list[str]:
    """Return the text of every text block, in order."""
    return [b.text for b in blocks if isinstance(b, TextBlock)]


def tool_uses(blocks: list[ContentBlock]) -> list[ToolUseBlock]:
    return [b for b in blocks if isinstance(b, ToolUseBlock)]


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

class ToolDefinition(BaseModel):
    """A callable action offered to the model (Anthropic tool-use shape)."""

    name: str
    description: str
    input_schema: dict[str, Any]


class ToolOutcome(BaseModel):
    """What a tool call produced. Failures carry `error`, successes `message`."""

    success: bool
    message: str | None = None
    error: str | None = None
    data: dict[str, Any] | None = None

    @classmethod
    def ok(cls, message: str, data: dict[str, Any] | None = None) -> ToolOutcome:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: str) -> ToolOutcome:
        return cls(success=False, error=error)


class ToolCallRecord(BaseModel):
    """Audit record of one executed tool call, stored on the assistant message."""

    name: str
    input: dict[str, Any] = Field(default_factory=dict)
    result: ToolOutcome


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------

class Conversation(BaseModel):
    conversation_id: str = Field(default_factory=_new_id)
    legacy_id: str
    user_id: str
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class ChatMessage(BaseModel):
    """A persisted conversation turn."""

    message_id: str = Field(default_factory=_new_id)
    conversation_id: str
    role: Role
    content: list[ContentBlock]
    input_tokens: int | None = None
    output_tokens: int | None = None
    tool_calls: list[ToolCallRecord] | None = None
    created_at: datetime = Field(default_factory=_now)

    @property
    def text(self) -> str:
        return "\n".join(text_of(self.content))
