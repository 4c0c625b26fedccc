"""Tool catalog — the fixed set of actions the model may request.

Each tool has a ToolName, a pydantic input model (what the executor parses the
model's raw input into) and a ToolDefinition (what the model is shown). Tools
take NAMES, never ids; the executor resolves names through the EntityResolver.

Bump CATALOG_VERSION whenever a tool is added, removed or changes shape.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from legacy_agent.models import Gender, LifeStage, RelationshipType, ToolDefinition, TraitSlot

CATALOG_VERSION = 1


class ToolName(str, Enum):
    GET_SIM_DETAILS = "get_sim_details"
    GET_GENERATION_PROGRESS = "get_generation_progress"
    UPDATE_SIM_SKILL = "update_sim_skill"
    UPDATE_SIM_CAREER = "update_sim_career"
    CREATE_SIM = "create_sim"
    COMPLETE_ASPIRATION = "complete_aspiration"
    ADD_MILESTONE = "add_milestone"
    ADD_SIM_TRAIT = "add_sim_trait"
    ADD_RELATIONSHIP = "add_relationship"
    COMPLETE_GENERATION_GOAL = "complete_generation_goal"

    @classmethod
    def parse(cls, name: str) -> ToolName | None:
        """The ToolName for `name`, or None for a name this catalog doesn't know."""
        try:
            return cls(name)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Typed inputs
# ---------------------------------------------------------------------------

class GetSimDetails(BaseModel):
    sim_name: str = Field(min_length=1)


class GetGenerationProgress(BaseModel):
    pass


class UpdateSimSkill(BaseModel):
    sim_name: str = Field(min_length=1)
    skill_name: str = Field(min_length=1)
    # upper bound is the skill's own max level, applied as a clamp
    new_level: int = Field(ge=1)


class UpdateSimCareer(BaseModel):
    sim_name: str = Field(min_length=1)
    promotions: int = 1


class CreateSim(BaseModel):
    name: str = Field(min_length=1)
    gender: Gender
    life_stage: LifeStage = "infant"
    parent_name: str | None = None
    parent_names: list[str] = Field(default_factory=list)
    traits: list[str] = Field(default_factory=list)

    def all_parent_names(self) -> list[str]:
        """parent_names then parent_name, trimmed, blanks dropped, first occurrence kept."""
        names = [*self.parent_names, *([self.parent_name] if self.parent_name else [])]
        seen: list[str] = []
        for name in names:
            name = name.strip()
            if name and name not in seen:
                seen.append(name)
        return seen


class CompleteAspiration(BaseModel):
    sim_name: str = Field(min_length=1)
    aspiration_name: str = Field(min_length=1)


class AddMilestone(BaseModel):
    sim_name: str = Field(min_length=1)
    milestone_name: str = Field(min_length=1)
    notes: str | None = None


class AddSimTrait(BaseModel):
    sim_name: str = Field(min_length=1)
    trait_name: str = Field(min_length=1)
    trait_slot: TraitSlot = "1"


class AddRelationship(BaseModel):
    sim_name_1: str = Field(min_length=1)
    sim_name_2: str = Field(min_length=1)
    relationship_type: RelationshipType


class CompleteGenerationGoal(BaseModel):
    goal_text: str = Field(min_length=1)


TOOL_INPUTS: dict[ToolName, type[BaseModel]] = {
    ToolName.GET_SIM_DETAILS: GetSimDetails,
    ToolName.GET_GENERATION_PROGRESS: GetGenerationProgress,
    ToolName.UPDATE_SIM_SKILL: UpdateSimSkill,
    ToolName.UPDATE_SIM_CAREER: UpdateSimCareer,
    ToolName.CREATE_SIM: CreateSim,
    ToolName.COMPLETE_ASPIRATION: CompleteAspiration,
    ToolName.ADD_MILESTONE: AddMilestone,
    ToolName.ADD_SIM_TRAIT: AddSimTrait,
    ToolName.ADD_RELATIONSHIP: AddRelationship,
    ToolName.COMPLETE_GENERATION_GOAL: CompleteGenerationGoal,
}


# ---------------------------------------------------------------------------
# Definitions shown to the model
# ---------------------------------------------------------------------------

def _string(description: str) -> dict:
    return {"type": "string", "description": description}


def _object(properties: dict, required: list[str]) -> dict:
    return {"type": "object", "properties": properties, "required": required}


_SIM_NAME = _string("The name of the sim")

_DEFINITIONS: tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name=ToolName.GET_SIM_DETAILS.value,
        description=(
            "Fetch detailed information about a sim including their traits, skills, careers, "
            "and aspirations. Use this to check a sim's current state before making updates, "
            "or when the user asks about a specific sim."
        ),
        input_schema=_object(
            {"sim_name": _string("The name of the sim to look up (e.g., 'Lavender', 'Marcus')")},
            ["sim_name"],
        ),
    ),
    ToolDefinition(
        name=ToolName.GET_GENERATION_PROGRESS.value,
        description=(
            "Check the current generation's goal completion status. Returns all required and "
            "optional goals with their completion state. Use this when the user asks about "
            "progress or what goals remain."
        ),
        input_schema=_object({}, []),
    ),
    ToolDefinition(
        name=ToolName.UPDATE_SIM_SKILL.value,
        description=(
            "Update or add a sim's skill level. Use this when the user mentions skill "
            "progression (e.g., 'raised cooking to level 7', 'maxed fitness'). If the skill "
            "reaches max level, it will automatically be marked as maxed."
        ),
        input_schema=_object(
            {
                "sim_name": _SIM_NAME,
                "skill_name": _string(
                    "The name of the skill (e.g., 'Cooking', 'Fitness', 'Painting', 'Programming')"
                ),
                "new_level": {
                    "type": "integer",
                    "description": (
                        "The new skill level (1-10 for most skills, 1-5 for toddler/child skills)"
                    ),
                    "minimum": 1,
                    "maximum": 10,
                },
            },
            ["sim_name", "skill_name", "new_level"],
        ),
    ),
    ToolDefinition(
        name=ToolName.UPDATE_SIM_CAREER.value,
        description=(
            "Update a sim's career level by a number of promotions. Use when the user mentions "
            "promotions or career progression (e.g., 'was promoted twice', 'reached level 8 "
            "in her career')."
        ),
        input_schema=_object(
            {
                "sim_name": _SIM_NAME,
                "promotions": {
                    "type": "integer",
                    "description": (
                        "Number of promotions to add (default 1). Can be negative for demotions; never 0."
                    ),
                    "default": 1,
                },
            },
            ["sim_name"],
        ),
    ),
    ToolDefinition(
        name=ToolName.CREATE_SIM.value,
        description=(
            "Create a new sim. Use when the user mentions a birth, adoption, or new sim joining "
            "the household (e.g., 'had a baby named Rose', 'adopted a toddler named Jasper'). "
            "The new sim is automatically added to the current household."
        ),
        input_schema=_object(
            {
                "name": _string("The name of the new sim"),
                "gender": {
                    "type": "string",
                    "enum": ["male", "female"],
                    "description": "The gender of the new sim",
                },
                "life_stage": {
                    "type": "string",
                    "enum": [
                        "infant", "toddler", "child", "teen", "young_adult", "adult", "elder",
                    ],
                    "description": "The life stage of the new sim (default 'infant' for births)",
                },
                "parent_name": _string(
                    "The name of a parent sim (for births/adoptions). Used to link the family "
                    "relationship."
                ),
                "parent_names": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Names of both parents, when the user mentions two.",
                },
                "traits": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Initial traits for the new sim (if any, e.g., for older sims)",
                },
            },
            ["name", "gender", "life_stage"],
        ),
    ),
    ToolDefinition(
        name=ToolName.COMPLETE_ASPIRATION.value,
        description=(
            "Mark a sim's aspiration as completed. Use when the user says they completed an "
            "aspiration (e.g., 'completed Master Chef', 'finished the Painter Extraordinaire "
            "aspiration')."
        ),
        input_schema=_object(
            {
                "sim_name": _string("The name of the sim who completed the aspiration"),
                "aspiration_name": _string(
                    "The name of the aspiration that was completed (e.g., 'Master Chef', "
                    "'Painter Extraordinaire')"
                ),
            },
            ["sim_name", "aspiration_name"],
        ),
    ),
    ToolDefinition(
        name=ToolName.ADD_MILESTONE.value,
        description=(
            "Add a milestone achievement to a sim. Use when the user mentions significant life "
            "events (e.g., 'got married', 'had first kiss', 'graduated', 'learned to walk'). "
            "Milestones are organized by category: firsts, life, social, fine_motor, "
            "gross_motor, cognitive, motor."
        ),
        input_schema=_object(
            {
                "sim_name": _SIM_NAME,
                "milestone_name": _string(
                    "The name of the milestone (e.g., 'First Kiss', 'Got Married', "
                    "'Learned to Walk')"
                ),
                "notes": _string(
                    "Optional notes about the milestone (e.g., 'married to Marcus at the bluffs')"
                ),
            },
            ["sim_name", "milestone_name"],
        ),
    ),
    ToolDefinition(
        name=ToolName.ADD_SIM_TRAIT.value,
        description=(
            "Add a trait to a sim. Use when sims age up and gain new traits, or when "
            "reward/bonus traits are earned (e.g., 'picked Creative trait on aging up', "
            "'earned the Handy reward trait')."
        ),
        input_schema=_object(
            {
                "sim_name": _SIM_NAME,
                "trait_name": _string(
                    "The name of the trait (e.g., 'Creative', 'Ambitious', 'Handy')"
                ),
                "trait_slot": {
                    "type": "string",
                    "enum": ["1", "2", "3", "bonus", "reward"],
                    "description": (
                        "Which trait slot to use (default '1'). Use '1', '2', '3' for "
                        "personality traits, 'bonus' for bonus traits, 'reward' for "
                        "satisfaction reward traits."
                    ),
                },
            },
            ["sim_name", "trait_name"],
        ),
    ),
    ToolDefinition(
        name=ToolName.ADD_RELATIONSHIP.value,
        description=(
            "Create a relationship between two sims. Use when the user mentions marriages, "
            "friendships, romances, or family connections (e.g., 'Lavender married Marcus', "
            "'Rose and Lily became enemies')."
        ),
        input_schema=_object(
            {
                "sim_name_1": _string("The first sim's name"),
                "sim_name_2": _string("The second sim's name"),
                "relationship_type": {
                    "type": "string",
                    "enum": [
                        "spouse", "romantic_interest", "friend", "enemy",
                        "parent", "child", "sibling",
                    ],
                    "description": "The type of relationship between the two sims",
                },
            },
            ["sim_name_1", "sim_name_2", "relationship_type"],
        ),
    ),
    ToolDefinition(
        name=ToolName.COMPLETE_GENERATION_GOAL.value,
        description=(
            "Mark a generation goal as complete. Use when the user says they completed a "
            "specific goal from the current generation's goal list (e.g., 'completed the max "
            "cooking goal', 'finished the aspiration requirement'). The goal is matched by "
            "text similarity."
        ),
        input_schema=_object(
            {
                "goal_text": _string(
                    "The text of the goal to mark complete. Does not need to be an exact "
                    "match — a partial match or key phrase is sufficient (e.g., 'max cooking' "
                    "to match 'Max the Cooking skill')."
                ),
            },
            ["goal_text"],
        ),
    ),
)


def list_tools() -> list[ToolDefinition]:
    """Every tool definition, in catalog order."""
    return list(_DEFINITIONS)
