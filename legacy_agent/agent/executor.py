"""Tool executor — runs one model-requested tool against a legacy's records.

execute() never raises. Unknown tools, invalid input, unresolved names,
constraint violations and unexpected errors all come back as a failed
ToolOutcome so the model can relay them or ask the user for clarification.

Reads work on one snapshot of the records. Writes run inside
Storage.transaction(): names are resolved against the working copy, one
logical mutation is applied, and the copy is committed on normal exit or
discarded if anything raises.

create_sim is best-effort past the primary insert: parents and
traits that don't resolve, or links that already exist, are skipped and
reported in the outcome's data, and the sim is still created.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel, ValidationError

from legacy_agent.models import (
    Goal,
    Relationship,
    Sim,
    SimAspiration,
    SimMilestone,
    SimSkill,
    SimTrait,
    ToolOutcome,
    today,
)
from legacy_agent.storage import IntegrityError, LegacyRecords, Reference, Storage, UniqueViolation

from .catalog import (
    TOOL_INPUTS,
    AddMilestone,
    AddRelationship,
    AddSimTrait,
    CompleteAspiration,
    CompleteGenerationGoal,
    CreateSim,
    GetSimDetails,
    ToolName,
    UpdateSimCareer,
    UpdateSimSkill,
)
from .resolver import EntityKind, EntityResolver

logger = logging.getLogger(__name__)

MAX_CAREER_LEVEL = 10

# Trait slots handed out, in order, to traits given at creation.
_CREATION_SLOTS = ("1", "2", "3")


class ResolutionError(LookupError):
    """A name in the tool input matched nothing in scope."""


class NoActiveGeneration(LookupError):
    def __init__(self) -> None:
        super().__init__("No active generation found")


def match_goals(goals: list[Goal], text: str) -> list[Goal]:
    """Goals whose text contains `text`, case-insensitively.

    When the literal phrase appears nowhere, fall back to goals containing
    every word of `text` in order ("max cooking" → "Max the Cooking skill").
    """
    needle = text.strip().casefold()
    if not needle:
        return []
    literal = [g for g in goals if needle in g.goal_text.casefold()]
    if literal:
        return literal
    pattern = re.compile(".*".join(re.escape(w) for w in needle.split()), re.IGNORECASE)
    return [g for g in goals if pattern.search(g.goal_text)]


def _describe_validation(e: ValidationError) -> str:
    parts = []
    for err in e.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "input"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


class ToolExecutor:
    def __init__(self, storage: Storage, reference: Reference, legacy_id: str) -> None:
        self._storage = storage
        self._reference = reference
        self._legacy_id = legacy_id

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def execute(self, name: str, raw_input: dict[str, Any] | None) -> ToolOutcome:
        tool = ToolName.parse(name)
        if tool is None:
            logger.warning("Model requested unknown tool %r", name)
            return ToolOutcome.fail(f"Unknown tool: {name}")

        try:
            args = TOOL_INPUTS[tool].model_validate(raw_input or {})
        except ValidationError as e:
            logger.warning("Invalid input for %s: %s", name, e)
            return ToolOutcome.fail(f"Invalid input for {name}: {_describe_validation(e)}")

        logger.debug("Executing %s on legacy %s", name, self._legacy_id)
        try:
            return self._dispatch(tool, args)
        except (ResolutionError, NoActiveGeneration) as e:
            logger.warning("%s: %s", name, e)
            return ToolOutcome.fail(str(e))
        except IntegrityError as e:
            logger.warning("%s rejected by storage: %s", name, e)
            return ToolOutcome.fail(f"Could not save the change: {e}")
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return ToolOutcome.fail(f"Internal error executing {name}: {e}")

    def _dispatch(self, tool: ToolName, args: BaseModel) -> ToolOutcome:
        if tool is ToolName.GET_SIM_DETAILS:
            return self._get_sim_details(args)
        elif tool is ToolName.GET_GENERATION_PROGRESS:
            return self._get_generation_progress()
        elif tool is ToolName.UPDATE_SIM_SKILL:
            return self._update_sim_skill(args)
        elif tool is ToolName.UPDATE_SIM_CAREER:
            return self._update_sim_career(args)
        elif tool is ToolName.CREATE_SIM:
            return self._create_sim(args)
        elif tool is ToolName.COMPLETE_ASPIRATION:
            return self._complete_aspiration(args)
        elif tool is ToolName.ADD_MILESTONE:
            return self._add_milestone(args)
        elif tool is ToolName.ADD_SIM_TRAIT:
            return self._add_sim_trait(args)
        elif tool is ToolName.ADD_RELATIONSHIP:
            return self._add_relationship(args)
        elif tool is ToolName.COMPLETE_GENERATION_GOAL:
            return self._complete_generation_goal(args)
        # A catalog entry without a handler.
        return ToolOutcome.fail(f"Tool {tool.value} is not available")

    # ------------------------------------------------------------------
    # Resolution helpers
    # ------------------------------------------------------------------

    def _resolver(self, records: LegacyRecords) -> EntityResolver:
        return EntityResolver(records, self._reference)

    def _sim(self, resolver: EntityResolver, name: str) -> Sim:
        sim = resolver.sim(name)
        if sim is None:
            raise ResolutionError(f"Sim '{name}' not found in your legacy")
        return sim

    def _catalog(self, resolver: EntityResolver, kind: EntityKind, name: str) -> Any:
        entity = resolver.resolve(kind, name)
        if entity is None:
            raise ResolutionError(f"{kind.value.capitalize()} '{name}' not found")
        return entity

    def _skill_max(self, skill_name: str) -> int:
        for skill in self._reference.skills:
            if skill.name == skill_name:
                return skill.max_level
        return 10

    # ------------------------------------------------------------------
    # Read tools
    # ------------------------------------------------------------------

    def _get_sim_details(self, args: GetSimDetails) -> ToolOutcome:
        records = self._storage.load_records(self._legacy_id)
        sim = self._sim(self._resolver(records), args.sim_name)

        skills = [
            f"{s.skill_name}: {s.current_level}/{self._skill_max(s.skill_name)}"
            + (" (MAXED)" if s.is_maxed else "")
            for s in records.skills_of(sim.sim_id)
        ]
        careers = [
            c.career_name
            + (f" - {c.branch_name}" if c.branch_name else "")
            + f": level {c.current_level}"
            + (" (current)" if c.is_current else "")
            + (" (completed)" if c.is_completed else "")
            for c in records.careers_of(sim.sim_id)
        ]
        aspirations = [
            a.aspiration_name
            + (" (current)" if a.is_current else "")
            + (" (completed)" if a.is_completed else "")
            for a in records.aspirations_of(sim.sim_id)
        ]
        return ToolOutcome.ok(
            f"Details for {sim.name}",
            {
                "name": sim.name,
                "life_stage": sim.life_stage,
                "gender": sim.gender,
                "occult_type": sim.occult_type,
                "status": sim.status,
                "is_heir": sim.is_generation_heir,
                "current_household": sim.current_household,
                "traits": [f"{t.trait_name} ({t.trait_slot})" for t in records.traits_of(sim.sim_id)],
                "skills": skills,
                "careers": careers,
                "aspirations": aspirations,
                "milestones": [m.milestone_name for m in records.milestones_of(sim.sim_id)],
            },
        )

    def _get_generation_progress(self) -> ToolOutcome:
        records = self._storage.load_records(self._legacy_id)
        generation = records.active_generation()
        if generation is None:
            raise NoActiveGeneration()

        goals = sorted(
            records.goals_for(generation.generation_id),
            key=lambda g: (g.is_optional, g.goal_text),
        )
        required = [g for g in goals if not g.is_optional]
        optional = [g for g in goals if g.is_optional]

        def checklist(items: list[Goal]) -> list[str]:
            return [f"{'[x]' if g.is_completed else '[ ]'} {g.goal_text}" for g in items]

        def done(items: list[Goal]) -> int:
            return sum(1 for g in items if g.is_completed)

        return ToolOutcome.ok(
            f"Generation {generation.generation_number} progress",
            {
                "generation_number": generation.generation_number,
                "pack_name": generation.pack_name,
                "required_goals": checklist(required),
                "optional_goals": checklist(optional),
                "summary": (
                    f"Required: {done(required)}/{len(required)}, "
                    f"Optional: {done(optional)}/{len(optional)}"
                ),
            },
        )

    # ------------------------------------------------------------------
    # Write tools
    # ------------------------------------------------------------------

    def _update_sim_skill(self, args: UpdateSimSkill) -> ToolOutcome:
        with self._storage.transaction(self._legacy_id) as records:
            resolver = self._resolver(records)
            sim = self._sim(resolver, args.sim_name)
            skill = self._catalog(resolver, EntityKind.SKILL, args.skill_name)

            level = min(args.new_level, skill.max_level)
            is_maxed = level >= skill.max_level
            existing = records.find_skill(sim.sim_id, skill.name)
            if existing is not None and existing.current_level == level:
                return ToolOutcome.ok(
                    f"{sim.name}'s {skill.name} is already at level {level}"
                    + (" (MAXED)" if existing.is_maxed else "")
                )

            records.upsert_skill(SimSkill(
                sim_id=sim.sim_id,
                skill_name=skill.name,
                current_level=level,
                is_maxed=is_maxed,
                maxed_date=today() if is_maxed else None,
            ))

        if is_maxed:
            return ToolOutcome.ok(f"{sim.name}'s {skill.name} updated to level {level} (MAXED!)")
        return ToolOutcome.ok(f"{sim.name}'s {skill.name} updated to level {level}/{skill.max_level}")

    def _update_sim_career(self, args: UpdateSimCareer) -> ToolOutcome:
        with self._storage.transaction(self._legacy_id) as records:
            sim = self._sim(self._resolver(records), args.sim_name)
            career = records.current_career(sim.sim_id)
            if career is None:
                return ToolOutcome.fail(f"{sim.name} has no active career")
            if args.promotions == 0:
                return ToolOutcome.fail("promotions must be a non-zero number of levels")

            new_level = min(career.current_level + args.promotions, MAX_CAREER_LEVEL)
            if new_level < 1:
                return ToolOutcome.fail(
                    f"Career level cannot go below 1 (current: {career.current_level})"
                )

            career.current_level = new_level
            career.is_completed = new_level >= MAX_CAREER_LEVEL
            if career.is_completed:
                career.completion_date = career.completion_date or today()

        label = f"{career.career_name} ({career.branch_name})" if career.branch_name else career.career_name
        verb = "promoted" if args.promotions > 0 else "demoted"
        steps = abs(args.promotions)
        if steps == 1:
            msg = f"{sim.name} {verb} in {label} to level {new_level}"
        else:
            msg = f"{sim.name} {verb} {steps} times in {label} to level {new_level}"
        if career.is_completed:
            msg += " (CAREER COMPLETE!)"
        return ToolOutcome.ok(msg)

    def _create_sim(self, args: CreateSim) -> ToolOutcome:
        skipped_parents: list[str] = []
        skipped_traits: list[str] = []

        with self._storage.transaction(self._legacy_id) as records:
            generation = records.active_generation()
            if generation is None:
                raise NoActiveGeneration()
            resolver = self._resolver(records)

            parents: list[Sim] = []
            for parent_name in args.all_parent_names():
                parent = resolver.sim(parent_name)
                if parent is None or any(p.sim_id == parent.sim_id for p in parents):
                    skipped_parents.append(parent_name)
                    continue
                parents.append(parent)

            mother = next((p for p in parents if p.gender == "female"), None)
            father = next((p for p in parents if p.gender == "male"), None)

            sim = records.insert_sim(Sim(
                legacy_id=self._legacy_id,
                generation_id=generation.generation_id,
                name=args.name.strip(),
                gender=args.gender,
                life_stage=args.life_stage,
                mother_id=mother.sim_id if mother else None,
                father_id=father.sim_id if father else None,
            ))

            slots = iter(_CREATION_SLOTS)
            for trait_name in args.traits:
                trait = resolver.resolve(EntityKind.TRAIT, trait_name)
                if trait is None:
                    skipped_traits.append(trait_name)
                    continue
                try:
                    records.insert_trait(SimTrait(
                        sim_id=sim.sim_id, trait_name=trait.name,
                        trait_slot=next(slots, "bonus"), acquired_date=today(),
                    ))
                except UniqueViolation:
                    skipped_traits.append(trait_name)

            for parent in parents:
                try:
                    records.insert_relationship(Relationship(
                        sim_id_1=parent.sim_id, sim_id_2=sim.sim_id,
                        relationship_type="parent", started_date=today(),
                    ))
                except UniqueViolation:
                    logger.debug("Parent link %s → %s already exists", parent.name, sim.name)

        if skipped_parents or skipped_traits:
            logger.info(
                "create_sim %s: skipped parents %s, traits %s",
                sim.name, skipped_parents, skipped_traits,
            )

        msg = f"Created new sim: {sim.name} ({sim.life_stage}, {sim.gender})"
        if parents:
            msg += ", child of " + " and ".join(p.name for p in parents)
        data: dict[str, Any] = {"sim_id": sim.sim_id, "name": sim.name}
        if skipped_parents:
            data["unresolved_parents"] = skipped_parents
        if skipped_traits:
            data["skipped_traits"] = skipped_traits
        return ToolOutcome.ok(msg, data)

    def _complete_aspiration(self, args: CompleteAspiration) -> ToolOutcome:
        with self._storage.transaction(self._legacy_id) as records:
            resolver = self._resolver(records)
            sim = self._sim(resolver, args.sim_name)
            aspiration = self._catalog(resolver, EntityKind.ASPIRATION, args.aspiration_name)

            existing = records.find_aspiration(sim.sim_id, aspiration.name)
            if existing is not None and existing.is_completed:
                return ToolOutcome.ok(f"{sim.name} already completed {aspiration.name}")
            if existing is not None:
                existing.is_completed = True
                existing.completion_date = today()
            else:
                records.insert_aspiration(SimAspiration(
                    sim_id=sim.sim_id,
                    aspiration_name=aspiration.name,
                    is_completed=True,
                    completion_date=today(),
                ))

        return ToolOutcome.ok(f"{sim.name} completed the {aspiration.name} aspiration!")

    def _add_milestone(self, args: AddMilestone) -> ToolOutcome:
        with self._storage.transaction(self._legacy_id) as records:
            resolver = self._resolver(records)
            sim = self._sim(resolver, args.sim_name)
            milestone = self._catalog(resolver, EntityKind.MILESTONE, args.milestone_name)
            try:
                records.insert_milestone(SimMilestone(
                    sim_id=sim.sim_id,
                    milestone_name=milestone.name,
                    category=milestone.category,
                    achieved_date=today(),
                    notes=args.notes or None,
                ))
            except UniqueViolation:
                return ToolOutcome.ok(f"{sim.name} already has the '{milestone.name}' milestone")

        return ToolOutcome.ok(f"Added milestone '{milestone.name}' to {sim.name}")

    def _add_sim_trait(self, args: AddSimTrait) -> ToolOutcome:
        with self._storage.transaction(self._legacy_id) as records:
            resolver = self._resolver(records)
            sim = self._sim(resolver, args.sim_name)
            trait = self._catalog(resolver, EntityKind.TRAIT, args.trait_name)
            try:
                records.insert_trait(SimTrait(
                    sim_id=sim.sim_id,
                    trait_name=trait.name,
                    trait_slot=args.trait_slot,
                    acquired_date=today(),
                ))
            except UniqueViolation:
                return ToolOutcome.ok(f"{sim.name} already has the '{trait.name}' trait")

        return ToolOutcome.ok(f"Added trait '{trait.name}' (slot {args.trait_slot}) to {sim.name}")

    def _add_relationship(self, args: AddRelationship) -> ToolOutcome:
        with self._storage.transaction(self._legacy_id) as records:
            resolver = self._resolver(records)
            sim1 = self._sim(resolver, args.sim_name_1)
            sim2 = self._sim(resolver, args.sim_name_2)
            if sim1.sim_id == sim2.sim_id:
                return ToolOutcome.fail("Cannot create a relationship between a sim and themselves")

            kind = args.relationship_type
            try:
                records.insert_relationship(Relationship(
                    sim_id_1=sim1.sim_id, sim_id_2=sim2.sim_id,
                    relationship_type=kind, started_date=today(),
                ))
            except UniqueViolation:
                return ToolOutcome.ok(f"{sim1.name} and {sim2.name} already have a '{kind}' relationship")

        return ToolOutcome.ok(f"Created '{kind}' relationship between {sim1.name} and {sim2.name}")

    def _complete_generation_goal(self, args: CompleteGenerationGoal) -> ToolOutcome:
        with self._storage.transaction(self._legacy_id) as records:
            generation = records.active_generation()
            if generation is None:
                raise NoActiveGeneration()

            matches = match_goals(records.goals_for(generation.generation_id), args.goal_text)
            if not matches:
                return ToolOutcome.fail(
                    f"No goal matching '{args.goal_text}' found in the current generation"
                )

            target = next((g for g in matches if not g.is_completed), matches[0])
            if target.is_completed:
                return ToolOutcome.ok(f"Goal '{target.goal_text}' is already completed")

            target.is_completed = True
            target.completion_date = today()

        return ToolOutcome.ok(f"Completed goal: '{target.goal_text}'")
