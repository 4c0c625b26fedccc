"""In-memory view of one legacy's records, with constraint-checked writes.

A LegacyRecords object is either a read snapshot (Storage.load_records) or
the working copy of a transaction (Storage.transaction). Insert helpers check
the same constraints the relational schema enforced — unique keys, foreign
keys, row checks — and raise before touching any list, so a caught
IntegrityError never leaves a half-applied change behind.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from legacy_agent.models import (
    Generation,
    Goal,
    Relationship,
    Sim,
    SimAspiration,
    SimCareer,
    SimMilestone,
    SimSkill,
    SimTrait,
)

from .core import CheckViolation, ForeignKeyViolation, UniqueViolation

# Unordered relationship types: (a, b, friend) and (b, a, friend) are the same row.
SYMMETRIC_RELATIONSHIPS = {"spouse", "romantic_interest", "friend", "enemy", "sibling"}


class LegacyRecords(BaseModel):
    generations: list[Generation] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    sims: list[Sim] = Field(default_factory=list)
    sim_skills: list[SimSkill] = Field(default_factory=list)
    sim_traits: list[SimTrait] = Field(default_factory=list)
    sim_careers: list[SimCareer] = Field(default_factory=list)
    sim_aspirations: list[SimAspiration] = Field(default_factory=list)
    sim_milestones: list[SimMilestone] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def active_generation(self) -> Generation | None:
        active = [g for g in self.generations if g.is_active]
        if not active:
            return None
        return max(active, key=lambda g: g.generation_number)

    def goals_for(self, generation_id: str) -> list[Goal]:
        return [g for g in self.goals if g.generation_id == generation_id]

    def get_goal(self, goal_id: str) -> Goal | None:
        return next((g for g in self.goals if g.goal_id == goal_id), None)

    def get_sim(self, sim_id: str) -> Sim | None:
        return next((s for s in self.sims if s.sim_id == sim_id), None)

    def visible_sims(self) -> list[Sim]:
        """Sims the agent may refer to (everything not soft-deleted)."""
        return [s for s in self.sims if s.status != "deleted"]

    def household(self) -> list[Sim]:
        return sorted(
            (s for s in self.sims if s.current_household and s.status == "alive"),
            key=lambda s: s.name,
        )

    def skills_of(self, sim_id: str) -> list[SimSkill]:
        return sorted(
            (s for s in self.sim_skills if s.sim_id == sim_id),
            key=lambda s: s.skill_name,
        )

    def traits_of(self, sim_id: str) -> list[SimTrait]:
        return sorted(
            (t for t in self.sim_traits if t.sim_id == sim_id),
            key=lambda t: t.trait_slot,
        )

    def careers_of(self, sim_id: str) -> list[SimCareer]:
        return sorted(
            (c for c in self.sim_careers if c.sim_id == sim_id),
            key=lambda c: (not c.is_current, c.career_name),
        )

    def current_career(self, sim_id: str) -> SimCareer | None:
        return next(
            (c for c in self.sim_careers if c.sim_id == sim_id and c.is_current),
            None,
        )

    def aspirations_of(self, sim_id: str) -> list[SimAspiration]:
        return sorted(
            (a for a in self.sim_aspirations if a.sim_id == sim_id),
            key=lambda a: (not a.is_current, a.aspiration_name),
        )

    def milestones_of(self, sim_id: str) -> list[SimMilestone]:
        return [m for m in self.sim_milestones if m.sim_id == sim_id]

    def find_skill(self, sim_id: str, skill_name: str) -> SimSkill | None:
        return next(
            (s for s in self.sim_skills
             if s.sim_id == sim_id and s.skill_name == skill_name),
            None,
        )

    def find_aspiration(self, sim_id: str, aspiration_name: str) -> SimAspiration | None:
        return next(
            (a for a in self.sim_aspirations
             if a.sim_id == sim_id and a.aspiration_name == aspiration_name),
            None,
        )

    def find_relationship(
        self, sim_id_1: str, sim_id_2: str, relationship_type: str
    ) -> Relationship | None:
        for rel in self.relationships:
            if rel.relationship_type != relationship_type:
                continue
            if rel.sim_id_1 == sim_id_1 and rel.sim_id_2 == sim_id_2:
                return rel
            if (
                relationship_type in SYMMETRIC_RELATIONSHIPS
                and rel.sim_id_1 == sim_id_2 and rel.sim_id_2 == sim_id_1
            ):
                return rel
        return None

    # ------------------------------------------------------------------
    # Constraint-checked writes
    # ------------------------------------------------------------------

    def _require_sim(self, sim_id: str | None) -> None:
        if sim_id is not None and self.get_sim(sim_id) is None:
            raise ForeignKeyViolation(f"sim {sim_id} does not exist")

    def insert_sim(self, sim: Sim) -> Sim:
        if sim.generation_id is not None and not any(
            g.generation_id == sim.generation_id for g in self.generations
        ):
            raise ForeignKeyViolation(f"generation {sim.generation_id} does not exist")
        self._require_sim(sim.mother_id)
        self._require_sim(sim.father_id)
        if self.get_sim(sim.sim_id) is not None:
            raise UniqueViolation(f"sim {sim.sim_id} already exists")
        self.sims.append(sim)
        return sim

    def upsert_skill(self, skill: SimSkill) -> SimSkill:
        """Insert or overwrite; the earliest maxed_date is kept."""
        self._require_sim(skill.sim_id)
        existing = self.find_skill(skill.sim_id, skill.skill_name)
        if existing is None:
            self.sim_skills.append(skill)
            return skill
        existing.current_level = skill.current_level
        existing.is_maxed = skill.is_maxed
        existing.maxed_date = existing.maxed_date or skill.maxed_date
        return existing

    def insert_trait(self, trait: SimTrait) -> SimTrait:
        self._require_sim(trait.sim_id)
        if any(
            t.sim_id == trait.sim_id and t.trait_name == trait.trait_name
            for t in self.sim_traits
        ):
            raise UniqueViolation(f"trait {trait.trait_name!r} already linked")
        self.sim_traits.append(trait)
        return trait

    def insert_aspiration(self, aspiration: SimAspiration) -> SimAspiration:
        self._require_sim(aspiration.sim_id)
        if self.find_aspiration(aspiration.sim_id, aspiration.aspiration_name):
            raise UniqueViolation(f"aspiration {aspiration.aspiration_name!r} already linked")
        self.sim_aspirations.append(aspiration)
        return aspiration

    def insert_milestone(self, milestone: SimMilestone) -> SimMilestone:
        self._require_sim(milestone.sim_id)
        if any(
            m.sim_id == milestone.sim_id and m.milestone_name == milestone.milestone_name
            for m in self.sim_milestones
        ):
            raise UniqueViolation(f"milestone {milestone.milestone_name!r} already recorded")
        self.sim_milestones.append(milestone)
        return milestone

    def insert_relationship(self, rel: Relationship) -> Relationship:
        if rel.sim_id_1 == rel.sim_id_2:
            raise CheckViolation("a sim cannot have a relationship with itself")
        self._require_sim(rel.sim_id_1)
        self._require_sim(rel.sim_id_2)
        if self.find_relationship(rel.sim_id_1, rel.sim_id_2, rel.relationship_type):
            raise UniqueViolation(f"{rel.relationship_type} relationship already exists")
        self.relationships.append(rel)
        return rel
