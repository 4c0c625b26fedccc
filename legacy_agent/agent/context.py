"""Grounding context: a bounded plain-text summary of a legacy's current state.

Built fresh at the start of every turn and injected into the system prompt.
Every list is capped so the text stays small however much data a legacy
accumulates.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from legacy_agent.models import Goal, Legacy, Sim, SimMilestone
from legacy_agent.prompts import PromptTemplate
from legacy_agent.storage import LegacyRecords, RulesReference, Storage

logger = logging.getLogger(__name__)

MAX_GOALS = 8
MAX_HOUSEHOLD = 8
MAX_MILESTONES = 8
MAX_BACKSTORY_CHARS = 400


class GroundingContext(BaseModel):
    legacy: Legacy
    system_prompt: str
    context_text: str
    snapshot: dict[str, Any] = Field(default_factory=dict)


def _truncate(text: str, limit: int) -> str:
    text = " ".join(text.split())
    if len(text) <= limit:
        return text
    return text[: limit - 3].rstrip() + "..."


def _capped(lines: list[str], limit: int) -> list[str]:
    if len(lines) <= limit:
        return lines
    return lines[:limit] + [f"  ...and {len(lines) - limit} more"]


def _goal_line(goal: Goal) -> str:
    return f"  {'[x]' if goal.is_completed else '[ ]'} {goal.goal_text}"


def _recent_milestones(records: LegacyRecords, limit: int) -> list[tuple[SimMilestone, Sim | None]]:
    # Append order breaks ties between milestones achieved on the same day.
    indexed = list(enumerate(records.sim_milestones))
    indexed.sort(key=lambda pair: (pair[1].achieved_date, pair[0]), reverse=True)
    return [(m, records.get_sim(m.sim_id)) for _, m in indexed[:limit]]


def build_context_text(legacy: Legacy, records: LegacyRecords) -> tuple[str, dict[str, Any]]:
    """Render the grounding text and the structured snapshot it summarises."""
    lines = [f"Legacy: {legacy.legacy_name} (current generation {legacy.current_generation})"]
    snapshot: dict[str, Any] = {
        "legacy": {"id": legacy.legacy_id, "name": legacy.legacy_name,
                   "current_generation": legacy.current_generation},
        "active_generation": None,
    }

    generation = records.active_generation()
    if generation is None:
        lines.append("Active generation: none recorded.")
    else:
        header = f"Active generation: {generation.generation_number}"
        if generation.pack_name:
            header += f", pack: {generation.pack_name}"
        lines.append(header)
        if generation.backstory:
            lines.append(f"Backstory: {_truncate(generation.backstory, MAX_BACKSTORY_CHARS)}")
        if generation.required_traits:
            lines.append(f"Required traits: {', '.join(generation.required_traits)}")
        if generation.required_careers:
            lines.append(f"Required careers: {', '.join(generation.required_careers)}")

        goals = records.goals_for(generation.generation_id)
        required = [g for g in goals if not g.is_optional]
        optional = [g for g in goals if g.is_optional]
        for label, group in (("Required goals", required), ("Optional goals", optional)):
            if not group:
                continue
            done = sum(1 for g in group if g.is_completed)
            lines.append(f"{label} ({done}/{len(group)} complete):")
            lines.extend(_capped([_goal_line(g) for g in group], MAX_GOALS))

        snapshot["active_generation"] = {
            "generation_number": generation.generation_number,
            "pack_name": generation.pack_name,
            "required_goals": len(required),
            "optional_goals": len(optional),
        }

    household = records.household()
    if not household:
        lines.append("Current household: none recorded.")
    else:
        lines.append("Current household:")
        lines.extend(_capped(
            [f"  - {s.name} ({s.life_stage}, {s.occult_type})"
             + (" [heir]" if s.is_generation_heir else "")
             for s in household],
            MAX_HOUSEHOLD,
        ))
    snapshot["household"] = [s.name for s in household]

    total = len(records.sim_milestones)
    if total:
        lines.append(f"Recent milestones ({total} total):")
        for milestone, sim in _recent_milestones(records, MAX_MILESTONES):
            who = sim.name if sim else "unknown sim"
            lines.append(f"  - {who}: {milestone.milestone_name} ({milestone.achieved_date})")
    snapshot["milestone_count"] = total

    return "\n".join(lines), snapshot


class ContextAssembler:
    """Builds the per-turn GroundingContext from the store and startup references."""

    def __init__(
        self,
        storage: Storage,
        rules: RulesReference,
        template: PromptTemplate | None = None,
    ) -> None:
        self._storage = storage
        self._rules = rules
        self._template = template or PromptTemplate()

    def build(self, legacy_id: str, user_id: str) -> GroundingContext | None:
        """The legacy's grounding context, or None if it is missing or not the user's."""
        legacy = self._storage.get_owned_legacy(legacy_id, user_id)
        if legacy is None:
            return None

        records = self._storage.load_records(legacy_id)
        context_text, snapshot = build_context_text(legacy, records)
        system_prompt = self._template.render({
            "legacy_name": legacy.legacy_name,
            "rules": self._rules.text,
            "context": context_text,
        })
        logger.debug(
            "Built context for legacy %s (%d chars)", legacy_id, len(system_prompt)
        )
        return GroundingContext(
            legacy=legacy,
            system_prompt=system_prompt,
            context_text=context_text,
            snapshot=snapshot,
        )
