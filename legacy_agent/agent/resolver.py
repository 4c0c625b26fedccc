"""Name → entity resolution, scoped to one legacy.

Sims are matched exact (case-insensitive) first, then by substring, among the
legacy's non-deleted sims. Ties go to the sim in the current household, then
to the most recently created one.

Catalog kinds (skills, traits, aspirations, milestones, careers) are matched
the same two ways against the reference catalogs; catalog entries carry no
"current" flag or creation time, so ties keep catalog order.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from legacy_agent.models import Sim
from legacy_agent.storage import LegacyRecords, Reference

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    SIM = "sim"
    SKILL = "skill"
    TRAIT = "trait"
    ASPIRATION = "aspiration"
    MILESTONE = "milestone"
    CAREER = "career"


def _sim_rank(sim: Sim) -> tuple:
    # sorted() ascending: current household first, then newest first
    return (not sim.current_household, -sim.created_at.timestamp())


class EntityResolver:
    def __init__(self, records: LegacyRecords, reference: Reference) -> None:
        self._records = records
        self._reference = reference

    def _candidates(self, kind: EntityKind) -> list[Any]:
        if kind is EntityKind.SIM:
            return sorted(self._records.visible_sims(), key=_sim_rank)
        if kind is EntityKind.SKILL:
            return list(self._reference.skills)
        if kind is EntityKind.TRAIT:
            return list(self._reference.traits)
        if kind is EntityKind.ASPIRATION:
            return list(self._reference.aspirations)
        if kind is EntityKind.MILESTONE:
            return list(self._reference.milestones)
        if kind is EntityKind.CAREER:
            return list(self._reference.careers)
        raise ValueError(f"Unknown entity kind: {kind}")

    def resolve(self, kind: EntityKind, name: str) -> Any | None:
        """Return the single best entity of `kind` named `name`, or None."""
        needle = name.strip().casefold()
        if not needle:
            return None
        candidates = self._candidates(kind)

        for entity in candidates:
            if entity.name.casefold() == needle:
                return entity
        for entity in candidates:
            if needle in entity.name.casefold():
                logger.debug("Resolved %s %r by substring to %r", kind.value, name, entity.name)
                return entity

        logger.warning("No %s matching %r", kind.value, name)
        return None

    def sim(self, name: str) -> Sim | None:
        return self.resolve(EntityKind.SIM, name)
