"""Read-only reference data: game catalogs and challenge rules.

Both are loaded once at startup and handed to the components that need them.
Nothing here is cached behind a module global; a process holds exactly the
objects it constructed.

presets/
  reference.json   {"skills": [...], "traits": [...], "aspirations": [...],
                    "milestones": [...], "careers": [...]}
  rules.md         Free-text challenge rules, injected into the system prompt
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from legacy_agent.models import Aspiration, Career, Milestone, Skill, Trait

from .core import read_json

logger = logging.getLogger(__name__)

DEFAULT_PRESETS_DIR = Path(__file__).parent.parent.parent / "presets"


class Reference(BaseModel):
    """Game catalogs. Names are the unique keys sims link against."""

    model_config = ConfigDict(frozen=True)

    skills: list[Skill] = Field(default_factory=list)
    traits: list[Trait] = Field(default_factory=list)
    aspirations: list[Aspiration] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
    careers: list[Career] = Field(default_factory=list)


class RulesReference(BaseModel):
    """Challenge rules text shown to the model on every turn."""

    model_config = ConfigDict(frozen=True)

    text: str = ""


def load_reference(presets_dir: Path = DEFAULT_PRESETS_DIR) -> Reference:
    path = presets_dir / "reference.json"
    if not path.is_file():
        logger.warning("No reference catalog at %s — name lookups will fail", path)
        return Reference()
    return Reference.model_validate(read_json(path))


def load_rules(presets_dir: Path = DEFAULT_PRESETS_DIR) -> RulesReference:
    path = presets_dir / "rules.md"
    if not path.is_file():
        return RulesReference()
    return RulesReference(text=path.read_text().strip())
