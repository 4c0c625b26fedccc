"""Tests for EntityResolver — exact-then-substring matching and tie-breaks."""

from datetime import datetime, timedelta, timezone

import pytest

from legacy_agent.agent import EntityKind, EntityResolver
from legacy_agent.models import Sim
from legacy_agent.storage import LegacyRecords

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _sim(name: str, *, days: int = 0, current: bool = True, status: str = "alive") -> Sim:
    return Sim(
        legacy_id="L", name=name, gender="female", life_stage="adult",
        current_household=current, status=status, created_at=T0 + timedelta(days=days),
    )


def _resolver(sims: list[Sim], reference) -> EntityResolver:
    return EntityResolver(LegacyRecords(sims=sims), reference)


class TestSims:
    def test_exact_case_insensitive(self, reference):
        rose = _sim("Rose")
        resolver = _resolver([_sim("Rosemary"), rose], reference)
        assert resolver.sim("ROSE") is rose

    def test_exact_beats_earlier_substring(self, reference):
        rose = _sim("Rose", days=-5, current=False)
        resolver = _resolver([_sim("Rosemary", days=5), rose], reference)
        assert resolver.sim("rose") is rose

    def test_substring_fallback(self, reference):
        resolver = _resolver([_sim("Lavender Bloom")], reference)
        assert resolver.sim("lavender").name == "Lavender Bloom"

    def test_surrounding_whitespace_ignored(self, reference):
        resolver = _resolver([_sim("Marcus")], reference)
        assert resolver.sim("  marcus ").name == "Marcus"

    def test_not_found(self, reference):
        assert _resolver([_sim("Rose")], reference).sim("Bella") is None

    def test_blank_name_resolves_nothing(self, reference):
        assert _resolver([_sim("Rose")], reference).sim("  ") is None

    def test_deleted_sims_are_invisible(self, reference):
        resolver = _resolver([_sim("Ghost", status="deleted")], reference)
        assert resolver.sim("Ghost") is None

    def test_dead_and_moved_out_sims_still_resolve(self, reference):
        resolver = _resolver([_sim("Grandma", status="dead", current=False)], reference)
        assert resolver.sim("Grandma").status == "dead"

    def test_same_name_prefers_current_household(self, reference):
        old = _sim("Rose", days=10, current=False)
        current = _sim("Rose", days=0, current=True)
        resolver = _resolver([old, current], reference)
        assert resolver.sim("Rose") is current

    def test_same_name_same_household_prefers_newest(self, reference):
        older = _sim("Rose", days=0)
        newer = _sim("Rose", days=3)
        assert _resolver([newer, older], reference).sim("Rose") is newer
        assert _resolver([older, newer], reference).sim("Rose") is newer

    def test_substring_tie_break_uses_same_policy(self, reference):
        away = _sim("Rose Senior", days=9, current=False)
        home = _sim("Rose Junior", days=1, current=True)
        assert _resolver([away, home], reference).sim("rose") is home


class TestCatalogs:
    @pytest.mark.parametrize("kind,name,expected", [
        (EntityKind.SKILL, "cooking", "Cooking"),
        (EntityKind.TRAIT, "FOODIE", "Foodie"),
        (EntityKind.ASPIRATION, "master chef", "Master Chef"),
        (EntityKind.MILESTONE, "got married", "Got Married"),
        (EntityKind.CAREER, "painter", "Painter"),
    ])
    def test_exact(self, reference, kind, expected, name):
        assert _resolver([], reference).resolve(kind, name).name == expected

    def test_exact_beats_substring(self, reference):
        # "Gourmet Cooking" also contains "cooking"
        assert _resolver([], reference).resolve(EntityKind.SKILL, "Cooking").name == "Cooking"

    def test_substring_keeps_catalog_order(self, reference):
        skill = _resolver([], reference).resolve(EntityKind.SKILL, "rocket")
        assert skill.name == "Rocket Science"
        assert skill.max_level == 10

    def test_unknown(self, reference):
        assert _resolver([], reference).resolve(EntityKind.TRAIT, "Sparkly") is None
