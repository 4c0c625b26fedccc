"""Tests for the grounding context and system prompt assembly."""

import pytest

from legacy_agent.agent import ContextAssembler, build_context_text
from legacy_agent.agent.context import MAX_BACKSTORY_CHARS
from legacy_agent.models import Goal, Legacy, Sim, SimMilestone
from legacy_agent.storage import LegacyRecords, RulesReference


@pytest.fixture
def assembler(storage) -> ContextAssembler:
    return ContextAssembler(storage, RulesReference(text="No cheats."))


class TestAssembler:
    def test_not_owned_is_none(self, assembler, demo_legacy):
        assert assembler.build(demo_legacy.legacy_id, "someone-else") is None

    def test_missing_legacy_is_none(self, assembler, user_id):
        assert assembler.build("00000000-0000-4000-8000-000000000000", user_id) is None

    def test_system_prompt_has_persona_rules_and_context(self, assembler, demo_legacy, user_id):
        context = assembler.build(demo_legacy.legacy_id, user_id)
        prompt = context.system_prompt
        assert prompt.startswith('You are the Sims Legacy Assistant for the "Lavender Legacy" legacy.')
        assert "Challenge rules:\nNo cheats." in prompt
        assert context.context_text in prompt
        assert context.legacy.legacy_id == demo_legacy.legacy_id

    def test_rules_section_omitted_when_empty(self, storage, demo_legacy, user_id):
        context = ContextAssembler(storage, RulesReference()).build(demo_legacy.legacy_id, user_id)
        assert "Challenge rules" not in context.system_prompt

    def test_text_is_not_html_escaped(self, storage, user_id):
        legacy = storage.save_legacy(Legacy(user_id=user_id, legacy_name="Rock & Roll <3"))
        context = ContextAssembler(storage, RulesReference()).build(legacy.legacy_id, user_id)
        assert '"Rock & Roll <3"' in context.system_prompt

    def test_demo_context(self, assembler, demo_legacy, user_id):
        text = assembler.build(demo_legacy.legacy_id, user_id).context_text
        assert "Legacy: Lavender Legacy (current generation 2)" in text
        assert "Active generation: 2, pack: Get Together" in text
        assert "Required traits: Creative, Foodie" in text
        assert "Required careers: Culinary, Painter" in text
        assert "Required goals (0/4 complete):" in text
        assert "  [ ] Max the Cooking skill" in text
        assert "Optional goals (0/2 complete):" in text
        assert "  - Rose (young_adult, human) [heir]" in text

    def test_reflects_writes_between_turns(self, assembler, executor, demo_legacy, user_id):
        executor.execute("complete_generation_goal", {"goal_text": "max cooking"})
        text = assembler.build(demo_legacy.legacy_id, user_id).context_text
        assert "  [x] Max the Cooking skill" in text
        assert "Required goals (1/4 complete):" in text


class TestBuildContextText:
    def _legacy(self):
        return Legacy(user_id="u", legacy_name="Big")

    def _records_with_generation(self, **kwargs):
        from legacy_agent.models import Generation

        generation = Generation(legacy_id="L", generation_number=1, is_active=True, **kwargs)
        return LegacyRecords(generations=[generation]), generation

    def test_goals_capped_with_tail(self):
        records, generation = self._records_with_generation()
        records.goals = [
            Goal(generation_id=generation.generation_id, goal_text=f"Goal {i}") for i in range(11)
        ]
        text, snapshot = build_context_text(self._legacy(), records)
        assert "  [ ] Goal 7" in text
        assert "Goal 8" not in text
        assert "  ...and 3 more" in text
        assert snapshot["active_generation"]["required_goals"] == 11

    def test_household_capped(self):
        records, _ = self._records_with_generation()
        records.sims = [
            Sim(legacy_id="L", name=f"Sim {i:02d}", gender="male", life_stage="adult")
            for i in range(10)
        ]
        text, snapshot = build_context_text(self._legacy(), records)
        assert "  - Sim 07" in text
        assert "Sim 08" not in text
        assert "  ...and 2 more" in text
        assert len(snapshot["household"]) == 10

    def test_household_excludes_dead_and_moved_out(self):
        records, _ = self._records_with_generation()
        records.sims = [
            Sim(legacy_id="L", name="Alive", gender="male", life_stage="adult"),
            Sim(legacy_id="L", name="Gone", gender="male", life_stage="adult", status="dead"),
            Sim(legacy_id="L", name="Away", gender="male", life_stage="adult", current_household=False),
        ]
        text, _ = build_context_text(self._legacy(), records)
        assert "Alive" in text
        assert "Gone" not in text and "Away" not in text

    def test_backstory_truncated(self):
        records, _ = self._records_with_generation(backstory="word " * 500)
        text, _ = build_context_text(self._legacy(), records)
        [line] = [ln for ln in text.splitlines() if ln.startswith("Backstory: ")]
        assert len(line) == len("Backstory: ") + MAX_BACKSTORY_CHARS
        assert line.endswith("...")

    def test_recent_milestones_window_and_total(self):
        records, _ = self._records_with_generation()
        sim = Sim(legacy_id="L", name="Rose", gender="female", life_stage="adult")
        records.sims = [sim]
        records.sim_milestones = [
            SimMilestone(sim_id=sim.sim_id, milestone_name=f"M{i}", achieved_date=f"2024-01-{i + 1:02d}")
            for i in range(10)
        ]
        text, snapshot = build_context_text(self._legacy(), records)
        assert "Recent milestones (10 total):" in text
        assert "  - Rose: M9 (2024-01-10)" in text
        assert "M2 " in text
        assert "M1 " not in text and "M0 " not in text
        assert snapshot["milestone_count"] == 10

    def test_no_generation_or_household(self):
        text, snapshot = build_context_text(self._legacy(), LegacyRecords())
        assert "Active generation: none recorded." in text
        assert "Current household: none recorded." in text
        assert "milestones" not in text
        assert snapshot["active_generation"] is None
