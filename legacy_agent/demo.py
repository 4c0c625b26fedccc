"""Create a demo legacy for development/testing."""

import shutil

from legacy_agent.models import (
    Generation,
    Goal,
    Legacy,
    Relationship,
    Sim,
    SimAspiration,
    SimCareer,
    SimSkill,
    SimTrait,
)
from legacy_agent.storage import Storage

DEMO_USER_ID = "demo-user"

DEMO_GOALS = [
    ("Max the Cooking skill", False),
    ("Max the Painting skill", False),
    ("Complete the Master Chef aspiration", False),
    ("Marry and have at least two children", False),
    ("Reach the top of the Culinary career", True),
    ("Throw a gold-medal dinner party", True),
]


def create_demo_data(storage: Storage) -> Legacy:
    """Wipe existing legacies and create the 'Lavender Legacy' demo."""
    legacies_dir = storage.base_path / "legacies"
    if legacies_dir.exists():
        shutil.rmtree(legacies_dir)
    legacies_dir.mkdir(parents=True, exist_ok=True)

    legacy = storage.save_legacy(Legacy(
        user_id=DEMO_USER_ID, legacy_name="Lavender Legacy", current_generation=2,
    ))

    with storage.transaction(legacy.legacy_id) as records:
        gen1 = Generation(
            legacy_id=legacy.legacy_id,
            generation_number=1,
            pack_name="Base Game",
            backstory="Lavender arrived in Willow Creek with nothing but a stove and a dream.",
        )
        gen2 = Generation(
            legacy_id=legacy.legacy_id,
            generation_number=2,
            pack_name="Get Together",
            backstory=(
                "Rose grew up in her mother's kitchen and wants to paint the world "
                "she tasted there."
            ),
            is_active=True,
            required_traits=["Creative", "Foodie"],
            required_careers=["Culinary", "Painter"],
        )
        records.generations.extend([gen1, gen2])
        for text, optional in DEMO_GOALS:
            records.goals.append(
                Goal(generation_id=gen2.generation_id, goal_text=text, is_optional=optional)
            )

        lavender = records.insert_sim(Sim(
            legacy_id=legacy.legacy_id, generation_id=gen1.generation_id,
            name="Lavender", gender="female", life_stage="elder",
            is_generation_heir=True,
        ))
        marcus = records.insert_sim(Sim(
            legacy_id=legacy.legacy_id, generation_id=gen1.generation_id,
            name="Marcus", gender="male", life_stage="elder",
        ))
        rose = records.insert_sim(Sim(
            legacy_id=legacy.legacy_id, generation_id=gen2.generation_id,
            name="Rose", gender="female", life_stage="young_adult",
            mother_id=lavender.sim_id, father_id=marcus.sim_id,
            is_generation_heir=True,
        ))

        records.insert_relationship(Relationship(
            sim_id_1=lavender.sim_id, sim_id_2=marcus.sim_id, relationship_type="spouse",
        ))
        for parent in (lavender, marcus):
            records.insert_relationship(Relationship(
                sim_id_1=parent.sim_id, sim_id_2=rose.sim_id, relationship_type="parent",
            ))

        records.insert_trait(SimTrait(sim_id=lavender.sim_id, trait_name="Foodie"))
        records.insert_trait(SimTrait(sim_id=rose.sim_id, trait_name="Creative"))
        records.insert_trait(SimTrait(sim_id=rose.sim_id, trait_name="Ambitious", trait_slot="2"))

        records.upsert_skill(SimSkill(
            sim_id=lavender.sim_id, skill_name="Cooking", current_level=10,
            is_maxed=True, maxed_date="2024-01-01",
        ))
        records.upsert_skill(SimSkill(sim_id=rose.sim_id, skill_name="Cooking", current_level=4))
        records.upsert_skill(SimSkill(sim_id=rose.sim_id, skill_name="Painting", current_level=6))

        records.sim_careers.append(SimCareer(
            sim_id=rose.sim_id, career_name="Painter", branch_name="Master of the Real",
            current_level=3,
        ))
        records.insert_aspiration(SimAspiration(
            sim_id=rose.sim_id, aspiration_name="Painter Extraordinaire", is_current=True,
        ))

    return legacy
