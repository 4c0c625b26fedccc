"""Sims Legacy Agent — a chat assistant that reads and updates a legacy tracker.

The assistant answers questions about a legacy challenge and records what
happened in the player's game (skills, careers, births, milestones,
relationships, generation goals) through a fixed catalog of tools.
"""
