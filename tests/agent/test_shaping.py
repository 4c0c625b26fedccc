from legacy_agent.agent import FALLBACK, FOLLOW_UP, shape_reply
from legacy_agent.agent.shaping import split_sentences


def test_split_sentences():
    assert split_sentences("One. Two!  Three?\nFour") == ["One.", "Two!", "Three?", "Four"]


def test_five_sentences_truncated_to_three():
    text = "Rose is an adult. She paints. She cooks. She has a cat. She is happy."
    assert shape_reply(text, tools_ran=False) == "Rose is an adult. She paints. She cooks."


def test_follow_up_appended_after_tools():
    shaped = shape_reply("Done. Cooking is now level 7.", tools_ran=True)
    assert shaped == f"Done. Cooking is now level 7. {FOLLOW_UP}"


def test_no_follow_up_when_a_kept_sentence_asks():
    shaped = shape_reply("Saved. Which career did she pick?", tools_ran=True)
    assert shaped == "Saved. Which career did she pick?"


def test_question_past_the_cut_does_not_count():
    shaped = shape_reply("A. B. C. Want more?", tools_ran=True)
    assert shaped == f"A. B. C. {FOLLOW_UP}"


def test_no_follow_up_without_tools():
    assert shape_reply("All good.", tools_ran=False) == "All good."


def test_empty_reply_becomes_fallback():
    assert shape_reply("", tools_ran=False) == FALLBACK
    assert shape_reply("  \n ", tools_ran=False) == FALLBACK


def test_empty_reply_after_tools_still_asks_follow_up():
    assert shape_reply("", tools_ran=True) == FOLLOW_UP
