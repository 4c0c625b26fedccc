"""Final reply shaping: short, never empty, ends on a question after changes."""

from __future__ import annotations

import re

MAX_SENTENCES = 3
FOLLOW_UP = "Anything else you'd like me to update?"
FALLBACK = "Sorry, I couldn't put together a reply just now. Could you try rephrasing?"

_SENTENCE_BREAK = re.compile(r"(?<=[.!?])\s+")


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_BREAK.split(text.strip()) if s.strip()]


def shape_reply(text: str, tools_ran: bool) -> str:
    sentences = split_sentences(text)[:MAX_SENTENCES]
    if tools_ran and not any(s.endswith("?") for s in sentences):
        sentences.append(FOLLOW_UP)
    shaped = " ".join(sentences)
    return shaped if shaped.strip() else FALLBACK
