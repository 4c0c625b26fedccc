"""Handlebars rendering for the assistant's system prompt."""

from typing import Any

import pybars


_compiler = pybars.Compiler()


class PromptError(Exception):
    """Raised when a Handlebars template fails to compile or render."""


DEFAULT_SYSTEM_PROMPT = """\
You are the Sims Legacy Assistant for the "{{{legacy_name}}}" legacy. \
Be concise and helpful. Only use the provided legacy context and the results \
of your tools. If data is missing, ask a clarifying question.

When the player describes something that happened in their game, record it \
with the matching tool. Look a sim up with get_sim_details before changing \
them if you are unsure of their current state. Use the names the player \
uses; the tools resolve names for you. Never claim a change was saved unless \
a tool reported success.
{{#if rules}}

Challenge rules:
{{{rules}}}
{{/if}}
{{#if context}}

Legacy context:
{{{context}}}
{{/if}}
"""


class PromptTemplate:
    """A Handlebars template compiled once, at construction.

    Triple-stash ({{{x}}}) inserts text verbatim; double-stash HTML-escapes.
    """

    def __init__(self, source: str = DEFAULT_SYSTEM_PROMPT) -> None:
        try:
            self._compiled = _compiler.compile(source)
        except Exception as e:
            raise PromptError(f"Template error: {e}") from e

    def render(self, context: dict[str, Any]) -> str:
        try:
            return str(self._compiled(context)).strip()
        except Exception as e:
            raise PromptError(f"Template error: {e}") from e
