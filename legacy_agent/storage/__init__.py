"""File-based JSON storage for legacies, their records and conversations.

Data layout:
  data/
    legacies/
      <legacy_id>.json         Legacy metadata (owner, name, current generation)
      <legacy_id>/
        records.json           Generations, goals, sims and every sim link
        conversations/
          <conversation_id>.json           Conversation metadata
          <conversation_id>/messages.json  Ordered message log
  presets/
    reference.json             Skill/trait/aspiration/milestone/career catalogs
    rules.md                   Challenge rules text

Writes replace whole files atomically. Multi-record mutations go through
Storage.transaction(), which commits the working copy on normal exit and
discards it on any exception.

Constraint violations (unique keys, foreign keys, row checks) raise an
IntegrityError subclass before anything is modified.
"""

# Re-export all public symbols so `from legacy_agent.storage import ...` works.

from .conversations import ConversationStore  # noqa: F401
from .core import (  # noqa: F401
    CheckViolation,
    ForeignKeyViolation,
    IntegrityError,
    UniqueViolation,
)
from .legacies import Storage  # noqa: F401
from .records import LegacyRecords  # noqa: F401
from .reference import (  # noqa: F401
    DEFAULT_PRESETS_DIR,
    Reference,
    RulesReference,
    load_reference,
    load_rules,
)
