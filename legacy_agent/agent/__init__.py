"""Conversational tool orchestration for one legacy.

Executes one chat turn for a user message:
  1. ContextAssembler — grounding summary of the legacy (active generation,
     goals, household, recent milestones) rendered into the system prompt.
  2. TurnLoop — model call; while the response requests tools (up to
     max_rounds, default 5):
       a. question messages get an answer-only call first (no tools offered);
       b. every tool_use block runs through the ToolExecutor;
       c. the outcomes go back to the model as tool_result blocks.
  3. shape_reply — at most three sentences, a follow-up question after
     changes, a fallback apology instead of an empty reply.

Tools (catalog.py) take human names; the EntityResolver maps them to records
(exact case-insensitive first, then substring; ties prefer the current
household, then the newest). The ToolExecutor applies each write inside its
own Storage.transaction() and never raises.

Tool result format (content of each tool_result block, JSON):
  {"success": true, "message": "...", "data": {...}}
  {"success": false, "error": "..."}
"""

from .catalog import CATALOG_VERSION, ToolName, list_tools  # noqa: F401
from .context import ContextAssembler, GroundingContext, build_context_text  # noqa: F401
from .executor import ToolExecutor, match_goals  # noqa: F401
from .orchestrator import TurnLoop, TurnResult, append_turn  # noqa: F401
from .resolver import EntityKind, EntityResolver  # noqa: F401
from .shaping import FALLBACK, FOLLOW_UP, shape_reply  # noqa: F401
