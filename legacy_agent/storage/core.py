"""JSON helpers and the constraint-violation errors raised by the store."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


class IntegrityError(Exception):
    """A write would break a store constraint. Nothing was written."""


class UniqueViolation(IntegrityError):
    """The record already exists under its unique key."""


class ForeignKeyViolation(IntegrityError):
    """The record references a row that does not exist."""


class CheckViolation(IntegrityError):
    """The record fails a row-level check (e.g. a sim related to itself)."""


def read_json(path: Path) -> Any:
    return json.loads(path.read_text())


def write_json(path: Path, data: Any) -> None:
    """Write JSON atomically: readers see the old file or the new one, never half."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(json.dumps(data, indent=2, default=str))
        os.replace(tmp, path)
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise
