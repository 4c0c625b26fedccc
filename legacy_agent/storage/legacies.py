"""Legacy metadata and per-legacy records, with a scoped transaction."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from legacy_agent.models import Legacy

from .core import read_json, write_json
from .records import LegacyRecords

logger = logging.getLogger(__name__)


class Storage:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._legacy_root = base_path / "legacies"
        self._legacy_root.mkdir(parents=True, exist_ok=True)

    @property
    def base_path(self) -> Path:
        return self._base

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _legacy_file(self, legacy_id: str) -> Path:
        return self._legacy_root / f"{legacy_id}.json"

    def legacy_dir(self, legacy_id: str) -> Path:
        return self._legacy_root / legacy_id

    def _records_file(self, legacy_id: str) -> Path:
        return self.legacy_dir(legacy_id) / "records.json"

    # ------------------------------------------------------------------
    # Legacies
    # ------------------------------------------------------------------

    def save_legacy(self, legacy: Legacy) -> Legacy:
        write_json(self._legacy_file(legacy.legacy_id), legacy.model_dump(mode="json"))
        self.legacy_dir(legacy.legacy_id).mkdir(exist_ok=True)
        return legacy

    def get_legacy(self, legacy_id: str) -> Legacy | None:
        path = self._legacy_file(legacy_id)
        if not path.is_file():
            return None
        return Legacy.model_validate(read_json(path))

    def get_owned_legacy(self, legacy_id: str, user_id: str) -> Legacy | None:
        """The legacy, or None when it is missing or belongs to someone else."""
        legacy = self.get_legacy(legacy_id)
        if legacy is None or legacy.user_id != user_id:
            return None
        return legacy

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def load_records(self, legacy_id: str) -> LegacyRecords:
        """Read a consistent snapshot of the legacy's records."""
        path = self._records_file(legacy_id)
        if not path.is_file():
            return LegacyRecords()
        return LegacyRecords.model_validate(read_json(path))

    def save_records(self, legacy_id: str, records: LegacyRecords) -> None:
        write_json(self._records_file(legacy_id), records.model_dump(mode="json"))

    @contextmanager
    def transaction(self, legacy_id: str) -> Iterator[LegacyRecords]:
        """Yield a working copy of the records; commit on exit, roll back on error.

        Any exception raised inside the block discards the working copy, so
        either every change made in the block is written or none is. Leaving
        the block normally (including an early return) commits.
        """
        records = self.load_records(legacy_id)
        try:
            yield records
        except BaseException:
            logger.debug("transaction on legacy %s rolled back", legacy_id)
            raise
        self.save_records(legacy_id, records)
