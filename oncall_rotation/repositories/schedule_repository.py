# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Schedule projections data access.
SCHEDULE (full), PREVIOUS (single-level undo), CURRENT, HISTORY:<id>.
NO business rules here — pure reads and writes over the key-value store.
"""

from typing import Optional, TypeVar

import pydantic
from pydantic import BaseModel

from oncall_rotation.core.errors import StoreError
from oncall_rotation.models.domain import CurrentEntry, HistorySnapshot, Schedule
from oncall_rotation.repositories.kv_store import KeyValueStore

SCHEDULE_KEY = "ONCALL:SCHEDULE"
PREVIOUS_KEY = "ONCALL:SCHEDULE:PREVIOUS"
CURRENT_KEY = "ONCALL:CURRENT"
HISTORY_PREFIX = "ONCALL:HISTORY:"

M = TypeVar("M", bound=BaseModel)


def load_model(store: KeyValueStore, key: str, model: type[M]) -> Optional[M]:
    """Read and decode `key`; a record that no longer parses is a store fault."""
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return model.model_validate_json(raw)
    except pydantic.ValidationError as exc:
        raise StoreError(f"Corrupt record at '{key}': {exc.error_count()} errors") from exc


class ScheduleRepository:
    """Schedule projections stored as JSON documents."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # ── Full schedule ──

    def get_schedule(self) -> Optional[Schedule]:
        return load_model(self._store, SCHEDULE_KEY, Schedule)

    def save_schedule(self, schedule: Schedule) -> None:
        self._store.put(SCHEDULE_KEY, schedule.model_dump_json())

    def get_previous(self) -> Optional[Schedule]:
        return load_model(self._store, PREVIOUS_KEY, Schedule)

    def save_previous(self, schedule: Schedule) -> None:
        self._store.put(PREVIOUS_KEY, schedule.model_dump_json())

    def delete_previous(self) -> None:
        self._store.delete(PREVIOUS_KEY)

    # ── Current ──

    def get_current(self) -> Optional[CurrentEntry]:
        return load_model(self._store, CURRENT_KEY, CurrentEntry)

    def save_current(self, current: CurrentEntry) -> None:
        self._store.put(CURRENT_KEY, current.model_dump_json())

    def delete_current(self) -> None:
        self._store.delete(CURRENT_KEY)

    # ── History ──

    def get_snapshot(self, entry_id: str) -> Optional[HistorySnapshot]:
        return load_model(self._store, HISTORY_PREFIX + entry_id, HistorySnapshot)

    def snapshot_exists(self, entry_id: str) -> bool:
        return self._store.get(HISTORY_PREFIX + entry_id) is not None

    def save_snapshot(self, snapshot: HistorySnapshot) -> None:
        self._store.put(HISTORY_PREFIX + snapshot.entry.id, snapshot.model_dump_json())

    def list_snapshot_ids(self) -> list[str]:
        return [k[len(HISTORY_PREFIX):] for k in self._store.iter_keys(HISTORY_PREFIX)]
