# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Roster data access.
One key per department; list order is the rotation order.
"""

import json

import pydantic

from oncall_rotation.core.errors import StoreError
from oncall_rotation.models.domain import Person
from oncall_rotation.repositories.kv_store import KeyValueStore

ROSTER_PREFIX = "ONCALL:ROSTER:"

_PEOPLE = pydantic.TypeAdapter(list[Person])


class RosterRepository:

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    # ── Read ──

    def get_department(self, department: str) -> list[Person]:
        raw = self._store.get(ROSTER_PREFIX + department)
        if raw is None:
            return []
        try:
            return _PEOPLE.validate_json(raw)
        except pydantic.ValidationError as exc:
            raise StoreError(
                f"Corrupt roster for '{department}': {exc.error_count()} errors"
            ) from exc

    def get_all(self) -> dict[str, list[Person]]:
        departments = [
            k[len(ROSTER_PREFIX):] for k in self._store.iter_keys(ROSTER_PREFIX)
        ]
        return {dept: self.get_department(dept) for dept in departments}

    # ── Write ──

    def save_department(self, department: str, people: list[Person]) -> None:
        self._store.put(
            ROSTER_PREFIX + department,
            json.dumps([p.model_dump() for p in people]),
        )

    def delete_department(self, department: str) -> None:
        self._store.delete(ROSTER_PREFIX + department)
