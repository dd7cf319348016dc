# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Audit log data access.
Bounded append-only log, newest first, stored under a single key.
"""

import json
from typing import Optional

import pydantic

from oncall_rotation.core.config import settings
from oncall_rotation.core.errors import StoreError
from oncall_rotation.models.domain import AuditRecord
from oncall_rotation.repositories.kv_store import KeyValueStore

AUDIT_KEY = "ONCALL:AUDIT"

_AUDIT_LIST = pydantic.TypeAdapter(list[AuditRecord])


class AuditRepository:
    """Audit log (bounded, newest first)."""

    def __init__(self, store: KeyValueStore, max_size: Optional[int] = None) -> None:
        self._store = store
        self._max_size = max_size if max_size is not None else settings.AUDIT_LOG_MAX

    # ── Read ──

    def get_all(self) -> list[AuditRecord]:
        raw = self._store.get(AUDIT_KEY)
        if raw is None:
            return []
        try:
            return _AUDIT_LIST.validate_json(raw)
        except pydantic.ValidationError as exc:
            raise StoreError(f"Corrupt audit log: {exc.error_count()} errors") from exc

    def count(self) -> int:
        return len(self.get_all())

    # ── Write ──

    def prepend(self, record: AuditRecord) -> None:
        """Prepend `record`, dropping the oldest records beyond the cap."""
        records = [record, *self.get_all()][: self._max_size]
        self._store.put(
            AUDIT_KEY,
            json.dumps([r.model_dump(mode="json") for r in records]),
        )
