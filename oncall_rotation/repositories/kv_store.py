# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: Key-value store — the only durable state the service has.
get / put / delete / prefix-list-with-cursor. No transactions, no CAS:
callers rely on idempotency ledgers and write ordering instead.
"""

import abc
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from oncall_rotation.core.errors import StoreError
from oncall_rotation.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_LIST_LIMIT = 1000


@dataclass
class KVListResult:
    keys: list[str] = field(default_factory=list)
    next_cursor: Optional[str] = None
    done: bool = True


class KeyValueStore(abc.ABC):
    """Durable string -> string mapping."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None when absent."""

    @abc.abstractmethod
    def put(self, key: str, value: str) -> None:
        ...

    @abc.abstractmethod
    def delete(self, key: str) -> None:
        """Remove `key`. Deleting an absent key is not an error."""

    def iter_keys(self, prefix: str = "") -> list[str]:
        """Walk every page of `list` and collect the keys."""
        keys: list[str] = []
        cursor: Optional[str] = None
        while True:
            page = self.list(prefix, cursor=cursor)
            keys.extend(page.keys)
            if page.done:
                return keys
            cursor = page.next_cursor

    @abc.abstractmethod
    def list(
        self,
        prefix: str = "",
        cursor: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> KVListResult:
        """
        Return up to `limit` keys starting with `prefix`, in key order,
        strictly after `cursor`. Pass `next_cursor` back until `done`.
        """


class InMemoryKVStore(KeyValueStore):
    """In-memory store (default; process-local)."""

    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    def put(self, key: str, value: str) -> None:
        self._store[key] = value

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def list(
        self,
        prefix: str = "",
        cursor: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> KVListResult:
        matching = sorted(
            k for k in self._store
            if k.startswith(prefix) and (cursor is None or k > cursor)
        )
        page = matching[:limit]
        if len(matching) > limit:
            return KVListResult(keys=page, next_cursor=page[-1], done=False)
        return KVListResult(keys=page)

    # ── Bulk / internal ──

    def clear(self) -> None:
        self._store.clear()

    def count(self) -> int:
        return len(self._store)


def _like_prefix(prefix: str) -> str:
    escaped = prefix.replace("!", "!!").replace("%", "!%").replace("_", "!_")
    return f"{escaped}%"


class SqlKVStore(KeyValueStore):
    """Key-value table on any SQLAlchemy engine (PostgreSQL in production)."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def ensure_schema(self) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(text("""
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key        VARCHAR(512) PRIMARY KEY,
                        value      TEXT NOT NULL,
                        updated_at VARCHAR(64) NOT NULL
                    )
                """))
        except SQLAlchemyError as exc:
            logger.error("Failed to create kv_store table: %s", exc)
            raise StoreError(f"kv schema init failed: {exc}") from exc

    def get(self, key: str) -> Optional[str]:
        try:
            with self._engine.connect() as conn:
                return conn.execute(
                    text("SELECT value FROM kv_store WHERE key = :key"),
                    {"key": key},
                ).scalar()
        except SQLAlchemyError as exc:
            logger.error("kv get failed key=%s: %s", key, exc)
            raise StoreError(f"kv get failed for '{key}': {exc}") from exc

    def put(self, key: str, value: str) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    text("""
                        INSERT INTO kv_store (key, value, updated_at)
                        VALUES (:key, :value, :updated_at)
                        ON CONFLICT (key) DO UPDATE
                        SET value = excluded.value, updated_at = excluded.updated_at
                    """),
                    {
                        "key": key,
                        "value": value,
                        "updated_at": datetime.now(timezone.utc).isoformat(),
                    },
                )
        except SQLAlchemyError as exc:
            logger.error("kv put failed key=%s: %s", key, exc)
            raise StoreError(f"kv put failed for '{key}': {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            with self._engine.begin() as conn:
                conn.execute(text("DELETE FROM kv_store WHERE key = :key"), {"key": key})
        except SQLAlchemyError as exc:
            logger.error("kv delete failed key=%s: %s", key, exc)
            raise StoreError(f"kv delete failed for '{key}': {exc}") from exc

    def list(
        self,
        prefix: str = "",
        cursor: Optional[str] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> KVListResult:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text("""
                        SELECT key FROM kv_store
                        WHERE key LIKE :pattern ESCAPE '!' AND key > :cursor
                        ORDER BY key
                        LIMIT :limit
                    """),
                    {
                        "pattern": _like_prefix(prefix),
                        "cursor": cursor or "",
                        "limit": limit + 1,
                    },
                ).scalars().all()
        except SQLAlchemyError as exc:
            logger.error("kv list failed prefix=%s: %s", prefix, exc)
            raise StoreError(f"kv list failed for '{prefix}': {exc}") from exc
        page = list(rows[:limit])
        if len(rows) > limit:
            return KVListResult(keys=page, next_cursor=page[-1], done=False)
        return KVListResult(keys=page)

    def dispose(self) -> None:
        self._engine.dispose()
