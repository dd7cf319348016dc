# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: NotifyState — the dispatch idempotency ledger.
Key: ONCALL:NOTIFY_STATE:<entry_id>:<channel>:<notify_type>
"""

from typing import Optional

from oncall_rotation.models.domain import Channel, NotifyState, NotifyType
from oncall_rotation.repositories.kv_store import KeyValueStore
from oncall_rotation.repositories.schedule_repository import load_model

NOTIFY_STATE_PREFIX = "ONCALL:NOTIFY_STATE:"


def notify_state_key(entry_id: str, channel: Channel, notify_type: NotifyType) -> str:
    return f"{NOTIFY_STATE_PREFIX}{entry_id}:{channel.value}:{notify_type.value}"


class NotifyStateRepository:

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def get(
        self, entry_id: str, channel: Channel, notify_type: NotifyType
    ) -> Optional[NotifyState]:
        return load_model(
            self._store, notify_state_key(entry_id, channel, notify_type), NotifyState
        )

    def save(self, state: NotifyState) -> None:
        self._store.put(
            notify_state_key(state.entry_id, state.channel, state.notify_type),
            state.model_dump_json(),
        )

    def list_for_entry(self, entry_id: str) -> list[NotifyState]:
        states = []
        for key in self._store.iter_keys(f"{NOTIFY_STATE_PREFIX}{entry_id}:"):
            state = load_model(self._store, key, NotifyState)
            if state is not None:
                states.append(state)
        return states

    def list_all(self) -> list[NotifyState]:
        states = []
        for key in self._store.iter_keys(NOTIFY_STATE_PREFIX):
            state = load_model(self._store, key, NotifyState)
            if state is not None:
                states.append(state)
        return states
