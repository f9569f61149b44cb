"""In-memory user-state store with the same versioning contract as sqlite."""

from __future__ import annotations

import threading

from fst_fantasy.errors import ConcurrentModificationError
from fst_fantasy.schemas.contest import UserContestState


class InMemoryUserStateStore:
    """Dict-backed :class:`~fst_fantasy.db.repositories.UserStateStore`."""

    def __init__(self):
        self._docs: dict[str, UserContestState] = {}
        self._lock = threading.Lock()

    def get_user_state(self, user_id: str) -> UserContestState | None:
        with self._lock:
            doc = self._docs.get(user_id)
        return doc.clone() if doc else None

    def save_user_state(self, state: UserContestState) -> UserContestState:
        with self._lock:
            current = self._docs.get(state.user_id)
            stored_version = current.version if current else 0
            if stored_version != state.version:
                raise ConcurrentModificationError(
                    f"User {state.user_id} was modified concurrently; retry",
                    user_id=state.user_id,
                    expected_version=state.version,
                )
            saved = state.model_copy(update={"version": state.version + 1}, deep=True)
            self._docs[state.user_id] = saved
        return saved.clone()

    def list_user_states(self, locked_only: bool = False) -> list[UserContestState]:
        with self._lock:
            docs = [d.clone() for d in self._docs.values()]
        if locked_only:
            docs = [d for d in docs if d.locked]
        return sorted(docs, key=lambda d: (-d.total_points, d.user_id))

    def count_entries(self) -> int:
        with self._lock:
            return sum(1 for d in self._docs.values() if d.locked)
