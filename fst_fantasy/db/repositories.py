"""User-state persistence — the contest's document store port.

:class:`UserStateStore` is the interface the contest core depends on.
:class:`SqliteUserStateStore` is the production implementation; every
save is an optimistic compare-and-set on the ``version`` column, so two
writers that read the same version cannot both succeed.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Protocol

from fst_fantasy.db.connection import connect
from fst_fantasy.errors import ConcurrentModificationError
from fst_fantasy.logging_config import get_logger
from fst_fantasy.paths import DB_PATH
from fst_fantasy.schemas.contest import UserContestState

logger = get_logger(__name__)


class UserStateStore(Protocol):
    def get_user_state(self, user_id: str) -> UserContestState | None: ...

    def save_user_state(self, state: UserContestState) -> UserContestState: ...

    def list_user_states(self, locked_only: bool = False) -> list[UserContestState]: ...

    def count_entries(self) -> int: ...


# ---------------------------------------------------------------------------
# SqliteUserStateStore
# ---------------------------------------------------------------------------

class SqliteUserStateStore:
    """CRUD for the ``user_state`` table."""

    def __init__(self, db_path: Path | None = None):
        self.db_path = db_path or DB_PATH

    @staticmethod
    def _decode(row: sqlite3.Row) -> UserContestState:
        state = UserContestState.model_validate_json(row["state_json"])
        return state.model_copy(update={"version": row["version"]})

    def get_user_state(self, user_id: str) -> UserContestState | None:
        with connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT state_json, version FROM user_state WHERE user_id=?",
                (user_id,),
            ).fetchone()
        return self._decode(row) if row else None

    def save_user_state(self, state: UserContestState) -> UserContestState:
        """Persist *state* if its ``version`` still matches the stored row.

        ``version == 0`` means "new document". Returns the saved state
        with its bumped version; raises :class:`ConcurrentModificationError`
        when another writer got there first.
        """
        new_version = state.version + 1
        saved = state.model_copy(update={"version": new_version})
        payload = saved.model_dump_json()
        with connect(self.db_path) as conn:
            if state.version == 0:
                try:
                    conn.execute(
                        """INSERT INTO user_state
                           (user_id, state_json, version, locked, total_points)
                           VALUES (?, ?, ?, ?, ?)""",
                        (state.user_id, payload, new_version, int(state.locked), state.total_points),
                    )
                except sqlite3.IntegrityError:
                    raise ConcurrentModificationError(
                        f"User {state.user_id} was created concurrently; retry",
                        user_id=state.user_id,
                    ) from None
            else:
                cur = conn.execute(
                    """UPDATE user_state
                       SET state_json=?, version=?, locked=?, total_points=?,
                           updated_at=datetime('now')
                       WHERE user_id=? AND version=?""",
                    (payload, new_version, int(state.locked), state.total_points,
                     state.user_id, state.version),
                )
                if cur.rowcount == 0:
                    raise ConcurrentModificationError(
                        f"User {state.user_id} was modified concurrently; retry",
                        user_id=state.user_id,
                        expected_version=state.version,
                    )
            conn.commit()
        logger.debug("Saved user %s at version %d", state.user_id, new_version)
        return saved

    def list_user_states(self, locked_only: bool = False) -> list[UserContestState]:
        sql = "SELECT state_json, version FROM user_state"
        if locked_only:
            sql += " WHERE locked=1"
        sql += " ORDER BY total_points DESC, user_id"
        with connect(self.db_path) as conn:
            rows = conn.execute(sql).fetchall()
        return [self._decode(r) for r in rows]

    def count_entries(self) -> int:
        with connect(self.db_path) as conn:
            row = conn.execute("SELECT COUNT(*) FROM user_state WHERE locked=1").fetchone()
        return row[0]
