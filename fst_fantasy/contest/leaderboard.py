"""Read-side projections: leaderboard and prize pool."""

from __future__ import annotations

from fst_fantasy.config import prize_cfg
from fst_fantasy.schemas.contest import UserContestState


def leaderboard(states: list[UserContestState], limit: int | None = None) -> list[dict]:
    """Joined users ranked by season points (ties broken by user id).

    Equal totals share a rank (1, 2, 2, 4, ...).
    """
    limit = prize_cfg.leaderboard_size if limit is None else limit
    joined = sorted(
        (s for s in states if s.locked),
        key=lambda s: (-s.total_points, s.user_id),
    )
    rows = []
    prev_points = None
    rank = 0
    for position, s in enumerate(joined[:limit], start=1):
        if s.total_points != prev_points:
            rank = position
            prev_points = s.total_points
        rows.append({
            "rank": rank,
            "userId": s.user_id,
            "displayName": s.display_name or s.user_id,
            "points": s.total_points,
            "gameweekPoints": s.current_gameweek_points,
        })
    return rows


def prize_pool(entries: int, fst_per_entry: int | None = None) -> dict:
    """Total FST in the pool for *entries* joined users."""
    per_entry = prize_cfg.fst_per_entry if fst_per_entry is None else fst_per_entry
    return {"fst": entries * per_entry, "entries": entries}
