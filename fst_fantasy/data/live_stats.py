"""Per-player gameweek stats with an in-memory TTL cache.

Stat lookups are read-mostly and may soft-fail: a player whose history
cannot be fetched scores zero for the request and the caller is told via
a warning. The cache keeps the last good value; bulk lookups serve it
when a later fetch fails and flag the player as stale.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable

from fst_fantasy.config import cache_cfg, data_cfg
from fst_fantasy.errors import UpstreamError
from fst_fantasy.logging_config import get_logger
from fst_fantasy.schemas.player import GameweekStat

logger = get_logger(__name__)


def normalize_history(rows: list[dict]) -> dict[int, GameweekStat]:
    """Collapse element-summary history rows into one stat line per gameweek.

    Double gameweeks appear as two rows with the same ``round``; their
    numbers are summed.
    """
    merged: dict[int, dict[str, int]] = {}
    for row in rows:
        gw = row.get("round", row.get("gameweek"))
        if gw is None:
            continue
        acc = merged.setdefault(int(gw), {})
        for out_key, in_keys in _HISTORY_FIELDS.items():
            value = next((row[k] for k in in_keys if row.get(k) is not None), 0)
            acc[out_key] = acc.get(out_key, 0) + int(value)
    return {gw: GameweekStat(gameweek=gw, **vals) for gw, vals in merged.items()}


_HISTORY_FIELDS: dict[str, tuple[str, ...]] = {
    "points": ("total_points", "points"),
    "minutes": ("minutes",),
    "goals": ("goals_scored", "goals"),
    "assists": ("assists",),
    "clean_sheets": ("clean_sheets", "cleanSheets"),
    "bonus": ("bonus",),
    "yellow_cards": ("yellow_cards",),
    "red_cards": ("red_cards",),
}


@dataclass
class PointsLookup:
    """Bulk lookup result: points per player, plus failed and stale players."""

    points: dict[int, int] = field(default_factory=dict)
    failed: dict[int, str] = field(default_factory=dict)
    stale: dict[int, str] = field(default_factory=dict)


class LiveStats:
    """Gameweek stats source used by the scoring aggregator."""

    def __init__(
        self,
        provider,
        ttl: int | None = None,
        clock: Callable[[], float] = time.time,
        max_workers: int | None = None,
    ):
        self.provider = provider
        self.ttl = ttl if ttl is not None else cache_cfg.player_stats
        self.max_workers = max_workers or data_cfg.stats_workers
        self._clock = clock
        self._cache: dict[int, tuple[dict[int, GameweekStat], float]] = {}
        self._lock = threading.Lock()

    def gameweek_stats(self, player_id: int) -> dict[int, GameweekStat]:
        """Return ``{gameweek: GameweekStat}`` for *player_id*.

        Raises :class:`UpstreamError` when the cached value has expired and
        the fetch fails; :meth:`bulk_points` is the lookup that falls back
        to the last good value and reports it as stale.
        """
        return self._lookup(player_id, allow_stale=False)[0]

    def _lookup(self, player_id: int, allow_stale: bool) -> tuple[dict[int, GameweekStat], str | None]:
        """Stats plus the fetch error when an expired cached value stood in."""
        now = self._clock()
        with self._lock:
            cached = self._cache.get(player_id)
            if cached and now - cached[1] < self.ttl:
                return cached[0], None

        try:
            stats = normalize_history(self.provider.fetch_gameweek_stats(player_id))
        except UpstreamError as exc:
            if allow_stale and cached is not None:
                logger.warning("Stats fetch failed for player %d, using cached value: %s", player_id, exc.message)
                return cached[0], exc.message
            raise

        with self._lock:
            self._cache[player_id] = (stats, now)
            if len(self._cache) > cache_cfg.max_stats_entries:
                expired = [k for k, (_, ts) in self._cache.items() if now - ts > self.ttl]
                for k in expired:
                    del self._cache[k]
        return stats, None

    def points_for(self, player_id: int, gameweek: int) -> int:
        """Raw points *player_id* scored in *gameweek* (0 when they did not play)."""
        stat = self.gameweek_stats(player_id).get(gameweek)
        return stat.points if stat else 0

    def bulk_points(self, player_ids: list[int], gameweek: int) -> PointsLookup:
        """Concurrently look up *gameweek* points for several players.

        Never raises for provider failures. Players with no usable stats
        land in :attr:`PointsLookup.failed`; players scored from an
        expired cached value land in :attr:`PointsLookup.stale`. Both map
        to the error message.
        """
        result = PointsLookup()
        if not player_ids:
            return result

        def _fetch_one(pid: int) -> tuple[int, int | None, str | None, str | None]:
            try:
                stats, stale = self._lookup(pid, allow_stale=True)
            except UpstreamError as exc:
                return pid, None, exc.message, None
            stat = stats.get(gameweek)
            return pid, stat.points if stat else 0, None, stale

        workers = min(self.max_workers, len(player_ids))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [pool.submit(_fetch_one, pid) for pid in player_ids]
            for future in as_completed(futures):
                pid, points, error, stale = future.result()
                if error is not None:
                    logger.warning("Stats unavailable for player %d (GW%d): %s", pid, gameweek, error)
                    result.failed[pid] = error
                    continue
                result.points[pid] = points
                if stale is not None:
                    result.stale[pid] = stale

        return result
