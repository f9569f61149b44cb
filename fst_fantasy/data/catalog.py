"""Player catalog cache — normalized, TTL-cached provider snapshot.

The provider's bootstrap payload is normalized into immutable
:class:`~fst_fantasy.schemas.player.Player` records and held as a single
:class:`CatalogSnapshot`. Refreshes replace the whole snapshot under a
lock (last writer wins). When a refresh fails and an older snapshot is
held, that snapshot is served with a warning. Without one, the
provider's last on-disk payload is served the same way; with nothing
cached at all the upstream error propagates, because validation must
never run on made-up costs.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable

from fst_fantasy.config import cache_cfg, data_cfg
from fst_fantasy.errors import UnknownPlayerError, UpstreamError
from fst_fantasy.logging_config import get_logger
from fst_fantasy.schemas.contest_rules import Position
from fst_fantasy.schemas.player import Player, SeasonTotals

logger = get_logger(__name__)


@dataclass(frozen=True)
class CatalogSnapshot:
    players: dict[int, Player]
    current_gameweek: int
    fetched_at: float
    warnings: tuple[str, ...] = field(default=())

    def __contains__(self, player_id: int) -> bool:
        return player_id in self.players

    def __len__(self) -> int:
        return len(self.players)

    def get(self, player_id: int) -> Player | None:
        return self.players.get(player_id)

    def require(self, player_id: int) -> Player:
        player = self.players.get(player_id)
        if player is None:
            raise UnknownPlayerError(f"Player {player_id} not found in player data", player_id=player_id)
        return player

    def cost_or_default(self, player_id: int) -> tuple[int, bool]:
        """Return ``(cost, is_fallback)``. Display only, never for validation."""
        player = self.players.get(player_id)
        if player is None:
            return data_cfg.fallback_cost, True
        return player.cost, False


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def _detect_current_gameweek(events: list[dict]) -> int:
    """``is_current`` event, else the last finished one, else 1."""
    for ev in events:
        if ev.get("is_current"):
            return int(ev["id"])
    finished = [int(ev["id"]) for ev in events if ev.get("finished")]
    return max(finished) if finished else 1


def _normalize_element(el: dict) -> Player:
    return Player(
        id=int(el["id"]),
        web_name=el.get("web_name") or f"Player {el['id']}",
        club_id=int(el["team"]),
        position=Position.from_element_type(int(el["element_type"])),
        cost=int(el["now_cost"]),
        event_points=int(el.get("event_points") or 0),
        totals=SeasonTotals(
            total_points=int(el.get("total_points") or 0),
            minutes=int(el.get("minutes") or 0),
            goals=int(el.get("goals_scored") or 0),
            assists=int(el.get("assists") or 0),
            clean_sheets=int(el.get("clean_sheets") or 0),
            bonus=int(el.get("bonus") or 0),
            yellow_cards=int(el.get("yellow_cards") or 0),
            red_cards=int(el.get("red_cards") or 0),
        ),
    )


def normalize_bootstrap(payload: dict, fetched_at: float | None = None) -> CatalogSnapshot:
    """Build a snapshot from a ``bootstrap-static`` payload.

    Elements missing a required field are skipped (and logged) rather
    than failing the whole refresh.
    """
    players: dict[int, Player] = {}
    skipped = 0
    for el in payload.get("elements", []):
        try:
            player = _normalize_element(el)
        except (KeyError, TypeError, ValueError) as exc:
            skipped += 1
            logger.debug("Skipping malformed element %s: %s", el.get("id"), exc)
            continue
        players[player.id] = player
    if skipped:
        logger.warning("Skipped %d malformed player records", skipped)
    return CatalogSnapshot(
        players=players,
        current_gameweek=_detect_current_gameweek(payload.get("events", [])),
        fetched_at=fetched_at if fetched_at is not None else time.time(),
    )


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class PlayerCatalog:
    """Thread-safe TTL cache around a provider's ``fetch_catalog``."""

    def __init__(
        self,
        provider,
        ttl: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.ttl = ttl if ttl is not None else cache_cfg.catalog
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: CatalogSnapshot | None = None

    def _is_fresh(self, snap: CatalogSnapshot | None) -> bool:
        return snap is not None and (self._clock() - snap.fetched_at) < self.ttl

    def snapshot(self, force: bool = False) -> CatalogSnapshot:
        """Return a fresh snapshot, refreshing from the provider when stale."""
        with self._lock:
            current = self._snapshot
        if not force and self._is_fresh(current):
            return current
        return self.refresh()

    def refresh(self) -> CatalogSnapshot:
        """Fetch and swap in a new snapshot.

        Once a snapshot is held, the provider is asked to bypass any cache
        of its own. Raises the provider's :class:`UpstreamError` when no
        snapshot (in memory or on the provider's disk) is available.
        """
        with self._lock:
            held = self._snapshot
        try:
            payload = self.provider.fetch_catalog(force=held is not None)
            fresh = normalize_bootstrap(payload, fetched_at=self._clock())
        except UpstreamError as exc:
            return self._stale_fallback(held, exc)

        if not fresh.players and held is not None:
            logger.warning("Provider returned an empty catalog, keeping previous snapshot")
            return replace(held, warnings=("Player data is stale: provider returned no players",))

        with self._lock:
            self._snapshot = fresh
        logger.info(
            "Catalog refreshed: %d players, current gameweek %d",
            len(fresh.players), fresh.current_gameweek,
        )
        return fresh

    def _stale_fallback(self, held: CatalogSnapshot | None, exc: UpstreamError) -> CatalogSnapshot:
        warning = f"Player data is stale: {exc.message}"
        if held is not None:
            logger.warning("Catalog refresh failed (%s), serving stale snapshot", exc.message)
            return replace(held, warnings=(warning,))

        cached = self.provider.cached_catalog()
        if cached is not None:
            payload, saved_at = cached
            on_disk = normalize_bootstrap(payload, fetched_at=saved_at)
            if on_disk.players:
                logger.warning(
                    "Catalog refresh failed (%s), serving on-disk copy saved at %s",
                    exc.message, time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(saved_at)),
                )
                return replace(on_disk, warnings=(warning,))

        logger.error("Catalog refresh failed with no cached snapshot: %s", exc.message)
        raise exc

    def current_gameweek(self) -> int:
        return self.snapshot().current_gameweek
