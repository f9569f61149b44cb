"""Contest manager — orchestrates identity, catalog, engine and store.

Every mutation follows the same read-modify-write shape:

    per-user lock → load → rollover → engine call → versioned save

The in-process lock serializes requests for one user; the store's
version check catches writers in other processes. Responses are plain
dicts ready for ``jsonify`` and carry a ``warnings`` list whenever stale
player data, failed stat lookups or display-only default costs were
involved.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path

from fst_fantasy.config import RulesConfig, prize_cfg, rules_cfg
from fst_fantasy.contest.leaderboard import leaderboard as rank_users, prize_pool as pool_totals
from fst_fantasy.contest import cards
from fst_fantasy.contest.clock import GameweekClock, needs_rollover, rollover_if_needed
from fst_fantasy.contest.identity import resolve_user_id, simulated_wallet_address
from fst_fantasy.contest.scoring import compute_points, record_points
from fst_fantasy.contest.transfers import apply_transfer
from fst_fantasy.contest.validator import validate_roster
from fst_fantasy.data.catalog import PlayerCatalog
from fst_fantasy.data.fpl_api import FplApiProvider
from fst_fantasy.data.live_stats import LiveStats
from fst_fantasy.db.connection import connect
from fst_fantasy.db.migrations import apply_migrations
from fst_fantasy.db.repositories import SqliteUserStateStore
from fst_fantasy.errors import (
    AlreadyLockedError,
    ConcurrentModificationError,
    UpstreamError,
    UserNotFoundError,
    ValidationError,
)
from fst_fantasy.logging_config import get_logger
from fst_fantasy.paths import DB_PATH
from fst_fantasy.schemas.contest import UserContestState
from fst_fantasy.schemas.contest_rules import CardType

logger = get_logger(__name__)


class ContestManager:
    """Single entry point for the HTTP layer and the scheduler."""

    def __init__(
        self,
        store=None,
        provider=None,
        catalog: PlayerCatalog | None = None,
        live_stats: LiveStats | None = None,
        clock: GameweekClock | None = None,
        rules: RulesConfig = rules_cfg,
        db_path: Path | None = None,
        bot_token: str | None = None,
    ):
        if store is None:
            db_path = db_path or DB_PATH
            with connect(db_path) as conn:
                apply_migrations(conn)
            store = SqliteUserStateStore(db_path)
        self.store = store
        self.provider = provider or FplApiProvider()
        self.catalog = catalog or PlayerCatalog(self.provider)
        self.live_stats = live_stats or LiveStats(self.provider)
        self.clock = clock or GameweekClock(self.catalog)
        self.rules = rules
        self.bot_token = bot_token

        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    @contextmanager
    def _user_lock(self, user_id: str):
        with self._locks_guard:
            lock = self._locks.setdefault(user_id, threading.Lock())
        with lock:
            yield

    def _load(self, user_id: str) -> UserContestState:
        state = self.store.get_user_state(user_id)
        if state is None:
            raise UserNotFoundError("User not found. Connect wallet first.", user_id=user_id)
        return state

    def _save(self, state: UserContestState) -> UserContestState:
        return self.store.save_user_state(state)

    # ------------------------------------------------------------------
    # Identity / profile
    # ------------------------------------------------------------------

    def connect_user(self, credential: dict) -> dict:
        """Resolve *credential* and create the user's document on first sight."""
        user_id = resolve_user_id(credential, bot_token=self.bot_token)
        address = simulated_wallet_address(user_id)
        with self._user_lock(user_id):
            state = self.store.get_user_state(user_id)
            if state is None:
                state = UserContestState(
                    user_id=user_id,
                    display_name=str(credential.get("displayName") or "")[: self.rules.display_name_max],
                    wallet_address=address,
                    budget=self.rules.budget_ceiling,
                    free_transfers=self.rules.free_transfers_per_gameweek,
                )
                state = self._save(state)
                logger.info("New user %s connected", user_id)
        return {"success": True, "address": state.wallet_address or address, "userId": user_id}

    def set_display_name(self, user_id: str, name: str) -> dict:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Display name cannot be empty")
        if len(name) > self.rules.display_name_max:
            raise ValidationError(
                f"Display name is limited to {self.rules.display_name_max} characters",
                max_length=self.rules.display_name_max,
            )
        with self._user_lock(user_id):
            state = self._load(user_id).clone()
            state.display_name = name
            saved = self._save(state)
        return {"success": True, "displayName": saved.display_name}

    def get_profile(self, user_id: str) -> dict:
        """Profile with the roster expanded from the catalog.

        Read-only: rollover is applied to the returned view but not saved.
        """
        state = self._load(user_id)
        warnings: list[str] = []
        snapshot = None
        try:
            snapshot = self.catalog.snapshot()
            warnings.extend(snapshot.warnings)
            state = rollover_if_needed(state, self.clock.current_gameweek(), self.rules)
        except UpstreamError as exc:
            warnings.append(f"Player data unavailable: {exc.message}")

        profile = state.to_public()
        players = []
        for pid in state.roster:
            player = snapshot.get(pid) if snapshot else None
            if player is not None:
                players.append(player.to_public())
                continue
            cost, _ = snapshot.cost_or_default(pid) if snapshot else (None, True)
            players.append({"id": pid, "cost": None if cost is None else round(cost / 10, 1), "estimated": True})
            warnings.append(f"Player {pid} missing from player data; default cost shown")
        profile["players"] = players
        profile["warnings"] = warnings
        return profile

    def get_team(self, user_id: str) -> list[int]:
        state = self.store.get_user_state(user_id)
        return list(state.roster) if state else []

    # ------------------------------------------------------------------
    # Roster lock
    # ------------------------------------------------------------------

    def submit_team(self, user_id: str, team: list[int]) -> dict:
        """Validate *team* and lock it as the user's roster."""
        with self._user_lock(user_id):
            state = self._load(user_id)
            if state.locked:
                raise AlreadyLockedError("Team already saved; use transfers to change it")

            snapshot = self.catalog.snapshot()
            check = validate_roster(team, snapshot, self.rules)
            new = rollover_if_needed(state, self.clock.current_gameweek(), self.rules)
            new = new.clone() if new is state else new
            new.roster = check.roster
            new.locked = True
            new.budget = self.rules.budget_ceiling - check.total_cost
            saved = self._save(new)

        logger.info("User %s locked a team costing %.1f", user_id, check.total_cost / 10)
        return {
            "success": True,
            "message": "Team saved. Contest joined for free!",
            "totalCost": round(check.total_cost / 10, 1),
            "budget": round(saved.budget / 10, 1),
            "warnings": list(snapshot.warnings),
        }

    # ------------------------------------------------------------------
    # Transfers and cards
    # ------------------------------------------------------------------

    def make_transfer(
        self,
        user_id: str,
        player_out_id: int,
        player_in_id: int,
        wildcard: bool = False,
        accept_penalty: bool = False,
    ) -> dict:
        with self._user_lock(user_id):
            state = self._load(user_id)
            snapshot = self.catalog.snapshot()
            gameweek = self.clock.current_gameweek()
            result = apply_transfer(
                state, player_out_id, player_in_id, snapshot, gameweek, self.rules,
                wildcard=wildcard, accept_penalty=accept_penalty,
            )
            saved = self._save(result.state)

        return {
            "success": True,
            "team": list(saved.roster),
            "budget": round(saved.budget / 10, 1),
            "freeTransfers": saved.free_transfers,
            "wildcardActive": result.wildcard_active,
            "penalty": result.penalty,
            "gameweek": gameweek,
            "warnings": list(snapshot.warnings),
        }

    def activate_card(self, user_id: str, card: str, player_id: int | None = None) -> dict:
        try:
            card_type = CardType(card)
        except ValueError:
            raise ValidationError(
                f"Invalid card '{card}'. Must be one of: "
                f"{', '.join(c.value for c in CardType)}",
            ) from None

        with self._user_lock(user_id):
            state = self._load(user_id)
            snapshot = self.catalog.snapshot()
            gameweek = self.clock.current_gameweek()
            new = cards.activate_card(
                state, card_type, gameweek, catalog=snapshot,
                player_id=player_id, rules=self.rules,
            )
            self._save(new)

        return {
            "success": True,
            "card": card_type.value,
            "gameweek": gameweek,
            "playerId": player_id,
            "warnings": list(snapshot.warnings),
        }

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def refresh_points(self, user_id: str) -> dict:
        """Recompute and persist the user's points for the current gameweek."""
        with self._user_lock(user_id):
            state = self._load(user_id)
            gameweek = self.clock.current_gameweek()
            result = compute_points(state, self.live_stats, gameweek, self.rules)
            saved = self._save(record_points(state, result, self.rules))

        return {
            "success": True,
            "gameweek": gameweek,
            "gameweekPoints": result.total,
            "penalty": result.penalty,
            "points": saved.total_points,
            "breakdown": [p.to_dict() for p in result.breakdown],
            "degraded": result.degraded,
            "warnings": result.warnings,
        }

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def list_players(self) -> dict:
        snapshot = self.catalog.snapshot()
        players = sorted(snapshot.players.values(), key=lambda p: p.id)
        return {
            "players": [p.to_public() for p in players],
            "gameweek": snapshot.current_gameweek,
            "warnings": list(snapshot.warnings),
        }

    def leaderboard(self, limit: int | None = None) -> list[dict]:
        return rank_users(self.store.list_user_states(locked_only=True), limit)

    def prize_pool(self) -> dict:
        return pool_totals(self.store.count_entries(), prize_cfg.fst_per_entry)

    # ------------------------------------------------------------------
    # Periodic work
    # ------------------------------------------------------------------

    def tick(self) -> int:
        """Refresh the catalog and roll every user into the current gameweek.

        Returns the number of users rolled over. Safe to run at any time.
        """
        try:
            self.catalog.refresh()
            gameweek = self.clock.current_gameweek()
        except UpstreamError as exc:
            logger.warning("Tick skipped, player data unavailable: %s", exc.message)
            return 0

        rolled = 0
        for state in self.store.list_user_states():
            if not needs_rollover(state, gameweek):
                continue
            with self._user_lock(state.user_id):
                fresh = self._load(state.user_id)
                new = rollover_if_needed(fresh, gameweek, self.rules)
                if new is fresh:
                    continue
                try:
                    self._save(new)
                except ConcurrentModificationError:
                    logger.info("Rollover for %s raced another writer; will retry next tick", state.user_id)
                    continue
            rolled += 1
        if rolled:
            logger.info("Rolled %d users into GW%d", rolled, gameweek)
        return rolled
