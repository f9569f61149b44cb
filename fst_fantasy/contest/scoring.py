"""Scoring aggregator — gameweek points for one user.

Player set is the roster plus the wild-bench player while that card is
active. Each player's raw points come from the live stats source; a
failed lookup scores zero, is marked in the breakdown and adds a warning,
so one bad upstream response never aborts the whole computation. A
lookup answered from expired cached stats is flagged and warned about
the same way but keeps its points. The triple-captain player's points
are tripled while that card is active, and the gameweek's transfer
penalty is subtracted from the total.

Points are recorded into a per-gameweek ledger (replace, never add) and
the season total is the ledger sum, so recomputing within a gameweek is
idempotent.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fst_fantasy.config import RulesConfig, rules_cfg
from fst_fantasy.contest.clock import rollover_if_needed
from fst_fantasy.schemas.contest import UserContestState


@dataclass(frozen=True)
class PlayerScore:
    player_id: int
    raw_points: int
    multiplier: int = 1
    points: int = 0
    wild_bench: bool = False
    failed: bool = False
    stale: bool = False
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "playerId": self.player_id,
            "rawPoints": self.raw_points,
            "multiplier": self.multiplier,
            "points": self.points,
            "wildBench": self.wild_bench,
            "failed": self.failed,
            "stale": self.stale,
            "error": self.error,
        }


@dataclass(frozen=True)
class ScoreResult:
    gameweek: int
    total: int
    player_points: int
    penalty: int
    breakdown: list[PlayerScore] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return any(p.failed or p.stale for p in self.breakdown)


def scoring_player_ids(state: UserContestState) -> list[int]:
    """Roster ids, followed by the wild-bench player when active."""
    ids = list(state.roster)
    extra = state.cards.wild_bench.player_id
    if state.wild_bench_active and extra is not None and extra not in ids:
        ids.append(extra)
    return ids


def compute_points(
    state: UserContestState,
    live_stats,
    gameweek: int,
    rules: RulesConfig = rules_cfg,
) -> ScoreResult:
    """Compute *state*'s points for *gameweek* without modifying it."""
    state = rollover_if_needed(state, gameweek, rules)
    player_ids = scoring_player_ids(state)
    lookup = live_stats.bulk_points(player_ids, gameweek)

    captain_id = state.cards.triple_captain.player_id if state.triple_captain_active else None
    extra_id = state.cards.wild_bench.player_id if state.wild_bench_active else None

    breakdown: list[PlayerScore] = []
    warnings: list[str] = []
    for pid in player_ids:
        multiplier = rules.triple_captain_multiplier if pid == captain_id else 1
        if pid in lookup.failed:
            breakdown.append(PlayerScore(
                player_id=pid, raw_points=0, multiplier=multiplier, points=0,
                wild_bench=pid == extra_id, failed=True, error=lookup.failed[pid],
            ))
            warnings.append(f"Stats unavailable for player {pid}; counted as 0")
            continue
        raw = lookup.points.get(pid, 0)
        stale_error = lookup.stale.get(pid)
        breakdown.append(PlayerScore(
            player_id=pid, raw_points=raw, multiplier=multiplier,
            points=raw * multiplier, wild_bench=pid == extra_id,
            stale=stale_error is not None, error=stale_error,
        ))
        if stale_error is not None:
            warnings.append(f"Stats for player {pid} are stale; last known values used")

    player_points = sum(p.points for p in breakdown)
    penalty = state.penalty_points.get(gameweek, 0)
    return ScoreResult(
        gameweek=gameweek,
        total=player_points - penalty,
        player_points=player_points,
        penalty=penalty,
        breakdown=breakdown,
        warnings=warnings,
    )


def record_points(
    state: UserContestState,
    result: ScoreResult,
    rules: RulesConfig = rules_cfg,
) -> UserContestState:
    """Write *result* into the gameweek ledger and recompute the season total."""
    new = rollover_if_needed(state, result.gameweek, rules)
    new = new.clone() if new is state else new
    new.gameweek_points[result.gameweek] = result.total
    new.total_points = sum(new.gameweek_points.values())
    if result.gameweek == new.current_gameweek:
        new.current_gameweek_points = result.total
    return new
