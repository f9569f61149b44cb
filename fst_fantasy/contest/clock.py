"""Gameweek clock and per-gameweek counter rollover.

The current gameweek comes from the provider's ``is_current`` event (via
the catalog). Rollover is a pure function of ``(state, gameweek)``:

    last_transfer_gameweek != gameweek  →  free transfers reset,
                                           gameweek fields advance
    otherwise                           →  unchanged (idempotent)

The clock never moves a user backwards: a provider that briefly reports
an older gameweek leaves the state alone.
"""

from __future__ import annotations

from fst_fantasy.config import RulesConfig, rules_cfg
from fst_fantasy.schemas.contest import UserContestState


class GameweekClock:
    """Resolves the current gameweek from the player catalog."""

    def __init__(self, catalog, override: int | None = None):
        self.catalog = catalog
        self.override = override

    def current_gameweek(self) -> int:
        if self.override is not None:
            return self.override
        return self.catalog.current_gameweek()


def needs_rollover(state: UserContestState, gameweek: int) -> bool:
    """True if *state* has not yet been rolled into *gameweek*."""
    if state.last_transfer_gameweek is None:
        return True
    return gameweek > state.last_transfer_gameweek


def rollover_if_needed(
    state: UserContestState,
    gameweek: int,
    rules: RulesConfig = rules_cfg,
) -> UserContestState:
    """Return *state* rolled over to *gameweek*.

    Resets free transfers to the per-gameweek allowance and points the
    current-gameweek fields at *gameweek*. Returns the same object when
    no rollover is due.
    """
    if not needs_rollover(state, gameweek):
        return state

    rolled = state.clone()
    rolled.free_transfers = rules.free_transfers_per_gameweek
    rolled.last_transfer_gameweek = gameweek
    rolled.current_gameweek = gameweek
    rolled.current_gameweek_points = rolled.gameweek_points.get(gameweek, 0)
    return rolled
