"""Transfer engine — one player swap on a locked roster.

Order of checks (first failure raises, nothing is applied):

    1. roster locked, outgoing player in roster
    2. rollover into the current gameweek
    3. optional wildcard activation
    4. incoming player new to the roster and present in the catalog
    5. position match (or formation, when positions are relaxed)
    6. club cap on the post-swap roster
    7. budget: bank + cost(out) − cost(in) ≥ 0  (never waived)
    8. transfer gating: free transfer, active wildcard, or an explicitly
       accepted point penalty

Penalty policy: with no free transfer and no wildcard the engine rejects
with :class:`NoFreeTransfersError`. The caller may retry with
``accept_penalty=True``; the transfer then goes through and
``rules.transfer_penalty`` points are booked against the gameweek.
"""

from __future__ import annotations

from dataclasses import dataclass

from fst_fantasy.config import RulesConfig, rules_cfg
from fst_fantasy.contest.cards import activate_wildcard
from fst_fantasy.contest.clock import rollover_if_needed
from fst_fantasy.errors import (
    BudgetError,
    ClubCapError,
    DuplicateError,
    FormationError,
    NoFreeTransfersError,
    NotLockedError,
    PlayerNotInRosterError,
    PositionMismatchError,
)
from fst_fantasy.logging_config import get_logger
from fst_fantasy.schemas.contest import UserContestState
from fst_fantasy.schemas.contest_rules import clubs_over_cap, formation_errors

logger = get_logger(__name__)


@dataclass(frozen=True)
class TransferResult:
    state: UserContestState
    penalty: int = 0
    wildcard_active: bool = False
    cost_delta: int = 0  # cost(in) − cost(out), tenths


def apply_transfer(
    state: UserContestState,
    outgoing_id: int,
    incoming_id: int,
    catalog,
    gameweek: int,
    rules: RulesConfig = rules_cfg,
    *,
    wildcard: bool = False,
    accept_penalty: bool = False,
) -> TransferResult:
    """Swap *outgoing_id* for *incoming_id* and return the new state.

    The input state is never modified. On success the roster (same slot),
    budget, free transfers, per-gameweek transfer count and, when a
    penalty applies, the penalty ledger are all updated together.
    """
    # --- Preconditions ---
    if not state.locked:
        raise NotLockedError("Save a team before making transfers")
    if outgoing_id not in state.roster:
        raise PlayerNotInRosterError(
            f"Player {outgoing_id} is not in the team", player_id=outgoing_id,
        )

    # --- Rollover ---
    new = rollover_if_needed(state, gameweek, rules)
    new = new.clone() if new is state else new

    # --- Wildcard ---
    if wildcard and not new.wildcard_active:
        new = activate_wildcard(new, gameweek, rules)
    wildcard_active = new.wildcard_active

    # --- Incoming player ---
    if incoming_id in new.roster:
        raise DuplicateError(
            f"Player {incoming_id} is already in the team", player_ids=[incoming_id],
        )
    extra_id = new.cards.wild_bench.player_id if new.wild_bench_active else None
    if incoming_id == extra_id:
        raise DuplicateError(
            f"Player {incoming_id} is already the wild bench pick", player_ids=[incoming_id],
        )
    out_player = catalog.require(outgoing_id)
    in_player = catalog.require(incoming_id)

    out_idx = new.roster.index(outgoing_id)
    new_roster = list(new.roster)
    new_roster[out_idx] = incoming_id
    new_players = [catalog.require(pid) for pid in new_roster]

    # --- Position ---
    if rules.enforce_transfer_positions:
        if in_player.position != out_player.position:
            raise PositionMismatchError(
                f"Position mismatch: {out_player.web_name} is {out_player.position.value}, "
                f"but {in_player.web_name} is {in_player.position.value}",
                outgoing=out_player.position.value,
                incoming=in_player.position.value,
            )
    elif rules.enforce_formation:
        errors = formation_errors((p.position for p in new_players), rules.formation_limits)
        if errors:
            raise FormationError("Invalid formation: " + "; ".join(errors), problems=errors)

    # --- Club cap (wild bench player included while active) ---
    capped = new_players + [catalog.require(extra_id)] if extra_id is not None else new_players
    over = clubs_over_cap((p.club_id for p in capped), rules.club_cap)
    if over:
        club = in_player.club_id if in_player.club_id in over else next(iter(over))
        raise ClubCapError(
            f"Club {club} would have {over[club]} players (max {rules.club_cap})",
            club_id=club,
            count=over[club],
        )

    # --- Budget ---
    new_budget = new.budget + out_player.cost - in_player.cost
    if new_budget < 0:
        raise BudgetError(
            f"Insufficient budget: need {in_player.price}, have "
            f"{(new.budget + out_player.cost) / 10:.1f} "
            f"(bank {new.budget / 10:.1f} + sell {out_player.price})",
            overage=-new_budget,
        )

    # --- Transfer gating ---
    penalty = 0
    if not wildcard_active and new.free_transfers <= 0:
        if not accept_penalty:
            raise NoFreeTransfersError(
                f"No free transfers left in GW{gameweek}; a further transfer "
                f"costs {rules.transfer_penalty} points",
                penalty=rules.transfer_penalty,
            )
        penalty = rules.transfer_penalty

    # --- Apply ---
    new.roster = new_roster
    new.budget = new_budget
    if not wildcard_active and new.free_transfers > 0:
        new.free_transfers -= 1
    new.transfers_made[gameweek] = new.transfers_made.get(gameweek, 0) + 1
    if penalty:
        new.penalty_points[gameweek] = new.penalty_points.get(gameweek, 0) + penalty

    logger.info(
        "User %s GW%d: %d -> %d (budget %.1f, FT %d%s%s)",
        new.user_id, gameweek, outgoing_id, incoming_id, new_budget / 10,
        new.free_transfers,
        ", wildcard" if wildcard_active else "",
        f", -{penalty} pts" if penalty else "",
    )
    return TransferResult(
        state=new,
        penalty=penalty,
        wildcard_active=wildcard_active,
        cost_delta=in_player.cost - out_player.cost,
    )
