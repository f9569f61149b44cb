"""Roster validation for the initial team submission.

Checks run in a fixed order and the first failing rule raises:

    size → duplicates → unknown players → club cap → formation → budget

The function is pure; it only reads the catalog snapshot it is given.
"""

from __future__ import annotations

from dataclasses import dataclass

from fst_fantasy.config import RulesConfig, rules_cfg
from fst_fantasy.errors import (
    BudgetError,
    ClubCapError,
    DuplicateError,
    FormationError,
    SizeError,
    UnknownPlayerError,
)
from fst_fantasy.schemas.contest_rules import clubs_over_cap, formation_errors


@dataclass(frozen=True)
class RosterCheck:
    roster: list[int]
    total_cost: int


def validate_roster(
    candidate: list[int],
    catalog,
    rules: RulesConfig = rules_cfg,
) -> RosterCheck:
    """Validate *candidate* against the contest rules.

    Returns the roster unchanged with its total cost (tenths), or raises
    one of :class:`SizeError`, :class:`DuplicateError`,
    :class:`UnknownPlayerError`, :class:`ClubCapError`,
    :class:`FormationError`, :class:`BudgetError`.
    """
    roster = list(candidate)

    # --- Size ---
    if len(roster) != rules.roster_size:
        raise SizeError(
            f"Team must have exactly {rules.roster_size} players, got {len(roster)}",
            expected=rules.roster_size,
            got=len(roster),
        )

    # --- Unique player IDs ---
    seen: set[int] = set()
    dupes: set[int] = set()
    for pid in roster:
        if pid in seen:
            dupes.add(pid)
        seen.add(pid)
    if dupes:
        raise DuplicateError(
            f"Duplicate players in team: {sorted(dupes)}", player_ids=sorted(dupes),
        )

    # --- Known players ---
    missing = [pid for pid in roster if pid not in catalog]
    if missing:
        raise UnknownPlayerError(f"Unknown players: {missing}", player_ids=missing)
    players = [catalog.get(pid) for pid in roster]

    # --- Club cap ---
    over = clubs_over_cap((p.club_id for p in players), rules.club_cap)
    if over:
        club, count = next(iter(sorted(over.items())))
        raise ClubCapError(
            f"Club {club} has {count} players (max {rules.club_cap})",
            club_id=club,
            count=count,
        )

    # --- Formation (optional) ---
    if rules.enforce_formation:
        errors = formation_errors((p.position for p in players), rules.formation_limits)
        if errors:
            raise FormationError("Invalid formation: " + "; ".join(errors), problems=errors)

    # --- Budget ---
    total_cost = sum(p.cost for p in players)
    if total_cost > rules.budget_ceiling:
        overage = total_cost - rules.budget_ceiling
        raise BudgetError(
            f"Over budget by {overage / 10:.1f}: team costs {total_cost / 10:.1f}, "
            f"ceiling is {rules.budget_ceiling / 10:.1f}",
            overage=overage,
        )

    return RosterCheck(roster=roster, total_cost=total_cost)
