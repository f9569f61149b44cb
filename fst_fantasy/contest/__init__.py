"""Contest engine: roster rules, transfers, cards, scoring and ranking."""

from fst_fantasy.contest.cards import activate_card
from fst_fantasy.contest.clock import GameweekClock, rollover_if_needed
from fst_fantasy.contest.leaderboard import leaderboard, prize_pool
from fst_fantasy.contest.scoring import compute_points, record_points
from fst_fantasy.contest.transfers import TransferResult, apply_transfer
from fst_fantasy.contest.validator import RosterCheck, validate_roster

__all__ = [
    "GameweekClock",
    "RosterCheck",
    "TransferResult",
    "activate_card",
    "apply_transfer",
    "compute_points",
    "leaderboard",
    "prize_pool",
    "record_points",
    "rollover_if_needed",
    "validate_roster",
]
