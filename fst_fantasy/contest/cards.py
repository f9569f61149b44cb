"""Special cards: wildcard, triple captain, wild bench.

Each card is single-use per season. Activation rolls the state into the
given gameweek first, then records ``used`` and the activation gameweek
(plus the designated player for the two player cards). A card is active
only in its activation gameweek.
"""

from __future__ import annotations

from fst_fantasy.config import RulesConfig, rules_cfg
from fst_fantasy.contest.clock import rollover_if_needed
from fst_fantasy.errors import (
    CardAlreadyUsedError,
    ClubCapError,
    DuplicateError,
    NotLockedError,
    PlayerNotInRosterError,
    ValidationError,
)
from fst_fantasy.logging_config import get_logger
from fst_fantasy.schemas.contest import UserContestState
from fst_fantasy.schemas.contest_rules import PLAYER_CARDS, CardType, clubs_over_cap

logger = get_logger(__name__)


def _prepare(
    state: UserContestState,
    card: CardType,
    gameweek: int,
    rules: RulesConfig,
) -> UserContestState:
    if not state.locked:
        raise NotLockedError("Save a team before playing a card")
    used = state.cards.get(card)
    if used.used:
        raise CardAlreadyUsedError(
            f"{card.value} was already used in GW{used.activation_gameweek}",
            card=card.value,
            activation_gameweek=used.activation_gameweek,
        )
    rolled = rollover_if_needed(state, gameweek, rules)
    return rolled.clone() if rolled is state else rolled


def _mark_used(state: UserContestState, card: CardType, gameweek: int, player_id: int | None = None) -> None:
    slot = state.cards.get(card)
    slot.used = True
    slot.activation_gameweek = gameweek
    slot.player_id = player_id
    logger.info("User %s played %s in GW%d", state.user_id, card.value, gameweek)


def activate_wildcard(
    state: UserContestState,
    gameweek: int,
    rules: RulesConfig = rules_cfg,
) -> UserContestState:
    """Unlimited transfers for *gameweek*; the budget rule still applies."""
    new = _prepare(state, CardType.WILDCARD, gameweek, rules)
    _mark_used(new, CardType.WILDCARD, gameweek)
    return new


def activate_triple_captain(
    state: UserContestState,
    captain_id: int,
    gameweek: int,
    rules: RulesConfig = rules_cfg,
) -> UserContestState:
    """Triple *captain_id*'s points for *gameweek*."""
    new = _prepare(state, CardType.TRIPLE_CAPTAIN, gameweek, rules)
    if captain_id not in new.roster:
        raise PlayerNotInRosterError(
            f"Player {captain_id} is not in the team", player_id=captain_id,
        )
    _mark_used(new, CardType.TRIPLE_CAPTAIN, gameweek, captain_id)
    return new


def activate_wild_bench(
    state: UserContestState,
    extra_id: int,
    catalog,
    gameweek: int,
    rules: RulesConfig = rules_cfg,
) -> UserContestState:
    """Score *extra_id* as a 12th player for *gameweek*.

    The club cap is checked on the joint 12-player set.
    """
    new = _prepare(state, CardType.WILD_BENCH, gameweek, rules)
    if extra_id in new.roster:
        raise DuplicateError(
            f"Player {extra_id} is already in the team", player_ids=[extra_id],
        )
    extra = catalog.require(extra_id)
    clubs = [catalog.require(pid).club_id for pid in new.roster] + [extra.club_id]
    over = clubs_over_cap(clubs, rules.club_cap)
    if over:
        club = extra.club_id if extra.club_id in over else next(iter(over))
        raise ClubCapError(
            f"Club {club} would have {over[club]} players (max {rules.club_cap})",
            club_id=club,
            count=over[club],
        )
    _mark_used(new, CardType.WILD_BENCH, gameweek, extra_id)
    return new


def activate_card(
    state: UserContestState,
    card: CardType,
    gameweek: int,
    catalog=None,
    player_id: int | None = None,
    rules: RulesConfig = rules_cfg,
) -> UserContestState:
    """Dispatch to the activation function for *card*."""
    if card in PLAYER_CARDS and player_id is None:
        raise ValidationError(f"{card.value} needs a player_id", card=card.value)
    if card is CardType.WILDCARD:
        return activate_wildcard(state, gameweek, rules)
    if card is CardType.TRIPLE_CAPTAIN:
        return activate_triple_captain(state, player_id, gameweek, rules)
    return activate_wild_bench(state, player_id, catalog, gameweek, rules)
