"""Pydantic schemas for a user's persisted contest document."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from fst_fantasy.schemas.contest_rules import CardType


class CardState(BaseModel):
    """One season-single-use card."""

    used: bool = False
    activation_gameweek: int | None = None
    player_id: int | None = None  # Captain (triple captain) or extra player (wild bench)

    def is_active(self, gameweek: int) -> bool:
        return self.used and self.activation_gameweek == gameweek


class SpecialCards(BaseModel):
    wildcard: CardState = Field(default_factory=CardState)
    triple_captain: CardState = Field(default_factory=CardState)
    wild_bench: CardState = Field(default_factory=CardState)

    def get(self, card: CardType) -> CardState:
        return getattr(self, card.value)

    def active(self, gameweek: int) -> list[CardType]:
        return [card for card in CardType if self.get(card).is_active(gameweek)]


class UserContestState(BaseModel):
    """Everything the contest stores for one user.

    Costs and budget are in tenths of a unit. ``gameweek_points`` and
    ``penalty_points`` are per-gameweek ledgers; ``total_points`` is
    always the sum of the points ledger. ``version`` belongs to the
    store and is bumped on every successful save.
    """

    user_id: str
    display_name: str = ""
    wallet_address: str | None = None
    locked: bool = False
    roster: list[int] = Field(default_factory=list)
    budget: int = 0
    free_transfers: int = 1
    current_gameweek: int = 1
    last_transfer_gameweek: int | None = None
    current_gameweek_points: int = 0
    total_points: int = 0
    gameweek_points: dict[int, int] = Field(default_factory=dict)
    penalty_points: dict[int, int] = Field(default_factory=dict)
    transfers_made: dict[int, int] = Field(default_factory=dict)
    cards: SpecialCards = Field(default_factory=SpecialCards)
    version: int = 0

    @field_validator("display_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        return value.strip()

    # ------------------------------------------------------------------
    # Card predicates
    # ------------------------------------------------------------------

    def card_active(self, card: CardType) -> bool:
        return self.cards.get(card).is_active(self.current_gameweek)

    @property
    def wildcard_active(self) -> bool:
        return self.card_active(CardType.WILDCARD)

    @property
    def triple_captain_active(self) -> bool:
        return self.card_active(CardType.TRIPLE_CAPTAIN)

    @property
    def wild_bench_active(self) -> bool:
        return self.card_active(CardType.WILD_BENCH)

    # ------------------------------------------------------------------
    # Copy helpers
    # ------------------------------------------------------------------

    def clone(self) -> "UserContestState":
        """Deep copy, so engine functions never mutate the caller's value."""
        return self.model_copy(deep=True)

    def to_public(self) -> dict:
        gw = self.current_gameweek
        return {
            "userId": self.user_id,
            "displayName": self.display_name,
            "address": self.wallet_address,
            "joined": self.locked,
            "team": list(self.roster),
            "budget": round(self.budget / 10, 1),
            "freeTransfers": self.free_transfers,
            "currentGameweek": gw,
            "gameweekPoints": self.current_gameweek_points,
            "points": self.total_points,
            "penaltyPoints": self.penalty_points.get(gw, 0),
            "cards": {
                card.value: {
                    "used": state.used,
                    "activationGameweek": state.activation_gameweek,
                    "playerId": state.player_id,
                    "active": state.is_active(gw),
                }
                for card in CardType
                for state in (self.cards.get(card),)
            },
        }
