"""Pydantic schemas for provider-sourced player data."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fst_fantasy.schemas.contest_rules import Position


class GameweekStat(BaseModel):
    """One player's line for a single gameweek (summed over double fixtures)."""

    model_config = ConfigDict(frozen=True)

    gameweek: int
    points: int = 0
    minutes: int = 0
    goals: int = 0
    assists: int = 0
    clean_sheets: int = 0
    bonus: int = 0
    yellow_cards: int = 0
    red_cards: int = 0


class SeasonTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_points: int = 0
    minutes: int = 0
    goals: int = 0
    assists: int = 0
    clean_sheets: int = 0
    bonus: int = 0
    yellow_cards: int = 0
    red_cards: int = 0


class Player(BaseModel):
    """Normalized catalog record. Immutable per refresh cycle."""

    model_config = ConfigDict(frozen=True)

    id: int
    web_name: str
    club_id: int
    position: Position
    cost: int  # Tenths of a unit (e.g. 100 = 10.0)
    event_points: int = 0
    totals: SeasonTotals = Field(default_factory=SeasonTotals)

    @property
    def price(self) -> float:
        """Cost in whole units, for display."""
        return round(self.cost / 10, 1)

    def to_public(self) -> dict:
        return {
            "id": self.id,
            "web_name": self.web_name,
            "team": self.club_id,
            "element_type": self.position.element_type,
            "position": self.position.value,
            "cost": self.price,
            "points": self.totals.total_points,
            "event_points": self.event_points,
        }
