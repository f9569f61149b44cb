"""Contest rule constants, enums and request validators.

Encodes the contest's roster rules and the payload shapes accepted by
the API layer. Rule *values* live in :mod:`fst_fantasy.config`; this
module only holds what never changes between deployments.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Positions
# ---------------------------------------------------------------------------

class Position(str, Enum):
    GK = "GK"
    DEF = "DEF"
    MID = "MID"
    FWD = "FWD"

    @property
    def element_type(self) -> int:
        return _POSITION_TO_ELEMENT_TYPE[self]

    @classmethod
    def from_element_type(cls, element_type: int) -> "Position":
        try:
            return ELEMENT_TYPE_MAP[element_type]
        except KeyError:
            raise ValueError(f"Unknown element_type {element_type!r}") from None


ELEMENT_TYPE_MAP: dict[int, Position] = {
    1: Position.GK,
    2: Position.DEF,
    3: Position.MID,
    4: Position.FWD,
}
_POSITION_TO_ELEMENT_TYPE = {pos: et for et, pos in ELEMENT_TYPE_MAP.items()}


# ---------------------------------------------------------------------------
# Special cards
# ---------------------------------------------------------------------------

class CardType(str, Enum):
    WILDCARD = "wildcard"
    TRIPLE_CAPTAIN = "triple_captain"
    WILD_BENCH = "wild_bench"


# Cards that need a designated player
PLAYER_CARDS = {CardType.TRIPLE_CAPTAIN, CardType.WILD_BENCH}


# ---------------------------------------------------------------------------
# Counting helpers
# ---------------------------------------------------------------------------

def club_counts(club_ids) -> dict[int, int]:
    """Return ``{club_id: count}`` for an iterable of club ids."""
    counts: dict[int, int] = {}
    for club in club_ids:
        counts[club] = counts.get(club, 0) + 1
    return counts


def clubs_over_cap(club_ids, cap: int | None) -> dict[int, int]:
    """Return the clubs whose count exceeds *cap* (empty when *cap* is None)."""
    if cap is None:
        return {}
    return {club: n for club, n in club_counts(club_ids).items() if n > cap}


def formation_errors(
    positions,
    limits: dict[str, tuple[int, int]],
) -> list[str]:
    """Describe each position whose count falls outside *limits*."""
    pos_counts: dict[str, int] = {}
    for pos in positions:
        key = pos.value if isinstance(pos, Position) else str(pos)
        pos_counts[key] = pos_counts.get(key, 0) + 1
    errors = []
    for pos, (lo, hi) in limits.items():
        actual = pos_counts.get(pos, 0)
        if actual < lo or actual > hi:
            errors.append(f"{pos}: need {lo}-{hi}, got {actual}")
    return errors


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------

_USER_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def check_user_id(value: str) -> str:
    """Trim and validate a raw user id; raise ``ValueError`` when malformed."""
    value = str(value).strip()
    if not _USER_ID_RE.match(value):
        raise ValueError("userId must be 1-64 characters of letters, digits, '_' or '-'")
    return value


class TeamSubmission(BaseModel):
    """Body of ``POST /save-team``."""

    team: list[int] = Field(..., min_length=1)

    @field_validator("team", mode="before")
    @classmethod
    def _coerce_ids(cls, value):
        if not isinstance(value, list):
            raise ValueError("team must be a list of player ids")
        return value


class TransferRequest(BaseModel):
    """Body of ``POST /transfer``."""

    player_out_id: int
    player_in_id: int
    wildcard: bool = False
    accept_penalty: bool = False


class CardRequest(BaseModel):
    """Body of ``POST /cards/<card>``."""

    player_id: int | None = None


class DisplayNameRequest(BaseModel):
    display_name: str = Field(..., min_length=1)
