"""Contest error taxonomy.

Every user-facing failure is a :class:`ContestError` carrying a
machine-readable ``kind``, a human-readable message and the HTTP status
the API layer answers with.
"""

from __future__ import annotations


class ContestError(Exception):
    """Base class for every error surfaced to a client."""

    kind = "contest_error"
    status = 400

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        payload = {"error": self.message, "kind": self.kind}
        if self.details:
            payload["details"] = self.details
        return payload


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationError(ContestError):
    kind = "validation_error"


class SizeError(ValidationError):
    kind = "size_error"


class DuplicateError(ValidationError):
    kind = "duplicate_error"


class UnknownPlayerError(ValidationError):
    kind = "unknown_player"


class ClubCapError(ValidationError):
    kind = "club_cap_exceeded"


class FormationError(ValidationError):
    kind = "formation_error"


class PositionMismatchError(ValidationError):
    kind = "position_mismatch"


class BudgetError(ValidationError):
    """Roster or transfer exceeds the budget.

    ``overage`` is in tenths of a unit, like every cost in the catalog.
    """

    kind = "budget_exceeded"

    def __init__(self, message: str, overage: int):
        super().__init__(message, overage=round(overage / 10, 1))
        self.overage = overage


class NoFreeTransfersError(ValidationError):
    """No free transfer left; the caller may retry with ``accept_penalty``."""

    kind = "no_free_transfers"

    def __init__(self, message: str, penalty: int):
        super().__init__(message, penalty=penalty)
        self.penalty = penalty


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------

class StateError(ContestError):
    kind = "state_error"
    status = 409


class NotLockedError(StateError):
    kind = "not_locked"


class AlreadyLockedError(StateError):
    kind = "already_locked"


class CardAlreadyUsedError(StateError):
    kind = "card_already_used"


class PlayerNotInRosterError(StateError):
    kind = "player_not_in_roster"
    status = 400


class UserNotFoundError(StateError):
    kind = "user_not_found"
    status = 404


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class ConcurrencyError(ContestError):
    kind = "concurrency_error"
    status = 409


class ConcurrentModificationError(ConcurrencyError):
    kind = "concurrent_modification"


# ---------------------------------------------------------------------------
# Upstream
# ---------------------------------------------------------------------------

class UpstreamError(ContestError):
    kind = "upstream_error"
    status = 503


class ProviderTimeoutError(UpstreamError):
    kind = "provider_timeout"
    status = 504


class ProviderUnavailableError(UpstreamError):
    kind = "provider_unavailable"


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------

class AuthError(ContestError):
    kind = "auth_error"
    status = 401
