"""Tests for the transfer engine."""

from dataclasses import replace

import pytest

from fst_fantasy.contest.cards import activate_wild_bench
from fst_fantasy.contest.transfers import apply_transfer
from fst_fantasy.errors import (
    BudgetError,
    CardAlreadyUsedError,
    ClubCapError,
    DuplicateError,
    FormationError,
    NoFreeTransfersError,
    NotLockedError,
    PlayerNotInRosterError,
    PositionMismatchError,
    UnknownPlayerError,
)

GW = 2


class TestSuccessfulTransfer:
    def test_swaps_in_same_slot(self, locked_state, snapshot, rules):
        result = apply_transfer(locked_state, 2, 13, snapshot, GW, rules)
        assert result.state.roster[1] == 13
        assert 2 not in result.state.roster
        assert len(result.state.roster) == 11

    def test_budget_gains_the_difference(self, locked_state, snapshot, rules):
        result = apply_transfer(locked_state, 2, 13, snapshot, GW, rules)
        assert result.state.budget == 10
        assert result.cost_delta == -10

    def test_consumes_free_transfer(self, locked_state, snapshot, rules):
        result = apply_transfer(locked_state, 2, 13, snapshot, GW, rules)
        assert result.state.free_transfers == 0
        assert result.state.transfers_made == {GW: 1}
        assert result.penalty == 0

    def test_input_state_untouched(self, locked_state, snapshot, rules):
        before = locked_state.model_dump()
        apply_transfer(locked_state, 2, 13, snapshot, GW, rules)
        assert locked_state.model_dump() == before

    def test_consecutive_transfers_track_bank(self, locked_state, snapshot, rules):
        state = locked_state.model_copy(update={"budget": 20})
        result = apply_transfer(state, 3, 13, snapshot, GW, rules)
        assert result.state.budget == 40
        state = result.state.model_copy(update={"free_transfers": 1})
        result = apply_transfer(state, 1, 12, snapshot, GW, rules)
        assert result.state.budget == 50


class TestPreconditions:
    def test_unlocked_roster_rejected(self, locked_state, snapshot, rules):
        state = locked_state.model_copy(update={"locked": False})
        with pytest.raises(NotLockedError):
            apply_transfer(state, 2, 13, snapshot, GW, rules)

    def test_outgoing_not_in_roster(self, locked_state, snapshot, rules):
        with pytest.raises(PlayerNotInRosterError):
            apply_transfer(locked_state, 12, 13, snapshot, GW, rules)

    def test_incoming_already_in_roster(self, locked_state, snapshot, rules):
        with pytest.raises(DuplicateError):
            apply_transfer(locked_state, 2, 3, snapshot, GW, rules)

    def test_incoming_unknown(self, locked_state, snapshot, rules):
        with pytest.raises(UnknownPlayerError):
            apply_transfer(locked_state, 2, 999, snapshot, GW, rules)


class TestPositionRule:
    def test_position_mismatch(self, locked_state, snapshot, rules):
        with pytest.raises(PositionMismatchError) as exc:
            apply_transfer(locked_state, 2, 16, snapshot, GW, rules)
        assert exc.value.details == {"outgoing": "DEF", "incoming": "MID"}

    def test_positions_relaxed(self, locked_state, snapshot, rules):
        relaxed = replace(rules, enforce_transfer_positions=False)
        state = locked_state.model_copy(update={"budget": 100})
        result = apply_transfer(state, 2, 16, snapshot, GW, relaxed)
        assert 16 in result.state.roster
        assert result.state.budget == 70

    def test_relaxed_positions_still_check_formation(self, locked_state, snapshot, rules):
        relaxed = replace(rules, enforce_transfer_positions=False, enforce_formation=True)
        # Swapping the only keeper for a defender leaves no GK.
        state = locked_state.model_copy(update={"budget": 100})
        with pytest.raises(FormationError):
            apply_transfer(state, 1, 13, snapshot, GW, relaxed)


class TestClubCap:
    def test_third_player_from_club(self, locked_state, snapshot, rules):
        # Back B (club 2) out, Club One Back in: club 1 would have three.
        with pytest.raises(ClubCapError) as exc:
            apply_transfer(locked_state, 3, 14, snapshot, GW, rules)
        assert exc.value.details == {"club_id": 1, "count": 3}

    def test_same_club_swap_allowed(self, locked_state, snapshot, rules):
        # Back A (club 1) out, Club One Back (club 1) in: still two.
        result = apply_transfer(locked_state, 2, 14, snapshot, GW, rules)
        assert result.state.budget == 5


class TestBudget:
    def test_insufficient_budget(self, locked_state, snapshot, rules):
        with pytest.raises(BudgetError) as exc:
            apply_transfer(locked_state, 3, 15, snapshot, GW, rules)
        assert exc.value.overage == 130

    def test_wildcard_does_not_waive_budget(self, locked_state, snapshot, rules):
        with pytest.raises(BudgetError):
            apply_transfer(locked_state, 3, 15, snapshot, GW, rules, wildcard=True)


class TestTransferGating:
    def test_second_transfer_rejected(self, locked_state, snapshot, rules):
        first = apply_transfer(locked_state, 2, 13, snapshot, GW, rules).state
        with pytest.raises(NoFreeTransfersError) as exc:
            apply_transfer(first, 11, 19, snapshot, GW, rules)
        assert exc.value.penalty == 4

    def test_accept_penalty_books_points(self, locked_state, snapshot, rules):
        first = apply_transfer(locked_state, 2, 13, snapshot, GW, rules).state
        result = apply_transfer(first, 11, 19, snapshot, GW, rules, accept_penalty=True)
        assert result.penalty == 4
        assert result.state.penalty_points == {GW: 4}
        assert result.state.transfers_made == {GW: 2}
        assert result.state.free_transfers == 0

    def test_budget_checked_before_penalty(self, locked_state, snapshot, rules):
        state = locked_state.model_copy(update={"free_transfers": 0})
        with pytest.raises(BudgetError):
            apply_transfer(state, 3, 15, snapshot, GW, rules, accept_penalty=True)

    def test_new_gameweek_resets_free_transfer(self, locked_state, snapshot, rules):
        spent = apply_transfer(locked_state, 2, 13, snapshot, GW, rules).state
        result = apply_transfer(spent, 11, 19, snapshot, GW + 1, rules)
        assert result.state.free_transfers == 0
        assert result.state.last_transfer_gameweek == GW + 1
        assert result.state.transfers_made == {GW: 1, GW + 1: 1}
        assert result.penalty == 0


class TestWildcard:
    def test_wildcard_allows_unlimited_transfers(self, locked_state, snapshot, rules):
        r1 = apply_transfer(locked_state, 2, 13, snapshot, GW, rules, wildcard=True)
        r2 = apply_transfer(r1.state, 11, 19, snapshot, GW, rules)
        r3 = apply_transfer(r2.state, 1, 12, snapshot, GW, rules)
        assert r3.wildcard_active
        assert r3.state.free_transfers == 1
        assert r3.state.penalty_points == {}
        assert r3.state.transfers_made == {GW: 3}

    def test_wildcard_marked_used(self, locked_state, snapshot, rules):
        result = apply_transfer(locked_state, 2, 13, snapshot, GW, rules, wildcard=True)
        card = result.state.cards.wildcard
        assert card.used and card.activation_gameweek == GW

    def test_wildcard_expires_next_gameweek(self, locked_state, snapshot, rules):
        r1 = apply_transfer(locked_state, 2, 13, snapshot, GW, rules, wildcard=True)
        r2 = apply_transfer(r1.state, 11, 19, snapshot, GW + 1, rules)
        assert not r2.wildcard_active
        assert r2.state.free_transfers == 0

    def test_second_wildcard_rejected(self, locked_state, snapshot, rules):
        r1 = apply_transfer(locked_state, 2, 13, snapshot, GW, rules, wildcard=True)
        with pytest.raises(CardAlreadyUsedError):
            apply_transfer(r1.state, 11, 19, snapshot, GW + 1, rules, wildcard=True)

    def test_failed_transfer_does_not_burn_wildcard(self, locked_state, snapshot, rules):
        with pytest.raises(BudgetError):
            apply_transfer(locked_state, 3, 15, snapshot, GW, rules, wildcard=True)
        assert not locked_state.cards.wildcard.used


class TestWildBenchInteraction:
    def test_wild_bench_player_cannot_be_transferred_in(self, locked_state, snapshot, rules):
        state = activate_wild_bench(locked_state, 20, snapshot, GW, rules)
        with pytest.raises(DuplicateError):
            apply_transfer(state, 10, 20, snapshot, GW, rules)

    def test_club_cap_counts_wild_bench_player(self, locked_state, snapshot, rules):
        # Back A out for Cheap Back leaves club 1 with one player; Club One
        # Mid as wild bench brings it back to two.
        first = apply_transfer(locked_state, 2, 13, snapshot, GW, rules, wildcard=True)
        state = activate_wild_bench(first.state, 21, snapshot, GW, rules)
        with pytest.raises(ClubCapError) as exc:
            apply_transfer(state, 3, 14, snapshot, GW, rules)
        assert exc.value.details == {"club_id": 1, "count": 3}

    def test_wild_bench_ignored_after_its_gameweek(self, locked_state, snapshot, rules):
        state = activate_wild_bench(locked_state, 20, snapshot, GW, rules)
        result = apply_transfer(state, 10, 20, snapshot, GW + 1, rules)
        assert 20 in result.state.roster
