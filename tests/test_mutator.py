"""
Tests for SelectionMutator and the change ledger.
"""

import pytest

from interest_editor.config import InterestLimits
from interest_editor.edit.actions import SelectionMutator, compute_primary_ceiling
from interest_editor.edit.ledger import ChangeLedger, summarize
from interest_editor.errors import InvariantRejected, UpstreamFetchError
from interest_editor.models import ChangeAction, Selection, Session

from conftest import make_large_catalog


def ids(session):
    return sorted(session.selected_ids())


class TestToggleSelection:

    def test_adds_unselected_interest(self, mutator, session):
        action = mutator.toggle_selection(session, 1)

        assert action == ChangeAction.ADD
        assert ids(session) == [1]
        assert session.current_selections[0].is_primary is False
        assert session.changes[-1].action == ChangeAction.ADD
        assert session.changes[-1].interest_name == "football"
        assert session.changes[-1].category == "sports"

    def test_toggle_round_trip_restores_membership(self, mutator, session):
        """Two toggles restore membership but leave two ledger entries."""
        mutator.toggle_selection(session, 2)
        before = ids(session)

        mutator.toggle_selection(session, 1)
        mutator.toggle_selection(session, 1)

        assert ids(session) == before
        assert [c.action for c in session.changes] == [
            ChangeAction.ADD, ChangeAction.ADD, ChangeAction.REMOVE
        ]

    def test_lookup_failure_changes_nothing(self, mutator, catalog, session):
        catalog.fail = True

        with pytest.raises(UpstreamFetchError):
            mutator.toggle_selection(session, 1)

        assert session.current_selections == []
        assert session.changes == []

    def test_original_selections_untouched(self, mutator):
        session = Session.new("u1", [Selection("u1", 1)])
        mutator.toggle_selection(session, 1)
        mutator.toggle_selection(session, 2)

        assert [s.interest_id for s in session.original_selections] == [1]


class TestPrimaryCeiling:

    def test_twenty_interests_at_twenty_percent(self):
        limits = InterestLimits(primary_percentage=0.2, min_primary_interests=3,
                                max_primary_interests=10)
        assert compute_primary_ceiling(20, limits) == 4

    def test_clamped_to_min(self):
        limits = InterestLimits(primary_percentage=0.1, min_primary_interests=3,
                                max_primary_interests=10)
        assert compute_primary_ceiling(5, limits) == 3

    def test_clamped_to_max(self):
        limits = InterestLimits(primary_percentage=0.5, min_primary_interests=1,
                                max_primary_interests=5)
        assert compute_primary_ceiling(100, limits) == 5

    def test_half_rounds_up(self):
        limits = InterestLimits(primary_percentage=0.5, min_primary_interests=0,
                                max_primary_interests=10)
        assert compute_primary_ceiling(5, limits) == 3

    def test_catalog_failure(self, mutator, catalog):
        catalog.fail = True
        with pytest.raises(UpstreamFetchError):
            mutator.primary_ceiling()


class TestTogglePrimary:

    @pytest.fixture
    def large_mutator(self):
        limits = InterestLimits(primary_percentage=0.2, min_primary_interests=3,
                                max_primary_interests=10)
        return SelectionMutator(make_large_catalog(20), limits)

    def test_ceiling_enforced(self, large_mutator):
        session = Session.new("u1", [Selection("u1", i) for i in range(1, 8)])

        for interest_id in range(1, 5):
            assert large_mutator.toggle_primary(session, interest_id) == ChangeAction.SET_PRIMARY
        assert session.primary_count == 4

        with pytest.raises(InvariantRejected) as exc_info:
            large_mutator.toggle_primary(session, 5)

        assert exc_info.value.limit == 4
        assert exc_info.value.current == 4
        assert session.primary_count == 4
        assert session.find_selection(5).is_primary is False
        assert len(session.changes) == 4

    def test_unset_allowed_at_ceiling(self, large_mutator):
        session = Session.new("u1", [Selection("u1", i, is_primary=i <= 4) for i in range(1, 6)])

        assert large_mutator.toggle_primary(session, 1) == ChangeAction.UNSET_PRIMARY
        assert session.primary_count == 3

    def test_unselected_interest_is_noop(self, mutator, session):
        assert mutator.toggle_primary(session, 3) is None
        assert session.current_selections == []
        assert session.changes == []

    def test_flip_without_metadata_records_nothing(self, mutator, catalog):
        session = Session.new("u1", [Selection("u1", 2)])
        catalog.missing_ids.add(2)

        assert mutator.toggle_primary(session, 2) == ChangeAction.SET_PRIMARY
        assert session.find_selection(2).is_primary is True
        assert session.changes == []


class TestMassOperations:

    def test_mass_select_is_idempotent(self, mutator, session):
        assert mutator.mass_select(session, "sports") == 3
        after_first = ids(session)
        changes_after_first = len(session.changes)

        assert mutator.mass_select(session, "sports") == 0
        assert ids(session) == after_first
        assert len(session.changes) == changes_after_first == 3

    def test_mass_select_skips_existing(self, mutator):
        session = Session.new("u1", [Selection("u1", 2, is_primary=True)])

        assert mutator.mass_select(session, "sports") == 2
        assert ids(session) == [1, 2, 3]
        assert session.find_selection(2).is_primary is True

    def test_mass_clear_only_touches_category(self, mutator):
        session = Session.new("u1", [Selection("u1", i) for i in (1, 2, 4)])

        assert mutator.mass_clear(session, "sports") == 2
        assert ids(session) == [4]
        assert [c.action for c in session.changes] == [ChangeAction.REMOVE] * 2
        assert all(c.category == "sports" for c in session.changes)

    def test_mass_clear_unresolved_interest_removed_without_change(self, mutator, catalog):
        session = Session.new("u1", [Selection("u1", 1), Selection("u1", 2)])
        catalog.missing_ids.add(2)

        assert mutator.mass_clear(session, "sports") == 2
        assert session.current_selections == []
        assert [c.interest_id for c in session.changes] == [1]

    def test_mass_select_catalog_failure(self, mutator, catalog, session):
        catalog.fail = True
        with pytest.raises(UpstreamFetchError):
            mutator.mass_select(session, "sports")
        assert session.current_selections == []


class TestUndo:

    def test_undo_inverts_last_change_only(self, mutator, session):
        mutator.toggle_selection(session, 1)
        mutator.toggle_selection(session, 2)
        mutator.toggle_selection(session, 1)

        undone = mutator.undo(session)
        assert undone.action == ChangeAction.REMOVE
        assert ids(session) == [1, 2]
        assert session.find_selection(1).is_primary is False
        assert [(c.action, c.interest_id) for c in session.changes] == [
            (ChangeAction.ADD, 1), (ChangeAction.ADD, 2)
        ]

        mutator.undo(session)
        assert ids(session) == [1]
        assert len(session.changes) == 1

    def test_undo_of_removed_primary_restores_non_primary(self, mutator):
        session = Session.new("u1", [Selection("u1", 1, is_primary=True)])
        mutator.toggle_selection(session, 1)

        mutator.undo(session)

        assert session.find_selection(1).is_primary is False

    def test_undo_primary_flip(self, mutator):
        session = Session.new("u1", [Selection("u1", 1)])
        mutator.toggle_primary(session, 1)

        mutator.undo(session)

        assert session.find_selection(1).is_primary is False
        assert session.changes == []

    def test_undo_empty_ledger(self, mutator, session):
        assert mutator.undo(session) is None


class TestLedger:

    def test_summarize_groups_names(self, mutator):
        session = Session.new("u1", [Selection("u1", 4)])
        mutator.toggle_selection(session, 1)
        mutator.toggle_selection(session, 4)
        mutator.toggle_selection(session, 2)
        mutator.toggle_primary(session, 2)

        summary = summarize(session.changes)

        assert summary.added == ["football", "tennis"]
        assert summary.removed == ["jazz"]
        assert summary.primary_set == ["tennis"]
        assert summary.primary_unset == []
        assert summary.total == 4

    def test_ledger_pop_and_last(self, session, catalog):
        ledger = ChangeLedger(session)
        assert ledger.pop() is None

        ledger.record(ChangeAction.ADD, catalog.get_interest_by_id(5))
        assert len(ledger) == 1
        assert ledger.last().interest_name == "rock"
        assert ledger.pop().interest_id == 5
        assert len(session.changes) == 0

    def test_empty_summary(self):
        assert summarize([]).is_empty
