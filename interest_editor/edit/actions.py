"""
Selection Set Mutator

Applies toggle, mass-select, mass-clear and undo operations to the working
copy of a session's selections. Every applied edit is recorded in the change
ledger; refused edits leave both the selections and the ledger untouched.

Invariants:
- at most one Selection per interest in current_selections
- the number of primary selections never grows past the primary ceiling
"""

import logging
import math
from typing import Callable, List, Optional, TypeVar

from interest_editor.config import InterestLimits
from interest_editor.errors import InvariantRejected, UpstreamFetchError
from interest_editor.edit.ledger import ChangeLedger
from interest_editor.models import Change, ChangeAction, Interest, Selection, Session
from interest_editor.storage.protocol import CatalogService

logger = logging.getLogger(__name__)

T = TypeVar("T")


def compute_primary_ceiling(total_interests: int, limits: InterestLimits) -> int:
    """clamp(round(total * percentage), min, max), rounding halves up."""
    recommended = int(math.floor(total_interests * limits.primary_percentage + 0.5))
    return max(limits.min_primary_interests, min(recommended, limits.max_primary_interests))


class SelectionMutator:
    """
    Invariant-preserving edits on Session.current_selections.

    Methods mutate the session passed in; persisting it is the caller's job.
    """

    def __init__(self, catalog: CatalogService, limits: InterestLimits):
        self.catalog = catalog
        self.limits = limits

    def _fetch(self, operation: str, call: Callable[[], T]) -> T:
        try:
            return call()
        except Exception as e:
            logger.warning(f"Catalog call {operation} failed: {e}")
            raise UpstreamFetchError(operation, e) from e

    def _lookup_interest(self, interest_id: int) -> Optional[Interest]:
        try:
            return self.catalog.get_interest_by_id(interest_id)
        except Exception as e:
            logger.warning(f"No metadata for interest {interest_id}: {e}")
            return None

    # --- Toggles ---

    def toggle_selection(self, session: Session, interest_id: int) -> ChangeAction:
        """
        Add the interest if it is not selected, remove it otherwise.

        Returns:
            ChangeAction.ADD or ChangeAction.REMOVE

        Raises:
            UpstreamFetchError: interest metadata could not be loaded (nothing changed)
        """
        interest = self._fetch(
            "get_interest_by_id", lambda: self.catalog.get_interest_by_id(interest_id)
        )
        ledger = ChangeLedger(session)

        if session.find_selection(interest_id) is not None:
            _remove_selection(session, interest_id)
            ledger.record(ChangeAction.REMOVE, interest)
            return ChangeAction.REMOVE

        session.current_selections.append(
            Selection(user_id=session.user_id, interest_id=interest_id, is_primary=False)
        )
        ledger.record(ChangeAction.ADD, interest)
        return ChangeAction.ADD

    def primary_ceiling(self) -> int:
        interests = self._fetch("list_all_interests", self.catalog.list_all_interests)
        return compute_primary_ceiling(len(interests), self.limits)

    def toggle_primary(self, session: Session, interest_id: int) -> Optional[ChangeAction]:
        """
        Flip the primary flag of a selected interest.

        Returns:
            SET_PRIMARY / UNSET_PRIMARY, or None if the interest is not selected

        Raises:
            InvariantRejected: the primary ceiling is already reached
            UpstreamFetchError: the ceiling could not be computed
        """
        selection = session.find_selection(interest_id)
        if selection is None:
            logger.debug(f"Interest {interest_id} is not selected, primary toggle ignored")
            return None

        if not selection.is_primary:
            ceiling = self.primary_ceiling()
            current = session.primary_count
            if current >= ceiling:
                logger.info(
                    f"Primary limit reached for user {session.user_id}: {current} of {ceiling}"
                )
                raise InvariantRejected("Primary interest limit reached", ceiling, current)

        selection.is_primary = not selection.is_primary
        action = ChangeAction.SET_PRIMARY if selection.is_primary else ChangeAction.UNSET_PRIMARY

        interest = self._lookup_interest(interest_id)
        if interest is not None:
            ChangeLedger(session).record(action, interest)
        return action

    # --- Mass operations ---

    def mass_select(self, session: Session, category_key: str) -> int:
        """
        Select every interest of the category that is not selected yet.

        Returns:
            Number of interests added
        """
        interests = self._fetch(
            "list_interests_by_category",
            lambda: self.catalog.list_interests_by_category(category_key),
        )
        existing = set(session.selected_ids())
        ledger = ChangeLedger(session)

        added = 0
        for interest in interests:
            if interest.id in existing:
                continue
            session.current_selections.append(
                Selection(user_id=session.user_id, interest_id=interest.id, is_primary=False)
            )
            existing.add(interest.id)
            ledger.record(ChangeAction.ADD, interest, category=category_key)
            added += 1
        return added

    def mass_clear(self, session: Session, category_key: str) -> int:
        """
        Remove every selection that belongs to the category.

        A selection whose metadata cannot be resolved is still removed but
        gets no ledger entry.

        Returns:
            Number of selections removed
        """
        interests = self._fetch(
            "list_interests_by_category",
            lambda: self.catalog.list_interests_by_category(category_key),
        )
        category_ids = {interest.id for interest in interests}
        ledger = ChangeLedger(session)

        kept: List[Selection] = []
        removed = 0
        for selection in session.current_selections:
            if selection.interest_id not in category_ids:
                kept.append(selection)
                continue
            removed += 1
            interest = self._lookup_interest(selection.interest_id)
            if interest is not None:
                ledger.record(ChangeAction.REMOVE, interest, category=category_key)

        session.current_selections = kept
        return removed

    # --- Undo ---

    def undo(self, session: Session) -> Optional[Change]:
        """
        Revert the last ledger entry and drop it.

        A removed interest comes back as non-primary even if it was primary.

        Returns:
            The reverted change, or None if there was nothing to undo
        """
        change = ChangeLedger(session).pop()
        if change is None:
            return None

        if change.action == ChangeAction.ADD:
            _remove_selection(session, change.interest_id)
        elif change.action == ChangeAction.REMOVE:
            if session.find_selection(change.interest_id) is None:
                session.current_selections.append(
                    Selection(user_id=session.user_id, interest_id=change.interest_id,
                              is_primary=False)
                )
        elif change.action in (ChangeAction.SET_PRIMARY, ChangeAction.UNSET_PRIMARY):
            selection = session.find_selection(change.interest_id)
            if selection is not None:
                selection.is_primary = change.action == ChangeAction.UNSET_PRIMARY

        return change

    def validate_selections(self, session: Session) -> None:
        """
        Check the selection set before commit.

        An empty set is valid: users may clear all their interests.
        """
        logger.debug(
            f"Validating {len(session.current_selections)} selections for user {session.user_id}"
        )


def _remove_selection(session: Session, interest_id: int) -> None:
    session.current_selections = [
        s for s in session.current_selections if s.interest_id != interest_id
    ]
