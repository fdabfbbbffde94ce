"""
Edit Session Engine - single source of truth for a user's edit session.

The engine owns the session lifecycle on top of an injected SessionStore:

    NoSession -> Active -> (Committed | Discarded | Expired)

Every mutating operation loads the session, applies the edit through the
SelectionMutator and writes the session back with a refreshed TTL. Commit
replaces the user's durable selections in one call and then drops the
session; discard drops it without touching durable storage. Expiry is left
entirely to the store.

The load/mutate/write cycle is not atomic. Two concurrent edits for the same
user race and the later write wins.
"""

import logging
from datetime import timedelta
from enum import Enum
from typing import Dict, Optional

from interest_editor.config import DEFAULT_SESSION_TTL_MINUTES
from interest_editor.errors import (
    PersistenceCommitError,
    SessionNotFoundError,
    UpstreamFetchError,
)
from interest_editor.edit.actions import SelectionMutator
from interest_editor.edit.constants import PROGRESS_DISPLAY_THRESHOLD
from interest_editor.models import Change, ChangeAction, EditStats, Session, UserId, utc_now
from interest_editor.storage.protocol import CatalogService, SelectionRepository, SessionStore
from interest_editor.storage.session_store import session_key

logger = logging.getLogger(__name__)

SESSION_TTL = timedelta(minutes=DEFAULT_SESSION_TTL_MINUTES)


class ProgressLevel(str, Enum):
    EMPTY = "empty"
    PARTIAL = "partial"
    FULL = "full"


class EditSessionEngine:
    """Manages one edit session per user."""

    def __init__(
        self,
        store: SessionStore,
        catalog: CatalogService,
        repository: SelectionRepository,
        mutator: SelectionMutator,
        ttl: timedelta = SESSION_TTL,
    ):
        self.store = store
        self.catalog = catalog
        self.repository = repository
        self.mutator = mutator
        self.ttl = ttl

    # --- Lifecycle ---

    def start_session(self, user_id: UserId) -> Session:
        """
        Begin a new session seeded with the user's committed selections.

        An existing session for the user is replaced.

        Raises:
            UpstreamFetchError: the snapshot could not be loaded (no session created)
        """
        try:
            snapshot = self.repository.load_user_selections(user_id)
        except Exception as e:
            logger.error(f"Failed to load selections for user {user_id}: {e}")
            raise UpstreamFetchError("load_user_selections", e) from e

        session = Session.new(user_id, snapshot)
        try:
            self.store.set(session_key(user_id), session, self.ttl)
        except Exception as e:
            logger.warning(f"Failed to store new edit session for user {user_id}: {e}")

        logger.info(f"Started edit session for user {user_id} with {len(snapshot)} selections")
        return session

    def get_session(self, user_id: UserId) -> Session:
        """
        Load the user's active session.

        Raises:
            SessionNotFoundError: no session, or it expired
        """
        session = self.store.get(session_key(user_id))
        if session is None:
            logger.debug(f"No edit session for user {user_id}")
            raise SessionNotFoundError(user_id)
        return session

    def update_session(self, session: Session) -> None:
        """
        Refresh last_activity and write the session back with a fresh TTL.

        Best effort: a failed write is logged and the caller's copy stays
        authoritative for the current response.
        """
        session.last_activity = utc_now()
        try:
            self.store.set(session_key(session.user_id), session, self.ttl)
        except Exception as e:
            logger.warning(f"Failed to update edit session for user {session.user_id}: {e}")

    def commit_session(self, session: Session) -> int:
        """
        Persist current_selections as the user's full selection set and end the session.

        Returns:
            Number of ledger entries in the committed session

        Raises:
            PersistenceCommitError: the write failed; the session is left as it was
        """
        self.mutator.validate_selections(session)

        try:
            self.repository.replace_user_selections(
                session.user_id, list(session.current_selections)
            )
        except Exception as e:
            logger.error(f"Commit failed for user {session.user_id}: {e}")
            raise PersistenceCommitError(session.user_id, e) from e

        self._drop(session.user_id)
        changes_count = len(session.changes)
        logger.info(
            f"Committed {len(session.current_selections)} selections for user "
            f"{session.user_id} ({changes_count} changes)"
        )
        return changes_count

    def discard_session(self, user_id: UserId) -> int:
        """
        Drop the session without touching durable storage.

        Returns:
            Number of ledger entries discarded, 0 if there was no session
        """
        session = self.store.get(session_key(user_id))
        changes_count = len(session.changes) if session is not None else 0
        self._drop(user_id)
        logger.info(f"Discarded edit session for user {user_id} ({changes_count} changes)")
        return changes_count

    def _drop(self, user_id: UserId) -> None:
        try:
            self.store.delete(session_key(user_id))
        except Exception as e:
            logger.warning(f"Failed to delete edit session for user {user_id}: {e}")

    # --- Edits (load, mutate, write back) ---

    def toggle_selection(self, user_id: UserId, interest_id: int) -> Session:
        session = self.get_session(user_id)
        self.mutator.toggle_selection(session, interest_id)
        self.update_session(session)
        return session

    def toggle_primary(self, user_id: UserId, interest_id: int) -> Session:
        """
        Raises:
            InvariantRejected: the ceiling is reached; the stored session is unchanged
        """
        session = self.get_session(user_id)
        action: Optional[ChangeAction] = self.mutator.toggle_primary(session, interest_id)
        if action is not None:
            self.update_session(session)
        return session

    def mass_select(self, user_id: UserId, category_key: str) -> Session:
        session = self.get_session(user_id)
        self.mutator.mass_select(session, category_key)
        session.current_category = category_key
        self.update_session(session)
        return session

    def mass_clear(self, user_id: UserId, category_key: str) -> Session:
        session = self.get_session(user_id)
        self.mutator.mass_clear(session, category_key)
        session.current_category = category_key
        self.update_session(session)
        return session

    def undo(self, user_id: UserId) -> Session:
        session = self.get_session(user_id)
        change: Optional[Change] = self.mutator.undo(session)
        if change is not None:
            logger.debug(f"Undid {change.action.value} of interest {change.interest_id}")
            self.update_session(session)
        return session

    def set_current_category(self, session: Session, category_key: str) -> None:
        session.current_category = category_key
        self.update_session(session)

    # --- Derived state ---

    def category_index(self) -> Dict[int, str]:
        try:
            return {i.id: i.category_key for i in self.catalog.list_all_interests()}
        except Exception as e:
            logger.warning(f"Could not load catalog for category counts: {e}")
            return {}

    def compute_stats(self, session: Session) -> EditStats:
        """Totals, primary count, per-category counts and ledger length."""
        index = self.category_index()
        category_counts: Dict[str, int] = {}
        for selection in session.current_selections:
            category = index.get(selection.interest_id)
            if category is None:
                continue
            category_counts[category] = category_counts.get(category, 0) + 1

        return EditStats(
            total_selected=len(session.current_selections),
            primary_count=session.primary_count,
            category_counts=category_counts,
            changes_count=len(session.changes),
            last_updated=utc_now(),
        )

    def category_progress(self, session: Session, category_key: str,
                          index: Optional[Dict[int, str]] = None) -> ProgressLevel:
        """Progress indicator level for a category button."""
        if index is None:
            index = self.category_index()
        count = sum(
            1 for s in session.current_selections if index.get(s.interest_id) == category_key
        )
        if count == 0:
            return ProgressLevel.EMPTY
        if count < PROGRESS_DISPLAY_THRESHOLD:
            return ProgressLevel.PARTIAL
        return ProgressLevel.FULL

    def session_duration(self, session: Session) -> timedelta:
        return utc_now() - session.session_start
