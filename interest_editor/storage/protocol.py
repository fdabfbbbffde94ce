"""
Storage protocol definitions.

This module defines the interfaces the edit engine depends on:
- SessionStore: keyed, TTL-bounded storage of edit sessions
- CatalogService: read-only categories and interests
- SelectionRepository: durable per-user selection sets

FileBackend (local JSON files) and SupabaseBackend (cloud) implement both
CatalogService and SelectionRepository.
"""

from datetime import timedelta
from typing import Protocol, List, Optional, runtime_checkable

from interest_editor.models import Category, Interest, Selection, Session, UserId


@runtime_checkable
class SessionStore(Protocol):
    """
    Key/value storage for edit sessions with an expiry per entry.

    Implementations must return a copy on get(): mutating the returned
    session must not change the stored one until set() is called again.
    """

    def set(self, key: str, session: Session, ttl: timedelta) -> None:
        """
        Store a session under key, replacing any previous value.

        Args:
            key: Store key (see session_key())
            session: Session to store
            ttl: Time until the entry expires; restarted on every set()
        """
        ...

    def get(self, key: str) -> Optional[Session]:
        """
        Read a session.

        Returns:
            A copy of the stored session, or None if absent or expired
        """
        ...

    def delete(self, key: str) -> None:
        """Remove a session. Deleting a missing key is not an error."""
        ...


@runtime_checkable
class CatalogService(Protocol):
    """Read-only access to interest categories and interests."""

    def list_categories(self) -> List[Category]:
        """Return all categories."""
        ...

    def list_interests_by_category(self, category_key: str) -> List[Interest]:
        """
        Return the interests of one category.

        Args:
            category_key: Category key, e.g. 'entertainment'
        """
        ...

    def get_interest_by_id(self, interest_id: int) -> Interest:
        """
        Return one interest.

        Raises:
            KeyError: if the interest does not exist
        """
        ...

    def list_all_interests(self) -> List[Interest]:
        """Return every interest in the catalog."""
        ...


@runtime_checkable
class SelectionRepository(Protocol):
    """Durable storage of a user's committed selection set."""

    def load_user_selections(self, user_id: UserId) -> List[Selection]:
        """
        Load the committed selections of a user.

        Returns:
            List of selections (empty for a user with none)
        """
        ...

    def replace_user_selections(self, user_id: UserId, selections: List[Selection]) -> None:
        """
        Replace the user's selection set with exactly these selections.

        Args:
            user_id: User identifier
            selections: Full new selection set (not a diff)
        """
        ...
