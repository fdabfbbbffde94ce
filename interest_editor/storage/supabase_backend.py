"""
Supabase Storage Backend for the interest editor.

Implements CatalogService and SelectionRepository on Supabase PostgreSQL.

Tables:
- interest_categories(key_name, display_order)
- interests(id, key_name, category_key, display_order)
- user_interest_selections(user_id, interest_id, is_primary, selection_order),
  unique (user_id, interest_id)

Requires: pip install supabase
"""

import logging
import os
import time
from typing import Dict, Any, List, Optional

from interest_editor.models import Category, Interest, Selection, UserId

logger = logging.getLogger(__name__)

# How long to cache the catalog before re-fetching
CACHE_TTL_SECONDS = 60

try:
    from supabase import create_client, Client
    SUPABASE_AVAILABLE = True
except ImportError:
    SUPABASE_AVAILABLE = False
    Client = None


class SupabaseBackend:
    """
    Cloud-based catalog and selection storage using Supabase.

    The catalog is cached for CACHE_TTL_SECONDS since it rarely changes
    and the ceiling computation reads all of it.
    """

    def __init__(
        self,
        client: Optional["Client"] = None,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
    ):
        """
        Initialize SupabaseBackend.

        Args:
            client: Optional pre-configured Supabase client
            supabase_url: Supabase project URL (or use SUPABASE_URL env)
            supabase_key: Supabase key (or use SUPABASE_KEY env)
        """
        self._interests_cache: Optional[List[Interest]] = None
        self._interests_cache_time: float = 0
        self._categories_cache: Optional[List[Category]] = None
        self._categories_cache_time: float = 0

        if client:
            self._client = client
        else:
            if not SUPABASE_AVAILABLE:
                raise ImportError(
                    "supabase-py is required for SupabaseBackend. "
                    "Install with: pip install supabase"
                )
            url = supabase_url or os.environ.get("SUPABASE_URL")
            key = supabase_key or os.environ.get("SUPABASE_KEY")

            if not url or not key:
                raise ValueError(
                    "Supabase URL and key required. "
                    "Set SUPABASE_URL and SUPABASE_KEY environment variables."
                )

            self._client = create_client(url, key)

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier."""
        return "supabase"

    def invalidate_cache(self) -> None:
        self._interests_cache = None
        self._categories_cache = None

    # --- Catalog ---

    def list_categories(self) -> List[Category]:
        if self._categories_cache is not None:
            if time.time() - self._categories_cache_time < CACHE_TTL_SECONDS:
                return self._categories_cache

        response = self._client.table("interest_categories")\
            .select("key_name, display_order")\
            .order("display_order")\
            .execute()

        categories = [
            Category(key=row["key_name"], display_order=row.get("display_order", 0))
            for row in response.data
        ]
        self._categories_cache = categories
        self._categories_cache_time = time.time()
        return categories

    def list_all_interests(self) -> List[Interest]:
        if self._interests_cache is not None:
            if time.time() - self._interests_cache_time < CACHE_TTL_SECONDS:
                return self._interests_cache

        response = self._client.table("interests")\
            .select("id, key_name, category_key, display_order")\
            .execute()

        interests = [self._row_to_interest(row) for row in response.data]
        self._interests_cache = interests
        self._interests_cache_time = time.time()
        logger.debug(f"list_all_interests: loaded {len(interests)} interests")
        return interests

    def list_interests_by_category(self, category_key: str) -> List[Interest]:
        return [i for i in self.list_all_interests() if i.category_key == category_key]

    def get_interest_by_id(self, interest_id: int) -> Interest:
        for interest in self.list_all_interests():
            if interest.id == interest_id:
                return interest
        raise KeyError(f"Interest {interest_id} not found")

    def _row_to_interest(self, row: Dict[str, Any]) -> Interest:
        return Interest(
            id=int(row["id"]),
            key_name=row["key_name"],
            category_key=row["category_key"],
            display_order=row.get("display_order", 0),
        )

    # --- Selections ---

    def load_user_selections(self, user_id: UserId) -> List[Selection]:
        response = self._client.table("user_interest_selections")\
            .select("interest_id, is_primary, selection_order")\
            .eq("user_id", user_id)\
            .order("selection_order")\
            .execute()

        return [
            Selection(user_id=user_id, interest_id=int(row["interest_id"]),
                      is_primary=bool(row.get("is_primary", False)))
            for row in response.data
        ]

    def replace_user_selections(self, user_id: UserId, selections: List[Selection]) -> None:
        """
        Make the user's rows equal to the new set.

        The new rows are upserted first (on the user_id, interest_id unique
        key), then rows not in the new set are deleted. A failed upsert
        leaves the old rows untouched; a failed cleanup leaves a superset,
        never an emptied set.
        """
        rows = [
            {
                "user_id": user_id,
                "interest_id": s.interest_id,
                "is_primary": s.is_primary,
                "selection_order": position,
            }
            for position, s in enumerate(selections)
        ]
        keep_ids = [s.interest_id for s in selections]

        try:
            if rows:
                self._client.table("user_interest_selections")\
                    .upsert(rows, on_conflict="user_id,interest_id")\
                    .execute()

            stale = self._client.table("user_interest_selections")\
                .delete()\
                .eq("user_id", user_id)
            if keep_ids:
                stale = stale.not_.in_("interest_id", keep_ids)
            stale.execute()
        except Exception as e:
            logger.error(f"Failed to replace selections for user {user_id}: {e}")
            raise
