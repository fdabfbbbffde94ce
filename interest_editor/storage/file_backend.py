"""
File-based Storage Backend for the interest editor.

Implements CatalogService and SelectionRepository using local JSON files.
This is the default storage mechanism.
"""

import json
import logging
import os
from pathlib import Path
from typing import Dict, Any, List, Optional

from interest_editor.models import Category, Interest, Selection, UserId

logger = logging.getLogger(__name__)

CATALOG_FILENAME = "catalog.json"

DEMO_CATALOG = {
    "entertainment": ["movies", "music", "video_games", "board_games"],
    "education": ["languages", "history", "science", "programming"],
    "active": ["running", "cycling", "swimming", "hiking"],
    "creative": ["drawing", "photography", "writing", "cooking"],
    "social": ["volunteering", "travel", "dancing", "meetups"],
}


class FileBackend:
    """
    Local file-based catalog and selection storage.

    Structure:
    - {project}/catalog.json: {"categories": [...], "interests": [...]}
    - {project}/data/{user_id}.json: {"user_id": ..., "selections": [...]}
    """

    def __init__(self, project_path):
        """
        Initialize FileBackend for a project.

        Args:
            project_path: Path to the project folder
        """
        self.project_path = Path(project_path)
        self.data_dir = self.project_path / "data"
        self.catalog_path = self.project_path / CATALOG_FILENAME
        self._catalog_cache: Optional[Dict[str, Any]] = None

        self.data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def backend_type(self) -> str:
        """Return the backend type identifier."""
        return "file"

    # --- Catalog ---

    def _load_catalog(self) -> Dict[str, Any]:
        if self._catalog_cache is not None:
            return self._catalog_cache
        if not self.catalog_path.exists():
            raise FileNotFoundError(f"Catalog file not found: {self.catalog_path}")
        with open(self.catalog_path, "r", encoding="utf-8") as f:
            self._catalog_cache = json.load(f)
        return self._catalog_cache

    def invalidate_cache(self) -> None:
        self._catalog_cache = None

    def list_categories(self) -> List[Category]:
        catalog = self._load_catalog()
        return [
            Category(key=row["key"], display_order=row.get("display_order", 0))
            for row in catalog.get("categories", [])
        ]

    def list_all_interests(self) -> List[Interest]:
        catalog = self._load_catalog()
        return [
            Interest(
                id=int(row["id"]),
                key_name=row["key_name"],
                category_key=row["category_key"],
                display_order=row.get("display_order", 0),
            )
            for row in catalog.get("interests", [])
        ]

    def list_interests_by_category(self, category_key: str) -> List[Interest]:
        return [i for i in self.list_all_interests() if i.category_key == category_key]

    def get_interest_by_id(self, interest_id: int) -> Interest:
        for interest in self.list_all_interests():
            if interest.id == interest_id:
                return interest
        raise KeyError(f"Interest {interest_id} not found")

    def save_catalog(self, categories: List[Category], interests: List[Interest]) -> None:
        """Write the whole catalog file."""
        catalog = {
            "categories": [{"key": c.key, "display_order": c.display_order} for c in categories],
            "interests": [
                {
                    "id": i.id,
                    "key_name": i.key_name,
                    "category_key": i.category_key,
                    "display_order": i.display_order,
                }
                for i in interests
            ],
        }
        _write_json_atomic(self.catalog_path, catalog)
        self.invalidate_cache()

    def seed_demo_catalog(self) -> int:
        """
        Write the demo catalog if no catalog exists yet.

        Returns:
            Number of interests written (0 if a catalog was already present)
        """
        if self.catalog_path.exists():
            return 0

        categories = []
        interests = []
        next_id = 1
        for order, (category_key, names) in enumerate(DEMO_CATALOG.items(), start=1):
            categories.append(Category(key=category_key, display_order=order))
            for position, name in enumerate(names, start=1):
                interests.append(Interest(
                    id=next_id, key_name=name,
                    category_key=category_key, display_order=position
                ))
                next_id += 1

        self.save_catalog(categories, interests)
        logger.info(f"Seeded demo catalog with {len(interests)} interests at {self.catalog_path}")
        return len(interests)

    # --- Selections ---

    def _user_path(self, user_id: UserId) -> Path:
        """
        Path of the user's selection file inside data/.

        Raises:
            ValueError: the user id is not a plain file name (e.g. "../catalog")
        """
        name = str(user_id)
        if not name or name in (".", "..") or Path(name).name != name or "\\" in name:
            raise ValueError(f"Invalid user id for file storage: {user_id!r}")
        return self.data_dir / f"{name}.json"

    def load_user_selections(self, user_id: UserId) -> List[Selection]:
        """Load user selections. A user without a file has no selections."""
        path = self._user_path(user_id)
        if not path.exists():
            return []

        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        return [
            Selection(user_id=user_id, interest_id=int(row["interest_id"]),
                      is_primary=bool(row.get("is_primary", False)))
            for row in data.get("selections", [])
        ]

    def replace_user_selections(self, user_id: UserId, selections: List[Selection]) -> None:
        """Overwrite the user's file with the full selection set."""
        data = {
            "user_id": user_id,
            "selections": [
                {"interest_id": s.interest_id, "is_primary": s.is_primary}
                for s in selections
            ],
        }
        _write_json_atomic(self._user_path(user_id), data)
        logger.debug(f"Wrote {len(selections)} selections for user {user_id}")

    def list_users(self) -> List[str]:
        """Return list of user ids based on files."""
        return [f.stem for f in self.data_dir.glob("*.json")]


def _write_json_atomic(path: Path, obj: Dict[str, Any]) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)
    os.replace(tmp_path, path)
