"""
Shared fixtures: in-memory catalog and repository fakes, a controllable
clock for the session store, and a wired engine.
"""

import sys
from pathlib import Path
from typing import Dict, List

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from interest_editor.config import InterestLimits
from interest_editor.edit.actions import SelectionMutator
from interest_editor.edit.controller import EditSessionEngine
from interest_editor.models import Category, Interest, Selection, Session
from interest_editor.storage.session_store import InMemorySessionStore


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeCatalog:
    """CatalogService over fixed lists. Set fail=True to make every call raise."""

    def __init__(self, categories: List[Category], interests: List[Interest]):
        self.categories = categories
        self.interests = interests
        self.fail = False
        self.missing_ids = set()

    def _check(self):
        if self.fail:
            raise ConnectionError("catalog unavailable")

    def list_categories(self):
        self._check()
        return list(self.categories)

    def list_interests_by_category(self, category_key):
        self._check()
        return [i for i in self.interests if i.category_key == category_key]

    def get_interest_by_id(self, interest_id):
        self._check()
        if interest_id in self.missing_ids:
            raise KeyError(f"Interest {interest_id} not found")
        for interest in self.interests:
            if interest.id == interest_id:
                return interest
        raise KeyError(f"Interest {interest_id} not found")

    def list_all_interests(self):
        self._check()
        return list(self.interests)


class FakeRepository:
    """SelectionRepository keeping committed selections per user in a dict."""

    def __init__(self):
        self.saved: Dict[str, List[Selection]] = {}
        self.fail_load = False
        self.fail_replace = False
        self.replace_calls = 0

    def load_user_selections(self, user_id):
        if self.fail_load:
            raise ConnectionError("database unavailable")
        return [Selection(s.user_id, s.interest_id, s.is_primary)
                for s in self.saved.get(user_id, [])]

    def replace_user_selections(self, user_id, selections):
        self.replace_calls += 1
        if self.fail_replace:
            raise ConnectionError("write failed")
        self.saved[user_id] = [Selection(s.user_id, s.interest_id, s.is_primary)
                               for s in selections]


def make_catalog() -> FakeCatalog:
    """Two categories: sports (1-3) and music (4-5)."""
    categories = [Category("music", 2), Category("sports", 1)]
    interests = [
        Interest(1, "football", "sports", 1),
        Interest(2, "tennis", "sports", 2),
        Interest(3, "chess", "sports", 3),
        Interest(4, "jazz", "music", 2),
        Interest(5, "rock", "music", 1),
    ]
    return FakeCatalog(categories, interests)


def make_large_catalog(total: int = 20) -> FakeCatalog:
    """One category holding `total` interests with ids 1..total."""
    interests = [Interest(i, f"interest_{i}", "all", i) for i in range(1, total + 1)]
    return FakeCatalog([Category("all", 1)], interests)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def repository():
    return FakeRepository()


@pytest.fixture
def limits():
    return InterestLimits(primary_percentage=0.3, min_primary_interests=1, max_primary_interests=5)


@pytest.fixture
def mutator(catalog, limits):
    return SelectionMutator(catalog, limits)


@pytest.fixture
def engine(store, catalog, repository, mutator):
    return EditSessionEngine(store, catalog, repository, mutator)


@pytest.fixture
def session():
    return Session.new("u1", [])
