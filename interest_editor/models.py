"""
Data model for interest editing.

Catalog entities (Category, Interest) are read-only and come from the
catalog service. Selection, Change and Session make up the state of one
user's edit session; EditStats is derived on demand and never stored.

Sessions are stored as plain dicts (see Session.to_dict) so any key/value
store can hold them.
"""

import copy
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, List, Optional, Union

UserId = Union[int, str]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime) -> str:
    return value.isoformat()


def _from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Category:
    key: str
    display_order: int = 0


@dataclass(frozen=True)
class Interest:
    id: int
    key_name: str
    category_key: str
    display_order: int = 0


@dataclass
class Selection:
    """One chosen interest for a user, optionally flagged primary."""
    user_id: UserId
    interest_id: int
    is_primary: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Selection":
        return cls(
            user_id=data["user_id"],
            interest_id=int(data["interest_id"]),
            is_primary=bool(data.get("is_primary", False)),
        )


class ChangeAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"
    SET_PRIMARY = "set_primary"
    UNSET_PRIMARY = "unset_primary"


@dataclass
class Change:
    """A single recorded edit inside a session."""
    action: ChangeAction
    interest_id: int
    interest_name: str
    category: str
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action.value,
            "interest_id": self.interest_id,
            "interest_name": self.interest_name,
            "category": self.category,
            "timestamp": _to_iso(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Change":
        return cls(
            action=ChangeAction(data["action"]),
            interest_id=int(data["interest_id"]),
            interest_name=data.get("interest_name", ""),
            category=data.get("category", ""),
            timestamp=_from_iso(data["timestamp"]),
        )


@dataclass
class Session:
    """
    The single active edit transaction for one user.

    original_selections is the snapshot taken at start and is never mutated;
    current_selections is the working copy; changes is the append-only ledger.
    """
    user_id: UserId
    original_selections: List[Selection] = field(default_factory=list)
    current_selections: List[Selection] = field(default_factory=list)
    changes: List[Change] = field(default_factory=list)
    current_category: Optional[str] = None
    session_start: datetime = field(default_factory=utc_now)
    last_activity: datetime = field(default_factory=utc_now)

    @classmethod
    def new(cls, user_id: UserId, snapshot: List[Selection]) -> "Session":
        now = utc_now()
        return cls(
            user_id=user_id,
            original_selections=copy.deepcopy(list(snapshot)),
            current_selections=copy.deepcopy(list(snapshot)),
            changes=[],
            session_start=now,
            last_activity=now,
        )

    def copy(self) -> "Session":
        return copy.deepcopy(self)

    def find_selection(self, interest_id: int) -> Optional[Selection]:
        for selection in self.current_selections:
            if selection.interest_id == interest_id:
                return selection
        return None

    def selected_ids(self) -> List[int]:
        return [s.interest_id for s in self.current_selections]

    @property
    def primary_count(self) -> int:
        return sum(1 for s in self.current_selections if s.is_primary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "original_selections": [s.to_dict() for s in self.original_selections],
            "current_selections": [s.to_dict() for s in self.current_selections],
            "changes": [c.to_dict() for c in self.changes],
            "current_category": self.current_category,
            "session_start": _to_iso(self.session_start),
            "last_activity": _to_iso(self.last_activity),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        return cls(
            user_id=data["user_id"],
            original_selections=[Selection.from_dict(s) for s in data.get("original_selections", [])],
            current_selections=[Selection.from_dict(s) for s in data.get("current_selections", [])],
            changes=[Change.from_dict(c) for c in data.get("changes", [])],
            current_category=data.get("current_category"),
            session_start=_from_iso(data["session_start"]),
            last_activity=_from_iso(data["last_activity"]),
        )


@dataclass(frozen=True)
class EditStats:
    """Snapshot of a session's numbers, computed on demand."""
    total_selected: int
    primary_count: int
    category_counts: Dict[str, int]
    changes_count: int
    last_updated: datetime
