"""
Change ledger for an edit session.

The ledger is the only record of what happened in a session: undo pops from
it and the preview/save/cancel screens summarize it. Entries are appended by
the mutator and only ever removed from the end.
"""

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from interest_editor.models import Change, ChangeAction, Interest, Session, utc_now


class ChangeLedger:
    """Append-only view over Session.changes."""

    def __init__(self, session: Session):
        self._changes = session.changes

    def record(self, action: ChangeAction, interest: Interest,
               category: Optional[str] = None) -> Change:
        change = Change(
            action=action,
            interest_id=interest.id,
            interest_name=interest.key_name,
            category=category or interest.category_key,
            timestamp=utc_now(),
        )
        self._changes.append(change)
        return change

    def pop(self) -> Optional[Change]:
        if not self._changes:
            return None
        return self._changes.pop()

    def last(self) -> Optional[Change]:
        return self._changes[-1] if self._changes else None

    def __len__(self) -> int:
        return len(self._changes)

    def __iter__(self) -> Iterator[Change]:
        return iter(self._changes)


@dataclass
class ChangeSummary:
    """Interest names grouped by action, in ledger order."""
    added: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    primary_set: List[str] = field(default_factory=list)
    primary_unset: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.added) + len(self.removed) + len(self.primary_set) + len(self.primary_unset)

    @property
    def is_empty(self) -> bool:
        return self.total == 0


def summarize(changes: List[Change]) -> ChangeSummary:
    summary = ChangeSummary()
    buckets = {
        ChangeAction.ADD: summary.added,
        ChangeAction.REMOVE: summary.removed,
        ChangeAction.SET_PRIMARY: summary.primary_set,
        ChangeAction.UNSET_PRIMARY: summary.primary_unset,
    }
    for change in changes:
        buckets[change.action].append(change.interest_name)
    return summary
