"""
Interest editing flow.

This package provides the staged edit session for a user's interests:
- EditSessionEngine: Session lifecycle, commit and discard
- SelectionMutator: Invariant-preserving edits and undo
- TokenRouter: Dispatch of interaction tokens to handlers
- ScreenPresenter: Structural screen descriptions for the UI

Usage:
    from interest_editor.edit import EditSessionEngine, SelectionMutator, TokenRouter
    from interest_editor.edit.handlers import setup_edit_handlers
"""

from interest_editor.edit.actions import SelectionMutator, compute_primary_ceiling
from interest_editor.edit.controller import EditSessionEngine, ProgressLevel
from interest_editor.edit.ledger import ChangeLedger, ChangeSummary, summarize
from interest_editor.edit.presenter import Button, Notice, ScreenPresenter, ScreenState
from interest_editor.edit.router import NO_MATCH, DispatchResult, InteractionEvent, TokenRouter
from interest_editor.edit.handlers import setup_edit_handlers

__all__ = [
    'SelectionMutator',
    'compute_primary_ceiling',
    'EditSessionEngine',
    'ProgressLevel',
    'ChangeLedger',
    'ChangeSummary',
    'summarize',
    'Button',
    'Notice',
    'ScreenPresenter',
    'ScreenState',
    'NO_MATCH',
    'DispatchResult',
    'InteractionEvent',
    'TokenRouter',
    'setup_edit_handlers',
]
