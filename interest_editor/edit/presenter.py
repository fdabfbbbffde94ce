"""
Screen Presenter - turns session state into renderable screen descriptions.

A ScreenState carries only structure: localization keys, parameters, stats
and a grid of buttons with their interaction tokens. Turning keys into text
and buttons into widgets is the renderer's job (see app.py).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from interest_editor.edit import constants as c
from interest_editor.edit.controller import EditSessionEngine, ProgressLevel
from interest_editor.edit.ledger import ChangeSummary, summarize
from interest_editor.errors import UpstreamFetchError
from interest_editor.models import EditStats, Session

logger = logging.getLogger(__name__)

PROGRESS_SYMBOLS = {
    ProgressLevel.EMPTY: c.SYMBOL_PROGRESS_EMPTY,
    ProgressLevel.PARTIAL: c.SYMBOL_PROGRESS_PARTIAL,
    ProgressLevel.FULL: c.SYMBOL_PROGRESS_FULL,
}


@dataclass(frozen=True)
class Button:
    label_key: str
    token: str
    symbol: str = ""
    suffix: str = ""


@dataclass(frozen=True)
class Notice:
    key: str
    params: Dict[str, Any] = field(default_factory=dict)
    level: str = "info"  # 'info', 'warning', 'negative', 'positive'


@dataclass
class ScreenState:
    screen: str
    breadcrumb: List[str]
    text_key: str
    text_params: Dict[str, Any] = field(default_factory=dict)
    stats: Optional[EditStats] = None
    summary: Optional[ChangeSummary] = None
    notice: Optional[Notice] = None
    buttons: List[List[Button]] = field(default_factory=list)

    def tokens(self) -> List[str]:
        return [b.token for row in self.buttons for b in row]


def _rows(buttons: List[Button], per_row: int = c.BUTTONS_PER_ROW) -> List[List[Button]]:
    return [buttons[i:i + per_row] for i in range(0, len(buttons), per_row)]


class ScreenPresenter:

    def __init__(self, engine: EditSessionEngine):
        self.engine = engine
        self.catalog = engine.catalog

    def fetch(self, operation: str, call):
        """Run a catalog read, converting any failure into UpstreamFetchError."""
        try:
            return call()
        except Exception as e:
            raise UpstreamFetchError(operation, e) from e

    def main_menu(self, session: Session, notice: Optional[Notice] = None) -> ScreenState:
        return ScreenState(
            screen="main_menu",
            breadcrumb=["edit_interests_breadcrumb"],
            text_key="edit_interests_main_menu",
            stats=self.engine.compute_stats(session),
            notice=notice,
            buttons=[
                [Button("edit_interests_by_category", c.TOKEN_EDIT_CATEGORIES, "🎯 "),
                 Button("edit_primary_interests", c.TOKEN_EDIT_PRIMARY, c.SYMBOL_STAR)],
                [Button("preview_changes", c.TOKEN_PREVIEW_CHANGES, "👁️ "),
                 Button("show_statistics", c.TOKEN_SHOW_STATS, "📊 ")],
                [Button("save_changes", c.TOKEN_SAVE_CHANGES, "💾 "),
                 Button("cancel_edit", c.TOKEN_CANCEL_EDIT, "❌ ")],
            ],
        )

    def categories(self, session: Session) -> ScreenState:
        categories = sorted(
            self.fetch("list_categories", self.catalog.list_categories),
            key=lambda cat: cat.display_order,
        )
        index = self.engine.category_index()

        category_buttons = [
            Button(
                f"category_{category.key}",
                c.PREFIX_EDIT_CATEGORY + category.key,
                suffix=" " + PROGRESS_SYMBOLS[
                    self.engine.category_progress(session, category.key, index)
                ],
            )
            for category in categories
        ]
        buttons = _rows(category_buttons)
        buttons.append([
            Button("back_to_edit_menu", c.TOKEN_MAIN_MENU, "🏠 "),
            Button("edit_primary_interests", c.TOKEN_EDIT_PRIMARY, c.SYMBOL_STAR),
        ])

        return ScreenState(
            screen="categories",
            breadcrumb=["edit_interests_breadcrumb_categories"],
            text_key="edit_interests_choose_category",
            buttons=buttons,
        )

    def category_interests(self, session: Session, category_key: str,
                           notice: Optional[Notice] = None) -> ScreenState:
        interests = sorted(
            self.fetch(
                "list_interests_by_category",
                lambda: self.catalog.list_interests_by_category(category_key),
            ),
            key=lambda interest: interest.display_order,
        )
        selected = set(session.selected_ids())

        interest_buttons = [
            Button(
                f"interest_{interest.key_name}",
                f"{c.PREFIX_TOGGLE_INTEREST}{interest.id}",
                c.SYMBOL_CHECKED if interest.id in selected else c.SYMBOL_UNCHECKED,
            )
            for interest in interests
        ]
        buttons = _rows(interest_buttons)
        if interests:
            buttons.append([
                Button("select_all_in_category", c.PREFIX_SELECT_ALL + category_key, c.SYMBOL_CHECKED),
                Button("clear_all_in_category", c.PREFIX_CLEAR_ALL + category_key, "❌ "),
            ])
        buttons.append([
            Button("back_to_categories", c.TOKEN_EDIT_CATEGORIES, "⬅️ "),
            Button("back_to_edit_menu", c.TOKEN_MAIN_MENU, "🏠 "),
        ])

        return ScreenState(
            screen="category_interests",
            breadcrumb=["edit_interests_breadcrumb_categories", f"category_{category_key}"],
            text_key="edit_interests_in_category",
            text_params={"category": category_key},
            notice=notice,
            buttons=buttons,
        )

    def primary(self, session: Session, notice: Optional[Notice] = None) -> ScreenState:
        ceiling = self.engine.mutator.primary_ceiling()

        primary_buttons = []
        for selection in sorted(session.current_selections, key=lambda s: s.interest_id):
            try:
                interest = self.catalog.get_interest_by_id(selection.interest_id)
            except Exception as e:
                logger.warning(f"Skipping interest {selection.interest_id} on primary screen: {e}")
                continue
            primary_buttons.append(Button(
                f"interest_{interest.key_name}",
                f"{c.PREFIX_TOGGLE_PRIMARY}{selection.interest_id}",
                c.SYMBOL_STAR if selection.is_primary else c.SYMBOL_UNCHECKED,
            ))

        buttons = _rows(primary_buttons)
        buttons.append([
            Button("back_to_edit_menu", c.TOKEN_MAIN_MENU, "🏠 "),
            Button("edit_interests_by_category", c.TOKEN_EDIT_CATEGORIES, "🎯 "),
        ])

        return ScreenState(
            screen="primary",
            breadcrumb=["edit_interests_breadcrumb_primary"],
            text_key="edit_interests_primary_description",
            text_params={"selected": session.primary_count, "ceiling": ceiling},
            notice=notice,
            buttons=buttons,
        )

    def preview(self, session: Session, notice: Optional[Notice] = None) -> ScreenState:
        summary = summarize(session.changes)
        return ScreenState(
            screen="preview",
            breadcrumb=["edit_interests_breadcrumb", "edit_interests_changes_preview"],
            text_key="no_changes_made" if summary.is_empty else "edit_interests_changes_preview",
            summary=summary,
            stats=self.engine.compute_stats(session),
            notice=notice,
            buttons=[
                [Button("save_changes", c.TOKEN_SAVE_CHANGES, "💾 "),
                 Button("undo_last_change", c.TOKEN_UNDO_LAST, "↩️ ")],
                [Button("back_to_edit_menu", c.TOKEN_MAIN_MENU, "🏠 "),
                 Button("cancel_edit", c.TOKEN_CANCEL_EDIT, "❌ ")],
            ],
        )

    def stats(self, session: Session) -> ScreenState:
        duration = self.engine.session_duration(session)
        return ScreenState(
            screen="stats",
            breadcrumb=["edit_interests_breadcrumb", "edit_interests_detailed_statistics"],
            text_key="edit_interests_detailed_statistics",
            text_params={"duration_minutes": round(duration.total_seconds() / 60)},
            stats=self.engine.compute_stats(session),
            buttons=[[
                Button("back_to_main_menu", c.TOKEN_MAIN_MENU, "🏠 "),
                Button("preview_changes", c.TOKEN_PREVIEW_CHANGES, "👁️ "),
            ]],
        )

    def saved(self, session: Session, changes_count: int) -> ScreenState:
        return ScreenState(
            screen="saved",
            breadcrumb=["edit_interests_breadcrumb"],
            text_key="changes_saved",
            text_params={"changes_count": changes_count},
            summary=summarize(session.changes),
            notice=Notice("changes_saved", {"changes_count": changes_count}, "positive"),
            buttons=[[Button("show_profile", c.TOKEN_PROFILE_SHOW, "👤 ")]],
        )

    def cancelled(self, changes_count: int, session: Optional[Session] = None) -> ScreenState:
        return ScreenState(
            screen="cancelled",
            breadcrumb=["edit_interests_breadcrumb"],
            text_key="edit_cancelled",
            text_params={"changes_count": changes_count},
            summary=summarize(session.changes) if session is not None else None,
            buttons=[[Button("show_profile", c.TOKEN_PROFILE_SHOW, "👤 ")]],
        )

    def session_expired(self) -> ScreenState:
        return ScreenState(
            screen="session_expired",
            breadcrumb=["edit_interests_breadcrumb"],
            text_key="edit_session_expired",
            notice=Notice("edit_session_expired", level="warning"),
            buttons=[[Button("edit_interests_restart", c.TOKEN_EDIT_START, "🔄 ")]],
        )

    def error(self, notice: Notice, retry_token: str) -> ScreenState:
        return ScreenState(
            screen="error",
            breadcrumb=["edit_interests_breadcrumb"],
            text_key=notice.key,
            text_params=dict(notice.params),
            notice=notice,
            buttons=[[
                Button("try_again", retry_token, "🔄 "),
                Button("back_to_edit_menu", c.TOKEN_MAIN_MENU, "🏠 "),
            ]],
        )
