"""
Edit Handlers - token handlers for the interest edit flow.

Registers one handler per interaction token on a TokenRouter. Each handler
runs a single engine operation and returns the ScreenState to render next.
Domain errors never escape a handler; they become screens:

    SessionNotFoundError   -> session_expired
    UpstreamFetchError     -> error (retry with the same token)
    PersistenceCommitError -> preview with a failure notice, session kept
    InvariantRejected      -> primary with a limit notice
    bad interest id        -> error
"""

import functools
import logging
from typing import Callable, Optional

from interest_editor.edit import constants as c
from interest_editor.edit.controller import EditSessionEngine
from interest_editor.edit.presenter import Notice, ScreenPresenter, ScreenState
from interest_editor.edit.router import InteractionEvent, TokenRouter
from interest_editor.errors import (
    InvariantRejected,
    PersistenceCommitError,
    SessionNotFoundError,
    UpstreamFetchError,
)

logger = logging.getLogger(__name__)


def _parse_interest_id(param: Optional[str]) -> int:
    interest_id = int(param or "")
    if interest_id <= 0:
        raise ValueError(f"Interest id must be positive: {interest_id}")
    return interest_id


def setup_edit_handlers(
    router: TokenRouter,
    engine: EditSessionEngine,
    presenter: ScreenPresenter,
) -> TokenRouter:
    """
    Register all edit flow handlers on the router.

    Exact tokens are registered first, then prefixes. Order matters: the
    router is first-match-wins.

    Returns:
        The same router, for chaining
    """

    def guarded(handler: Callable[[InteractionEvent, Optional[str]], ScreenState]):
        """Map domain errors raised by a handler to screens."""

        @functools.wraps(handler)
        def wrapper(event: InteractionEvent, param: Optional[str]) -> ScreenState:
            try:
                return handler(event, param)
            except SessionNotFoundError:
                logger.info(f"Edit session expired for user {event.user_id}")
                return presenter.session_expired()
            except UpstreamFetchError as e:
                logger.warning(f"Upstream failure handling {event.token!r}: {e}")
                return presenter.error(
                    Notice("error_loading_interests", level="negative"), event.token
                )

        return wrapper

    # --- Exact tokens ---

    @guarded
    def on_edit_start(event, _param):
        session = engine.start_session(event.user_id)
        return presenter.main_menu(session)

    @guarded
    def on_main_menu(event, _param):
        return presenter.main_menu(engine.get_session(event.user_id))

    @guarded
    def on_edit_categories(event, _param):
        return presenter.categories(engine.get_session(event.user_id))

    @guarded
    def on_edit_primary(event, _param):
        return presenter.primary(engine.get_session(event.user_id))

    @guarded
    def on_preview_changes(event, _param):
        return presenter.preview(engine.get_session(event.user_id))

    @guarded
    def on_save_changes(event, _param):
        session = engine.get_session(event.user_id)
        try:
            changes_count = engine.commit_session(session)
        except PersistenceCommitError as e:
            logger.error(f"Save failed for user {event.user_id}: {e}")
            return presenter.preview(
                session, notice=Notice("error_saving_changes", level="negative")
            )
        return presenter.saved(session, changes_count)

    @guarded
    def on_cancel_edit(event, _param):
        try:
            session = engine.get_session(event.user_id)
        except SessionNotFoundError:
            session = None
        changes_count = engine.discard_session(event.user_id)
        return presenter.cancelled(changes_count, session)

    @guarded
    def on_undo_last(event, _param):
        before = len(engine.get_session(event.user_id).changes)
        session = engine.undo(event.user_id)
        notice = None
        if len(session.changes) == before:
            notice = Notice("nothing_to_undo")
        return presenter.main_menu(session, notice=notice)

    @guarded
    def on_show_stats(event, _param):
        return presenter.stats(engine.get_session(event.user_id))

    # --- Prefix tokens ---

    @guarded
    def on_edit_category(event, category_key):
        session = engine.get_session(event.user_id)
        engine.set_current_category(session, category_key)
        return presenter.category_interests(session, category_key)

    @guarded
    def on_toggle_interest(event, param):
        try:
            interest_id = _parse_interest_id(param)
        except ValueError:
            logger.warning(f"Invalid interest id in token {event.token!r}")
            return presenter.error(Notice("invalid_interest_id", level="negative"),
                                   c.TOKEN_EDIT_CATEGORIES)

        session = engine.toggle_selection(event.user_id, interest_id)
        category_key = session.current_category
        if not category_key:
            category_key = presenter.fetch(
                "get_interest_by_id",
                lambda: engine.catalog.get_interest_by_id(interest_id),
            ).category_key
        return presenter.category_interests(session, category_key)

    @guarded
    def on_toggle_primary(event, param):
        try:
            interest_id = _parse_interest_id(param)
        except ValueError:
            logger.warning(f"Invalid interest id in token {event.token!r}")
            return presenter.error(Notice("invalid_interest_id", level="negative"),
                                   c.TOKEN_EDIT_PRIMARY)

        try:
            session = engine.toggle_primary(event.user_id, interest_id)
        except InvariantRejected as e:
            notice = Notice(
                "primary_limit_reached", {"limit": e.limit, "current": e.current}, "warning"
            )
            return presenter.primary(engine.get_session(event.user_id), notice=notice)
        return presenter.primary(session)

    @guarded
    def on_select_all(event, category_key):
        session = engine.mass_select(event.user_id, category_key)
        return presenter.category_interests(session, category_key)

    @guarded
    def on_clear_all(event, category_key):
        session = engine.mass_clear(event.user_id, category_key)
        return presenter.category_interests(session, category_key)

    router.register_exact(c.TOKEN_EDIT_START, on_edit_start)
    router.register_exact(c.TOKEN_MAIN_MENU, on_main_menu)
    router.register_exact(c.TOKEN_EDIT_CATEGORIES, on_edit_categories)
    router.register_exact(c.TOKEN_EDIT_PRIMARY, on_edit_primary)
    router.register_exact(c.TOKEN_PREVIEW_CHANGES, on_preview_changes)
    router.register_exact(c.TOKEN_SAVE_CHANGES, on_save_changes)
    router.register_exact(c.TOKEN_CANCEL_EDIT, on_cancel_edit)
    router.register_exact(c.TOKEN_UNDO_LAST, on_undo_last)
    router.register_exact(c.TOKEN_SHOW_STATS, on_show_stats)

    router.register_prefix(c.PREFIX_EDIT_CATEGORY, on_edit_category)
    router.register_prefix(c.PREFIX_TOGGLE_INTEREST, on_toggle_interest)
    router.register_prefix(c.PREFIX_TOGGLE_PRIMARY, on_toggle_primary)
    router.register_prefix(c.PREFIX_SELECT_ALL, on_select_all)
    router.register_prefix(c.PREFIX_CLEAR_ALL, on_clear_all)

    return router
