"""
Main NiceGUI application for the interest editor.

Renders the ScreenState produced by the edit handlers as a card with a
breadcrumb, stats, change summary and a grid of buttons. Each button click
dispatches its token through the TokenRouter for the current user
(?user=<id>, default "demo").
"""

import logging
import os
import sys

from nicegui import ui, app

from dotenv import load_dotenv
load_dotenv()

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from interest_editor.paths import ensure_db_dir
from interest_editor.config import get_interest_limits, get_session_ttl
from interest_editor.edit import (
    EditSessionEngine,
    InteractionEvent,
    ScreenPresenter,
    ScreenState,
    SelectionMutator,
    TokenRouter,
    setup_edit_handlers,
)
from interest_editor.edit.constants import TOKEN_EDIT_START, TOKEN_PROFILE_SHOW
from interest_editor.localization import Localizer
from interest_editor.storage import FileBackend, MappingSessionStore, create_backend

# Ensure required directories exist on startup
ensure_db_dir()

localizer = Localizer()

_services = {}


def get_router() -> TokenRouter:
    """
    Build the backend, engine and router on first use.

    Deferred until a page is served because app.storage.general is only
    usable once NiceGUI has started.
    """
    if 'router' in _services:
        return _services['router']

    backend = create_backend(ensure_db_dir())
    if isinstance(backend, FileBackend):
        backend.seed_demo_catalog()

    engine = EditSessionEngine(
        store=MappingSessionStore(app.storage.general),
        catalog=backend,
        repository=backend,
        mutator=SelectionMutator(backend, get_interest_limits()),
        ttl=get_session_ttl(),
    )
    router = setup_edit_handlers(TokenRouter(), engine, ScreenPresenter(engine))

    _services['backend'] = backend
    _services['engine'] = engine
    _services['router'] = router
    logger.info(f"Interest editor ready ({backend.backend_type} backend)")
    return router


def t(key: str, **params) -> str:
    return localizer.get(key, **params)


def render_summary(state: ScreenState):
    summary = state.summary
    if summary is None or summary.is_empty:
        return
    sections = [
        ('summary_added', summary.added, 'text-green-400'),
        ('summary_removed', summary.removed, 'text-red-400'),
        ('summary_primary_set', summary.primary_set, 'text-yellow-400'),
        ('summary_primary_unset', summary.primary_unset, 'text-gray-400'),
    ]
    for title_key, names, color in sections:
        if not names:
            continue
        ui.label(t(title_key)).classes(f'font-bold {color}')
        ui.label(', '.join(t(f'interest_{name}') for name in names)).classes('text-sm')


def render_stats(state: ScreenState):
    stats = state.stats
    if stats is None:
        return
    with ui.row().classes('gap-4 text-sm text-gray-400'):
        ui.label(t('stats_total_selected', count=stats.total_selected))
        ui.label(t('stats_primary_count', count=stats.primary_count))
        ui.label(t('stats_changes_count', count=stats.changes_count))
    if state.screen == 'stats':
        for category, count in sorted(stats.category_counts.items()):
            ui.label(f"{t(f'category_{category}')}: {count}").classes('text-sm')


@ui.page('/')
def main_page(user: str = 'demo'):
    ui.dark_mode().enable()
    router = get_router()

    container = ui.column().classes('w-full items-center p-8')

    def render(state: ScreenState):
        if state.notice is not None:
            ui.notify(t(state.notice.key, **state.notice.params), type=state.notice.level)

        container.clear()
        with container:
            with ui.card().classes('w-[520px] p-6 gap-3'):
                ui.label(' › '.join(t(key) for key in state.breadcrumb)).classes('text-xs text-gray-500')
                ui.label(t(state.text_key, **state.text_params)).classes('text-lg font-bold')
                render_stats(state)
                render_summary(state)

                for row in state.buttons:
                    with ui.row().classes('w-full gap-2 no-wrap'):
                        for button in row:
                            label = f"{button.symbol}{t(button.label_key)}{button.suffix}"
                            ui.button(
                                label,
                                on_click=lambda _, token=button.token: on_token(token),
                            ).props('outline no-caps').classes('flex-1')

    def on_token(token: str):
        if token == TOKEN_PROFILE_SHOW:
            ui.navigate.to(f'/profile?user={user}')
            return

        result = router.dispatch(token, InteractionEvent(token=token, user_id=user))
        if not result.matched:
            ui.notify(f'Unknown action: {token}', type='warning')
            return
        render(result.result)

    on_token(TOKEN_EDIT_START)


@ui.page('/profile')
def profile_page(user: str = 'demo'):
    ui.dark_mode().enable()
    get_router()
    backend = _services['backend']

    with ui.column().classes('w-full items-center p-8'):
        with ui.card().classes('w-[520px] p-6 gap-3'):
            ui.label(t('show_profile')).classes('text-lg font-bold')
            try:
                selections = backend.load_user_selections(user)
            except ValueError as e:
                logger.warning(f"Profile requested for invalid user id: {e}")
                selections = []
            if not selections:
                ui.label(t('no_interests_selected')).classes('text-gray-400')
            for selection in sorted(selections, key=lambda s: s.interest_id):
                try:
                    interest = backend.get_interest_by_id(selection.interest_id)
                except Exception as e:
                    logger.warning(f"Skipping interest {selection.interest_id} on profile: {e}")
                    continue
                star = '⭐ ' if selection.is_primary else ''
                ui.label(f"{star}{t(f'interest_{interest.key_name}')}")
            ui.button(
                t('edit_interests_restart'),
                on_click=lambda: ui.navigate.to(f'/?user={user}'),
            ).props('outline no-caps')


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Interest Editor',
        port=int(os.environ.get('PORT', 8081)),
        reload=not getattr(sys, 'frozen', False),
        storage_secret=os.environ.get('STORAGE_SECRET', 'interest_editor_secret'),
    )
