"""
Tests for the edit flow end to end: tokens in, screens out.
"""

import pytest

from interest_editor.edit import constants as c
from interest_editor.edit.handlers import setup_edit_handlers
from interest_editor.edit.presenter import ScreenPresenter
from interest_editor.edit.router import InteractionEvent, TokenRouter
from interest_editor.models import Selection


@pytest.fixture
def router(engine):
    return setup_edit_handlers(TokenRouter(), engine, ScreenPresenter(engine))


@pytest.fixture
def press(router):
    def _press(token, user_id="u1"):
        result = router.handle(InteractionEvent(token=token, user_id=user_id))
        assert result.matched, token
        return result.result
    return _press


def labels(screen):
    return [b.label_key for row in screen.buttons for b in row]


class TestNavigation:

    def test_start_shows_main_menu(self, press):
        screen = press(c.TOKEN_EDIT_START)

        assert screen.screen == "main_menu"
        assert screen.stats.total_selected == 0
        assert c.TOKEN_SAVE_CHANGES in screen.tokens()

    def test_all_exact_tokens_registered(self, router):
        for token in (c.TOKEN_EDIT_START, c.TOKEN_MAIN_MENU, c.TOKEN_EDIT_CATEGORIES,
                      c.TOKEN_EDIT_PRIMARY, c.TOKEN_PREVIEW_CHANGES, c.TOKEN_SAVE_CHANGES,
                      c.TOKEN_CANCEL_EDIT, c.TOKEN_UNDO_LAST, c.TOKEN_SHOW_STATS):
            assert router.resolve(token) is not None, token

    def test_categories_sorted_with_progress(self, press):
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_SELECT_ALL + "sports")

        screen = press(c.TOKEN_EDIT_CATEGORIES)

        category_row = screen.buttons[0]
        assert [b.token for b in category_row] == [
            c.PREFIX_EDIT_CATEGORY + "sports", c.PREFIX_EDIT_CATEGORY + "music"
        ]
        assert category_row[0].suffix.strip() == c.SYMBOL_PROGRESS_FULL
        assert category_row[1].suffix.strip() == c.SYMBOL_PROGRESS_EMPTY

    def test_category_screen_lists_interests_two_per_row(self, press):
        press(c.TOKEN_EDIT_START)

        screen = press(c.PREFIX_EDIT_CATEGORY + "sports")

        assert screen.screen == "category_interests"
        assert [len(row) for row in screen.buttons[:2]] == [2, 1]
        assert screen.buttons[0][0].token == c.PREFIX_TOGGLE_INTEREST + "1"
        assert screen.buttons[0][0].symbol == c.SYMBOL_UNCHECKED
        assert c.PREFIX_SELECT_ALL + "sports" in screen.tokens()

    def test_empty_category_has_no_mass_row(self, press):
        press(c.TOKEN_EDIT_START)

        screen = press(c.PREFIX_EDIT_CATEGORY + "unknown")

        assert "select_all_in_category" not in labels(screen)
        assert "back_to_categories" in labels(screen)


class TestEdits:

    def test_toggle_interest_rerenders_current_category(self, press):
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_EDIT_CATEGORY + "music")

        screen = press(c.PREFIX_TOGGLE_INTEREST + "4")

        assert screen.text_params == {"category": "music"}
        checked = [b.token for row in screen.buttons for b in row if b.symbol == c.SYMBOL_CHECKED]
        assert c.PREFIX_TOGGLE_INTEREST + "4" in checked

    def test_primary_screen_header(self, press):
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_SELECT_ALL + "music")

        screen = press(c.PREFIX_TOGGLE_PRIMARY + "5")

        assert screen.screen == "primary"
        assert screen.text_params == {"selected": 1, "ceiling": 2}
        assert screen.buttons[0][0].token == c.PREFIX_TOGGLE_PRIMARY + "4"
        assert screen.buttons[0][1].symbol == c.SYMBOL_STAR

    def test_primary_limit_notice(self, press):
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_SELECT_ALL + "sports")
        press(c.PREFIX_TOGGLE_PRIMARY + "1")
        press(c.PREFIX_TOGGLE_PRIMARY + "2")

        screen = press(c.PREFIX_TOGGLE_PRIMARY + "3")

        assert screen.screen == "primary"
        assert screen.notice.key == "primary_limit_reached"
        assert screen.notice.params == {"limit": 2, "current": 2}
        assert screen.text_params["selected"] == 2

    def test_non_numeric_interest_id(self, press):
        press(c.TOKEN_EDIT_START)

        screen = press(c.PREFIX_TOGGLE_INTEREST + "abc")

        assert screen.screen == "error"
        assert screen.notice.key == "invalid_interest_id"

    def test_undo_returns_to_main_menu(self, press):
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_TOGGLE_INTEREST + "1")

        screen = press(c.TOKEN_UNDO_LAST)

        assert screen.screen == "main_menu"
        assert screen.stats.total_selected == 0
        assert screen.notice is None

        screen = press(c.TOKEN_UNDO_LAST)
        assert screen.notice.key == "nothing_to_undo"

    def test_preview_and_stats(self, press):
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_TOGGLE_INTEREST + "2")

        preview = press(c.TOKEN_PREVIEW_CHANGES)
        assert preview.summary.added == ["tennis"]
        assert preview.text_key == "edit_interests_changes_preview"

        stats = press(c.TOKEN_SHOW_STATS)
        assert stats.stats.category_counts == {"sports": 1}


class TestSaveAndCancel:

    def test_save_commits(self, press, repository):
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_TOGGLE_INTEREST + "5")

        screen = press(c.TOKEN_SAVE_CHANGES)

        assert screen.screen == "saved"
        assert screen.text_params == {"changes_count": 1}
        assert screen.tokens() == [c.TOKEN_PROFILE_SHOW]
        assert [s.interest_id for s in repository.saved["u1"]] == [5]

    def test_save_failure_keeps_session(self, press, repository, engine):
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_TOGGLE_INTEREST + "5")
        repository.fail_replace = True

        screen = press(c.TOKEN_SAVE_CHANGES)

        assert screen.screen == "preview"
        assert screen.notice.key == "error_saving_changes"
        assert engine.get_session("u1").selected_ids() == [5]

    def test_cancel_discards(self, press, repository):
        repository.saved["u1"] = [Selection("u1", 1)]
        press(c.TOKEN_EDIT_START)
        press(c.PREFIX_TOGGLE_INTEREST + "1")

        screen = press(c.TOKEN_CANCEL_EDIT)

        assert screen.screen == "cancelled"
        assert screen.text_params == {"changes_count": 1}
        assert screen.summary.removed == ["football"]
        assert [s.interest_id for s in repository.saved["u1"]] == [1]


class TestErrorScreens:

    def test_expired_session(self, press, clock):
        press(c.TOKEN_EDIT_START)
        clock.advance(3600)

        screen = press(c.PREFIX_TOGGLE_INTEREST + "1")

        assert screen.screen == "session_expired"
        assert screen.tokens() == [c.TOKEN_EDIT_START]

    def test_upstream_failure_offers_retry(self, press, catalog):
        press(c.TOKEN_EDIT_START)
        catalog.fail = True

        screen = press(c.PREFIX_TOGGLE_INTEREST + "1")

        assert screen.screen == "error"
        assert c.PREFIX_TOGGLE_INTEREST + "1" in screen.tokens()

    def test_interest_removed_from_catalog_mid_toggle(self, press, catalog, monkeypatch):
        """Resolving the category of a toggled interest can fail after the toggle."""
        press(c.TOKEN_EDIT_START)
        lookups = []
        original = catalog.get_interest_by_id

        def get_interest_once(interest_id):
            lookups.append(interest_id)
            if len(lookups) > 1:
                raise KeyError(f"Interest {interest_id} not found")
            return original(interest_id)

        monkeypatch.setattr(catalog, "get_interest_by_id", get_interest_once)

        screen = press(c.PREFIX_TOGGLE_INTEREST + "1")

        assert lookups == [1, 1]
        assert screen.screen == "error"
        assert screen.notice.key == "error_loading_interests"

    def test_start_with_unreachable_repository(self, press, repository):
        repository.fail_load = True

        screen = press(c.TOKEN_EDIT_START)

        assert screen.screen == "error"
        assert screen.notice.key == "error_loading_interests"

    def test_unknown_token(self, router):
        result = router.handle(InteractionEvent(token="unknown_x", user_id="u1"))
        assert not result.matched
