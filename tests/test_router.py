"""
Tests for TokenRouter matching and dispatch order.
"""

from unittest.mock import MagicMock

import pytest

from interest_editor.edit.router import (
    NO_MATCH,
    ExactMatch,
    InteractionEvent,
    PrefixMatch,
    TokenRouter,
)


def event(token, user_id="u1"):
    return InteractionEvent(token=token, user_id=user_id)


class TestMatchers:

    def test_exact(self):
        assert ExactMatch("isolated_main_menu").match("isolated_main_menu") == ""
        assert ExactMatch("isolated_main_menu").match("isolated_main_menu_x") is None

    def test_prefix_requires_remainder(self):
        matcher = PrefixMatch("isolated_toggle_interest_")
        assert matcher.match("isolated_toggle_interest_42") == "42"
        assert matcher.match("isolated_toggle_interest_") is None
        assert matcher.match("other_42") is None


class TestDispatch:

    def test_prefix_registered_first_wins(self):
        router = TokenRouter()
        h1 = MagicMock(return_value="h1")
        h2 = MagicMock(return_value="h2")
        router.register_prefix("isolated_toggle_interest_", h1)
        router.register_exact("isolated_toggle_interest_", h2)

        ev = event("isolated_toggle_interest_42")
        result = router.dispatch(ev.token, ev)

        assert result.matched
        assert result.result == "h1"
        assert result.param == "42"
        h1.assert_called_once_with(ev, "42")
        h2.assert_not_called()

    def test_bare_prefix_falls_through_to_exact(self):
        router = TokenRouter()
        h1 = MagicMock()
        h2 = MagicMock(return_value="exact")
        router.register_prefix("isolated_toggle_interest_", h1)
        router.register_exact("isolated_toggle_interest_", h2)

        result = router.handle(event("isolated_toggle_interest_"))

        assert result.result == "exact"
        assert result.param is None
        h1.assert_not_called()

    def test_unknown_token_is_no_match(self):
        router = TokenRouter()
        handler = MagicMock()
        router.register_prefix("isolated_toggle_interest_", handler)

        result = router.handle(event("unknown_x"))

        assert result is NO_MATCH
        assert not result.matched
        handler.assert_not_called()

    def test_first_registered_of_overlapping_prefixes(self):
        router = TokenRouter()
        specific = MagicMock(return_value="specific")
        general = MagicMock(return_value="general")
        router.register_prefix("isolated_edit_category_", specific)
        router.register_prefix("isolated_edit_", general)

        assert router.handle(event("isolated_edit_category_sports")).result == "specific"
        assert router.handle(event("isolated_edit_primary")).result == "general"

    def test_handler_errors_propagate(self):
        router = TokenRouter()
        router.register_exact("boom", MagicMock(side_effect=RuntimeError("boom")))

        with pytest.raises(RuntimeError):
            router.handle(event("boom"))

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValueError):
            TokenRouter().register_prefix("", MagicMock())

    def test_routes_keep_registration_order(self):
        router = TokenRouter()
        router.register_exact("a", MagicMock())
        router.register_prefix("b_", MagicMock())

        assert [type(r.matcher) for r in router.routes] == [ExactMatch, PrefixMatch]
