"""
Shared constants for the interest editing flow.

Interaction tokens are used both by the handlers (registration) and by the
presenter (button payloads). Keep them in sync!
"""

# Exact tokens
TOKEN_EDIT_START = "isolated_edit_start"
TOKEN_MAIN_MENU = "isolated_main_menu"
TOKEN_EDIT_CATEGORIES = "isolated_edit_categories"
TOKEN_EDIT_PRIMARY = "isolated_edit_primary"
TOKEN_PREVIEW_CHANGES = "isolated_preview_changes"
TOKEN_SAVE_CHANGES = "isolated_save_changes"
TOKEN_CANCEL_EDIT = "isolated_cancel_edit"
TOKEN_UNDO_LAST = "isolated_undo_last"
TOKEN_SHOW_STATS = "isolated_show_stats"

# Prefix tokens, the remainder is the parameter
PREFIX_EDIT_CATEGORY = "isolated_edit_category_"
PREFIX_TOGGLE_INTEREST = "isolated_toggle_interest_"
PREFIX_TOGGLE_PRIMARY = "isolated_toggle_primary_"
PREFIX_SELECT_ALL = "isolated_select_all_"
PREFIX_CLEAR_ALL = "isolated_clear_all_"

# Token shown after save/cancel, handled outside the editor
TOKEN_PROFILE_SHOW = "profile_show"

# Button symbols
SYMBOL_CHECKED = "✅ "
SYMBOL_UNCHECKED = "☐ "
SYMBOL_STAR = "⭐ "
SYMBOL_PROGRESS_EMPTY = "○"
SYMBOL_PROGRESS_PARTIAL = "◐"
SYMBOL_PROGRESS_FULL = "◉"

# Selected interests in a category at which the progress indicator shows full
PROGRESS_DISPLAY_THRESHOLD = 3

# Buttons per row in interest and category grids
BUTTONS_PER_ROW = 2
