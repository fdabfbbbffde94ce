"""
String tables for the interest editor UI.

Each language lives in locales/{lang}.yaml as a flat mapping of key -> text.
Texts may carry str.format placeholders ("{ceiling}"). Unknown keys fall back
to the default language and then to the key itself, so a missing string
never breaks a screen.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

import yaml

from interest_editor.paths import get_locales_dir

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"


class Localizer:
    """Loads and caches YAML string tables per language."""

    def __init__(self, locales_dir: Path = None, default_language: str = DEFAULT_LANGUAGE):
        self.locales_dir = Path(locales_dir) if locales_dir else get_locales_dir()
        self.default_language = default_language
        self._cache: Dict[str, Dict[str, str]] = {}

    def available_languages(self):
        if not self.locales_dir.exists():
            return []
        return sorted(p.stem for p in self.locales_dir.glob("*.yaml"))

    def _table(self, language: str) -> Dict[str, str]:
        if language in self._cache:
            return self._cache[language]

        path = self.locales_dir / f"{language}.yaml"
        table: Dict[str, str] = {}
        if path.exists():
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    table = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                logger.error(f"Invalid YAML in {path}: {e}")
                table = {}
            if not isinstance(table, dict):
                logger.error(f"{path} must contain a mapping, got {type(table).__name__}")
                table = {}
        else:
            logger.debug(f"No string table for language '{language}'")

        self._cache[language] = table
        return table

    def get(self, key: str, language: Optional[str] = None, **params) -> str:
        """
        Look up a string and fill its placeholders.

        Args:
            key: String key
            language: Language code, default language if omitted
            **params: Values for str.format placeholders

        Returns:
            The localized text, or the key itself if no table has it
        """
        text = self._table(language or self.default_language).get(key)
        if text is None and language and language != self.default_language:
            text = self._table(self.default_language).get(key)
        if text is None:
            return key

        text = str(text)
        if params:
            try:
                text = text.format(**params)
            except (KeyError, IndexError, ValueError) as e:
                logger.warning(f"Could not format string '{key}': {e}")
        return text

    def reload(self) -> None:
        self._cache.clear()
