"""Internationalization (i18n) for issue descriptions."""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

# Supported languages
SUPPORTED_LANGUAGES = ["nl", "en"]
DEFAULT_LANGUAGE = "nl"

LOCALES_DIR = Path(__file__).parent / "locales"

# Cache for loaded translations (thread-safe via lock)
_translations: Dict[str, Dict[str, Any]] = {}
_translations_lock = threading.Lock()


def load_translations(language: str) -> Dict[str, Any]:
    """Load translations for a specific language."""
    if language not in SUPPORTED_LANGUAGES:
        language = DEFAULT_LANGUAGE

    with _translations_lock:
        if language in _translations:
            return _translations[language]

        locale_path = LOCALES_DIR / f"{language}.json"
        if not locale_path.exists():
            # Fallback to default
            locale_path = LOCALES_DIR / f"{DEFAULT_LANGUAGE}.json"

        if locale_path.exists():
            with open(locale_path, "r", encoding="utf-8") as f:
                _translations[language] = json.load(f)
        else:
            _translations[language] = {}

        return _translations[language]


def t(key: str, language: str = DEFAULT_LANGUAGE, **kwargs) -> str:
    """
    Translate a key to the specified language.

    Args:
        key: Translation key in dot notation (e.g., "issues.thin_content")
        language: Target language code
        **kwargs: Values for placeholder substitution

    Returns:
        Translated string or the key if not found
    """
    value: Any = load_translations(language)
    for part in key.split("."):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            logger.warning(f"Missing translation key: {key} for language: {language}")
            return key

    if isinstance(value, str):
        # Substitute placeholders {name} with kwargs
        try:
            return value.format(**kwargs)
        except (KeyError, ValueError, IndexError):
            return value

    return str(value) if value else key


class Translator:
    """Translator instance for a specific language."""

    def __init__(self, language: str = DEFAULT_LANGUAGE):
        if language not in SUPPORTED_LANGUAGES:
            language = DEFAULT_LANGUAGE
        self.language = language

    def __call__(self, key: str, **kwargs) -> str:
        return t(key, self.language, **kwargs)


def get_translator(language: str = DEFAULT_LANGUAGE) -> Translator:
    return Translator(language)
