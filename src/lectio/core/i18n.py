"""gettext wrapper for user-facing reader labels."""

from __future__ import annotations

import gettext as _gettext
from pathlib import Path


_DOMAIN = "lectio"
_LOCALE_DIR = Path(__file__).resolve().parent.parent / "locale"


class _Translations:
    def __init__(self) -> None:
        self._translation: _gettext.NullTranslations = _gettext.NullTranslations()
        self.language: str | None = None

    def set_language(self, language: str | None) -> None:
        self._translation = _gettext.translation(
            _DOMAIN,
            localedir=_LOCALE_DIR,
            languages=[language] if language else None,
            fallback=True,
        )
        self.language = language

    def gettext(self, message: str) -> str:
        return self._translation.gettext(message)

    def ngettext(self, singular: str, plural: str, count: int) -> str:
        return self._translation.ngettext(singular, plural, count)


_TRANSLATIONS = _Translations()


def set_language(language: str | None) -> None:
    """Configure the language used for labels."""

    _TRANSLATIONS.set_language(language)


def gettext(message: str) -> str:
    return _TRANSLATIONS.gettext(message)


def ngettext(singular: str, plural: str, count: int) -> str:
    return _TRANSLATIONS.ngettext(singular, plural, count)


__all__ = ["set_language", "gettext", "ngettext"]
