import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Dict, Iterator, Optional, Protocol, Tuple, runtime_checkable

from babel import Locale, UnknownLocaleError
from babel.support import NullTranslations, Translations

from autocomplete_common.config import AUTOCOMPLETE_DEFAULT_LOCALE

logger = logging.getLogger(__name__)

# Locale of the request being served. Intl providers without an explicit
# locale resolve their labels against it.
current_locale_var: ContextVar[Optional[str]] = ContextVar("autocomplete_locale", default=None)


def current_locale() -> str:
    return current_locale_var.get() or AUTOCOMPLETE_DEFAULT_LOCALE


@contextmanager
def use_locale(locale: Optional[str]) -> Iterator[str]:
    """Sets the ambient locale for the duration of the block."""
    token = current_locale_var.set(locale or None)
    try:
        yield current_locale()
    finally:
        current_locale_var.reset(token)


def babel_locale(identifier: Optional[str]) -> Locale:
    """
    Parses a locale identifier ("en", "en-GB", "pt_BR"). Unknown or malformed
    identifiers fall back to the configured default locale.
    """
    identifier = (identifier or AUTOCOMPLETE_DEFAULT_LOCALE).replace("-", "_")
    try:
        return Locale.parse(identifier)
    except (UnknownLocaleError, ValueError, TypeError):
        logger.warning(
            "Unknown locale requested, falling back to default.",
            extra={"requested_locale": identifier, "default_locale": AUTOCOMPLETE_DEFAULT_LOCALE},
        )
        return Locale.parse(AUTOCOMPLETE_DEFAULT_LOCALE)


@runtime_checkable
class Translator(Protocol):
    def trans(self, message: str, domain: Optional[str] = None, locale: Optional[str] = None) -> str:
        ...


@runtime_checkable
class Translatable(Protocol):
    """Implemented by enum members that know how to translate their own label."""

    def trans(self, translator: Translator, domain: Optional[str] = None, locale: Optional[str] = None) -> str:
        ...


class BabelTranslator:
    """
    Translator backed by gettext catalogues compiled under
    ``<directory>/<locale>/LC_MESSAGES/<domain>.mo``.

    Catalogues are loaded lazily once per (locale, domain) pair. A missing
    catalogue yields an empty translation set, which returns messages as is.
    """

    def __init__(self, directory: str, default_domain: str = "messages"):
        self.directory = directory
        self.default_domain = default_domain
        self._catalogues: Dict[Tuple[str, str], NullTranslations] = {}
        self._lock = threading.Lock()

    def trans(self, message: str, domain: Optional[str] = None, locale: Optional[str] = None) -> str:
        catalogue = self._catalogue(locale or current_locale(), domain or self.default_domain)
        return catalogue.gettext(message)

    def _catalogue(self, locale: str, domain: str) -> NullTranslations:
        key = (locale, domain)
        with self._lock:
            if key not in self._catalogues:
                self._catalogues[key] = Translations.load(self.directory, [locale], domain)
            return self._catalogues[key]
