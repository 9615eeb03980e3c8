import abc
import functools
import logging
import zoneinfo
from typing import Dict, List, Optional, Sequence, Tuple

from babel import Locale, UnknownLocaleError
from babel.localedata import locale_identifiers

from ..dtos.item_dto import AutocompleteItem
from ..translation import babel_locale, current_locale
from .base import ChipProvider, rank_items

logger = logging.getLogger(__name__)

# CLDR territories that are not countries.
NON_COUNTRY_TERRITORIES = frozenset({"EU", "EZ", "UN", "QO", "XA", "XB", "ZZ"})

TIMEZONE_REGIONS = (
    "Africa/", "America/", "Antarctica/", "Arctic/", "Asia/", "Atlantic/",
    "Australia/", "Europe/", "Indian/", "Pacific/",
)


def timezone_label(identifier: str) -> str:
    """'America/New_York' -> 'America / New York'"""
    return identifier.replace("/", " / ").replace("_", " ")


@functools.lru_cache(maxsize=64)
def country_names(locale_id: str) -> Dict[str, str]:
    territories = Locale.parse(locale_id).territories
    return {
        code: name
        for code, name in territories.items()
        if len(code) == 2 and code.isalpha() and code not in NON_COUNTRY_TERRITORIES
    }


@functools.lru_cache(maxsize=64)
def _currency_names(locale_id: str) -> Dict[str, str]:
    return dict(Locale.parse(locale_id).currencies)


@functools.lru_cache(maxsize=64)
def _locale_names(locale_id: str) -> Dict[str, str]:
    display = Locale.parse(locale_id)
    names: Dict[str, str] = {}
    for identifier in locale_identifiers():
        if identifier == "root":
            continue
        try:
            name = Locale.parse(identifier).get_display_name(display)
        except (UnknownLocaleError, ValueError):
            logger.debug("Skipping unparseable CLDR locale identifier.", extra={"identifier": identifier})
            continue
        names[identifier] = name or identifier
    return names


@functools.lru_cache(maxsize=1)
def _timezone_identifiers() -> Tuple[str, ...]:
    return tuple(sorted(
        identifier for identifier in zoneinfo.available_timezones()
        if identifier == "UTC" or identifier.startswith(TIMEZONE_REGIONS)
    ))


def country_name(code: str, locale: Optional[str] = None) -> Optional[str]:
    return country_names(str(babel_locale(locale or current_locale()))).get(code.upper())


class IntlProvider(ChipProvider):
    """
    Base class for providers over a fixed, code-keyed reference table whose
    labels are resolved against a locale: the one given at construction time,
    else the ambient request locale.
    """

    def __init__(self, locale: Optional[str] = None, name: Optional[str] = None):
        self.locale = locale
        if name:
            self.name = name

    def resolved_locale(self) -> str:
        return str(babel_locale(self.locale or current_locale()))

    @abc.abstractmethod
    def names(self, locale_id: str) -> Dict[str, str]:
        """code -> localized label for the given locale."""

    async def search(self, query: str, limit: int, selected: Sequence[str]) -> List[AutocompleteItem]:
        names = self.names(self.resolved_locale())
        items = [AutocompleteItem(id=code, label=label) for code, label in names.items()]
        return rank_items(items, query, limit, selected)

    async def get(self, id: str) -> Optional[AutocompleteItem]:
        label = self.names(self.resolved_locale()).get(id)
        if label is None:
            return None
        return AutocompleteItem(id=id, label=label)


class CountryProvider(IntlProvider):
    name = "countries"

    def names(self, locale_id: str) -> Dict[str, str]:
        return country_names(locale_id)


class CurrencyProvider(IntlProvider):
    name = "currencies"

    def names(self, locale_id: str) -> Dict[str, str]:
        return _currency_names(locale_id)


class LocaleProvider(IntlProvider):
    name = "locales"

    def names(self, locale_id: str) -> Dict[str, str]:
        return _locale_names(locale_id)


class TimezoneProvider(IntlProvider):
    """Timezone identifiers are not localized; the label is derived from the id."""
    name = "timezones"

    def names(self, locale_id: str) -> Dict[str, str]:
        return {identifier: timezone_label(identifier) for identifier in _timezone_identifiers()}

    def resolved_locale(self) -> str:
        return ""
