from typing import List, Optional, Sequence

from ..dtos.item_dto import AutocompleteItem
from ..phone.dial_codes import DIAL_CODES, country_flag
from .base import rank_items
from .intl import IntlProvider, country_names


class DialCodeProvider(IntlProvider):
    """
    Countries with their international dialling code. The id is the country
    code, the label is "<flag> <country name> (<dial code>)". Queries also
    match the dial code itself, and prefix ranking uses the country name.
    """
    name = "dial_codes"

    def names(self, locale_id: str):
        countries = country_names(locale_id)
        return {code: countries.get(code, code) for code in DIAL_CODES}

    async def search(self, query: str, limit: int, selected: Sequence[str]) -> List[AutocompleteItem]:
        items = [self._item(code, name) for code, name in self.names(self.resolved_locale()).items()]
        return rank_items(
            items,
            query,
            limit,
            selected,
            haystack=lambda item: f"{item.meta['country']} {item.id} {item.meta['dial_code']}",
            sort_label=lambda item: item.meta["country"],
        )

    async def get(self, id: str) -> Optional[AutocompleteItem]:
        if id not in DIAL_CODES:
            return None
        return self._item(id, self.names(self.resolved_locale())[id])

    @staticmethod
    def _item(code: str, country: str) -> AutocompleteItem:
        dial = DIAL_CODES[code]
        return AutocompleteItem(
            id=code,
            label=f"{country_flag(code)} {country} ({dial})",
            meta={"country": country, "dial_code": dial},
        )
