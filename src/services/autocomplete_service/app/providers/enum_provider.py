import enum
import logging
from typing import List, Optional, Sequence, Type

from autocomplete_common.exceptions import ConfigurationError, UnsupportedOptionError

from ..dtos.item_dto import AutocompleteItem
from ..translation import Translatable, Translator, current_locale
from .base import ChipProvider, class_token, rank_items

logger = logging.getLogger(__name__)


def is_backed_enum(enum_class: object) -> bool:
    """
    True for Enum classes whose every member carries a str or int value,
    the only values that serialize to a stable identifier.
    """
    if not isinstance(enum_class, type) or not issubclass(enum_class, enum.Enum):
        return False
    return all(
        isinstance(member.value, (str, int)) and not isinstance(member.value, bool)
        for member in enum_class
    )


def ensure_backed_enum(enum_class: object) -> None:
    if not is_backed_enum(enum_class):
        raise UnsupportedOptionError(
            f'Autocomplete requires an enum whose members have str or int values, got "{enum_class!r}". '
            "Enums with other member values are not supported because they have no stable string identifiers."
        )


class EnumProvider(ChipProvider):
    """
    Searches the members of a backed enum. The item id is the member value.

    Label resolution, in order:
      1. the ``choice_label`` attribute or method of the member, when configured;
      2. ``member.trans(translator, domain, locale)`` when a translator and a
         translation domain are set and the member is translatable;
      3. the member name.

    The resolved label is used both for display and for ranking.
    """

    def __init__(
        self,
        enum_class: Type[enum.Enum],
        name: Optional[str] = None,
        choice_label: Optional[str] = None,
        translator: Optional[Translator] = None,
        translation_domain: Optional[str] = None,
    ):
        ensure_backed_enum(enum_class)

        if choice_label and not all(hasattr(member, choice_label) for member in enum_class):
            raise ConfigurationError(
                f'Enum "{class_token(enum_class)}" does not have "{choice_label}" specified as choice_label.'
            )

        self.enum_class = enum_class
        self.name = name or class_token(enum_class)
        self.choice_label = choice_label or None
        self.translator = translator
        self.translation_domain = translation_domain or None

    async def search(self, query: str, limit: int, selected: Sequence[str]) -> List[AutocompleteItem]:
        return rank_items(self._items(), query, limit, selected)

    async def get(self, id: str) -> Optional[AutocompleteItem]:
        for member in self.enum_class:
            if str(member.value) == id:
                return self._item(member)
        return None

    def _items(self) -> List[AutocompleteItem]:
        return [self._item(member) for member in self.enum_class]

    def _item(self, member: enum.Enum) -> AutocompleteItem:
        return AutocompleteItem(id=str(member.value), label=self._label(member))

    def _label(self, member: enum.Enum) -> str:
        if self.choice_label:
            value = getattr(member, self.choice_label)
            return str(value() if callable(value) else value)

        if self.translator is not None and self.translation_domain and isinstance(member, Translatable):
            return str(member.trans(self.translator, self.translation_domain, current_locale()))

        return member.name
