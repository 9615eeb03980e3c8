import abc
import logging
from typing import Callable, Iterable, List, Optional, Sequence

from ..dtos.item_dto import AutocompleteItem

logger = logging.getLogger(__name__)


class AutocompleteProvider(abc.ABC):
    """
    A named search source. Providers hold no per-request state, so a single
    instance is shared by every request in the process.
    """
    name: str = ""

    @abc.abstractmethod
    async def search(self, query: str, limit: int, selected: Sequence[str]) -> List[AutocompleteItem]:
        """
        Returns at most `limit` items matching `query`, omitting ids in `selected`.
        An empty query returns the first `limit` items in the default ordering.
        """

    @property
    def kind(self) -> str:
        return type(self).__name__


class ChipProvider(AutocompleteProvider):
    """A provider that can also resolve a single item for chip rendering."""

    @abc.abstractmethod
    async def get(self, id: str) -> Optional[AutocompleteItem]:
        """Returns the item for `id`, or None when it does not exist."""


def class_token(cls: type) -> str:
    """The fully-qualified name a class is addressed by in provider tokens."""
    return f"{cls.__module__}.{cls.__qualname__}"


def normalize_query(query: Optional[str]) -> str:
    return (query or "").strip().casefold()


def rank_items(
    items: Iterable[AutocompleteItem],
    query: str,
    limit: int,
    selected: Sequence[str],
    haystack: Optional[Callable[[AutocompleteItem], str]] = None,
    sort_label: Optional[Callable[[AutocompleteItem], str]] = None,
) -> List[AutocompleteItem]:
    """
    Shared search algorithm for in-memory universes: exclude selected ids, keep
    items whose haystack contains the query, put label prefix matches first,
    then order by case-folded label and id, and truncate to `limit`.

    `haystack` defaults to "label id"; `sort_label` defaults to the label and is
    the text used for prefix ranking and ordering.
    """
    if limit <= 0:
        return []

    needle = normalize_query(query)
    excluded = {str(value) for value in selected}
    haystack = haystack or (lambda item: f"{item.label} {item.id}")
    sort_label = sort_label or (lambda item: item.label)

    matches = [
        item for item in items
        if item.id not in excluded
        and (not needle or needle in haystack(item).casefold())
    ]

    def sort_key(item: AutocompleteItem):
        label = sort_label(item).casefold()
        starts = bool(needle) and label.startswith(needle)
        return (not starts, label, item.id)

    matches.sort(key=sort_key)
    return matches[:limit]
