import base64
import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from autocomplete_common.exceptions import ClientInputError

from ..dtos.item_dto import AutocompleteItem
from .base import ChipProvider, rank_items

logger = logging.getLogger(__name__)

CHOICES_TOKEN_PREFIX = "choices."


class ChoicesProvider(ChipProvider):
    """
    Searches a developer-supplied ``label -> value`` mapping.

    A value that is itself a mapping is a group: its entries are flattened
    recursively and the group name is dropped.
    """

    def __init__(self, choices: Mapping[str, Any], name: str = "choices"):
        self.name = name
        self._items = self._flatten(choices)
        self._by_id = {item.id: item for item in self._items}

    @property
    def items(self) -> List[AutocompleteItem]:
        return list(self._items)

    async def search(self, query: str, limit: int, selected: Sequence[str]) -> List[AutocompleteItem]:
        return rank_items(self._items, query, limit, selected)

    async def get(self, id: str) -> Optional[AutocompleteItem]:
        return self._by_id.get(id)

    def _flatten(self, choices: Mapping[str, Any]) -> List[AutocompleteItem]:
        items: List[AutocompleteItem] = []
        seen = set()
        for label, value in choices.items():
            if isinstance(value, Mapping):
                group = self._flatten(value)
            elif isinstance(value, (list, tuple)):
                group = self._flatten({str(entry): entry for entry in value})
            else:
                group = [self._leaf(label, value)] if value is not None and str(value) != "" else []

            for item in group:
                if item.id in seen:
                    logger.debug("Ignoring duplicate choice value.", extra={"choice_id": item.id})
                    continue
                seen.add(item.id)
                items.append(item)
        return items

    @staticmethod
    def _leaf(label: Any, value: Any) -> AutocompleteItem:
        if isinstance(value, bool):
            value = int(value)
        return AutocompleteItem(id=str(value), label=str(label))


def encode_choices_token(choices: Mapping[str, Any]) -> str:
    """
    Encodes an inline choice list as a provider token that survives the
    round trip through the search URL.
    """
    payload = json.dumps(choices, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    encoded = base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")
    return f"{CHOICES_TOKEN_PREFIX}{encoded}"


def decode_choices_token(token: str) -> Dict[str, Any]:
    """
    Decodes a ``choices.<base64url-json>`` token. A malformed payload is a
    client error, never an empty choice list.
    """
    if not token.startswith(CHOICES_TOKEN_PREFIX):
        raise ClientInputError(f'Provider token "{token}" is not an inline choices token.')

    encoded = token[len(CHOICES_TOKEN_PREFIX):]
    if not encoded:
        raise ClientInputError("Inline choices token carries no payload.")

    try:
        raw = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4))
        decoded = json.loads(raw.decode("utf-8"))
    except ValueError as exc:
        raise ClientInputError(f"Inline choices token is malformed: {exc}") from exc

    if not isinstance(decoded, dict):
        raise ClientInputError("Inline choices token must encode a JSON object of label => value.")

    return decoded
