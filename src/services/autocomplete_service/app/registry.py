import logging
import threading
from typing import Dict, Iterable, List, Optional

from autocomplete_common.exceptions import ProviderNotFoundError

from .providers.base import AutocompleteProvider

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_SENTINEL = "default"


class ProviderRegistry:
    """
    Name -> provider mapping shared by every request in the process.

    Built once at startup and handed to the resolver and the endpoints; the
    resolver may add entries afterwards (enum providers). Registration under
    an existing name overwrites it, so concurrent registrations of the same
    provider are last-write-wins.
    """

    def __init__(self, providers: Iterable[AutocompleteProvider] = ()):
        self._providers: Dict[str, AutocompleteProvider] = {}
        self._lock = threading.Lock()
        for provider in providers:
            self.register(provider)

    def register(self, provider: AutocompleteProvider, name: Optional[str] = None) -> None:
        key = name or provider.name
        if not key:
            raise ValueError(f"Provider {provider!r} has no name and none was given.")
        with self._lock:
            self._providers[key] = provider
        logger.debug("Registered autocomplete provider.", extra={"provider": key, "provider_kind": provider.kind})

    def has(self, name: str) -> bool:
        return name in self._providers

    def get(self, name: str) -> AutocompleteProvider:
        if not name or name == DEFAULT_PROVIDER_SENTINEL:
            raise ProviderNotFoundError(
                name,
                self.names(),
                reason="Invalid provider (it must be set on the form field)",
            )
        try:
            return self._providers[name]
        except KeyError:
            raise ProviderNotFoundError(name, self.names()) from None

    def names(self) -> List[str]:
        return sorted(self._providers)
