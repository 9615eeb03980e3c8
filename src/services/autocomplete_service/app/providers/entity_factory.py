import logging
import threading
from typing import Any, Dict, Optional, Set, Tuple

from autocomplete_common.exceptions import UnsupportedOptionError

from ..registry import ProviderRegistry
from .base import class_token
from .entity import EntityProvider, SessionFactory

logger = logging.getLogger(__name__)

ENTITY_PROVIDER_PREFIX = "entity."
AD_HOC_SUFFIX = ".auto"


class EntityProviderFactory:
    """
    Builds entity providers and memoizes them by (class, choice_label,
    choice_value), so a given configuration always maps to one provider
    instance per process.

    The first provider built for a class is registered under the conventional
    name ``entity.<module.Class>``, unless a provider was registered there by
    someone else, in which case that registration is left alone and the
    factory hands out an unregistered ``entity.<module.Class>.auto`` instance.
    """

    def __init__(self, session_factory: SessionFactory, registry: ProviderRegistry):
        self._session_factory = session_factory
        self._registry = registry
        self._cache: Dict[Tuple[str, str, str], EntityProvider] = {}
        self._owned_names: Set[str] = set()
        self._lock = threading.Lock()

    @staticmethod
    def provider_name(entity_class: type) -> str:
        return f"{ENTITY_PROVIDER_PREFIX}{class_token(entity_class)}"

    def has_provider(self, entity_class: type) -> bool:
        return self._registry.has(self.provider_name(entity_class))

    def create_provider(
        self,
        entity_class: type,
        choice_label: Optional[str] = None,
        choice_value: Optional[str] = None,
        query_builder: Any = None,
    ) -> EntityProvider:
        if query_builder is not None:
            raise UnsupportedOptionError(
                f'Entity "{class_token(entity_class)}" with autocomplete does not support a "query_builder" '
                "because it cannot be sent to the AJAX search endpoint. "
                "Register a custom provider and reference it by name instead."
            )
        for option, value in (("choice_label", choice_label), ("choice_value", choice_value)):
            if value is not None and not isinstance(value, str):
                raise UnsupportedOptionError(
                    f'Entity "{class_token(entity_class)}" with autocomplete does not support a callable "{option}". '
                    'Use a string property path (e.g. "name") instead.'
                )

        key = (class_token(entity_class), choice_label or "", choice_value or "")
        with self._lock:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            name = self.provider_name(entity_class)
            foreign = self._registry.has(name) and name not in self._owned_names

            provider = EntityProvider(
                self._session_factory,
                entity_class,
                name=f"{name}{AD_HOC_SUFFIX}" if foreign else name,
                choice_label=choice_label,
                choice_value=choice_value,
            )
            self._cache[key] = provider

            if foreign:
                logger.info(
                    "Provider name already registered, using an ad hoc entity provider.",
                    extra={"provider": name},
                )
            elif name not in self._owned_names:
                self._registry.register(provider)
                self._owned_names.add(name)

            return provider
