import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol, Sequence

from .providers.base import AutocompleteProvider, class_token
from .providers.choices import CHOICES_TOKEN_PREFIX, ChoicesProvider, decode_choices_token
from .providers.entity_factory import EntityProviderFactory
from .providers.enum_provider import EnumProvider, ensure_backed_enum
from .registry import ProviderRegistry
from .translation import Translator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolveOptions:
    """Request-supplied overrides that shape dynamically built providers."""
    choice_label: Optional[str] = None
    choice_value: Optional[str] = None
    translation_domain: Optional[str] = None


class TypeClassifier(Protocol):
    """
    Recognizes a class token and builds the provider for it. Classifiers only
    know the classes they were given; nothing is imported at request time.
    """

    def recognizes(self, token: str) -> bool:
        ...

    def build(self, token: str, options: ResolveOptions) -> AutocompleteProvider:
        ...

    def memoized(self, provider: AutocompleteProvider) -> bool:
        """True when the provider was registered by this classifier as a cache entry."""
        ...


class EntityClassifier:
    """Mapped entity classes, built through the entity provider factory."""

    def __init__(self, factory: EntityProviderFactory, entity_classes: Iterable[type]):
        self.factory = factory
        self._classes: Dict[str, type] = {class_token(cls): cls for cls in entity_classes}

    @classmethod
    def from_base(cls, factory: EntityProviderFactory, base) -> "EntityClassifier":
        """Every class mapped on a declarative base's registry."""
        return cls(factory, [mapper.class_ for mapper in base.registry.mappers])

    def recognizes(self, token: str) -> bool:
        return token in self._classes

    def build(self, token: str, options: ResolveOptions) -> AutocompleteProvider:
        return self.factory.create_provider(
            self._classes[token],
            choice_label=options.choice_label,
            choice_value=options.choice_value,
        )

    def memoized(self, provider: AutocompleteProvider) -> bool:
        return False


class EnumClassifier:
    """
    Backed enum classes. Each built provider is registered under a name that
    carries its options: the bare token when the request overrides nothing,
    else ``token|choice_label|translation_domain``. Later requests with the
    same options reuse it; requests with other options get their own.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        enum_classes: Iterable[type],
        translator: Optional[Translator] = None,
    ):
        self.registry = registry
        self.translator = translator
        self._classes: Dict[str, type] = {}
        self._built: Dict[str, AutocompleteProvider] = {}
        for enum_class in enum_classes:
            ensure_backed_enum(enum_class)
            self._classes[class_token(enum_class)] = enum_class

    @staticmethod
    def provider_name(token: str, options: ResolveOptions) -> str:
        if options.choice_label is None and options.translation_domain is None:
            return token
        return "|".join((token, options.choice_label or "", options.translation_domain or ""))

    def recognizes(self, token: str) -> bool:
        return token in self._classes

    def memoized(self, provider: AutocompleteProvider) -> bool:
        return any(provider is built for built in self._built.values())

    def build(self, token: str, options: ResolveOptions) -> AutocompleteProvider:
        name = self.provider_name(token, options)
        if self.registry.has(name):
            return self.registry.get(name)

        provider = EnumProvider(
            self._classes[token],
            name=name,
            choice_label=options.choice_label,
            translator=self.translator,
            translation_domain=options.translation_domain,
        )
        self._built[name] = provider
        self.registry.register(provider, name)
        return provider


class ProviderResolver:
    """
    Turns the provider token of a request into a provider. Strategies, in order:

      1. a provider registered under the exact token;
      2. a ``choices.<payload>`` token, decoded into a per-request provider;
      3. the first classifier that recognizes the token (entity, then enum);
      4. the registry lookup, which fails listing the known providers.

    Registered providers always win over inferred ones. A registry entry a
    classifier cached for itself is skipped in step 1 so the classifier can
    pick the entry matching the request options.
    """

    def __init__(self, registry: ProviderRegistry, classifiers: Sequence[TypeClassifier] = ()):
        self.registry = registry
        self.classifiers = list(classifiers)

    def resolve(self, token: str, options: Optional[ResolveOptions] = None) -> AutocompleteProvider:
        options = options or ResolveOptions()

        if token and self.registry.has(token):
            registered = self.registry.get(token)
            if not any(classifier.memoized(registered) for classifier in self.classifiers):
                logger.debug("Resolved registered provider.", extra={"provider": token})
                return registered

        if token.startswith(CHOICES_TOKEN_PREFIX):
            logger.debug("Resolved inline choices provider.")
            return ChoicesProvider(decode_choices_token(token))

        for classifier in self.classifiers:
            if classifier.recognizes(token):
                logger.debug(
                    "Resolved provider by class token.",
                    extra={"provider": token, "classifier": type(classifier).__name__},
                )
                return classifier.build(token, options)

        return self.registry.get(token)

