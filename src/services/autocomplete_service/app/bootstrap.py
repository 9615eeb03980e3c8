import importlib
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from autocomplete_common import config
from autocomplete_common.exceptions import ConfigurationError

from .providers.base import AutocompleteProvider
from .providers.dial_code import DialCodeProvider
from .providers.entity import SessionFactory
from .providers.entity_factory import EntityProviderFactory
from .providers.intl import CountryProvider, CurrencyProvider, LocaleProvider, TimezoneProvider
from .registry import ProviderRegistry
from .resolver import EntityClassifier, EnumClassifier, ProviderResolver
from .security.signer import AutocompleteSigner
from .theme import TemplateResolver
from .translation import BabelTranslator, Translator

logger = logging.getLogger(__name__)


@dataclass
class AutocompleteContext:
    """Process-lifetime collaborators shared by every autocomplete request."""
    registry: ProviderRegistry
    factory: EntityProviderFactory
    resolver: ProviderResolver
    signer: AutocompleteSigner
    themes: TemplateResolver
    translator: Optional[Translator] = None


def default_providers() -> List[AutocompleteProvider]:
    return [CountryProvider(), CurrencyProvider(), LocaleProvider(), TimezoneProvider(), DialCodeProvider()]


def load_enum_classes(entries: Iterable[str]) -> List[type]:
    """Imports ``package.module:EnumClass`` entries from configuration."""
    classes = []
    for entry in entries:
        module_name, _, attribute = entry.partition(":")
        if not module_name or not attribute:
            raise ConfigurationError(f'Enum class entry "{entry}" must look like "package.module:EnumClass".')
        try:
            module = importlib.import_module(module_name)
            classes.append(getattr(module, attribute))
        except (ImportError, AttributeError) as exc:
            raise ConfigurationError(f'Cannot load enum class "{entry}": {exc}') from exc
    return classes


def build_context(
    session_factory: SessionFactory,
    base=None,
    enum_classes: Optional[Sequence[type]] = None,
    providers: Optional[Iterable[AutocompleteProvider]] = None,
    secret: Optional[str] = None,
    translator: Optional[Translator] = None,
) -> AutocompleteContext:
    """
    Wires the registry, entity factory, resolver, signer and theme resolver.
    Arguments left out are taken from configuration.
    """
    registry = ProviderRegistry(default_providers() if providers is None else providers)
    factory = EntityProviderFactory(session_factory, registry)

    if translator is None and config.AUTOCOMPLETE_TRANSLATIONS_DIR:
        translator = BabelTranslator(config.AUTOCOMPLETE_TRANSLATIONS_DIR)
    if enum_classes is None:
        enum_classes = load_enum_classes(config.AUTOCOMPLETE_ENUM_CLASSES)

    classifiers = []
    if base is not None:
        classifiers.append(EntityClassifier.from_base(factory, base))
    classifiers.append(EnumClassifier(registry, enum_classes, translator=translator))

    context = AutocompleteContext(
        registry=registry,
        factory=factory,
        resolver=ProviderResolver(registry, classifiers),
        signer=AutocompleteSigner(
            config.AUTOCOMPLETE_SECRET if secret is None else secret,
            ttl=config.AUTOCOMPLETE_SIGNATURE_TTL,
        ),
        themes=TemplateResolver(config.AUTOCOMPLETE_ALLOWED_THEMES, config.AUTOCOMPLETE_DEFAULT_THEME),
        translator=translator,
    )
    logger.info(
        "Autocomplete context built.",
        extra={"providers": registry.names(), "enum_classes": len(enum_classes)},
    )
    return context
