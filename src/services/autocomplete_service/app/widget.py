import enum
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Type
from urllib.parse import quote, urlencode

from .providers.base import class_token
from .providers.choices import encode_choices_token
from .providers.entity_factory import EntityProviderFactory
from .providers.enum_provider import EnumProvider
from .security.signer import CHIP_ROUTE_NAME, SEARCH_ROUTE_NAME, AutocompleteSigner

AUTOCOMPLETE_PATH_PREFIX = "/_autocomplete"


@dataclass(frozen=True)
class AutocompleteWidget:
    """
    Render-time description of an autocomplete form field.

    Everything the search and chip endpoints need travels in the URL, so the
    widget only holds serializable options. `search_url` and `chip_url` sign
    them for the caller that is rendering the form.
    """
    provider: str
    theme: Optional[str] = None
    translation_domain: Optional[str] = None
    choice_label: Optional[str] = None
    choice_value: Optional[str] = None
    locale: Optional[str] = None
    limit: int = 10
    min_chars: int = 1
    debounce: int = 300
    multiple: bool = False

    def _bound_params(self) -> Dict[str, str]:
        params = {
            "theme": self.theme,
            "translation_domain": self.translation_domain,
            "choice_label": self.choice_label,
            "choice_value": self.choice_value,
            "locale": self.locale,
        }
        return {key: value for key, value in params.items() if value}

    def _signed(self, route_name: str, signer: AutocompleteSigner, caller_id: str) -> Dict[str, Any]:
        params = self._bound_params()
        envelope = signer.sign(route_name, self.provider, caller_id=caller_id, **params)
        params.update(envelope.model_dump())
        return params

    def search_params(self, signer: AutocompleteSigner, caller_id: str = "") -> Dict[str, Any]:
        params = self._signed(SEARCH_ROUTE_NAME, signer, caller_id)
        params["limit"] = self.limit
        return params

    def chip_params(
        self,
        signer: AutocompleteSigner,
        caller_id: str = "",
        name: str = "autocomplete",
        chip_size: str = "md",
    ) -> Dict[str, Any]:
        params = self._signed(CHIP_ROUTE_NAME, signer, caller_id)
        params.update({"name": name, "chip_size": chip_size})
        return params

    def search_url(self, signer: AutocompleteSigner, caller_id: str = "") -> str:
        return f"{self._path()}?{urlencode(self.search_params(signer, caller_id))}"

    def chip_url(self, signer: AutocompleteSigner, caller_id: str = "", name: str = "autocomplete") -> str:
        return f"{self._path()}/chip?{urlencode(self.chip_params(signer, caller_id, name=name))}"

    def data_attributes(self, signer: AutocompleteSigner, caller_id: str = "", name: str = "autocomplete") -> Dict[str, str]:
        """The data-* attributes the front-end controller reads off the input."""
        return {
            "data-autocomplete-url": self.search_url(signer, caller_id),
            "data-autocomplete-chip-url": self.chip_url(signer, caller_id, name=name),
            "data-autocomplete-min-chars": str(self.min_chars),
            "data-autocomplete-debounce": str(self.debounce),
            "data-autocomplete-limit": str(self.limit),
            "data-autocomplete-multiple": "true" if self.multiple else "false",
        }

    def _path(self) -> str:
        return f"{AUTOCOMPLETE_PATH_PREFIX}/{quote(self.provider, safe='')}"


def provider_widget(name: str, **options: Any) -> AutocompleteWidget:
    """A widget over a provider registered by name."""
    return AutocompleteWidget(provider=name, **options)


def choices_widget(choices: Mapping[str, Any], **options: Any) -> AutocompleteWidget:
    """A widget over an inline choice list, carried in the provider token."""
    return AutocompleteWidget(provider=encode_choices_token(choices), **options)


def enum_widget(
    enum_class: Type[enum.Enum],
    choice_label: Optional[str] = None,
    translation_domain: Optional[str] = None,
    **options: Any,
) -> AutocompleteWidget:
    # Builds the provider once to surface unbacked enums and bad labels now.
    EnumProvider(enum_class, choice_label=choice_label)
    options.setdefault("limit", len(enum_class))
    return AutocompleteWidget(
        provider=class_token(enum_class),
        choice_label=choice_label,
        translation_domain=translation_domain,
        **options,
    )


def entity_widget(
    factory: EntityProviderFactory,
    entity_class: type,
    query_builder: Any = None,
    choice_label: Optional[str] = None,
    choice_value: Optional[str] = None,
    **options: Any,
) -> AutocompleteWidget:
    """
    A widget over a mapped entity. Closures (a query builder, callable label
    or value) cannot reach the search request, so they fail here instead.
    """
    factory.create_provider(
        entity_class,
        choice_label=choice_label,
        choice_value=choice_value,
        query_builder=query_builder,
    )
    return AutocompleteWidget(
        provider=class_token(entity_class),
        choice_label=choice_label,
        choice_value=choice_value,
        **options,
    )
