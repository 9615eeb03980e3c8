# tests/unit/services/autocomplete_service/providers/test_entity_provider_factory.py
import threading
from unittest.mock import MagicMock

import pytest

from autocomplete_common.exceptions import UnsupportedOptionError
from src.services.autocomplete_service.app.providers.choices import ChoicesProvider
from src.services.autocomplete_service.app.providers.entity_factory import EntityProviderFactory
from src.services.autocomplete_service.app.registry import ProviderRegistry
from tests.unit.test_support.autocomplete_models import Category, Product

PRODUCT_NAME = "entity.tests.unit.test_support.autocomplete_models.Product"


@pytest.fixture
def registry() -> ProviderRegistry:
    return ProviderRegistry()


@pytest.fixture
def factory(registry: ProviderRegistry) -> EntityProviderFactory:
    return EntityProviderFactory(MagicMock(), registry)


def test_providers_are_memoized_by_class_and_paths(factory: EntityProviderFactory):
    first = factory.create_provider(Product)
    again = factory.create_provider(Product)
    by_sku = factory.create_provider(Product, choice_value="sku")

    assert first is again
    assert by_sku is not first
    assert by_sku is factory.create_provider(Product, choice_value="sku")


def test_first_provider_is_registered_under_the_conventional_name(factory, registry):
    provider = factory.create_provider(Product)
    factory.create_provider(Product, choice_label="sku")

    assert factory.provider_name(Product) == PRODUCT_NAME
    assert factory.has_provider(Product)
    assert registry.get(PRODUCT_NAME) is provider
    assert not factory.has_provider(Category)


def test_developer_registration_is_never_overridden(factory, registry):
    """
    GIVEN a provider a developer registered under the conventional entity name
    WHEN the factory builds a provider for that class
    THEN the registration stays and an unregistered ad hoc provider is returned.
    """
    custom = ChoicesProvider({"Custom": "1"}, name=PRODUCT_NAME)
    registry.register(custom)

    provider = factory.create_provider(Product)

    assert provider.name == f"{PRODUCT_NAME}.auto"
    assert registry.get(PRODUCT_NAME) is custom
    assert not registry.has(f"{PRODUCT_NAME}.auto")


@pytest.mark.parametrize(
    "options",
    [
        {"query_builder": lambda query: query},
        {"choice_label": lambda product: product.title},
        {"choice_value": lambda product: product.sku},
    ],
)
def test_closures_are_rejected(factory, options):
    with pytest.raises(UnsupportedOptionError):
        factory.create_provider(Product, **options)


def test_concurrent_creation_yields_one_instance(factory):
    providers = []

    def build():
        providers.append(factory.create_provider(Category, choice_label="name"))

    threads = [threading.Thread(target=build) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len({id(provider) for provider in providers}) == 1
