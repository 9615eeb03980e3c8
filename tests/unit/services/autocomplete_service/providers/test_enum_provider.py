# tests/unit/services/autocomplete_service/providers/test_enum_provider.py
import pytest

from autocomplete_common.exceptions import ConfigurationError, UnsupportedOptionError
from src.services.autocomplete_service.app.providers.base import class_token
from src.services.autocomplete_service.app.providers.enum_provider import EnumProvider, is_backed_enum
from src.services.autocomplete_service.app.translation import use_locale
from tests.unit.test_support.autocomplete_models import Flag, Priority, Size, Status, Unit

pytestmark = pytest.mark.asyncio


class RecordingTranslator:
    def __init__(self):
        self.calls = []

    def trans(self, message, domain=None, locale=None):
        self.calls.append((message, domain, locale))
        return {"size.s": "Klein", "size.l": "Gross"}.get(message, message)


async def test_backed_enum_detection():
    assert is_backed_enum(Status)
    assert is_backed_enum(Priority)
    assert not is_backed_enum(Unit)
    assert not is_backed_enum(Flag)
    assert not is_backed_enum(str)


@pytest.mark.parametrize("enum_class", [Unit, Flag, dict])
async def test_unbacked_enums_are_rejected_at_construction(enum_class):
    with pytest.raises(UnsupportedOptionError):
        EnumProvider(enum_class)


async def test_ids_are_member_values_and_labels_fall_back_to_names():
    provider = EnumProvider(Priority)

    results = await provider.search("", 10, [])

    assert provider.name == class_token(Priority)
    assert [(item.id, item.label) for item in results] == [("3", "HIGH"), ("1", "LOW"), ("2", "MEDIUM")]


async def test_choice_label_method_is_used_for_display_and_ranking():
    provider = EnumProvider(Priority, choice_label="label")

    results = await provider.search("m", 10, [])

    assert [item.label for item in results] == ["Medium"]


async def test_missing_choice_label_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        EnumProvider(Status, choice_label="label")


async def test_translated_labels_use_the_ambient_locale():
    """
    GIVEN a translatable enum, a translator and a translation domain
    WHEN searching under a request locale
    THEN labels are translated with that locale and ranked by the translation.
    """
    translator = RecordingTranslator()
    provider = EnumProvider(Size, translator=translator, translation_domain="forms")

    with use_locale("de"):
        results = await provider.search("", 10, [])

    assert [item.label for item in results] == ["Gross", "Klein"]
    assert ("size.s", "forms", "de") in translator.calls


async def test_translation_requires_a_domain():
    provider = EnumProvider(Size, translator=RecordingTranslator())

    results = await provider.search("", 10, [])

    assert [item.label for item in results] == ["LARGE", "SMALL"]


async def test_get_matches_on_string_value():
    provider = EnumProvider(Priority)

    assert (await provider.get("2")).label == "MEDIUM"
    assert await provider.get("nonexistent-id") is None


async def test_selected_values_are_excluded():
    provider = EnumProvider(Status)

    results = await provider.search("", 10, ["active"])

    assert [item.id for item in results] == ["retired"]
