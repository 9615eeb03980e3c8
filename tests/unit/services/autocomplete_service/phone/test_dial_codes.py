# tests/unit/services/autocomplete_service/phone/test_dial_codes.py
import pytest

from src.services.autocomplete_service.app.phone.dial_codes import (
    DIAL_CODES,
    PRIMARY_DIAL_CODE_OWNERS,
    ParsedPhoneNumber,
    countries_sharing,
    country_flag,
    dial_code,
    format_e164,
    numeric_dial_code,
    parse_e164,
)

# Countries whose code is shared with a primary owner parse back to that owner.
SHARED_CODE_COUNTRIES = {"CA", "KZ", "YT", "BL", "MF"}


def test_table_covers_every_supported_country():
    assert len(DIAL_CODES) == 232
    assert dial_code("us") == "+1"
    assert dial_code("BS") == "+1-242"
    assert dial_code("XX") is None


def test_country_flag_is_a_regional_indicator_pair():
    assert country_flag("fr") == "\U0001F1EB\U0001F1F7"


@pytest.mark.parametrize("code", ["F", "FRA", "1A", "ÉS"])
def test_country_flag_rejects_non_two_letter_codes(code):
    with pytest.raises(ValueError):
        country_flag(code)


def test_nanp_codes_resolve_to_the_longest_prefix():
    """
    GIVEN a Bahamas number, which shares the +1 prefix with the USA
    WHEN parsing it
    THEN the specific +1-242 code wins over the generic +1.
    """
    assert parse_e164("+1 242 555 0100") == ParsedPhoneNumber("BS", "+1-242", "5550100")
    assert parse_e164("+1 (212) 555-0100") == ParsedPhoneNumber("US", "+1", "2125550100")


def test_shared_codes_resolve_to_their_primary_owner():
    assert parse_e164("+7 495 123 4567").country_code == "RU"
    assert parse_e164("+262 262 123456").country_code == "RE"
    assert parse_e164("+590 590 123456").country_code == "GP"
    assert set(PRIMARY_DIAL_CODE_OWNERS.values()) == {"US", "RU", "RE", "GP"}


@pytest.mark.parametrize("number", ["", "0044 20 7946 0000", "+"])
def test_unparseable_numbers_return_none(number):
    assert parse_e164(number) is None


@pytest.mark.parametrize("country", sorted(set(DIAL_CODES) - SHARED_CODE_COUNTRIES))
def test_format_then_parse_round_trips_the_country(country):
    parsed = parse_e164(format_e164(country, "555 0100"))

    assert parsed.country_code == country
    assert parsed.number == "5550100"


def test_format_rejects_unknown_countries():
    with pytest.raises(ValueError):
        format_e164("XX", "123")


def test_countries_sharing_a_code():
    assert countries_sharing("+1") == ["CA", "US"]
    assert countries_sharing("+590") == ["BL", "GP", "MF"]
    assert numeric_dial_code("+1-242") == "+1242"
