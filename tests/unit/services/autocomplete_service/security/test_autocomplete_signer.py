# tests/unit/services/autocomplete_service/security/test_autocomplete_signer.py
import pytest

from autocomplete_common.exceptions import (
    ConfigurationError,
    ExpiredSignatureError,
    InvalidSignatureError,
    MissingSignatureError,
)
from src.services.autocomplete_service.app.security.signer import (
    CHIP_ROUTE_NAME,
    SEARCH_ROUTE_NAME,
    AutocompleteSigner,
)

BOUND = {
    "theme": "dark",
    "translation_domain": "forms",
    "choice_label": "name",
    "choice_value": "id",
    "locale": "de",
}


@pytest.fixture
def signer(fixed_clock) -> AutocompleteSigner:
    return AutocompleteSigner("s3cret", ttl=600, clock=fixed_clock)


def _signed_params(signer: AutocompleteSigner, caller_id: str = "alice", route: str = SEARCH_ROUTE_NAME) -> dict:
    envelope = signer.sign(route, "countries", caller_id=caller_id, **BOUND)
    return {**BOUND, "ts": str(envelope.ts), "sig": envelope.sig, "query": "ger"}


def test_verify_accepts_a_fresh_signature(signer):
    signer.verify(SEARCH_ROUTE_NAME, "countries", _signed_params(signer), caller_id="alice")


def test_sign_returns_the_current_timestamp(signer, fixed_clock):
    envelope = signer.sign(SEARCH_ROUTE_NAME, "countries")

    assert envelope.ts == int(fixed_clock.now)
    assert len(envelope.sig) == 64


def test_unbound_parameters_do_not_affect_the_signature(signer):
    params = {**_signed_params(signer), "query": "something else", "limit": "5"}

    signer.verify(SEARCH_ROUTE_NAME, "countries", params, caller_id="alice")


@pytest.mark.parametrize("elapsed", [600, -600])
def test_signature_is_valid_up_to_the_ttl(signer, fixed_clock, elapsed):
    params = _signed_params(signer)
    fixed_clock.advance(elapsed)

    signer.verify(SEARCH_ROUTE_NAME, "countries", params, caller_id="alice")


@pytest.mark.parametrize("elapsed", [601, -601])
def test_signature_expires_after_the_ttl(signer, fixed_clock, elapsed):
    params = _signed_params(signer)
    fixed_clock.advance(elapsed)

    with pytest.raises(ExpiredSignatureError):
        signer.verify(SEARCH_ROUTE_NAME, "countries", params, caller_id="alice")


@pytest.mark.parametrize("field", sorted(BOUND))
def test_mutating_a_bound_parameter_invalidates_the_signature(signer, field):
    """
    GIVEN a signed parameter set
    WHEN any bound parameter is changed while keeping the signature
    THEN verification fails as invalid.
    """
    params = {**_signed_params(signer), field: "tampered"}

    with pytest.raises(InvalidSignatureError):
        signer.verify(SEARCH_ROUTE_NAME, "countries", params, caller_id="alice")


def test_provider_route_and_caller_are_bound(signer):
    params = _signed_params(signer)

    with pytest.raises(InvalidSignatureError):
        signer.verify(SEARCH_ROUTE_NAME, "currencies", params, caller_id="alice")
    with pytest.raises(InvalidSignatureError):
        signer.verify(CHIP_ROUTE_NAME, "countries", params, caller_id="alice")
    with pytest.raises(InvalidSignatureError):
        signer.verify(SEARCH_ROUTE_NAME, "countries", params, caller_id="mallory")


def test_dropping_a_bound_parameter_invalidates_the_signature(signer):
    params = _signed_params(signer)
    del params["locale"]

    with pytest.raises(InvalidSignatureError):
        signer.verify(SEARCH_ROUTE_NAME, "countries", params, caller_id="alice")


@pytest.mark.parametrize("missing", ["ts", "sig"])
def test_missing_envelope_fields_are_rejected(signer, missing):
    params = _signed_params(signer)
    del params[missing]

    with pytest.raises(MissingSignatureError):
        signer.verify(SEARCH_ROUTE_NAME, "countries", params, caller_id="alice")


def test_malformed_timestamp_is_invalid(signer):
    params = {**_signed_params(signer), "ts": "yesterday"}

    with pytest.raises(InvalidSignatureError):
        signer.verify(SEARCH_ROUTE_NAME, "countries", params, caller_id="alice")


def test_empty_secret_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        AutocompleteSigner("")
