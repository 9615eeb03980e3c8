# src/libs/autocomplete-common/autocomplete_common/exceptions.py
from typing import Iterable


class AutocompleteError(Exception):
    """
    Base class for every error raised by the autocomplete core.

    Each subclass carries the HTTP status the service boundary answers with,
    so the application needs a single exception handler for the whole family.
    """
    status_code: int = 500


class ClientInputError(AutocompleteError):
    """A required request parameter is missing or malformed."""
    status_code = 400


class AuthenticationError(AutocompleteError):
    """
    The signed request envelope was rejected. There is no partial-trust mode:
    every subclass is fatal to the request.
    """
    status_code = 403
    reason: str = "rejected"


class MissingSignatureError(AuthenticationError):
    reason = "missing"


class ExpiredSignatureError(AuthenticationError):
    reason = "expired"


class InvalidSignatureError(AuthenticationError):
    reason = "invalid"


class NotFoundError(AutocompleteError):
    status_code = 404


class ConfigurationError(AutocompleteError):
    """
    A setup mistake the operator must fix. Never caught inside the core;
    it is meant to surface loudly during development.
    """
    status_code = 500


class ProviderNotFoundError(ConfigurationError):
    """Raised when a provider name is empty, the 'default' sentinel, or unknown."""

    def __init__(self, name: str, known_names: Iterable[str], reason: str = "Unknown provider"):
        self.name = name
        self.known_names = sorted(known_names)
        super().__init__(
            f'{reason} "{name}". Available providers: [{", ".join(self.known_names)}]'
        )


class UnsupportedOptionError(ConfigurationError):
    """An option combination that cannot work across the AJAX boundary."""
