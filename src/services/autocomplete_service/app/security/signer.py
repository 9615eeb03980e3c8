import hashlib
import hmac
import logging
import time
from typing import Callable, Mapping, Optional

from autocomplete_common.exceptions import (
    ConfigurationError,
    ExpiredSignatureError,
    InvalidSignatureError,
    MissingSignatureError,
)
from autocomplete_common.monitoring import observe_signature_rejection

from ..dtos.item_dto import SignedEnvelope

logger = logging.getLogger(__name__)

SEARCH_ROUTE_NAME = "autocomplete_search"
CHIP_ROUTE_NAME = "autocomplete_chip"

# Query parameters bound into the signature, in payload order.
SIGNED_PARAMS = ("theme", "translation_domain", "choice_label", "choice_value", "locale")


class AutocompleteSigner:
    """
    Signs the parameters a widget renders into its search and chip URLs and
    verifies them on the way back in.

    The payload is ``route|provider|theme|translation_domain|choice_label|
    choice_value|locale|caller_id|ts`` signed with HMAC-SHA256. Binding the
    caller id means a URL signed for one user is rejected for another.
    """

    def __init__(self, secret: str, ttl: int = 600, clock: Callable[[], float] = time.time):
        if not secret:
            raise ConfigurationError("AUTOCOMPLETE_SECRET must be set to sign autocomplete requests.")
        self._secret = secret.encode("utf-8")
        self.ttl = ttl
        self._clock = clock

    def sign(
        self,
        route_name: str,
        provider: str,
        theme: Optional[str] = None,
        translation_domain: Optional[str] = None,
        choice_label: Optional[str] = None,
        choice_value: Optional[str] = None,
        locale: Optional[str] = None,
        caller_id: str = "",
    ) -> SignedEnvelope:
        ts = int(self._clock())
        params = {
            "theme": theme,
            "translation_domain": translation_domain,
            "choice_label": choice_label,
            "choice_value": choice_value,
            "locale": locale,
        }
        return SignedEnvelope(ts=ts, sig=self._digest(route_name, provider, params, caller_id, ts))

    def verify(
        self,
        route_name: str,
        provider: str,
        params: Mapping[str, Optional[str]],
        caller_id: str = "",
    ) -> None:
        """
        `params` are the live request's query parameters. Raises
        MissingSignatureError, ExpiredSignatureError or InvalidSignatureError.
        """
        raw_ts, sig = params.get("ts"), params.get("sig")
        if not raw_ts or not sig:
            self._reject(MissingSignatureError("Missing autocomplete request signature."), provider)

        try:
            ts = int(raw_ts)
        except (TypeError, ValueError):
            self._reject(InvalidSignatureError("Malformed autocomplete request timestamp."), provider)

        if abs(self._clock() - ts) > self.ttl:
            self._reject(ExpiredSignatureError("Autocomplete request signature expired."), provider)

        expected = self._digest(route_name, provider, params, caller_id, ts)
        if not hmac.compare_digest(expected, str(sig)):
            self._reject(InvalidSignatureError("Invalid autocomplete request signature."), provider)

    def _digest(
        self,
        route_name: str,
        provider: str,
        params: Mapping[str, Optional[str]],
        caller_id: str,
        ts: int,
    ) -> str:
        fields = [route_name, provider]
        fields.extend(params.get(key) or "" for key in SIGNED_PARAMS)
        fields.extend([caller_id or "", str(ts)])
        payload = "|".join(fields).encode("utf-8")
        return hmac.new(self._secret, payload, hashlib.sha256).hexdigest()

    @staticmethod
    def _reject(error, provider: str):
        observe_signature_rejection(error.reason)
        logger.warning(
            "Rejected autocomplete request signature.",
            extra={"provider": provider, "reason": error.reason},
        )
        raise error
