from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AutocompleteItem(BaseModel):
    """
    The atomic search result returned by every provider.
    """
    id: str = Field(..., min_length=1, description="Stable identifier sent back by the client on selection.")
    label: str = Field(..., description="Display text for the option or chip.")
    meta: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Opaque provider data passed through to chip rendering.",
    )


class SignedEnvelope(BaseModel):
    """
    Integrity parameters minted at render time and checked on every AJAX request.
    """
    ts: int = Field(..., description="Unix timestamp (seconds) at which the signature was minted.")
    sig: str = Field(..., description="Hex encoded HMAC-SHA256 over the bound request fields.")
