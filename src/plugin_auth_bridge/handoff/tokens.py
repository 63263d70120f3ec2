"""Bearer token issuance.

Tokens handed to the plugin are opaque and unrelated to the identity
provider's own access token. They come from :pymod:`secrets`, so guessing one
within the session TTL is infeasible. Tokens are not checked against live
sessions; a collision at 256 bits is not a practical concern.
"""

from __future__ import annotations

import secrets
from typing import Final

_DEFAULT_NBYTES: Final[int] = 32
_MIN_NBYTES: Final[int] = 16


class TokenIssuer:
    """Produce URL-safe bearer tokens from a CSPRNG."""

    def __init__(self, nbytes: int = _DEFAULT_NBYTES) -> None:
        if nbytes < _MIN_NBYTES:
            raise ValueError(f"token entropy must be at least {_MIN_NBYTES} bytes")
        self.nbytes = nbytes

    def issue(self) -> str:
        return secrets.token_urlsafe(self.nbytes)
