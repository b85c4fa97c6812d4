"""HMAC signature computation and verification.

Signatures are HMAC-SHA256 over the UTF-8 canonical message, keyed with the
UTF-8 bytes of the account secret, and transmitted Base64 encoded.
"""

from __future__ import annotations

import base64
import hmac
from hashlib import sha256

# Keys the throwaway digest computed for unknown users.
_UNKNOWN_USER_KEY = b"\x00" * 32


def compute_signature(secret: str, message: str) -> str:
    """Compute the Base64 HMAC-SHA256 signature of ``message``."""

    digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(secret: str, message: str, presented_signature: str) -> bool:
    """Return whether ``presented_signature`` signs ``message`` under ``secret``.

    An empty secret (unknown user) never verifies. A digest is still computed
    and compared in that case so both denials cost the same work.
    """

    if not secret:
        throwaway = hmac.new(_UNKNOWN_USER_KEY, message.encode("utf-8"), sha256).digest()
        hmac.compare_digest(base64.b64encode(throwaway), presented_signature.encode("utf-8"))
        return False

    expected = compute_signature(secret, message)
    return hmac.compare_digest(expected.encode("ascii"), presented_signature.encode("utf-8"))
