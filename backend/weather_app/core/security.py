# weather_app/core/security.py
from __future__ import annotations

import secrets

DEFAULT_TOKEN_BYTES = 32


def generate_token(nbytes: int = DEFAULT_TOKEN_BYTES) -> str:
    """
    Generate an opaque confirm/unsubscribe credential.

    `nbytes` random bytes from the OS CSPRNG, encoded as URL-safe base64 without
    padding (32 bytes -> 43 characters). Uniqueness is enforced by the tokens
    table, not here.
    """
    if nbytes <= 0:
        raise ValueError("nbytes must be positive")
    return secrets.token_urlsafe(nbytes)
