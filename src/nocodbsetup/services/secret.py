"""JWT secret generation for nocodb-setup."""

import base64
import secrets

from nocodbsetup.constants import SECRET_LENGTH
from nocodbsetup.errors import SetupError


def generate_secret(length: int = SECRET_LENGTH) -> str:
    """Return a random token of exactly ``length`` URL-safe base64 characters."""
    if length <= 0:
        raise SetupError(f"Secret length must be positive, got {length}.")

    # 3 bytes encode to 4 characters; round up so truncation never runs short.
    nbytes = -(-length * 3 // 4)
    token = base64.urlsafe_b64encode(secrets.token_bytes(nbytes)).decode("ascii")
    return token.rstrip("=")[:length]
