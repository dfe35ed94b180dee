"""
Access token generation for public dashboards.

Tokens are bearer capabilities: whoever holds one gets the scoped access of
the share it belongs to. They carry no structure (no dashboard or org ids)
and come straight from the OS CSPRNG. Uniqueness is enforced by the storage
unique constraint, not here.
"""

import hmac
import logging
import secrets
from typing import Optional

from pubdash.services.errors import RandomnessUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_BYTES = 16


class AccessTokenGenerator:
    """Generates fixed-length hex access tokens."""

    def __init__(self, num_bytes: int = DEFAULT_TOKEN_BYTES):
        if num_bytes < DEFAULT_TOKEN_BYTES:
            raise ValueError(f"num_bytes must be at least {DEFAULT_TOKEN_BYTES}")
        self.num_bytes = num_bytes

    @property
    def token_length(self) -> int:
        return self.num_bytes * 2

    def generate(self) -> str:
        """
        Generate a new access token.

        Raises:
            RandomnessUnavailableError: the OS entropy source failed
        """
        try:
            return secrets.token_hex(self.num_bytes)
        except (OSError, NotImplementedError) as e:
            logger.error("Access token generation failed", extra={"error": str(e)})
            raise RandomnessUnavailableError("Secure randomness unavailable") from e


def tokens_match(expected: Optional[str], provided: Optional[str]) -> bool:
    """Constant-time token comparison."""
    if not expected or not provided:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def mask_token(token: Optional[str]) -> str:
    """Log-safe token representation: a short prefix only."""
    if not token:
        return "<empty>"
    return f"{token[:4]}***"
