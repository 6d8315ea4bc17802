"""Utility functions for token and nonce generation."""

import secrets

NONCE_BYTES = 16


def generate_secure_token() -> str:
    """Generate a cryptographically secure random token.

    Returns a 256-bit random token as a URL-safe string using the secrets module.
    Suitable for opaque session bearer tokens.

    Returns:
        str: 256-bit random token as URL-safe string (43 characters)
    """
    return secrets.token_urlsafe(32)


def generate_nonce() -> str:
    """Generate a challenge nonce: 16 random bytes as 32 lowercase hex characters."""
    return secrets.token_hex(NONCE_BYTES)
