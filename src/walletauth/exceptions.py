"""Wallet authentication exception hierarchy.

Validation errors subclass ValueError so callers that only care about
"bad input" can catch the builtin.
"""


class WalletAuthError(Exception):
    """Base exception for all wallet authentication errors."""

    pass


class InvalidAddressError(WalletAuthError, ValueError):
    """Wallet address is not 0x followed by 40 hex characters."""

    pass


class InvalidSignatureError(WalletAuthError, ValueError):
    """Signature is malformed or its scalars are out of range.

    Raised before any curve arithmetic runs. The authentication engine
    converts it to a failed verification rather than propagating it.
    """

    pass


class SessionError(WalletAuthError, ValueError):
    """Base class for session token failures."""

    pass


class InvalidTokenError(SessionError):
    """Session token is missing or unknown."""

    pass


class SessionExpiredError(SessionError):
    """Session token has expired."""

    pass
