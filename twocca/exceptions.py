"""Custom exceptions.
"""

__all__ = (
    "CAError", "RequestError", "ConflictError",
    "StoreError", "TrustError", "CryptoError",
)


class CAError(Exception):
    """Base class for all errors reported by twocca."""


class RequestError(CAError, ValueError):
    """Invalid certificate request or command parameter."""


class ConflictError(CAError):
    """Target artifact already exists."""


class StoreError(CAError):
    """Required file is missing or cannot be written."""


class TrustError(CAError):
    """Private key does not match certificate."""


class CryptoError(CAError):
    """Key generation, signing or verification failed."""
