"""
Exceptions for the solgrind SDK.

Every public operation either returns a value or raises one of the
classes below. ``retryable`` tells the grind loop whether an error may be
absorbed with a back-off instead of ending the run.
"""
from typing import Optional


class SolGrindError(Exception):
    """Base exception for all solgrind errors."""
    retryable = False


class InvalidAddress(SolGrindError):
    """Raised when an address is not a base58-encoded 32-byte public key."""

    def __init__(self, address: str, reason: Optional[str] = None):
        self.address = address
        message = f"Invalid address: {address!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidSecretKey(SolGrindError):
    """Raised when an encoded secret key cannot be turned into a keypair."""
    pass


class NetworkUnavailable(SolGrindError):
    """Raised when the ledger RPC endpoint cannot be reached or errors out."""
    retryable = True


class AccountNotFound(SolGrindError):
    """Raised when an account has no on-ledger presence."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Account not found: {address}")


class SubmissionRejected(SolGrindError):
    """Raised when the node refuses a broadcast transaction."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.detail = detail
        super().__init__(message)


class SigningFailure(SolGrindError):
    """Raised when signing or serializing a transaction fails."""
    pass


__all__ = [
    "SolGrindError",
    "InvalidAddress",
    "InvalidSecretKey",
    "NetworkUnavailable",
    "AccountNotFound",
    "SubmissionRejected",
    "SigningFailure",
]
