"""
Identity module for the solgrind SDK.

This module generates fresh signing identities and restores existing ones
from their base58 secret key. Identities live only in memory.
"""
import logging

from solders.keypair import Keypair

from solgrind.exceptions import InvalidSecretKey
from solgrind.identity.crypto import (
    generate_ed25519_keypair, secret_key_bytes,
    encode_secret_key, decode_secret_key
)
from solgrind.identity.types import Identity

__all__ = [
    'create_identity',
    'restore_identity',
    'Identity',
]

logger = logging.getLogger(__name__)


def _identity_from_raw(raw: bytes, encoded: str) -> Identity:
    try:
        keypair = Keypair.from_bytes(raw)
    except ValueError as e:
        raise InvalidSecretKey(f"Could not build keypair: {e}") from e
    return Identity(
        public_key=str(keypair.pubkey()),
        secret_key=encoded,
        keypair=keypair,
    )


def create_identity() -> Identity:
    """
    Create a new random identity.

    Returns:
        Identity with its address, encoded secret key and keypair
    """
    private_key, _ = generate_ed25519_keypair()
    raw = secret_key_bytes(private_key)
    identity = _identity_from_raw(raw, encode_secret_key(raw))

    # Log truncated address only
    logger.debug("Created identity %s…", identity.public_key[:6])
    return identity


def restore_identity(encoded_secret: str) -> Identity:
    """
    Restore an identity from a base58 secret key.

    Args:
        encoded_secret: Base58 text of the 64-byte secret key

    Returns:
        Identity whose address is derived from the secret key

    Raises:
        InvalidSecretKey: If the secret cannot be decoded or is inconsistent
    """
    raw = decode_secret_key(encoded_secret)
    identity = _identity_from_raw(raw, encode_secret_key(raw))
    logger.debug("Restored identity %s…", identity.public_key[:6])
    return identity
