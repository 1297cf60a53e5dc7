"""
Cryptographic operations for the identity module.

Keys are Ed25519. The ledger's secret-key format is 64 bytes: the 32-byte
seed followed by the 32-byte public key. Text form is base58.
"""
import logging
from typing import Tuple

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding, PrivateFormat, PublicFormat, NoEncryption
)

from solgrind.exceptions import InvalidSecretKey

logger = logging.getLogger(__name__)

SEED_LENGTH = 32
SECRET_KEY_LENGTH = 64


def generate_ed25519_keypair() -> Tuple[Ed25519PrivateKey, bytes]:
    """
    Generate an Ed25519 keypair.

    Returns:
        Tuple of (private_key, public_key_bytes)
    """
    private_key = Ed25519PrivateKey.generate()
    public_key_bytes = private_key.public_key().public_bytes(
        Encoding.Raw, PublicFormat.Raw
    )
    return private_key, public_key_bytes


def secret_key_bytes(private_key: Ed25519PrivateKey) -> bytes:
    """
    Serialize a private key into the 64-byte seed||pubkey layout.

    Args:
        private_key: Ed25519 private key

    Returns:
        64 raw secret-key bytes
    """
    seed = private_key.private_bytes(
        encoding=Encoding.Raw,
        format=PrivateFormat.Raw,
        encryption_algorithm=NoEncryption()
    )
    public_key = private_key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    return seed + public_key


def encode_secret_key(raw: bytes) -> str:
    """Base58-encode raw secret-key bytes."""
    return base58.b58encode(raw).decode("ascii")


def decode_secret_key(encoded: str) -> bytes:
    """
    Decode and check a base58 secret key.

    Args:
        encoded: Base58 text of a 64-byte secret key

    Returns:
        The raw 64 bytes

    Raises:
        InvalidSecretKey: If the text is not base58, has the wrong length,
            or its public half does not belong to its seed
    """
    try:
        raw = base58.b58decode(encoded)
    except (ValueError, TypeError) as e:
        raise InvalidSecretKey(f"Secret key is not valid base58: {e}") from e

    if len(raw) != SECRET_KEY_LENGTH:
        raise InvalidSecretKey(
            f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(raw)}"
        )

    # The public half is redundant; make sure it was not tampered with
    derived = Ed25519PrivateKey.from_private_bytes(raw[:SEED_LENGTH]).public_key()
    if derived.public_bytes(Encoding.Raw, PublicFormat.Raw) != raw[SEED_LENGTH:]:
        raise InvalidSecretKey("Public key half does not match the secret seed")

    return raw
