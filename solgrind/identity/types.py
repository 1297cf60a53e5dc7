"""
Data types for the identity module.
"""
from dataclasses import dataclass

from solders.keypair import Keypair
from solders.pubkey import Pubkey


@dataclass(frozen=True)
class Identity:
    """
    A signing identity on the ledger.

    Attributes:
        public_key: Base58 account address derived from the secret key
        secret_key: Base58 text form of the 64-byte secret key
        keypair: Keypair used for signing
    """
    public_key: str
    secret_key: str
    keypair: Keypair

    @property
    def pubkey(self) -> Pubkey:
        return self.keypair.pubkey()

    @property
    def raw_secret_key(self) -> bytes:
        """The 64 raw secret-key bytes (seed followed by public key)."""
        return bytes(self.keypair)

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks
        return f"Identity(public_key={self.public_key!r})"
