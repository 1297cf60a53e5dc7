"""
Ledger gateway interface.

The gateway is the only place that talks to the network. Everything else
in the SDK receives a gateway instance explicitly, which keeps the builder
and the grind engine testable against ``StubGateway``.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from solders.hash import Hash
from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountInfo:
    """
    On-ledger state of an account, reduced to what the SDK needs.

    Attributes:
        lamports: Native balance in smallest units
        owner: Base58 address of the owning program
        data_len: Size of the account data in bytes
        executable: Whether the account holds a program
    """
    lamports: int
    owner: str
    data_len: int = 0
    executable: bool = False


class LedgerGateway(ABC):
    """
    Abstract base class for ledger gateway implementations.

    Implementations must be safe for sequential reuse. Concurrent use from
    several tasks is not required.
    """

    @abstractmethod
    async def get_latest_blockhash(self) -> Hash:
        """
        Fetch a recent blockhash to embed in a transaction.

        Raises:
            NetworkUnavailable: If the endpoint cannot be reached
        """

    @abstractmethod
    async def get_account_info(self, address: Pubkey) -> Optional[AccountInfo]:
        """
        Look up an account.

        Returns:
            AccountInfo, or None when the address has no on-ledger presence

        Raises:
            NetworkUnavailable: If the endpoint cannot be reached
        """

    @abstractmethod
    async def get_balance(self, address: Pubkey) -> int:
        """Native balance of an address in lamports."""

    @abstractmethod
    async def get_token_account_balance(self, holding_account: Pubkey) -> int:
        """
        Token balance of a holding account in smallest units.

        Raises:
            AccountNotFound: If the holding account does not exist
            NetworkUnavailable: If the endpoint cannot be reached
        """

    @abstractmethod
    async def send_raw_transaction(self, raw: bytes) -> str:
        """
        Broadcast a signed, serialized transaction exactly once.

        Returns:
            Base58 transaction signature reported by the node

        Raises:
            SubmissionRejected: If the node refuses the transaction
            NetworkUnavailable: If the endpoint cannot be reached
        """

    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "LedgerGateway":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def get_gateway(rpc_url: str, commitment: str = "confirmed") -> LedgerGateway:
    """
    Get a gateway backed by the ledger's JSON-RPC API.

    Args:
        rpc_url: RPC endpoint URL
        commitment: Commitment level used for reads and preflight

    Returns:
        Gateway implementation
    """
    from .rpc_transport import RpcGateway
    logger.debug("Using RPC gateway for %s", rpc_url)
    return RpcGateway(rpc_url, commitment=commitment)
