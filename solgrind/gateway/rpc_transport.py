"""
JSON-RPC gateway implementation.

Wraps ``solana.rpc.async_api.AsyncClient`` and translates its transport
and RPC errors into the SDK's exception taxonomy.
"""
import logging
from typing import Any, Awaitable, Optional

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment
from solana.rpc.core import RPCException
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey

from solgrind.exceptions import AccountNotFound, NetworkUnavailable, SubmissionRejected
from .transport import AccountInfo, LedgerGateway

logger = logging.getLogger(__name__)

# Substrings the node uses when a token account lookup misses
_MISSING_ACCOUNT_MARKERS = ("could not find account", "invalid param: not a token account")


class RpcGateway(LedgerGateway):
    """
    Gateway talking to a ledger node over JSON-RPC.

    Args:
        rpc_url: RPC endpoint URL
        commitment: Commitment level for reads and preflight checks
        timeout: HTTP timeout in seconds
        client: Pre-built AsyncClient (mainly for tests)
    """

    def __init__(
        self,
        rpc_url: str,
        commitment: str = "confirmed",
        timeout: float = 30,
        client: Optional[AsyncClient] = None
    ):
        self.rpc_url = rpc_url
        self.commitment = Commitment(commitment)
        self._client = client or AsyncClient(rpc_url, commitment=self.commitment, timeout=timeout)

    async def _call(self, what: str, request: Awaitable[Any]) -> Any:
        try:
            return await request
        except (httpx.HTTPError, SolanaRpcException) as e:
            logger.debug("%s failed on %s: %s", what, self.rpc_url, e)
            raise NetworkUnavailable(f"{what} failed: {e}") from e
        except RPCException as e:
            raise NetworkUnavailable(f"{what} returned an RPC error: {e}") from e

    async def get_latest_blockhash(self) -> Hash:
        resp = await self._call(
            "getLatestBlockhash", self._client.get_latest_blockhash(self.commitment)
        )
        return resp.value.blockhash

    async def get_account_info(self, address: Pubkey) -> Optional[AccountInfo]:
        resp = await self._call(
            "getAccountInfo",
            self._client.get_account_info(address, commitment=self.commitment)
        )
        account = resp.value
        if account is None:
            return None
        return AccountInfo(
            lamports=account.lamports,
            owner=str(account.owner),
            data_len=len(account.data),
            executable=account.executable,
        )

    async def get_balance(self, address: Pubkey) -> int:
        resp = await self._call(
            "getBalance", self._client.get_balance(address, commitment=self.commitment)
        )
        return int(resp.value)

    async def get_token_account_balance(self, holding_account: Pubkey) -> int:
        try:
            resp = await self._client.get_token_account_balance(
                holding_account, commitment=self.commitment
            )
        except RPCException as e:
            message = str(e).lower()
            if any(marker in message for marker in _MISSING_ACCOUNT_MARKERS):
                raise AccountNotFound(str(holding_account)) from e
            raise NetworkUnavailable(f"getTokenAccountBalance returned an RPC error: {e}") from e
        except (httpx.HTTPError, SolanaRpcException) as e:
            raise NetworkUnavailable(f"getTokenAccountBalance failed: {e}") from e
        return int(resp.value.amount)

    async def send_raw_transaction(self, raw: bytes) -> str:
        opts = TxOpts(preflight_commitment=self.commitment)
        try:
            resp = await self._client.send_raw_transaction(raw, opts=opts)
        except RPCException as e:
            logger.error("Transaction rejected by %s: %s", self.rpc_url, e)
            raise SubmissionRejected("Transaction rejected by the node", detail=str(e)) from e
        except (httpx.HTTPError, SolanaRpcException) as e:
            raise NetworkUnavailable(f"sendTransaction failed: {e}") from e
        return str(resp.value)

    async def close(self) -> None:
        await self._client.close()
