"""
In-memory gateway implementation.

``StubGateway`` keeps accounts, balances and broadcasts in dictionaries so
the builder, grind engine and balance queries can run without a node. It
hands out deterministic blockhashes and can be told to fail on demand.
"""
import hashlib
import logging
from collections import Counter
from typing import Dict, List, Optional, Set

from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from solgrind.exceptions import (
    AccountNotFound, NetworkUnavailable, SolGrindError, SubmissionRejected
)
from .transport import AccountInfo, LedgerGateway

logger = logging.getLogger(__name__)


class StubGateway(LedgerGateway):
    """
    A stub implementation of the ledger gateway.

    Args:
        rotate_every: Number of blockhash requests served before the
            blockhash changes. 1 means every request gets a new one.
        seed: Seed for the deterministic blockhash sequence
    """

    def __init__(self, rotate_every: int = 1, seed: bytes = b"solgrind-stub"):
        if rotate_every < 1:
            raise ValueError("rotate_every must be at least 1")
        self.rotate_every = rotate_every
        self.seed = seed
        self.accounts: Set[str] = set()
        self.balances: Dict[str, int] = {}
        self.token_balances: Dict[str, int] = {}
        self.sent: List[bytes] = []
        self.calls: Counter = Counter()
        self.reject_reason: Optional[str] = None
        self.closed = False
        self._blockhash_requests = 0
        self._pending_failures: Dict[str, List[SolGrindError]] = {}

    # -- test controls -----------------------------------------------------

    def add_account(self, address, lamports: int = 0) -> None:
        """Give an address on-ledger presence with a native balance."""
        self.accounts.add(str(address))
        self.balances[str(address)] = lamports

    def set_token_balance(self, holding_account, amount: int) -> None:
        """Create or update a token holding account."""
        self.add_account(holding_account, self.balances.get(str(holding_account), 0))
        self.token_balances[str(holding_account)] = amount

    def fail_next(self, method: str, count: int = 1, error: Optional[SolGrindError] = None) -> None:
        """
        Make the next ``count`` calls of ``method`` raise.

        Args:
            method: Gateway method name, e.g. ``"get_latest_blockhash"``
            count: Number of calls to fail
            error: Exception to raise (defaults to NetworkUnavailable)
        """
        failures = self._pending_failures.setdefault(method, [])
        for _ in range(count):
            failures.append(error or NetworkUnavailable(f"stub: {method} unavailable"))

    def reject_submissions(self, reason: Optional[str] = "stub: transaction rejected") -> None:
        """Reject every broadcast with the given reason (None re-enables)."""
        self.reject_reason = reason

    def _enter(self, method: str) -> None:
        self.calls[method] += 1
        failures = self._pending_failures.get(method)
        if failures:
            raise failures.pop(0)

    # -- gateway -----------------------------------------------------------

    async def get_latest_blockhash(self) -> Hash:
        self._enter("get_latest_blockhash")
        epoch = self._blockhash_requests // self.rotate_every
        self._blockhash_requests += 1
        digest = hashlib.sha256(self.seed + epoch.to_bytes(8, "big")).digest()
        return Hash(digest)

    async def get_account_info(self, address: Pubkey) -> Optional[AccountInfo]:
        self._enter("get_account_info")
        key = str(address)
        if key not in self.accounts:
            return None
        return AccountInfo(lamports=self.balances.get(key, 0), owner=str(Pubkey.default()))

    async def get_balance(self, address: Pubkey) -> int:
        self._enter("get_balance")
        return self.balances.get(str(address), 0)

    async def get_token_account_balance(self, holding_account: Pubkey) -> int:
        self._enter("get_token_account_balance")
        key = str(holding_account)
        if key not in self.token_balances:
            raise AccountNotFound(key)
        return self.token_balances[key]

    async def send_raw_transaction(self, raw: bytes) -> str:
        self._enter("send_raw_transaction")
        if self.reject_reason:
            raise SubmissionRejected("Transaction rejected by the node", detail=self.reject_reason)
        self.sent.append(bytes(raw))
        signature = str(Transaction.from_bytes(raw).signatures[0])
        logger.debug("Stub accepted transaction %s…", signature[:8])
        return signature

    async def close(self) -> None:
        self.closed = True
