"""
solgrind SDK

Build, sign and conditionally submit SOL and USDC transfers, regrinding
until a transaction signature satisfies a caller-supplied predicate.
"""
from .version import __version__
from .client import SolanaClient
from .config import Network, NetworkConfig, GrindPolicy
from .identity import Identity, create_identity, restore_identity
from .builder import (
    SignedTransaction, TransactionBuilder,
    derive_holding_account, parse_address, to_smallest_units
)
from .engine import GrindEngine, GrindResult, GrindState
from .balance import BalanceQuery
from .gateway import LedgerGateway, RpcGateway, StubGateway
from .exceptions import (
    SolGrindError, InvalidAddress, InvalidSecretKey, NetworkUnavailable,
    AccountNotFound, SubmissionRejected, SigningFailure
)

__all__ = [
    "SolanaClient",
    "Network",
    "NetworkConfig",
    "GrindPolicy",
    "Identity",
    "create_identity",
    "restore_identity",
    "SignedTransaction",
    "TransactionBuilder",
    "derive_holding_account",
    "parse_address",
    "to_smallest_units",
    "GrindEngine",
    "GrindResult",
    "GrindState",
    "BalanceQuery",
    "LedgerGateway",
    "RpcGateway",
    "StubGateway",
    "SolGrindError",
    "InvalidAddress",
    "InvalidSecretKey",
    "NetworkUnavailable",
    "AccountNotFound",
    "SubmissionRejected",
    "SigningFailure",
    "__version__",
]
