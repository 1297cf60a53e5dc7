"""
SolanaClient - Main client for the solgrind SDK.
"""
import asyncio
import logging
from decimal import Decimal
from typing import Optional

from .balance import BalanceQuery
from .builder import AddressLike, AmountLike, SignedTransaction, TransactionBuilder
from .config import DEFAULT_NETWORK, GrindPolicy, Network, NetworkConfig, NetworkLike
from .engine import GrindEngine, GrindResult, SignaturePredicate
from .gateway import LedgerGateway, get_gateway
from .identity import Identity, create_identity, restore_identity


class SolanaClient:
    """
    Client for creating, grinding and submitting Solana transfers.

    This client handles:
    1. Wallet creation and loading
    2. Building and signing SOL and USDC transfers
    3. Submitting a transfer only when its signature passes a predicate
    4. Balance lookups

    Each client owns one gateway connection; use one client per
    concurrent grind.
    """

    def __init__(
        self,
        network: NetworkLike = DEFAULT_NETWORK,
        rpc_url: Optional[str] = None,
        gateway: Optional[LedgerGateway] = None,
        policy: Optional[GrindPolicy] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the SolanaClient

        Args:
            network: 'mainnet-beta', 'testnet' or 'devnet'
            rpc_url: RPC endpoint override (see NetworkConfig.get_rpc_url)
            gateway: Pre-built gateway, e.g. a StubGateway in tests
            policy: Grind loop settings
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If the network is unknown
        """
        self.logger = logger or logging.getLogger(__name__)
        self.policy = policy or GrindPolicy()
        self._rpc_url_override = rpc_url
        self._connect(Network(network), gateway)

    def _connect(self, network: Network, gateway: Optional[LedgerGateway] = None) -> None:
        self.network = network
        self.rpc_url = NetworkConfig.get_rpc_url(network, override=self._rpc_url_override)
        self.gateway = gateway or get_gateway(self.rpc_url, NetworkConfig.get_commitment(network))
        self.builder = TransactionBuilder(self.gateway, network)
        self.engine = GrindEngine(self.builder, self.gateway, self.policy)
        self.balances = BalanceQuery(self.gateway, network)

    async def set_network(self, network: NetworkLike, gateway: Optional[LedgerGateway] = None) -> None:
        """
        Change the network, replacing the gateway connection.

        Args:
            network: 'mainnet-beta', 'testnet' or 'devnet'
            gateway: Pre-built gateway for the new network
        """
        old_gateway = self.gateway
        self._connect(Network(network), gateway)
        if old_gateway is not self.gateway:
            await old_gateway.close()
        self.logger.info(f"Network changed to {self.network.value}")

    @property
    def token_mint(self) -> str:
        """USDC mint address of the current network."""
        return self.builder.token_mint

    def get_usdc_mint(self) -> str:
        return self.token_mint

    def create_wallet(self) -> Identity:
        """Create a new random wallet."""
        return create_identity()

    def load_wallet_from_secret_key(self, secret_key: str) -> Identity:
        """
        Load an existing wallet.

        Args:
            secret_key: Base58 encoded 64-byte secret key

        Raises:
            InvalidSecretKey: If the key cannot be decoded
        """
        return restore_identity(secret_key)

    async def create_and_sign_transaction(
        self,
        wallet: Identity,
        recipient_address: AddressLike,
        lamports: int
    ) -> SignedTransaction:
        """Create and sign a SOL transfer without submitting it."""
        return await self.builder.build_native_transfer(wallet, recipient_address, lamports)

    async def create_and_sign_token_transaction(
        self,
        wallet: Identity,
        recipient_address: AddressLike,
        amount: AmountLike
    ) -> SignedTransaction:
        """
        Create and sign a USDC transfer without submitting it.

        Args:
            wallet: Sender wallet
            recipient_address: Recipient wallet address
            amount: Amount in USDC, e.g. 1.5
        """
        return await self.builder.build_token_transfer(wallet, recipient_address, amount)

    async def check_signature_and_submit(
        self,
        tx_data: SignedTransaction,
        predicate: Optional[SignaturePredicate] = None
    ) -> Optional[str]:
        """
        Submit a signed transaction if its signature passes the predicate.

        Args:
            tx_data: Transaction from one of the create_and_sign methods
            predicate: Function of the signature; without one the
                transaction is submitted unconditionally

        Returns:
            Broadcast signature, or None if the predicate declined

        Raises:
            SubmissionRejected: If the node refuses the transaction
            NetworkUnavailable: If the node cannot be reached
        """
        if predicate is None:
            return await self.engine.submit(tx_data)
        return await self.engine.submit_if_accepted(tx_data, predicate)

    async def create_until_logic_matches(
        self,
        wallet: Identity,
        recipient_address: AddressLike,
        amount: AmountLike,
        logic_function: SignaturePredicate,
        is_token: bool = False,
        max_attempts: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None
    ) -> GrindResult:
        """
        Build transactions until one's signature matches, then submit it.

        Args:
            wallet: Sender wallet
            recipient_address: Recipient wallet address
            amount: Lamports for SOL, decimal amount for USDC
            logic_function: Function of the signature returning True to submit
            is_token: Whether to send USDC instead of SOL
            max_attempts: Maximum number of attempts before giving up
            cancel_event: Event that stops the loop when set

        Returns:
            GrindResult with the last transaction and the broadcast
            signature (None when nothing matched)
        """
        return await self.engine.grind_until_accepted(
            wallet,
            recipient_address,
            amount,
            logic_function,
            is_token=is_token,
            max_attempts=max_attempts,
            cancel_event=cancel_event
        )

    async def get_balance(self, address: AddressLike) -> Decimal:
        """Get the SOL balance of an address."""
        return await self.balances.native_balance(address)

    async def get_token_balance(self, address: AddressLike) -> Decimal:
        """Get the USDC balance of an address (0 without a token account)."""
        return await self.balances.token_balance(address)

    async def close(self) -> None:
        await self.gateway.close()

    async def __aenter__(self) -> "SolanaClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
