"""
Transaction construction for the solgrind SDK.

Builds, signs and serializes native SOL transfers and USDC transfers.
Every build fetches a fresh recent blockhash, so two builds of the same
transfer normally produce different signatures.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_FLOOR, InvalidOperation
from typing import List, Optional, Union

import base58
from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import Message
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer
from solders.transaction import Transaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferParams as TokenTransferParams,
    create_associated_token_account,
    get_associated_token_address,
    transfer as token_transfer,
)

from .config import DEFAULT_NETWORK, NetworkConfig, NetworkLike
from .exceptions import InvalidAddress, SigningFailure
from .gateway import LedgerGateway
from .identity import Identity

logger = logging.getLogger(__name__)

AddressLike = Union[str, Pubkey]
AmountLike = Union[int, float, str, Decimal]

PUBKEY_LENGTH = 32


@dataclass(frozen=True)
class SignedTransaction:
    """
    A signed transaction ready for broadcast.

    Attributes:
        transaction: Serialized wire bytes
        signature: Base58 fee-payer signature, the value predicates inspect
        raw_transaction: The signed Transaction object
    """
    transaction: bytes
    signature: str
    raw_transaction: Transaction

    def decode(self) -> Transaction:
        """Deserialize the wire bytes back into a Transaction."""
        return Transaction.from_bytes(self.transaction)

    @property
    def fee_payer(self) -> str:
        return str(self.raw_transaction.message.account_keys[0])

    @property
    def instruction_count(self) -> int:
        return len(self.raw_transaction.message.instructions)

    @property
    def blockhash(self) -> Hash:
        return self.raw_transaction.message.recent_blockhash


def parse_address(address: AddressLike) -> Pubkey:
    """
    Parse a base58 account address.

    Args:
        address: Base58 text or an existing Pubkey

    Returns:
        Pubkey

    Raises:
        InvalidAddress: If the text is not base58 or not 32 bytes long
    """
    if isinstance(address, Pubkey):
        return address
    try:
        raw = base58.b58decode(address)
    except (ValueError, TypeError) as e:
        raise InvalidAddress(str(address), "not base58") from e
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidAddress(address, f"decodes to {len(raw)} bytes, expected {PUBKEY_LENGTH}")
    return Pubkey(raw)


def to_smallest_units(amount: AmountLike, decimals: int) -> int:
    """
    Convert a human decimal amount into integer smallest units.

    The result is floored, so dust below one smallest unit becomes 0.

    Args:
        amount: Amount in whole tokens, e.g. 1.5
        decimals: Decimal exponent of the token

    Returns:
        Integer amount in smallest units

    Raises:
        ValueError: If the amount is not a finite non-negative number
    """
    try:
        # str() keeps floats like 1.005 from turning into 1.00499999...
        value = Decimal(str(amount)) if isinstance(amount, float) else Decimal(amount)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite() or value < 0:
        raise ValueError(f"Amount must be a finite non-negative number, got {amount!r}")
    scaled = value.scaleb(decimals).to_integral_value(rounding=ROUND_FLOOR)
    return int(scaled)


def derive_holding_account(mint: AddressLike, owner: AddressLike) -> Pubkey:
    """Derive the associated token account of ``owner`` for ``mint``."""
    return get_associated_token_address(owner=parse_address(owner), mint=parse_address(mint))


class TransactionBuilder:
    """
    Builds signed transfer transactions.

    Args:
        gateway: Gateway used for blockhashes and account lookups
        network: Network whose token mint is used for token transfers
    """

    def __init__(self, gateway: LedgerGateway, network: NetworkLike = DEFAULT_NETWORK):
        self.gateway = gateway
        self.network = network
        self.token_mint = NetworkConfig.get_token_mint(network)
        self.token_decimals = NetworkConfig.get_token_decimals(network)

    async def build_native_transfer(
        self,
        identity: Identity,
        recipient: AddressLike,
        lamports: int
    ) -> SignedTransaction:
        """
        Create and sign a SOL transfer without submitting it.

        Args:
            identity: Sender, also the fee payer
            recipient: Recipient address
            lamports: Amount in lamports

        Returns:
            SignedTransaction

        Raises:
            InvalidAddress: If the recipient is malformed
            ValueError: If lamports is not a non-negative integer
            NetworkUnavailable: If the blockhash cannot be fetched
            SigningFailure: If signing fails
        """
        recipient_pubkey = parse_address(recipient)
        # bool is an int subclass but never a meaningful amount
        if not isinstance(lamports, int) or isinstance(lamports, bool):
            raise ValueError(f"lamports must be an integer, got {lamports!r}")
        if lamports < 0:
            raise ValueError(f"lamports must be non-negative, got {lamports}")

        instruction = transfer(TransferParams(
            from_pubkey=identity.pubkey,
            to_pubkey=recipient_pubkey,
            lamports=lamports
        ))
        return await self._sign(identity, [instruction])

    async def build_token_transfer(
        self,
        identity: Identity,
        recipient: AddressLike,
        amount: AmountLike,
        mint: Optional[AddressLike] = None
    ) -> SignedTransaction:
        """
        Create and sign a USDC transfer without submitting it.

        If the recipient has no associated token account yet, an
        instruction creating it (paid by the sender) is placed first.

        Args:
            identity: Sender, also the fee payer
            recipient: Recipient wallet address (not its token account)
            amount: Amount in whole tokens, e.g. 1.5 for 1.5 USDC
            mint: Token mint override (defaults to the network's USDC)

        Returns:
            SignedTransaction

        Raises:
            InvalidAddress: If the recipient is malformed
            NetworkUnavailable: If the account check or blockhash fetch fails
            SigningFailure: If signing fails
        """
        recipient_pubkey = parse_address(recipient)
        mint_pubkey = parse_address(mint or self.token_mint)
        token_amount = to_smallest_units(amount, self.token_decimals)

        sender_account = derive_holding_account(mint_pubkey, identity.pubkey)
        recipient_account = derive_holding_account(mint_pubkey, recipient_pubkey)

        instructions: List[Instruction] = []
        if await self.gateway.get_account_info(recipient_account) is None:
            logger.debug("Recipient token account %s missing, creating it", recipient_account)
            instructions.append(create_associated_token_account(
                payer=identity.pubkey,
                owner=recipient_pubkey,
                mint=mint_pubkey
            ))

        instructions.append(token_transfer(TokenTransferParams(
            program_id=TOKEN_PROGRAM_ID,
            source=sender_account,
            dest=recipient_account,
            owner=identity.pubkey,
            amount=token_amount
        )))
        return await self._sign(identity, instructions)

    async def _sign(self, identity: Identity, instructions: List[Instruction]) -> SignedTransaction:
        blockhash = await self.gateway.get_latest_blockhash()
        message = Message.new_with_blockhash(instructions, identity.pubkey, blockhash)

        try:
            tx = Transaction([identity.keypair], message, blockhash)
            serialized = bytes(tx)
        except Exception as e:
            logger.error(f"Transaction signing failed: {e}")
            raise SigningFailure(f"Failed to sign transaction: {e}") from e

        signed = SignedTransaction(
            transaction=serialized,
            signature=str(tx.signatures[0]),
            raw_transaction=tx
        )
        logger.debug("Signed %d-instruction transaction %s…",
                     len(instructions), signed.signature[:8])
        return signed
