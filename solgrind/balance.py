"""
Read-only balance lookups, returned in whole units.
"""
import logging
from decimal import Decimal
from typing import Optional

from .builder import AddressLike, derive_holding_account, parse_address
from .config import DEFAULT_NETWORK, NATIVE_DECIMALS, NetworkConfig, NetworkLike
from .exceptions import AccountNotFound
from .gateway import LedgerGateway

logger = logging.getLogger(__name__)


class BalanceQuery:
    """
    SOL and USDC balance lookups.

    Args:
        gateway: Gateway used for the lookups
        network: Network whose USDC mint is queried
    """

    def __init__(self, gateway: LedgerGateway, network: NetworkLike = DEFAULT_NETWORK):
        self.gateway = gateway
        self.token_mint = NetworkConfig.get_token_mint(network)
        self.token_decimals = NetworkConfig.get_token_decimals(network)

    async def native_balance(self, address: AddressLike) -> Decimal:
        """
        Get the SOL balance of an address.

        Raises:
            InvalidAddress: If the address is malformed
            NetworkUnavailable: If the node cannot be reached
        """
        lamports = await self.gateway.get_balance(parse_address(address))
        return Decimal(lamports).scaleb(-NATIVE_DECIMALS)

    async def token_balance(self, address: AddressLike, mint: Optional[AddressLike] = None) -> Decimal:
        """
        Get the USDC balance of a wallet address.

        A wallet that never received the token has no holding account;
        that reads as a zero balance rather than an error.

        Args:
            address: Wallet address (not its token account)
            mint: Token mint override (defaults to the network's USDC)

        Raises:
            InvalidAddress: If the address is malformed
            NetworkUnavailable: If the node cannot be reached
        """
        holding_account = derive_holding_account(mint or self.token_mint, address)
        try:
            amount = await self.gateway.get_token_account_balance(holding_account)
        except AccountNotFound:
            logger.debug("No token account for %s, balance is 0", str(address)[:6])
            return Decimal(0)
        return Decimal(amount).scaleb(-self.token_decimals)
