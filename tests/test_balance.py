"""
Tests for balance lookups.
"""
import asyncio
from decimal import Decimal

import pytest

from solgrind.balance import BalanceQuery
from solgrind.builder import derive_holding_account
from solgrind.config import Network
from solgrind.exceptions import InvalidAddress, NetworkUnavailable


@pytest.fixture
def balances(stub_gateway):
    return BalanceQuery(stub_gateway, Network.DEVNET)


def test_native_balance_in_sol(balances, stub_gateway, recipient):
    stub_gateway.add_account(recipient, lamports=1_500_000_000)
    assert asyncio.run(balances.native_balance(recipient)) == Decimal("1.5")


def test_native_balance_unknown_address(balances, recipient):
    assert asyncio.run(balances.native_balance(recipient)) == 0


def test_native_balance_invalid_address(balances):
    with pytest.raises(InvalidAddress):
        asyncio.run(balances.native_balance("???"))


def test_token_balance(balances, stub_gateway, recipient):
    holding = derive_holding_account(balances.token_mint, recipient)
    stub_gateway.set_token_balance(holding, 2_750_000)
    assert asyncio.run(balances.token_balance(recipient)) == Decimal("2.75")


def test_token_balance_without_holding_account(balances, recipient):
    """No holding account reads as zero, not an error"""
    result = asyncio.run(balances.token_balance(recipient))
    assert result == 0.0


def test_token_balance_network_error_propagates(balances, stub_gateway, recipient):
    stub_gateway.fail_next("get_token_account_balance")
    with pytest.raises(NetworkUnavailable):
        asyncio.run(balances.token_balance(recipient))
