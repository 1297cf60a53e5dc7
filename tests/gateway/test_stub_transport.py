"""
Tests for the in-memory stub gateway.
"""
import asyncio

import pytest
from solders.pubkey import Pubkey

from solgrind.exceptions import AccountNotFound, NetworkUnavailable, SubmissionRejected
from solgrind.gateway import StubGateway

ADDRESS = Pubkey.from_string("Dghnvn5Mjpgi4JyGLebQ4fubVytvjTy59xkrYCLHaFTm")


def test_blockhash_rotation():
    gateway = StubGateway(rotate_every=2)
    hashes = [asyncio.run(gateway.get_latest_blockhash()) for _ in range(4)]
    assert hashes[0] == hashes[1]
    assert hashes[1] != hashes[2]
    assert hashes[2] == hashes[3]


def test_blockhashes_are_deterministic():
    first = asyncio.run(StubGateway().get_latest_blockhash())
    second = asyncio.run(StubGateway().get_latest_blockhash())
    assert first == second


def test_invalid_rotation():
    with pytest.raises(ValueError):
        StubGateway(rotate_every=0)


def test_accounts_and_balances():
    gateway = StubGateway()
    assert asyncio.run(gateway.get_account_info(ADDRESS)) is None
    gateway.add_account(ADDRESS, lamports=10)
    assert asyncio.run(gateway.get_account_info(ADDRESS)).lamports == 10
    assert asyncio.run(gateway.get_balance(ADDRESS)) == 10


def test_token_balance_missing():
    with pytest.raises(AccountNotFound):
        asyncio.run(StubGateway().get_token_account_balance(ADDRESS))


def test_fail_next():
    gateway = StubGateway()
    gateway.fail_next("get_balance", count=2)
    for _ in range(2):
        with pytest.raises(NetworkUnavailable):
            asyncio.run(gateway.get_balance(ADDRESS))
    assert asyncio.run(gateway.get_balance(ADDRESS)) == 0
    assert gateway.calls["get_balance"] == 3


def test_reject_submissions():
    gateway = StubGateway()
    gateway.reject_submissions("expired blockhash")
    with pytest.raises(SubmissionRejected):
        asyncio.run(gateway.send_raw_transaction(b"raw"))
    assert gateway.sent == []
