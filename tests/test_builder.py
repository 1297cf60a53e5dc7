"""
Tests for transaction construction.
"""
import asyncio
from decimal import Decimal
from unittest.mock import patch

import base58
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey
import pytest
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from solders.transaction import Transaction
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID

from solgrind.builder import (
    SignedTransaction, TransactionBuilder, derive_holding_account,
    parse_address, to_smallest_units
)
from solgrind.config import Network, NetworkConfig
from solgrind.exceptions import InvalidAddress, NetworkUnavailable, SigningFailure
from solgrind.gateway import StubGateway


def _program_ids(signed: SignedTransaction):
    message = signed.raw_transaction.message
    return [message.account_keys[ix.program_id_index] for ix in message.instructions]


class TestAmountConversion:

    @pytest.mark.parametrize("amount, expected", [
        (1.5, 1_500_000),
        (0.0000001, 0),
        (10, 10_000_000),
        ("2.9999999", 2_999_999),
        (Decimal("0.000001"), 1),
        (1.005, 1_005_000),
        (0, 0),
    ])
    def test_floors_to_smallest_units(self, amount, expected):
        assert to_smallest_units(amount, 6) == expected

    @pytest.mark.parametrize("amount", [-1, "abc", float("nan"), float("inf"), None])
    def test_rejects_invalid_amounts(self, amount):
        with pytest.raises(ValueError):
            to_smallest_units(amount, 6)


class TestAddresses:

    def test_parse_valid_address(self, recipient):
        assert parse_address(recipient) == Pubkey.from_string(recipient)

    def test_parse_passes_pubkey_through(self, sender):
        pubkey = sender.pubkey
        assert parse_address(pubkey) is pubkey

    @pytest.mark.parametrize("address", [
        "",
        "0OIl",
        base58.b58encode(b"\x02" * 31).decode(),
        base58.b58encode(b"\x02" * 33).decode(),
    ])
    def test_parse_invalid_address(self, address):
        with pytest.raises(InvalidAddress):
            parse_address(address)

    def test_holding_account_is_deterministic(self, recipient):
        mint = NetworkConfig.get_token_mint(Network.DEVNET)
        first = derive_holding_account(mint, recipient)
        second = derive_holding_account(mint, recipient)
        assert first == second
        assert first != Pubkey.from_string(recipient)

    def test_holding_account_depends_on_mint(self, recipient):
        devnet = derive_holding_account(NetworkConfig.get_token_mint("devnet"), recipient)
        mainnet = derive_holding_account(NetworkConfig.get_token_mint("mainnet-beta"), recipient)
        assert devnet != mainnet


class TestNativeTransfer:

    def test_build_native_transfer(self, builder, sender, recipient):
        """Signed SOL transfer decodes back with the sender as fee payer"""
        signed = asyncio.run(builder.build_native_transfer(sender, recipient, 100_000))

        assert len(base58.b58decode(signed.signature)) == 64
        decoded = Transaction.from_bytes(signed.transaction)
        assert decoded.message.account_keys[0] == sender.pubkey
        assert signed.fee_payer == sender.public_key
        assert signed.instruction_count == 1
        assert _program_ids(signed) == [SYSTEM_PROGRAM_ID]
        assert str(decoded.signatures[0]) == signed.signature
        # Signature verifies against the serialized message
        Ed25519PublicKey.from_public_bytes(bytes(sender.pubkey)).verify(
            bytes(decoded.signatures[0]), bytes(decoded.message)
        )

    def test_fresh_blockhash_changes_signature(self, builder, sender, recipient):
        first = asyncio.run(builder.build_native_transfer(sender, recipient, 100_000))
        second = asyncio.run(builder.build_native_transfer(sender, recipient, 100_000))
        assert first.blockhash != second.blockhash
        assert first.signature != second.signature

    def test_same_blockhash_same_signature(self, sender, recipient):
        gateway = StubGateway(rotate_every=2)
        builder = TransactionBuilder(gateway, Network.DEVNET)
        first = asyncio.run(builder.build_native_transfer(sender, recipient, 100_000))
        second = asyncio.run(builder.build_native_transfer(sender, recipient, 100_000))
        assert first.signature == second.signature

    def test_invalid_recipient(self, builder, sender, stub_gateway):
        with pytest.raises(InvalidAddress):
            asyncio.run(builder.build_native_transfer(sender, "nope", 1))
        # Validation happens before any network call
        assert stub_gateway.calls["get_latest_blockhash"] == 0

    def test_negative_lamports(self, builder, sender, recipient):
        with pytest.raises(ValueError):
            asyncio.run(builder.build_native_transfer(sender, recipient, -1))

    @pytest.mark.parametrize("lamports", [1.9, "1000", Decimal("5"), None, True])
    def test_non_integer_lamports(self, builder, sender, recipient, stub_gateway, lamports):
        """Native amounts are integer lamports and are never converted"""
        with pytest.raises(ValueError, match="integer"):
            asyncio.run(builder.build_native_transfer(sender, recipient, lamports))
        assert stub_gateway.calls["get_latest_blockhash"] == 0

    def test_network_failure_propagates(self, builder, sender, recipient, stub_gateway):
        stub_gateway.fail_next("get_latest_blockhash")
        with pytest.raises(NetworkUnavailable):
            asyncio.run(builder.build_native_transfer(sender, recipient, 1))

    def test_signing_failure_wrapped(self, builder, sender, recipient):
        with patch("solgrind.builder.Transaction", side_effect=RuntimeError("boom")):
            with pytest.raises(SigningFailure, match="boom"):
                asyncio.run(builder.build_native_transfer(sender, recipient, 1))


class TestTokenTransfer:

    def test_creates_missing_holding_account(self, builder, sender, recipient):
        """Recipient without a token account gets create + transfer"""
        signed = asyncio.run(builder.build_token_transfer(sender, recipient, 1.5))

        assert signed.instruction_count == 2
        assert _program_ids(signed) == [ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID]
        assert signed.fee_payer == sender.public_key

    def test_existing_holding_account(self, builder, sender, recipient, stub_gateway):
        """Recipient with a token account gets the transfer only"""
        holding = derive_holding_account(builder.token_mint, recipient)
        stub_gateway.set_token_balance(holding, 0)

        signed = asyncio.run(builder.build_token_transfer(sender, recipient, 1.5))

        assert signed.instruction_count == 1
        assert _program_ids(signed) == [TOKEN_PROGRAM_ID]

    def test_transfer_accounts_and_amount(self, builder, sender, recipient, stub_gateway):
        holding = derive_holding_account(builder.token_mint, recipient)
        stub_gateway.set_token_balance(holding, 0)

        signed = asyncio.run(builder.build_token_transfer(sender, recipient, 1.5))

        message = signed.raw_transaction.message
        ix = message.instructions[0]
        accounts = [message.account_keys[i] for i in ix.accounts]
        assert accounts == [
            derive_holding_account(builder.token_mint, sender.pubkey),
            holding,
            sender.pubkey,
        ]
        # SPL Transfer: tag 3 followed by the u64 amount
        assert bytes(ix.data) == bytes([3]) + (1_500_000).to_bytes(8, "little")

    def test_checks_recipient_holding_account(self, builder, sender, recipient, stub_gateway):
        asyncio.run(builder.build_token_transfer(sender, recipient, 1))
        assert stub_gateway.calls["get_account_info"] == 1
        assert stub_gateway.calls["get_latest_blockhash"] == 1

    def test_mint_follows_network(self, stub_gateway):
        builder = TransactionBuilder(stub_gateway, Network.MAINNET_BETA)
        assert builder.token_mint == "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

    def test_account_check_failure_propagates(self, builder, sender, recipient, stub_gateway):
        stub_gateway.fail_next("get_account_info")
        with pytest.raises(NetworkUnavailable):
            asyncio.run(builder.build_token_transfer(sender, recipient, 1))
