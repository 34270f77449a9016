"""
Tests for signing, broadcast and confirmation
"""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import Message, to_bytes_versioned
from solders.rpc.errors import SendTransactionPreflightFailureMessage
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from pumpfun_launcher.exceptions import ConfirmationTimeout, OnChainRejection, SubmissionFailure
from pumpfun_launcher.submitter import (
    SEND_MAX_RETRIES,
    attach_blockhash,
    required_signers,
    sign_and_send,
    sign_transaction,
    transport_error_text,
)

from conftest import PUMP_PROGRAM_ID, build_unsigned_create_tx, rpc_transport_error


@pytest.fixture
def stale_blockhash():
    return Hash.new_unique()


@pytest.fixture
def raw_tx(wallet_keypair, mint_keypair, stale_blockhash):
    return build_unsigned_create_tx(wallet_keypair.pubkey(), mint_keypair.pubkey(), stale_blockhash)


def _sent_transaction(connection) -> VersionedTransaction:
    return connection.send_transaction.call_args.args[0]


def _assert_fully_signed(tx: VersionedTransaction):
    message_bytes = to_bytes_versioned(tx.message)
    for signature, signer in zip(tx.signatures, required_signers(tx)):
        assert signature != Signature.default()
        assert signature.verify(signer, message_bytes)


def test_attach_blockhash_overwrites_existing(raw_tx, stale_blockhash, fresh_blockhash):
    tx = VersionedTransaction.from_bytes(raw_tx)
    assert tx.message.recent_blockhash == stale_blockhash

    updated = attach_blockhash(tx, fresh_blockhash)
    assert updated.message.recent_blockhash == fresh_blockhash
    assert list(updated.message.account_keys) == list(tx.message.account_keys)
    assert len(updated.signatures) == 2


def test_sign_transaction_order_independent(raw_tx, wallet_keypair, mint_keypair):
    tx = VersionedTransaction.from_bytes(raw_tx)
    signed = sign_transaction(tx, [mint_keypair, wallet_keypair])
    _assert_fully_signed(signed)
    # Fee payer occupies the first slot
    assert required_signers(signed)[0] == wallet_keypair.pubkey()


def test_sign_transaction_rejects_wrong_signer(raw_tx, wallet_keypair):
    tx = VersionedTransaction.from_bytes(raw_tx)
    with pytest.raises(ValueError, match="Signer mismatch"):
        sign_transaction(tx, [Keypair(), wallet_keypair])


@pytest.mark.asyncio
async def test_sign_and_send_success(raw_tx, wallet_keypair, mint_keypair, mock_connection, fresh_blockhash):
    expected = mock_connection.send_transaction.return_value.value

    signature = await sign_and_send(raw_tx, mint_keypair, wallet_keypair, mock_connection)

    assert signature == expected
    mock_connection.get_latest_blockhash.assert_awaited_once_with(commitment=Confirmed)

    tx = _sent_transaction(mock_connection)
    assert tx.message.recent_blockhash == fresh_blockhash
    _assert_fully_signed(tx)

    opts = mock_connection.send_transaction.call_args.kwargs["opts"]
    assert opts.skip_preflight is False
    assert opts.preflight_commitment == Confirmed
    assert opts.max_retries == SEND_MAX_RETRIES == 5

    mock_connection.confirm_transaction.assert_awaited_once_with(
        expected, commitment=Confirmed, last_valid_block_height=250_000_150
    )


@pytest.mark.asyncio
async def test_sign_and_send_accepts_legacy_message(wallet_keypair, mint_keypair, mock_connection, fresh_blockhash):
    instruction = Instruction(
        PUMP_PROGRAM_ID,
        b"\x01",
        [
            AccountMeta(mint_keypair.pubkey(), is_signer=True, is_writable=True),
            AccountMeta(wallet_keypair.pubkey(), is_signer=True, is_writable=True),
        ],
    )
    message = Message.new_with_blockhash([instruction], wallet_keypair.pubkey(), Hash.new_unique())
    raw = bytes(VersionedTransaction.populate(message, [Signature.default()] * 2))

    await sign_and_send(raw, mint_keypair, wallet_keypair, mock_connection)

    tx = _sent_transaction(mock_connection)
    assert isinstance(tx.message, Message)
    assert tx.message.recent_blockhash == fresh_blockhash
    _assert_fully_signed(tx)


@pytest.mark.asyncio
async def test_sign_and_send_on_chain_rejection(raw_tx, wallet_keypair, mint_keypair, mock_connection):
    mock_connection.confirm_transaction.return_value = MagicMock(value=[MagicMock(err="X")])
    submitted = mock_connection.send_transaction.return_value.value

    with pytest.raises(OnChainRejection) as excinfo:
        await sign_and_send(raw_tx, mint_keypair, wallet_keypair, mock_connection)

    assert excinfo.value.err == "X"
    assert "X" in str(excinfo.value)
    assert excinfo.value.signature == str(submitted)


@pytest.mark.asyncio
async def test_sign_and_send_preflight_failure_keeps_logs(raw_tx, wallet_keypair, mint_keypair, mock_connection):
    preflight = MagicMock(spec=SendTransactionPreflightFailureMessage)
    preflight.data.logs = [
        "Program 6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P invoke [1]",
        "Program log: Error: insufficient lamports",
    ]
    mock_connection.send_transaction.side_effect = RPCException(preflight)

    with pytest.raises(SubmissionFailure) as excinfo:
        await sign_and_send(raw_tx, mint_keypair, wallet_keypair, mock_connection)

    assert excinfo.value.logs == preflight.data.logs
    assert isinstance(excinfo.value.__cause__, RPCException)
    mock_connection.confirm_transaction.assert_not_awaited()


@pytest.mark.asyncio
async def test_sign_and_send_rpc_error_without_logs(raw_tx, wallet_keypair, mint_keypair, mock_connection):
    mock_connection.send_transaction.side_effect = RPCException("Blockhash not found")

    with pytest.raises(SubmissionFailure) as excinfo:
        await sign_and_send(raw_tx, mint_keypair, wallet_keypair, mock_connection)

    assert excinfo.value.logs is None
    assert "Blockhash not found" in str(excinfo.value)


@pytest.mark.asyncio
async def test_sign_and_send_transport_error(raw_tx, wallet_keypair, mint_keypair, mock_connection):
    mock_connection.send_transaction.side_effect = rpc_transport_error("Connection refused")

    with pytest.raises(SubmissionFailure) as excinfo:
        await sign_and_send(raw_tx, mint_keypair, wallet_keypair, mock_connection)

    assert isinstance(excinfo.value.__cause__, SolanaRpcException)
    assert "Connection refused" in str(excinfo.value)
    assert excinfo.value.logs is None


@pytest.mark.asyncio
async def test_sign_and_send_unreachable_rpc_endpoint(raw_tx, wallet_keypair, mint_keypair, mock_connection):
    connection = AsyncClient("http://127.0.0.1:1")
    connection.get_latest_blockhash = mock_connection.get_latest_blockhash
    try:
        with pytest.raises(SubmissionFailure) as excinfo:
            await sign_and_send(raw_tx, mint_keypair, wallet_keypair, connection)
    finally:
        await connection.close()

    assert isinstance(excinfo.value.__cause__, SolanaRpcException)
    assert isinstance(excinfo.value.__cause__.__cause__, httpx.HTTPError)
    assert "endpoint request" in str(excinfo.value)


@pytest.mark.asyncio
async def test_sign_and_send_httpx_error_from_custom_client(raw_tx, wallet_keypair, mint_keypair, mock_connection):
    mock_connection.send_transaction.side_effect = httpx.ConnectError("Connection refused")

    with pytest.raises(SubmissionFailure) as excinfo:
        await sign_and_send(raw_tx, mint_keypair, wallet_keypair, mock_connection)

    assert "Connection refused" in str(excinfo.value)


def test_transport_error_text():
    assert transport_error_text(rpc_transport_error("Connection refused")).endswith(": Connection refused")
    assert "endpoint request" in transport_error_text(rpc_transport_error())
    assert transport_error_text(httpx.ReadTimeout("timed out")) == "timed out"


@pytest.mark.asyncio
async def test_sign_and_send_blockhash_expired(raw_tx, wallet_keypair, mint_keypair, mock_connection):
    mock_connection.confirm_transaction.side_effect = UnconfirmedTxError("Unable to confirm transaction")

    with pytest.raises(ConfirmationTimeout) as excinfo:
        await sign_and_send(raw_tx, mint_keypair, wallet_keypair, mock_connection)

    assert excinfo.value.signature == str(mock_connection.send_transaction.return_value.value)


@pytest.mark.asyncio
async def test_sign_and_send_never_broadcasts_with_wrong_mint(raw_tx, wallet_keypair, mock_connection):
    with pytest.raises(ValueError):
        await sign_and_send(raw_tx, Keypair(), wallet_keypair, mock_connection)

    mock_connection.send_transaction.assert_not_awaited()


@pytest.mark.asyncio
async def test_sign_and_send_blockhash_fetch_failure_propagates(raw_tx, wallet_keypair, mint_keypair):
    connection = MagicMock()
    connection.get_latest_blockhash = AsyncMock(side_effect=httpx.ReadTimeout("timed out"))
    connection.send_transaction = AsyncMock()

    with pytest.raises(httpx.ReadTimeout):
        await sign_and_send(raw_tx, mint_keypair, wallet_keypair, connection)

    connection.send_transaction.assert_not_awaited()
