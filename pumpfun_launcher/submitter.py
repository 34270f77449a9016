"""
Signing, broadcast and confirmation of builder-produced transactions.

A transaction moves through ``Unsigned -> BlockhashAttached -> Signed ->
Submitted -> Confirmed | RejectedOnChain``. The blockhash is always fetched
right before signing and replaces whatever the remote builder embedded, and
nothing is broadcast unless every required signer slot is filled by the mint
and wallet keypairs.
"""

import logging
from typing import List, Optional, Sequence, Union

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import RPCException, UnconfirmedTxError
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.rpc.errors import SendTransactionPreflightFailureMessage
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from .exceptions import ConfirmationTimeout, OnChainRejection, SubmissionFailure
from .metrics import track_launch_stage

logger = logging.getLogger(__name__)

SEND_MAX_RETRIES = 5

SEND_OPTIONS = TxOpts(
    skip_confirmation=True,
    skip_preflight=False,
    preflight_commitment=Confirmed,
    max_retries=SEND_MAX_RETRIES,
)


def attach_blockhash(tx: VersionedTransaction, blockhash: Hash) -> VersionedTransaction:
    """Return an unsigned copy of ``tx`` whose message carries ``blockhash``"""
    message = tx.message
    if isinstance(message, MessageV0):
        fresh = MessageV0(
            message.header,
            message.account_keys,
            blockhash,
            message.instructions,
            message.address_table_lookups,
        )
    else:
        header = message.header
        fresh = Message.new_with_compiled_instructions(
            header.num_required_signatures,
            header.num_readonly_signed_accounts,
            header.num_readonly_unsigned_accounts,
            message.account_keys,
            blockhash,
            message.instructions,
        )
    return VersionedTransaction.populate(fresh, [Signature.default()] * len(tx.signatures))


def required_signers(tx: VersionedTransaction) -> list:
    message = tx.message
    return list(message.account_keys[:message.header.num_required_signatures])


def sign_transaction(tx: VersionedTransaction, signers: Sequence[Keypair]) -> VersionedTransaction:
    """
    Sign ``tx`` with exactly the keypairs its message requires

    Signature slots follow the message's signer order, not the order of
    ``signers``.

    Raises:
        ValueError: If the keypairs do not match the required signers
    """
    expected = required_signers(tx)
    provided = [kp.pubkey() for kp in signers]
    if len(provided) != len(expected) or set(provided) != set(expected):
        raise ValueError(
            f"Signer mismatch: transaction requires {[str(k) for k in expected]}, "
            f"got {[str(k) for k in provided]}"
        )
    return VersionedTransaction(tx.message, list(signers))


def _preflight_logs(exc: RPCException) -> Optional[List[str]]:
    payload = exc.args[0] if exc.args else None
    if isinstance(payload, SendTransactionPreflightFailureMessage):
        return payload.data.logs
    return None


def transport_error_text(exc: Exception) -> str:
    """
    Readable text for an RPC transport failure

    solana-py's HTTP provider wraps httpx errors in ``SolanaRpcException``,
    which carries no message args; its text lives in ``error_msg`` and the
    underlying httpx error is chained as ``__cause__``.
    """
    if isinstance(exc, SolanaRpcException):
        cause = exc.__cause__
        return f"{exc.error_msg}: {cause}" if cause else exc.error_msg
    return str(exc)


@track_launch_stage("sign_and_send")
async def sign_and_send(
    raw_transaction: Union[bytes, VersionedTransaction],
    mint_keypair: Keypair,
    wallet_keypair: Keypair,
    connection: AsyncClient,
) -> Signature:
    """
    Attach a fresh blockhash, sign with the mint and wallet keypairs, broadcast and confirm

    Args:
        raw_transaction: Serialized (or deserialized) unsigned transaction
        mint_keypair: Keypair of the token being created
        wallet_keypair: Keypair of the paying wallet
        connection: Solana RPC client

    Returns:
        Signature: Signature of the confirmed transaction

    Raises:
        SubmissionFailure: If preflight or broadcast fails
        OnChainRejection: If the confirmed transaction carries an execution error
        ConfirmationTimeout: If the blockhash expires before confirmation
    """
    if isinstance(raw_transaction, VersionedTransaction):
        tx = raw_transaction
    else:
        tx = VersionedTransaction.from_bytes(raw_transaction)

    latest = await connection.get_latest_blockhash(commitment=Confirmed)
    blockhash = latest.value.blockhash
    last_valid_block_height = latest.value.last_valid_block_height
    logger.debug(f"Using blockhash {blockhash} (valid until block height {last_valid_block_height})")

    tx = attach_blockhash(tx, blockhash)
    tx = sign_transaction(tx, [mint_keypair, wallet_keypair])

    try:
        send_response = await connection.send_transaction(tx, opts=SEND_OPTIONS)
    except RPCException as e:
        logs = _preflight_logs(e)
        logger.error(f"Transaction send error: {e}")
        if logs:
            logger.error("Transaction logs:\n" + "\n".join(logs))
        raise SubmissionFailure(f"Transaction send error: {e}", logs=logs) from e
    except (SolanaRpcException, httpx.HTTPError) as e:
        detail = transport_error_text(e)
        logger.error(f"Transaction send error: {detail}")
        raise SubmissionFailure(f"Transaction send error: {detail}") from e

    signature = send_response.value
    logger.info(f"Transaction submitted: {signature}")

    try:
        confirmation = await connection.confirm_transaction(
            signature,
            commitment=Confirmed,
            last_valid_block_height=last_valid_block_height,
        )
    except UnconfirmedTxError as e:
        logger.error(f"Transaction {signature} expired before confirmation: {e}")
        raise ConfirmationTimeout(str(signature), str(e)) from e

    status = confirmation.value[0] if confirmation.value else None
    if status is None:
        raise ConfirmationTimeout(str(signature))
    if status.err:
        logger.error(f"Transaction {signature} failed on-chain: {status.err}")
        raise OnChainRejection(status.err, str(signature))

    logger.info(f"Transaction confirmed: {signature}")
    return signature
