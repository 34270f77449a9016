"""
Pytest configuration file for pumpfun_launcher tests
"""

import json
import logging
import os
import sys
from typing import List, Optional

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock
from solana.exceptions import SolanaRpcException
from solana.rpc.providers.async_http import AsyncHTTPProvider
from solders.hash import Hash
from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

# Add the parent directory to sys.path to allow imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pumpfun_launcher.metadata import DEFAULT_IPFS_URL
from pumpfun_launcher.transaction import DEFAULT_TRADE_URL

IMAGE_URL = "https://images.test/logo.png"
METADATA_URI = "https://ipfs.io/ipfs/QmTestMetadataHash"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
PUMP_PROGRAM_ID = Pubkey.from_string("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")


def build_unsigned_create_tx(wallet: Pubkey, mint: Pubkey, blockhash: Optional[Hash] = None) -> bytes:
    """Serialize an unsigned v0 transaction requiring the wallet and mint signatures"""
    instruction = Instruction(
        PUMP_PROGRAM_ID,
        b"\x18\x1e\xc8\x28\x05\x1c\x07\x77",
        [
            AccountMeta(mint, is_signer=True, is_writable=True),
            AccountMeta(wallet, is_signer=True, is_writable=True),
        ],
    )
    message = MessageV0.try_compile(wallet, [instruction], [], blockhash or Hash.default())
    tx = VersionedTransaction.populate(message, [Signature.default()] * message.header.num_required_signatures)
    return bytes(tx)


class FakeEndpoints:
    """Routes requests to the image host, the metadata host and the transaction builder"""

    def __init__(self, metadata_status: int = 200, build_status: int = 200,
                 build_body: str = "", image_status: int = 200,
                 metadata_body: Optional[dict] = None):
        self.metadata_status = metadata_status
        self.build_status = build_status
        self.build_body = build_body
        self.image_status = image_status
        self.metadata_body = metadata_body
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)

        if url == IMAGE_URL:
            return httpx.Response(self.image_status, content=PNG_BYTES)

        if url == DEFAULT_IPFS_URL:
            if self.metadata_status != 200:
                return httpx.Response(self.metadata_status)
            if self.metadata_body is not None:
                return httpx.Response(200, json=self.metadata_body)
            body = request.content
            return httpx.Response(200, json={
                "metadata": {
                    "name": _form_value(body, "name"),
                    "symbol": _form_value(body, "symbol"),
                    "description": _form_value(body, "description"),
                    "image": "https://ipfs.io/ipfs/QmTestImageHash",
                    "showName": True,
                },
                "metadataUri": METADATA_URI,
            })

        if url == DEFAULT_TRADE_URL:
            if self.build_status != 200:
                return httpx.Response(self.build_status, text=self.build_body)
            payload = json.loads(request.content)
            return httpx.Response(200, content=build_unsigned_create_tx(
                Pubkey.from_string(payload["publicKey"]),
                Pubkey.from_string(payload["mint"]),
                Hash.new_unique(),
            ))

        return httpx.Response(404)

    def calls_to(self, url: str) -> List[httpx.Request]:
        return [r for r in self.requests if str(r.url) == url]


def _form_value(body: bytes, name: str) -> str:
    marker = f'name="{name}"\r\n\r\n'.encode()
    start = body.index(marker) + len(marker)
    return body[start:body.index(b"\r\n", start)].decode()


def make_client(endpoints: FakeEndpoints) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(endpoints))


def rpc_transport_error(message: str = "Connection refused") -> SolanaRpcException:
    """Build the exception solana-py raises when the RPC endpoint is unreachable"""
    cause = httpx.ConnectError(message)
    error = SolanaRpcException(cause, AsyncHTTPProvider.make_request, None, object())
    error.__cause__ = cause
    return error


@pytest.fixture
def wallet_keypair():
    return Keypair()


@pytest.fixture
def mint_keypair():
    return Keypair()


@pytest.fixture
def endpoints():
    return FakeEndpoints()


@pytest.fixture
def fresh_blockhash():
    return Hash.new_unique()


@pytest.fixture
def mock_connection(fresh_blockhash):
    """Create a mock RPC connection that confirms without error"""
    connection = MagicMock()
    connection.get_latest_blockhash = AsyncMock(return_value=MagicMock(
        value=MagicMock(blockhash=fresh_blockhash, last_valid_block_height=250_000_150)
    ))
    connection.send_transaction = AsyncMock(return_value=MagicMock(value=Signature.new_unique()))
    connection.confirm_transaction = AsyncMock(return_value=MagicMock(value=[MagicMock(err=None)]))
    return connection


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo the handlers and propagation setup_logging installs on the package logger"""
    package_logger = logging.getLogger("pumpfun_launcher")
    handlers = package_logger.handlers[:]
    level, propagate = package_logger.level, package_logger.propagate
    yield
    for handler in package_logger.handlers[:]:
        if handler not in handlers:
            package_logger.removeHandler(handler)
            handler.close()
    package_logger.setLevel(level)
    package_logger.propagate = propagate
