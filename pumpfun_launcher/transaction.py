"""
Remote construction of the unsigned token-create transaction via PumpPortal
"""

import logging
from typing import Any, Dict, Optional

import httpx
from solders.pubkey import Pubkey

from .exceptions import BuildFailure
from .metrics import track_launch_stage
from .models import LaunchOptions, MetadataResponse

logger = logging.getLogger(__name__)

DEFAULT_TRADE_URL = "https://pumpportal.fun/api/trade-local"
POOL = "pump"


def build_create_payload(
    wallet_public_key: Pubkey,
    mint_public_key: Pubkey,
    metadata_response: MetadataResponse,
    options: Optional[LaunchOptions] = None,
) -> Dict[str, Any]:
    """
    Build the JSON body of a create request

    Token name and symbol are taken from the pinned metadata rather than
    re-specified, so the on-chain token always matches its metadata URI.
    """
    options = options or LaunchOptions()
    return {
        "publicKey": str(wallet_public_key),
        "action": "create",
        "tokenMetadata": {
            "name": metadata_response.name,
            "symbol": metadata_response.symbol,
            "uri": metadata_response.metadata_uri,
        },
        "mint": str(mint_public_key),
        # API expects the string "true"
        "denominatedInSol": "true",
        "amount": options.amount,
        "slippage": options.slippage,
        "priorityFee": options.fee,
        "pool": POOL,
    }


@track_launch_stage("build_transaction")
async def create_token_transaction(
    http: httpx.AsyncClient,
    wallet_public_key: Pubkey,
    mint_public_key: Pubkey,
    metadata_response: MetadataResponse,
    options: Optional[LaunchOptions] = None,
    trade_url: str = DEFAULT_TRADE_URL,
) -> bytes:
    """
    Request a serialized, unsigned create transaction

    Returns:
        bytes: Raw transaction as returned by the builder

    Raises:
        BuildFailure: If the builder returns a non-success status
    """
    payload = build_create_payload(wallet_public_key, mint_public_key, metadata_response, options)
    logger.debug(f"Requesting create transaction for mint {payload['mint']}")

    response = await http.post(
        trade_url,
        json=payload,
        headers={"Content-Type": "application/json"},
    )

    if not response.is_success:
        logger.error(f"Transaction builder returned {response.status_code}: {response.text}")
        raise BuildFailure(response.status_code, response.text)

    logger.info(f"Received {len(response.content)} byte create transaction for mint {payload['mint']}")
    return response.content
