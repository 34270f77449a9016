"""
Token launch orchestration: metadata upload, remote build, signing and submission
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Union

import httpx
from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from .exceptions import SubmissionFailure
from .metadata import DEFAULT_IPFS_URL, upload_metadata
from .models import LaunchOptions, LaunchResult
from .submitter import sign_and_send
from .transaction import DEFAULT_TRADE_URL, create_token_transaction

logger = logging.getLogger(__name__)

OptionsLike = Union[LaunchOptions, Dict[str, Any], None]


@dataclass
class LaunchAgent:
    """Wallet and network collaborators used by a launch"""
    wallet: Keypair
    connection: AsyncClient
    http: httpx.AsyncClient
    ipfs_url: str = DEFAULT_IPFS_URL
    trade_url: str = DEFAULT_TRADE_URL

    @property
    def wallet_address(self) -> Pubkey:
        return self.wallet.pubkey()


def _coerce_options(options: OptionsLike) -> LaunchOptions:
    if options is None:
        return LaunchOptions()
    if isinstance(options, LaunchOptions):
        return options
    return LaunchOptions.model_validate(options)


class TokenLauncher:
    """
    Runs the launch pipeline for one agent

    Each call to ``launch`` generates its own mint keypair and blockhash, so a
    single launcher can serve concurrent launches sharing the agent's clients.
    """

    def __init__(self, agent: LaunchAgent, keypair_factory: Callable[[], Keypair] = Keypair):
        self.agent = agent
        self.keypair_factory = keypair_factory

    async def launch(
        self,
        token_name: str,
        token_ticker: str,
        description: str,
        image_url: str,
        options: OptionsLike = None,
    ) -> LaunchResult:
        agent = self.agent
        options = _coerce_options(options)
        mint_keypair = self.keypair_factory()
        logger.info(f"Launching {token_ticker} with mint {mint_keypair.pubkey()}")

        try:
            metadata_response = await upload_metadata(
                agent.http,
                token_name,
                token_ticker,
                description,
                image_url,
                options,
                ipfs_url=agent.ipfs_url,
            )
            raw_transaction = await create_token_transaction(
                agent.http,
                agent.wallet_address,
                mint_keypair.pubkey(),
                metadata_response,
                options,
                trade_url=agent.trade_url,
            )
            signature = await sign_and_send(raw_transaction, mint_keypair, agent.wallet, agent.connection)
        except Exception as e:
            logger.error(f"Error launching {token_ticker}: {e}")
            if isinstance(e, SubmissionFailure) and e.logs:
                logger.error("Transaction logs:\n" + "\n".join(e.logs))
            raise

        result = LaunchResult(
            signature=str(signature),
            mint=str(mint_keypair.pubkey()),
            metadata_uri=metadata_response.metadata_uri,
        )
        logger.info(f"Launched {token_ticker}: mint={result.mint} signature={result.signature}")
        return result


async def launch_pumpfun_token(
    agent: LaunchAgent,
    token_name: str,
    token_ticker: str,
    description: str,
    image_url: str,
    options: OptionsLike = None,
) -> LaunchResult:
    """
    Launch a token on Pump.fun

    Args:
        agent: Wallet and network collaborators
        token_name: Name of the token
        token_ticker: Ticker of the token
        description: Description of the token
        image_url: URL of the token image
        options: Optional launch options (twitter, telegram, website,
            initialLiquiditySOL, slippageBps, priorityFee)

    Returns:
        LaunchResult: Signature, mint address and metadata URI

    Raises:
        ValueError: If a required text field is empty
        httpx.HTTPError: If the image download or a request fails in transport
        SolanaRpcException: If the blockhash fetch cannot reach the RPC node
        TokenLaunchError: If a remote service or the network rejects a stage
    """
    return await TokenLauncher(agent).launch(token_name, token_ticker, description, image_url, options)
