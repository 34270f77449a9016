"""
Launch commands for the Pump.fun launcher CLI
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import click
import httpx
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solders.keypair import Keypair

from pumpfun_launcher.config import Config
from pumpfun_launcher.exceptions import ConfigurationError, TokenLaunchError
from pumpfun_launcher.launcher import LaunchAgent, launch_pumpfun_token
from pumpfun_launcher.metadata import upload_metadata
from pumpfun_launcher.models import LaunchOptions
from pumpfun_launcher.utils import format_output, handle_launch_error
from pumpfun_launcher.wallet import WalletManager

logger = logging.getLogger(__name__)

LAUNCH_ERRORS = (TokenLaunchError, ValueError, httpx.HTTPError, SolanaRpcException)


def social_options(func):
    func = click.option('--website', help='Project website')(func)
    func = click.option('--telegram', help='Telegram handle or URL')(func)
    func = click.option('--twitter', help='Twitter handle or URL')(func)
    return func


def _load_wallet(keyfile: Optional[str], encryption_key: Optional[str]) -> Keypair:
    if keyfile:
        if not encryption_key:
            raise ConfigurationError("--encryption-key is required with --keyfile")
        return WalletManager.from_encrypted_file(keyfile, encryption_key.encode())

    wallet = WalletManager.from_env()
    if wallet is None:
        raise ConfigurationError("No wallet configured: set PUMP_FUN_PRIVATE_KEY or use --keyfile")
    return wallet


async def _run_launch(config: Config, wallet: Keypair, name: str, ticker: str, description: str,
                      image_url: str, options: LaunchOptions):
    async with httpx.AsyncClient(timeout=config.timeout) as http:
        async with AsyncClient(config.rpc_url, timeout=config.timeout) as connection:
            agent = LaunchAgent(
                wallet=wallet,
                connection=connection,
                http=http,
                ipfs_url=config.ipfs_url,
                trade_url=config.trade_url,
            )
            return await launch_pumpfun_token(agent, name, ticker, description, image_url, options)


async def _run_upload(config: Config, name: str, ticker: str, description: str,
                      image_url: str, options: LaunchOptions):
    async with httpx.AsyncClient(timeout=config.timeout) as http:
        return await upload_metadata(http, name, ticker, description, image_url, options,
                                     ipfs_url=config.ipfs_url)


def _display_result(console: Console, title: str, data: Dict[str, Any]):
    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for key, value in data.items():
        table.add_row(key, str(value))
    console.print(table)


@click.command('launch')
@click.argument('name')
@click.argument('ticker')
@click.argument('description')
@click.argument('image_url')
@click.option('--liquidity', 'initial_liquidity_sol', type=float, help='Initial buy in SOL (default 0.0001)')
@click.option('--slippage', 'slippage_bps', type=int, help='Slippage (default 5)')
@click.option('--priority-fee', type=float, help='Priority fee in SOL (default 0.00005)')
@social_options
@click.option('--keyfile', type=click.Path(exists=True, dir_okay=False), help='Encrypted wallet key file')
@click.option('--encryption-key', envvar='PUMP_FUN_ENCRYPTION_KEY', help='Fernet key for --keyfile')
@click.option('--format', type=click.Choice(['table', 'json', 'csv']), help='Output format')
@click.option('--output', type=click.Path(), help='Save output to file')
@click.pass_context
def launch(ctx, name, ticker, description, image_url, initial_liquidity_sol, slippage_bps, priority_fee,
           twitter, telegram, website, keyfile, encryption_key, format, output):
    """Create a new token on Pump.fun"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    try:
        wallet = _load_wallet(keyfile, encryption_key)
        options = LaunchOptions(
            initial_liquidity_sol=initial_liquidity_sol,
            slippage_bps=slippage_bps,
            priority_fee=priority_fee,
            twitter=twitter,
            telegram=telegram,
            website=website,
        )
        with console.status(f"[bold green]Launching {ticker}..."):
            result = asyncio.run(_run_launch(config, wallet, name, ticker, description, image_url, options))
    except LAUNCH_ERRORS as e:
        handle_launch_error(e, console)
        ctx.exit(1)

    output_format = format or config.get('format', 'table')
    if output_format == 'table' and not output:
        console.print(Panel(f"[bold]{name} ({ticker}) launched[/bold]", expand=False))
        _display_result(console, "Launch Result", result.to_dict())
    else:
        format_output(result.to_dict(), output_format, output, console)


@click.command('upload')
@click.argument('name')
@click.argument('ticker')
@click.argument('description')
@click.argument('image_url')
@social_options
@click.option('--format', type=click.Choice(['table', 'json']), help='Output format')
@click.pass_context
def upload(ctx, name, ticker, description, image_url, twitter, telegram, website, format):
    """Upload token metadata and image without launching"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    options = LaunchOptions(twitter=twitter, telegram=telegram, website=website)
    try:
        with console.status("[bold green]Uploading metadata..."):
            response = asyncio.run(_run_upload(config, name, ticker, description, image_url, options))
    except LAUNCH_ERRORS as e:
        handle_launch_error(e, console)
        ctx.exit(1)

    data = response.model_dump(by_alias=True)
    if (format or config.get('format', 'table')) == 'table':
        _display_result(console, "Metadata", {"metadataUri": response.metadata_uri, **response.metadata})
    else:
        format_output(data, 'json', None, console)
