"""
pumpfun-launch - Command-line interface for launching tokens on Pump.fun
"""

import logging

import click
from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from . import __version__
from .config import Config
from .commands.launch import launch, upload
from .utils import setup_logging
from .wallet import WalletManager
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

CONTEXT_SETTINGS = dict(help_option_names=['-h', '--help'])


@click.group(context_settings=CONTEXT_SETTINGS)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('--config', type=click.Path(), help='Path to config file')
@click.option('--no-color', is_flag=True, help='Disable colored output')
@click.version_option(version=__version__)
@click.pass_context
def cli(ctx, debug, config, no_color):
    """pumpfun-launch - Launch tokens on Pump.fun from the command line"""
    setup_logging(debug)

    ctx.ensure_object(dict)
    ctx.obj['console'] = Console(color_system=None if no_color else "auto")
    ctx.obj['config'] = Config(config)
    ctx.obj['debug'] = debug

    logger.debug("CLI initialized")


cli.add_command(launch)
cli.add_command(upload)


@cli.command()
@click.option('--key', help='Configuration key to get')
@click.pass_context
def config(ctx, key):
    """Get or list configuration values"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    if key:
        value = config.get(key)
        if value is not None:
            console.print(f"{key}: {value}")
        else:
            console.print(f"[yellow]Configuration key '{key}' not found[/yellow]")
        return

    try:
        wallet = WalletManager.from_env()
    except ConfigurationError as e:
        console.print(f"[yellow]{e}[/yellow]")
        wallet = None

    summary = config.validate(str(wallet.pubkey()) if wallet else None)

    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for k, v in summary.items():
        table.add_row(k, str(v))
    console.print(table)


@cli.command()
@click.argument('key')
@click.argument('value')
@click.pass_context
def set_config(ctx, key, value):
    """Set a configuration value"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    try:
        stored = config.set(key, value)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    console.print(f"[green]Configuration updated: {key} = {stored}[/green]")


@cli.command()
@click.option('--yes', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def reset_config(ctx, yes):
    """Reset configuration to defaults"""
    console = ctx.obj['console']
    config = ctx.obj['config']

    if yes or Confirm.ask("Are you sure you want to reset all configuration to defaults?"):
        config.reset()
        console.print("[green]Configuration reset to defaults[/green]")
    else:
        console.print("[yellow]Reset cancelled[/yellow]")


if __name__ == '__main__':
    cli()
