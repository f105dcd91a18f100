"""
yope-eth CLI

Command-line interface for deploying and calling smart contracts through
an Ethereum node's JSON-RPC API.

Commands:
  create   - Deploy a contract (and optionally call a method on it)
  modify   - Send a state-changing method call
  run      - Call a read-only method
  resume   - Wait for transactions left pending by an interrupted command
  whoami   - Show the configured account
  info     - Show node and configuration information
  config   - Show or set configuration values
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

from .config import YOPE_ENV, Settings, load_settings, save_env_value
from .exceptions import ContractError
from .node.rpc import EthereumRpc, HttpxTransport
from .utils import decrypt_quantity


# ============ Constants ============

VERSION = "0.3.0"

_CONFIG_KEYS = (
    "ETHEREUM_RPC_URL",
    "ACCOUNT_ADDRESS",
    "ACCOUNT_GAS",
    "GAS_PRICE",
    "RECEIPT_TIMEOUT",
    "POLL_INTERVAL",
    "CONTRACTS_OUT",
)


# ============ Main CLI Group ============


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="yope-eth")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Configuration file (default: {YOPE_ENV})",
)
@click.option("--verbose", "-v", is_flag=True, help="Log node calls and receipt polling")
@click.pass_context
def cli(ctx: click.Context, env_file: Optional[Path], verbose: bool) -> None:
    """yope-eth: smart contracts over Ethereum JSON-RPC."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    try:
        ctx.obj = load_settings(env_file)
    except ValueError as exc:
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(1)
    ctx.meta["env_file"] = env_file or YOPE_ENV

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ============ Top-level Commands ============

from .commands.contract import create, modify, run
from .commands._common import pending_entries
from .commands.resume import resume

cli.add_command(create)
cli.add_command(modify)
cli.add_command(run)
cli.add_command(resume)


# ============ Identity ============


@cli.command()
@click.pass_obj
def whoami(settings: Settings) -> None:
    """Show the configured account."""
    if not settings.account_address:
        click.echo("No account configured.")
        click.echo("Run 'yope-eth config set ACCOUNT_ADDRESS 0x...'.")
        sys.exit(1)
    click.echo(f"Address: {settings.account_address}")


# ============ Info ============


@cli.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Show node and configuration information."""
    click.secho("  Configuration ──────────────────────────", fg="cyan")
    click.echo(click.style("  Node:        ", dim=True) + settings.rpc_url)
    click.echo(click.style("  Account:     ", dim=True) + (settings.account_address or "not configured"))
    click.echo(click.style("  Gas price:   ", dim=True) + f"{settings.gas_price} wei")
    click.echo(click.style("  Account gas: ", dim=True) + str(settings.account_gas))
    timeout = "none" if settings.receipt_timeout is None else f"{settings.receipt_timeout:g}s"
    click.echo(click.style("  Receipt wait:", dim=True) + f" {timeout} (poll every {settings.poll_interval:g}s)")
    pending = pending_entries()
    click.echo(click.style("  Pending txs: ", dim=True) + str(len(pending)))
    click.echo()

    click.secho("  Node ───────────────────────────────────", fg="cyan")
    try:
        with httpx.Client(timeout=10) as client:
            rpc = EthereumRpc(settings.rpc_url, HttpxTransport(client=client))
            client_version = rpc.web3_clientVersion()
            block = decrypt_quantity(rpc.eth_blockNumber())
            gas_price = decrypt_quantity(rpc.eth_gasPrice())
    except (ContractError, httpx.HTTPError) as exc:
        click.echo(click.style("  Status:      ", dim=True) + click.style(f"unreachable ({exc})", fg="yellow"))
        return
    click.echo(click.style("  Client:      ", dim=True) + client_version)
    click.echo(click.style("  Block:       ", dim=True) + str(block))
    click.echo(click.style("  Gas price:   ", dim=True) + f"{gas_price} wei")


# ============ Config ============


@cli.group()
def config() -> None:
    """Show or set configuration values."""
    pass


@config.command("show")
@click.pass_obj
def config_show(settings: Settings) -> None:
    """Show the effective configuration."""
    click.echo(f"ETHEREUM_RPC_URL={settings.rpc_url}")
    click.echo(f"ACCOUNT_ADDRESS={settings.account_address or ''}")
    click.echo(f"ACCOUNT_GAS={settings.account_gas}")
    click.echo(f"GAS_PRICE={settings.gas_price}")
    click.echo(f"RECEIPT_TIMEOUT={'none' if settings.receipt_timeout is None else settings.receipt_timeout}")
    click.echo(f"POLL_INTERVAL={settings.poll_interval}")
    click.echo(f"CONTRACTS_OUT={settings.contracts_out or ''}")


@config.command("set")
@click.argument("key", type=click.Choice(_CONFIG_KEYS, case_sensitive=False))
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Persist KEY=VALUE to the configuration file."""
    env_path = save_env_value(key.upper(), value, ctx.meta["env_file"])
    click.echo(f"Saved {key.upper()} to {env_path}")


# ============ Entry Points ============


def main() -> None:
    """yope-eth CLI entry point."""
    cli()


if __name__ == "__main__":
    main()
