"""Shared helpers for the contract commands."""

from __future__ import annotations

import json
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, NoReturn, Optional

import click
import httpx

from ..config import Settings
from ..exceptions import ContractError
from ..model import Receipt
from ..node.abi import ArtifactCompiler, CompileCache
from ..node.rpc import EthereumRpc, HttpxTransport
from ..services.contract import ContractService
from ..services.receipts import PendingTransactionStore, ReceiptPoller


def get_settings(ctx: click.Context) -> Settings:
    settings = ctx.find_object(Settings)
    return settings if settings is not None else Settings()


def parse_args_json(value: Optional[str], option: str) -> tuple[Any, ...]:
    """Parse a JSON array option into a tuple of positional args."""
    if value is None:
        return ()
    try:
        args = json.loads(value)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}", param_hint=option) from exc
    if not isinstance(args, list):
        raise click.BadParameter("must be a JSON array", param_hint=option)
    return tuple(args)


def require_account(settings: Settings, account: Optional[str]) -> str:
    address = account or settings.account_address
    if not address:
        click.secho(
            "ERROR: No account. Pass --account or set ACCOUNT_ADDRESS (or PRIVATE_KEY).",
            fg="red",
        )
        sys.exit(1)
    return address


@contextmanager
def contract_service(
    settings: Settings,
    rpc_url: Optional[str] = None,
    gas_price: Optional[int] = None,
    timeout: Optional[float] = None,
    artifacts: Optional[Path] = None,
    journal: bool = True,
) -> Iterator[ContractService]:
    """Build a ContractService bound to a single httpx client for the command's lifetime."""
    with httpx.Client(timeout=30) as client:
        rpc = EthereumRpc(rpc_url or settings.rpc_url, HttpxTransport(client=client))
        poller = ReceiptPoller(
            rpc,
            interval=settings.poll_interval,
            timeout=timeout if timeout is not None else settings.receipt_timeout,
        )
        out_dir = artifacts or settings.contracts_out
        yield ContractService(
            rpc,
            gas_price if gas_price is not None else settings.gas_price,
            poller=poller,
            compiler=ArtifactCompiler(out_dir) if out_dir else None,
            compile_cache=CompileCache(),
            journal=PendingTransactionStore() if journal else None,
        )


def pending_entries() -> list[dict[str, Any]]:
    """Journal entries, without creating the journal directory."""
    if not PendingTransactionStore.default_directory().is_dir():
        return []
    return PendingTransactionStore().list_pending()


def echo_receipt(label: str, receipt: Receipt) -> None:
    status = "ok" if receipt.succeeded else "reverted"
    color = "green" if receipt.succeeded else "red"
    click.echo(click.style(f"  {label}: ", dim=True) + click.style(status, fg=color))
    click.echo(f"    TX:       {receipt.transaction_hash}")
    if receipt.contract_address:
        click.echo(f"    Contract: {receipt.contract_address}")
    if receipt.block_number is not None:
        click.echo(f"    Block:    {receipt.block_number}")
    if receipt.gas_used is not None:
        click.echo(f"    Gas used: {receipt.gas_used}")


def fail(exc: Exception) -> NoReturn:
    """Report an error and exit with its exit code."""
    if isinstance(exc, ContractError):
        click.secho(f"ERROR: {exc}", fg="red")
        sys.exit(exc.exit_code)
    if isinstance(exc, httpx.HTTPError):
        click.secho(f"ERROR: node unreachable: {exc}", fg="red")
        sys.exit(4)
    raise exc


def interrupted(journal: bool) -> NoReturn:
    """Report Ctrl-C during a receipt wait and exit with 130."""
    click.secho("Interrupted while waiting for the receipt.", fg="yellow")
    if journal:
        click.echo("  The transaction is journalled; run 'yope-eth resume' to keep waiting.")
    sys.exit(130)
