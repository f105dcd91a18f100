"""
Resume - Wait for transactions left pending by an interrupted command.

Transactions are journalled under ~/.yope-ethereum/pending/ before the
receipt wait starts. This command polls each of them again and drops the
journal entry once its receipt arrives.
"""

from __future__ import annotations

from typing import Optional

import click
import httpx

from ..exceptions import ContractError
from ._common import contract_service, echo_receipt, fail, get_settings, interrupted, pending_entries


@click.command()
@click.option("--rpc-url", default=None, help="Node JSON-RPC URL [env: ETHEREUM_RPC_URL]")
@click.option("--timeout", type=float, default=None, help="Receipt wait in seconds per transaction")
@click.option("--list", "list_only", is_flag=True, help="Only list pending transactions")
@click.pass_context
def resume(ctx: click.Context, rpc_url: Optional[str], timeout: Optional[float], list_only: bool) -> None:
    """Wait for journalled transactions to be mined."""
    settings = get_settings(ctx)

    pending = pending_entries()
    if not pending:
        click.echo("No pending transactions.")
        return

    if list_only:
        click.echo(f"Pending transactions: {len(pending)}")
        for entry in pending:
            target = entry.get("contract_address") or "-"
            click.echo(f"  {entry['tx_hash']}  {entry.get('kind', '?'):<6}  {target}  {entry.get('created_at', '')}")
        return

    try:
        with contract_service(settings, rpc_url, timeout=timeout) as service:
            receipts = service.resume()
    except (ContractError, httpx.HTTPError) as exc:
        fail(exc)
    except KeyboardInterrupt:
        interrupted(journal=True)

    for tx_hash, receipt in receipts.items():
        echo_receipt(tx_hash[:10], receipt)
