"""
Contract commands - create, modify and run.

Each command compiles the given source, builds a contract descriptor from
the command line and hands it to the ContractService.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Optional

import click
import httpx

from ..exceptions import ContractError
from ..model import ContractDescriptor, Method, MethodType, ReceiptType
from ._common import (
    contract_service,
    echo_receipt,
    fail,
    get_settings,
    interrupted,
    parse_args_json,
    require_account,
)


def _node_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every contract command."""
    func = click.option("--rpc-url", default=None, help="Node JSON-RPC URL [env: ETHEREUM_RPC_URL]")(func)
    func = click.option(
        "--artifacts",
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=None,
        help="Foundry out/ directory to read instead of compiling on the node",
    )(func)
    func = click.option("--account", default=None, help="Sender address [env: ACCOUNT_ADDRESS]")(func)
    func = click.option("--contract", "contract_key", required=True, help="Contract name in the compile output")(func)
    func = click.option(
        "--source",
        required=True,
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        help="Solidity source file",
    )(func)
    return func


def _tx_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options for commands that send transactions."""
    func = click.option("--timeout", type=float, default=None, help="Receipt wait in seconds [env: RECEIPT_TIMEOUT]")(func)
    func = click.option("--gas-price", type=int, default=None, help="Gas price in wei [env: GAS_PRICE]")(func)
    func = click.option("--account-gas", type=int, default=None, help="Maximum gas the account may spend [env: ACCOUNT_GAS]")(func)
    func = click.option("--journal/--no-journal", default=True, help="Record pending transactions for 'resume'")(func)
    return func


def _descriptor(source: Path, contract_key: str, account: str, *methods: Method) -> ContractDescriptor:
    return ContractDescriptor(
        contract_content=source.read_text(encoding="utf-8"),
        contract_key=contract_key,
        account_address=account,
    ).with_methods(methods)


@click.command()
@_node_options
@_tx_options
@click.option("--constructor-args", default=None, help="Constructor args as JSON array")
@click.option("--modify", "modify_name", default=None, help="Method to call right after deployment")
@click.option("--modify-args", default=None, help="Args for --modify as JSON array")
@click.pass_context
def create(
    ctx: click.Context,
    source: Path,
    contract_key: str,
    account: Optional[str],
    artifacts: Optional[Path],
    rpc_url: Optional[str],
    journal: bool,
    account_gas: Optional[int],
    gas_price: Optional[int],
    timeout: Optional[float],
    constructor_args: Optional[str],
    modify_name: Optional[str],
    modify_args: Optional[str],
) -> None:
    """
    Deploy a contract.

    When --modify is given with arguments, the method is sent to the new
    contract as soon as it is mined.
    """
    settings = get_settings(ctx)
    address = require_account(settings, account)

    methods = [Method("constructor", MethodType.CREATE, parse_args_json(constructor_args, "--constructor-args"))]
    if modify_name:
        follow_up_args = parse_args_json(modify_args, "--modify-args")
        if not follow_up_args:
            click.secho(f"  Note: --modify {modify_name} has no --modify-args; it will not be called.", fg="yellow")
        methods.append(Method(modify_name, MethodType.MODIFY, follow_up_args))
    descriptor = _descriptor(source, contract_key, address, *methods)

    click.echo(f"  Sender:   {address}")
    click.echo(f"  Contract: {contract_key}")
    click.echo("")

    try:
        with contract_service(settings, rpc_url, gas_price, timeout, artifacts, journal) as service:
            receipts = service.create(descriptor, account_gas or settings.account_gas)
    except (ContractError, httpx.HTTPError) as exc:
        fail(exc)
    except KeyboardInterrupt:
        interrupted(journal)

    echo_receipt("Create", receipts[ReceiptType.CREATE])
    if ReceiptType.MODIFY in receipts:
        echo_receipt("Modify", receipts[ReceiptType.MODIFY])
    if not all(r.succeeded for r in receipts.values()):
        sys.exit(1)


@click.command()
@_node_options
@_tx_options
@click.option("--address", required=True, help="Deployed contract address")
@click.option("--function", "func_name", required=True, help="Method to call")
@click.option("--args", "args_json", default="[]", help="Method args as JSON array")
@click.pass_context
def modify(
    ctx: click.Context,
    source: Path,
    contract_key: str,
    account: Optional[str],
    artifacts: Optional[Path],
    rpc_url: Optional[str],
    journal: bool,
    account_gas: Optional[int],
    gas_price: Optional[int],
    timeout: Optional[float],
    address: str,
    func_name: str,
    args_json: str,
) -> None:
    """Send a state-changing method call to a deployed contract."""
    settings = get_settings(ctx)
    sender = require_account(settings, account)
    method = Method(func_name, MethodType.MODIFY, parse_args_json(args_json, "--args"))
    descriptor = _descriptor(source, contract_key, sender, method)

    click.echo(f"  Sender:   {sender}")
    click.echo(f"  Target:   {address}")
    click.echo(f"  Function: {func_name}")
    click.echo("")

    try:
        with contract_service(settings, rpc_url, gas_price, timeout, artifacts, journal) as service:
            receipt = service.modify(address, descriptor, account_gas or settings.account_gas)
    except (ContractError, httpx.HTTPError) as exc:
        fail(exc)
    except KeyboardInterrupt:
        interrupted(journal)

    echo_receipt("Modify", receipt)
    if not receipt.succeeded:
        sys.exit(1)


@click.command()
@_node_options
@click.option("--address", required=True, help="Deployed contract address")
@click.option("--function", "func_name", required=True, help="Read-only method to call")
@click.option("--args", "args_json", default="[]", help="Method args as JSON array")
@click.pass_context
def run(
    ctx: click.Context,
    source: Path,
    contract_key: str,
    account: Optional[str],
    artifacts: Optional[Path],
    rpc_url: Optional[str],
    address: str,
    func_name: str,
    args_json: str,
) -> None:
    """Call a read-only method and print its result. No transaction is sent."""
    settings = get_settings(ctx)
    sender = account or settings.account_address or ""
    method = Method(func_name, MethodType.RUN, parse_args_json(args_json, "--args"))
    descriptor = _descriptor(source, contract_key, sender, method)

    try:
        with contract_service(settings, rpc_url, artifacts=artifacts, journal=False) as service:
            result = service.run(address, descriptor)
    except (ContractError, httpx.HTTPError) as exc:
        fail(exc)

    click.echo(result)

