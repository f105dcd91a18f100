"""
Errors raised by the contract workflow.

Every error carries a class-level ``exit_code`` that the CLI uses when it
terminates on that error.
"""

from __future__ import annotations

from typing import Any, Optional


class ContractError(RuntimeError):
    exit_code: int = 1


class ExceededGasError(ContractError):
    """Estimated gas for a pending submission is above the account's allowance."""

    exit_code = 2

    def __init__(self, account_address: str, account_gas: int, estimated_gas: int) -> None:
        super().__init__(f"gas exceeded for account {account_address}")
        self.account_address = account_address
        self.account_gas = account_gas
        self.estimated_gas = estimated_gas


class NoSuchContractMethodError(ContractError):
    exit_code = 3

    def __init__(self, method: str, contract: Optional[str] = None) -> None:
        where = f" on contract {contract}" if contract else ""
        super().__init__(f"No such contract method: {method}{where}")
        self.method = method
        self.contract = contract


class NoSuchContractError(ContractError):
    exit_code = 3

    def __init__(self, contract_key: str, available: Optional[list[str]] = None) -> None:
        message = f"Contract {contract_key} not found in compile output"
        if available:
            message += f" (available: {', '.join(sorted(available))})"
        super().__init__(message)
        self.contract_key = contract_key


class InvalidArgumentsError(ContractError):
    """Arguments could not be ABI-encoded for the method's input types."""

    exit_code = 7

    def __init__(self, method: str, args: Any, reason: str) -> None:
        super().__init__(f"Invalid arguments for {method}: {reason}")
        self.method = method
        self.args_given = args


class RpcError(ContractError):
    """The node answered with a JSON-RPC ``error`` member."""

    exit_code = 4

    def __init__(
        self,
        method: str,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
    ) -> None:
        super().__init__(f"RPC error in {method}: {message}" + (f" (code {code})" if code is not None else ""))
        self.method = method
        self.code = code
        self.data = data


class ReceiptTimeoutError(ContractError):
    exit_code = 5

    def __init__(self, tx_hash: str, attempts: int, elapsed: float) -> None:
        super().__init__(
            f"Transaction {tx_hash} not mined after {attempts} receipt queries ({elapsed:.1f}s)"
        )
        self.tx_hash = tx_hash
        self.attempts = attempts
        self.elapsed = elapsed


class PollCancelledError(ContractError):
    exit_code = 6

    def __init__(self, tx_hash: str, attempts: int) -> None:
        super().__init__(f"Receipt polling for {tx_hash} cancelled after {attempts} queries")
        self.tx_hash = tx_hash
        self.attempts = attempts


__all__ = [
    "ContractError",
    "ExceededGasError",
    "InvalidArgumentsError",
    "NoSuchContractError",
    "NoSuchContractMethodError",
    "PollCancelledError",
    "ReceiptTimeoutError",
    "RpcError",
]
