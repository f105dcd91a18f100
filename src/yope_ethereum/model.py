from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from .exceptions import NoSuchContractMethodError
from .utils import add_hex_prefix, decrypt_quantity, encode_quantity, strip_hex_prefix


# ============ Transactions ============


@dataclass(frozen=True)
class EthTransaction:
    """
    Transaction object for ``eth_estimateGas`` / ``eth_sendTransaction``.

    Attributes:
        from_address: Sender address (0x-prefixed)
        data: Payload as hex, without the 0x prefix
        to: Recipient address; None for contract creation
        gas: Gas limit; None while the transaction is being estimated
        gas_price: Gas price in wei
    """
    from_address: str
    data: str = ""
    to: Optional[str] = None
    gas: Optional[int] = None
    gas_price: Optional[int] = None

    @staticmethod
    def builder() -> "EthTransaction.Builder":
        return EthTransaction.Builder()

    def to_builder(self) -> "EthTransaction.Builder":
        return (
            EthTransaction.Builder()
            .from_(self.from_address)
            .data(self.data)
            .to(self.to)
            .gas(self.gas)
            .gas_price(self.gas_price)
        )

    def to_rpc(self) -> dict[str, str]:
        tx: dict[str, str] = {"from": self.from_address}
        if self.to:
            tx["to"] = self.to
        if self.data:
            tx["data"] = add_hex_prefix(self.data)
        if self.gas is not None:
            tx["gas"] = encode_quantity(self.gas)
        if self.gas_price is not None:
            tx["gasPrice"] = encode_quantity(self.gas_price)
        return tx

    class Builder:
        """Accumulates transaction fields; ``build()`` freezes them."""

        def __init__(self) -> None:
            self._from: Optional[str] = None
            self._data = ""
            self._to: Optional[str] = None
            self._gas: Optional[int] = None
            self._gas_price: Optional[int] = None

        def from_(self, address: str) -> "EthTransaction.Builder":
            self._from = address
            return self

        def data(self, data: str) -> "EthTransaction.Builder":
            self._data = strip_hex_prefix(data)
            return self

        def to(self, address: Optional[str]) -> "EthTransaction.Builder":
            self._to = address
            return self

        def gas(self, gas: Optional[int]) -> "EthTransaction.Builder":
            self._gas = gas
            return self

        def gas_price(self, gas_price: Optional[int]) -> "EthTransaction.Builder":
            self._gas_price = gas_price
            return self

        def build(self) -> "EthTransaction":
            if not self._from:
                raise ValueError("Transaction sender (from) is required")
            return EthTransaction(
                from_address=self._from,
                data=self._data,
                to=self._to,
                gas=self._gas,
                gas_price=self._gas_price,
            )


# ============ Receipts ============


class ReceiptType(str, enum.Enum):
    CREATE = "CREATE"
    MODIFY = "MODIFY"


def _quantity_or_none(value: Any) -> Optional[int]:
    if value is None:
        return None
    return decrypt_quantity(value)


@dataclass(frozen=True)
class Receipt:
    """Receipt of a mined transaction, as returned by ``eth_getTransactionReceipt``."""
    transaction_hash: str
    contract_address: Optional[str] = None
    block_hash: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None
    cumulative_gas_used: Optional[int] = None
    status: Optional[int] = None
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    logs: tuple[dict[str, Any], ...] = ()
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Receipt":
        return cls(
            transaction_hash=payload.get("transactionHash", ""),
            contract_address=payload.get("contractAddress"),
            block_hash=payload.get("blockHash"),
            block_number=_quantity_or_none(payload.get("blockNumber")),
            gas_used=_quantity_or_none(payload.get("gasUsed")),
            cumulative_gas_used=_quantity_or_none(payload.get("cumulativeGasUsed")),
            status=_quantity_or_none(payload.get("status")),
            from_address=payload.get("from"),
            to_address=payload.get("to"),
            logs=tuple(payload.get("logs") or ()),
            raw=dict(payload),
        )

    @property
    def succeeded(self) -> bool:
        # Pre-Byzantium receipts carry no status field.
        return self.status is None or self.status == 1

    def with_contract_address(self, contract_address: str) -> "Receipt":
        return dataclasses.replace(self, contract_address=contract_address)

    def to_dict(self) -> dict[str, Any]:
        return {
            "transactionHash": self.transaction_hash,
            "contractAddress": self.contract_address,
            "blockHash": self.block_hash,
            "blockNumber": self.block_number,
            "gasUsed": self.gas_used,
            "cumulativeGasUsed": self.cumulative_gas_used,
            "status": self.status,
            "from": self.from_address,
            "to": self.to_address,
            "logs": list(self.logs),
        }


# ============ Contract descriptors ============


class MethodType(str, enum.Enum):
    CREATE = "CREATE"
    MODIFY = "MODIFY"
    RUN = "RUN"


@dataclass(frozen=True)
class Method:
    name: str
    type: MethodType
    args: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        # Accept any iterable of args but store a tuple.
        object.__setattr__(self, "args", tuple(self.args))


MethodResolver = Callable[[], Iterable[Method]]


@dataclass(frozen=True)
class ContractDescriptor:
    """
    Caller-owned description of a contract and the operations to run on it.

    Attributes:
        contract_content: Contract source text
        contract_key: Name of the contract inside the compile output
        account_address: Account that sends the transactions
        methods: Known methods, keyed by their type
        method_resolver: Produces the methods when ``methods`` is empty
    """
    contract_content: str
    contract_key: str
    account_address: str
    methods: Mapping[MethodType, Method] = field(default_factory=dict)
    method_resolver: Optional[MethodResolver] = field(default=None, compare=False, repr=False)

    def with_methods(self, methods: Iterable[Method]) -> "ContractDescriptor":
        return dataclasses.replace(self, methods={m.type: m for m in methods})

    def get_method(self, method_type: MethodType) -> Method:
        method = self.methods.get(method_type)
        if method is None or not method.name:
            raise NoSuchContractMethodError(method_type.value.lower(), self.contract_key)
        return method

    def has_method_args(self, method_type: MethodType) -> bool:
        method = self.methods.get(method_type)
        return method is not None and bool(method.args)


def resolve_methods(descriptor: ContractDescriptor) -> ContractDescriptor:
    """
    Return a descriptor whose method table is populated.

    The input is never mutated: when the table is empty and a resolver is
    set, a new descriptor is returned.
    """
    if descriptor.methods or descriptor.method_resolver is None:
        return descriptor
    return descriptor.with_methods(descriptor.method_resolver())


__all__ = [
    "ContractDescriptor",
    "EthTransaction",
    "Method",
    "MethodResolver",
    "MethodType",
    "Receipt",
    "ReceiptType",
    "resolve_methods",
]
