__all__ = [
    # Workflow
    "ContractService",
    "ReceiptPoller",
    "PendingTransactionStore",
    "MAXIMUM_GAS_LIMIT",
    # Models
    "ContractDescriptor",
    "EthTransaction",
    "Method",
    "MethodType",
    "Receipt",
    "ReceiptType",
    "resolve_methods",
    # Node
    "EthereumRpc",
    "HttpxTransport",
    "JsonRpcTransport",
    "ArtifactCompiler",
    "CompileCache",
    "ContractData",
    "RpcCompiler",
    "SmartContract",
    # Errors
    "ContractError",
    "ExceededGasError",
    "InvalidArgumentsError",
    "NoSuchContractError",
    "NoSuchContractMethodError",
    "PollCancelledError",
    "ReceiptTimeoutError",
    "RpcError",
    # Config
    "Settings",
    "load_settings",
]

from .config import Settings, load_settings
from .exceptions import (
    ContractError,
    ExceededGasError,
    InvalidArgumentsError,
    NoSuchContractError,
    NoSuchContractMethodError,
    PollCancelledError,
    ReceiptTimeoutError,
    RpcError,
)
from .model import (
    ContractDescriptor,
    EthTransaction,
    Method,
    MethodType,
    Receipt,
    ReceiptType,
    resolve_methods,
)
from .node.abi import ArtifactCompiler, CompileCache, ContractData, RpcCompiler, SmartContract
from .node.rpc import EthereumRpc, HttpxTransport, JsonRpcTransport
from .services.contract import MAXIMUM_GAS_LIMIT, ContractService
from .services.receipts import PendingTransactionStore, ReceiptPoller
