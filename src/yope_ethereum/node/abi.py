"""
Contract compilation and ABI handling.

Compile output comes either from the node (``eth_compileSolidity``) or from
Foundry build artifacts (``out/<Name>.sol/<Name>.json``). Both are turned
into ``ContractData`` entries keyed by contract name. A ``SmartContract``
binds a compiled contract to a deployed address and ABI-encodes calls to it
with eth-abi.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional, Protocol, Sequence

from eth_abi import decode, encode
from eth_abi.exceptions import EncodingError
from eth_hash.auto import keccak

from ..exceptions import InvalidArgumentsError, NoSuchContractError, NoSuchContractMethodError
from ..utils import sha256_hex, strip_hex_prefix
from .rpc import EthereumRpc

logger = logging.getLogger(__name__)


def function_signature(entry: dict[str, Any]) -> str:
    input_types = [inp["type"] for inp in entry.get("inputs", [])]
    return f"{entry['name']}({','.join(input_types)})"


def function_selector(signature: str) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak(signature.encode("utf-8"))[:4]


def encode_args(method: str, input_types: list[str], args: Sequence[Any]) -> bytes:
    """ABI-encode positional args, raising InvalidArgumentsError on a type mismatch."""
    try:
        return encode(input_types, list(args))
    except EncodingError as exc:
        raise InvalidArgumentsError(method, args, str(exc)) from exc


@dataclass(frozen=True)
class ContractData:
    """
    One named contract of a compile output.

    Attributes:
        name: Contract name (compile output key)
        code: Deployment bytecode, 0x-prefixed hex
        abi: ABI definition
    """
    name: str
    code: str
    abi: tuple[dict[str, Any], ...] = ()

    @classmethod
    def from_compile_entry(cls, name: str, entry: dict[str, Any]) -> "ContractData":
        info = entry.get("info") or {}
        abi = info.get("abiDefinition") or entry.get("abi") or []
        code = entry.get("code") or ""
        return cls(name=name, code=code, abi=tuple(abi))

    @classmethod
    def from_artifact(cls, name: str, artifact: dict[str, Any]) -> "ContractData":
        bytecode = artifact.get("bytecode", {})
        if isinstance(bytecode, dict):
            bytecode = bytecode.get("object", "")
        return cls(name=name, code=bytecode or "", abi=tuple(artifact.get("abi", [])))

    @property
    def methods(self) -> dict[str, list[dict[str, Any]]]:
        """Method table: function name -> ABI entries (several when overloaded)."""
        table: dict[str, list[dict[str, Any]]] = {}
        for entry in self.abi:
            if entry.get("type", "function") == "function" and "name" in entry:
                table.setdefault(entry["name"], []).append(entry)
        return table

    @property
    def constructor(self) -> Optional[dict[str, Any]]:
        for entry in self.abi:
            if entry.get("type") == "constructor":
                return entry
        return None

    def encode_constructor_args(self, args: Sequence[Any]) -> str:
        """ABI-encode constructor arguments as hex (no 0x prefix)."""
        if not args:
            return ""
        constructor = self.constructor
        if constructor is None:
            raise NoSuchContractMethodError("constructor", self.name)
        input_types = [inp["type"] for inp in constructor.get("inputs", [])]
        if len(input_types) != len(args):
            raise NoSuchContractMethodError(f"constructor with {len(args)} argument(s)", self.name)
        return encode_args("constructor", input_types, args).hex()

    def at(self, address: str) -> "SmartContract":
        return SmartContract(self, address)


def parse_compile_output(output: dict[str, Any]) -> dict[str, ContractData]:
    """
    Turn an ``eth_compileSolidity`` result into contracts keyed by name.

    Nodes that compile a single contract return the entry itself rather
    than a mapping; it is stored under the empty key.
    """
    if "code" in output:
        return {"": ContractData.from_compile_entry("", output)}
    return {
        name: ContractData.from_compile_entry(name, entry)
        for name, entry in output.items()
        if isinstance(entry, dict)
    }


def find_contract(contracts: dict[str, ContractData], contract_key: str) -> ContractData:
    """
    Look up ``contract_key`` in a compile output.

    Newer compilers prefix names with the source unit ("<stdin>:Name"), so a
    unique ":Name" suffix match is accepted as well.
    """
    if contract_key in contracts:
        return contracts[contract_key]
    suffixed = [name for name in contracts if name.endswith(":" + contract_key)]
    if len(suffixed) == 1:
        return contracts[suffixed[0]]
    if list(contracts) == [""]:
        return contracts[""]
    raise NoSuchContractError(contract_key, list(contracts))


@dataclass(frozen=True)
class SmartContract:
    """A compiled contract bound to its deployed address."""
    contract: ContractData
    address: str

    def function(self, name: str, args: Sequence[Any] = ()) -> dict[str, Any]:
        candidates = self.contract.methods.get(name)
        if not candidates:
            raise NoSuchContractMethodError(name, self.contract.name)
        for entry in candidates:
            if len(entry.get("inputs", [])) == len(args):
                return entry
        raise NoSuchContractMethodError(f"{name} with {len(args)} argument(s)", self.contract.name)

    def encode_call(self, name: str, args: Sequence[Any] = ()) -> str:
        """
        ABI-encode a function call.

        Returns:
            Hex calldata without the 0x prefix
        """
        entry = self.function(name, args)
        input_types = [inp["type"] for inp in entry.get("inputs", [])]
        selector = function_selector(function_signature(entry))
        encoded_args = encode_args(name, input_types, args) if args else b""
        return selector.hex() + encoded_args.hex()

    def decode_output(self, name: str, data: str, args: Sequence[Any] = ()) -> tuple[Any, ...]:
        entry = self.function(name, args)
        output_types = [out["type"] for out in entry.get("outputs", [])]
        if not output_types:
            return ()
        raw = bytes.fromhex(strip_hex_prefix(data or ""))
        if not raw:
            return ()
        return tuple(decode(output_types, raw))


# ============ Compilers ============


class Compiler(Protocol):
    def compile(self, source: str) -> dict[str, ContractData]:
        ...


class RpcCompiler:
    """Compiles through the node's ``eth_compileSolidity``."""

    def __init__(self, rpc: EthereumRpc) -> None:
        self._rpc = rpc

    def compile(self, source: str) -> dict[str, ContractData]:
        output = self._rpc.eth_compileSolidity(source)
        contracts = parse_compile_output(output or {})
        logger.debug("compiled %d contract(s): %s", len(contracts), ", ".join(contracts))
        return contracts


def find_contracts_out(start: Optional[Path] = None) -> Path:
    """
    Locate a Foundry ``contracts/out/`` (or ``out/``) directory.

    Searches from ``start`` (default: the working directory) upward.
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        for candidate in (parent / "contracts" / "out", parent / "out"):
            if candidate.is_dir():
                return candidate
    raise FileNotFoundError(
        "Cannot find contracts/out/. Run 'forge build' in the contracts/ directory."
    )


@dataclass
class ArtifactCompiler:
    """
    Reads precompiled Foundry artifacts instead of compiling on the node.

    The source text is ignored; every ``<Name>.sol/<Name>.json`` artifact in
    ``out_dir`` is returned.
    """
    out_dir: Path = field(default_factory=find_contracts_out)

    def compile(self, source: str) -> dict[str, ContractData]:
        contracts: dict[str, ContractData] = {}
        for path in sorted(self.out_dir.glob("*.sol/*.json")):
            # Skip per-compiler-version variants such as Foo.sol/Foo.0.8.20.json
            if path.parent.name != f"{path.stem}.sol":
                continue
            with path.open("r", encoding="utf-8") as f:
                artifact = json.load(f)
            contracts[path.stem] = ContractData.from_artifact(path.stem, artifact)
        if not contracts:
            raise FileNotFoundError(
                f"No artifacts in {self.out_dir}. Run 'forge build' in the contracts/ directory."
            )
        return contracts


# ============ Compile cache ============


@dataclass
class CompileCache:
    """
    In-memory compile output cache keyed by the sha256 of the source text.

    Identical source is compiled once per cache instance.
    """
    _entries: dict[str, dict[str, ContractData]] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get_or_compile(
        self, source: str, compile_fn: Callable[[str], dict[str, ContractData]]
    ) -> dict[str, ContractData]:
        key = sha256_hex(source.encode("utf-8"))
        with self._lock:
            cached = self._entries.get(key)
        if cached is not None:
            logger.debug("compile cache hit: %s", key[:12])
            return cached
        contracts = compile_fn(source)
        with self._lock:
            self._entries[key] = contracts
        return contracts

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "ArtifactCompiler",
    "CompileCache",
    "Compiler",
    "ContractData",
    "RpcCompiler",
    "SmartContract",
    "encode_args",
    "find_contract",
    "find_contracts_out",
    "function_selector",
    "function_signature",
    "parse_compile_output",
]
