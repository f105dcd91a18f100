"""
Contract Service - Deploy, modify and query smart contracts.

Sequences the node calls for each operation:

- create: compile -> estimate gas -> send -> wait for receipt
          (-> modify, when the descriptor carries modify arguments)
- modify: compile -> encode call -> estimate gas -> send -> wait for receipt
- run:    compile -> encode call -> eth_call -> decode

Transactions are sent with ``eth_sendTransaction``; the node signs with the
sender's unlocked account. Gas is estimated by the node and checked against
the caller's allowance before anything is sent.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from ..exceptions import ContractError, ExceededGasError
from ..model import (
    ContractDescriptor,
    EthTransaction,
    MethodType,
    Receipt,
    ReceiptType,
    resolve_methods,
)
from ..node.abi import CompileCache, Compiler, ContractData, RpcCompiler, SmartContract, find_contract
from ..node.rpc import EthereumRpc
from ..utils import decrypt_quantity, encode_quantity
from .receipts import PendingTransactionStore, ReceiptPoller

logger = logging.getLogger(__name__)

# Gas limit attached to read-only eth_call requests.
MAXIMUM_GAS_LIMIT = 3_141_592


class ContractService:
    """
    Contract workflow on top of an Ethereum node.

    Args:
        rpc: Node client
        gas_price: Gas price in wei attached to every transaction
        poller: Receipt poller (default: 0.5s interval, 120s timeout)
        compiler: Source compiler (default: the node's eth_compileSolidity)
        compile_cache: Reuse compile output for identical source
        journal: Persist transaction hashes while waiting for receipts
    """

    def __init__(
        self,
        rpc: EthereumRpc,
        gas_price: int,
        poller: Optional[ReceiptPoller] = None,
        compiler: Optional[Compiler] = None,
        compile_cache: Optional[CompileCache] = None,
        journal: Optional[PendingTransactionStore] = None,
    ) -> None:
        self._rpc = rpc
        self.gas_price = gas_price
        self._poller = poller or ReceiptPoller(rpc)
        self._compiler = compiler or RpcCompiler(rpc)
        self._compile_cache = compile_cache
        self._journal = journal

    # ---- Public operations ----

    def create(
        self,
        descriptor: ContractDescriptor,
        account_gas: int,
        cancel: Optional[threading.Event] = None,
    ) -> dict[ReceiptType, Receipt]:
        """
        Deploy a contract, then apply its modify method when it has arguments.

        Returns:
            Receipts keyed by CREATE and, if a modify call was made, MODIFY
        """
        descriptor = resolve_methods(descriptor)
        receipts: dict[ReceiptType, Receipt] = {}

        # A follow-up modify must be valid before anything is deployed
        follow_up = None
        if descriptor.has_method_args(MethodType.MODIFY):
            follow_up = descriptor.get_method(MethodType.MODIFY)

        contract = self._compile(descriptor)
        if follow_up is not None:
            contract.at("").encode_call(follow_up.name, follow_up.args)
        code = contract.code[2:]
        if descriptor.has_method_args(MethodType.CREATE):
            code += contract.encode_constructor_args(descriptor.get_method(MethodType.CREATE).args)

        builder = EthTransaction.builder().data(code).from_(descriptor.account_address)
        gas = self.estimate_gas(builder.build())
        self.check_gas(descriptor.account_address, account_gas, gas)

        tx_hash = self.send_transaction(builder, gas)
        receipt = self._wait(tx_hash, ReceiptType.CREATE, None, cancel)
        logger.debug("created contract: %s", receipt)
        receipts[ReceiptType.CREATE] = receipt

        if descriptor.has_method_args(MethodType.MODIFY):
            if not receipt.contract_address:
                raise ContractError(f"Creation receipt {tx_hash} carries no contract address")
            mod_receipt = self.modify(receipt.contract_address, descriptor, account_gas, cancel=cancel)
            logger.debug("updated contract: %s", mod_receipt)
            receipts[ReceiptType.MODIFY] = mod_receipt
        return receipts

    def modify(
        self,
        contract_address: str,
        descriptor: ContractDescriptor,
        account_gas: int,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """Send the descriptor's modify method to a deployed contract and wait for it to be mined."""
        descriptor = resolve_methods(descriptor)
        method = descriptor.get_method(MethodType.MODIFY)

        smart_contract = self._smart_contract(descriptor, contract_address)
        data = smart_contract.encode_call(method.name, method.args)

        builder = (
            EthTransaction.builder()
            .data(data)
            .gas_price(self.gas_price)
            .from_(descriptor.account_address)
            .to(contract_address)
        )
        gas = self.estimate_gas(builder.build())
        self.check_gas(descriptor.account_address, account_gas, gas)

        tx_hash = self.send_transaction(builder, gas)
        return self._wait(tx_hash, ReceiptType.MODIFY, contract_address, cancel)

    def run(self, contract_address: str, descriptor: ContractDescriptor) -> Any:
        """Call the descriptor's read-only method and return its first output value."""
        descriptor = resolve_methods(descriptor)
        method = descriptor.get_method(MethodType.RUN)

        smart_contract = self._smart_contract(descriptor, contract_address)
        data = smart_contract.encode_call(method.name, method.args)
        call = {
            "to": contract_address,
            "data": "0x" + data,
            "gas": encode_quantity(MAXIMUM_GAS_LIMIT),
        }
        result = self._rpc.eth_call(call)
        outputs = smart_contract.decode_output(method.name, result, method.args)
        return outputs[0] if outputs else None

    def resume(self, cancel: Optional[threading.Event] = None) -> dict[str, Receipt]:
        """
        Wait for every journalled transaction left behind by an earlier run.

        Returns:
            Receipts keyed by transaction hash
        """
        if self._journal is None:
            return {}
        receipts: dict[str, Receipt] = {}
        for entry in self._journal.list_pending():
            tx_hash = entry["tx_hash"]
            logger.info("resuming receipt poll for %s", tx_hash)
            receipt = self._poller.wait(tx_hash, entry.get("contract_address"), cancel=cancel)
            self._journal.remove(tx_hash)
            receipts[tx_hash] = receipt
        return receipts

    # ---- Gas guard and submission ----

    def estimate_gas(self, tx: EthTransaction) -> int:
        return decrypt_quantity(self._rpc.eth_estimateGas(tx.to_rpc()))

    @staticmethod
    def check_gas(account_address: str, account_gas: int, gas: int) -> None:
        if account_gas < gas:
            raise ExceededGasError(account_address, account_gas, gas)

    def send_transaction(self, builder: EthTransaction.Builder, gas: int) -> str:
        tx = builder.gas(gas).gas_price(self.gas_price).build()
        tx_hash = self._rpc.eth_sendTransaction(tx.to_rpc())
        logger.info("sent transaction %s from %s (gas %d)", tx_hash, tx.from_address, gas)
        return tx_hash

    # ---- Helpers ----

    def _compile(self, descriptor: ContractDescriptor) -> ContractData:
        source = descriptor.contract_content
        if self._compile_cache is not None:
            contracts = self._compile_cache.get_or_compile(source, self._compiler.compile)
        else:
            contracts = self._compiler.compile(source)
        return find_contract(contracts, descriptor.contract_key)

    def _smart_contract(self, descriptor: ContractDescriptor, contract_address: str) -> SmartContract:
        return self._compile(descriptor).at(contract_address)

    def _wait(
        self,
        tx_hash: str,
        kind: ReceiptType,
        contract_address: Optional[str],
        cancel: Optional[threading.Event],
    ) -> Receipt:
        if self._journal is not None:
            self._journal.add(tx_hash, kind.value, contract_address)
        receipt = self._poller.wait(tx_hash, contract_address, cancel=cancel)
        if self._journal is not None:
            self._journal.remove(tx_hash)
        return receipt


__all__ = ["MAXIMUM_GAS_LIMIT", "ContractService"]
