"""
Receipt polling and the pending-transaction journal.

``ReceiptPoller`` queries ``eth_getTransactionReceipt`` at a fixed interval
until the node returns a receipt, the deadline passes, or the caller's
cancellation token is set.

``PendingTransactionStore`` persists submitted transaction hashes before the
poll starts so a restarted process can resume polling.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from ..exceptions import PollCancelledError, ReceiptTimeoutError
from ..model import Receipt
from ..node.rpc import EthereumRpc
from ..utils import utc_now_rfc3339

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.5
RECEIPT_TIMEOUT = 120.0


class ReceiptPoller:
    """
    Blocks until a transaction is mined.

    Args:
        rpc: Node client
        interval: Seconds between receipt queries
        timeout: Maximum wait in seconds; None waits without a deadline
        max_attempts: Maximum number of receipt queries; None for no limit
        sleep: Sleep function used when no cancellation token is given
        clock: Monotonic clock used for the deadline
    """

    def __init__(
        self,
        rpc: EthereumRpc,
        interval: float = POLL_INTERVAL,
        timeout: Optional[float] = RECEIPT_TIMEOUT,
        max_attempts: Optional[int] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if interval < 0:
            raise ValueError(f"Poll interval must be non-negative: {interval}")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1: {max_attempts}")
        self._rpc = rpc
        self.interval = interval
        self.timeout = timeout
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock

    def wait(
        self,
        tx_hash: str,
        contract_address: Optional[str] = None,
        cancel: Optional[threading.Event] = None,
    ) -> Receipt:
        """
        Poll for the receipt of ``tx_hash``.

        Args:
            tx_hash: Transaction hash
            contract_address: Address to attach to the receipt. The node only
                fills in ``contractAddress`` for creation transactions.
            cancel: Cancellation token; polling stops once it is set

        Returns:
            The mined transaction's receipt

        Raises:
            ReceiptTimeoutError: Deadline or attempt limit reached
            PollCancelledError: ``cancel`` was set
        """
        start = self._clock()
        attempts = 0
        while True:
            if cancel is not None and cancel.is_set():
                raise PollCancelledError(tx_hash, attempts)

            payload = self._rpc.eth_getTransactionReceipt(tx_hash)
            attempts += 1
            if payload is not None:
                break

            elapsed = self._clock() - start
            if self.max_attempts is not None and attempts >= self.max_attempts:
                raise ReceiptTimeoutError(tx_hash, attempts, elapsed)
            if self.timeout is not None and elapsed + self.interval > self.timeout:
                raise ReceiptTimeoutError(tx_hash, attempts, elapsed)

            logger.debug("receipt for %s not available (attempt %d)", tx_hash, attempts)
            self._pause(tx_hash, attempts, cancel)

        receipt = Receipt.from_dict(payload)
        if contract_address:
            receipt = receipt.with_contract_address(contract_address)
        logger.debug("receipt for %s after %d attempt(s): %s", tx_hash, attempts, receipt)
        return receipt

    def _pause(self, tx_hash: str, attempts: int, cancel: Optional[threading.Event]) -> None:
        if cancel is None:
            self._sleep(self.interval)
            return
        if cancel.wait(self.interval):
            raise PollCancelledError(tx_hash, attempts)


# ============ Pending transaction journal ============


@dataclass
class PendingTransactionStore:
    """
    Journal of submitted but unconfirmed transactions.

    One JSON file per transaction hash. Entries are written before polling
    starts and removed once the receipt is obtained.
    """

    directory: Path = field(default_factory=lambda: PendingTransactionStore.default_directory())

    @staticmethod
    def default_directory() -> Path:
        return Path.home() / ".yope-ethereum" / "pending"

    def __post_init__(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, tx_hash: str) -> Path:
        return self.directory / f"tx_{tx_hash.lower()}.json"

    def add(self, tx_hash: str, kind: str, contract_address: Optional[str] = None) -> None:
        path = self._path(tx_hash)
        entry = {
            "tx_hash": tx_hash,
            "kind": kind,
            "contract_address": contract_address,
            "created_at": utc_now_rfc3339(),
        }
        path.write_text(json.dumps(entry, indent=2, sort_keys=True), encoding="utf-8")
        if os.name != "nt":
            path.chmod(0o600)

    def remove(self, tx_hash: str) -> None:
        self._path(tx_hash).unlink(missing_ok=True)

    def list_pending(self) -> list[dict[str, Any]]:
        entries = []
        for path in sorted(self.directory.glob("tx_*.json")):
            try:
                entries.append(json.loads(path.read_text(encoding="utf-8")))
            except (json.JSONDecodeError, OSError) as exc:
                logger.warning("skipping unreadable journal entry %s: %s", path.name, exc)
        return entries

    def clear(self) -> None:
        for path in self.directory.glob("tx_*.json"):
            path.unlink(missing_ok=True)


__all__ = [
    "POLL_INTERVAL",
    "RECEIPT_TIMEOUT",
    "PendingTransactionStore",
    "ReceiptPoller",
]
