"""
JSON-RPC client for an Ethereum node.

Uses httpx for HTTP. Each node method the contract workflow needs is
exposed as a method of ``EthereumRpc``; anything else goes through
``EthereumRpc.call``.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Optional, Protocol, runtime_checkable

import httpx

from ..exceptions import RpcError

logger = logging.getLogger(__name__)

DEFAULT_RPC_URL = "http://localhost:8545"


@runtime_checkable
class JsonRpcTransport(Protocol):
    """Sends one JSON-RPC request body and returns the parsed response body."""

    def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        ...


class HttpxTransport:
    """Default transport, one ``httpx.Client`` per transport instance."""

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.Client] = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the client if this transport created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpxTransport":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def post_json(self, url: str, payload: dict[str, Any]) -> dict[str, Any]:
        response = self._client.post(
            url,
            json=payload,
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()
        result: dict[str, Any] = response.json()
        return result


class EthereumRpc:
    """
    Ethereum node JSON-RPC surface.

    Args:
        url: Node endpoint URL
        transport: Transport used for the HTTP round trip (default: httpx)
    """

    def __init__(self, url: str = DEFAULT_RPC_URL, transport: Optional[JsonRpcTransport] = None) -> None:
        self.url = url
        self._transport = transport or HttpxTransport()
        self._ids = itertools.count(1)

    def close(self) -> None:
        """Release the transport's connections, when it holds any."""
        close = getattr(self._transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "EthereumRpc":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def call(self, method: str, *params: Any) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_call")
            params: Positional RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: If the node answers with an error member
            httpx.HTTPError: On transport failures
        """
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": next(self._ids),
        }
        logger.debug("rpc -> %s %s", method, payload["params"])
        data = self._transport.post_json(self.url, payload)

        error = data.get("error")
        if error is not None:
            if isinstance(error, dict):
                raise RpcError(method, error.get("message", str(error)), error.get("code"), error.get("data"))
            raise RpcError(method, str(error))

        return data.get("result")

    # ---- Contract workflow ----

    def eth_compileSolidity(self, source: str) -> dict[str, Any]:
        return self.call("eth_compileSolidity", source)

    def eth_estimateGas(self, tx: dict[str, Any]) -> str:
        return self.call("eth_estimateGas", tx)

    def eth_sendTransaction(self, tx: dict[str, Any]) -> str:
        return self.call("eth_sendTransaction", tx)

    def eth_getTransactionReceipt(self, tx_hash: str) -> Optional[dict[str, Any]]:
        return self.call("eth_getTransactionReceipt", tx_hash)

    def eth_call(self, call: dict[str, Any], block: str = "latest") -> str:
        return self.call("eth_call", call, block)

    # ---- Node information ----

    def eth_accounts(self) -> list[str]:
        return self.call("eth_accounts")

    def eth_gasPrice(self) -> str:
        return self.call("eth_gasPrice")

    def eth_blockNumber(self) -> str:
        return self.call("eth_blockNumber")

    def web3_clientVersion(self) -> str:
        return self.call("web3_clientVersion")


__all__ = [
    "DEFAULT_RPC_URL",
    "EthereumRpc",
    "HttpxTransport",
    "JsonRpcTransport",
]
