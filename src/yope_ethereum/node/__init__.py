"""
Node - Ethereum node interaction layer.

Provides the JSON-RPC client and contract compilation / ABI handling
used by the contract workflow.

Uses httpx + eth-abi + eth-hash instead of the heavyweight web3.py.
"""
