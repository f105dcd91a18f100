"""
Configuration for the contract workflow.

Values are read from the environment after loading ~/.yope-ethereum/.env
(python-dotenv). The sending account is ACCOUNT_ADDRESS, or the address of
PRIVATE_KEY when only a key is configured (eth-account). The key itself is
never used to sign: transactions go through eth_sendTransaction.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from eth_account import Account

from .node.rpc import DEFAULT_RPC_URL
from .services.receipts import POLL_INTERVAL, RECEIPT_TIMEOUT


# Default config directory
YOPE_DIR = Path.home() / ".yope-ethereum"
YOPE_ENV = YOPE_DIR / ".env"

DEFAULT_GAS_PRICE = 20_000_000_000  # 20 gwei
DEFAULT_ACCOUNT_GAS = 3_000_000


@dataclass(frozen=True)
class Settings:
    rpc_url: str = DEFAULT_RPC_URL
    gas_price: int = DEFAULT_GAS_PRICE
    account_address: Optional[str] = None
    account_gas: int = DEFAULT_ACCOUNT_GAS
    receipt_timeout: Optional[float] = RECEIPT_TIMEOUT
    poll_interval: float = POLL_INTERVAL
    contracts_out: Optional[Path] = None


def load_env(env_path: Optional[Path] = None) -> Path:
    """Load the .env file into os.environ (existing variables win)."""
    env_path = env_path or YOPE_ENV
    if env_path.exists():
        load_dotenv(env_path, override=False)
    return env_path


def _int_env(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value, 0)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _timeout_env(name: str, default: Optional[float]) -> Optional[float]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    if value.strip().lower() in ("none", "off"):
        return None
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {value!r}") from None


def address_from_private_key(private_key: str) -> str:
    """Derive the checksummed address of a 0x-prefixed (or bare) hex private key."""
    if not private_key.startswith("0x"):
        private_key = "0x" + private_key
    return Account.from_key(private_key).address


def resolve_account_address() -> Optional[str]:
    """ACCOUNT_ADDRESS if set, otherwise the address of PRIVATE_KEY, otherwise None."""
    address = os.environ.get("ACCOUNT_ADDRESS")
    if address:
        return address
    private_key = os.environ.get("PRIVATE_KEY")
    if private_key:
        return address_from_private_key(private_key)
    return None


def load_settings(env_path: Optional[Path] = None) -> Settings:
    """
    Build settings from the environment and the .env file.

    Args:
        env_path: Path to .env file (default: ~/.yope-ethereum/.env)

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    load_env(env_path)
    contracts_out = os.environ.get("CONTRACTS_OUT")
    interval = os.environ.get("POLL_INTERVAL")
    return Settings(
        rpc_url=os.environ.get("ETHEREUM_RPC_URL", DEFAULT_RPC_URL),
        gas_price=_int_env("GAS_PRICE", DEFAULT_GAS_PRICE),
        account_address=resolve_account_address(),
        account_gas=_int_env("ACCOUNT_GAS", DEFAULT_ACCOUNT_GAS),
        receipt_timeout=_timeout_env("RECEIPT_TIMEOUT", RECEIPT_TIMEOUT),
        poll_interval=float(interval) if interval else POLL_INTERVAL,
        contracts_out=Path(contracts_out).expanduser() if contracts_out else None,
    )


def save_env_value(key: str, value: str, env_path: Optional[Path] = None) -> Path:
    """Save a single key=value to the .env file (preserving other entries)."""
    env_path = env_path or YOPE_ENV
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        for line in env_path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if stripped and not stripped.startswith("#") and "=" in stripped:
                k, v = stripped.split("=", 1)
                existing[k.strip()] = v.strip()

    existing[key] = value
    lines = [f"{k}={v}" for k, v in existing.items()]
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    # The file may hold PRIVATE_KEY
    if os.name != "nt":
        env_path.chmod(0o600)

    os.environ[key] = value
    return env_path


__all__ = [
    "DEFAULT_ACCOUNT_GAS",
    "DEFAULT_GAS_PRICE",
    "YOPE_DIR",
    "YOPE_ENV",
    "Settings",
    "address_from_private_key",
    "load_env",
    "load_settings",
    "resolve_account_address",
    "save_env_value",
]
