"""Shared fixtures: keep configuration and the pending journal inside tmp_path."""

from __future__ import annotations

from pathlib import Path

import pytest

CONFIG_VARS = (
    "ETHEREUM_RPC_URL",
    "GAS_PRICE",
    "ACCOUNT_ADDRESS",
    "ACCOUNT_GAS",
    "PRIVATE_KEY",
    "RECEIPT_TIMEOUT",
    "POLL_INTERVAL",
    "CONTRACTS_OUT",
)


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point HOME at a temp dir and clear configuration variables."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    # load_dotenv and save_env_value write into os.environ; setenv first so
    # monkeypatch restores the previous state afterwards
    for name in CONFIG_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return home
