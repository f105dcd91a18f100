"""
CLI integration tests using Click's test runner.

Tests verify that the CLI commands work end-to-end via the Click
CliRunner against a fake node, without requiring network access.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from yope_ethereum.cli import cli
from yope_ethereum.services.receipts import PendingTransactionStore

from _fakes import CONTRACT_ADDRESS, MODIFY_TX, SENDER, STORAGE_SOURCE, FakeRpc

_RPC = "yope_ethereum.commands._common.EthereumRpc"


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def env_file(tmp_path: Path) -> Path:
    """Configuration with an account and no pause between receipt polls."""
    path = tmp_path / "yope.env"
    path.write_text(
        "ETHEREUM_RPC_URL=http://node.test:8545\n"
        f"ACCOUNT_ADDRESS={SENDER}\n"
        "POLL_INTERVAL=0\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture()
def source(tmp_path: Path) -> Path:
    path = tmp_path / "SimpleStorage.sol"
    path.write_text(STORAGE_SOURCE, encoding="utf-8")
    return path


def _invoke(runner: CliRunner, env_file: Path, *args: str) -> Any:
    return runner.invoke(cli, ["--env-file", str(env_file), *args])


class TestVersionAndInfo:
    """Test basic CLI commands that don't touch contracts."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.3.0" in result.output

    def test_info(self, runner: CliRunner, env_file: Path) -> None:
        class NodeInfo:
            def web3_clientVersion(self) -> str:
                return "Geth/v1.4.0"

            def eth_blockNumber(self) -> str:
                return "0x10"

            def eth_gasPrice(self) -> str:
                return "0x4a817c800"

        with patch("yope_ethereum.cli.EthereumRpc", return_value=NodeInfo()):
            result = _invoke(runner, env_file, "info")

        assert result.exit_code == 0
        assert "http://node.test:8545" in result.output
        assert "Geth/v1.4.0" in result.output
        assert "16" in result.output

    def test_info_does_not_create_journal_dir(self, runner: CliRunner, env_file: Path, isolated_env: Path) -> None:
        class NodeInfo:
            def web3_clientVersion(self) -> str:
                return "Geth/v1.4.0"

            def eth_blockNumber(self) -> str:
                return "0x1"

            def eth_gasPrice(self) -> str:
                return "0x1"

        with patch("yope_ethereum.cli.EthereumRpc", return_value=NodeInfo()):
            result = _invoke(runner, env_file, "info")

        assert result.exit_code == 0
        assert not (isolated_env / ".yope-ethereum").exists()

    def test_info_node_unreachable(self, runner: CliRunner, env_file: Path) -> None:
        class DeadNode:
            def web3_clientVersion(self) -> str:
                raise httpx.ConnectError("connection refused")

        with patch("yope_ethereum.cli.EthereumRpc", return_value=DeadNode()):
            result = _invoke(runner, env_file, "info")

        assert result.exit_code == 0
        assert "unreachable" in result.output


class TestWhoami:
    def test_whoami(self, runner: CliRunner, env_file: Path) -> None:
        result = _invoke(runner, env_file, "whoami")
        assert result.exit_code == 0
        assert SENDER in result.output

    def test_whoami_without_account(self, runner: CliRunner, tmp_path: Path) -> None:
        result = _invoke(runner, tmp_path / "empty.env", "whoami")
        assert result.exit_code == 1
        assert "No account configured" in result.output


class TestConfig:
    def test_set_then_show(self, runner: CliRunner, tmp_path: Path) -> None:
        env = tmp_path / "conf.env"
        result = _invoke(runner, env, "config", "set", "gas_price", "5")
        assert result.exit_code == 0
        assert "GAS_PRICE=5" in env.read_text(encoding="utf-8")

        result = _invoke(runner, env, "config", "show")
        assert result.exit_code == 0
        assert "GAS_PRICE=5" in result.output

    def test_unknown_key(self, runner: CliRunner, tmp_path: Path) -> None:
        result = _invoke(runner, tmp_path / "conf.env", "config", "set", "NOPE", "1")
        assert result.exit_code == 2

    def test_invalid_number(self, runner: CliRunner, tmp_path: Path) -> None:
        env = tmp_path / "bad.env"
        env.write_text("ACCOUNT_GAS=lots\n", encoding="utf-8")
        result = _invoke(runner, env, "whoami")
        assert result.exit_code == 1
        assert "ACCOUNT_GAS" in result.output


class TestCreate:
    def test_create(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        rpc = FakeRpc()
        with patch(_RPC, return_value=rpc):
            result = _invoke(runner, env_file, "create", "--source", str(source), "--contract", "SimpleStorage")

        assert result.exit_code == 0, result.output
        assert "Create: ok" in result.output
        assert CONTRACT_ADDRESS in result.output
        assert "Modify" not in result.output
        assert rpc.methods_called().count("eth_sendTransaction") == 1
        assert PendingTransactionStore().list_pending() == []

    def test_create_then_modify(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        rpc = FakeRpc()
        with patch(_RPC, return_value=rpc):
            result = _invoke(
                runner, env_file,
                "create", "--source", str(source), "--contract", "SimpleStorage",
                "--modify", "set", "--modify-args", "[42]",
            )

        assert result.exit_code == 0, result.output
        assert "Modify: ok" in result.output
        sent = rpc.params_of("eth_sendTransaction")
        assert len(sent) == 2
        assert sent[1][0]["to"] == CONTRACT_ADDRESS

    def test_gas_exceeded(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        rpc = FakeRpc(gas=5_000_000)
        with patch(_RPC, return_value=rpc):
            result = _invoke(
                runner, env_file,
                "create", "--source", str(source), "--contract", "SimpleStorage",
                "--account-gas", "100",
            )

        assert result.exit_code == 2
        assert f"gas exceeded for account {SENDER}" in result.output
        assert "eth_sendTransaction" not in rpc.methods_called()

    def test_bad_constructor_args(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        result = _invoke(
            runner, env_file,
            "create", "--source", str(source), "--contract", "SimpleStorage",
            "--constructor-args", "{not json",
        )
        assert result.exit_code == 2

    def test_wrong_constructor_arg_count(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        rpc = FakeRpc()
        with patch(_RPC, return_value=rpc):
            result = _invoke(
                runner, env_file,
                "create", "--source", str(source), "--contract", "SimpleStorage",
                "--constructor-args", "[1, 2]",
            )

        assert result.exit_code == 3
        assert "constructor with 2 argument(s)" in result.output
        assert "eth_sendTransaction" not in rpc.methods_called()

    def test_modify_without_args_is_reported(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        rpc = FakeRpc()
        with patch(_RPC, return_value=rpc):
            result = _invoke(
                runner, env_file,
                "create", "--source", str(source), "--contract", "SimpleStorage",
                "--modify", "set",
            )

        assert result.exit_code == 0, result.output
        assert "--modify set has no --modify-args" in result.output
        assert rpc.methods_called().count("eth_sendTransaction") == 1

    def test_unknown_contract(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        with patch(_RPC, return_value=FakeRpc()):
            result = _invoke(runner, env_file, "create", "--source", str(source), "--contract", "Token")
        assert result.exit_code == 3
        assert "SimpleStorage" in result.output

    def test_interrupt_leaves_journal_entry(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        class InterruptedRpc(FakeRpc):
            def eth_getTransactionReceipt(self, tx_hash: str) -> Any:
                raise KeyboardInterrupt

        with patch(_RPC, return_value=InterruptedRpc()):
            result = _invoke(runner, env_file, "create", "--source", str(source), "--contract", "SimpleStorage")

        assert result.exit_code == 130
        assert "yope-eth resume" in result.output
        assert len(PendingTransactionStore().list_pending()) == 1


class TestModifyAndRun:
    def test_modify(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        rpc = FakeRpc(tx_hashes=[MODIFY_TX])
        with patch(_RPC, return_value=rpc):
            result = _invoke(
                runner, env_file,
                "modify", "--source", str(source), "--contract", "SimpleStorage",
                "--address", CONTRACT_ADDRESS, "--function", "set", "--args", "[42]",
            )

        assert result.exit_code == 0, result.output
        assert "Modify: ok" in result.output
        assert MODIFY_TX in result.output

    def test_modify_bad_arg_type(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        rpc = FakeRpc(tx_hashes=[MODIFY_TX])
        with patch(_RPC, return_value=rpc):
            result = _invoke(
                runner, env_file,
                "modify", "--source", str(source), "--contract", "SimpleStorage",
                "--address", CONTRACT_ADDRESS, "--function", "set", "--args", '["abc"]',
            )

        assert result.exit_code == 7
        assert "Invalid arguments for set" in result.output
        assert "eth_sendTransaction" not in rpc.methods_called()

    def test_run(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        rpc = FakeRpc()
        with patch(_RPC, return_value=rpc):
            result = _invoke(
                runner, env_file,
                "run", "--source", str(source), "--contract", "SimpleStorage",
                "--address", CONTRACT_ADDRESS, "--function", "get",
            )

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "7"
        assert "eth_sendTransaction" not in rpc.methods_called()

    def test_run_unknown_function(self, runner: CliRunner, env_file: Path, source: Path) -> None:
        with patch(_RPC, return_value=FakeRpc()):
            result = _invoke(
                runner, env_file,
                "run", "--source", str(source), "--contract", "SimpleStorage",
                "--address", CONTRACT_ADDRESS, "--function", "kill",
            )
        assert result.exit_code == 3


class TestResume:
    def test_nothing_pending(self, runner: CliRunner, env_file: Path) -> None:
        result = _invoke(runner, env_file, "resume")
        assert result.exit_code == 0
        assert "No pending transactions." in result.output

    def test_list(self, runner: CliRunner, env_file: Path) -> None:
        PendingTransactionStore().add(MODIFY_TX, "MODIFY", CONTRACT_ADDRESS)
        result = _invoke(runner, env_file, "resume", "--list")
        assert result.exit_code == 0
        assert MODIFY_TX in result.output
        assert CONTRACT_ADDRESS in result.output

    def test_resume_polls_and_clears(self, runner: CliRunner, env_file: Path) -> None:
        PendingTransactionStore().add(MODIFY_TX, "MODIFY", CONTRACT_ADDRESS)
        rpc = FakeRpc()
        with patch(_RPC, return_value=rpc):
            result = _invoke(runner, env_file, "resume")

        assert result.exit_code == 0, result.output
        assert rpc.params_of("eth_getTransactionReceipt") == [(MODIFY_TX,)]
        assert PendingTransactionStore().list_pending() == []

    def test_resume_interrupted(self, runner: CliRunner, env_file: Path) -> None:
        class InterruptedRpc(FakeRpc):
            def eth_getTransactionReceipt(self, tx_hash: str) -> Any:
                raise KeyboardInterrupt

        PendingTransactionStore().add(MODIFY_TX, "MODIFY", CONTRACT_ADDRESS)
        with patch(_RPC, return_value=InterruptedRpc()):
            result = _invoke(runner, env_file, "resume")

        assert result.exit_code == 130
        assert "yope-eth resume" in result.output
        assert len(PendingTransactionStore().list_pending()) == 1
