"""
CLI integration tests using Click's test runner.

Every command runs end-to-end through the real pipeline; only the HTTP
layer is replaced by the fake relay/mirror from conftest.
"""

from __future__ import annotations

import functools
import os
from pathlib import Path
from typing import Iterator
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from eth_abi import encode

from conftest import MIRROR_URL, OPERATOR_KEY, RELAY_URL, TX_HASH, FakeLedger, mirror_error, transfer_entry
from hashsmith.cli import cli
from hashsmith.conduit.rpc import LedgerSession

TREASURY = "0x" + "0" * 36 + "03e9"
NET = ["--env", "TEST", "--rpc-url", RELAY_URL, "--mirror-url", MIRROR_URL]


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def operator_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Operator credentials in the environment, no stray ./.env."""
    monkeypatch.chdir(tmp_path)
    env = {"ACCOUNT_ID": "0.0.1001", "PRIVATE_KEY": OPERATOR_KEY}
    with patch.dict(os.environ, env, clear=True):
        yield


@pytest.fixture()
def fake_network(ledger: FakeLedger, operator_env: None) -> Iterator[FakeLedger]:
    factory = functools.partial(LedgerSession, transport=ledger.transport)
    with patch("hashsmith.commands._common.LedgerSession", factory):
        yield ledger


def run(runner: CliRunner, artifacts_dir: Path, *args: str):
    return runner.invoke(cli, [*args, *NET, "--artifacts", str(artifacts_dir)])


class TestVersionAndInfo:
    """Commands that need no operator."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_info(self, runner: CliRunner, operator_env: None) -> None:
        result = runner.invoke(cli, ["info", "--env", "LOCAL"])
        assert result.exit_code == 0
        assert "LOCAL" in result.output
        assert "298" in result.output
        assert "http://localhost:7546" in result.output
        assert "127.0.0.1:50211 -> 0.0.3" in result.output

    def test_info_requires_environment(self, runner: CliRunner, operator_env: None) -> None:
        result = runner.invoke(cli, ["info"])
        assert result.exit_code == 2
        assert "ENVIRONMENT not set" in result.output


class TestWhoami:
    def test_whoami(self, runner: CliRunner, operator_env: None) -> None:
        result = runner.invoke(cli, ["whoami", "--env", "TEST"])
        assert result.exit_code == 0
        assert "Account: 0.0.1001" in result.output
        assert "Address: 0x" in result.output

    def test_whoami_without_operator(self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        with patch.dict(os.environ, {}, clear=True):
            result = runner.invoke(cli, ["whoami", "--env", "TEST"])
        assert result.exit_code == 2
        assert "No operator configured" in result.output


class TestInvoke:
    def test_success(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        fake_network.results[TX_HASH] = {"result": "SUCCESS", "call_result": "0x" + encode(["bool"], [True]).hex()}

        result = run(
            runner, artifacts_dir,
            "invoke", "--contract", "0.0.5001", "--abi-name", "Minter",
            "--function", "transfer", "--args", '["0.0.1001", 5]',
        )

        assert result.exit_code == 0, result.output
        assert "Gas:      105,000 (estimated)" in result.output
        assert "SUCCESS: transfer completed" in result.output
        assert f"TX: {TX_HASH}" in result.output
        assert "Gas: 42,000 / 105,000 (40.0%)" in result.output
        assert "_0 (bool): True" in result.output

    def test_estimate_fallback(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        fake_network.estimate = mirror_error("CONTRACT_REVERT_EXECUTED")
        fake_network.results[TX_HASH] = {"result": "SUCCESS"}

        result = run(
            runner, artifacts_dir,
            "invoke", "--contract", "0.0.5001", "--abi-name", "Minter",
            "--function", "setPaused", "--args", "[true]", "--gas-ceiling", "300000",
        )

        assert result.exit_code == 0, result.output
        assert "300,000 (fallback: CONTRACT_REVERT_EXECUTED)" in result.output

    def test_revert_reported(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        fake_network.receipt["status"] = "0x0"
        fake_network.results[TX_HASH] = {
            "result": "CONTRACT_REVERT_EXECUTED",
            "error_message": "0x08c379a0" + encode(["string"], ["not owner"]).hex(),
        }

        result = run(
            runner, artifacts_dir,
            "invoke", "--contract", "0.0.5001", "--abi-name", "Minter",
            "--function", "setPaused", "--args", "[false]",
        )

        assert result.exit_code == 1
        assert "FAILED: setPaused settled with status CONTRACT_REVERT_EXECUTED" in result.output
        assert "Reason: REVERT: not owner" in result.output

    def test_unknown_function(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        result = run(
            runner, artifacts_dir,
            "invoke", "--contract", "0.0.5001", "--abi-name", "Minter", "--function", "burn",
        )
        assert result.exit_code == 4
        assert "Function burn not found" in result.output
        assert fake_network.rpc_calls == []

    def test_bad_contract_id(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        result = run(
            runner, artifacts_dir,
            "invoke", "--contract", "minter", "--abi-name", "Minter", "--function", "owner",
        )
        assert result.exit_code == 2
        assert "Not an address or entity id" in result.output

    def test_invalid_args_json(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        result = run(
            runner, artifacts_dir,
            "invoke", "--contract", "0.0.5001", "--abi-name", "Minter",
            "--function", "transfer", "--args", "{oops",
        )
        assert result.exit_code == 1
        assert "Invalid args" in result.output


class TestDeploy:
    def test_deploy(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        fake_network.receipt["contractAddress"] = "0x" + "0" * 36 + "1389"
        result = run(runner, artifacts_dir, "deploy", "Minter", "--args", '["0.0.1001", 1000]')
        assert result.exit_code == 0, result.output
        assert "SUCCESS: Deploy Minter completed" in result.output
        assert "Contract: 0.0.5001" in result.output

    def test_missing_artifact(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        result = run(runner, artifacts_dir, "deploy", "Ghost")
        assert result.exit_code == 3
        assert "Artifact not found" in result.output


class TestQueries:
    def test_call(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        fake_network.call = (200, {"result": "0x" + encode(["uint256"], [77]).hex()})
        result = run(
            runner, artifacts_dir,
            "call", "--contract", "0.0.5001", "--abi-name", "Minter",
            "--function", "balanceOf", "--args", '["0.0.1001"]',
        )
        assert result.exit_code == 0, result.output
        assert "Minter.balanceOf:" in result.output
        assert "_0 (uint256): 77" in result.output

    def test_call_revert(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        fake_network.call = mirror_error("CONTRACT_REVERT_EXECUTED")
        result = run(
            runner, artifacts_dir,
            "call", "--contract", "0.0.5001", "--abi-name", "Minter", "--function", "owner",
        )
        assert result.exit_code == 7

    def test_estimate(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        result = run(
            runner, artifacts_dir,
            "estimate", "--contract", "0.0.5001", "--abi-name", "Minter",
            "--function", "transfer", "--args", '["0.0.1001", 5]',
        )
        assert result.exit_code == 0, result.output
        assert "Gas limit: 105,000" in result.output
        assert "Raw estimate: 100,000" in result.output


class TestLogs:
    def test_logs(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        fake_network.log_pages = [
            {
                "logs": [
                    transfer_entry("2.0", 2),
                    {"timestamp": "1.5", "topics": [], "data": "0x"},
                    {"timestamp": "1.0", "topics": ["0x" + "22" * 32], "data": "0x01"},
                ],
                "links": {"next": None},
            }
        ]

        result = run(runner, artifacts_dir, "logs", "--contract", "0.0.5001", "--abi-name", "Minter")

        assert result.exit_code == 0, result.output
        assert "@ 2.0 : Transfer : 0.0.1001 : 0.0.1002 : 2" in result.output
        assert "1 event(s) decoded" in result.output
        assert "1 log(s) skipped" in result.output

    def test_mirror_down(self, runner: CliRunner, fake_network: FakeLedger, artifacts_dir: Path) -> None:
        fake_network.log_pages = [ConnectionError("mirror down")]
        result = run(runner, artifacts_dir, "logs", "--contract", "0.0.5001", "--abi-name", "Minter")
        assert result.exit_code == 6


class TestDecode:
    """Offline helpers need only the artifacts."""

    def test_calldata(self, runner: CliRunner, artifacts_dir: Path) -> None:
        data = "0xa9059cbb" + encode(["address", "uint256"], [TREASURY, 5]).hex()
        result = runner.invoke(cli, ["decode", "calldata", "Minter", data, "--artifacts", str(artifacts_dir)])
        assert result.exit_code == 0, result.output
        assert result.output.lower().strip() == f"transfer({TREASURY}, 5)"

    def test_revert(self, runner: CliRunner, artifacts_dir: Path) -> None:
        data = "0x4e487b71" + encode(["uint256"], [0x32]).hex()
        result = runner.invoke(cli, ["decode", "revert", "Minter", data, "--artifacts", str(artifacts_dir)])
        assert result.exit_code == 0
        assert result.output.startswith("Panic code: 50 : Access an array")

    def test_error(self, runner: CliRunner, artifacts_dir: Path) -> None:
        result = runner.invoke(
            cli, ["decode", "error", "Minter", "InsufficientFunds", "--artifacts", str(artifacts_dir)]
        )
        assert result.exit_code == 0
        assert result.output.startswith("InsufficientFunds(uint256,uint256)  0x")


class TestUpdate:
    """Only the fields named with --set change."""

    @pytest.fixture()
    def economics(self, fake_network: FakeLedger) -> FakeLedger:
        raw = encode(["(uint256,uint256,bool,address)"], [(100, 5, False, TREASURY)])
        fake_network.call = (200, {"result": "0x" + raw.hex()})
        fake_network.results[TX_HASH] = {"result": "SUCCESS"}
        return fake_network

    def _update(self, runner: CliRunner, artifacts_dir: Path, *extra: str):
        return run(
            runner, artifacts_dir,
            "update", "--contract", "0.0.5001", "--abi-name", "Minter",
            "--getter", "getEconomics", "--setter", "updateEconomics", *extra,
        )

    def test_dry_run(self, runner: CliRunner, economics: FakeLedger, artifacts_dir: Path) -> None:
        result = self._update(runner, artifacts_dir, "--set", "maxMint=0", "--dry-run")
        assert result.exit_code == 0, result.output
        assert " * maxMint: 5 -> 0" in result.output
        assert "   mintPriceHbar: 100 -> 100" in result.output
        assert "Dry run: nothing submitted." in result.output
        assert economics.rpc_calls == []

    def test_submit(self, runner: CliRunner, economics: FakeLedger, artifacts_dir: Path) -> None:
        result = self._update(runner, artifacts_dir, "--set", "paused=true")
        assert result.exit_code == 0, result.output
        assert "SUCCESS: updateEconomics completed" in result.output
        assert "eth_sendRawTransaction" in economics.rpc_calls

    def test_unknown_field(self, runner: CliRunner, economics: FakeLedger, artifacts_dir: Path) -> None:
        result = self._update(runner, artifacts_dir, "--set", "maxMints=1")
        assert result.exit_code == 5
        assert "Unknown field(s): maxMints" in result.output

    def _store(self, runner: CliRunner, artifacts_dir: Path, assignment: str):
        return run(
            runner, artifacts_dir,
            "update", "--contract", "0.0.5001", "--abi-name", "Minter",
            "--getter", "getEconomics", "--setter", "store", "--set", assignment, "--dry-run",
        )

    def test_overloaded_setter_picked_by_field(
        self, runner: CliRunner, economics: FakeLedger, artifacts_dir: Path
    ) -> None:
        result = self._store(runner, artifacts_dir, "label=launch")
        assert result.exit_code == 0, result.output
        assert " * label: - -> launch" in result.output

    def test_overload_disagreeing_with_values(
        self, runner: CliRunner, economics: FakeLedger, artifacts_dir: Path
    ) -> None:
        result = self._store(runner, artifacts_dir, "label=7")
        assert result.exit_code == 5
        assert "store(string)" in result.output
        assert "store(uint256)" in result.output
