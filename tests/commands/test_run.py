"""Tests for the run CLI commands."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner

from allocctl.cli import cli
from tests.conftest import FakeLedger


@pytest.mark.usefixtures("_isolated_workspace")
class TestRunCommands:
    def test_preview(self, cli_runner: CliRunner, ledger: FakeLedger) -> None:
        result = cli_runner.invoke(cli, ["--json", "run", "preview", "2026-03", "--rule", "r1"])
        assert result.exit_code == 0
        assert json.loads(result.output)["data"]["count"] == 1
        assert ledger.mutations == []

    def test_preview_requires_rule(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "preview", "2026-03"])
        assert result.exit_code == 2

    def test_compute_and_post(self, cli_runner: CliRunner, ledger: FakeLedger) -> None:
        ledger.add_rule()
        computed = cli_runner.invoke(cli, ["--json", "run", "compute", "2026-03"])
        assert computed.exit_code == 0
        run_id = json.loads(computed.output)["data"]["runs"][0]["id"]

        posted = cli_runner.invoke(
            cli, ["--json", "run", "post", run_id, "--entry-date", "2026-03-31"]
        )
        assert posted.exit_code == 0
        assert json.loads(posted.output)["data"]["journal_entry_id"].startswith("je-")

        listed = cli_runner.invoke(cli, ["--json", "run", "list", "--period", "2026-03"])
        assert json.loads(listed.output)["data"]["runs"][0]["status"] == "posted"

        again = cli_runner.invoke(cli, ["run", "post", run_id])
        assert again.exit_code == 1
        assert "already posted" in again.output

    def test_compute_append(self, cli_runner: CliRunner, ledger: FakeLedger) -> None:
        ledger.add_rule()
        cli_runner.invoke(cli, ["run", "compute", "2026-03"])
        result = cli_runner.invoke(cli, ["--json", "run", "compute", "2026-03", "--append"])
        assert json.loads(result.output)["data"]["replace"] is False
        assert len(ledger.runs) == 2

    def test_compute_no_active_rules(self, cli_runner: CliRunner, ledger: FakeLedger) -> None:
        ledger.add_rule(status="archived")
        result = cli_runner.invoke(cli, ["run", "compute", "2026-03"])
        assert result.exit_code == 1
        assert "No active rules" in result.output
        assert ledger.calls("POST", "/compute") == []

    def test_post_bad_date(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["run", "post", "run-1", "--entry-date", "March"])
        assert result.exit_code == 1
        assert "Invalid entry date" in result.output

    def test_quiet_compute_prints_run_ids(
        self, cli_runner: CliRunner, ledger: FakeLedger
    ) -> None:
        ledger.add_rule()
        ledger.add_rule(rule_id="r2")
        result = cli_runner.invoke(cli, ["-q", "run", "compute", "2026-03"])
        assert result.exit_code == 0
        assert len(result.output.split()) == 2
