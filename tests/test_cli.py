"""Tests for the CLI module."""

import json

import pytest
from click.testing import CliRunner

import chronosweep.cli as cli_module
from chronosweep.cli import cli

EXPORT = {
    "filters": [
        {
            "name": "ArchiveAlerts",
            "criteria": {"list": "alerts.example.com"},
            "action": {"removeLabelIds": ["INBOX"], "addLabelIds": ["Label_bulk"]},
        },
        {
            "name": "DeadRule",
            "criteria": {"list": "unused.example.com"},
            "action": {"removeLabelIds": ["INBOX"]},
        },
    ],
    "labels": [{"id": "Label_bulk", "name": "bulk"}],
}


@pytest.fixture
def fake_gmail(monkeypatch, alert_messages, catalog, make_mailbox):
    mailbox = make_mailbox(alert_messages, catalog)
    monkeypatch.setattr(cli_module, "get_gmail_service", lambda config_dir: object())
    monkeypatch.setattr(cli_module, "GmailClient", lambda service: mailbox)
    return mailbox


@pytest.fixture
def export_file(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(EXPORT))
    return str(path)


def test_cli_help():
    """CLI --help should work and show commands."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "audit" in result.output
    assert "lint" in result.output
    assert "auth" in result.output


def test_cli_version():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_audit_no_credentials(tmp_path):
    """Audit without credentials should show a clear error."""
    runner = CliRunner()
    result = runner.invoke(cli, ["--config-dir", str(tmp_path), "audit", "--no-rules"])
    assert result.exit_code != 0
    assert "Credentials file not found" in result.output


def test_audit_rankings_and_json(fake_gmail, tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["audit", "--no-rules", "--rps", "0", "--json", "report.json"])
    assert result.exit_code == 0, result.output
    assert "example.com" in result.output

    doc = json.loads((tmp_path / "report.json").read_text())
    assert doc["total"] == 3
    assert doc["window"] == "60d"
    assert doc["findings"]["dead_rules"] == []


def test_audit_rejects_absolute_json_path(fake_gmail, tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        cli, ["audit", "--no-rules", "--rps", "0", "--json", str(tmp_path / "r.json")]
    )
    assert result.exit_code == 1
    assert "must be relative" in result.output


def test_audit_rejects_non_positive_window(fake_gmail):
    runner = CliRunner()
    result = runner.invoke(cli, ["audit", "--no-rules", "--days", "0"])
    assert result.exit_code == 1
    assert "window must be positive" in result.output


def test_lint_fails_on_dead_rule(fake_gmail, export_file):
    runner = CliRunner()
    result = runner.invoke(cli, ["lint", "--export-file", export_file, "--rps", "0"])
    assert result.exit_code == 1
    assert "dead rules:" in result.output
    assert "DeadRule" in result.output


def test_lint_passes_when_category_not_requested(fake_gmail, export_file):
    runner = CliRunner()
    result = runner.invoke(
        cli, ["lint", "--export-file", export_file, "--rps", "0", "--fail-on", "conflict"]
    )
    assert result.exit_code == 0
    assert "DeadRule" in result.output


def test_lint_bad_export_file(fake_gmail, tmp_path):
    runner = CliRunner()
    result = runner.invoke(
        cli, ["lint", "--export-file", str(tmp_path / "missing.json"), "--rps", "0"]
    )
    assert result.exit_code == 1
    assert "Error" in result.output


def test_auth_reports_address(monkeypatch):
    monkeypatch.setattr(cli_module, "authenticated_address", lambda config_dir: "me@example.com")
    runner = CliRunner()
    result = runner.invoke(cli, ["auth"])
    assert result.exit_code == 0
    assert "me@example.com" in result.output
